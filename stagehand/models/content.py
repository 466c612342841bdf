"""Data models describing content roots and the outcome of preparing them."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


MARKER_FILENAME = "_deconst.json"


@dataclass(frozen=True, slots=True)
class ContentRoot:
    """A workspace directory that carries a content marker file.

    Identity is the normalised workspace-relative path. The absolute ``path`` is
    carried along for the preparer but does not participate in equality.
    """

    relative_path: str
    path: Path = field(compare=False)

    @classmethod
    def from_directory(cls, workspace: Path, directory: Path) -> "ContentRoot":
        """Build a root for ``directory`` relative to ``workspace``."""

        absolute = Path(directory).resolve()
        relative = absolute.relative_to(Path(workspace).resolve()).as_posix()
        return cls(relative_path=relative or ".", path=absolute)

    @property
    def marker(self) -> Path:
        return self.path / MARKER_FILENAME


@dataclass(frozen=True, slots=True)
class PreparerOptions:
    """Settings handed to the per-root preparer for a single build."""

    content_service_url: str
    content_service_api_key: str = field(repr=False)
    revision_id: str | None = None
    content_root: Path | None = None


@dataclass(frozen=True, slots=True)
class PrepareOutcome:
    """Result reported by the preparer for one content root."""

    success: bool
    did_something: bool
    content_id_base: str | None = None


class ContentManifest(BaseModel):
    """Parsed representation of a ``_deconst.json`` marker file."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    content_id_base: str = Field(alias="contentIDBase")
    preparer: str | None = None

    @field_validator("content_id_base")
    @classmethod
    def _require_content_id(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("contentIDBase must not be empty")
        return cleaned

    @field_validator("preparer")
    @classmethod
    def _blank_preparer_is_unset(cls, value: Any) -> str | None:
        if value is None:
            return None
        cleaned = str(value).strip()
        return cleaned or None

"""Structures passed between the stages of a build."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - for static type checking only
    from stagehand.services.errors import PreparationError


PresentedURLMap = dict[str, list[str]]


@dataclass(slots=True)
class AggregateResult:
    """Folded outcome of preparing every discovered content root."""

    did_something: bool = False
    submitted_something: bool = False
    content_id_map: dict[str, str] = field(default_factory=dict)
    all_successful: bool = True
    errors: list["PreparationError"] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class TransientAPIKey:
    """Credential scoped to a single revision, valid only for the current build."""

    revision_id: str
    name: str
    value: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class PresentedMapping:
    """Location at which the presenter currently renders a content ID."""

    path: str
    domain: str | None = None


@dataclass(frozen=True, slots=True)
class PullRequestOutcome:
    """Externally visible result of the pull-request preview pipeline."""

    did_something: bool

"""Shared fixtures and helpers for the test suite."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from stagehand.models.content import MARKER_FILENAME


def _write_marker(directory: Path, manifest: dict[str, Any] | None = None) -> Path:
    """Create ``directory`` and drop a marker file into it."""

    directory.mkdir(parents=True, exist_ok=True)
    payload = manifest if manifest is not None else {"contentIDBase": f"https://github.com/example/{directory.name}/"}
    marker = directory / MARKER_FILENAME
    marker.write_text(json.dumps(payload), encoding="utf-8")
    return marker


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Return an empty build workspace."""

    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def add_content_root(workspace: Path) -> Callable[..., Path]:
    """Factory that marks ``workspace / relative`` as a content root."""

    def _add(relative: str, manifest: dict[str, Any] | None = None) -> Path:
        directory = workspace / relative if relative != "." else workspace
        _write_marker(directory, manifest)
        return directory

    return _add

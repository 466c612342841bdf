from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from typing import Callable

import pytest

from stagehand.models.content import ContentRoot, PreparerOptions
from stagehand.services.errors import PreparationError
from stagehand.services.preparer import CommandPreparer, load_manifest, staging_content_id


posix_only = pytest.mark.skipif(os.name != "posix", reason="preparer scripts require a POSIX shell")

STAGING_OPTIONS = PreparerOptions(
    content_service_url="https://staging-content.example.com",
    content_service_api_key="transient-key",
    revision_id="build-abc123",
)


def _write_script(path: Path, exit_code: int) -> Path:
    path.write_text(
        "#!/bin/sh\n"
        'printf \'{"url": "%s", "key": "%s", "id": "%s", "revision": "%s"}\' '
        '"$CONTENT_STORE_URL" "$CONTENT_STORE_APIKEY" "$CONTENT_ID_BASE" "$REVISION_ID" > env.json\n'
        "echo preparing\n"
        f"exit {exit_code}\n",
        encoding="utf-8",
    )
    path.chmod(0o755)
    return path


def _root_for(workspace: Path, directory: Path) -> ContentRoot:
    return ContentRoot.from_directory(workspace, directory)


def test_staging_content_id() -> None:
    assert staging_content_id("https://github.com/org/docs/", None) == "https://github.com/org/docs/"
    assert staging_content_id("https://github.com/org/docs/", "build-1") == "build-1/https://github.com/org/docs/"


def test_load_manifest_reads_content_id(workspace: Path, add_content_root: Callable[..., Path]) -> None:
    directory = add_content_root("docs", {"contentIDBase": " https://github.com/org/docs/ ", "preparer": ""})

    manifest = load_manifest(_root_for(workspace, directory))

    assert manifest.content_id_base == "https://github.com/org/docs/"
    assert manifest.preparer is None


@pytest.mark.parametrize("manifest", [{}, {"contentIDBase": "   "}, ["not", "an", "object"]])
def test_load_manifest_rejects_invalid_content(
    workspace: Path, add_content_root: Callable[..., Path], manifest: object
) -> None:
    directory = add_content_root("docs", manifest)  # type: ignore[arg-type]

    with pytest.raises(PreparationError):
        load_manifest(_root_for(workspace, directory))


def test_load_manifest_rejects_malformed_json(workspace: Path) -> None:
    directory = workspace / "docs"
    directory.mkdir()
    (directory / "_deconst.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(PreparationError, match="Unable to read"):
        load_manifest(_root_for(workspace, directory))


def test_prepare_without_matching_preparer_does_nothing(
    workspace: Path, add_content_root: Callable[..., Path]
) -> None:
    directory = add_content_root("docs")

    outcome = asyncio.run(CommandPreparer().prepare(_root_for(workspace, directory), STAGING_OPTIONS))

    assert outcome.success
    assert not outcome.did_something
    assert outcome.content_id_base is None


@posix_only
def test_prepare_runs_manifest_preparer_with_environment(
    tmp_path: Path, workspace: Path, add_content_root: Callable[..., Path]
) -> None:
    script = _write_script(tmp_path / "fake-preparer", exit_code=0)
    directory = add_content_root("docs", {"contentIDBase": "https://github.com/org/docs/", "preparer": str(script)})

    outcome = asyncio.run(CommandPreparer().prepare(_root_for(workspace, directory), STAGING_OPTIONS))

    assert outcome.success
    assert outcome.did_something
    assert outcome.content_id_base == "build-abc123/https://github.com/org/docs/"
    env = json.loads((directory / "env.json").read_text(encoding="utf-8"))
    assert env == {
        "url": "https://staging-content.example.com",
        "key": "transient-key",
        "id": "build-abc123/https://github.com/org/docs/",
        "revision": "build-abc123",
    }


@posix_only
def test_prepare_detects_preparer_from_layout(
    tmp_path: Path, workspace: Path, add_content_root: Callable[..., Path]
) -> None:
    script = _write_script(tmp_path / "fake-sphinx", exit_code=1)
    directory = add_content_root("docs")
    (directory / "conf.py").write_text("project = 'docs'\n", encoding="utf-8")
    preparer = CommandPreparer(preparers=(("conf.py", str(script)),))

    outcome = asyncio.run(preparer.prepare(_root_for(workspace, directory), STAGING_OPTIONS))

    assert not outcome.success
    assert outcome.did_something
    assert (directory / "env.json").exists()


def test_prepare_with_missing_command_raises(
    tmp_path: Path, workspace: Path, add_content_root: Callable[..., Path]
) -> None:
    directory = add_content_root(
        "docs",
        {"contentIDBase": "https://github.com/org/docs/", "preparer": str(tmp_path / "missing-preparer")},
    )

    with pytest.raises(PreparationError, match="Unable to execute preparer"):
        asyncio.run(CommandPreparer().prepare(_root_for(workspace, directory), STAGING_OPTIONS))

"""Integration-style tests for the build CLI runner."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Any

import pytest

from stagehand.models.build import AggregateResult, PullRequestOutcome
from stagehand.scripts import run_build
from stagehand.services.errors import PreparationError, RevisionResolutionError
from stagehand.services.pipeline import ContentBuild, PullRequestPipeline
from stagehand.services.settings import BuildSettings


@dataclass(slots=True)
class StubPipeline:
    result: Any = None
    error: Exception | None = None
    runs: int = field(default=0, init=False)

    async def run(self) -> Any:
        self.runs += 1
        if self.error is not None:
            raise self.error
        return self.result


@dataclass(slots=True)
class StubClient:
    closed: bool = field(default=False, init=False)

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, workspace: Path) -> None:
    for key in (
        "STAGEHAND_CONFIG",
        "STAGEHAND_PULL_REQUEST_URL",
        "STAGEHAND_GITHUB_TOKEN",
        "STAGEHAND_STAGING_PRESENTER_URL",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("STAGEHAND_WORKSPACE", str(workspace))
    monkeypatch.setenv("STAGEHAND_CONTENT_SERVICE_URL", "https://content.example.com")
    monkeypatch.setenv("STAGEHAND_CONTENT_SERVICE_APIKEY", "production-key")
    monkeypatch.setenv("STAGEHAND_STAGING_CONTENT_SERVICE_URL", "https://staging-content.example.com")
    monkeypatch.setenv("STAGEHAND_STAGING_CONTENT_SERVICE_ADMIN_APIKEY", "admin-key")
    monkeypatch.setattr(run_build, "_configure_logging", lambda: None)


def _messages(caplog: pytest.LogCaptureFixture) -> list[str]:
    return [record.getMessage() for record in caplog.records]


def test_cli_runs_content_build(monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture) -> None:
    pipeline = StubPipeline(result=AggregateResult(did_something=True, submitted_something=True))
    client = StubClient()
    seen: list[BuildSettings] = []

    def fake_build(settings: BuildSettings) -> tuple[StubPipeline, list[StubClient]]:
        seen.append(settings)
        return pipeline, [client]

    monkeypatch.setattr(run_build, "_build_pipeline", fake_build)

    with caplog.at_level(logging.INFO, logger="stagehand.build"):
        exit_code = run_build.main([])

    assert exit_code == 0
    assert pipeline.runs == 1
    assert client.closed
    assert not seen[0].is_pull_request
    assert any("BUILD_COMPLETE mode=content" in line for line in _messages(caplog))


def test_cli_pull_request_flag_selects_pull_request_mode(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[BuildSettings] = []

    def fake_build(settings: BuildSettings) -> tuple[StubPipeline, list[StubClient]]:
        seen.append(settings)
        return StubPipeline(result=PullRequestOutcome(did_something=True)), []

    monkeypatch.setattr(run_build, "_build_pipeline", fake_build)

    exit_code = run_build.main(["--pull-request-url", "https://github.com/owner/repo/pull/42"])

    assert exit_code == 0
    assert seen[0].pull_request_url == "https://github.com/owner/repo/pull/42"


def test_cli_nothing_discovered_is_success(monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture) -> None:
    monkeypatch.setattr(
        run_build,
        "_build_pipeline",
        lambda settings: (StubPipeline(result=AggregateResult()), []),
    )

    with caplog.at_level(logging.INFO, logger="stagehand.build"):
        exit_code = run_build.main([])

    assert exit_code == 0
    assert "Build finished without discovering any content." in _messages(caplog)


def test_cli_reports_pipeline_errors(monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture) -> None:
    client = StubClient()
    monkeypatch.setattr(
        run_build,
        "_build_pipeline",
        lambda settings: (StubPipeline(error=PreparationError("At least one preparer terminated unsuccessfully.")), [client]),
    )

    with caplog.at_level(logging.ERROR, logger="stagehand.build"):
        exit_code = run_build.main([])

    assert exit_code == 1
    assert client.closed
    assert "BUILD_ERROR At least one preparer terminated unsuccessfully." in _messages(caplog)


def test_cli_includes_git_output_for_revision_errors(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    error = RevisionResolutionError("git rev-parse failed", stdout="", stderr="fatal: not a git repository")
    monkeypatch.setattr(run_build, "_build_pipeline", lambda settings: (StubPipeline(error=error), []))

    with caplog.at_level(logging.ERROR, logger="stagehand.build"):
        exit_code = run_build.main(["--pull-request-url", "https://github.com/owner/repo/pull/42"])

    assert exit_code == 1
    assert "[stderr]\nfatal: not a git repository" in _messages(caplog)


def test_cli_rejects_incomplete_settings(monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture) -> None:
    monkeypatch.delenv("STAGEHAND_CONTENT_SERVICE_APIKEY")

    with caplog.at_level(logging.ERROR, logger="stagehand.build"):
        exit_code = run_build.main([])

    assert exit_code == 1
    assert any("STAGEHAND_CONTENT_SERVICE_APIKEY" in line for line in _messages(caplog))


def test_build_pipeline_wires_optional_collaborators(workspace: Path) -> None:
    base = BuildSettings(
        workspace=workspace,
        content_service_url="https://content.example.com",
        content_service_api_key="production-key",
        staging_content_service_url="https://staging-content.example.com",
        staging_content_service_admin_api_key="admin-key",
    )

    content_build, clients = run_build._build_pipeline(base)
    assert isinstance(content_build, ContentBuild)
    assert clients == []

    base.pull_request_url = "https://github.com/owner/repo/pull/42"
    bare, bare_clients = run_build._build_pipeline(base)
    assert isinstance(bare, PullRequestPipeline)
    assert bare.resolver.presenter is None
    assert bare.notifier.github is None
    assert len(bare_clients) == 1

    base.staging_presenter_url = "https://staging.example.com"
    base.github_token = "gh-token"
    base.mock_git_sha = "abc123"
    full, full_clients = run_build._build_pipeline(base)
    assert isinstance(full, PullRequestPipeline)
    assert full.resolver.presenter is not None
    assert full.notifier.github is not None
    assert full.mock_git_sha == "abc123"
    assert len(full_clients) == 3

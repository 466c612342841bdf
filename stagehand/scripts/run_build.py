"""Prepare and submit the content found in a build workspace.

Regular builds submit every content root straight to the content service.
When a pull request URL is configured the build stages the content instead:
it issues a transient API key, submits under a ``build-<sha>`` revision,
revokes the key, and comments on the pull request with preview links.

Settings come from an optional YAML file (``--config``) and ``STAGEHAND_*``
environment variables; command line options win over both.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
from pathlib import Path
from typing import Any, Protocol, Sequence

from stagehand.models.build import AggregateResult, PullRequestOutcome
from stagehand.services.comment import CommentFormatter
from stagehand.services.content_service import ContentServiceClient
from stagehand.services.credentials import CredentialLifecycle
from stagehand.services.errors import RevisionResolutionError, StagehandError
from stagehand.services.github import GitHubClient
from stagehand.services.notifier import PullRequestNotifier
from stagehand.services.pipeline import ContentBuild, PullRequestPipeline
from stagehand.services.preparer import CommandPreparer
from stagehand.services.presenter import StagingPresenterClient
from stagehand.services.preview import PreviewResolver
from stagehand.services.settings import BuildSettings, load_settings

LOGGER = logging.getLogger("stagehand.build")


class SupportsRun(Protocol):
    """Either pipeline flavour."""

    async def run(self) -> AggregateResult | PullRequestOutcome:  # pragma: no cover - interface
        """Execute the build."""


class SupportsAclose(Protocol):
    async def aclose(self) -> None:  # pragma: no cover - interface
        """Release network resources."""


def _configure_logging() -> None:
    level_name = os.getenv("STAGEHAND_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Prepare and submit workspace content.")
    parser.add_argument(
        "--config",
        type=Path,
        default=os.getenv("STAGEHAND_CONFIG"),
        help="YAML settings file (default from STAGEHAND_CONFIG).",
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        default=None,
        help="Workspace to search for content roots (default from STAGEHAND_WORKSPACE or cwd).",
    )
    parser.add_argument(
        "--pull-request-url",
        default=None,
        help="Pull request to stage and comment on; omit for a regular build.",
    )
    return parser.parse_args(argv)


def _resolve_settings(args: argparse.Namespace) -> BuildSettings:
    settings = load_settings(args.config)
    if args.workspace is not None:
        settings.workspace = args.workspace
    if args.pull_request_url:
        settings.pull_request_url = args.pull_request_url
    return settings.validate()


def _build_pipeline(settings: BuildSettings) -> tuple[SupportsRun, list[SupportsAclose]]:
    """Wire the pipeline for ``settings`` and return it with the clients to close afterwards."""

    preparer = CommandPreparer()

    if not settings.is_pull_request:
        build = ContentBuild(
            workspace=settings.workspace,
            preparer=preparer,
            content_service_url=settings.content_service_url,
            content_service_api_key=settings.content_service_api_key,
        )
        return build, []

    content_service = ContentServiceClient(
        settings.staging_content_service_url,
        settings.staging_content_service_admin_api_key,
    )
    clients: list[SupportsAclose] = [content_service]

    presenter = None
    if settings.staging_presenter_url:
        presenter = StagingPresenterClient(settings.staging_presenter_url)
        clients.append(presenter)

    github = None
    if settings.github_token:
        github = GitHubClient(settings.github_token, api_url=settings.github_api_url)
        clients.append(github)

    pipeline = PullRequestPipeline(
        workspace=settings.workspace,
        preparer=preparer,
        credentials=CredentialLifecycle(content_service=content_service),
        staging_content_service_url=settings.staging_content_service_url,
        pull_request_url=settings.pull_request_url,
        resolver=PreviewResolver(presenter=presenter),
        notifier=PullRequestNotifier(github=github, formatter=CommentFormatter()),
        mock_git_sha=settings.mock_git_sha or None,
    )
    return pipeline, clients


async def _execute(pipeline: SupportsRun, clients: Sequence[SupportsAclose]) -> Any:
    try:
        return await pipeline.run()
    finally:
        for client in clients:
            await client.aclose()


def main(argv: Sequence[str] | None = None) -> int:
    _configure_logging()
    args = _parse_args(argv)

    try:
        settings = _resolve_settings(args)
    except StagehandError as exc:
        LOGGER.error("%s", exc)
        return 1

    mode = "pull request" if settings.is_pull_request else "content"
    LOGGER.info("BUILD_START mode=%s workspace=%s", mode, settings.workspace)

    pipeline, clients = _build_pipeline(settings)
    try:
        result = asyncio.run(_execute(pipeline, clients))
    except RevisionResolutionError as exc:
        LOGGER.error("BUILD_ERROR %s", exc)
        LOGGER.error("[stdout]\n%s", exc.stdout)
        LOGGER.error("[stderr]\n%s", exc.stderr)
        return 1
    except StagehandError as exc:
        LOGGER.error("BUILD_ERROR %s", exc)
        return 1

    if not result.did_something:
        LOGGER.warning("Build finished without discovering any content.")
        return 0

    LOGGER.info("BUILD_COMPLETE mode=%s did_something=%s", mode, result.did_something)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())

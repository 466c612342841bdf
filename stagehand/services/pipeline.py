"""Orchestration layer that chains discovery, preparation, staging and notification."""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path

from stagehand.models.build import AggregateResult, PresentedURLMap, PullRequestOutcome, TransientAPIKey
from stagehand.models.content import PreparerOptions
from stagehand.services.aggregator import PrepareResultAggregator, RecursivePreparer, SupportsPreparation
from stagehand.services.credentials import CredentialLifecycle
from stagehand.services.discovery import ContentDiscoverer
from stagehand.services.errors import StagehandError
from stagehand.services.notifier import PullRequestNotifier
from stagehand.services.preview import PreviewResolver
from stagehand.services.revision import RevisionIdentifier


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ContentBuild:
    """Prepare and submit every content root straight to the production content service."""

    workspace: Path
    preparer: SupportsPreparation
    content_service_url: str
    content_service_api_key: str = field(repr=False)
    discoverer: ContentDiscoverer = field(default_factory=ContentDiscoverer)

    async def run(self) -> AggregateResult:
        options = PreparerOptions(
            content_service_url=self.content_service_url,
            content_service_api_key=self.content_service_api_key,
        )
        runner = RecursivePreparer(
            aggregator=PrepareResultAggregator(preparer=self.preparer),
            discoverer=self.discoverer,
        )
        return await runner.prepare_workspace(self.workspace, options)


@dataclass(slots=True)
class PullRequestContext:
    """State shared by the pull-request pipeline steps, filled in as each step completes."""

    revision_id: str | None = None
    transient_key: TransientAPIKey | None = None
    result: AggregateResult | None = None
    presented_urls: PresentedURLMap | None = None
    commented: bool = False

    @property
    def did_something(self) -> bool:
        return bool(self.result and self.result.did_something)

    @property
    def submitted_something(self) -> bool:
        return bool(self.result and self.result.submitted_something)


@dataclass(slots=True)
class PullRequestPipeline:
    """Stage a pull request's content and comment with links to the previews.

    Steps run strictly in order, each consuming what the previous one stored on
    the shared :class:`PullRequestContext`:

    1. resolve the revision ID
    2. issue a transient staging API key scoped to it
    3. discover and prepare every content root with that key
    4. revoke the key, whether or not preparation succeeded
    5. resolve preview URLs through the staging presenter, if configured
    6. comment on the pull request, or log the previews without GitHub

    A failure in any step other than 4 aborts the steps after it. A revocation
    failure always surfaces, even when preparation succeeded.
    """

    workspace: Path
    preparer: SupportsPreparation
    credentials: CredentialLifecycle
    staging_content_service_url: str
    pull_request_url: str = ""
    revision: RevisionIdentifier = field(default_factory=RevisionIdentifier)
    resolver: PreviewResolver = field(default_factory=PreviewResolver)
    notifier: PullRequestNotifier = field(default_factory=PullRequestNotifier)
    discoverer: ContentDiscoverer = field(default_factory=ContentDiscoverer)
    mock_git_sha: str | None = None

    async def run(self) -> PullRequestOutcome:
        context = PullRequestContext()

        await self._generate_revision_id(context)
        await self._issue_transient_key(context)
        try:
            await self._invoke_preparer(context)
        finally:
            await self._revoke_transient_key(context)
        await self._resolve_presented_urls(context)
        await self._comment_on_github(context)

        return PullRequestOutcome(did_something=context.did_something)

    async def _generate_revision_id(self, context: PullRequestContext) -> None:
        context.revision_id = await self.revision.resolve(self.workspace, self.mock_git_sha)

    async def _issue_transient_key(self, context: PullRequestContext) -> None:
        if context.revision_id is None:
            raise StagehandError("Cannot issue a transient API key before the revision ID is known.")
        context.transient_key = await self.credentials.issue(context.revision_id)

    async def _invoke_preparer(self, context: PullRequestContext) -> None:
        if context.transient_key is None:
            raise StagehandError("Cannot invoke the preparer without a transient API key.")
        logger.debug("Invoking preparer with revision ID [%s].", context.revision_id)

        options = PreparerOptions(
            content_service_url=self.staging_content_service_url,
            content_service_api_key=context.transient_key.value,
            revision_id=context.revision_id,
        )
        runner = RecursivePreparer(
            aggregator=PrepareResultAggregator(preparer=self.preparer),
            discoverer=self.discoverer,
        )
        context.result = await runner.prepare_workspace(self.workspace, options)

    async def _revoke_transient_key(self, context: PullRequestContext) -> None:
        if context.transient_key is None:
            return
        await self.credentials.revoke(context.transient_key)

    async def _resolve_presented_urls(self, context: PullRequestContext) -> None:
        if context.result is None:
            raise StagehandError("Cannot resolve preview URLs before content was prepared.")
        context.presented_urls = await self.resolver.resolve(context.result)

    async def _comment_on_github(self, context: PullRequestContext) -> None:
        context.commented = await self.notifier.notify(
            context.presented_urls,
            self.pull_request_url,
            submitted_something=context.submitted_something,
        )

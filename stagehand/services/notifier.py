"""Tell the pull request author where the staged previews can be viewed."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
import logging
import re
from typing import Protocol

from stagehand.models.build import PresentedURLMap
from stagehand.services.comment import CommentFormatter
from stagehand.services.errors import CommentPostError, PullRequestURLFormatError

LOGGER = logging.getLogger(__name__)

_PULL_REQUEST_PATTERN = re.compile(r"([^/]+/[^/]+)/pull/(\d+)$")


class SupportsCommenting(Protocol):
    """GitHub client capable of posting issue comments."""

    async def post_comment(self, repo_name: str, pull_request_number: int, body: str) -> None:
        """Post ``body`` as a comment on the pull request."""


class SupportsCommentFormatting(Protocol):
    """Formatter producing the comment body for a successful build."""

    def for_successful_build(self, presented_urls: Mapping[str, Sequence[str]]) -> str:
        """Render the comment body."""


@dataclass(frozen=True, slots=True)
class PullRequestRef:
    """Repository and pull request number parsed from a pull request URL."""

    repo_name: str
    number: int

    @classmethod
    def parse(cls, url: str) -> "PullRequestRef":
        """Parse ``.../<owner>/<repo>/pull/<number>``, raising on anything else."""

        match = _PULL_REQUEST_PATTERN.search(url or "")
        if match is None:
            raise PullRequestURLFormatError(url)
        return cls(repo_name=match.group(1), number=int(match.group(2)))


@dataclass(slots=True)
class PullRequestNotifier:
    """Post a preview comment, or log the previews when GitHub is unavailable."""

    github: SupportsCommenting | None = None
    formatter: SupportsCommentFormatting = field(default_factory=CommentFormatter)

    async def notify(
        self,
        presented_urls: PresentedURLMap | None,
        pull_request_url: str,
        *,
        submitted_something: bool,
    ) -> bool:
        """Return ``True`` when a comment was posted to GitHub."""

        if presented_urls is None or not submitted_something:
            return False

        if self.github is None:
            LOGGER.error("Unable to comment on GitHub: no GitHub account available.")
            self._log_previews(presented_urls)
            return False

        try:
            ref = PullRequestRef.parse(pull_request_url)
        except PullRequestURLFormatError as exc:
            LOGGER.error("Unable to comment on GitHub: the pull request URL looks wrong.")
            LOGGER.error("URL: [%s]", exc.url)
            return False

        body = self.formatter.for_successful_build(presented_urls)
        try:
            await self.github.post_comment(ref.repo_name, ref.number, body)
        except Exception as exc:
            raise CommentPostError(
                f"Unable to comment on {ref.repo_name}#{ref.number}: {exc}"
            ) from exc

        LOGGER.info("Posted preview comment on %s#%s.", ref.repo_name, ref.number)
        return True

    @staticmethod
    def _log_previews(presented_urls: PresentedURLMap) -> None:
        content_roots = list(presented_urls)
        if len(content_roots) == 1:
            LOGGER.info("Your preview is available at %s.", ", ".join(presented_urls[content_roots[0]]))
            return

        LOGGER.info("Your previews are available at:")
        for content_root in content_roots:
            LOGGER.info("* %s: %s", content_root, ", ".join(presented_urls[content_root]))

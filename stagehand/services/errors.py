"""Exceptions raised by the build stages."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - for static type checking only
    from stagehand.models.build import AggregateResult
    from stagehand.models.content import ContentRoot


class StagehandError(RuntimeError):
    """Base class for every error surfaced by a build."""


class ConfigurationError(StagehandError):
    """Settings are missing or malformed."""


class TraversalError(StagehandError):
    """A directory could not be listed while walking the workspace."""

    def __init__(self, directory: str | Path, cause: OSError) -> None:
        super().__init__(f"Error walking {directory}: {cause}")
        self.directory = Path(directory)
        self.cause = cause


class PreparationError(StagehandError):
    """One or more content roots could not be prepared."""

    def __init__(
        self,
        message: str,
        *,
        root: "ContentRoot | None" = None,
        result: "AggregateResult | None" = None,
    ) -> None:
        super().__init__(message)
        self.root = root
        self.result = result


class RevisionResolutionError(StagehandError):
    """The workspace revision could not be read from version control."""

    def __init__(self, message: str, *, stdout: str = "", stderr: str = "") -> None:
        super().__init__(message)
        self.stdout = stdout
        self.stderr = stderr


class CredentialIssuanceError(StagehandError):
    """The content service refused to issue a transient API key."""


class CredentialRevocationError(StagehandError):
    """A transient API key could not be revoked."""


class PreviewResolutionError(StagehandError):
    """The staging presenter could not map a content ID to its URLs."""


class PullRequestURLFormatError(StagehandError):
    """The pull request URL does not end in ``<owner>/<repo>/pull/<number>``."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Pull request URL looks wrong: [{url}]")
        self.url = url


class CommentPostError(StagehandError):
    """GitHub rejected the preview comment."""

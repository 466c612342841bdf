"""Derive the revision ID that namespaces staged content and transient credentials."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
from pathlib import Path
import re

from stagehand.services.errors import RevisionResolutionError

LOGGER = logging.getLogger(__name__)

REVISION_PREFIX = "build-"
_TRAILING_NEWLINE = re.compile(r"\r?\n$")


@dataclass(slots=True)
class RevisionIdentifier:
    """Resolve ``build-<short-sha>`` for a workspace."""

    git_executable: str = "git"
    short_length: int = 10

    async def resolve(self, workspace: Path, mock_value: str | None = None) -> str:
        """Return the revision ID, using ``mock_value`` instead of Git when provided."""

        if mock_value:
            LOGGER.debug("Returning mocked git workspace SHA.")
            return f"{REVISION_PREFIX}{mock_value}"

        LOGGER.debug("Generating revision ID from git SHA of [%s].", workspace)
        stdout, stderr = await self._run_git("rev-parse", f"--short={self.short_length}", "HEAD", cwd=workspace)

        revision_id = REVISION_PREFIX + _TRAILING_NEWLINE.sub("", stdout)
        LOGGER.debug("Revision ID: [%s]", revision_id)
        return revision_id

    async def _run_git(self, *args: str, cwd: Path) -> tuple[str, str]:
        """Execute a Git command within the workspace and raise on error."""

        try:
            process = await asyncio.create_subprocess_exec(
                self.git_executable,
                *args,
                cwd=str(cwd),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            LOGGER.error("unable to execute git.")
            raise RevisionResolutionError(f"Unable to execute {self.git_executable}: {exc}", stderr=str(exc)) from exc

        raw_stdout, raw_stderr = await process.communicate()
        stdout = raw_stdout.decode("utf-8", errors="replace")
        stderr = raw_stderr.decode("utf-8", errors="replace")

        if process.returncode != 0:
            LOGGER.error("unable to execute git.")
            LOGGER.error("[stdout]\n%s", stdout)
            LOGGER.error("[stderr]\n%s", stderr)
            command = " ".join(args)
            raise RevisionResolutionError(
                f"git {command} failed with exit status {process.returncode}",
                stdout=stdout,
                stderr=stderr,
            )
        return stdout, stderr

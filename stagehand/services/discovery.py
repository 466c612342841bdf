"""Walk a build workspace looking for directories that contain publishable content."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from stagehand.models.content import MARKER_FILENAME, ContentRoot
from stagehand.services.errors import TraversalError

LOGGER = logging.getLogger(__name__)

EXCLUDED_DIRECTORIES = frozenset({"_build", "_site"})


def is_excluded(name: str) -> bool:
    """Return ``True`` for hidden and build-output directory names."""

    return name.startswith(".") or name in EXCLUDED_DIRECTORIES


@dataclass(slots=True)
class ContentDiscoverer:
    """Depth-first, pull-based discovery of content roots.

    ``discover`` is a generator: the caller drives the walk one root at a time.
    Hidden and build-output directories are pruned before the walk descends, so
    nothing beneath them is ever listed. Symbolic links to directories are not
    followed. A directory that cannot be listed is logged and recorded in
    ``errors`` and the walk continues with its siblings.
    """

    marker: str = MARKER_FILENAME
    errors: list[TraversalError] = field(default_factory=list, init=False)
    found: int = field(default=0, init=False)

    def discover(self, root_path: str | Path) -> Iterator[ContentRoot]:
        workspace = Path(root_path)
        self.errors = []
        self.found = 0

        walker = os.walk(workspace, topdown=True, onerror=self._record_error, followlinks=False)
        for directory, dirnames, filenames in walker:
            LOGGER.debug("Traversing directories: %s", directory)

            dirnames[:] = sorted(name for name in dirnames if not is_excluded(name))

            if self.marker in filenames:
                LOGGER.info("Content directory: %s", directory)
                self.found += 1
                yield ContentRoot.from_directory(workspace, Path(directory))

        LOGGER.debug("Walk completed")
        if not self.found:
            LOGGER.info("No content discovered to prepare and submit.")
            LOGGER.info("Please add a %s file to each root directory where content is located.", self.marker)

    @property
    def nothing_discovered(self) -> bool:
        return self.found == 0

    def _record_error(self, error: OSError) -> None:
        directory = error.filename or "<unknown>"
        traversal_error = TraversalError(directory, error)
        LOGGER.error("Error walking %s: %s", directory, error)
        self.errors.append(traversal_error)

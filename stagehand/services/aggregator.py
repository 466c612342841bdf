"""Prepare every discovered content root and fold the outcomes into one result."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
import logging
from pathlib import Path
from typing import Protocol

from stagehand.models.build import AggregateResult
from stagehand.models.content import ContentRoot, PrepareOutcome, PreparerOptions
from stagehand.services.discovery import ContentDiscoverer
from stagehand.services.errors import PreparationError

LOGGER = logging.getLogger(__name__)


class SupportsPreparation(Protocol):
    """Per-root preparer relied on by the aggregator."""

    async def prepare(self, root: ContentRoot, options: PreparerOptions) -> PrepareOutcome:
        """Transform and submit the content found in ``root``."""


@dataclass(slots=True)
class PrepareResultAggregator:
    """Run the preparer once per content root without stopping at the first failure."""

    preparer: SupportsPreparation

    async def aggregate(self, content_roots: Iterable[ContentRoot], options: PreparerOptions) -> AggregateResult:
        """Prepare each root in discovery order, recording failures as they happen.

        Roots are awaited one at a time so writes into the shared result stay
        sequential. A failing root marks the result unsuccessful; the remaining
        roots are still attempted.
        """

        result = AggregateResult()

        for root in content_roots:
            result.did_something = True
            root_options = replace(options, content_root=root.path)

            try:
                outcome = await self.preparer.prepare(root, root_options)
            except PreparationError as exc:
                if exc.root is None:
                    exc.root = root
                self._record_failure(result, root, exc)
                continue
            except Exception as exc:
                error = PreparationError(f"Preparer failed for {root.relative_path}: {exc}", root=root)
                error.__cause__ = exc
                self._record_failure(result, root, error)
                continue

            result.all_successful = result.all_successful and outcome.success
            if not outcome.success:
                LOGGER.error("Preparer reported failure for %s", root.relative_path)
            if outcome.did_something:
                result.submitted_something = True
                if not outcome.content_id_base:
                    LOGGER.warning(
                        "Preparer for %s reported no content ID; it will have no preview.", root.relative_path
                    )
                    continue
                result.content_id_map[root.relative_path] = outcome.content_id_base

        return result

    @staticmethod
    def _record_failure(result: AggregateResult, root: ContentRoot, error: PreparationError) -> None:
        LOGGER.error("Unable to prepare %s: %s", root.relative_path, error)
        result.all_successful = False
        result.errors.append(error)


@dataclass(slots=True)
class RecursivePreparer:
    """Discover content roots under a workspace and prepare all of them."""

    aggregator: PrepareResultAggregator
    discoverer: ContentDiscoverer = field(default_factory=ContentDiscoverer)

    async def prepare_workspace(self, workspace: Path, options: PreparerOptions) -> AggregateResult:
        """Return the aggregate result, raising only after every root was attempted."""

        result = await self.aggregator.aggregate(self.discoverer.discover(workspace), options)

        if not result.all_successful:
            raise PreparationError("At least one preparer terminated unsuccessfully.", result=result)
        return result


async def recursively_prepare(
    workspace: Path,
    options: PreparerOptions,
    preparer: SupportsPreparation,
    *,
    discoverer: ContentDiscoverer | None = None,
) -> AggregateResult:
    """Convenience wrapper around :class:`RecursivePreparer`."""

    runner = RecursivePreparer(
        aggregator=PrepareResultAggregator(preparer=preparer),
        discoverer=discoverer or ContentDiscoverer(),
    )
    return await runner.prepare_workspace(workspace, options)

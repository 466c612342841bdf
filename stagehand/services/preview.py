"""Map submitted content IDs to the URLs where the staging presenter renders them."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
import logging
from typing import Protocol

from stagehand.models.build import AggregateResult, PresentedMapping, PresentedURLMap
from stagehand.services.errors import PreviewResolutionError
from stagehand.utils.urls import url_join

LOGGER = logging.getLogger(__name__)


class SupportsWhereis(Protocol):
    """Staging presenter capable of locating rendered content."""

    base_url: str

    async def whereis(self, content_id: str) -> Sequence[PresentedMapping]:
        """Return every mapping that currently renders ``content_id``."""


@dataclass(slots=True)
class PreviewResolver:
    """Resolve preview URLs for each content root submitted during a build."""

    presenter: SupportsWhereis | None = None

    async def resolve(self, result: AggregateResult) -> PresentedURLMap | None:
        """Return preview URLs keyed by content root, or ``None`` when unavailable.

        ``None`` means previews could not be resolved at all (no presenter or
        nothing submitted); it is distinct from an empty mapping.
        """

        if self.presenter is None:
            LOGGER.error("Unable to comment on GitHub: the staging URL is not configured.")
            return None
        if not result.submitted_something:
            return None

        entries = list(result.content_id_map.items())
        resolved = await asyncio.gather(
            *(self._resolve_entry(self.presenter, content_root, content_id) for content_root, content_id in entries)
        )
        return dict(resolved)

    async def _resolve_entry(
        self,
        presenter: SupportsWhereis,
        content_root: str,
        content_id: str,
    ) -> tuple[str, list[str]]:
        try:
            mappings = await presenter.whereis(content_id)
        except Exception as exc:
            raise PreviewResolutionError(
                f"Unable to locate content ID [{content_id}] for content root [{content_root}]: {exc}"
            ) from exc

        presented_urls = [url_join(presenter.base_url, mapping.path) for mapping in mappings]
        LOGGER.debug(
            "Content root [%s] is mapped to the URL%s %s.",
            content_root,
            "" if len(presented_urls) == 1 else "s",
            presented_urls,
        )
        return content_root, presented_urls

"""Client for the staging presenter's ``whereis`` lookup."""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from stagehand.models.build import PresentedMapping
from stagehand.services.http import build_async_client

LOGGER = logging.getLogger(__name__)


class StagingPresenterClient:
    """Ask the staging presenter where a content ID is currently rendered."""

    def __init__(
        self,
        base_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("A staging presenter URL is required")
        self.base_url = base_url
        self._api_root = base_url.rstrip("/")
        self._client = client or build_async_client(self._api_root, timeout=timeout)

    async def whereis(self, content_id: str) -> list[PresentedMapping]:
        response = await self._client.get(f"{self._api_root}/_api/whereis/{quote(content_id, safe='')}")
        response.raise_for_status()

        payload = response.json()
        raw_mappings = payload.get("mappings", []) if isinstance(payload, dict) else []
        mappings: list[PresentedMapping] = []
        for entry in raw_mappings:
            if not isinstance(entry, dict) or not entry.get("path"):
                LOGGER.debug("Skipping malformed whereis mapping for %s: %r", content_id, entry)
                continue
            mappings.append(PresentedMapping(path=str(entry["path"]), domain=entry.get("domain")))
        return mappings

    async def aclose(self) -> None:
        await self._client.aclose()

"""Client for the content service's API key endpoints."""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from stagehand.services.http import build_async_client

LOGGER = logging.getLogger(__name__)


class ContentServiceClient:
    """Issue and revoke API keys using an administrator key."""

    def __init__(
        self,
        base_url: str,
        admin_api_key: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("A content service URL is required")
        self.base_url = base_url.rstrip("/")
        self._auth_header = {"Authorization": f'deconst apikey="{admin_api_key}"'}
        self._client = client or build_async_client(self.base_url, timeout=timeout)

    async def issue_api_key(self, name: str) -> str:
        response = await self._client.post(
            f"{self.base_url}/keys",
            params={"named": name},
            headers=self._auth_header,
        )
        response.raise_for_status()

        payload = response.json()
        api_key = payload.get("apikey") if isinstance(payload, dict) else None
        if not isinstance(api_key, str) or not api_key:
            raise ValueError(f"Content service response for key {name} did not include an API key")
        LOGGER.debug("Issued API key %s.", name)
        return api_key

    async def revoke_api_key(self, key: str) -> None:
        response = await self._client.delete(
            f"{self.base_url}/keys/{quote(key, safe='')}",
            headers=self._auth_header,
        )
        response.raise_for_status()

    async def aclose(self) -> None:
        await self._client.aclose()

"""Minimal GitHub REST client for commenting on pull requests."""

from __future__ import annotations

import httpx

from stagehand.services.http import build_async_client

DEFAULT_API_URL = "https://api.github.com"


class GitHubClient:
    """Post issue comments using a personal access token."""

    def __init__(
        self,
        token: str,
        *,
        api_url: str = DEFAULT_API_URL,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        if not token:
            raise ValueError("A GitHub token is required")
        self.api_url = (api_url or DEFAULT_API_URL).rstrip("/")
        self._headers = {
            "Authorization": f"token {token}",
            "Accept": "application/vnd.github.v3+json",
        }
        self._client = client or build_async_client(self.api_url, timeout=timeout)

    async def post_comment(self, repo_name: str, pull_request_number: int, body: str) -> None:
        # Pull requests share the issue comment endpoint.
        response = await self._client.post(
            f"{self.api_url}/repos/{repo_name}/issues/{pull_request_number}/comments",
            json={"body": body},
            headers=self._headers,
        )
        response.raise_for_status()

    async def aclose(self) -> None:
        await self._client.aclose()

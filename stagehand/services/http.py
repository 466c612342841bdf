"""Shared construction of the ``httpx`` clients used to talk to remote services."""

from __future__ import annotations

from collections.abc import Mapping
import json
import logging
import os

import httpx

LOGGER = logging.getLogger(__name__)

DEFAULT_HEADERS: Mapping[str, str] = {
    "User-Agent": "stagehand/1.0",
    "Accept": "application/json",
}
HEADERS_ENV_VAR = "STAGEHAND_HTTP_HEADERS"
TIMEOUT_ENV_VAR = "STAGEHAND_HTTP_TIMEOUT"
DEFAULT_TIMEOUT = 10.0


def build_async_client(
    base_url: str,
    *,
    headers: Mapping[str, str] | None = None,
    timeout: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Return an ``AsyncClient`` bound to ``base_url`` with the combined headers."""

    return httpx.AsyncClient(
        base_url=base_url,
        headers=build_headers(headers),
        timeout=resolve_timeout(timeout),
        transport=transport,
    )


def build_headers(headers: Mapping[str, str] | None = None) -> dict[str, str]:
    """Layer ``DEFAULT_HEADERS``, a JSON object in ``STAGEHAND_HTTP_HEADERS``, then ``headers``.

    Header values of ``null`` in the environment object are dropped. A value
    that is not a JSON object is logged and ignored.
    """

    layers: list[Mapping[str, object]] = [DEFAULT_HEADERS]

    encoded = os.getenv(HEADERS_ENV_VAR, "").strip()
    if encoded:
        try:
            extra = json.loads(encoded)
        except json.JSONDecodeError:
            extra = None
        if isinstance(extra, dict):
            layers.append(extra)
        else:
            LOGGER.warning("%s must hold a JSON object; ignoring it.", HEADERS_ENV_VAR)

    if headers:
        layers.append(headers)

    return {
        str(name): str(value)
        for layer in layers
        for name, value in layer.items()
        if value is not None
    }


def resolve_timeout(timeout: float | None = None) -> float:
    """Prefer an explicit ``timeout``, then ``STAGEHAND_HTTP_TIMEOUT``, then ``DEFAULT_TIMEOUT``."""

    if timeout is not None:
        return float(timeout)

    configured = os.getenv(TIMEOUT_ENV_VAR, "").strip()
    if not configured:
        return DEFAULT_TIMEOUT

    try:
        seconds = float(configured)
    except ValueError:
        seconds = 0.0
    if seconds <= 0:
        LOGGER.warning("%s must be a positive number of seconds, got %r.", TIMEOUT_ENV_VAR, configured)
        return DEFAULT_TIMEOUT
    return seconds

"""Helpers for assembling preview URLs."""
from __future__ import annotations


def url_join(base: str, *parts: str) -> str:
    """Join URL segments with exactly one slash between them.

    Empty segments are skipped. A trailing slash on the last non-empty segment is
    preserved so directory-style preview paths keep their shape.
    """

    segments = [segment for segment in (base, *parts) if segment]
    if not segments:
        return ""

    joined = segments[0].rstrip("/") if len(segments) > 1 else segments[0]
    for index, segment in enumerate(segments[1:], start=1):
        is_last = index == len(segments) - 1
        stripped = segment.lstrip("/")
        if not is_last:
            stripped = stripped.rstrip("/")
        if not stripped:
            if is_last and segment.endswith("/") and not joined.endswith("/"):
                joined += "/"
            continue
        joined = f"{joined}/{stripped}"
    return joined


__all__ = ["url_join"]

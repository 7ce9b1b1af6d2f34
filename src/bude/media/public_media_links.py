"""Helpers for building public media URLs."""

from __future__ import annotations

from urllib.parse import urljoin

MEDIA_URL_PREFIX = "media/"


def build_public_media_url(base_url: str, relative_path: str) -> str:
    base = base_url.rstrip("/") + "/"
    return urljoin(base, MEDIA_URL_PREFIX + relative_path.lstrip("/"))


def relative_path_from_url(base_url: str, url: str | None) -> str | None:
    """Return the storage path of ``url`` when it points at our media mount."""
    if not url:
        return None
    prefix = build_public_media_url(base_url, "")
    if not url.startswith(prefix):
        return None
    relative = url[len(prefix):]
    return relative or None

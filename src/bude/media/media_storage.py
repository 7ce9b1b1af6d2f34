"""Local object storage for slot media."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

import structlog

from ..config import MediaSettings
from .public_media_links import build_public_media_url, relative_path_from_url


logger = structlog.get_logger(__name__)

_SUFFIX_BY_CONTENT_TYPE = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


class MediaError(Exception):
    """Base class for media storage failures."""


class UnsupportedMediaError(MediaError):
    """Raised when Content-Type is not allowed."""


class PayloadTooLargeError(MediaError):
    """Raised when an upload exceeds the configured size cap."""


@dataclass(slots=True)
class MediaStorage:
    """Store uploaded files below ``settings.root`` and expose public URLs."""

    settings: MediaSettings

    def upload(self, path: str, data: bytes) -> str:
        """Write ``data`` at ``path`` (relative to the root) and return its URL."""
        if len(data) > self.settings.max_upload_bytes:
            raise PayloadTooLargeError(
                f"File exceeds {self.settings.max_upload_bytes} bytes"
            )
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info("media.upload.stored", path=path, size_bytes=len(data))
        return build_public_media_url(self.settings.public_base_url, path)

    def upload_slot_image(
        self,
        collection: str,
        data: bytes,
        *,
        content_type: str,
        region_id: str | None = None,
    ) -> str:
        if content_type not in self.settings.allowed_content_types:
            raise UnsupportedMediaError(f"Unsupported content type '{content_type}'")
        suffix = _SUFFIX_BY_CONTENT_TYPE.get(content_type, ".bin")
        folder = PurePosixPath(collection, region_id or "universal")
        return self.upload(str(folder / f"{uuid.uuid4().hex}{suffix}"), data)

    def remove(self, path: str) -> bool:
        target = self._resolve(path)
        if not target.exists():
            return False
        target.unlink()
        logger.info("media.remove.deleted", path=path)
        return True

    def remove_url(self, url: str | None) -> bool:
        """Delete the file behind ``url`` if this storage owns it."""
        relative = relative_path_from_url(self.settings.public_base_url, url)
        if relative is None:
            return False
        return self.remove(relative)

    def _resolve(self, path: str) -> Path:
        root = self.settings.root.resolve()
        target = (root / path).resolve()
        if root not in target.parents:
            raise MediaError(f"Path '{path}' escapes the media root")
        return target

from pathlib import Path

import pytest

from src.bude.config import MediaSettings
from src.bude.media.media_storage import (
    MediaError,
    MediaStorage,
    PayloadTooLargeError,
    UnsupportedMediaError,
)
from src.bude.media.public_media_links import build_public_media_url, relative_path_from_url


def build_storage(tmp_path: Path) -> MediaStorage:
    return MediaStorage(
        MediaSettings(
            root=tmp_path / "media",
            public_base_url="https://networkingbude.example/",
            max_upload_bytes=16,
            allowed_content_types=("image/png", "image/webp"),
        )
    )


def test_public_url_helpers_are_inverse() -> None:
    url = build_public_media_url("https://cdn.example", "/events/gr/a.png")

    assert url == "https://cdn.example/media/events/gr/a.png"
    assert relative_path_from_url("https://cdn.example/", url) == "events/gr/a.png"
    assert relative_path_from_url("https://cdn.example", "https://elsewhere.example/a.png") is None
    assert relative_path_from_url("https://cdn.example", None) is None


def test_upload_slot_image_groups_by_collection_and_region(tmp_path) -> None:
    storage = build_storage(tmp_path)

    regional = storage.upload_slot_image(
        "events", b"png", content_type="image/png", region_id="detroit"
    )
    universal = storage.upload_slot_image("hero_banners", b"webp", content_type="image/webp")

    assert regional.startswith("https://networkingbude.example/media/events/detroit/")
    assert regional.endswith(".png")
    assert "/media/hero_banners/universal/" in universal
    stored = list((tmp_path / "media" / "events" / "detroit").iterdir())
    assert [path.read_bytes() for path in stored] == [b"png"]


def test_upload_rejects_unknown_content_type(tmp_path) -> None:
    storage = build_storage(tmp_path)

    with pytest.raises(UnsupportedMediaError):
        storage.upload_slot_image("insights", b"gif", content_type="image/gif")


def test_upload_rejects_oversized_payload(tmp_path) -> None:
    storage = build_storage(tmp_path)

    with pytest.raises(PayloadTooLargeError):
        storage.upload_slot_image("insights", b"x" * 17, content_type="image/png")


def test_remove_url_only_touches_owned_files(tmp_path) -> None:
    storage = build_storage(tmp_path)
    url = storage.upload_slot_image("insights", b"img", content_type="image/png")

    assert storage.remove_url("https://other.example/media/insights/x.png") is False
    assert storage.remove_url(url) is True
    assert storage.remove_url(url) is False


def test_paths_cannot_escape_root(tmp_path) -> None:
    storage = build_storage(tmp_path)

    with pytest.raises(MediaError):
        storage.upload("../outside.png", b"x")

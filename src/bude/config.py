"""Application configuration builder."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .db.db_init import init_db


@dataclass(slots=True)
class MediaSettings:
    root: Path
    public_base_url: str
    max_upload_bytes: int
    allowed_content_types: tuple[str, ...]


@dataclass(slots=True)
class SlotSettings:
    sentinel_number: int
    atomic_moves: bool


@dataclass(slots=True)
class ScrapeSettings:
    timeout_seconds: float
    autofill_window_days: int


@dataclass(slots=True)
class AppConfig:
    database_url: str
    engine: Engine
    session_factory: sessionmaker[Session]
    media: MediaSettings
    slots: SlotSettings
    scraping: ScrapeSettings
    jwt_signing_key: str
    admin_credentials_path: Path
    admin_jwt_ttl_hours: int


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def load_config() -> AppConfig:
    """Load configuration from environment (SQLite by default)."""
    jwt_signing_key = os.getenv("JWT_SIGNING_KEY", "").strip()
    if not jwt_signing_key:
        raise RuntimeError("JWT_SIGNING_KEY must be set")

    media_root = Path(os.getenv("MEDIA_ROOT", "media"))
    media_root.mkdir(parents=True, exist_ok=True)
    media = MediaSettings(
        root=media_root,
        public_base_url=os.getenv("PUBLIC_MEDIA_BASE_URL", "http://localhost:8000"),
        max_upload_bytes=int(os.getenv("MEDIA_MAX_UPLOAD_BYTES", 5 * 1024 * 1024)),
        allowed_content_types=("image/jpeg", "image/png", "image/webp", "image/gif"),
    )

    slots = SlotSettings(
        sentinel_number=int(os.getenv("SLOT_SENTINEL_NUMBER", 99)),
        atomic_moves=_env_flag("ATOMIC_SLOT_MOVES", True),
    )
    scraping = ScrapeSettings(
        timeout_seconds=float(os.getenv("SCRAPE_TIMEOUT_SECONDS", 10)),
        autofill_window_days=int(os.getenv("AUTOFILL_WINDOW_DAYS", 14)),
    )

    database_url = os.getenv("DATABASE_URL", "sqlite:///bude.db")
    engine = create_engine(database_url, future=True)
    session_factory: sessionmaker[Session] = sessionmaker(bind=engine, expire_on_commit=False)
    init_db(engine)

    return AppConfig(
        database_url=database_url,
        engine=engine,
        session_factory=session_factory,
        media=media,
        slots=slots,
        scraping=scraping,
        jwt_signing_key=jwt_signing_key,
        admin_credentials_path=Path(
            os.getenv("ADMIN_CREDENTIALS_PATH", "secrets/runtime_credentials.json")
        ),
        admin_jwt_ttl_hours=int(os.getenv("ADMIN_JWT_TTL_HOURS", 24)),
    )

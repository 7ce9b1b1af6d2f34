"""Dependency wiring helpers."""

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from .auth.auth_api import router as auth_router
from .auth.auth_service import AuthService
from .config import AppConfig
from .media.media_storage import MediaStorage
from .scraping.page_scraper import PageScraper
from .slots.slot_store import SqlAlchemySlotStore
from .slots.slots_api import public_router as public_slots_router
from .slots.slots_api import router as slots_router


def include_routers(
    app: FastAPI, config: AppConfig, *, auth_service: AuthService | None = None
) -> None:
    """Mount module routers and attach services."""
    slot_store = SqlAlchemySlotStore(config.session_factory)
    media_storage = MediaStorage(config.media)
    page_scraper = PageScraper(timeout_seconds=config.scraping.timeout_seconds)
    if auth_service is None:
        auth_service = AuthService.from_file(
            path=config.admin_credentials_path,
            signing_key=config.jwt_signing_key,
            token_ttl_hours=config.admin_jwt_ttl_hours,
        )

    app.state.config = config
    app.state.slot_store = slot_store
    app.state.slot_settings = config.slots
    app.state.scrape_settings = config.scraping
    app.state.media_storage = media_storage
    app.state.page_scraper = page_scraper
    app.state.auth_service = auth_service

    app.include_router(auth_router)
    app.include_router(slots_router)
    app.include_router(public_slots_router)

    app.mount(
        "/media",
        StaticFiles(directory=config.media.root, check_dir=False),
        name="media",
    )

"""Admin slot routes (load, save, delete, reorder, media, scraping)."""

from __future__ import annotations

from datetime import date

import structlog
from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Query,
    Request,
    UploadFile,
    status,
)

from ..auth.auth_dependencies import require_admin_user
from ..config import ScrapeSettings, SlotSettings
from ..media.media_storage import (
    MediaError,
    MediaStorage,
    PayloadTooLargeError,
    UnsupportedMediaError,
)
from ..regions import get_region
from ..scraping.autofill import autofill_event_slots
from ..scraping.page_scraper import PageScraper, ScrapeError
from .collections import EVENTS, SlotCollection, get_collection
from .slot_registry import SlotRegistry
from .slot_store import SlotStore
from .slots_errors import (
    InconsistentStateError,
    InvalidSlotError,
    SlotError,
    SlotNotFoundError,
    StoreError,
    ValidationError,
)
from .slots_models import SlotRecord
from .slots_schemas import (
    AutofillEntry,
    AutofillResponse,
    MediaUploadResponse,
    ScrapeRequest,
    ScrapeResponse,
    SlotMoveRequest,
    SlotPositionPayload,
    SlotRecordPayload,
    SlotRestoreRequest,
    SlotSaveRequest,
    SlotScopeResponse,
    SlotSwapRequest,
    SlotViewResponse,
)

router = APIRouter(
    prefix="/api/slots",
    tags=["slots"],
    dependencies=[Depends(require_admin_user)],
)
public_router = APIRouter(prefix="/public/slots", tags=["public-slots"])

logger = structlog.get_logger(__name__)


def get_slot_store(request: Request) -> SlotStore:
    try:
        return request.app.state.slot_store  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("SlotStore is not configured") from exc


def get_slot_settings(request: Request) -> SlotSettings:
    try:
        return request.app.state.slot_settings  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("SlotSettings are not configured") from exc


def get_media_storage(request: Request) -> MediaStorage:
    try:
        return request.app.state.media_storage  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("MediaStorage is not configured") from exc


def get_page_scraper(request: Request) -> PageScraper:
    try:
        return request.app.state.page_scraper  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("PageScraper is not configured") from exc


def get_scrape_settings(request: Request) -> ScrapeSettings:
    try:
        return request.app.state.scrape_settings  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("ScrapeSettings are not configured") from exc


def _error(status_code: int, reason: str, details: object | None = None) -> HTTPException:
    detail: dict[str, object] = {"status": "error", "failure_reason": reason}
    if details is not None:
        detail["details"] = details
    return HTTPException(status_code=status_code, detail=detail)


def _resolve_collection(name: str) -> SlotCollection:
    try:
        return get_collection(name)
    except KeyError:
        raise _error(status.HTTP_404_NOT_FOUND, "collection_not_found") from None


def _open_registry(
    collection_name: str,
    region_id: str | None,
    store: SlotStore,
    settings: SlotSettings,
) -> SlotRegistry:
    collection = _resolve_collection(collection_name)
    try:
        return SlotRegistry(
            store,
            collection,
            region_id,
            sentinel=settings.sentinel_number,
            atomic_moves=settings.atomic_moves,
        )
    except InvalidSlotError as exc:
        raise _error(status.HTTP_400_BAD_REQUEST, "invalid_region", str(exc)) from exc


def _record_payload(record: SlotRecord) -> SlotRecordPayload:
    return SlotRecordPayload(
        id=record.id,
        slot_number=record.slot_number,
        region_id=record.region_id,
        is_featured=record.is_featured,
        fields=dict(record.payload),
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _scope_response(registry: SlotRegistry) -> SlotScopeResponse:
    return SlotScopeResponse(
        collection=registry.collection.name,
        region_id=registry.scope.region_id,
        capacity=registry.collection.capacity,
        positions=[
            SlotPositionPayload(
                slot_number=number,
                occupied=record is not None,
                record=_record_payload(record) if record is not None else None,
            )
            for number, record in registry.positions()
        ],
        anomalies=[_record_payload(record) for record in registry.anomalies()],
    )


def _slot_error(exc: SlotError, registry: SlotRegistry) -> HTTPException:
    if isinstance(exc, ValidationError):
        return _error(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "missing_fields",
            list(exc.missing_fields),
        )
    if isinstance(exc, InvalidSlotError):
        return _error(status.HTTP_400_BAD_REQUEST, "invalid_slot", str(exc))
    if isinstance(exc, SlotNotFoundError):
        return _error(status.HTTP_404_NOT_FOUND, "slot_empty", str(exc))
    if isinstance(exc, InconsistentStateError):
        return _error(
            status.HTTP_409_CONFLICT,
            "inconsistent_state",
            {
                "message": str(exc),
                "scope": _scope_response(registry).model_dump(mode="json"),
            },
        )
    if isinstance(exc, StoreError):
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "store_error", str(exc))
    return _error(status.HTTP_400_BAD_REQUEST, "slot_error", str(exc))


@router.post("/scrape")
async def scrape_article(
    payload: ScrapeRequest,
    scraper: PageScraper = Depends(get_page_scraper),
) -> ScrapeResponse:
    try:
        article = await scraper.scrape_article(payload.url)
    except ScrapeError as exc:
        raise _error(status.HTTP_502_BAD_GATEWAY, "scrape_failed", str(exc)) from exc
    return ScrapeResponse(
        url=article.url,
        fields=article.as_payload(),
        fields_found=article.fields_found(),
    )


@router.post("/events/autofill")
async def autofill_events(
    region_id: str = Query(...),
    store: SlotStore = Depends(get_slot_store),
    settings: SlotSettings = Depends(get_slot_settings),
    scraper: PageScraper = Depends(get_page_scraper),
    scrape_settings: ScrapeSettings = Depends(get_scrape_settings),
) -> AutofillResponse:
    registry = _open_registry(EVENTS.name, region_id, store, settings)
    region = get_region(region_id)
    try:
        result = await autofill_event_slots(
            registry,
            region,
            scraper,
            today=date.today(),
            window_days=scrape_settings.autofill_window_days,
        )
    except SlotError as exc:
        raise _slot_error(exc, registry) from exc
    return AutofillResponse(
        filled=[
            AutofillEntry(
                slot_number=number, title=event.title, organization=event.organization
            )
            for number, event in sorted(result.filled.items())
        ],
        skipped=[event.title for event in result.skipped],
        failed_sources=result.failed_sources,
        scope=_scope_response(registry),
    )


@router.get("/{collection}")
def load_slots(
    collection: str,
    region_id: str | None = Query(default=None),
    store: SlotStore = Depends(get_slot_store),
    settings: SlotSettings = Depends(get_slot_settings),
) -> SlotScopeResponse:
    registry = _open_registry(collection, region_id, store, settings)
    try:
        registry.load()
    except SlotError as exc:
        raise _slot_error(exc, registry) from exc
    return _scope_response(registry)


@router.put("/{collection}/{slot_number}")
def save_slot(
    collection: str,
    slot_number: int,
    payload: SlotSaveRequest,
    region_id: str | None = Query(default=None),
    store: SlotStore = Depends(get_slot_store),
    settings: SlotSettings = Depends(get_slot_settings),
) -> SlotScopeResponse:
    registry = _open_registry(collection, region_id, store, settings)
    try:
        registry.save(slot_number, payload.fields)
    except SlotError as exc:
        raise _slot_error(exc, registry) from exc
    return _scope_response(registry)


@router.delete("/{collection}/{slot_number}")
def delete_slot(
    collection: str,
    slot_number: int,
    region_id: str | None = Query(default=None),
    store: SlotStore = Depends(get_slot_store),
    settings: SlotSettings = Depends(get_slot_settings),
    media: MediaStorage = Depends(get_media_storage),
) -> SlotScopeResponse:
    registry = _open_registry(collection, region_id, store, settings)
    try:
        removed = registry.delete(slot_number)
    except SlotError as exc:
        raise _slot_error(exc, registry) from exc
    media_field = registry.collection.media_field
    if media_field:
        try:
            media.remove_url(removed.payload.get(media_field))
        except (MediaError, OSError) as exc:
            logger.warning(
                "slots.delete.media_cleanup_failed",
                collection=collection,
                slot_number=slot_number,
                error=str(exc),
            )
    return _scope_response(registry)


@router.post("/{collection}/{slot_number}/move")
def move_slot(
    collection: str,
    slot_number: int,
    payload: SlotMoveRequest,
    region_id: str | None = Query(default=None),
    store: SlotStore = Depends(get_slot_store),
    settings: SlotSettings = Depends(get_slot_settings),
) -> SlotScopeResponse:
    registry = _open_registry(collection, region_id, store, settings)
    try:
        registry.move_adjacent(slot_number, payload.direction)
    except SlotError as exc:
        raise _slot_error(exc, registry) from exc
    return _scope_response(registry)


@router.post("/{collection}/swap")
def swap_slots(
    collection: str,
    payload: SlotSwapRequest,
    region_id: str | None = Query(default=None),
    store: SlotStore = Depends(get_slot_store),
    settings: SlotSettings = Depends(get_slot_settings),
) -> SlotScopeResponse:
    registry = _open_registry(collection, region_id, store, settings)
    try:
        registry.swap(payload.slot_a, payload.slot_b)
    except SlotError as exc:
        raise _slot_error(exc, registry) from exc
    return _scope_response(registry)


@router.post("/{collection}/restore")
def restore_slot(
    collection: str,
    payload: SlotRestoreRequest,
    region_id: str | None = Query(default=None),
    store: SlotStore = Depends(get_slot_store),
    settings: SlotSettings = Depends(get_slot_settings),
) -> SlotScopeResponse:
    registry = _open_registry(collection, region_id, store, settings)
    try:
        registry.restore(payload.record_id, payload.slot_number)
    except SlotError as exc:
        raise _slot_error(exc, registry) from exc
    return _scope_response(registry)


@router.post("/{collection}/media")
async def upload_slot_media(
    collection: str,
    file: UploadFile = File(...),
    region_id: str | None = Form(None),
    media: MediaStorage = Depends(get_media_storage),
) -> MediaUploadResponse:
    slot_collection = _resolve_collection(collection)
    if slot_collection.media_field is None:
        raise _error(status.HTTP_400_BAD_REQUEST, "media_not_supported")
    try:
        scope = slot_collection.scope(region_id)
    except InvalidSlotError as exc:
        raise _error(status.HTTP_400_BAD_REQUEST, "invalid_region", str(exc)) from exc
    data = await file.read()
    try:
        url = media.upload_slot_image(
            slot_collection.name,
            data,
            content_type=file.content_type or "",
            region_id=scope.region_id,
        )
    except UnsupportedMediaError as exc:
        raise _error(
            status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, "unsupported_media_type", str(exc)
        ) from exc
    except PayloadTooLargeError as exc:
        raise _error(
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "payload_too_large", str(exc)
        ) from exc
    return MediaUploadResponse(url=url)


@public_router.get("/{collection}/{view}")
def read_slot_view(
    collection: str,
    view: str,
    region_id: str | None = Query(default=None),
    store: SlotStore = Depends(get_slot_store),
    settings: SlotSettings = Depends(get_slot_settings),
) -> SlotViewResponse:
    registry = _open_registry(collection, region_id, store, settings)
    try:
        records = registry.view(view)
    except InvalidSlotError as exc:
        raise _error(status.HTTP_404_NOT_FOUND, "view_not_found", str(exc)) from exc
    except SlotError as exc:
        raise _slot_error(exc, registry) from exc
    return SlotViewResponse(
        collection=registry.collection.name,
        region_id=registry.scope.region_id,
        view=view,
        slots=[_record_payload(record) for record in records],
    )

"""Fill empty event slots with upcoming events scraped from organizations."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable

import structlog

from ..regions import Region
from ..slots.slot_registry import SlotRegistry
from ..slots.slots_errors import ValidationError
from .page_scraper import PageScraper, ScrapeError, ScrapedEvent


logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class AutofillResult:
    filled: dict[int, ScrapedEvent] = field(default_factory=dict)
    skipped: list[ScrapedEvent] = field(default_factory=list)
    failed_sources: list[str] = field(default_factory=list)


def rank_candidates(
    candidates: Iterable[ScrapedEvent],
    *,
    today: date,
    window_days: int = 14,
) -> list[ScrapedEvent]:
    """Return qualifying events in fill order.

    Only events starting within ``[today, today + window_days]`` qualify and
    each organization contributes its earliest qualifying event. Events are
    ordered by start time, ties broken by organization name and then title.
    """
    window_end = today + timedelta(days=window_days)
    earliest: dict[str, ScrapedEvent] = {}
    for event in candidates:
        if event.starts_at is None:
            continue
        if not today <= event.starts_at.date() <= window_end:
            continue
        current = earliest.get(event.organization)
        if current is None or _sort_key(event) < _sort_key(current):
            earliest[event.organization] = event

    return sorted(earliest.values(), key=_sort_key)


def _sort_key(event: ScrapedEvent) -> tuple:
    return (event.starts_at, event.organization.casefold(), event.title.casefold())


def fill_open_slots(
    registry: SlotRegistry,
    ranked: Iterable[ScrapedEvent],
    result: AutofillResult,
) -> AutofillResult:
    """Save ranked events into the registry's empty slots, lowest first.

    Blocking: talks to the slot store. A candidate failing validation is
    recorded as skipped and leaves its slot open for the next one.
    """
    registry.load()
    open_slots = [number for number, record in registry.positions() if record is None]
    for event in ranked:
        if not open_slots:
            break
        slot_number = open_slots[0]
        try:
            registry.save(slot_number, event.as_payload())
        except ValidationError as exc:
            logger.info(
                "autofill.candidate.skipped",
                title=event.title,
                organization=event.organization,
                missing=list(exc.missing_fields),
            )
            result.skipped.append(event)
            continue
        open_slots.pop(0)
        result.filled[slot_number] = event
    return result


async def autofill_event_slots(
    registry: SlotRegistry,
    region: Region,
    scraper: PageScraper,
    *,
    today: date,
    window_days: int = 14,
) -> AutofillResult:
    """Scrape the region's organizations and save events into empty slots."""
    result = AutofillResult()
    candidates: list[ScrapedEvent] = []
    for organization, url in region.scrape_urls.items():
        try:
            candidates.extend(await scraper.scrape_events(url, organization))
        except ScrapeError:
            result.failed_sources.append(organization)

    ranked = rank_candidates(candidates, today=today, window_days=window_days)
    await asyncio.to_thread(fill_open_slots, registry, ranked, result)

    logger.info(
        "autofill.completed",
        region_id=region.id,
        filled=sorted(result.filled),
        skipped=len(result.skipped),
        failed_sources=result.failed_sources,
    )
    return result


__all__ = ["AutofillResult", "autofill_event_slots", "fill_open_slots", "rank_candidates"]

from __future__ import annotations

import asyncio
import threading
from datetime import date, datetime

import pytest

from src.bude.regions import Region
from src.bude.scraping import autofill
from src.bude.scraping.autofill import (
    AutofillResult,
    autofill_event_slots,
    fill_open_slots,
    rank_candidates,
)
from src.bude.scraping.page_scraper import ScrapeError, ScrapedEvent
from src.bude.slots.collections import EVENTS
from src.bude.slots.slot_registry import SlotRegistry
from src.bude.slots.slot_store import SqlAlchemySlotStore
from tests.helpers.slots import event_fields


TODAY = date(2026, 11, 1)


def make_event(title: str, organization: str, starts_at: datetime | None, **extra) -> ScrapedEvent:
    return ScrapedEvent(
        title=title,
        starts_at=starts_at,
        organization=organization,
        registration_url=f"https://example.org/{title.lower().replace(' ', '-')}",
        location_name=extra.pop("location_name", "Downtown"),
        **extra,
    )


class FakeScraper:
    def __init__(self, events: dict[str, list[ScrapedEvent]], failing: set[str] = frozenset()) -> None:
        self.events = events
        self.failing = failing

    async def scrape_events(self, url: str, organization: str) -> list[ScrapedEvent]:
        if organization in self.failing:
            raise ScrapeError(f"{url} is down")
        return list(self.events.get(organization, []))


def test_rank_keeps_earliest_event_per_organization() -> None:
    candidates = [
        make_event("Late Mixer", "GRYP", datetime(2026, 11, 9, 18, 0)),
        make_event("Early Mixer", "GRYP", datetime(2026, 11, 3, 18, 0)),
        make_event("Luncheon", "CREW", datetime(2026, 11, 5, 12, 0)),
    ]

    ranked = rank_candidates(candidates, today=TODAY)

    assert [event.title for event in ranked] == ["Early Mixer", "Luncheon"]


def test_rank_applies_window_and_skips_undated() -> None:
    candidates = [
        make_event("Yesterday", "A", datetime(2026, 10, 31, 9, 0)),
        make_event("Too far", "B", datetime(2026, 11, 20, 9, 0)),
        make_event("Edge", "C", datetime(2026, 11, 15, 9, 0)),
        make_event("No date", "D", None),
    ]

    ranked = rank_candidates(candidates, today=TODAY, window_days=14)

    assert [event.title for event in ranked] == ["Edge"]


def test_rank_breaks_ties_by_organization_then_title() -> None:
    same_time = datetime(2026, 11, 4, 8, 0)
    candidates = [
        make_event("Zeta", "rotary club", same_time),
        make_event("Alpha", "Start Garden", same_time),
        make_event("Beta", "CREW", same_time),
    ]

    ranked = rank_candidates(candidates, today=TODAY)

    assert [event.organization for event in ranked] == ["CREW", "rotary club", "Start Garden"]


@pytest.fixture
def registry(session_factory) -> SlotRegistry:
    return SlotRegistry(SqlAlchemySlotStore(session_factory), EVENTS, "grand-rapids")


def test_autofill_fills_only_empty_slots(registry) -> None:
    registry.save(1, event_fields("Hand picked"))
    registry.save(3, event_fields("Also hand picked"))
    region = Region(
        id="grand-rapids",
        name="Grand Rapids",
        display_name="Grand Rapids, MI",
        hub_zip="49503",
        state="MI",
        is_active=True,
        zip_prefixes=("495",),
        scrape_urls={
            "GRYP": "https://gryp.example/events",
            "CREW": "https://crew.example/events",
            "Athena": "https://athena.example/events",
            "Inforum": "https://inforum.example/events",
        },
    )
    scraper = FakeScraper(
        {
            "GRYP": [make_event("GRYP Social", "GRYP", datetime(2026, 11, 3, 17, 0))],
            "CREW": [
                make_event("CREW Tour", "CREW", datetime(2026, 11, 2, 9, 0), location_name="")
            ],
            "Athena": [make_event("Athena Awards", "Athena", datetime(2026, 11, 10, 18, 0))],
        },
        failing={"Inforum"},
    )

    result = asyncio.run(autofill_event_slots(registry, region, scraper, today=TODAY))

    assert {number: event.title for number, event in result.filled.items()} == {
        2: "GRYP Social",
        4: "Athena Awards",
    }
    assert [event.title for event in result.skipped] == ["CREW Tour"]
    assert result.failed_sources == ["Inforum"]
    assert registry.get(1).payload["title"] == "Hand picked"
    assert registry.get(2).payload["organization"] == "GRYP"
    assert registry.get(2).is_featured is True
    assert registry.get(5) is None


def test_fill_open_slots_pairs_ranked_events_with_lowest_empty_slots(registry) -> None:
    registry.save(2, event_fields("Already booked"))
    ranked = [
        make_event("First", "A", datetime(2026, 11, 2, 9, 0)),
        make_event("Second", "B", datetime(2026, 11, 6, 9, 0)),
    ]

    result = fill_open_slots(registry, ranked, AutofillResult())

    assert {number: event.title for number, event in result.filled.items()} == {
        1: "First",
        3: "Second",
    }
    assert registry.get(2).payload["title"] == "Already booked"


def test_fill_open_slots_stops_when_scope_is_full(registry) -> None:
    for number in range(1, 8):
        registry.save(number, event_fields(f"Booked {number}"))

    result = fill_open_slots(
        registry,
        [make_event("Late entry", "A", datetime(2026, 11, 2, 9, 0))],
        AutofillResult(),
    )

    assert result.filled == {}
    assert result.skipped == []


def test_autofill_writes_slots_off_the_event_loop_thread(registry, monkeypatch) -> None:
    threads: list[int] = []
    original = autofill.fill_open_slots

    def tracking_fill(*args, **kwargs):
        threads.append(threading.get_ident())
        return original(*args, **kwargs)

    monkeypatch.setattr(autofill, "fill_open_slots", tracking_fill)
    region = Region(
        id="grand-rapids",
        name="Grand Rapids",
        display_name="Grand Rapids, MI",
        hub_zip="49503",
        state="MI",
        is_active=True,
        zip_prefixes=("495",),
        scrape_urls={"GRYP": "https://gryp.example/events"},
    )
    scraper = FakeScraper(
        {"GRYP": [make_event("GRYP Social", "GRYP", datetime(2026, 11, 3, 17, 0))]}
    )

    result = asyncio.run(autofill_event_slots(registry, region, scraper, today=TODAY))

    assert list(result.filled) == [1]
    assert threads and threads[0] != threading.get_ident()

"""Catalog of slot collections managed from the admin panel."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from ..regions import is_valid_region
from .slots_errors import InvalidSlotError
from .slots_models import SlotScope


@dataclass(frozen=True, slots=True)
class SlotCollection:
    """Static description of one bounded, ordered slot collection."""

    name: str
    capacity: int
    fields: tuple[str, ...]
    required_fields: tuple[str, ...]
    region_scoped: bool = False
    allow_universal: bool = False
    featured_through: int | None = None
    media_field: str | None = None
    views: Mapping[str, int] = field(default_factory=dict)
    save_by_upsert: bool = False

    def is_featured(self, slot_number: int) -> bool:
        """Featured flag is a pure function of the slot number."""
        if self.featured_through is None:
            return False
        return 1 <= slot_number <= self.featured_through

    def in_range(self, slot_number: int) -> bool:
        return 1 <= slot_number <= self.capacity

    def check_slot_number(self, slot_number: int) -> None:
        if not self.in_range(slot_number):
            raise InvalidSlotError(
                f"{self.name} slot number must be between 1 and {self.capacity}, "
                f"got {slot_number}"
            )

    def scope(self, region_id: str | None) -> SlotScope:
        """Build a validated scope for ``region_id``."""
        region = region_id or None
        if not self.region_scoped:
            if region is not None:
                raise InvalidSlotError(f"{self.name} slots are not region scoped")
            return SlotScope(collection=self.name)
        if region is None:
            if not self.allow_universal:
                raise InvalidSlotError(f"{self.name} slots require a region_id")
            return SlotScope(collection=self.name)
        if not is_valid_region(region):
            raise InvalidSlotError(f"Unknown region '{region}'")
        return SlotScope(collection=self.name, region_id=region)

    def clean_payload(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        """Keep known fields only, trimming string values."""
        cleaned: dict[str, Any] = {}
        for name in self.fields:
            if name not in payload:
                continue
            value = payload[name]
            if isinstance(value, str):
                value = value.strip()
            cleaned[name] = value
        return cleaned

    def missing_fields(self, payload: Mapping[str, Any]) -> list[str]:
        return [
            name
            for name in self.required_fields
            if payload.get(name) is None or payload.get(name) == ""
        ]

    def view_limit(self, view: str) -> int:
        try:
            return self.views[view]
        except KeyError:
            raise InvalidSlotError(f"Unknown view '{view}' for {self.name}") from None


EVENTS = SlotCollection(
    name="events",
    capacity=7,
    region_scoped=True,
    featured_through=4,
    fields=(
        "title",
        "short_description",
        "full_description",
        "date",
        "time",
        "location_name",
        "full_address",
        "image_url",
        "event_badge",
        "organization",
        "organization_custom",
        "organizer_description",
        "tags",
        "registration_url",
    ),
    required_fields=("title", "date", "time", "location_name", "registration_url"),
    media_field="image_url",
    views={"featured": 4, "events": 7},
)

INSIGHTS = SlotCollection(
    name="insights",
    capacity=10,
    fields=(
        "title",
        "description",
        "image",
        "url",
        "tags",
        "sponsored_by",
        "full_content",
        "author",
    ),
    required_fields=("title",),
    media_field="image",
    views={"dashboard": 3, "insights": 10},
    save_by_upsert=True,
)

HERO_BANNERS = SlotCollection(
    name="hero_banners",
    capacity=3,
    region_scoped=True,
    allow_universal=True,
    fields=("image_url", "click_url", "alt_text"),
    required_fields=("image_url",),
    media_field="image_url",
    views={"carousel": 3},
    save_by_upsert=True,
)

COLLECTIONS: dict[str, SlotCollection] = {
    collection.name: collection for collection in (EVENTS, INSIGHTS, HERO_BANNERS)
}


def get_collection(name: str) -> SlotCollection:
    try:
        return COLLECTIONS[name]
    except KeyError:
        raise KeyError(f"Slot collection '{name}' not found") from None


__all__ = [
    "COLLECTIONS",
    "EVENTS",
    "HERO_BANNERS",
    "INSIGHTS",
    "SlotCollection",
    "get_collection",
]

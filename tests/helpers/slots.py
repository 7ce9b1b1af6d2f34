"""Shared builders for slot tests."""

from __future__ import annotations

from typing import Any

from src.bude.slots.slot_store import SqlAlchemySlotStore
from src.bude.slots.slots_errors import StoreError


def event_fields(title: str, **overrides: Any) -> dict[str, Any]:
    fields = {
        "title": title,
        "date": "2026-11-05",
        "time": "17:30",
        "location_name": "Bamboo GR",
        "registration_url": f"https://example.org/{title.lower().replace(' ', '-')}",
    }
    fields.update(overrides)
    return fields


class FlakyStore(SqlAlchemySlotStore):
    """Slot store that records writes and can fail on demand."""

    def __init__(self, session_factory, *, fail_on_update: int | None = None) -> None:
        super().__init__(session_factory)
        self.writes: list[tuple[str, Any]] = []
        self.fail_on_update = fail_on_update
        self.fail_select = False

    def select(self, scope):
        if self.fail_select:
            raise StoreError("simulated select outage")
        return super().select(scope)

    def insert(self, scope, slot_number, payload, *, is_featured=False):
        self.writes.append(("insert", slot_number))
        return super().insert(scope, slot_number, payload, is_featured=is_featured)

    def update(self, record_id, **changes):
        self.writes.append(("update", changes))
        updates = sum(1 for kind, _ in self.writes if kind == "update")
        if self.fail_on_update is not None and updates == self.fail_on_update:
            raise StoreError("simulated update outage")
        super().update(record_id, **changes)

    def delete(self, scope, slot_numbers):
        numbers = list(slot_numbers)
        self.writes.append(("delete", numbers))
        return super().delete(scope, numbers)

"""Ordered, scope-bound view over one slot collection.

The registry keeps a single in-memory table keyed by ``slot_number`` and only
changes it through :meth:`SlotRegistry.load`, so every mutation ends with a
reload from the store. Rows are addressed by their stable ``id`` while slot
numbers are being juggled.

Moving a slot onto an occupied neighbour cannot rename both rows directly
because ``(collection, region, slot_number)`` is unique. The source row is
parked on a sentinel number first, then the neighbour takes the source
number and finally the source takes the neighbour's. With ``atomic_moves``
the three writes share one transaction; otherwise a failure between them can
leave the source parked on the sentinel, which the reload exposes through
:meth:`SlotRegistry.anomalies`. An operator clears it with
:meth:`SlotRegistry.restore` or :meth:`SlotRegistry.delete`.
"""

from __future__ import annotations

from contextlib import nullcontext
from typing import Any, Callable, Mapping

import structlog

from .collections import SlotCollection
from .slot_store import SlotStore
from .slots_errors import (
    InconsistentStateError,
    InvalidSlotError,
    SlotNotFoundError,
    StoreError,
    ValidationError,
)
from .slots_models import MoveDirection, SlotRecord, SlotScope


logger = structlog.get_logger(__name__)

DEFAULT_SENTINEL = 99


class SlotRegistry:
    """Load, save, delete and reorder the slots of one scope."""

    def __init__(
        self,
        store: SlotStore,
        collection: SlotCollection,
        region_id: str | None = None,
        *,
        sentinel: int = DEFAULT_SENTINEL,
        atomic_moves: bool = True,
    ) -> None:
        if collection.in_range(sentinel):
            raise ValueError(
                f"Sentinel {sentinel} must fall outside 1..{collection.capacity}"
            )
        self._store = store
        self.collection = collection
        self.scope: SlotScope = collection.scope(region_id)
        self._sentinel = sentinel
        self._atomic_moves = atomic_moves
        self._slots: dict[int, SlotRecord] = {}
        self._loaded = False

    @property
    def slots(self) -> Mapping[int, SlotRecord]:
        return dict(self._slots)

    def get(self, slot_number: int) -> SlotRecord | None:
        return self._slots.get(slot_number)

    def positions(self) -> list[tuple[int, SlotRecord | None]]:
        """Every position of the collection, ``None`` where it is empty."""
        return [
            (number, self._slots.get(number))
            for number in range(1, self.collection.capacity + 1)
        ]

    def anomalies(self) -> list[SlotRecord]:
        """Records persisted outside the valid slot range."""
        return [
            record
            for number, record in sorted(self._slots.items())
            if not self.collection.in_range(number)
        ]

    def view(self, name: str) -> list[SlotRecord]:
        limit = self.collection.view_limit(name)
        self._ensure_loaded()
        return [
            record
            for number, record in sorted(self._slots.items())
            if 1 <= number <= limit
        ]

    def load(self) -> list[SlotRecord]:
        """Replace in-memory state with the store's ordered records."""
        try:
            records = self._store.select(self.scope)
        except StoreError:
            logger.error(
                "slots.load.failed",
                collection=self.scope.collection,
                region_id=self.scope.region_id,
            )
            raise
        self._slots = {record.slot_number: record for record in records}
        self._loaded = True
        return sorted(records, key=lambda record: record.slot_number)

    def save(self, slot_number: int, payload: Mapping[str, Any]) -> SlotRecord:
        """Create or update the record at ``slot_number``."""
        self.collection.check_slot_number(slot_number)
        cleaned = self.collection.clean_payload(payload)
        missing = self.collection.missing_fields(cleaned)
        if missing:
            raise ValidationError(missing)

        is_featured = self.collection.is_featured(slot_number)
        try:
            if self.collection.save_by_upsert:
                self._store.upsert(
                    self.scope, slot_number, cleaned, is_featured=is_featured
                )
            else:
                existing = self._store.find(self.scope, slot_number)
                if existing is not None:
                    self._store.update(
                        existing.id, payload=cleaned, is_featured=is_featured
                    )
                else:
                    self._store.insert(
                        self.scope, slot_number, cleaned, is_featured=is_featured
                    )
        except StoreError:
            logger.error("slots.save.failed", **self._log_context(slot_number))
            raise

        self.load()
        logger.info("slots.save.succeeded", **self._log_context(slot_number))
        return self._slots[slot_number]

    def delete(self, slot_number: int) -> SlotRecord:
        """Remove the record at ``slot_number``; the position becomes empty.

        Records stranded outside the slot range (see :meth:`anomalies`) can be
        deleted through their persisted number as well.
        """
        self._ensure_loaded()
        stranded = {record.slot_number for record in self.anomalies()}
        if slot_number not in stranded:
            self.collection.check_slot_number(slot_number)
        record = self._slots.get(slot_number)
        if record is None:
            raise SlotNotFoundError(f"{self.collection.name} slot {slot_number} is empty")
        try:
            self._store.delete(self.scope, [slot_number])
        except StoreError:
            logger.error("slots.delete.failed", **self._log_context(slot_number))
            raise
        self._slots.pop(slot_number, None)
        logger.info("slots.delete.succeeded", **self._log_context(slot_number))
        return record

    def move_adjacent(
        self, slot_number: int, direction: MoveDirection | str
    ) -> list[SlotRecord]:
        """Move a slot one position up or down, swapping with any neighbour."""
        direction = MoveDirection(direction)
        self.collection.check_slot_number(slot_number)
        target_number = slot_number + direction.offset
        if not self.collection.in_range(target_number):
            raise InvalidSlotError(
                f"Cannot move {self.collection.name} slot {slot_number} {direction.value}"
            )
        self._ensure_loaded()
        source = self._slots.get(slot_number)
        if source is None:
            raise SlotNotFoundError("Cannot move an empty slot")
        target = self._slots.get(target_number)

        def _apply(store: SlotStore) -> None:
            if target is None:
                self._renumber(store, source, target_number)
                return
            store.update(source.id, slot_number=self._sentinel)
            self._renumber(store, target, slot_number)
            self._renumber(store, source, target_number)

        self._run_sequence(
            "move",
            _apply,
            slot_number=slot_number,
            target_number=target_number,
            swapped=target is not None,
        )
        return self.load()

    def swap(self, slot_a: int, slot_b: int) -> list[SlotRecord]:
        """Exchange two arbitrary positions by recreating their rows."""
        self.collection.check_slot_number(slot_a)
        self.collection.check_slot_number(slot_b)
        if slot_a == slot_b:
            raise InvalidSlotError("Cannot swap a slot with itself")

        try:
            record_a = self._store.find(self.scope, slot_a)
            record_b = self._store.find(self.scope, slot_b)
        except StoreError:
            logger.error("slots.swap.failed", **self._log_context(slot_a), other=slot_b)
            raise
        if record_a is None and record_b is None:
            raise SlotNotFoundError(
                f"{self.collection.name} slots {slot_a} and {slot_b} are both empty"
            )

        def _apply(store: SlotStore) -> None:
            present = [
                record.slot_number for record in (record_a, record_b) if record is not None
            ]
            store.delete(self.scope, present)
            for record, new_number in ((record_a, slot_b), (record_b, slot_a)):
                if record is None:
                    continue
                store.insert(
                    self.scope,
                    new_number,
                    dict(record.payload),
                    is_featured=self.collection.is_featured(new_number),
                )

        self._run_sequence("swap", _apply, slot_number=slot_a, target_number=slot_b)
        return self.load()

    def restore(self, record_id: str, slot_number: int) -> list[SlotRecord]:
        """Put a record stranded outside the slot range back on an empty slot."""
        self.collection.check_slot_number(slot_number)
        self.load()
        record = next(
            (record for record in self.anomalies() if record.id == record_id), None
        )
        if record is None:
            raise SlotNotFoundError(
                f"No {self.collection.name} record '{record_id}' outside the slot range"
            )
        if slot_number in self._slots:
            raise InvalidSlotError(
                f"Cannot restore into occupied {self.collection.name} slot {slot_number}"
            )
        context = self._log_context(slot_number)
        context.update(record_id=record_id, stranded_at=record.slot_number)
        try:
            self._renumber(self._store, record, slot_number)
        except StoreError:
            logger.error("slots.restore.failed", **context)
            raise
        logger.info("slots.restore.succeeded", **context)
        return self.load()

    def _run_sequence(
        self,
        action: str,
        apply: Callable[[SlotStore], None],
        *,
        slot_number: int,
        target_number: int,
        **extra: Any,
    ) -> None:
        context = self._log_context(slot_number)
        context.update(target=target_number, **extra)
        transaction = self._store.atomic() if self._atomic_moves else nullcontext(self._store)
        try:
            with transaction as store:
                apply(store)
        except StoreError as exc:
            logger.error(f"slots.{action}.failed", error=str(exc), **context)
            self.load()
            anomalies = self.anomalies()
            if anomalies:
                raise InconsistentStateError(
                    f"{action} of {self.collection.name} slot {slot_number} "
                    "stopped partway; reloaded scope has records outside the slot range",
                    anomalies,
                ) from exc
            raise
        logger.info(f"slots.{action}.succeeded", **context)

    def _renumber(self, store: SlotStore, record: SlotRecord, slot_number: int) -> None:
        store.update(
            record.id,
            slot_number=slot_number,
            is_featured=self.collection.is_featured(slot_number),
        )

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def _log_context(self, slot_number: int) -> dict[str, Any]:
        return {
            "collection": self.scope.collection,
            "region_id": self.scope.region_id,
            "slot_number": slot_number,
        }


__all__ = ["DEFAULT_SENTINEL", "SlotRegistry"]

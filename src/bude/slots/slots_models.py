"""Slot domain dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class MoveDirection(str, Enum):
    UP = "up"
    DOWN = "down"

    @property
    def offset(self) -> int:
        return -1 if self is MoveDirection.UP else 1


@dataclass(frozen=True, slots=True)
class SlotScope:
    """The (collection, region) pair within which slot numbers are unique."""

    collection: str
    region_id: str | None = None


@dataclass(slots=True)
class SlotRecord:
    id: str
    collection: str
    slot_number: int
    region_id: str | None = None
    is_featured: bool = False
    payload: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def scope(self) -> SlotScope:
        return SlotScope(collection=self.collection, region_id=self.region_id)

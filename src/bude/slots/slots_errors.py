"""Domain-specific exceptions for slot administration."""

from __future__ import annotations

from typing import Iterable, Sequence

from .slots_models import SlotRecord


class SlotError(Exception):
    """Base class for slot-related errors."""


class ValidationError(SlotError):
    """Raised when required payload fields are missing."""

    def __init__(self, missing_fields: Iterable[str]) -> None:
        self.missing_fields = tuple(missing_fields)
        super().__init__(
            "Missing required fields: " + ", ".join(self.missing_fields)
        )


class InvalidSlotError(SlotError):
    """Raised when a slot number, move or scope is not acceptable."""


class SlotNotFoundError(SlotError):
    """Raised when an operation addresses an empty slot position."""


class StoreError(SlotError):
    """Raised when the backing store rejects or fails a request."""


class InconsistentStateError(StoreError):
    """Raised when a partially applied move left rows outside the slot range."""

    def __init__(self, message: str, anomalies: Sequence[SlotRecord]) -> None:
        self.anomalies = list(anomalies)
        super().__init__(message)

"""Pydantic schemas for the slot admin API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from .slots_models import MoveDirection


class SlotRecordPayload(BaseModel):
    id: str
    slot_number: int
    region_id: str | None
    is_featured: bool
    fields: dict[str, Any]
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SlotPositionPayload(BaseModel):
    slot_number: int
    occupied: bool
    record: SlotRecordPayload | None = None


class SlotScopeResponse(BaseModel):
    collection: str
    region_id: str | None
    capacity: int
    positions: list[SlotPositionPayload]
    anomalies: list[SlotRecordPayload] = Field(default_factory=list)


class SlotViewResponse(BaseModel):
    collection: str
    region_id: str | None
    view: str
    slots: list[SlotRecordPayload]


class SlotSaveRequest(BaseModel):
    fields: dict[str, Any] = Field(default_factory=dict)


class SlotMoveRequest(BaseModel):
    direction: MoveDirection


class SlotSwapRequest(BaseModel):
    slot_a: int = Field(..., ge=1)
    slot_b: int = Field(..., ge=1)


class SlotRestoreRequest(BaseModel):
    record_id: str = Field(..., min_length=1)
    slot_number: int = Field(..., ge=1)


class MediaUploadResponse(BaseModel):
    url: str


class ScrapeRequest(BaseModel):
    url: str = Field(..., min_length=1)


class ScrapeResponse(BaseModel):
    url: str
    fields: dict[str, str]
    fields_found: list[str]


class AutofillEntry(BaseModel):
    slot_number: int
    title: str
    organization: str


class AutofillResponse(BaseModel):
    filled: list[AutofillEntry]
    skipped: list[str]
    failed_sources: list[str]
    scope: SlotScopeResponse

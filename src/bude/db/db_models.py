"""SQLAlchemy ORM models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base declarative class."""


class SlotRecordModel(Base):
    """One occupied slot position of a collection within a region."""

    __tablename__ = "slot_record"
    __table_args__ = (
        UniqueConstraint(
            "collection", "region_id", "slot_number", name="uq_slot_record_scope"
        ),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    collection: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    # empty string for collections without a region and for universal rows
    region_id: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    slot_number: Mapped[int] = mapped_column(Integer, nullable=False)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    payload_json: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

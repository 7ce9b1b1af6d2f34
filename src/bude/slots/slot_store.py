"""Row store for slot records backed by SQLAlchemy."""

from __future__ import annotations

import copy
import json
import uuid
from collections.abc import Callable, Iterable, Iterator
from contextlib import AbstractContextManager, contextmanager
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy import delete, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..db.db_models import SlotRecordModel
from .slots_errors import StoreError
from .slots_models import SlotRecord, SlotScope


class SlotStore(Protocol):
    """Row-oriented persistence operations used by the slot registry."""

    def select(self, scope: SlotScope) -> list[SlotRecord]:
        """Return all records of ``scope`` ordered by slot number."""

    def find(self, scope: SlotScope, slot_number: int) -> SlotRecord | None:
        """Return the record stored at ``slot_number`` if any."""

    def insert(
        self,
        scope: SlotScope,
        slot_number: int,
        payload: dict[str, Any],
        *,
        is_featured: bool = False,
    ) -> SlotRecord:
        """Persist a new record and return it with its assigned id."""

    def update(
        self,
        record_id: str,
        *,
        slot_number: int | None = None,
        is_featured: bool | None = None,
        payload: dict[str, Any] | None = None,
    ) -> None:
        """Apply a partial update to the record addressed by ``record_id``."""

    def delete(self, scope: SlotScope, slot_numbers: Iterable[int]) -> int:
        """Remove records at ``slot_numbers`` and return how many were removed."""

    def upsert(
        self,
        scope: SlotScope,
        slot_number: int,
        payload: dict[str, Any],
        *,
        is_featured: bool = False,
    ) -> SlotRecord:
        """Insert or replace the record keyed by scope and slot number."""

    def atomic(self) -> AbstractContextManager["SlotStore"]:
        """Return a context yielding a store bound to one transaction."""


class SqlAlchemySlotStore:
    """Slot rows stored in the ``slot_record`` table.

    Writes are issued as individual statements in call order, so callers that
    juggle slot numbers under the unique constraint control the sequence.
    Outside of :meth:`atomic` every call commits on its own.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        session: Session | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._session = session

    @contextmanager
    def atomic(self) -> Iterator["SqlAlchemySlotStore"]:
        if self._session is not None:
            yield self
            return
        try:
            with self._session_factory() as session, session.begin():
                bound = copy.copy(self)
                bound._session = session
                yield bound
        except SQLAlchemyError as exc:
            raise StoreError(f"Slot transaction failed: {exc}") from exc

    def select(self, scope: SlotScope) -> list[SlotRecord]:
        with self._session_scope() as session:
            rows = (
                self._scoped_query(session, scope)
                .order_by(SlotRecordModel.slot_number)
                .all()
            )
            return [self._to_domain(row) for row in rows]

    def find(self, scope: SlotScope, slot_number: int) -> SlotRecord | None:
        with self._session_scope() as session:
            row = (
                self._scoped_query(session, scope)
                .filter(SlotRecordModel.slot_number == slot_number)
                .one_or_none()
            )
            return self._to_domain(row) if row is not None else None

    def insert(
        self,
        scope: SlotScope,
        slot_number: int,
        payload: dict[str, Any],
        *,
        is_featured: bool = False,
    ) -> SlotRecord:
        now = datetime.utcnow()
        with self._session_scope() as session:
            row = SlotRecordModel(
                id=uuid.uuid4().hex,
                collection=scope.collection,
                region_id=_region_key(scope),
                slot_number=slot_number,
                is_featured=is_featured,
                payload_json=json.dumps(payload),
                created_at=now,
                updated_at=now,
            )
            session.add(row)
            session.flush()
            return self._to_domain(row)

    def update(
        self,
        record_id: str,
        *,
        slot_number: int | None = None,
        is_featured: bool | None = None,
        payload: dict[str, Any] | None = None,
    ) -> None:
        values: dict[str, Any] = {"updated_at": datetime.utcnow()}
        if slot_number is not None:
            values["slot_number"] = slot_number
        if is_featured is not None:
            values["is_featured"] = is_featured
        if payload is not None:
            values["payload_json"] = json.dumps(payload)
        with self._session_scope() as session:
            result = session.execute(
                update(SlotRecordModel)
                .where(SlotRecordModel.id == record_id)
                .values(**values)
            )
            if result.rowcount == 0:
                raise StoreError(f"Slot record '{record_id}' not found")

    def delete(self, scope: SlotScope, slot_numbers: Iterable[int]) -> int:
        numbers = list(slot_numbers)
        if not numbers:
            return 0
        with self._session_scope() as session:
            result = session.execute(
                delete(SlotRecordModel).where(
                    SlotRecordModel.collection == scope.collection,
                    SlotRecordModel.region_id == _region_key(scope),
                    SlotRecordModel.slot_number.in_(numbers),
                )
            )
            return result.rowcount

    def upsert(
        self,
        scope: SlotScope,
        slot_number: int,
        payload: dict[str, Any],
        *,
        is_featured: bool = False,
    ) -> SlotRecord:
        now = datetime.utcnow()
        with self._session_scope() as session:
            row = (
                self._scoped_query(session, scope)
                .filter(SlotRecordModel.slot_number == slot_number)
                .one_or_none()
            )
            if row is None:
                row = SlotRecordModel(
                    id=uuid.uuid4().hex,
                    collection=scope.collection,
                    region_id=_region_key(scope),
                    slot_number=slot_number,
                    created_at=now,
                )
                session.add(row)
            row.is_featured = is_featured
            row.payload_json = json.dumps(payload)
            row.updated_at = now
            session.flush()
            return self._to_domain(row)

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        try:
            if self._session is not None:
                yield self._session
                return
            with self._session_factory() as session:
                yield session
                session.commit()
        except SQLAlchemyError as exc:
            raise StoreError(f"Slot store request failed: {exc}") from exc

    @staticmethod
    def _scoped_query(session: Session, scope: SlotScope) -> Query:
        return session.query(SlotRecordModel).filter(
            SlotRecordModel.collection == scope.collection,
            SlotRecordModel.region_id == _region_key(scope),
        )

    @staticmethod
    def _to_domain(model: SlotRecordModel) -> SlotRecord:
        payload: dict[str, Any] = {}
        try:
            if model.payload_json:
                payload = json.loads(model.payload_json)
        except json.JSONDecodeError:
            payload = {}
        return SlotRecord(
            id=model.id,
            collection=model.collection,
            slot_number=model.slot_number,
            region_id=model.region_id or None,
            is_featured=bool(model.is_featured),
            payload=payload,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


def _region_key(scope: SlotScope) -> str:
    return scope.region_id or ""


__all__ = ["SlotStore", "SqlAlchemySlotStore"]

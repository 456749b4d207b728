"""Durable set of already-alerted signals."""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from typing import Protocol

import structlog
from sqlalchemy import Engine, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from junkscan.db import session_scope
from junkscan.errors import StoreError
from junkscan.models import Base, SignalRecord
from junkscan.signals import Signal

logger = structlog.get_logger()


class SignalStore(Protocol):
    def exists(self, signal_id: str) -> bool: ...

    def put(self, signal: Signal) -> None: ...


def _to_signal(row: SignalRecord) -> Signal:
    return Signal(
        id=row.id,
        tag=row.tag,
        source=row.source,
        title=row.title,
        description=row.description,
        link=row.link,
        timestamp=row.timestamp,
        query=row.query,
    )


class SqlSignalStore:
    """Signal store backed by the `signals` table.

    `exists` and `put` are separate transactions; two writers racing on the
    same id both succeed and the last write wins.
    """

    def __init__(self, session_factory: sessionmaker[Session], *, engine: Engine | None = None) -> None:
        self._session_factory = session_factory
        self._engine = engine
        self._schema_ready = engine is None

    @contextmanager
    def _session(self) -> Generator[Session, None, None]:
        # Tables are created on first use so a backend that is down at startup
        # only fails the calls made while it is down.
        if not self._schema_ready:
            Base.metadata.create_all(self._engine)
            self._schema_ready = True
        with session_scope(self._session_factory) as session:
            yield session

    def exists(self, signal_id: str) -> bool:
        try:
            with self._session() as session:
                return session.get(SignalRecord, signal_id) is not None
        except SQLAlchemyError as exc:
            raise StoreError(f"Existence check failed for {signal_id!r}: {exc}") from exc

    def put(self, signal: Signal) -> None:
        try:
            with self._session() as session:
                session.merge(SignalRecord(**signal.to_dict()))
        except SQLAlchemyError as exc:
            raise StoreError(f"Write failed for {signal.id!r}: {exc}") from exc

    def get(self, signal_id: str) -> Signal | None:
        try:
            with self._session() as session:
                row = session.get(SignalRecord, signal_id)
                return _to_signal(row) if row is not None else None
        except SQLAlchemyError as exc:
            raise StoreError(f"Read failed for {signal_id!r}: {exc}") from exc

    def recent(self, limit: int = 20) -> list[Signal]:
        """Most recently stored signals, newest first."""
        try:
            with self._session() as session:
                rows = session.scalars(
                    select(SignalRecord).order_by(SignalRecord.timestamp.desc()).limit(limit)
                ).all()
                return [_to_signal(row) for row in rows]
        except SQLAlchemyError as exc:
            raise StoreError(f"Listing signals failed: {exc}") from exc

    def count(self) -> int:
        try:
            with self._session() as session:
                return int(session.scalar(select(func.count()).select_from(SignalRecord)) or 0)
        except SQLAlchemyError as exc:
            raise StoreError(f"Counting signals failed: {exc}") from exc


class UnavailableSignalStore:
    """Stand-in used when the store could not be configured at startup."""

    def __init__(self, reason: str) -> None:
        self.reason = reason

    def exists(self, signal_id: str) -> bool:
        raise StoreError(f"Signal store unavailable: {self.reason}")

    def put(self, signal: Signal) -> None:
        raise StoreError(f"Signal store unavailable: {self.reason}")

    def recent(self, limit: int = 20) -> list[Signal]:
        raise StoreError(f"Signal store unavailable: {self.reason}")

    def count(self) -> int:
        raise StoreError(f"Signal store unavailable: {self.reason}")

"""Pytest fixtures for scanner tests."""

from collections.abc import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from junkscan.config import ScanConfig
from junkscan.errors import FetchError, NotifyError
from junkscan.feed.client import RawRecord
from junkscan.models import Base
from junkscan.signals import Signal
from junkscan.storage.signal_store import SqlSignalStore

DAY = 86400


@pytest.fixture
def engine():
    """In-memory SQLite engine shared across connections."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker[Session]:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(session_factory) -> SqlSignalStore:
    return SqlSignalStore(session_factory)


@pytest.fixture
def scan_config() -> ScanConfig:
    return ScanConfig(
        min_tvl=5000,
        max_tvl=1_500_000,
        max_listing_age_seconds=30 * DAY,
        scan_interval_ms=5 * 60 * 1000,
    )


@pytest.fixture
def now() -> float:
    """Fixed wall-clock time for filter and signal tests."""
    return 1_700_000_000.0


@pytest.fixture
def make_record(now):
    """Factory for raw records; defaults pass the default scan config."""

    def _make(**overrides) -> RawRecord:
        fields = {
            "name": "Foo/Bar",
            "chain": "ETH",
            "tvl": 10000.0,
            "listed_at": now - DAY,
            "url": "https://x",
        }
        fields.update(overrides)
        return RawRecord(**fields)

    return _make


class FakeFeed:
    """Feed returning canned records, or raising FetchError when `error` is set."""

    def __init__(self, records: list[RawRecord] | None = None, error: str | None = None) -> None:
        self.records = list(records or [])
        self.error = error
        self.calls = 0

    def fetch_records(self) -> list[RawRecord]:
        self.calls += 1
        if self.error:
            raise FetchError(self.error)
        return list(self.records)


class FakeNotifier:
    """Records every signal it is asked to deliver."""

    def __init__(self, fail_ids: set[str] | None = None) -> None:
        self.sent: list[Signal] = []
        self.attempts: list[str] = []
        self.fail_ids = fail_ids or set()

    def notify(self, signal: Signal) -> None:
        self.attempts.append(signal.id)
        if signal.id in self.fail_ids:
            raise NotifyError(f"simulated failure for {signal.id}")
        self.sent.append(signal)


@pytest.fixture
def fake_notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def make_feed():
    return FakeFeed


@pytest.fixture
def make_notifier():
    return FakeNotifier

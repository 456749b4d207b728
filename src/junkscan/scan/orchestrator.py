"""One scan cycle: fetch, filter, check-seen, persist, notify."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

import structlog

from junkscan.config import ScanConfig
from junkscan.errors import FetchError, NotifyError, StoreError
from junkscan.feed.client import RawRecord
from junkscan.feed.filter import filter_candidates
from junkscan.outbound.alerts import Notifier
from junkscan.signals import build_signal
from junkscan.storage.signal_store import SignalStore

logger = structlog.get_logger()


class Feed(Protocol):
    def fetch_records(self) -> list[RawRecord]: ...


class ScanState(Enum):
    IDLE = "idle"
    SCANNING = "scanning"


class CandidateStatus(Enum):
    ALERTED = "alerted"
    ALREADY_SEEN = "already_seen"
    STORE_FAILED = "store_failed"
    NOTIFY_FAILED = "notify_failed"


@dataclass(frozen=True)
class CandidateOutcome:
    signal_id: str
    title: str
    status: CandidateStatus
    error: str | None = None


@dataclass
class CycleReport:
    started_at: float
    fetched: int = 0
    candidates: int = 0
    outcomes: list[CandidateOutcome] = field(default_factory=list)
    error: str | None = None

    def _count(self, *statuses: CandidateStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status in statuses)

    @property
    def alerted(self) -> int:
        return self._count(CandidateStatus.ALERTED)

    @property
    def skipped(self) -> int:
        return self._count(CandidateStatus.ALREADY_SEEN)

    @property
    def failed(self) -> int:
        return self._count(CandidateStatus.STORE_FAILED, CandidateStatus.NOTIFY_FAILED)

    @property
    def new_signals(self) -> int:
        """Signals written to the store, whether or not the alert arrived."""
        return self._count(CandidateStatus.ALERTED, CandidateStatus.NOTIFY_FAILED)

    def summary(self) -> dict[str, int | str | None]:
        return {
            "fetched": self.fetched,
            "candidates": self.candidates,
            "alerted": self.alerted,
            "skipped": self.skipped,
            "failed": self.failed,
            "error": self.error,
        }


class ScanOrchestrator:
    """Runs scan cycles against injected feed, store and notifier."""

    def __init__(
        self,
        feed: Feed,
        store: SignalStore,
        notifier: Notifier,
        config: ScanConfig,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._feed = feed
        self._store = store
        self._notifier = notifier
        self._config = config
        self._clock = clock
        self.state = ScanState.IDLE

    def run_cycle(self) -> CycleReport:
        """Run one full cycle. Never raises; failures land in the report."""
        self.state = ScanState.SCANNING
        report = CycleReport(started_at=self._clock())
        logger.info("Scanning feed")
        try:
            self._scan(report)
        except Exception as exc:
            logger.exception("Scan cycle failed")
            report.error = str(exc)
        finally:
            self.state = ScanState.IDLE
        logger.info("Scan complete", **report.summary())
        return report

    def _scan(self, report: CycleReport) -> None:
        try:
            records = self._feed.fetch_records()
        except FetchError as exc:
            logger.error("Feed fetch failed", error=str(exc))
            report.error = str(exc)
            return
        report.fetched = len(records)

        candidates = filter_candidates(records, self._config, self._clock())
        report.candidates = len(candidates)
        logger.info("Candidates in range", candidates=len(candidates))

        for record in candidates:
            report.outcomes.append(self.process_record(record))

    def process_record(self, record: RawRecord) -> CandidateOutcome:
        """Check-seen, persist and notify for a single candidate."""
        signal = build_signal(record, now_ms=int(self._clock() * 1000))

        try:
            if self._store.exists(signal.id):
                return CandidateOutcome(signal.id, signal.title, CandidateStatus.ALREADY_SEEN)
            logger.info("New signal", signal_id=signal.id, title=signal.title)
            self._store.put(signal)
        except StoreError as exc:
            logger.error("Signal store failed", signal_id=signal.id, error=str(exc))
            return CandidateOutcome(signal.id, signal.title, CandidateStatus.STORE_FAILED, str(exc))

        try:
            self._notifier.notify(signal)
        except NotifyError as exc:
            logger.error("Alert delivery failed", signal_id=signal.id, error=str(exc))
            return CandidateOutcome(signal.id, signal.title, CandidateStatus.NOTIFY_FAILED, str(exc))
        except Exception as exc:
            logger.exception("Alert delivery raised", signal_id=signal.id)
            return CandidateOutcome(signal.id, signal.title, CandidateStatus.NOTIFY_FAILED, str(exc))

        return CandidateOutcome(signal.id, signal.title, CandidateStatus.ALERTED)

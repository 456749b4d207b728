"""Fixed-rate interval scheduler with a non-overlap guard."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

import structlog

logger = structlog.get_logger()


def _spawn_thread(target: Callable[[], None]) -> None:
    threading.Thread(target=target, name="junkscan-cycle", daemon=True).start()


class IntervalTicker:
    """Fires `job` once immediately, then every `interval_seconds`.

    Fires are dispatched off the timing loop, so a slow job never delays the
    schedule. A fire that lands while the previous job is still running is
    skipped rather than overlapped. Missed fires are not replayed.
    """

    def __init__(
        self,
        job: Callable[[], object],
        interval_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        spawn: Callable[[Callable[[], None]], None] = _spawn_thread,
        wait: Callable[[float], bool] | None = None,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._job = job
        self._interval = interval_seconds
        self._clock = clock
        self._spawn = spawn
        self._guard = threading.Lock()
        self._stop = threading.Event()
        # Returns True when the loop should end; defaults to the stop event.
        self._wait = wait or self._stop.wait
        self._thread: threading.Thread | None = None
        self.fired = 0
        self.skipped = 0
        self.next_fire: float | None = None

    @property
    def busy(self) -> bool:
        return self._guard.locked()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def fire(self) -> bool:
        """Dispatch one job run unless one is already in flight."""
        if not self._guard.acquire(blocking=False):
            self.skipped += 1
            logger.warning("Previous scan still running, skipping tick", skipped=self.skipped)
            return False
        self.fired += 1
        try:
            self._spawn(self._run_job)
        except Exception:
            self._guard.release()
            raise
        return True

    def _run_job(self) -> None:
        try:
            self._job()
        except Exception:
            logger.exception("Scheduled job raised")
        finally:
            self._guard.release()

    def run_forever(self) -> None:
        """Drive the schedule on the calling thread until `stop()` is called."""
        logger.info("Ticker started", interval_seconds=self._interval)
        next_fire = self._clock()
        while not self._stop.is_set():
            self.fire()
            next_fire += self._interval
            now = self._clock()
            while next_fire <= now:
                next_fire += self._interval
            self.next_fire = next_fire
            if self._wait(next_fire - now) or self._stop.is_set():
                break
        logger.info("Ticker stopped", fired=self.fired, skipped=self.skipped)

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self.run_forever, name="junkscan-ticker", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)

    def wait_idle(self, timeout: float = -1) -> bool:
        """Block until no job is running. Returns False on timeout."""
        if not self._guard.acquire(timeout=timeout):
            return False
        self._guard.release()
        return True

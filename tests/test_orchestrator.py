"""Tests for the scan cycle."""

from unittest.mock import MagicMock

import pytest

from junkscan.errors import StoreError
from junkscan.scan.orchestrator import CandidateStatus, ScanOrchestrator, ScanState

DAY = 86400


@pytest.fixture
def make_orchestrator(scan_config, now):
    """Build an orchestrator with a frozen clock."""

    def _make(feed, store, notifier) -> ScanOrchestrator:
        return ScanOrchestrator(feed, store, notifier, scan_config, clock=lambda: now)

    return _make


class TestScanCycle:
    """End-to-end cycles against the SQL store."""

    def test_new_record_is_stored_and_alerted(
        self, store, fake_notifier, make_feed, make_record, make_orchestrator, now
    ):
        feed = make_feed([make_record()])
        report = make_orchestrator(feed, store, fake_notifier).run_cycle()

        assert report.fetched == 1
        assert report.candidates == 1
        assert report.alerted == 1
        assert store.exists("Foo-Bar")
        stored = store.get("Foo-Bar")
        assert stored.title == "Foo/Bar"
        assert stored.timestamp == int(now * 1000)

        assert len(fake_notifier.sent) == 1
        sent = fake_notifier.sent[0]
        assert sent.title == "Foo/Bar"
        assert "$10.0K" in sent.description

    def test_record_below_min_tvl_touches_nothing(self, fake_notifier, make_feed, make_record, make_orchestrator):
        store = MagicMock()
        feed = make_feed([make_record(tvl=3000.0)])
        report = make_orchestrator(feed, store, fake_notifier).run_cycle()

        assert report.candidates == 0
        store.exists.assert_not_called()
        store.put.assert_not_called()
        assert fake_notifier.attempts == []

    def test_fetch_failure_ends_cycle_cleanly(self, fake_notifier, make_feed, make_record, make_orchestrator):
        store = MagicMock()
        feed = make_feed(error="connection reset")
        orchestrator = make_orchestrator(feed, store, fake_notifier)

        report = orchestrator.run_cycle()

        assert report.error == "connection reset"
        assert report.outcomes == []
        assert orchestrator.state is ScanState.IDLE
        store.exists.assert_not_called()
        assert fake_notifier.attempts == []

        # The next cycle still runs normally once the feed recovers.
        feed.error = None
        feed.records = [make_record()]
        store.exists.return_value = False
        assert orchestrator.run_cycle().alerted == 1

    def test_notify_failure_keeps_store_write_and_continues(
        self, store, make_feed, make_notifier, make_record, make_orchestrator
    ):
        notifier = make_notifier(fail_ids={"First"})
        feed = make_feed([make_record(name="First"), make_record(name="Second")])

        report = make_orchestrator(feed, store, notifier).run_cycle()

        assert [o.status for o in report.outcomes] == [CandidateStatus.NOTIFY_FAILED, CandidateStatus.ALERTED]
        assert report.new_signals == 2
        assert report.failed == 1
        assert store.exists("First")
        assert store.exists("Second")
        assert [s.id for s in notifier.sent] == ["Second"]

    def test_unexpected_notifier_error_is_scoped_to_one_candidate(
        self, store, make_feed, make_record, make_orchestrator
    ):
        notifier = MagicMock()
        notifier.notify.side_effect = [ValueError("Invalid non-printable ASCII character in URL"), None]
        feed = make_feed([make_record(name="First"), make_record(name="Second")])

        report = make_orchestrator(feed, store, notifier).run_cycle()

        assert report.error is None
        assert [o.status for o in report.outcomes] == [CandidateStatus.NOTIFY_FAILED, CandidateStatus.ALERTED]
        assert "non-printable" in report.outcomes[0].error
        assert store.exists("First")
        assert store.exists("Second")
        assert notifier.notify.call_count == 2

    def test_store_failure_is_scoped_to_one_candidate(
        self, fake_notifier, make_feed, make_record, make_orchestrator
    ):
        store = MagicMock()
        store.exists.side_effect = lambda signal_id: False
        store.put.side_effect = [StoreError("write rejected"), None]
        feed = make_feed([make_record(name="Bad"), make_record(name="Good")])

        report = make_orchestrator(feed, store, fake_notifier).run_cycle()

        assert report.outcomes[0].status is CandidateStatus.STORE_FAILED
        assert report.outcomes[0].error == "write rejected"
        assert report.outcomes[1].status is CandidateStatus.ALERTED
        assert [s.id for s in fake_notifier.sent] == ["Good"]

    def test_unexpected_error_does_not_escape(self, store, fake_notifier, make_orchestrator):
        feed = MagicMock()
        feed.fetch_records.side_effect = KeyError("boom")
        orchestrator = make_orchestrator(feed, store, fake_notifier)

        report = orchestrator.run_cycle()

        assert report.error is not None
        assert orchestrator.state is ScanState.IDLE


class TestIdempotency:
    """Repeated cycles must not re-alert."""

    def test_second_cycle_with_same_feed_is_a_noop(
        self, store, fake_notifier, make_feed, make_record, make_orchestrator, now
    ):
        feed = make_feed([make_record(), make_record(name="Other", listed_at=now - 2 * DAY)])
        orchestrator = make_orchestrator(feed, store, fake_notifier)

        first = orchestrator.run_cycle()
        second = orchestrator.run_cycle()

        assert first.alerted == 2
        assert second.alerted == 0
        assert second.skipped == 2
        assert len(fake_notifier.sent) == 2
        assert store.count() == 2

    def test_repeated_record_alerts_at_most_once(self, fake_notifier, make_feed, make_record, make_orchestrator):
        seen: set[str] = set()
        store = MagicMock()
        store.exists.side_effect = lambda signal_id: signal_id in seen
        store.put.side_effect = lambda signal: seen.add(signal.id)
        feed = make_feed([make_record(), make_record()])
        orchestrator = make_orchestrator(feed, store, fake_notifier)

        for _ in range(3):
            orchestrator.run_cycle()

        assert fake_notifier.attempts == ["Foo-Bar"]
        assert store.put.call_count == 1

    def test_sanitized_id_collision_is_treated_as_seen(
        self, store, fake_notifier, make_feed, make_record, make_orchestrator
    ):
        feed = make_feed([make_record(name="Foo/Bar")])
        orchestrator = make_orchestrator(feed, store, fake_notifier)
        orchestrator.run_cycle()

        feed.records = [make_record(name="Foo-Bar", chain="Base", tvl=20000.0)]
        report = orchestrator.run_cycle()

        assert report.outcomes[0].status is CandidateStatus.ALREADY_SEEN
        assert len(fake_notifier.sent) == 1
        assert store.get("Foo-Bar").title == "Foo/Bar"


@pytest.mark.parametrize("status", [CandidateStatus.ALERTED, CandidateStatus.ALREADY_SEEN])
def test_process_record_statuses(status, store, fake_notifier, make_feed, make_record, make_orchestrator):
    orchestrator = make_orchestrator(make_feed(), store, fake_notifier)
    if status is CandidateStatus.ALREADY_SEEN:
        orchestrator.process_record(make_record())

    assert orchestrator.process_record(make_record()).status is status

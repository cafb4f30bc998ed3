"""Tests for the processed event ledger."""

from datetime import datetime, timedelta, timezone

import pytest

from revcat_bridge.repositories.event_ledger import EventLedger


@pytest.fixture
def ledger():
    return EventLedger()


class TestEventLedger:
    """Test recording processed events."""

    def test_unknown_event_not_processed(self, ledger):
        assert not ledger.is_processed("evt-1")
        assert ledger.get("evt-1") is None

    def test_mark_processed(self, ledger):
        entry = ledger.mark_processed("evt-1", "RENEWAL", subscription_id=2)

        assert ledger.is_processed("evt-1")
        assert "evt-1" in ledger
        assert entry.event_type == "RENEWAL"
        assert entry.subscription_id == 2
        assert entry.processed_at is not None

    def test_first_entry_wins(self, ledger):
        first = ledger.mark_processed("evt-1", "RENEWAL", subscription_id=2)
        second = ledger.mark_processed("evt-1", "CANCELLATION", subscription_id=9)

        assert second is first
        assert ledger.get("evt-1").event_type == "RENEWAL"
        assert len(ledger) == 1

    def test_clear(self, ledger):
        ledger.mark_processed("evt-1", "RENEWAL")
        ledger.mark_processed("evt-2", "RENEWAL")
        assert ledger.count() == 2

        ledger.clear()
        assert ledger.count() == 0
        assert repr(ledger) == "EventLedger(events=0)"


class FakeClock:
    """Settable time source."""

    def __init__(self):
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class TestEventRetention:
    """Test expiry of processed event ids."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    def test_expired_id_is_forgotten(self, clock):
        ledger = EventLedger(retention=timedelta(days=7), clock=clock)
        ledger.mark_processed("evt-1", "RENEWAL")

        clock.advance(days=6)
        assert ledger.is_processed("evt-1")

        clock.advance(days=1)
        assert not ledger.is_processed("evt-1")
        assert ledger.count() == 0

    def test_expired_id_can_be_recorded_again(self, clock):
        ledger = EventLedger(retention=timedelta(hours=1), clock=clock)
        ledger.mark_processed("evt-1", "RENEWAL", subscription_id=2)

        clock.advance(hours=2)
        entry = ledger.mark_processed("evt-1", "CANCELLATION", subscription_id=2)

        assert entry.event_type == "CANCELLATION"
        assert entry.processed_at == clock.now

    def test_no_retention_keeps_ids(self, clock):
        ledger = EventLedger(clock=clock)
        ledger.mark_processed("evt-1", "RENEWAL")

        clock.advance(days=3650)
        assert ledger.is_processed("evt-1")

"""Tests for signals and the audit notice feed."""

import pytest

from lumina.audit import AuditLogger
from lumina.models.audit import AuditEventBuilder
from lumina.reactive import DerivedSignal, Signal, combine


class TestSignal:
    """Tests for the Signal primitive."""

    def test_set_publishes_in_subscription_order(self):
        """Test that subscribers see values in order they subscribed."""
        signal = Signal(0)
        seen = []
        signal.subscribe(lambda v: seen.append(("a", v)))
        signal.subscribe(lambda v: seen.append(("b", v)))

        signal.set(1)

        assert signal.value == 1
        assert seen == [("a", 1), ("b", 1)]

    def test_emit_current(self):
        """Test that emit_current delivers the current value right away."""
        signal = Signal("x")
        seen = []
        signal.subscribe(seen.append, emit_current=True)
        assert seen == ["x"]

    def test_unsubscribe(self):
        """Test that an unsubscribed callback stops receiving values."""
        signal = Signal(0)
        seen = []
        unsubscribe = signal.subscribe(seen.append)
        signal.set(1)
        unsubscribe()
        signal.set(2)
        assert seen == [1]
        assert signal.subscriber_count == 0

    def test_failing_subscriber_does_not_stop_others(self):
        """Test that one broken observer doesn't starve the rest."""
        signal = Signal(0)
        seen = []

        def broken(_value):
            raise RuntimeError("boom")

        signal.subscribe(broken)
        signal.subscribe(seen.append)
        signal.set(5)

        assert seen == [5]

    def test_clear(self):
        """Test that clear drops every subscriber."""
        signal = Signal(0)
        signal.subscribe(lambda v: None)
        signal.subscribe(lambda v: None)
        signal.clear()
        assert signal.subscriber_count == 0


class TestCombine:
    """Tests for derived signals."""

    def test_recomputes_on_any_source(self):
        """Test that the derived value follows every source."""
        a = Signal(1)
        b = Signal(2)
        total = combine([a, b], lambda x, y: x + y)
        assert total.value == 3

        a.set(10)
        assert total.value == 12
        b.set(5)
        assert total.value == 15

    def test_derived_publishes(self):
        """Test that derived signals notify their own subscribers."""
        source = Signal([1, 2])
        count = combine([source], len)
        seen = []
        count.subscribe(seen.append)

        source.set([1, 2, 3])

        assert seen == [3]

    def test_read_only(self):
        """Test that a derived signal can't be set directly."""
        derived = combine([Signal(1)], lambda v: v * 2)
        assert isinstance(derived, DerivedSignal)
        with pytest.raises(TypeError):
            derived.set(3)

    def test_detach(self):
        """Test that a detached signal stops following its sources."""
        source = Signal(1)
        derived = combine([source], lambda v: v * 2)
        derived.detach()
        source.set(4)
        assert derived.value == 2
        assert source.subscriber_count == 0


class TestAuditLogger:
    """Tests for the audit logger's notice feed."""

    def test_user_visible_events_become_notices(self):
        """Test that rollbacks reach the notice feed."""
        audit = AuditLogger()
        audit.log(AuditEventBuilder.persistence_failed("delete", "expense", "3", "boom"))

        assert len(audit.notices.value) == 1
        assert audit.latest_notice.message.startswith("Failed to delete expense")

    def test_internal_events_are_only_logged(self):
        """Test that routine events create no notices."""
        audit = AuditLogger()
        audit.log(AuditEventBuilder.store_loaded("expense", 3, "local"))
        assert audit.notices.value == []
        assert audit.latest_notice is None

    def test_notice_feed_is_bounded(self):
        """Test that old notices are dropped beyond max_notices."""
        audit = AuditLogger(max_notices=2)
        for i in range(3):
            audit.log(AuditEventBuilder.persistence_failed("add", "expense", str(i), "boom"))
        assert len(audit.notices.value) == 2

    def test_dismiss_notices(self):
        """Test clearing the feed."""
        audit = AuditLogger()
        audit.log(AuditEventBuilder.store_load_failed("bank", "offline"))
        audit.dismiss_notices()
        assert audit.notices.value == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

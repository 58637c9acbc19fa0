"""Tests for EventBus."""

import logging

from core.event_bus import EventBus
from core.events import LedgerChanged, LedgerEmptied
from core.models import BusinessVertical


CONCRETE = BusinessVertical.CONCRETE


def _emptied():
    return LedgerEmptied.create("doc", CONCRETE)


# =============================================================================
# SUBSCRIBE AND PUBLISH
# =============================================================================


class TestSubscribeAndPublish:

    def test_single_handler_receives_the_exact_event_object(self):
        bus = EventBus()
        received = []
        bus.subscribe("LedgerEmptied", received.append)

        event = _emptied()
        bus.publish(event)

        assert len(received) == 1
        assert received[0] is event

    def test_handlers_called_in_subscription_order(self):
        bus = EventBus()
        order = []
        bus.subscribe("LedgerEmptied", lambda e: order.append("first"))
        bus.subscribe("LedgerEmptied", lambda e: order.append("second"))

        bus.publish(_emptied())

        assert order == ["first", "second"]

    def test_dispatch_is_by_exact_class_name(self):
        bus = EventBus()
        received = []
        bus.subscribe("LedgerChanged", received.append)

        bus.publish(_emptied())

        assert received == []

    def test_publish_without_subscribers_is_noop(self):
        EventBus().publish(_emptied())

    def test_subscribe_returns_callback(self):
        bus = EventBus()
        handler = lambda e: None  # noqa: E731
        assert bus.subscribe("LedgerEmptied", handler) is handler


# =============================================================================
# UNSUBSCRIBE
# =============================================================================


class TestUnsubscribe:

    def test_unsubscribed_handler_not_called(self):
        bus = EventBus()
        received = []
        bus.subscribe("LedgerEmptied", received.append)
        assert bus.unsubscribe("LedgerEmptied", received.append) is True

        bus.publish(_emptied())

        assert received == []
        assert bus.subscriber_count("LedgerEmptied") == 0

    def test_unknown_handler_returns_false(self):
        assert EventBus().unsubscribe("LedgerEmptied", print) is False

    def test_handler_may_unsubscribe_itself_during_publish(self):
        bus = EventBus()
        calls = []

        def once(event):
            calls.append(event)
            bus.unsubscribe("LedgerEmptied", once)

        bus.subscribe("LedgerEmptied", once)
        bus.subscribe("LedgerEmptied", calls.append)

        bus.publish(_emptied())
        bus.publish(_emptied())

        assert len(calls) == 3


# =============================================================================
# ERROR ISOLATION
# =============================================================================


class TestHandlerErrors:

    def test_failing_handler_does_not_stop_others(self, caplog):
        bus = EventBus()
        received = []

        def broken(event):
            raise RuntimeError("renderer exploded")

        bus.subscribe("LedgerChanged", broken)
        bus.subscribe("LedgerChanged", received.append)

        event = LedgerChanged.create("doc", CONCRETE, "add", [], 0)
        with caplog.at_level(logging.ERROR, logger="core.event_bus"):
            bus.publish(event)

        assert received == [event]
        assert "broken" in caplog.text
        assert event.event_id in caplog.text

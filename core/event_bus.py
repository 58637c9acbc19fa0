"""
Event bus for ledger domain events.

Synchronous in-process pub/sub. Handlers execute immediately in the same
thread as the publisher. Handler errors are logged but never propagate:
the ledger mutation has already been applied.
"""

import logging
from typing import Callable, Dict, List

from core.events import LedgerDomainEvent

logger = logging.getLogger(__name__)


class EventBus:
    """
    In-process event bus for ledger domain events.

    Subscribe by event class name (string), publish by event instance.
    Handlers are called synchronously in subscription order. Components
    that live shorter than the bus unsubscribe on teardown.
    """

    def __init__(self):
        self._subscribers: Dict[str, List[Callable]] = {}

    def subscribe(self, event_type: str, callback: Callable) -> Callable:
        """
        Subscribe to events of a specific type.

        Args:
            event_type: Name of event class to subscribe to (e.g. 'LedgerChanged')
            callback: Function to call when event is published

        Returns:
            The callback, so it can be handed back to unsubscribe()
        """
        if event_type not in self._subscribers:
            self._subscribers[event_type] = []
        self._subscribers[event_type].append(callback)
        return callback

    def unsubscribe(self, event_type: str, callback: Callable) -> bool:
        """
        Remove a previously registered callback.

        Returns True if it was registered, False otherwise (not an error).
        """
        callbacks = self._subscribers.get(event_type)
        if not callbacks or callback not in callbacks:
            return False
        callbacks.remove(callback)
        if not callbacks:
            del self._subscribers[event_type]
        return True

    def subscriber_count(self, event_type: str) -> int:
        """Number of callbacks registered for an event type."""
        return len(self._subscribers.get(event_type, []))

    def publish(self, event: LedgerDomainEvent):
        """
        Publish an event to all subscribers of that type.

        Handlers are called synchronously in subscription order.
        Handler errors are logged but do not propagate.

        Args:
            event: LedgerDomainEvent instance to publish
        """
        event_type = event.__class__.__name__

        if event_type not in self._subscribers:
            return

        # Copy: a handler may unsubscribe itself while we iterate
        for callback in list(self._subscribers[event_type]):
            try:
                callback(event)
            except Exception:
                logger.exception(
                    "Handler %s failed for %s (event_id=%s)",
                    getattr(callback, "__name__", repr(callback)),
                    event_type,
                    event.event_id,
                )

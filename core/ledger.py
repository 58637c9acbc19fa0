"""
Ledger for one (document, business vertical) pair.

The document owns the entries; a ledger is the mutable view over the ones
belonging to its vertical. Entries of the other vertical are never touched.
Totals are recomputed from the entries on every read, never cached.

Every mutation publishes LedgerChanged on the event bus. A removal or
replacement that leaves the ledger empty also publishes LedgerEmptied so the
renderer can show its placeholder.
"""

import logging
from decimal import Decimal
from typing import Callable, Iterable

from core.event_bus import EventBus
from core.events import LedgerChanged, LedgerEmptied
from core.exceptions import ConflictError
from core.models import BusinessVertical, Document, ServiceEntry
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class Ledger:
    """
    Ordered service entries of one vertical on one document.

    Usage:
        ledger = Ledger(document, BusinessVertical.CONCRETE, event_bus)
        ledger.add(build_itemized("Driveway leveling", 120, "sqft", 4.50,
                                  vertical=BusinessVertical.CONCRETE))
        ledger.total()  # Decimal("540.0")
    """

    def __init__(
        self,
        document: Document,
        vertical: BusinessVertical,
        event_bus: EventBus | None = None,
    ):
        self.document = document
        self.vertical = BusinessVertical(vertical)
        self.event_bus = event_bus or EventBus()

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def entries(self) -> list[ServiceEntry]:
        """Current entries in display order (a copy)."""
        return self.document.entries_for(self.vertical)

    def get(self, entry_id: str) -> ServiceEntry | None:
        for entry in self.entries():
            if entry.id == entry_id:
                return entry
        return None

    def total(self) -> Decimal:
        """Sum of amount over all current entries."""
        return sum((e.amount for e in self.entries()), Decimal("0"))

    def is_empty(self) -> bool:
        return not self.entries()

    def __len__(self) -> int:
        return len(self.entries())

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add(self, entry: ServiceEntry) -> ServiceEntry:
        """
        Append an entry.

        Raises:
            ConflictError: Entry vertical differs from the ledger's vertical.
                The ledger is left unmodified.
        """
        self._check_vertical(entry)
        self.document.services.append(entry)
        self._changed("add")
        return entry

    def remove_by_id(self, entry_id: str) -> bool:
        """
        Remove the matching entry if present.

        Idempotent: an unknown id is a no-op, so duplicate clicks and late UI
        events are harmless.

        Returns:
            True if an entry was removed, False if none matched
        """
        services = self.document.services
        for index, entry in enumerate(services):
            if entry.id == entry_id and entry.business_vertical == self.vertical:
                del services[index]
                self._changed("remove")
                if self.is_empty():
                    self.event_bus.publish(
                        LedgerEmptied.create(self.document.id, self.vertical)
                    )
                return True
        return False

    def replace_all_of_vertical(self, entries: Iterable[ServiceEntry]) -> None:
        """
        Swap every entry of this vertical for a new sequence, all-or-nothing.

        Every new entry is checked before anything is removed. Entries of the
        other vertical keep their relative order and are never moved past one
        another; the new sequence is merged around them by creation time, so
        entries stashed and later restored return to their original slots.

        Raises:
            ConflictError: Any new entry belongs to another vertical.
                The ledger is left unmodified.
        """
        replacement = list(entries)
        for entry in replacement:
            self._check_vertical(entry)

        was_empty = self.is_empty()
        others = [s for s in self.document.services if s.business_vertical != self.vertical]
        self.document.services = _merge_by_creation(others, replacement)
        self._changed("replace")

        if not replacement and not was_empty:
            self.event_bus.publish(LedgerEmptied.create(self.document.id, self.vertical))

    # -------------------------------------------------------------------------
    # Observers
    # -------------------------------------------------------------------------

    def subscribe(self, callback: Callable[[LedgerChanged], None]) -> Callable:
        """
        Register a change listener for this ledger only.

        Returns a handle to pass to unsubscribe().
        """
        def _listener(event: LedgerChanged):
            if event.document_id == self.document.id and event.vertical == self.vertical:
                callback(event)

        _listener.__name__ = getattr(callback, "__name__", "ledger_listener")
        return self.event_bus.subscribe("LedgerChanged", _listener)

    def unsubscribe(self, handle: Callable) -> bool:
        return self.event_bus.unsubscribe("LedgerChanged", handle)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _check_vertical(self, entry: ServiceEntry) -> None:
        if entry.business_vertical != self.vertical:
            raise ConflictError(entry.business_vertical, self.vertical)

    def _changed(self, reason: str) -> None:
        self.document.updated_at = now_utc()
        entries = self.entries()
        total = sum((e.amount for e in entries), Decimal("0"))
        logger.debug(
            "Ledger %s/%s %s: %d entries, total %s",
            self.document.id, self.vertical.value, reason, len(entries), total,
        )
        self.event_bus.publish(
            LedgerChanged.create(self.document.id, self.vertical, reason, entries, total)
        )


def _merge_by_creation(others: list[ServiceEntry], replacement: list[ServiceEntry]) -> list[ServiceEntry]:
    """Stable merge; each input keeps its own order, ties go to others."""
    merged = []
    i = j = 0
    while i < len(others) and j < len(replacement):
        if replacement[j].created_at < others[i].created_at:
            merged.append(replacement[j])
            j += 1
        else:
            merged.append(others[i])
            i += 1
    merged.extend(others[i:])
    merged.extend(replacement[j:])
    return merged

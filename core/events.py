"""
Domain events for the service ledger.

Immutable event objects that represent state changes. Renderers, persistence
hooks and UI sections subscribe to them on the event bus instead of having
their methods wrapped.

Event Categories:
- LedgerEvent: Ledger mutations (changed, emptied)
- QuoteModeEvent: Itemized/Custom transitions
- SectionEvent: Vertical section lifecycle (activated, torn down)
- DocumentEvent: Persistence (saved, deleted, estimate converted)

Ledger events carry a snapshot of the entries and totals so handlers never
read a ledger that a later mutation has already changed.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

from utils.timezone import now_utc


@dataclass(frozen=True, kw_only=True)
class LedgerDomainEvent:
    """Base class for all ledger domain events."""
    event_id: str = field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = field(default_factory=now_utc)


# =============================================================================
# LEDGER EVENTS
# =============================================================================


@dataclass(frozen=True)
class LedgerEvent(LedgerDomainEvent):
    """Events related to ledger contents."""
    document_id: str = ""
    vertical: Any = None  # BusinessVertical, Any to avoid circular import


@dataclass(frozen=True)
class LedgerChanged(LedgerEvent):
    """Entries were added, removed or replaced. Emitted after every mutation."""
    reason: str = ""
    entries: tuple = ()
    total: Any = None  # Decimal

    @classmethod
    def create(cls, document_id: str, vertical: Any, reason: str,
               entries: list, total: Any) -> "LedgerChanged":
        return cls(
            document_id=document_id, vertical=vertical, reason=reason,
            entries=tuple(entries), total=total,
        )


@dataclass(frozen=True)
class LedgerEmptied(LedgerEvent):
    """A removal left the ledger empty. Renderers show a placeholder."""

    @classmethod
    def create(cls, document_id: str, vertical: Any) -> "LedgerEmptied":
        return cls(document_id=document_id, vertical=vertical)


# =============================================================================
# QUOTE MODE EVENTS
# =============================================================================


@dataclass(frozen=True)
class QuoteModeChanged(LedgerDomainEvent):
    """A vertical section switched between Itemized and Custom."""
    document_id: str = ""
    vertical: Any = None
    previous_mode: Any = None  # QuoteMode
    mode: Any = None

    @classmethod
    def create(cls, document_id: str, vertical: Any, previous_mode: Any,
               mode: Any) -> "QuoteModeChanged":
        return cls(
            document_id=document_id, vertical=vertical,
            previous_mode=previous_mode, mode=mode,
        )


# =============================================================================
# SECTION EVENTS
# =============================================================================


@dataclass(frozen=True)
class SectionEvent(LedgerDomainEvent):
    """Events related to vertical section lifetime."""
    document_kind: Any = None  # DocumentKind
    vertical: Any = None


@dataclass(frozen=True)
class SectionActivated(SectionEvent):
    """A vertical section was initialized and its handlers attached."""

    @classmethod
    def create(cls, document_kind: Any, vertical: Any) -> "SectionActivated":
        return cls(document_kind=document_kind, vertical=vertical)


@dataclass(frozen=True)
class SectionTornDown(SectionEvent):
    """A vertical section was destroyed: handlers detached, cached state reset."""

    @classmethod
    def create(cls, document_kind: Any, vertical: Any) -> "SectionTornDown":
        return cls(document_kind=document_kind, vertical=vertical)


# =============================================================================
# DOCUMENT EVENTS
# =============================================================================


@dataclass(frozen=True)
class DocumentEvent(LedgerDomainEvent):
    """Events related to document persistence."""
    document: Any = None


@dataclass(frozen=True)
class DocumentSaved(DocumentEvent):
    """A document was written to the persistence store."""

    @classmethod
    def create(cls, document: Any) -> "DocumentSaved":
        return cls(document=document)


@dataclass(frozen=True)
class DocumentDeleted(DocumentEvent):
    """A document was removed from the persistence store."""

    @classmethod
    def create(cls, document: Any) -> "DocumentDeleted":
        return cls(document=document)


@dataclass(frozen=True)
class EstimateConverted(DocumentEvent):
    """An estimate was copied into a new invoice and marked converted."""
    invoice: Any = None

    @classmethod
    def create(cls, estimate: Any, invoice: Any) -> "EstimateConverted":
        return cls(document=estimate, invoice=invoice)

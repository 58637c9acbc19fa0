"""Document (invoice / estimate) domain models.

Totals are derived from the services list on every read and never stored
as authoritative values. Tax rate is basis points (10000 = 100%).
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, computed_field

from core.models.service_entry import BusinessVertical, ServiceEntry
from core.parsing import round_cents


class DocumentKind(str, Enum):
    """What kind of document a ledger belongs to."""

    INVOICE = "invoice"
    ESTIMATE = "estimate"

    @property
    def number_prefix(self) -> str:
        return "INV" if self is DocumentKind.INVOICE else "EST"


class DocumentStatus(str, Enum):
    """Document lifecycle status."""

    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"              # Invoice only
    OVERDUE = "overdue"        # Invoice only
    APPROVED = "approved"      # Estimate only
    REJECTED = "rejected"      # Estimate only
    CONVERTED = "converted"    # Estimate turned into an invoice


STATUSES_BY_KIND = {
    DocumentKind.INVOICE: frozenset({
        DocumentStatus.DRAFT, DocumentStatus.SENT, DocumentStatus.PAID, DocumentStatus.OVERDUE,
    }),
    DocumentKind.ESTIMATE: frozenset({
        DocumentStatus.DRAFT, DocumentStatus.SENT, DocumentStatus.APPROVED,
        DocumentStatus.REJECTED, DocumentStatus.CONVERTED,
    }),
}


class QuoteMode(str, Enum):
    """Pricing strategy of one vertical section."""

    ITEMIZED = "itemized"  # Multiple priced lines
    CUSTOM = "custom"      # Single lump-sum line


class DocumentTotals(BaseModel):
    """Derived totals of a document or ledger."""

    subtotal: Decimal
    tax: Decimal = Decimal("0")
    total: Decimal


class Document(BaseModel):
    """Full document entity as held in memory and persisted."""

    id: str = Field(..., min_length=1)
    document_kind: DocumentKind
    business_vertical: BusinessVertical
    number: str | None = None
    status: DocumentStatus = DocumentStatus.DRAFT
    converted_from: str | None = None  # Estimate id this invoice was created from
    converted_to: str | None = None    # Invoice id this estimate became
    customer_name: str | None = Field(None, max_length=255)
    notes: str | None = Field(None, max_length=2000)
    services: list[ServiceEntry] = Field(default_factory=list)
    quote_modes: dict[BusinessVertical, QuoteMode] = Field(default_factory=dict)
    stashed_services: dict[BusinessVertical, list[ServiceEntry]] = Field(default_factory=dict)
    tax_rate_bps: int = Field(0, ge=0)  # Basis points: 825 = 8.25%
    created_at: datetime
    updated_at: datetime

    def quote_mode_for(self, vertical: BusinessVertical) -> QuoteMode:
        """Quote mode of a vertical section. Sections start Itemized."""
        return self.quote_modes.get(vertical, QuoteMode.ITEMIZED)

    def stash_for(self, vertical: BusinessVertical) -> list[ServiceEntry]:
        """Stashed itemized entries of a vertical section (empty outside Custom mode)."""
        return self.stashed_services.get(vertical, [])

    def entries_for(self, vertical: BusinessVertical) -> list[ServiceEntry]:
        """Current entries of one vertical, in display order."""
        return [s for s in self.services if s.business_vertical == vertical]

    @computed_field
    @property
    def subtotal(self) -> Decimal:
        """Sum of all service amounts across every section."""
        return sum((s.amount for s in self.services), Decimal("0"))

    @computed_field
    @property
    def tax(self) -> Decimal:
        return round_cents(self.subtotal * self.tax_rate_bps / Decimal(10000))

    @computed_field
    @property
    def total(self) -> Decimal:
        return self.subtotal + self.tax

    def totals(self) -> DocumentTotals:
        return DocumentTotals(subtotal=self.subtotal, tax=self.tax, total=self.total)

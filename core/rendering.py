"""
Render-ready projection of a ledger.

The visual list itself is drawn by an external renderer. This module builds
what it needs: escaped description markup with <br> line breaks, display
amounts and the placeholder text for an empty ledger.
"""

from decimal import Decimal
from typing import Iterable, Protocol

from pydantic import BaseModel

from core.models import BusinessVertical, ServiceEntry
from core.parsing import format_currency, render_description_for_display

EMPTY_PLACEHOLDER = "No services added yet"


class EntryView(BaseModel):
    """One rendered line."""

    id: str
    description_html: str
    detail: str
    amount: Decimal
    amount_display: str
    is_custom_quote: bool


class LedgerView(BaseModel):
    """Everything a renderer needs for one vertical section."""

    vertical: BusinessVertical
    entries: list[EntryView]
    total: Decimal
    total_display: str
    placeholder: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.entries


class Renderer(Protocol):
    """Draws a ledger view. Called after every mutation; returns nothing."""

    def render(self, view: LedgerView) -> None:
        ...


def _quantity_display(quantity: Decimal) -> str:
    return f"{quantity.normalize():f}"


def entry_view(entry: ServiceEntry) -> EntryView:
    if entry.is_itemized:
        pricing = entry.pricing
        unit = f" {pricing.unit}" if pricing.unit else ""
        detail = f"{_quantity_display(pricing.quantity)}{unit} @ {format_currency(pricing.rate)}"
    elif entry.is_custom_quote:
        detail = f"Custom Quote: {format_currency(entry.amount)}"
    else:
        detail = format_currency(entry.amount)

    return EntryView(
        id=entry.id,
        description_html=render_description_for_display(entry.description),
        detail=detail,
        amount=entry.amount,
        amount_display=format_currency(entry.amount),
        is_custom_quote=entry.is_custom_quote,
    )


def build_ledger_view(
    vertical: BusinessVertical,
    entries: Iterable[ServiceEntry],
    total: Decimal | None = None,
) -> LedgerView:
    """Project entries into a LedgerView. Total is recomputed when not given."""
    entries = list(entries)
    if total is None:
        total = sum((e.amount for e in entries), Decimal("0"))

    return LedgerView(
        vertical=vertical,
        entries=[entry_view(e) for e in entries],
        total=total,
        total_display=format_currency(total),
        placeholder=None if entries else EMPTY_PLACEHOLDER,
    )

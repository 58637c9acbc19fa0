"""Core domain models."""

from core.models.service_entry import (
    CUSTOM_QUOTE_ID,
    BusinessVertical,
    ItemizedPricing,
    CustomPricing,
    ServiceEntry,
    new_entry_id,
    build_itemized,
    build_custom,
)
from core.models.document import (
    STATUSES_BY_KIND,
    Document,
    DocumentKind,
    DocumentStatus,
    DocumentTotals,
    QuoteMode,
)

__all__ = [
    # ServiceEntry
    "CUSTOM_QUOTE_ID", "BusinessVertical", "ItemizedPricing", "CustomPricing",
    "ServiceEntry", "new_entry_id", "build_itemized", "build_custom",
    # Document
    "Document", "DocumentKind", "DocumentStatus", "DocumentTotals", "QuoteMode",
    "STATUSES_BY_KIND",
]

"""Service entry domain models.

One billable line on a document. Pricing is either itemized
(quantity x rate) or a flat custom amount, never both. Amounts are Decimal
so that quantity * rate is exact; rounding happens at display time only.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal
from uuid import uuid4

import pydantic
from pydantic import BaseModel, Field, computed_field, model_validator

from core.exceptions import ValidationError
from core.parsing import normalize_lines, to_amount
from utils.timezone import now_utc

# Reserved id of the single lump-sum entry a section holds in Custom mode.
CUSTOM_QUOTE_ID = "custom-quote"


class BusinessVertical(str, Enum):
    """Business category that isolates form fields, handlers and ledger contents."""

    CONCRETE = "concrete"
    MASONRY = "masonry"


class ItemizedPricing(BaseModel):
    """Quantity x rate pricing."""

    kind: Literal["itemized"] = "itemized"
    quantity: Decimal = Field(..., gt=0)
    unit: str = Field("", max_length=50)
    rate: Decimal = Field(..., gt=0)

    @property
    def amount(self) -> Decimal:
        return self.quantity * self.rate


class CustomPricing(BaseModel):
    """Single flat amount."""

    kind: Literal["custom"] = "custom"
    flat_amount: Decimal = Field(..., gt=0)

    @property
    def amount(self) -> Decimal:
        return self.flat_amount


PricingShape = Annotated[ItemizedPricing | CustomPricing, Field(discriminator="kind")]


class ServiceEntry(BaseModel):
    """Full service entry as held by a ledger and persisted with its document."""

    id: str = Field(..., min_length=1)
    business_vertical: BusinessVertical
    description: str = Field(..., min_length=1)
    pricing: PricingShape
    created_at: datetime

    @model_validator(mode="after")
    def amount_must_be_positive(self) -> "ServiceEntry":
        """An entry with a non-positive amount never enters a ledger."""
        if self.amount <= 0:
            raise ValueError("Service entry amount must be greater than zero")
        return self

    @computed_field
    @property
    def amount(self) -> Decimal:
        """quantity * rate for itemized entries, flat_amount for custom ones."""
        return self.pricing.amount

    @property
    def is_itemized(self) -> bool:
        return isinstance(self.pricing, ItemizedPricing)

    @property
    def is_custom_quote(self) -> bool:
        """Whether this is the section's reserved lump-sum entry."""
        return self.id == CUSTOM_QUOTE_ID


def new_entry_id() -> str:
    """Fresh entry id. Never reused within a session."""
    return str(uuid4())


def _require_description(description) -> str:
    text = normalize_lines(description).strip()
    if not text:
        raise ValidationError("Please enter a service description", field="description")
    return text


def _require_positive(value, field: str, message: str) -> Decimal:
    amount = to_amount(value, field=field)
    if amount <= 0:
        raise ValidationError(message, field=field)
    return amount


def _construct(**fields) -> ServiceEntry:
    try:
        return ServiceEntry(**fields)
    except pydantic.ValidationError as e:
        raise ValidationError(str(e)) from e


def build_itemized(
    description,
    quantity,
    unit,
    rate,
    *,
    vertical: BusinessVertical,
    entry_id: str | None = None,
) -> ServiceEntry:
    """
    Build an itemized entry.

    Pure construction; the caller inserts it into a ledger.

    Raises:
        ValidationError: Empty description, quantity <= 0 or rate <= 0
    """
    text = _require_description(description)
    qty = _require_positive(quantity, "quantity", "Quantity must be greater than zero")
    unit_rate = _require_positive(rate, "rate", "Rate must be greater than zero")

    return _construct(
        id=entry_id or new_entry_id(),
        business_vertical=vertical,
        description=text,
        pricing={
            "kind": "itemized",
            "quantity": qty,
            "unit": str(unit or "").strip(),
            "rate": unit_rate,
        },
        created_at=now_utc(),
    )


def build_custom(
    description,
    flat_amount,
    *,
    vertical: BusinessVertical,
    entry_id: str | None = None,
) -> ServiceEntry:
    """
    Build a flat-amount entry.

    Raises:
        ValidationError: Empty description or flat_amount <= 0
    """
    text = _require_description(description)
    amount = _require_positive(
        flat_amount, "amount", "Please enter a price greater than $0.00"
    )

    return _construct(
        id=entry_id or new_entry_id(),
        business_vertical=vertical,
        description=text,
        pricing={"kind": "custom", "flat_amount": amount},
        created_at=now_utc(),
    )

"""
Concrete price source.

The calculator turns project type, square footage and job conditions into a
price; a PriceQuote holds the low/mid/high tiers plus an optional
operator-typed figure. The ledger only ever consumes the single amount the
operator selects.
"""

from decimal import Decimal
from enum import Enum

import pydantic
from pydantic import BaseModel, Field, model_validator

from core.exceptions import ValidationError
from core.parsing import round_cents, to_amount

# Base price per square foot by project type. "custom" uses the operator's rate.
CONCRETE_RATES: dict[str, Decimal] = {
    "driveway": Decimal("15.00"),
    "sidewalk": Decimal("12.00"),
    "patio": Decimal("14.00"),
    "garage": Decimal("16.00"),
    "basement": Decimal("18.00"),
    "steps": Decimal("20.00"),
    "pool-deck": Decimal("17.00"),
    "custom": Decimal("0.00"),
}

SEVERITY_MULTIPLIERS: dict[str, Decimal] = {
    "mild": Decimal("1.0"),
    "moderate": Decimal("1.3"),
    "severe": Decimal("1.6"),
}

ACCESSIBILITY_MULTIPLIERS: dict[str, Decimal] = {
    "easy": Decimal("1.0"),
    "moderate": Decimal("1.1"),
    "difficult": Decimal("1.25"),
}


class PriceTier(str, Enum):
    """Which candidate amount the operator picked."""

    LOW = "low"
    MID = "mid"
    HIGH = "high"
    CUSTOM = "custom"


class PriceQuote(BaseModel):
    """Candidate amounts for one concrete job."""

    low: Decimal = Field(..., ge=0)
    high: Decimal = Field(..., ge=0)
    mid: Decimal | None = Field(None, ge=0)
    custom: Decimal | None = None

    @model_validator(mode="after")
    def fill_mid(self) -> "PriceQuote":
        """Mid defaults to the average of low and high."""
        if self.high < self.low:
            raise ValueError("high tier must not be below low tier")
        if self.mid is None:
            self.mid = round_cents((self.low + self.high) / 2)
        return self

    def select(self, tier: PriceTier | str) -> Decimal:
        """
        Amount for the chosen tier.

        Raises:
            ValidationError: Tier has no positive amount
        """
        chosen = PriceTier(tier)
        amount = getattr(self, chosen.value)
        if amount is None or amount <= 0:
            raise ValidationError(
                f"No valid {chosen.value} price available", field="price_tier"
            )
        return amount


class ConcreteCalculation(BaseModel):
    """Result of one calculator run."""

    project_type: str
    square_footage: Decimal
    severity: str
    accessibility: str
    base_rate: Decimal
    multiplier: Decimal
    final_rate: Decimal
    total: Decimal


class ConcreteCalculator:
    """Concrete leveling pricing with severity and accessibility multipliers."""

    def calculate(
        self,
        project_type: str,
        square_footage,
        severity: str = "mild",
        accessibility: str = "easy",
        custom_rate=0,
    ) -> ConcreteCalculation:
        """
        Price a job.

        Raises:
            ValidationError: Unknown project type or condition, or a
                non-positive footage or rate
        """
        if project_type not in CONCRETE_RATES:
            raise ValidationError(f"Unknown project type '{project_type}'", field="project_type")
        if severity not in SEVERITY_MULTIPLIERS:
            raise ValidationError(f"Unknown severity '{severity}'", field="severity")
        if accessibility not in ACCESSIBILITY_MULTIPLIERS:
            raise ValidationError(f"Unknown accessibility '{accessibility}'", field="accessibility")

        sqft = to_amount(square_footage, field="square_footage")
        if sqft <= 0:
            raise ValidationError("Square footage must be greater than zero", field="square_footage")

        base_rate = CONCRETE_RATES[project_type]
        if project_type == "custom":
            base_rate = to_amount(custom_rate, field="custom_rate")
        if base_rate <= 0:
            raise ValidationError("Rate must be greater than zero", field="custom_rate")

        multiplier = round_cents(SEVERITY_MULTIPLIERS[severity] * ACCESSIBILITY_MULTIPLIERS[accessibility])
        final_rate = round_cents(base_rate * multiplier)
        total = round_cents(final_rate * sqft)

        return ConcreteCalculation(
            project_type=project_type,
            square_footage=sqft,
            severity=severity,
            accessibility=accessibility,
            base_rate=base_rate,
            multiplier=multiplier,
            final_rate=final_rate,
            total=total,
        )

    def quote(self, low, high, custom=None) -> PriceQuote:
        """
        Build a tiered quote from a low/high range and optional custom figure.

        Raises:
            ValidationError: Range is inverted or an amount is not a number
        """
        try:
            return PriceQuote(
                low=to_amount(low, field="low"),
                high=to_amount(high, field="high"),
                custom=None if custom in (None, "") else to_amount(custom, field="custom"),
            )
        except pydantic.ValidationError as e:
            raise ValidationError(str(e), field="price_tier") from e

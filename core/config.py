"""Service ledger configuration."""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from core.models import BusinessVertical

ENV_PREFIX = "LEDGER_"


class LedgerConfig(BaseModel):
    """
    Service ledger configuration.

    Durations are in seconds. Money rates are basis points (10000 = 100%).
    """

    # Input rules
    detailed_description_min_length: int = Field(
        default=5,
        description="Minimum length of a description where a detailed one is required",
        ge=1,
        le=200,
    )

    # Readiness wait for late-initialized collaborators
    readiness_interval_seconds: float = Field(
        default=0.1,
        description="Delay between readiness checks",
        gt=0,
        le=5,
    )
    readiness_max_retries: int = Field(
        default=50,
        description="Checks before giving up silently",
        ge=1,
        le=1000,
    )

    # Persistence
    invoice_storage_key: str = Field(
        default="jstark_invoices",
        description="Store key of the invoice collection",
        min_length=1,
    )
    estimate_storage_key: str = Field(
        default="jstark_estimates",
        description="Store key of the estimate collection",
        min_length=1,
    )
    valkey_url: str | None = Field(
        default=None,
        description="Redis-compatible URL; in-process store when unset",
    )

    # Totals
    tax_rate_bps: int = Field(
        default=0,
        description="Tax rate applied to new documents, in basis points",
        ge=0,
        le=10000,
    )

    # Context routing
    default_vertical: BusinessVertical = Field(
        default=BusinessVertical.CONCRETE,
        description="Vertical used when the UI gives no signal",
    )
    concrete_markers: list[str] = Field(
        default_factory=lambda: ["concrete-services", "calc-results", "slab-entry"],
        description="Element ids that only exist inside an active concrete section",
    )
    masonry_markers: list[str] = Field(
        default_factory=lambda: ["masonry-services", "estimate-masonry-section"],
        description="Element ids that only exist inside an active masonry section",
    )

    # Application
    log_level: str = Field(
        default="INFO",
        description="Root log level used by the HTTP application",
    )

    def storage_key(self, document_kind) -> str:
        """Store key of the collection for a document kind."""
        kind = getattr(document_kind, "value", document_kind)
        if kind == "invoice":
            return self.invoice_storage_key
        if kind == "estimate":
            return self.estimate_storage_key
        raise ValueError(f"Unknown document kind: {document_kind}")


def load_config(env_file: str | Path | None = None) -> LedgerConfig:
    """
    Build configuration from .env and LEDGER_* environment variables.

    Fails fast: invalid values raise pydantic.ValidationError.
    """
    load_dotenv(env_file or Path.cwd() / ".env", override=False)

    values: dict = {}
    for name in LedgerConfig.model_fields:
        raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
        if raw is None:
            continue
        if name in ("concrete_markers", "masonry_markers"):
            values[name] = [m.strip() for m in raw.split(",") if m.strip()]
        else:
            values[name] = raw

    return LedgerConfig(**values)

"""
Vertical section component.

A section is the live UI state of one business vertical inside one
document-type view: its ledger listeners and its cached price calculator
result. Handlers are attached in initialize() and detached in destroy(), so
a section's listeners exist exactly as long as the section is active.

destroy() also resets the cached calculator state. A stale concrete
calculation must never be attributed to a masonry entry after a fast
business-type switch.
"""

import logging

from core.event_bus import EventBus
from core.events import LedgerChanged, SectionActivated, SectionTornDown
from core.exceptions import ValidationError
from core.models import BusinessVertical, DocumentKind
from core.pricing import ConcreteCalculation, PriceQuote
from core.rendering import LedgerView, Renderer, build_ledger_view

logger = logging.getLogger(__name__)


class VerticalSection:
    """One vertical's section of a document form, with an explicit lifetime."""

    def __init__(
        self,
        document_kind: DocumentKind,
        vertical: BusinessVertical,
        event_bus: EventBus,
        renderer: Renderer | None = None,
    ):
        self.document_kind = DocumentKind(document_kind)
        self.vertical = BusinessVertical(vertical)
        self.event_bus = event_bus
        self.renderer = renderer

        self.document_id: str | None = None
        self.active = False
        self.last_calculation: ConcreteCalculation | None = None
        self.last_quote: PriceQuote | None = None
        self.last_view: LedgerView | None = None
        self._handlers: list[tuple[str, object]] = []

    # -------------------------------------------------------------------------
    # Lifetime
    # -------------------------------------------------------------------------

    def initialize(self, document_id: str) -> None:
        """Attach handlers for the given document. Safe to call twice."""
        if self.active and self.document_id == document_id:
            return
        if self.active:
            self._detach()
        if self.document_id != document_id:
            # A price calculated for one document never carries over to another
            self.reset()

        self.document_id = document_id
        self._attach("LedgerChanged", self._on_ledger_changed)
        self.active = True
        logger.info(
            f"Section {self.document_kind.value}/{self.vertical.value} activated for document {document_id}"
        )
        self.event_bus.publish(SectionActivated.create(self.document_kind, self.vertical))

    def destroy(self) -> None:
        """Detach every handler and reset cached per-vertical state."""
        if not self.active:
            return

        self._detach()
        self.reset()
        self.active = False
        logger.info(f"Section {self.document_kind.value}/{self.vertical.value} torn down")
        self.event_bus.publish(SectionTornDown.create(self.document_kind, self.vertical))

    def reset(self) -> None:
        """Forget the last calculator result and rendered view."""
        self.last_calculation = None
        self.last_quote = None
        self.last_view = None

    # -------------------------------------------------------------------------
    # Price source
    # -------------------------------------------------------------------------

    def record_calculation(self, calculation: ConcreteCalculation) -> None:
        self._require_price_source()
        self.last_calculation = calculation

    def record_quote(self, quote: PriceQuote) -> None:
        """Cache the calculator's tiered quote for the next concrete add."""
        self._require_price_source()
        self.last_quote = quote

    def _require_price_source(self) -> None:
        if not self.active:
            raise ValidationError(
                f"The {self.vertical.value} section is not active", field="business_vertical"
            )
        if self.vertical != BusinessVertical.CONCRETE:
            raise ValidationError(
                "The price calculator is only available for concrete services",
                field="business_vertical",
            )

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def render(self, entries, total=None) -> LedgerView:
        """Project entries into a view and hand it to the renderer, if any."""
        self.last_view = build_ledger_view(self.vertical, entries, total)
        if self.renderer is not None:
            self.renderer.render(self.last_view)
        return self.last_view

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    def _on_ledger_changed(self, event: LedgerChanged) -> None:
        if event.document_id != self.document_id or event.vertical != self.vertical:
            return
        self.render(event.entries, event.total)

    def _attach(self, event_type: str, handler) -> None:
        self.event_bus.subscribe(event_type, handler)
        self._handlers.append((event_type, handler))

    def _detach(self) -> None:
        for event_type, handler in self._handlers:
            self.event_bus.unsubscribe(event_type, handler)
        self._handlers = []

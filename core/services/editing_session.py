"""
Editing session: the operations exposed to views and the HTTP layer.

A session holds at most one open document per document kind. Every ledger
operation targets the context last selected through the router, so an add
always lands in the vertical section the operator is looking at.

Actions are exclusive per session. An action started while another one is
still running (typically from inside a change listener) is rejected with a
warning and returns None instead of mutating a half-updated ledger.
"""

import functools
import logging
import time
from decimal import Decimal

from core.config import LedgerConfig
from core.context_router import ActiveContext, ContextRouter, UIState
from core.event_bus import EventBus
from core.exceptions import ConflictError, ValidationError
from core.ledger import Ledger
from core.models import (
    BusinessVertical,
    Document,
    DocumentKind,
    DocumentStatus,
    DocumentTotals,
    QuoteMode,
    ServiceEntry,
    build_custom,
)
from core.parsing import normalize_description
from core.pricing import ConcreteCalculation, ConcreteCalculator, PriceQuote, PriceTier
from core.quote_mode import QuoteModeController
from core.rendering import LedgerView, build_ledger_view
from core.sections import VerticalSection
from core.services.document_service import DocumentService
from utils.readiness import when_ready

logger = logging.getLogger(__name__)


def _exclusive(method):
    """Reject the call when another action of the same session is in flight."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        if self._in_flight is not None:
            logger.warning(
                f"Rejected {method.__name__}: {self._in_flight} is still in progress"
            )
            return None
        self._in_flight = method.__name__
        try:
            return method(self, *args, **kwargs)
        finally:
            self._in_flight = None

    return wrapper


class EditingSession:
    """
    Facade over documents, ledgers, quote modes and context routing.

    Usage:
        session = EditingSession(DocumentService(MemoryStore()))
        session.select_context(UIState(active_view="invoice", selected_vertical="concrete"))
        session.add_itemized("Driveway leveling", 120, "sqft", "4.50")
        session.current_totals().total  # Decimal("540.00")
    """

    def __init__(
        self,
        documents: DocumentService,
        router: ContextRouter | None = None,
        config: LedgerConfig | None = None,
        event_bus: EventBus | None = None,
    ):
        self.document_service = documents
        self.config = config or documents.config
        self.event_bus = event_bus or documents.event_bus
        self.router = router or ContextRouter(self.config, self.event_bus)
        self.calculator = ConcreteCalculator()
        self.documents: dict[DocumentKind, Document] = {}
        self._in_flight: str | None = None

    # -------------------------------------------------------------------------
    # Context
    # -------------------------------------------------------------------------

    @property
    def context(self) -> ActiveContext | None:
        return self.router.current

    @_exclusive
    def select_context(self, state: UIState) -> ActiveContext:
        """
        Resolve the target context from UI state and make its section live.

        Opens a fresh document for the view if none is open yet.
        """
        return self._select(state)

    def _select(self, state: UIState) -> ActiveContext:
        context = self.router.resolve(state)
        document = self.documents.get(context.document_kind)

        if document is None:
            document = self.document_service.new_document(context.document_kind, context.vertical)
            self.documents[context.document_kind] = document
        elif document.business_vertical != context.vertical:
            logger.info(
                f"Document {document.number or document.id} now edited as {context.vertical.value}"
            )
            document.business_vertical = context.vertical

        self._activate(context, document)
        return context

    def _activate(self, context: ActiveContext, document: Document) -> VerticalSection:
        section = self.router.activate(context, document.id)
        section.render(document.entries_for(context.vertical))
        return section

    def _current(self) -> tuple[ActiveContext, Document]:
        """Active context and its document, selecting the default context if needed."""
        context = self.router.current
        if context is None or context.document_kind not in self.documents:
            context = self._select(UIState())
        return context, self.documents[context.document_kind]

    def current_document(self) -> Document:
        return self._current()[1]

    def ledger(self, vertical: BusinessVertical | None = None) -> Ledger:
        """Ledger of the active document for a vertical (default: active vertical)."""
        context, document = self._current()
        return Ledger(document, BusinessVertical(vertical or context.vertical), self.event_bus)

    def controller(self, vertical: BusinessVertical | None = None) -> QuoteModeController:
        return QuoteModeController(self.ledger(vertical))

    # -------------------------------------------------------------------------
    # Documents
    # -------------------------------------------------------------------------

    @_exclusive
    def new_document(
        self,
        document_kind: DocumentKind,
        vertical: BusinessVertical | None = None,
        customer_name: str | None = None,
        notes: str | None = None,
    ) -> Document:
        """Replace the open document of a kind with a fresh one and activate it."""
        kind = DocumentKind(document_kind)
        vertical = BusinessVertical(vertical or self.config.default_vertical)
        document = self.document_service.new_document(kind, vertical, customer_name, notes)
        self.documents[kind] = document
        self._activate(ActiveContext(document_kind=kind, vertical=vertical), document)
        return document

    @_exclusive
    def open_document(self, document_kind: DocumentKind, document_id: str) -> Document:
        """
        Load a stored document into the session and activate its section.

        Raises:
            ValueError: No stored document with that id
            PersistenceError: Store unreachable or data unreadable
        """
        kind = DocumentKind(document_kind)
        document = self.document_service.get_by_id(kind, document_id)
        if document is None:
            raise ValueError(f"{kind.value.capitalize()} {document_id} not found")

        self.documents[kind] = document
        self._activate(
            ActiveContext(document_kind=kind, vertical=document.business_vertical), document
        )
        return document

    @_exclusive
    def save(self) -> Document:
        """
        Persist the active document.

        Raises:
            PersistenceError: The store failed; the document stays open in memory
        """
        return self.document_service.save(self.current_document())

    @_exclusive
    def delete_document(self, document_kind: DocumentKind, document_id: str) -> bool:
        """Delete a stored document and close it if it is open."""
        kind = DocumentKind(document_kind)
        deleted = self.document_service.delete(kind, document_id)

        document = self.documents.get(kind)
        if document is not None and document.id == document_id:
            del self.documents[kind]
            self.router.teardown(kind)
            if self.router.current is not None and self.router.current.document_kind == kind:
                self.router.current = None
        return deleted

    @_exclusive
    def update_status(
        self, document_kind: DocumentKind, document_id: str, status: DocumentStatus | str
    ) -> Document:
        """Change a stored document's status. An open copy follows along."""
        updated = self.document_service.update_status(document_kind, document_id, status)
        self._follow_stored(updated)
        return updated

    @_exclusive
    def convert_estimate(self, estimate_id: str) -> Document:
        """
        Turn a stored estimate into a draft invoice and open the invoice.

        An open copy of the estimate is marked converted too, so saving it
        later cannot undo the conversion.

        Raises:
            ValueError: Estimate not found or already converted
            PersistenceError: Store write failed
        """
        invoice = self.document_service.convert_estimate(estimate_id)
        estimate = self.document_service.get_by_id(DocumentKind.ESTIMATE, estimate_id)
        if estimate is not None:
            self._follow_stored(estimate)

        self.documents[DocumentKind.INVOICE] = invoice
        self._activate(
            ActiveContext(document_kind=DocumentKind.INVOICE, vertical=invoice.business_vertical), invoice
        )
        return invoice

    def _follow_stored(self, stored: Document) -> None:
        document = self.documents.get(stored.document_kind)
        if document is not None and document.id == stored.id:
            document.status = stored.status
            document.converted_to = stored.converted_to
            document.updated_at = stored.updated_at

    # -------------------------------------------------------------------------
    # Ledger operations
    # -------------------------------------------------------------------------

    @_exclusive
    def add_itemized(self, description, quantity, unit, rate) -> ServiceEntry:
        """
        Add a quantity x rate line to the active section.

        Raises:
            ValidationError: Invalid input, or the section is in Custom mode
        """
        return self.controller().add_itemized(description, quantity, unit, rate)

    @_exclusive
    def add_custom(self, description, amount) -> ServiceEntry:
        """
        Add a flat-amount line, or set the custom quote in Custom mode.

        Raises:
            ValidationError: Empty description or non-positive amount
        """
        return self.controller().add_custom(description, amount)

    @_exclusive
    def add_entry(self, entry: ServiceEntry) -> ServiceEntry:
        """
        Add a pre-built entry to the active section.

        Raises:
            ConflictError: Entry was built for the other vertical. Logged as an
                integration fault; the ledger is unchanged.
        """
        return self._add(entry)

    def _add(self, entry: ServiceEntry) -> ServiceEntry:
        try:
            return self.controller().add(entry)
        except ConflictError as e:
            logger.warning(f"Rejected entry {entry.id}: {e}")
            raise

    @_exclusive
    def remove_by_id(self, entry_id: str) -> bool:
        """Remove an entry from the active section. Unknown ids are a no-op."""
        return self.ledger().remove_by_id(entry_id)

    @_exclusive
    def switch_mode(self, vertical: BusinessVertical | None, mode: QuoteMode | str) -> QuoteMode:
        """Switch a vertical section (default: the active one) to a quote mode."""
        return self.controller(vertical).switch_mode(mode)

    def current_totals(self) -> DocumentTotals:
        """Subtotal, tax and total of the active document."""
        return self.current_document().totals()

    def current_entries(self) -> list[ServiceEntry]:
        """Entries of the active section, in display order."""
        return self.ledger().entries()

    def current_mode(self) -> QuoteMode:
        return self.controller().mode

    def ledger_view(self) -> LedgerView:
        ledger = self.ledger()
        return build_ledger_view(ledger.vertical, ledger.entries(), ledger.total())

    # -------------------------------------------------------------------------
    # Concrete price source
    # -------------------------------------------------------------------------

    def _price_section(self) -> VerticalSection:
        context, _ = self._current()
        section = self.router.section_for(context.document_kind)
        if section is None:
            raise ValidationError("No section is active", field="business_vertical")
        return section

    @_exclusive
    def calculate_concrete(
        self,
        project_type: str,
        square_footage,
        severity: str = "mild",
        accessibility: str = "easy",
        custom_rate=0,
    ) -> ConcreteCalculation:
        """Run the concrete calculator and cache the result on the active section."""
        section = self._price_section()
        calculation = self.calculator.calculate(
            project_type, square_footage, severity, accessibility, custom_rate
        )
        section.record_calculation(calculation)
        return calculation

    @_exclusive
    def record_price_quote(self, low, high, custom=None) -> PriceQuote:
        """Cache a tiered quote on the active concrete section."""
        section = self._price_section()
        quote = self.calculator.quote(low, high, custom)
        section.record_quote(quote)
        return quote

    @_exclusive
    def add_from_calculation(self, description) -> ServiceEntry:
        """
        Add the last calculator total as a flat-amount concrete line.

        Raises:
            ValidationError: No calculation cached, or the description is not detailed
        """
        section = self._price_section()
        if section.last_calculation is None:
            raise ValidationError("Please calculate a price first", field="price_tier")
        return self._add_priced(description, section.last_calculation.total)

    @_exclusive
    def add_from_price_quote(self, description, tier: PriceTier | str) -> ServiceEntry:
        """
        Add the selected tier of the cached quote as a flat-amount concrete line.

        Raises:
            ValidationError: No quote cached (e.g. after a vertical switch),
                the tier has no positive amount, or the description is not detailed
        """
        section = self._price_section()
        if section.last_quote is None:
            raise ValidationError("Please calculate a price first", field="price_tier")
        return self._add_priced(description, section.last_quote.select(tier))

    def _add_priced(self, description, amount: Decimal) -> ServiceEntry:
        text = normalize_description(
            description, detailed=True, min_length=self.config.detailed_description_min_length
        )
        context, _ = self._current()
        return self._add(build_custom(text, amount, vertical=context.vertical))

    # -------------------------------------------------------------------------
    # Collaborator wiring
    # -------------------------------------------------------------------------

    def connect_renderer(self, provider, sleep=time.sleep) -> bool:
        """
        Wait for a late-initialized renderer and attach it to every section.

        Gives up after the configured retries without raising.

        Returns:
            True if a renderer was attached
        """
        return when_ready(
            provider,
            self._attach_renderer,
            name="renderer",
            interval_seconds=self.config.readiness_interval_seconds,
            max_retries=self.config.readiness_max_retries,
            sleep=sleep,
        )

    def _attach_renderer(self, renderer) -> None:
        self.router.attach_renderer(renderer)
        context = self.router.current
        if context is not None and context.document_kind in self.documents:
            section = self.router.section_for(context.document_kind)
            if section is not None:
                section.render(self.documents[context.document_kind].entries_for(context.vertical))

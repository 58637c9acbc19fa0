"""
Quote-mode controller: Itemized <-> Custom state machine for one vertical section.

Itemized -> Custom:
    Every non-sentinel entry of the vertical moves to the document's stash
    for that vertical, and the ledger keeps at most the custom-quote entry.
    The stash is only filled when it is empty, so a repeated switch to Custom
    never overwrites entries stashed earlier.

Custom -> Itemized:
    The custom-quote entry is dropped and stashed entries come back in their
    original order. The stash is cleared. With an empty stash the ledger is
    simply left empty.

Mode and stash live on the Document, keyed by vertical, so they survive a
save/load and each vertical section toggles independently.
"""

import logging

from core.events import QuoteModeChanged
from core.exceptions import ConflictError, ValidationError
from core.ledger import Ledger
from core.models import (
    CUSTOM_QUOTE_ID,
    QuoteMode,
    ServiceEntry,
    build_custom,
    build_itemized,
)

logger = logging.getLogger(__name__)


class QuoteModeController:
    """Pricing-strategy state machine bound to one ledger."""

    def __init__(self, ledger: Ledger):
        self.ledger = ledger

    @property
    def document(self):
        return self.ledger.document

    @property
    def vertical(self):
        return self.ledger.vertical

    @property
    def mode(self) -> QuoteMode:
        return self.document.quote_mode_for(self.vertical)

    @property
    def stash(self) -> list[ServiceEntry]:
        return list(self.document.stash_for(self.vertical))

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def switch_mode(self, mode: QuoteMode | str) -> QuoteMode:
        """
        Move the section to the given mode.

        Switching to the current mode is safe and leaves entries and stash
        as they are.

        Returns:
            The new mode
        """
        target = QuoteMode(mode)
        previous = self.mode

        if target == QuoteMode.CUSTOM:
            self._enter_custom()
        else:
            self._enter_itemized()

        self.document.quote_modes[self.vertical] = target

        if previous != target:
            logger.info(
                f"Quote mode for {self.document.id}/{self.vertical.value}: "
                f"{previous.value} -> {target.value}"
            )
            self.ledger.event_bus.publish(
                QuoteModeChanged.create(self.document.id, self.vertical, previous, target)
            )
        return target

    def _enter_custom(self) -> None:
        entries = self.ledger.entries()
        displaced = [e for e in entries if not e.is_custom_quote]
        kept = [e for e in entries if e.is_custom_quote]

        stash = self.document.stash_for(self.vertical)
        if not stash:
            self.document.stashed_services[self.vertical] = displaced
        elif displaced:
            # Already stashed from an earlier switch; keep those and add the newcomers
            self.document.stashed_services[self.vertical] = stash + displaced

        if displaced:
            self.ledger.replace_all_of_vertical(kept)

    def _enter_itemized(self) -> None:
        entries = self.ledger.entries()
        remaining = [e for e in entries if not e.is_custom_quote]
        stash = self.document.stashed_services.pop(self.vertical, [])

        if stash or len(remaining) != len(entries):
            self.ledger.replace_all_of_vertical(stash + remaining)

    # -------------------------------------------------------------------------
    # Adds, routed by current mode
    # -------------------------------------------------------------------------

    def add(self, entry: ServiceEntry) -> ServiceEntry:
        """
        Insert a pre-built entry according to the current mode.

        Itemized mode appends it. Custom mode accepts only flat-priced
        entries and stores them as the section's single custom quote,
        replacing any existing one.

        Raises:
            ConflictError: Entry belongs to another vertical (checked first)
            ValidationError: Itemized entry while the section is in Custom mode
        """
        if entry.business_vertical != self.vertical:
            raise ConflictError(entry.business_vertical, self.vertical)

        if self.mode != QuoteMode.CUSTOM:
            return self.ledger.add(entry)

        if entry.is_itemized:
            raise ValidationError(
                "Switch to itemized pricing to add line items", field="quote_mode"
            )

        quote = entry if entry.is_custom_quote else entry.model_copy(update={"id": CUSTOM_QUOTE_ID})
        others = [e for e in self.ledger.entries() if not e.is_custom_quote]
        self.ledger.replace_all_of_vertical(others + [quote])
        return quote

    def add_itemized(self, description, quantity, unit, rate) -> ServiceEntry:
        """
        Build and add a quantity x rate line. Only allowed in Itemized mode.

        Raises:
            ValidationError: Invalid input, or the section is in Custom mode
        """
        if self.mode == QuoteMode.CUSTOM:
            raise ValidationError(
                "Switch to itemized pricing to add line items", field="quote_mode"
            )
        return self.add(
            build_itemized(description, quantity, unit, rate, vertical=self.vertical)
        )

    def add_custom(self, description, amount) -> ServiceEntry:
        """
        Build and add a flat-amount entry.

        In Custom mode this is the section's single lump-sum quote: it
        replaces any existing one. In Itemized mode it is an ordinary
        flat-priced line with a fresh id.

        Raises:
            ValidationError: Empty description or non-positive amount
        """
        entry_id = CUSTOM_QUOTE_ID if self.mode == QuoteMode.CUSTOM else None
        return self.add(
            build_custom(description, amount, vertical=self.vertical, entry_id=entry_id)
        )

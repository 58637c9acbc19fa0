"""
Document service for invoice and estimate persistence.

Each document kind is one collection stored as a JSON array under a stable
key in a synchronous string store. Writes are upserts by id, last write
wins. A missing key is an empty collection. Save failures are reported as
PersistenceError and never retried; the caller keeps its in-memory document.
"""

import json
import logging
from typing import Protocol
from uuid import uuid4

import pydantic

from core.config import LedgerConfig
from core.event_bus import EventBus
from core.events import DocumentDeleted, DocumentSaved, EstimateConverted
from core.exceptions import PersistenceError
from core.models import (
    STATUSES_BY_KIND,
    BusinessVertical,
    Document,
    DocumentKind,
    DocumentStatus,
    ServiceEntry,
    new_entry_id,
)
from utils.timezone import date_stamp, now_utc

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Synchronous string store (ValkeyClient, MemoryStore)."""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> bool:
        ...

    def close(self) -> None:
        ...


class DocumentService:
    """Service for document creation and persistence."""

    def __init__(
        self,
        store: KeyValueStore,
        config: LedgerConfig | None = None,
        event_bus: EventBus | None = None,
    ):
        self.store = store
        self.config = config or LedgerConfig()
        self.event_bus = event_bus or EventBus()
        # Highest sequence handed out per daily prefix, saved or not
        self._issued: dict[str, int] = {}

    def _generate_number(self, kind: DocumentKind) -> str:
        """
        Next display number for a document kind.

        Format: INV-YYYYMMDD-XXXX / EST-YYYYMMDD-XXXX where XXXX is a daily sequence.
        Numbers given to unsaved drafts count too, so no two documents created
        by this service share a number.
        """
        prefix = f"{kind.number_prefix}-{date_stamp()}-"

        sequence = 0
        for document in self.list_documents(kind):
            number = document.number or ""
            if not number.startswith(prefix):
                continue
            try:
                sequence = max(sequence, int(number.split("-")[-1]))
            except (ValueError, IndexError):
                continue

        sequence = max(sequence, self._issued.get(prefix, 0)) + 1
        self._issued[prefix] = sequence
        return f"{prefix}{sequence:04d}"

    def new_document(
        self,
        kind: DocumentKind,
        vertical: BusinessVertical,
        customer_name: str | None = None,
        notes: str | None = None,
    ) -> Document:
        """
        Create a document for a creation form. Not persisted until save().

        Args:
            kind: Invoice or estimate
            vertical: Business vertical for this editing session
            customer_name: Optional customer display name
            notes: Optional free-text notes

        Returns:
            New document with an empty ledger
        """
        kind = DocumentKind(kind)
        now = now_utc()
        return Document(
            id=str(uuid4()),
            document_kind=kind,
            business_vertical=vertical,
            number=self._generate_number(kind),
            customer_name=customer_name,
            notes=notes,
            tax_rate_bps=self.config.tax_rate_bps,
            created_at=now,
            updated_at=now,
        )

    def list_documents(self, kind: DocumentKind) -> list[Document]:
        """
        All stored documents of a kind, in stored order.

        Raises:
            PersistenceError: Store unreachable or stored data unreadable
        """
        key = self.config.storage_key(kind)
        try:
            raw = self.store.get(key)
        except Exception as e:
            logger.exception(f"Failed to read '{key}'")
            raise PersistenceError(f"Could not load {DocumentKind(kind).value}s", key=key) from e

        if raw is None or raw == "":
            return []

        try:
            items = json.loads(raw)
            return [Document.model_validate(item) for item in items]
        except (json.JSONDecodeError, TypeError, pydantic.ValidationError) as e:
            logger.error(f"Stored data under '{key}' is unreadable: {e}")
            raise PersistenceError(f"Stored {DocumentKind(kind).value}s are unreadable", key=key) from e

    def get_by_id(self, kind: DocumentKind, document_id: str) -> Document | None:
        """
        Get document by ID.

        Returns:
            Document if stored, None otherwise.
        """
        for document in self.list_documents(kind):
            if document.id == document_id:
                return document
        return None

    def save(self, document: Document) -> Document:
        """
        Upsert a document into its collection.

        Raises:
            PersistenceError: The store refused or failed the write. The
                passed document is untouched and still usable in memory.
        """
        kind = document.document_kind
        documents = self.list_documents(kind)

        payload = document.model_dump(mode="json")
        items = [d.model_dump(mode="json") for d in documents]
        for index, existing in enumerate(documents):
            if existing.id == document.id:
                items[index] = payload
                break
        else:
            items.append(payload)

        self._write(kind, items)
        logger.info(f"Saved {kind.value} {document.number or document.id} ({len(document.services)} services)")
        self.event_bus.publish(DocumentSaved.create(document=document))
        return document

    def delete(self, kind: DocumentKind, document_id: str) -> bool:
        """
        Remove a document from storage.

        Returns True if deleted, False if not found.
        """
        documents = self.list_documents(kind)
        remaining = [d for d in documents if d.id != document_id]
        if len(remaining) == len(documents):
            return False

        deleted = next(d for d in documents if d.id == document_id)
        self._write(kind, [d.model_dump(mode="json") for d in remaining])
        logger.info(f"Deleted {DocumentKind(kind).value} {deleted.number or document_id}")
        self.event_bus.publish(DocumentDeleted.create(document=deleted))
        return True

    def update_status(self, kind: DocumentKind, document_id: str, status: DocumentStatus | str) -> Document:
        """
        Move a stored document to another lifecycle status.

        Returns:
            Updated document

        Raises:
            ValueError: If not found, the status does not apply to the kind,
                or the estimate is already converted
        """
        kind = DocumentKind(kind)
        status = DocumentStatus(status)
        if status not in STATUSES_BY_KIND[kind]:
            raise ValueError(f"Status '{status.value}' does not apply to {kind.value}s")
        if status == DocumentStatus.CONVERTED:
            raise ValueError("Estimates become converted only by converting them to an invoice")

        current = self.get_by_id(kind, document_id)
        if current is None:
            raise ValueError(f"{kind.value.capitalize()} {document_id} not found")
        if current.status == DocumentStatus.CONVERTED:
            raise ValueError(f"Estimate {current.number or document_id} is already converted")

        updated = current.model_copy(update={"status": status, "updated_at": now_utc()})
        self.save(updated)
        logger.info(f"{kind.value.capitalize()} {updated.number or document_id}: {current.status.value} -> {status.value}")
        return updated

    def convert_estimate(self, estimate_id: str) -> Document:
        """
        Create a draft invoice from a stored estimate and mark the estimate converted.

        The invoice gets its own number and copies of the estimate's entries
        under fresh ids, so no entry is shared between the two documents.
        Quote modes and stashed entries carry over. The invoice is saved before
        the estimate is marked.

        Returns:
            The saved invoice

        Raises:
            ValueError: If the estimate is not found or already converted
            PersistenceError: If either write fails
        """
        estimate = self.get_by_id(DocumentKind.ESTIMATE, estimate_id)
        if estimate is None:
            raise ValueError(f"Estimate {estimate_id} not found")
        if estimate.status == DocumentStatus.CONVERTED:
            raise ValueError(f"Estimate {estimate.number or estimate_id} is already converted")

        invoice = self.new_document(
            DocumentKind.INVOICE, estimate.business_vertical, estimate.customer_name, estimate.notes
        )
        invoice.tax_rate_bps = estimate.tax_rate_bps
        invoice.services = [_copy_entry(e) for e in estimate.services]
        invoice.quote_modes = dict(estimate.quote_modes)
        invoice.stashed_services = {
            vertical: [_copy_entry(e) for e in entries]
            for vertical, entries in estimate.stashed_services.items()
        }
        invoice.converted_from = estimate.id
        self.save(invoice)

        converted = estimate.model_copy(update={
            "status": DocumentStatus.CONVERTED,
            "converted_to": invoice.id,
            "updated_at": now_utc(),
        })
        self.save(converted)

        logger.info(f"Converted estimate {estimate.number or estimate_id} to invoice {invoice.number}")
        self.event_bus.publish(EstimateConverted.create(estimate=converted, invoice=invoice))
        return invoice

    def _write(self, kind: DocumentKind, items: list[dict]) -> None:
        key = self.config.storage_key(kind)
        try:
            ok = self.store.set(key, json.dumps(items))
        except Exception as e:
            logger.exception(f"Failed to write '{key}'")
            raise PersistenceError(
                "Save failed. Your changes are kept on screen but are not stored yet.",
                key=key,
            ) from e

        if ok is False:
            logger.error(f"Store refused write to '{key}'")
            raise PersistenceError(
                "Save failed. Your changes are kept on screen but are not stored yet.",
                key=key,
            )


def _copy_entry(entry: ServiceEntry) -> ServiceEntry:
    """Independent copy of an entry for another document. The custom-quote id is kept."""
    entry_id = entry.id if entry.is_custom_quote else new_entry_id()
    return entry.model_copy(update={"id": entry_id}, deep=True)

"""POST /api/actions — unified mutation endpoint."""

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from api.base import success_response
from core.context_router import UIState
from core.models import BusinessVertical, DocumentKind, DocumentStatus, QuoteMode
from core.services.editing_session import EditingSession


class ActionRequest(BaseModel):
    domain: str
    action: str
    data: dict


def create_actions_router(session: EditingSession) -> APIRouter:
    router = APIRouter()

    handlers = {
        "ledger": LedgerHandler(session),
        "document": DocumentHandler(session),
    }

    @router.post("/actions")
    async def perform_action(request: Request, body: ActionRequest):
        handler = handlers.get(body.domain)
        if handler is None:
            raise ValueError(
                f"Unknown domain '{body.domain}'. "
                f"Valid domains: {', '.join(sorted(handlers.keys()))}"
            )

        if body.action not in handler.ALLOWED_ACTIONS:
            raise ValueError(
                f"Action '{body.action}' not allowed on '{body.domain}'. "
                f"Allowed: {', '.join(sorted(handler.ALLOWED_ACTIONS))}"
            )

        method = getattr(handler, f"_handle_{body.action}", None)
        result = method(body.data)
        return success_response(result).model_dump(mode="json")

    return router


# =============================================================================
# REQUEST MODELS
# =============================================================================


class AddItemizedRequest(BaseModel):
    description: str
    quantity: str | float
    unit: str = ""
    rate: str | float


class AddCustomRequest(BaseModel):
    description: str
    amount: str | float


class SwitchModeRequest(BaseModel):
    mode: QuoteMode
    vertical: BusinessVertical | None = None


class CalculateRequest(BaseModel):
    project_type: str
    square_footage: str | float
    severity: str = "mild"
    accessibility: str = "easy"
    custom_rate: str | float = 0


class PriceQuoteRequest(BaseModel):
    low: str | float
    high: str | float
    custom: str | float | None = None


class AddFromQuoteRequest(BaseModel):
    description: str
    tier: str


class NewDocumentRequest(BaseModel):
    document_kind: DocumentKind
    business_vertical: BusinessVertical | None = None
    customer_name: str | None = Field(None, max_length=255)
    notes: str | None = Field(None, max_length=2000)


class SaveRequest(BaseModel):
    customer_name: str | None = Field(None, max_length=255)
    notes: str | None = Field(None, max_length=2000)


class DocumentRef(BaseModel):
    document_kind: DocumentKind
    id: str


class StatusRequest(DocumentRef):
    status: DocumentStatus


class ConvertRequest(BaseModel):
    id: str


# =============================================================================
# HANDLER CLASSES
# =============================================================================


def _ledger_state(session: EditingSession) -> dict:
    document = session.current_document()
    context = session.context
    return {
        "document_id": document.id,
        "document_kind": context.document_kind.value,
        "vertical": context.vertical.value,
        "mode": session.current_mode().value,
        "entries": [e.model_dump(mode="json") for e in session.current_entries()],
        "totals": session.current_totals().model_dump(mode="json"),
    }


class LedgerHandler:
    ALLOWED_ACTIONS = {
        "add_itemized", "add_custom", "remove", "switch_mode", "select_context",
        "calculate", "price_quote", "add_from_quote",
    }

    def __init__(self, session: EditingSession):
        self.session = session

    def _handle_select_context(self, data: dict):
        self.session.select_context(UIState(**data))
        return _ledger_state(self.session)

    def _handle_add_itemized(self, data: dict):
        req = AddItemizedRequest(**data)
        entry = self.session.add_itemized(req.description, req.quantity, req.unit, req.rate)
        return {"entry": entry.model_dump(mode="json"), **_ledger_state(self.session)}

    def _handle_add_custom(self, data: dict):
        req = AddCustomRequest(**data)
        entry = self.session.add_custom(req.description, req.amount)
        return {"entry": entry.model_dump(mode="json"), **_ledger_state(self.session)}

    def _handle_remove(self, data: dict):
        if not data.get("id"):
            raise ValueError("'remove' requires an 'id'")
        removed = self.session.remove_by_id(str(data["id"]))
        return {"removed": removed, **_ledger_state(self.session)}

    def _handle_switch_mode(self, data: dict):
        req = SwitchModeRequest(**data)
        self.session.switch_mode(req.vertical, req.mode)
        return _ledger_state(self.session)

    def _handle_calculate(self, data: dict):
        req = CalculateRequest(**data)
        calculation = self.session.calculate_concrete(
            req.project_type, req.square_footage, req.severity, req.accessibility, req.custom_rate
        )
        return calculation.model_dump(mode="json")

    def _handle_price_quote(self, data: dict):
        req = PriceQuoteRequest(**data)
        quote = self.session.record_price_quote(req.low, req.high, req.custom)
        return quote.model_dump(mode="json")

    def _handle_add_from_quote(self, data: dict):
        req = AddFromQuoteRequest(**data)
        entry = self.session.add_from_price_quote(req.description, req.tier)
        return {"entry": entry.model_dump(mode="json"), **_ledger_state(self.session)}


class DocumentHandler:
    ALLOWED_ACTIONS = {"new", "save", "open", "delete", "status", "convert"}

    def __init__(self, session: EditingSession):
        self.session = session

    def _handle_new(self, data: dict):
        req = NewDocumentRequest(**data)
        document = self.session.new_document(
            req.document_kind, req.business_vertical, req.customer_name, req.notes
        )
        return document.model_dump(mode="json")

    def _handle_save(self, data: dict):
        req = SaveRequest(**data)
        document = self.session.current_document()
        for field in req.model_fields_set:
            setattr(document, field, getattr(req, field))
        return self.session.save().model_dump(mode="json")

    def _handle_open(self, data: dict):
        ref = DocumentRef(**data)
        return self.session.open_document(ref.document_kind, ref.id).model_dump(mode="json")

    def _handle_delete(self, data: dict):
        ref = DocumentRef(**data)
        deleted = self.session.delete_document(ref.document_kind, ref.id)
        if not deleted:
            raise ValueError(f"{ref.document_kind.value.capitalize()} {ref.id} not found")
        return {"deleted": True}

    def _handle_status(self, data: dict):
        req = StatusRequest(**data)
        return self.session.update_status(req.document_kind, req.id, req.status).model_dump(mode="json")

    def _handle_convert(self, data: dict):
        req = ConvertRequest(**data)
        return self.session.convert_estimate(req.id).model_dump(mode="json")

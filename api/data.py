"""GET /api/data — unified read endpoint."""

from fastapi import APIRouter, Query, Request

from api.base import success_response
from core.models import DocumentKind
from core.services.editing_session import EditingSession


VALID_TYPES = {"entries", "totals", "view", "documents"}


def create_data_router(session: EditingSession) -> APIRouter:
    router = APIRouter()

    @router.get("/data")
    async def get_data(
        request: Request,
        type: str | None = Query(None),
        id: str | None = Query(None),
        kind: str | None = Query(None),
    ):
        if type is None:
            raise ValueError("'type' query parameter is required")

        if type not in VALID_TYPES:
            raise ValueError(f"Unknown type '{type}'. Valid types: {', '.join(sorted(VALID_TYPES))}")

        if type == "entries":
            return success_response(
                [e.model_dump(mode="json") for e in session.current_entries()]
            ).model_dump(mode="json")

        if type == "totals":
            return success_response(
                session.current_totals().model_dump(mode="json")
            ).model_dump(mode="json")

        if type == "view":
            return success_response(
                session.ledger_view().model_dump(mode="json")
            ).model_dump(mode="json")

        if type == "documents":
            return _handle_documents(session, kind, id)

    return router


def _handle_documents(session: EditingSession, kind, id):
    if kind is None:
        raise ValueError("'documents' type requires 'kind' parameter (invoice or estimate)")
    document_kind = DocumentKind(kind)

    if id:
        document = session.document_service.get_by_id(document_kind, id)
        if document is None:
            raise ValueError(f"{document_kind.value.capitalize()} {id} not found")
        return success_response(document.model_dump(mode="json")).model_dump(mode="json")

    documents = session.document_service.list_documents(document_kind)
    return success_response(
        [d.model_dump(mode="json") for d in documents]
    ).model_dump(mode="json")

"""Response envelope shared by the ledger endpoints."""

from datetime import datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

from utils.timezone import now_utc


class APIError(BaseModel):
    """What went wrong, and which form field the view should flag."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Operator-facing message")
    field: str | None = Field(None, description="Form field the error belongs to, if any")


class APIMeta(BaseModel):
    timestamp: datetime = Field(..., description="Response timestamp (UTC)")
    request_id: str = Field(..., description="Matches the X-Request-ID response header")


class APIResponse(BaseModel):
    """
    Envelope for every ledger endpoint.

    Exactly one of data / error is set, selected by success.
    """

    success: bool
    data: Any | None = None
    error: APIError | None = None
    meta: APIMeta


def _meta(request_id: str | None) -> APIMeta:
    return APIMeta(timestamp=now_utc(), request_id=request_id or str(uuid4()))


def success_response(data: Any, request_id: str | None = None) -> APIResponse:
    """Wrap a payload; a fresh request id is minted when none is given."""
    return APIResponse(success=True, data=data, meta=_meta(request_id))


def error_response(
    code: str,
    message: str,
    field: str | None = None,
    request_id: str | None = None,
) -> APIResponse:
    """Wrap an error for the view's inline message slot."""
    return APIResponse(
        success=False,
        error=APIError(code=code, message=message, field=field),
        meta=_meta(request_id),
    )


class ErrorCodes:
    NOT_FOUND = "NOT_FOUND"

    # Bad operator input or malformed request
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"

    # Entry does not belong to the section it was sent to
    CONFLICT = "CONFLICT"

    # Store write or read failed; on-screen state is not durable
    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"

"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from core.exceptions import ConflictError, PersistenceError, ValidationError

logger = logging.getLogger(__name__)


def _error(request: Request, status_code: int, code: str, message: str, field: str | None = None) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=status_code,
        content=error_response(code, message, field=field, request_id=request_id).model_dump(mode="json"),
    )


def register_error_handlers(app: FastAPI) -> None:
    """
    Map ledger exceptions onto HTTP statuses.

    ValidationError -> 400 with the offending field, ConflictError -> 409,
    PersistenceError -> 503. Plain ValueErrors are 404 when they report a
    missing document and 400 otherwise.
    """

    @app.exception_handler(ValidationError)
    async def ledger_validation_handler(request: Request, exc: ValidationError):
        return _error(request, 400, ErrorCodes.VALIDATION_ERROR, str(exc), field=exc.field)

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError):
        return _error(request, 409, ErrorCodes.CONFLICT, str(exc))

    @app.exception_handler(PersistenceError)
    async def persistence_handler(request: Request, exc: PersistenceError):
        return _error(request, 503, ErrorCodes.PERSISTENCE_FAILED, f"{exc} Changes on screen are not durable.")

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        message = str(exc)
        if "not found" in message.lower():
            return _error(request, 404, ErrorCodes.NOT_FOUND, message)
        return _error(request, 400, ErrorCodes.INVALID_REQUEST, message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _error(request, 422, ErrorCodes.VALIDATION_ERROR, str(exc.errors()))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return _error(request, 500, ErrorCodes.INTERNAL_ERROR, "An internal error occurred")

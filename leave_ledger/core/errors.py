"""
Error taxonomy and central error handling for the leave ledger backend

Services raise these directly; the handlers below render every failure as
``{"error": <message>, ...}`` so clients can always read ``error``.
"""
import logging
import traceback
from typing import Any, List, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class LedgerError(HTTPException):
    """Base class: an HTTPException that can also carry a details list."""

    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[List[Any]] = None):
        super().__init__(status_code=self.status_code_default, detail=message)
        self.message = message
        self.details = details


class ValidationError(LedgerError):
    """Malformed or missing input (400)."""
    status_code_default = status.HTTP_400_BAD_REQUEST


class NotFoundError(LedgerError):
    """Unknown request id or user id (404)."""
    status_code_default = status.HTTP_404_NOT_FOUND


class ConflictError(LedgerError):
    """State-machine violation or concurrent write (409)."""
    status_code_default = status.HTTP_409_CONFLICT


class PersistenceError(LedgerError):
    """Write failure against the document store (500)."""
    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_body(request: Request, status_code: int, message: Any, details: Optional[List[Any]] = None) -> dict:
    body = {
        "error": message,
        "status_code": status_code,
        "path": str(request.url.path),
    }
    if details:
        body["details"] = details
    return body


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """
    Handle HTTPException (and every LedgerError) with the JSON error shape

    Args:
        request: FastAPI request object
        exc: HTTPException instance

    Returns:
        JSONResponse with error details
    """
    details = getattr(exc, "details", None)
    if isinstance(exc, PersistenceError):
        logger.error("Persistence failure on %s: %s", request.url.path, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.status_code, exc.detail, details),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle body/query validation failures as 400 ValidationError responses

    Does not leak field-level details in production.
    """
    from leave_ledger.core.config import settings

    if settings.APP_ENV == "prod":
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body(request, 400, "Invalid request data"),
        )

    details = []
    for e in exc.errors():
        loc = ".".join(str(part) for part in e.get("loc", ()) if part != "body")
        details.append(f"{loc}: {e.get('msg')}" if loc else str(e.get("msg")))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(request, 400, "Invalid request data", details),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions with the JSON error shape

    Does not leak internal error details in production.
    """
    from leave_ledger.core.config import settings

    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    if settings.APP_ENV == "prod":
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(request, 500, "Internal server error"),
        )

    body = _error_body(request, 500, str(exc))
    if settings.APP_ENV == "local":
        body["traceback"] = traceback.format_exc()
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)

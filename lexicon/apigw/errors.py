"""Gestion standardisée des erreurs API avec enveloppes d'erreur.

Ce module traduit les erreurs du domaine et les exceptions HTTP en une enveloppe JSON unique
`{code, message, trace_id, details?}`:

- `ValidationError` -> 400 `VALIDATION_ERROR`
- `PersistenceError` -> 500 `PERSISTENCE_ERROR` (la cause n'est jamais exposée au client)
- `HTTPException` -> code dérivé du statut
- toute autre exception -> 500 `INTERNAL_ERROR`
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from lexicon.core.http_constants import (
    HTTP_BAD_REQUEST,
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_UNAUTHORIZED,
    HTTP_UNPROCESSABLE_ENTITY,
)
from lexicon.domain.errors import PersistenceError, ValidationError

log = structlog.get_logger(__name__)


class ErrorCodes:
    """Codes d'erreur de l'API."""

    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


_STATUS_CODES = {
    400: ErrorCodes.BAD_REQUEST,
    401: ErrorCodes.UNAUTHORIZED,
    404: ErrorCodes.NOT_FOUND,
    422: ErrorCodes.VALIDATION_ERROR,
    500: ErrorCodes.INTERNAL_ERROR,
}


@dataclass
class ErrorEnvelope:
    """Enveloppe d'erreur standard."""

    code: str
    message: str
    trace_id: str | None = None
    details: dict[str, Any] | None = None

    def to_content(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "trace_id": self.trace_id,
            **({"details": self.details} if self.details else {}),
        }


class APIError(HTTPException):
    """Erreur API portant directement son code d'enveloppe."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=message)
        self.code = code
        self.message = message
        self.details = details


def unauthorized(message: str) -> APIError:
    """Erreur 401 (identité absente ou invalide)."""
    return APIError(HTTP_UNAUTHORIZED, ErrorCodes.UNAUTHORIZED, message)


def create_error_response(
    status_code: int,
    code: str,
    message: str,
    trace_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    envelope = ErrorEnvelope(code=code, message=message, trace_id=trace_id, details=details)
    return JSONResponse(status_code=status_code, content=envelope.to_content())


def extract_trace_id(request: Request) -> str | None:
    """Identifiant de trace: en-tête `X-Trace-ID`, sinon celui posé par le middleware."""
    trace_id = request.headers.get("X-Trace-ID")
    if trace_id:
        return trace_id
    return getattr(request.state, "trace_id", None)


def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    trace_id = extract_trace_id(request)
    log.info("validation_error", error=str(exc), path=request.url.path, trace_id=trace_id)
    return create_error_response(
        HTTP_BAD_REQUEST, ErrorCodes.VALIDATION_ERROR, str(exc), trace_id=trace_id
    )


def handle_persistence_error(request: Request, exc: PersistenceError) -> JSONResponse:
    trace_id = extract_trace_id(request)
    log.error(
        "persistence_error",
        error=str(exc),
        cause=type(exc.__cause__).__name__ if exc.__cause__ else None,
        path=request.url.path,
        trace_id=trace_id,
    )
    return create_error_response(
        HTTP_INTERNAL_SERVER_ERROR,
        ErrorCodes.PERSISTENCE_ERROR,
        "The data store could not be queried",
        trace_id=trace_id,
    )


def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Paramètres de requête ou corps invalides (validation FastAPI)."""
    return create_error_response(
        HTTP_UNPROCESSABLE_ENTITY,
        ErrorCodes.VALIDATION_ERROR,
        "Invalid request parameters",
        trace_id=extract_trace_id(request),
        details={"errors": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    return [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": str(err.get("msg", ""))}
        for err in exc.errors()
    ]


def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    trace_id = extract_trace_id(request)
    if isinstance(exc, APIError):
        code, message, details = exc.code, exc.message, exc.details
    else:
        code = _STATUS_CODES.get(exc.status_code, "HTTP_ERROR")
        message, details = str(exc.detail), None
    log.warning("http_error", code=code, status_code=exc.status_code, trace_id=trace_id)
    return create_error_response(exc.status_code, code, message, trace_id, details)


def handle_generic_exception(request: Request, exc: Exception) -> JSONResponse:
    trace_id = extract_trace_id(request)
    log.error(
        "unexpected_error",
        exception_type=type(exc).__name__,
        path=request.url.path,
        trace_id=trace_id,
        exc_info=exc,
    )
    return create_error_response(
        HTTP_INTERNAL_SERVER_ERROR,
        ErrorCodes.INTERNAL_ERROR,
        "An unexpected error occurred",
        trace_id=trace_id,
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, handle_validation_error)
    app.add_exception_handler(PersistenceError, handle_persistence_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_generic_exception)

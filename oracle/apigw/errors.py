"""Gestion standardisée des erreurs API avec enveloppes d'erreur.

Toutes les erreurs HTTP de l'application sont rendues sous la forme
`{code, message, trace_id, details?}`; les erreurs du domaine sont traduites ici.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog
from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from oracle.core.http_constants import (
    HTTP_CONFLICT,
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_NOT_FOUND,
)
from oracle.domain.entities import InvalidEventError, OracleError, ProfileIncompleteError

log = structlog.get_logger(__name__).bind(component="apigw")

_STATUS_CODES = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    500: "INTERNAL_ERROR",
    502: "BAD_GATEWAY",
}


@dataclass
class ErrorEnvelope:
    """Enveloppe d'erreur standard."""

    code: str
    message: str
    trace_id: str | None = None
    details: dict[str, Any] | None = None


class APIError(HTTPException):
    """Erreur API portant son enveloppe."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        trace_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=message)
        self.code = code
        self.message = message
        self.trace_id = trace_id
        self.details = details


class ErrorCodes:
    """Codes d'erreur de l'API."""

    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Domaine
    INVALID_EVENT = "INVALID_EVENT"
    PROFILE_INCOMPLETE = "PROFILE_INCOMPLETE"


def create_error_response(
    status_code: int,
    code: str,
    message: str,
    trace_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    envelope = ErrorEnvelope(code=code, message=message, trace_id=trace_id, details=details)
    return JSONResponse(
        status_code=status_code,
        content={
            "code": envelope.code,
            "message": envelope.message,
            "trace_id": envelope.trace_id,
            **({"details": envelope.details} if envelope.details else {}),
        },
    )


def extract_trace_id(request: Request) -> str | None:
    """Trace ID depuis l'en-tête `X-Trace-ID`, sinon celui posé par le middleware."""
    trace_id = request.headers.get("X-Trace-ID")
    if trace_id:
        return trace_id
    return getattr(request.state, "trace_id", None)


def handle_api_error(request: Request, exc: APIError) -> JSONResponse:
    trace_id = extract_trace_id(request) or exc.trace_id
    log.warning(
        "api_error",
        code=exc.code,
        error_message=exc.message,
        status_code=exc.status_code,
        trace_id=trace_id,
    )
    return create_error_response(exc.status_code, exc.code, exc.message, trace_id, exc.details)


def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    trace_id = extract_trace_id(request)
    code = _STATUS_CODES.get(exc.status_code, "HTTP_ERROR")
    log.warning("http_exception", code=code, status_code=exc.status_code, trace_id=trace_id)
    return create_error_response(exc.status_code, code, str(exc.detail), trace_id)


def handle_oracle_error(request: Request, exc: OracleError) -> JSONResponse:
    """Erreurs du domaine: événement refusé ou profil incomplet -> 409."""
    trace_id = extract_trace_id(request)
    if isinstance(exc, InvalidEventError):
        code = ErrorCodes.INVALID_EVENT
    elif isinstance(exc, ProfileIncompleteError):
        code = ErrorCodes.PROFILE_INCOMPLETE
    else:
        code = ErrorCodes.CONFLICT
    log.warning("domain_error", code=code, error_message=str(exc), trace_id=trace_id)
    return create_error_response(HTTP_CONFLICT, code, str(exc), trace_id)


def handle_generic_exception(request: Request, exc: Exception) -> JSONResponse:
    trace_id = extract_trace_id(request)
    log.error(
        "unexpected_error",
        trace_id=trace_id,
        exception_type=type(exc).__name__,
        exc_info=True,
    )
    return create_error_response(
        HTTP_INTERNAL_SERVER_ERROR,
        ErrorCodes.INTERNAL_ERROR,
        "An unexpected error occurred",
        trace_id,
    )


def not_found(message: str, trace_id: str | None = None) -> APIError:
    return APIError(HTTP_NOT_FOUND, ErrorCodes.NOT_FOUND, message, trace_id)

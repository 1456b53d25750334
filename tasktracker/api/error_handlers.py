"""Common exception handlers for API responses."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from tasktracker.api.response_utils import build_meta
from tasktracker.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PreconditionError,
    StorageError,
    TaskTrackerException,
)
from tasktracker.core.logging import get_logger
from tasktracker.schemas.response import ResponseError, ResponseEnvelope


logger = get_logger(__name__)

EXCEPTION_RESPONSE_MAP: dict[type[Exception], tuple[int, str]] = {
    NotFoundError: (status.HTTP_404_NOT_FOUND, "NotFoundError"),
    ConflictError: (status.HTTP_409_CONFLICT, "ConflictError"),
    PreconditionError: (status.HTTP_400_BAD_REQUEST, "PreconditionError"),
    AuthenticationError: (status.HTTP_401_UNAUTHORIZED, "AuthenticationError"),
    AuthorizationError: (status.HTTP_403_FORBIDDEN, "AuthorizationError"),
    StorageError: (status.HTTP_503_SERVICE_UNAVAILABLE, "StorageError"),
}
DEFAULT_ERROR_CODE = "INTERNAL.UNEXPECTED"


def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers that wrap exceptions in the common envelope."""

    app.add_exception_handler(TaskTrackerException, _domain_exception_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_error_handler)
    app.add_exception_handler(HTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)


def resolve_exception(exc: Exception) -> tuple[int, str]:
    """Status code and error code for a domain exception, honouring subclasses."""

    for cls in type(exc).__mro__:
        if cls in EXCEPTION_RESPONSE_MAP:
            return EXCEPTION_RESPONSE_MAP[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR, DEFAULT_ERROR_CODE


def _compress_detail(detail: Any) -> tuple[str, dict[str, Any] | None]:
    if isinstance(detail, dict):
        message = detail.get("message", str(detail))
        return message, detail.get("details") or detail

    return str(detail), None


def _format_validation_message(errors: list[dict[str, Any]]) -> str:
    if not errors:
        return "Validation error"

    parts: list[str] = []
    for error in errors:
        loc = error.get("loc", [])
        msg = error.get("msg", "Validation error")
        loc_path = ".".join(str(item) for item in loc) if loc else None
        parts.append(f"{loc_path}: {msg}" if loc_path else msg)

    return "; ".join(parts)


def _error_response(
    request: Request,
    status_code: int,
    error: ResponseError,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    envelope = ResponseEnvelope[None](
        success=False,
        data=None,
        error=error,
        meta=build_meta(request),
    )
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(envelope, by_alias=True),
        headers=headers,
    )


async def _domain_exception_handler(request: Request, exc: TaskTrackerException) -> JSONResponse:
    status_code, error_code = resolve_exception(exc)
    if status_code >= 500:
        logger.error("request_failed", path=request.url.path, code=exc.code, error=exc.message)
    else:
        logger.info("request_rejected", path=request.url.path, code=exc.code, error=exc.message)

    return _error_response(
        request,
        status_code,
        ResponseError(code=error_code, message=exc.message),
    )


async def _request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = jsonable_encoder(exc.errors() or [])
    return _error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        ResponseError(
            code="PreconditionError",
            message=_format_validation_message(errors),
            details={"errors": errors},
        ),
    )


async def _http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    message, details = _compress_detail(exc.detail)
    code = getattr(exc, "code", None) or f"HTTP.{exc.status_code}"
    return _error_response(
        request,
        exc.status_code,
        ResponseError(code=code, message=message, details=details),
        headers=getattr(exc, "headers", None),
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_exception", path=request.url.path, error=str(exc))
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ResponseError(code=DEFAULT_ERROR_CODE, message="Unexpected server error."),
    )

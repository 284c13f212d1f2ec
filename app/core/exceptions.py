from __future__ import annotations

import logging
import traceback
from enum import Enum
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings

logger = logging.getLogger("chorely.api.errors")


class ErrorKind(str, Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    VALIDATION = "VALIDATION_ERROR"
    UPSTREAM_FAILURE = "UPSTREAM_FAILURE"


_KIND_BY_STATUS: dict[int, ErrorKind] = {
    status.HTTP_400_BAD_REQUEST: ErrorKind.VALIDATION,
    status.HTTP_401_UNAUTHORIZED: ErrorKind.UNAUTHORIZED,
    status.HTTP_403_FORBIDDEN: ErrorKind.FORBIDDEN,
    status.HTTP_404_NOT_FOUND: ErrorKind.NOT_FOUND,
    status.HTTP_409_CONFLICT: ErrorKind.CONFLICT,
    status.HTTP_422_UNPROCESSABLE_CONTENT: ErrorKind.VALIDATION,
}


def error_kind_for_status(status_code: int) -> ErrorKind:
    if status_code >= 500:
        return ErrorKind.UPSTREAM_FAILURE
    return _KIND_BY_STATUS.get(status_code, ErrorKind.VALIDATION)


def error_body(kind: ErrorKind, message: str, details: Any | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"error": message, "code": kind.value}
    if details is not None:
        body["details"] = details
    return body


def _failure_details(exc: Exception) -> dict[str, Any]:
    # Report the driver error rather than SQLAlchemy's wrapper, which embeds the statement.
    details: dict[str, Any] = {"reason": str(getattr(exc, "orig", None) or exc)}
    if settings.expose_tracebacks:
        details["traceback"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return details


def _upstream_failure(request: Request, exc: Exception, message: str) -> JSONResponse:
    logger.exception(
        "request.upstream_failure",
        extra={"request_id": getattr(request.state, "request_id", None), "route": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(ErrorKind.UPSTREAM_FAILURE, message, _failure_details(exc)),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    details = None if isinstance(exc.detail, str) else exc.detail
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(error_kind_for_status(exc.status_code), message, details),
        headers=exc.headers,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
        content=error_body(ErrorKind.VALIDATION, "Validation failed", exc.errors()),
    )


async def data_store_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    return _upstream_failure(request, exc, "Data store operation failed")


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return _upstream_failure(request, exc, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, data_store_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

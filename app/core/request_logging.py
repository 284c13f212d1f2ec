from __future__ import annotations

import logging
from time import perf_counter
from typing import Any
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

logger = logging.getLogger("chorely.api.request")

REQUEST_ID_HEADER = "X-Request-Id"
UNLOGGED_PATHS = frozenset({"/health"})


def _resolve_route(request: Request) -> str:
    route_path = getattr(request.scope.get("route"), "path", None)
    return route_path if isinstance(route_path, str) else request.url.path


def _request_context(request: Request, *, started: float, status_code: int) -> dict[str, Any]:
    return {
        "request_id": request.state.request_id,
        "caller": getattr(request.state, "caller", None),
        "family_id": getattr(request.state, "family_id", None),
        "profile_id": getattr(request.state, "profile_id", None),
        "route": _resolve_route(request),
        "method": request.method,
        "status_code": status_code,
        "execution_time_ms": round((perf_counter() - started) * 1000, 2),
    }


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = perf_counter()
        request.state.request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("request.failed", extra=_request_context(request, started=started, status_code=500))
            raise

        response.headers[REQUEST_ID_HEADER] = request.state.request_id
        if request.url.path in UNLOGGED_PATHS:
            return response

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "request.completed",
            extra=_request_context(request, started=started, status_code=response.status_code),
        )
        return response

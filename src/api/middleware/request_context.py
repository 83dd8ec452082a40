from __future__ import annotations

import logging
from time import perf_counter

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.ops.events import (
    CORRELATION_ID_HEADER,
    new_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


def _request_payload(request: Request, duration_ms: int) -> dict[str, object]:
    return {
        "method": request.method,
        "path": request.url.path,
        "duration_ms": duration_ms,
    }


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tag every request with a correlation id and log its outcome.

    An incoming ``x-request-id`` is reused so callers can trace a signup across
    services; otherwise a fresh id is minted and echoed in the response.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = request.headers.get(CORRELATION_ID_HEADER) or new_correlation_id()
        token = set_correlation_id(correlation_id)
        request.state.correlation_id = correlation_id
        start = perf_counter()

        try:
            response: Response = await call_next(request)
        except Exception:
            logger.exception(
                "Unhandled error on %s %s",
                request.method,
                request.url.path,
                extra={
                    "event_type": "api.request.failed",
                    "correlation_id": correlation_id,
                    "ops_payload": _request_payload(request, int((perf_counter() - start) * 1000)),
                },
            )
            raise
        else:
            duration_ms = int((perf_counter() - start) * 1000)
            response.headers["X-Request-Id"] = correlation_id
            payload = _request_payload(request, duration_ms)
            payload["status_code"] = response.status_code
            logger.info(
                "%s %s -> %d (%dms)",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
                extra={
                    "event_type": "api.request.completed",
                    "correlation_id": correlation_id,
                    "ops_payload": payload,
                },
            )
            return response
        finally:
            reset_correlation_id(token)

from __future__ import annotations

from opentelemetry import trace
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from healthfin.context import correlation_scope


CORRELATION_HEADER = "x-correlation-id"
MAX_CORRELATION_ID_LENGTH = 128


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Reads ``x-correlation-id`` (or mints one) and echoes it on the response."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[no-untyped-def]
        incoming = request.headers.get(CORRELATION_HEADER, "").strip()[:MAX_CORRELATION_ID_LENGTH]
        with correlation_scope(incoming or None) as correlation_id:
            request.state.correlation_id = correlation_id
            span = trace.get_current_span()
            if span.is_recording():
                span.set_attribute("correlation_id", correlation_id)
            response = await call_next(request)

        response.headers[CORRELATION_HEADER] = correlation_id
        return response

from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from healthfin.metrics import observe_http_request, resolve_http_path_label


logger = logging.getLogger("healthfin.request")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore[no-untyped-def]
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            self._record(request, 500, started, level=logging.ERROR)
            raise

        self._record(request, response.status_code, started)
        return response

    @staticmethod
    def _record(request: Request, status_code: int, started: float, *, level: int = logging.INFO) -> None:
        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        path = resolve_http_path_label(request)
        observe_http_request(method=request.method, path=path, status=status_code, duration=duration_ms / 1000)
        logger.log(
            level,
            "http.error" if level >= logging.ERROR else "http.request",
            exc_info=level >= logging.ERROR,
            extra={
                "method": request.method,
                "path": path,
                "status_code": status_code,
                "duration_ms": duration_ms,
            },
        )

from __future__ import annotations

import re

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.requests import Request


http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)

ledger_sync_total = Counter(
    "ledger_sync_total",
    "Ledger mirror syncs by source table and outcome",
    ["source_table", "outcome"],
)

ledger_rows_written_count = Counter(
    "ledger_rows_written_count",
    "Financial event rows inserted or updated by the ledger mirror",
)

ledger_rows_pruned_count = Counter(
    "ledger_rows_pruned_count",
    "Stale financial event rows deleted by the ledger mirror",
)

statement_compile_total = Counter(
    "statement_compile_total",
    "Compiled financial statements by code and scope",
    ["statement_code", "scope"],
)

statement_compile_duration_seconds = Histogram(
    "statement_compile_duration_seconds",
    "Statement compilation duration in seconds",
    ["statement_code"],
)

statement_anchor_missing_total = Counter(
    "statement_anchor_missing_total",
    "Derived statement rows skipped because an anchor line is missing",
    ["statement_code", "anchor"],
)


_INT_RE = re.compile(r"/\d+\b")
_PATH_PARAM_RE = re.compile(r"\{[^{}]+\}")


def resolve_http_path_label(request: Request) -> str:
    route = request.scope.get("route")
    if route is not None:
        path_format = getattr(route, "path_format", None) or getattr(route, "path", None)
        if isinstance(path_format, str) and path_format:
            return _PATH_PARAM_RE.sub("{id}", path_format)
    return _INT_RE.sub("/{id}", request.url.path)


def observe_http_request(method: str, path: str, status: int, duration: float) -> None:
    http_requests_total.labels(method=method, path=path, status=str(status)).inc()
    http_request_duration_seconds.labels(method=method, path=path).observe(duration)


def observe_ledger_sync(source_table: str, outcome: str, *, written: int = 0, pruned: int = 0) -> None:
    ledger_sync_total.labels(source_table=source_table, outcome=outcome).inc()
    if written > 0:
        ledger_rows_written_count.inc(written)
    if pruned > 0:
        ledger_rows_pruned_count.inc(pruned)


def observe_statement_compile(statement_code: str, scope: str, duration: float) -> None:
    statement_compile_total.labels(statement_code=statement_code, scope=scope).inc()
    statement_compile_duration_seconds.labels(statement_code=statement_code).observe(duration)


def observe_anchor_missing(statement_code: str, anchor: str) -> None:
    statement_anchor_missing_total.labels(statement_code=statement_code, anchor=anchor).inc()


def generate_metrics_payload() -> bytes:
    return generate_latest()


def metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST

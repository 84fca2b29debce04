"""
Request timing and correlation ids.

Every response carries X-Request-ID (echoed from the UI when it sent one)
and X-Request-Duration-Ms. Transition writes proxy an upload and a POST to
the backend, so they get a looser slow-request threshold than reads.
"""

import logging
import time
import uuid

from flask import Flask, g, request

logger = logging.getLogger(__name__)

_UNLOGGED_PREFIXES = ("/api/v1/health/",)

SLOW_READ_MS = 1500
SLOW_WRITE_MS = 5000


def _slow_threshold_ms() -> int:
    return SLOW_WRITE_MS if request.method == "POST" else SLOW_READ_MS


def _level_for(status_code: int, duration_ms: float) -> int:
    if status_code >= 500:
        return logging.ERROR
    if duration_ms > _slow_threshold_ms():
        return logging.WARNING
    return logging.DEBUG


def init_request_timing(app: Flask):
    @app.before_request
    def _stamp_request():
        g.request_started = time.perf_counter()
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:16]

    @app.after_request
    def _finish_request(response):
        started = getattr(g, "request_started", None)
        if started is None:
            return response

        duration_ms = round((time.perf_counter() - started) * 1000, 1)
        response.headers["X-Request-ID"] = g.request_id
        response.headers["X-Request-Duration-Ms"] = str(duration_ms)

        if request.path.startswith(_UNLOGGED_PREFIXES):
            return response

        logger.log(
            _level_for(response.status_code, duration_ms),
            "%s %s -> %d in %.0fms",
            request.method, request.full_path.rstrip("?"), response.status_code, duration_ms,
            extra={
                "method": request.method,
                "path": request.path,
                "status": response.status_code,
                "duration_ms": duration_ms,
                "application_id": (request.view_args or {}).get("application_id"),
            },
        )
        return response

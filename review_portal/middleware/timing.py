"""
Request timing and access log.

Every response carries X-Request-ID (echoed from the caller or generated)
and X-Request-Duration-Ms. API requests get one access-log line; the level
depends on the outcome:

    5xx                       → ERROR
    slower than SLOW_REQUEST_MS → WARNING
    4xx                       → INFO
    otherwise                 → DEBUG
"""

import logging
import time
import uuid

from flask import Flask, g, request

logger = logging.getLogger(__name__)

SLOW_REQUEST_MS = 1000

# Probes are polled constantly; keep them out of the access log.
_QUIET_PREFIXES = ("/api/v1/health",)


def _access_level(status: int, duration_ms: float) -> int:
    if status >= 500:
        return logging.ERROR
    if duration_ms > SLOW_REQUEST_MS:
        return logging.WARNING
    if status >= 400:
        return logging.INFO
    return logging.DEBUG


def init_request_timing(app: Flask):
    """Register the before/after hooks."""

    @app.before_request
    def _start_clock():
        g.request_started = time.perf_counter()
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]

    @app.after_request
    def _stop_clock(response):
        started = g.get("request_started")
        if started is None:
            return response

        duration_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Request-ID"] = g.request_id
        response.headers["X-Request-Duration-Ms"] = f"{duration_ms:.1f}"

        if request.path.startswith("/api/") and not request.path.startswith(_QUIET_PREFIXES):
            logger.log(
                _access_level(response.status_code, duration_ms),
                "%s %s -> %d",
                request.method, request.path, response.status_code,
                extra={
                    "method": request.method,
                    "path": request.path,
                    "status": response.status_code,
                    "duration_ms": duration_ms,
                    "remote_addr": request.remote_addr,
                },
            )
        return response

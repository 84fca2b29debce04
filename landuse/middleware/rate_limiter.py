"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter.
The Limiter instance is created in landuse/__init__.py with no default limits;
this module applies granular limits per route category.

Transition routes are the only ones that append to an application's audit
trail, so their POSTs get a tight per-user limit. The backend has no
idempotency keys; a double-clicked "Forward" would otherwise land twice.

Usage:
    from landuse.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

from flask import g, request as flask_request

logger = logging.getLogger(__name__)

TRANSITION_WRITE_LIMIT = "20/minute"
READ_LIMIT = "300/minute"


def _session_rate_limit_key():
    """Rate limit key: backend user id when known, else remote IP."""
    session_ctx = getattr(g, "session_ctx", None)
    if session_ctx is not None and session_ctx.user_id:
        return f"user:{session_ctx.user_id}"
    return flask_request.remote_addr or "unknown"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits:
        - Transition writes (POST on workflow routes): 20/minute per user
        - Read endpoints (stages, navigation):        300/minute per IP
        - Health check:                               exempt

    Rate limiting is disabled in testing mode.
    """
    if app.config.get("TESTING") or not app.config.get("RATELIMIT_ENABLED", True):
        app.logger.info("Rate limiter disabled")
        return

    bp = app.blueprints.get("workflow_bp")
    if bp:
        limiter.limit(
            TRANSITION_WRITE_LIMIT,
            key_func=_session_rate_limit_key,
            methods=["POST"],
        )(bp)

    for bp_name in ("stages_bp", "navigation_bp"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(READ_LIMIT)(bp)

    bp = app.blueprints.get("health_bp")
    if bp:
        limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured: transition writes: %s, reads: %s",
        TRANSITION_WRITE_LIMIT, READ_LIMIT,
    )

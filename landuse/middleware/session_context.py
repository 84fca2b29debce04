"""
Session Context Middleware — builds g.session_ctx from the incoming request.

The backend issues the access token after OTP login; the portal UI forwards
it on every call together with the role and permission keys it received at
login time.

Lookup order per field:
  1. Headers:  Authorization: Bearer <token>, X-User-Role, X-User-Access
  2. Cookies:  accessToken, userRole, userAccess, userId

The user id comes from the ``userId`` cookie, else from the token's ``sub``
claim. The token is decoded WITHOUT signature verification: the backend
owns the signing key and re-validates the token on every proxied call, we
only need the subject for rate-limit keying and logging.
"""

import json
import logging

import jwt as pyjwt
from flask import g, request

from landuse.models.session import ANONYMOUS, SessionContext

logger = logging.getLogger(__name__)

# Paths that never need a caller context
SESSION_SKIP_PREFIXES = (
    "/api/v1/health",
    "/static/",
)


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return request.cookies.get("accessToken") or None


def parse_access_keys(raw: str | None) -> tuple[str, ...]:
    """Parse a JSON array of permission keys; malformed input grants nothing."""
    if not raw:
        return ()
    try:
        keys = json.loads(raw)
    except ValueError:
        logger.warning("Failed to parse user access list: %.80s", raw)
        return ()
    if not isinstance(keys, list):
        return ()
    return tuple(str(k) for k in keys if k)


def subject_from_token(token: str | None) -> str | None:
    if not token:
        return None
    try:
        payload = pyjwt.decode(token, options={"verify_signature": False})
    except pyjwt.InvalidTokenError:
        return None
    sub = payload.get("sub")
    return str(sub) if sub is not None else None


def build_session_context() -> SessionContext:
    token = _bearer_token()
    if not token:
        return ANONYMOUS

    role = request.headers.get("X-User-Role") or request.cookies.get("userRole")
    access_raw = request.headers.get("X-User-Access") or request.cookies.get("userAccess")
    user_id = request.cookies.get("userId") or subject_from_token(token)

    return SessionContext(
        access_token=token,
        role=role or None,
        access=parse_access_keys(access_raw),
        user_id=user_id,
    )


def init_session_context(app):
    """Register the session context builder as a before_request hook."""

    @app.before_request
    def _session_context():
        g.session_ctx = ANONYMOUS

        path = request.path
        if not path.startswith("/api/v1/"):
            return
        for prefix in SESSION_SKIP_PREFIXES:
            if path.startswith(prefix):
                return

        g.session_ctx = build_session_context()

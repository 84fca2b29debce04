"""
Change of Land Use Portal
Blueprint registry and shared request/response helpers.
"""

from flask import g, jsonify, request

from landuse.models.session import ANONYMOUS
from landuse.services.transition_executor import ErrorKind
from landuse.utils.errors import E, api_error

# ErrorKind → machine-readable error code (HTTP status follows the code)
ERROR_KIND_CODES: dict[ErrorKind, str] = {
    ErrorKind.VALIDATION: E.VALIDATION_INVALID,
    ErrorKind.MISSING_ORIGINATOR: E.MISSING_ORIGINATOR,
    ErrorKind.UPLOAD_FAILURE: E.UPLOAD_FAILED,
    ErrorKind.SUBMISSION_FAILURE: E.SUBMISSION_FAILED,
    ErrorKind.NETWORK: E.BACKEND_UNREACHABLE,
    ErrorKind.TIMEOUT: E.BACKEND_TIMEOUT,
}


def session_ctx():
    return getattr(g, "session_ctx", ANONYMOUS)


def require_session():
    """Return (ctx, None) or (None, 401 response) when no token was sent."""
    ctx = session_ctx()
    if not ctx.is_authenticated:
        return None, api_error(E.UNAUTHENTICATED, "Authentication token not found.")
    return ctx, None


def page_args(default_limit=10, max_limit=100):
    """Read page/limit query params.

    Query params:
        page   — 1-based page number (default 1)
        limit  — page size (default default_limit, capped at max_limit)

    Returns:
        (page, limit)
    """
    try:
        page = max(int(request.args.get("page", 1)), 1)
    except (ValueError, TypeError):
        page = 1
    try:
        limit = min(max(int(request.args.get("limit", default_limit)), 1), max_limit)
    except (ValueError, TypeError):
        limit = default_limit
    return page, limit


def kind_error(kind: ErrorKind | None, message: str, details: dict | None = None):
    code = ERROR_KIND_CODES.get(kind, E.INTERNAL) if kind else E.INTERNAL
    body_details = dict(details or {})
    if kind:
        body_details.setdefault("error_kind", kind.value)
    return api_error(code, message, details=body_details or None)


def transition_response(result, success_status=200):
    """Serialise a TransitionResult: 2xx on success, mapped error otherwise."""
    if result.ok:
        return jsonify(result.to_dict()), success_status
    details = {}
    if result.uploaded_filename:
        details["uploaded_filename"] = result.uploaded_filename
    return kind_error(result.error_kind, result.message or "Transition failed", details)

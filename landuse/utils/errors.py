"""JSON error bodies for the portal API.

Every error the UI receives has the same shape::

    {"error": "<toast text>", "code": "<E.* constant>", "request_id": "...",
     "details": {...}}

``details`` is omitted when empty. ``request_id`` matches the X-Request-ID
response header so a support ticket can be matched to the server log.

Usage
-----
    from landuse.utils.errors import api_error, E

    return api_error(E.NOT_FOUND, "Application not found")
    return api_error(E.UPLOAD_FAILED, "Could not upload", details={"error_kind": "UPLOAD_FAILURE"})
"""

from __future__ import annotations

from flask import g, has_request_context, jsonify


class E:
    """Error codes. ``ERR_`` for request problems, ``WORKFLOW_`` for engine outcomes."""

    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"
    UNAUTHENTICATED = "ERR_UNAUTHENTICATED"
    NOT_FOUND = "ERR_NOT_FOUND"
    INTERNAL = "ERR_INTERNAL"

    MISSING_ORIGINATOR = "WORKFLOW_MISSING_ORIGINATOR"
    UPLOAD_FAILED = "WORKFLOW_UPLOAD_FAILED"
    SUBMISSION_FAILED = "WORKFLOW_SUBMISSION_FAILED"
    BACKEND_UNREACHABLE = "WORKFLOW_BACKEND_UNREACHABLE"
    BACKEND_TIMEOUT = "WORKFLOW_BACKEND_TIMEOUT"


HTTP_STATUS: dict[str, int] = {
    E.VALIDATION_REQUIRED: 400,
    E.UNAUTHENTICATED: 401,
    E.NOT_FOUND: 404,
    E.VALIDATION_INVALID: 422,
    E.MISSING_ORIGINATOR: 422,
    E.INTERNAL: 500,
    # The backend failed us, not the caller
    E.UPLOAD_FAILED: 502,
    E.SUBMISSION_FAILED: 502,
    E.BACKEND_UNREACHABLE: 502,
    E.BACKEND_TIMEOUT: 504,
}


def api_error(code: str, message: str, *, status: int | None = None, details: dict | None = None):
    """Build ``(response, status)`` for a Flask view.

    The status comes from ``status`` when given, else ``HTTP_STATUS[code]``,
    else 400.
    """
    body: dict = {"error": message, "code": code}
    if has_request_context() and getattr(g, "request_id", None):
        body["request_id"] = g.request_id
    if details:
        body["details"] = details
    return jsonify(body), status or HTTP_STATUS.get(code, 400)

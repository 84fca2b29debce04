"""
Navigation blueprint — role-based dashboard access.

Endpoints:
    GET  /api/v1/navigation/routes     routes the caller may open
    POST /api/v1/navigation/redirect   where to send the caller for a path
    GET  /api/v1/navigation/menu       sidebar tree filtered by access

Access keys come from the request's session context, or from an explicit
``access`` list in the POST body (UI pre-checks before login completes).
"""

import logging

from flask import Blueprint, jsonify, request

from landuse.blueprints import session_ctx
from landuse.models.navigation import MENU_TREE
from landuse.services.access_control import compute_allowed_routes, resolve_redirect, visible_menu
from landuse.utils.errors import E, api_error

logger = logging.getLogger(__name__)

navigation_bp = Blueprint("navigation_bp", __name__, url_prefix="/api/v1/navigation")


@navigation_bp.route("/routes", methods=["GET"])
def allowed_routes():
    ctx = session_ctx()
    routes = compute_allowed_routes(MENU_TREE, ctx.access)
    return jsonify({"routes": routes, "role": ctx.role})


@navigation_bp.route("/redirect", methods=["POST"])
def redirect_target():
    """Body: {path, query?: {type}, access?: [..]} → {redirect: str | null}."""
    data = request.get_json(silent=True) or {}
    path = data.get("path")
    if not path or not isinstance(path, str):
        return api_error(E.VALIDATION_REQUIRED, "path is required")

    access = data.get("access")
    if access is None:
        access = session_ctx().access
    elif not isinstance(access, list) or not all(isinstance(key, str) for key in access):
        return api_error(E.VALIDATION_INVALID, "access must be a list of keys")

    query = data.get("query") if isinstance(data.get("query"), dict) else {}
    routes = compute_allowed_routes(MENU_TREE, access)
    target = resolve_redirect(path, routes, query)
    if target:
        logger.debug("Redirecting %s → %s", path, target)
    return jsonify({"path": path, "redirect": target, "routes": routes})


@navigation_bp.route("/menu", methods=["GET"])
def menu():
    items = visible_menu(MENU_TREE, session_ctx().access)
    return jsonify({"items": [item.to_dict() for item in items]})

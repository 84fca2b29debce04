"""
Health check blueprint.

Endpoints:
    GET /api/v1/health/ready  — simple 200 for load balancers
    GET /api/v1/health/live   — configuration summary and stage registry state
"""

import logging

from flask import Blueprint, current_app, jsonify

from landuse.integrations import backend_gateway as gw_module
from landuse.services.stage_registry import list_stage_ids, registry_conflicts

logger = logging.getLogger(__name__)

health_bp = Blueprint("health_bp", __name__, url_prefix="/api/v1/health")


@health_bp.route("/ready", methods=["GET"])
def ready():
    """Simple readiness probe — always 200 if app is running."""
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    """Liveness check. Does not call the backend; it has its own probes."""
    gateway = gw_module.backend_gateway
    checks = {
        "backend": {
            "base_url": gateway.base_url,
            "timeout_s": gateway.timeout,
            "upload_timeout_s": gateway.upload_timeout,
        },
        "stage_registry": {
            "workflow_ids": len(list_stage_ids()),
            "shared_ids": sorted(registry_conflicts()),
        },
        "app": {
            "name": "Change of Land Use Portal",
            "debug": current_app.debug,
            "testing": current_app.testing,
        },
    }
    return jsonify({"status": "ok", "checks": checks}), 200

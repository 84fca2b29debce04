"""
Stage blueprint — workflow id lookups and stage queues.

Endpoints:
    GET /api/v1/stages                               full stage table
    GET /api/v1/stages/resolve?stage=&type=          workflow id for a stage
    GET /api/v1/stages/<stage>/applications?type=&page=&limit=
"""

import logging

from flask import Blueprint, jsonify, request

from landuse.blueprints import kind_error, page_args, require_session
from landuse.core.exceptions import NotFoundError
from landuse.models.stages import STAGE_TABLE
from landuse.services import application_service
from landuse.services.stage_registry import (
    describe_workflow_id,
    registry_conflicts,
    resolve_workflow_id,
    stages_for_role,
)
from landuse.utils.errors import E, api_error

logger = logging.getLogger(__name__)

stages_bp = Blueprint("stages_bp", __name__, url_prefix="/api/v1/stages")


@stages_bp.errorhandler(NotFoundError)
def _handle_not_found(error: NotFoundError):
    return api_error(E.NOT_FOUND, str(error))


def _stage_dict(definition) -> dict:
    return {
        "stage": definition.key,
        "display_name": definition.display_name,
        "roles": [r.value for r in definition.roles],
        "conversion": definition.conversion_id,
        "diversion": definition.diversion_id,
        "variant_independent": definition.variant_independent,
    }


@stages_bp.route("", methods=["GET"])
def list_stages():
    """Stage table, optionally narrowed to one role (?role=DLC)."""
    role = request.args.get("role")
    definitions = stages_for_role(role) if role else list(STAGE_TABLE)
    return jsonify({
        "items": [_stage_dict(d) for d in definitions],
        "total": len(definitions),
        "conflicts": {str(k): v for k, v in registry_conflicts().items()},
    })


@stages_bp.route("/resolve", methods=["GET"])
def resolve():
    stage = request.args.get("stage", "").strip()
    if not stage:
        return api_error(E.VALIDATION_REQUIRED, "stage is required")
    variant = request.args.get("type")
    workflow_sequence_id = resolve_workflow_id(stage, variant)
    descriptor = describe_workflow_id(workflow_sequence_id)
    return jsonify({
        "stage": stage,
        "type": variant,
        "workflow_sequence_id": workflow_sequence_id,
        "descriptor": descriptor.to_dict() if descriptor else None,
    })


@stages_bp.route("/<stage>/applications", methods=["GET"])
def stage_applications(stage):
    ctx, err = require_session()
    if err:
        return err
    page, limit = page_args()
    result, err = application_service.list_stage_applications(
        stage, request.args.get("type"), ctx, page=page, limit=limit,
    )
    if err:
        return kind_error(err["kind"], err["error"])
    return jsonify(result)

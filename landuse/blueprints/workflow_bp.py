"""
Workflow blueprint — application detail, history and every transition.

Endpoints
─────────
  GET  /api/v1/applications/<id>                 application + history + action
  GET  /api/v1/applications/<id>/workflow        history only
  GET  /api/v1/applications/pending-with-me       per-stage counts for the caller
  POST /api/v1/applications/<id>/forward         forward (status 1)
  POST /api/v1/applications/<id>/reject          reject (status 0)
  POST /api/v1/applications/<id>/update-status   status report with date
  POST /api/v1/applications/<id>/survey          survey checklist report
  POST /api/v1/applications/<id>/marsac          MARSAC area report
  POST /api/v1/applications/<id>/fee-report      fee assessment
  POST /api/v1/applications/batch-forward        several applications at once
  POST /api/v1/applications/<id>/reverification  send back to the sender

Transition routes accept JSON or multipart/form-data. In multipart
requests the file goes under the backend upload field name of the action
(e.g. ``forward_attachment``) or under ``attachment``.
"""

import json
import logging

from flask import Blueprint, current_app, jsonify, request

from landuse.blueprints import kind_error, require_session, transition_response
from landuse.core.exceptions import NotFoundError, ValidationError
from landuse.services import application_service
from landuse.services import report_transitions as reports
from landuse.services.action_context import action_for_tag, ActionType
from landuse.services.reverification import current_item, request_reverification
from landuse.services.transition_executor import (
    Attachment,
    batch_forward,
    submit_multi_transition,
    submit_transition,
    upload_attachment,
)
from landuse.utils.errors import E, api_error

logger = logging.getLogger(__name__)

workflow_bp = Blueprint("workflow_bp", __name__, url_prefix="/api/v1/applications")

BATCH_MODES = ("array", "independent")


# ── Error handlers ────────────────────────────────────────────────────────────


@workflow_bp.errorhandler(NotFoundError)
def _handle_not_found(error: NotFoundError):
    return api_error(E.NOT_FOUND, str(error))


@workflow_bp.errorhandler(ValidationError)
def _handle_validation(error: ValidationError):
    return api_error(E.VALIDATION_INVALID, str(error), details=error.details or None)


# ── Request helpers ───────────────────────────────────────────────────────────


def _form() -> dict:
    """Transition input from a JSON body or from multipart form fields."""
    if request.is_json:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}
    return request.form.to_dict()


def _attachment(*field_names: str) -> Attachment | None:
    for name in (*field_names, "attachment"):
        found = Attachment.from_file_storage(request.files.get(name))
        if found is not None:
            return found
    return None


def _forward_status_id(form: dict):
    return form.get("verification_status_id") or current_app.config["FORWARD_VERIFICATION_STATUS_ID"]


def _parse_ids(raw) -> list[int]:
    if isinstance(raw, str):
        raw = [part for part in raw.split(",") if part.strip()]
    if not isinstance(raw, list):
        raise ValidationError("application_ids must be a list", details={"application_ids": "required"})
    try:
        return [int(value) for value in raw]
    except (TypeError, ValueError):
        raise ValidationError(
            "application_ids must contain integers",
            details={"application_ids": "must be a list of integers"},
        ) from None


def _parse_answers(raw) -> dict:
    if raw in (None, ""):
        return {}
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            raise ValidationError("answers must be a JSON object", details={"answers": "invalid JSON"}) from None
    if not isinstance(raw, dict):
        raise ValidationError("answers must be a JSON object", details={"answers": "must be an object"})
    return {str(k): v in (True, 1, "1", "true", "yes", "on") for k, v in raw.items()}


# ═════════════════════════════════════════════════════════════════════════════
# Reads
# ═════════════════════════════════════════════════════════════════════════════


@workflow_bp.route("/<int:application_id>", methods=["GET"])
def get_application(application_id):
    """Application detail with history and the action the caller may take."""
    ctx, err = require_session()
    if err:
        return err
    view, err = application_service.get_application_view(
        application_id,
        ctx,
        workflow_sequence_id=request.args.get("workflow_sequence_id", type=int),
        action_context=request.args.get("actionContext"),
    )
    if err:
        return kind_error(err["kind"], err["error"])
    return jsonify(view)


@workflow_bp.route("/<int:application_id>/workflow", methods=["GET"])
def get_workflow(application_id):
    ctx, err = require_session()
    if err:
        return err
    history, err = application_service.fetch_history(application_id, ctx)
    if err:
        return kind_error(err["kind"], err["error"])
    return jsonify({"items": [item.to_dict() for item in history], "total": len(history)})


@workflow_bp.route("/pending-with-me", methods=["GET"])
def pending():
    ctx, err = require_session()
    if err:
        return err
    data, err = application_service.pending_with_me(ctx)
    if err:
        return kind_error(err["kind"], err["error"])
    return jsonify({"data": data})


# ═════════════════════════════════════════════════════════════════════════════
# Single-application transitions
# ═════════════════════════════════════════════════════════════════════════════


@workflow_bp.route("/<int:application_id>/forward", methods=["POST"])
def forward(application_id):
    ctx, err = require_session()
    if err:
        return err
    form = _form()
    req = reports.forward_request(form.get("remark"), _forward_status_id(form), form.get("date"))
    result = submit_transition(
        application_id, req, ctx,
        attachment=_attachment("forward_attachment"),
        field_name="forward_attachment",
    )
    return transition_response(result)


@workflow_bp.route("/<int:application_id>/reject", methods=["POST"])
def reject(application_id):
    ctx, err = require_session()
    if err:
        return err
    form = _form()
    req = reports.reject_request(form.get("remark"), _forward_status_id(form))
    result = submit_transition(
        application_id, req, ctx,
        attachment=_attachment("reject_attachment"),
        field_name="reject_attachment",
    )
    return transition_response(result)


@workflow_bp.route("/<int:application_id>/update-status", methods=["POST"])
def update_status(application_id):
    ctx, err = require_session()
    if err:
        return err
    form = _form()
    req = reports.update_status_request(form.get("status"), form.get("date"), form.get("remark"))
    result = submit_transition(
        application_id, req, ctx,
        attachment=_attachment("workflow_attachment"),
        field_name="workflow_attachment",
    )
    return transition_response(result)


@workflow_bp.route("/<int:application_id>/fee-report", methods=["POST"])
def fee_report(application_id):
    ctx, err = require_session()
    if err:
        return err
    form = _form()
    req = reports.fee_request(form.get("status"), form.get("date"), form.get("amount"), form.get("remark"))
    result = submit_transition(
        application_id, req, ctx,
        attachment=_attachment("fee_report_image"),
        field_name="fee_report_image",
    )
    return transition_response(result)


@workflow_bp.route("/<int:application_id>/marsac", methods=["POST"])
def marsac_report(application_id):
    ctx, err = require_session()
    if err:
        return err
    form = _form()
    attachment = _attachment("marsac_file")
    req = reports.marsac_request(
        form.get("previously_occupied_area"),
        form.get("previously_occupied_area_unit_id"),
        form.get("exactly_occupied_area"),
        form.get("exactly_occupied_area_unit_id"),
        form.get("remark"),
        verification_status_id=_forward_status_id(form),
        marsac_file_name=attachment.filename if attachment else None,
    )
    result = submit_transition(application_id, req, ctx, attachment=attachment, field_name="marsac_file")
    return transition_response(result)


@workflow_bp.route("/<int:application_id>/survey", methods=["POST"])
def survey_report(application_id):
    """Survey report. ``form_type`` names the variant (Survey, KML_Survey, Survey_2..4)."""
    ctx, err = require_session()
    if err:
        return err
    form = _form()
    kind = action_for_tag(form.get("form_type"))
    if kind is None or kind.type != ActionType.SURVEY:
        raise ValidationError("form_type must name a survey variant", details={"form_type": "invalid"})

    survey_args = dict(
        kind=kind,
        answers=_parse_answers(form.get("answers")),
        status_id=form.get("status"),
        remark=form.get("remark"),
        land_schedule=form.get("land_schedule"),
        latitude=form.get("latitude"),
        longitude=form.get("longitude"),
    )
    # Validate before any upload happens
    req = reports.survey_request(**survey_args)

    kml = _attachment("survey_kml_file") if kind.kml else None
    if kml is not None:
        kml_filename, failure = upload_attachment(kml, "survey_kml_file", ctx)
        if failure is not None:
            return transition_response(failure)
        req = reports.survey_request(**survey_args, kml_filename=kml_filename)

    report_file = Attachment.from_file_storage(request.files.get("survey_report_file"))
    result = submit_transition(
        application_id, req, ctx, attachment=report_file, field_name="survey_report_file",
    )
    return transition_response(result)


@workflow_bp.route("/<int:application_id>/reverification", methods=["POST"])
def reverification(application_id):
    """Loop the application back to the sender of its current step."""
    ctx, err = require_session()
    if err:
        return err
    form = _form()
    history, err = application_service.fetch_history(application_id, ctx)
    if err:
        return kind_error(err["kind"], err["error"])
    result = request_reverification(current_item(history), form.get("remark"), application_id, ctx)
    return transition_response(result)


# ═════════════════════════════════════════════════════════════════════════════
# Batch
# ═════════════════════════════════════════════════════════════════════════════


@workflow_bp.route("/batch-forward", methods=["POST"])
def batch_forward_route():
    """Forward several applications with one remark.

    mode=array       one POST with an id array (default)
    mode=independent one POST per id, concurrently; partial success allowed
    """
    ctx, err = require_session()
    if err:
        return err
    form = _form()
    mode = (form.get("mode") or "array").strip().lower()
    if mode not in BATCH_MODES:
        raise ValidationError(f"mode must be one of {', '.join(BATCH_MODES)}", details={"mode": "invalid"})

    ids = _parse_ids(form.get("application_ids"))
    if not ids:
        return api_error(E.VALIDATION_REQUIRED, "Select at least one application.")

    req = reports.forward_request(form.get("remark"), _forward_status_id(form), form.get("date"))
    attachment = _attachment("forward_attachment")

    if mode == "array":
        result = submit_multi_transition(
            ids, req, ctx, attachment=attachment, field_name="forward_attachment",
        )
        return transition_response(result)

    outcome = batch_forward(
        ids, req, ctx,
        attachment=attachment,
        field_name="forward_attachment",
        max_workers=current_app.config["BATCH_MAX_WORKERS"],
    )
    # 207 when some (not all) applications failed
    if outcome.failed and outcome.succeeded:
        status = 207
    elif outcome.failed:
        status = 502
    else:
        status = 200
    return jsonify(outcome.to_dict()), status

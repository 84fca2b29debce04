"""
Reverification Loop-Back — send an application back to whoever sent it.

The target is the ``from_user_id`` of the current history entry. An entry
without an originator (system-generated steps) cannot be looped back; the
caller gets MISSING_ORIGINATOR and no request is made.
"""

from __future__ import annotations

import logging

from landuse.integrations import backend_gateway as gw_module
from landuse.integrations.backend_gateway import GENERIC_ERROR_MESSAGE, BackendGateway
from landuse.models.application import WorkflowItem
from landuse.models.session import SessionContext
from landuse.services.transition_executor import ErrorKind, TransitionResult, error_kind_for

logger = logging.getLogger(__name__)


def current_item(history: tuple[WorkflowItem, ...] | list[WorkflowItem]) -> WorkflowItem | None:
    """The entry the application currently sits at (last in backend order)."""
    return history[-1] if history else None


def request_reverification(
    current: WorkflowItem | None,
    remark: str | None,
    application_id: int,
    ctx: SessionContext,
    *,
    gateway: BackendGateway | None = None,
) -> TransitionResult:
    if current is None or current.from_user_id is None:
        logger.info("Reverification refused for application %s: no originator", application_id)
        return TransitionResult(
            ok=False,
            message="This step has no sender to send the application back to.",
            error_kind=ErrorKind.MISSING_ORIGINATOR,
        )

    remark = (remark or "").strip()
    if not remark:
        return TransitionResult(
            ok=False,
            message="A remark is required to request reverification.",
            error_kind=ErrorKind.VALIDATION,
        )

    payload = {
        "application_details_id": int(application_id),
        "workflow_sequence_id": current.workflow_sequence_id,
        "to_user_id": current.from_user_id,
        "remark": remark,
    }
    result = (gateway or gw_module.backend_gateway).request_reverification(ctx.access_token, payload)
    if result.ok:
        logger.info(
            "Reverification requested application=%s to_user_id=%s",
            application_id, current.from_user_id,
        )
        return TransitionResult(ok=True, message=result.message, data=result.data)

    logger.warning("Reverification failed application=%s error=%s", application_id, result.error)
    return TransitionResult(
        ok=False,
        message=result.error or GENERIC_ERROR_MESSAGE,
        error_kind=error_kind_for(result, ErrorKind.SUBMISSION_FAILURE),
    )

"""
Application read service — detail view, history and stage queues.

Reads return ``(result, err)`` tuples; ``err`` is None on success or a dict
``{"error": str, "kind": ErrorKind}`` the blueprint turns into a
response. A 404 from the backend raises NotFoundError.
"""

from __future__ import annotations

import logging

from landuse.core.exceptions import NotFoundError
from landuse.integrations import backend_gateway as gw_module
from landuse.integrations.backend_gateway import GENERIC_ERROR_MESSAGE, BackendGateway, GatewayResult
from landuse.models.application import Application, history_from_api
from landuse.models.session import SessionContext
from landuse.services.action_context import action_inputs, resolve_action
from landuse.services.stage_registry import describe_workflow_id, get_stage, resolve_workflow_id
from landuse.services.transition_executor import ErrorKind, error_kind_for

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def _read_error(result: GatewayResult, resource: str, resource_id=None) -> dict:
    if result.status_code == 404:
        raise NotFoundError(resource=resource, resource_id=resource_id)
    # A refused read is reported like an unreachable backend
    return {
        "error": result.error or GENERIC_ERROR_MESSAGE,
        "kind": error_kind_for(result, ErrorKind.NETWORK),
    }


def _gateway(gateway: BackendGateway | None) -> BackendGateway:
    return gateway or gw_module.backend_gateway


def fetch_history(application_id: int, ctx: SessionContext, *, gateway: BackendGateway | None = None):
    """Workflow history in backend order."""
    result = _gateway(gateway).fetch_workflow_history(ctx.access_token, application_id)
    if not result.ok:
        return None, _read_error(result, "Application", application_id)
    return history_from_api(result.data), None


def fetch_statuses(ctx: SessionContext, *, gateway: BackendGateway | None = None) -> list:
    """Status vocabulary for report forms; an outage degrades to an empty list."""
    result = _gateway(gateway).fetch_application_statuses(ctx.access_token)
    if not result.ok:
        logger.warning("Could not load application statuses: %s", result.error)
        return []
    return result.data if isinstance(result.data, list) else []


def get_application_view(
    application_id: int,
    ctx: SessionContext,
    *,
    workflow_sequence_id: int | None = None,
    action_context: str | None = None,
    gateway: BackendGateway | None = None,
):
    """Application, its history and the action the caller may take."""
    gw = _gateway(gateway)
    result = gw.fetch_application(ctx.access_token, application_id, workflow_sequence_id)
    if not result.ok:
        return None, _read_error(result, "Application", application_id)
    if not isinstance(result.data, dict):
        raise NotFoundError(resource="Application", resource_id=application_id)

    application = Application.from_api(result.data, application_id)
    history, err = fetch_history(application.id, ctx, gateway=gw)
    if err:
        return None, err

    kind = resolve_action(application, action_context)
    inputs = action_inputs(application, kind, fetch_statuses(ctx, gateway=gw), workflow_sequence_id)
    stage = describe_workflow_id(inputs.workflow_sequence_id)

    return {
        "application": application.to_dict(),
        "history": [item.to_dict() for item in history],
        "action": kind.to_dict(),
        "action_inputs": inputs.to_dict(),
        "stage": stage.to_dict() if stage else None,
    }, None


def list_stage_applications(
    stage_key: str,
    variant: str | None,
    ctx: SessionContext,
    *,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    gateway: BackendGateway | None = None,
):
    """One page of a stage queue. An unresolved stage lists unfiltered."""
    if get_stage(stage_key) is None:
        raise NotFoundError(resource="Stage", resource_id=stage_key)

    workflow_sequence_id = resolve_workflow_id(stage_key, variant)
    if workflow_sequence_id is None:
        logger.info("Stage %s/%s has no workflow id, listing unfiltered", stage_key, variant)

    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    result = _gateway(gateway).list_applications(
        ctx.access_token,
        page=page,
        limit=limit,
        workflow_sequence_id=workflow_sequence_id,
    )
    if not result.ok:
        return None, _read_error(result, "Stage", stage_key)

    return {
        "stage": stage_key,
        "variant": variant,
        "workflow_sequence_id": workflow_sequence_id,
        "page": page,
        "limit": limit,
        "data": result.data,
    }, None


def pending_with_me(ctx: SessionContext, *, gateway: BackendGateway | None = None):
    """Counts of applications waiting on the caller, as the backend reports them."""
    result = _gateway(gateway).fetch_pending_with_me(ctx.access_token)
    if not result.ok:
        return None, _read_error(result, "Pending applications")
    return result.data if result.data is not None else {}, None

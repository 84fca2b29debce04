"""
Application and workflow-history records as the backend returns them.

Both are read-only views built with ``from_api``: the BFF never edits an
application directly, every change goes through the transition executor
and is followed by a refetch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class Direction(str, Enum):
    FORWARD = "forward"
    REJECT = "reject"
    REVERIFICATION = "reverification"


def _int_or_none(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _float_or_none(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


@dataclass(frozen=True)
class Application:
    """A case record, reduced to the fields the workflow engine reads."""
    id: int
    application_no: str | None = None
    current_workflow_sequence_id: int | None = None
    form_type: str | None = None
    can_edit: bool = False
    can_forward: bool = False
    button_name: str | None = None
    land_purpose_id: int | None = None
    raw: dict = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_api(cls, data: dict, application_id: int | str | None = None) -> "Application":
        """Build from GET /applications/{id}.

        The backend nests the applicant fields under ``owner_details`` on the
        detail endpoint; action flags sit at either level.
        """
        owner = data.get("owner_details") if isinstance(data.get("owner_details"), dict) else {}

        def pick(*keys):
            for key in keys:
                if data.get(key) is not None:
                    return data[key]
                if owner.get(key) is not None:
                    return owner[key]
            return None

        app_id = _int_or_none(pick("id", "application_details_id")) or _int_or_none(application_id)
        if app_id is None:
            raise ValueError("Application payload carries no id")

        return cls(
            id=app_id,
            application_no=pick("application_no", "applictaion_id", "application_id"),
            current_workflow_sequence_id=_int_or_none(
                pick("current_workflow_sequence_id", "workflow_sequence_id")
            ),
            form_type=pick("form_type") or None,
            can_edit=_flag(pick("can_edit")),
            can_forward=_flag(pick("can_forward")),
            button_name=pick("button_name") or None,
            land_purpose_id=_int_or_none(pick("land_purpose_id")),
            raw=data,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "application_no": self.application_no,
            "current_workflow_sequence_id": self.current_workflow_sequence_id,
            "form_type": self.form_type,
            "can_edit": self.can_edit,
            "can_forward": self.can_forward,
            "button_name": self.button_name,
            "land_purpose_id": self.land_purpose_id,
        }


@dataclass(frozen=True)
class WorkflowItem:
    """One immutable entry of an application's workflow history."""
    workflow_sequence_id: int | None
    from_user: str | None
    from_user_id: int | None
    to_user: str | None
    to_user_id: int | None
    status_name: str | None
    status_id: int | None
    remark: str = ""
    attachment: str | None = None
    kml_file: str | None = None
    created_at: str | None = None
    days_held: int | None = None
    highlight: bool = False
    latitude: float | None = None
    longitude: float | None = None
    direction: Direction = Direction.FORWARD

    @classmethod
    def from_api(cls, data: dict) -> "WorkflowItem":
        status = data.get("status")
        if isinstance(status, dict):
            status_name = status.get("name")
            status_id = _int_or_none(status.get("id"))
        else:
            status_name = None
            status_id = _int_or_none(status)

        return cls(
            workflow_sequence_id=_int_or_none(data.get("workflow_sequence_id")),
            from_user=data.get("from_user"),
            from_user_id=_int_or_none(data.get("from_user_id")),
            to_user=data.get("to_user"),
            to_user_id=_int_or_none(data.get("to_user_id")),
            status_name=status_name,
            status_id=status_id,
            remark=data.get("remark") or "",
            attachment=data.get("attachment") or None,
            kml_file=data.get("kml_file") or None,
            created_at=data.get("created_at"),
            days_held=_int_or_none(data.get("days_held")),
            highlight=_flag(data.get("highlight")),
            latitude=_float_or_none(data.get("latitude")),
            longitude=_float_or_none(data.get("longitude")),
            direction=derive_direction(data, status_name),
        )

    def to_dict(self) -> dict:
        return {
            "workflow_sequence_id": self.workflow_sequence_id,
            "from_user": self.from_user,
            "from_user_id": self.from_user_id,
            "to_user": self.to_user,
            "to_user_id": self.to_user_id,
            "status": {"id": self.status_id, "name": self.status_name},
            "remark": self.remark,
            "attachment": self.attachment,
            "kml_file": self.kml_file,
            "created_at": self.created_at,
            "days_held": self.days_held,
            "highlight": self.highlight,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "direction": self.direction.value,
        }


def derive_direction(data: dict, status_name: str | None = None) -> Direction:
    """Classify a history entry as forward, reject or reverification.

    An explicit ``direction`` or ``is_reverification`` from the backend wins;
    otherwise a numeric ``status`` of 0 or a status name mentioning
    rejection marks a reject, anything else is a forward.
    """
    explicit = data.get("direction")
    if isinstance(explicit, str):
        try:
            return Direction(explicit.strip().lower())
        except ValueError:
            logger.debug("Unknown workflow direction %r, deriving instead", explicit)
    if _flag(data.get("is_reverification")):
        return Direction.REVERIFICATION
    if status_name:
        lowered = status_name.lower()
        if "reverif" in lowered:
            return Direction.REVERIFICATION
        if "reject" in lowered:
            return Direction.REJECT
    if not isinstance(data.get("status"), dict) and _int_or_none(data.get("status")) == 0:
        return Direction.REJECT
    return Direction.FORWARD


def history_from_api(items: Any) -> tuple[WorkflowItem, ...]:
    """Parse the history list in backend order; the order is never changed."""
    if not isinstance(items, list):
        return ()
    return tuple(WorkflowItem.from_api(item) for item in items if isinstance(item, dict))

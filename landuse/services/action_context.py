"""
Action Context Resolver — which action UI an application detail page shows.

Resolution order:
  1. ``actionContext`` carried in the navigation URL (the list page the
     reviewer came from states the intent),
  2. the application's own ``form_type``,
  3. capability fallback: ``can_edit`` → EditOnly, else NoAction.

An unknown tag at step 1 or 2 falls straight through to step 3.

Usage:
    from landuse.services.action_context import resolve_action
    kind = resolve_action(application, action_context="Forward")
    kind.type        # ActionType.FORWARD
    kind.checklist   # () for non-survey kinds
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from landuse.models.application import Application
from landuse.models.checklists import ChecklistItem, checklist_for, title_for

logger = logging.getLogger(__name__)


class ActionType(str, Enum):
    FORWARD = "Forward"
    SURVEY = "Survey"
    MARSAC_REPORT = "MarsacReport"
    FEE_REPORT = "FeeReport"
    LLMC_REPORT = "LlmcReport"
    EDIT_ONLY = "EditOnly"
    NO_ACTION = "None"


@dataclass(frozen=True)
class ActionKind:
    """Tagged action variant. Survey kinds carry a variant 1..4 and a KML flag."""
    type: ActionType
    survey_variant: int | None = None
    kml: bool = False

    def __post_init__(self):
        if self.type == ActionType.SURVEY:
            if self.survey_variant not in (1, 2, 3, 4):
                raise ValueError(f"Survey variant must be 1..4, got {self.survey_variant!r}")
        elif self.survey_variant is not None or self.kml:
            raise ValueError("Only survey actions carry a variant")

    @property
    def checklist(self) -> tuple[ChecklistItem, ...]:
        if self.type != ActionType.SURVEY:
            return ()
        return checklist_for(self.survey_variant)

    @property
    def title(self) -> str | None:
        if self.type == ActionType.SURVEY:
            return title_for(self.survey_variant, self.kml)
        return _DEFAULT_LABELS.get(self.type)

    def to_dict(self) -> dict:
        result: dict = {"type": self.type.value, "title": self.title}
        if self.type == ActionType.SURVEY:
            result["survey_variant"] = self.survey_variant
            result["kml"] = self.kml
            result["checklist"] = [item.to_dict() for item in self.checklist]
        return result


FORWARD = ActionKind(ActionType.FORWARD)
MARSAC_REPORT = ActionKind(ActionType.MARSAC_REPORT)
FEE_REPORT = ActionKind(ActionType.FEE_REPORT)
LLMC_REPORT = ActionKind(ActionType.LLMC_REPORT)
EDIT_ONLY = ActionKind(ActionType.EDIT_ONLY)
NO_ACTION = ActionKind(ActionType.NO_ACTION)

# Backend / URL tag → action
ACTION_TAGS: dict[str, ActionKind] = {
    "Forward": FORWARD,
    "Survey": ActionKind(ActionType.SURVEY, survey_variant=1),
    "KML_Survey": ActionKind(ActionType.SURVEY, survey_variant=1, kml=True),
    "Survey_2": ActionKind(ActionType.SURVEY, survey_variant=2),
    "Survey_3": ActionKind(ActionType.SURVEY, survey_variant=3),
    "Survey_4": ActionKind(ActionType.SURVEY, survey_variant=4),
    "MARSAC_Report": MARSAC_REPORT,
    "Fee_report": FEE_REPORT,
    "LLMC_Report": LLMC_REPORT,
}

_DEFAULT_LABELS: dict[ActionType, str] = {
    ActionType.FORWARD: "Forward",
    ActionType.SURVEY: "Survey Report",
    ActionType.MARSAC_REPORT: "MARSAC Report",
    ActionType.FEE_REPORT: "Fee Report",
    ActionType.LLMC_REPORT: "LLMC Report",
    ActionType.EDIT_ONLY: "Edit Application",
}

# Multipart field names the backend's /upload-file expects per action
UPLOAD_FIELDS: dict[ActionType, dict[str, str]] = {
    ActionType.FORWARD: {"forward": "forward_attachment", "reject": "reject_attachment"},
    ActionType.SURVEY: {"report": "survey_report_file", "kml": "survey_kml_file"},
    ActionType.MARSAC_REPORT: {"report": "marsac_file"},
    ActionType.FEE_REPORT: {"report": "fee_report_image"},
}


def action_for_tag(tag: str | None) -> ActionKind | None:
    if not tag:
        return None
    return ACTION_TAGS.get(tag.strip())


def resolve_action(application: Application, action_context: str | None = None) -> ActionKind:
    """Decide the action kind for a reviewer looking at ``application``."""
    tag = action_context or application.form_type
    kind = action_for_tag(tag)
    if kind is not None:
        return kind
    if tag:
        # An unknown actionContext does not fall back to form_type
        logger.debug("Unknown action tag %r for application %s", tag, application.id)

    return EDIT_ONLY if application.can_edit else NO_ACTION


@dataclass(frozen=True)
class ActionInputs:
    """Everything the action UI needs besides the user's own input."""
    application_id: int
    workflow_sequence_id: int | None
    button_label: str | None
    upload_fields: dict = field(default_factory=dict)
    statuses: tuple = ()

    def to_dict(self) -> dict:
        return {
            "application_id": self.application_id,
            "workflow_sequence_id": self.workflow_sequence_id,
            "button_label": self.button_label,
            "upload_fields": dict(self.upload_fields),
            "statuses": list(self.statuses),
        }


def action_inputs(
    application: Application,
    kind: ActionKind,
    statuses: list | tuple | None = None,
    workflow_sequence_id: int | None = None,
) -> ActionInputs:
    """Bundle ids, status vocabulary, button label and upload field names.

    The backend's ``button_name`` overrides the default label for any
    actionable kind. NoAction and LlmcReport have no button; the LLMC
    report is read on the detail page, not submitted from it.
    """
    if kind.type in (ActionType.NO_ACTION, ActionType.LLMC_REPORT):
        label = None
    elif kind.type == ActionType.EDIT_ONLY:
        label = _DEFAULT_LABELS[ActionType.EDIT_ONLY]
    else:
        label = application.button_name or _DEFAULT_LABELS.get(kind.type)

    upload_fields = dict(UPLOAD_FIELDS.get(kind.type, {}))
    if kind.type == ActionType.SURVEY and not kind.kml:
        upload_fields.pop("kml", None)

    return ActionInputs(
        application_id=application.id,
        workflow_sequence_id=workflow_sequence_id or application.current_workflow_sequence_id,
        button_label=label,
        upload_fields=upload_fields,
        statuses=tuple(statuses or ()),
    )

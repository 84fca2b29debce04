"""Tests for the action context resolver and survey checklists."""

import pytest

from landuse.models.application import Application
from landuse.services.action_context import (
    EDIT_ONLY,
    FORWARD,
    NO_ACTION,
    ActionKind,
    ActionType,
    action_inputs,
    resolve_action,
)


def _app(**overrides) -> Application:
    fields = dict(id=101, application_no="CLU/2024/101", current_workflow_sequence_id=23)
    fields.update(overrides)
    return Application(**fields)


class TestResolveAction:
    def test_action_context_beats_form_type(self):
        kind = resolve_action(_app(form_type="Survey"), action_context="Forward")

        assert kind == FORWARD

    def test_form_type_used_without_action_context(self):
        kind = resolve_action(_app(form_type="Survey_3"))

        assert kind.type == ActionType.SURVEY
        assert kind.survey_variant == 3
        assert [item.key for item in kind.checklist] == ["forest_area", "master_plan_violation"]

    def test_unknown_action_context_ignores_form_type(self):
        assert resolve_action(_app(form_type="Forward", can_edit=False), action_context="View") == NO_ACTION
        assert resolve_action(_app(form_type="MARSAC_Report", can_edit=True), action_context="Bogus") == EDIT_ONLY

    def test_unknown_tags_fall_through_to_capabilities(self):
        assert resolve_action(_app(form_type="Whatever", can_edit=True), action_context="Bogus") == EDIT_ONLY
        assert resolve_action(_app(form_type="Whatever", can_edit=False)) == NO_ACTION

    @pytest.mark.parametrize("tag,expected", [
        ("Fee_report", ActionType.FEE_REPORT),
        ("LLMC_Report", ActionType.LLMC_REPORT),
        ("MARSAC_Report", ActionType.MARSAC_REPORT),
    ])
    def test_report_tags(self, tag, expected):
        assert resolve_action(_app(form_type=tag)).type == expected


class TestSurveyVariants:
    def test_kml_survey_is_variant_one_with_kml_capture(self):
        kind = resolve_action(_app(form_type="KML_Survey"))

        assert kind.survey_variant == 1
        assert kind.kml is True
        assert kind.title == "KML Survey Report"
        assert [item.key for item in kind.checklist] == ["land_acquisition"]

    def test_variants_two_and_four_share_the_paddy_checklist(self):
        two = resolve_action(_app(form_type="Survey_2"))
        four = resolve_action(_app(form_type="Survey_4"))

        assert two.checklist == four.checklist
        assert [item.key for item in two.checklist] == ["paddy_land_ecology", "paddy_four_sided"]
        assert two.title == "Paddy Land Assessment"
        assert four.title == "Additional Paddy Land Verification"

    def test_variant_one_title(self):
        assert resolve_action(_app(form_type="Survey")).title == "Land Acquisition Check"

    def test_invalid_variant_rejected(self):
        with pytest.raises(ValueError):
            ActionKind(ActionType.SURVEY, survey_variant=5)
        with pytest.raises(ValueError):
            ActionKind(ActionType.FORWARD, survey_variant=1)

    def test_non_survey_has_empty_checklist(self):
        assert FORWARD.checklist == ()


class TestActionInputs:
    def test_backend_button_name_overrides_default_label(self):
        application = _app(form_type="Forward", button_name="Forward to LRD")

        inputs = action_inputs(application, FORWARD, [{"id": 6, "name": "Forward"}], 23)

        assert inputs.button_label == "Forward to LRD"
        assert inputs.application_id == 101
        assert inputs.workflow_sequence_id == 23
        assert inputs.upload_fields == {"forward": "forward_attachment", "reject": "reject_attachment"}
        assert inputs.statuses == ({"id": 6, "name": "Forward"},)

    def test_default_label_and_workflow_id_fallback(self):
        kind = resolve_action(_app(form_type="Fee_report"))

        inputs = action_inputs(_app(current_workflow_sequence_id=22), kind)

        assert inputs.button_label == "Fee Report"
        assert inputs.workflow_sequence_id == 22
        assert inputs.upload_fields == {"report": "fee_report_image"}

    def test_plain_survey_has_no_kml_upload(self):
        survey = resolve_action(_app(form_type="Survey"))
        kml = resolve_action(_app(form_type="KML_Survey"))

        assert "kml" not in action_inputs(_app(), survey).upload_fields
        assert action_inputs(_app(), kml).upload_fields["kml"] == "survey_kml_file"

    def test_no_action_has_no_button(self):
        inputs = action_inputs(_app(button_name="Forward"), NO_ACTION)

        assert inputs.button_label is None
        assert inputs.upload_fields == {}

    def test_llmc_report_has_no_button(self):
        kind = resolve_action(_app(form_type="LLMC_Report"))

        inputs = action_inputs(_app(button_name="Send LLMC"), kind)

        assert kind.type == ActionType.LLMC_REPORT
        assert inputs.button_label is None

"""Tests for the workflow stage registry (pure lookups, no I/O)."""

import pytest

from landuse.models.stages import STAGE_TABLE, Role, Variant
from landuse.services.stage_registry import (
    describe_workflow_id,
    list_stage_ids,
    registry_conflicts,
    resolve_workflow_id,
    stages_for_role,
)


class TestResolveWorkflowId:
    @pytest.mark.parametrize("stage,variant,expected", [
        ("enquiries", "conversion", 7),
        ("enquiries", "diversion", 3),
        ("sdao_enquiries", "conversion", 8),
        ("sdao_enquiries", "diversion", 19),
        ("llmc_review", "conversion", 9),
        ("llmc_review", "diversion", 17),
        ("llmc_meeting", "diversion", 60),
        ("dlc_recommendations", "conversion", 23),
        ("dlc_recommendations", "diversion", 20),
        ("lrd_report", "conversion", 16),
        ("unprocessed_applications", "diversion", 4),
        ("report", "conversion", 22),
    ])
    def test_two_variant_stages(self, stage, variant, expected):
        assert resolve_workflow_id(stage, variant) == expected

    @pytest.mark.parametrize("stage,expected", [
        ("scd_report", 61),
        ("sdc_hill_report", 64),
        ("dfo_hill_report", 65),
        ("cabinet", 31),
        ("cabinet_decision", 20),
        ("dfo_report", 26),
    ])
    def test_variant_independent_stages_ignore_variant(self, stage, expected):
        assert resolve_workflow_id(stage, "conversion") == expected
        assert resolve_workflow_id(stage, "diversion") == expected
        assert resolve_workflow_id(stage, None) == expected

    def test_unknown_stage_returns_none(self):
        assert resolve_workflow_id("nonexistent", "conversion") is None
        assert resolve_workflow_id("", "conversion") is None
        assert resolve_workflow_id(None, None) is None

    def test_two_variant_stage_needs_a_valid_variant(self):
        assert resolve_workflow_id("enquiries", None) is None
        assert resolve_workflow_id("enquiries", "sideways") is None

    def test_accepts_page_slugs_and_enum_variants(self):
        assert resolve_workflow_id("dlc-recommendations", Variant.CONVERSION) == 23
        assert resolve_workflow_id("SDAO-Enquiries", "Diversion") == 19

    def test_lookups_are_stable(self):
        first = [resolve_workflow_id(d.key, v) for d in STAGE_TABLE for v in ("conversion", "diversion")]
        second = [resolve_workflow_id(d.key, v) for d in STAGE_TABLE for v in ("conversion", "diversion")]
        assert first == second

    def test_conversion_and_diversion_ids_never_coincide(self):
        for definition in STAGE_TABLE:
            if definition.variant_independent:
                continue
            conversion = resolve_workflow_id(definition.key, "conversion")
            diversion = resolve_workflow_id(definition.key, "diversion")
            assert conversion != diversion, definition.key


class TestDescribe:
    def test_each_id_has_one_meaning(self):
        descriptor = describe_workflow_id(23)
        assert descriptor.stage_key == "dlc_recommendations"
        assert descriptor.variant == Variant.CONVERSION
        assert descriptor.roles == (Role.DLC,)

    def test_shared_id_keeps_first_owner_and_lists_aliases(self):
        descriptor = describe_workflow_id(9)
        assert descriptor.stage_key == "llmc_review"
        assert descriptor.aliases == ("llmc_meeting",)

    def test_variant_independent_descriptor_has_no_variant(self):
        assert describe_workflow_id(26).variant is None

    def test_unknown_id(self):
        assert describe_workflow_id(9999) is None
        assert describe_workflow_id(None) is None

    def test_registry_conflicts(self):
        assert registry_conflicts() == {
            9: ["llmc_review", "llmc_meeting"],
            17: ["llmc_review", "lrd_report"],
            20: ["dlc_recommendations", "cabinet_decision"],
        }

    def test_list_stage_ids_sorted_and_unique(self):
        ids = list_stage_ids()
        assert ids == sorted(set(ids))
        assert 64 in ids and 31 in ids


class TestStagesForRole:
    def test_admin_sees_every_stage(self):
        assert len(stages_for_role("Admin")) == len(STAGE_TABLE)

    def test_role_filter(self):
        keys = {d.key for d in stages_for_role(Role.SDC)}
        assert keys == {"sdc_report", "scd_report", "sdc_hill_report"}

    def test_unknown_or_missing_role(self):
        assert stages_for_role("Citizen") == []
        assert stages_for_role(None) == []

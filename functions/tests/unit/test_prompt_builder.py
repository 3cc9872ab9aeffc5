"""Unit tests for the role prompt builder."""

import pytest
from datetime import date

from config.errors import UnknownRoleError, ErrorCode
from models.project import ProjectRequirements, Role
from models.report import ReportFormat
from pipeline.prompts import ROLE_TEMPLATES, build_prompt
from pipeline.prompts.common import show, NOT_PROVIDED

AS_OF = date(2025, 1, 15)
ROLES = ["homeowner", "contractor", "inspector", "insurance-adjuster"]


def _minimal(role: str) -> ProjectRequirements:
    return ProjectRequirements.from_payload({
        "type": "residential",
        "area": 1000,
        "location": "Austin, TX",
        "userRole": role,
    })


class TestRoleTemplates:
    """Every role has a complete template."""

    def test_dispatch_table_covers_every_role(self):
        assert set(ROLE_TEMPLATES) == set(Role)

    @pytest.mark.parametrize("role", ROLES)
    def test_minimal_project_gives_complete_prompt(self, role):
        prompt = build_prompt(role, _minimal(role), as_of=AS_OF)

        assert prompt.text.strip()
        assert "imageAnalysis" in prompt.text
        assert "undefined" not in prompt.text
        assert "None" not in prompt.text
        assert "null" not in prompt.text
        assert prompt.role == Role(role)
        assert prompt.format is ReportFormat.JSON

    @pytest.mark.parametrize("role", ROLES)
    def test_full_payload_gives_complete_prompt(self, role, role_payloads):
        project = ProjectRequirements.from_payload(role_payloads[role])
        prompt = build_prompt(role, project, image_count=2, as_of=AS_OF)

        assert "undefined" not in prompt.text
        assert "None" not in prompt.text
        assert "Denver" in prompt.text
        assert "exactly 2 strings" in prompt.text

    @pytest.mark.parametrize("role", ROLES)
    def test_deterministic(self, role, role_payloads):
        project = ProjectRequirements.from_payload(role_payloads[role])
        first = build_prompt(role, project, image_count=1, as_of=AS_OF)
        second = build_prompt(role, project, image_count=1, as_of=AS_OF)
        assert first == second

    def test_pricing_date_is_interpolated(self, homeowner_project):
        prompt = build_prompt("homeowner", homeowner_project, as_of=AS_OF)
        assert "2025-01-15" in prompt.text


class TestRoleContent:
    """Templates restate the role's form data."""

    def test_homeowner_restates_owner_and_budget(self, homeowner_project):
        text = build_prompt("homeowner", homeowner_project, as_of=AS_OF).text
        assert "Jane Doe" in text
        assert "economical" in text
        assert "budgetGuidance" in text

    def test_contractor_requests_nested_cost_estimates(self, contractor_payload):
        project = ProjectRequirements.from_payload(contractor_payload)
        text = build_prompt("contractor", project, as_of=AS_OF).text
        assert "Ridge vent" in text
        assert "costEstimates" in text
        assert "Local Permit Required: Yes" in text

    def test_inspector_lists_slope_damage(self, inspector_payload):
        project = ProjectRequirements.from_payload(inspector_payload)
        text = build_prompt("inspector", project, as_of=AS_OF).text
        assert "North: Wind (moderate) - Lifted tabs" in text
        assert "INS-42" in text

    def test_adjuster_missing_coverage_uses_placeholder(self, adjuster_payload):
        project = ProjectRequirements.from_payload(adjuster_payload)
        text = build_prompt("insurance-adjuster", project, as_of=AS_OF).text
        assert "Covered: Shingles" in text
        assert f"Excluded: {NOT_PROVIDED}" in text
        assert f"Maintenance: {NOT_PROVIDED}" in text
        assert "CLM-1" in text

    def test_adjuster_without_damage_cause_is_under_investigation(self):
        project = _minimal("insurance-adjuster")
        text = build_prompt("insurance-adjuster", project, as_of=AS_OF).text
        assert "Cause of Damage: Under investigation" in text

    def test_zero_images_asks_for_empty_array(self, homeowner_project):
        text = build_prompt("homeowner", homeowner_project, image_count=0, as_of=AS_OF).text
        assert '"imageAnalysis": []' in text


class TestLegacyStyle:
    """Role-agnostic key=value template."""

    def test_legacy_prompt_uses_key_value_contract(self, homeowner_project):
        prompt = build_prompt("homeowner", homeowner_project, style="legacy-kv", image_count=3, as_of=AS_OF)

        assert prompt.format is ReportFormat.LEGACY_KV
        for key in ("Material_Cost=", "Labor_Cost=", "Permits=", "Timeline=",
                    "Contingency Suggestions=", "Executive Summary=", "Recommendations="):
            assert key in prompt.text
        assert "imageAnalysis = " in prompt.text
        assert "exactly 3 strings" in prompt.text

    def test_legacy_style_still_rejects_unknown_role(self, homeowner_project):
        with pytest.raises(UnknownRoleError):
            build_prompt("plumber", homeowner_project, style="legacy-kv", as_of=AS_OF)


class TestUnknownRole:
    """Unknown roles fail explicitly instead of defaulting."""

    def test_unknown_role_raises(self, homeowner_project):
        with pytest.raises(UnknownRoleError) as exc_info:
            build_prompt("plumber", homeowner_project, as_of=AS_OF)

        assert exc_info.value.code == ErrorCode.UNKNOWN_ROLE
        assert exc_info.value.role == "plumber"

    @pytest.mark.parametrize("role", [None, "", 42, "home owner"])
    def test_invalid_role_values_raise(self, homeowner_project, role):
        with pytest.raises(UnknownRoleError):
            build_prompt(role, homeowner_project, as_of=AS_OF)

    def test_role_is_case_insensitive(self, homeowner_project):
        prompt = build_prompt("Contractor", homeowner_project, as_of=AS_OF)
        assert prompt.role is Role.CONTRACTOR


class TestShow:
    """Placeholder rendering."""

    @pytest.mark.parametrize("value", [None, "", "   ", "undefined", "null", "None", []])
    def test_missing_values_render_placeholder(self, value):
        assert show(value) == NOT_PROVIDED

    def test_values_render_naturally(self):
        assert show(True) == "Yes"
        assert show(False) == "No"
        assert show(18.0) == "18"
        assert show(["a", None, "b"]) == "a, b"
        assert show(Role.INSPECTOR) == "inspector"

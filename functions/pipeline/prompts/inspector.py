"""Inspector prompt: certified condition report per slope."""

from datetime import date

from models.project import InspectorDetails, ProjectRequirements
from pipeline.prompts.common import (
    UNDER_INVESTIGATION,
    cost_fields_schema,
    date_line,
    join_blocks,
    json_contract,
    language_rule,
    money_rules,
    project_lines,
    roof_lines,
    section,
    show,
    slope_damage_lines,
)


def _report_schema() -> dict:
    return {
        **cost_fields_schema(),
        "inspectionSummary": {
            "propertyAddress": "<text>",
            "inspectionDate": "<text>",
            "weatherConditions": "<text>",
            "overallCondition": "<text>",
            "roofAge": "<text>",
            "roofPitch": "<text>",
        },
        "componentAssessment": [
            {"component": "<text>", "condition": "<text>", "notes": "<text>"}
        ],
        "slopeFindings": [
            {"slope": "<text>", "damageType": "<text>", "severity": "<text>", "recommendation": "<text>"}
        ],
        "repairRecommendations": ["<text>"],
        "legalCertificationNotes": "<text>",
        "imageAnalysis": ["<one string per uploaded image>"],
    }


def build(project: ProjectRequirements, *, image_count: int, as_of: date) -> str:
    details = project.details if isinstance(project.details, InspectorDetails) else InspectorDetails()
    info = details.inspector_info

    inspection = [
        f"Inspector: {show(info.name if info else None)}",
        f"License: {show(info.license if info else None)}",
        f"Contact: {show(info.contact if info else None)}",
        f"Inspection Date: {show(details.inspection_date)}",
        f"Weather Conditions: {show(details.weather_conditions)}",
        f"Access Tools Used: {show(details.access_tools)}",
        f"Owner Notes: {show(details.owner_notes, UNDER_INVESTIGATION)}",
    ]

    return join_blocks([
        "You are a certified roof inspector writing a formal inspection report. Report only "
        "what the recorded findings and attached images support; mark anything else as "
        f"'{UNDER_INVESTIGATION}'.",
        section("PROJECT", project_lines(project)),
        section("ROOF", roof_lines(project)),
        section("INSPECTION", inspection),
        section("SLOPE DAMAGE", slope_damage_lines(details.slope_damage)),
        "RULES:\n" + "\n".join([
            date_line(as_of),
            money_rules(project),
            language_rule(project),
            "Produce one slopeFindings entry per recorded slope, in the order listed.",
        ]),
        json_contract(_report_schema(), image_count),
    ])

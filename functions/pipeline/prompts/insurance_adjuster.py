"""Insurance adjuster prompt: claim-oriented damage and coverage report."""

from datetime import date

from models.project import CoverageMapping, InsuranceAdjusterDetails, ProjectRequirements
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
        "claimMetadata": {
            "claimNumber": "<text>",
            "policyholder": "<text>",
            "adjusterName": "<text>",
            "adjusterContact": "<text>",
            "dateOfLoss": "<text>",
            "dateOfInspection": "<text>",
        },
        "inspectionSummary": {
            "propertyAddress": "<text>",
            "structureType": "<text>",
            "roofAge": "<text>",
            "roofPitch": "<text>",
            "existingMaterials": "<text>",
            "totalArea": "<text>",
            "weatherConditions": "<text>",
        },
        "coverageTable": {
            "coveredItems": ["<text>"],
            "nonCoveredItems": ["<text>"],
            "maintenanceItems": ["<text>"],
        },
        "stormDamageAssessment": {
            "primaryDamageCause": "<text>",
            "affectedComponents": ["<text>"],
            "damageExtent": "<text>",
        },
        "damageClassificationsTable": [
            {"component": "<text>", "classification": "<covered | excluded | maintenance>", "estimatedCost": "<number>"}
        ],
        "legalCertificationNotes": "<text>",
        "imageAnalysis": ["<one string per uploaded image>"],
    }


def build(project: ProjectRequirements, *, image_count: int, as_of: date) -> str:
    details = (
        project.details if isinstance(project.details, InsuranceAdjusterDetails)
        else InsuranceAdjusterDetails()
    )
    info = details.adjuster_info
    coverage = details.coverage_mapping or CoverageMapping()

    claim = [
        f"Claim Number: {show(details.claim_number)}",
        f"Policyholder: {show(details.policyholder_name)}",
        f"Adjuster: {show(details.adjuster_name)}",
        f"Adjuster Contact: {show(details.adjuster_contact)}",
        f"Company: {show(info.company_name if info else None)}",
        f"Adjuster ID: {show(info.adjuster_id if info else None)}",
        f"Claim Types Handled: {show(info.claim_types_handled if info else None)}",
        f"Jurisdiction: {show(info.jurisdiction if info else None)}",
        f"Date of Loss: {show(details.date_of_loss)}",
        f"Cause of Damage: {show(details.damage_cause, UNDER_INVESTIGATION)}",
        f"Weather Conditions: {show(details.weather_conditions)}",
    ]
    coverage_lines = [
        f"Covered: {show(coverage.covered)}",
        f"Excluded: {show(coverage.excluded)}",
        f"Maintenance: {show(coverage.maintenance)}",
    ]

    return join_blocks([
        "You are an insurance claims analyst preparing a roof damage report for an adjuster. "
        "Separate storm-related damage from wear and maintenance, and tie every cost to a "
        "coverage classification.",
        section("PROJECT", project_lines(project)),
        section("ROOF", roof_lines(project)),
        section("CLAIM", claim),
        section("COVERAGE MAPPING", coverage_lines),
        section("SLOPE DAMAGE", slope_damage_lines(details.slope_damage)),
        "RULES:\n" + "\n".join([
            date_line(as_of),
            money_rules(project),
            language_rule(project),
            "Use the coverage mapping above for coverageTable; where it is not provided, "
            f"classify conservatively and note '{UNDER_INVESTIGATION}'.",
        ]),
        json_contract(_report_schema(), image_count),
    ])

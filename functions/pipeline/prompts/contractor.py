"""Contractor prompt: scope of work, material takeoff and crew plan.

Costs come back nested under costEstimates.<category>.total rather than as
top-level fields; the aggregator reads either shape.
"""

from datetime import date

from models.project import ContractorDetails, ProjectRequirements
from pipeline.prompts.common import (
    date_line,
    join_blocks,
    json_contract,
    language_rule,
    money_rules,
    project_lines,
    roof_lines,
    section,
    show,
)


def _report_schema() -> dict:
    return {
        "projectDetails": {
            "address": "<text>",
            "type": "<text>",
            "dimensions": {"totalArea": "<number>", "pitch": "<text>", "slopes": "<number>"},
        },
        "scopeOfWork": {
            "preparationTasks": ["<text>"],
            "removalTasks": ["<text>"],
            "installationTasks": ["<text>"],
            "finishingTasks": ["<text>"],
        },
        "materialBreakdown": {
            "lineItems": [
                {"item": "<text>", "quantity": "<number>", "unit": "<text>", "notes": "<text>"}
            ]
        },
        "laborRequirements": {
            "crewSize": "<number>",
            "estimatedDays": "<number or range, e.g. 5-8>",
            "specialEquipment": ["<text>"],
            "safetyRequirements": ["<text>"],
        },
        "costEstimates": {
            "materials": {
                "total": "<number>",
                "breakdown": [{"category": "<text>", "amount": "<number>"}],
            },
            "labor": {"total": "<number>", "ratePerHour": "<number>", "totalHours": "<number>"},
            "permits": {"total": "<number>"},
            "equipment": {"total": "<number>", "items": [{"item": "<text>", "cost": "<number>"}]},
            "contingency": {"total": "<number, 0 if you have no specific figure>"},
        },
        "timeline": "<estimated duration>",
        "contingencySuggestions": "<text>",
        "imageAnalysis": ["<one string per uploaded image>"],
    }


def build(project: ProjectRequirements, *, image_count: int, as_of: date) -> str:
    details = project.details if isinstance(project.details, ContractorDetails) else ContractorDetails()
    labor = details.labor_needs

    job = [
        f"Job Type: {show(details.job_type)}",
        f"Material Preference: {show(details.material_preference)}",
        f"Crew Size Requested: {show(labor.worker_count if labor else None)}",
        f"Steep-Slope Assist Needed: {show(labor.steep_assist if labor else None)}",
        f"Requested Line Items: {show(details.line_items)}",
        f"Local Permit Required: {show(details.local_permit)}",
    ]

    return join_blocks([
        "You are an experienced roofing estimator preparing a bid package for a licensed "
        "contractor. Be precise about quantities, crew hours and equipment.",
        section("PROJECT", project_lines(project)),
        section("ROOF", roof_lines(project)),
        section("JOB", job),
        "RULES:\n" + "\n".join([
            date_line(as_of),
            money_rules(project),
            language_rule(project),
            "Include every requested line item in materialBreakdown.lineItems.",
            "If a local permit is required, price it under costEstimates.permits.total.",
        ]),
        json_contract(_report_schema(), image_count),
    ])

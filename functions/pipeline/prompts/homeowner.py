"""Homeowner prompt: plain-language roof report with budget guidance."""

from datetime import date

from models.project import HomeownerDetails, ProjectRequirements
from pipeline.prompts.common import (
    NOT_PROVIDED,
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
)


def _report_schema() -> dict:
    return {
        **cost_fields_schema(),
        "welcomeMessage": {
            "greeting": "<text>",
            "introduction": "<text>",
            "ourCommitment": "<text>",
        },
        "roofOverview": {
            "propertyType": "<text>",
            "roofAge": "<text>",
            "roofStyle": "<text>",
            "currentMaterials": "<text>",
            "overallCondition": "<text>",
            "keyFeatures": ["<text>"],
        },
        "damageSummary": {
            "inspectionFindings": ["<text>"],
            "priorityLevel": "<low | medium | high>",
            "mainConcerns": ["<text>"],
            "whatThisMeans": "<text>",
        },
        "repairSuggestions": {
            "immediateActions": ["<text>"],
            "shortTermPlanning": ["<text>"],
            "longTermOutlook": {
                "timeline": "<text>",
                "investmentGuidance": "<text>",
                "preventiveCare": ["<text>"],
            },
        },
        "budgetGuidance": {
            "estimatedRange": {
                "repairs": "<text range>",
                "partialReplacement": "<text range>",
                "fullReplacement": "<text range>",
            },
            "financingOptions": ["<text>"],
            "costSavingTips": ["<text>"],
        },
        "imageAnalysis": ["<one string per uploaded image>"],
    }


def build(project: ProjectRequirements, *, image_count: int, as_of: date) -> str:
    details = project.details if isinstance(project.details, HomeownerDetails) else HomeownerDetails()
    info = details.homeowner_info
    jurisdiction = details.jurisdiction_location

    homeowner = [
        f"Homeowner Name: {show(info.name if info else None)}",
        f"Homeowner Email: {show(info.email if info else None)}",
        f"Urgency: {show(details.urgency)}",
        f"Budget Style: {show(details.budget_style)}",
        f"Jurisdiction Address: {show(jurisdiction.address if jurisdiction else None)}",
    ]
    if jurisdiction and jurisdiction.lat is not None and jurisdiction.lng is not None:
        homeowner.append(f"Coordinates: {jurisdiction.lat}, {jurisdiction.lng}")
    else:
        homeowner.append(f"Coordinates: {NOT_PROVIDED}")

    return join_blocks([
        "You are a friendly roofing advisor writing for a homeowner with no construction "
        "background. Explain findings in plain language, avoid jargon, and give realistic "
        "cost guidance for the project below.",
        section("PROJECT", project_lines(project)),
        section("ROOF", roof_lines(project)),
        section("HOMEOWNER", homeowner),
        "RULES:\n" + "\n".join([
            date_line(as_of),
            money_rules(project),
            language_rule(project),
            "Match the budget style: an economical homeowner wants the lowest sound option first; "
            "a premium homeowner wants durability first.",
        ]),
        json_contract(_report_schema(), image_count),
    ])

"""Shared prompt fragments.

Every interpolated value goes through show() so optional form fields render
as a placeholder and never as None/null/undefined.
"""

import json
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from models.project import ProjectRequirements

NOT_PROVIDED = "Not provided"
UNDER_INVESTIGATION = "Under investigation"

_MISSING_MARKERS = {"", "none", "null", "undefined", "nan"}


def show(value: Any, placeholder: str = NOT_PROVIDED) -> str:
    """Render a form value for prompt text."""
    if value is None:
        return placeholder
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        items = [show(v, "") for v in value]
        items = [i for i in items if i]
        return ", ".join(items) if items else placeholder
    text = str(value).strip()
    if text.lower() in _MISSING_MARKERS:
        return placeholder
    return text


def bullet_lines(lines: Iterable[str], indent: str = "- ") -> str:
    return "\n".join(f"{indent}{line}" for line in lines)


def project_lines(project: ProjectRequirements) -> List[str]:
    """Common core restated for every role."""
    return [
        f"Project Name: {show(project.name)}",
        f"Project Type: {show(project.project_type)}",
        f"Area: {show(project.area)} sq ft",
        f"Location: {show(project.location_label)}",
        f"Material Tier: {show(project.material_tier)}",
        f"Timeline Preference: {show(project.timeline)}",
    ]


def roof_lines(project: ProjectRequirements) -> List[str]:
    roof = project.roof
    boots = [
        f"{show(b.quantity, '?')} x {show(b.size, 'unspecified size')}"
        for b in roof.pipe_boots
    ]
    lines = [
        f"Structure Type: {show(roof.structure_type)}",
        f"Roof Pitch: {show(roof.roof_pitch)}",
        f"Roof Age: {show(roof.roof_age)} years" if roof.roof_age is not None else f"Roof Age: {NOT_PROVIDED}",
        f"Material Layers: {show(roof.material_layers)}",
        f"Ice & Water Shield: {show(roof.ice_water_shield)}",
        f"Felt: {show(roof.felt)}",
        f"Drip Edge: {show(roof.drip_edge)}",
        f"Gutter Apron: {show(roof.gutter_apron)}",
        f"Pipe Boots: {show(boots)}",
    ]
    for label, component in (("Fascia", roof.fascia), ("Gutter", roof.gutter)):
        if component is None:
            lines.append(f"{label}: {NOT_PROVIDED}")
        else:
            lines.append(
                f"{label}: size {show(component.size)}, type {show(component.type)}, "
                f"condition {show(component.condition)}"
            )
    return lines


def slope_damage_lines(slopes: Iterable[Any]) -> List[str]:
    lines = []
    for entry in slopes:
        lines.append(
            f"{show(entry.slope, 'Unnamed slope')}: {show(entry.damage_type)} "
            f"({show(entry.severity)}) - {show(entry.description)}"
        )
    return lines or [f"No slope damage recorded ({UNDER_INVESTIGATION})"]


def currency_of(project: ProjectRequirements) -> str:
    return show(project.preferred_currency, "USD")


def money_rules(project: ProjectRequirements) -> str:
    return (
        f"All monetary values are in {currency_of(project)} as plain numbers: "
        "no currency symbols, no thousands separators, no ranges."
    )


def language_rule(project: ProjectRequirements) -> str:
    language = show(project.preferred_language, "English")
    return f"Write all narrative text in {language}."


def date_line(as_of: date) -> str:
    return f"Use market prices current as of {as_of.isoformat()}."


def image_rule_json(image_count: int) -> str:
    if image_count == 0:
        return (
            'No images were uploaded. Return "imageAnalysis": [] (an empty array). '
            "Do not describe images that were not provided."
        )
    return (
        f'{image_count} image(s) are attached. "imageAnalysis" must be an array of exactly '
        f"{image_count} strings: one per image, in the order the images were uploaded. "
        "Each string describes what that image shows and its relevance to the estimate. "
        "Never invent entries for images that were not provided and never omit one."
    )


def image_rule_legacy(image_count: int) -> str:
    if image_count == 0:
        return "No images were uploaded. End your answer with the line: imageAnalysis = []"
    return (
        f"{image_count} image(s) are attached. End your answer with a single line "
        'imageAnalysis = ["...", "..."] holding a JSON array of exactly '
        f"{image_count} strings, one per image in upload order. "
        "Never invent entries and never omit one."
    )


def json_contract(schema: Dict[str, Any], image_count: int) -> str:
    """Output contract for the JSON prompt style."""
    return "\n".join([
        "OUTPUT FORMAT:",
        "Return ONLY a single JSON object with exactly this structure. Do not wrap it in "
        "markdown and do not add commentary before or after it.",
        json.dumps(schema, indent=2),
        "",
        "IMAGE ANNOTATION RULE:",
        image_rule_json(image_count),
    ])


def cost_fields_schema() -> Dict[str, str]:
    """Top-level cost fields read by the aggregator."""
    return {
        "materialsCost": "<number>",
        "laborCost": "<number>",
        "permitsCost": "<number>",
        "equipmentCost": "<number>",
        "contingencyCost": "<number, 0 if you have no specific figure>",
        "timeline": "<estimated duration, e.g. 5-8 days>",
        "contingencySuggestions": "<text>",
    }


def section(title: str, lines: Iterable[str]) -> str:
    return f"{title}:\n{bullet_lines(lines)}"


def join_blocks(blocks: Iterable[Optional[str]]) -> str:
    return "\n\n".join(b for b in blocks if b)

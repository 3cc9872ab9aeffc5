"""Role-agnostic legacy prompt answering in flat Key=value lines."""

from datetime import date

from models.project import ProjectRequirements
from pipeline.prompts.common import (
    currency_of,
    image_rule_legacy,
    join_blocks,
    language_rule,
    project_lines,
    section,
    show,
)

REPORT_SECTIONS = [
    ("Executive Summary",
     "a comprehensive 1-page executive summary including project overview and key findings, "
     "total investment summary, critical success factors, and risk assessment overview"),
    ("Project Analysis",
     "a detailed project analysis including scope of work breakdown, construction methodology, "
     "material specifications, labor requirements, equipment requirements, and site preparation"),
    ("Market Conditions",
     "a market conditions and cost analysis including current construction market trends in "
     "{location}, material price volatility, labor availability, and seasonal impact on costs"),
    ("Risk Assessment",
     "a risk assessment covering weather, supply chain, labor shortage, regulatory and budget "
     "overrun risks, with a mitigation recommendation for each"),
    ("Timeline Scheduling",
     "a timeline and scheduling analysis including project phases and milestones, critical path, "
     "permit approval timelines, and inspection checkpoints"),
    ("Recommendations",
     "recommendations and next steps including value engineering opportunities, alternative "
     "materials, phasing, financing considerations, and contractor selection criteria"),
]


def build(project: ProjectRequirements, *, image_count: int, as_of: date) -> str:
    currency = currency_of(project)
    location = show(project.location_label)
    sections = [
        f"{key}=Write {description.format(location=location)}"
        for key, description in REPORT_SECTIONS
    ]

    return join_blocks([
        section("For a construction project with the following details", project_lines(project)),
        "Please provide:\n" + "\n".join([
            f"- Real-time cost estimates for today ({as_of.isoformat()}) for:",
            f"  - Material_Cost (in {currency}, no commas)",
            f"  - Labor_Cost (in {currency}, no commas)",
            f"  - Permits (in {currency}, no commas)",
            "- Timeline prediction (Timeline)",
            "- Contingency suggestions (Contingency Suggestions)",
            "- A detailed construction project analysis in separate sections",
        ]),
        f"Return the answer in this format (all prices in {currency}, no commas in numbers), "
        "each key at the start of its own line:\n" + "\n".join([
            "Material_Cost=x",
            "Labor_Cost=y",
            "Permits=z",
            "Timeline=a",
            "Contingency Suggestions=b",
            *sections,
        ]),
        language_rule(project)
        + " Make each section detailed, with specific insights and actionable recommendations.",
        image_rule_legacy(image_count),
    ])

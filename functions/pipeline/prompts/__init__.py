"""Role prompt builder.

build_prompt() is pure: identical inputs give an identical prompt. The
date is passed in by the caller.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, Optional, Union

from config.errors import UnknownRoleError
from models.project import ProjectRequirements, Role
from models.report import ReportFormat
from pipeline.prompts import contractor, homeowner, inspector, insurance_adjuster, legacy

PromptTemplate = Callable[..., str]

ROLE_TEMPLATES: Dict[Role, PromptTemplate] = {
    Role.HOMEOWNER: homeowner.build,
    Role.CONTRACTOR: contractor.build,
    Role.INSPECTOR: inspector.build,
    Role.INSURANCE_ADJUSTER: insurance_adjuster.build,
}


@dataclass(frozen=True)
class Prompt:
    """Assembled prompt plus the format its answer must be parsed with."""

    text: str
    role: Role
    format: ReportFormat


def build_prompt(
    role: Union[Role, str, Any],
    project: ProjectRequirements,
    *,
    style: Union[ReportFormat, str] = ReportFormat.JSON,
    image_count: int = 0,
    as_of: Optional[date] = None,
) -> Prompt:
    """Build the prompt for a role.

    Args:
        role: Role enum or raw role string.
        project: Validated project requirements.
        style: JSON (per-role template) or legacy key=value (role-agnostic).
        image_count: Number of images sent alongside the prompt.
        as_of: Pricing date; defaults to today.

    Raises:
        UnknownRoleError: No template exists for the role. The legacy style
            also refuses unknown roles.
    """
    resolved = Role.resolve(role)
    if resolved is None:
        raise UnknownRoleError(role)

    fmt = ReportFormat(style)
    as_of = as_of or date.today()
    template = legacy.build if fmt is ReportFormat.LEGACY_KV else ROLE_TEMPLATES[resolved]
    text = template(project, image_count=image_count, as_of=as_of)
    return Prompt(text=text, role=resolved, format=fmt)


__all__ = ["Prompt", "ROLE_TEMPLATES", "build_prompt"]

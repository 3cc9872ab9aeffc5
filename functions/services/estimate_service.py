"""Estimate use cases for FlacronBuild.

Loads a project, rebuilds its ProjectRequirements from the stored form
payload and runs the orchestrator. HTTP handlers call this layer only.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from config.errors import ProjectNotFoundError, ValidationError
from models.estimate import GeneratedEstimate
from models.project import ProjectRequirements
from pipeline.orchestrator import EstimateOrchestrator, EstimateResult
from services.repositories import EstimateRepository, ProjectRepository
from validators.attachment_validator import parse_attachments, strip_attachment_payloads

logger = structlog.get_logger()

# Stored project columns that override the saved form payload
CANONICAL_FIELDS = ["name", "type", "area", "location", "materialTier", "timeline", "userRole"]
# Form keys that shadow a canonical column when parsed
CANONICAL_ALIASES = {"type": "projectType"}


def stored_form_payload(project: Dict[str, Any]) -> Dict[str, Any]:
    """Full form payload saved with the project.

    The form is stored as JSON text in uploadedFiles[0]; newer documents
    may carry it as a formInputData object instead.
    """
    form = project.get("formInputData")
    if isinstance(form, dict):
        return dict(form)

    uploaded = project.get("uploadedFiles")
    if isinstance(uploaded, list) and uploaded:
        first = uploaded[0]
        if isinstance(first, dict):
            return dict(first)
        if isinstance(first, str):
            try:
                parsed = json.loads(first)
            except json.JSONDecodeError:
                logger.warning("stored_form_payload_invalid", project_id=project.get("id"))
                return {}
            return parsed if isinstance(parsed, dict) else {}
    return {}


def merge_project_payload(project: Dict[str, Any]) -> Dict[str, Any]:
    """Stored form payload overlaid with the project's canonical fields."""
    merged = stored_form_payload(project)
    for key in CANONICAL_FIELDS:
        if project.get(key) not in (None, ""):
            merged[key] = project[key]
            if key in CANONICAL_ALIASES:
                merged[CANONICAL_ALIASES[key]] = project[key]
    merged.pop("files", None)
    return merged


def build_requirements(payload: Dict[str, Any]) -> ProjectRequirements:
    """Parse a merged payload.

    Raises:
        ValidationError: Payload is missing or has invalid common fields.
    """
    try:
        return ProjectRequirements.from_payload(payload)
    except PydanticValidationError as e:
        errors = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        raise ValidationError("Invalid project data", field="project", errors=errors) from e


class EstimateService:
    """Project-level estimate operations.

    Args:
        projects: Project store.
        estimates: Append-only estimate store.
        orchestrator: Pipeline runner; built from the stores when omitted.
    """

    def __init__(
        self,
        projects: ProjectRepository,
        estimates: EstimateRepository,
        orchestrator: Optional[EstimateOrchestrator] = None,
    ):
        self.projects = projects
        self.estimates = estimates
        self.orchestrator = orchestrator or EstimateOrchestrator(estimate_repository=estimates)

    async def load_project(self, project_id: str) -> Dict[str, Any]:
        """Raises ProjectNotFoundError when absent."""
        project = await self.projects.get_project(str(project_id))
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    async def generate_estimate(
        self,
        project_id: str,
        files: Optional[List[Any]] = None,
    ) -> Dict[str, Any]:
        """Generate and persist an estimate for a stored project.

        Returns:
            The persisted record (camelCase) plus breakdown, dataSource
            and imageAnalysis.

        Raises:
            ProjectNotFoundError, ValidationError, PipelineError
        """
        project = await self.load_project(project_id)
        images = parse_attachments(files)
        payload = merge_project_payload(project)
        requirements = build_requirements(payload)

        logger.info(
            "estimate_requested",
            project_id=project_id,
            role=requirements.role,
            files=strip_attachment_payloads(files),
        )

        result = await self.orchestrator.run(
            requirements,
            images,
            project_id=str(project_id),
            persist=True,
            form_input=payload,
        )
        return self._estimate_response(result)

    async def get_cost_breakdown(self, project_id: str) -> Dict[str, Any]:
        """Re-run generation without images and without persisting."""
        project = await self.load_project(project_id)
        requirements = build_requirements(merge_project_payload(project))

        result = await self.orchestrator.run(
            requirements,
            [],
            project_id=str(project_id),
            persist=False,
        )
        return {
            "breakdown": result.breakdown.to_client_dict(),
            "dataSource": result.data_source,
            "lastUpdated": datetime.now(timezone.utc).isoformat(),
            "regionalFactors": {
                "locationAnalyzed": requirements.location_label,
                "marketConditions": "Current regional pricing",
                "costDatabase": result.data_source,
            },
        }

    async def list_estimates(self, project_id: str) -> List[Dict[str, Any]]:
        records = await self.estimates.list_estimates(str(project_id))
        return [r.to_response_dict() for r in records]

    async def get_latest_estimate(self, project_id: str) -> Optional[Dict[str, Any]]:
        record: Optional[GeneratedEstimate] = await self.estimates.get_latest_estimate(str(project_id))
        return record.to_response_dict() if record else None

    @staticmethod
    def _estimate_response(result: EstimateResult) -> Dict[str, Any]:
        body = result.record.to_response_dict()
        body.update({
            "breakdown": result.breakdown.to_client_dict(),
            "dataSource": result.data_source,
            "imageAnalysis": result.image_analysis,
        })
        return body

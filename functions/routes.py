"""HTTP handlers for FlacronBuild estimates.

Framework-free: each handler takes an EstimateService and request data and
returns (body, status). main.py (Cloud Functions) and serve_local.py
(Flask) adapt these to their request/response types.

Clients only ever see generic messages; error codes, details and raw
model text are logged server-side.
"""

import re
from typing import Any, Callable, Dict, List, Optional, Tuple

import structlog

from config.errors import FlacronError, ProjectNotFoundError, ValidationError
from config.settings import settings
from services.estimate_service import EstimateService
from services.repositories import (
    EstimateRepository,
    InMemoryEstimateRepository,
    InMemoryProjectRepository,
    ProjectRepository,
)

logger = structlog.get_logger()

Response = Tuple[Any, int]

PROJECT_NOT_FOUND = "Project not found"
ESTIMATE_NOT_FOUND = "No estimate found for project"


def build_repositories(backend: Optional[str] = None) -> Tuple[ProjectRepository, EstimateRepository]:
    """Repositories for the configured persistence backend."""
    backend = backend or settings.persistence_backend
    if backend == "firestore":
        from services.firestore_service import FirestoreEstimateRepository, FirestoreProjectRepository
        return FirestoreProjectRepository(), FirestoreEstimateRepository()
    return InMemoryProjectRepository(), InMemoryEstimateRepository()


def build_estimate_service(backend: Optional[str] = None) -> EstimateService:
    projects, estimates = build_repositories(backend)
    return EstimateService(projects, estimates)


def _log_failure(event: str, project_id: str, error: Exception) -> None:
    if isinstance(error, FlacronError):
        logger.error(event, project_id=project_id, **error.to_dict())
    else:
        logger.exception(event, project_id=project_id, error=str(error))


# ============================================================================
# Handlers
# ============================================================================


async def generate_estimate(service: EstimateService, project_id: str, body: Optional[Dict[str, Any]]) -> Response:
    """POST /api/projects/{id}/estimate"""
    files = (body or {}).get("files")
    try:
        return await service.generate_estimate(project_id, files), 200
    except ProjectNotFoundError:
        return {"message": PROJECT_NOT_FOUND}, 404
    except ValidationError as e:
        logger.warning("estimate_request_invalid", project_id=project_id, **e.to_dict())
        return {"message": e.message, "errors": e.errors}, 400
    except Exception as e:
        _log_failure("estimate_generation_failed", project_id, e)
        return {"message": "Failed to generate estimate"}, 500


async def get_cost_breakdown(service: EstimateService, project_id: str) -> Response:
    """GET /api/projects/{id}/cost-breakdown"""
    try:
        return await service.get_cost_breakdown(project_id), 200
    except ProjectNotFoundError:
        return {"message": PROJECT_NOT_FOUND}, 404
    except Exception as e:
        _log_failure("cost_breakdown_failed", project_id, e)
        return {"message": "Failed to get cost breakdown"}, 500


async def list_estimates(service: EstimateService, project_id: str) -> Response:
    """GET /api/projects/{id}/estimates"""
    try:
        return await service.list_estimates(project_id), 200
    except Exception as e:
        _log_failure("estimate_list_failed", project_id, e)
        return {"message": "Failed to fetch estimates"}, 500


async def get_latest_estimate(service: EstimateService, project_id: str) -> Response:
    """GET /api/projects/{id}/estimate/latest"""
    try:
        estimate = await service.get_latest_estimate(project_id)
    except Exception as e:
        _log_failure("latest_estimate_failed", project_id, e)
        return {"message": "Failed to fetch latest estimate"}, 500
    if estimate is None:
        return {"message": ESTIMATE_NOT_FOUND}, 404
    return estimate, 200


# ============================================================================
# Path dispatch
# ============================================================================

RouteHandler = Callable[..., Any]

ROUTES: List[Tuple[str, "re.Pattern[str]", RouteHandler, bool]] = [
    ("POST", re.compile(r"^/api/projects/(?P<project_id>[^/]+)/estimate/?$"), generate_estimate, True),
    ("GET", re.compile(r"^/api/projects/(?P<project_id>[^/]+)/estimate/latest/?$"), get_latest_estimate, False),
    ("GET", re.compile(r"^/api/projects/(?P<project_id>[^/]+)/estimates/?$"), list_estimates, False),
    ("GET", re.compile(r"^/api/projects/(?P<project_id>[^/]+)/cost-breakdown/?$"), get_cost_breakdown, False),
]


async def dispatch(
    service: EstimateService,
    method: str,
    path: str,
    body: Optional[Dict[str, Any]] = None,
) -> Response:
    """Route a request by method and path."""
    for route_method, pattern, handler, takes_body in ROUTES:
        match = pattern.match(path)
        if match and method.upper() == route_method:
            project_id = match.group("project_id")
            if takes_body:
                return await handler(service, project_id, body)
            return await handler(service, project_id)
    return {"message": "Not found"}, 404

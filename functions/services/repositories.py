"""Persistence interfaces and the in-memory implementation.

Estimates are append-only: there is no update or delete. "Latest" is
decided by createdAt when reading.
"""

import copy
import itertools
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog

from models.estimate import GeneratedEstimate

logger = structlog.get_logger()


class ProjectRepository(ABC):
    """Read access to stored projects."""

    @abstractmethod
    async def get_project(self, project_id: str) -> Optional[Dict[str, Any]]:
        """Return the project document (with "id"), or None."""


class EstimateRepository(ABC):
    """Append-only estimate store."""

    @abstractmethod
    async def create_estimate(self, record: GeneratedEstimate) -> GeneratedEstimate:
        """Persist a new record and return it with id/createdAt set."""

    @abstractmethod
    async def list_estimates(self, project_id: str) -> List[GeneratedEstimate]:
        """All estimates for a project, latest first."""

    async def get_latest_estimate(self, project_id: str) -> Optional[GeneratedEstimate]:
        estimates = await self.list_estimates(project_id)
        return estimates[0] if estimates else None


def sort_latest_first(records: List[GeneratedEstimate]) -> List[GeneratedEstimate]:
    """Newest first; records sharing a createdAt keep the later-stored one first."""
    ordered = sorted(enumerate(records), key=lambda pair: (pair[1].created_at, pair[0]), reverse=True)
    return [record for _, record in ordered]


class InMemoryProjectRepository(ProjectRepository):
    """Dict-backed project store for local serving and tests."""

    def __init__(self, projects: Optional[Dict[str, Dict[str, Any]]] = None):
        self._projects: Dict[str, Dict[str, Any]] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        for project_id, data in (projects or {}).items():
            self._projects[str(project_id)] = {**copy.deepcopy(data), "id": str(project_id)}

    async def get_project(self, project_id: str) -> Optional[Dict[str, Any]]:
        project = self._projects.get(str(project_id))
        return copy.deepcopy(project) if project is not None else None

    async def create_project(self, data: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            project_id = str(next(self._ids))
            while project_id in self._projects:
                project_id = str(next(self._ids))
            project = {
                **copy.deepcopy(data),
                "id": project_id,
                "createdAt": datetime.now(timezone.utc).isoformat(),
            }
            self._projects[project_id] = project
        logger.info("project_created", project_id=project_id)
        return copy.deepcopy(project)


class InMemoryEstimateRepository(EstimateRepository):
    """List-backed append-only estimate store.

    Id allocation is serialized with a lock; concurrent requests for the
    same project both append.
    """

    def __init__(self):
        self._records: List[GeneratedEstimate] = []
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    async def create_estimate(self, record: GeneratedEstimate) -> GeneratedEstimate:
        with self._lock:
            stored = record.model_copy(update={"id": str(next(self._ids))}, deep=True)
            self._records.append(stored)
        logger.info("estimate_created", estimate_id=stored.id, project_id=stored.project_id)
        return stored.model_copy(deep=True)

    async def list_estimates(self, project_id: str) -> List[GeneratedEstimate]:
        matching = [r.model_copy(deep=True) for r in self._records if r.project_id == str(project_id)]
        return sort_latest_first(matching)

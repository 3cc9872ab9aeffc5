"""Firestore repositories for FlacronBuild.

Projects live in /projects/{id}; estimates are appended to
/projects/{id}/estimates/{estimateId}.
"""

from typing import Dict, Any, Optional, List
import inspect
import structlog

from firebase_admin import firestore

from config.errors import PersistenceError
from models.estimate import GeneratedEstimate
from services.repositories import EstimateRepository, ProjectRepository, sort_latest_first

logger = structlog.get_logger()


class FirestoreService:
    """Shared Firestore client access.

    Note: Firebase Admin SDK for Python is synchronous. Methods are
    marked async for interface compatibility but operations are sync.
    """

    COLLECTION_PROJECTS = "projects"
    SUBCOLLECTION_ESTIMATES = "estimates"

    def __init__(self, db=None):
        """Initialize FirestoreService.

        Args:
            db: Optional Firestore client. If not provided, uses default.
        """
        self._db = db

    @property
    def db(self):
        """Get Firestore client (lazy initialization)."""
        if self._db is None:
            self._db = firestore.client()
        return self._db

    async def _maybe_await(self, result: Any) -> Any:
        """Await result if it is awaitable (supports AsyncMock in unit tests)."""
        if inspect.isawaitable(result):
            return await result
        return result

    def _estimates(self, project_id: str):
        return (
            self.db
            .collection(self.COLLECTION_PROJECTS)
            .document(project_id)
            .collection(self.SUBCOLLECTION_ESTIMATES)
        )


class FirestoreProjectRepository(FirestoreService, ProjectRepository):
    """Project reads from Firestore."""

    async def get_project(self, project_id: str) -> Optional[Dict[str, Any]]:
        """Fetch project document by ID.

        Raises:
            PersistenceError: If Firestore operation fails.
        """
        try:
            doc_ref = self.db.collection(self.COLLECTION_PROJECTS).document(project_id)
            doc = await self._maybe_await(doc_ref.get())

            if doc.exists:
                return {**(doc.to_dict() or {}), "id": doc.id}
            return None

        except Exception as e:
            logger.error("firestore_get_project_failed", project_id=project_id, error=str(e))
            raise PersistenceError(
                f"Failed to get project: {str(e)}",
                details={"project_id": project_id}
            ) from e


class FirestoreEstimateRepository(FirestoreService, EstimateRepository):
    """Append-only estimate writes and latest-first reads."""

    async def create_estimate(self, record: GeneratedEstimate) -> GeneratedEstimate:
        """Append a new estimate document under its project.

        Raises:
            PersistenceError: If Firestore operation fails.
        """
        if not record.project_id:
            raise PersistenceError("Estimate record has no projectId")
        try:
            doc_ref = self._estimates(record.project_id).document()
            stored = record.model_copy(update={"id": doc_ref.id})
            data = stored.to_firestore_dict()
            data.pop("id", None)

            await self._maybe_await(doc_ref.set(data))
            logger.info("estimate_created", estimate_id=doc_ref.id, project_id=record.project_id)
            return stored

        except Exception as e:
            logger.error("estimate_create_failed", project_id=record.project_id, error=str(e))
            raise PersistenceError(
                f"Failed to create estimate: {str(e)}",
                details={"project_id": record.project_id}
            ) from e

    async def list_estimates(self, project_id: str) -> List[GeneratedEstimate]:
        """List estimates for a project, latest first.

        Sorted in Python so no composite index is required.
        """
        try:
            docs = await self._maybe_await(self._estimates(project_id).stream())
            results: List[GeneratedEstimate] = []
            for doc in docs:
                results.append(GeneratedEstimate.model_validate({**(doc.to_dict() or {}), "id": doc.id}))
            return sort_latest_first(results)
        except Exception as e:
            logger.error("estimate_list_failed", project_id=project_id, error=str(e))
            raise PersistenceError(
                f"Failed to list estimates: {str(e)}",
                details={"project_id": project_id}
            ) from e

"""Pytest configuration and shared fixtures for FlacronBuild tests."""

import os
import sys
import pytest
from unittest.mock import AsyncMock, MagicMock
from typing import Dict, Any, List


# ============================================================================
# Ensure local imports work (pipeline/, models/, services/, config/)
# ============================================================================
#
# Our codebase uses absolute imports like `from models...` / `from pipeline...`.
# This guarantees that `functions/` is importable as the top-level module root.
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


# ============================================================================
# Settings
# ============================================================================

@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """Deterministic settings; never touches Secret Manager."""
    from config.settings import settings

    monkeypatch.setattr(settings, "_gemini_api_key", "test-gemini-key")
    monkeypatch.setattr(settings, "gemini_model", "gemini-2.0-flash")
    monkeypatch.setattr(settings, "gemini_api_base", "https://generativelanguage.googleapis.com/v1beta")
    monkeypatch.setattr(settings, "model_timeout_seconds", None)
    monkeypatch.setattr(settings, "contingency_rate", 0.07)
    monkeypatch.setattr(settings, "prompt_style", "json")
    monkeypatch.setattr(settings, "persistence_backend", "memory")
    monkeypatch.setattr(settings, "max_attachments", 10)
    monkeypatch.setattr(settings, "max_attachment_bytes", 10 * 1024 * 1024)
    return settings


# ============================================================================
# Firebase Mocks
# ============================================================================

@pytest.fixture
def mock_firestore_client():
    """Mock Firestore client."""
    client = MagicMock()

    # Set up chain: client.collection().document()
    collection_mock = MagicMock()
    document_mock = MagicMock()
    client.collection.return_value = collection_mock
    collection_mock.document.return_value = document_mock

    # Mock async methods
    document_mock.get = AsyncMock(return_value=MagicMock(
        exists=True,
        id="proj-1",
        to_dict=lambda: {"name": "Test Roof"}
    ))
    document_mock.set = AsyncMock()

    # Mock subcollection: client.collection().document().collection().document()
    subcollection_mock = MagicMock()
    estimate_doc_mock = MagicMock()
    estimate_doc_mock.id = "est-new"
    estimate_doc_mock.set = AsyncMock()
    document_mock.collection.return_value = subcollection_mock
    subcollection_mock.document.return_value = estimate_doc_mock

    return client


# ============================================================================
# Model Client
# ============================================================================

class FakeModelClient:
    """Returns canned text and records every call's parts."""

    model = "fake-model"

    def __init__(self, responses: List[str]):
        self._responses = list(responses)
        self.calls: List[list] = []

    async def generate(self, parts):
        self.calls.append(list(parts))
        if len(self._responses) > 1:
            return self._responses.pop(0)
        return self._responses[0]


@pytest.fixture
def fake_model_client():
    """Factory: fake_model_client("text", ...) -> FakeModelClient."""
    def _make(*responses: str) -> FakeModelClient:
        return FakeModelClient(list(responses))
    return _make


# ============================================================================
# Repositories
# ============================================================================

@pytest.fixture
def estimate_repository():
    from services.repositories import InMemoryEstimateRepository
    return InMemoryEstimateRepository()


@pytest.fixture
def project_repository(sample_stored_project):
    from services.repositories import InMemoryProjectRepository
    return InMemoryProjectRepository({"1": sample_stored_project})


# ============================================================================
# Sample Data Fixtures
# ============================================================================

def _base_payload(role: str) -> Dict[str, Any]:
    return {
        "name": "Test Roof",
        "projectType": "residential",
        "area": 1500,
        "location": {"country": "USA", "city": "Denver", "zipCode": "80202"},
        "materialTier": "standard",
        "timeline": "standard",
        "userRole": role,
        "structureType": "Single-family",
        "roofPitch": "6/12",
        "roofAge": 18,
        "materialLayers": ["Asphalt shingles"],
        "iceWaterShield": True,
        "felt": "15lb",
        "dripEdge": True,
        "gutterApron": False,
        "pipeBoots": [{"size": "3 inch", "quantity": 2}],
        "preferredCurrency": "USD",
    }


@pytest.fixture
def homeowner_payload() -> Dict[str, Any]:
    return {
        **_base_payload("homeowner"),
        "homeownerInfo": {"name": "Jane Doe", "email": "jane@example.com"},
        "urgency": "medium",
        "budgetStyle": "economical",
    }


@pytest.fixture
def contractor_payload() -> Dict[str, Any]:
    return {
        **_base_payload("contractor"),
        "jobType": "full-replacement",
        "materialPreference": "architectural shingles",
        "laborNeeds": {"workerCount": 5, "steepAssist": False},
        "lineItems": ["Tear-off", "Underlayment", "Ridge vent"],
        "localPermit": True,
    }


@pytest.fixture
def inspector_payload() -> Dict[str, Any]:
    return {
        **_base_payload("inspector"),
        "inspectorInfo": {"name": "Pat Smith", "license": "INS-42", "contact": "pat@example.com"},
        "inspectionDate": "2025-03-01",
        "weatherConditions": "Clear",
        "accessTools": ["Ladder", "Drone"],
        "slopeDamage": [
            {"slope": "North", "damageType": "Wind", "severity": "moderate", "description": "Lifted tabs"}
        ],
    }


@pytest.fixture
def adjuster_payload() -> Dict[str, Any]:
    return {
        **_base_payload("insurance-adjuster"),
        "insuranceAdjusterInfo": {"companyName": "Acme Mutual", "adjusterId": "ADJ-7"},
        "claimNumber": "CLM-1",
        "policyholderName": "Sam Lee",
        "adjusterName": "Alex Kim",
        "dateOfLoss": "2025-02-20",
        "damageCause": "Hail",
        "coverageMapping": {"covered": ["Shingles"]},
    }


@pytest.fixture
def role_payloads(homeowner_payload, contractor_payload, inspector_payload, adjuster_payload):
    return {
        "homeowner": homeowner_payload,
        "contractor": contractor_payload,
        "inspector": inspector_payload,
        "insurance-adjuster": adjuster_payload,
    }


@pytest.fixture
def homeowner_project(homeowner_payload):
    from models.project import ProjectRequirements
    return ProjectRequirements.from_payload(homeowner_payload)


@pytest.fixture
def sample_stored_project(homeowner_payload) -> Dict[str, Any]:
    """Project document as stored: canonical columns plus the form JSON."""
    import json
    return {
        "name": "Test Roof",
        "type": "residential",
        "location": "Denver, USA",
        "area": 1500,
        "materialTier": "standard",
        "timeline": "standard",
        "status": "draft",
        "uploadedFiles": [json.dumps(homeowner_payload)],
    }


@pytest.fixture
def png_data_url() -> str:
    """Tiny valid base64 image data URL."""
    return "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="

"""Unit tests for EstimateOrchestrator."""

import asyncio
import pytest
from datetime import date

from config.errors import (
    ErrorCode,
    MalformedModelOutputError,
    ModelUnavailableError,
    PipelineError,
    UnknownRoleError,
)
from models.estimate import PipelineStage
from models.project import ProjectRequirements
from pipeline.orchestrator import EstimateOrchestrator
from services.gemini_client import InlinePart, TextPart
from tests.fixtures.mock_model_responses import (
    ADJUSTER_RESPONSE,
    CONTRACTOR_RESPONSE,
    HOMEOWNER_RESPONSE,
    LEGACY_RESPONSE,
    TRUNCATED_RESPONSE,
)

AS_OF = date(2025, 1, 15)

SUCCESS_STAGES = [
    PipelineStage.RECEIVED,
    PipelineStage.PROMPT_BUILT,
    PipelineStage.MODEL_QUERIED,
    PipelineStage.NORMALIZED,
    PipelineStage.AGGREGATED,
    PipelineStage.PERSISTED,
    PipelineStage.DELIVERED,
]


class UnavailableModelClient:
    model = "fake-model"

    def __init__(self):
        self.calls = 0

    async def generate(self, parts):
        self.calls += 1
        raise ModelUnavailableError("Gemini API returned HTTP 503", status_code=503)


class BrokenModelClient:
    model = "fake-model"

    async def generate(self, parts):
        raise RuntimeError("socket closed")


def _images(count):
    return [InlinePart("image/png", f"IMG{i}") for i in range(count)]


# ============================================================================
# Successful runs
# ============================================================================


class TestSuccessfulRun:
    """Happy path through every stage."""

    @pytest.mark.asyncio
    async def test_stage_history_and_persisted_record(self, fake_model_client, estimate_repository, homeowner_project):
        orchestrator = EstimateOrchestrator(fake_model_client(HOMEOWNER_RESPONSE), estimate_repository)

        result = await orchestrator.run(homeowner_project, project_id="1", as_of=AS_OF)

        assert result.diagnostics.stages == SUCCESS_STAGES
        assert result.record.id == "1"
        assert result.record.total_cost == 14980
        assert result.record.contingency_cost == 980
        assert result.record.data_source == "Gemini API"
        assert result.record.region_multiplier == 1.0
        assert result.record.model == "fake-model"
        assert result.record.role == "homeowner"
        assert result.record.timeline == "5-8 days"
        assert result.record.raw_response == HOMEOWNER_RESPONSE

        stored = await estimate_repository.list_estimates("1")
        assert [r.id for r in stored] == ["1"]

    @pytest.mark.asyncio
    async def test_no_persist_skips_repository(self, fake_model_client, estimate_repository, homeowner_project):
        orchestrator = EstimateOrchestrator(fake_model_client(HOMEOWNER_RESPONSE), estimate_repository)

        result = await orchestrator.run(homeowner_project, project_id="1", persist=False, as_of=AS_OF)

        assert PipelineStage.PERSISTED not in result.diagnostics.stages
        assert result.diagnostics.stages[-1] == PipelineStage.DELIVERED
        assert result.record.id is None
        assert await estimate_repository.list_estimates("1") == []

    @pytest.mark.asyncio
    async def test_prompt_sent_before_images_in_upload_order(self, fake_model_client, homeowner_project):
        client = fake_model_client(HOMEOWNER_RESPONSE)
        images = _images(3)

        await EstimateOrchestrator(client).run(homeowner_project, images, persist=False, as_of=AS_OF)

        parts = client.calls[0]
        assert isinstance(parts[0], TextPart)
        assert "exactly 3 strings" in parts[0].text
        assert parts[1:] == images

    @pytest.mark.asyncio
    async def test_contractor_nested_costs_and_day_range(self, fake_model_client, contractor_payload):
        project = ProjectRequirements.from_payload(contractor_payload)
        orchestrator = EstimateOrchestrator(fake_model_client(CONTRACTOR_RESPONSE))

        result = await orchestrator.run(project, _images(2), persist=False, as_of=AS_OF)

        assert result.breakdown.total_cost == 22470
        assert result.record.timeline == "3-4 days"
        assert result.image_analysis == ["North slope: lifted tabs", "Valley flashing rusted"]
        assert result.diagnostics.image_count_mismatch is False

    @pytest.mark.asyncio
    async def test_legacy_style(self, fake_model_client, homeowner_project):
        orchestrator = EstimateOrchestrator(fake_model_client(LEGACY_RESPONSE), prompt_style="legacy-kv")

        result = await orchestrator.run(homeowner_project, persist=False, as_of=AS_OF)

        assert result.breakdown.contingency_cost == 574
        assert result.breakdown.total_cost == 8774
        assert result.record.prompt_style == "legacy-kv"
        assert result.record.timeline == "standard"
        assert result.record.contingency_suggestions == "Add 10% buffer"
        assert [d.category for d in result.diagnostics.degradations] == ["equipment"]

    @pytest.mark.asyncio
    async def test_form_input_is_recorded(self, fake_model_client, homeowner_project, homeowner_payload):
        orchestrator = EstimateOrchestrator(fake_model_client(HOMEOWNER_RESPONSE))

        result = await orchestrator.run(
            homeowner_project, persist=False, form_input=homeowner_payload, as_of=AS_OF
        )

        assert result.record.form_input_data == homeowner_payload


# ============================================================================
# Image annotations
# ============================================================================


class TestImageAnnotations:
    """Annotation count is checked, never repaired."""

    @pytest.mark.asyncio
    async def test_three_images_three_annotations(self, fake_model_client, adjuster_payload):
        project = ProjectRequirements.from_payload(adjuster_payload)
        orchestrator = EstimateOrchestrator(fake_model_client(ADJUSTER_RESPONSE))

        result = await orchestrator.run(project, _images(3), persist=False, as_of=AS_OF)

        assert result.image_analysis == ["Hail bruising on ridge", "Dented gutter", "Granule loss"]
        assert result.diagnostics.image_count_mismatch is False
        assert result.breakdown.total_cost == 12500

    @pytest.mark.asyncio
    async def test_count_mismatch_flagged_not_padded(self, fake_model_client, homeowner_project):
        orchestrator = EstimateOrchestrator(fake_model_client(HOMEOWNER_RESPONSE))

        result = await orchestrator.run(homeowner_project, _images(2), persist=False, as_of=AS_OF)

        assert result.diagnostics.image_count_mismatch is True
        assert result.image_analysis == []
        assert result.record.image_analysis == []

    @pytest.mark.asyncio
    async def test_missing_analysis_is_not_a_mismatch(self, fake_model_client, homeowner_project):
        orchestrator = EstimateOrchestrator(fake_model_client('{"materialsCost": 100}'))

        result = await orchestrator.run(homeowner_project, _images(1), persist=False, as_of=AS_OF)

        assert result.image_analysis is None
        assert result.diagnostics.image_count_mismatch is False


# ============================================================================
# Failures
# ============================================================================


class TestFailures:
    """Terminal failures carry the stage reached and persist nothing."""

    @pytest.mark.asyncio
    async def test_unknown_role_fails_before_model_call(self, fake_model_client, estimate_repository, homeowner_payload):
        project = ProjectRequirements.from_payload({**homeowner_payload, "userRole": "plumber"})
        client = fake_model_client(HOMEOWNER_RESPONSE)

        with pytest.raises(PipelineError) as exc_info:
            await EstimateOrchestrator(client, estimate_repository).run(project, project_id="1", as_of=AS_OF)

        assert exc_info.value.code == ErrorCode.UNKNOWN_ROLE
        assert exc_info.value.stage == "received"
        assert isinstance(exc_info.value.cause, UnknownRoleError)
        assert client.calls == []
        assert await estimate_repository.list_estimates("1") == []

    @pytest.mark.asyncio
    async def test_model_unavailable(self, estimate_repository, homeowner_project):
        client = UnavailableModelClient()

        with pytest.raises(PipelineError) as exc_info:
            await EstimateOrchestrator(client, estimate_repository).run(homeowner_project, project_id="1", as_of=AS_OF)

        assert exc_info.value.code == ErrorCode.MODEL_UNAVAILABLE
        assert exc_info.value.stage == "prompt_built"
        assert client.calls == 1
        assert await estimate_repository.list_estimates("1") == []

    @pytest.mark.asyncio
    async def test_malformed_output_persists_nothing(self, fake_model_client, estimate_repository, homeowner_project):
        orchestrator = EstimateOrchestrator(fake_model_client(TRUNCATED_RESPONSE), estimate_repository)

        with pytest.raises(PipelineError) as exc_info:
            await orchestrator.run(homeowner_project, project_id="1", as_of=AS_OF)

        error = exc_info.value
        assert error.code == ErrorCode.MALFORMED_MODEL_OUTPUT
        assert error.stage == "model_queried"
        assert error.details["stages"] == ["received", "prompt_built", "model_queried", "failed"]
        assert isinstance(error.cause, MalformedModelOutputError)
        assert error.cause.raw_text == TRUNCATED_RESPONSE
        assert await estimate_repository.list_estimates("1") == []

    @pytest.mark.asyncio
    async def test_persist_without_repository(self, fake_model_client, homeowner_project):
        orchestrator = EstimateOrchestrator(fake_model_client(HOMEOWNER_RESPONSE))

        with pytest.raises(PipelineError) as exc_info:
            await orchestrator.run(homeowner_project, project_id="1", as_of=AS_OF)

        assert exc_info.value.code == ErrorCode.PERSISTENCE_ERROR
        assert exc_info.value.stage == "aggregated"

    @pytest.mark.asyncio
    async def test_unexpected_error_is_wrapped(self, homeowner_project):
        with pytest.raises(PipelineError) as exc_info:
            await EstimateOrchestrator(BrokenModelClient()).run(homeowner_project, persist=False, as_of=AS_OF)

        assert exc_info.value.code == ErrorCode.PIPELINE_FAILED
        assert exc_info.value.details["type"] == "RuntimeError"


# ============================================================================
# Concurrency
# ============================================================================


class TestConcurrentRuns:
    """Concurrent requests for one project both append."""

    @pytest.mark.asyncio
    async def test_concurrent_runs_create_separate_records(self, fake_model_client, estimate_repository, homeowner_project):
        orchestrator = EstimateOrchestrator(fake_model_client(HOMEOWNER_RESPONSE), estimate_repository)

        first, second = await asyncio.gather(
            orchestrator.run(homeowner_project, project_id="1", as_of=AS_OF),
            orchestrator.run(homeowner_project, project_id="1", as_of=AS_OF),
        )

        assert first.record.id != second.record.id
        assert len(await estimate_repository.list_estimates("1")) == 2
        assert first.diagnostics is not second.diagnostics

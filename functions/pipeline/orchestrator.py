"""Estimate orchestrator for FlacronBuild.

Runs one estimate request through the linear stage sequence

    received -> prompt_built -> model_queried -> normalized
             -> aggregated -> persisted -> delivered

with a single terminal failed state reachable from any stage. Every run
builds its own prompt, request and result objects; nothing is shared
between concurrent runs except the estimate repository.
"""

import time
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import structlog

from config.errors import ErrorCode, FlacronError, MalformedModelOutputError, PersistenceError, PipelineError
from config.settings import settings
from models.estimate import (
    DATA_SOURCE,
    REGION_MULTIPLIER,
    ArithmeticDegradation,
    CostBreakdown,
    GeneratedEstimate,
    PipelineStage,
)
from models.project import ProjectRequirements
from models.report import NormalizedReport, ReportFormat
from pipeline.aggregator import aggregate
from pipeline.normalizer import normalize
from pipeline.prompts import build_prompt
from services.gemini_client import GeminiClient, InlinePart, TextPart
from services.repositories import EstimateRepository
from utils.estimate_logger import (
    log_estimate_complete,
    log_estimate_failed,
    log_estimate_start,
    log_raw_model_output,
    log_report_summary,
)

logger = structlog.get_logger()


@dataclass
class EstimateDiagnostics:
    """Server-side metadata about one run."""

    stages: List[PipelineStage] = field(default_factory=list)
    raw_text: str = ""
    degradations: List[ArithmeticDegradation] = field(default_factory=list)
    image_count: int = 0
    image_count_mismatch: bool = False
    prompt_style: str = ReportFormat.JSON.value
    duration_ms: int = 0


@dataclass
class EstimateResult:
    """Delivered output of a successful run."""

    record: GeneratedEstimate
    breakdown: CostBreakdown
    report: NormalizedReport
    diagnostics: EstimateDiagnostics

    @property
    def image_analysis(self) -> Optional[List[str]]:
        return self.report.image_analysis

    @property
    def data_source(self) -> str:
        return self.record.data_source


def _timeline_text(report: NormalizedReport) -> str:
    text = report.text_field("timeline")
    if text:
        return text
    labor = report.get("laborRequirements")
    if isinstance(labor, dict) and labor.get("estimatedDays") not in (None, ""):
        return f"{labor['estimatedDays']} days"
    return ""


class EstimateOrchestrator:
    """Composes prompt builder, model client, normalizer and aggregator.

    Args:
        model_client: Object with `async generate(parts) -> str`.
        estimate_repository: Append-only store; required when persisting.
        prompt_style: "json" or "legacy-kv"; defaults to settings.prompt_style.
        contingency_rate: Fallback contingency fraction of base cost.
    """

    def __init__(
        self,
        model_client: Optional[Any] = None,
        estimate_repository: Optional[EstimateRepository] = None,
        prompt_style: Optional[str] = None,
        contingency_rate: Optional[float] = None,
    ):
        self.model_client = model_client or GeminiClient()
        self.estimates = estimate_repository
        self.prompt_style = ReportFormat(prompt_style or settings.prompt_style)
        self.contingency_rate = settings.contingency_rate if contingency_rate is None else contingency_rate

    async def run(
        self,
        project: ProjectRequirements,
        images: Sequence[InlinePart] = (),
        *,
        project_id: Optional[str] = None,
        persist: bool = True,
        form_input: Optional[Dict[str, Any]] = None,
        as_of: Optional[date] = None,
    ) -> EstimateResult:
        """Run one estimate request.

        Raises:
            PipelineError: Wrapping the failure and the stage it happened at.
                Nothing is persisted unless aggregation succeeded.
        """
        started = time.time()
        images = list(images)
        diagnostics = EstimateDiagnostics(
            stages=[PipelineStage.RECEIVED],
            image_count=len(images),
            prompt_style=self.prompt_style.value,
        )
        log_estimate_start(project_id, str(project.role), len(images), persist)

        try:
            prompt = build_prompt(
                project.role,
                project,
                style=self.prompt_style,
                image_count=len(images),
                as_of=as_of,
            )
            diagnostics.stages.append(PipelineStage.PROMPT_BUILT)

            raw_text = await self.model_client.generate([TextPart(prompt.text), *images])
            diagnostics.raw_text = raw_text
            diagnostics.stages.append(PipelineStage.MODEL_QUERIED)

            try:
                report = normalize(raw_text, prompt.format)
            except MalformedModelOutputError as e:
                log_raw_model_output(project_id, e.raw_text, reason=e.message)
                raise
            diagnostics.stages.append(PipelineStage.NORMALIZED)
            log_report_summary(project_id, report.data)

            breakdown = aggregate(report, self.contingency_rate)
            diagnostics.degradations = list(breakdown.degradations)
            diagnostics.stages.append(PipelineStage.AGGREGATED)

            self._check_image_count(report, len(images), diagnostics, project_id)

            record = GeneratedEstimate(
                project_id=project_id,
                total_cost=breakdown.total_cost,
                materials_cost=breakdown.materials_cost,
                labor_cost=breakdown.labor_cost,
                permits_cost=breakdown.permits_cost,
                equipment_cost=breakdown.equipment_cost,
                contingency_cost=breakdown.contingency_cost,
                region_multiplier=REGION_MULTIPLIER,
                data_source=DATA_SOURCE,
                model=getattr(self.model_client, "model", None),
                role=prompt.role.value,
                prompt_style=prompt.format.value,
                timeline=_timeline_text(report),
                contingency_suggestions=report.text_field("contingencySuggestions"),
                report=report.data,
                image_analysis=report.image_analysis,
                form_input_data=form_input or {},
                raw_response=raw_text,
                degradations=breakdown.degradations,
            )

            if persist:
                if self.estimates is None:
                    raise PersistenceError("No estimate repository configured")
                record = await self.estimates.create_estimate(record)
                diagnostics.stages.append(PipelineStage.PERSISTED)

        except FlacronError as e:
            raise self._fail(e, diagnostics, project_id) from e
        except Exception as e:
            logger.exception("estimate_unexpected_error", project_id=project_id)
            cause = FlacronError(ErrorCode.PIPELINE_FAILED, str(e), {"type": type(e).__name__})
            raise self._fail(cause, diagnostics, project_id) from e

        diagnostics.stages.append(PipelineStage.DELIVERED)
        diagnostics.duration_ms = int((time.time() - started) * 1000)
        log_estimate_complete(
            project_id,
            breakdown.to_client_dict(),
            [s.value for s in diagnostics.stages],
            diagnostics.duration_ms,
            degradation_count=len(breakdown.degradations),
        )
        return EstimateResult(record=record, breakdown=breakdown, report=report, diagnostics=diagnostics)

    @staticmethod
    def _check_image_count(
        report: NormalizedReport,
        image_count: int,
        diagnostics: EstimateDiagnostics,
        project_id: Optional[str],
    ) -> None:
        """Flag, but never repair, an annotation count that differs from the upload count."""
        if report.image_analysis is None:
            if image_count:
                logger.warning("image_analysis_missing", project_id=project_id, image_count=image_count)
            return
        if len(report.image_analysis) != image_count:
            diagnostics.image_count_mismatch = True
            logger.warning(
                "image_analysis_count_mismatch",
                project_id=project_id,
                image_count=image_count,
                annotation_count=len(report.image_analysis),
            )

    @staticmethod
    def _fail(
        error: FlacronError,
        diagnostics: EstimateDiagnostics,
        project_id: Optional[str],
    ) -> PipelineError:
        stage = diagnostics.stages[-1]
        diagnostics.stages.append(PipelineStage.FAILED)
        log_estimate_failed(project_id, stage.value, error.to_dict(), [s.value for s in diagnostics.stages[:-1]])
        return PipelineError(error, stage=stage.value, details={"stages": [s.value for s in diagnostics.stages]})

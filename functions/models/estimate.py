"""Estimate models for FlacronBuild.

Pydantic models for the cost breakdown and the finalized estimate record
stored per project.
"""

from enum import Enum
from typing import Dict, Any, Optional, List
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field

from config.errors import ErrorCode


DATA_SOURCE = "Gemini API"
REGION_MULTIPLIER = 1.0


class PipelineStage(str, Enum):
    """Stages of one estimate request, in order."""

    RECEIVED = "received"
    PROMPT_BUILT = "prompt_built"
    MODEL_QUERIED = "model_queried"
    NORMALIZED = "normalized"
    AGGREGATED = "aggregated"
    PERSISTED = "persisted"
    DELIVERED = "delivered"
    FAILED = "failed"


class ArithmeticDegradation(BaseModel):
    """Record of a cost field coerced to zero.

    Never raised; attached to the breakdown and logged as a warning.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    code: str = Field(default=ErrorCode.ARITHMETIC_DEGRADATION)
    category: str = Field(description="Cost category that degraded")
    reason: str = Field(description="missing | non_numeric | negative | not_finite")
    raw_value: Optional[str] = Field(
        default=None,
        alias="rawValue",
        description="repr of the offending value, if any"
    )


class CostBreakdown(BaseModel):
    """Six cost figures with total == sum of the other five."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    materials_cost: float = Field(default=0, ge=0, alias="materialsCost")
    labor_cost: float = Field(default=0, ge=0, alias="laborCost")
    permits_cost: float = Field(default=0, ge=0, alias="permitsCost")
    equipment_cost: float = Field(default=0, ge=0, alias="equipmentCost")
    contingency_cost: float = Field(default=0, ge=0, alias="contingencyCost")
    total_cost: float = Field(default=0, ge=0, alias="totalCost")
    degradations: List[ArithmeticDegradation] = Field(default_factory=list)

    @property
    def base_cost(self) -> float:
        return self.materials_cost + self.labor_cost + self.permits_cost + self.equipment_cost

    def to_client_dict(self) -> Dict[str, float]:
        """camelCase cost figures for the HTTP response `breakdown` key."""
        return self.model_dump(by_alias=True, exclude={"degradations"})


class GeneratedEstimate(BaseModel):
    """One persisted estimate attempt for a project.

    Records are append-only: a new request creates a new record.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(default=None, description="Document ID")
    project_id: Optional[str] = Field(default=None, alias="projectId")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        alias="createdAt"
    )

    total_cost: float = Field(alias="totalCost")
    materials_cost: float = Field(alias="materialsCost")
    labor_cost: float = Field(alias="laborCost")
    permits_cost: float = Field(alias="permitsCost")
    equipment_cost: float = Field(alias="equipmentCost")
    contingency_cost: float = Field(alias="contingencyCost")
    region_multiplier: float = Field(default=REGION_MULTIPLIER, alias="regionMultiplier")

    data_source: str = Field(default=DATA_SOURCE, alias="dataSource")
    model: Optional[str] = None
    role: Optional[str] = None
    prompt_style: Optional[str] = Field(default=None, alias="promptStyle")

    timeline: str = ""
    contingency_suggestions: str = Field(default="", alias="contingencySuggestions")
    report: Dict[str, Any] = Field(default_factory=dict)
    image_analysis: Optional[List[str]] = Field(default=None, alias="imageAnalysis")

    form_input_data: Dict[str, Any] = Field(default_factory=dict, alias="formInputData")
    raw_response: Optional[str] = Field(default=None, alias="rawResponse")
    degradations: List[ArithmeticDegradation] = Field(default_factory=list)

    @property
    def breakdown(self) -> CostBreakdown:
        return CostBreakdown(
            materials_cost=self.materials_cost,
            labor_cost=self.labor_cost,
            permits_cost=self.permits_cost,
            equipment_cost=self.equipment_cost,
            contingency_cost=self.contingency_cost,
            total_cost=self.total_cost,
            degradations=self.degradations,
        )

    def to_firestore_dict(self) -> Dict[str, Any]:
        """Convert to Firestore-compatible dictionary (camelCase keys)."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_response_dict(self) -> Dict[str, Any]:
        """JSON-safe camelCase dict for HTTP responses; raw model text stays server-side."""
        return self.model_dump(by_alias=True, mode="json", exclude={"raw_response"})

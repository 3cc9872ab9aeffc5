"""Cost aggregation.

Reads each cost category from the normalized report through a fixed
fallback chain, coerces it to a non-negative number, fills in contingency
when the model gave none, and recomputes the total locally.
"""

import math
import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Tuple, Union

import structlog

from models.estimate import ArithmeticDegradation, CostBreakdown
from models.report import NormalizedReport

logger = structlog.get_logger()

DEFAULT_CONTINGENCY_RATE = 0.07

# category -> (direct field, nested alternate path)
COST_FIELD_PATHS: Dict[str, Tuple[str, Tuple[str, ...]]] = {
    "materials": ("materialsCost", ("costEstimates", "materials", "total")),
    "labor": ("laborCost", ("costEstimates", "labor", "total")),
    "permits": ("permitsCost", ("costEstimates", "permits", "total")),
    "equipment": ("equipmentCost", ("costEstimates", "equipment", "total")),
    "contingency": ("contingencyCost", ("costEstimates", "contingency", "total")),
}
BASE_CATEGORIES = ["materials", "labor", "permits", "equipment"]

_NUMERIC_TEXT = re.compile(r"^-?\d+(?:\.\d+)?$")

_MISSING = object()


def round_half_up(value: float) -> float:
    """Round to the nearest whole unit, .5 away from zero."""
    return float(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _lookup(data: Dict[str, Any], path: Tuple[str, ...]) -> Any:
    node: Any = data
    for key in path:
        if not isinstance(node, dict) or key not in node:
            return _MISSING
        node = node[key]
    return node


def _first_present(data: Dict[str, Any], category: str) -> Any:
    direct, nested = COST_FIELD_PATHS[category]
    value = data.get(direct, _MISSING)
    if value is None or value == "":
        value = _MISSING
    if value is _MISSING:
        value = _lookup(data, nested)
        if value is None or value == "":
            value = _MISSING
    return value


def coerce_cost(value: Any) -> Tuple[float, Optional[str]]:
    """Coerce a model value to a cost.

    Returns:
        (amount, degradation reason or None)
    """
    if isinstance(value, bool):
        return 0.0, "non_numeric"
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = value.strip().replace(",", "").replace("$", "").strip()
        if not _NUMERIC_TEXT.match(cleaned):
            return 0.0, "non_numeric"
        number = float(cleaned)
    else:
        return 0.0, "non_numeric"

    if not math.isfinite(number):
        return 0.0, "not_finite"
    if number < 0:
        return 0.0, "negative"
    return number, None


def aggregate(
    report: Union[NormalizedReport, Dict[str, Any]],
    contingency_rate: float = DEFAULT_CONTINGENCY_RATE,
) -> CostBreakdown:
    """Build a CostBreakdown whose total is exactly the sum of its parts."""
    data = report.data if isinstance(report, NormalizedReport) else report
    amounts: Dict[str, float] = {}
    degradations: List[ArithmeticDegradation] = []

    for category in COST_FIELD_PATHS:
        raw = _first_present(data, category)
        if raw is _MISSING:
            amounts[category] = 0.0
            # Absent contingency is the documented fallback, not a degradation
            if category != "contingency":
                degradations.append(ArithmeticDegradation(category=category, reason="missing"))
            continue
        amount, reason = coerce_cost(raw)
        amounts[category] = amount
        if reason:
            degradations.append(
                ArithmeticDegradation(category=category, reason=reason, raw_value=repr(raw)[:200])
            )

    base_cost = sum(amounts[c] for c in BASE_CATEGORIES)
    contingency = amounts["contingency"]
    if not contingency:
        contingency = round_half_up(base_cost * contingency_rate)

    for degradation in degradations:
        logger.warning(
            "cost_field_degraded",
            category=degradation.category,
            reason=degradation.reason,
            raw_value=degradation.raw_value,
        )

    return CostBreakdown(
        materials_cost=amounts["materials"],
        labor_cost=amounts["labor"],
        permits_cost=amounts["permits"],
        equipment_cost=amounts["equipment"],
        contingency_cost=contingency,
        total_cost=base_cost + contingency,
        degradations=degradations,
    )

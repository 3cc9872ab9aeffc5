"""Estimate pipeline logger for FlacronBuild.

Formatted banners for estimate requests that stand out in log streams,
plus structured events for log aggregation.
"""

import json
import logging
import structlog
from typing import Dict, Any, List, Optional
from datetime import datetime, timezone

logger = structlog.get_logger()

# Visual markers for different log types
BANNER_WIDTH = 80
PIPELINE_BANNER_CHAR = "█"
RAW_OUTPUT_BANNER_CHAR = "░"


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Configure structlog for the process.

    Console rendering locally; JSON lines when json_output is set (Cloud Functions).
    """
    level_value = logging.getLevelName(level.upper())
    if not isinstance(level_value, int):
        level_value = logging.INFO

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_value),
    )


def _create_banner(char: str, text: str, width: int = BANNER_WIDTH) -> str:
    """Create a centered banner with given character."""
    text_with_spaces = f" {text} "
    padding = (width - len(text_with_spaces)) // 2
    return char * padding + text_with_spaces + char * (width - padding - len(text_with_spaces))


def _format_json(data: Dict[str, Any], indent: int = 2) -> str:
    """Format dictionary as pretty JSON string."""
    try:
        return json.dumps(data, indent=indent, default=str, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(data)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def log_estimate_start(project_id: Optional[str], role: str, image_count: int, persist: bool) -> None:
    """Log estimate request start with prominent banner."""
    print("\n")
    print(PIPELINE_BANNER_CHAR * BANNER_WIDTH)
    print(_create_banner(PIPELINE_BANNER_CHAR, "FLACRONBUILD ESTIMATE STARTED"))
    print(PIPELINE_BANNER_CHAR * BANNER_WIDTH)
    print(f"║ Project ID  : {project_id or '-'}")
    print(f"║ Timestamp   : {_now()}")
    print(f"║ Role        : {role}")
    print(f"║ Images      : {image_count}")
    print(f"║ Persist     : {persist}")
    print(PIPELINE_BANNER_CHAR * BANNER_WIDTH)

    logger.info(
        "estimate_start_logged",
        project_id=project_id,
        role=role,
        image_count=image_count,
        persist=persist
    )


def log_estimate_complete(
    project_id: Optional[str],
    breakdown: Dict[str, float],
    stages: List[str],
    duration_ms: int,
    degradation_count: int = 0
) -> None:
    """Log estimate completion with the cost summary."""
    print("\n")
    print(PIPELINE_BANNER_CHAR * BANNER_WIDTH)
    print(_create_banner(PIPELINE_BANNER_CHAR, "✓ ESTIMATE COMPLETED"))
    print(PIPELINE_BANNER_CHAR * BANNER_WIDTH)
    print(f"║ Project ID    : {project_id or '-'}")
    print(f"║ Duration      : {duration_ms:,} ms ({duration_ms / 1000:.2f}s)")
    print(f"║ Total         : {breakdown.get('totalCost', 0):,.2f}")
    print(f"║ Degradations  : {degradation_count}")
    print(f"║ Stages        : {' -> '.join(stages)}")
    print(PIPELINE_BANNER_CHAR * BANNER_WIDTH)

    logger.info(
        "estimate_complete_logged",
        project_id=project_id,
        duration_ms=duration_ms,
        total=breakdown.get("totalCost"),
        degradation_count=degradation_count
    )


def log_estimate_failed(
    project_id: Optional[str],
    stage: str,
    error: Dict[str, Any],
    stages: List[str]
) -> None:
    """Log estimate failure with the stage reached and error details."""
    print("\n")
    print("!" * BANNER_WIDTH)
    print(_create_banner("!", "✗ ESTIMATE FAILED"))
    print("!" * BANNER_WIDTH)
    print(f"║ Project ID       : {project_id or '-'}")
    print(f"║ Timestamp        : {_now()}")
    print(f"║ Failed At        : {stage}")
    print(f"║ Error Code       : {error.get('code')}")
    print(f"║ Error            : {error.get('message')}")
    print(f"║ Completed Before : {' -> '.join(stages) if stages else '-'}")
    print("!" * BANNER_WIDTH)

    logger.error(
        "estimate_failed_logged",
        project_id=project_id,
        stage=stage,
        error=error
    )


def log_raw_model_output(project_id: Optional[str], raw_text: str, reason: str) -> None:
    """Dump raw model text for manual inspection. Server-side only."""
    print("\n")
    print(RAW_OUTPUT_BANNER_CHAR * BANNER_WIDTH)
    print(_create_banner(RAW_OUTPUT_BANNER_CHAR, f"RAW MODEL OUTPUT ({reason})"))
    print(RAW_OUTPUT_BANNER_CHAR * BANNER_WIDTH)
    for line in (raw_text or "<empty>").split("\n"):
        print(f"  {line}")
    print(RAW_OUTPUT_BANNER_CHAR * BANNER_WIDTH)

    logger.error(
        "raw_model_output",
        project_id=project_id,
        reason=reason,
        raw_text=raw_text
    )


def log_report_summary(project_id: Optional[str], report: Dict[str, Any]) -> None:
    """Log the normalized report's top-level shape."""
    logger.info(
        "report_normalized",
        project_id=project_id,
        keys=sorted(report.keys()),
        preview=_format_json({k: report[k] for k in list(report)[:3]})[:500]
    )

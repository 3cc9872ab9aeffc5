"""Cloud Function entry points for FlacronBuild estimates.

Provides HTTP endpoints for:
- Generating an estimate for a project
- Listing estimates / fetching the latest one
- Re-running the cost breakdown without persisting
"""

import asyncio
import json
from typing import Dict, Any, Optional
from datetime import datetime, date

import structlog
from firebase_functions import https_fn, options
from firebase_admin import initialize_app

import routes
from config.settings import settings
from config.errors import ConfigurationError
from services.estimate_service import EstimateService
from utils.estimate_logger import configure_logging

# Initialize Firebase Admin SDK
try:
    initialize_app()
except ValueError:
    # Already initialized
    pass

configure_logging(settings.log_level, json_output=not settings.is_emulator_mode)
logger = structlog.get_logger()

try:
    settings.validate()
except ConfigurationError as e:
    # Requests still fail with a generic 500 until the setting is fixed
    logger.error("configuration_invalid", **e.to_dict())

_service: Optional[EstimateService] = None


def get_service() -> EstimateService:
    """Estimate service bound to the configured backend (built once per instance)."""
    global _service
    if _service is None:
        _service = routes.build_estimate_service()
    return _service


# ============================================================================
# Helper Functions
# ============================================================================


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Max-Age": "3600"
}


def get_request_json(req: https_fn.Request) -> Dict[str, Any]:
    """Extract JSON from request body; an empty or invalid body is {}."""
    data = req.get_json(force=True, silent=True)
    return data if isinstance(data, dict) else {}


def _cors_response() -> https_fn.Response:
    """Return CORS preflight response."""
    return https_fn.Response(
        "",
        status=204,
        headers=CORS_HEADERS
    )


def _json_response(data: Any, status: int = 200) -> https_fn.Response:
    """Return JSON response with CORS headers."""

    def _json_default(o: Any):
        """JSON serializer for objects not serializable by default.

        Firestore returns timestamp types like `DatetimeWithNanoseconds` which
        behave like datetime objects but are not JSON serializable.
        """
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        return str(o)

    return https_fn.Response(
        json.dumps(data, default=_json_default),
        status=status,
        mimetype="application/json",
        headers=CORS_HEADERS
    )


# ============================================================================
# Entry Points
# ============================================================================


@https_fn.on_request(
    timeout_sec=300,
    memory=options.MemoryOption.MB_512,
    region="us-central1"
)
def api(req: https_fn.Request) -> https_fn.Response:
    """Estimate API.

    Routes:
        POST /api/projects/{id}/estimate        body: {"files": [...]}
        GET  /api/projects/{id}/estimates
        GET  /api/projects/{id}/estimate/latest
        GET  /api/projects/{id}/cost-breakdown
    """
    if req.method == "OPTIONS":
        return _cors_response()

    body = get_request_json(req) if req.method == "POST" else None
    logger.info("api_request", method=req.method, path=req.path)

    payload, status = asyncio.run(routes.dispatch(get_service(), req.method, req.path, body))
    return _json_response(payload, status=status)

"""Gemini generateContent client for FlacronBuild.

Sends prompt text plus optional inline images and returns the reply text
exactly as the model produced it. No retries; any transport failure or
non-2xx status surfaces as ModelUnavailableError.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import httpx
import structlog

from config.errors import ModelUnavailableError
from config.settings import settings

logger = structlog.get_logger()


# =============================================================================
# Request parts
# =============================================================================


@dataclass(frozen=True)
class TextPart:
    """Prompt text."""

    text: str

    def to_api(self) -> Dict[str, Any]:
        return {"text": self.text}


@dataclass(frozen=True)
class InlinePart:
    """Base64 payload sent inline (images)."""

    mime_type: str
    data: str

    def to_api(self) -> Dict[str, Any]:
        return {"inline_data": {"mime_type": self.mime_type, "data": self.data}}


Part = Union[TextPart, InlinePart]


def extract_text(payload: Any) -> str:
    """Read candidates[0].content.parts[0].text; missing pieces give ''."""
    try:
        text = payload["candidates"][0]["content"]["parts"][0].get("text")
    except (KeyError, IndexError, TypeError, AttributeError):
        return ""
    return text if isinstance(text, str) else ""


# =============================================================================
# Client
# =============================================================================


class GeminiClient:
    """Thin async adapter over the generateContent endpoint.

    Args:
        api_key: Gemini API key; defaults to settings.gemini_api_key.
        model: Model name; defaults to settings.gemini_model.
        api_base: API root; defaults to settings.gemini_api_base.
        timeout: Seconds, or None to wait indefinitely.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        api_base: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self._api_key = api_key
        self.model = model or settings.gemini_model
        self.api_base = (api_base or settings.gemini_api_base).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.model_timeout_seconds

    @property
    def api_key(self) -> Optional[str]:
        return self._api_key or settings.gemini_api_key

    @property
    def url(self) -> str:
        return f"{self.api_base}/models/{self.model}:generateContent"

    @staticmethod
    def build_body(parts: List[Part]) -> Dict[str, Any]:
        return {"contents": [{"parts": [part.to_api() for part in parts]}]}

    async def generate(self, parts: List[Part]) -> str:
        """Send parts and return the raw reply text.

        Raises:
            ModelUnavailableError: Missing key, network error, timeout,
                non-2xx status, or a non-JSON body.
        """
        api_key = self.api_key
        if not api_key:
            raise ModelUnavailableError("Gemini API key is not configured")

        body = self.build_body(parts)
        inline_count = sum(1 for p in parts if isinstance(p, InlinePart))
        logger.info(
            "gemini_request",
            model=self.model,
            parts=len(parts),
            inline_parts=inline_count,
        )

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.url,
                    params={"key": api_key},
                    json=body,
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code if e.response is not None else None
            logger.error("gemini_http_error", model=self.model, status_code=status)
            raise ModelUnavailableError(
                f"Gemini API returned HTTP {status}", status_code=status
            ) from e
        except httpx.TimeoutException as e:
            logger.error("gemini_timeout", model=self.model, timeout=self.timeout)
            raise ModelUnavailableError(
                "Gemini API request timed out", details={"timeout": self.timeout}
            ) from e
        except httpx.HTTPError as e:
            logger.error("gemini_request_failed", model=self.model, error=str(e))
            raise ModelUnavailableError(f"Gemini API request failed: {e}") from e
        except ValueError as e:
            logger.error("gemini_invalid_json", model=self.model, error=str(e))
            raise ModelUnavailableError("Gemini API returned a non-JSON body") from e

        text = extract_text(payload)
        logger.info("gemini_response", model=self.model, text_length=len(text))
        return text

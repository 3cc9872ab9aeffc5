"""Unit tests for the Gemini generateContent client."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

import httpx

from config.errors import ModelUnavailableError, ErrorCode
from services.gemini_client import GeminiClient, InlinePart, TextPart, extract_text
from tests.fixtures.mock_model_responses import HOMEOWNER_RESPONSE, gemini_payload

URL = "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.0-flash:generateContent"


def _mock_response(payload=None, status_error=None, json_error=None):
    response = MagicMock()
    response.raise_for_status = MagicMock(side_effect=status_error)
    if json_error is not None:
        response.json = MagicMock(side_effect=json_error)
    else:
        response.json = MagicMock(return_value=payload)
    return response


class TestExtractText:
    """Reply text extraction."""

    def test_first_candidate_text(self):
        assert extract_text(gemini_payload("hello")) == "hello"

    @pytest.mark.parametrize("payload", [
        {},
        {"candidates": []},
        {"candidates": [{"content": {"parts": []}}]},
        {"candidates": [{"content": {"parts": [{"inline_data": {}}]}}]},
        None,
    ])
    def test_missing_pieces_give_empty_text(self, payload):
        assert extract_text(payload) == ""


class TestGeminiClient:
    """Request construction and error mapping."""

    def test_defaults_from_settings(self):
        client = GeminiClient()
        assert client.url == URL
        assert client.api_key == "test-gemini-key"
        assert client.timeout is None

    def test_body_keeps_part_order(self):
        body = GeminiClient.build_body([
            TextPart("prompt"),
            InlinePart("image/png", "AAA"),
            InlinePart("image/jpeg", "BBB"),
        ])
        assert body == {"contents": [{"parts": [
            {"text": "prompt"},
            {"inline_data": {"mime_type": "image/png", "data": "AAA"}},
            {"inline_data": {"mime_type": "image/jpeg", "data": "BBB"}},
        ]}]}

    @pytest.mark.asyncio
    async def test_generate_returns_raw_text(self):
        with patch("httpx.AsyncClient") as mock_client:
            post = AsyncMock(return_value=_mock_response(gemini_payload(HOMEOWNER_RESPONSE)))
            mock_client.return_value.__aenter__.return_value.post = post

            text = await GeminiClient().generate([TextPart("prompt"), InlinePart("image/png", "AAA")])

        assert text == HOMEOWNER_RESPONSE
        args, kwargs = post.call_args
        assert args[0] == URL
        assert kwargs["params"] == {"key": "test-gemini-key"}
        assert kwargs["json"]["contents"][0]["parts"][1]["inline_data"]["data"] == "AAA"
        mock_client.assert_called_once_with(timeout=None)

    @pytest.mark.asyncio
    async def test_timeout_is_passed_through(self):
        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                return_value=_mock_response(gemini_payload("ok"))
            )
            await GeminiClient(timeout=30).generate([TextPart("prompt")])

        mock_client.assert_called_once_with(timeout=30)

    @pytest.mark.asyncio
    async def test_non_2xx_raises_model_unavailable(self):
        request = httpx.Request("POST", URL)
        error = httpx.HTTPStatusError("unavailable", request=request, response=httpx.Response(503, request=request))

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                return_value=_mock_response(status_error=error)
            )
            with pytest.raises(ModelUnavailableError) as exc_info:
                await GeminiClient().generate([TextPart("prompt")])

        assert exc_info.value.status_code == 503
        assert exc_info.value.code == ErrorCode.MODEL_UNAVAILABLE

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        httpx.ReadTimeout("timed out"),
        httpx.ConnectError("connection refused"),
    ])
    async def test_transport_errors_raise_model_unavailable(self, error):
        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(side_effect=error)
            with pytest.raises(ModelUnavailableError):
                await GeminiClient().generate([TextPart("prompt")])

    @pytest.mark.asyncio
    async def test_non_json_body_raises_model_unavailable(self):
        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                return_value=_mock_response(json_error=ValueError("Expecting value"))
            )
            with pytest.raises(ModelUnavailableError):
                await GeminiClient().generate([TextPart("prompt")])

    @pytest.mark.asyncio
    async def test_missing_key_fails_before_request(self, monkeypatch, test_settings):
        monkeypatch.setattr(test_settings, "_gemini_api_key", "")

        with patch("httpx.AsyncClient") as mock_client:
            with pytest.raises(ModelUnavailableError):
                await GeminiClient().generate([TextPart("prompt")])

        mock_client.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_candidates_return_empty_text(self):
        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                return_value=_mock_response({"candidates": []})
            )
            assert await GeminiClient().generate([TextPart("prompt")]) == ""

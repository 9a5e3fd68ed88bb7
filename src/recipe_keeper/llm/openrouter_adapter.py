"""OpenRouter adapter.

Uses the OpenAI-compatible HTTP API: POST {base_url}/chat/completions
Requests are sanitized and retried with exponential backoff; every transport
failure is translated into a ModelGatewayError with a stable code.
"""

from __future__ import annotations

import asyncio
import json
import re
from typing import Any

import aiohttp
from pydantic import ValidationError

from ..domain.errors import ModelGatewayError
from ..domain.models import GatewayErrorCode
from ..observability.logger import get_logger
from .runtime import ChatCompletionGateway, ChatCompletionRequest, ChatCompletionResponse

logger = get_logger(__name__)

MAX_MESSAGE_CHARS = 50_000

# Tab, LF and CR are kept; recipe text relies on line breaks.
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")

_NON_RETRYABLE = {
    GatewayErrorCode.INVALID_REQUEST,
    GatewayErrorCode.AUTH_ERROR,
    GatewayErrorCode.NOT_FOUND,
}


def sanitize_message(value: str | None) -> str:
    """Strip control characters, trim and cap length. Idempotent."""
    if not value:
        return ""
    cleaned = _CONTROL_CHARS.sub("", value).strip()
    return cleaned[:MAX_MESSAGE_CHARS].rstrip()


def is_valid_response_format(response_format: Any) -> bool:
    if not isinstance(response_format, dict) or response_format.get("type") != "json_schema":
        return False
    json_schema = response_format.get("json_schema")
    if not isinstance(json_schema, dict) or not json_schema.get("name") or not json_schema.get("schema"):
        return False
    try:
        json.dumps(json_schema["schema"])
    except (TypeError, ValueError):
        return False
    return True


def _provider_message(body: str, fallback: str) -> str:
    try:
        data = json.loads(body)
    except ValueError:
        return fallback
    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        message = data["error"].get("message")
        if message:
            return str(message)
    return fallback


def http_status_error(status: int, message: str) -> ModelGatewayError:
    """Map a provider HTTP status onto the gateway error taxonomy."""
    if status == 401:
        return ModelGatewayError(401, f"OpenRouter authentication error: {message}", GatewayErrorCode.AUTH_ERROR)
    if status == 429:
        return ModelGatewayError(429, f"OpenRouter rate limit exceeded: {message}", GatewayErrorCode.RATE_LIMIT_EXCEEDED)
    if status == 400:
        return ModelGatewayError(400, f"OpenRouter invalid request: {message}", GatewayErrorCode.INVALID_REQUEST)
    if status == 404:
        return ModelGatewayError(404, f"OpenRouter model not found: {message}", GatewayErrorCode.NOT_FOUND)
    if status in (502, 503, 504):
        return ModelGatewayError(
            status, f"OpenRouter service unavailable: {message}", GatewayErrorCode.SERVICE_UNAVAILABLE
        )
    return ModelGatewayError(status, f"OpenRouter API error ({status}): {message}", GatewayErrorCode.API_ERROR)


class OpenRouterAdapter(ChatCompletionGateway):
    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://openrouter.ai/api/v1",
        default_model: str = "google/gemini-2.0-flash-001",
        timeout_seconds: float = 60.0,
        max_retries: int = 2,
        retry_delay_seconds: float = 2.0,
        backoff_multiplier: float = 2.0,
        site_url: str = "http://localhost:4321",
        app_title: str = "AI Recipe Keeper",
    ):
        if not api_key:
            raise ModelGatewayError(500, "API key is required for OpenRouterAdapter", GatewayErrorCode.CONFIG_ERROR)
        if not api_key.startswith("sk-or-"):
            raise ModelGatewayError(500, "Invalid OpenRouter API key format", GatewayErrorCode.CONFIG_ERROR)

        self._base_url = base_url.rstrip("/")
        self.default_model = default_model
        self._timeout_seconds = float(timeout_seconds)
        self._max_retries = max(0, int(max_retries))
        self._retry_delay = float(retry_delay_seconds)
        self._backoff = float(backoff_multiplier)
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": site_url,
            "X-Title": app_title,
        }
        self.is_connected = False

    async def create_chat_completion(self, req: ChatCompletionRequest) -> ChatCompletionResponse:
        if not req.user_message or not req.user_message.strip():
            raise ModelGatewayError(400, "User message cannot be empty", GatewayErrorCode.VALIDATION_ERROR)

        system_message = sanitize_message(req.system_message)
        user_message = sanitize_message(req.user_message)

        if req.response_format is not None and not is_valid_response_format(req.response_format):
            raise ModelGatewayError(400, "Invalid response format", GatewayErrorCode.VALIDATION_ERROR)

        payload: dict[str, Any] = {
            "model": req.model_name or self.default_model,
            "messages": self._format_messages(system_message, user_message),
            **(req.model_parameters or {}),
        }
        if req.response_format is not None:
            payload["response_format"] = req.response_format

        try:
            data = await self._request_with_retries("/chat/completions", payload)
            try:
                response = ChatCompletionResponse.model_validate(data)
            except ValidationError as e:
                raise ModelGatewayError(
                    500,
                    "Unexpected response shape from OpenRouter",
                    GatewayErrorCode.UNEXPECTED_ERROR,
                    detail=str(e),
                ) from e
        except ModelGatewayError:
            self.is_connected = False
            raise
        self.is_connected = True
        return response

    @staticmethod
    def _format_messages(system_message: str, user_message: str) -> list[dict[str, str]]:
        messages = []
        if system_message:
            messages.append({"role": "system", "content": system_message})
        messages.append({"role": "user", "content": user_message})
        return messages

    async def _request_with_retries(self, endpoint: str, payload: dict[str, Any]) -> Any:
        attempts = self._max_retries + 1
        for attempt in range(attempts):
            try:
                return await self._post_once(endpoint, payload)
            except ModelGatewayError as e:
                if e.gateway_code in _NON_RETRYABLE or attempt == attempts - 1:
                    raise
                delay = self._retry_delay * (self._backoff ** attempt)
                logger.warning(
                    "model_request_retry",
                    attempt=attempt + 1,
                    max_attempts=attempts,
                    delay_seconds=delay,
                    error_code=e.code,
                    error=str(e),
                )
                await asyncio.sleep(delay)
        raise ModelGatewayError(500, "Unexpected connection error", GatewayErrorCode.UNEXPECTED_ERROR)

    async def _post_once(self, endpoint: str, payload: dict[str, Any]) -> Any:
        timeout = aiohttp.ClientTimeout(total=self._timeout_seconds)
        try:
            async with aiohttp.ClientSession(timeout=timeout, headers=self._headers) as session:
                async with session.post(f"{self._base_url}{endpoint}", json=payload) as resp:
                    if resp.status >= 400:
                        body = await resp.text()
                        raise http_status_error(resp.status, _provider_message(body, resp.reason or ""))
                    return await resp.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise ModelGatewayError(
                504, "Request to OpenRouter timed out", GatewayErrorCode.TIMEOUT_ERROR, detail=str(e)
            ) from e
        except aiohttp.ClientConnectorError as e:
            raise ModelGatewayError(
                503, "Could not connect to OpenRouter service", GatewayErrorCode.CONNECTION_ERROR, detail=str(e)
            ) from e
        except (aiohttp.ClientError, ValueError) as e:
            raise ModelGatewayError(
                500, f"Unexpected network error: {e}", GatewayErrorCode.UNEXPECTED_ERROR
            ) from e

"""HTTP controller - transport layer only.

Responsibilities:
- Authenticate the caller from headers set by the upstream auth gateway
- Check content type and parse JSON bodies
- Call the service layer and shape its results into responses

Domain errors propagate to the app-level exception handler.
"""

from __future__ import annotations

import hmac
import json
from typing import Any, Optional, TypeVar

import structlog
from fastapi import APIRouter, Depends, Header, Request, Response
from pydantic import BaseModel, ValidationError

from ..config.settings import get_settings
from ..domain.errors import AuthenticationError, InvalidInputError, RecipeKeeperError
from ..domain.models import ErrorCode, ExtractionModule, ExtractionOutcome
from ..lifespan import app_state
from ..models.requests import ExtractFromTextRequest, ExtractFromUrlRequest, ExtractionFeedbackRequest
from ..services.extraction_service import RecipeExtractionService

router = APIRouter(prefix="/api/recipe")

RequestModel = TypeVar("RequestModel", bound=BaseModel)


def require_user(
    x_user_id: Optional[str] = Header(default=None),
    x_gateway_key: Optional[str] = Header(default=None),
) -> str:
    expected_key = get_settings().gateway_api_key
    if expected_key and not hmac.compare_digest(x_gateway_key or "", expected_key):
        raise AuthenticationError("Authentication required")
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise AuthenticationError("Authentication required")
    structlog.contextvars.bind_contextvars(user_id=user_id)
    return user_id


def get_extraction_service() -> RecipeExtractionService:
    service = app_state.get("extraction_service")
    if service is None:
        raise RecipeKeeperError("Extraction service is not available", status_code=503)
    return service


async def parse_json_body(
    request: Request,
    model: type[RequestModel],
    *,
    invalid_message: str = "Invalid request body",
    invalid_code: ErrorCode = ErrorCode.INVALID_INPUT,
) -> RequestModel:
    content_type = request.headers.get("content-type", "")
    if content_type.split(";")[0].strip().lower() != "application/json":
        raise InvalidInputError("Content-Type must be application/json", code=ErrorCode.INVALID_CONTENT_TYPE.value)
    try:
        payload = json.loads(await request.body())
    except ValueError as e:
        raise InvalidInputError("Invalid JSON in request body", detail=str(e), code=ErrorCode.INVALID_JSON.value) from e
    if not isinstance(payload, dict):
        raise InvalidInputError("Request body must be a JSON object", code=ErrorCode.INVALID_JSON.value)
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise InvalidInputError(
            invalid_message,
            code=invalid_code.value,
            details={"issues": [{"field": ".".join(map(str, err["loc"])), "message": err["msg"]} for err in e.errors()]},
        ) from e


def _outcome_body(outcome: ExtractionOutcome, *, include_text: bool) -> dict[str, Any]:
    body: dict[str, Any] = {
        "extraction_log_id": outcome.extraction_log_id,
        "extracted_data": outcome.result.data,
    }
    if include_text:
        body["original_text"] = outcome.original_text
    if outcome.result.warnings:
        body["warnings"] = outcome.result.warnings
    return body


@router.post("/extract-from-text")
async def extract_from_text(
    request: Request,
    user_id: str = Depends(require_user),
    service: RecipeExtractionService = Depends(get_extraction_service),
) -> dict[str, Any]:
    structlog.contextvars.bind_contextvars(module=ExtractionModule.TEXT.value)
    body = await parse_json_body(
        request, ExtractFromTextRequest, invalid_message="Text must be a string", invalid_code=ErrorCode.MISSING_TEXT
    )
    outcome = await service.extract_from_text(user_id, body.text)
    return _outcome_body(outcome, include_text=True)


@router.post("/extract-from-url")
async def extract_from_url(
    request: Request,
    user_id: str = Depends(require_user),
    service: RecipeExtractionService = Depends(get_extraction_service),
) -> dict[str, Any]:
    structlog.contextvars.bind_contextvars(module=ExtractionModule.URL.value)
    body = await parse_json_body(
        request, ExtractFromUrlRequest, invalid_message="Invalid URL format", invalid_code=ErrorCode.INVALID_URL
    )
    outcome = await service.extract_from_url(user_id, body.url)
    return _outcome_body(outcome, include_text=False)


@router.post("/extraction/{log_id}/feedback", status_code=204)
async def submit_feedback(
    log_id: str,
    request: Request,
    user_id: str = Depends(require_user),
    service: RecipeExtractionService = Depends(get_extraction_service),
) -> Response:
    body = await parse_json_body(
        request,
        ExtractionFeedbackRequest,
        invalid_message="Feedback must be 'positive' or 'negative'",
        invalid_code=ErrorCode.INVALID_FEEDBACK,
    )
    await service.submit_feedback(user_id, log_id, body.feedback)
    return Response(status_code=204)


@router.get("/extraction/limit")
async def get_extraction_limit(
    user_id: str = Depends(require_user),
    service: RecipeExtractionService = Depends(get_extraction_service),
) -> dict[str, Any]:
    usage = await service.get_daily_usage(user_id)
    return {"used": usage.used, "limit": usage.limit, "remaining": usage.remaining, "date": usage.date}

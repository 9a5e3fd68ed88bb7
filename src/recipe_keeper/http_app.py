"""FastAPI app.

Exposes the recipe extraction endpoints and a health check. Authentication is
delegated to the upstream gateway, which forwards the user id in a header.
"""

from __future__ import annotations

import uuid
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .controllers.extraction_controller import router as extraction_router
from .domain.errors import ModelGatewayError, RecipeKeeperError
from .domain.models import ErrorCode
from .observability.logger import get_logger

logger = get_logger(__name__)

app = FastAPI(title="Recipe Keeper Extraction Service", version="0.1.0")
app.include_router(extraction_router)


def error_body(code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    error: dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = details
    return {"error": error}


@app.middleware("http")
async def bind_request_context(request: Request, call_next):
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=str(uuid.uuid4()), path=request.url.path)
    try:
        return await call_next(request)
    finally:
        structlog.contextvars.clear_contextvars()


@app.exception_handler(RecipeKeeperError)
async def recipe_keeper_error_handler(request: Request, exc: RecipeKeeperError) -> JSONResponse:
    status = exc.public_status_code if isinstance(exc, ModelGatewayError) else exc.status_code
    details = dict(exc.details or {})
    if exc.info.detail and status < 500:
        details.setdefault("detail", exc.info.detail)
    log = logger.error if status >= 500 else logger.info
    log("request_failed", status=status, error_code=exc.code, error=str(exc), detail=exc.info.detail)
    return JSONResponse(status_code=status, content=error_body(exc.code, str(exc), details))


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unexpected_error", error=str(exc))
    return JSONResponse(
        status_code=500,
        content=error_body(ErrorCode.INTERNAL_SERVER_ERROR.value, "Internal server error"),
    )


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}

from __future__ import annotations

import logging
from uuid import uuid4

from fastapi import Request
from fastapi.responses import JSONResponse

from app.services.daily_records import InvalidArgument

logger = logging.getLogger(__name__)


def _request_id(request: Request | None) -> str:
    if request is not None:
        existing = getattr(request.state, "request_id", None)
        if existing:
            return str(existing)
    return str(uuid4())


def safe_api_error_response(
    *,
    request: Request | None,
    error_code: str,
    message: str,
    status_code: int = 500,
    exc: Exception | None = None,
) -> JSONResponse:
    request_id = _request_id(request)
    if exc is not None:
        logger.exception("API error %s request_id=%s", error_code, request_id)

    payload = {
        "error_code": error_code,
        "message": message,
        "request_id": request_id,
    }
    return JSONResponse(content=payload, status_code=status_code)


async def invalid_argument_handler(request: Request, exc: InvalidArgument) -> JSONResponse:
    # Validation messages describe caller input only, so they are safe to echo.
    logger.warning("request.invalid_argument", extra={"error": str(exc)})
    return safe_api_error_response(
        request=request,
        error_code="INVALID_ARGUMENT",
        message=str(exc),
        status_code=422,
    )

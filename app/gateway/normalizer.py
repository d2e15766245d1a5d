"""Response Normalizer: shapes gateway outcomes into the caller-facing JSON.

Success: ``{"base64Data": ...}``
Error:   ``{"error": ..., "details": ...}`` (``details`` only when present)
"""

from __future__ import annotations

from fastapi.responses import JSONResponse

from app.core.exceptions import RelayError
from app.schemas.generate import ErrorResponse, GenerateResponse


def success_body(base64_data: str) -> dict:
    return GenerateResponse(base64_data=base64_data).model_dump(by_alias=True)


def error_body(exc: RelayError) -> dict:
    body = ErrorResponse(error=exc.message).model_dump(exclude={"details"})
    # raw upstream payload is passed through untouched
    if exc.details is not None:
        body["details"] = exc.details
    return body


def success_response(base64_data: str) -> JSONResponse:
    return JSONResponse(status_code=200, content=success_body(base64_data))


def error_response(exc: RelayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc))

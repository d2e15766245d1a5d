"""Request/response models for the image generation endpoint, plus body decoding."""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from app.core.exceptions import InvalidRequest

logger = logging.getLogger(__name__)

# A body stringified by a proxy arrives as a JSON string holding the JSON object
_MAX_DECODE_DEPTH = 2


# ---------------------------------------------------------------------------
# Inbound
# ---------------------------------------------------------------------------


class ImagePayload(BaseModel):
    """Base image supplied by the caller."""

    model_config = ConfigDict(populate_by_name=True)

    data: str = Field(min_length=1)  # base64
    mime_type: str = Field(alias="mimeType", min_length=1)


class GenerateRequest(BaseModel):
    """Validated inbound request."""

    model_config = ConfigDict(populate_by_name=True)

    prompt_text: str = Field(alias="promptText", min_length=1)
    image: ImagePayload
    model: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Outbound
# ---------------------------------------------------------------------------


class GenerateResponse(BaseModel):
    base64_data: str = Field(serialization_alias="base64Data")


class ErrorResponse(BaseModel):
    error: str
    details: Any | None = None


# ---------------------------------------------------------------------------
# Decoding & validation
# ---------------------------------------------------------------------------


def try_decode_body(raw: Any) -> dict[str, Any] | None:
    """Decode a raw request body into a dict, or return None.

    Accepts an already-parsed dict, bytes or text. Text that decodes to
    another JSON string is decoded once more. Malformed input never raises;
    it degrades to None so the field checks report the problem.
    """
    value = raw
    for _ in range(_MAX_DECODE_DEPTH):
        if not isinstance(value, (bytes, bytearray, str)):
            break
        if not value:
            return None
        try:
            value = json.loads(value)
        except (ValueError, RecursionError) as e:
            logger.warning("Could not decode request body as JSON: %s", e)
            return None

    return value if isinstance(value, dict) else None


def parse_generate_request(body: dict[str, Any] | None) -> GenerateRequest:
    """Validate a decoded body; raise ``InvalidRequest`` if any field is missing or empty."""
    try:
        return GenerateRequest.model_validate(body or {})
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        logger.info("Rejected generate request, invalid fields: %s", ", ".join(fields))
        raise InvalidRequest() from e

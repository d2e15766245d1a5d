"""Gemini generateContent protocol: payload construction and result extraction.

Image-to-image: the prompt text and the base image are sent as two parts of
a single user turn, with both TEXT and IMAGE response modalities enabled.
The generated image comes back as the first ``inlineData`` part of the
first candidate.
"""

from __future__ import annotations

from typing import Any

from app.schemas.generate import GenerateRequest

RESPONSE_MODALITIES = ["TEXT", "IMAGE"]

SAFETY_BLOCKED_MESSAGE = "The content may have been blocked by the safety policy. Please try a different prompt."
GENERATION_FAILED_MESSAGE = "Image generation failed. Please check the prompt or try again."


def build_url(api_base: str, model: str) -> str:
    """Endpoint for *model*; the API key goes in the ``key`` query parameter."""
    return f"{api_base.rstrip('/')}/{model}:generateContent"


def build_payload(request: GenerateRequest) -> dict[str, Any]:
    return {
        "contents": [
            {
                "role": "user",
                "parts": [
                    {"text": request.prompt_text},
                    {
                        "inlineData": {
                            "mimeType": request.image.mime_type,
                            "data": request.image.data,
                        }
                    },
                ],
            }
        ],
        "generationConfig": {
            "responseModalities": list(RESPONSE_MODALITIES),
        },
    }


def _first_candidate(result: Any) -> dict:
    if not isinstance(result, dict):
        return {}
    candidates = result.get("candidates") or []
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return {}
    return candidates[0]


def extract_inline_data(result: Any) -> str | None:
    """Base64 data of the first inline part in the first candidate, if any."""
    content = _first_candidate(result).get("content")
    if not isinstance(content, dict):
        return None
    parts = content.get("parts") or []
    if not isinstance(parts, list):
        return None
    for part in parts:
        if not isinstance(part, dict):
            continue
        inline = part.get("inlineData")
        if inline:
            data = inline.get("data") if isinstance(inline, dict) else None
            return data or None
    return None


def is_safety_blocked(result: Any) -> bool:
    """True when the first candidate's first safety rating is HIGH."""
    ratings = _first_candidate(result).get("safetyRatings") or []
    if not isinstance(ratings, list) or not ratings or not isinstance(ratings[0], dict):
        return False
    return ratings[0].get("probability") == "HIGH"


def failure_message(result: Any) -> str:
    return SAFETY_BLOCKED_MESSAGE if is_safety_blocked(result) else GENERATION_FAILED_MESSAGE

"""Image Gateway: orchestrates one image-to-image generation.

  1. Builds the Gemini URL and payload from a validated request
  2. Calls upstream through the RetryingInvoker
  3. Extracts the first inline image from the response
  4. Raises GenerationBlockedOrFailed when the call succeeded but no image came back

Usage:
    gateway = ImageGateway(api_key="...", invoker=RetryingInvoker(client))
    base64_data = await gateway.generate(request)
"""

from __future__ import annotations

import json
import logging

from app.core.config import Settings
from app.core.exceptions import GenerationBlockedOrFailed, ServerMisconfigured
from app.gateway.gemini import build_payload, build_url, extract_inline_data, failure_message
from app.gateway.retry import RetryingInvoker
from app.gateway.types import RetryPolicy
from app.schemas.generate import GenerateRequest

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"


class ImageGateway:
    """Relay between a validated request and the Gemini API.

    The credential and base URL are fixed at construction; nothing is read
    from the environment while handling a request.
    """

    def __init__(
        self,
        api_key: str,
        invoker: RetryingInvoker,
        api_base: str = DEFAULT_API_BASE,
    ):
        self.api_key = api_key
        self.api_base = api_base
        self.invoker = invoker

    @classmethod
    def from_settings(cls, settings: Settings, client, **invoker_kwargs) -> ImageGateway:
        invoker = RetryingInvoker(client, policy=RetryPolicy.from_settings(settings), **invoker_kwargs)
        return cls(
            api_key=settings.gemini_api_key,
            invoker=invoker,
            api_base=settings.gemini_api_base,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def generate(self, request: GenerateRequest) -> str:
        """Return the generated image as base64.

        Raises:
            ServerMisconfigured: no API key.
            UpstreamRejected / UpstreamUnavailable: from the invoker.
            GenerationBlockedOrFailed: 2xx without a usable image.
        """
        if not self.is_configured:
            raise ServerMisconfigured()

        url = build_url(self.api_base, request.model)
        payload = build_payload(request)

        response = await self.invoker.invoke(
            url,
            json=payload,
            params={"key": self.api_key},
            headers={"Content-Type": "application/json"},
        )

        try:
            result = response.json()
        except ValueError:
            logger.error("Gemini returned a non-JSON body (status %d)", response.status_code)
            raise GenerationBlockedOrFailed(details=response.text)

        base64_data = extract_inline_data(result)
        if base64_data:
            return base64_data

        message = failure_message(result)
        logger.error(
            "Gemini response contained no image (blocked or malformed): %s",
            json.dumps(result, indent=2, ensure_ascii=False),
        )
        raise GenerationBlockedOrFailed(message, details=result)

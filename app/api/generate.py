"""Image generation endpoint: image + prompt in, generated image out."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.core.dependencies import get_image_gateway
from app.core.exceptions import InternalError, MethodNotAllowed, RelayError, ServerMisconfigured
from app.core.logging import redact_key
from app.core.metrics import GENERATION_RESULTS
from app.gateway.gateway import ImageGateway
from app.gateway.normalizer import success_response
from app.schemas.generate import ErrorResponse, GenerateResponse, parse_generate_request, try_decode_body

logger = logging.getLogger(__name__)

router = APIRouter(tags=["generate"])

# Every method is routed here so the credential check runs before the method check
_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


@router.api_route(
    "/generate",
    methods=_ALL_METHODS,
    response_model=GenerateResponse,
    responses={
        400: {"model": ErrorResponse},
        405: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def generate_image(
    request: Request,
    gateway: ImageGateway = Depends(get_image_gateway),
) -> JSONResponse:
    if not gateway.is_configured:
        raise ServerMisconfigured()

    if request.method != "POST":
        raise MethodNotAllowed()

    try:
        body = try_decode_body(await request.body())
        generate_request = parse_generate_request(body)
        base64_data = await gateway.generate(generate_request)
    except RelayError:
        raise
    except Exception as e:
        logger.exception("Unexpected error while handling generate request")
        raise InternalError(f"Internal server error: {redact_key(str(e))}") from e

    GENERATION_RESULTS.labels(result="success").inc()
    return success_response(base64_data)

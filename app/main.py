import logging
import traceback
from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.router import api_router
from app.core.config import settings, validate_settings_for_production
from app.core.exceptions import InternalError, RelayError
from app.core.logging import redact_key, setup_logging
from app.core.metrics import GENERATION_RESULTS, PrometheusMiddleware, metrics_response
from app.core.middleware import RequestLoggingMiddleware
from app.core.sentry import init_sentry
from app.gateway.normalizer import error_body, error_response

# Configure logging before anything else
setup_logging()
init_sentry()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    validate_settings_for_production()
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY is not set; /api/generate will answer 500 until it is configured")

    app.state.http_client = httpx.AsyncClient(timeout=settings.upstream_timeout_seconds)
    logger.info("Starting image relay...")

    yield

    # Shutdown
    await app.state.http_client.aclose()
    logger.info("Image relay shut down")


app = FastAPI(
    title="Image Relay",
    description="Image-to-image relay for the Gemini generateContent API",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api/docs" if settings.app_debug else None,
    redoc_url="/api/redoc" if settings.app_debug else None,
)


@app.exception_handler(RelayError)
async def _relay_error_handler(request: Request, exc: RelayError):
    level = logging.WARNING if exc.status_code < 500 else logging.ERROR
    logger.log(level, "%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    GENERATION_RESULTS.labels(result=type(exc).__name__).inc()
    return error_response(exc)


# Log unhandled exceptions so they appear in the platform logs
@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled %s on %s %s:\n%s", type(exc).__name__, request.method, request.url.path, "".join(tb))
    error = InternalError(f"Internal server error: {redact_key(str(exc))}")
    return JSONResponse(status_code=500, content=error_body(error))


# Request logging and metrics middleware
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(PrometheusMiddleware)

# CORS: parse allowed_origins from settings (comma-separated)
_origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(api_router)


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_response()


def run() -> None:
    """Serve the app with uvicorn on APP_HOST:APP_PORT."""
    uvicorn.run(
        "app.main:app",
        host=settings.app_host,
        port=settings.app_port,
        log_config=None,  # keep the handlers installed by setup_logging()
    )


if __name__ == "__main__":
    run()

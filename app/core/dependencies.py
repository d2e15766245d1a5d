import httpx
from fastapi import Depends, Request

from app.core.config import Settings, settings
from app.gateway.gateway import ImageGateway


def get_settings() -> Settings:
    return settings


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Shared connection pool created in the app lifespan."""
    return request.app.state.http_client


def get_image_gateway(
    app_settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> ImageGateway:
    return ImageGateway.from_settings(app_settings, client)

from fastapi import APIRouter, Depends

from app.api.generate import router as generate_router
from app.core.config import Settings
from app.core.dependencies import get_settings

api_router = APIRouter(prefix="/api")
api_router.include_router(generate_router)


@api_router.get("/health")
async def health(app_settings: Settings = Depends(get_settings)):
    return {
        "status": "ok",
        "gemini_configured": bool(app_settings.gemini_api_key),
    }

from fastapi import APIRouter

from freefood.api.events import router as events_router
from freefood.api.schemas.events import ConfigOut, HealthOut
from freefood.core.config import settings

router = APIRouter()
router.include_router(events_router)


@router.get("/health", response_model=HealthOut)
def health():
    return HealthOut(status="ok", message="Server is running")


@router.get("/config", response_model=ConfigOut)
def config():
    return ConfigOut(map_provider_api_key=settings.map_provider_api_key)

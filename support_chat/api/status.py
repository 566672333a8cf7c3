from fastapi import APIRouter

from support_chat.config.settings import settings
from support_chat.models.responses import HealthResponse

router = APIRouter(prefix="", tags=["status"])


@router.get("/", response_model=HealthResponse)
async def health():
    return {
        "status": "healthy",
        "message": "Customer support chat API is running",
        "version": settings.api.API_VERSION,
    }

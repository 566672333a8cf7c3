from fastapi import APIRouter

from support_chat.api.routes.chat import router as chat_router
from support_chat.api.routes.crm import router as crm_router
from support_chat.api.routes.faqs import router as faqs_router
from support_chat.api.routes.searches import router as searches_router

# Create a router to include all other routers
router = APIRouter()

# REST endpoints live under /api, the chat channel at /ws
router.include_router(faqs_router, prefix="/api")
router.include_router(crm_router, prefix="/api")
router.include_router(searches_router, prefix="/api")
router.include_router(chat_router, prefix="")

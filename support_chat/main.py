from contextlib import asynccontextmanager
import logging
import time
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from support_chat.api.routes import router as api_router
from support_chat.api.status import router as status_router
from support_chat.config.settings import settings
from support_chat.core.interfaces.storage import IStorage
from support_chat.gateways.azure_openai import AzureOpenAIGatewayClient
from support_chat.repositories import MemoryStorage, seed_demo_data
from support_chat.services.completion import CompletionService

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.logging.LOG_LEVEL.upper(),
        format=settings.logging.LOG_FORMAT,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Seed the store before the first request; the store lives as long as the app.
    """
    logger.info("Starting application initialization...")
    if app.state.seed_demo_data:
        await seed_demo_data(app.state.storage)
    logger.info(f"{settings.api.API_TITLE} v{settings.api.API_VERSION} started successfully")
    try:
        yield
    finally:
        logger.info("Application shutdown complete")


def create_app(
        storage: Optional[IStorage] = None,
        completion_service: Optional[CompletionService] = None,
        seed_demo_data: Optional[bool] = None
) -> FastAPI:
    """
    Factory function for creating the FastAPI application.
    The store and completion service are created here unless injected, so a missing
    Azure OpenAI configuration fails at startup rather than on the first message.
    """
    if completion_service is None:
        completion_service = CompletionService(client=AzureOpenAIGatewayClient())
    if storage is None:
        storage = MemoryStorage()
    if seed_demo_data is None:
        seed_demo_data = settings.store.STORE_SEED_DEMO_DATA

    app = FastAPI(
        title=settings.api.API_TITLE,
        version=settings.api.API_VERSION,
        description=settings.api.API_DESCRIPTION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.storage = storage
    app.state.completion_service = completion_service
    app.state.seed_demo_data = seed_demo_data

    # Set up CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.CORS_ALLOW_ORIGINS,
        allow_credentials=settings.api.CORS_ALLOW_CREDENTIALS,
        allow_methods=settings.api.CORS_ALLOW_METHODS,
        allow_headers=settings.api.CORS_ALLOW_HEADERS,
    )

    app.include_router(status_router)
    app.include_router(api_router)

    # Exception handlers
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Invalid request to {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": jsonable_errors(exc)},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    # Middleware to add process time header and log request processing time
    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        if not request.url.path == "/":
            logger.info(f"{request.method} {request.url.path} processed in {process_time:.4f}s")
        return response

    return app


def jsonable_errors(exc: RequestValidationError):
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]

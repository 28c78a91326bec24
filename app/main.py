# ============================================================================
# FILE: app/main.py
# ============================================================================
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.api.v1.router import api_router
from app.api.uploads import ensure_upload_dir
from app.core.exceptions import InternalServerError, validation_messages
from app.core.logging import setup_logging
from app.core.responses import api_response
from app.core.storage import StorageClient
from app.db.session import Database
from app.config import settings
import logging
import time
import traceback

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize services on startup, release them on shutdown"""
    setup_logging()
    logger.info(f"Starting {settings.APP_NAME} ({settings.ENVIRONMENT})")

    app.state.started_at = time.time()
    app.state.database = Database(settings.DATABASE_URL)
    app.state.database.init()
    app.state.storage = StorageClient()

    try:
        directory = ensure_upload_dir()
        logger.info(f"Upload directory ready: {directory}")
    except InternalServerError as e:
        # Uploads will fail with a 500 until the directory is fixed
        logger.error(f"Upload directory check failed: {e.detail}")

    yield

    logger.info(f"Shutting down {settings.APP_NAME}")
    app.state.database.close()

async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    errors = getattr(exc, "errors", None) or []
    return api_response(
        exc.status_code,
        None,
        str(exc.detail),
        errors=errors,
        headers=getattr(exc, "headers", None),
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = validation_messages(exc.errors())
    logger.info(f"Validation failed for {request.method} {request.url.path}: {messages}")
    return api_response(status.HTTP_400_BAD_REQUEST, None, "Invalid request data.", errors=messages)

async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    if settings.DEBUG:
        return api_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            None,
            str(exc) or "Internal Server Error",
            errors=traceback.format_exception(type(exc), exc, exc.__traceback__),
        )
    return api_response(status.HTTP_500_INTERNAL_SERVER_ERROR, None, "Internal Server Error")

def create_app() -> FastAPI:
    """Build the FastAPI application"""
    app = FastAPI(
        title=settings.APP_NAME,
        description="Video sharing platform with channels, comments, likes, playlists and tweets",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Include API v1 router
    app.include_router(api_router, prefix="/api/v1")

    @app.get("/")
    async def root():
        return api_response(
            status.HTTP_200_OK,
            {"name": settings.APP_NAME, "version": "1.0.0", "docs": "/docs"},
            "Welcome",
        )

    return app

app = create_app()

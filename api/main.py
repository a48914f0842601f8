"""Question Bank API main application."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from api.deps import current_settings, limiter
from api.routes import api_router
from config.logging_config import setup_logging
from config.settings import Settings, get_settings
from database.connection import Database
from pipeline.image_manager import ImageManager
from pipeline.scan import DocumentScanner

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}

UPLOAD_PATH = "/api/questions"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings: Settings = app.state.settings
    setup_logging(settings.log_level)

    logger.info(f"{settings.app_name} starting up ({settings.environment})")

    db = Database(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        echo=settings.debug,
    )
    await db.init(seed=settings.seed_defaults)

    scanner = DocumentScanner()

    app.state.db = db
    app.state.scanner = scanner
    app.state.images = ImageManager(
        settings.upload_dir,
        max_file_size_mb=settings.max_upload_mb,
        allowed_types=settings.allowed_upload_types,
        extension=scanner.config.output_extension,
    )

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Application shutting down")
    await db.close()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application. Database and storage are set up on startup."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Question bank with document-scan image processing",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def reject_oversized_uploads(request: Request, call_next):
        if request.method == "POST" and request.url.path.rstrip("/") == UPLOAD_PATH:
            content_length = request.headers.get("content-length")
            if content_length and content_length.isdigit() and int(content_length) > settings.max_upload_bytes:
                return JSONResponse(
                    status_code=413,
                    content={"detail": f"Request too large. Maximum size: {settings.max_upload_mb}MB"},
                )
        return await call_next(request)

    @app.middleware("http")
    async def bind_settings(request: Request, call_next):
        token = current_settings.set(settings)
        try:
            return await call_next(request)
        finally:
            current_settings.reset(token)

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers[name] = value
        return response

    app.include_router(api_router)

    @app.get("/api/health")
    async def health_check(request: Request):
        """Health check."""
        db_healthy = await request.app.state.db.check_connection()
        return {
            "status": "healthy" if db_healthy else "degraded",
            "version": settings.app_version,
            "database": "connected" if db_healthy else "disconnected",
            "storage": request.app.state.images.get_storage_stats(),
        }

    return app


app = create_app()

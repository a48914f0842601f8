"""API dependencies.

Long-lived objects (database handle, image storage, scanner) are created once
in the application lifespan and read from ``app.state`` here.
"""

from contextvars import ContextVar
from typing import AsyncGenerator, Optional

from fastapi import Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import Settings, get_settings
from database.connection import Database
from pipeline.image_manager import ImageManager
from pipeline.scan import DocumentScanner
from services.ai_service import AIService
from services.catalog_service import CatalogService
from services.question_service import QuestionService
from services.worksheet_service import WorksheetService

limiter = Limiter(key_func=get_remote_address)

# Settings of the app serving the current request; slowapi limit
# callables get no request to read them from
current_settings: ContextVar[Optional[Settings]] = ContextVar("current_settings", default=None)


def upload_rate_limit() -> str:
    settings = current_settings.get() or get_settings()
    return settings.upload_rate_limit


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.db


async def get_db(
    database: Database = Depends(get_database),
) -> AsyncGenerator[AsyncSession, None]:
    """Get database session."""
    async for session in database.session():
        yield session


def get_image_manager(request: Request) -> ImageManager:
    return request.app.state.images


def get_scanner(request: Request) -> DocumentScanner:
    return request.app.state.scanner


def get_question_service(
    db: AsyncSession = Depends(get_db),
    images: ImageManager = Depends(get_image_manager),
    scanner: DocumentScanner = Depends(get_scanner),
) -> QuestionService:
    return QuestionService(db, images, scanner)


def get_worksheet_service(db: AsyncSession = Depends(get_db)) -> WorksheetService:
    return WorksheetService(db)


def get_catalog_service(db: AsyncSession = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


def get_ai_service(
    request: Request,
    db: AsyncSession = Depends(get_db),
    images: ImageManager = Depends(get_image_manager),
    settings: Settings = Depends(get_settings_dep),
) -> AIService:
    return AIService(
        db,
        images,
        default_model=settings.gemini_default_model,
        max_retries=settings.ai_max_retries,
        processor_factory=getattr(request.app.state, "ai_processor_factory", None),
    )

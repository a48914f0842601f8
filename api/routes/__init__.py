"""API routes package."""

from fastapi import APIRouter

from api.routes.questions import router as questions_router
from api.routes.filters import router as filters_router
from api.routes.worksheets import router as worksheets_router
from api.routes.catalog import lessons_router, subjects_router, books_router
from api.routes.uploads import router as uploads_router
from api.routes.ai import router as ai_router

# Main API router
api_router = APIRouter(prefix="/api")

# Include all routers
api_router.include_router(questions_router, prefix="/questions", tags=["questions"])
api_router.include_router(filters_router, prefix="/filters", tags=["questions"])
api_router.include_router(worksheets_router, prefix="/worksheets", tags=["worksheets"])
api_router.include_router(lessons_router, prefix="/lessons", tags=["catalog"])
api_router.include_router(subjects_router, prefix="/subjects", tags=["catalog"])
api_router.include_router(books_router, prefix="/books", tags=["catalog"])
api_router.include_router(uploads_router, prefix="/uploads", tags=["uploads"])
api_router.include_router(ai_router, prefix="/ai", tags=["ai"])

__all__ = ["api_router"]

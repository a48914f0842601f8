"""Question Bank business services."""

from .question_service import (
    QuestionService,
    QuestionFilter,
    QuestionMetadata,
    QuestionPage,
    UploadedImage,
)
from .worksheet_service import WorksheetService, UnknownQuestionsError
from .catalog_service import CatalogService, DuplicateEntryError
from .ai_service import AIService, AIGatewayError, ImageUnavailableError

__all__ = [
    "QuestionService",
    "QuestionFilter",
    "QuestionMetadata",
    "QuestionPage",
    "UploadedImage",
    "WorksheetService",
    "UnknownQuestionsError",
    "CatalogService",
    "DuplicateEntryError",
    "AIService",
    "AIGatewayError",
    "ImageUnavailableError",
]

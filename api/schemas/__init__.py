"""API Pydantic schemas."""

from api.schemas.question import (
    AnalysisResponse,
    QuestionResponse,
    QuestionDetailResponse,
    QuestionUpdate,
    QuestionListResponse,
    QuestionIdsResponse,
    BulkStatusUpdate,
    BulkStatusResponse,
    ReprocessRequest,
    ReprocessResponse,
    FiltersResponse,
)
from api.schemas.worksheet import (
    WorksheetCreate,
    WorksheetUpdate,
    WorksheetDeleteMany,
    WorksheetResponse,
    WorksheetDetailResponse,
    WorksheetSummary,
    DeleteManyResponse,
)
from api.schemas.catalog import (
    NameCreate,
    SubjectCreate,
    LessonResponse,
    SubjectResponse,
    BookResponse,
    SuccessResponse,
)
from api.schemas.ai import (
    SolveRequest,
    SolveResponse,
    ClearAnalysesRequest,
    ClearAnalysesResponse,
    StudyRequest,
    StudyResponse,
    APIKeyRequest,
    ModelInfo,
    PromptCreate,
    PromptResponse,
)

__all__ = [
    # Question
    "AnalysisResponse",
    "QuestionResponse",
    "QuestionDetailResponse",
    "QuestionUpdate",
    "QuestionListResponse",
    "QuestionIdsResponse",
    "BulkStatusUpdate",
    "BulkStatusResponse",
    "ReprocessRequest",
    "ReprocessResponse",
    "FiltersResponse",
    # Worksheet
    "WorksheetCreate",
    "WorksheetUpdate",
    "WorksheetDeleteMany",
    "WorksheetResponse",
    "WorksheetDetailResponse",
    "WorksheetSummary",
    "DeleteManyResponse",
    # Catalog
    "NameCreate",
    "SubjectCreate",
    "LessonResponse",
    "SubjectResponse",
    "BookResponse",
    "SuccessResponse",
    # AI
    "SolveRequest",
    "SolveResponse",
    "ClearAnalysesRequest",
    "ClearAnalysesResponse",
    "StudyRequest",
    "StudyResponse",
    "APIKeyRequest",
    "ModelInfo",
    "PromptCreate",
    "PromptResponse",
]

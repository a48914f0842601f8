"""Question schemas."""

from typing import Optional, List
from datetime import datetime

from pydantic import BaseModel, Field, ConfigDict

STATUS_PATTERN = "^(ACTIVE|MASTERED)$"


class AnalysisResponse(BaseModel):
    """Cached AI analysis schema."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    question_id: str
    lesson: str
    subject: Optional[str] = None
    topics: List[str] = []
    difficulty: str
    summary: str = ""
    solution: str
    created_at: Optional[datetime] = None


class QuestionResponse(BaseModel):
    """Question response schema."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    file_id: str
    file_url: str
    lesson: str
    subject: Optional[str] = None
    source: Optional[str] = None
    page_number: Optional[int] = None
    question_number: Optional[int] = None
    answer: Optional[str] = None
    status: str
    created_at: datetime
    has_analysis: bool = False


class QuestionDetailResponse(QuestionResponse):
    """Question with its cached analysis."""
    analysis: Optional[AnalysisResponse] = None


class QuestionUpdate(BaseModel):
    """Question update schema. Only these fields can change."""
    lesson: Optional[str] = Field(None, min_length=1, max_length=255)
    subject: Optional[str] = Field(None, max_length=255)
    source: Optional[str] = Field(None, max_length=255)
    page_number: Optional[int] = Field(None, ge=0)
    question_number: Optional[int] = Field(None, ge=0)
    answer: Optional[str] = Field(None, max_length=50)
    status: Optional[str] = Field(None, pattern=STATUS_PATTERN)


class QuestionListResponse(BaseModel):
    """Cursor-paginated question list."""
    questions: List[QuestionResponse]
    next_cursor: Optional[str] = None
    has_more: bool = False


class QuestionIdsResponse(BaseModel):
    ids: List[str]
    total: int


class BulkStatusUpdate(BaseModel):
    """Bulk status change schema."""
    ids: List[str] = Field(..., min_length=1)
    status: str = Field(..., pattern=STATUS_PATTERN)


class BulkStatusResponse(BaseModel):
    success: bool = True
    count: int


class ReprocessRequest(BaseModel):
    """Questions to re-process; all of them when ids is empty."""
    ids: Optional[List[str]] = None


class ReprocessResponse(BaseModel):
    success: bool = True
    total: int
    processed: int
    failed: int
    errors: Optional[List[str]] = None


class SubjectFilter(BaseModel):
    subject: str
    lesson: str


class FiltersResponse(BaseModel):
    """Distinct values currently used by questions."""
    lessons: List[str]
    subjects: List[SubjectFilter]
    sources: List[str]

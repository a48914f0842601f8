"""Worksheet schemas."""

from typing import Optional, List
from datetime import datetime

from pydantic import BaseModel, Field, ConfigDict

from api.schemas.question import QuestionResponse


class WorksheetCreate(BaseModel):
    """Worksheet creation schema."""
    question_ids: List[str] = Field(..., min_length=1)
    title: Optional[str] = Field(None, max_length=255)
    name: Optional[str] = Field(None, max_length=255)


class WorksheetUpdate(BaseModel):
    """Worksheet rename schema."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    name: Optional[str] = Field(None, max_length=255)


class WorksheetDeleteMany(BaseModel):
    ids: List[str] = Field(..., min_length=1)


class WorksheetQuestionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    order: int
    question: QuestionResponse


class WorksheetResponse(BaseModel):
    """Worksheet without its questions."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    name: Optional[str] = None
    created_at: datetime


class WorksheetDetailResponse(WorksheetResponse):
    """Worksheet with ordered questions."""
    questions: List[WorksheetQuestionResponse] = []


class WorksheetSummary(WorksheetResponse):
    """Worksheet list entry."""
    question_count: int
    lessons: List[str] = []


class DeleteManyResponse(BaseModel):
    success: bool = True
    deleted: int

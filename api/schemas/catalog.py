"""Lesson, subject and book schemas."""

from typing import Optional, List
from datetime import datetime

from pydantic import BaseModel, Field, ConfigDict


class NameCreate(BaseModel):
    """Lesson or book creation schema."""
    name: str = Field(..., min_length=1, max_length=255)


class SubjectCreate(NameCreate):
    """Subject creation schema."""
    lesson_id: str = Field(..., min_length=1)


class SubjectBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    lesson_id: str


class LessonBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str


class LessonResponse(LessonBrief):
    """Lesson with its subjects."""
    created_at: Optional[datetime] = None
    subjects: List[SubjectBrief] = []


class SubjectResponse(SubjectBrief):
    """Subject with its lesson."""
    created_at: Optional[datetime] = None
    lesson: LessonBrief


class BookResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    created_at: Optional[datetime] = None


class SuccessResponse(BaseModel):
    success: bool = True

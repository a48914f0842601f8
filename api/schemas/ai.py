"""AI gateway schemas."""

from typing import Optional, List
from datetime import datetime

from pydantic import BaseModel, Field, ConfigDict

from api.schemas.question import AnalysisResponse


class APIKeyRequest(BaseModel):
    """Caller-supplied Gemini key; never stored."""
    api_key: str = Field(..., min_length=1)


class SolveRequest(APIKeyRequest):
    question_id: str = Field(..., min_length=1)
    model: Optional[str] = None


class SolveResponse(BaseModel):
    cached: bool
    analysis: AnalysisResponse


class ClearAnalysesRequest(BaseModel):
    question_ids: List[str] = Field(..., min_length=1)


class ClearAnalysesResponse(BaseModel):
    deleted: int


class StudyData(BaseModel):
    """Parameters of a study action."""
    question_ids: List[str] = []
    hours_per_day: Optional[float] = Field(None, gt=0, le=24)
    days: Optional[int] = Field(None, gt=0, le=365)


class StudyRequest(APIKeyRequest):
    """Study recommendations or study plan request."""
    action: str = Field(..., pattern="^(study-recommendations|study-plan)$")
    data: StudyData = StudyData()
    model: Optional[str] = None
    custom_prompt: Optional[str] = None


class StudyResponse(BaseModel):
    result: str


class ModelInfo(BaseModel):
    id: str
    name: str
    description: str = ""


class PromptCreate(BaseModel):
    """Prompt upsert schema; an empty subject means the lesson default."""
    lesson: str = Field(..., min_length=1, max_length=255)
    subject: Optional[str] = Field(None, max_length=255)
    prompt: str = Field(..., min_length=1)


class PromptResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    lesson: str
    subject: str
    prompt: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

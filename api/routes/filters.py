"""Filter value routes."""

from fastapi import APIRouter, Depends

from api.deps import get_question_service
from api.schemas.question import FiltersResponse
from services.question_service import QuestionService

router = APIRouter()


@router.get("", response_model=FiltersResponse)
async def get_filters(service: QuestionService = Depends(get_question_service)):
    """Distinct lessons, subjects and sources used by stored questions."""
    return await service.get_filters()

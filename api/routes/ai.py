"""AI gateway routes.

The Gemini key travels with each request and is never stored or logged.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status, Query, Response

from api.deps import get_ai_service
from api.schemas.ai import (
    APIKeyRequest,
    SolveRequest,
    SolveResponse,
    ClearAnalysesRequest,
    ClearAnalysesResponse,
    StudyRequest,
    StudyResponse,
    ModelInfo,
    PromptCreate,
    PromptResponse,
)
from api.schemas.catalog import SuccessResponse
from api.schemas.question import AnalysisResponse
from pipeline.ai_processor import AIGatewayError
from services.ai_service import AIService, ImageUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter()


def _gateway_error(e: AIGatewayError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.post("", response_model=StudyResponse)
async def study(
    body: StudyRequest,
    service: AIService = Depends(get_ai_service),
):
    """Study recommendations or a study plan for the selected questions."""
    try:
        if body.action == "study-plan":
            result = await service.study_plan(
                body.data.question_ids,
                body.api_key,
                model=body.model,
                hours_per_day=body.data.hours_per_day,
                days=body.data.days,
                custom_prompt=body.custom_prompt,
            )
        else:
            result = await service.study_recommendations(
                body.data.question_ids,
                body.api_key,
                model=body.model,
                custom_prompt=body.custom_prompt,
            )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except AIGatewayError as e:
        raise _gateway_error(e)

    return StudyResponse(result=result)


@router.post("/models", response_model=List[ModelInfo])
async def list_models(
    body: APIKeyRequest,
    service: AIService = Depends(get_ai_service),
):
    """Models available to the caller's key that support content generation."""
    try:
        return await service.list_models(body.api_key)
    except AIGatewayError as e:
        raise _gateway_error(e)


@router.post("/solve", response_model=SolveResponse)
async def solve(
    body: SolveRequest,
    service: AIService = Depends(get_ai_service),
):
    """
    Solve a question from its stored image.

    The first successful answer is cached; later calls return it with
    ``cached=true`` and make no model call.
    """
    try:
        analysis, cached = await service.solve(body.question_id, body.api_key, model=body.model)
    except ImageUnavailableError as e:
        logger.warning(str(e))
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question image not found")
    except AIGatewayError as e:
        raise _gateway_error(e)

    if analysis is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Question not found"
        )

    return SolveResponse(cached=cached, analysis=AnalysisResponse.model_validate(analysis))


@router.delete("/solve", response_model=ClearAnalysesResponse)
async def clear_analyses(
    body: ClearAnalysesRequest,
    service: AIService = Depends(get_ai_service),
):
    """Drop cached analyses so the questions can be solved again."""
    deleted = await service.clear_analyses(body.question_ids)
    return ClearAnalysesResponse(deleted=deleted)


@router.get("/prompts", response_model=List[PromptResponse])
async def list_prompts(service: AIService = Depends(get_ai_service)):
    return await service.list_prompts()


@router.post("/prompts", response_model=PromptResponse, status_code=status.HTTP_201_CREATED)
async def upsert_prompt(
    body: PromptCreate,
    response: Response,
    service: AIService = Depends(get_ai_service),
):
    """Create or replace the solve prompt for a lesson and optional subject."""
    prompt, created = await service.upsert_prompt(body.lesson, body.prompt, subject=body.subject)
    if not created:
        response.status_code = status.HTTP_200_OK
    return prompt


@router.delete("/prompts", response_model=SuccessResponse)
async def delete_prompt(
    id: str = Query(..., min_length=1),
    service: AIService = Depends(get_ai_service),
):
    if not await service.delete_prompt(id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Prompt not found"
        )
    return SuccessResponse()

"""Worksheet routes."""

from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, status, Query

from api.deps import get_worksheet_service
from api.schemas.worksheet import (
    WorksheetCreate,
    WorksheetUpdate,
    WorksheetDeleteMany,
    WorksheetDetailResponse,
    WorksheetResponse,
    WorksheetSummary,
    DeleteManyResponse,
)
from services.worksheet_service import WorksheetService, UnknownQuestionsError

router = APIRouter()


def _summary(worksheet) -> WorksheetSummary:
    lessons = dict.fromkeys(link.question.lesson for link in worksheet.questions)
    return WorksheetSummary(
        id=worksheet.id,
        title=worksheet.title,
        name=worksheet.name,
        created_at=worksheet.created_at,
        question_count=len(worksheet.questions),
        lessons=list(lessons),
    )


@router.get("", response_model=List[WorksheetSummary])
async def list_worksheets(
    search: Optional[str] = Query(None),
    lesson: Optional[str] = Query(None),
    service: WorksheetService = Depends(get_worksheet_service),
):
    """List worksheets, newest first."""
    worksheets = await service.list_worksheets(search=search or None, lesson=lesson or None)
    return [_summary(w) for w in worksheets]


@router.post("", response_model=WorksheetDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_worksheet(
    body: WorksheetCreate,
    service: WorksheetService = Depends(get_worksheet_service),
):
    """Create a worksheet from questions in the given order."""
    try:
        return await service.create_worksheet(body.question_ids, title=body.title, name=body.name)
    except UnknownQuestionsError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("", response_model=DeleteManyResponse)
async def delete_worksheets(
    body: WorksheetDeleteMany,
    service: WorksheetService = Depends(get_worksheet_service),
):
    """Delete many worksheets. Their questions are kept."""
    deleted = await service.delete_worksheets(body.ids)
    return DeleteManyResponse(deleted=deleted)


@router.get("/{worksheet_id}", response_model=WorksheetDetailResponse)
async def get_worksheet(
    worksheet_id: str,
    service: WorksheetService = Depends(get_worksheet_service),
):
    """Get worksheet with its ordered questions."""
    worksheet = await service.get_worksheet(worksheet_id)

    if not worksheet:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Worksheet not found"
        )

    return worksheet


@router.patch("/{worksheet_id}", response_model=WorksheetResponse)
async def rename_worksheet(
    worksheet_id: str,
    update: WorksheetUpdate,
    service: WorksheetService = Depends(get_worksheet_service),
):
    data = update.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No valid fields to update"
        )

    worksheet = await service.rename_worksheet(worksheet_id, data)

    if not worksheet:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Worksheet not found"
        )

    return worksheet


@router.delete("/{worksheet_id}")
async def delete_worksheet(
    worksheet_id: str,
    service: WorksheetService = Depends(get_worksheet_service),
):
    deleted = await service.delete_worksheet(worksheet_id)

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Worksheet not found"
        )

    return {"success": True}

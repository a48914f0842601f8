"""Question routes."""

import logging
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, status, Query, Request, UploadFile, File, Form

from api.deps import get_question_service, get_settings_dep, limiter, upload_rate_limit
from api.schemas.question import (
    QuestionResponse,
    QuestionDetailResponse,
    QuestionUpdate,
    QuestionListResponse,
    QuestionIdsResponse,
    BulkStatusUpdate,
    BulkStatusResponse,
    ReprocessRequest,
    ReprocessResponse,
    STATUS_PATTERN,
)
from config.settings import Settings
from pipeline.image_manager import UploadValidationError
from pipeline.scan import ImageDecodeError
from services.question_service import (
    QuestionService,
    QuestionFilter,
    QuestionMetadata,
    UploadedImage,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _optional_int(name: str, value: Optional[str]) -> Optional[int]:
    if value is None or value.strip() == "":
        return None
    try:
        return int(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{name} must be an integer",
        )


def _filters(
    lesson: Optional[str] = Query(None),
    subject: Optional[str] = Query(None),
    source: Optional[str] = Query(None),
    status_: str = Query("ACTIVE", alias="status", pattern=STATUS_PATTERN),
    search: Optional[str] = Query(None),
    has_analysis: Optional[bool] = Query(None),
) -> QuestionFilter:
    return QuestionFilter(
        lesson=lesson or None,
        subject=subject or None,
        source=source or None,
        status=status_,
        search=search or None,
        has_analysis=has_analysis,
    )


@router.get("", response_model=QuestionListResponse)
async def list_questions(
    filters: QuestionFilter = Depends(_filters),
    cursor: Optional[str] = Query(None, description="Id of the last question of the previous page"),
    limit: Optional[int] = Query(None, ge=1),
    settings: Settings = Depends(get_settings_dep),
    service: QuestionService = Depends(get_question_service),
):
    """
    List questions, newest first.

    A free-text ``search`` matches lesson, subject or source across every
    status.
    """
    limit = min(limit or settings.default_page_size, settings.max_page_size)
    page = await service.list_questions(filters, cursor=cursor, limit=limit)

    return QuestionListResponse(
        questions=[QuestionResponse.model_validate(q) for q in page.questions],
        next_cursor=page.next_cursor,
        has_more=page.has_more,
    )


@router.post("", response_model=List[QuestionResponse], status_code=status.HTTP_201_CREATED)
@limiter.limit(upload_rate_limit)
async def upload_questions(
    request: Request,
    files: List[UploadFile] = File(...),
    lesson: str = Form(..., min_length=1),
    subject: Optional[str] = Form(None),
    source: Optional[str] = Form(None),
    page_number: Optional[str] = Form(None),
    question_number: Optional[str] = Form(None),
    answer: Optional[str] = Form(None),
    service: QuestionService = Depends(get_question_service),
):
    """
    Upload question photos.

    Every file goes through the document-scan pipeline; only the processed
    image is stored. One question is created per file.
    """
    metadata = QuestionMetadata(
        lesson=lesson,
        subject=subject or None,
        source=source or None,
        page_number=_optional_int("page_number", page_number),
        question_number=_optional_int("question_number", question_number),
        answer=answer or None,
    )

    uploads = [
        UploadedImage(
            filename=f.filename or "upload",
            content_type=f.content_type,
            data=await f.read(),
        )
        for f in files
    ]

    try:
        return await service.create_questions(uploads, metadata)
    except UploadValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ImageDecodeError as e:
        logger.warning(f"Upload rejected: {e}")
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Image could not be processed",
        )


@router.get("/ids", response_model=QuestionIdsResponse)
async def list_question_ids(
    filters: QuestionFilter = Depends(_filters),
    random: bool = Query(False),
    count: int = Query(0, ge=0),
    service: QuestionService = Depends(get_question_service),
):
    """
    All ids matching the filters, without pagination.

    With ``random=true&count=N`` returns N random ids and the matching total.
    """
    ids, total = await service.list_ids(filters, random=random, count=count)
    return QuestionIdsResponse(ids=ids, total=total)


@router.post("/bulk", response_model=BulkStatusResponse)
async def bulk_update_status(
    body: BulkStatusUpdate,
    service: QuestionService = Depends(get_question_service),
):
    """Set the status of many questions."""
    count = await service.bulk_update_status(body.ids, body.status)
    return BulkStatusResponse(count=count)


@router.post("/reprocess", response_model=ReprocessResponse, response_model_exclude_none=True)
async def reprocess_questions(
    body: Optional[ReprocessRequest] = None,
    service: QuestionService = Depends(get_question_service),
):
    """
    Re-run the document-scan pipeline over stored images.

    Images are processed one at a time and overwritten in place. Without
    ids every question is re-processed.
    """
    ids = body.ids if body else None
    result = await service.reprocess(ids)

    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No questions to process",
        )

    return ReprocessResponse(
        total=result.total,
        processed=result.processed,
        failed=result.failed,
        errors=result.errors or None,
    )


@router.get("/{question_id}", response_model=QuestionDetailResponse)
async def get_question(
    question_id: str,
    service: QuestionService = Depends(get_question_service),
):
    """Get question by ID, with its cached analysis."""
    question = await service.get_question(question_id)

    if not question:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Question not found"
        )

    return question


@router.patch("/{question_id}", response_model=QuestionResponse)
async def update_question(
    question_id: str,
    update: QuestionUpdate,
    service: QuestionService = Depends(get_question_service),
):
    """Update question metadata or status."""
    data = update.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No valid fields to update"
        )

    question = await service.update_question(question_id, data)

    if not question:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Question not found"
        )

    return question


@router.delete("/{question_id}")
async def delete_question(
    question_id: str,
    service: QuestionService = Depends(get_question_service),
):
    """Delete a question and its image."""
    deleted = await service.delete_question(question_id)

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Question not found"
        )

    return {"success": True}

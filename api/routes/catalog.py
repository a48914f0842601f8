"""Lesson, subject and book routes."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status, Query

from api.deps import get_catalog_service
from api.schemas.catalog import (
    NameCreate,
    SubjectCreate,
    LessonResponse,
    SubjectResponse,
    BookResponse,
    SuccessResponse,
)
from services.catalog_service import CatalogService, DuplicateEntryError

lessons_router = APIRouter()
subjects_router = APIRouter()
books_router = APIRouter()


def _conflict(e: DuplicateEntryError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


def _not_found(kind: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{kind} not found")


# Lessons

@lessons_router.get("", response_model=List[LessonResponse])
async def list_lessons(service: CatalogService = Depends(get_catalog_service)):
    """List lessons with their subjects."""
    return await service.list_lessons()


@lessons_router.post("", response_model=LessonResponse, status_code=status.HTTP_201_CREATED)
async def create_lesson(
    body: NameCreate,
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        return await service.create_lesson(body.name.strip())
    except DuplicateEntryError as e:
        raise _conflict(e)


@lessons_router.delete("", response_model=SuccessResponse)
async def delete_lesson(
    id: str = Query(..., min_length=1),
    service: CatalogService = Depends(get_catalog_service),
):
    """Delete a lesson and its subjects."""
    if not await service.delete_lesson(id):
        raise _not_found("Lesson")
    return SuccessResponse()


# Subjects

@subjects_router.get("", response_model=List[SubjectResponse])
async def list_subjects(service: CatalogService = Depends(get_catalog_service)):
    return await service.list_subjects()


@subjects_router.post("", response_model=SubjectResponse, status_code=status.HTTP_201_CREATED)
async def create_subject(
    body: SubjectCreate,
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        subject = await service.create_subject(body.name.strip(), body.lesson_id)
    except DuplicateEntryError as e:
        raise _conflict(e)

    if subject is None:
        raise _not_found("Lesson")
    return subject


@subjects_router.delete("", response_model=SuccessResponse)
async def delete_subject(
    id: str = Query(..., min_length=1),
    service: CatalogService = Depends(get_catalog_service),
):
    if not await service.delete_subject(id):
        raise _not_found("Subject")
    return SuccessResponse()


# Books

@books_router.get("", response_model=List[BookResponse])
async def list_books(service: CatalogService = Depends(get_catalog_service)):
    return await service.list_books()


@books_router.post("", response_model=BookResponse, status_code=status.HTTP_201_CREATED)
async def create_book(
    body: NameCreate,
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        return await service.create_book(body.name.strip())
    except DuplicateEntryError as e:
        raise _conflict(e)


@books_router.delete("", response_model=SuccessResponse)
async def delete_book(
    id: str = Query(..., min_length=1),
    service: CatalogService = Depends(get_catalog_service),
):
    if not await service.delete_book(id):
        raise _not_found("Book")
    return SuccessResponse()

"""Lesson, subject and book catalog service."""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import Lesson, Subject, Book

logger = logging.getLogger(__name__)


class DuplicateEntryError(ValueError):
    """Catalog entry with the same name already exists."""


class CatalogService:
    """Service for lessons, subjects and books."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _add(self, entry):
        self.db.add(entry)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise DuplicateEntryError(f"{type(entry).__name__} already exists: {entry.name}") from e
        return entry

    async def _delete(self, model, entry_id: str) -> bool:
        entry = await self.db.get(model, entry_id)
        if entry is None:
            return False
        await self.db.delete(entry)
        await self.db.commit()
        logger.info(f"Deleted {model.__name__}: {entry_id}")
        return True

    # Lessons

    async def list_lessons(self) -> List[Lesson]:
        """Lessons by name, each with its subjects."""
        result = await self.db.execute(select(Lesson).order_by(Lesson.name))
        return list(result.scalars().all())

    async def create_lesson(self, name: str) -> Lesson:
        lesson = Lesson(name=name)
        lesson.subjects = []
        return await self._add(lesson)

    async def delete_lesson(self, lesson_id: str) -> bool:
        return await self._delete(Lesson, lesson_id)

    # Subjects

    async def list_subjects(self) -> List[Subject]:
        """Subjects by name, each with its lesson."""
        result = await self.db.execute(select(Subject).order_by(Subject.name))
        return list(result.scalars().all())

    async def create_subject(self, name: str, lesson_id: str) -> Optional[Subject]:
        """Create a subject; None if the lesson does not exist."""
        lesson = await self.db.get(Lesson, lesson_id)
        if lesson is None:
            return None
        subject = Subject(name=name, lesson=lesson)
        return await self._add(subject)

    async def delete_subject(self, subject_id: str) -> bool:
        return await self._delete(Subject, subject_id)

    # Books

    async def list_books(self) -> List[Book]:
        result = await self.db.execute(select(Book).order_by(Book.name))
        return list(result.scalars().all())

    async def create_book(self, name: str) -> Book:
        return await self._add(Book(name=name))

    async def delete_book(self, book_id: str) -> bool:
        return await self._delete(Book, book_id)

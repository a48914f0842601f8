"""Worksheet business logic service."""

import logging
from datetime import datetime
from typing import List, Optional, Dict, Any

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import Question, Worksheet, WorksheetQuestion

logger = logging.getLogger(__name__)

RENAMABLE_FIELDS = ("title", "name")


class UnknownQuestionsError(ValueError):
    """Worksheet references questions that do not exist."""

    def __init__(self, missing: List[str]):
        self.missing = missing
        super().__init__(f"Unknown question ids: {', '.join(missing)}")


def default_title(now: Optional[datetime] = None) -> str:
    return f"Worksheet - {(now or datetime.now()):%d.%m.%Y}"


class WorksheetService:
    """Service for worksheet operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_worksheets(
        self,
        search: Optional[str] = None,
        lesson: Optional[str] = None,
    ) -> List[Worksheet]:
        """List worksheets newest first."""
        query = select(Worksheet)

        if search:
            query = query.where(Worksheet.title.ilike(f"%{search}%"))
        if lesson:
            query = query.where(
                Worksheet.questions.any(
                    WorksheetQuestion.question.has(Question.lesson == lesson)
                )
            )

        query = query.order_by(Worksheet.created_at.desc())
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create_worksheet(
        self,
        question_ids: List[str],
        title: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Worksheet:
        """Create a worksheet; questions keep the order they were given in.

        Raises:
            ValueError: If no questions are given.
            UnknownQuestionsError: If any id does not exist.
        """
        if not question_ids:
            raise ValueError("Select at least one question")

        result = await self.db.execute(
            select(Question).where(Question.id.in_(question_ids))
        )
        found = {q.id: q for q in result.scalars().all()}
        missing = [qid for qid in question_ids if qid not in found]
        if missing:
            raise UnknownQuestionsError(missing)

        worksheet = Worksheet(title=title or default_title(), name=name or None)
        worksheet.questions = [
            WorksheetQuestion(question=found[qid], order=index)
            for index, qid in enumerate(question_ids)
        ]

        self.db.add(worksheet)
        await self.db.commit()

        logger.info(f"Created worksheet {worksheet.id} with {len(question_ids)} questions")
        return worksheet

    async def get_worksheet(self, worksheet_id: str) -> Optional[Worksheet]:
        """Get worksheet with ordered questions."""
        return await self.db.get(Worksheet, worksheet_id)

    async def rename_worksheet(
        self,
        worksheet_id: str,
        data: Dict[str, Any],
    ) -> Optional[Worksheet]:
        """Update title and/or name."""
        worksheet = await self.db.get(Worksheet, worksheet_id)
        if worksheet is None:
            return None

        for field, value in data.items():
            if field in RENAMABLE_FIELDS:
                setattr(worksheet, field, value)

        await self.db.commit()
        return worksheet

    async def delete_worksheet(self, worksheet_id: str) -> bool:
        """Delete one worksheet. Its questions are kept."""
        worksheet = await self.db.get(Worksheet, worksheet_id)
        if worksheet is None:
            return False

        await self.db.delete(worksheet)
        await self.db.commit()
        return True

    async def delete_worksheets(self, ids: List[str]) -> int:
        """Delete many worksheets."""
        await self.db.execute(
            delete(WorksheetQuestion).where(WorksheetQuestion.worksheet_id.in_(ids))
        )
        result = await self.db.execute(delete(Worksheet).where(Worksheet.id.in_(ids)))
        await self.db.commit()

        logger.info(f"Deleted {result.rowcount} worksheets")
        return result.rowcount

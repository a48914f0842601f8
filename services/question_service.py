"""Question business logic service."""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Dict, Any, Tuple

from sqlalchemy import select, update, func, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import Question, STATUS_ACTIVE
from pipeline.batch import BatchItem, BatchResult, ReprocessBatch
from pipeline.image_manager import ImageManager
from pipeline.scan import DocumentScanner

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    "lesson", "subject", "source", "page_number", "question_number", "answer", "status",
)


@dataclass
class QuestionFilter:
    """Question list filters."""
    lesson: Optional[str] = None
    subject: Optional[str] = None
    source: Optional[str] = None
    status: str = STATUS_ACTIVE
    search: Optional[str] = None
    has_analysis: Optional[bool] = None


@dataclass
class UploadedImage:
    """Raw uploaded file, before processing."""
    filename: str
    content_type: Optional[str]
    data: bytes


@dataclass
class QuestionMetadata:
    """Metadata shared by every file in one upload."""
    lesson: str
    subject: Optional[str] = None
    source: Optional[str] = None
    page_number: Optional[int] = None
    question_number: Optional[int] = None
    answer: Optional[str] = None


@dataclass
class QuestionPage:
    """One page of a cursor-paginated listing."""
    questions: List[Question]
    next_cursor: Optional[str]
    has_more: bool


class QuestionService:
    """Service for question operations."""

    def __init__(
        self,
        db: AsyncSession,
        images: ImageManager,
        scanner: Optional[DocumentScanner] = None,
    ):
        self.db = db
        self.images = images
        self.scanner = scanner or DocumentScanner()

    def _filter_conditions(self, filters: QuestionFilter) -> list:
        conditions = []

        if filters.lesson:
            conditions.append(Question.lesson == filters.lesson)
        if filters.subject:
            conditions.append(Question.subject == filters.subject)
        if filters.source:
            conditions.append(Question.source == filters.source)

        if filters.has_analysis is True:
            conditions.append(Question.analysis.has())
        elif filters.has_analysis is False:
            conditions.append(~Question.analysis.has())

        # Free-text search spans every status
        if filters.search:
            pattern = f"%{filters.search}%"
            conditions.append(or_(
                Question.lesson.ilike(pattern),
                Question.subject.ilike(pattern),
                Question.source.ilike(pattern),
            ))
        else:
            conditions.append(Question.status == filters.status)

        return conditions

    async def list_questions(
        self,
        filters: QuestionFilter,
        cursor: Optional[str] = None,
        limit: int = 50,
    ) -> QuestionPage:
        """List questions newest first, ``limit`` at a time."""
        query = select(Question).where(*self._filter_conditions(filters))

        if cursor:
            anchor = await self.db.get(Question, cursor)
            if anchor is not None:
                query = query.where(or_(
                    Question.created_at < anchor.created_at,
                    and_(
                        Question.created_at == anchor.created_at,
                        Question.id < anchor.id,
                    ),
                ))

        query = query.order_by(Question.created_at.desc(), Question.id.desc()).limit(limit + 1)
        result = await self.db.execute(query)
        questions = list(result.scalars().all())

        has_more = len(questions) > limit
        questions = questions[:limit]
        next_cursor = questions[-1].id if has_more else None

        return QuestionPage(questions=questions, next_cursor=next_cursor, has_more=has_more)

    async def list_ids(
        self,
        filters: QuestionFilter,
        random: bool = False,
        count: int = 0,
    ) -> Tuple[List[str], int]:
        """All matching ids, or ``count`` random ones plus the matching total."""
        conditions = self._filter_conditions(filters)

        if random and count > 0:
            query = (
                select(Question.id)
                .where(*conditions)
                .order_by(func.random())
                .limit(max(1, count))
            )
            ids = list((await self.db.execute(query)).scalars().all())
            total = await self.db.scalar(
                select(func.count()).select_from(Question).where(*conditions)
            )
            return ids, total or 0

        result = await self.db.execute(
            select(Question.id).where(*conditions).order_by(Question.created_at.desc())
        )
        ids = list(result.scalars().all())
        return ids, len(ids)

    async def create_questions(
        self,
        uploads: List[UploadedImage],
        metadata: QuestionMetadata,
    ) -> List[Question]:
        """Scan every upload, store the results and create one question each.

        All files are validated and processed before anything is written, so a
        file that fails to decode leaves no files and no records behind.

        Raises:
            UploadValidationError: A file has a bad type or size.
            ImageDecodeError: A file could not be decoded.
        """
        for upload in uploads:
            self.images.validate_upload(upload.filename, upload.content_type, len(upload.data))

        processed = []
        for upload in uploads:
            processed.append(await asyncio.to_thread(self.scanner.process, upload.data))

        questions = []
        for data in processed:
            stored = self.images.new_image()
            await asyncio.to_thread(self.images.write, stored, data)

            question = Question(
                file_id=stored.file_id,
                file_url=stored.url,
                lesson=metadata.lesson,
                subject=metadata.subject,
                source=metadata.source,
                page_number=metadata.page_number,
                question_number=metadata.question_number,
                answer=metadata.answer,
                status=STATUS_ACTIVE,
            )
            question.analysis = None
            self.db.add(question)
            questions.append(question)

        await self.db.commit()

        logger.info(f"Created {len(questions)} questions for lesson {metadata.lesson}")
        return questions

    async def get_question(self, question_id: str) -> Optional[Question]:
        """Get question with its cached analysis."""
        return await self.db.get(Question, question_id)

    async def update_question(
        self,
        question_id: str,
        data: Dict[str, Any],
    ) -> Optional[Question]:
        """Update whitelisted fields of a question."""
        question = await self.db.get(Question, question_id)
        if question is None:
            return None

        for field, value in data.items():
            if field in UPDATABLE_FIELDS:
                setattr(question, field, value)

        await self.db.commit()
        return question

    async def delete_question(self, question_id: str) -> bool:
        """Delete a question and, best effort, its image file."""
        question = await self.db.get(Question, question_id)
        if question is None:
            return False

        self.images.delete_file(self.images.filename_from_url(question.file_url))

        await self.db.delete(question)
        await self.db.commit()

        logger.info(f"Deleted question: {question_id}")
        return True

    async def bulk_update_status(self, ids: List[str], status: str) -> int:
        """Set the status of many questions at once."""
        result = await self.db.execute(
            update(Question)
            .where(Question.id.in_(ids))
            .values(status=status)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        logger.info(f"Set status {status} on {result.rowcount} questions")
        return result.rowcount

    async def get_filters(self) -> Dict[str, Any]:
        """Distinct lessons, subjects and sources in use."""
        lessons = await self.db.execute(
            select(Question.lesson).distinct().order_by(Question.lesson)
        )
        subjects = await self.db.execute(
            select(Question.subject, func.min(Question.lesson))
            .where(Question.subject.isnot(None))
            .group_by(Question.subject)
            .order_by(Question.subject)
        )
        sources = await self.db.execute(
            select(Question.source)
            .where(Question.source.isnot(None))
            .distinct()
            .order_by(Question.source)
        )

        return {
            "lessons": list(lessons.scalars().all()),
            "subjects": [
                {"subject": subject, "lesson": lesson}
                for subject, lesson in subjects.all()
            ],
            "sources": list(sources.scalars().all()),
        }

    async def reprocess(self, ids: Optional[List[str]] = None) -> Optional[BatchResult]:
        """Re-run the scan pipeline over stored images.

        Processes the given questions, or every question when ``ids`` is
        empty. Returns None when nothing matches.
        """
        query = select(Question.id, Question.file_id)
        if ids:
            query = query.where(Question.id.in_(ids))

        rows = (await self.db.execute(query)).all()
        if not rows:
            return None

        items = [BatchItem(id=row.id, file_id=row.file_id) for row in rows]
        return await ReprocessBatch(self.scanner, self.images).run(items)

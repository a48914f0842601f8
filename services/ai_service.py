"""AI gateway service: question solving, study advice and prompt management."""

import logging
import re
from typing import Callable, List, Optional, Tuple

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import AIPrompt, Question, QuestionAnalysis, DEFAULT_PROMPT_SUBJECT
from pipeline.ai_processor import AIGatewayError, GeminiProcessor
from pipeline.image_manager import ImageManager

logger = logging.getLogger(__name__)

DEFAULT_SOLVE_PROMPT = """You are an exam question solver. Analyze this question image and answer in the format below. Use markdown, and write math expressions in LaTeX ($..$ and $$..$$).

**TOPIC:** [The topic the question belongs to]
**DIFFICULTY:** [Easy/Medium/Hard]
**SUMMARY:** [A short description of the question, 1-2 sentences]

**SOLUTION:**
[Detailed step-by-step solution]

**CORRECT ANSWER:** [The correct option, if there are options]

Explain it so that a student can follow."""

FORMAT_INSTRUCTION = (
    "\n\nAnswer in markdown. Write math expressions in LaTeX ($..$ and $$..$$)."
)

DEFAULT_DIFFICULTY = "Medium"

TOPIC_PATTERN = re.compile(r"\*\*TOPIC:\*\*\s*(.+)")
DIFFICULTY_PATTERN = re.compile(r"\*\*DIFFICULTY:\*\*\s*(.+)")
SUMMARY_PATTERN = re.compile(r"\*\*SUMMARY:\*\*\s*(.+)")

ProcessorFactory = Callable[[str, Optional[str]], GeminiProcessor]


class ImageUnavailableError(Exception):
    """The stored image for a question could not be read."""


def parse_solution(text: str, lesson: str) -> Tuple[List[str], str, str]:
    """Pull topic, difficulty and summary out of a solve response."""
    topic = TOPIC_PATTERN.search(text)
    difficulty = DIFFICULTY_PATTERN.search(text)
    summary = SUMMARY_PATTERN.search(text)

    return (
        [topic.group(1).strip()] if topic else [lesson],
        difficulty.group(1).strip() if difficulty else DEFAULT_DIFFICULTY,
        summary.group(1).strip() if summary else "",
    )


def _lesson_label(lesson: str, subject: Optional[str], sep: str = " > ") -> str:
    return f"{lesson}{sep}{subject}" if subject else lesson


class AIService:
    """Stateless proxy to Gemini plus the analysis cache and prompt store."""

    def __init__(
        self,
        db: AsyncSession,
        images: ImageManager,
        default_model: Optional[str] = None,
        max_retries: int = 3,
        processor_factory: Optional[ProcessorFactory] = None,
    ):
        self.db = db
        self.images = images
        self.default_model = default_model
        self.max_retries = max_retries
        self._processor_factory = processor_factory

    def _processor(self, api_key: str, model: Optional[str]) -> GeminiProcessor:
        model = model or self.default_model
        if self._processor_factory is not None:
            return self._processor_factory(api_key, model)
        return GeminiProcessor(api_key, model=model, max_retries=self.max_retries)

    # Solving

    async def _resolve_prompt(self, question: Question) -> str:
        """Lesson+subject prompt, then the lesson default, then the built-in one."""
        candidates = [question.subject or DEFAULT_PROMPT_SUBJECT]
        if candidates[0] != DEFAULT_PROMPT_SUBJECT:
            candidates.append(DEFAULT_PROMPT_SUBJECT)

        for subject in candidates:
            custom = await self.db.scalar(
                select(AIPrompt).where(
                    AIPrompt.lesson == question.lesson,
                    AIPrompt.subject == subject,
                )
            )
            if custom is not None:
                return custom.prompt + FORMAT_INSTRUCTION

        return DEFAULT_SOLVE_PROMPT

    async def solve(
        self,
        question_id: str,
        api_key: str,
        model: Optional[str] = None,
    ) -> Tuple[Optional[QuestionAnalysis], bool]:
        """Solve a question, or return its cached analysis.

        Returns ``(analysis, cached)``; ``(None, False)`` if the question does
        not exist.

        Raises:
            ImageUnavailableError: The stored image cannot be read.
            AIGatewayError: The model call failed.
        """
        cached = await self.db.scalar(
            select(QuestionAnalysis).where(QuestionAnalysis.question_id == question_id)
        )
        if cached is not None:
            return cached, True

        question = await self.db.get(Question, question_id)
        if question is None:
            return None, False

        filename = self.images.filename_from_url(question.file_url)
        try:
            image = self.images.read(filename)
        except (OSError, ValueError) as e:
            raise ImageUnavailableError(f"Question image could not be read: {filename}") from e

        prompt = await self._resolve_prompt(question)
        response_text = await self._processor(api_key, model).generate_with_image(
            prompt, image, mime_type=self.images.content_type(filename)
        )

        topics, difficulty, summary = parse_solution(response_text, question.lesson)
        analysis = QuestionAnalysis(
            question=question,
            lesson=question.lesson,
            subject=question.subject,
            topics=topics,
            difficulty=difficulty,
            summary=summary,
            solution=response_text,
        )
        self.db.add(analysis)
        try:
            await self.db.commit()
        except IntegrityError:
            # A concurrent solve cached first; keep that one
            await self.db.rollback()
            existing = await self.db.scalar(
                select(QuestionAnalysis).where(QuestionAnalysis.question_id == question_id)
            )
            return existing, True

        logger.info(f"Cached analysis for question {question_id}")
        return analysis, False

    async def clear_analyses(self, question_ids: List[str]) -> int:
        """Drop cached analyses so the questions can be solved again."""
        result = await self.db.execute(
            delete(QuestionAnalysis).where(QuestionAnalysis.question_id.in_(question_ids))
        )
        await self.db.commit()
        return result.rowcount

    # Study advice

    async def _collect(self, question_ids: List[str]):
        analyses = (await self.db.execute(
            select(QuestionAnalysis).where(QuestionAnalysis.question_id.in_(question_ids))
        )).scalars().all()
        questions = (await self.db.execute(
            select(Question.lesson, Question.subject).where(Question.id.in_(question_ids))
        )).all()
        return analyses, questions

    async def study_recommendations(
        self,
        question_ids: List[str],
        api_key: str,
        model: Optional[str] = None,
        custom_prompt: Optional[str] = None,
    ) -> str:
        """Advice on what to focus on, based on the selected questions."""
        if not question_ids:
            raise ValueError("Select at least one question")

        analyses, questions = await self._collect(question_ids)

        if analyses:
            info = "\n".join(
                f"- {_lesson_label(a.lesson, a.subject)}: {', '.join(a.topics or [])} "
                f"(Difficulty: {a.difficulty})\n  Summary: {a.summary}"
                for a in analyses
            )
        else:
            info = "\n".join(f"- {_lesson_label(q.lesson, q.subject)}" for q in questions)

        if custom_prompt:
            prompt = (
                f"{custom_prompt}\n\nStudent information:\n{info}\n\n"
                f"{len(question_ids)} questions selected in total."
            )
        else:
            prompt = f"""You are an exam coach. The student wants to work on the following questions:

{info}

{len(question_ids)} questions selected in total. Based on this information, explain:
1. Which topics to prioritize
2. Concrete study advice for each topic
3. How to strengthen weak areas
4. Suggestions to keep motivation up

Answer as a bulleted list."""

        return await self._processor(api_key, model).generate(prompt)

    async def study_plan(
        self,
        question_ids: List[str],
        api_key: str,
        model: Optional[str] = None,
        hours_per_day: Optional[float] = None,
        days: Optional[int] = None,
        custom_prompt: Optional[str] = None,
    ) -> str:
        """Day-by-day study plan covering the selected questions' topics."""
        if not question_ids:
            raise ValueError("Select at least one question")

        hours_per_day = hours_per_day or 6
        days = days or 7
        analyses, questions = await self._collect(question_ids)

        if analyses:
            lines = [
                f"{a.lesson}: {', '.join(a.topics or [])} ({a.difficulty})" for a in analyses
            ]
        else:
            lines = [_lesson_label(q.lesson, q.subject, sep=": ") for q in questions]
        topics = "\n".join(dict.fromkeys(lines))

        if custom_prompt:
            prompt = (
                f"{custom_prompt}\n\nTopics:\n{topics}\n\n"
                f"Daily study time: {hours_per_day} hours\nPlan length: {days} days"
            )
        else:
            prompt = f"""You are an exam coach. Prepare a study plan covering the topics from the following questions:

Topics:
{topics}

Daily study time: {hours_per_day} hours
Plan length: {days} days

Please:
1. Build a daily schedule table
2. Distribute topics by importance and difficulty
3. Plan review sessions
4. Add breaks

Explain in detail."""

        return await self._processor(api_key, model).generate(prompt)

    async def list_models(self, api_key: str):
        return await self._processor(api_key, None).list_models()

    # Prompts

    async def list_prompts(self) -> List[AIPrompt]:
        result = await self.db.execute(
            select(AIPrompt).order_by(AIPrompt.lesson, AIPrompt.subject)
        )
        return list(result.scalars().all())

    async def upsert_prompt(
        self,
        lesson: str,
        prompt: str,
        subject: Optional[str] = None,
    ) -> Tuple[AIPrompt, bool]:
        """Create or replace the prompt for a lesson/subject. Returns (prompt, created)."""
        subject_key = (subject or "").strip() or DEFAULT_PROMPT_SUBJECT

        existing = await self.db.scalar(
            select(AIPrompt).where(AIPrompt.lesson == lesson, AIPrompt.subject == subject_key)
        )
        if existing is not None:
            existing.prompt = prompt
            await self.db.commit()
            await self.db.refresh(existing)
            return existing, False

        created = AIPrompt(lesson=lesson, subject=subject_key, prompt=prompt)
        self.db.add(created)
        await self.db.commit()
        return created, True

    async def delete_prompt(self, prompt_id: str) -> bool:
        entry = await self.db.get(AIPrompt, prompt_id)
        if entry is None:
            return False
        await self.db.delete(entry)
        await self.db.commit()
        return True


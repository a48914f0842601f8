"""Database module for the question bank."""

from database.models import (
    Base,
    Lesson,
    Subject,
    Book,
    Question,
    QuestionAnalysis,
    Worksheet,
    WorksheetQuestion,
    AIPrompt,
    STATUS_ACTIVE,
    STATUS_MASTERED,
    QUESTION_STATUSES,
    DEFAULT_PROMPT_SUBJECT,
)
from database.connection import Database, normalize_database_url
from database.seed import DEFAULT_LESSONS, seed_defaults

__all__ = [
    "Base",
    "Lesson",
    "Subject",
    "Book",
    "Question",
    "QuestionAnalysis",
    "Worksheet",
    "WorksheetQuestion",
    "AIPrompt",
    "STATUS_ACTIVE",
    "STATUS_MASTERED",
    "QUESTION_STATUSES",
    "DEFAULT_PROMPT_SUBJECT",
    "Database",
    "normalize_database_url",
    "DEFAULT_LESSONS",
    "seed_defaults",
]

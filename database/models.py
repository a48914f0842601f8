"""SQLAlchemy models for database."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Integer, DateTime, Text, ForeignKey, JSON,
    UniqueConstraint, Index,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

STATUS_ACTIVE = "ACTIVE"
STATUS_MASTERED = "MASTERED"
QUESTION_STATUSES = (STATUS_ACTIVE, STATUS_MASTERED)

DEFAULT_PROMPT_SUBJECT = "__default__"


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Lesson(Base):
    """Lesson (e.g. Mathematics)."""
    __tablename__ = "lessons"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(255), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    # Relationships
    subjects = relationship(
        "Subject",
        back_populates="lesson",
        cascade="all, delete-orphan",
        order_by="Subject.name",
        lazy="selectin",
    )


class Subject(Base):
    """Subject within a lesson."""
    __tablename__ = "subjects"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(255), nullable=False)
    lesson_id = Column(String(36), ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    # Relationships
    lesson = relationship("Lesson", back_populates="subjects", lazy="selectin")

    __table_args__ = (UniqueConstraint("name", "lesson_id"),)


class Book(Base):
    """Named question source (book, test series)."""
    __tablename__ = "books"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(255), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class Question(Base):
    """Photographed question; the file is always the scan pipeline output."""
    __tablename__ = "questions"

    id = Column(String(36), primary_key=True, default=_new_id)
    file_id = Column(String(36), nullable=False, unique=True)
    file_url = Column(String(500), nullable=False)
    lesson = Column(String(255), nullable=False)
    subject = Column(String(255))
    source = Column(String(255))
    page_number = Column(Integer)
    question_number = Column(Integer)
    answer = Column(String(50))
    status = Column(String(20), nullable=False, default=STATUS_ACTIVE)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # Relationships
    analysis = relationship(
        "QuestionAnalysis",
        back_populates="question",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )
    worksheet_links = relationship(
        "WorksheetQuestion",
        back_populates="question",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_questions_status_created", "status", "created_at"),
        Index("ix_questions_lesson", "lesson"),
    )

    @property
    def has_analysis(self) -> bool:
        return self.analysis is not None


class QuestionAnalysis(Base):
    """Cached AI solution for a question. The first response is kept."""
    __tablename__ = "question_analyses"

    id = Column(String(36), primary_key=True, default=_new_id)
    question_id = Column(
        String(36), ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False, unique=True,
    )
    lesson = Column(String(255), nullable=False)
    subject = Column(String(255))
    topics = Column(JSON, nullable=False, default=list)
    difficulty = Column(String(50), nullable=False)
    summary = Column(Text, nullable=False, default="")
    solution = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    # Relationships
    question = relationship("Question", back_populates="analysis")


class Worksheet(Base):
    """Named, ordered collection of questions for printing."""
    __tablename__ = "worksheets"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(255), nullable=False)
    name = Column(String(255))
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # Relationships
    questions = relationship(
        "WorksheetQuestion",
        back_populates="worksheet",
        cascade="all, delete-orphan",
        order_by="WorksheetQuestion.order",
        passive_deletes=True,
        lazy="selectin",
    )


class WorksheetQuestion(Base):
    """Position of a question inside a worksheet."""
    __tablename__ = "worksheet_questions"

    id = Column(String(36), primary_key=True, default=_new_id)
    worksheet_id = Column(String(36), ForeignKey("worksheets.id", ondelete="CASCADE"), nullable=False)
    question_id = Column(String(36), ForeignKey("questions.id", ondelete="CASCADE"), nullable=False)
    order = Column(Integer, nullable=False)

    # Relationships
    worksheet = relationship("Worksheet", back_populates="questions")
    question = relationship("Question", back_populates="worksheet_links", lazy="selectin")


class AIPrompt(Base):
    """Custom solve prompt per lesson/subject."""
    __tablename__ = "ai_prompts"

    id = Column(String(36), primary_key=True, default=_new_id)
    lesson = Column(String(255), nullable=False)
    subject = Column(String(255), nullable=False, default=DEFAULT_PROMPT_SUBJECT)
    prompt = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), onupdate=_utcnow)

    __table_args__ = (UniqueConstraint("lesson", "subject"),)

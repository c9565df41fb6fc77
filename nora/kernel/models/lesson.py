"""
Lesson models - lessons, their content segments, and the daily quiz.

A lesson exclusively owns its segments, its quiz and the quiz options; all of
them go away with the lesson. Prerequisites are plain lesson ids and carry no
foreign key, so removing a lesson leaves dependents pointing at a missing id
until validation reports it.
"""

from enum import Enum
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nora.kernel.models.base import Base, TimestampMixin


class LessonPhase(str, Enum):
    """Curriculum stages."""
    CONNECT = "CONNECT"
    DISCIPLINE = "DISCIPLINE"


class ContentType(str, Enum):
    """Kinds of lesson segments."""
    TEXT = "TEXT"
    EXAMPLE = "EXAMPLE"
    TIP = "TIP"
    SCRIPT = "SCRIPT"
    CALLOUT = "CALLOUT"
    TEXT_INPUT = "TEXT_INPUT"


class Lesson(Base, TimestampMixin):
    """One day of curriculum content."""

    __tablename__ = "lessons"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    phase: Mapped[LessonPhase] = mapped_column(String(20), nullable=False, index=True)
    phase_number: Mapped[int] = mapped_column(Integer, nullable=False)
    day_number: Mapped[int] = mapped_column(Integer, nullable=False)

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    subtitle: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    short_description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    estimated_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    is_booster: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Ordered lesson ids; weak references, see module docstring
    prerequisites: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    background_color: Mapped[str] = mapped_column(String(16), nullable=False, default="#E4E4FF")
    ellipse77_color: Mapped[str] = mapped_column(String(16), nullable=False, default="#9BD4DF")
    ellipse78_color: Mapped[str] = mapped_column(String(16), nullable=False, default="#A6E0CB")

    segments: Mapped[List["LessonSegment"]] = relationship(
        "LessonSegment",
        back_populates="lesson",
        cascade="all, delete-orphan",
        order_by="LessonSegment.order",
        passive_deletes=True,
    )
    quiz: Mapped[Optional["Quiz"]] = relationship(
        "Quiz",
        back_populates="lesson",
        cascade="all, delete-orphan",
        uselist=False,
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("phase_number", "day_number", name="uq_lessons_phase_number_day_number"),
        Index("ix_lessons_phase_day_number", "phase", "day_number"),
    )


class LessonSegment(Base, TimestampMixin):
    """An ordered content card inside a lesson."""

    __tablename__ = "lesson_segments"

    id: Mapped[str] = mapped_column(String(96), primary_key=True)
    lesson_id: Mapped[str] = mapped_column(
        ForeignKey("lessons.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    order: Mapped[int] = mapped_column(Integer, nullable=False)
    section_title: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    content_type: Mapped[ContentType] = mapped_column(String(20), nullable=False, default=ContentType.TEXT)
    body_text: Mapped[str] = mapped_column(Text, nullable=False)

    # Text-input cards only
    ideal_answer: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ai_check_mode: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    lesson: Mapped["Lesson"] = relationship("Lesson", back_populates="segments")

    __table_args__ = (UniqueConstraint("lesson_id", "order", name="uq_lesson_segments_lesson_order"),)


class Quiz(Base, TimestampMixin):
    """Single multiple-choice question closing a lesson."""

    __tablename__ = "quizzes"

    id: Mapped[str] = mapped_column(String(96), primary_key=True)
    lesson_id: Mapped[str] = mapped_column(
        ForeignKey("lessons.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    question: Mapped[str] = mapped_column(Text, nullable=False)
    # Id of one of this quiz's own options
    correct_answer: Mapped[str] = mapped_column(String(128), nullable=False)
    explanation: Mapped[str] = mapped_column(Text, nullable=False, default="")

    lesson: Mapped["Lesson"] = relationship("Lesson", back_populates="quiz")
    options: Mapped[List["QuizOption"]] = relationship(
        "QuizOption",
        back_populates="quiz",
        cascade="all, delete-orphan",
        order_by="QuizOption.order",
        passive_deletes=True,
    )


class QuizOption(Base):
    """One lettered answer option."""

    __tablename__ = "quiz_options"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    quiz_id: Mapped[str] = mapped_column(
        ForeignKey("quizzes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    option_label: Mapped[str] = mapped_column(String(1), nullable=False)
    option_text: Mapped[str] = mapped_column(Text, nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False)

    quiz: Mapped["Quiz"] = relationship("Quiz", back_populates="options")

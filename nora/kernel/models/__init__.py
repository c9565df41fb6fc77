"""
Kernel Data Models

SQLAlchemy models for lesson content and the keyword glossary.
"""

from nora.kernel.models.base import Base, TimestampMixin
from nora.kernel.models.lesson import (
    ContentType,
    Lesson,
    LessonPhase,
    LessonSegment,
    Quiz,
    QuizOption,
)
from nora.kernel.models.keyword import Keyword

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # Lessons
    "ContentType",
    "Lesson",
    "LessonPhase",
    "LessonSegment",
    "Quiz",
    "QuizOption",
    # Glossary
    "Keyword",
]

"""
Kernel Layer

Persistent records and identifiers shared by every other layer:
- Lesson content (lessons, segments, quizzes, quiz options)
- Keyword glossary
"""

from nora.kernel.models import (
    ContentType,
    Keyword,
    Lesson,
    LessonPhase,
    LessonSegment,
    Quiz,
    QuizOption,
)

__all__ = [
    "ContentType",
    "Keyword",
    "Lesson",
    "LessonPhase",
    "LessonSegment",
    "Quiz",
    "QuizOption",
]

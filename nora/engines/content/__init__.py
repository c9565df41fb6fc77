"""
Content Engine - authoring formats in, validated lesson content out.

Formats:
- Keyword glossary Markdown (``### Term`` headings)
- Lesson script text (Phase / Day / Card / Quiz markers)

Services work inside the caller's transaction and never commit.
"""

from nora.engines.content.keyword_markdown import (
    KeywordEntry,
    parse_keywords_markdown,
    serialize_keywords_markdown,
    validate_keyword_entries,
)
from nora.engines.content.keyword_sync import (
    KeywordSyncPlan,
    KeywordSyncResult,
    KeywordSyncService,
)
from nora.engines.content.lesson_import import (
    LessonImportPlan,
    LessonImportResult,
    LessonImportService,
)
from nora.engines.content.lesson_parser import ParsedLesson, parse_lesson_text
from nora.engines.content.prerequisites import PrerequisiteService
from nora.engines.content.repositories import KeywordRepository, LessonRepository

__all__ = [
    "KeywordEntry",
    "parse_keywords_markdown",
    "serialize_keywords_markdown",
    "validate_keyword_entries",
    "KeywordSyncPlan",
    "KeywordSyncResult",
    "KeywordSyncService",
    "LessonImportPlan",
    "LessonImportResult",
    "LessonImportService",
    "ParsedLesson",
    "parse_lesson_text",
    "PrerequisiteService",
    "KeywordRepository",
    "LessonRepository",
]

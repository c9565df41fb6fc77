"""
Pydantic schemas for API request/response validation.
"""

from nora.schemas.common import ErrorResponse, HealthResponse
from nora.schemas.keyword import (
    KeywordListResponse,
    KeywordMatchRequest,
    KeywordMatchResponse,
    KeywordResponse,
)
from nora.schemas.lesson import (
    LessonDetailResponse,
    LessonListResponse,
    LessonSummary,
    QuizOptionResponse,
    QuizResponse,
    SegmentResponse,
    UnlockStatusRequest,
    UnlockStatusResponse,
)

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "KeywordListResponse",
    "KeywordMatchRequest",
    "KeywordMatchResponse",
    "KeywordResponse",
    "LessonDetailResponse",
    "LessonListResponse",
    "LessonSummary",
    "QuizOptionResponse",
    "QuizResponse",
    "SegmentResponse",
    "UnlockStatusRequest",
    "UnlockStatusResponse",
]

"""
Lesson schemas for API request/response validation.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from nora.kernel.models.lesson import ContentType, LessonPhase
from nora.pedagogy.keyword_matcher import KeywordSpan


class LessonSummary(BaseModel):
    """Lesson card as shown in the lesson list."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    phase: LessonPhase
    phase_number: int
    day_number: int
    title: str
    subtitle: Optional[str] = None
    short_description: str
    estimated_minutes: int
    is_booster: bool
    prerequisites: List[str] = []
    background_color: str
    ellipse77_color: str
    ellipse78_color: str
    # Only set when the caller says which lessons are completed
    is_locked: Optional[bool] = None


class LessonListResponse(BaseModel):
    lessons: List[LessonSummary]
    total: int


class SegmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    order: int
    section_title: Optional[str] = None
    content_type: ContentType
    body_text: str
    ideal_answer: Optional[str] = None
    ai_check_mode: Optional[str] = None
    keywords: List[KeywordSpan] = []


class QuizOptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    option_label: str
    option_text: str
    order: int


class QuizResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    question: str
    correct_answer: str
    explanation: str
    options: List[QuizOptionResponse]


class LessonDetailResponse(LessonSummary):
    """Full lesson with segments, keyword spans and quiz."""

    segments: List[SegmentResponse]
    quiz: Optional[QuizResponse] = None


class UnlockStatusRequest(BaseModel):
    completed_lesson_ids: List[str] = Field(default_factory=list)


class UnlockStatusResponse(BaseModel):
    statuses: Dict[str, bool]
    unlocked: List[str]
    locked: List[str]

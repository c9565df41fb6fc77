"""Lesson endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Query

from nora.api.deps import CurrentKeywordIndex, DbSession
from nora.engines.content.repositories import LessonRepository
from nora.errors import NotFoundError
from nora.pedagogy.lesson_graph import LessonGraph, LessonNode
from nora.schemas.lesson import (
    LessonDetailResponse,
    LessonListResponse,
    LessonSummary,
    QuizResponse,
    SegmentResponse,
    UnlockStatusRequest,
    UnlockStatusResponse,
)

router = APIRouter()


@router.get("", response_model=LessonListResponse)
async def list_lessons(
    db: DbSession,
    completed: Optional[List[str]] = Query(default=None),
):
    """List lessons in curriculum order; pass ``completed`` ids to get lock state."""
    lessons = await LessonRepository(db).list_all()
    summaries = []
    completed_ids = set(completed) if completed is not None else None
    for lesson in lessons:
        summary = LessonSummary.model_validate(lesson)
        if completed_ids is not None:
            summary.is_locked = not LessonGraph.is_unlocked(LessonNode.from_lesson(lesson), completed_ids)
        summaries.append(summary)
    return LessonListResponse(lessons=summaries, total=len(summaries))


@router.post("/unlock-status", response_model=UnlockStatusResponse)
async def get_unlock_status(request: UnlockStatusRequest, db: DbSession):
    """Which lessons a parent can open given what they have completed."""
    lessons = await LessonRepository(db).list_all()
    nodes = [LessonNode.from_lesson(lesson) for lesson in lessons]
    statuses = LessonGraph.unlock_status(nodes, set(request.completed_lesson_ids))
    return UnlockStatusResponse(
        statuses=statuses,
        unlocked=[node.id for node in nodes if statuses[node.id]],
        locked=[node.id for node in nodes if not statuses[node.id]],
    )


@router.get("/{lesson_id}", response_model=LessonDetailResponse)
async def get_lesson(lesson_id: str, db: DbSession, index: CurrentKeywordIndex):
    """Lesson with segments, quiz, and keyword spans in each segment body."""
    lesson = await LessonRepository(db).get(lesson_id)
    if lesson is None:
        raise NotFoundError(f"Lesson {lesson_id} not found", identifier=lesson_id)

    segments = []
    for segment in lesson.segments:
        response = SegmentResponse.model_validate(segment)
        response.keywords = index.find_matches(segment.body_text)
        segments.append(response)

    summary = LessonSummary.model_validate(lesson)
    return LessonDetailResponse(
        **summary.model_dump(),
        segments=segments,
        quiz=QuizResponse.model_validate(lesson.quiz) if lesson.quiz is not None else None,
    )

"""
Lesson import - turn parsed lessons into stored lesson records.

Every lesson gets a stable id derived from its phase and day, so
re-importing the same file rewrites the same records. The whole import is
computed and validated in memory first; nothing is deleted or written until
the resulting lesson set passes structural validation.
"""

import re
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from nora.config import get_settings
from nora.engines.content.formatting import format_body_text, infer_content_type, parse_text_input
from nora.engines.content.lesson_parser import ParsedLesson
from nora.engines.content.repositories import LessonRepository
from nora.errors import StructuralError
from nora.kernel.ids import quiz_id, quiz_option_id, segment_id, stable_lesson_id
from nora.kernel.models.lesson import ContentType, Lesson, LessonSegment, Quiz, QuizOption
from nora.logging_config import get_logger
from nora.pedagogy.lesson_graph import LessonGraph, LessonNode

logger = get_logger(__name__)

_FIRST_SENTENCE_RE = re.compile(r"^[^.!?]+[.!?]")
SHORT_DESCRIPTION_FALLBACK_LENGTH = 150


class LessonImportPlan(BaseModel):
    """Validated records ready to be written."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    lessons: List[Lesson]
    nodes: List[LessonNode]
    replace_all: bool
    # Lessons kept from the database whose prerequisites the chain rewrote
    existing_updates: Dict[str, List[str]] = {}


class LessonImportResult(BaseModel):
    imported: int = 0
    deleted: int = 0
    segments: int = 0
    quizzes: int = 0
    prerequisites_updated: int = 0
    total_lessons: int = 0


def check_lesson_content(lesson: Lesson) -> None:
    """
    Check a single lesson's owned records.

    Raises:
        StructuralError: segment order is not 1..N, or the quiz answer is not
            one of the quiz's own options.
    """
    orders = sorted(segment.order for segment in lesson.segments)
    if orders != list(range(1, len(orders) + 1)):
        raise StructuralError(
            f"Lesson '{lesson.id}' segment order must be 1..{len(orders)}, got {orders}",
            [lesson.id],
        )
    if lesson.quiz is not None:
        option_ids = {option.id for option in lesson.quiz.options}
        if lesson.quiz.correct_answer not in option_ids:
            raise StructuralError(
                f"Lesson '{lesson.id}' quiz answer '{lesson.quiz.correct_answer}' is not one of its options",
                [lesson.id, lesson.quiz.id],
            )


def _short_description(parsed: ParsedLesson) -> str:
    if parsed.short_description:
        return parsed.short_description
    first_body = parsed.cards[0].body_text if parsed.cards else ""
    sentence = _FIRST_SENTENCE_RE.match(first_body)
    text = sentence.group(0) if sentence else first_body
    return text[:SHORT_DESCRIPTION_FALLBACK_LENGTH].strip()


def build_lesson_record(parsed: ParsedLesson, estimated_minutes: Optional[int] = None) -> Lesson:
    """Build a lesson with its segments and quiz, ids included."""
    if estimated_minutes is None:
        estimated_minutes = get_settings().default_estimated_minutes

    lesson_id = stable_lesson_id(parsed.phase, parsed.day_number)
    lesson = Lesson(
        id=lesson_id,
        phase=parsed.phase,
        phase_number=parsed.phase_number,
        day_number=parsed.day_number,
        title=parsed.title,
        subtitle=None,
        short_description=_short_description(parsed),
        estimated_minutes=estimated_minutes,
        is_booster=parsed.is_booster,
        prerequisites=[],
    )

    segments = []
    for card in parsed.cards:
        text_input = parse_text_input(card.body_text)
        if text_input.is_text_input:
            content_type = ContentType.TEXT_INPUT
            body_text = format_body_text(text_input.body_text)
        else:
            body_text = format_body_text(card.body_text)
            content_type = infer_content_type(card.section_title, body_text)
        segments.append(
            LessonSegment(
                id=segment_id(lesson_id, card.order),
                lesson_id=lesson_id,
                order=card.order,
                section_title=card.section_title,
                content_type=content_type,
                body_text=body_text,
                ideal_answer=text_input.ideal_answer,
                ai_check_mode=text_input.ai_check_mode,
            )
        )
    lesson.segments = segments

    if parsed.quiz is not None:
        the_quiz_id = quiz_id(lesson_id)
        options = [
            QuizOption(
                id=quiz_option_id(lesson_id, option.label),
                quiz_id=the_quiz_id,
                option_label=option.label,
                option_text=option.text,
                order=option.order,
            )
            for option in parsed.quiz.options
        ]
        lesson.quiz = Quiz(
            id=the_quiz_id,
            lesson_id=lesson_id,
            question=parsed.quiz.question,
            correct_answer=quiz_option_id(lesson_id, parsed.quiz.correct_answer),
            explanation=parsed.quiz.explanation,
            options=options,
        )
    else:
        lesson.quiz = None

    check_lesson_content(lesson)
    return lesson


class LessonImportService:
    """Imports parsed lessons within the caller's transaction."""

    def __init__(self, session: AsyncSession, estimated_minutes: Optional[int] = None):
        self.session = session
        self.lessons = LessonRepository(session)
        self.estimated_minutes = estimated_minutes

    async def prepare(
        self,
        parsed: Sequence[ParsedLesson],
        replace_all: bool = True,
        chain_prerequisites: bool = True,
    ) -> LessonImportPlan:
        """
        Build and validate the import without writing anything.

        Raises:
            StructuralError: the lesson set after the import would be invalid.
        """
        records = [build_lesson_record(lesson, self.estimated_minutes) for lesson in parsed]
        new_nodes = [LessonNode.from_lesson(record) for record in records]
        new_ids = {node.id for node in new_nodes}

        kept_nodes: List[LessonNode] = []
        if not replace_all:
            kept_nodes = [node for node in await self._stored_nodes() if node.id not in new_ids]
        original = {node.id: list(node.prerequisites) for node in kept_nodes}

        nodes = kept_nodes + new_nodes
        if chain_prerequisites:
            LessonGraph.build_sequential_chain(nodes)
        LessonGraph.validate(nodes)

        by_id = {node.id: node for node in new_nodes}
        for record in records:
            record.prerequisites = list(by_id[record.id].prerequisites)

        existing_updates = {
            node.id: list(node.prerequisites)
            for node in kept_nodes
            if node.prerequisites != original[node.id]
        }
        return LessonImportPlan(
            lessons=records,
            nodes=nodes,
            replace_all=replace_all,
            existing_updates=existing_updates,
        )

    async def apply(self, plan: LessonImportPlan) -> LessonImportResult:
        """Delete what the import replaces, then write the new records."""
        if plan.replace_all:
            deleted = await self.lessons.delete_all()
        else:
            deleted = await self.lessons.delete_many([lesson.id for lesson in plan.lessons])

        if plan.existing_updates:
            result = await self.session.execute(select(Lesson).where(Lesson.id.in_(list(plan.existing_updates))))
            for lesson in result.scalars().all():
                lesson.prerequisites = plan.existing_updates[lesson.id]

        # Counted before the flush; afterwards unset relationships would lazy load
        segments = sum(len(lesson.segments) for lesson in plan.lessons)
        quizzes = sum(1 for lesson in plan.lessons if lesson.quiz is not None)

        self.lessons.add_all(plan.lessons)
        await self.session.flush()

        result = LessonImportResult(
            imported=len(plan.lessons),
            deleted=deleted,
            segments=segments,
            quizzes=quizzes,
            prerequisites_updated=len(plan.existing_updates),
            total_lessons=len(plan.nodes),
        )
        logger.info(
            "Imported lessons",
            extra={
                "imported": result.imported,
                "deleted": result.deleted,
                "segments": result.segments,
                "quizzes": result.quizzes,
                "total_lessons": result.total_lessons,
            },
        )
        return result

    async def import_lessons(
        self,
        parsed: Sequence[ParsedLesson],
        replace_all: bool = True,
        chain_prerequisites: bool = True,
    ) -> LessonImportResult:
        plan = await self.prepare(parsed, replace_all=replace_all, chain_prerequisites=chain_prerequisites)
        return await self.apply(plan)

    async def _stored_nodes(self) -> List[LessonNode]:
        # Column rows, not entities, so nothing stored enters the identity map
        result = await self.session.execute(
            select(Lesson.id, Lesson.phase, Lesson.phase_number, Lesson.day_number, Lesson.prerequisites)
        )
        return [
            LessonNode(
                id=row.id,
                phase=row.phase,
                phase_number=row.phase_number,
                day_number=row.day_number,
                prerequisites=list(row.prerequisites or []),
            )
            for row in result.all()
        ]

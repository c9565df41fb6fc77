"""
Repositories - create/read/update/delete for lesson content and keywords.

Repositories only stage changes on the session; committing belongs to the
caller's unit of work.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from nora.kernel.models.keyword import Keyword
from nora.kernel.models.lesson import Lesson, LessonSegment, Quiz, QuizOption


class KeywordRepository:
    """Glossary rows."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_all(self) -> List[Keyword]:
        result = await self.session.execute(select(Keyword).order_by(Keyword.term))
        return list(result.scalars().all())

    async def get(self, keyword_id: str) -> Optional[Keyword]:
        return await self.session.get(Keyword, keyword_id)

    async def get_by_term(self, term: str) -> Optional[Keyword]:
        result = await self.session.execute(select(Keyword).where(Keyword.term == term))
        return result.scalar_one_or_none()

    def add(self, keyword: Keyword) -> None:
        self.session.add(keyword)

    async def delete(self, keyword: Keyword) -> None:
        await self.session.delete(keyword)

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(Keyword))
        return int(result.scalar_one())

    async def fingerprint(self) -> Tuple[int, Optional[datetime]]:
        """Row count and latest write time; changes whenever the glossary does."""
        result = await self.session.execute(select(func.count(Keyword.id), func.max(Keyword.updated_at)))
        count, latest = result.one()
        return int(count), latest


class LessonRepository:
    """Lessons with their segments, quiz and quiz options."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _with_content(query):
        return query.options(
            selectinload(Lesson.segments),
            selectinload(Lesson.quiz).selectinload(Quiz.options),
        )

    async def list_all(self, with_content: bool = False) -> List[Lesson]:
        """All lessons ordered by (phase_number, day_number)."""
        query = select(Lesson).order_by(Lesson.phase_number, Lesson.day_number)
        if with_content:
            query = self._with_content(query)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get(self, lesson_id: str, with_content: bool = True) -> Optional[Lesson]:
        query = select(Lesson).where(Lesson.id == lesson_id)
        if with_content:
            query = self._with_content(query)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_ids(self) -> List[str]:
        result = await self.session.execute(select(Lesson.id))
        return list(result.scalars().all())

    def add(self, lesson: Lesson) -> None:
        self.session.add(lesson)

    def add_all(self, lessons: Iterable[Lesson]) -> None:
        self.session.add_all(list(lessons))

    async def delete(self, lesson: Lesson) -> None:
        """Delete one lesson; its segments, quiz and options go with it."""
        await self.delete_many([lesson.id])

    async def delete_many(self, lesson_ids: Iterable[str]) -> int:
        """Delete lessons and everything they own, children first."""
        ids = list(lesson_ids)
        if not ids:
            return 0
        quiz_ids = select(Quiz.id).where(Quiz.lesson_id.in_(ids))
        await self.session.execute(
            delete(QuizOption).where(QuizOption.quiz_id.in_(quiz_ids)).execution_options(synchronize_session=False)
        )
        await self.session.execute(
            delete(Quiz).where(Quiz.lesson_id.in_(ids)).execution_options(synchronize_session=False)
        )
        await self.session.execute(
            delete(LessonSegment).where(LessonSegment.lesson_id.in_(ids)).execution_options(synchronize_session=False)
        )
        result = await self.session.execute(
            delete(Lesson).where(Lesson.id.in_(ids)).execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def delete_all(self) -> int:
        """Clean slate before a full re-import."""
        return await self.delete_many(await self.list_ids())

"""
Prerequisite service - database-backed operations on the lesson graph.
"""

from typing import Collection, Dict, List, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from nora.engines.content.repositories import LessonRepository
from nora.kernel.models.lesson import Lesson
from nora.logging_config import get_logger
from nora.pedagogy.lesson_graph import LessonGraph, LessonNode

logger = get_logger(__name__)


class PrerequisiteService:
    """
    Loads the full lesson set, runs a graph operation, writes back changes.

    Validation runs before anything is staged, so a StructuralError leaves
    the session untouched; the caller's transaction rolls back regardless.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.lessons = LessonRepository(session)

    async def _load(self) -> Tuple[List[Lesson], List[LessonNode]]:
        rows = await self.lessons.list_all()
        return rows, [LessonNode.from_lesson(row) for row in rows]

    @staticmethod
    def _write_back(rows: List[Lesson], nodes: List[LessonNode]) -> int:
        by_id = {node.id: node for node in nodes}
        changed = 0
        for row in rows:
            prerequisites = list(by_id[row.id].prerequisites)
            if list(row.prerequisites or []) != prerequisites:
                row.prerequisites = prerequisites
                changed += 1
        return changed

    async def rebuild_chain(self) -> int:
        """Chain every phase sequentially; returns how many lessons changed."""
        rows, nodes = await self._load()
        LessonGraph.build_sequential_chain(nodes)
        LessonGraph.validate(nodes)
        changed = self._write_back(rows, nodes)
        await self.session.flush()
        logger.info("Rebuilt prerequisite chain", extra={"lessons": len(rows), "changed": changed})
        return changed

    async def clear_all(self) -> int:
        """Remove every prerequisite; returns how many lessons had any."""
        rows, nodes = await self._load()
        changed = LessonGraph.clear_all(nodes)
        self._write_back(rows, nodes)
        await self.session.flush()
        logger.info("Cleared prerequisites", extra={"lessons": len(rows), "changed": changed})
        return changed

    async def validate(self) -> int:
        """Validate the stored lesson set; returns the number of lessons checked."""
        _, nodes = await self._load()
        LessonGraph.validate(nodes)
        return len(nodes)

    async def unlock_status(self, completed_ids: Collection[str]) -> Dict[str, bool]:
        _, nodes = await self._load()
        return LessonGraph.unlock_status(nodes, set(completed_ids))

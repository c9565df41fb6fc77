"""
Lesson graph - prerequisite chain, structural validation, unlock checks.

Pure functions over in-memory lesson nodes. Callers load the lesson set,
mutate and validate it here, and persist the result in one transaction.
"""

from collections import defaultdict
from typing import Any, Collection, Dict, Iterable, List, Sequence, Tuple

from pydantic import BaseModel

from nora.errors import StructuralError
from nora.kernel.models.lesson import LessonPhase

_VISITING = 1
_DONE = 2


class LessonNode(BaseModel):
    """A lesson as the graph sees it."""

    id: str
    phase: LessonPhase
    phase_number: int
    day_number: int
    prerequisites: List[str] = []

    @classmethod
    def from_lesson(cls, lesson: Any) -> "LessonNode":
        """Build from an ORM row or any object with the same attributes."""
        return cls(
            id=lesson.id,
            phase=lesson.phase,
            phase_number=lesson.phase_number,
            day_number=lesson.day_number,
            prerequisites=list(lesson.prerequisites or []),
        )


def _position(lesson: LessonNode) -> Tuple[int, int]:
    return (lesson.phase_number, lesson.day_number)


class LessonGraph:
    """Prerequisite relation across the full lesson set."""

    @classmethod
    def build_sequential_chain(cls, lessons: Iterable[LessonNode]) -> List[LessonNode]:
        """
        Make each lesson require exactly the lesson before it in its phase.

        The first lesson of every phase gets no prerequisites. Lessons are
        updated in place and returned ordered by (phase_number, day_number).
        """
        ordered = sorted(lessons, key=_position)
        previous: Dict[LessonPhase, LessonNode] = {}
        for lesson in ordered:
            before = previous.get(lesson.phase)
            lesson.prerequisites = [before.id] if before is not None else []
            previous[lesson.phase] = lesson
        return ordered

    @classmethod
    def validate(cls, lessons: Sequence[LessonNode]) -> None:
        """
        Check the structural invariants of a lesson set.

        Raises:
            StructuralError: duplicate ids or (phase_number, day_number) pairs,
                prerequisites that name no existing lesson, or a prerequisite
                cycle. ``identifiers`` names the offending lessons.
        """
        by_id: Dict[str, LessonNode] = {}
        for lesson in lessons:
            if lesson.id in by_id:
                raise StructuralError(f"Duplicate lesson id '{lesson.id}'", [lesson.id])
            by_id[lesson.id] = lesson

        by_position: Dict[Tuple[int, int], List[str]] = defaultdict(list)
        for lesson in lessons:
            by_position[_position(lesson)].append(lesson.id)
        for (phase_number, day_number), ids in sorted(by_position.items()):
            if len(ids) > 1:
                raise StructuralError(
                    f"Day {day_number} appears more than once in phase {phase_number}: {', '.join(ids)}",
                    ids,
                )

        for lesson in sorted(lessons, key=_position):
            missing = [p for p in lesson.prerequisites if p not in by_id]
            if missing:
                raise StructuralError(
                    f"Lesson '{lesson.id}' has unknown prerequisite(s): {', '.join(missing)}",
                    [lesson.id, *missing],
                )

        cls._check_acyclic(sorted(lessons, key=_position), by_id)

    @staticmethod
    def _check_acyclic(ordered: List[LessonNode], by_id: Dict[str, LessonNode]) -> None:
        # Depth-first walk with an explicit stack; ids on the current path are
        # marked VISITING, so reaching one again closes a cycle.
        state: Dict[str, int] = {}
        for root in ordered:
            if root.id in state:
                continue
            path = [root.id]
            state[root.id] = _VISITING
            pending = [iter(root.prerequisites)]
            while pending:
                next_id = next(pending[-1], None)
                if next_id is None:
                    state[path.pop()] = _DONE
                    pending.pop()
                    continue
                seen = state.get(next_id)
                if seen == _VISITING:
                    cycle = path[path.index(next_id):]
                    raise StructuralError(
                        f"Circular lesson prerequisites: {' -> '.join(cycle + [next_id])}",
                        cycle,
                    )
                if seen is None:
                    state[next_id] = _VISITING
                    path.append(next_id)
                    pending.append(iter(by_id[next_id].prerequisites))

    @classmethod
    def is_unlocked(cls, lesson: LessonNode, completed: Collection[str]) -> bool:
        """True when every prerequisite is in the completed set."""
        return all(prerequisite in completed for prerequisite in lesson.prerequisites)

    @classmethod
    def unlock_status(cls, lessons: Iterable[LessonNode], completed: Collection[str]) -> Dict[str, bool]:
        return {lesson.id: cls.is_unlocked(lesson, completed) for lesson in lessons}

    @classmethod
    def clear_all(cls, lessons: Iterable[LessonNode]) -> int:
        """Drop every prerequisite; returns how many lessons changed."""
        changed = 0
        for lesson in lessons:
            if lesson.prerequisites:
                changed += 1
            lesson.prerequisites = []
        return changed


build_sequential_chain = LessonGraph.build_sequential_chain
validate = LessonGraph.validate
is_unlocked = LessonGraph.is_unlocked
unlock_status = LessonGraph.unlock_status
clear_all = LessonGraph.clear_all

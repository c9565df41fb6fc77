"""
Identifier generation.

Records carry their id before they reach the session; nothing relies on
database defaults. Generators are plain callables so services can take a
deterministic one in tests.
"""

import uuid
from typing import Callable, Union

from nora.kernel.models.lesson import LessonPhase

IdGenerator = Callable[[], str]


def generate_id() -> str:
    """Generate a new collision-resistant opaque id."""
    return str(uuid.uuid4())


def stable_lesson_id(phase: Union[LessonPhase, str], day_number: int) -> str:
    """Lesson id derived from its position, e.g. ``CONNECT-3``."""
    phase_value = phase.value if isinstance(phase, LessonPhase) else str(phase)
    return f"{phase_value}-{day_number}"


def segment_id(lesson_id: str, order: int) -> str:
    return f"{lesson_id}-seg-{order}"


def quiz_id(lesson_id: str) -> str:
    return f"{lesson_id}-quiz"


def quiz_option_id(lesson_id: str, label: str) -> str:
    return f"{lesson_id}-quiz-opt-{label}"

"""
Lesson script parser.

Reads the line-prefixed plain-text format content authors write:

    Phase 1: CONNECT
    Day 1: Title
    Short description
    Card 1: Section title
    Body text...
    Day 1 Quiz
    Q: Question?
    A) Option            (``A.`` works too)
    ...
    Correct Answer: B
    Reason: Explanation

A file either parses completely or raises ParseError; callers never see a
partial lesson list.
"""

import re
from typing import Dict, List, Optional

from pydantic import BaseModel

from nora.errors import ParseError
from nora.kernel.models.lesson import LessonPhase
from nora.logging_config import get_logger

logger = get_logger(__name__)

QUIZ_LABELS = ("A", "B", "C", "D")

_PHASE_RE = re.compile(r"^Phase\s+(\d+):\s*(\w+)", re.IGNORECASE)
_DAY_RE = re.compile(r"^Day\s+(\d+):(.*)$")
_BOOSTER_RE = re.compile(r"^Booster(?:\s+\d+)?:(.*)$", re.IGNORECASE)
_CARD_RE = re.compile(r"^Card\s+(\d+):(.*)$")
_QUIZ_HEADER_RE = re.compile(r"^(?:(?:Day\s+\d+\s+)?Quiz|Daily Quiz|Booster Quiz)$", re.IGNORECASE)
_QUESTION_RE = re.compile(r"^Q:\s*(.*)$")
_OPTION_RE = re.compile(r"^([A-Z])[.)]\s*(.*)$")
_CORRECT_RE = re.compile(r"^Correct Answer:\s*(.*)$", re.IGNORECASE)
_REASON_RE = re.compile(r"^Reason:\s*(.*)$")


class ParsedQuizOption(BaseModel):
    label: str
    text: str
    order: int


class ParsedQuiz(BaseModel):
    question: str = ""
    options: List[ParsedQuizOption] = []
    correct_answer: str = ""
    explanation: str = ""


class ParsedCard(BaseModel):
    order: int
    section_title: str
    body_text: str = ""


class ParsedLesson(BaseModel):
    """A lesson exactly as the author wrote it, before ids and formatting."""

    phase: LessonPhase
    phase_number: int
    day_number: int
    title: str
    short_description: str = ""
    is_booster: bool = False
    cards: List[ParsedCard] = []
    quiz: Optional[ParsedQuiz] = None
    line: int = 0


class LessonTextParser:
    """Single-pass, line-oriented parser. One instance per file."""

    def __init__(self, content: str, source: Optional[str] = None):
        if content.startswith("\ufeff"):
            content = content[1:]
        self.lines = [line.rstrip() for line in content.replace("\r\n", "\n").split("\n")]
        self.source = source
        self.lessons: List[ParsedLesson] = []
        self._phase: Optional[LessonPhase] = None
        self._phase_number: Optional[int] = None
        self._lesson: Optional[ParsedLesson] = None
        self._card: Optional[ParsedCard] = None
        self._quiz: Optional[ParsedQuiz] = None
        self._quiz_line = 0
        self._last_day: Dict[LessonPhase, int] = {}
        self._line_number = 0

    def error(self, message: str, line: Optional[int] = None) -> ParseError:
        return ParseError(message, line=line or self._line_number, source=self.source)

    def parse(self) -> List[ParsedLesson]:
        for index, line in enumerate(self.lines, start=1):
            self._line_number = index
            self._parse_line(line)

        self._finalize_lesson()
        if not self.lessons:
            raise ParseError("No lessons found", source=self.source)

        logger.info(
            "Parsed lesson file",
            extra={"lesson_file": self.source, "lessons": len(self.lessons)},
        )
        return self.lessons

    def _parse_line(self, line: str) -> None:
        phase_match = _PHASE_RE.match(line)
        if phase_match:
            self._finalize_lesson()
            self._start_phase(int(phase_match.group(1)), phase_match.group(2))
            return

        day_match = _DAY_RE.match(line)
        if day_match:
            self._start_lesson(int(day_match.group(1)), day_match.group(2).strip(), is_booster=False)
            return

        booster_match = _BOOSTER_RE.match(line)
        if booster_match:
            if self._phase is None:
                raise self.error("Booster lesson before any Phase marker")
            day_number = self._last_day.get(self._phase, 0) + 1
            self._start_lesson(day_number, booster_match.group(1).strip(), is_booster=True)
            return

        if _QUIZ_HEADER_RE.match(line):
            if self._lesson is None:
                raise self.error("Quiz outside of a lesson")
            if self._quiz is not None or self._lesson.quiz is not None:
                raise self.error(f"Second quiz for Day {self._lesson.day_number}")
            self._finish_card()
            self._quiz = ParsedQuiz()
            self._quiz_line = self._line_number
            return

        card_match = _CARD_RE.match(line)
        if self._quiz is not None:
            if card_match:
                raise self.error(f"Card {card_match.group(1)} appears after the quiz")
            self._parse_quiz_line(line)
            return

        if card_match and self._lesson is not None:
            self._start_card(int(card_match.group(1)), card_match.group(2).strip())
            return

        if not line.strip():
            if self._card is not None and self._card.body_text:
                self._card.body_text += "\n"
            return

        if self._card is not None:
            self._card.body_text = f"{self._card.body_text}\n{line}" if self._card.body_text else line
        elif self._lesson is not None:
            if self._lesson.short_description:
                self._lesson.short_description += "\n" + line
            else:
                self._lesson.short_description = line.strip()
        else:
            logger.debug("Ignoring preamble line", extra={"line_number": self._line_number})

    def _start_phase(self, phase_number: int, name: str) -> None:
        try:
            phase = LessonPhase(name.upper())
        except ValueError:
            allowed = ", ".join(p.value for p in LessonPhase)
            raise self.error(f"Unknown phase '{name}' (expected one of: {allowed})") from None
        self._phase = phase
        self._phase_number = phase_number

    def _start_lesson(self, day_number: int, title: str, *, is_booster: bool) -> None:
        if self._phase is None or self._phase_number is None:
            raise self.error(f"Day {day_number} appears before any Phase marker")
        if not title:
            raise self.error(f"Day {day_number} has no title")
        self._finalize_lesson()
        self._lesson = ParsedLesson(
            phase=self._phase,
            phase_number=self._phase_number,
            day_number=day_number,
            title=title,
            is_booster=is_booster,
            line=self._line_number,
        )
        self._last_day[self._phase] = max(day_number, self._last_day.get(self._phase, 0))

    def _start_card(self, number: int, title: str) -> None:
        assert self._lesson is not None
        self._finish_card()
        expected = len(self._lesson.cards) + 1
        if number != expected:
            raise self.error(
                f"Card {number} in Day {self._lesson.day_number}: expected Card {expected} "
                "(cards must be numbered 1..N without gaps)"
            )
        if not title:
            raise self.error(f"Card {number} has no section title")
        self._card = ParsedCard(order=number, section_title=title)

    def _finish_card(self) -> None:
        if self._card is not None and self._lesson is not None:
            self._card.body_text = self._card.body_text.strip()
            self._lesson.cards.append(self._card)
        self._card = None

    def _parse_quiz_line(self, line: str) -> None:
        quiz = self._quiz
        assert quiz is not None
        if not line.strip():
            return

        question = _QUESTION_RE.match(line)
        if question:
            quiz.question = question.group(1).strip()
            return

        correct = _CORRECT_RE.match(line)
        if correct:
            letter = correct.group(1).strip().upper()
            if letter not in QUIZ_LABELS:
                raise self.error(f"Correct Answer '{correct.group(1).strip()}' is not one of A-D")
            quiz.correct_answer = letter
            return

        reason = _REASON_RE.match(line)
        if reason:
            quiz.explanation = reason.group(1).strip()
            return

        option = _OPTION_RE.match(line)
        if option:
            label = option.group(1)
            if label not in QUIZ_LABELS:
                raise self.error(f"Quiz option '{label}' is not one of A-D")
            if any(existing.label == label for existing in quiz.options):
                raise self.error(f"Quiz option '{label}' appears twice")
            text = option.group(2).strip()
            if not text:
                raise self.error(f"Quiz option '{label}' has no text")
            quiz.options.append(ParsedQuizOption(label=label, text=text, order=QUIZ_LABELS.index(label) + 1))
            return

        if quiz.explanation:
            quiz.explanation += "\n" + line.strip()
        elif quiz.question and not quiz.options:
            quiz.question += " " + line.strip()
        else:
            raise self.error(f"Unexpected line in quiz block: {line.strip()!r}")

    def _finish_quiz(self) -> None:
        quiz = self._quiz
        if quiz is None or self._lesson is None:
            return
        day = self._lesson.day_number
        if not quiz.question:
            raise self.error(f"Quiz for Day {day} has no question", self._quiz_line)
        labels = sorted(option.label for option in quiz.options)
        if tuple(labels) != QUIZ_LABELS:
            raise self.error(
                f"Quiz for Day {day} needs options A-D exactly once, found: {', '.join(labels) or 'none'}",
                self._quiz_line,
            )
        if not quiz.correct_answer:
            raise self.error(f"Quiz for Day {day} has no Correct Answer", self._quiz_line)
        quiz.options.sort(key=lambda option: option.order)
        self._lesson.quiz = quiz
        self._quiz = None

    def _finalize_lesson(self) -> None:
        if self._lesson is None:
            return
        self._finish_card()
        self._finish_quiz()
        if not self._lesson.cards:
            raise self.error(f"Day {self._lesson.day_number} has no cards", self._lesson.line)
        self.lessons.append(self._lesson)
        logger.debug(
            "Parsed lesson",
            extra={
                "phase": self._lesson.phase.value,
                "day_number": self._lesson.day_number,
                "cards": len(self._lesson.cards),
            },
        )
        self._lesson = None


def parse_lesson_text(content: str, source: Optional[str] = None) -> List[ParsedLesson]:
    """Parse a whole lesson file."""
    return LessonTextParser(content, source=source).parse()

"""
Lesson card formatting.

Turns the plain card text authors write into the light Markdown the client
renders: labelled paragraphs, bold numbering, ``*`` bullets, bold dialogue
speakers, and a lightbulb in front of tips.
"""

import re
from typing import Optional

from pydantic import BaseModel

from nora.kernel.models.lesson import ContentType

TIP_EMOJI = "\U0001F4A1"

_LABELS = (
    "Example:", "Tip:", "Why:", "Goal:", "Rule:", "Script:", "Benefit:", "Action:",
    "Scenario:", "Instead of:", "Try:", "Don't Say:", "Say:", "Don't:", "Do:",
)
_LABEL_RE = re.compile(r"(?<!\*)\b(" + "|".join(re.escape(label) for label in _LABELS) + r")(?!\*)\s*")
_NUMBERED_RE = re.compile(r"^(\d+)\.\s+", re.MULTILINE)
_DASH_BULLET_RE = re.compile(r"^-\s+", re.MULTILINE)
_STAR_BULLET_RE = re.compile(r"^\s*\*\s+", re.MULTILINE)
_SPEAKER_RE = re.compile(r"(?<!\*)\b(Child|You|Parent):(?!\*)\s*")
_TEXT_INPUT_MARKER_RE = re.compile(r"\${2,3}Text Input Field\${2,3}")
_AI_CHECK_RE = re.compile(r'AI-Check Answer:\s*"([^"]+)"')
_IDEAL_ANSWER_RE = re.compile(r"Ideal Answer:\s*([\s\S]*?)(?=Card \d+:|$)")


class TextInputCard(BaseModel):
    """Result of looking for a free-text answer field in a card body."""

    is_text_input: bool
    body_text: str
    ideal_answer: Optional[str] = None
    ai_check_mode: Optional[str] = None


def format_body_text(body_text: str) -> str:
    formatted = body_text.strip()
    formatted = _add_paragraph_breaks(formatted)
    formatted = _NUMBERED_RE.sub(r"**\1.** ", formatted)
    formatted = _DASH_BULLET_RE.sub("* ", formatted)
    formatted = _STAR_BULLET_RE.sub("* ", formatted)
    formatted = _SPEAKER_RE.sub(r"**\1:** ", formatted)
    formatted = _add_tip_emoji(formatted)
    return formatted.strip()


def _add_paragraph_breaks(text: str) -> str:
    text = _LABEL_RE.sub(r"\n\n**\1** ", text)
    return re.sub(r"\n{3,}", "\n\n", text)


def _add_tip_emoji(text: str) -> str:
    if TIP_EMOJI in text:
        return text
    return text.replace("**Tip:**", f"{TIP_EMOJI} **Tip:**")


def parse_text_input(body_text: str) -> TextInputCard:
    """Split a text-input card into its prompt and ideal answer."""
    if not _TEXT_INPUT_MARKER_RE.search(body_text):
        return TextInputCard(is_text_input=False, body_text=body_text)

    prompt = _TEXT_INPUT_MARKER_RE.split(body_text, maxsplit=1)[0].strip()
    ideal_answer = None
    ai_check_mode = None

    ai_check = _AI_CHECK_RE.search(body_text)
    if ai_check:
        ideal_answer = ai_check.group(1).strip()
        ai_check_mode = "AI-Check"
    else:
        ideal = _IDEAL_ANSWER_RE.search(body_text)
        if ideal and ideal.group(1).strip():
            ideal_answer = ideal.group(1).strip()
            ai_check_mode = "Ideal"

    return TextInputCard(
        is_text_input=True,
        body_text=prompt,
        ideal_answer=ideal_answer,
        ai_check_mode=ai_check_mode,
    )


def infer_content_type(section_title: str, body_text: str) -> ContentType:
    title = section_title.lower()
    body = body_text.lower()

    if "script" in title or "sample" in title or "child:" in body or "you:" in body:
        return ContentType.SCRIPT
    if "example" in title or "example:" in body:
        return ContentType.EXAMPLE
    if (
        "tip" in title
        or "rules" in title
        or "practice" in title
        or "tip:" in body
        or TIP_EMOJI in body_text
    ):
        return ContentType.TIP
    if "important" in title or "warning" in title or "remember" in title:
        return ContentType.CALLOUT
    return ContentType.TEXT

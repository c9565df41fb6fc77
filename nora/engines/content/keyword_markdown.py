"""
Keyword glossary Markdown: parse, validate, serialize.

Format: one keyword per ``### Term`` heading, definition is everything up to
the next such heading. Bold sub-labels such as ``**History:**`` are part of
the definition text and are kept verbatim.
"""

from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel

from nora.errors import ParseError

HEADING_PREFIX = "### "
BOM = "\ufeff"


class KeywordEntry(BaseModel):
    """One keyword as written in the glossary file."""

    term: str
    definition: str


def parse_keywords_markdown(content: str) -> List[KeywordEntry]:
    """Parse glossary Markdown into entries, in file order."""
    if content.startswith(BOM):
        content = content[len(BOM):]

    entries: List[KeywordEntry] = []
    current_term: Optional[str] = None
    current_lines: List[str] = []

    def flush() -> None:
        if current_term is not None:
            entries.append(KeywordEntry(term=current_term, definition="\n".join(current_lines).strip()))

    for raw_line in content.split("\n"):
        line = raw_line.rstrip("\r")
        if line.startswith(HEADING_PREFIX):
            flush()
            current_term = line[len(HEADING_PREFIX):].strip()
            current_lines = []
        elif line.strip() == "---" or (line.strip() == "" and current_term is None):
            continue
        elif line.startswith("# "):
            continue
        elif current_term is not None:
            current_lines.append(line)
    flush()
    return entries


def validate_keyword_entries(
    entries: Iterable[KeywordEntry],
    max_definition_length: int = 2000,
    source: Optional[str] = None,
) -> None:
    """
    Check every entry and report all problems at once.

    Raises:
        ParseError: missing term or definition, over-long definition, or a
            term repeated under case-insensitive comparison.
    """
    problems: List[str] = []
    seen: Dict[str, int] = {}
    for number, entry in enumerate(entries, start=1):
        term = entry.term.strip()
        if not term:
            problems.append(f"Keyword {number}: Missing term")
        if not entry.definition.strip():
            problems.append(f"Keyword {number} ({term}): Missing definition")
        if len(entry.definition) > max_definition_length:
            problems.append(
                f"Keyword {number} ({term}): Definition too long "
                f"({len(entry.definition)} chars, max {max_definition_length})"
            )
        if term:
            folded = term.lower()
            if folded in seen:
                problems.append(f"Keyword {number} ({term}): Duplicate of keyword {seen[folded]}")
            else:
                seen[folded] = number

    if problems:
        raise ParseError(
            f"{len(problems)} keyword validation error(s): " + "; ".join(problems),
            source=source,
            problems=problems,
        )


def serialize_keywords_markdown(entries: Iterable[KeywordEntry], title: Optional[str] = None) -> str:
    """Render entries back into the glossary format."""
    blocks: List[str] = []
    if title:
        blocks.append(f"# {title}\n")
    for entry in entries:
        blocks.append(f"{HEADING_PREFIX}{entry.term}\n\n{entry.definition}\n")
    return "\n".join(blocks)

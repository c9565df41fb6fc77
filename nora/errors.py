"""
Error taxonomy for lesson content handling.

ParseError and StructuralError subclass ValueError so callers that only care
about "bad content" can catch one type.
"""

from typing import Iterable, List, Optional


class ParseError(ValueError):
    """A source file (lesson text or keyword Markdown) is malformed."""

    def __init__(
        self,
        message: str,
        *,
        line: Optional[int] = None,
        source: Optional[str] = None,
        problems: Optional[Iterable[str]] = None,
    ):
        self.line = line
        self.source = source
        self.problems: List[str] = list(problems or [])
        location = ""
        if source:
            location = source
        if line is not None:
            location = f"{location}:{line}" if location else f"line {line}"
        super().__init__(f"{location}: {message}" if location else message)


class StructuralError(ValueError):
    """The lesson set violates a structural invariant."""

    def __init__(self, message: str, identifiers: Optional[Iterable[str]] = None):
        self.identifiers: List[str] = list(identifiers or [])
        super().__init__(message)


class NotFoundError(LookupError):
    """A referenced record does not exist."""

    def __init__(self, message: str, identifier: Optional[str] = None):
        self.identifier = identifier
        super().__init__(message)

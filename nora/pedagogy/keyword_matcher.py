"""
Keyword matcher - finds glossary terms inside lesson body text.

The index is a character trie built once per keyword set. Matching is a single
left-to-right pass: at each start offset the longest registered term wins, and
scanning resumes after the emitted span. Terms match case-insensitively, but
offsets always refer to the original text.

An index is immutable once built. To change the keyword set, build a new index
and publish it through a KeywordIndexHolder; readers holding the old index keep
using it undisturbed.
"""

import threading
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from nora.errors import NotFoundError
from nora.logging_config import get_logger

logger = get_logger(__name__)


class KeywordTerm(BaseModel):
    """The part of a keyword the matcher needs."""

    model_config = ConfigDict(frozen=True)

    id: str
    term: str


class KeywordSpan(BaseModel):
    """Half-open range [start, end) of a detected keyword."""

    model_config = ConfigDict(frozen=True)

    start: int
    end: int
    term: str
    keyword_id: str


class TextPiece(BaseModel):
    """A run of text, tagged with the keyword it shows when it is a span."""

    text: str
    keyword_id: Optional[str] = None
    term: Optional[str] = None


def _fold(ch: str) -> str:
    # Only one-to-one lowercase mappings, so folded offsets equal original offsets
    lowered = ch.lower()
    return lowered if len(lowered) == 1 else ch


def _is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


class _TrieNode:
    __slots__ = ("children", "keyword")

    def __init__(self) -> None:
        self.children: Dict[str, "_TrieNode"] = {}
        self.keyword: Optional[KeywordTerm] = None


class KeywordIndex:
    """
    Search structure over a fixed keyword set.

    Usage:
        index = KeywordIndex.build(keywords)
        for span in index.iter_matches(segment.body_text):
            ...
    """

    def __init__(self, terms: Iterable[KeywordTerm] = ()):
        self._root = _TrieNode()
        self._terms: Dict[str, KeywordTerm] = {}
        for keyword in terms:
            self._insert(keyword)

    @classmethod
    def build(cls, keywords: Iterable[Any]) -> "KeywordIndex":
        """Build from any records exposing ``id`` and ``term``."""
        return cls(KeywordTerm(id=str(k.id), term=k.term) for k in keywords)

    @classmethod
    def from_keywords(cls, records: Iterable[Any]) -> "KeywordIndex":
        """
        Build from stored keywords, skipping any term without a definition.

        A term with nothing to show when tapped is left unhighlighted rather
        than failing the whole rebuild.
        """
        usable = []
        for record in records:
            try:
                _require_definition(record)
            except NotFoundError as exc:
                logger.warning(
                    "Skipping keyword without definition",
                    extra={"keyword_id": exc.identifier, "term": record.term},
                )
                continue
            usable.append(KeywordTerm(id=str(record.id), term=record.term))
        return cls(usable)

    def _insert(self, keyword: KeywordTerm) -> None:
        term = keyword.term.strip()
        if not term:
            logger.warning("Ignoring blank keyword term", extra={"keyword_id": keyword.id})
            return
        folded = "".join(_fold(ch) for ch in term)
        existing = self._terms.get(folded)
        if existing is not None:
            logger.warning(
                "Duplicate keyword term ignored",
                extra={"term": term, "keyword_id": keyword.id, "kept_keyword_id": existing.id},
            )
            return

        stored = KeywordTerm(id=keyword.id, term=term)
        node = self._root
        for ch in folded:
            node = node.children.setdefault(ch, _TrieNode())
        node.keyword = stored
        self._terms[folded] = stored

    def __len__(self) -> int:
        return len(self._terms)

    def __contains__(self, term: object) -> bool:
        if not isinstance(term, str):
            return False
        return "".join(_fold(ch) for ch in term.strip()) in self._terms

    @property
    def terms(self) -> List[KeywordTerm]:
        return sorted(self._terms.values(), key=lambda k: k.term.lower())

    def iter_matches(self, text: str) -> Iterator[KeywordSpan]:
        """Lazily yield non-overlapping spans ordered by start offset."""
        if not self._terms or not text:
            return
        position = 0
        length = len(text)
        while position < length:
            found = self._longest_match_at(text, position)
            if found is None:
                position += 1
                continue
            end, keyword = found
            yield KeywordSpan(start=position, end=end, term=keyword.term, keyword_id=keyword.id)
            position = end

    def find_matches(self, text: str) -> List[KeywordSpan]:
        return list(self.iter_matches(text))

    def _longest_match_at(self, text: str, start: int) -> Optional[Tuple[int, KeywordTerm]]:
        # A term never starts in the middle of a word
        if start > 0 and _is_word_char(text[start - 1]) and _is_word_char(text[start]):
            return None

        node = self._root
        best: Optional[Tuple[int, KeywordTerm]] = None
        position = start
        length = len(text)
        while position < length:
            node = node.children.get(_fold(text[position]))
            if node is None:
                break
            position += 1
            if node.keyword is not None and _ends_at_boundary(text, position):
                best = (position, node.keyword)
        return best


def _ends_at_boundary(text: str, end: int) -> bool:
    if end >= len(text):
        return True
    return not (_is_word_char(text[end - 1]) and _is_word_char(text[end]))


def _require_definition(record: Any) -> None:
    definition = getattr(record, "definition", None)
    if not definition or not definition.strip():
        raise NotFoundError(
            f"Keyword '{record.term}' has no definition",
            identifier=str(record.id),
        )


def split_text(text: str, spans: Iterable[KeywordSpan]) -> List[TextPiece]:
    """Cut text into plain runs and keyword runs for a renderer."""
    pieces: List[TextPiece] = []
    cursor = 0
    for span in spans:
        if span.start > cursor:
            pieces.append(TextPiece(text=text[cursor:span.start]))
        pieces.append(
            TextPiece(text=text[span.start:span.end], keyword_id=span.keyword_id, term=span.term)
        )
        cursor = span.end
    if cursor < len(text):
        pieces.append(TextPiece(text=text[cursor:]))
    return pieces


class KeywordIndexHolder:
    """
    Owns the currently published keyword index.

    ``current()`` never blocks and always returns a fully built index.
    ``rebuild()`` builds the replacement first and swaps it in afterwards.
    Each published index may carry a ``stamp`` describing the content it was
    built from, so callers can tell when a rebuild is due.
    """

    def __init__(self, index: Optional[KeywordIndex] = None):
        self._index = index if index is not None else KeywordIndex()
        self._version = 0
        self._stamp: Any = None
        self._lock = threading.Lock()

    def current(self) -> KeywordIndex:
        return self._index

    @property
    def version(self) -> int:
        return self._version

    @property
    def stamp(self) -> Any:
        return self._stamp

    def is_stale(self, stamp: Any) -> bool:
        return self._version == 0 or stamp != self._stamp

    def publish(self, index: KeywordIndex, stamp: Any = None) -> int:
        """Swap in a new index and return its version number."""
        with self._lock:
            self._index = index
            self._stamp = stamp
            self._version += 1
            version = self._version
        logger.info("Published keyword index", extra={"version": version, "terms": len(index)})
        return version

    def rebuild(self, records: Iterable[Any], stamp: Any = None) -> int:
        return self.publish(KeywordIndex.from_keywords(records), stamp=stamp)

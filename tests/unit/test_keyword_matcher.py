"""Unit tests for the keyword matcher: longest match, word boundaries, index swapping."""

from types import SimpleNamespace

import pytest

from nora.pedagogy.keyword_matcher import (
    KeywordIndex,
    KeywordIndexHolder,
    KeywordTerm,
    split_text,
)


def _index(*terms: str) -> KeywordIndex:
    return KeywordIndex(KeywordTerm(id=f"kw-{i}", term=term) for i, term in enumerate(terms))


class TestLongestMatch:
    """At each position the longest registered term wins."""

    def test_longer_term_beats_its_prefix(self):
        index = _index("Play", "Play Therapy")
        text = "We tried play therapy today."
        spans = index.find_matches(text)
        assert len(spans) == 1
        assert spans[0].term == "Play Therapy"
        assert (spans[0].start, spans[0].end) == (9, 21)
        assert text[spans[0].start:spans[0].end] == "play therapy"

    def test_prefix_used_when_longer_term_incomplete(self):
        index = _index("Play", "Play Therapy")
        spans = index.find_matches("Play Thera")
        assert [(s.term, s.start, s.end) for s in spans] == [("Play", 0, 4)]

    def test_insertion_order_does_not_matter(self):
        text = "Special Time and play therapy"
        first = _index("Play", "Play Therapy", "Special Time").find_matches(text)
        second = _index("Special Time", "Play Therapy", "Play").find_matches(text)
        assert [(s.start, s.end, s.term) for s in first] == [(s.start, s.end, s.term) for s in second]

    def test_spans_are_ordered_and_disjoint(self):
        index = _index("Play", "Special Time", "Time")
        spans = index.find_matches("Special Time is Play time, play often.")
        starts = [s.start for s in spans]
        assert starts == sorted(starts)
        for left, right in zip(spans, spans[1:]):
            assert left.end <= right.start
        assert [s.term for s in spans] == ["Special Time", "Play", "Time", "Play"]


class TestWordBoundaries:
    """Terms never match inside a larger word."""

    def test_no_match_inside_word(self):
        index = _index("Play")
        assert index.find_matches("The playground was busy.") == []
        assert index.find_matches("Watch the replay.") == []

    def test_punctuation_is_a_boundary(self):
        index = _index("Play")
        spans = index.find_matches("Play, then rest. (play)")
        assert [(s.start, s.end) for s in spans] == [(0, 4), (18, 22)]

    def test_term_with_inner_punctuation(self):
        index = _index("Time-Out")
        spans = index.find_matches("Use time-out calmly.")
        assert [(s.start, s.end, s.term) for s in spans] == [(4, 12, "Time-Out")]

    def test_match_at_end_of_text(self):
        index = _index("Labeled Praise")
        text = "Try labeled praise"
        spans = index.find_matches(text)
        assert len(spans) == 1
        assert spans[0].end == len(text)


class TestCaseInsensitivity:
    def test_reports_canonical_term(self):
        index = _index("Special Time")
        spans = index.find_matches("SPECIAL TIME starts now")
        assert spans[0].term == "Special Time"
        assert spans[0].keyword_id == "kw-0"

    def test_contains_is_case_insensitive(self):
        index = _index("Play")
        assert "play" in index
        assert "PLAY" in index
        assert "Plays" not in index
        assert 42 not in index


class TestIndexBuilding:
    def test_empty_index_matches_nothing(self):
        assert KeywordIndex().find_matches("Play all day") == []
        assert _index("Play").find_matches("") == []

    def test_duplicate_terms_keep_first(self):
        index = KeywordIndex([
            KeywordTerm(id="first", term="Play"),
            KeywordTerm(id="second", term="play"),
        ])
        assert len(index) == 1
        assert index.find_matches("play")[0].keyword_id == "first"

    def test_blank_terms_ignored(self):
        index = _index("  ", "Play")
        assert len(index) == 1

    def test_build_from_records(self):
        records = [SimpleNamespace(id="a", term="Play"), SimpleNamespace(id="b", term="Time")]
        index = KeywordIndex.build(records)
        assert [t.term for t in index.terms] == ["Play", "Time"]

    def test_from_keywords_skips_missing_definitions(self):
        records = [
            SimpleNamespace(id="a", term="Play", definition="Child-led activity."),
            SimpleNamespace(id="b", term="Time", definition="   "),
        ]
        index = KeywordIndex.from_keywords(records)
        assert "Play" in index
        assert "Time" not in index

    def test_iter_matches_is_lazy(self):
        index = _index("Play")
        matches = index.iter_matches("Play and play")
        assert next(matches).start == 0
        assert next(matches).start == 9


class TestSplitText:
    def test_pieces_cover_text(self):
        index = _index("Play", "Special Time")
        text = "During Special Time, follow their play."
        pieces = split_text(text, index.find_matches(text))
        assert "".join(p.text for p in pieces) == text
        assert [p.term for p in pieces if p.keyword_id] == ["Special Time", "Play"]

    def test_no_spans_gives_single_piece(self):
        pieces = split_text("Nothing here", [])
        assert len(pieces) == 1
        assert pieces[0].keyword_id is None


class TestKeywordIndexHolder:
    """Publishing swaps the whole index; held references stay valid."""

    def test_starts_empty(self):
        holder = KeywordIndexHolder()
        assert len(holder.current()) == 0
        assert holder.version == 0

    def test_publish_swaps_index(self):
        holder = KeywordIndexHolder(_index("Play"))
        old = holder.current()
        version = holder.publish(_index("Time"))
        assert version == 1
        assert old.find_matches("Play time")[0].term == "Play"
        assert holder.current().find_matches("Play time")[0].term == "Time"

    def test_rebuild_from_records(self):
        holder = KeywordIndexHolder()
        holder.rebuild([SimpleNamespace(id="a", term="Play", definition="Child-led activity.")])
        assert holder.version == 1
        assert "Play" in holder.current()

    def test_stale_until_first_publish(self):
        holder = KeywordIndexHolder(_index("Play"))
        assert holder.is_stale((1, None)) is True
        holder.publish(_index("Play"), stamp=(1, None))
        assert holder.is_stale((1, None)) is False

    def test_stamp_change_marks_index_stale(self):
        holder = KeywordIndexHolder()
        holder.rebuild([SimpleNamespace(id="a", term="Play", definition="Child-led.")], stamp=(1, "t1"))
        assert holder.stamp == (1, "t1")
        assert holder.is_stale((2, "t2")) is True
        assert holder.is_stale((1, "t2")) is True


@pytest.mark.parametrize(
    "text,expected",
    [
        ("play", ["Play"]),
        ("play therapy", ["Play Therapy"]),
        ("play-therapy", ["Play"]),
        ("Play Therapy, then Play.", ["Play Therapy", "Play"]),
        ("plays", []),
    ],
)
def test_play_therapy_cases(text, expected):
    index = _index("Play", "Play Therapy")
    assert [s.term for s in index.find_matches(text)] == expected

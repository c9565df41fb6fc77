"""Unit tests for glossary Markdown parsing, validation and serialization."""

import pytest

from nora.engines.content.keyword_markdown import (
    KeywordEntry,
    parse_keywords_markdown,
    serialize_keywords_markdown,
    validate_keyword_entries,
)
from nora.errors import ParseError


class TestParse:
    def test_parses_sample_glossary(self, sample_keywords):
        entries = parse_keywords_markdown(sample_keywords)
        assert [e.term for e in entries] == ["Play", "Play Therapy", "Special Time", "Labeled Praise"]
        assert entries[0].definition == "Child-led activity where the parent follows."

    def test_keeps_bold_sub_labels_in_definition(self, sample_keywords):
        entries = parse_keywords_markdown(sample_keywords)
        assert entries[1].definition == (
            "A structured therapeutic approach.\n\n**History:** Developed in the early 20th century."
        )

    def test_skips_title_and_separators(self):
        content = "# Glossary\n\n### Flow\n\nA state.\n\n---\n\n### Calm\n\nSteady.\n"
        entries = parse_keywords_markdown(content)
        assert entries == [
            KeywordEntry(term="Flow", definition="A state."),
            KeywordEntry(term="Calm", definition="Steady."),
        ]

    def test_strips_byte_order_mark_and_crlf(self):
        content = "\ufeff### Flow\r\n\r\nA state.\r\n"
        assert parse_keywords_markdown(content) == [KeywordEntry(term="Flow", definition="A state.")]

    def test_heading_without_body_has_empty_definition(self):
        entries = parse_keywords_markdown("### Flow\n### Calm\n\nSteady.")
        assert entries[0].definition == ""
        assert entries[1].definition == "Steady."

    def test_empty_document(self):
        assert parse_keywords_markdown("") == []


class TestValidate:
    def test_valid_entries_pass(self, sample_keywords):
        validate_keyword_entries(parse_keywords_markdown(sample_keywords))

    def test_reports_all_problems_at_once(self):
        entries = [
            KeywordEntry(term="Flow", definition=""),
            KeywordEntry(term="", definition="Orphan text."),
            KeywordEntry(term="Calm", definition="x" * 2001),
        ]
        with pytest.raises(ParseError) as exc_info:
            validate_keyword_entries(entries, source="docs/keywords.md")
        problems = exc_info.value.problems
        assert len(problems) == 3
        assert "Missing definition" in problems[0]
        assert "Missing term" in problems[1]
        assert "Definition too long (2001 chars, max 2000)" in problems[2]
        assert str(exc_info.value).startswith("docs/keywords.md: ")

    def test_definition_at_limit_is_accepted(self):
        validate_keyword_entries([KeywordEntry(term="Calm", definition="x" * 2000)])

    def test_custom_length_limit(self):
        with pytest.raises(ParseError):
            validate_keyword_entries([KeywordEntry(term="Calm", definition="x" * 11)], max_definition_length=10)

    def test_duplicate_terms_differing_in_case(self):
        entries = [
            KeywordEntry(term="Play", definition="One."),
            KeywordEntry(term="play", definition="Two."),
        ]
        with pytest.raises(ParseError) as exc_info:
            validate_keyword_entries(entries)
        assert exc_info.value.problems == ["Keyword 2 (play): Duplicate of keyword 1"]


class TestSerialize:
    def test_single_entry_format(self):
        text = serialize_keywords_markdown([KeywordEntry(term="Flow", definition="A psychological state...")])
        assert text == "### Flow\n\nA psychological state...\n"
        assert parse_keywords_markdown(text) == [
            KeywordEntry(term="Flow", definition="A psychological state..."),
        ]

    def test_parse_of_serialized_glossary_is_unchanged(self, sample_keywords):
        entries = parse_keywords_markdown(sample_keywords)
        assert parse_keywords_markdown(serialize_keywords_markdown(entries, title="Nora Keywords")) == entries

    def test_title_heading(self):
        text = serialize_keywords_markdown([KeywordEntry(term="Flow", definition="A state.")], title="Glossary")
        assert text.startswith("# Glossary\n\n### Flow")

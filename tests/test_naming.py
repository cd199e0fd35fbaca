"""Tests for identifier, name and title derivation."""

import keyword

import pytest

from mcpkit.definitions.naming import (
    enrich_name_title,
    kebab_case,
    strip_extension,
    title_case,
    to_identifier,
)
from mcpkit.errors import IdentifierError


class TestToIdentifier:
    """Tests for to_identifier."""

    @pytest.mark.parametrize("word", keyword.kwlist)
    def test_keywords_are_escaped(self, word):
        identifier = to_identifier(f"{word}.py")
        assert identifier == f"_{word}"
        assert not keyword.iskeyword(identifier)
        assert identifier.isidentifier()

    def test_plain_name_unchanged(self):
        assert to_identifier("echo.py") == "echo"

    def test_non_word_characters_replaced(self):
        assert to_identifier("list-docs.v2.py") == "list_docs_v2"

    def test_leading_digit_prefixed(self):
        assert to_identifier("2fa.py") == "_2fa"

    def test_extension_optional(self):
        assert to_identifier("search") == "search"

    def test_empty_stem_raises(self):
        with pytest.raises(IdentifierError):
            to_identifier(".py")

    def test_soft_keywords_left_alone(self):
        # match/case/type are valid identifiers
        assert to_identifier("match.py") == "match"


class TestCaseConversion:
    """Tests for kebab_case and title_case."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("list_documentation", "list-documentation"),
            ("listDocumentation", "list-documentation"),
            ("HTMLParser", "html-parser"),
            ("get-time", "get-time"),
            ("echo", "echo"),
        ],
    )
    def test_kebab_case(self, text, expected):
        assert kebab_case(text) == expected

    def test_title_case(self):
        assert title_case("list_documentation") == "List Documentation"
        assert title_case("get-time") == "Get Time"

    def test_strip_extension_keeps_inner_dots(self):
        assert strip_extension("a.b.py") == "a.b"


class TestEnrichNameTitle:
    """Tests for enrich_name_title."""

    def test_derives_from_filename(self):
        name, title = enrich_name_title(None, None, {"filename": "get_time.py"}, "tool")
        assert name == "get-time"
        assert title == "Get Time"

    def test_explicit_values_win(self):
        name, title = enrich_name_title(
            "clock", "Clock", {"filename": "get_time.py"}, "tool"
        )
        assert (name, title) == ("clock", "Clock")

    def test_explicit_name_without_filename(self):
        name, title = enrich_name_title("clock", None, {}, "tool")
        assert name == "clock"
        assert title is None

    def test_idempotent(self):
        meta = {"filename": "get_time.py"}
        first = enrich_name_title(None, None, meta, "tool")
        second = enrich_name_title(*first, meta, "tool")
        assert first == second

    def test_missing_name_and_filename_raises(self):
        with pytest.raises(IdentifierError, match="auto-generate prompt name"):
            enrich_name_title(None, None, {}, "prompt")

"""
Unit tests for page range parsing.
"""

import pytest

from modules.page_selector import is_blank_range, parse_page_range, resolve_pages


class TestParsePageRange:
    """Strict parsing: returns exactly what the range selects."""

    def test_pages_and_spans(self):
        assert parse_page_range("1-3,5", 5) == {1, 2, 3, 5}

    def test_span_clamped_to_document(self):
        assert parse_page_range("1-10", 5) == {1, 2, 3, 4, 5}

    def test_unparseable_range_selects_nothing(self):
        assert parse_page_range("abc", 5) == set()

    def test_whitespace_and_empty_tokens_ignored(self):
        assert parse_page_range(" 2 , ,4 ", 5) == {2, 4}

    def test_open_ended_spans(self):
        assert parse_page_range("4-", 6) == {4, 5, 6}
        assert parse_page_range("-2", 6) == {1, 2}

    def test_out_of_range_pages_dropped(self):
        assert parse_page_range("0,3,9", 5) == {3}
        assert parse_page_range("7-9", 5) == set()

    def test_reversed_span_dropped(self):
        assert parse_page_range("4-2,1", 5) == {1}

    def test_malformed_tokens_dropped_others_kept(self):
        assert parse_page_range("1-2-3,x,5", 5) == {5}
        assert parse_page_range("-", 5) == set()

    def test_overlapping_spans_merge(self):
        assert parse_page_range("1-3,2-4", 5) == {1, 2, 3, 4}

    @pytest.mark.parametrize("spec", [None, "", "   "])
    def test_blank_range_selects_nothing(self, spec):
        assert parse_page_range(spec, 5) == set()

    def test_empty_document(self):
        assert parse_page_range("1-3", 0) == set()


class TestResolvePages:
    """Lenient resolution falls back to the whole document."""

    def test_valid_range_unchanged(self):
        assert resolve_pages("2,4", 5) == {2, 4}

    def test_unparseable_falls_back_to_all(self):
        assert resolve_pages("abc", 3) == {1, 2, 3}

    def test_blank_falls_back_to_all(self):
        assert resolve_pages("", 2) == {1, 2}


class TestIsBlankRange:

    @pytest.mark.parametrize("spec,expected", [
        (None, True),
        ("", True),
        ("  ", True),
        ("1", False),
        ("abc", False),
    ])
    def test_blank_detection(self, spec, expected):
        assert is_blank_range(spec) is expected

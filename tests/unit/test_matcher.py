"""Unit tests for ordered signature matching with the keyword prefilter."""

from __future__ import annotations

import re
from unittest.mock import MagicMock

import pytest

from udger_local_parser.errors import PatternCompileError
from udger_local_parser.patterns import (
    AxisSignatures,
    SignatureEntry,
    build_entries,
    find_id,
)
from udger_local_parser.words import WordDetector


def _entry(entry_id: int, regex: str, word_1: int = 0, word_2: int = 0) -> SignatureEntry:
    return SignatureEntry(
        id=entry_id,
        word_id_1=word_1,
        word_id_2=word_2,
        pattern=re.compile(regex, re.IGNORECASE | re.DOTALL),
    )


# ---------------------------------------------------------------------------
# find_id
# ---------------------------------------------------------------------------

class TestFindId:
    """First matching entry in list order wins."""

    def test_first_match_wins(self) -> None:
        entries = [_entry(5, "chrome"), _entry(6, "chrome")]
        assert find_id("Chrome/120", frozenset(), entries) == 5

    def test_order_not_specificity(self) -> None:
        # A broad entry listed first shadows a more specific one
        entries = [_entry(1, "chrome"), _entry(2, "chrome/[0-9.]+ mobile")]
        assert find_id("Chrome/120 Mobile", frozenset(), entries) == 1

    def test_no_match_returns_none(self) -> None:
        assert find_id("curl/8.0", frozenset(), [_entry(1, "chrome")]) is None

    def test_empty_entries(self) -> None:
        assert find_id("anything", frozenset(), []) is None

    def test_missing_word_skips_entry(self) -> None:
        entries = [_entry(1, "chrome", word_1=7), _entry(2, "chrome")]
        assert find_id("Chrome/120", frozenset(), entries) == 2

    def test_both_words_required(self) -> None:
        entries = [_entry(1, "chrome", word_1=7, word_2=8), _entry(2, "chrome")]
        assert find_id("Chrome/120", frozenset({7}), entries) == 2
        assert find_id("Chrome/120", frozenset({7, 8}), entries) == 1

    def test_pattern_not_evaluated_when_word_missing(self) -> None:
        pattern = MagicMock()
        pattern.search.return_value = object()
        entry = SignatureEntry(id=1, word_id_1=3, word_id_2=0, pattern=pattern)

        assert find_id("text", frozenset({4}), [entry]) is None
        pattern.search.assert_not_called()

    def test_pattern_evaluated_when_words_present(self) -> None:
        pattern = MagicMock()
        pattern.search.return_value = object()
        entry = SignatureEntry(id=9, word_id_1=3, word_id_2=0, pattern=pattern)

        assert find_id("text", frozenset({3}), [entry]) == 9
        pattern.search.assert_called_once_with("text")


class TestWordsPresent:

    def test_zero_means_no_requirement(self) -> None:
        assert _entry(1, "x").words_present(frozenset())

    def test_second_word_only(self) -> None:
        entry = _entry(1, "x", word_1=0, word_2=4)
        assert not entry.words_present(frozenset())
        assert entry.words_present(frozenset({4}))


# ---------------------------------------------------------------------------
# AxisSignatures
# ---------------------------------------------------------------------------

class TestAxisSignatures:

    def _axis(self) -> AxisSignatures:
        words = WordDetector()
        words.add_word(1, "firefox")
        entries = (
            _entry(10, r"firefox/([0-9.]+)", word_1=1),
            _entry(11, r"gecko"),
        )
        return AxisSignatures(name="client", entries=entries, words=words)

    def test_match_uses_prefilter(self) -> None:
        axis = self._axis()
        assert axis.match("Gecko/20100101 Firefox/120.0") == 10
        assert axis.match("Gecko/20100101") == 11
        assert axis.match("curl/8.0") is None

    def test_get_by_id(self) -> None:
        axis = self._axis()
        assert axis.get(10).id == 10
        assert axis.get(99) is None

    def test_len(self) -> None:
        assert len(self._axis()) == 2

    def test_index_not_a_constructor_argument(self) -> None:
        with pytest.raises(TypeError):
            AxisSignatures(name="client", entries=(), words=WordDetector(), _by_id={})

    def test_index_built_from_entries(self) -> None:
        axis = self._axis()
        assert sorted(axis._by_id) == [10, 11]
        assert "_by_id" not in repr(axis)


# ---------------------------------------------------------------------------
# build_entries
# ---------------------------------------------------------------------------

class TestBuildEntries:

    def test_rows_compiled_in_order(self) -> None:
        rows = [
            {"id": 3, "regstring": "/b/si", "word_id": 2, "word2_id": None},
            {"id": 1, "regstring": "/a/si", "word_id": 0, "word2_id": 5},
        ]
        entries = build_entries(rows, "udger_client_regex")
        assert [entry.id for entry in entries] == [3, 1]
        assert entries[0].word_id_2 == 0
        assert entries[1].word_id_2 == 5
        assert entries[1].pattern.search("A")

    def test_invalid_regex_aborts_build(self) -> None:
        rows = [
            {"id": 1, "regstring": "/ok/si", "word_id": 0, "word2_id": 0},
            {"id": 2, "regstring": "/bad(/si", "word_id": 0, "word2_id": 0},
        ]
        with pytest.raises(PatternCompileError, match="udger_os_regex rowid 2"):
            build_entries(rows, "udger_os_regex")

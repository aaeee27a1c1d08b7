"""Tests for the word graph: membership, search and the compiled form."""

from __future__ import annotations

import struct

import pytest

from lexengine.search_spec import SearchCondition, SearchConditionType, SearchSpec
from lexengine.word_graph import (
    EDGE_END_OF_NODE,
    EDGE_END_OF_WORD,
    EDGE_LETTER_SHIFT,
    GraphImportError,
    WordGraph,
)
from tests.conftest import WORDS

T = SearchConditionType


def _spec(*conditions: SearchCondition) -> SearchSpec:
    return SearchSpec(list(conditions))


def _edge(letter: str, child: int = 0, eow: bool = False, last: bool = False) -> int:
    edge = (ord(letter) << EDGE_LETTER_SHIFT) | child
    if eow:
        edge |= EDGE_END_OF_WORD
    if last:
        edge |= EDGE_END_OF_NODE
    return edge


def _compiled(*edges: int) -> bytes:
    return struct.pack(f">I{len(edges) + 1}I", len(edges) + 1, 0, *edges)


class TestMembership:
    def test_added_words_are_contained(self, small_graph: WordGraph) -> None:
        for w in WORDS:
            assert small_graph.contains_word(w)
            assert w in small_graph

    def test_prefixes_are_not_words(self, small_graph: WordGraph) -> None:
        assert not small_graph.contains_word("CA")
        assert not small_graph.contains_word("DO")
        assert not small_graph.contains_word("")

    def test_add_word_is_idempotent(self) -> None:
        g = WordGraph()
        for _ in range(3):
            g.add_word("CAT")
        assert g.contains_word("CAT")
        assert g.word_count == 1

    def test_add_word_uppercases(self) -> None:
        g = WordGraph()
        g.add_word("cat")
        assert g.contains_word("CAT")

    def test_word_count(self, small_graph: WordGraph) -> None:
        assert small_graph.word_count == len(set(WORDS))


class TestPatternSearch:
    def test_wildcard(self, small_graph: WordGraph) -> None:
        spec = _spec(SearchCondition(T.PATTERN_MATCH, "?AT"))
        assert small_graph.search(spec) == ["BAT", "CAT", "EAT", "SAT"]

    def test_letter_class(self, small_graph: WordGraph) -> None:
        assert small_graph.search(_spec(SearchCondition(T.PATTERN_MATCH, "[BC]AT"))) == ["BAT", "CAT"]
        assert small_graph.search(_spec(SearchCondition(T.PATTERN_MATCH, "[^BC]AT"))) == ["EAT", "SAT"]

    def test_star(self, small_graph: WordGraph) -> None:
        spec = _spec(SearchCondition(T.PATTERN_MATCH, "*S"))
        assert small_graph.search(spec) == [
            "ACTS", "AS", "BATS", "CATS", "DOGS", "EATS", "GODS", "TABS", "TEAS",
        ]

    def test_double_star_has_no_duplicates(self, small_graph: WordGraph) -> None:
        spec = _spec(SearchCondition(T.PATTERN_MATCH, "*A*T*"))
        result = small_graph.search(spec)
        assert len(result) == len(set(result))
        assert "CAT" in result and "EAST" in result and "TA" not in result

    def test_length_bounds(self, small_graph: WordGraph) -> None:
        spec = _spec(
            SearchCondition(T.PATTERN_MATCH, "*S"),
            SearchCondition(T.LENGTH, min_value=4, max_value=4),
        )
        assert "AS" not in small_graph.search(spec)
        assert all(len(w) == 4 for w in small_graph.search(spec))

    def test_no_driver_enumerates_within_length(self, small_graph: WordGraph) -> None:
        spec = _spec(SearchCondition(T.LENGTH, min_value=2, max_value=2))
        assert small_graph.search(spec) == ["AS", "AT", "QI", "TA"]

    def test_negated_pattern_is_a_filter(self, small_graph: WordGraph) -> None:
        spec = _spec(
            SearchCondition(T.PATTERN_MATCH, "???"),
            SearchCondition(T.PATTERN_MATCH, "?A?", negated=True),
        )
        assert small_graph.search(spec) == ["ACT", "ATE", "DOG", "GOD", "TEA"]

    def test_include_letters(self, small_graph: WordGraph) -> None:
        spec = _spec(
            SearchCondition(T.LENGTH, min_value=3, max_value=3),
            SearchCondition(T.INCLUDE_LETTERS, "TB"),
        )
        assert small_graph.search(spec) == ["BAT", "TAB"]

    def test_consist_of(self, small_graph: WordGraph) -> None:
        spec = _spec(
            SearchCondition(T.LENGTH, min_value=3, max_value=3),
            SearchCondition(T.CONSIST_OF, "AEIOU", min_value=60),
        )
        assert small_graph.search(spec) == ["ATE", "EAT", "TEA"]

    def test_contradictory_lengths(self, small_graph: WordGraph) -> None:
        spec = _spec(
            SearchCondition(T.PATTERN_MATCH, "???"),
            SearchCondition(T.LENGTH, min_value=4),
        )
        assert small_graph.search(spec) == []


class TestRackSearch:
    def test_anagram(self, small_graph: WordGraph) -> None:
        spec = _spec(SearchCondition(T.ANAGRAM_MATCH, "ACT"))
        assert small_graph.search(spec) == ["ACT", "CAT"]

    def test_anagram_with_blank(self, small_graph: WordGraph) -> None:
        spec = _spec(SearchCondition(T.ANAGRAM_MATCH, "AT?"))
        assert small_graph.search(spec) == ["ACT", "ATE", "BAT", "CAT", "EAT", "SAT", "TAB", "TEA"]

    def test_anagram_with_two_blanks(self, small_graph: WordGraph) -> None:
        spec = _spec(SearchCondition(T.ANAGRAM_MATCH, "Z??"))
        assert small_graph.search(spec) == ["ZAX"]

    def test_anagram_with_star(self, small_graph: WordGraph) -> None:
        spec = _spec(SearchCondition(T.ANAGRAM_MATCH, "SAT*"))
        result = small_graph.search(spec)
        assert "SAT" in result and "CATS" in result and "SEAT" in result
        assert "AT" not in result and "CAT" not in result

    def test_anagram_with_class_tile(self, small_graph: WordGraph) -> None:
        spec = _spec(SearchCondition(T.ANAGRAM_MATCH, "[BC]AT"))
        assert small_graph.search(spec) == ["ACT", "BAT", "CAT", "TAB"]

    def test_subanagram(self, small_graph: WordGraph) -> None:
        spec = _spec(SearchCondition(T.SUBANAGRAM_MATCH, "CATS"))
        assert small_graph.search(spec) == [
            "ACT", "ACTS", "AS", "AT", "CAST", "CAT", "CATS", "SAT", "SCAT", "TA",
        ]

    def test_second_rack_condition_filters(self, small_graph: WordGraph) -> None:
        spec = _spec(
            SearchCondition(T.SUBANAGRAM_MATCH, "CATS"),
            SearchCondition(T.ANAGRAM_MATCH, "ACT"),
        )
        assert small_graph.search(spec) == ["ACT", "CAT"]

    def test_malformed_rack_raises(self, small_graph: WordGraph) -> None:
        with pytest.raises(ValueError):
            small_graph.search(_spec(SearchCondition(T.ANAGRAM_MATCH, "[AB")))


class TestCompiledForm:
    def test_round_trip(self, small_graph: WordGraph) -> None:
        g = WordGraph()
        g.import_compiled(small_graph.export_compiled())
        for w in WORDS:
            assert g.contains_word(w)
        assert not g.contains_word("CA")
        assert g.word_count == len(set(WORDS))
        spec = _spec(SearchCondition(T.ANAGRAM_MATCH, "AT?"))
        assert g.search(spec) == small_graph.search(spec)

    def test_hand_built_graph(self) -> None:
        # A -> {B, C}, both ending words: AB, AC
        data = _compiled(_edge("A", child=2, last=True),
                         _edge("B", eow=True), _edge("C", eow=True, last=True))
        g = WordGraph()
        g.import_compiled(data)
        assert g.contains_word("AB") and g.contains_word("AC")
        assert not g.contains_word("A")
        assert g.word_count == 2

    def test_reverse_flag_is_recorded(self) -> None:
        g = WordGraph()
        g.import_compiled(_compiled(_edge("A", eow=True, last=True)), reverse=True)
        assert g.reverse
        assert g.contains_word("A")

    def test_empty_graph(self) -> None:
        g = WordGraph()
        g.import_compiled(struct.pack(">II", 1, 0))
        assert g.word_count == 0
        assert WordGraph().export_compiled() == struct.pack(">II", 1, 0)

    def test_suffixes_are_shared(self) -> None:
        g = WordGraph()
        for w in ["CAT", "CATS", "BAT", "BATS"]:
            g.add_word(w)
        data = g.export_compiled()
        # root run (B, C) + one shared A + T + S run each
        assert struct.unpack_from(">I", data)[0] == 1 + 2 + 1 + 1 + 1

    def test_export_rejects_letters_outside_alphabet(self) -> None:
        g = WordGraph()
        g.add_word("CAT")
        g.add_word("CAFÉ")
        with pytest.raises(ValueError):
            g.export_compiled()

    def test_export_large_graph_round_trip(self) -> None:
        g = WordGraph()
        words = [a + b + c for a in "ABCDEFGHIJ" for b in "KLMNOPQRST" for c in "UVWXYZ"]
        for w in words:
            g.add_word(w + "S")
            g.add_word(w[::-1])
        loaded = WordGraph()
        loaded.import_compiled(g.export_compiled())
        assert loaded.word_count == 2 * len(words)
        assert loaded.contains_word("AKUS") and loaded.contains_word("UKA")

    def test_add_after_import_does_not_leak_into_shared_nodes(self) -> None:
        g = WordGraph()
        for w in ["CAT", "CATS", "BAT", "BATS"]:
            g.add_word(w)
        loaded = WordGraph()
        loaded.import_compiled(g.export_compiled())
        loaded.add_word("BATH")
        assert loaded.contains_word("BATH")
        assert not loaded.contains_word("CATH")
        assert loaded.contains_word("CATS") and loaded.contains_word("BATS")
        assert loaded.word_count == 5

    @pytest.mark.parametrize("data", [
        b"",
        b"\x00\x00",
        struct.pack(">II", 3, 0),
        _compiled((ord("1") << EDGE_LETTER_SHIFT) | EDGE_END_OF_NODE),
        _compiled(_edge("A", child=5, eow=True, last=True)),
        _compiled(_edge("A", eow=True)),
        _compiled(_edge("A", child=1, last=True)),
        _compiled(_edge("A", eow=True), _edge("A", eow=True, last=True)),
    ], ids=["empty", "short", "count-mismatch", "bad-letter", "bad-pointer",
            "unterminated", "cycle", "repeated-letter"])
    def test_malformed_data_is_rejected(self, small_graph: WordGraph, data: bytes) -> None:
        with pytest.raises(GraphImportError):
            small_graph.import_compiled(data)
        # A failed import leaves the graph as it was
        assert small_graph.contains_word("CAT")
        assert small_graph.word_count == len(set(WORDS))

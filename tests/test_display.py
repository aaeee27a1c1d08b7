"""Tests for terminal rendering of word tables and judgements."""

from __future__ import annotations

from lexengine.display import print_word_table, render_judgement, render_word_table
from lexengine.engine import LexiconEngine


class TestWordTable:
    def test_hooks_around_word(self, engine: LexiconEngine) -> None:
        assert render_word_table(["CAT"], engine, definitions=False) == "s CAT s"

    def test_definition_follows_hooks(self, engine: LexiconEngine) -> None:
        line = render_word_table(["CAT"], engine)
        assert line.startswith("s CAT s  a feline [n CATS]")

    def test_columns_align(self, engine: LexiconEngine) -> None:
        lines = render_word_table(["AT", "SAT"], engine, definitions=False).splitlines()
        # AT takes front hooks b, c, e and s and back hook e; SAT takes none
        assert lines[0] == "bces AT  e"
        assert lines[1] == "     SAT"

    def test_empty(self, engine: LexiconEngine) -> None:
        assert render_word_table([], engine) == "(no words)"

    def test_print_counts_words(self, engine: LexiconEngine, capsys) -> None:
        print_word_table(["CAT", "DOG"], engine, definitions=False)
        captured = capsys.readouterr()
        assert "CAT" in captured.out
        assert "2 words" in captured.out


class TestJudgement:
    def test_all_valid(self, engine: LexiconEngine) -> None:
        text = render_judgement(["cat", "dog"], engine)
        assert "CAT" in text and "INVALID" not in text
        assert text.endswith("Play is ACCEPTABLE")

    def test_one_invalid(self, engine: LexiconEngine) -> None:
        text = render_judgement(["CAT", "XYZ"], engine)
        verdicts = dict(line.split() for line in text.splitlines()[:2])
        assert verdicts == {"CAT": "VALID", "XYZ": "INVALID"}
        assert text.endswith("Play is UNACCEPTABLE")

    def test_no_words(self, engine: LexiconEngine) -> None:
        assert render_judgement([], engine).endswith("Play is UNACCEPTABLE")

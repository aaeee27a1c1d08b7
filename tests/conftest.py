"""Shared fixtures for lexicon engine tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from lexengine.definitions import DefinitionStore
from lexengine.engine import LexiconEngine
from lexengine.word_graph import WordGraph

# Anagram groups: ACT(2) ABT(2) AET(3) ACST(4) ABST(3) AEST(4) DGO(2) DGOS(2) AT(2)
WORDS = [
    # 2-letter
    "AT", "TA", "AS", "QI",
    # 3-letter
    "CAT", "ACT", "BAT", "TAB", "SAT", "EAT", "TEA", "ATE", "DOG", "GOD", "ZAX",
    # 4-letter
    "CATS", "ACTS", "SCAT", "CAST", "BATS", "TABS", "STAB",
    "EATS", "SEAT", "EAST", "TEAS", "DOGS", "GODS",
]

DEFINITIONS = {
    "CAT": "a feline [n CATS] / to hoist an anchor [v CATTED, CATTING, CATS]",
    "CATS": "<CAT=n> [n]",
    "DOG": "a canine [n DOGS] / to track [v DOGGED, DOGGING, DOGS]",
}


def write_lines(path: Path, lines: list[str]) -> Path:
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def small_graph() -> WordGraph:
    """Graph built directly via add_word(). No file I/O."""
    g = WordGraph()
    for w in WORDS:
        g.add_word(w)
    return g


@pytest.fixture
def word_file(tmp_path: Path) -> Path:
    """Word list with a comment, a blank line and a few definitions."""
    lines = ["# test lexicon", ""]
    for w in WORDS:
        lines.append(f"{w} {DEFINITIONS[w]}" if w in DEFINITIONS else w.lower())
    return write_lines(tmp_path / "words.txt", lines)


@pytest.fixture
def engine(word_file: Path) -> LexiconEngine:
    e = LexiconEngine()
    result = e.import_text_file(word_file, "TEST", load_definitions=True)
    assert result.ok
    yield e
    e.close()


@pytest.fixture
def definition_store() -> DefinitionStore:
    store = DefinitionStore()
    store.add_definition("CAT", DEFINITIONS["CAT"])
    store.add_definition("KITTEN", "a young {cat=n} [n KITTENS]")
    store.add_definition("FELINE", "<cat=n>, or similar [adj]")
    store.add_definition("TOM", "a male {cat=n} also <kitten=n> [n TOMS]")
    return store

"""Word definitions with cross-reference link resolution.

Definition text may link to another word's definition in two forms:

``{WORD=POS}``
    "follow" link, replaced by ``WORD (sub-definition)``
``<WORD=POS>``
    "replace" link, replaced by ``WORD, sub-definition`` (upper-cased word)

Once a follow link has been seen while resolving a string, every later
replacement in that resolution uses follow semantics: a follow link becomes
``WORD (sub-definition)`` and a replace link becomes the bare sub-definition.
"""

from __future__ import annotations

from bisect import bisect_right
from pathlib import Path
from typing import NamedTuple

from lexengine.constants import DEFINITION_SEPARATOR, MAX_DEFINITION_LINKS
from lexengine.word_files import read_entries, split_entry


class Link(NamedTuple):
    start: int
    end: int
    word: str
    pos: str


def _is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def _word_run(text: str, i: int) -> int:
    """Index just past the run of word characters starting at *i*."""
    while i < len(text) and _is_word_char(text[i]):
        i += 1
    return i


def find_link(text: str, opener: str, closer: str) -> Link | None:
    """Find the leftmost ``<opener>WORD=POS<closer>`` token in *text*."""
    start = text.find(opener)
    while start >= 0:
        word_end = _word_run(text, start + 1)
        if word_end > start + 1 and word_end < len(text) and text[word_end] == "=":
            pos_end = _word_run(text, word_end + 1)
            if pos_end > word_end + 1 and pos_end < len(text) and text[pos_end] == closer:
                return Link(start, pos_end + 1, text[start + 1:word_end],
                            text[word_end + 1:pos_end])
        start = text.find(opener, start + 1)
    return None


def find_part_of_speech(sense: str) -> str:
    """Tag of the first ``[TAG ...]`` annotation in a sense, or ``""``."""
    start = sense.find("[")
    while start >= 0:
        end = _word_run(sense, start + 1)
        if end > start + 1:
            return sense[start + 1:end]
        start = sense.find("[", start + 1)
    return ""


class DefinitionStore:
    """Maps a word to its senses, ordered by part of speech.

    Within one part of speech, senses keep the order they were added in.
    The first definition added for a word wins. Loading builds a new store
    which is then swapped in as a whole; a store in use is never modified.
    """

    def __init__(self) -> None:
        self._senses: dict[str, list[tuple[str, str]]] = {}

    def __len__(self) -> int:
        return len(self._senses)

    def __contains__(self, word: str) -> bool:
        return word.upper() in self._senses

    def add_definition(self, word: str, definition: str) -> None:
        word = word.upper()
        if not word or not definition or word in self._senses:
            return
        senses: list[tuple[str, str]] = []
        for sense in definition.split(DEFINITION_SEPARATOR):
            pos = find_part_of_speech(sense)
            tags = [tag for tag, _ in senses]
            senses.insert(bisect_right(tags, pos), (pos, sense))
        self._senses[word] = senses

    def senses(self, word: str) -> list[tuple[str, str]]:
        return list(self._senses.get(word.upper(), []))

    def get_definition(self, word: str) -> str | None:
        """Full definition with links resolved, or None if the word has none."""
        senses = self._senses.get(word.upper())
        if senses is None:
            return None
        return DEFINITION_SEPARATOR.join(
            self.resolve_links(text, MAX_DEFINITION_LINKS) for _, text in senses
        )

    def get_sub_definition(self, word: str, pos: str) -> str:
        """First sense of *word* tagged *pos*, cut before any `` [`` annotation."""
        for tag, text in self._senses.get(word, []):
            if tag == pos:
                cut = text.find(" [")
                return text if cut < 0 else text[:cut]
        return ""

    def resolve_links(self, text: str, depth: int, use_follow: bool = False) -> str:
        """Replace definition links in *text*, following at most *depth* of them.

        When the budget is spent, one more link is replaced by its bare word
        and the rest of the string is returned as is.
        """
        while True:
            link = find_link(text, "{", "}")
            is_follow = link is not None
            if is_follow:
                use_follow = True
            else:
                link = find_link(text, "<", ">")
            if link is None:
                return text

            if not depth:
                replacement = link.word
            else:
                upper = link.word.upper()
                sub = self.get_sub_definition(upper, link.pos)
                if use_follow:
                    replacement = f"{link.word} ({sub})" if is_follow else sub
                else:
                    replacement = f"{upper}, {sub}"

            text = text[:link.start] + replacement + text[link.end:]
            if not depth:
                return text
            depth -= 1


def load_definition_file(path: str | Path) -> DefinitionStore:
    """Read ``WORD definition text`` lines into a new store.

    Raises OSError if the file cannot be opened.
    """
    store = DefinitionStore()
    for line in read_entries(path):
        word, definition = split_entry(line)
        store.add_definition(word, definition)
    return store

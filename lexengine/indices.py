"""Derived word indices: anagram counts and length-bucketed stems."""

from __future__ import annotations

from collections.abc import Iterable


def get_alphagram(word: str) -> str:
    """Letters of *word* sorted into ascending order."""
    return "".join(sorted(word.upper()))


class AnagramIndex:
    """Maps an alphagram to the number of words sharing it."""

    def __init__(self, counts: dict[str, int] | None = None) -> None:
        self._counts: dict[str, int] = dict(counts or {})

    @classmethod
    def from_words(cls, words: Iterable[str]) -> AnagramIndex:
        """Count the distinct words of *words* per alphagram."""
        index = cls()
        for word in set(w.upper() for w in words):
            index.increment(get_alphagram(word))
        return index

    def increment(self, alphagram: str) -> None:
        self._counts[alphagram] = self._counts.get(alphagram, 0) + 1

    def set_count(self, alphagram: str, count: int) -> None:
        self._counts[alphagram] = count

    def count(self, alphagram: str) -> int:
        return self._counts.get(alphagram, 0)

    def num_anagrams(self, word: str) -> int:
        return self.count(get_alphagram(word))

    def __len__(self) -> int:
        return len(self._counts)


class StemIndex:
    """Stem words bucketed by length, with the alphagrams of each bucket."""

    def __init__(self) -> None:
        self._stems: dict[int, list[str]] = {}
        self._alphagrams: dict[int, set[str]] = {}

    def set_bucket(self, length: int, stems: Iterable[str]) -> int:
        """Replace the bucket for *length*; stems of any other length are dropped.

        Returns the number of stems kept.
        """
        kept = [s.upper() for s in stems if len(s) == length]
        self._stems[length] = kept
        self._alphagrams[length] = {get_alphagram(s) for s in kept}
        return len(kept)

    def stems(self, length: int) -> list[str]:
        return list(self._stems.get(length, []))

    def alphagrams(self, length: int) -> set[str]:
        return self._alphagrams.get(length, set())

    def lengths(self) -> list[int]:
        return sorted(self._stems)

    def has_one_letter_stem(self, word: str) -> bool:
        """True when deleting one letter from the word's alphagram gives a stem
        alphagram of length len(word) - 1."""
        alphaset = self._alphagrams.get(len(word) - 1)
        if not alphaset:
            return False
        agram = get_alphagram(word)
        return any(agram[:i] + agram[i + 1:] in alphaset for i in range(len(agram)))

    def has_two_letter_stem(self, word: str) -> bool:
        """True when a stem of length len(word) - 2 aligns with the word's
        alphagram with at most two letters missing.

        Both alphagrams are walked left to right: a matching letter advances
        the stem, any other letter counts as missing. The walk stops once the
        stem is consumed, so letters after that point are never counted.
        """
        alphaset = self._alphagrams.get(len(word) - 2)
        if not alphaset:
            return False
        agram = get_alphagram(word)
        for stem in alphaset:
            missing = 0
            si = 0
            for ch in agram:
                if si >= len(stem):
                    break
                if ch == stem[si]:
                    si += 1
                else:
                    missing += 1
                if missing > 2:
                    break
            if missing <= 2:
                return True
        return False

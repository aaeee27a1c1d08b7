"""Letter bag model used to rank words by how likely they are to be drawn."""

from __future__ import annotations

from collections import Counter
from math import comb

from lexengine.constants import (
    BLANK_COUNT,
    PROBABILITY_KEY_WIDTH,
    PROBABILITY_RADIX,
    TILE_DISTRIBUTION,
)


class LetterBag:
    """A fixed tile distribution, including blanks."""

    def __init__(self, distribution: dict[str, int] | None = None,
                 blanks: int = BLANK_COUNT) -> None:
        self.distribution = dict(distribution or TILE_DISTRIBUTION)
        self.blanks = blanks

    def num_combinations(self, word: str) -> int:
        """Number of distinct tile sets from the bag that spell *word*.

        Every way of standing blanks in for some of the word's letters is
        counted: the letters left to real tiles are chosen from their
        frequencies and the blanks from the bag's blanks.
        """
        needed = sorted(Counter(word.upper()).items())

        def _count(i: int, blanks_left: int) -> int:
            if i == len(needed):
                return comb(self.blanks, self.blanks - blanks_left)
            letter, n = needed[i]
            freq = self.distribution.get(letter, 0)
            total = 0
            for used in range(min(n, blanks_left) + 1):
                ways = comb(freq, n - used)
                if ways:
                    total += ways * _count(i + 1, blanks_left - used)
            return total

        return _count(0, self.blanks)

    def probability_key(self, word: str) -> str:
        """Sort key putting likely words first, ties broken by spelling."""
        rank = max(PROBABILITY_RADIX - 1 - self.num_combinations(word), 0)
        return f"{rank:0{PROBABILITY_KEY_WIDTH}d}{word.upper()}"

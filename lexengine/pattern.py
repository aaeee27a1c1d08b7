"""Pattern and rack scanning, plus word-level matchers.

Pattern grammar::

    A-Z      a fixed letter (case-insensitive)
    ?        any single letter
    *        zero or more letters
    [ABC]    one letter from the class
    [^ABC]   one letter not in the class

A rack uses the same tokens: letters are tiles, ``?`` is a blank, a class
is a tile restricted to the class, and ``*`` allows any number of extra
letters.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum

LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
ALL_LETTERS = frozenset(LETTERS)


class PatternError(ValueError):
    """Raised for a malformed pattern or rack string."""


class TokenKind(Enum):
    LETTER = "letter"
    ANY = "any"
    CLASS = "class"
    STAR = "star"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    letters: frozenset[str] = ALL_LETTERS

    def matches(self, ch: str) -> bool:
        return ch in self.letters


STAR = Token(TokenKind.STAR, "*")
WILDCARD = Token(TokenKind.ANY, "?")


def parse_pattern(text: str) -> list[Token]:
    """Scan a pattern string into tokens. Consecutive stars collapse."""
    text = text.upper()
    tokens: list[Token] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "*":
            if not tokens or tokens[-1].kind is not TokenKind.STAR:
                tokens.append(STAR)
            i += 1
        elif ch == "?":
            tokens.append(WILDCARD)
            i += 1
        elif ch == "[":
            end = text.find("]", i + 1)
            if end < 0:
                raise PatternError(f"Unterminated letter class in {text!r}")
            tokens.append(_parse_class(text[i:end + 1], text))
            i = end + 1
        elif ch in ALL_LETTERS:
            tokens.append(Token(TokenKind.LETTER, ch, frozenset(ch)))
            i += 1
        else:
            raise PatternError(f"Unexpected character {ch!r} in {text!r}")
    return tokens


def _parse_class(source: str, text: str) -> Token:
    body = source[1:-1]
    negate = body.startswith("^")
    if negate:
        body = body[1:]
    if not body or any(ch not in ALL_LETTERS for ch in body):
        raise PatternError(f"Bad letter class {source!r} in {text!r}")
    letters = frozenset(body)
    if negate:
        letters = ALL_LETTERS - letters
    if not letters:
        raise PatternError(f"Letter class {source!r} matches nothing")
    return Token(TokenKind.CLASS, source, letters)


def reverse_pattern(text: str) -> str:
    """Return the pattern matching the reversed words of *text*."""
    return "".join(tok.text for tok in reversed(parse_pattern(text)))


def is_suffix_pattern(tokens: list[Token]) -> bool:
    """True when the pattern opens with a star but is anchored at its end."""
    return (len(tokens) > 1 and tokens[0].kind is TokenKind.STAR
            and tokens[-1].kind is not TokenKind.STAR)


def pattern_length_bounds(tokens: list[Token]) -> tuple[int, int | None]:
    """(min, max) word length a pattern can match; max is None when unbounded."""
    fixed = sum(1 for tok in tokens if tok.kind is not TokenKind.STAR)
    if any(tok.kind is TokenKind.STAR for tok in tokens):
        return fixed, None
    return fixed, fixed


def _skip_stars(states: set[int], tokens: list[Token]) -> set[int]:
    closed = set(states)
    for ti in sorted(states):
        while ti < len(tokens) and tokens[ti].kind is TokenKind.STAR:
            ti += 1
            closed.add(ti)
    return closed


def matches_pattern(word: str, tokens: list[Token]) -> bool:
    """Test a whole word against scanned pattern tokens."""
    states = _skip_stars({0}, tokens)
    for ch in word.upper():
        nxt: set[int] = set()
        for ti in states:
            if ti >= len(tokens):
                continue
            tok = tokens[ti]
            if tok.kind is TokenKind.STAR:
                nxt.add(ti)
            elif tok.matches(ch):
                nxt.add(ti + 1)
        if not nxt:
            return False
        states = _skip_stars(nxt, tokens)
    return len(tokens) in states


@dataclass
class Rack:
    """Tiles available to an anagram or subanagram search."""

    letters: Counter[str] = field(default_factory=Counter)
    classes: list[frozenset[str]] = field(default_factory=list)
    blanks: int = 0
    star: bool = False

    @property
    def size(self) -> int:
        return sum(self.letters.values()) + len(self.classes) + self.blanks


def parse_rack(text: str) -> Rack:
    rack = Rack()
    for tok in parse_pattern(text):
        if tok.kind is TokenKind.LETTER:
            rack.letters[tok.text] += 1
        elif tok.kind is TokenKind.ANY:
            rack.blanks += 1
        elif tok.kind is TokenKind.CLASS:
            rack.classes.append(tok.letters)
        else:
            rack.star = True
    return rack


def _max_class_matching(chars: list[str], classes: list[frozenset[str]]) -> int:
    """Size of a maximum matching between leftover letters and class tiles."""
    owner: list[int | None] = [None] * len(classes)

    def _augment(ci: int, seen: set[int]) -> bool:
        for ki, letters in enumerate(classes):
            if ki in seen or chars[ci] not in letters:
                continue
            seen.add(ki)
            if owner[ki] is None or _augment(owner[ki], seen):
                owner[ki] = ci
                return True
        return False

    return sum(1 for ci in range(len(chars)) if _augment(ci, set()))


def matches_rack(word: str, rack: Rack, use_all: bool) -> bool:
    """Test whether *word* can be built from *rack*.

    With *use_all* every tile must be used (an anagram); otherwise the word
    may use any non-empty subset of the tiles (a subanagram).
    """
    word = word.upper()
    if not word:
        return False
    counts = Counter(word)
    if use_all and any(counts[ch] < n for ch, n in rack.letters.items()):
        return False
    leftover = list((counts - rack.letters).elements())
    matched = _max_class_matching(leftover, rack.classes)
    if use_all:
        if matched < len(rack.classes):
            return False
        uncovered = len(leftover) - matched
        return uncovered >= rack.blanks if rack.star else uncovered == rack.blanks
    if rack.star:
        return True
    return len(leftover) - matched <= rack.blanks


def includes_letters(word: str, letters: str) -> bool:
    """True when the word contains every letter of *letters*, with repeats."""
    needed = Counter(letters.upper())
    have = Counter(word.upper())
    return all(have[ch] >= n for ch, n in needed.items())


def consist_percent(word: str, letters: str) -> int:
    """Percentage (rounded down) of the word's letters drawn from *letters*."""
    if not word:
        return 0
    pool = set(letters.upper())
    hits = sum(1 for ch in word.upper() if ch in pool)
    return hits * 100 // len(word)

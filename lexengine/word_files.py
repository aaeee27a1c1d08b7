"""Line reader shared by every word-list style import."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path


def read_entries(path: str | Path) -> Iterator[str]:
    """Yield the simplified, non-comment lines of a text file.

    Runs of whitespace collapse to one space and surrounding whitespace is
    dropped. Empty lines, lines starting with ``#`` and lines that do not
    decode as UTF-8 are skipped. Opening the file happens eagerly so a
    missing file raises ``OSError`` at the call site, not on first iteration.
    """
    f = open(path, "rb")
    return _entries(f)


def _entries(f) -> Iterator[str]:
    with f:
        for raw in f:
            try:
                line = raw.decode("utf-8")
            except UnicodeDecodeError:
                continue
            line = " ".join(line.split())
            if not line or line.startswith("#"):
                continue
            yield line


def split_entry(line: str) -> tuple[str, str]:
    """Split a simplified line into its first token and the remainder."""
    word, _, rest = line.partition(" ")
    return word, rest

"""Directed acyclic word graph for word lookup and pattern/rack search."""

from __future__ import annotations

import struct
from bisect import bisect_left
from collections import Counter, deque
from collections.abc import Callable

from lexengine.pattern import (
    ALL_LETTERS,
    STAR,
    Rack,
    Token,
    TokenKind,
    consist_percent,
    includes_letters,
    matches_pattern,
    matches_rack,
    parse_pattern,
    parse_rack,
    pattern_length_bounds,
)
from lexengine.search_spec import SearchCondition, SearchConditionType, SearchSpec

# Compiled graph edge layout (one big-endian 32-bit word per edge)
EDGE_LETTER_SHIFT = 24
EDGE_END_OF_WORD = 1 << 23
EDGE_END_OF_NODE = 1 << 22
EDGE_POINTER_MASK = EDGE_END_OF_NODE - 1

_DRIVERS = (
    SearchConditionType.PATTERN_MATCH,
    SearchConditionType.ANAGRAM_MATCH,
    SearchConditionType.SUBANAGRAM_MATCH,
)


class GraphImportError(Exception):
    """Raised when a compiled graph cannot be decoded."""


class WordGraph:
    """Word graph stored as an arena of nodes addressed by integer index.

    Node 0 is the root. Each node keeps its outgoing edges as two parallel
    lists sorted by letter, plus a flag marking an accepted word. Words are
    uppercase; the graph does not change case on lookup.

    Nodes loaded from a compiled graph may be shared between several
    parents, so insertion copies the path it modifies instead of editing a
    shared node in place.
    """

    def __init__(self, reverse: bool = False) -> None:
        self.reverse = reverse
        self._labels: list[list[str]] = [[]]
        self._targets: list[list[int]] = [[]]
        self._final: list[bool] = [False]
        self._shared = False
        self._word_count = 0

    # ---- membership -------------------------------------------------------

    def _child(self, node: int, ch: str) -> int | None:
        labels = self._labels[node]
        i = bisect_left(labels, ch)
        if i < len(labels) and labels[i] == ch:
            return self._targets[node][i]
        return None

    def contains_word(self, word: str) -> bool:
        if not word:
            return False
        node: int | None = 0
        for ch in word:
            node = self._child(node, ch)
            if node is None:
                return False
        return self._final[node]

    def __contains__(self, word: str) -> bool:
        return self.contains_word(word)

    @property
    def word_count(self) -> int:
        return self._word_count

    # ---- insertion --------------------------------------------------------

    def _new_node(self, final: bool = False) -> int:
        self._labels.append([])
        self._targets.append([])
        self._final.append(final)
        return len(self._final) - 1

    def _clone(self, node: int) -> int:
        clone = self._new_node(self._final[node])
        self._labels[clone] = list(self._labels[node])
        self._targets[clone] = list(self._targets[node])
        return clone

    def add_word(self, word: str) -> None:
        """Insert a word. Inserting a word already present changes nothing."""
        word = word.upper()
        if not word or (self._shared and self.contains_word(word)):
            return
        node = 0
        for ch in word:
            labels = self._labels[node]
            targets = self._targets[node]
            i = bisect_left(labels, ch)
            if i < len(labels) and labels[i] == ch:
                child = targets[i]
                if self._shared:
                    child = self._clone(child)
                    targets[i] = child
            else:
                child = self._new_node()
                labels.insert(i, ch)
                targets.insert(i, child)
            node = child
        if not self._final[node]:
            self._final[node] = True
            self._word_count += 1

    # ---- compiled form ----------------------------------------------------

    def import_compiled(self, data: bytes, reverse: bool = False) -> None:
        """Replace the graph with one decoded from its compiled form.

        Raises GraphImportError if *data* is malformed; the graph is left
        untouched in that case.
        """
        if len(data) < 4:
            raise GraphImportError("Compiled graph is truncated")
        (count,) = struct.unpack_from(">I", data)
        if count < 1 or len(data) != 4 + 4 * count:
            raise GraphImportError(
                f"Compiled graph declares {count} edges but holds {(len(data) - 4) // 4}"
            )
        edges = struct.unpack_from(f">{count}I", data, 4)
        runs = _read_runs(edges)
        _check_acyclic(runs)

        labels: list[list[str]] = [[]]
        targets: list[list[int]] = [[]]
        final: list[bool] = [False]
        index: dict[tuple[int, bool], int] = {}
        pending: list[tuple[int, bool]] = []
        if runs:
            index[(1, False)] = 0
            pending.append((1, False))
        while pending:
            key = pending.pop()
            node = index[key]
            for letter, eow, child in sorted(runs.get(key[0], [])):
                child_key = (child, eow)
                if child_key not in index:
                    index[child_key] = len(final)
                    labels.append([])
                    targets.append([])
                    final.append(eow)
                    if child:
                        pending.append(child_key)
                labels[node].append(letter)
                targets[node].append(index[child_key])

        self._labels = labels
        self._targets = targets
        self._final = final
        self._shared = True
        self.reverse = reverse
        self._word_count = self._count_words()

    def _count_words(self) -> int:
        counts: dict[int, int] = {}
        stack: list[tuple[int, bool]] = [(0, False)]
        while stack:
            node, expanded = stack.pop()
            if node in counts:
                continue
            if not expanded:
                stack.append((node, True))
                stack.extend((c, False) for c in self._targets[node] if c not in counts)
                continue
            counts[node] = int(self._final[node]) + sum(counts[c] for c in self._targets[node])
        return counts[0] - int(self._final[0])

    def export_compiled(self) -> bytes:
        """Encode the graph in compiled form, merging equivalent suffixes.

        Raises ValueError if a word holds a letter outside A-Z or the graph
        is too large for the format.
        """
        run_ids: dict[int, int] = {}
        registry: dict[tuple, int] = {}
        runs: list[tuple] = []
        stack: list[tuple[int, bool]] = [(0, False)]
        while stack:
            node, expanded = stack.pop()
            if node in run_ids:
                continue
            if not expanded:
                stack.append((node, True))
                stack.extend((c, False) for c in self._targets[node] if c not in run_ids)
                continue
            key = tuple(
                (label, self._final[child], run_ids[child])
                for label, child in zip(self._labels[node], self._targets[node])
            )
            if not key:
                run_ids[node] = 0
                continue
            bad = [label for label in self._labels[node] if label not in ALL_LETTERS]
            if bad:
                raise ValueError(f"Letter {bad[0]!r} can't be written to a compiled graph")
            if key not in registry:
                runs.append(key)
                registry[key] = len(runs)
            run_ids[node] = registry[key]

        root_run = run_ids[0]
        if not root_run:
            return struct.pack(">II", 1, 0)

        # Lay runs out breadth-first from the root so the root starts at slot 1
        slots: dict[int, int] = {}
        order: list[int] = []
        queue = deque([root_run])
        next_slot = 1
        while queue:
            run_id = queue.popleft()
            if run_id in slots:
                continue
            slots[run_id] = next_slot
            order.append(run_id)
            next_slot += len(runs[run_id - 1])
            queue.extend(child for _, _, child in runs[run_id - 1] if child and child not in slots)
        if next_slot > EDGE_POINTER_MASK:
            raise ValueError("Graph is too large for the compiled format")

        edges = [0]
        for run_id in order:
            run = runs[run_id - 1]
            for j, (label, eow, child) in enumerate(run):
                edge = ord(label) << EDGE_LETTER_SHIFT
                if eow:
                    edge |= EDGE_END_OF_WORD
                if j == len(run) - 1:
                    edge |= EDGE_END_OF_NODE
                edges.append(edge | (slots[child] if child else 0))
        return struct.pack(f">I{len(edges)}I", len(edges), *edges)

    # ---- search -----------------------------------------------------------

    def search(self, spec: SearchSpec) -> list[str]:
        """Return the sorted accepted words satisfying the graph-level conditions.

        Conditions the graph cannot evaluate are ignored here and must be
        post-filtered by the caller; graph-level conditions are always
        combined conjunctively.
        """
        min_len, max_len = 1, None
        driver: SearchCondition | None = None
        filters: list[Callable[[str], bool]] = []

        for condition in spec.conditions:
            ctype = condition.type
            if ctype not in _GRAPH_FILTERS:
                continue
            if ctype is SearchConditionType.LENGTH and not condition.negated:
                min_len = max(min_len, condition.min_value)
                if condition.max_value > 0:
                    max_len = condition.max_value if max_len is None else min(max_len, condition.max_value)
            elif driver is None and ctype in _DRIVERS and not condition.negated:
                driver = condition
            else:
                filters.append(_GRAPH_FILTERS[ctype](condition))

        results: set[str] = set()
        if driver is None or driver.type is SearchConditionType.PATTERN_MATCH:
            tokens = parse_pattern(driver.string_value) if driver else [STAR]
            low, high = pattern_length_bounds(tokens)
            min_len = max(min_len, low)
            if high is not None:
                max_len = high if max_len is None else min(max_len, high)
            if max_len is None or min_len <= max_len:
                self._walk_pattern(0, tokens, 0, [], min_len, max_len, results)
        else:
            rack = parse_rack(driver.string_value)
            use_all = driver.type is SearchConditionType.ANAGRAM_MATCH
            if use_all:
                min_len = max(min_len, rack.size)
            if not rack.star:
                max_len = rack.size if max_len is None else min(max_len, rack.size)
            if max_len is None or min_len <= max_len:
                self._walk_rack(0, Counter(rack.letters), tuple(rack.classes), rack.blanks,
                                rack.star, use_all, [], min_len, max_len, results)

        return sorted(w for w in results if all(f(w) for f in filters))

    def _walk_pattern(self, node: int, tokens: list[Token], ti: int, path: list[str],
                      min_len: int, max_len: int | None, out: set[str]) -> None:
        depth = len(path)
        if ti == len(tokens):
            if self._final[node] and depth >= min_len:
                out.add("".join(path))
            return
        tok = tokens[ti]
        if tok.kind is TokenKind.STAR:
            self._walk_pattern(node, tokens, ti + 1, path, min_len, max_len, out)
        if max_len is not None and depth >= max_len:
            return
        if tok.kind is TokenKind.LETTER:
            child = self._child(node, tok.text)
            if child is not None:
                path.append(tok.text)
                self._walk_pattern(child, tokens, ti + 1, path, min_len, max_len, out)
                path.pop()
            return
        next_ti = ti if tok.kind is TokenKind.STAR else ti + 1
        for label, child in zip(self._labels[node], self._targets[node]):
            if tok.matches(label):
                path.append(label)
                self._walk_pattern(child, tokens, next_ti, path, min_len, max_len, out)
                path.pop()

    def _walk_rack(self, node: int, letters: Counter[str], classes: tuple[frozenset[str], ...],
                   blanks: int, star: bool, use_all: bool, path: list[str],
                   min_len: int, max_len: int | None, out: set[str]) -> None:
        """Depth-first rack traversal.

        At each edge a matching letter tile is preferred, then a class tile,
        then a blank, then the star; each choice leaves at least as much
        freedom for the rest of the word as the ones after it.
        """
        depth = len(path)
        if self._final[node] and depth >= min_len:
            if not use_all or (not classes and blanks == 0 and not +letters):
                out.add("".join(path))
        if max_len is not None and depth >= max_len:
            return
        for label, child in zip(self._labels[node], self._targets[node]):
            path.append(label)
            if letters[label] > 0:
                letters[label] -= 1
                self._walk_rack(child, letters, classes, blanks, star, use_all, path,
                                min_len, max_len, out)
                letters[label] += 1
            elif any(label in cls for cls in classes):
                tried: set[frozenset[str]] = set()
                for i, cls in enumerate(classes):
                    if label in cls and cls not in tried:
                        tried.add(cls)
                        self._walk_rack(child, letters, classes[:i] + classes[i + 1:], blanks,
                                        star, use_all, path, min_len, max_len, out)
            elif blanks > 0:
                self._walk_rack(child, letters, classes, blanks - 1, star, use_all, path,
                                min_len, max_len, out)
            elif star:
                self._walk_rack(child, letters, classes, blanks, star, use_all, path,
                                min_len, max_len, out)
            path.pop()


def _read_runs(edges: tuple[int, ...]) -> dict[int, list[tuple[str, bool, int]]]:
    """Decode the edge runs reachable from the root run at slot 1."""
    count = len(edges)
    runs: dict[int, list[tuple[str, bool, int]]] = {}
    pending = [1] if count > 1 else []
    while pending:
        start = pending.pop()
        if start in runs:
            continue
        run: list[tuple[str, bool, int]] = []
        i = start
        while True:
            if i >= count:
                raise GraphImportError(f"Node at slot {start} is not terminated")
            edge = edges[i]
            letter = chr((edge >> EDGE_LETTER_SHIFT) & 0xFF)
            if letter not in ALL_LETTERS:
                raise GraphImportError(f"Bad letter {letter!r} at slot {i}")
            child = edge & EDGE_POINTER_MASK
            if child >= count:
                raise GraphImportError(f"Pointer {child} at slot {i} is out of range")
            run.append((letter, bool(edge & EDGE_END_OF_WORD), child))
            if child:
                pending.append(child)
            if edge & EDGE_END_OF_NODE:
                break
            i += 1
        if len({letter for letter, _, _ in run}) != len(run):
            raise GraphImportError(f"Node at slot {start} repeats a letter")
        runs[start] = run
    return runs


def _check_acyclic(runs: dict[int, list[tuple[str, bool, int]]]) -> None:
    if not runs:
        return
    visiting, done = 1, 2
    state: dict[int, int] = {1: visiting}
    stack = [(1, iter([c for _, _, c in runs[1] if c]))]
    while stack:
        start, children = stack[-1]
        child = next(children, None)
        if child is None:
            state[start] = done
            stack.pop()
            continue
        seen = state.get(child)
        if seen == visiting:
            raise GraphImportError(f"Cycle through slot {child}")
        if seen is None:
            state[child] = visiting
            stack.append((child, iter([c for _, _, c in runs[child] if c])))


def _pattern_filter(condition: SearchCondition) -> Callable[[str], bool]:
    tokens = parse_pattern(condition.string_value)
    return lambda w: matches_pattern(w, tokens) != condition.negated


def _rack_filter(condition: SearchCondition) -> Callable[[str], bool]:
    rack: Rack = parse_rack(condition.string_value)
    use_all = condition.type is SearchConditionType.ANAGRAM_MATCH
    return lambda w: matches_rack(w, rack, use_all) != condition.negated


def _length_filter(condition: SearchCondition) -> Callable[[str], bool]:
    def _in_range(w: str) -> bool:
        return len(w) >= condition.min_value and (
            condition.max_value <= 0 or len(w) <= condition.max_value)
    return lambda w: _in_range(w) != condition.negated


def _include_filter(condition: SearchCondition) -> Callable[[str], bool]:
    return lambda w: includes_letters(w, condition.string_value) != condition.negated


def _consist_filter(condition: SearchCondition) -> Callable[[str], bool]:
    high = condition.max_value if condition.max_value > 0 else 100

    def _in_range(w: str) -> bool:
        return condition.min_value <= consist_percent(w, condition.string_value) <= high
    return lambda w: _in_range(w) != condition.negated


_GRAPH_FILTERS: dict[SearchConditionType, Callable[[SearchCondition], Callable[[str], bool]]] = {
    SearchConditionType.PATTERN_MATCH: _pattern_filter,
    SearchConditionType.ANAGRAM_MATCH: _rack_filter,
    SearchConditionType.SUBANAGRAM_MATCH: _rack_filter,
    SearchConditionType.LENGTH: _length_filter,
    SearchConditionType.INCLUDE_LETTERS: _include_filter,
    SearchConditionType.CONSIST_OF: _consist_filter,
}

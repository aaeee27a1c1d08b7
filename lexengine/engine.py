"""Lexicon engine: word imports, searches, hooks and definitions."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, replace
from pathlib import Path

from lexengine.constants import (
    DEFAULT_ANAGRAM_COUNTS,
    DEFAULT_DEFINITIONS,
    DEFAULT_NEW_IN_OWL2,
    DEFAULT_STEMS_GLOB,
    DEFAULT_WORD_LIST,
    MAX_ANAGRAMS,
)
from lexengine.definitions import DefinitionStore, load_definition_file
from lexengine.indices import AnagramIndex, StemIndex, get_alphagram
from lexengine.letter_bag import LetterBag
from lexengine.pattern import is_suffix_pattern, parse_pattern, reverse_pattern
from lexengine.search_spec import (
    GRAPH_CONDITIONS,
    SearchCondition,
    SearchConditionType,
    SearchSet,
    SearchSpec,
)
from lexengine.word_files import read_entries, split_entry
from lexengine.word_graph import GraphImportError, WordGraph

log = logging.getLogger("lexengine")


@dataclass(frozen=True)
class ImportResult:
    """Outcome of an import: a count, or a sentinel count plus an error."""

    count: int
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _open_error(filename: str | Path, exc: OSError) -> str:
    return f"Can't open file '{filename}': {exc.strerror or exc}"


class LexiconEngine:
    """Owns one lexicon's word graphs, indices and definitions.

    Queries and imports are synchronous; the caller serializes them. Only
    definition loading runs in the background, and its result replaces the
    active DefinitionStore in a single assignment.
    """

    def __init__(self) -> None:
        self.lexicon_name = ""
        self.graph = WordGraph()
        self.reverse_graph = WordGraph(reverse=True)
        self.anagram_index = AnagramIndex()
        self.stem_index = StemIndex()
        self.definitions = DefinitionStore()
        self.letter_bag = LetterBag()
        self._group_lists: dict[SearchSet, str] = {}
        self._executor: ThreadPoolExecutor | None = None
        self._definitions_generation = 0
        self._pending_definitions: tuple[Future, int, str | Path] | None = None

    # ---- imports ----------------------------------------------------------

    def import_text_file(self, filename: str | Path, lexicon_name: str,
                         load_definitions: bool = False) -> ImportResult:
        """Import a plain word list, replacing the current words.

        Each line holds a word, optionally followed by its definition.
        Returns the number of entries read.
        """
        try:
            entries = read_entries(filename)
        except OSError as e:
            log.warning("Word list import failed: %s", e)
            return ImportResult(0, _open_error(filename, e))

        graph = WordGraph()
        reverse_graph = WordGraph(reverse=True)
        anagram_index = AnagramIndex()
        definitions = DefinitionStore() if load_definitions else None
        imported = 0
        for line in entries:
            word, definition = split_entry(line)
            word = word.upper()
            if not graph.contains_word(word):
                anagram_index.increment(get_alphagram(word))
            graph.add_word(word)
            reverse_graph.add_word(word[::-1])
            if definitions is not None:
                definitions.add_definition(word, definition)
            imported += 1

        self.graph = graph
        self.reverse_graph = reverse_graph
        self.anagram_index = anagram_index
        if definitions is not None:
            self.definitions = definitions
        self.lexicon_name = lexicon_name
        log.info("Imported %d words into %s from %s", imported, lexicon_name, filename)
        return ImportResult(imported)

    def import_compiled_graph(self, filename: str | Path, lexicon_name: str,
                              reverse: bool = False) -> ImportResult:
        """Load a compiled word graph.

        A reverse graph replaces only the reverse graph and never changes
        the lexicon name. On failure nothing changes.
        """
        try:
            data = Path(filename).read_bytes()
        except OSError as e:
            log.warning("Compiled graph import failed: %s", e)
            return ImportResult(0, _open_error(filename, e))

        graph = WordGraph(reverse=reverse)
        try:
            graph.import_compiled(data, reverse)
        except GraphImportError as e:
            log.warning("Compiled graph %s is malformed: %s", filename, e)
            return ImportResult(0, f"Can't import graph '{filename}': {e}")

        if reverse:
            self.reverse_graph = graph
        else:
            # A reverse graph built for the old words no longer matches
            self.graph = graph
            self.reverse_graph = WordGraph(reverse=True)
            self.lexicon_name = lexicon_name
        log.info("Loaded %s graph with %d words from %s",
                 "reverse" if reverse else "forward", graph.word_count, filename)
        return ImportResult(graph.word_count)

    def import_num_words(self, filename: str | Path) -> ImportResult:
        """Read a lexicon's word count from the first entry of a file.

        The count is 0 when the file is empty or its first token is not a
        number.
        """
        try:
            entries = read_entries(filename)
        except OSError as e:
            log.warning("Word count import failed: %s", e)
            return ImportResult(0, _open_error(filename, e))

        first = next(entries, "")
        entries.close()
        try:
            count = int(split_entry(first)[0])
        except ValueError:
            count = 0
        return ImportResult(max(count, 0))

    def import_anagram_counts(self, filename: str | Path) -> ImportResult:
        """Replace the anagram index with ``ALPHAGRAM COUNT`` lines from a file.

        Later lines overwrite earlier ones; lines without a valid count are
        skipped.
        """
        try:
            entries = read_entries(filename)
        except OSError as e:
            log.warning("Anagram count import failed: %s", e)
            return ImportResult(0, _open_error(filename, e))

        index = AnagramIndex()
        for line in entries:
            alphagram, rest = split_entry(line)
            try:
                count = int(rest.split(" ", 1)[0])
            except ValueError:
                continue
            if count < 0:
                continue
            index.set_count(alphagram.upper(), count)
        self.anagram_index = index
        log.info("Imported %d anagram counts from %s", len(index), filename)
        return ImportResult(len(index))

    def import_stems(self, filename: str | Path) -> ImportResult:
        """Import a stem list; every stem must have the first stem's length.

        Returns the number of stems kept, or -1 if the file can't be opened.
        """
        try:
            entries = read_entries(filename)
        except OSError as e:
            log.warning("Stem import failed: %s", e)
            return ImportResult(-1, _open_error(filename, e))

        stems = [split_entry(line)[0] for line in entries]
        if not stems:
            return ImportResult(0)
        length = len(stems[0])
        kept = self.stem_index.set_bucket(length, stems)
        log.info("Imported %d %d-letter stems from %s", kept, length, filename)
        return ImportResult(kept)

    def import_group_list(self, search_set: SearchSet, filename: str | Path) -> ImportResult:
        """Load the word list backing a list-based search group."""
        try:
            words = [split_entry(line)[0].upper() for line in read_entries(filename)]
        except OSError as e:
            log.warning("Group list import failed: %s", e)
            return ImportResult(0, _open_error(filename, e))
        self._group_lists[search_set] = " ".join(words)
        return ImportResult(len(words))

    def import_definitions(self, filename: str | Path) -> Future:
        """Load definitions in the background.

        The returned future resolves to the new DefinitionStore, which
        replaces the active one when loading finishes, unless a newer load
        was started or abandon_definitions() was called meanwhile. Until
        then lookups use the previous store.
        """
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="definitions")
        self._definitions_generation += 1
        generation = self._definitions_generation
        future = self._executor.submit(load_definition_file, filename)
        self._pending_definitions = (future, generation, filename)
        future.add_done_callback(lambda f: self._definitions_loaded(f, generation, filename))
        return future

    def _definitions_loaded(self, future: Future, generation: int, filename) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            log.warning("Definition load from %s failed: %s", filename, exc)
            return
        if generation != self._definitions_generation:
            log.debug("Discarding superseded definitions from %s", filename)
            return
        store = future.result()
        if store is not self.definitions:
            self.definitions = store
            log.info("Loaded definitions for %d words from %s", len(store), filename)

    def wait_for_definitions(self, timeout: float | None = None) -> bool:
        """Block until the latest definition load has finished and been applied.

        Returns False if there was nothing to wait for or the load did not
        finish in time.
        """
        if self._pending_definitions is None:
            return False
        future, generation, filename = self._pending_definitions
        done, _ = wait([future], timeout=timeout)
        if not done:
            return False
        self._definitions_loaded(future, generation, filename)
        return True

    def abandon_definitions(self) -> None:
        """Keep the current definitions even if a pending load completes."""
        self._definitions_generation += 1
        self._pending_definitions = None

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None

    # ---- lookups ----------------------------------------------------------

    def is_acceptable(self, word: str) -> bool:
        return self.graph.contains_word(word.upper())

    def num_anagrams(self, word: str) -> int:
        return self.anagram_index.num_anagrams(word)

    def get_definition(self, word: str) -> str | None:
        return self.definitions.get_definition(word)

    def alphagrams(self, words: list[str]) -> list[str]:
        """Sorted unique alphagrams of *words*."""
        return sorted({get_alphagram(w) for w in words})

    def get_front_hook_letters(self, word: str) -> str:
        """Lowercase letters that can go in front of *word*, in order."""
        spec = SearchSpec([SearchCondition(SearchConditionType.PATTERN_MATCH, "?" + word.upper())])
        return "".join(sorted({w[0].lower() for w in self.search(spec, True)}))

    def get_back_hook_letters(self, word: str) -> str:
        """Lowercase letters that can go after *word*, in order."""
        spec = SearchSpec([SearchCondition(SearchConditionType.PATTERN_MATCH, word.upper() + "?")])
        return "".join(sorted({w[-1].lower() for w in self.search(spec, True)}))

    def is_set_member(self, word: str, search_set: SearchSet) -> bool:
        """Test membership of an acceptable word in a named set."""
        word = word.upper()
        if search_set is SearchSet.HOOK_WORDS:
            return self.is_acceptable(word[:-1]) or self.is_acceptable(word[1:])
        if search_set is SearchSet.FRONT_HOOKS:
            return self.is_acceptable(word[:-1])
        if search_set is SearchSet.BACK_HOOKS:
            return self.is_acceptable(word[1:])
        if search_set is SearchSet.TYPE_ONE_SEVENS:
            return len(word) == 7 and self.stem_index.has_one_letter_stem(word)
        if search_set is SearchSet.TYPE_ONE_EIGHTS:
            return len(word) == 8 and self.stem_index.has_two_letter_stem(word)
        if search_set is SearchSet.EIGHTS_FROM_SEVEN_LETTER_STEMS:
            return len(word) == 8 and self.stem_index.has_one_letter_stem(word)
        return False

    # ---- search -----------------------------------------------------------

    def search(self, spec: SearchSpec, all_caps: bool = False) -> list[str]:
        """Return the acceptable words matching *spec*.

        Specs made only of word lists (plus anagram-count ranges and
        probability order) are answered by set algebra without touching the
        graph. Everything else is searched in the graph and post-filtered.
        """
        optimized = spec.optimize(self._group_lists)

        word_list_condition = False
        must_search_graph = False
        prob_min = prob_max = 0
        for condition in optimized.conditions:
            ctype = condition.type
            if ctype is SearchConditionType.IN_WORD_LIST:
                word_list_condition = True
                must_search_graph |= condition.negated
            elif ctype is SearchConditionType.PROBABILITY_ORDER:
                prob_min, prob_max = condition.min_value, condition.max_value
            elif ctype is not SearchConditionType.NUM_ANAGRAMS:
                must_search_graph = True

        if word_list_condition and not must_search_graph:
            log.debug("Answering search from word lists")
            words = self.non_graph_search(optimized)
        else:
            log.debug("Answering search from the word graph")
            word_lists = {
                id(c): frozenset(c.string_value.upper().split())
                for c in optimized.conditions
                if c.type is SearchConditionType.IN_WORD_LIST
            }
            words = [w for w in self._graph_search(optimized)
                     if self._matches_conditions(w, optimized.conditions, word_lists)]

        if prob_max > 0:
            words = self._probability_slice(words, prob_min, prob_max)

        if all_caps:
            words = [w.upper() for w in words]
        return words

    def _graph_search(self, spec: SearchSpec) -> list[str]:
        driver = next((c for c in spec.conditions
                       if c.type is SearchConditionType.PATTERN_MATCH and not c.negated), None)
        if (driver is None or not self.reverse_graph.word_count
                or not is_suffix_pattern(parse_pattern(driver.string_value))):
            return self.graph.search(spec)

        reversed_spec = SearchSpec([
            replace(c, string_value=reverse_pattern(c.string_value))
            if c.type is SearchConditionType.PATTERN_MATCH else c
            for c in spec.conditions
        ], spec.conjunction)
        return sorted(w[::-1] for w in self.reverse_graph.search(reversed_spec))

    def _matches_conditions(self, word: str, conditions: list[SearchCondition],
                            word_lists: dict[int, frozenset[str]]) -> bool:
        """Test the conditions the word graph cannot evaluate.

        *word_lists* maps each IN_WORD_LIST condition's id() to its words.
        """
        upper = word.upper()
        for condition in conditions:
            ctype = condition.type
            if ctype in GRAPH_CONDITIONS:
                continue
            if ctype is SearchConditionType.PREFIX:
                if (not self.is_acceptable(condition.string_value + upper)) != condition.negated:
                    return False
            elif ctype is SearchConditionType.SUFFIX:
                if (not self.is_acceptable(upper + condition.string_value)) != condition.negated:
                    return False
            elif ctype is SearchConditionType.BELONG_TO_GROUP:
                search_set = condition.search_set
                if search_set is SearchSet.UNKNOWN:
                    continue
                if (not self.is_set_member(upper, search_set)) != condition.negated:
                    return False
            elif ctype is SearchConditionType.IN_WORD_LIST:
                listed = upper in word_lists[id(condition)]
                if (not listed) != condition.negated:
                    return False
            elif ctype is SearchConditionType.NUM_ANAGRAMS:
                num = self.num_anagrams(upper)
                if num < condition.min_value or num > condition.max_value:
                    return False
        return True

    def non_graph_search(self, spec: SearchSpec) -> list[str]:
        """Combine IN_WORD_LIST conditions by set algebra.

        Lists are intersected when *spec* is a conjunction and unioned
        otherwise; only acceptable words are kept. NUM_ANAGRAMS ranges
        narrow a running range that filters the result. The result is sorted.
        """
        min_anagrams, max_anagrams = 0, MAX_ANAGRAMS
        final: set[str] | None = None

        for condition in spec.conditions:
            if condition.type is SearchConditionType.NUM_ANAGRAMS:
                min_anagrams = max(min_anagrams, condition.min_value)
                max_anagrams = min(max_anagrams, condition.max_value)
                if min_anagrams > max_anagrams:
                    return []
                continue
            if condition.type is not SearchConditionType.IN_WORD_LIST:
                continue

            word_set = {w for w in condition.string_value.upper().split() if self.is_acceptable(w)}
            if final is None:
                final = word_set
            elif spec.conjunction:
                final &= word_set
                if not final:
                    return []
            else:
                final |= word_set

        if not final:
            return []
        if min_anagrams > 0 or max_anagrams < MAX_ANAGRAMS:
            final = {w for w in final
                     if min_anagrams <= self.num_anagrams(w) <= max_anagrams}
        return sorted(final)

    def _probability_slice(self, words: list[str], prob_min: int, prob_max: int) -> list[str]:
        """Order words from most to least probable and keep ranks prob_min..prob_max."""
        if prob_min > len(words):
            return []
        prob_min = max(prob_min, 1)
        ordered = sorted(words, key=self.letter_bag.probability_key)
        return ordered[prob_min - 1:prob_max]


def load_default_engine(data_dir: str | Path | None = None) -> LexiconEngine:
    """Load the lexicon found in the data/ directory.

    ``words.txt`` is required; stems, anagram counts and the "New in OWL2"
    list are loaded when present, and definitions start loading in the
    background.
    """
    data_dir = Path(data_dir) if data_dir else Path(__file__).resolve().parent.parent / "data"
    words_path = data_dir / DEFAULT_WORD_LIST
    if not words_path.exists():
        raise FileNotFoundError(
            f"Word list not found at {words_path}. "
            f"Place a word list (one word per line) at {data_dir}/{DEFAULT_WORD_LIST}"
        )
    engine = LexiconEngine()
    engine.import_text_file(words_path, data_dir.name)
    for stems_path in sorted(data_dir.glob(DEFAULT_STEMS_GLOB)):
        engine.import_stems(stems_path)
    if (data_dir / DEFAULT_ANAGRAM_COUNTS).exists():
        engine.import_anagram_counts(data_dir / DEFAULT_ANAGRAM_COUNTS)
    if (data_dir / DEFAULT_NEW_IN_OWL2).exists():
        engine.import_group_list(SearchSet.NEW_IN_OWL2, data_dir / DEFAULT_NEW_IN_OWL2)
    if (data_dir / DEFAULT_DEFINITIONS).exists():
        engine.import_definitions(data_dir / DEFAULT_DEFINITIONS)
    return engine

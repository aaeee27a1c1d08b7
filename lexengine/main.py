"""CLI entry point for the lexicon engine."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from lexengine.display import print_judgement, print_word_table
from lexengine.engine import LexiconEngine, load_default_engine
from lexengine.search_spec import SearchCondition, SearchConditionType, SearchSpec


def parse_range(text: str) -> tuple[int, int]:
    """Parse ``N`` or ``MIN-MAX`` into an inclusive range."""
    low, sep, high = text.partition("-")
    try:
        if not sep:
            return int(low), int(low)
        return int(low or 0), int(high or 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Bad range {text!r}, expected N or MIN-MAX") from None


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Lexicon engine: search a word list by pattern, rack and group",
    )
    parser.add_argument("--data-dir", "-d", type=Path,
                        help="Directory holding words.txt, stems and definitions (default: data/)")
    parser.add_argument("--lexicon", "-L", type=Path,
                        help="Word list to import instead of the data directory's words.txt")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log engine activity")

    search = parser.add_argument_group("search conditions")
    search.add_argument("--pattern", "-p", help='Pattern, e.g. "?AT" or "*ING" or "[AEIOU]??"')
    search.add_argument("--anagram", "-a", help='Rack that must be used entirely, e.g. "AERT?"')
    search.add_argument("--subanagram", "-s", help="Rack whose letters may be partly used")
    search.add_argument("--length", type=parse_range, help="Word length N or MIN-MAX")
    search.add_argument("--prefix", help="Keep words that stay valid with this prefix")
    search.add_argument("--suffix", help="Keep words that stay valid with this suffix")
    search.add_argument("--group", help='Named group, e.g. "Type I Sevens" or "Hook Words"')
    search.add_argument("--in-list", help="Whitespace separated words to restrict to")
    search.add_argument("--num-anagrams", type=parse_range, help="Anagram count N or MIN-MAX")
    search.add_argument("--prob-range", type=parse_range,
                        help="Probability order ranks MIN-MAX (1 = most probable)")
    search.add_argument("--any", action="store_true",
                        help="Union word lists instead of intersecting them")
    search.add_argument("--no-definitions", action="store_true",
                        help="Don't show definitions in results")

    parser.add_argument("--define", metavar="WORD", help="Show a word's definition")
    parser.add_argument("--hooks", metavar="WORD", help="Show a word's front and back hooks")
    parser.add_argument("--judge", nargs="+", metavar="WORD", help="Judge whether words are valid")
    parser.add_argument("--compile", type=Path, metavar="OUT",
                        help="Write the loaded lexicon as a compiled graph")
    return parser.parse_args(argv)


def build_spec(args: argparse.Namespace) -> SearchSpec:
    """Turn the search flags into a SearchSpec (empty if none were given)."""
    spec = SearchSpec(conjunction=not args.any)
    T = SearchConditionType
    if args.pattern:
        spec.add(SearchCondition(T.PATTERN_MATCH, args.pattern.upper()))
    if args.anagram:
        spec.add(SearchCondition(T.ANAGRAM_MATCH, args.anagram.upper()))
    if args.subanagram:
        spec.add(SearchCondition(T.SUBANAGRAM_MATCH, args.subanagram.upper()))
    if args.length:
        spec.add(SearchCondition(T.LENGTH, min_value=args.length[0], max_value=args.length[1]))
    if args.prefix:
        spec.add(SearchCondition(T.PREFIX, args.prefix.upper()))
    if args.suffix:
        spec.add(SearchCondition(T.SUFFIX, args.suffix.upper()))
    if args.group:
        spec.add(SearchCondition(T.BELONG_TO_GROUP, args.group))
    if args.in_list:
        spec.add(SearchCondition(T.IN_WORD_LIST, args.in_list.upper()))
    if args.num_anagrams:
        spec.add(SearchCondition(T.NUM_ANAGRAMS, min_value=args.num_anagrams[0],
                                 max_value=args.num_anagrams[1]))
    if args.prob_range:
        spec.add(SearchCondition(T.PROBABILITY_ORDER, min_value=args.prob_range[0],
                                 max_value=args.prob_range[1]))
    return spec


def load_engine(args: argparse.Namespace) -> LexiconEngine:
    if args.lexicon:
        engine = LexiconEngine()
        result = engine.import_text_file(args.lexicon, args.lexicon.stem, load_definitions=True)
        if not result.ok:
            print(result.error)
            sys.exit(1)
        return engine
    try:
        return load_default_engine(args.data_dir)
    except FileNotFoundError as e:
        print(e)
        sys.exit(1)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    print("Loading lexicon...")
    engine = load_engine(args)
    print(f"Loaded {engine.graph.word_count} words ({engine.lexicon_name}).")

    spec = build_spec(args)
    try:
        if args.define or (spec.conditions and not args.no_definitions):
            engine.wait_for_definitions()

        if args.define:
            definition = engine.get_definition(args.define)
            print(f"\n{args.define.upper()}: {definition or '(no definition)'}")

        if args.hooks:
            word = args.hooks.upper()
            front = engine.get_front_hook_letters(word)
            back = engine.get_back_hook_letters(word)
            print(f"\n{front or '-'} {word} {back or '-'}")

        if args.judge:
            print_judgement(args.judge, engine)

        if spec.conditions:
            words = engine.search(spec, all_caps=True)
            print_word_table(words, engine, definitions=not args.no_definitions)

        if args.compile:
            args.compile.write_bytes(engine.graph.export_compiled())
            print(f"\nWrote compiled graph to {args.compile}")
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        engine.close()


if __name__ == "__main__":
    main()

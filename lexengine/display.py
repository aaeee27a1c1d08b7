"""Terminal rendering of search results and word judgements."""

from __future__ import annotations

from lexengine.engine import LexiconEngine


def render_word_table(words: list[str], engine: LexiconEngine,
                      definitions: bool = True) -> str:
    """Render words with their front hooks, back hooks and definitions."""
    if not words:
        return "(no words)"

    rows = [
        (engine.get_front_hook_letters(w), w, engine.get_back_hook_letters(w))
        for w in words
    ]
    front_width = max(len(r[0]) for r in rows)
    word_width = max(len(r[1]) for r in rows)
    back_width = max(len(r[2]) for r in rows)

    lines: list[str] = []
    for front, word, back in rows:
        line = f"{front:>{front_width}} {word:<{word_width}} {back:<{back_width}}"
        if definitions:
            definition = engine.get_definition(word)
            if definition:
                line += f"  {definition}"
        lines.append(line.rstrip())
    return "\n".join(lines)


def print_word_table(words: list[str], engine: LexiconEngine,
                     definitions: bool = True) -> None:
    print("\n" + render_word_table(words, engine, definitions))
    print(f"\n{len(words)} word{'s' if len(words) != 1 else ''}")


def render_judgement(words: list[str], engine: LexiconEngine) -> str:
    """Render a word-judge verdict: the play is acceptable only if every word is."""
    verdicts = [(w.upper(), engine.is_acceptable(w)) for w in words]
    lines = [f"  {w:<15s} {'VALID' if ok else 'INVALID'}" for w, ok in verdicts]
    overall = bool(verdicts) and all(ok for _, ok in verdicts)
    lines.append("")
    lines.append("Play is ACCEPTABLE" if overall else "Play is UNACCEPTABLE")
    return "\n".join(lines)


def print_judgement(words: list[str], engine: LexiconEngine) -> None:
    print("\n" + render_judgement(words, engine))

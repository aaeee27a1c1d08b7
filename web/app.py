"""Lexicon engine web application: Flask JSON backend."""
from __future__ import annotations

import sys
from pathlib import Path

# Ensure project root is on sys.path so `lexengine.*` imports work
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from flask import Flask, jsonify, request

from lexengine.engine import LexiconEngine, load_default_engine
from lexengine.search_spec import SearchSpec


def _word_entry(engine: LexiconEngine, word: str) -> dict:
    return {
        "word": word,
        "front_hooks": engine.get_front_hook_letters(word),
        "back_hooks": engine.get_back_hook_letters(word),
        "definition": engine.get_definition(word),
    }


def create_app(engine: LexiconEngine | None = None) -> Flask:
    """Build the app around *engine* (the data/ lexicon when omitted)."""
    app = Flask(__name__)
    engine = engine if engine is not None else load_default_engine()
    app.config["ENGINE"] = engine

    @app.route("/")
    def index():
        return jsonify({
            "lexicon": engine.lexicon_name,
            "word_count": engine.graph.word_count,
        })

    @app.route("/search", methods=["POST"])
    def search():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Expected a JSON object"}), 400
        try:
            spec = SearchSpec.from_dict(data)
            words = engine.search(spec, all_caps=bool(data.get("all_caps", True)))
        except ValueError as e:
            return jsonify({"error": f"Bad search: {e}"}), 400

        if data.get("details"):
            return jsonify({"words": [_word_entry(engine, w) for w in words],
                            "count": len(words)})
        return jsonify({"words": words, "count": len(words)})

    @app.route("/define/<word>")
    def define(word: str):
        definition = engine.get_definition(word)
        if definition is None:
            return jsonify({"error": f"No definition for {word.upper()}"}), 404
        return jsonify({"word": word.upper(), "definition": definition})

    @app.route("/hooks/<word>")
    def hooks(word: str):
        word = word.upper()
        try:
            front = engine.get_front_hook_letters(word)
            back = engine.get_back_hook_letters(word)
        except ValueError as e:
            return jsonify({"error": f"Bad word: {e}"}), 400
        return jsonify({
            "word": word,
            "acceptable": engine.is_acceptable(word),
            "front_hooks": front,
            "back_hooks": back,
            "num_anagrams": engine.num_anagrams(word),
        })

    @app.route("/judge", methods=["POST"])
    def judge():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Expected a JSON object"}), 400
        raw = data.get("words", [])
        if isinstance(raw, str):
            raw = raw.split()
        if not isinstance(raw, list):
            return jsonify({"error": "'words' must be a list or a string"}), 400
        words = [str(w).upper() for w in raw if str(w).strip()]
        if not words:
            return jsonify({"error": "No words provided"}), 400
        verdicts = {w: engine.is_acceptable(w) for w in words}
        return jsonify({"words": verdicts, "acceptable": all(verdicts.values())})

    return app


if __name__ == "__main__":
    app = create_app()
    print(f"Lexicon loaded: {app.config['ENGINE'].graph.word_count} words")
    app.run(debug=True, host="0.0.0.0", port=8080)

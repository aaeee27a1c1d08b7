"""Lexicon engine constants: tile bag, search limits and default data files."""

# Standard English crossword-game tile distribution (100 tiles, 2 blanks)
TILE_DISTRIBUTION: dict[str, int] = {
    "A": 9, "B": 2, "C": 2, "D": 4, "E": 12, "F": 2,
    "G": 3, "H": 2, "I": 9, "J": 1, "K": 1, "L": 4,
    "M": 2, "N": 6, "O": 8, "P": 2, "Q": 1, "R": 6,
    "S": 4, "T": 6, "U": 4, "V": 2, "W": 2, "X": 1,
    "Y": 2, "Z": 1,
}
BLANK_COUNT = 2

# Probability keys are fixed-width: (PROBABILITY_RADIX - 1 - combinations)
PROBABILITY_RADIX = 10 ** 9
PROBABILITY_KEY_WIDTH = 9

# Maximum number of definition links followed when resolving a definition
MAX_DEFINITION_LINKS = 3
DEFINITION_SEPARATOR = " / "

# Upper bound of an open anagram-count range
MAX_ANAGRAMS = 65535

# Files looked up by load_default_engine() inside the data directory
DEFAULT_WORD_LIST = "words.txt"
DEFAULT_ANAGRAM_COUNTS = "anagram-counts.txt"
DEFAULT_DEFINITIONS = "definitions.txt"
DEFAULT_NEW_IN_OWL2 = "owl2-new-words.txt"
DEFAULT_STEMS_GLOB = "stems*.txt"

"""Type naming helpers for synthesized schemas."""

import re

# Irregular plurals seen in collection names
IRREGULAR_PLURALS = {
    "people": "person",
    "men": "man",
    "women": "woman",
    "children": "child",
    "teeth": "tooth",
    "feet": "foot",
    "mice": "mouse",
    "geese": "goose",
    "movies": "movie",
    "series": "series",
    "species": "species",
}

_WORD_SPLIT = re.compile(r"[^0-9a-zA-Z]+")


def to_pascal_case(name: str) -> str:
    """Convert a collection or field name to PascalCase.

    Separators (anything non-alphanumeric) start a new word; the remainder
    of each word keeps its case so camelCase keys stay readable:
    ``home_address`` and ``homeAddress`` both become ``HomeAddress``.
    """
    words = [w for w in _WORD_SPLIT.split(name) if w]
    return "".join(w[0].upper() + w[1:] for w in words)


def singularize(word: str) -> str:
    """Convert a plural collection name to its singular form.

    Compound names only singularize their last part
    (``embedded_movies`` -> ``embedded_movie``).
    """
    lower = word.lower()
    if lower in IRREGULAR_PLURALS:
        return IRREGULAR_PLURALS[lower]

    if "_" in lower:
        parts = lower.split("_")
        parts[-1] = _singularize_word(parts[-1])
        return "_".join(parts)

    return _singularize_word(lower)


def _singularize_word(word: str) -> str:
    if word in IRREGULAR_PLURALS:
        return IRREGULAR_PLURALS[word]
    if word.endswith("ies") and len(word) > 4:
        return word[:-3] + "y"
    if word.endswith("ves"):
        return word[:-3] + "f"
    if word.endswith(("ses", "xes", "zes", "ches", "shes", "oes")):
        return word[:-2]
    if word.endswith("s") and not word.endswith(("ss", "us")):
        return word[:-1]
    return word


def type_name_for_collection(collection: str) -> str:
    """Top-level type name: ``embedded_movies`` -> ``EmbeddedMovie``."""
    return to_pascal_case(singularize(collection)) or "Document"


def nested_type_name(parent_type: str, field_name: str) -> str:
    """Composite name of a nested type: parent type + PascalCased field."""
    return f"{parent_type}{to_pascal_case(field_name) or 'Field'}"

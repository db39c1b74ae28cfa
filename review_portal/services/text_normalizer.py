"""
Title text normalisation.

Turns free-form titles into comparable token sequences:

    normalize("A Study of Deep-Learning!")   -> "a study of deep learning"
    tokenize("a study of deep learning", 3)  -> ["study", "deep", "learning"]
    remove_stop_words(["a", "study", "of"])  -> ["study"]

All functions are pure; empty input yields empty output.
"""

import re

# Articles, prepositions and common connectives dropped before scoring.
STOP_WORDS = frozenset({
    "a", "an", "the", "is", "of", "and", "using", "for", "in", "on", "at",
    "to", "with", "by", "from", "into", "through", "during", "before",
    "after", "above", "below", "up", "down", "out", "off", "over", "under",
    "again", "further", "then", "once",
})

_NON_ALNUM = re.compile(r"[^\w\s]|_", re.UNICODE)
_WHITESPACE = re.compile(r"\s+")


def normalize(text: str | None) -> str:
    """Lowercase, turn punctuation into spaces, collapse whitespace, trim."""
    if not text:
        return ""
    lowered = _NON_ALNUM.sub(" ", text.lower())
    return _WHITESPACE.sub(" ", lowered).strip()


def tokenize(normalized: str, min_length: int = 1) -> list[str]:
    """Split a normalized string on whitespace, dropping tokens shorter than min_length."""
    return [tok for tok in normalized.split() if len(tok) >= min_length]


def remove_stop_words(tokens: list[str], stop_words=STOP_WORDS) -> list[str]:
    """Drop stop words, unless that would leave nothing to compare."""
    filtered = [tok for tok in tokens if tok not in stop_words]
    return filtered if filtered else list(tokens)


def prepare(text: str | None, min_length: int = 1, stop_words=STOP_WORDS) -> list[str]:
    """normalize → tokenize → remove_stop_words."""
    return remove_stop_words(tokenize(normalize(text), min_length), stop_words)

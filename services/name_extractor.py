"""Derive a short object name from generated lore text."""

from typing import FrozenSet

CONNECTOR_WORDS: FrozenSet[str] = frozenset({"is", "was", "appears", "seems", "looks", "stands", "lies"})
FALLBACK_WORD_COUNT = 3


def extract_object_name(lore: str) -> str:
    """Return the words before the first connector word, or the first three words.

    A connector at the very first position does not count, so the name is
    never empty unless the text is.
    """
    words = lore.split()
    for index, word in enumerate(words):
        if index > 0 and word.lower() in CONNECTOR_WORDS:
            return " ".join(words[:index])
    return " ".join(words[:FALLBACK_WORD_COUNT])

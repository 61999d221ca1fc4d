"""Tokenizer for index terms."""

import re

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "is", "are", "was", "were", "be", "been", "have",
        "has", "had", "do", "does", "did", "will", "would", "could", "should",
    }
)

MIN_TOKEN_LENGTH = 3

# Anything that is not a letter, digit, underscore or whitespace
NON_WORD_PATTERN = re.compile(r"[^\w\s]")


def tokenize(text: str) -> list[str]:
    """
    Split text into normalized, deduplicated index terms.

    Terms are lowercased, punctuation is treated as whitespace, and terms of
    two characters or fewer or in STOP_WORDS are dropped. First-seen order is
    preserved.

    Args:
        text: Free text to tokenize

    Returns:
        List of unique terms in order of first appearance.
    """
    if not text:
        return []

    cleaned = NON_WORD_PATTERN.sub(" ", text.lower())
    # dict preserves insertion order
    terms = dict.fromkeys(
        token
        for token in cleaned.split()
        if len(token) >= MIN_TOKEN_LENGTH and token not in STOP_WORDS
    )
    return list(terms)

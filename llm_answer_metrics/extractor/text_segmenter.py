"""
Sentence and word segmentation for LLM answers.

Splits answer text on sentence-terminal punctuation (".", "!", "?") and
counts whitespace-delimited words. No normalization is applied beyond
collapsing whitespace runs to a single space.

Malformed input never raises: None, non-string or blank input yields an
empty sentence list and a word count of zero.

Example:
    >>> split_sentences("Acme is great!  Zenith is fine.\\nOthers exist")
    ['Acme is great', 'Zenith is fine', 'Others exist']
    >>> count_words("Acme   Rewards Card")
    3
"""

import re
from collections.abc import Iterator
from typing import Any

SENTENCE_BOUNDARY_PATTERN = re.compile(r"[.!?]+")
WHITESPACE_PATTERN = re.compile(r"\s+")


def iter_sentences(text: Any) -> Iterator[str]:
    """
    Yield trimmed, non-empty sentences of text in order.

    Each call returns a fresh generator, so the sequence can be restarted by
    calling again with the same text.
    """
    if not isinstance(text, str) or not text.strip():
        return

    for chunk in SENTENCE_BOUNDARY_PATTERN.split(text):
        sentence = WHITESPACE_PATTERN.sub(" ", chunk).strip()
        if sentence:
            yield sentence


def split_sentences(text: Any) -> list[str]:
    """
    Split text into trimmed, non-empty sentences.

    Args:
        text: Raw answer text (any type accepted; non-strings yield [])

    Returns:
        Sentences in original order

    Example:
        >>> split_sentences("One. Two?! Three")
        ['One', 'Two', 'Three']
        >>> split_sentences(None)
        []
    """
    return list(iter_sentences(text))


def count_words(text: Any) -> int:
    """
    Count whitespace-delimited words.

    Example:
        >>> count_words("  Acme\\tRewards \\n Card ")
        3
        >>> count_words(42)
        0
    """
    if not isinstance(text, str):
        return 0
    return len(text.split())

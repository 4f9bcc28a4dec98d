"""
Discern - Text Normalizer

Canonicalizes lyric and free text so lexicon matching is stable:
lowercase, no ``[bracketed]`` annotations, ASCII quotes, single spaces.
"""
import re

BRACKETED = re.compile(r"\[[^\]]*\]")
WHITESPACE = re.compile(r"\s+")

QUOTE_MAP = str.maketrans({
    "‘": "'",  # Left single
    "’": "'",  # Right single
    "‚": "'",  # Low single
    "‛": "'",  # Reversed single
    "′": "'",  # Prime
    "“": '"',  # Left double
    "”": '"',  # Right double
    "„": '"',  # Low double
    "‟": '"',  # Reversed double
    "″": '"',  # Double prime
})


def normalize(raw: str) -> str:
    """
    Normalize raw text for matching.

    Total over ``str`` and idempotent: ``normalize(normalize(x)) == normalize(x)``.

    >>> normalize("[Chorus] I love you Lord  [Verse 2] yeah")
    'i love you lord yeah'
    """
    text = raw.lower()
    text = BRACKETED.sub(" ", text)
    text = text.translate(QUOTE_MAP)
    return WHITESPACE.sub(" ", text).strip()

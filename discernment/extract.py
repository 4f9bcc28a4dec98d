"""
Discern - Signal Extraction

Two extractors feed the scorer through the same ``SignalBundle`` shape:

- ``extract_lyrics_signals``: regex lexicons over normalized lyrics
- ``extract_text_signals``: keyword families, doctrinal claim co-occurrence
  and scripture citations over free text such as plot synopses
"""
import re
from typing import List, Tuple

from discernment.lexicons import LYRICS_LEXICON, match_any
from discernment.normalizer import normalize
from discernment.signals import (
    CLAIM_DEITY_OF_CHRIST,
    CLAIM_IDOLATRY,
    CLAIM_REDUCED_CHRISTOLOGY,
    CLAIM_SALVATION_BY_GRACE,
    CLAIM_UNIVERSALISM,
    CLAIM_WORKS_SALVATION,
    THEME_REPENTANCE_HOPE,
    THEME_WORSHIP,
    SignalBundle,
)

# Lexicon category -> SignalBundle explicit category
LYRICS_EXPLICIT = (
    ("language", "profanity"),
    ("sexual", "sexual"),
    ("violence", "violence"),
    ("substances", "substances"),
    ("occult", "occult"),
)


def extract_lyrics_signals(text: str) -> SignalBundle:
    """
    Extract content and theme signals from song lyrics.

    Normalizes internally; passing already-normalized text is harmless.
    """
    text = normalize(text)

    explicit = {
        category: match_any(LYRICS_LEXICON[lexicon], text)
        for category, lexicon in LYRICS_EXPLICIT
    }

    themes: List[str] = []
    if match_any(LYRICS_LEXICON["worship"], text):
        themes.append(THEME_WORSHIP)
    if match_any(LYRICS_LEXICON["repentance"], text):
        themes.append(THEME_REPENTANCE_HOPE)

    return SignalBundle.build(
        explicit=explicit,
        blasphemy=match_any(LYRICS_LEXICON["blasphemy"], text),
        selfharm=match_any(LYRICS_LEXICON["selfharm"], text),
        themes=themes,
    )


# =============================================================================
# GENERAL FREE-TEXT EXTRACTOR
# =============================================================================

THEME_KEYWORDS: Tuple[str, ...] = (
    "redemption", "forgiveness", "sacrifice", "love", "faith", "hope",
    "compassion", "justice", "mercy", "grace", "family", "friendship",
    "courage", "betrayal", "revenge",
)

TEXT_EXPLICIT_KEYWORDS = {
    "language": ("profanity", "cursing", "foul language", "expletive"),
    "sexual": ("nudity", "sexual content", "sex scene", "intimate scene", "suggestive"),
    "violence": ("violence", "graphic violence", "gore", "bloody", "brutal", "killing"),
    "occult": (
        "witchcraft", "sorcery", "magic", "divination", "séance", "seance",
        "demon", "demonic", "occult", "necromancy", "spell",
    ),
}

IDOLATRY_PHRASES = ("idolatry", "idol worship", "materialism", "worship of money", "greed is good")
GRACE_PHRASES = ("saved by grace", "salvation by grace", "by grace through faith", "grace alone")
DEITY_PHRASES = ("son of god", "god incarnate", "word became flesh", "fully god", "jesus is god", "jesus is lord")

# Optional numbered book, capitalized name, chapter:verse(-verse)
SCRIPTURE_CITATION = re.compile(r"\b(?:[1-3]\s*)?[A-Z][a-z]+\s+\d+:\d+(?:-\d+)?\b")


def _contains_any(text: str, phrases: Tuple[str, ...]) -> bool:
    return any(p in text for p in phrases)


def detect_claims(text: str) -> List[str]:
    """Doctrinal claims signalled by keyword co-occurrence in lowercased text."""
    claims: List[str] = []
    if "works" in text and "salvation" in text:
        claims.append(CLAIM_WORKS_SALVATION)
    if "all paths" in text or "all religions" in text:
        claims.append(CLAIM_UNIVERSALISM)
    if "jesus" in text and ("teacher" in text or "prophet" in text):
        claims.append(CLAIM_REDUCED_CHRISTOLOGY)
    if _contains_any(text, IDOLATRY_PHRASES):
        claims.append(CLAIM_IDOLATRY)
    if _contains_any(text, GRACE_PHRASES):
        claims.append(CLAIM_SALVATION_BY_GRACE)
    if ("jesus" in text or "christ" in text) and _contains_any(text, DEITY_PHRASES):
        claims.append(CLAIM_DEITY_OF_CHRIST)
    return claims


def extract_scripture_citations(text: str) -> List[str]:
    """Literal citations such as ``John 3:16-17`` or ``2 Timothy 3:16``."""
    return [m.group(0) for m in SCRIPTURE_CITATION.finditer(text)]


def extract_text_signals(text: str) -> SignalBundle:
    """
    Extract signals from free text (synopses, descriptions, reviews).

    Keyword matching is substring based, so "loved" counts toward "love".
    Citations are read from the original text because they depend on case.
    """
    lower = normalize(text)

    explicit = {
        category: [k for k in keywords if k in lower]
        for category, keywords in TEXT_EXPLICIT_KEYWORDS.items()
    }

    return SignalBundle.build(
        explicit=explicit,
        themes=[k for k in THEME_KEYWORDS if k in lower],
        claims=detect_claims(lower),
        bible_refs=extract_scripture_citations(text),
    )

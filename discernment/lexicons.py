"""
Discern - Lexicon Pattern Sets

Per-category regex lexicons for lyrics. A category is satisfied when ANY of
its patterns matches; list order only decides which literal match is reported
first. Every pattern is compiled once at import and shared read-only by all
requests.

Profanity additionally carries fuzz-tolerant patterns so spellings broken up
by punctuation ("f*u.c-k", "s.h.i.t") still register.
"""
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping, Optional, Pattern, Sequence, Tuple, Union

# Filler allowed after each letter of a fuzzed word
FUZZ_FILLER = "[^a-z0-9]{0,2}"


def fuzz(word: str) -> Pattern[str]:
    """
    Build a pattern matching ``word`` with up to two non-alphanumeric
    characters after each letter.

    >>> bool(fuzz("fuck").search("f*u.c-k this"))
    True
    """
    body = FUZZ_FILLER.join(re.escape(ch) for ch in word.lower())
    # Unanchored: filler characters are non-word
    return re.compile(body, re.IGNORECASE)


def w(pattern: str) -> Pattern[str]:
    """Compile a case-insensitive pattern."""
    return re.compile(pattern, re.IGNORECASE)


@dataclass(frozen=True)
class SpanMatch:
    """Match of an ``InOrder`` matcher; mirrors ``re.Match.group``."""
    string: str
    start: int
    end: int

    def group(self, index: int = 0) -> str:
        if index != 0:
            raise IndexError("no such group")
        return self.string[self.start:self.end]


class InOrder:
    """
    Pieces that must appear in order on one line, with anything between them.

    Equivalent to ``piece1.*piece2.*piece3`` but each piece is searched once
    from where the previous one ended, so matching is linear in the text.
    """

    def __init__(self, *pieces: str):
        if len(pieces) < 2:
            raise ValueError("InOrder needs at least two pieces")
        self.pieces: Tuple[Pattern[str], ...] = tuple(w(p) for p in pieces)

    @property
    def pattern(self) -> str:
        return ".*".join(p.pattern for p in self.pieces)

    def search(self, text: str) -> Optional[SpanMatch]:
        first, rest = self.pieces[0], self.pieces[1:]
        pos = 0
        while pos <= len(text):
            head = first.search(text, pos)
            if head is None:
                return None
            line_end = text.find("\n", head.end())
            if line_end == -1:
                line_end = len(text)

            # The earliest head on a line leaves the most room for the rest
            end = head.end()
            for piece in rest:
                found = piece.search(text, end, line_end)
                if found is None:
                    break
                end = found.end()
            else:
                return SpanMatch(text, head.start(), end)
            pos = line_end + 1
        return None


Matcher = Union[Pattern[str], InOrder]


DEITY = r"(?:god|jesus|lord|christ)"

PROFANITY: Tuple[Pattern[str], ...] = (
    fuzz("fuck"),
    w(r"\bf\*{2,}[a-z]*"),
    w(r"\bsh[\*!1]t(?:ty)?\b"),
    w(r"\bgod[\W_]*damn(?:ed|it)?\b"),
    w(r"\bmotherf\w*"),
    w(r"\bshit(?:t?y|head|talk)?\b"),
    w(r"\bbi+tch(?:es|y)?\b"),
    w(r"\bass(?:hole|hat)?\b"),
    w(r"\bdi+ck(?:head)?\b"),
    w(r"\bpu(?:ssy|zzy)\b"),
    w(r"\bcunt\b"),
    w(r"\b(?:slag|slut|whore)s?\b"),
    w(r"\bprick\b"),
)

SEXUAL: Tuple[Pattern[str], ...] = (
    w(r"\b(?:naked|nud(?:e|ity)|strip(?:per|ping)?|orgy|porno?|onlyfans)\b"),
    w(r"\b(?:twerk(?:ing)?|grind(?:ing)?|booty|thot)\b"),
    w(r"\b(?:sex(?:ual|y)?|hook[\W_]*up|one[\W_]*night|bedroom)\b"),
)

VIOLENCE: Tuple[Pattern[str], ...] = (
    w(r"\b(?:kill|murder|stab|shoot|shooter|gun|glock|uzi|ak-?47|blood|gore)\b"),
    w(r"\b(?:beating|beat\s+up|assault|rob|robbery)\b"),
)

SUBSTANCES: Tuple[Pattern[str], ...] = (
    w(r"\b(?:drunk|wasted|blackout|hangover)\b"),
    w(r"\b(?:weed|blunt|bong|marijuana|cannabis|dope)\b"),
    w(r"\b(?:coke|cocaine|heroin|meth|ketamine|mdma|ecstasy|molly)\b"),
    w(r"\b(?:xan(?:ax)?|perc|percocet|codeine|lean|sizzurp)\b"),
)

OCCULT: Tuple[Pattern[str], ...] = (
    w(r"\b(?:witch(?:craft)?|sorcer(?:y|er)|magick?|tarot|ouija)\b"),
    w(r"\b(?:demon(?:ic)?|devil|satan|lucifer|possess(?:ed|ion))\b"),
    w(r"\b(?:seance|séance|divination|astrology|horoscope)\b"),
)

BLASPHEMY: Tuple[Pattern[str], ...] = (
    w(r"\bjesus h\.? christ\b"),
    w(r"\bchrist almighty\b"),
    w(rf"\b{DEITY}\s+(?:fucking|fuckin'?|fuck|damn)\b"),
    w(rf"\b(?:fuck|damn)\s+(?:you\s+)?{DEITY}\b"),
)

SELFHARM: Tuple[Pattern[str], ...] = (
    w(r"\b(?:kill(?:ing)? myself|end(?:ing)? my life|suicid(?:e|al)|overdose)\b"),
    w(r"\bcut(?:ting)? my (?:wrists?|arms?)\b"),
    w(r"\b(?:want|wanna|going) to die\b"),
)

WORSHIP: Tuple[Matcher, ...] = (
    # Direct praise
    w(rf"\b(?:praise|worship|adore|magnify|glorify|exalt|bless)\s+(?:you|him|the lord|{DEITY})\b"),
    w(r"\b(?:hallelujah|alleluia|hosanna)\b"),
    # "thank you lord", "give thanks to god"
    InOrder(r"\b(?:thank|thanks|thankful)\b", rf"\b{DEITY}\b"),
    # "god is good", "lord you are faithful"
    InOrder(rf"\b{DEITY}\b", r"\b(?:is|you're|you are)\b", r"\b(?:good|faithful|holy|worthy|mighty|awesome)\b"),
    InOrder(rf"\b{DEITY}\b", r"\b(?:got|has)\s+my\s+back\b"),
    InOrder(rf"\b{DEITY}\b", r"\b(?:with\s+me|for\s+me|by\s+my\s+side)\b"),
    # "holy, holy, holy"
    InOrder(r"\bholy\b", r"\bholy\b"),
)

REPENTANCE: Tuple[Matcher, ...] = (
    w(r"\b(?:repent(?:ance)?|turn\s+away|confess|confession)\b"),
    InOrder(r"\b(?:grace|mercy)\b", r"\b(?:through|in)\b", r"\b(?:christ|jesus)\b"),
    InOrder(r"\bhope\b", r"\b(?:christ|jesus|the lord)\b"),
)

LYRICS_LEXICON: Mapping[str, Tuple[Matcher, ...]] = MappingProxyType({
    "profanity": PROFANITY,
    "sexual": SEXUAL,
    "violence": VIOLENCE,
    "substances": SUBSTANCES,
    "occult": OCCULT,
    "blasphemy": BLASPHEMY,
    "selfharm": SELFHARM,
    "worship": WORSHIP,
    "repentance": REPENTANCE,
})


def match_any(patterns: Sequence[Matcher], text: str) -> List[str]:
    """
    Return the first literal match of every pattern that matches ``text``.

    Duplicates are dropped, keeping first-seen order. Never raises for
    ``str`` input; an empty list means no pattern matched.
    """
    found: List[str] = []
    for pattern in patterns:
        match = pattern.search(text)
        if match and match.group(0) not in found:
            found.append(match.group(0))
    return found

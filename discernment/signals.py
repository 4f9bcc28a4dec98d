"""
Discern - Signal Bundle

The single structured shape both extractors produce and the scorer consumes.
Absent categories are empty tuples, never missing keys or None.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

EXPLICIT_CATEGORIES: Tuple[str, ...] = ("language", "sexual", "violence", "substances", "occult")

THEME_WORSHIP = "worship"
THEME_REPENTANCE_HOPE = "repentance-hope"

CLAIM_WORKS_SALVATION = "works-based salvation"
CLAIM_UNIVERSALISM = "all paths lead to god"
CLAIM_REDUCED_CHRISTOLOGY = "jesus is just a teacher"
CLAIM_IDOLATRY = "idolatry"
CLAIM_SALVATION_BY_GRACE = "salvation by grace"
CLAIM_DEITY_OF_CHRIST = "deity of christ"


def unique(items: Iterable[str]) -> Tuple[str, ...]:
    """De-duplicate while keeping first-seen order."""
    return tuple(dict.fromkeys(items))


@dataclass(frozen=True)
class SignalBundle:
    """
    Extraction result for one piece of text.

    Attributes:
        explicit: category -> matched terms, always keyed by every name in
            ``EXPLICIT_CATEGORIES``
        blasphemy: matched blasphemous phrases
        selfharm: matched self-harm / suicide phrases
        themes: theme identifiers, no duplicates
        claims: doctrinal claim labels (general extractor only)
        bible_refs: literal scripture citations found in the text
    """
    explicit: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: {name: () for name in EXPLICIT_CATEGORIES}
    )
    blasphemy: Tuple[str, ...] = ()
    selfharm: Tuple[str, ...] = ()
    themes: Tuple[str, ...] = ()
    claims: Tuple[str, ...] = ()
    bible_refs: Tuple[str, ...] = ()

    @classmethod
    def build(
        cls,
        explicit: Optional[Mapping[str, Iterable[str]]] = None,
        blasphemy: Iterable[str] = (),
        selfharm: Iterable[str] = (),
        themes: Iterable[str] = (),
        claims: Iterable[str] = (),
        bible_refs: Iterable[str] = (),
    ) -> "SignalBundle":
        """Build a bundle, filling every explicit category and de-duplicating."""
        explicit = explicit or {}
        unknown = set(explicit) - set(EXPLICIT_CATEGORIES)
        if unknown:
            raise ValueError(f"Unknown explicit categories: {sorted(unknown)}")
        return cls(
            explicit={name: unique(explicit.get(name, ())) for name in EXPLICIT_CATEGORIES},
            blasphemy=unique(blasphemy),
            selfharm=unique(selfharm),
            themes=unique(themes),
            claims=unique(claims),
            bible_refs=unique(bible_refs),
        )

    def terms(self, category: str) -> Tuple[str, ...]:
        return self.explicit.get(category, ())

    def has_theme(self, theme: str) -> bool:
        return theme in self.themes

    def claims_matching(self, *needles: str) -> Tuple[str, ...]:
        """Claims containing any of ``needles`` as a substring."""
        return tuple(c for c in self.claims if any(n in c for n in needles))

    @property
    def is_empty(self) -> bool:
        return not (
            any(self.explicit.values())
            or self.blasphemy
            or self.selfharm
            or self.themes
            or self.claims
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "explicit": {name: list(terms) for name, terms in self.explicit.items()},
            "blasphemy": list(self.blasphemy),
            "selfharm": list(self.selfharm),
            "themes": list(self.themes),
            "claims": list(self.claims),
            "bibleRefs": list(self.bible_refs),
        }

"""
Discern - Rule Predicates

The single id -> predicate table the scorer evaluates. Adding a rule means
one YAML entry plus one entry here. Every id in ``PREDICATES`` must exist in
the loaded rule table or startup fails.
"""
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Mapping, Sequence

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


def _no_terms(signals: SignalBundle) -> Sequence[str]:
    return ()


@dataclass(frozen=True)
class RulePredicate:
    """Boolean test over a signal bundle plus the terms that explain it."""
    test: Callable[[SignalBundle], bool]
    terms: Callable[[SignalBundle], Sequence[str]] = _no_terms


def explicit(category: str) -> RulePredicate:
    return RulePredicate(
        test=lambda s: bool(s.terms(category)),
        terms=lambda s: s.terms(category),
    )


def claims(*needles: str) -> RulePredicate:
    return RulePredicate(
        test=lambda s: bool(s.claims_matching(*needles)),
        terms=lambda s: s.claims_matching(*needles),
    )


def theme_or_claim(themes: Sequence[str], needles: Sequence[str]) -> RulePredicate:
    return RulePredicate(
        test=lambda s: any(s.has_theme(t) for t in themes) or bool(s.claims_matching(*needles)),
        terms=lambda s: s.claims_matching(*needles),
    )


PREDICATES: Mapping[str, RulePredicate] = MappingProxyType({
    "explicit-language": explicit("language"),
    "explicit-sexual": explicit("sexual"),
    "explicit-violence": explicit("violence"),
    "substance-abuse": explicit("substances"),
    "occult-practices": explicit("occult"),
    "blasphemy": RulePredicate(test=lambda s: bool(s.blasphemy), terms=lambda s: s.blasphemy),
    "self-harm": RulePredicate(test=lambda s: bool(s.selfharm), terms=lambda s: s.selfharm),
    "false-gospel": claims(CLAIM_WORKS_SALVATION, CLAIM_UNIVERSALISM, CLAIM_REDUCED_CHRISTOLOGY),
    "idolatry-materialism": theme_or_claim(("idolatry", "materialism"), (CLAIM_IDOLATRY,)),
    "worship": RulePredicate(test=lambda s: s.has_theme(THEME_WORSHIP)),
    "repentance-hope": RulePredicate(test=lambda s: s.has_theme(THEME_REPENTANCE_HOPE)),
    "salvation-by-grace": theme_or_claim(("grace",), (CLAIM_SALVATION_BY_GRACE,)),
    "deity-of-christ": theme_or_claim(("christ deity",), (CLAIM_DEITY_OF_CHRIST,)),
})

# Static reasons shown when a rule fires
REASONS: Mapping[str, str] = MappingProxyType({
    "explicit-language": "Detected profanity / coarse talk.",
    "explicit-sexual": "Detected sexualized terms / objectification.",
    "explicit-violence": "Detected violent / graphic terms.",
    "substance-abuse": "Detected intoxication / drug abuse terms.",
    "occult-practices": "Detected witchcraft/divination/demonic references.",
    "blasphemy": "Detected irreverent/profane use of God's name or of Christ.",
    "self-harm": "Detected self-harm / suicide language.",
    "false-gospel": "Detected contradictions to salvation by grace.",
    "idolatry-materialism": "Detected idolatry/greed as ultimate good.",
    "worship": "Detected worship/reverence toward God.",
    "repentance-hope": "Detected repentance/hope centered on Christ.",
    "salvation-by-grace": "Affirms salvation by grace alone.",
    "deity-of-christ": "Affirms Jesus' full deity.",
})

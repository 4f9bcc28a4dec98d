"""
Discern - Scorer

Maps a signal bundle and the rule table to a base score and an ordered list
of hits. Starts from the neutral midpoint, adds the weight of every firing
rule, and clamps to [0, 100]. Pure and deterministic: hits come out in rule
table order.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from discernment.predicates import PREDICATES, REASONS, RulePredicate
from discernment.rules import Rule, RuleTable
from discernment.signals import SignalBundle

NEUTRAL_SCORE = 50
MIN_SCORE = 0
MAX_SCORE = 100


def clamp(n: int, lo: int = MIN_SCORE, hi: int = MAX_SCORE) -> int:
    return max(lo, min(hi, n))


@dataclass(frozen=True)
class Hit:
    """A rule that fired for one input."""
    rule_id: str
    weight: int
    refs: Tuple[str, ...]
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ruleId": self.rule_id,
            "weight": self.weight,
            "refs": list(self.refs),
            "reason": self.reason,
        }


@dataclass(frozen=True)
class ScoreResult:
    """Score in [0, 100] plus the hits that produced it."""
    total: int
    hits: Tuple[Hit, ...] = field(default_factory=tuple)

    @property
    def refs(self) -> Tuple[str, ...]:
        """Unique scripture anchors across all hits, first-seen order."""
        return tuple(dict.fromkeys(ref for hit in self.hits for ref in hit.refs))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "hits": [hit.to_dict() for hit in self.hits],
        }


def build_reason(rule: Rule, terms: Sequence[str]) -> str:
    base = REASONS.get(rule.id) or rule.description or rule.title
    if terms:
        return f"{base} Matched: {', '.join(terms)}"
    return base


def score(
    signals: SignalBundle,
    rules: RuleTable,
    predicates: Optional[Mapping[str, RulePredicate]] = None,
) -> ScoreResult:
    """
    Score a signal bundle against the rule table.

    Rules without a predicate never fire. There is no early exit: every
    rule is evaluated.
    """
    predicates = PREDICATES if predicates is None else predicates

    hits = []
    for rule in rules:
        predicate = predicates.get(rule.id)
        if predicate is None or not predicate.test(signals):
            continue
        hits.append(Hit(
            rule_id=rule.id,
            weight=rule.weight,
            refs=rule.anchors,
            reason=build_reason(rule, predicate.terms(signals)),
        ))

    total = clamp(NEUTRAL_SCORE + sum(h.weight for h in hits))
    return ScoreResult(total=total, hits=tuple(hits))

"""
Discern - Score Calibration

Post-processes a raw score (first matching branch wins):

1. Any negative hit caps the total at ``max(15, 35 - 5 * (negatives - 1))``.
2. Otherwise any positive hit floors it at ``80 + min(positives - 1, 2) * 5``.
3. Otherwise the total is clamped into the ambiguous band [35, 75].

Explicit content always dominates surrounding positive filler; signal-free
text never reads as clearly safe or clearly unsafe. Rule ids outside both
sets do not take part in calibration.
"""
from dataclasses import replace
from typing import FrozenSet

from discernment.scoring import ScoreResult, clamp

NEGATIVE_RULES: FrozenSet[str] = frozenset({
    "explicit-language",
    "explicit-sexual",
    "explicit-violence",
    "substance-abuse",
    "occult-practices",
    "blasphemy",
    "self-harm",
    "false-gospel",
    "idolatry-materialism",
})

POSITIVE_RULES: FrozenSet[str] = frozenset({
    "worship",
    "repentance-hope",
    "salvation-by-grace",
    "deity-of-christ",
})

NEGATIVE_CAP = 35
NEGATIVE_CAP_STEP = 5
NEGATIVE_CAP_MIN = 15

POSITIVE_FLOOR = 80
POSITIVE_FLOOR_STEP = 5
POSITIVE_FLOOR_MAX_STEPS = 2

NO_SIGNAL_BAND = (35, 75)


def negative_cap(negatives: int) -> int:
    return max(NEGATIVE_CAP_MIN, NEGATIVE_CAP - NEGATIVE_CAP_STEP * (negatives - 1))


def positive_floor(positives: int) -> int:
    return POSITIVE_FLOOR + min(positives - 1, POSITIVE_FLOOR_MAX_STEPS) * POSITIVE_FLOOR_STEP


def calibrate(result: ScoreResult) -> ScoreResult:
    """Return a calibrated copy of ``result``; the input is not modified."""
    negatives = sum(1 for h in result.hits if h.rule_id in NEGATIVE_RULES)
    positives = sum(1 for h in result.hits if h.rule_id in POSITIVE_RULES)

    total = result.total
    if negatives:
        total = min(total, negative_cap(negatives))
    elif positives:
        total = max(total, positive_floor(positives))
    else:
        total = clamp(total, *NO_SIGNAL_BAND)

    return replace(result, total=clamp(total))

"""
Discern - Discernment Core

Deterministic, rule-based scoring of lyrics and free text from a Christian
worldview.
"""
from discernment.calibration import calibrate
from discernment.engine import AnalysisResult, DiscernmentEngine
from discernment.extract import extract_lyrics_signals, extract_text_signals
from discernment.normalizer import normalize
from discernment.rules import Rule, RuleCategory, RuleTable, load_rule_table, parse_rule_table
from discernment.scoring import Hit, ScoreResult, score
from discernment.signals import SignalBundle

__all__ = [
    "AnalysisResult",
    "DiscernmentEngine",
    "Hit",
    "Rule",
    "RuleCategory",
    "RuleTable",
    "ScoreResult",
    "SignalBundle",
    "calibrate",
    "extract_lyrics_signals",
    "extract_text_signals",
    "load_rule_table",
    "normalize",
    "parse_rule_table",
    "score",
]

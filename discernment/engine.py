"""
Discern - Discernment Engine

Entry point consumed by the API and CLI. Ties the pipeline together:

    normalize -> extract -> score -> calibrate -> resolve scripture

Everything up to calibration is synchronous and CPU only. Verse resolution
is the single suspension point and starts only after the hit list is final.
The engine is built explicitly and handed to its callers; it holds no
module-level state.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

import httpx

from config import DEFAULT_RULES_PATH, Config
from core.errors import DiscernConfigError, DiscernValidationError
from discernment.calibration import NEGATIVE_RULES, POSITIVE_RULES, calibrate
from discernment.extract import extract_lyrics_signals, extract_text_signals
from discernment.rules import RuleTable, load_rule_table
from discernment.scoring import ScoreResult, score
from discernment.signals import SignalBundle
from integrations.scripture import ScriptureResolver, VerseResult
from observability import create_span, get_logger

logger = get_logger("discern.engine")

MODE_LYRICS = "lyrics"
MODE_TEXT = "text"

EXTRACTORS: Dict[str, Callable[[str], SignalBundle]] = {
    MODE_LYRICS: extract_lyrics_signals,
    MODE_TEXT: extract_text_signals,
}


@dataclass(frozen=True)
class AnalysisResult:
    """Signals, calibrated score and resolved verses for one input."""
    signals: SignalBundle
    score: ScoreResult
    verses: Dict[str, VerseResult] = field(default_factory=dict)
    meta: Mapping[str, Any] = field(default_factory=dict)

    @property
    def negative_hits(self) -> int:
        return sum(1 for h in self.score.hits if h.rule_id in NEGATIVE_RULES)

    @property
    def positive_hits(self) -> int:
        return sum(1 for h in self.score.hits if h.rule_id in POSITIVE_RULES)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signals": self.signals.to_dict(),
            "score": self.score.to_dict(),
            "verses": {ref: v.to_dict() for ref, v in self.verses.items()},
            "meta": dict(self.meta),
        }


class DiscernmentEngine:
    """
    Scores lyrics and free text against the rule table.

    Usage:
        engine = DiscernmentEngine.from_config(get_config())
        result = await engine.analyze_text(lyrics)
        await engine.aclose()
    """

    def __init__(
        self,
        resolver: ScriptureResolver,
        rules: Optional[RuleTable] = None,
        rules_path: Union[str, Path] = DEFAULT_RULES_PATH,
    ):
        self.resolver = resolver
        self.rules_path = Path(rules_path)
        self._rules = rules

    @classmethod
    def from_config(
        cls,
        config: Config,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "DiscernmentEngine":
        """Build and initialize an engine; raises if the rule table is invalid."""
        engine = cls(
            resolver=ScriptureResolver.from_config(config.scripture, http_client=http_client),
            rules_path=config.rules.path,
        )
        return engine.init()

    def init(self) -> "DiscernmentEngine":
        """Load the rule table if one was not supplied. Safe to call twice."""
        if self._rules is None:
            self._rules = load_rule_table(self.rules_path)
        logger.info("Discernment engine ready", rule_count=len(self._rules), source=self._rules.source)
        return self

    @property
    def rules(self) -> RuleTable:
        if self._rules is None:
            raise DiscernConfigError(
                "Discernment engine used before init()",
                config_key="rules",
                suggestions=["Call DiscernmentEngine.init() at startup"],
            )
        return self._rules

    def evaluate(self, raw_text: str, mode: str = MODE_LYRICS) -> Tuple[SignalBundle, ScoreResult]:
        extractor = EXTRACTORS.get(mode)
        if extractor is None:
            raise DiscernValidationError(
                f"Unknown analysis mode: {mode}",
                field_name="mode",
                actual_value=mode,
                suggestions=[f"Use one of: {', '.join(EXTRACTORS)}"],
            )
        signals = extractor(raw_text or "")
        return signals, calibrate(score(signals, self.rules))

    def score_lyrics(self, raw_text: str) -> Tuple[SignalBundle, ScoreResult]:
        return self.evaluate(raw_text, MODE_LYRICS)

    def score_text(self, raw_text: str) -> Tuple[SignalBundle, ScoreResult]:
        return self.evaluate(raw_text, MODE_TEXT)

    async def analyze_text(
        self,
        raw_text: str,
        media_meta: Optional[Mapping[str, Any]] = None,
        *,
        mode: str = MODE_LYRICS,
        translation: Optional[str] = None,
    ) -> AnalysisResult:
        """
        Score ``raw_text`` and resolve the scripture behind every hit.

        Citations found in free text are resolved alongside the hit anchors.
        Empty text is valid and lands in the no-signal band.
        """
        with create_span("discernment.analyze", attributes={"discernment.mode": mode}) as span:
            signals, result = self.evaluate(raw_text, mode)
            span.set_attribute("discernment.hit_count", len(result.hits))
            span.set_attribute("discernment.total", result.total)

            refs = list(result.refs) + list(signals.bible_refs)
            verses = await self.resolver.resolve(refs, translation)

        logger.info(
            "Text analyzed",
            mode=mode,
            total=result.total,
            hit_count=len(result.hits),
            verse_count=len(verses),
        )
        return AnalysisResult(
            signals=signals,
            score=result,
            verses=verses,
            meta=dict(media_meta or {}),
        )

    async def aclose(self) -> None:
        await self.resolver.aclose()

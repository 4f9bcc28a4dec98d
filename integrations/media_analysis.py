"""
Discern - Generative Media Analysis

Discernment for non-song media (movies, shows, books) through an OpenAI chat
model returning JSON. Unlike the lyrics engine this path is not
deterministic; it always returns a renderable ``MediaAnalysis``, falling back
to a neutral result when the service is unconfigured or fails.
"""
import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from config import LLMConfig
from core.async_utils import with_timeout
from core.errors import DiscernIntegrationError
from observability import create_span, get_logger

logger = get_logger("discern.integrations.media_analysis")

SYSTEM_PROMPT = (
    "You are a careful, concise Christian media discernment assistant. "
    "You speak with truth and grace."
)

UNAVAILABLE_MESSAGE = "AI service is unavailable right now."
ERROR_MESSAGE = (
    "We encountered an issue while generating a full discernment analysis for "
    "this title. Please try again later, or use prayerful wisdom and biblical "
    "principles as you decide whether to watch or read this content."
)
MISSING_ANALYSIS = "No analysis was provided."


class Alternative(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = ""
    reason: str = ""

    @field_validator("title", "reason", mode="before")
    @classmethod
    def as_text(cls, v: Any) -> str:
        return "" if v is None else str(v)


class MediaAnalysis(BaseModel):
    """Structured result of a generative media analysis."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    discernment_score: int = Field(default=50, ge=0, le=100)
    faith_analysis: str = MISSING_ANALYSIS
    tags: List[str] = Field(default_factory=list)
    verse_text: str = ""
    verse_reference: str = ""
    alternatives: List[Alternative] = Field(default_factory=list)

    @classmethod
    def fallback(cls, message: str, tag: str) -> "MediaAnalysis":
        return cls(faith_analysis=message, tags=[tag])

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


def build_prompt(
    title: str,
    media_type: str = "movie",
    release_year: Optional[str] = None,
    overview: Optional[str] = None,
) -> str:
    is_book = media_type == "book"
    context = f'"{title}" (a {media_type}'
    if release_year:
        context += f", {'published' if is_book else 'released'} {release_year}"
    context += ")"
    if overview:
        context += f"\n\n{'Synopsis' if is_book else 'Plot Summary'}: {overview}"

    return f"""
You are a Christian media discernment expert. Analyze {context} and provide
a concise assessment from a biblical worldview.

Return your answer as **valid JSON** ONLY, with this exact shape:

{{
  "discernmentScore": <number 0-100>,
  "faithAnalysis": "<2 short paragraphs, max 4-5 sentences total>",
  "tags": ["<short tag>", "..."],
  "verseText": "<Bible verse text, NLT>",
  "verseReference": "<Book chapter:verse (NLT)>",
  "alternatives": [
    {{ "title": "<title>", "reason": "<1 short sentence (max 15 words)>" }},
    {{ "title": "<title>", "reason": "<1 short sentence (max 15 words)>" }},
    {{ "title": "<title>", "reason": "<1 short sentence (max 15 words)>" }}
  ]
}}

Scoring guide:
- 85-100: Faith-safe / uplifting / aligns with Christian values
- 65-84: Mixed / some concerns / use caution
- 0-64: Significant concern / not recommended for believers

In "faithAnalysis":
- Briefly highlight any occult, sexual, violent, or anti-biblical content.
- Then give clear, pastoral guidance for Christians (no fear-mongering).
""".strip()


def _coerce_score(value: Any) -> int:
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return 50
    return max(0, min(100, score))


def parse_media_analysis(raw: str) -> MediaAnalysis:
    """
    Parse the model's JSON reply, coercing missing or malformed fields.

    Raises:
        DiscernIntegrationError: If ``raw`` is not a JSON object.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise DiscernIntegrationError(
            "Failed to parse media analysis JSON",
            service="openai",
            cause=e,
        ) from e
    if not isinstance(data, dict):
        raise DiscernIntegrationError("Media analysis JSON is not an object", service="openai")

    tags = data.get("tags")
    alternatives = data.get("alternatives")
    analysis = data.get("faithAnalysis")

    return MediaAnalysis(
        discernment_score=_coerce_score(data.get("discernmentScore", 50)),
        faith_analysis=MISSING_ANALYSIS if analysis is None else str(analysis),
        tags=[str(t) for t in tags] if isinstance(tags, list) else [],
        verse_text=str(data.get("verseText") or ""),
        verse_reference=str(data.get("verseReference") or ""),
        alternatives=[
            Alternative.model_validate(alt if isinstance(alt, dict) else {})
            for alt in alternatives
        ] if isinstance(alternatives, list) else [],
    )


class MediaAnalyzer:
    """OpenAI-backed media discernment."""

    def __init__(self, config: LLMConfig, client: Optional[Any] = None):
        self.config = config
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> Optional[Any]:
        if self._client is not None:
            return self._client
        if not self.config.enabled:
            return None
        from openai import AsyncOpenAI

        self._client = AsyncOpenAI(
            api_key=self.config.openai_api_key,
            timeout=self.config.timeout_seconds,
        )
        return self._client

    async def analyze(
        self,
        title: str,
        media_type: str = "movie",
        release_year: Optional[str] = None,
        overview: Optional[str] = None,
    ) -> MediaAnalysis:
        client = self._get_client()
        if client is None:
            logger.warning("Media analysis requested without OPENAI_API_KEY")
            return MediaAnalysis.fallback(UNAVAILABLE_MESSAGE, "service-unavailable")

        prompt = build_prompt(title, media_type, release_year, overview)
        logger.info(
            "Analyzing media",
            media_type=media_type,
            release_year=release_year or "N/A",
        )

        with create_span("media.analyze", attributes={"media.type": media_type}):
            try:
                completion = await with_timeout(
                    client.chat.completions.create(
                        model=self.config.openai_model,
                        temperature=self.config.openai_temperature,
                        messages=[
                            {"role": "system", "content": SYSTEM_PROMPT},
                            {"role": "user", "content": prompt},
                        ],
                        response_format={"type": "json_object"},
                    ),
                    self.config.timeout_seconds,
                    operation="media analysis",
                )
                raw = (completion.choices[0].message.content or "").strip()
                return parse_media_analysis(raw)
            except Exception as e:
                logger.error("Media analysis failed", error=str(e), error_type=type(e).__name__)
                return MediaAnalysis.fallback(ERROR_MESSAGE, "analysis-error")

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.close()

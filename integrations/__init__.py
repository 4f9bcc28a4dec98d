"""
Discern - External Integrations

Collaborators behind the discernment engine and API:
- Scripture lookup: verse text for hit anchors, cached and concurrent
- Lyrics providers: lyrics.ovh, Musixmatch, manual entry
- Media analysis: generative discernment for non-song media
"""
from integrations.lyrics import (
    LyricsOvhProvider,
    LyricsProvider,
    LyricsResult,
    ManualProvider,
    MusixmatchProvider,
    TrackMeta,
    build_lyrics_provider,
)
from integrations.media_analysis import (
    Alternative,
    MediaAnalysis,
    MediaAnalyzer,
    build_prompt,
    parse_media_analysis,
)
from integrations.scripture import (
    ScriptureClient,
    ScriptureResolver,
    VerseResult,
    cache_key,
    normalize_reference,
)

__all__ = [
    "LyricsOvhProvider",
    "LyricsProvider",
    "LyricsResult",
    "ManualProvider",
    "MusixmatchProvider",
    "TrackMeta",
    "build_lyrics_provider",
    "Alternative",
    "MediaAnalysis",
    "MediaAnalyzer",
    "build_prompt",
    "parse_media_analysis",
    "ScriptureClient",
    "ScriptureResolver",
    "VerseResult",
    "cache_key",
    "normalize_reference",
]

"""
Discern - Lyrics Providers

Fetch song lyrics for the lyrics analysis endpoint. Providers return
``None`` when lyrics cannot be found or the service fails; the caller then
asks the user to paste lyrics manually.

Providers:
- LyricsOvhProvider: free lyrics.ovh API, no authentication
- MusixmatchProvider: Musixmatch API (requires API key)
- ManualProvider: wraps user-supplied lyrics
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from config import LyricsConfig
from observability import get_logger

logger = get_logger("discern.integrations.lyrics")


@dataclass(frozen=True)
class TrackMeta:
    title: str
    artist: str
    album: Optional[str] = None


@dataclass(frozen=True)
class LyricsResult:
    lyrics: str
    provider: str
    cached: bool = False
    track_meta: Optional[TrackMeta] = None

    def to_dict(self) -> Dict[str, Any]:
        meta = None
        if self.track_meta:
            meta = {
                "title": self.track_meta.title,
                "artist": self.track_meta.artist,
                "album": self.track_meta.album,
            }
        return {
            "lyrics": self.lyrics,
            "provider": self.provider,
            "cached": self.cached,
            "trackMeta": meta,
        }


def _mapping(value: Any) -> Dict[str, Any]:
    """``value`` when it is a JSON object, else an empty dict."""
    return value if isinstance(value, dict) else {}


class LyricsProvider(ABC):
    """Base class for lyrics sources."""

    name: str = "base"

    @abstractmethod
    async def search(self, artist: str, title: str) -> Optional[LyricsResult]:
        """Find lyrics for a track, or ``None``."""

    async def aclose(self) -> None:
        return None


class _HttpProvider(LyricsProvider):
    """Shared httpx client handling for HTTP-backed providers."""

    def __init__(self, timeout_seconds: float = 10.0, http_client: Optional[httpx.AsyncClient] = None):
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds))

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class LyricsOvhProvider(_HttpProvider):
    """lyrics.ovh provider (https://lyricsovh.docs.apiary.io/)."""

    name = "lyricsovh"
    base_url = "https://api.lyrics.ovh/v1"

    async def search(self, artist: str, title: str) -> Optional[LyricsResult]:
        url = f"{self.base_url}/{quote(artist.strip(), safe='')}/{quote(title.strip(), safe='')}"
        try:
            response = await self._client.get(url)
            if not response.is_success:
                logger.warning("Lyrics.ovh API error", status_code=response.status_code)
                return None
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Lyrics.ovh request failed", error=str(e))
            return None

        lyrics = _mapping(data).get("lyrics")
        if not isinstance(lyrics, str) or not lyrics.strip():
            logger.info("Lyrics.ovh returned no lyrics", artist=artist, title=title)
            return None

        return LyricsResult(
            lyrics=self.clean_lyrics(lyrics),
            provider=self.name,
            track_meta=TrackMeta(title=title, artist=artist),
        )

    @staticmethod
    def clean_lyrics(lyrics: str) -> str:
        lyrics = lyrics.replace("\r\n", "\n")
        return re.sub(r"\n{3,}", "\n\n", lyrics).strip()


MUSIXMATCH_FOOTER = re.compile(
    r"\*{7}[\s\S]*?This Lyrics is NOT for Commercial use[\s\S]*?\*{7}"
)

class MusixmatchProvider(_HttpProvider):
    """Musixmatch provider: track search, then lyrics by track id."""

    name = "musixmatch"
    base_url = "https://api.musixmatch.com/ws/1.1"

    def __init__(self, api_key: str, **kwargs: Any):
        super().__init__(**kwargs)
        self.api_key = api_key

    async def _call(self, method: str, params: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            response = await self._client.get(
                f"{self.base_url}/{method}",
                params={**params, "apikey": self.api_key},
            )
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Musixmatch request failed", method=method, error=str(e))
            return None

        message = _mapping(_mapping(data).get("message"))
        header = _mapping(message.get("header"))
        if header.get("status_code") != 200:
            logger.warning("Musixmatch call failed", method=method, status_code=header.get("status_code"))
            return None
        return _mapping(message.get("body"))

    async def search(self, artist: str, title: str) -> Optional[LyricsResult]:
        body = await self._call("track.search", {"q_artist": artist, "q_track": title, "page_size": 1})
        track_list = (body or {}).get("track_list")
        if not isinstance(track_list, list) or not track_list:
            return None
        track = _mapping(_mapping(track_list[0]).get("track"))
        if track.get("track_id") is None:
            logger.warning("Musixmatch track without id", artist=artist, title=title)
            return None

        body = await self._call("track.lyrics.get", {"track_id": track["track_id"]})
        lyrics_body = _mapping(_mapping(body).get("lyrics")).get("lyrics_body")
        if not isinstance(lyrics_body, str) or not lyrics_body.strip():
            return None

        return LyricsResult(
            lyrics=MUSIXMATCH_FOOTER.sub("", lyrics_body).strip(),
            provider=self.name,
            track_meta=TrackMeta(
                title=str(track.get("track_name") or title),
                artist=str(track.get("artist_name") or artist),
                album=track.get("album_name"),
            ),
        )


class ManualProvider(LyricsProvider):
    """User-pasted lyrics. Never searches."""

    name = "manual"

    async def search(self, artist: str, title: str) -> Optional[LyricsResult]:
        return None

    def create_result(
        self,
        lyrics: str,
        artist: Optional[str] = None,
        title: Optional[str] = None,
    ) -> LyricsResult:
        meta = TrackMeta(title=title, artist=artist) if artist and title else None
        return LyricsResult(lyrics=lyrics, provider=self.name, track_meta=meta)


def build_lyrics_provider(
    config: LyricsConfig,
    http_client: Optional[httpx.AsyncClient] = None,
) -> LyricsProvider:
    """Musixmatch when configured with a key, otherwise lyrics.ovh."""
    if config.provider == "musixmatch" and config.api_key:
        return MusixmatchProvider(
            config.api_key,
            timeout_seconds=config.timeout_seconds,
            http_client=http_client,
        )
    if config.provider == "musixmatch":
        logger.warning("Musixmatch selected without LYRICS_API_KEY; using lyrics.ovh")
    return LyricsOvhProvider(timeout_seconds=config.timeout_seconds, http_client=http_client)

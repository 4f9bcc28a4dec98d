"""
Tests for the HTTP API.

Collaborators are injected into ``create_app`` so no request leaves the
process: scripture goes through the in-memory server and lyrics come from
a scripted provider.
"""
from typing import Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from api.main import LYRICS_UNAVAILABLE_MESSAGE, create_app, lyrics_cache_key
from config import Config, LLMConfig
from core.errors import DiscernError, ErrorContext
from integrations.lyrics import LyricsProvider, LyricsResult
from integrations.media_analysis import UNAVAILABLE_MESSAGE, MediaAnalyzer


class ScriptedLyricsProvider(LyricsProvider):
    """Returns canned lyrics keyed by (artist, title) and counts lookups."""

    name = "scripted"

    def __init__(self, songs: Optional[Dict[Tuple[str, str], str]] = None):
        self.songs = songs or {}
        self.calls: List[Tuple[str, str]] = []

    async def search(self, artist: str, title: str) -> Optional[LyricsResult]:
        self.calls.append((artist, title))
        lyrics = self.songs.get((artist, title))
        if lyrics is None:
            return None
        return LyricsResult(lyrics=lyrics, provider=self.name)


@pytest.fixture
def lyrics_provider(worship_lyrics, explicit_lyrics) -> ScriptedLyricsProvider:
    return ScriptedLyricsProvider({
        ("Choir", "Praise Song"): worship_lyrics,
        ("Band", "Dark Song"): explicit_lyrics,
    })


@pytest.fixture
def client(engine, lyrics_provider):
    config = Config(llm=LLMConfig(openai_api_key=""))
    app = create_app(
        config,
        engine=engine,
        lyrics_provider=lyrics_provider,
        media_analyzer=MediaAnalyzer(config.llm),
    )
    with TestClient(app) as test_client:
        yield test_client


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["components"]["rules"] == "loaded (13)"
        assert data["components"]["openai"] == "unconfigured"
        assert data["components"]["lyrics_provider"] == "scripted"

    def test_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"
        assert response.headers["X-Response-Time"].endswith("ms")


class TestLyricsEndpoint:
    """POST /api/lyrics/analyze"""

    def test_fetched_lyrics_are_scored(self, client, lyrics_provider):
        response = client.post(
            "/api/lyrics/analyze",
            json={"title": "Praise Song", "artist": "Choir"},
        )
        assert response.status_code == 200
        data = response.json()

        assert data["lyricsAvailable"] is True
        assert data["provider"] == "scripted"
        assert data["cached"] is False
        assert data["meta"] == {"title": "Praise Song", "artist": "Choir"}
        assert data["analysis"]["score"]["total"] == 80
        assert [h["ruleId"] for h in data["analysis"]["score"]["hits"]] == ["worship"]
        assert set(data["analysis"]["verses"]) == {"Psalm 95:6", "John 4:24", "Revelation 4:8"}

    def test_explicit_lyrics_capped(self, client):
        response = client.post(
            "/api/lyrics/analyze",
            json={"title": "Dark Song", "artist": "Band"},
        )
        score = response.json()["analysis"]["score"]
        assert score["total"] == 22
        assert score["total"] <= 35

    def test_second_request_served_from_cache(self, client, lyrics_provider):
        body = {"title": "Praise Song", "artist": "Choir"}
        client.post("/api/lyrics/analyze", json=body)
        second = client.post("/api/lyrics/analyze", json=body).json()

        assert second["cached"] is True
        assert second["analysis"]["score"]["total"] == 80
        assert lyrics_provider.calls == [("Choir", "Praise Song")]

    def test_lyrics_unavailable(self, client):
        response = client.post(
            "/api/lyrics/analyze",
            json={"title": "Unknown", "artist": "Nobody"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["lyricsAvailable"] is False
        assert data["message"] == LYRICS_UNAVAILABLE_MESSAGE
        assert "analysis" not in data

    def test_manual_lyrics_skip_provider(self, client, lyrics_provider, worship_lyrics):
        response = client.post(
            "/api/lyrics/analyze",
            json={"title": "Unknown", "artist": "Nobody", "rawLyrics": worship_lyrics},
        )
        data = response.json()
        assert data["lyricsAvailable"] is True
        assert data["provider"] == "manual"
        assert data["analysis"]["score"]["total"] == 80
        assert lyrics_provider.calls == []

    def test_manual_lyrics_are_cached(self, client, lyrics_provider, worship_lyrics):
        client.post(
            "/api/lyrics/analyze",
            json={"title": "Unknown", "artist": "Nobody", "rawLyrics": worship_lyrics},
        )
        data = client.post(
            "/api/lyrics/analyze",
            json={"title": "unknown", "artist": "  NOBODY "},
        ).json()
        assert data["cached"] is True
        assert data["provider"] == "manual"
        assert lyrics_provider.calls == []

    @pytest.mark.parametrize("body", [
        {"title": "", "artist": "Choir"},
        {"title": "Praise Song", "artist": "   "},
        {"artist": "Choir"},
    ])
    def test_invalid_request(self, client, lyrics_provider, body):
        response = client.post("/api/lyrics/analyze", json=body)
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"
        assert lyrics_provider.calls == []


class TestErrorResponses:
    """Failures inside the engine are server errors with a minimal body."""

    def test_internal_value_error_is_500(self, client, engine, monkeypatch):
        async def broken(*args, **kwargs):
            raise ValueError("bad internal state")

        monkeypatch.setattr(engine, "analyze_text", broken)
        response = client.post(
            "/api/lyrics/analyze",
            json={"title": "Praise Song", "artist": "Choir"},
        )

        assert response.status_code == 500
        assert response.json()["error"] == "Internal error"

    def test_error_details_stay_server_side(self, client, engine, monkeypatch):
        async def broken(*args, **kwargs):
            raise DiscernError(
                "Scoring failed",
                context=ErrorContext(
                    operation="discernment.analyze",
                    component="DiscernmentEngine",
                    stack_trace="Traceback (most recent call last): ...",
                ),
                cause=RuntimeError("secret detail"),
            )

        monkeypatch.setattr(engine, "analyze_text", broken)
        response = client.post("/api/text/analyze", json={"text": "some text"})

        assert response.status_code == 500
        assert response.json() == {
            "error": "Internal error",
            "error_code": "DISCERN_ERROR",
            "message": "Scoring failed",
        }
        assert "Traceback" not in response.text
        assert "secret detail" not in response.text


class TestTextEndpoint:
    """POST /api/text/analyze"""

    def test_scores_text(self, client):
        response = client.post(
            "/api/text/analyze",
            json={"text": "A story of a family saved by grace through faith.", "title": "Story"},
        )
        assert response.status_code == 200
        data = response.json()
        assert "salvation-by-grace" in [h["ruleId"] for h in data["score"]["hits"]]
        assert data["score"]["total"] >= 80
        assert data["meta"] == {"title": "Story"}

    def test_citations_resolved(self, client, scripture_server):
        response = client.post(
            "/api/text/analyze",
            json={"text": "The sermon was on John 3:16 and little else."},
        )
        data = response.json()
        assert data["signals"]["bibleRefs"] == ["John 3:16"]
        assert data["verses"]["John 3:16"]["text"] == "Text of John 3:16"

    def test_empty_text_rejected(self, client):
        response = client.post("/api/text/analyze", json={"text": "  "})
        assert response.status_code == 400


class TestMediaEndpoint:
    """POST /api/analyze"""

    def test_without_api_key(self, client):
        response = client.post(
            "/api/analyze",
            json={"title": "The Matrix", "mediaType": "movie", "releaseYear": "1999"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "The Matrix"
        assert data["mediaType"] == "movie"
        assert data["discernmentScore"] == 50
        assert data["faithAnalysis"] == UNAVAILABLE_MESSAGE
        assert data["tags"] == ["service-unavailable"]

    def test_missing_title(self, client):
        response = client.post("/api/analyze", json={"mediaType": "book"})
        assert response.status_code == 400


class TestScriptureEndpoint:
    def test_lookup(self, client):
        response = client.get("/api/scripture/John 3:16", params={"translation": "KJV"})
        assert response.status_code == 200
        data = response.json()
        assert data == {
            "reference": "John 3:16",
            "text": "Text of John 3:16",
            "translation": "KJV",
            "resolved": True,
        }

    def test_failed_lookup_returns_placeholder(self, client, scripture_server):
        scripture_server.fail("Romans 1:1", 503)
        data = client.get("/api/scripture/Romans 1:1").json()
        assert data["resolved"] is False
        assert data["text"] == "[Unable to load Romans 1:1]"


class TestCacheKey:
    def test_case_and_whitespace_insensitive(self):
        assert lyrics_cache_key(" The  Band", "Song ") == lyrics_cache_key("the band", "song")

"""
Tests for the scripture client and resolver.
"""
import httpx
import pytest

from core.cache import LRUCache
from core.errors import DiscernIntegrationError, DiscernTimeoutError
from integrations.scripture import (
    ScriptureClient,
    ScriptureResolver,
    VerseResult,
    cache_key,
    normalize_reference,
)


def _client(handler) -> ScriptureClient:
    return ScriptureClient(
        base_url="https://scripture.test/",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


class TestHelpers:
    def test_normalize_reference(self):
        assert normalize_reference("  John   3:16 ") == "John 3:16"

    def test_cache_key(self):
        assert cache_key("John 3:16", "WEB") == "WEB:John 3:16"

    def test_placeholder(self):
        verse = VerseResult.placeholder("John 3:16", "WEB")
        assert verse.text == "[Unable to load John 3:16]"
        assert not verse.resolved
        assert verse.to_dict() == {
            "reference": "John 3:16",
            "text": "[Unable to load John 3:16]",
            "translation": "WEB",
        }


class TestScriptureClient:
    """Tests for ScriptureClient.fetch()."""

    @pytest.mark.asyncio
    async def test_fetch_builds_url(self):
        seen = []

        def handler(request):
            seen.append(request.url.path)
            return httpx.Response(200, json={"text": "For God so loved the world"})

        verse = await _client(handler).fetch(" John 3:16 ", "WEB")

        assert verse == VerseResult("John 3:16", "For God so loved the world", "WEB")
        assert seen == ["/api/WEB/John 3:16"]

    @pytest.mark.asyncio
    async def test_fetch_reads_verse_field(self):
        client = _client(lambda request: httpx.Response(200, json={"verse": "Jesus wept."}))
        verse = await client.fetch("John 11:35")
        assert verse.text == "Jesus wept."

    @pytest.mark.asyncio
    async def test_non_success_status(self):
        client = _client(lambda request: httpx.Response(404, json={}))
        with pytest.raises(DiscernIntegrationError) as exc_info:
            await client.fetch("Hezekiah 1:1")
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        httpx.Response(200, content=b"<html>"),
        httpx.Response(200, json=["not", "an", "object"]),
        httpx.Response(200, json={"reference": "John 3:16"}),
        httpx.Response(200, json={"text": "   "}),
        httpx.Response(200, json={"text": 316}),
    ])
    async def test_malformed_payload(self, response):
        client = _client(lambda request: response)
        with pytest.raises(DiscernIntegrationError):
            await client.fetch("John 3:16")

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(DiscernIntegrationError) as exc_info:
            await _client(handler).fetch("John 3:16")
        assert exc_info.value.recoverable

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(DiscernTimeoutError):
            await _client(handler).fetch("John 3:16")

    @pytest.mark.asyncio
    async def test_search_not_supported(self):
        client = _client(lambda request: httpx.Response(500))
        assert await client.search("love") == []


class TestScriptureResolver:
    """Tests for ScriptureResolver caching and fallbacks."""

    @pytest.mark.asyncio
    async def test_resolve_deduplicates(self, scripture_resolver, scripture_server):
        verses = await scripture_resolver.resolve(
            ["John 3:16", "John  3:16", " John 3:16", "Romans 8:28"]
        )

        assert list(verses) == ["John 3:16", "Romans 8:28"]
        assert sorted(scripture_server.calls) == ["John 3:16", "Romans 8:28"]

    @pytest.mark.asyncio
    async def test_resolve_empty(self, scripture_resolver, scripture_server):
        assert await scripture_resolver.resolve([]) == {}
        assert await scripture_resolver.resolve(["", "  "]) == {}
        assert scripture_server.calls == []

    @pytest.mark.asyncio
    async def test_cache_hit_skips_fetch(self, scripture_resolver, scripture_server):
        await scripture_resolver.get_verse("John 3:16")
        await scripture_resolver.get_verse("John 3:16")

        assert scripture_server.calls == ["John 3:16"]
        stats = scripture_resolver.get_stats()
        assert stats.hits == 1
        assert stats.misses == 1

    @pytest.mark.asyncio
    async def test_cache_keyed_by_translation(self, scripture_resolver, scripture_server):
        web = await scripture_resolver.get_verse("John 3:16")
        kjv = await scripture_resolver.get_verse("John 3:16", "KJV")

        assert (web.translation, kjv.translation) == ("WEB", "KJV")
        assert len(scripture_server.calls) == 2

    @pytest.mark.asyncio
    async def test_expired_entry_refetched(self, scripture_resolver, scripture_server, fake_clock):
        await scripture_resolver.get_verse("John 3:16")
        fake_clock.advance(24 * 60 * 60 + 1)
        await scripture_resolver.get_verse("John 3:16")

        assert scripture_server.calls == ["John 3:16", "John 3:16"]
        assert scripture_resolver.get_stats().expirations == 1

    @pytest.mark.asyncio
    async def test_entry_within_ttl_served_from_cache(self, scripture_resolver, scripture_server, fake_clock):
        await scripture_resolver.get_verse("John 3:16")
        fake_clock.advance(60 * 60)
        await scripture_resolver.get_verse("John 3:16")

        assert scripture_server.calls == ["John 3:16"]

    @pytest.mark.asyncio
    async def test_lru_eviction(self, scripture_server):
        resolver = ScriptureResolver(
            ScriptureClient(base_url="https://scripture.test", http_client=scripture_server.client()),
            cache=LRUCache(max_size=2, ttl_seconds=None),
        )

        await resolver.get_verse("John 1:1")
        await resolver.get_verse("John 1:2")
        await resolver.get_verse("John 1:1")
        await resolver.get_verse("John 1:3")  # evicts John 1:2
        await resolver.get_verse("John 1:1")
        await resolver.get_verse("John 1:2")

        assert scripture_server.calls == ["John 1:1", "John 1:2", "John 1:3", "John 1:2"]

    @pytest.mark.asyncio
    async def test_failure_returns_placeholder_and_is_not_cached(self, scripture_resolver, scripture_server):
        scripture_server.fail("John 3:16")

        first = await scripture_resolver.get_verse("John 3:16")
        del scripture_server.failing["John 3:16"]
        second = await scripture_resolver.get_verse("John 3:16")

        assert first.text == "[Unable to load John 3:16]"
        assert second.text == "Text of John 3:16"
        assert second.resolved

    @pytest.mark.asyncio
    async def test_empty_text_is_placeholder_and_not_cached(self, fake_clock):
        calls = []

        def handler(request):
            calls.append(request.url.path)
            return httpx.Response(200, json={"reference": "John 3:16"})

        resolver = ScriptureResolver(
            _client(handler),
            translation="WEB",
            cache=LRUCache(max_size=10, ttl_seconds=60, clock=fake_clock),
        )

        first = await resolver.get_verse("John 3:16")
        second = await resolver.get_verse("John 3:16")

        assert not first.resolved
        assert first.text == "[Unable to load John 3:16]"
        assert not second.resolved
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_from_config(self, scripture_server):
        from config import ScriptureConfig

        config = ScriptureConfig(
            base_url="https://scripture.test",
            translation="KJV",
            cache_size=5,
            cache_ttl_seconds=10,
        )
        resolver = ScriptureResolver.from_config(config, http_client=scripture_server.client())

        verse = await resolver.get_verse("Genesis 1:1")

        assert verse.translation == "KJV"
        assert resolver.cache.max_size == 5
        await resolver.aclose()

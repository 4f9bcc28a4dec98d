"""
Discern - Scripture Lookup

Client for the public scripture API (bible.helloao.org by default, no API
key) and the resolver that turns hit anchors into display text.

The resolver:
- de-duplicates references before fetching
- fetches distinct references concurrently
- keeps a bounded LRU cache with a TTL, keyed by translation + reference
- never fails the request: any lookup error becomes a placeholder verse
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote

import httpx

from config import ScriptureConfig
from core.async_utils import gather_with_concurrency
from core.cache import CacheStats, LRUCache
from core.errors import DiscernIntegrationError, DiscernTimeoutError, ErrorContext
from observability import create_span, get_logger

logger = get_logger("discern.integrations.scripture")

_WHITESPACE = re.compile(r"\s+")


def normalize_reference(reference: str) -> str:
    """Trim and collapse whitespace: ``" John  3:16 "`` -> ``"John 3:16"``."""
    return _WHITESPACE.sub(" ", reference.strip())


def cache_key(reference: str, translation: str) -> str:
    return f"{translation}:{reference}"


@dataclass(frozen=True)
class VerseResult:
    """Resolved verse text for one reference and translation."""
    reference: str
    text: str
    translation: str
    resolved: bool = True

    @classmethod
    def placeholder(cls, reference: str, translation: str) -> "VerseResult":
        return cls(
            reference=reference,
            text=f"[Unable to load {reference}]",
            translation=translation,
            resolved=False,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reference": self.reference,
            "text": self.text,
            "translation": self.translation,
        }


class ScriptureClient:
    """
    Async HTTP client for the scripture lookup capability.

    ``fetch`` raises ``DiscernIntegrationError`` on any failure; callers that
    must not fail use ``ScriptureResolver`` instead.
    """

    def __init__(
        self,
        base_url: str = "https://bible.helloao.org",
        timeout_seconds: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds))

    @staticmethod
    def _context(reference: str) -> ErrorContext:
        return ErrorContext.from_current_span("scripture.fetch", "ScriptureClient", reference=reference)

    async def fetch(self, reference: str, translation: str = "WEB") -> VerseResult:
        reference = normalize_reference(reference)
        url = f"{self.base_url}/api/{quote(translation, safe='')}/{quote(reference, safe='')}"

        try:
            response = await self._client.get(url, timeout=self.timeout_seconds)
        except httpx.TimeoutException as e:
            raise DiscernTimeoutError(
                f"Scripture lookup timed out for {reference}",
                timeout_seconds=self.timeout_seconds,
                service="scripture",
                context=self._context(reference),
                cause=e,
            ) from e
        except httpx.HTTPError as e:
            raise DiscernIntegrationError(
                f"Scripture lookup failed for {reference}: {e}",
                service="scripture",
                context=self._context(reference),
                cause=e,
            ) from e

        if not response.is_success:
            raise DiscernIntegrationError(
                f"Scripture API error: {response.status_code}",
                service="scripture",
                context=self._context(reference),
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise DiscernIntegrationError(
                f"Scripture API returned malformed JSON for {reference}",
                service="scripture",
                context=self._context(reference),
                cause=e,
            ) from e

        if not isinstance(data, dict):
            raise DiscernIntegrationError(
                f"Scripture API returned unexpected payload for {reference}",
                service="scripture",
                context=self._context(reference),
            )

        text = data.get("text") or data.get("verse")
        if not isinstance(text, str) or not text.strip():
            raise DiscernIntegrationError(
                f"Scripture API returned no text for {reference}",
                service="scripture",
                context=self._context(reference),
            )

        return VerseResult(reference=reference, text=text, translation=translation)

    async def search(self, query: str, translation: str = "WEB") -> List[Dict[str, str]]:
        # TODO: wire up once the scripture API exposes a search endpoint
        logger.warning("Scripture search is not supported", translation=translation)
        return []

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class ScriptureResolver:
    """
    Resolves scripture anchors to verse text with local caching.

    Constructed once per process and passed to whoever needs it; the cache
    is safe to share between concurrent requests.
    """

    def __init__(
        self,
        client: ScriptureClient,
        translation: str = "WEB",
        cache: Optional[LRUCache[VerseResult]] = None,
        max_concurrency: int = 8,
    ):
        self.client = client
        self.translation = translation
        self.cache: LRUCache[VerseResult] = cache if cache is not None else LRUCache(
            max_size=200, ttl_seconds=24 * 60 * 60
        )
        self.max_concurrency = max_concurrency

    @classmethod
    def from_config(
        cls,
        config: ScriptureConfig,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "ScriptureResolver":
        client = ScriptureClient(
            base_url=config.base_url,
            timeout_seconds=config.timeout_seconds,
            http_client=http_client,
        )
        return cls(
            client=client,
            translation=config.translation,
            cache=LRUCache(max_size=config.cache_size, ttl_seconds=config.cache_ttl_seconds),
            max_concurrency=config.max_concurrency,
        )

    async def get_verse(self, reference: str, translation: Optional[str] = None) -> VerseResult:
        """Resolve one reference, falling back to a placeholder on failure."""
        translation = translation or self.translation
        reference = normalize_reference(reference)
        key = cache_key(reference, translation)

        cached = self.cache.get(key)
        if cached is not None:
            return cached

        try:
            verse = await self.client.fetch(reference, translation)
        except DiscernIntegrationError as e:
            logger.warning(
                "Scripture lookup failed",
                reference=reference,
                translation=translation,
                error=e.message,
                status_code=e.status_code,
            )
            return VerseResult.placeholder(reference, translation)

        self.cache.put(key, verse)
        return verse

    async def resolve(
        self,
        references: Iterable[str],
        translation: Optional[str] = None,
    ) -> Dict[str, VerseResult]:
        """
        Resolve a collection of references to ``reference -> VerseResult``.

        Each distinct reference is fetched at most once per call.
        """
        unique_refs = list(dict.fromkeys(
            normalize_reference(r) for r in references if r and r.strip()
        ))
        if not unique_refs:
            return {}

        with create_span("scripture.resolve", attributes={"scripture.count": len(unique_refs)}):
            verses = await gather_with_concurrency(
                *(self.get_verse(ref, translation) for ref in unique_refs),
                max_concurrency=self.max_concurrency,
            )
        return dict(zip(unique_refs, verses))

    def get_stats(self) -> CacheStats:
        return self.cache.get_stats()

    async def aclose(self) -> None:
        await self.client.aclose()

"""
Discern - Test Configuration

Pytest fixtures and configuration for all tests.
"""
import json
from pathlib import Path
from typing import Any, Callable, Dict, List

import httpx
import pytest
import yaml

from config import DEFAULT_RULES_PATH
from core.cache import LRUCache
from discernment.engine import DiscernmentEngine
from discernment.rules import RuleTable, load_rule_table
from integrations.scripture import ScriptureClient, ScriptureResolver


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptureServer:
    """
    In-memory stand-in for the scripture API, served through
    ``httpx.MockTransport``. Records every requested reference.
    """

    def __init__(self):
        self.calls: List[str] = []
        self.failing: Dict[str, int] = {}

    def fail(self, reference: str, status_code: int = 500) -> None:
        self.failing[reference] = status_code

    def handler(self, request: httpx.Request) -> httpx.Response:
        translation, reference = request.url.path.split("/")[-2:]
        self.calls.append(reference)
        if reference in self.failing:
            return httpx.Response(self.failing[reference], json={"error": "unavailable"})
        return httpx.Response(
            200,
            json={"reference": reference, "text": f"Text of {reference}", "translation": translation},
        )

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def rules_path() -> Path:
    return DEFAULT_RULES_PATH


@pytest.fixture(scope="session")
def rule_table() -> RuleTable:
    """The shipped rule table."""
    return load_rule_table(DEFAULT_RULES_PATH)


@pytest.fixture(scope="session")
def rules_document() -> Dict[str, Any]:
    """The shipped rule table as a plain YAML document."""
    with open(DEFAULT_RULES_PATH, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


@pytest.fixture
def write_rules(tmp_path) -> Callable[[Any], Path]:
    """Write a rules document to a temporary YAML file."""
    def _write(document: Any, name: str = "rules.yaml") -> Path:
        path = tmp_path / name
        path.write_text(yaml.safe_dump(document, sort_keys=False), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scripture_server() -> ScriptureServer:
    return ScriptureServer()


@pytest.fixture
def scripture_resolver(scripture_server, fake_clock) -> ScriptureResolver:
    client = ScriptureClient(base_url="https://scripture.test", http_client=scripture_server.client())
    return ScriptureResolver(
        client,
        translation="WEB",
        cache=LRUCache(max_size=200, ttl_seconds=24 * 60 * 60, clock=fake_clock),
    )


@pytest.fixture
def engine(rule_table, scripture_resolver) -> DiscernmentEngine:
    return DiscernmentEngine(resolver=scripture_resolver, rules=rule_table).init()


@pytest.fixture
def worship_lyrics() -> str:
    return "Hallelujah, I praise you God, you are holy and faithful"


@pytest.fixture
def explicit_lyrics() -> str:
    return "f***ing witchcraft and a gun, shoot em up"


@pytest.fixture
def media_reply() -> str:
    """A well-formed generative analysis reply."""
    return json.dumps({
        "discernmentScore": 72,
        "faithAnalysis": "Mostly redemptive, with some violence.",
        "tags": ["redemption", "violence"],
        "verseText": "For God so loved the world...",
        "verseReference": "John 3:16 (NLT)",
        "alternatives": [
            {"title": "The Chosen", "reason": "Faithful portrayal of Jesus."},
            {"title": "Soul Surfer", "reason": "Faith through adversity."},
            {"title": "I Can Only Imagine", "reason": "Redemption and worship."},
        ],
    })


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks integration tests")
    config.addinivalue_line("markers", "property: marks property-based tests using Hypothesis")

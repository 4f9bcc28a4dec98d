"""
Tests for the discernment engine entry point.
"""
import pytest

from core.errors import DiscernConfigError, DiscernValidationError
from discernment.engine import DiscernmentEngine


class TestScoring:
    """Synchronous scoring through the engine."""

    def test_worship_example(self, engine, worship_lyrics):
        signals, result = engine.score_lyrics(worship_lyrics)

        assert signals.themes == ("worship",)
        assert [h.rule_id for h in result.hits] == ["worship"]
        assert result.total == 80

    def test_explicit_example(self, engine, explicit_lyrics):
        signals, result = engine.score_lyrics(explicit_lyrics)

        assert [h.rule_id for h in result.hits] == [
            "explicit-language",
            "explicit-violence",
            "occult-practices",
        ]
        assert result.total == min(22, 25)

    def test_empty_text_lands_in_band(self, engine):
        _, result = engine.score_lyrics("")
        assert result.hits == ()
        assert 35 <= result.total <= 75

    def test_score_text(self, engine):
        signals, result = engine.score_text("A tale of faith and hope, saved by grace through faith.")
        assert "salvation-by-grace" in [h.rule_id for h in result.hits]
        assert result.total >= 80

    def test_unknown_mode(self, engine):
        with pytest.raises(DiscernValidationError):
            engine.evaluate("text", mode="poetry")

    def test_used_before_init(self, scripture_resolver):
        engine = DiscernmentEngine(resolver=scripture_resolver)
        with pytest.raises(DiscernConfigError):
            engine.score_lyrics("hello")

    def test_init_loads_rules(self, scripture_resolver, rules_path):
        engine = DiscernmentEngine(resolver=scripture_resolver, rules_path=rules_path).init()
        assert len(engine.rules) == 13

    def test_init_fails_fast_on_missing_rule(self, scripture_resolver, rules_document, write_rules):
        doc = {"rules": [r for r in rules_document["rules"] if r["id"] != "worship"]}
        engine = DiscernmentEngine(resolver=scripture_resolver, rules_path=write_rules(doc))
        with pytest.raises(DiscernConfigError):
            engine.init()


class TestAnalyzeText:
    """Async analysis with verse resolution."""

    @pytest.mark.asyncio
    async def test_resolves_hit_anchors(self, engine, scripture_server, worship_lyrics):
        result = await engine.analyze_text(worship_lyrics, {"title": "Holy"})

        assert result.score.total == 80
        assert set(result.verses) == {"Psalm 95:6", "John 4:24", "Revelation 4:8"}
        assert result.verses["John 4:24"].text == "Text of John 4:24"
        assert result.meta == {"title": "Holy"}
        assert sorted(scripture_server.calls) == sorted(result.verses)

    @pytest.mark.asyncio
    async def test_shared_anchor_fetched_once(self, engine, scripture_server):
        # substance-abuse and self-harm both cite 1 Corinthians 6:19-20
        result = await engine.analyze_text("got wasted again, thinking about suicide")

        assert {h.rule_id for h in result.score.hits} == {"substance-abuse", "self-harm"}
        assert scripture_server.calls.count("1 Corinthians 6:19-20") == 1
        assert len(scripture_server.calls) == len(set(scripture_server.calls)) == 5

    @pytest.mark.asyncio
    async def test_no_hits_no_lookups(self, engine, scripture_server):
        result = await engine.analyze_text("sunshine on the water")
        assert result.verses == {}
        assert scripture_server.calls == []

    @pytest.mark.asyncio
    async def test_lookup_failure_does_not_fail_request(self, engine, scripture_server, worship_lyrics):
        scripture_server.fail("John 4:24", status_code=503)

        result = await engine.analyze_text(worship_lyrics)

        assert result.verses["John 4:24"].text == "[Unable to load John 4:24]"
        assert result.verses["Psalm 95:6"].resolved

    @pytest.mark.asyncio
    async def test_text_mode_resolves_citations(self, engine, scripture_server):
        result = await engine.analyze_text("A quiet film that quotes Micah 6:8.", mode="text")
        assert "Micah 6:8" in result.verses
        assert result.signals.bible_refs == ("Micah 6:8",)

    @pytest.mark.asyncio
    async def test_translation_passed_through(self, engine, worship_lyrics):
        result = await engine.analyze_text(worship_lyrics, translation="KJV")
        assert {v.translation for v in result.verses.values()} == {"KJV"}

    @pytest.mark.asyncio
    async def test_to_dict(self, engine, explicit_lyrics):
        data = (await engine.analyze_text(explicit_lyrics)).to_dict()

        assert set(data) == {"signals", "score", "verses", "meta"}
        assert data["score"]["total"] == 22
        assert data["verses"]["Colossians 3:8"]["translation"] == "WEB"

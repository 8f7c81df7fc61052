"""
Research collaborators: classification, aggregation, defaults and gathering
"""

import pytest

from launchpad.schemas.research import DiscoveredCompetitor, ResearchKind, ResearchQuery
from launchpad.services.research import (
    CompetitorDiscoveryCollaborator,
    MarketResearchCollaborator,
    SentimentAnalysisCollaborator,
    WebIntelligenceCollaborator,
    analyze_competitive_gaps,
    build_collaborators,
    gather_research,
    generate_market_forecast,
)
from launchpad.services.research.competitor_discovery import classify_similarity, market_concentration
from launchpad.services.research.web_intelligence import categorize_domain, demand_signal
from launchpad.utils.cache import TTLCache

from conftest import (
    COMPETITOR_RECORDS,
    MARKET_RECORDS,
    SENTIMENT_RECORDS,
    WEB_RECORDS,
    FakeClock,
    FakeResearchSource,
)

QUERY = ResearchQuery(
    business_idea="Healthy meal prep marketplace",
    industry="ecommerce",
    target_market="busy professionals",
)


@pytest.fixture
def cache():
    return TTLCache(clock=FakeClock())


# ── Competitor discovery ──

class TestCompetitorDiscovery:
    def test_classify_similarity_thresholds(self):
        assert classify_similarity(0.7) == "direct"
        assert classify_similarity(0.69) == "indirect"
        assert classify_similarity(0.4) == "indirect"
        assert classify_similarity(0.2) == "substitute"
        assert classify_similarity(0.19) is None

    def test_landscape_from_records(self, cache):
        landscape = CompetitorDiscoveryCollaborator(cache).build_result(QUERY, COMPETITOR_RECORDS)

        assert [c.name for c in landscape.direct_competitors] == ["HelloFresh", "Factor"]
        assert [c.name for c in landscape.indirect_competitors] == ["Instacart"]
        assert [c.name for c in landscape.substitute_competitors] == ["Cookbook"]
        assert landscape.total_competitors == 4
        assert landscape.market_concentration == "concentrated"
        assert landscape.competitive_intensity == "low"
        assert landscape.barrier_to_entry == "high"
        assert landscape.key_success_factors == ["Brand recognition", "Ready to eat"]
        assert landscape.direct_competitors[0].total_funding_musd == 367.0
        assert landscape.confidence == pytest.approx(0.635)

    def test_whitespace_lists_uncovered_matrix_features(self, cache):
        landscape = CompetitorDiscoveryCollaborator(cache).build_result(QUERY, COMPETITOR_RECORDS)
        gaps = [w.opportunity for w in landscape.whitespace_opportunities]
        assert gaps == ["AI Integration gap", "Integrations gap"]
        assert len(landscape.competitive_matrix) == 3

    def test_duplicate_names_keep_most_similar(self, cache):
        records = [
            {"name": "Acme", "similarity": 0.5},
            {"name": "acme", "similarity": 0.9},
        ]
        landscape = CompetitorDiscoveryCollaborator(cache).build_result(QUERY, records)
        assert landscape.total_competitors == 1
        assert landscape.direct_competitors[0].name == "acme"

    def test_similarity_from_text_when_not_given(self, cache):
        collaborator = CompetitorDiscoveryCollaborator(cache)
        record = {"title": "Prepwise - Healthy meal prep marketplace", "snippet": ""}
        candidate = collaborator.to_candidate(QUERY, record)
        assert candidate.name == "Prepwise"
        assert candidate.category == "direct"

    def test_max_competitors_and_filters(self, cache):
        collaborator = CompetitorDiscoveryCollaborator(
            cache, max_competitors=2, include_substitutes=False
        )
        landscape = collaborator.build_result(QUERY, COMPETITOR_RECORDS)
        assert landscape.total_competitors == 2
        assert landscape.substitute_competitors == []

    def test_empty_records_give_zero_confidence(self, cache):
        landscape = CompetitorDiscoveryCollaborator(cache).build_result(QUERY, [])
        assert landscape.total_competitors == 0
        assert landscape.confidence == 0.0
        assert landscape.is_default is False

    def test_market_concentration_without_share_is_fragmented(self):
        competitors = [DiscoveredCompetitor(name="A", category="direct", similarity=0.8)]
        assert market_concentration(competitors) == "fragmented"

    def test_gap_analysis_recommends_uncovered_features(self):
        competitors = [
            DiscoveredCompetitor(name="A", category="direct", similarity=0.8, key_features=["Mobile app"]),
            DiscoveredCompetitor(name="B", category="direct", similarity=0.8, key_features=["Mobile app"]),
        ]
        analysis = analyze_competitive_gaps(competitors, ["Mobile app", "AI meal planner"])
        assert [g.opportunity for g in analysis.gaps] == ["low", "high"]
        assert [r.feature for r in analysis.recommendations] == ["AI meal planner"]
        assert analysis.recommendations[0].effort == "high"


# ── Market research ──

class TestMarketResearch:
    def test_snapshot_uses_industry_baseline(self, cache):
        snapshot = MarketResearchCollaborator(cache).build_result(QUERY, MARKET_RECORDS)
        assert snapshot.tam.value == 400_000_000_000
        assert snapshot.sam.value == 40_000_000_000
        assert snapshot.som.value == 4_000_000_000
        assert snapshot.growth_rate == 10.0
        assert [t.impact for t in snapshot.trends] == ["high", "medium"]
        assert snapshot.confidence == pytest.approx(0.7)

    def test_unknown_industry_falls_back(self, cache):
        query = ResearchQuery(business_idea="Something new entirely", industry="space tourism")
        snapshot = MarketResearchCollaborator(cache).build_result(query, [])
        assert snapshot.tam.value == 100_000_000_000
        assert snapshot.growth_rate == 7.0
        assert snapshot.confidence == pytest.approx(0.3)

    def test_forecast_compounds_growth(self):
        forecast = generate_market_forecast("software", 1000, ["AI adoption"], years=3)
        assert [f.year_offset for f in forecast.forecasts] == [1, 2, 3]
        assert forecast.forecasts[0].growth_rate == 14
        assert forecast.forecasts[0].realistic == 1140
        assert forecast.forecasts[1].realistic == 1300
        assert forecast.forecasts[0].confidence == 0.8
        assert forecast.forecasts[2].confidence == 0.6
        assert len(forecast.risks) == 3


# ── Sentiment ──

class TestSentimentAnalysis:
    def test_pain_points_and_sample(self, cache):
        snapshot = SentimentAnalysisCollaborator(cache).build_result(QUERY, SENTIMENT_RECORDS)
        assert snapshot.sample_size == 3
        assert [p.pain_point for p in snapshot.pain_points] == [
            "High pricing",
            "Poor customer support",
            "Shipping and delivery",
        ]
        assert all(p.severity == "high" for p in snapshot.pain_points)
        assert -1.0 <= snapshot.score <= 1.0
        assert 0.0 <= snapshot.confidence <= 1.0

    def test_no_texts(self, cache):
        snapshot = SentimentAnalysisCollaborator(cache).build_result(QUERY, [{"title": "  "}])
        assert snapshot.sample_size == 0
        assert snapshot.confidence == 0.0
        assert snapshot.market_mood == "cautious"


# ── Web intelligence ──

class TestWebIntelligence:
    def test_categorize_domain(self):
        assert categorize_domain("reddit.com") == "forum"
        assert categorize_domain("old.reddit.com") == "forum"
        assert categorize_domain("notreddit.com") == "other"
        assert categorize_domain("g2.com") == "review"

    def test_demand_signal_levels(self):
        assert demand_signal({}) == "none"
        assert demand_signal({"news": 9}) == "none"
        assert demand_signal({"forum": 2}) == "weak"
        assert demand_signal({"forum": 2, "social": 3}) == "moderate"
        assert demand_signal({"review": 6}) == "strong"

    def test_mentions_dedupe_and_categorize(self, cache):
        intel = WebIntelligenceCollaborator(cache).build_result(QUERY, WEB_RECORDS)
        assert len(intel.mentions) == 3
        assert intel.category_counts == {"forum": 1, "review": 1, "news": 1}
        assert intel.demand_signal == "weak"
        assert len(intel.forum_pain_points) == 1
        assert intel.confidence == pytest.approx(0.3)
        assert intel.sources == ["reddit.com", "techcrunch.com", "trustpilot.com"]


# ── Gathering ──

class TestGatherResearch:
    async def test_only_requested_kinds_are_fetched(self, cache, research_records):
        source = FakeResearchSource(research_records)
        collaborators = build_collaborators(cache, source, [ResearchKind.COMPETITORS, ResearchKind.MARKET])
        bundle = await gather_research(collaborators, QUERY)

        assert sorted(k.value for k in source.calls) == ["competitors", "market"]
        assert bundle.sentiment is None and bundle.web is None
        assert bundle.summary().sources_used == ["competitors", "market"]

    async def test_failed_kinds_fall_back_to_defaults(self, cache, research_records):
        source = FakeResearchSource(research_records, failing=[ResearchKind.SENTIMENT, ResearchKind.WEB])
        bundle = await gather_research(build_collaborators(cache, source), QUERY)

        assert bundle.sentiment.is_default and bundle.web.is_default
        assert not bundle.competitors.is_default
        summary = bundle.summary()
        assert summary.sources_defaulted == ["sentiment", "web"]
        assert summary.confidence_by_source["sentiment"] == 0.0

    async def test_collaborator_that_raises_is_replaced(self, cache):
        class Exploding(CompetitorDiscoveryCollaborator):
            async def fetch(self, query):
                raise RuntimeError("boom")

        bundle = await gather_research({ResearchKind.COMPETITORS: Exploding(cache)}, QUERY)
        assert bundle.competitors.is_default is True

    async def test_empty_bundle_confidence(self):
        bundle = await gather_research({}, QUERY)
        assert bundle.results() == []
        assert bundle.confidence() == 0.0

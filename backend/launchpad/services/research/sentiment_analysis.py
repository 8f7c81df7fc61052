"""
Sentiment Analysis Collaborator
Aggregate opinion and recurring pain points across review and forum texts
"""

from typing import Any, Dict, List, Optional

from launchpad.adapters.parsing import SentimentAnalyzer, classify_score
from launchpad.config import get_settings
from launchpad.schemas.research import PainPoint, ResearchKind, ResearchQuery, SentimentSnapshot
from .base import ResearchCollaborator

settings = get_settings()

PAIN_POINT_CATALOG = {
    "Slow performance": ["slow", "lag", "takes forever", "loading"],
    "Poor customer support": ["support", "no response", "customer service"],
    "High pricing": ["expensive", "overpriced", "price", "pricing", "cost"],
    "Difficult setup": ["setup", "set up", "onboarding", "confusing"],
    "Limited integrations": ["integration", "integrate", "doesn't work with"],
    "Bugs and glitches": ["bug", "buggy", "glitch", "crash", "broken"],
    "Lack of features": ["missing", "lacks", "wish it had", "no option"],
    "Poor documentation": ["documentation", "docs", "no instructions"],
    "Shipping and delivery": ["shipping", "delivery", "arrived late", "damaged"],
}

MAX_PAIN_POINTS = 5
FULL_SAMPLE = 5


def market_mood(score: float) -> str:
    if score > 0.3:
        return "optimistic"
    if score > -0.3:
        return "cautious"
    return "pessimistic"


def pain_point_severity(share: float) -> str:
    if share >= 0.5:
        return "critical"
    if share >= 0.3:
        return "high"
    if share >= 0.15:
        return "medium"
    return "low"


def extract_pain_points(texts: List[str], limit: int = MAX_PAIN_POINTS) -> List[PainPoint]:
    """Catalogued pain points ranked by how many texts mention them"""
    if not texts:
        return []
    lowered = [t.lower() for t in texts]
    found = []
    for pain_point, keywords in PAIN_POINT_CATALOG.items():
        frequency = sum(1 for text in lowered if any(k in text for k in keywords))
        if frequency:
            found.append(PainPoint(
                pain_point=pain_point,
                severity=pain_point_severity(frequency / len(texts)),
                frequency=frequency,
                keywords=pain_point.lower().split(),
            ))
    found.sort(key=lambda p: (-p.frequency, p.pain_point))
    return found[:limit]


class SentimentAnalysisCollaborator(ResearchCollaborator):
    """Records understood: text | snippet | title"""

    kind = ResearchKind.SENTIMENT
    default_ttl = settings.CACHE_TTL_SENTIMENT

    def __init__(self, cache, source=None, ttl_seconds: Optional[int] = None, analyzer: Optional[SentimentAnalyzer] = None):
        super().__init__(cache, source, ttl_seconds)
        self.analyzer = analyzer or SentimentAnalyzer()

    def _texts(self, records: List[Dict[str, Any]]) -> List[str]:
        texts = []
        for record in records:
            text = record.get("text") or " ".join(
                part for part in (record.get("title"), record.get("snippet")) if part
            )
            if text and text.strip():
                texts.append(text.strip())
        return texts

    def build_result(self, query: ResearchQuery, records: List[Dict[str, Any]]) -> SentimentSnapshot:
        texts = self._texts(records)
        if not texts:
            return SentimentSnapshot(insights=["No opinion data found for this idea"])

        results = self.analyzer.analyze_many(texts)
        n = len(results)
        score = sum(r.score for r in results) / n
        magnitude = sum(r.magnitude for r in results) / n
        mean_confidence = sum(r.confidence for r in results) / n
        confidence = mean_confidence * min(1.0, n / FULL_SAMPLE)

        mood = market_mood(score)
        classification = classify_score(score)
        pain_points = extract_pain_points(texts)

        insights = [
            f"Sentiment around {query.industry or 'this market'} is {mood} across {n} sources",
            f"Overall tone is {classification.value.replace('_', ' ')}",
        ]
        if pain_points:
            insights.append(f"Most frequent complaint: {pain_points[0].pain_point.lower()}")

        return SentimentSnapshot(
            confidence=round(min(confidence, 1.0), 4),
            sources=sorted({r.get("source") for r in records if r.get("source")}),
            score=round(max(-1.0, min(1.0, score)), 4),
            magnitude=round(min(magnitude, 1.0), 4),
            classification=classification,
            market_mood=mood,
            sample_size=n,
            pain_points=pain_points,
            insights=insights,
        )

    def default_result(self, query: ResearchQuery) -> SentimentSnapshot:
        return SentimentSnapshot(
            is_default=True,
            insights=["Insufficient data for market sentiment analysis"],
        )

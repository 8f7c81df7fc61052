"""
Market Research Collaborator
Market sizing from industry baselines plus trends from source records
"""

from typing import Any, Dict, List

from launchpad.config import get_settings
from launchpad.schemas.research import (
    ForecastYear,
    MarketForecast,
    MarketRisk,
    MarketSizeEstimate,
    MarketSnapshot,
    MarketTrend,
    ResearchKind,
    ResearchQuery,
)
from .base import ResearchCollaborator

settings = get_settings()

# Total addressable market baseline, in $B
BASE_MARKET_SIZE = {
    "software": 500,
    "healthcare": 300,
    "fintech": 200,
    "ecommerce": 400,
    "education": 150,
    "manufacturing": 250,
    "retail": 300,
}
DEFAULT_MARKET_SIZE = 100

# Baseline annual growth, in percent
BASE_GROWTH_RATE = {
    "software": 12,
    "healthcare": 8,
    "fintech": 15,
    "ecommerce": 10,
    "education": 6,
    "manufacturing": 4,
    "retail": 5,
}
DEFAULT_GROWTH_RATE = 7

MAX_TRENDS = 5

STANDARD_RISKS = [
    MarketRisk(
        risk="Economic downturn",
        probability=0.3,
        impact="high",
        mitigation=["Diversify markets", "Build reserves", "Focus on essentials"],
    ),
    MarketRisk(
        risk="Regulatory changes",
        probability=0.4,
        impact="medium",
        mitigation=["Monitor regulations", "Engage with policymakers", "Build compliance"],
    ),
    MarketRisk(
        risk="Technology disruption",
        probability=0.5,
        impact="high",
        mitigation=["Invest in R&D", "Monitor trends", "Build partnerships"],
    ),
]


def base_market_size(industry: str) -> int:
    return BASE_MARKET_SIZE.get(industry.strip().lower(), DEFAULT_MARKET_SIZE)


def base_growth_rate(industry: str) -> float:
    return float(BASE_GROWTH_RATE.get(industry.strip().lower(), DEFAULT_GROWTH_RATE))


def generate_market_forecast(
    industry: str,
    current_market_size: float,
    growth_drivers: List[str],
    years: int = 3,
) -> MarketForecast:
    """Compound the baseline growth rate; each driver adds two points"""
    growth_rate = base_growth_rate(industry) + 2 * len(growth_drivers)
    forecasts = []
    size = current_market_size
    for year in range(1, years + 1):
        size *= 1 + growth_rate / 100
        forecasts.append(ForecastYear(
            year_offset=year,
            market_size=round(size),
            growth_rate=growth_rate,
            confidence=round(max(0.3, 0.8 - 0.1 * (year - 1)), 2),
            optimistic=round(size * 1.3),
            realistic=round(size),
            pessimistic=round(size * 0.7),
        ))
    return MarketForecast(
        industry=industry,
        forecasts=forecasts,
        key_drivers=list(growth_drivers),
        risks=list(STANDARD_RISKS),
    )


class MarketResearchCollaborator(ResearchCollaborator):
    """
    TAM/SAM/SOM and growth come from industry baselines; trends come from
    records (title | trend, snippet, impact, timeframe).
    """

    kind = ResearchKind.MARKET
    default_ttl = settings.CACHE_TTL_MARKET

    def _trends(self, records: List[Dict[str, Any]]) -> List[MarketTrend]:
        trends = []
        for record in records:
            text = (record.get("trend") or record.get("title") or "").strip()
            if not text:
                continue
            impact = record.get("impact")
            if impact not in ("high", "medium", "low"):
                impact = "high" if len(trends) < 2 else "medium" if len(trends) < 4 else "low"
            trends.append(MarketTrend(
                trend=text,
                impact=impact,
                timeframe=record.get("timeframe") or "1-3 years",
                source=record.get("link") or record.get("source") or "",
            ))
            if len(trends) >= MAX_TRENDS:
                break
        return trends

    def build_result(self, query: ResearchQuery, records: List[Dict[str, Any]]) -> MarketSnapshot:
        industry = query.industry or "general"
        known_industry = query.industry.strip().lower() in BASE_MARKET_SIZE
        base = base_market_size(query.industry)
        certainty = 0.2 if known_industry else 0.0
        target = query.target_market or "the target segment"
        trends = self._trends(records)

        confidence = 0.3 + certainty + 0.1 * min(len(trends), 3)
        return MarketSnapshot(
            confidence=round(min(confidence, 1.0), 4),
            sources=sorted({r.get("source") for r in records if r.get("source")}),
            industry=industry,
            tam=MarketSizeEstimate(
                value=base * 1_000_000_000,
                description=f"Total addressable market for {industry}",
                methodology="Top-down industry baseline",
                confidence=0.4 + certainty,
            ),
            sam=MarketSizeEstimate(
                value=base * 100_000_000,
                description=f"Serviceable addressable market for {target}",
                methodology="Baseline share of TAM for the target segment",
                confidence=0.35 + certainty,
            ),
            som=MarketSizeEstimate(
                value=base * 10_000_000,
                description="Serviceable obtainable market within 3 years",
                methodology="Conservative capture of SAM",
                confidence=0.3 + certainty,
            ),
            growth_rate=base_growth_rate(query.industry),
            trends=trends,
        )

    def default_result(self, query: ResearchQuery) -> MarketSnapshot:
        return MarketSnapshot(
            is_default=True,
            industry=query.industry,
            tam=MarketSizeEstimate(
                value=100_000_000_000,
                description="Estimated total addressable market",
                methodology="Industry estimates",
            ),
            sam=MarketSizeEstimate(
                value=10_000_000_000,
                description="Estimated serviceable addressable market",
                methodology="Market segmentation",
            ),
            som=MarketSizeEstimate(
                value=1_000_000_000,
                description="Estimated serviceable obtainable market",
                methodology="Capture estimate",
            ),
            growth_rate=float(DEFAULT_GROWTH_RATE),
        )

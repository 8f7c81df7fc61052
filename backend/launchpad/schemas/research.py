"""
Research Collaborator Schemas
Tagged, versioned result variants shared by collaborators and the prompt builder
"""

import re
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from launchpad.adapters.parsing import SentimentClass
from launchpad.utils.security import generate_query_hash

Level = Literal["high", "medium", "low"]

RESULT_SCHEMA_VERSION = 1

_STOPWORDS = {
    "a", "an", "and", "the", "for", "of", "to", "in", "on", "with", "by", "at",
    "or", "is", "are", "that", "this", "from", "as", "it", "its", "be", "your",
    "our", "their", "who", "which", "app", "platform", "service",
}


def tokenize(text: str) -> List[str]:
    """Lower-cased content words of a text"""
    return [t for t in re.findall(r"[a-z0-9]+", text.lower()) if t not in _STOPWORDS and len(t) > 1]


class ResearchKind(str, Enum):
    COMPETITORS = "competitors"
    MARKET = "market"
    SENTIMENT = "sentiment"
    WEB = "web"


class ResearchQuery(BaseModel):
    """Semantic subject of a research fetch; identical content hashes identically"""
    model_config = ConfigDict(frozen=True)

    business_idea: str
    industry: str = ""
    target_market: str = ""
    geography: str = "global"
    keywords: Tuple[str, ...] = ()

    @field_validator("keywords", mode="before")
    @classmethod
    def normalize_keywords(cls, v):
        if v is None:
            return ()
        return tuple(sorted({str(k).strip().lower() for k in v if str(k).strip()}))

    def canonical(self) -> Dict[str, object]:
        return {
            "business_idea": " ".join(self.business_idea.lower().split()),
            "industry": self.industry.strip().lower(),
            "target_market": " ".join(self.target_market.lower().split()),
            "geography": self.geography.strip().lower(),
            "keywords": list(self.keywords),
        }

    def fingerprint(self) -> str:
        return generate_query_hash(self.canonical())

    def search_terms(self) -> List[str]:
        """Distinct content words of the idea and keywords, in first-seen order"""
        seen: Dict[str, None] = {}
        for token in tokenize(self.business_idea) + [t for k in self.keywords for t in tokenize(k)]:
            seen.setdefault(token, None)
        return list(seen)


class ResearchResultBase(BaseModel):
    schema_version: int = RESULT_SCHEMA_VERSION
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    is_default: bool = False
    sources: List[str] = Field(default_factory=list)


# ============================================================================
# COMPETITOR DISCOVERY
# ============================================================================

class DiscoveredCompetitor(BaseModel):
    name: str
    website: str = ""
    description: str = ""
    category: Literal["direct", "indirect", "substitute"]
    similarity: float = Field(ge=0.0, le=1.0)
    market_share: float = Field(default=0.0, ge=0.0)
    total_funding_musd: float = Field(default=0.0, ge=0.0)
    key_features: List[str] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    differentiators: List[str] = Field(default_factory=list)
    discovery_source: str = ""


class WhitespaceOpportunity(BaseModel):
    opportunity: str
    description: str
    coverage: float
    difficulty: Level


class CompetitiveMatrixRow(BaseModel):
    competitor: str
    features: Dict[str, bool]
    score: float


class CompetitorLandscape(ResearchResultBase):
    kind: Literal[ResearchKind.COMPETITORS] = ResearchKind.COMPETITORS
    total_competitors: int = 0
    direct_competitors: List[DiscoveredCompetitor] = Field(default_factory=list)
    indirect_competitors: List[DiscoveredCompetitor] = Field(default_factory=list)
    substitute_competitors: List[DiscoveredCompetitor] = Field(default_factory=list)
    market_concentration: Literal["fragmented", "moderate", "concentrated"] = "fragmented"
    competitive_intensity: Literal["low", "medium", "high", "very_high"] = "low"
    barrier_to_entry: Level = "low"
    key_success_factors: List[str] = Field(default_factory=list)
    whitespace_opportunities: List[WhitespaceOpportunity] = Field(default_factory=list)
    competitive_matrix: List[CompetitiveMatrixRow] = Field(default_factory=list)

    def all_competitors(self) -> List[DiscoveredCompetitor]:
        return self.direct_competitors + self.indirect_competitors + self.substitute_competitors


class FeatureGap(BaseModel):
    feature: str
    coverage: float
    opportunity: Level
    complexity: Level


class GapRecommendation(BaseModel):
    feature: str
    rationale: str
    priority: Literal["critical", "high", "medium", "low"]
    effort: Level
    impact: Level


class CompetitiveGapAnalysis(BaseModel):
    gaps: List[FeatureGap] = Field(default_factory=list)
    recommendations: List[GapRecommendation] = Field(default_factory=list)


# ============================================================================
# MARKET RESEARCH
# ============================================================================

class MarketSizeEstimate(BaseModel):
    value: float = Field(ge=0.0)
    currency: str = "USD"
    description: str = ""
    methodology: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class MarketTrend(BaseModel):
    trend: str
    impact: Level
    timeframe: str
    source: str = ""


class MarketSnapshot(ResearchResultBase):
    kind: Literal[ResearchKind.MARKET] = ResearchKind.MARKET
    industry: str = ""
    tam: MarketSizeEstimate
    sam: MarketSizeEstimate
    som: MarketSizeEstimate
    growth_rate: float = 0.0  # percent per year
    trends: List[MarketTrend] = Field(default_factory=list)


class ForecastYear(BaseModel):
    year_offset: int
    market_size: float
    growth_rate: float
    confidence: float
    optimistic: float
    realistic: float
    pessimistic: float


class MarketRisk(BaseModel):
    risk: str
    probability: float
    impact: Level
    mitigation: List[str]


class MarketForecast(BaseModel):
    industry: str
    forecasts: List[ForecastYear] = Field(default_factory=list)
    key_drivers: List[str] = Field(default_factory=list)
    risks: List[MarketRisk] = Field(default_factory=list)


# ============================================================================
# SENTIMENT
# ============================================================================

class PainPoint(BaseModel):
    pain_point: str
    severity: Literal["critical", "high", "medium", "low"]
    frequency: int
    keywords: List[str] = Field(default_factory=list)


class SentimentSnapshot(ResearchResultBase):
    kind: Literal[ResearchKind.SENTIMENT] = ResearchKind.SENTIMENT
    score: float = Field(default=0.0, ge=-1.0, le=1.0)
    magnitude: float = Field(default=0.0, ge=0.0, le=1.0)
    classification: SentimentClass = SentimentClass.NEUTRAL
    market_mood: Literal["optimistic", "cautious", "pessimistic"] = "cautious"
    sample_size: int = 0
    pain_points: List[PainPoint] = Field(default_factory=list)
    insights: List[str] = Field(default_factory=list)


# ============================================================================
# WEB / SOCIAL INTELLIGENCE
# ============================================================================

class WebMention(BaseModel):
    title: str
    url: str = ""
    domain: str = ""
    category: Literal["forum", "review", "social", "news", "other"] = "other"
    snippet: str = ""


class WebIntelligence(ResearchResultBase):
    kind: Literal[ResearchKind.WEB] = ResearchKind.WEB
    mentions: List[WebMention] = Field(default_factory=list)
    category_counts: Dict[str, int] = Field(default_factory=dict)
    forum_pain_points: List[str] = Field(default_factory=list)
    demand_signal: Literal["none", "weak", "moderate", "strong"] = "none"


ResearchResult = Annotated[
    Union[CompetitorLandscape, MarketSnapshot, SentimentSnapshot, WebIntelligence],
    Field(discriminator="kind"),
]


class ResearchSummary(BaseModel):
    """Per-source confidence as reported alongside an analysis"""
    model_config = ConfigDict(populate_by_name=True)

    sources_used: List[str] = Field(default_factory=list, alias="sourcesUsed")
    sources_defaulted: List[str] = Field(default_factory=list, alias="sourcesDefaulted")
    confidence_by_source: Dict[str, float] = Field(default_factory=dict, alias="confidenceBySource")


class ResearchBundle(BaseModel):
    """Collaborator outputs for one run; absent kinds were not requested"""
    competitors: Optional[CompetitorLandscape] = None
    market: Optional[MarketSnapshot] = None
    sentiment: Optional[SentimentSnapshot] = None
    web: Optional[WebIntelligence] = None

    def results(self) -> List[ResearchResultBase]:
        return [r for r in (self.competitors, self.market, self.sentiment, self.web) if r is not None]

    def confidence(self) -> float:
        """Mean confidence of the requested sources, 0 when none were requested"""
        results = self.results()
        if not results:
            return 0.0
        return round(sum(r.confidence for r in results) / len(results), 4)

    def summary(self) -> ResearchSummary:
        results = self.results()
        return ResearchSummary(
            sources_used=[r.kind.value for r in results if not r.is_default],
            sources_defaulted=[r.kind.value for r in results if r.is_default],
            confidence_by_source={r.kind.value: r.confidence for r in results},
        )

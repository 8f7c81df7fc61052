"""
Competitor Discovery Collaborator

Pipeline: candidate records -> similarity score -> direct / indirect /
substitute classification -> landscape summary (concentration, intensity,
barrier to entry, success factors, feature matrix, whitespace).

Records understood (all optional except a name or title):
    name | title, website | link, description | snippet, similarity,
    market_share, funding (float $M or "$45M"), key_features | features,
    strengths, weaknesses, differentiators, source
"""

import re
from typing import Any, Dict, Iterable, List, Optional

from launchpad.config import get_settings
from launchpad.schemas.research import (
    CompetitiveGapAnalysis,
    CompetitiveMatrixRow,
    CompetitorLandscape,
    DiscoveredCompetitor,
    FeatureGap,
    GapRecommendation,
    ResearchKind,
    ResearchQuery,
    WhitespaceOpportunity,
    tokenize,
)
from .base import ResearchCollaborator

settings = get_settings()

# Similarity floors per category, checked in order
CATEGORY_THRESHOLDS = [
    ("direct", 0.7),
    ("indirect", 0.4),
    ("substitute", 0.2),
]

MATRIX_FEATURES = ["AI Integration", "Mobile App", "API Access", "Analytics", "Integrations"]

FEATURE_KEYWORDS = {
    "AI Integration": {"ai", "ml", "machine", "gpt", "intelligent"},
    "Mobile App": {"mobile", "ios", "android", "iphone"},
    "API Access": {"api", "apis", "developer", "sdk"},
    "Analytics": {"analytics", "insights", "reporting", "dashboard", "dashboards"},
    "Integrations": {"integration", "integrations", "integrates", "plugin", "plugins"},
}

COMPLEX_FEATURES = ["ai", "machine learning", "blockchain", "real-time", "analytics"]
MEDIUM_FEATURES = ["api", "integration", "mobile", "dashboard", "reporting"]

_TITLE_SPLIT = re.compile(r"\s+[-|:–—]\s+")
_FUNDING_NUMBER = re.compile(r"[\d.]+")


def estimate_complexity(feature: str) -> str:
    feature_lower = feature.lower()
    if any(cf in feature_lower for cf in COMPLEX_FEATURES):
        return "high"
    if any(mf in feature_lower for mf in MEDIUM_FEATURES):
        return "medium"
    return "low"


def classify_similarity(similarity: float) -> Optional[str]:
    """Category for a similarity score, None when too dissimilar to count"""
    for category, floor in CATEGORY_THRESHOLDS:
        if similarity >= floor:
            return category
    return None


def has_feature(competitor: DiscoveredCompetitor, feature: str) -> bool:
    feature_lower = feature.lower()
    if any(feature_lower in f.lower() for f in competitor.key_features):
        return True
    tokens = set(tokenize(" ".join([competitor.description] + competitor.key_features)))
    return bool(tokens & FEATURE_KEYWORDS.get(feature, set()))


def feature_coverage(competitors: List[DiscoveredCompetitor], feature: str) -> float:
    if not competitors:
        return 0.0
    return sum(1 for c in competitors if has_feature(c, feature)) / len(competitors)


def market_concentration(competitors: List[DiscoveredCompetitor]) -> str:
    """Top-three share of the summed market share"""
    total_share = sum(c.market_share for c in competitors)
    if total_share <= 0:
        return "fragmented"
    top_three = sorted((c.market_share for c in competitors), reverse=True)[:3]
    concentration = sum(top_three) / total_share
    if concentration > 0.7:
        return "concentrated"
    if concentration > 0.4:
        return "moderate"
    return "fragmented"


def competitive_intensity(total_competitors: int) -> str:
    if total_competitors > 15:
        return "very_high"
    if total_competitors > 10:
        return "high"
    if total_competitors > 5:
        return "medium"
    return "low"


def barrier_to_entry(competitors: List[DiscoveredCompetitor]) -> str:
    """Mean funding of the given competitors, in $M"""
    if not competitors:
        return "low"
    avg_funding = sum(c.total_funding_musd for c in competitors) / len(competitors)
    if avg_funding > 50:
        return "high"
    if avg_funding > 20:
        return "medium"
    return "low"


def key_success_factors(competitors: List[DiscoveredCompetitor], limit: int = 5) -> List[str]:
    factors: Dict[str, None] = {}
    for c in competitors:
        for factor in c.strengths + c.differentiators:
            factors.setdefault(factor, None)
    return list(factors)[:limit]


def competitive_matrix(
    competitors: List[DiscoveredCompetitor],
    features: Iterable[str] = MATRIX_FEATURES,
) -> List[CompetitiveMatrixRow]:
    features = list(features)
    rows = []
    for competitor in competitors:
        coverage = {feature: has_feature(competitor, feature) for feature in features}
        score = sum(coverage.values()) / len(features) if features else 0.0
        rows.append(CompetitiveMatrixRow(competitor=competitor.name, features=coverage, score=round(score, 4)))
    return rows


def whitespace_opportunities(
    matrix: List[CompetitiveMatrixRow],
    features: Iterable[str] = MATRIX_FEATURES,
) -> List[WhitespaceOpportunity]:
    """Features offered by fewer than 30% of mapped competitors"""
    if not matrix:
        return []
    opportunities = []
    for feature in features:
        coverage = sum(1 for row in matrix if row.features.get(feature)) / len(matrix)
        if coverage < 0.3:
            opportunities.append(WhitespaceOpportunity(
                opportunity=f"{feature} gap",
                description=f"Only {round(coverage * 100)}% of competitors offer {feature.lower()}",
                coverage=round(coverage, 4),
                difficulty=estimate_complexity(feature),
            ))
    return opportunities


def analyze_competitive_gaps(
    competitors: List[DiscoveredCompetitor],
    target_features: List[str],
) -> CompetitiveGapAnalysis:
    """Coverage of each target feature and where it is worth competing"""
    analysis = CompetitiveGapAnalysis()
    for feature in target_features:
        coverage = feature_coverage(competitors, feature)
        opportunity = "high" if coverage < 0.3 else "medium" if coverage < 0.6 else "low"
        complexity = estimate_complexity(feature)
        analysis.gaps.append(FeatureGap(
            feature=feature,
            coverage=round(coverage, 4),
            opportunity=opportunity,
            complexity=complexity,
        ))
        if opportunity == "high":
            analysis.recommendations.append(GapRecommendation(
                feature=feature,
                rationale=(
                    f"Only {round(coverage * 100)}% of competitors offer this feature, "
                    "presenting a significant opportunity"
                ),
                priority="high",
                effort=complexity,
                impact="high",
            ))
    return analysis


def _parse_funding(value: Any) -> float:
    if isinstance(value, (int, float)):
        return max(float(value), 0.0)
    if isinstance(value, str):
        match = _FUNDING_NUMBER.search(value.replace(",", ""))
        if match:
            try:
                return float(match.group())
            except ValueError:
                return 0.0
    return 0.0


def _name_from_title(title: str) -> str:
    return _TITLE_SPLIT.split(title.strip(), maxsplit=1)[0].strip()


class CompetitorDiscoveryCollaborator(ResearchCollaborator):
    """Direct, indirect and substitute competitors for a business idea"""

    kind = ResearchKind.COMPETITORS
    default_ttl = settings.CACHE_TTL_COMPETITORS

    def __init__(
        self,
        cache,
        source=None,
        ttl_seconds: Optional[int] = None,
        max_competitors: int = 15,
        include_indirect: bool = True,
        include_substitutes: bool = True,
    ):
        super().__init__(cache, source, ttl_seconds)
        self.max_competitors = max_competitors
        self.include_indirect = include_indirect
        self.include_substitutes = include_substitutes

    def score_similarity(self, query: ResearchQuery, record: Dict[str, Any]) -> float:
        """Share of the query's content words found in the candidate's text"""
        if record.get("similarity") is not None:
            return max(0.0, min(1.0, float(record["similarity"])))
        terms = query.search_terms()
        if not terms:
            return 0.0
        text = " ".join([
            str(record.get("name") or record.get("title") or ""),
            str(record.get("description") or record.get("snippet") or ""),
            " ".join(record.get("key_features") or record.get("features") or []),
        ])
        candidate_tokens = set(tokenize(text))
        return round(sum(1 for t in terms if t in candidate_tokens) / len(terms), 4)

    def to_candidate(self, query: ResearchQuery, record: Dict[str, Any]) -> Optional[DiscoveredCompetitor]:
        name = record.get("name") or _name_from_title(str(record.get("title") or ""))
        if not name:
            return None
        similarity = self.score_similarity(query, record)
        category = classify_similarity(similarity)
        if category is None:
            return None
        return DiscoveredCompetitor(
            name=name,
            website=record.get("website") or record.get("link") or "",
            description=record.get("description") or record.get("snippet") or "",
            category=category,
            similarity=similarity,
            market_share=max(float(record.get("market_share") or 0.0), 0.0),
            total_funding_musd=_parse_funding(record.get("funding")),
            key_features=list(record.get("key_features") or record.get("features") or []),
            strengths=list(record.get("strengths") or []),
            weaknesses=list(record.get("weaknesses") or []),
            differentiators=list(record.get("differentiators") or []),
            discovery_source=record.get("source") or self.source.name,
        )

    def build_result(self, query: ResearchQuery, records: List[Dict[str, Any]]) -> CompetitorLandscape:
        candidates: Dict[str, DiscoveredCompetitor] = {}
        for record in records:
            candidate = self.to_candidate(query, record)
            if candidate is None:
                continue
            key = candidate.name.casefold()
            if key not in candidates or candidates[key].similarity < candidate.similarity:
                candidates[key] = candidate

        ranked = sorted(candidates.values(), key=lambda c: (-c.similarity, c.name.casefold()))
        if not self.include_indirect:
            ranked = [c for c in ranked if c.category != "indirect"]
        if not self.include_substitutes:
            ranked = [c for c in ranked if c.category != "substitute"]
        ranked = ranked[:self.max_competitors]

        direct = [c for c in ranked if c.category == "direct"]
        indirect = [c for c in ranked if c.category == "indirect"]
        substitutes = [c for c in ranked if c.category == "substitute"]

        matrix = competitive_matrix(direct + indirect)
        mean_similarity = sum(c.similarity for c in ranked) / len(ranked) if ranked else 0.0
        confidence = 0.0 if not ranked else min(1.0, 0.2 + 0.05 * len(ranked) + 0.4 * mean_similarity)

        return CompetitorLandscape(
            confidence=round(confidence, 4),
            sources=sorted({c.discovery_source for c in ranked if c.discovery_source}),
            total_competitors=len(ranked),
            direct_competitors=direct,
            indirect_competitors=indirect,
            substitute_competitors=substitutes,
            market_concentration=market_concentration(direct),
            competitive_intensity=competitive_intensity(len(ranked)),
            barrier_to_entry=barrier_to_entry(direct),
            key_success_factors=key_success_factors(direct),
            whitespace_opportunities=whitespace_opportunities(matrix),
            competitive_matrix=matrix,
        )

    def default_result(self, query: ResearchQuery) -> CompetitorLandscape:
        return CompetitorLandscape(is_default=True)

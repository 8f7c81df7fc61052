"""
Agent Input/Output Schemas
Wire format is camelCase; snake_case field names are accepted on input
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Mapping, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .research import ResearchSummary

Level = Literal["high", "medium", "low"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProcessingMode(str, Enum):
    DISCOVERY = "discovery"
    QUESTIONS = "questions"
    DEEP_ANALYSIS = "deep_analysis"
    STRATEGY = "strategy"
    VALIDATION = "validation"


# ============================================================================
# MARKET MAPPER
# ============================================================================

class MarketMapperInput(CamelModel):
    """Business idea plus whatever the founder has answered so far"""
    business_idea: str = Field(..., min_length=10, max_length=5000)
    industry: str = Field(default="", max_length=255)
    target_market: str = Field(default="", max_length=500)
    geography: str = Field(default="global", max_length=100)
    keywords: List[str] = Field(default_factory=list, max_length=20)
    answers: Dict[str, str] = Field(default_factory=dict)
    processing_mode: Optional[ProcessingMode] = None

    @field_validator("business_idea")
    @classmethod
    def strip_idea(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 10:
            raise ValueError("Business idea must be at least 10 characters")
        return v

    @field_validator("answers", mode="before")
    @classmethod
    def coerce_answers(cls, v):
        if v is None:
            return {}
        if isinstance(v, Mapping):
            return {str(k): "" if val is None else str(val) for k, val in v.items()}
        return v

    def answered_keys(self) -> Set[str]:
        return {key for key, value in self.answers.items() if value.strip()}

    def answer_count(self) -> int:
        return len(self.answered_keys())


class AudienceSegment(CamelModel):
    segment: str
    pain_points: List[str] = Field(default_factory=list)
    size: str = ""
    characteristics: List[str] = Field(default_factory=list)


class MarketOpportunity(CamelModel):
    size: str = ""
    growth: str = ""
    trends: List[str] = Field(default_factory=list)


class CompetitorSummary(CamelModel):
    name: str = Field(..., min_length=1)
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    market_position: str = ""
    website: str = ""
    origin: Literal["analysis", "research"] = "analysis"


class Positioning(CamelModel):
    usp: str = ""
    differentiation: List[str] = Field(default_factory=list)
    value_proposition: str = ""


class Recommendation(CamelModel):
    action: str = Field(..., min_length=1)
    priority: Level = "medium"
    reasoning: str = ""


class ClarifyingQuestion(CamelModel):
    id: str = Field(..., min_length=1)
    question: str = Field(..., min_length=1)
    type: str = ""
    required: bool = False


class IdeaValidation(CamelModel):
    verdict: Literal["go", "refine", "pivot"] = "refine"
    demand_signal: Literal["none", "weak", "moderate", "strong"] = "none"
    evidence_for: List[str] = Field(default_factory=list)
    evidence_against: List[str] = Field(default_factory=list)
    next_steps: List[str] = Field(default_factory=list)


class MarketMapperReply(CamelModel):
    """What the model returns; every section is optional and depends on the mode"""
    executive_summary: str = ""
    target_audience: List[AudienceSegment] = Field(default_factory=list)
    market_opportunity: Optional[MarketOpportunity] = None
    competitors: List[CompetitorSummary] = Field(default_factory=list)
    positioning: Optional[Positioning] = None
    recommendations: List[Recommendation] = Field(default_factory=list)
    questions: List[ClarifyingQuestion] = Field(default_factory=list)
    validation: Optional[IdeaValidation] = None
    confidence_score: Optional[float] = None


class MarketMapperOutput(CamelModel):
    processing_mode: ProcessingMode
    executive_summary: str = ""
    target_audience: List[AudienceSegment] = Field(default_factory=list)
    market_opportunity: Optional[MarketOpportunity] = None
    competitors: List[CompetitorSummary] = Field(default_factory=list)
    positioning: Optional[Positioning] = None
    recommendations: List[Recommendation] = Field(default_factory=list)
    questions: List[ClarifyingQuestion] = Field(default_factory=list)
    validation: Optional[IdeaValidation] = None
    research_summary: ResearchSummary = Field(default_factory=ResearchSummary)
    confidence_score: float = Field(..., ge=0.0, le=1.0)


class ModeRecommendationResponse(CamelModel):
    """Readiness check for a MarketMapper input; costs no credit"""
    recommended_mode: ProcessingMode
    has_enough_information: bool
    answered_count: int
    unanswered_questions: List[ClarifyingQuestion] = Field(default_factory=list)


# ============================================================================
# COMPETITOR GPT
# ============================================================================

class CompetitorGPTInput(CamelModel):
    business_idea: str = Field(..., min_length=10, max_length=5000)
    industry: str = Field(..., min_length=1, max_length=255)
    target_market: str = Field(..., min_length=1, max_length=500)


class DirectCompetitor(CamelModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    market_share: float = Field(default=0.0, ge=0.0, le=100.0)
    funding: str = ""
    website: str = ""


class IndirectCompetitor(CamelModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    overlap: str = ""
    threat: Level = "medium"


class CompetitiveAdvantage(CamelModel):
    advantage: str = Field(..., min_length=1)
    sustainability: Level = "medium"
    implementation: str = ""


class StrategicRecommendation(CamelModel):
    recommendation: str = Field(..., min_length=1)
    priority: Level = "medium"
    reasoning: str = ""


class CompetitorGPTOutput(CamelModel):
    direct_competitors: List[DirectCompetitor] = Field(default_factory=list)
    indirect_competitors: List[IndirectCompetitor] = Field(default_factory=list)
    competitive_advantages: List[CompetitiveAdvantage] = Field(default_factory=list)
    recommendations: List[StrategicRecommendation] = Field(default_factory=list)
    research_summary: ResearchSummary = Field(default_factory=ResearchSummary)
    confidence_score: float = Field(default=0.0, ge=0.0, le=1.0)


# ============================================================================
# MVP ARCHITECT
# ============================================================================

class MVPArchitectInput(CamelModel):
    business_idea: str = Field(..., min_length=10, max_length=5000)
    target_audience: str = Field(..., min_length=5, max_length=500)
    budget: float = Field(..., ge=0)
    timeline: str = Field(..., min_length=1, max_length=100)
    technical_expertise: Literal["beginner", "intermediate", "advanced"]


class MVPFeature(CamelModel):
    feature: str = Field(..., min_length=1)
    priority: Literal["must-have", "should-have", "nice-to-have"]
    complexity: Level
    estimated_hours: float = Field(..., ge=0)


class TechStack(CamelModel):
    frontend: List[str] = Field(default_factory=list)
    backend: List[str] = Field(default_factory=list)
    database: str = ""
    hosting: str = ""
    third_party: List[str] = Field(default_factory=list)


class TimelinePhase(CamelModel):
    phase: str
    duration: str
    deliverables: List[str] = Field(default_factory=list)


class BudgetBreakdown(CamelModel):
    development: float = Field(..., ge=0)
    tools: float = Field(..., ge=0)
    hosting: float = Field(..., ge=0)
    total: float = Field(..., ge=0)


class MVPArchitectOutput(CamelModel):
    features: List[MVPFeature]
    tech_stack: TechStack
    timeline: List[TimelinePhase]
    budget: BudgetBreakdown


# ============================================================================
# NORMALIZERS
# ============================================================================

def rename_keys(data: Any, synonyms: Dict[str, List[str]]) -> Any:
    """
    Copy of `data` with the first present alternate spelling moved onto
    each canonical key. Non-dict payloads are returned untouched.
    """
    if not isinstance(data, dict):
        return data
    out = dict(data)
    for canonical, alternates in synonyms.items():
        if canonical in out:
            continue
        for alternate in alternates:
            if alternate in out:
                out[canonical] = out.pop(alternate)
                break
    return out


def _rename_items(items: Any, synonyms: Dict[str, List[str]]) -> Any:
    if not isinstance(items, list):
        return items
    return [rename_keys(item, synonyms) for item in items]


def _objects(items: Any, key: str) -> Any:
    """Bare strings in a list become one-key objects"""
    if not isinstance(items, list):
        return items
    return [{key: item} if isinstance(item, str) else item for item in items]


def _lower_enum(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower().replace(" ", "_")
    return value


def _lowered(items: Any, *fields: str) -> Any:
    if not isinstance(items, list):
        return items
    out = []
    for item in items:
        if isinstance(item, dict):
            item = dict(item)
            for field in fields:
                if field in item:
                    item[field] = _lower_enum(item[field])
        out.append(item)
    return out


def _as_text(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


MARKET_MAPPER_SYNONYMS = {
    "executiveSummary": ["executive_summary", "summary", "overview"],
    "targetAudience": ["target_audience", "audience", "audienceSegments", "segments"],
    "marketOpportunity": ["market_opportunity", "opportunity", "market"],
    "competitors": ["competitive_landscape", "competitorAnalysis", "competitor_analysis"],
    "positioning": ["positioning_strategy", "positioningStrategy"],
    "recommendations": ["next_steps", "nextSteps", "actions"],
    "questions": ["clarifying_questions", "clarifyingQuestions", "followUpQuestions"],
    "validation": ["idea_validation", "ideaValidation"],
    "confidenceScore": ["confidence_score", "confidence"],
}
SEGMENT_SYNONYMS = {
    "segment": ["name", "title"],
    "painPoints": ["pain_points", "problems", "needs"],
}
COMPETITOR_SYNONYMS = {
    "marketPosition": ["market_position", "position", "positioning"],
}
POSITIONING_SYNONYMS = {
    "usp": ["unique_selling_proposition", "uniqueSellingProposition"],
    "valueProposition": ["value_proposition", "value_prop"],
    "differentiation": ["differentiators"],
}
RECOMMENDATION_SYNONYMS = {
    "action": ["recommendation", "title", "step"],
    "reasoning": ["reason", "rationale", "why"],
}
QUESTION_SYNONYMS = {
    "id": ["key", "question_id", "questionId"],
    "question": ["text", "prompt"],
}
VALIDATION_SYNONYMS = {
    "evidenceFor": ["evidence_for", "supporting_evidence", "supportingEvidence"],
    "evidenceAgainst": ["evidence_against", "concerns", "risks"],
    "nextSteps": ["next_steps"],
    "demandSignal": ["demand_signal"],
}


def normalize_market_mapper_output(payload: Any) -> Any:
    data = rename_keys(payload, MARKET_MAPPER_SYNONYMS)
    if not isinstance(data, dict):
        return data
    data["targetAudience"] = _rename_items(data.get("targetAudience", []), SEGMENT_SYNONYMS)
    data["competitors"] = _rename_items(_objects(data.get("competitors", []), "name"), COMPETITOR_SYNONYMS)
    data["recommendations"] = _lowered(
        _rename_items(data.get("recommendations", []), RECOMMENDATION_SYNONYMS), "priority"
    )
    questions = _rename_items(data.get("questions", []), QUESTION_SYNONYMS)
    if isinstance(questions, list):
        questions = [
            {"id": f"question_{i + 1}", "question": q} if isinstance(q, str) else q
            for i, q in enumerate(questions)
        ]
    data["questions"] = questions

    opportunity = data.get("marketOpportunity")
    if isinstance(opportunity, dict):
        opportunity = dict(opportunity)
        for key in ("size", "growth"):
            opportunity[key] = _as_text(opportunity.get(key, ""))
        data["marketOpportunity"] = opportunity
    if isinstance(data.get("positioning"), dict):
        data["positioning"] = rename_keys(data["positioning"], POSITIONING_SYNONYMS)
    if isinstance(data.get("validation"), dict):
        validation = rename_keys(data["validation"], VALIDATION_SYNONYMS)
        if "verdict" in validation:
            validation["verdict"] = _lower_enum(validation["verdict"])
        data["validation"] = validation
    return data


COMPETITOR_GPT_SYNONYMS = {
    "directCompetitors": ["direct_competitors", "direct"],
    "indirectCompetitors": ["indirect_competitors", "indirect"],
    "competitiveAdvantages": ["competitive_advantages", "advantages"],
    "recommendations": ["strategic_recommendations", "strategicRecommendations"],
}
DIRECT_COMPETITOR_SYNONYMS = {
    "marketShare": ["market_share", "share"],
}
STRATEGIC_RECOMMENDATION_SYNONYMS = {
    "recommendation": ["action", "title"],
    "reasoning": ["reason", "rationale"],
}


def normalize_competitor_gpt_output(payload: Any) -> Any:
    data = rename_keys(payload, COMPETITOR_GPT_SYNONYMS)
    if not isinstance(data, dict):
        return data
    direct = _rename_items(data.get("directCompetitors", []), DIRECT_COMPETITOR_SYNONYMS)
    if isinstance(direct, list):
        for item in direct:
            if isinstance(item, dict):
                item["funding"] = _as_text(item.get("funding", ""))
    data["directCompetitors"] = direct
    data["indirectCompetitors"] = _lowered(data.get("indirectCompetitors", []), "threat")
    data["competitiveAdvantages"] = _lowered(data.get("competitiveAdvantages", []), "sustainability")
    data["recommendations"] = _lowered(
        _rename_items(data.get("recommendations", []), STRATEGIC_RECOMMENDATION_SYNONYMS), "priority"
    )
    return data


MVP_ARCHITECT_SYNONYMS = {
    "techStack": ["tech_stack", "technologyStack", "stack"],
    "features": ["core_features", "coreFeatures"],
    "timeline": ["phases", "roadmap"],
    "budget": ["costs", "budget_breakdown", "budgetBreakdown"],
}
FEATURE_SYNONYMS = {
    "feature": ["name", "title"],
    "estimatedHours": ["estimated_hours", "hours"],
}
TECH_STACK_SYNONYMS = {
    "thirdParty": ["third_party", "integrations", "services"],
}


def _feature_priority(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower().replace("_", "-").replace(" ", "-")
    return value


def normalize_mvp_architect_output(payload: Any) -> Any:
    data = rename_keys(payload, MVP_ARCHITECT_SYNONYMS)
    if not isinstance(data, dict):
        return data
    features = _lowered(_rename_items(data.get("features", []), FEATURE_SYNONYMS), "complexity")
    if isinstance(features, list):
        for item in features:
            if isinstance(item, dict) and "priority" in item:
                item["priority"] = _feature_priority(item["priority"])
    data["features"] = features
    if isinstance(data.get("techStack"), dict):
        data["techStack"] = rename_keys(data["techStack"], TECH_STACK_SYNONYMS)
    budget = data.get("budget")
    if isinstance(budget, dict) and "total" not in budget:
        parts = [budget.get(k) for k in ("development", "tools", "hosting")]
        if all(isinstance(p, (int, float)) for p in parts):
            data["budget"] = {**budget, "total": sum(parts)}
    return data

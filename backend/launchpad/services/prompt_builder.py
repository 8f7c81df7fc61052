"""
Prompt Builder
Pure assembly of provider requests from agent input and research results
"""

import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from launchpad.adapters.llm import LLMMessage
from launchpad.config import INDUSTRY_CONTEXT, get_settings
from launchpad.schemas.agents import ClarifyingQuestion, MarketMapperInput, ProcessingMode
from launchpad.schemas.research import (
    CompetitorLandscape,
    MarketSnapshot,
    ResearchBundle,
    ResearchKind,
    SentimentSnapshot,
    WebIntelligence,
)
from launchpad.services.research.market_research import generate_market_forecast
from launchpad.utils.security import generate_prompt_hash

settings = get_settings()


@dataclass
class ProviderRequest:
    """Everything the gateway needs for one completion"""
    system_prompt: str
    messages: List[LLMMessage]
    max_tokens: int = settings.LLM_DEFAULT_MAX_TOKENS
    temperature: float = settings.LLM_DEFAULT_TEMPERATURE
    mode: Optional[ProcessingMode] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


# Research each mode reads; the agent fetches only these
MODE_RESEARCH: Dict[ProcessingMode, Tuple[ResearchKind, ...]] = {
    ProcessingMode.DISCOVERY: (ResearchKind.COMPETITORS, ResearchKind.MARKET),
    ProcessingMode.QUESTIONS: (ResearchKind.COMPETITORS,),
    ProcessingMode.DEEP_ANALYSIS: (
        ResearchKind.COMPETITORS, ResearchKind.MARKET, ResearchKind.SENTIMENT, ResearchKind.WEB,
    ),
    ProcessingMode.STRATEGY: (ResearchKind.COMPETITORS, ResearchKind.MARKET, ResearchKind.SENTIMENT),
    ProcessingMode.VALIDATION: (ResearchKind.SENTIMENT, ResearchKind.WEB, ResearchKind.MARKET),
}

QUESTION_BANK: List[ClarifyingQuestion] = [
    ClarifyingQuestion(
        id="target_customer",
        question="Who is your primary target customer? Describe their demographics, job roles, and key characteristics.",
        type="target_customer",
        required=True,
    ),
    ClarifyingQuestion(
        id="problem_definition",
        question="What specific problem does your solution solve? How do your customers handle it today?",
        type="problem_definition",
        required=True,
    ),
    ClarifyingQuestion(
        id="business_model",
        question="How do you plan to make money? What is your pricing strategy and revenue model?",
        type="business_model",
        required=True,
    ),
    ClarifyingQuestion(
        id="differentiation",
        question="What makes your solution different from existing alternatives? What is your competitive advantage?",
        type="differentiation",
    ),
    ClarifyingQuestion(
        id="market_scope",
        question="Which regions or segments will you launch in first, and where do you expand next?",
        type="market_scope",
    ),
    ClarifyingQuestion(
        id="go_to_market",
        question="How will your first hundred customers hear about you?",
        type="go_to_market",
    ),
    ClarifyingQuestion(
        id="resources",
        question="What team, budget, and timeline do you have for the first version?",
        type="resources",
    ),
    ClarifyingQuestion(
        id="traction",
        question="What evidence of demand do you already have (waitlist, pilots, letters of intent)?",
        type="traction",
    ),
]

MAX_QUESTIONS_PER_ROUND = 3

# Minimum answered questions before a mode produces a useful analysis
MIN_ANSWERS = {
    ProcessingMode.DISCOVERY: 0,
    ProcessingMode.QUESTIONS: 0,
    ProcessingMode.VALIDATION: 3,
    ProcessingMode.DEEP_ANALYSIS: 3,
    ProcessingMode.STRATEGY: 6,
}


def recommended_mode(answer_count: int) -> ProcessingMode:
    """0 answers -> discovery, 1-2 -> questions, 3-5 -> deep_analysis, 6+ -> strategy"""
    if answer_count <= 0:
        return ProcessingMode.DISCOVERY
    if answer_count <= 2:
        return ProcessingMode.QUESTIONS
    if answer_count <= 5:
        return ProcessingMode.DEEP_ANALYSIS
    return ProcessingMode.STRATEGY


def answered_keys(answers: Optional[Mapping[str, Any]]) -> Set[str]:
    if not answers:
        return set()
    return {key for key, value in answers.items() if value is not None and str(value).strip()}


def infer_mode(answers: Optional[Mapping[str, Any]]) -> ProcessingMode:
    return recommended_mode(len(answered_keys(answers)))


def remaining_questions(
    answered: Iterable[str],
    limit: Optional[int] = MAX_QUESTIONS_PER_ROUND,
) -> List[ClarifyingQuestion]:
    """Bank questions whose key has not been answered, required ones first"""
    answered = set(answered)
    pending = [q for q in QUESTION_BANK if q.id not in answered]
    pending.sort(key=lambda q: not q.required)
    return pending if limit is None else pending[:limit]


_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def render_template(template_text: str, context: Dict[str, Any]) -> str:
    """
    Single-pass {variable} substitution; lists are joined with commas.

    Substituted values are never rescanned, so user text containing a
    placeholder name stays literal. Unknown placeholders are left as-is.
    """
    def substitute(match: "re.Match[str]") -> str:
        key = match.group(1)
        if key not in context:
            return match.group(0)
        value = context[key]
        if isinstance(value, (list, tuple, set)):
            value = ", ".join(str(v) for v in value)
        return str(value)

    return _PLACEHOLDER.sub(substitute, template_text).strip()


# ============================================================================
# RESEARCH RENDERING
# ============================================================================

def _money(value: float) -> str:
    if value >= 1_000_000_000:
        return f"${value / 1_000_000_000:.1f}B"
    if value >= 1_000_000:
        return f"${value / 1_000_000:.1f}M"
    return f"${value:,.0f}"


def render_competitors(landscape: Optional[CompetitorLandscape], names_only: bool = False) -> str:
    if landscape is None:
        return ""
    competitors = landscape.all_competitors()
    if not competitors:
        return "Known competitors: none found"
    if names_only:
        return "Known competitors: " + ", ".join(c.name for c in competitors)

    lines = [
        f"Competitive landscape ({landscape.total_competitors} found, "
        f"{landscape.competitive_intensity} intensity, {landscape.market_concentration} market, "
        f"{landscape.barrier_to_entry} barrier to entry):"
    ]
    for c in competitors:
        detail = f"- {c.name} [{c.category}, similarity {c.similarity:.2f}]"
        if c.description:
            detail += f": {c.description[:160]}"
        lines.append(detail)
    if landscape.whitespace_opportunities:
        lines.append("Whitespace: " + ", ".join(w.opportunity for w in landscape.whitespace_opportunities))
    if landscape.key_success_factors:
        lines.append("Key success factors: " + ", ".join(landscape.key_success_factors))
    return "\n".join(lines)


def render_market(snapshot: Optional[MarketSnapshot]) -> str:
    if snapshot is None:
        return ""
    lines = [
        f"Market sizing for {snapshot.industry or 'this industry'}: "
        f"TAM {_money(snapshot.tam.value)}, SAM {_money(snapshot.sam.value)}, "
        f"SOM {_money(snapshot.som.value)}, growth {snapshot.growth_rate:.0f}% per year"
    ]
    for trend in snapshot.trends:
        lines.append(f"- Trend: {trend.trend} ({trend.impact} impact, {trend.timeframe})")
    if snapshot.tam.value > 0:
        forecast = generate_market_forecast(
            snapshot.industry or "other",
            snapshot.tam.value,
            [t.trend for t in snapshot.trends if t.impact == "high"],
        )
        lines.append("TAM outlook: " + ", ".join(
            f"year {f.year_offset} {_money(f.realistic)} ({_money(f.pessimistic)}-{_money(f.optimistic)})"
            for f in forecast.forecasts
        ))
    if snapshot.is_default:
        lines.append("(Sizing is a generic estimate; treat with caution.)")
    return "\n".join(lines)


def render_sentiment(snapshot: Optional[SentimentSnapshot]) -> str:
    if snapshot is None:
        return ""
    lines = [
        f"Market sentiment: {snapshot.market_mood} (score {snapshot.score:+.2f}, "
        f"{snapshot.sample_size} sources)"
    ]
    for pain in snapshot.pain_points:
        lines.append(f"- Pain point: {pain.pain_point} ({pain.severity}, mentioned {pain.frequency}x)")
    lines.extend(f"- {insight}" for insight in snapshot.insights)
    return "\n".join(lines)


def render_web(intel: Optional[WebIntelligence]) -> str:
    if intel is None:
        return ""
    counts = ", ".join(f"{k}: {v}" for k, v in sorted(intel.category_counts.items())) or "none"
    lines = [f"Online conversation: {len(intel.mentions)} mentions ({counts}), demand signal {intel.demand_signal}"]
    lines.extend(f"- Forum complaint: {p}" for p in intel.forum_pain_points[:5])
    return "\n".join(lines)


def render_research(mode: ProcessingMode, research: ResearchBundle) -> str:
    """Only the sources the mode reads, in a fixed order"""
    kinds = MODE_RESEARCH[mode]
    sections = []
    if ResearchKind.COMPETITORS in kinds:
        sections.append(render_competitors(research.competitors, names_only=mode == ProcessingMode.QUESTIONS))
    if ResearchKind.MARKET in kinds:
        sections.append(render_market(research.market))
    if ResearchKind.SENTIMENT in kinds:
        sections.append(render_sentiment(research.sentiment))
    if ResearchKind.WEB in kinds:
        sections.append(render_web(research.web))
    return "\n\n".join(s for s in sections if s) or "No research data available."


def render_answers(answers: Mapping[str, str], answered: Set[str]) -> str:
    lines = [
        f"- {key}: {str(answers[key]).strip()}"
        for key in sorted(answered)
        if answers.get(key) is not None and str(answers[key]).strip()
    ]
    return "\n".join(lines) if lines else "None yet."


# ============================================================================
# TEMPLATES
# ============================================================================

SYSTEM_PROMPT = """You are MarketMapper, an expert market research analyst specializing in startup validation and market analysis.

Ground every claim in the research provided. Where research is missing, say so rather than inventing figures.
Respond with a single valid JSON object and nothing else."""

JSON_ONLY_REMINDER = (
    "Your previous reply could not be used. Respond again with exactly one JSON object "
    "matching the requested structure. Do not include prose or code fences."
)

CONTEXT_TEMPLATE = """Business idea: {business_idea}
Industry: {industry} ({industry_context})
Target market: {target_market}
Geography: {geography}
Keywords: {keywords}

Founder answers so far:
{answers}

Research:
{research}"""

MODE_TEMPLATES = {
    ProcessingMode.DISCOVERY: """{context}

Give a first-pass market map for this idea. Return JSON with:
- "executiveSummary": 2-3 sentences
- "targetAudience": list of {"segment", "painPoints", "size", "characteristics"}
- "marketOpportunity": {"size", "growth", "trends"}
- "competitors": list of {"name", "strengths", "weaknesses", "marketPosition"}
- "recommendations": list of {"action", "priority" (high|medium|low), "reasoning"}""",

    ProcessingMode.QUESTIONS: """{context}

The idea is still underspecified. Ask at most {max_questions} clarifying questions.
Choose from these open topics: {open_topics}
Do not ask about topics already answered: {answered_topics}
Return JSON with:
- "executiveSummary": one sentence on what is known so far
- "questions": list of {"id" (one of the open topics), "question", "type", "required"}""",

    ProcessingMode.DEEP_ANALYSIS: """{context}

Produce a full market analysis using every research source above. Return JSON with:
- "executiveSummary"
- "targetAudience": list of {"segment", "painPoints", "size", "characteristics"}
- "marketOpportunity": {"size", "growth", "trends"}
- "competitors": list of {"name", "strengths", "weaknesses", "marketPosition"}
- "positioning": {"usp", "differentiation", "valueProposition"}
- "recommendations": list of {"action", "priority" (high|medium|low), "reasoning"}
- "confidenceScore": your confidence in this analysis from 0 to 1""",

    ProcessingMode.STRATEGY: """{context}

The founder has answered enough to plan. Produce a go-to-market strategy. Return JSON with:
- "executiveSummary"
- "positioning": {"usp", "differentiation", "valueProposition"}
- "competitors": list of {"name", "strengths", "weaknesses", "marketPosition"}
- "recommendations": 4-6 items of {"action", "priority" (high|medium|low), "reasoning"}, ordered by priority
- "confidenceScore": your confidence in this strategy from 0 to 1""",

    ProcessingMode.VALIDATION: """{context}

Judge whether there is real demand for this idea, using the sentiment and online conversation above. Return JSON with:
- "executiveSummary"
- "validation": {"verdict" (go|refine|pivot), "demandSignal" (none|weak|moderate|strong), "evidenceFor", "evidenceAgainst", "nextSteps"}
- "recommendations": list of {"action", "priority" (high|medium|low), "reasoning"}
- "confidenceScore": your confidence in this verdict from 0 to 1""",
}


def build_prompt(
    mode: ProcessingMode,
    agent_input: MarketMapperInput,
    research: ResearchBundle,
    answered: Optional[Iterable[str]] = None,
    max_tokens: int = settings.LLM_DEFAULT_MAX_TOKENS,
    temperature: float = settings.LLM_DEFAULT_TEMPERATURE,
) -> ProviderRequest:
    """
    Provider-ready request for one MarketMapper mode.

    `answered` defaults to the input's non-empty answer keys; questions mode
    never offers a topic from that set.
    """
    mode = ProcessingMode(mode)
    answered_set = set(answered) if answered is not None else agent_input.answered_keys()
    industry_key = agent_input.industry.strip().lower()

    context = render_template(CONTEXT_TEMPLATE, {
        "business_idea": agent_input.business_idea,
        "industry": agent_input.industry or "unspecified",
        "industry_context": INDUSTRY_CONTEXT.get(industry_key, INDUSTRY_CONTEXT["other"]),
        "target_market": agent_input.target_market or "unspecified",
        "geography": agent_input.geography,
        "keywords": list(agent_input.keywords) or "none",
        "answers": render_answers(agent_input.answers, answered_set),
        "research": render_research(mode, research),
    })

    open_questions = remaining_questions(answered_set, limit=None)
    prompt = render_template(MODE_TEMPLATES[mode], {
        "context": context,
        "max_questions": MAX_QUESTIONS_PER_ROUND,
        "open_topics": [q.id for q in open_questions] or "none left",
        "answered_topics": sorted(answered_set) or "none",
    })

    return ProviderRequest(
        system_prompt=SYSTEM_PROMPT,
        messages=[LLMMessage(role="user", content=prompt)],
        max_tokens=max_tokens,
        temperature=temperature,
        mode=mode,
        metadata={
            "research_kinds": [k.value for k in MODE_RESEARCH[mode]],
            "prompt_hash": generate_prompt_hash(SYSTEM_PROMPT, prompt),
        },
    )


def with_json_reminder(request: ProviderRequest) -> ProviderRequest:
    """Same request with the JSON-only requirement restated as a final user turn"""
    return replace(
        request,
        messages=list(request.messages) + [LLMMessage(role="user", content=JSON_ONLY_REMINDER)],
    )

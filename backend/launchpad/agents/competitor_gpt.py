"""
CompetitorGPT Agent
Competitive landscape, advantages and positioning recommendations
"""

from typing import List, Optional

from launchpad.adapters.llm import LLMMessage
from launchpad.models import AgentType
from launchpad.schemas.agents import (
    CompetitorGPTInput,
    CompetitorGPTOutput,
    DirectCompetitor,
    IndirectCompetitor,
    normalize_competitor_gpt_output,
)
from launchpad.schemas.research import CompetitorLandscape, ResearchKind, ResearchQuery
from launchpad.services.prompt_builder import (
    ProviderRequest,
    render_competitors,
    render_sentiment,
    render_template,
)
from launchpad.services.research import analyze_competitive_gaps
from launchpad.services.schema_gate import Contract
from .base import AgentConfig, BaseAgent

SYSTEM_PROMPT = """You are CompetitorGPT, an expert competitive intelligence analyst specializing in startup market positioning and competitive strategy.

Your role is to:
1. Identify direct and indirect competitors in the market
2. Analyze competitor strengths, weaknesses, and market positioning
3. Identify potential competitive advantages for the new business
4. Provide strategic recommendations for market differentiation

Prefer the companies listed in the research. Respond with a single valid JSON object and nothing else."""

PROMPT_TEMPLATE = """Analyze the competitive landscape for this business idea:

Business Idea: {business_idea}
Industry: {industry}
Target Market: {target_market}

Research:
{research}

Return JSON with:
- "directCompetitors" (3-5): {"name", "description", "strengths", "weaknesses", "marketShare" (percent), "funding", "website"}
- "indirectCompetitors" (3-4): {"name", "description", "overlap", "threat" (high|medium|low)}
- "competitiveAdvantages" (4-6): {"advantage", "sustainability" (high|medium|low), "implementation"}
- "recommendations" (4-5): {"recommendation", "priority" (high|medium|low), "reasoning"}"""

RESEARCH_KINDS = (ResearchKind.COMPETITORS, ResearchKind.SENTIMENT)

COMPETITOR_GPT_INPUT = Contract("competitor_gpt input", CompetitorGPTInput)
COMPETITOR_GPT_OUTPUT = Contract("competitor_gpt output", CompetitorGPTOutput, normalize_competitor_gpt_output)


def _known(names: List[str]) -> set:
    return {n.strip().casefold() for n in names}


def render_feature_gaps(landscape: Optional[CompetitorLandscape]) -> str:
    """Features the mapped competitors rarely offer, as openings to position against"""
    if landscape is None:
        return ""
    competitors = landscape.all_competitors()
    features = list(dict.fromkeys(f for c in competitors for f in c.key_features))
    if not features:
        return ""
    analysis = analyze_competitive_gaps(competitors, features)
    if not analysis.recommendations:
        return ""
    lines = ["Feature gaps:"]
    lines.extend(f"- {r.feature}: {r.rationale} (effort {r.effort})" for r in analysis.recommendations)
    return "\n".join(lines)


class CompetitorGPTAgent(BaseAgent):
    config = AgentConfig(
        type=AgentType.COMPETITOR_GPT,
        name="Competitor GPT",
        description="Analyzes competitive landscape and identifies strategic advantages",
        system_prompt=SYSTEM_PROMPT,
        input_contract=COMPETITOR_GPT_INPUT,
        output_contract=COMPETITOR_GPT_OUTPUT,
        max_tokens=4000,
        temperature=0.3,
    )

    async def process_input(self, agent_input: CompetitorGPTInput) -> CompetitorGPTOutput:
        query = ResearchQuery(
            business_idea=agent_input.business_idea,
            industry=agent_input.industry,
            target_market=agent_input.target_market,
        )
        research = await self.research(RESEARCH_KINDS, query)

        prompt = render_template(PROMPT_TEMPLATE, {
            "business_idea": agent_input.business_idea,
            "industry": agent_input.industry,
            "target_market": agent_input.target_market,
            "research": "\n\n".join(
                s for s in (
                    render_competitors(research.competitors),
                    render_feature_gaps(research.competitors),
                    render_sentiment(research.sentiment),
                ) if s
            ),
        })
        request = ProviderRequest(
            system_prompt=self.config.system_prompt,
            messages=[LLMMessage(role="user", content=prompt)],
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
        )
        data = await self.call_structured(request)
        reply = self.validate_output(data)

        return reply.model_copy(update={
            "direct_competitors": self._with_discovered_direct(reply.direct_competitors, research.competitors),
            "indirect_competitors": self._with_discovered_indirect(reply.indirect_competitors, research.competitors),
            "research_summary": research.summary(),
            "confidence_score": research.confidence(),
        })

    @staticmethod
    def _with_discovered_direct(
        named: List[DirectCompetitor],
        landscape: Optional[CompetitorLandscape],
    ) -> List[DirectCompetitor]:
        if landscape is None:
            return named
        known = _known([c.name for c in named])
        extra = [
            DirectCompetitor(
                name=c.name,
                description=c.description,
                strengths=c.strengths,
                weaknesses=c.weaknesses,
                market_share=min(c.market_share, 100.0),
                funding=f"${c.total_funding_musd:g}M" if c.total_funding_musd else "",
                website=c.website,
            )
            for c in landscape.direct_competitors
            if c.name.strip().casefold() not in known
        ]
        return named + extra

    @staticmethod
    def _with_discovered_indirect(
        named: List[IndirectCompetitor],
        landscape: Optional[CompetitorLandscape],
    ) -> List[IndirectCompetitor]:
        if landscape is None:
            return named
        known = _known([c.name for c in named])
        extra = [
            IndirectCompetitor(
                name=c.name,
                description=c.description,
                overlap=f"{c.category} alternative, similarity {c.similarity:.2f}",
                threat="medium" if c.category == "indirect" else "low",
            )
            for c in landscape.indirect_competitors + landscape.substitute_competitors
            if c.name.strip().casefold() not in known
        ]
        return named + extra

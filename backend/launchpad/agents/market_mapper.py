"""
MarketMapper Agent
Mode-driven market analysis with progressive clarification
"""

from typing import Any, Dict, List, Optional

from launchpad.models import AgentType
from launchpad.schemas.agents import (
    ClarifyingQuestion,
    CompetitorSummary,
    IdeaValidation,
    MarketMapperInput,
    MarketMapperOutput,
    MarketMapperReply,
    ModeRecommendationResponse,
    ProcessingMode,
    normalize_market_mapper_output,
)
from launchpad.schemas.research import ResearchBundle, ResearchQuery
from launchpad.services import prompt_builder
from launchpad.services.prompt_builder import MAX_QUESTIONS_PER_ROUND, MIN_ANSWERS, MODE_RESEARCH
from launchpad.services.schema_gate import Contract
from .base import AgentConfig, BaseAgent

MARKET_MAPPER_INPUT = Contract("market_mapper input", MarketMapperInput)
MARKET_MAPPER_OUTPUT = Contract("market_mapper output", MarketMapperOutput, normalize_market_mapper_output)
MARKET_MAPPER_REPLY = Contract("market_mapper reply", MarketMapperReply, normalize_market_mapper_output)


class MarketMapperAgent(BaseAgent):
    """
    Picks a processing mode from the input (explicit `processingMode`, else
    the number of answered questions), fetches only the research that mode
    reads, and merges the model's reply with what research discovered.
    """

    config = AgentConfig(
        type=AgentType.MARKET_MAPPER,
        name="Market Mapper",
        description="Analyzes market opportunities, trends, and threats for startup validation",
        system_prompt=prompt_builder.SYSTEM_PROMPT,
        input_contract=MARKET_MAPPER_INPUT,
        output_contract=MARKET_MAPPER_OUTPUT,
        max_tokens=4000,
        temperature=0.3,
    )

    def _coerce(self, agent_input: Any) -> MarketMapperInput:
        if isinstance(agent_input, MarketMapperInput):
            return agent_input
        return self.validate_input(agent_input)

    def recommended_mode(self, agent_input: Any) -> ProcessingMode:
        return prompt_builder.recommended_mode(self._coerce(agent_input).answer_count())

    def mode_for(self, agent_input: MarketMapperInput) -> ProcessingMode:
        return agent_input.processing_mode or self.recommended_mode(agent_input)

    def has_enough_information(self, agent_input: Any, mode: Optional[ProcessingMode] = None) -> bool:
        """Enough answered questions for the requested (or recommended) mode"""
        agent_input = self._coerce(agent_input)
        mode = mode or self.mode_for(agent_input)
        return agent_input.answer_count() >= MIN_ANSWERS[ProcessingMode(mode)]

    def readiness(self, agent_input: Any) -> ModeRecommendationResponse:
        agent_input = self._coerce(agent_input)
        mode = self.recommended_mode(agent_input)
        return ModeRecommendationResponse(
            recommended_mode=mode,
            has_enough_information=self.has_enough_information(agent_input, agent_input.processing_mode or mode),
            answered_count=agent_input.answer_count(),
            unanswered_questions=prompt_builder.remaining_questions(agent_input.answered_keys()),
        )

    def describe_input(self, agent_input: MarketMapperInput) -> Optional[str]:
        return agent_input.business_idea

    @staticmethod
    def to_query(agent_input: MarketMapperInput) -> ResearchQuery:
        return ResearchQuery(
            business_idea=agent_input.business_idea,
            industry=agent_input.industry,
            target_market=agent_input.target_market,
            geography=agent_input.geography,
            keywords=agent_input.keywords,
        )

    async def process_input(self, agent_input: MarketMapperInput) -> MarketMapperOutput:
        mode = self.mode_for(agent_input)
        research = await self.research(MODE_RESEARCH[mode], self.to_query(agent_input))

        request = prompt_builder.build_prompt(
            mode,
            agent_input,
            research,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
        )
        data = await self.call_structured(request)
        reply = self.gate.validate(data, MARKET_MAPPER_REPLY)
        return self.assemble_output(mode, agent_input, research, reply)

    def assemble_output(
        self,
        mode: ProcessingMode,
        agent_input: MarketMapperInput,
        research: ResearchBundle,
        reply: MarketMapperReply,
    ) -> MarketMapperOutput:
        answered = agent_input.answered_keys()

        questions = self._unanswered(reply.questions, answered)
        if mode == ProcessingMode.QUESTIONS:
            questions = questions or prompt_builder.remaining_questions(answered)
            questions = questions[:MAX_QUESTIONS_PER_ROUND]

        validation = None
        if mode == ProcessingMode.VALIDATION:
            validation = reply.validation or IdeaValidation(
                demand_signal=research.web.demand_signal if research.web else "none",
            )

        return MarketMapperOutput(
            processing_mode=mode,
            executive_summary=reply.executive_summary,
            target_audience=reply.target_audience,
            market_opportunity=reply.market_opportunity,
            competitors=self._merge_competitors(reply.competitors, research),
            positioning=reply.positioning,
            recommendations=reply.recommendations,
            questions=questions,
            validation=validation,
            research_summary=research.summary(),
            confidence_score=self._confidence(research, reply.confidence_score),
        )

    @staticmethod
    def _unanswered(questions: List[ClarifyingQuestion], answered) -> List[ClarifyingQuestion]:
        seen = set()
        kept = []
        for q in questions:
            if q.id in answered or q.id in seen:
                continue
            seen.add(q.id)
            kept.append(q)
        return kept

    @staticmethod
    def _merge_competitors(
        analysed: List[CompetitorSummary],
        research: ResearchBundle,
    ) -> List[CompetitorSummary]:
        """Model competitors first, then discovered ones not already named"""
        merged: Dict[str, CompetitorSummary] = {}
        for competitor in analysed:
            merged.setdefault(competitor.name.strip().casefold(), competitor)
        if research.competitors is not None:
            for found in research.competitors.all_competitors():
                merged.setdefault(found.name.strip().casefold(), CompetitorSummary(
                    name=found.name,
                    strengths=found.strengths,
                    weaknesses=found.weaknesses,
                    market_position=f"{found.category} competitor",
                    website=found.website,
                    origin="research",
                ))
        return list(merged.values())

    @staticmethod
    def _confidence(research: ResearchBundle, model_score: Optional[float]) -> float:
        score = research.confidence()
        if model_score is not None:
            score = (score + max(0.0, min(1.0, model_score))) / 2
        return round(max(0.0, min(1.0, score)), 4)

"""
Agents: mode selection, research use, output assembly and session lifecycle
"""

import pytest

from launchpad.exceptions import ParseError, ProviderError, ValidationError
from launchpad.models import AgentType, ConversationRole, SessionStatus
from launchpad.schemas.agents import MarketMapperOutput, ProcessingMode
from launchpad.schemas.research import ResearchKind
from launchpad.services.prompt_builder import JSON_ONLY_REMINDER


@pytest.fixture
def market_mapper(agents):
    return agents[AgentType.MARKET_MAPPER]


@pytest.fixture
def competitor_gpt(agents):
    return agents[AgentType.COMPETITOR_GPT]


@pytest.fixture
def mvp_architect(agents):
    return agents[AgentType.MVP_ARCHITECT]


# ── MarketMapper modes ──

class TestMarketMapperModes:
    def test_recommended_mode_follows_answers(self, market_mapper, market_mapper_input):
        assert market_mapper.recommended_mode(market_mapper_input) == ProcessingMode.DISCOVERY
        market_mapper_input["answers"] = {"target_customer": "a", "business_model": "b", "traction": "c"}
        assert market_mapper.recommended_mode(market_mapper_input) == ProcessingMode.DEEP_ANALYSIS

    def test_explicit_mode_needs_enough_answers(self, market_mapper, market_mapper_input):
        market_mapper_input["answers"] = {"target_customer": "a", "business_model": "b", "traction": "c"}
        market_mapper_input["processingMode"] = "strategy"
        assert market_mapper.has_enough_information(market_mapper_input) is False
        assert market_mapper.has_enough_information(market_mapper_input, ProcessingMode.VALIDATION) is True

        readiness = market_mapper.readiness(market_mapper_input)
        assert readiness.recommended_mode == ProcessingMode.DEEP_ANALYSIS
        assert readiness.has_enough_information is False
        assert readiness.answered_count == 3
        assert {q.id for q in readiness.unanswered_questions}.isdisjoint({"target_customer", "business_model"})

    def test_readiness_rejects_invalid_input(self, market_mapper):
        with pytest.raises(ValidationError):
            market_mapper.readiness({"businessIdea": "tiny"})


# ── MarketMapper processing ──

class TestMarketMapperProcessing:
    async def test_discovery_merges_model_and_research_competitors(
        self, market_mapper, fake_adapter, fake_source, market_mapper_input, market_mapper_reply
    ):
        fake_adapter.queue(market_mapper_reply)
        output = await market_mapper.process_input(market_mapper.validate_input(market_mapper_input))

        assert isinstance(output, MarketMapperOutput)
        assert output.processing_mode == ProcessingMode.DISCOVERY
        assert sorted(k.value for k in fake_source.calls) == ["competitors", "market"]

        names = [c.name for c in output.competitors]
        assert names == ["HelloFresh", "Freshly", "Factor", "Instacart", "Cookbook"]
        assert output.competitors[0].origin == "analysis"
        assert output.competitors[2].origin == "research"
        assert output.competitors[2].market_position == "direct competitor"

        assert output.market_opportunity.growth == "9"
        assert output.recommendations[0].priority == "high"
        assert output.questions == []
        assert output.validation is None
        assert output.research_summary.sources_used == ["competitors", "market"]
        assert output.confidence_score == pytest.approx((0.6675 + 0.6) / 2, abs=1e-3)

    async def test_questions_never_repeat_answered_topics(
        self, market_mapper, fake_adapter, fake_source, market_mapper_input
    ):
        market_mapper_input["answers"] = {"target_customer": "Busy parents"}
        fake_adapter.queue({
            "executiveSummary": "Need more detail.",
            "questions": [
                {"id": "target_customer", "question": "Who is it for?"},
                {"id": "business_model", "question": "How will you charge?", "required": True},
                {"id": "business_model", "question": "Duplicate"},
            ],
        })
        output = await market_mapper.process_input(market_mapper.validate_input(market_mapper_input))

        assert output.processing_mode == ProcessingMode.QUESTIONS
        assert fake_source.calls == [ResearchKind.COMPETITORS]
        assert [q.id for q in output.questions] == ["business_model"]

    async def test_questions_fall_back_to_bank(self, market_mapper, fake_adapter, market_mapper_input):
        market_mapper_input["answers"] = {"target_customer": "x"}
        fake_adapter.queue({"executiveSummary": "Tell me more."})
        output = await market_mapper.process_input(market_mapper.validate_input(market_mapper_input))
        assert [q.id for q in output.questions] == ["problem_definition", "business_model", "differentiation"]

    async def test_validation_mode_reads_demand_from_web(
        self, market_mapper, fake_adapter, fake_source, market_mapper_input
    ):
        market_mapper_input["processingMode"] = "validation"
        fake_adapter.queue({"executiveSummary": "Unclear demand."})
        output = await market_mapper.process_input(market_mapper.validate_input(market_mapper_input))

        assert sorted(k.value for k in fake_source.calls) == ["market", "sentiment", "web"]
        assert output.validation.demand_signal == "weak"
        assert output.validation.verdict == "refine"

    async def test_unparseable_reply_is_retried_once_with_reminder(
        self, market_mapper, fake_adapter, market_mapper_input, market_mapper_reply
    ):
        fake_adapter.queue("Here is my analysis in prose.", market_mapper_reply)
        output = await market_mapper.process_input(market_mapper.validate_input(market_mapper_input))

        assert output.executive_summary == "Promising niche with established competitors."
        assert len(fake_adapter.calls) == 2
        assert fake_adapter.calls[1]["messages"][-1].content == JSON_ONLY_REMINDER

    async def test_parse_retries_are_bounded(self, market_mapper, fake_adapter, market_mapper_input):
        fake_adapter.queue("nope", "still nope", "never used")
        with pytest.raises(ParseError):
            await market_mapper.process_input(market_mapper.validate_input(market_mapper_input))
        assert len(fake_adapter.calls) == 2

    async def test_provider_errors_are_not_retried(self, market_mapper, fake_adapter, market_mapper_input):
        from launchpad.adapters.llm import LLMAuthenticationError, LLMProviderType

        fake_adapter.queue(LLMAuthenticationError("bad key", LLMProviderType.OPENAI))
        with pytest.raises(ProviderError):
            await market_mapper.process_input(market_mapper.validate_input(market_mapper_input))
        assert len(fake_adapter.calls) == 1

    async def test_reply_violating_contract(self, market_mapper, fake_adapter, market_mapper_input):
        fake_adapter.queue({"recommendations": [{"action": "Go", "priority": "urgent"}]})
        with pytest.raises(ValidationError) as exc_info:
            await market_mapper.process_input(market_mapper.validate_input(market_mapper_input))
        assert exc_info.value.field == "recommendations.0.priority"


# ── CompetitorGPT & MVP Architect ──

class TestOtherAgents:
    async def test_competitor_gpt_adds_discovered_competitors(
        self, competitor_gpt, fake_adapter, fake_source, competitor_gpt_input, competitor_gpt_reply
    ):
        fake_adapter.queue(competitor_gpt_reply)
        output = await competitor_gpt.process_input(competitor_gpt.validate_input(competitor_gpt_input))

        assert sorted(k.value for k in fake_source.calls) == ["competitors", "sentiment"]
        assert [c.name for c in output.direct_competitors] == ["HelloFresh", "Factor"]
        assert output.direct_competitors[1].funding == "$50M"
        assert [c.name for c in output.indirect_competitors] == ["DoorDash", "Instacart", "Cookbook"]
        assert output.indirect_competitors[0].threat == "high"
        assert output.recommendations[0].reasoning == "Network effects"
        assert output.research_summary.sources_used == ["competitors", "sentiment"]
        assert 0.0 < output.confidence_score <= 1.0

    async def test_competitor_gpt_prompt_lists_feature_gaps(
        self, competitor_gpt, fake_adapter, competitor_gpt_input, competitor_gpt_reply
    ):
        fake_adapter.queue(competitor_gpt_reply)
        await competitor_gpt.process_input(competitor_gpt.validate_input(competitor_gpt_input))

        prompt = fake_adapter.calls[0]["messages"][0].content
        assert "Feature gaps:" in prompt
        assert "- Mobile app: Only 25% of competitors offer this feature" in prompt
        assert "Recipe analytics" in prompt

    def test_competitor_gpt_requires_industry(self, competitor_gpt, competitor_gpt_input):
        del competitor_gpt_input["industry"]
        with pytest.raises(ValidationError) as exc_info:
            competitor_gpt.validate_input(competitor_gpt_input)
        assert exc_info.value.field == "industry"

    async def test_mvp_architect_uses_no_research(
        self, mvp_architect, fake_adapter, fake_source, mvp_architect_input, mvp_architect_reply
    ):
        fake_adapter.queue(mvp_architect_reply)
        raw = await mvp_architect.process_input(mvp_architect.validate_input(mvp_architect_input))
        output = mvp_architect.validate_output(raw)

        assert fake_source.calls == []
        assert output.budget.total == 21500
        prompt = fake_adapter.calls[0]["messages"][0].content
        assert "$25,000 USD" in prompt
        assert fake_adapter.calls[0]["config"].temperature == 0.2

    def test_config_exposes_input_schema(self, market_mapper):
        config = market_mapper.config.to_dict()
        assert config["type"] == "market_mapper"
        assert "businessIdea" in config["inputSchema"]["properties"]


# ── Session lifecycle ──

class TestAgentRun:
    async def test_successful_run_completes_session(
        self, market_mapper, fake_adapter, store, project, market_mapper_input, market_mapper_reply
    ):
        fake_adapter.queue(market_mapper_reply)
        result = await market_mapper.run(project.id, market_mapper_input, store)

        session = await store.get_session(result.session_id)
        assert session.status == SessionStatus.COMPLETED
        assert session.completed_at is not None
        assert session.input_data["businessIdea"] == market_mapper_input["businessIdea"]
        assert session.output_data["processingMode"] == "discovery"

        entries = await store.list_conversations(result.session_id)
        assert {(e.role, e.content) for e in entries} == {
            (ConversationRole.SYSTEM, "Starting Market Mapper analysis..."),
            (ConversationRole.USER, market_mapper_input["businessIdea"]),
            (ConversationRole.ASSISTANT, "Analysis completed successfully."),
        }

    async def test_failed_run_fails_session(self, market_mapper, fake_adapter, store, project, market_mapper_input):
        project_id = project.id
        fake_adapter.queue("garbage", "more garbage")
        with pytest.raises(ParseError):
            await market_mapper.run(project_id, market_mapper_input, store)

        sessions = await store.list_sessions(project_id)
        assert len(sessions) == 1
        assert sessions[0].status == SessionStatus.FAILED
        assert "Failed to parse JSON response" in sessions[0].error_message
        entries = await store.list_conversations(sessions[0].id)
        assert any(e.content.startswith("Analysis failed:") for e in entries)

    async def test_invalid_input_creates_no_session(self, market_mapper, store, project):
        with pytest.raises(ValidationError):
            await market_mapper.run(project.id, {"businessIdea": "short"}, store)
        assert await store.list_sessions(project.id) == []

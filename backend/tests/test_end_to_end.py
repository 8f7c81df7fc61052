"""
Offline run: every research source unavailable, model reply still turned into a valid analysis
"""

import pytest

from conftest import FakeResearchSource
from launchpad.adapters.research import OfflineResearchSource
from launchpad.agents.market_mapper import MARKET_MAPPER_OUTPUT
from launchpad.models import AgentType, SessionStatus
from launchpad.schemas.research import ResearchKind
from launchpad.services.orchestrator import Orchestrator, default_agents
from launchpad.services.schema_gate import SchemaGate

SCISSORS_INPUT = {
    "businessIdea": "A subscription box for left-handed scissors",
    "industry": "ecommerce",
    "processingMode": "discovery",
}

SCISSORS_REPLY = {
    "executive_summary": "Small but loyal niche.",
    "audience": [{"name": "Left-handed crafters", "problems": ["Scissors hurt"]}],
    "market": {"size": "$200M", "growth": "4%"},
    "competitors": ["Fiskars", {"name": "Lefty's", "position": "Specialist retailer"}],
    "next_steps": [{"recommendation": "Run a preorder page", "priority": "High"}],
}


@pytest.fixture
def offline_agents(gateway, cache):
    source = FakeResearchSource(failing=list(ResearchKind))
    return default_agents(gateway, cache, source), source


class TestOfflineScenario:
    async def test_analysis_survives_missing_research(self, offline_agents, fake_adapter, store, user, project):
        agents, source = offline_agents
        user_id, project_id = user.id, project.id
        orchestrator = Orchestrator(store, agents=agents)
        fake_adapter.queue(SCISSORS_REPLY)

        outcome = await orchestrator.run_agent(user_id, project_id, AgentType.MARKET_MAPPER, SCISSORS_INPUT)

        output = SchemaGate().validate(outcome.output, MARKET_MAPPER_OUTPUT)
        assert output.processing_mode.value == "discovery"
        assert [c.name for c in output.competitors] == ["Fiskars", "Lefty's"]
        assert output.competitors[1].market_position == "Specialist retailer"
        assert output.target_audience[0].pain_points == ["Scissors hurt"]
        assert output.recommendations[0].priority == "high"
        assert 0.0 <= output.confidence_score <= 1.0
        assert output.research_summary.sources_defaulted == ["competitors", "market"]
        assert output.research_summary.sources_used == []
        assert sorted(k.value for k in source.calls) == ["competitors", "market"]

        session = await store.get_session(outcome.session_id)
        assert session.status == SessionStatus.COMPLETED
        assert await store.get_credits(user_id) == 4

    async def test_empty_source_is_not_a_failure(self, gateway, cache, fake_adapter):
        agents = default_agents(gateway, cache, OfflineResearchSource())
        agent = agents[AgentType.MARKET_MAPPER]
        fake_adapter.queue(SCISSORS_REPLY)

        output = await agent.process_input(agent.validate_input(SCISSORS_INPUT))

        assert output.research_summary.sources_defaulted == []
        assert 0.0 <= output.confidence_score <= 1.0

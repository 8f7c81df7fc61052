"""
Orchestrator: credit gating, refunds, versioning and the busy flag
"""

import asyncio
from datetime import datetime, timedelta

import pytest
from sqlalchemy import update

from launchpad.exceptions import (
    AgentBusyError,
    AgentNotFoundError,
    InsufficientCreditsError,
    ParseError,
    ProjectNotFoundError,
    ValidationError,
)
from launchpad.models import AgentSession, AgentType, Project, SessionStatus
from launchpad.services.orchestrator import Orchestrator


async def _leave_claim(db, project_id, agent_type, hours_ago):
    """Simulate a run that set `current_agent` and then stopped"""
    await db.execute(
        update(Project)
        .where(Project.id == project_id)
        .values(current_agent=agent_type, updated_at=datetime.utcnow() - timedelta(hours=hours_ago))
    )
    await db.commit()


# ── Registry ──

class TestRegistry:
    def test_available_agents(self, orchestrator):
        assert orchestrator.get_available_agents() == [
            AgentType.MARKET_MAPPER,
            AgentType.COMPETITOR_GPT,
            AgentType.MVP_ARCHITECT,
        ]

    def test_unknown_agent(self, orchestrator):
        with pytest.raises(AgentNotFoundError):
            orchestrator.get_agent("growth_hacker")

    def test_unregistered_agent(self, store, agents):
        partial = Orchestrator(store, agents={AgentType.MARKET_MAPPER: agents[AgentType.MARKET_MAPPER]})
        with pytest.raises(AgentNotFoundError):
            partial.get_agent(AgentType.MVP_ARCHITECT)
        assert partial.get_recommended_sequence() == [AgentType.MARKET_MAPPER]

    def test_agent_config(self, orchestrator):
        config = orchestrator.get_agent_config("competitor_gpt")
        assert config["name"] == "Competitor GPT"
        assert "industry" in config["inputSchema"]["required"]

    def test_validate_agent_input(self, orchestrator, market_mapper_input):
        assert orchestrator.validate_agent_input("market_mapper", market_mapper_input) is True
        assert orchestrator.validate_agent_input("market_mapper", {"businessIdea": "short"}) is False
        assert orchestrator.validate_agent_input("nope", market_mapper_input) is False

    def test_recommended_sequence(self, orchestrator):
        assert orchestrator.get_recommended_sequence("fintech") == [
            AgentType.MARKET_MAPPER,
            AgentType.COMPETITOR_GPT,
            AgentType.MVP_ARCHITECT,
        ]


# ── Running ──

class TestRunAgent:
    async def test_success_charges_one_credit(
        self, orchestrator, store, user, project, fake_adapter, market_mapper_input, market_mapper_reply
    ):
        fake_adapter.queue(market_mapper_reply)
        outcome = await orchestrator.run_agent(user.id, project.id, "market_mapper", market_mapper_input)

        assert outcome.agent_type == AgentType.MARKET_MAPPER
        assert outcome.version == 1
        assert outcome.output["processingMode"] == "discovery"
        assert await store.get_credits(user.id) == 4
        assert await store.get_current_agent(project.id) is None

        latest = await orchestrator.get_latest_analysis(project.id, AgentType.MARKET_MAPPER)
        assert latest.version == 1
        assert latest.session_id == outcome.session_id
        assert latest.analysis_data == outcome.output

    async def test_versions_increase_per_agent(
        self, orchestrator, user, project, fake_adapter,
        market_mapper_input, market_mapper_reply, mvp_architect_input, mvp_architect_reply,
    ):
        fake_adapter.queue(market_mapper_reply, market_mapper_reply, mvp_architect_reply)
        first = await orchestrator.run_agent(user.id, project.id, AgentType.MARKET_MAPPER, market_mapper_input)
        second = await orchestrator.run_agent(user.id, project.id, AgentType.MARKET_MAPPER, market_mapper_input)
        other = await orchestrator.run_agent(user.id, project.id, AgentType.MVP_ARCHITECT, mvp_architect_input)

        assert (first.version, second.version, other.version) == (1, 2, 1)
        results = await orchestrator.get_all_analysis_results(project.id)
        assert len(results) == 3

    async def test_failure_refunds_and_releases(
        self, orchestrator, store, user, project, fake_adapter, market_mapper_input
    ):
        user_id, project_id = user.id, project.id
        fake_adapter.queue("not json", "still not json")
        with pytest.raises(ParseError):
            await orchestrator.run_agent(user_id, project_id, "market_mapper", market_mapper_input)

        assert await store.get_credits(user_id) == 5
        assert await store.get_current_agent(project_id) is None
        sessions = await store.list_sessions(project_id)
        assert [s.status for s in sessions] == [SessionStatus.FAILED]
        assert await orchestrator.get_latest_analysis(project_id, "market_mapper") is None

    async def test_cancellation_refunds(
        self, orchestrator, store, user, project, fake_adapter, market_mapper_input
    ):
        user_id, project_id = user.id, project.id
        fake_adapter.queue(asyncio.CancelledError())
        with pytest.raises(asyncio.CancelledError):
            await orchestrator.run_agent(user_id, project_id, "market_mapper", market_mapper_input)

        assert await store.get_credits(user_id) == 5
        assert await store.get_current_agent(project_id) is None
        sessions = await store.list_sessions(project_id)
        assert sessions[0].status == SessionStatus.FAILED

    async def test_insufficient_credits(self, orchestrator, store, project, market_mapper_input, fake_adapter):
        broke = await store.create_user("broke@example.com", credits=0)
        own = await store.create_project(broke.id, "Broke idea", "No money", "saas")

        with pytest.raises(InsufficientCreditsError) as exc_info:
            await orchestrator.run_agent(broke.id, own.id, "market_mapper", market_mapper_input)
        assert exc_info.value.details == {"required": 1, "available": 0}
        assert fake_adapter.calls == []
        assert await store.list_sessions(own.id) == []

    async def test_busy_project_rejected_without_charge(
        self, orchestrator, store, user, project, fake_adapter, market_mapper_input
    ):
        assert await store.claim_project(project.id, AgentType.COMPETITOR_GPT)

        with pytest.raises(AgentBusyError) as exc_info:
            await orchestrator.run_agent(user.id, project.id, "market_mapper", market_mapper_input)
        assert "competitor_gpt" in exc_info.value.message
        assert await store.get_credits(user.id) == 5
        assert await store.get_current_agent(project.id) == AgentType.COMPETITOR_GPT
        assert fake_adapter.calls == []

    async def test_stale_claim_without_running_session_is_taken_over(
        self, orchestrator, store, db, user, project, fake_adapter, market_mapper_input, market_mapper_reply
    ):
        user_id, project_id = user.id, project.id
        await _leave_claim(db, project_id, AgentType.COMPETITOR_GPT, hours_ago=2)
        fake_adapter.queue(market_mapper_reply)

        outcome = await orchestrator.run_agent(user_id, project_id, "market_mapper", market_mapper_input)

        assert outcome.version == 1
        assert await store.get_credits(user_id) == 4
        assert await store.get_current_agent(project_id) is None

    async def test_stale_claim_fails_abandoned_session(
        self, orchestrator, store, db, user, project, fake_adapter, market_mapper_input, market_mapper_reply
    ):
        user_id, project_id = user.id, project.id
        abandoned = await store.create_session(project_id, AgentType.COMPETITOR_GPT, {})
        abandoned_id = abandoned.id
        await db.execute(
            update(AgentSession)
            .where(AgentSession.id == abandoned_id)
            .values(created_at=datetime.utcnow() - timedelta(hours=2))
        )
        await _leave_claim(db, project_id, AgentType.COMPETITOR_GPT, hours_ago=2)
        fake_adapter.queue(market_mapper_reply)

        await orchestrator.run_agent(user_id, project_id, "market_mapper", market_mapper_input)

        stale = await store.get_session(abandoned_id)
        assert stale.status == SessionStatus.FAILED
        assert stale.error_message.startswith("Abandoned")

    async def test_claim_with_live_session_still_blocks(
        self, orchestrator, store, db, user, project, fake_adapter, market_mapper_input
    ):
        user_id, project_id = user.id, project.id
        await store.create_session(project_id, AgentType.COMPETITOR_GPT, {})
        await _leave_claim(db, project_id, AgentType.COMPETITOR_GPT, hours_ago=0.1)

        with pytest.raises(AgentBusyError):
            await orchestrator.run_agent(user_id, project_id, "market_mapper", market_mapper_input)
        assert await store.get_credits(user_id) == 5
        assert fake_adapter.calls == []

    async def test_claim_released_when_refund_fails(
        self, orchestrator, store, user, project, fake_adapter, market_mapper_input, monkeypatch
    ):
        user_id, project_id = user.id, project.id

        async def broken_refund(user_id, amount=1):
            raise RuntimeError("database went away")

        monkeypatch.setattr(store, "refund_credits", broken_refund)
        fake_adapter.queue("not json", "still not json")

        with pytest.raises(RuntimeError):
            await orchestrator.run_agent(user_id, project_id, "market_mapper", market_mapper_input)
        assert await store.get_current_agent(project_id) is None

    async def test_invalid_input_moves_no_credit(self, orchestrator, store, user, project):
        with pytest.raises(ValidationError) as exc_info:
            await orchestrator.run_agent(user.id, project.id, "market_mapper", {"businessIdea": "short"})
        assert exc_info.value.field == "businessIdea"
        assert await store.get_credits(user.id) == 5

    async def test_unknown_agent_type(self, orchestrator, user, project, market_mapper_input):
        with pytest.raises(AgentNotFoundError):
            await orchestrator.run_agent(user.id, project.id, "growth_hacker", market_mapper_input)

    async def test_someone_elses_project(self, orchestrator, store, project, market_mapper_input):
        stranger = await store.create_user("stranger@example.com", credits=5)
        with pytest.raises(ProjectNotFoundError):
            await orchestrator.run_agent(stranger.id, project.id, "market_mapper", market_mapper_input)
        assert await store.get_credits(stranger.id) == 5


# ── Sequences ──

class TestRunAgentSequence:
    async def test_all_steps_succeed(
        self, orchestrator, store, user, project, fake_adapter,
        market_mapper_input, market_mapper_reply, competitor_gpt_input, competitor_gpt_reply,
    ):
        fake_adapter.queue(market_mapper_reply, competitor_gpt_reply)
        outcomes = await orchestrator.run_agent_sequence(user.id, project.id, [
            ("market_mapper", market_mapper_input),
            ("competitor_gpt", competitor_gpt_input),
        ])
        assert [o.agent_type for o in outcomes] == [AgentType.MARKET_MAPPER, AgentType.COMPETITOR_GPT]
        assert await store.get_credits(user.id) == 3

    async def test_failure_keeps_earlier_results(
        self, orchestrator, store, user, project, fake_adapter,
        market_mapper_input, market_mapper_reply, competitor_gpt_input,
    ):
        user_id, project_id = user.id, project.id
        fake_adapter.queue(market_mapper_reply, "prose", "more prose")
        with pytest.raises(ParseError):
            await orchestrator.run_agent_sequence(user_id, project_id, [
                ("market_mapper", market_mapper_input),
                ("competitor_gpt", competitor_gpt_input),
                ("mvp_architect", {}),
            ])

        assert await store.get_credits(user_id) == 4
        assert await orchestrator.get_latest_analysis(project_id, "market_mapper") is not None
        assert await orchestrator.get_latest_analysis(project_id, "competitor_gpt") is None
        assert await store.get_current_agent(project_id) is None

    async def test_on_complete_sees_finished_steps_before_a_failure(
        self, orchestrator, user, project, fake_adapter,
        market_mapper_input, market_mapper_reply, competitor_gpt_input,
    ):
        user_id, project_id = user.id, project.id
        finished = []
        fake_adapter.queue(market_mapper_reply, "prose", "more prose")
        with pytest.raises(ParseError):
            await orchestrator.run_agent_sequence(user_id, project_id, [
                ("market_mapper", market_mapper_input),
                ("competitor_gpt", competitor_gpt_input),
            ], on_complete=finished.append)

        assert [o.agent_type for o in finished] == [AgentType.MARKET_MAPPER]
        assert finished[0].version == 1


# ── Status ──

class TestStatus:
    async def test_agent_status(
        self, orchestrator, user, project, fake_adapter, market_mapper_input, market_mapper_reply
    ):
        status = await orchestrator.get_agent_status(user.id, project.id)
        assert status["current_agent"] is None
        assert status["completed_agents"] == []
        assert len(status["available_agents"]) == 3

        fake_adapter.queue(market_mapper_reply)
        await orchestrator.run_agent(user.id, project.id, "market_mapper", market_mapper_input)

        status = await orchestrator.get_agent_status(user.id, project.id)
        assert status["completed_agents"] == [AgentType.MARKET_MAPPER]
        assert AgentType.MARKET_MAPPER not in status["available_agents"]

    async def test_can_run_agent(self, orchestrator, store, user):
        assert await orchestrator.can_run_agent(user.id, "market_mapper") is True
        assert await orchestrator.can_run_agent(user.id, "growth_hacker") is False
        broke = await store.create_user("zero@example.com", credits=0)
        assert await orchestrator.can_run_agent(broke.id, "market_mapper") is False

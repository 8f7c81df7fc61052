"""
Agent Orchestrator
Registry, credit-gated admission, result versioning and failure refunds
"""

import asyncio
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union
from uuid import UUID

from launchpad.adapters.research import ResearchSource
from launchpad.agents import BaseAgent, CompetitorGPTAgent, MarketMapperAgent, MVPArchitectAgent
from launchpad.config import get_settings
from launchpad.exceptions import (
    AgentBusyError,
    AgentError,
    AgentNotFoundError,
    InsufficientCreditsError,
    ProjectNotFoundError,
)
from launchpad.models import AgentType, AnalysisResult, Project
from launchpad.utils.cache import TTLCache
from .llm_gateway import LLMGateway
from .storage import AgentStore

logger = logging.getLogger(__name__)
settings = get_settings()

RECOMMENDED_SEQUENCE = [
    AgentType.MARKET_MAPPER,
    AgentType.COMPETITOR_GPT,
    AgentType.MVP_ARCHITECT,
]


@dataclass
class RunOutcome:
    """A committed run: the session it came from and the version it was stored as"""
    session_id: UUID
    agent_type: AgentType
    version: int
    output: Dict[str, Any]


def default_agents(
    gateway: Optional[LLMGateway] = None,
    cache: Optional[TTLCache] = None,
    source: Optional[ResearchSource] = None,
) -> Dict[AgentType, BaseAgent]:
    agents = (
        MarketMapperAgent(gateway, cache, source),
        CompetitorGPTAgent(gateway, cache, source),
        MVPArchitectAgent(gateway, cache, source),
    )
    return {agent.agent_type: agent for agent in agents}


class Orchestrator:
    """
    Runs agents on behalf of a user.

    One credit is reserved before an agent starts and given back if the run
    does not end with a stored result. While a run is in flight the project's
    `current_agent` names it; a second run on the same project is rejected
    until that claim ends or goes stale.
    """

    def __init__(
        self,
        store: AgentStore,
        agents: Optional[Dict[AgentType, BaseAgent]] = None,
        credits_per_run: Optional[int] = None,
    ):
        self.store = store
        self.agents = agents if agents is not None else default_agents()
        self.credits_per_run = credits_per_run or settings.CREDITS_PER_RUN

    # =========================================================================
    # REGISTRY
    # =========================================================================

    def get_agent(self, agent_type: Union[AgentType, str]) -> BaseAgent:
        try:
            key = AgentType(agent_type)
        except ValueError:
            key = None
        agent = self.agents.get(key) if key is not None else None
        if agent is None:
            value = getattr(agent_type, "value", agent_type)
            raise AgentNotFoundError(f"Agent type {value} is not available", str(value))
        return agent

    def get_available_agents(self) -> List[AgentType]:
        return list(self.agents)

    def get_agent_config(self, agent_type: Union[AgentType, str]) -> Dict[str, Any]:
        return self.get_agent(agent_type).config.to_dict()

    def validate_agent_input(self, agent_type: Union[AgentType, str], payload: Any) -> bool:
        """True when the payload satisfies the agent's input contract"""
        try:
            self.get_agent(agent_type).validate_input(payload)
        except AgentError:
            return False
        return True

    def get_recommended_sequence(self, industry: Optional[str] = None) -> List[AgentType]:
        return [agent_type for agent_type in RECOMMENDED_SEQUENCE if agent_type in self.agents]

    # =========================================================================
    # EXECUTION
    # =========================================================================

    async def require_project(self, user_id: UUID, project_id: UUID) -> Project:
        project = await self.store.get_owned_project(project_id, user_id)
        if project is None:
            raise ProjectNotFoundError(f"Project {project_id} not found")
        return project

    async def can_run_agent(self, user_id: UUID, agent_type: Union[AgentType, str]) -> bool:
        try:
            self.get_agent(agent_type)
        except AgentNotFoundError:
            return False
        balance = await self.store.get_credits(user_id)
        return balance is not None and balance >= self.credits_per_run

    async def run_agent(
        self,
        user_id: UUID,
        project_id: UUID,
        agent_type: Union[AgentType, str],
        payload: Any,
    ) -> RunOutcome:
        agent = self.get_agent(agent_type)
        agent_type = agent.agent_type
        await self.require_project(user_id, project_id)
        agent_input = agent.validate_input(payload)

        if not await self.store.reserve_credits(user_id, self.credits_per_run):
            balance = await self.store.get_credits(user_id) or 0
            raise InsufficientCreditsError(
                f"Insufficient credits: {self.credits_per_run} required, {balance} available",
                agent_type.value,
                {"required": self.credits_per_run, "available": balance},
            )

        if not await self.store.claim_project(project_id, agent_type):
            await self.store.refund_credits(user_id, self.credits_per_run)
            current = await self.store.get_current_agent(project_id)
            raise AgentBusyError(
                f"Agent {getattr(current, 'value', current)} is already running on this project",
                agent_type.value,
            )

        logger.info("Running %s on project %s for user %s", agent_type.value, project_id, user_id)
        try:
            result = await agent.run(project_id, agent_input, self.store)
            output = result.output_data()
            record = await self.store.create_analysis_result(
                project_id, agent_type, output, session_id=result.session_id
            )
        except (Exception, asyncio.CancelledError) as e:
            logger.warning(
                "%s failed on project %s, refunding %d credit(s): %s",
                agent_type.value, project_id, self.credits_per_run, e,
            )
            await self.store.rollback()
            await self.store.refund_credits(user_id, self.credits_per_run)
            raise
        finally:
            await self.store.release_project(project_id)

        logger.info("Stored %s v%d for project %s", agent_type.value, record.version, project_id)
        return RunOutcome(
            session_id=result.session_id,
            agent_type=agent_type,
            version=record.version,
            output=output,
        )

    async def run_agent_sequence(
        self,
        user_id: UUID,
        project_id: UUID,
        steps: Iterable[Tuple[Union[AgentType, str], Any]],
        on_complete: Optional[Callable[[RunOutcome], None]] = None,
    ) -> List[RunOutcome]:
        """
        Run steps one after another. The first failure stops the sequence and
        is re-raised; runs that finished before it stay stored and charged.

        `on_complete` sees each finished step as it lands, so a caller can
        report partial progress when a later step fails.
        """
        outcomes = []
        for agent_type, payload in steps:
            outcome = await self.run_agent(user_id, project_id, agent_type, payload)
            outcomes.append(outcome)
            if on_complete is not None:
                on_complete(outcome)
        return outcomes

    # =========================================================================
    # RESULTS & STATUS
    # =========================================================================

    async def get_latest_analysis(
        self,
        project_id: UUID,
        agent_type: Union[AgentType, str],
    ) -> Optional[AnalysisResult]:
        return await self.store.get_latest_analysis(project_id, self.get_agent(agent_type).agent_type)

    async def get_all_analysis_results(self, project_id: UUID) -> List[AnalysisResult]:
        return await self.store.list_analysis_results(project_id)

    async def get_agent_status(self, user_id: UUID, project_id: UUID) -> Dict[str, Any]:
        project = await self.require_project(user_id, project_id)
        results = await self.get_all_analysis_results(project_id)
        completed = []
        for record in results:
            if record.agent_type not in completed:
                completed.append(record.agent_type)
        return {
            "current_agent": await self.store.get_current_agent(project.id),
            "completed_agents": completed,
            "available_agents": [a for a in self.get_available_agents() if a not in completed],
        }


@lru_cache()
def get_agent_registry() -> Dict[AgentType, BaseAgent]:
    """Process-wide agents; they hold no per-run state"""
    return default_agents()

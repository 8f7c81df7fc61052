"""
Base Agent
Session lifecycle shared by every agent: validate, run, validate, persist, log
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional
from uuid import UUID

from pydantic import BaseModel

from launchpad.adapters.research import ResearchSource, get_research_source
from launchpad.config import get_settings
from launchpad.exceptions import InvalidResponseError, ParseError
from launchpad.models import AgentType, ConversationRole
from launchpad.schemas.research import ResearchBundle, ResearchKind, ResearchQuery
from launchpad.services.llm_gateway import LLMGateway
from launchpad.services.prompt_builder import ProviderRequest, with_json_reminder
from launchpad.services.research import build_collaborators, gather_research
from launchpad.services.schema_gate import Contract, SchemaGate
from launchpad.services.storage import AgentStore
from launchpad.utils.cache import TTLCache, research_cache

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass
class AgentConfig:
    """Static description of an agent"""
    type: AgentType
    name: str
    description: str
    system_prompt: str
    input_contract: Contract
    output_contract: Contract
    max_tokens: int = 4000
    temperature: float = 0.3

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "name": self.name,
            "description": self.description,
            "maxTokens": self.max_tokens,
            "temperature": self.temperature,
            "inputSchema": self.input_contract.model.model_json_schema(by_alias=True),
        }


@dataclass
class AgentRunResult:
    session_id: UUID
    output: BaseModel

    def output_data(self) -> Dict[str, Any]:
        return self.output.model_dump(by_alias=True, mode="json")


class BaseAgent(ABC):
    """
    An agent is stateless between runs. Everything it needs per run arrives
    through `run`; collaborators share the cache handed to the constructor.
    """

    config: AgentConfig

    def __init__(
        self,
        gateway: Optional[LLMGateway] = None,
        cache: Optional[TTLCache] = None,
        source: Optional[ResearchSource] = None,
        max_parse_retries: Optional[int] = None,
    ):
        self.gateway = gateway or LLMGateway()
        self.cache = cache if cache is not None else research_cache
        self.source = source or get_research_source()
        self.max_parse_retries = (
            settings.AGENT_MAX_PARSE_RETRIES if max_parse_retries is None else max_parse_retries
        )
        self.gate = SchemaGate(agent_type=self.config.type.value)

    @property
    def agent_type(self) -> AgentType:
        return self.config.type

    @property
    def name(self) -> str:
        return self.config.name

    def validate_input(self, payload: Any) -> BaseModel:
        return self.gate.validate(payload, self.config.input_contract)

    def validate_output(self, payload: Any) -> BaseModel:
        return self.gate.validate(payload, self.config.output_contract)

    def describe_input(self, agent_input: BaseModel) -> Optional[str]:
        """Optional user-role audit entry recorded when a run starts"""
        return None

    @abstractmethod
    async def process_input(self, agent_input: BaseModel) -> Any:
        """Produce the output payload for a validated input"""
        pass

    async def research(self, kinds: Iterable[ResearchKind], query: ResearchQuery) -> ResearchBundle:
        collaborators = build_collaborators(self.cache, self.source, kinds)
        return await gather_research(collaborators, query)

    async def call_structured(self, request: ProviderRequest) -> Dict[str, Any]:
        """
        Complete and parse a JSON reply.

        An unparseable or empty reply is retried with the JSON-only requirement
        restated, at most `max_parse_retries` times. Other failures propagate.
        """
        agent_type = self.agent_type.value
        current = request
        attempt = 0
        while True:
            try:
                raw = await self.gateway.complete_request(current, agent_type=agent_type)
                return self.gateway.parse_structured(raw, agent_type)
            except (ParseError, InvalidResponseError) as e:
                if attempt >= self.max_parse_retries:
                    raise
                attempt += 1
                logger.warning(
                    "%s reply unusable (%s), retrying %d/%d",
                    self.name, e.code, attempt, self.max_parse_retries,
                )
                current = with_json_reminder(request)

    async def run(self, project_id: UUID, payload: Any, store: AgentStore) -> AgentRunResult:
        agent_input = self.validate_input(payload)

        session = await store.create_session(
            project_id,
            self.agent_type,
            agent_input.model_dump(by_alias=True, mode="json"),
        )
        session_id = session.id

        try:
            await store.add_conversation(
                session_id, ConversationRole.SYSTEM, f"Starting {self.name} analysis..."
            )
            user_entry = self.describe_input(agent_input)
            if user_entry:
                await store.add_conversation(session_id, ConversationRole.USER, user_entry)

            output = await self.process_input(agent_input)
            validated = self.validate_output(output)
            result = AgentRunResult(session_id=session_id, output=validated)

            await store.complete_session(session_id, result.output_data())
            await store.add_conversation(
                session_id, ConversationRole.ASSISTANT, "Analysis completed successfully."
            )
            logger.info("%s completed session %s", self.name, session_id)
            return result

        except (Exception, asyncio.CancelledError) as e:
            reason = str(e) or type(e).__name__
            logger.error("%s failed session %s: %s", self.name, session_id, reason)
            await store.rollback()
            await store.fail_session(session_id, reason)
            await store.add_conversation(session_id, ConversationRole.SYSTEM, f"Analysis failed: {reason}")
            raise

"""
Agent Registry Routes
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from launchpad.agents import MarketMapperAgent
from launchpad.models import AgentType, User
from launchpad.schemas.agents import ModeRecommendationResponse
from launchpad.schemas.project import AgentConfigResponse
from launchpad.services.orchestrator import Orchestrator, get_agent_registry
from launchpad.services.storage import AgentStore
from launchpad.utils import get_db
from launchpad.api.middleware.auth import get_current_user

router = APIRouter()


def get_orchestrator(
    db: AsyncSession = Depends(get_db),
    agents=Depends(get_agent_registry),
) -> Orchestrator:
    return Orchestrator(AgentStore(db), agents=agents)


@router.get("", response_model=List[AgentConfigResponse])
async def list_agents(
    user: User = Depends(get_current_user),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """Registered agents and their input schemas"""
    return [
        AgentConfigResponse.model_validate(orchestrator.get_agent_config(agent_type))
        for agent_type in orchestrator.get_available_agents()
    ]


@router.get("/recommended-sequence", response_model=List[AgentType])
async def recommended_sequence(
    industry: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    return orchestrator.get_recommended_sequence(industry)


@router.post("/market_mapper/mode", response_model=ModeRecommendationResponse)
async def market_mapper_mode(
    payload: Dict[str, Any] = Body(...),
    user: User = Depends(get_current_user),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """Recommended processing mode and whether enough is known to run it. Free."""
    agent: MarketMapperAgent = orchestrator.get_agent(AgentType.MARKET_MAPPER)
    return agent.readiness(payload)

"""
Project Management & Agent Run Routes
"""

from typing import Any, Dict, List
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from launchpad.models import User
from launchpad.schemas.project import (
    AgentRunResponse,
    AgentSequenceRequest,
    AgentStatusResponse,
    AnalysisResultResponse,
    ProjectCreate,
    ProjectListResponse,
    ProjectResponse,
    ProjectStatusResponse,
)
from launchpad.services.orchestrator import Orchestrator, RunOutcome
from launchpad.api.middleware.auth import get_current_user
from .agents import get_orchestrator

router = APIRouter()


def _run_response(outcome: RunOutcome) -> AgentRunResponse:
    return AgentRunResponse(
        session_id=outcome.session_id,
        agent_type=outcome.agent_type,
        version=outcome.version,
        output=outcome.output,
    )


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_data: ProjectCreate,
    user: User = Depends(get_current_user),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """Create a new project"""
    project = await orchestrator.store.create_project(
        owner_id=user.id,
        name=project_data.name,
        description=project_data.description,
        industry=project_data.industry,
    )
    return ProjectResponse.model_validate(project)


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    user: User = Depends(get_current_user),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """List user's projects"""
    total = await orchestrator.store.count_projects(user.id)
    projects = await orchestrator.store.list_projects(
        user.id, skip=(page - 1) * page_size, limit=page_size
    )

    return ProjectListResponse(
        items=[ProjectResponse.model_validate(p) for p in projects],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=(total + page_size - 1) // page_size,
    )


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: UUID,
    user: User = Depends(get_current_user),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    project = await orchestrator.require_project(user.id, project_id)
    return ProjectResponse.model_validate(project)


@router.get("/{project_id}/status", response_model=ProjectStatusResponse)
async def get_project_status(
    project_id: UUID,
    user: User = Depends(get_current_user),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """Project, which agents ran or can run, and every stored result"""
    user_id = user.id
    project = await orchestrator.require_project(user_id, project_id)
    agent_status = await orchestrator.get_agent_status(user_id, project_id)
    results = await orchestrator.get_all_analysis_results(project_id)
    credits = await orchestrator.store.get_credits(user_id)

    return ProjectStatusResponse(
        project=ProjectResponse.model_validate(project),
        agent_status=AgentStatusResponse(**agent_status),
        results=[AnalysisResultResponse.model_validate(r) for r in results],
        credits=credits or 0,
    )


@router.post("/{project_id}/agents/sequence", response_model=List[AgentRunResponse])
async def run_agent_sequence(
    project_id: UUID,
    request: AgentSequenceRequest,
    user: User = Depends(get_current_user),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """Run agents in order; stops at the first failure"""
    outcomes = await orchestrator.run_agent_sequence(
        user.id,
        project_id,
        [(step.agent_type, step.input) for step in request.steps],
    )
    return [_run_response(o) for o in outcomes]


@router.post("/{project_id}/agents/{agent_type}/run", response_model=AgentRunResponse)
async def run_agent(
    project_id: UUID,
    agent_type: str,
    payload: Dict[str, Any] = Body(...),
    user: User = Depends(get_current_user),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """Run one agent; costs one credit, refunded if the run fails"""
    outcome = await orchestrator.run_agent(user.id, project_id, agent_type, payload)
    return _run_response(outcome)


@router.get("/{project_id}/agents/{agent_type}", response_model=AnalysisResultResponse)
async def get_latest_analysis(
    project_id: UUID,
    agent_type: str,
    user: User = Depends(get_current_user),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    await orchestrator.require_project(user.id, project_id)
    result = await orchestrator.get_latest_analysis(project_id, agent_type)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No {agent_type} analysis for this project yet",
        )
    return AnalysisResultResponse.model_validate(result)

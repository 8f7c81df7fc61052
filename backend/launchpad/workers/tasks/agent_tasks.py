"""
Agent Execution Tasks
Run agents outside the request cycle
"""

import asyncio
from typing import Any, Dict, List
from uuid import UUID

from celery.utils.log import get_task_logger

from launchpad.exceptions import AgentError
from launchpad.schemas.project import AgentRunResponse, AgentSequenceRequest
from launchpad.services.orchestrator import Orchestrator, RunOutcome, get_agent_registry
from launchpad.services.storage import AgentStore
from launchpad.utils.database import close_db, get_db_context
from launchpad.workers.celery_app import celery_app

logger = get_task_logger(__name__)


def run_async(coro):
    """Run async function in sync context"""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _serialize(outcome: RunOutcome) -> Dict[str, Any]:
    return AgentRunResponse(
        session_id=outcome.session_id,
        agent_type=outcome.agent_type,
        version=outcome.version,
        output=outcome.output,
    ).model_dump(by_alias=True, mode="json")


def _failure(error: AgentError, completed: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "status": "failed",
        "detail": error.message,
        "kind": error.code,
        "results": completed,
    }


async def _run_sequence(user_id: UUID, project_id: UUID, request: AgentSequenceRequest) -> Dict[str, Any]:
    completed: List[Dict[str, Any]] = []
    try:
        async with get_db_context() as db:
            orchestrator = Orchestrator(AgentStore(db), agents=get_agent_registry())
            await orchestrator.run_agent_sequence(
                user_id,
                project_id,
                [(step.agent_type, step.input) for step in request.steps],
                on_complete=lambda outcome: completed.append(_serialize(outcome)),
            )
    except AgentError as e:
        logger.warning(f"Sequence on project {project_id} stopped after {len(completed)} step(s): {e.code}")
        return _failure(e, completed)
    finally:
        # The engine is bound to this task's event loop
        await close_db()

    return {"status": "completed", "results": completed}


@celery_app.task(
    bind=True,
    name="launchpad.workers.tasks.agent_tasks.run_agent_sequence_task",
)
def run_agent_sequence_task(self, user_id: str, project_id: str, steps: List[Dict[str, Any]]) -> Dict:
    """
    Run a sequence of agents for a project.

    Args:
        user_id: UUID of the paying user
        project_id: UUID of the project
        steps: [{"agentType": ..., "input": {...}}, ...]

    Returns:
        Dict with status, per-step results and the stopping error if any
    """
    request = AgentSequenceRequest.model_validate({"steps": steps})
    logger.info(f"Running {len(request.steps)} agent(s) on project {project_id}")
    return run_async(_run_sequence(UUID(user_id), UUID(project_id), request))


@celery_app.task(
    bind=True,
    name="launchpad.workers.tasks.agent_tasks.run_agent_task",
)
def run_agent_task(self, user_id: str, project_id: str, agent_type: str, payload: Dict[str, Any]) -> Dict:
    """Run a single agent for a project"""
    return run_agent_sequence_task.run(user_id, project_id, [{"agentType": agent_type, "input": payload}])

"""
Agent Store
Persistence for users, projects, sessions, conversations and analysis results.
Every write commits on its own so a failed run still leaves its audit trail.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import and_, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from launchpad.config import get_settings
from launchpad.models import (
    AgentSession,
    AgentType,
    AnalysisResult,
    Conversation,
    ConversationRole,
    Project,
    ProjectStatus,
    SessionStatus,
    User,
)

logger = logging.getLogger(__name__)
settings = get_settings()

TERMINAL_STATUSES = [SessionStatus.COMPLETED, SessionStatus.FAILED]


class AgentStore:
    """Thin async data access layer over one database session"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def rollback(self) -> None:
        """Discard a half-finished write so the next one starts clean"""
        await self.db.rollback()

    # =========================================================================
    # USERS & CREDITS
    # =========================================================================

    async def get_user(self, user_id: UUID) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def create_user(self, email: str, name: Optional[str] = None, credits: int = 10) -> User:
        user = User(email=email, name=name, credits=credits)
        self.db.add(user)
        await self.db.commit()
        return user

    async def get_credits(self, user_id: UUID) -> Optional[int]:
        result = await self.db.execute(select(User.credits).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def reserve_credits(self, user_id: UUID, amount: int = 1) -> bool:
        """Atomically take `amount` credits; False when the balance is too low"""
        result = await self.db.execute(
            update(User)
            .where(User.id == user_id, User.credits >= amount)
            .values(credits=User.credits - amount)
        )
        await self.db.commit()
        return result.rowcount == 1

    async def refund_credits(self, user_id: UUID, amount: int = 1) -> None:
        await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(credits=User.credits + amount)
        )
        await self.db.commit()

    # =========================================================================
    # PROJECTS
    # =========================================================================

    async def get_project(self, project_id: UUID) -> Optional[Project]:
        result = await self.db.execute(select(Project).where(Project.id == project_id))
        return result.scalar_one_or_none()

    async def get_owned_project(self, project_id: UUID, owner_id: UUID) -> Optional[Project]:
        result = await self.db.execute(
            select(Project).where(Project.id == project_id, Project.owner_id == owner_id)
        )
        return result.scalar_one_or_none()

    async def list_projects(self, owner_id: UUID, skip: int = 0, limit: int = 50) -> List[Project]:
        result = await self.db.execute(
            select(Project)
            .where(Project.owner_id == owner_id)
            .order_by(Project.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_projects(self, owner_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count(Project.id)).where(Project.owner_id == owner_id)
        )
        return result.scalar() or 0

    async def create_project(
        self,
        owner_id: UUID,
        name: str,
        description: str,
        industry: str,
        status: ProjectStatus = ProjectStatus.DRAFT,
    ) -> Project:
        project = Project(
            owner_id=owner_id,
            name=name,
            description=description,
            industry=industry,
            status=status,
            current_agent=None,
        )
        self.db.add(project)
        await self.db.commit()
        return project

    async def claim_project(self, project_id: UUID, agent_type: AgentType) -> bool:
        """
        Set `current_agent` only if no live agent holds the project.

        A held claim is stale when it is older than the grace period and the
        project has no running session younger than the claim timeout; a
        crashed or killed run leaves exactly that state behind. Taking over a
        stale claim marks the sessions its holder abandoned as failed.
        """
        now = datetime.utcnow()
        holder = (await self.db.execute(
            select(Project.current_agent, Project.updated_at).where(Project.id == project_id)
        )).one_or_none()
        if holder is None:
            return False

        current_agent, claimed_at = holder
        timeout_cutoff = now - timedelta(seconds=settings.PROJECT_CLAIM_TIMEOUT_SECONDS)
        if current_agent is None:
            condition = Project.current_agent.is_(None)
        else:
            grace_cutoff = now - timedelta(seconds=settings.PROJECT_CLAIM_GRACE_SECONDS)
            if claimed_at is not None and claimed_at >= grace_cutoff:
                await self.db.commit()
                return False
            live_session = await self.db.execute(
                select(AgentSession.id)
                .where(
                    AgentSession.project_id == project_id,
                    AgentSession.status == SessionStatus.RUNNING,
                    AgentSession.created_at > timeout_cutoff,
                )
                .limit(1)
            )
            if live_session.first() is not None:
                await self.db.commit()
                return False
            condition = and_(Project.current_agent == current_agent, Project.updated_at == claimed_at)

        result = await self.db.execute(
            update(Project)
            .where(Project.id == project_id, condition)
            .values(current_agent=agent_type, status=ProjectStatus.ACTIVE, updated_at=now)
        )
        claimed = result.rowcount == 1
        if claimed and current_agent is not None:
            logger.warning(
                "Project %s: taking over stale %s claim from %s",
                project_id, getattr(current_agent, "value", current_agent), claimed_at,
            )
            await self.db.execute(
                update(AgentSession)
                .where(
                    AgentSession.project_id == project_id,
                    AgentSession.status == SessionStatus.RUNNING,
                )
                .values(
                    status=SessionStatus.FAILED,
                    error_message="Abandoned: the run stopped without finishing",
                    completed_at=now,
                )
            )
        await self.db.commit()
        return claimed

    async def release_project(self, project_id: UUID) -> None:
        await self.db.execute(
            update(Project)
            .where(Project.id == project_id)
            .values(current_agent=None, updated_at=datetime.utcnow())
        )
        await self.db.commit()

    async def get_current_agent(self, project_id: UUID) -> Optional[AgentType]:
        result = await self.db.execute(select(Project.current_agent).where(Project.id == project_id))
        return result.scalar_one_or_none()

    # =========================================================================
    # SESSIONS & CONVERSATIONS
    # =========================================================================

    async def create_session(
        self,
        project_id: UUID,
        agent_type: AgentType,
        input_data: Dict[str, Any],
    ) -> AgentSession:
        session = AgentSession(
            project_id=project_id,
            agent_type=agent_type,
            status=SessionStatus.RUNNING,
            input_data=input_data,
        )
        self.db.add(session)
        await self.db.commit()
        return session

    async def get_session(self, session_id: UUID) -> Optional[AgentSession]:
        result = await self.db.execute(select(AgentSession).where(AgentSession.id == session_id))
        return result.scalar_one_or_none()

    async def list_sessions(self, project_id: UUID, agent_type: Optional[AgentType] = None) -> List[AgentSession]:
        query = select(AgentSession).where(AgentSession.project_id == project_id)
        if agent_type is not None:
            query = query.where(AgentSession.agent_type == agent_type)
        result = await self.db.execute(query.order_by(AgentSession.created_at.desc()))
        return list(result.scalars().all())

    async def _finish_session(self, session_id: UUID, values: Dict[str, Any]) -> bool:
        result = await self.db.execute(
            update(AgentSession)
            .where(AgentSession.id == session_id, AgentSession.status.notin_(TERMINAL_STATUSES))
            .values(completed_at=datetime.utcnow(), **values)
        )
        await self.db.commit()
        return result.rowcount == 1

    async def complete_session(self, session_id: UUID, output_data: Dict[str, Any]) -> bool:
        """Terminal update; False when the session had already finished"""
        return await self._finish_session(
            session_id, {"status": SessionStatus.COMPLETED, "output_data": output_data}
        )

    async def fail_session(self, session_id: UUID, error_message: str) -> bool:
        return await self._finish_session(
            session_id, {"status": SessionStatus.FAILED, "error_message": error_message}
        )

    async def add_conversation(self, session_id: UUID, role: ConversationRole, content: str) -> Conversation:
        entry = Conversation(session_id=session_id, role=role, content=content)
        self.db.add(entry)
        await self.db.commit()
        return entry

    async def list_conversations(self, session_id: UUID) -> List[Conversation]:
        result = await self.db.execute(
            select(Conversation)
            .where(Conversation.session_id == session_id)
            .order_by(Conversation.timestamp, Conversation.id)
        )
        return list(result.scalars().all())

    # =========================================================================
    # ANALYSIS RESULTS
    # =========================================================================

    async def latest_version(self, project_id: UUID, agent_type: AgentType) -> int:
        result = await self.db.execute(
            select(func.max(AnalysisResult.version)).where(
                AnalysisResult.project_id == project_id,
                AnalysisResult.agent_type == agent_type,
            )
        )
        return result.scalar() or 0

    async def create_analysis_result(
        self,
        project_id: UUID,
        agent_type: AgentType,
        analysis_data: Dict[str, Any],
        session_id: Optional[UUID] = None,
    ) -> AnalysisResult:
        """New version at latest + 1; the unique constraint rejects a racing duplicate"""
        version = await self.latest_version(project_id, agent_type) + 1
        record = AnalysisResult(
            project_id=project_id,
            session_id=session_id,
            agent_type=agent_type,
            analysis_data=analysis_data,
            version=version,
        )
        self.db.add(record)
        await self.db.commit()
        return record

    async def get_latest_analysis(self, project_id: UUID, agent_type: AgentType) -> Optional[AnalysisResult]:
        result = await self.db.execute(
            select(AnalysisResult)
            .where(AnalysisResult.project_id == project_id, AnalysisResult.agent_type == agent_type)
            .order_by(AnalysisResult.version.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_analysis_results(
        self,
        project_id: UUID,
        agent_type: Optional[AgentType] = None,
    ) -> List[AnalysisResult]:
        query = select(AnalysisResult).where(AnalysisResult.project_id == project_id)
        if agent_type is not None:
            query = query.where(AnalysisResult.agent_type == agent_type)
        result = await self.db.execute(query.order_by(AnalysisResult.agent_type, AnalysisResult.version.desc()))
        return list(result.scalars().all())

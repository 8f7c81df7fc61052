"""
LaunchPad Database Models
SQLAlchemy ORM (PostgreSQL in deployment, SQLite in tests)
"""

from datetime import datetime
from enum import Enum as PyEnum
from uuid import uuid4

from sqlalchemy import (
    Column, String, Text, Integer, Boolean, DateTime,
    ForeignKey, Enum, JSON, Index, UniqueConstraint, CheckConstraint, Uuid
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class SubscriptionTier(str, PyEnum):
    FREE = "free"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class ProjectStatus(str, PyEnum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class AgentType(str, PyEnum):
    MARKET_MAPPER = "market_mapper"
    COMPETITOR_GPT = "competitor_gpt"
    MVP_ARCHITECT = "mvp_architect"


class SessionStatus(str, PyEnum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.COMPLETED, SessionStatus.FAILED)


class ConversationRole(str, PyEnum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


# ============================================================================
# USER & PROJECTS
# ============================================================================

class User(Base):
    """User account; credits pay for agent runs"""
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255))

    subscription = Column(Enum(SubscriptionTier), default=SubscriptionTier.FREE, nullable=False)
    credits = Column(Integer, default=10, nullable=False)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    projects = relationship("Project", back_populates="owner", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("credits >= 0", name="ck_users_credits_non_negative"),
    )


class Project(Base):
    """A business idea being validated by agents"""
    __tablename__ = "projects"

    id = Column(Uuid, primary_key=True, default=uuid4)
    owner_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    industry = Column(String(100), nullable=False)
    status = Column(Enum(ProjectStatus), default=ProjectStatus.DRAFT, nullable=False)

    # Agent presently executing on this project, if any
    current_agent = Column(Enum(AgentType), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User", back_populates="projects")
    sessions = relationship("AgentSession", back_populates="project", cascade="all, delete-orphan")
    analysis_results = relationship("AnalysisResult", back_populates="project", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_projects_owner", "owner_id"),
    )


# ============================================================================
# AGENT EXECUTION
# ============================================================================

class AgentSession(Base):
    """One execution record of an agent run"""
    __tablename__ = "agent_sessions"

    id = Column(Uuid, primary_key=True, default=uuid4)
    project_id = Column(Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    agent_type = Column(Enum(AgentType), nullable=False)

    status = Column(Enum(SessionStatus), default=SessionStatus.PENDING, nullable=False)
    input_data = Column(JSON, nullable=False, default=dict)
    output_data = Column(JSON, nullable=True)
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)

    project = relationship("Project", back_populates="sessions")
    conversations = relationship(
        "Conversation", back_populates="session", cascade="all, delete-orphan",
        order_by="Conversation.timestamp",
    )

    __table_args__ = (
        Index("ix_agent_sessions_project", "project_id", "created_at"),
    )


class Conversation(Base):
    """Append-only audit log entry for a session"""
    __tablename__ = "conversations"

    id = Column(Uuid, primary_key=True, default=uuid4)
    session_id = Column(Uuid, ForeignKey("agent_sessions.id", ondelete="CASCADE"), nullable=False)
    role = Column(Enum(ConversationRole), nullable=False)
    content = Column(Text, nullable=False)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)

    session = relationship("AgentSession", back_populates="conversations")

    __table_args__ = (
        Index("ix_conversations_session", "session_id", "timestamp"),
    )


class AnalysisResult(Base):
    """Versioned, never-mutated output of a completed session"""
    __tablename__ = "analysis_results"

    id = Column(Uuid, primary_key=True, default=uuid4)
    project_id = Column(Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    session_id = Column(Uuid, ForeignKey("agent_sessions.id", ondelete="SET NULL"), nullable=True)
    agent_type = Column(Enum(AgentType), nullable=False)
    analysis_data = Column(JSON, nullable=False)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    project = relationship("Project", back_populates="analysis_results")

    __table_args__ = (
        UniqueConstraint("project_id", "agent_type", "version", name="uq_analysis_version"),
        Index("ix_analysis_results_project_agent", "project_id", "agent_type"),
    )

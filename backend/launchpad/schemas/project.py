"""
Project & Agent Run Schemas
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from launchpad.models import AgentType, ProjectStatus
from .agents import CamelModel


class ProjectCreate(BaseModel):
    """Project creation request"""
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(default="", max_length=5000)
    industry: str = Field(default="other", max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v

    @field_validator("industry")
    @classmethod
    def normalize_industry(cls, v: str) -> str:
        return v.strip().lower() or "other"


class ProjectResponse(BaseModel):
    """Project response"""
    id: UUID
    owner_id: UUID
    name: str
    description: str
    industry: str
    status: ProjectStatus
    current_agent: Optional[AgentType] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProjectListResponse(BaseModel):
    """Paginated project list"""
    items: List[ProjectResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class AgentSequenceStep(CamelModel):
    agent_type: AgentType
    input: Dict[str, Any] = Field(default_factory=dict)


class AgentSequenceRequest(CamelModel):
    steps: List[AgentSequenceStep] = Field(..., min_length=1, max_length=10)


class AgentRunResponse(CamelModel):
    """One committed run"""
    session_id: UUID
    agent_type: AgentType
    version: int
    output: Dict[str, Any]


class AnalysisResultResponse(CamelModel):
    id: UUID
    agent_type: AgentType
    version: int
    session_id: Optional[UUID] = None
    analysis_data: Dict[str, Any]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AgentStatusResponse(CamelModel):
    current_agent: Optional[AgentType] = None
    completed_agents: List[AgentType] = Field(default_factory=list)
    available_agents: List[AgentType] = Field(default_factory=list)


class ProjectStatusResponse(CamelModel):
    project: ProjectResponse
    agent_status: AgentStatusResponse
    results: List[AnalysisResultResponse] = Field(default_factory=list)
    credits: int = 0


class AgentConfigResponse(CamelModel):
    type: AgentType
    name: str
    description: str
    max_tokens: int
    temperature: float
    input_schema: Dict[str, Any] = Field(default_factory=dict)

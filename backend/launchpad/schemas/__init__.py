"""
Pydantic Schemas for API Request/Response validation
"""

from .research import (
    ResearchKind,
    ResearchQuery,
    ResearchBundle,
    ResearchSummary,
    CompetitorLandscape,
    MarketSnapshot,
    SentimentSnapshot,
    WebIntelligence,
)
from .agents import (
    ProcessingMode,
    MarketMapperInput,
    MarketMapperOutput,
    CompetitorGPTInput,
    CompetitorGPTOutput,
    MVPArchitectInput,
    MVPArchitectOutput,
    ModeRecommendationResponse,
)
from .project import (
    ProjectCreate,
    ProjectResponse,
    ProjectListResponse,
    AgentSequenceRequest,
    AgentRunResponse,
    AnalysisResultResponse,
    AgentStatusResponse,
    ProjectStatusResponse,
    AgentConfigResponse,
)

__all__ = [
    # Research
    "ResearchKind",
    "ResearchQuery",
    "ResearchBundle",
    "ResearchSummary",
    "CompetitorLandscape",
    "MarketSnapshot",
    "SentimentSnapshot",
    "WebIntelligence",
    # Agents
    "ProcessingMode",
    "MarketMapperInput",
    "MarketMapperOutput",
    "CompetitorGPTInput",
    "CompetitorGPTOutput",
    "MVPArchitectInput",
    "MVPArchitectOutput",
    "ModeRecommendationResponse",
    # Projects & runs
    "ProjectCreate",
    "ProjectResponse",
    "ProjectListResponse",
    "AgentSequenceRequest",
    "AgentRunResponse",
    "AnalysisResultResponse",
    "AgentStatusResponse",
    "ProjectStatusResponse",
    "AgentConfigResponse",
]

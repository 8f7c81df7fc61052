"""
Agents - one per analysis type
"""

from .base import AgentConfig, AgentRunResult, BaseAgent
from .market_mapper import MarketMapperAgent
from .competitor_gpt import CompetitorGPTAgent
from .mvp_architect import MVPArchitectAgent

__all__ = [
    "AgentConfig",
    "AgentRunResult",
    "BaseAgent",
    "MarketMapperAgent",
    "CompetitorGPTAgent",
    "MVPArchitectAgent",
]

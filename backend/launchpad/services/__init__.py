"""
Business Logic Services
"""

from .prompt_builder import ProviderRequest, build_prompt, infer_mode, recommended_mode
from .llm_gateway import LLMGateway
from .schema_gate import Contract, SchemaGate
from .storage import AgentStore

__all__ = [
    "ProviderRequest",
    "build_prompt",
    "infer_mode",
    "recommended_mode",
    "LLMGateway",
    "Contract",
    "SchemaGate",
    "AgentStore",
]

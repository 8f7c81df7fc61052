"""
Database Models for LaunchPad
"""

from .database import (
    Base,
    # Enums
    SubscriptionTier,
    ProjectStatus,
    AgentType,
    SessionStatus,
    ConversationRole,
    # Models
    User,
    Project,
    AgentSession,
    Conversation,
    AnalysisResult,
)

__all__ = [
    "Base",
    # Enums
    "SubscriptionTier",
    "ProjectStatus",
    "AgentType",
    "SessionStatus",
    "ConversationRole",
    # Models
    "User",
    "Project",
    "AgentSession",
    "Conversation",
    "AnalysisResult",
]

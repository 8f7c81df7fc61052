"""
Research Sources - raw records for research collaborators
"""

from launchpad.config import get_settings
from .base import ResearchSource, ResearchSourceError, OfflineResearchSource
from .serper_source import SerperResearchSource


def get_research_source() -> ResearchSource:
    """Serper when a key is configured, otherwise the offline source"""
    settings = get_settings()
    if settings.SERPER_API_KEY:
        return SerperResearchSource()
    return OfflineResearchSource()


__all__ = [
    "get_research_source",
    "ResearchSource",
    "ResearchSourceError",
    "OfflineResearchSource",
    "SerperResearchSource",
]

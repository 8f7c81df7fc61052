"""
Research Source Interface
Where research collaborators get their raw records from
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from launchpad.schemas.research import ResearchKind, ResearchQuery


class ResearchSourceError(Exception):
    """Raised when a source cannot produce records"""
    def __init__(self, message: str, source: str, details: Dict[str, Any] = None):
        super().__init__(message)
        self.source = source
        self.details = details or {}


class ResearchSource(ABC):
    """
    A pluggable data source. Records are plain dicts; the keys a collaborator
    understands are documented on each collaborator.
    """

    name: str = "source"

    @abstractmethod
    async def search(self, query: ResearchQuery, kind: ResearchKind) -> List[Dict[str, Any]]:
        """Return raw records for the query"""
        pass


class OfflineResearchSource(ResearchSource):
    """Source that never has any records"""

    name = "offline"

    async def search(self, query: ResearchQuery, kind: ResearchKind) -> List[Dict[str, Any]]:
        return []

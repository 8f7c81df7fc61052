"""
Research Collaborator base class
Cache-checked, soft-failing fetch shared by all collaborator kinds
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from launchpad.adapters.research import OfflineResearchSource, ResearchSource
from launchpad.schemas.research import ResearchKind, ResearchQuery, ResearchResultBase
from launchpad.utils.cache import TTLCache

logger = logging.getLogger(__name__)


class ResearchCollaborator(ABC):
    """
    Turns raw source records into one typed research result.

    `fetch` never raises for ordinary failures: anything that goes wrong while
    collecting is logged and replaced by `default_result()`, which is not
    cached. Cancellation is not intercepted, so an abandoned fetch writes
    nothing to the cache.
    """

    kind: ResearchKind
    default_ttl: int = 3600

    def __init__(
        self,
        cache: TTLCache,
        source: Optional[ResearchSource] = None,
        ttl_seconds: Optional[int] = None,
    ):
        self.cache = cache
        self.source = source or OfflineResearchSource()
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else self.default_ttl

    def cache_key(self, query: ResearchQuery) -> str:
        return f"{self.kind.value}:{query.fingerprint()}"

    async def fetch(self, query: ResearchQuery) -> ResearchResultBase:
        key = self.cache_key(query)
        cached, found = self.cache.get(key)
        if found:
            return cached

        try:
            records = await self.source.search(query, self.kind)
            result = self.build_result(query, records)
        except Exception as e:
            logger.warning(
                "%s research failed for %s, using defaults: %s",
                self.kind.value, key[:24], e,
            )
            return self.default_result(query)

        self.cache.set(key, result, self.ttl_seconds)
        return result

    @abstractmethod
    def build_result(self, query: ResearchQuery, records: List[Dict[str, Any]]) -> ResearchResultBase:
        """Deterministic classification and aggregation over fetched records"""
        pass

    @abstractmethod
    def default_result(self, query: ResearchQuery) -> ResearchResultBase:
        """Documented fallback returned when collection fails"""
        pass

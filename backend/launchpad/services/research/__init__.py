"""
Research collaborators and concurrent gathering
"""

import asyncio
import logging
from typing import Dict, Iterable, Optional

from launchpad.adapters.research import ResearchSource
from launchpad.schemas.research import ResearchBundle, ResearchKind, ResearchQuery
from launchpad.utils.cache import TTLCache
from .base import ResearchCollaborator
from .competitor_discovery import CompetitorDiscoveryCollaborator, analyze_competitive_gaps
from .market_research import MarketResearchCollaborator, generate_market_forecast
from .sentiment_analysis import SentimentAnalysisCollaborator
from .web_intelligence import WebIntelligenceCollaborator

logger = logging.getLogger(__name__)

COLLABORATOR_CLASSES = {
    ResearchKind.COMPETITORS: CompetitorDiscoveryCollaborator,
    ResearchKind.MARKET: MarketResearchCollaborator,
    ResearchKind.SENTIMENT: SentimentAnalysisCollaborator,
    ResearchKind.WEB: WebIntelligenceCollaborator,
}


def build_collaborators(
    cache: TTLCache,
    source: Optional[ResearchSource] = None,
    kinds: Optional[Iterable[ResearchKind]] = None,
) -> Dict[ResearchKind, ResearchCollaborator]:
    """One collaborator per kind, all sharing the given cache and source"""
    selected = list(kinds) if kinds is not None else list(COLLABORATOR_CLASSES)
    return {kind: COLLABORATOR_CLASSES[kind](cache, source) for kind in selected}


async def gather_research(
    collaborators: Dict[ResearchKind, ResearchCollaborator],
    query: ResearchQuery,
) -> ResearchBundle:
    """
    Fetch every collaborator concurrently and wait for all of them.

    A collaborator that raises despite its own soft-fail contributes its
    default result instead.
    """
    kinds = list(collaborators)
    results = await asyncio.gather(
        *(collaborators[kind].fetch(query) for kind in kinds),
        return_exceptions=True,
    )

    bundle = {}
    for kind, result in zip(kinds, results):
        if isinstance(result, Exception):
            logger.warning("%s collaborator raised, using defaults: %s", kind.value, result)
            result = collaborators[kind].default_result(query)
        elif isinstance(result, BaseException):
            # Cancellation and interpreter exits
            raise result
        bundle[kind.value] = result
    return ResearchBundle(**bundle)


__all__ = [
    "ResearchCollaborator",
    "CompetitorDiscoveryCollaborator",
    "MarketResearchCollaborator",
    "SentimentAnalysisCollaborator",
    "WebIntelligenceCollaborator",
    "COLLABORATOR_CLASSES",
    "build_collaborators",
    "gather_research",
    "analyze_competitive_gaps",
    "generate_market_forecast",
]

"""
Serper.dev Research Source
Google search results as raw research records
"""

from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import httpx

from launchpad.config import get_settings
from launchpad.schemas.research import ResearchKind, ResearchQuery
from .base import ResearchSource, ResearchSourceError

settings = get_settings()


class SerperResearchSource(ResearchSource):
    """
    Runs one Google search per collaborator kind through serper.dev and maps
    organic results to records with title, link, domain, snippet and position.
    """

    BASE_URL = "https://google.serper.dev/search"
    name = "serper"

    QUERY_TEMPLATES = {
        ResearchKind.COMPETITORS: "{idea} competitors alternatives {industry}",
        ResearchKind.MARKET: "{industry} market size growth trends {target_market}",
        ResearchKind.SENTIMENT: "{idea} reviews complaints",
        ResearchKind.WEB: "{idea} reddit forum discussion",
    }

    def __init__(
        self,
        api_key: Optional[str] = None,
        country: Optional[str] = None,
        num_results: Optional[int] = None,
        timeout: float = 30.0,
    ):
        self.api_key = api_key or settings.SERPER_API_KEY
        self.country = country or settings.RESEARCH_COUNTRY
        self.num_results = num_results or settings.RESEARCH_RESULTS_PER_QUERY
        self.timeout = timeout

    def build_search_query(self, query: ResearchQuery, kind: ResearchKind) -> str:
        text = self.QUERY_TEMPLATES[kind].format(
            idea=query.business_idea,
            industry=query.industry,
            target_market=query.target_market,
        )
        if query.keywords:
            text = f"{text} {' '.join(query.keywords)}"
        return " ".join(text.split())

    async def search(self, query: ResearchQuery, kind: ResearchKind) -> List[Dict[str, Any]]:
        if not self.api_key:
            raise ResearchSourceError("SERPER_API_KEY is not configured", self.name)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.BASE_URL,
                    headers={
                        "X-API-KEY": self.api_key,
                        "Content-Type": "application/json"
                    },
                    json={
                        "q": self.build_search_query(query, kind),
                        "gl": self.country,
                        "hl": "en",
                        "num": self.num_results,
                        "autocorrect": True
                    }
                )
        except httpx.RequestError as e:
            raise ResearchSourceError(f"Serper request failed: {e}", self.name)

        if response.status_code != 200:
            raise ResearchSourceError(
                f"Serper API error: {response.status_code}",
                self.name,
                {"status_code": response.status_code, "response": response.text[:500]},
            )

        return [self._to_record(item) for item in response.json().get("organic", [])]

    def _to_record(self, item: Dict[str, Any]) -> Dict[str, Any]:
        link = item.get("link", "")
        return {
            "title": item.get("title", ""),
            "link": link,
            "domain": _normalize_domain(link),
            "snippet": item.get("snippet", ""),
            "position": item.get("position"),
            "source": self.name,
        }


def _normalize_domain(url: str) -> str:
    """Extract the bare host from a URL"""
    try:
        host = urlparse(url).netloc.lower()
    except ValueError:
        return ""
    return host[4:] if host.startswith("www.") else host

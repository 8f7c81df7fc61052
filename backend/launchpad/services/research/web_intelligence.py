"""
Web & Social Intelligence Collaborator
Categorizes public mentions by where they were found and reads demand from them
"""

from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from launchpad.adapters.parsing import SentimentAnalyzer
from launchpad.config import get_settings
from launchpad.schemas.research import ResearchKind, ResearchQuery, WebIntelligence, WebMention
from .base import ResearchCollaborator

settings = get_settings()

DOMAIN_CATEGORIES = {
    "forum": [
        "reddit.com", "news.ycombinator.com", "stackoverflow.com", "quora.com",
        "indiehackers.com", "stackexchange.com",
    ],
    "review": [
        "g2.com", "capterra.com", "trustpilot.com", "yelp.com", "getapp.com",
        "producthunt.com", "sitejabber.com",
    ],
    "social": [
        "twitter.com", "x.com", "linkedin.com", "facebook.com", "instagram.com",
        "tiktok.com", "youtube.com", "pinterest.com",
    ],
    "news": [
        "techcrunch.com", "forbes.com", "bloomberg.com", "reuters.com",
        "businessinsider.com", "theverge.com", "wsj.com", "nytimes.com",
    ],
}

# Categories that indicate people talking about the problem
DEMAND_CATEGORIES = ("forum", "review", "social")


def categorize_domain(domain: str) -> str:
    domain = domain.lower()
    for category, domains in DOMAIN_CATEGORIES.items():
        if any(domain == d or domain.endswith("." + d) for d in domains):
            return category
    return "other"


def demand_signal(category_counts: Dict[str, int]) -> str:
    conversations = sum(category_counts.get(c, 0) for c in DEMAND_CATEGORIES)
    if conversations == 0:
        return "none"
    if conversations <= 2:
        return "weak"
    if conversations <= 5:
        return "moderate"
    return "strong"


def _domain_of(url: str) -> str:
    try:
        host = urlparse(url).netloc.lower()
    except ValueError:
        return ""
    return host[4:] if host.startswith("www.") else host


class WebIntelligenceCollaborator(ResearchCollaborator):
    """Records understood: title, link | url, domain, snippet, category"""

    kind = ResearchKind.WEB
    default_ttl = settings.CACHE_TTL_WEB

    def __init__(self, cache, source=None, ttl_seconds: Optional[int] = None, analyzer: Optional[SentimentAnalyzer] = None):
        super().__init__(cache, source, ttl_seconds)
        self.analyzer = analyzer or SentimentAnalyzer()

    def to_mention(self, record: Dict[str, Any]) -> Optional[WebMention]:
        title = (record.get("title") or "").strip()
        url = record.get("link") or record.get("url") or ""
        if not title and not url:
            return None
        domain = record.get("domain") or _domain_of(url)
        category = record.get("category")
        if category not in ("forum", "review", "social", "news", "other"):
            category = categorize_domain(domain)
        return WebMention(
            title=title or domain,
            url=url,
            domain=domain,
            category=category,
            snippet=record.get("snippet") or "",
        )

    def build_result(self, query: ResearchQuery, records: List[Dict[str, Any]]) -> WebIntelligence:
        mentions: List[WebMention] = []
        seen_urls = set()
        for record in records:
            mention = self.to_mention(record)
            if mention is None or (mention.url and mention.url in seen_urls):
                continue
            seen_urls.add(mention.url)
            mentions.append(mention)

        counts: Dict[str, int] = {}
        for mention in mentions:
            counts[mention.category] = counts.get(mention.category, 0) + 1

        forum_pain_points = []
        for mention in mentions:
            if mention.category != "forum":
                continue
            text = f"{mention.title}. {mention.snippet}".strip()
            if self.analyzer.analyze(text).score < -0.2:
                forum_pain_points.append(text[:160])

        return WebIntelligence(
            confidence=round(min(1.0, len(mentions) / 10), 4),
            sources=sorted({m.domain for m in mentions if m.domain}),
            mentions=mentions,
            category_counts=counts,
            forum_pain_points=forum_pain_points,
            demand_signal=demand_signal(counts),
        )

    def default_result(self, query: ResearchQuery) -> WebIntelligence:
        return WebIntelligence(is_default=True)

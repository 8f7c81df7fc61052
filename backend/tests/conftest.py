"""
Shared fixtures: in-memory database, fake LLM adapter, fake research source.
"""

import json
import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LLM_PROVIDER", "openai")

from typing import Any, Dict, List, Optional, Union

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from launchpad.adapters.llm import BaseLLMAdapter, LLMConfig, LLMMessage, LLMProviderType, LLMResponse, LLMUsage
from launchpad.adapters.research import ResearchSource, ResearchSourceError
from launchpad.models import Base
from launchpad.schemas.research import ResearchKind, ResearchQuery
from launchpad.services.llm_gateway import LLMGateway
from launchpad.services.orchestrator import Orchestrator, default_agents
from launchpad.services.storage import AgentStore
from launchpad.utils.cache import TTLCache

TEST_DATABASE_URL = "sqlite+aiosqlite://"


# ── Fakes ──

class FakeLLMAdapter(BaseLLMAdapter):
    """Replies from a script; an exception in the script is raised instead"""

    def __init__(self, replies: Optional[List[Union[str, BaseException]]] = None, api_key: Optional[str] = "test-key"):
        super().__init__(api_key)
        self.replies = list(replies or [])
        self.calls: List[Dict[str, Any]] = []

    @property
    def provider(self) -> LLMProviderType:
        return LLMProviderType.OPENAI

    @property
    def default_model(self) -> str:
        return "fake-model"

    def queue(self, *replies: Union[str, dict, BaseException]) -> None:
        for reply in replies:
            self.replies.append(json.dumps(reply) if isinstance(reply, dict) else reply)

    async def execute_chat(
        self,
        messages: List[LLMMessage],
        config: Optional[LLMConfig] = None,
        system_prompt: Optional[str] = None,
    ) -> LLMResponse:
        self.calls.append({"messages": list(messages), "config": config, "system_prompt": system_prompt})
        if not self.replies:
            raise AssertionError("FakeLLMAdapter ran out of scripted replies")
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return LLMResponse(
            content=reply,
            raw_response={"fake": True},
            provider=self.provider,
            model=self.default_model,
            finish_reason="stop",
            usage=LLMUsage(prompt_tokens=10, completion_tokens=20, total_tokens=30),
            latency_ms=1,
        )


class FakeResearchSource(ResearchSource):
    """Canned records per kind; counts calls; kinds in `failing` raise"""

    name = "fake"

    def __init__(self, records: Optional[Dict[ResearchKind, List[Dict[str, Any]]]] = None, failing=()):
        self.records = records or {}
        self.failing = set(failing)
        self.calls: List[ResearchKind] = []

    async def search(self, query: ResearchQuery, kind: ResearchKind) -> List[Dict[str, Any]]:
        self.calls.append(kind)
        if kind in self.failing:
            raise ResearchSourceError(f"{kind.value} unavailable", self.name)
        return list(self.records.get(kind, []))


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ── Sample data ──

COMPETITOR_RECORDS = [
    {
        "name": "HelloFresh",
        "website": "https://hellofresh.com",
        "description": "Meal kit subscription delivering recipes and ingredients weekly",
        "similarity": 0.85,
        "market_share": 40,
        "funding": "$367M",
        "key_features": ["Mobile app", "Recipe analytics"],
        "strengths": ["Brand recognition"],
        "weaknesses": ["Packaging waste"],
    },
    {
        "name": "Factor",
        "description": "Prepared meals delivered",
        "similarity": 0.75,
        "market_share": 20,
        "funding": 50,
        "strengths": ["Ready to eat"],
    },
    {
        "name": "Instacart",
        "description": "Grocery delivery marketplace with API access",
        "similarity": 0.5,
    },
    {
        "name": "Cookbook",
        "description": "Recipes in print",
        "similarity": 0.25,
    },
    {
        "name": "Unrelated Co",
        "description": "Industrial adhesives",
        "similarity": 0.05,
    },
]

MARKET_RECORDS = [
    {"title": "Meal kits move to prepared meals", "link": "https://example.com/a", "source": "fake"},
    {"title": "Subscription fatigue hits boxes", "impact": "medium", "source": "fake"},
]

SENTIMENT_RECORDS = [
    {"text": "Love the recipes, great value", "source": "fake"},
    {"text": "Too expensive and delivery arrived late", "source": "fake"},
    {"text": "Support never answers, terrible experience", "source": "fake"},
]

WEB_RECORDS = [
    {"title": "Anyone tried meal prep services?", "link": "https://www.reddit.com/r/mealprep/1", "snippet": "Terrible and overpriced, disappointed"},
    {"title": "Meal prep reviews", "link": "https://www.trustpilot.com/review/x"},
    {"title": "Meal prep reviews", "link": "https://www.trustpilot.com/review/x"},
    {"title": "Startup raises seed", "link": "https://techcrunch.com/2024/01/01/x"},
]


@pytest.fixture
def research_records():
    return {
        ResearchKind.COMPETITORS: COMPETITOR_RECORDS,
        ResearchKind.MARKET: MARKET_RECORDS,
        ResearchKind.SENTIMENT: SENTIMENT_RECORDS,
        ResearchKind.WEB: WEB_RECORDS,
    }


@pytest.fixture
def fake_source(research_records):
    return FakeResearchSource(research_records)


@pytest.fixture
def fake_adapter():
    return FakeLLMAdapter()


@pytest.fixture
def gateway(fake_adapter):
    return LLMGateway(adapter=fake_adapter, timeout_seconds=5)


@pytest.fixture
def cache():
    return TTLCache(clock=FakeClock(), prefix="test")


@pytest.fixture
def agents(gateway, cache, fake_source):
    return default_agents(gateway, cache, fake_source)


@pytest.fixture
def market_mapper_input():
    return {
        "businessIdea": "A marketplace for healthy weekly meal prep from home cooks",
        "industry": "ecommerce",
        "targetMarket": "busy professionals",
        "keywords": ["meal prep", "healthy"],
    }


@pytest.fixture
def market_mapper_reply():
    return {
        "executiveSummary": "Promising niche with established competitors.",
        "targetAudience": [
            {"segment": "Young professionals", "painPoints": ["No time to cook"], "size": "12M"},
        ],
        "marketOpportunity": {"size": "$10B", "growth": 9, "trends": ["Prepared meals"]},
        "competitors": [
            {"name": "HelloFresh", "strengths": ["Scale"], "weaknesses": ["Generic"], "marketPosition": "Leader"},
            "Freshly",
        ],
        "recommendations": [
            {"action": "Launch in one city", "priority": "High", "reasoning": "Density"},
        ],
        "confidenceScore": 0.6,
    }


@pytest.fixture
def competitor_gpt_input():
    return {
        "businessIdea": "A marketplace for healthy weekly meal prep from home cooks",
        "industry": "ecommerce",
        "targetMarket": "busy professionals",
    }


@pytest.fixture
def competitor_gpt_reply():
    return {
        "directCompetitors": [
            {"name": "HelloFresh", "description": "Meal kits", "marketShare": 35, "funding": 367},
        ],
        "indirectCompetitors": [
            {"name": "DoorDash", "overlap": "Prepared food delivery", "threat": "High"},
        ],
        "competitiveAdvantages": [
            {"advantage": "Local cooks", "sustainability": "Medium", "implementation": "Vetting"},
        ],
        "strategicRecommendations": [
            {"action": "Own a neighbourhood", "priority": "high", "rationale": "Network effects"},
        ],
    }


@pytest.fixture
def mvp_architect_input():
    return {
        "businessIdea": "A marketplace for healthy weekly meal prep from home cooks",
        "targetAudience": "busy professionals",
        "budget": 25000,
        "timeline": "3 months",
        "technicalExpertise": "intermediate",
    }


@pytest.fixture
def mvp_architect_reply():
    return {
        "features": [
            {"feature": "Cook profiles", "priority": "Must Have", "complexity": "Low", "estimatedHours": 40},
            {"name": "Weekly ordering", "priority": "must_have", "complexity": "medium", "hours": 80},
        ],
        "tech_stack": {"frontend": ["Next.js"], "backend": ["FastAPI"], "database": "PostgreSQL", "hosting": "Vercel"},
        "timeline": [{"phase": "Build", "duration": "8 weeks", "deliverables": ["Beta"]}],
        "budget": {"development": 20000, "tools": 1000, "hosting": 500},
    }


# ── Database ──

@pytest.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db(engine):
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session


@pytest.fixture
def store(db):
    return AgentStore(db)


@pytest.fixture
async def user(store):
    return await store.create_user("founder@example.com", "Founder", credits=5)


@pytest.fixture
async def project(store, user):
    return await store.create_project(
        owner_id=user.id,
        name="Meal prep",
        description="Healthy weekly meal prep",
        industry="ecommerce",
    )


@pytest.fixture
def orchestrator(store, agents):
    return Orchestrator(store, agents=agents)

"""
MVP Architect Agent
Feature scope, tech stack, timeline and budget for a first release
"""

from typing import Any, Dict

from launchpad.adapters.llm import LLMMessage
from launchpad.models import AgentType
from launchpad.schemas.agents import MVPArchitectInput, MVPArchitectOutput, normalize_mvp_architect_output
from launchpad.services.prompt_builder import ProviderRequest, render_template
from launchpad.services.schema_gate import Contract
from .base import AgentConfig, BaseAgent

SYSTEM_PROMPT = """You are MVP Architect, an expert product strategist and technical architect specializing in building Minimum Viable Products (MVPs) for startups.

Your role is to:
1. Define core features prioritized by importance and complexity
2. Recommend technology stacks suited to the team's expertise
3. Create realistic development timelines with clear phases
4. Estimate development costs and resource requirements

Use MoSCoW prioritization (must-have, should-have, nice-to-have).
Respond with a single valid JSON object and nothing else."""

PROMPT_TEMPLATE = """Design an MVP architecture for this business idea:

Business Idea: {business_idea}
Target Audience: {target_audience}
Budget: ${budget} USD
Timeline: {timeline}
Technical Expertise: {technical_expertise}

Return JSON with:
- "features" (8-12): {"feature", "priority" (must-have|should-have|nice-to-have), "complexity" (low|medium|high), "estimatedHours"}
- "techStack": {"frontend", "backend", "database", "hosting", "thirdParty"}
- "timeline" (3-5 phases): {"phase", "duration", "deliverables"}
- "budget": {"development", "tools", "hosting", "total"} in USD

Recommend technologies a {technical_expertise} team can ship with.
Stay within the ${budget} budget and the {timeline} timeline."""

MVP_ARCHITECT_INPUT = Contract("mvp_architect input", MVPArchitectInput)
MVP_ARCHITECT_OUTPUT = Contract("mvp_architect output", MVPArchitectOutput, normalize_mvp_architect_output)


class MVPArchitectAgent(BaseAgent):
    """Works from the input alone; no research collaborators"""

    config = AgentConfig(
        type=AgentType.MVP_ARCHITECT,
        name="MVP Architect",
        description="Designs MVP architecture with features, tech stack, timeline, and budget",
        system_prompt=SYSTEM_PROMPT,
        input_contract=MVP_ARCHITECT_INPUT,
        output_contract=MVP_ARCHITECT_OUTPUT,
        max_tokens=4000,
        temperature=0.2,
    )

    async def process_input(self, agent_input: MVPArchitectInput) -> Dict[str, Any]:
        prompt = render_template(PROMPT_TEMPLATE, {
            "business_idea": agent_input.business_idea,
            "target_audience": agent_input.target_audience,
            "budget": f"{agent_input.budget:,.0f}",
            "timeline": agent_input.timeline,
            "technical_expertise": agent_input.technical_expertise,
        })
        request = ProviderRequest(
            system_prompt=self.config.system_prompt,
            messages=[LLMMessage(role="user", content=prompt)],
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
        )
        # Raw reply; the output contract normalizes and validates it
        return await self.call_structured(request)

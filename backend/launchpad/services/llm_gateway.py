"""
LLM Gateway
Single choke point for generation calls and structured-output extraction
"""

import asyncio
import json
import logging
import re
from typing import Any, Dict, List, Optional

from launchpad.adapters.llm import (
    BaseLLMAdapter,
    LLMAdapterError,
    LLMConfig,
    LLMMessage,
    LLMResponse,
    get_adapter,
)
from launchpad.config import get_settings
from launchpad.exceptions import (
    AgentError,
    ConfigurationError,
    InvalidResponseError,
    ParseError,
    ProviderError,
)
from .prompt_builder import ProviderRequest

logger = logging.getLogger(__name__)
settings = get_settings()

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```", re.IGNORECASE)

_CREDENTIAL_ENV = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


class LLMGateway:
    """
    Wraps one provider adapter.

    The adapter is created on first use and its credential is checked then,
    so a gateway can be built in environments without keys. No retries happen
    here; callers decide whether a failure is worth another attempt.
    """

    def __init__(
        self,
        adapter: Optional[BaseLLMAdapter] = None,
        provider: Optional[str] = None,
        max_tokens_ceiling: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self._adapter = adapter
        self.provider = (provider or settings.LLM_PROVIDER).lower()
        self.max_tokens_ceiling = max_tokens_ceiling or settings.LLM_MAX_TOKENS_CEILING
        self.timeout_seconds = timeout_seconds or settings.LLM_REQUEST_TIMEOUT
        self.last_response: Optional[LLMResponse] = None

    def _get_adapter(self) -> BaseLLMAdapter:
        if self._adapter is None:
            try:
                self._adapter = get_adapter(self.provider)
            except ValueError as e:
                raise ConfigurationError(str(e))
        if not self._adapter.has_credentials:
            env_var = _CREDENTIAL_ENV.get(self.provider, "the provider API key")
            raise ConfigurationError(
                f"{self.provider} API key is required. Please set the {env_var} environment variable."
            )
        return self._adapter

    def clamp_max_tokens(self, max_tokens: Optional[int]) -> int:
        requested = max_tokens or settings.LLM_DEFAULT_MAX_TOKENS
        return max(1, min(requested, self.max_tokens_ceiling))

    async def complete(
        self,
        messages: List[LLMMessage],
        system_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        agent_type: Optional[str] = None,
    ) -> str:
        """
        Run one completion and return the raw text.

        Raises:
            ConfigurationError: no credential for the configured provider
            ProviderError: transport, protocol or timeout failure
            InvalidResponseError: the provider returned no content
        """
        adapter = self._get_adapter()
        config = LLMConfig(
            model=adapter.default_model,
            temperature=settings.LLM_DEFAULT_TEMPERATURE if temperature is None else temperature,
            max_tokens=self.clamp_max_tokens(max_tokens),
            timeout=int(self.timeout_seconds),
        )
        if logger.isEnabledFor(logging.DEBUG):
            self._log_request_size(adapter, messages, system_prompt, config, agent_type)

        try:
            response = await asyncio.wait_for(
                adapter.execute_chat(messages, config=config, system_prompt=system_prompt),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error("%s call timed out after %ss", adapter.provider.value, self.timeout_seconds)
            raise ProviderError(
                f"Request to {adapter.provider.value} timed out after {self.timeout_seconds}s",
                agent_type,
                {"provider": adapter.provider.value},
            )
        except LLMAdapterError as e:
            logger.error("%s call failed: %s", adapter.provider.value, e)
            raise ProviderError(
                f"Failed to call {adapter.provider.value} API: {e}",
                agent_type,
                {"provider": adapter.provider.value, "error_type": type(e).__name__, **e.details},
            )
        except AgentError:
            raise
        except Exception as e:
            logger.exception("%s call failed unexpectedly", adapter.provider.value)
            raise ProviderError(
                f"Failed to call {adapter.provider.value} API: {e}",
                agent_type,
                {"provider": adapter.provider.value, "error_type": type(e).__name__},
            )

        self.last_response = response
        if response.usage:
            logger.info(
                "%s/%s used %d prompt + %d completion tokens in %sms",
                response.provider.value, response.model,
                response.usage.prompt_tokens, response.usage.completion_tokens, response.latency_ms,
            )

        content = response.content or ""
        if not content.strip():
            raise InvalidResponseError(
                f"No content received from {adapter.provider.value}",
                agent_type,
                {"finish_reason": response.finish_reason},
            )
        return content

    @staticmethod
    def _log_request_size(adapter, messages, system_prompt, config, agent_type) -> None:
        # Best effort: tiktoken may need to download its encoding first.
        try:
            prompt_tokens = adapter.estimate_tokens(
                "\n".join([system_prompt or ""] + [m.content for m in messages])
            )
        except Exception as e:
            logger.debug("Token estimate unavailable for %s: %s", adapter.provider.value, e)
            return
        logger.debug(
            "%s request for %s: ~%d prompt tokens, max %d completion tokens",
            adapter.provider.value,
            agent_type or "-",
            prompt_tokens,
            config.max_tokens,
        )

    async def complete_request(self, request: ProviderRequest, agent_type: Optional[str] = None) -> str:
        return await self.complete(
            request.messages,
            system_prompt=request.system_prompt,
            max_tokens=request.max_tokens,
            temperature=request.temperature,
            agent_type=agent_type,
        )

    @staticmethod
    def parse_structured(raw_text: str, agent_type: Optional[str] = None) -> Dict[str, Any]:
        """
        Extract the first JSON object from model output.

        Tries, in order: the whole text, the first fenced code block, then the
        first balanced object found by scanning for an opening brace.
        """
        text = (raw_text or "").strip()

        try:
            parsed = json.loads(text)
            if isinstance(parsed, dict):
                return parsed
        except ValueError:
            pass

        for match in _FENCED_JSON.finditer(text):
            try:
                parsed = json.loads(match.group(1))
            except ValueError:
                continue
            if isinstance(parsed, dict):
                return parsed

        decoder = json.JSONDecoder()
        start = text.find("{")
        while start != -1:
            try:
                parsed, _ = decoder.raw_decode(text, start)
            except ValueError:
                start = text.find("{", start + 1)
                continue
            if isinstance(parsed, dict):
                return parsed
            start = text.find("{", start + 1)

        raise ParseError("Failed to parse JSON response: no JSON object found", raw_text or "", agent_type)

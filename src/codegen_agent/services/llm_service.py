from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from openai import APIConnectionError, APITimeoutError, OpenAI, RateLimitError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from codegen_agent.config import ConfigurationError, ModelConfig, settings

logger = logging.getLogger(__name__)


@dataclass
class ModelReply:
    content: str
    usage: int = 0


class ChatModel(Protocol):
    def complete(self, system_prompt: str, messages: list[dict]) -> ModelReply: ...


def _create_openai_client(api_key: str, base_url: str = ""):
    """Create an OpenAI client, optionally wrapped with PromptLayer."""
    url = base_url or settings.llm_base_url
    if settings.promptlayer_api_key:
        from promptlayer import PromptLayer

        promptlayer_client = PromptLayer(api_key=settings.promptlayer_api_key)
        return promptlayer_client.openai.OpenAI(api_key=api_key, base_url=url)
    return OpenAI(api_key=api_key, base_url=url)


class LLMService:
    """Chat-completion backend that asks for a JSON decision on every call."""

    def __init__(self, config: ModelConfig, api_key: str) -> None:
        if not api_key:
            raise ConfigurationError(
                "An API key is required (set LLM_API_KEY or pass api_key in AgentConfig)"
            )
        if not config.model:
            raise ConfigurationError("A model id is required (set LLM_MODEL)")
        self._config = config
        self.client = _create_openai_client(api_key, config.base_url)
        self.model = config.model
        self._temperature = config.temperature
        self._max_tokens = config.max_tokens

    def _get_temperature(self) -> float:
        return self._temperature if self._temperature is not None else 0.0

    @retry(
        retry=retry_if_exception_type((APIConnectionError, APITimeoutError, RateLimitError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(min=2, max=30),
        reraise=True,
    )
    def complete(self, system_prompt: str, messages: list[dict]) -> ModelReply:
        kwargs: dict = {
            "model": self.model,
            "messages": [{"role": "system", "content": system_prompt}, *messages],
            "temperature": self._get_temperature(),
            "response_format": {"type": "json_object"},
        }
        if self._max_tokens is not None:
            kwargs["max_tokens"] = self._max_tokens
        if settings.promptlayer_api_key:
            kwargs["pl_tags"] = ["codegen-agent", "react"]

        response = self.client.chat.completions.create(**kwargs)
        content = response.choices[0].message.content or ""
        usage = response.usage.total_tokens if response.usage else 0
        logger.debug("Model replied (%d tokens): %.200s", usage, content)
        return ModelReply(content=content, usage=usage)

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from pydantic_settings import BaseSettings


class ConfigurationError(Exception):
    """Raised when the agent is constructed with missing or invalid settings."""


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    llm_api_key: str = ""
    promptlayer_api_key: str = ""
    llm_base_url: str = "https://openrouter.ai/api/v1"
    llm_model: str = "openai/gpt-4o-mini"
    temperature: float = 0.0

    # Agent loop settings
    max_iterations: int = 10
    max_history_rounds: int = 10
    verbose: bool = False

    # Workspace the file tools are rooted at
    workdir: str = "."


settings = Settings()


@dataclass
class ModelConfig:
    model: str = ""
    temperature: float | None = None
    max_tokens: int | None = None
    base_url: str = ""


_models_config_cache: dict | None = None


def _load_models_yaml() -> dict:
    global _models_config_cache
    if _models_config_cache is not None:
        return _models_config_cache

    config_path = os.environ.get("MODELS_CONFIG_PATH", "models.yaml")
    path = Path(config_path)
    if not path.is_file():
        _models_config_cache = {}
        return _models_config_cache

    import yaml

    with open(path) as f:
        _models_config_cache = yaml.safe_load(f) or {}
    return _models_config_cache


def get_model_config(agent_name: str = "") -> ModelConfig:
    """Get model config for an agent, merging default + agent override.

    Falls back to Settings env variables if models.yaml doesn't exist.
    """
    data = _load_models_yaml()

    if not data:
        return ModelConfig(
            model=settings.llm_model,
            temperature=settings.temperature,
            base_url=settings.llm_base_url,
        )

    default = data.get("default", {})
    merged = {
        "model": default.get("model", settings.llm_model),
        "temperature": default.get("temperature", settings.temperature),
        "max_tokens": default.get("max_tokens"),
        "base_url": default.get("base_url", settings.llm_base_url),
    }

    if agent_name:
        agents = data.get("agents", {})
        agent_override = agents.get(agent_name, {})
        for key, value in agent_override.items():
            if key in merged:
                merged[key] = value

    return ModelConfig(
        model=merged["model"],
        temperature=merged["temperature"],
        max_tokens=merged["max_tokens"],
        base_url=merged["base_url"],
    )


@dataclass
class AgentConfig:
    """Everything the reasoning loop needs, passed in explicitly.

    The loop never reads the environment itself; use ``from_settings`` at the
    edge of the program to build one from ``.env`` / ``models.yaml``.
    """

    model: str = ""
    api_key: str = ""
    base_url: str = ""
    temperature: float = 0.0
    max_tokens: int | None = None
    max_iterations: int = 10
    max_history_rounds: int = 10
    verbose: bool = False

    @classmethod
    def from_settings(cls, agent_name: str = "react", **overrides) -> AgentConfig:
        model_config = get_model_config(agent_name)
        config = cls(
            model=model_config.model or settings.llm_model,
            api_key=settings.llm_api_key,
            base_url=model_config.base_url or settings.llm_base_url,
            temperature=(
                model_config.temperature
                if model_config.temperature is not None
                else settings.temperature
            ),
            max_tokens=model_config.max_tokens,
            max_iterations=settings.max_iterations,
            max_history_rounds=settings.max_history_rounds,
            verbose=settings.verbose,
        )
        for key, value in overrides.items():
            if value is not None:
                setattr(config, key, value)
        return config

    def to_model_config(self) -> ModelConfig:
        return ModelConfig(
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            base_url=self.base_url,
        )

    def check(self) -> None:
        """Validate loop limits. Raises ConfigurationError."""
        if self.max_iterations < 1:
            raise ConfigurationError(
                f"max_iterations must be at least 1, got {self.max_iterations}"
            )
        if self.max_history_rounds < 1:
            raise ConfigurationError(
                f"max_history_rounds must be at least 1, got {self.max_history_rounds}"
            )

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path


@dataclass
class RuntimeEnv:
    provider_api_key: str
    provider_env_var: str


@dataclass
class AppConfig:
    provider_name: str
    model: str
    max_tokens: int
    temperature: float
    context_window_tokens: int
    system_prompt: str | None
    log_level: str
    log_consumers: list | None


_DEFAULT_MODELS = {
    "anthropic": "claude-sonnet-4-5-20250929",
    "openai": "gpt-4o",
}


def load_json_config(config_path: Path | None = None) -> dict:
    config_path = config_path or Path.cwd() / "config.json"
    if config_path.exists():
        with open(config_path) as f:
            return json.load(f)
    return {}


def parse_app_config(config: dict) -> AppConfig:
    provider_name = config.get("Provider", "anthropic").strip().lower()
    return AppConfig(
        provider_name=provider_name,
        model=config.get("Model", _DEFAULT_MODELS.get(provider_name, _DEFAULT_MODELS["anthropic"])),
        max_tokens=int(config.get("MaxTokens", 4096)),
        temperature=float(config.get("Temperature", 1.0)),
        context_window_tokens=int(config.get("ContextWindowTokens", 200_000)),
        system_prompt=str(config.get("SystemPrompt", "")).strip() or None,
        log_level=config.get("LogLevel", "INFO"),
        log_consumers=config.get("LogConsumers"),
    )


def resolve_runtime_env(provider_name: str) -> RuntimeEnv:
    if provider_name == "openai":
        provider_env_var = "OPENAI_API_KEY"
    else:
        provider_env_var = "ANTHROPIC_API_KEY"

    return RuntimeEnv(
        provider_api_key=os.environ.get(provider_env_var, ""),
        provider_env_var=provider_env_var,
    )

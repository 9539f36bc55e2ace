from __future__ import annotations

from dataclasses import dataclass

from lm_session.app_config import AppConfig, RuntimeEnv
from lm_session.batch import BatchPrompter
from lm_session.capability import SessionCapability, create_capability
from lm_session.logging_config import setup_logging
from lm_session.prompter import Prompter
from lm_session.sensitivity import SensitivityClassifier
from lm_session.session_manager import SessionManager
from lm_session.streaming import StreamingPrompter


@dataclass
class AppRuntime:
    session_manager: SessionManager
    prompter: Prompter
    streaming_prompter: StreamingPrompter
    batch_prompter: BatchPrompter
    classifier: SensitivityClassifier
    log_descriptions: list[str]


def build_runtime(capability: SessionCapability, system_prompt: str | None = None) -> AppRuntime:
    """Wire one SessionManager into every prompter."""
    manager = SessionManager(capability, system_prompt)
    prompter = Prompter(manager)
    return AppRuntime(
        session_manager=manager,
        prompter=prompter,
        streaming_prompter=StreamingPrompter(manager),
        batch_prompter=BatchPrompter(manager),
        classifier=SensitivityClassifier(prompter),
        log_descriptions=[],
    )


def bootstrap_runtime(app: AppConfig, env: RuntimeEnv) -> AppRuntime:
    log_descriptions = setup_logging(level=app.log_level, consumers=app.log_consumers)

    capability = create_capability(
        app.provider_name,
        env.provider_api_key,
        model=app.model,
        max_output_tokens=app.max_tokens,
        temperature=app.temperature,
        context_window_tokens=app.context_window_tokens,
    )

    runtime = build_runtime(capability, app.system_prompt)
    runtime.log_descriptions = log_descriptions
    return runtime

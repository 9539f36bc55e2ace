from collections.abc import AsyncGenerator
from typing import Protocol, runtime_checkable


@runtime_checkable
class ModelSession(Protocol):
    @property
    def tokens_so_far(self) -> int: ...

    @property
    def max_tokens(self) -> int: ...

    @property
    def tokens_left(self) -> int: ...

    async def prompt(self, text: str) -> str:
        """Submit a prompt and return the complete response text."""
        ...

    def prompt_streaming(self, text: str) -> AsyncGenerator[str, None]:
        """Submit a prompt and yield response fragments as they arrive.

        Closing the generator early must release the underlying stream.
        """
        ...

    async def clone(self) -> "ModelSession":
        """Return an independent session carrying the same configuration."""
        ...


@runtime_checkable
class SessionCapability(Protocol):
    async def create(self, system_prompt: str) -> ModelSession:
        """Create a session driven by the given system-level directive."""
        ...


def create_capability(
    provider_name: str,
    api_key: str,
    *,
    model: str,
    max_output_tokens: int = 4096,
    temperature: float = 1.0,
    context_window_tokens: int = 200_000,
) -> SessionCapability:
    """Factory: create a SessionCapability by provider name."""
    name = provider_name.strip().lower()
    settings = dict(
        api_key=api_key,
        model=model,
        max_output_tokens=max_output_tokens,
        temperature=temperature,
        context_window_tokens=context_window_tokens,
    )
    if name == "anthropic":
        from lm_session.providers.anthropic_provider import AnthropicCapability
        return AnthropicCapability(**settings)
    if name == "openai":
        from lm_session.providers.openai_provider import OpenAICapability
        return OpenAICapability(**settings)
    raise ValueError(f"Unknown provider: {provider_name!r}. Supported: 'anthropic', 'openai'")

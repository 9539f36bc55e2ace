from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator
from contextlib import aclosing
from dataclasses import dataclass
from typing import Any

from loguru import logger
from tenacity import retry_if_exception_type, stop_after_attempt, wait_exponential


def _on_retry(retry_state) -> None:
    attempt = retry_state.attempt_number
    wait = retry_state.next_action.sleep if retry_state.next_action else 0
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    reason = type(exc).__name__ if exc else "Unknown"
    logger.warning(f"{reason}. Retrying in {wait:.0f}s (attempt {attempt}/5)...")


def default_retry_kwargs(exception_types: tuple[type[Exception], ...]) -> dict:
    return {
        "retry": retry_if_exception_type(exception_types),
        "wait": wait_exponential(multiplier=10, min=10, max=320),
        "stop": stop_after_attempt(5),
        "before_sleep": _on_retry,
        "reraise": True,
    }


@dataclass
class StreamTotals:
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def context_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class ChatSession(ABC):
    """Conversation state behind one system directive.

    Subclasses supply ``_complete`` and ``_stream`` for a concrete API. A
    completed exchange is appended to the history; an abandoned or failed
    stream leaves it untouched.
    """

    def __init__(
        self,
        client: Any,
        *,
        model: str,
        system_prompt: str,
        max_output_tokens: int,
        temperature: float,
        context_window_tokens: int,
    ):
        self._client = client
        self._model = model
        self._system_prompt = system_prompt
        self._max_output_tokens = max_output_tokens
        self._temperature = temperature
        self._context_window_tokens = context_window_tokens
        self._messages: list[dict] = []
        self._tokens_so_far = 0

    @property
    def tokens_so_far(self) -> int:
        return self._tokens_so_far

    @property
    def max_tokens(self) -> int:
        return self._context_window_tokens

    @property
    def tokens_left(self) -> int:
        return max(0, self._context_window_tokens - self._tokens_so_far)

    @property
    def messages(self) -> list[dict]:
        return list(self._messages)

    async def prompt(self, text: str) -> str:
        reply, context_tokens = await self._complete(self._with_user_turn(text))
        self._commit(text, reply, context_tokens)
        return reply

    async def prompt_streaming(self, text: str) -> AsyncGenerator[str, None]:
        totals = StreamTotals()
        parts: list[str] = []
        async with aclosing(self._stream(self._with_user_turn(text), totals)) as fragments:
            async for fragment in fragments:
                parts.append(fragment)
                yield fragment
        self._commit(text, "".join(parts), totals.context_tokens)

    async def clone(self) -> ChatSession:
        twin = copy.copy(self)
        twin._messages = list(self._messages)
        return twin

    @abstractmethod
    async def _complete(self, messages: list[dict]) -> tuple[str, int]:
        """Return the reply text and the context size after the exchange."""

    @abstractmethod
    def _stream(self, messages: list[dict], totals: StreamTotals) -> AsyncGenerator[str, None]:
        """Yield reply fragments; fill ``totals`` once the stream is exhausted."""

    def _with_user_turn(self, text: str) -> list[dict]:
        return [*self._messages, {"role": "user", "content": text}]

    def _commit(self, text: str, reply: str, context_tokens: int) -> None:
        self._messages.append({"role": "user", "content": text})
        self._messages.append({"role": "assistant", "content": reply})
        self._tokens_so_far = max(self._tokens_so_far, context_tokens)


class ChatCapability(ABC):
    """Creates ``session_type`` sessions sharing one API client."""

    session_type: type[ChatSession]
    api_key_env_var: str = ""

    def __init__(
        self,
        api_key: str,
        *,
        model: str,
        max_output_tokens: int = 4096,
        temperature: float = 1.0,
        context_window_tokens: int = 200_000,
    ):
        self._api_key = api_key
        self._model = model
        self._max_output_tokens = max_output_tokens
        self._temperature = temperature
        self._context_window_tokens = context_window_tokens
        self._client: Any = None

    async def create(self, system_prompt: str) -> ChatSession:
        if not self._api_key:
            raise ValueError(f"{self.api_key_env_var} environment variable is required.")
        if self._client is None:
            self._client = self._create_client()
        logger.debug(f"Creating {self.session_type.__name__}: model={self._model}")
        return self.session_type(
            self._client,
            model=self._model,
            system_prompt=system_prompt,
            max_output_tokens=self._max_output_tokens,
            temperature=self._temperature,
            context_window_tokens=self._context_window_tokens,
        )

    @abstractmethod
    def _create_client(self) -> Any: ...

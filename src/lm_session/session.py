from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass

from lm_session.capability import ModelSession


@dataclass(frozen=True)
class TokenUsage:
    used: int
    limit: int

    @property
    def remaining(self) -> int:
        return self.limit - self.used

    def __str__(self) -> str:
        return f"{self.used}/{self.limit} ({self.remaining} left)"


class SessionHandle:
    """Wraps one underlying model session and reports its token counters."""

    def __init__(self, session: ModelSession, *, label: str = "primary"):
        self._session = session
        self._label = label

    @property
    def label(self) -> str:
        return self._label

    @property
    def raw(self) -> ModelSession:
        return self._session

    @property
    def usage(self) -> TokenUsage:
        return TokenUsage(used=self._session.tokens_so_far, limit=self._session.max_tokens)

    async def prompt(self, text: str) -> str:
        return await self._session.prompt(text)

    def prompt_streaming(self, text: str) -> AsyncGenerator[str, None]:
        return self._session.prompt_streaming(text)

    async def clone(self, label: str = "clone") -> SessionHandle:
        return SessionHandle(await self._session.clone(), label=label)

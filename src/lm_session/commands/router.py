from __future__ import annotations

from collections.abc import Awaitable, Callable


class CommandRouter:
    def __init__(
        self,
        *,
        on_help: Callable[[], Awaitable[None]],
        on_send: Callable[[str], Awaitable[None]],
        on_batch: Callable[[list[str]], Awaitable[None]],
        on_analyze: Callable[[str], Awaitable[None]],
        on_usage: Callable[[], Awaitable[None]],
        on_unknown: Callable[[str], None],
    ) -> None:
        self._on_help = on_help
        self._on_send = on_send
        self._on_batch = on_batch
        self._on_analyze = on_analyze
        self._on_usage = on_usage
        self._on_unknown = on_unknown

    async def try_handle(self, user_message: str) -> bool:
        trimmed = user_message.strip()
        if not trimmed.startswith("/"):
            return False

        command, _, argument = trimmed.partition(" ")
        argument = argument.strip()

        if command == "/help":
            await self._on_help()
            return True
        if command == "/usage":
            await self._on_usage()
            return True
        if command == "/send" and argument:
            await self._on_send(argument)
            return True
        if command == "/batch" and argument:
            await self._on_batch(split_batch(argument))
            return True
        if command == "/analyze" and argument:
            await self._on_analyze(argument)
            return True

        self._on_unknown(trimmed)
        return True


def split_batch(argument: str) -> list[str]:
    """Split ``a | b | c`` into prompts, dropping empty entries."""
    return [part.strip() for part in argument.split("|") if part.strip()]

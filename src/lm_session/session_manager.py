from __future__ import annotations

import asyncio

from loguru import logger

from lm_session.capability import SessionCapability
from lm_session.errors import SessionCreationError
from lm_session.session import SessionHandle
from lm_session.system_prompt import get_system_prompt


class SessionManager:
    """Owns the primary session and creates it on first use.

    Concurrent first callers share one creation task, so only one primary
    session is ever built. A failed creation leaves no state behind and the
    next call starts over.
    """

    def __init__(self, capability: SessionCapability, system_prompt: str | None = None):
        self._capability = capability
        self._system_prompt = get_system_prompt(system_prompt)
        self._session: SessionHandle | None = None
        self._creating: asyncio.Task[SessionHandle] | None = None

    @property
    def session(self) -> SessionHandle | None:
        return self._session

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    async def ensure_session(self) -> SessionHandle:
        if self._session is not None:
            return self._session
        if self._creating is None:
            self._creating = asyncio.ensure_future(self._create())
        # A cancelled caller must not cancel creation for the others.
        return await asyncio.shield(self._creating)

    async def _create(self) -> SessionHandle:
        try:
            logger.debug("Creating primary session")
            raw = await self._capability.create(self._system_prompt)
        except SessionCreationError:
            raise
        except Exception as ex:
            logger.error(f"Session creation failed: {ex}")
            raise SessionCreationError(f"Could not create session: {ex}") from ex
        finally:
            self._creating = None

        self._session = SessionHandle(raw)
        logger.info(f"Session created. Token usage: {self._session.usage}")
        return self._session

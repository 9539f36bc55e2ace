from collections.abc import AsyncGenerator
from contextlib import aclosing

from loguru import logger

from lm_session.errors import PromptError
from lm_session.prompter import require_text
from lm_session.session_manager import SessionManager


class StreamingPrompter:
    """Streams a reply from the primary session fragment by fragment.

    ``send_streaming`` returns an async generator. Consumers that stop early
    should close it (``aclose()`` or ``contextlib.aclosing``); closing releases
    the underlying stream and skips the completion log.
    """

    def __init__(self, manager: SessionManager):
        self._manager = manager

    async def send_streaming(self, text: str) -> AsyncGenerator[str, None]:
        require_text(text)
        try:
            session = await self._manager.ensure_session()
        except Exception as ex:
            logger.error(f"Error in send_streaming: {ex}")
            raise PromptError(str(ex)) from ex

        async with aclosing(session.prompt_streaming(text)) as fragments:
            try:
                async for fragment in fragments:
                    yield fragment
            except Exception as ex:
                logger.error(f"Error in send_streaming: {ex}")
                raise PromptError(str(ex)) from ex

        logger.info(f"Token usage: {session.usage}")

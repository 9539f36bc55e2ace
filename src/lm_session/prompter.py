from loguru import logger

from lm_session.errors import PromptError
from lm_session.session_manager import SessionManager


def require_text(text: str) -> str:
    if not isinstance(text, str) or not text.strip():
        raise ValueError("Prompt text must be a non-empty string")
    return text


class Prompter:
    """Sends one prompt through the primary session and returns the full reply."""

    def __init__(self, manager: SessionManager):
        self._manager = manager

    async def send(self, text: str) -> str:
        require_text(text)
        try:
            session = await self._manager.ensure_session()
            result = await session.prompt(text)
        except Exception as ex:
            logger.error(f"Error in send: {ex}")
            raise PromptError(str(ex)) from ex

        logger.info(f"Token usage: {session.usage}")
        return result

import asyncio
from collections.abc import Sequence

from loguru import logger

from lm_session.errors import BatchError
from lm_session.prompter import require_text
from lm_session.session import SessionHandle
from lm_session.session_manager import SessionManager


class BatchPrompter:
    """Runs independent prompts concurrently, one session clone per prompt.

    Every request gets its own clone of the primary session, so requests share
    the initial configuration and nothing else. Results follow input order.
    The batch is all-or-nothing: one failure discards every result. Clones
    live only for the duration of the call.
    """

    def __init__(self, manager: SessionManager):
        self._manager = manager

    async def send_batch(self, texts: Sequence[str]) -> list[str]:
        for text in texts:
            require_text(text)

        try:
            primary = await self._manager.ensure_session()
        except Exception as ex:
            logger.error(f"Error in send_batch: {ex}")
            raise BatchError(f"Batch aborted: {ex}") from ex

        tasks: list[asyncio.Task[str]] = []
        try:
            async with asyncio.TaskGroup() as group:
                for index, text in enumerate(texts):
                    tasks.append(group.create_task(self._prompt_clone(primary, index, text)))
        except ExceptionGroup as group_error:
            failures = [
                (index, task.exception())
                for index, task in enumerate(tasks)
                if task.done() and not task.cancelled() and task.exception() is not None
            ]
            failed = ", ".join(str(index) for index, _ in failures)
            logger.error(f"Error in send_batch: {len(failures)} of {len(texts)} requests failed ({failed})")
            raise BatchError(
                f"{len(failures)} of {len(texts)} batch requests failed: {group_error.exceptions[0]}",
                failures,
            ) from group_error.exceptions[0]

        # Task list is in input order; completion order is irrelevant here.
        return [task.result() for task in tasks]

    async def _prompt_clone(self, primary: SessionHandle, index: int, text: str) -> str:
        clone = await primary.clone(label=f"batch-{index}")
        result = await clone.prompt(text)
        logger.info(f"Token usage for batch request {index}: {clone.usage}")
        logger.debug(f"Batch request {index} result: {result}")
        return result

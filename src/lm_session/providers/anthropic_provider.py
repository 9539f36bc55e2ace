from collections.abc import AsyncGenerator

import anthropic
from loguru import logger
from tenacity import retry

from lm_session.providers.common import ChatCapability, ChatSession, StreamTotals, default_retry_kwargs

_RETRYABLE = (
    anthropic.RateLimitError,
    anthropic.APIConnectionError,
    anthropic.APITimeoutError,
)


class AnthropicSession(ChatSession):
    def _request_kwargs(self, messages: list[dict]) -> dict:
        return dict(
            model=self._model,
            max_tokens=self._max_output_tokens,
            temperature=self._temperature,
            system=self._system_prompt,
            messages=messages,
        )

    @retry(**default_retry_kwargs(_RETRYABLE))
    async def _complete(self, messages: list[dict]) -> tuple[str, int]:
        logger.debug(f"API request: model={self._model}, max_tokens={self._max_output_tokens}, messages={len(messages)}")
        response = await self._client.messages.create(**self._request_kwargs(messages))
        usage = response.usage
        logger.debug(
            f"API response: stop_reason={response.stop_reason}, "
            f"input_tokens={usage.input_tokens}, output_tokens={usage.output_tokens}"
        )
        text = "".join(block.text for block in response.content if block.type == "text")
        return text, usage.input_tokens + usage.output_tokens

    @retry(**default_retry_kwargs(_RETRYABLE))
    async def _open_stream(self, messages: list[dict]):
        return await self._client.messages.create(**self._request_kwargs(messages), stream=True)

    async def _stream(self, messages: list[dict], totals: StreamTotals) -> AsyncGenerator[str, None]:
        logger.debug(f"Streaming API request: model={self._model}, messages={len(messages)}")
        stream = await self._open_stream(messages)
        try:
            async for event in stream:
                if event.type == "message_start":
                    totals.input_tokens = event.message.usage.input_tokens
                    totals.output_tokens = event.message.usage.output_tokens
                elif event.type == "content_block_delta":
                    if event.delta.type == "text_delta":
                        yield event.delta.text
                elif event.type == "message_delta":
                    # Output usage on message_delta is cumulative.
                    totals.output_tokens = event.usage.output_tokens
        finally:
            await stream.close()

        logger.debug(
            f"Streaming API response: input_tokens={totals.input_tokens}, output_tokens={totals.output_tokens}"
        )


class AnthropicCapability(ChatCapability):
    session_type = AnthropicSession
    api_key_env_var = "ANTHROPIC_API_KEY"

    def _create_client(self) -> anthropic.AsyncAnthropic:
        return anthropic.AsyncAnthropic(api_key=self._api_key)

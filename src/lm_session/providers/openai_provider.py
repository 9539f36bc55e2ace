from collections.abc import AsyncGenerator

import openai
from loguru import logger
from tenacity import retry

from lm_session.providers.common import ChatCapability, ChatSession, StreamTotals, default_retry_kwargs

_RETRYABLE = (
    openai.RateLimitError,
    openai.APIConnectionError,
    openai.APITimeoutError,
)


def _to_openai_messages(system_prompt: str, messages: list[dict]) -> list[dict]:
    """Prepend the system directive as an OpenAI system message."""
    out: list[dict] = []
    if system_prompt:
        out.append({"role": "system", "content": system_prompt})
    out.extend({"role": m["role"], "content": m["content"]} for m in messages)
    return out


class OpenAISession(ChatSession):
    def _request_kwargs(self, messages: list[dict]) -> dict:
        return dict(
            model=self._model,
            max_tokens=self._max_output_tokens,
            temperature=self._temperature,
            messages=_to_openai_messages(self._system_prompt, messages),
        )

    @retry(**default_retry_kwargs(_RETRYABLE))
    async def _complete(self, messages: list[dict]) -> tuple[str, int]:
        logger.debug(f"API request: model={self._model}, max_tokens={self._max_output_tokens}, messages={len(messages)}")
        response = await self._client.chat.completions.create(**self._request_kwargs(messages))
        text = response.choices[0].message.content or ""
        usage = response.usage
        context_tokens = usage.prompt_tokens + usage.completion_tokens if usage else 0
        logger.debug(f"API response: finish_reason={response.choices[0].finish_reason}, tokens={context_tokens}")
        return text, context_tokens

    @retry(**default_retry_kwargs(_RETRYABLE))
    async def _open_stream(self, messages: list[dict]):
        return await self._client.chat.completions.create(
            **self._request_kwargs(messages),
            stream=True,
            stream_options={"include_usage": True},
        )

    async def _stream(self, messages: list[dict], totals: StreamTotals) -> AsyncGenerator[str, None]:
        logger.debug(f"Streaming API request: model={self._model}, messages={len(messages)}")
        stream = await self._open_stream(messages)
        try:
            async for chunk in stream:
                # The usage chunk arrives last, with no choices.
                if chunk.usage:
                    totals.input_tokens = chunk.usage.prompt_tokens
                    totals.output_tokens = chunk.usage.completion_tokens
                choice = chunk.choices[0] if chunk.choices else None
                if choice is None or choice.delta is None:
                    continue
                if choice.delta.content:
                    yield choice.delta.content
        finally:
            await stream.close()

        logger.debug(
            f"Streaming API response: input_tokens={totals.input_tokens}, output_tokens={totals.output_tokens}"
        )


class OpenAICapability(ChatCapability):
    session_type = OpenAISession
    api_key_env_var = "OPENAI_API_KEY"

    def _create_client(self) -> openai.AsyncOpenAI:
        return openai.AsyncOpenAI(api_key=self._api_key)

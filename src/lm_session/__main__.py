import asyncio
import sys
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from loguru import logger

from lm_session.app_config import load_json_config, parse_app_config, resolve_runtime_env
from lm_session.bootstrap import AppRuntime, bootstrap_runtime
from lm_session.commands.router import CommandRouter
from lm_session.errors import LMSessionError

_ASSISTANT_PREFIX = "assistant> "

_HELP_LINES = [
    "Commands:",
    "  <text>                 stream a reply from the shared session",
    "  /send <text>           send and wait for the full reply",
    "  /batch a | b | c       send independent prompts in parallel",
    "  /analyze <text>        rate the sensitivity of a text (0-100)",
    "  /usage                 show token usage of the shared session",
    "  /help                  show this help",
    "  exit | quit            leave",
]


@asynccontextmanager
async def pending(label: str):
    """Tick a status line on the event loop until the awaited call returns."""
    width = len(_ASSISTANT_PREFIX) + len(label) + 3

    async def tick() -> None:
        dots = 0
        while True:
            print(f"\r{_ASSISTANT_PREFIX}{label}{'.' * (dots % 4):<3}", end="", flush=True)
            dots += 1
            await asyncio.sleep(0.25)

    ticker = asyncio.create_task(tick())
    try:
        yield
    finally:
        ticker.cancel()
        print("\r" + " " * width + "\r" + _ASSISTANT_PREFIX, end="", flush=True)


def build_router(runtime: AppRuntime) -> CommandRouter:
    async def on_help() -> None:
        for line in _HELP_LINES:
            print(line)

    async def on_send(text: str) -> None:
        async with pending("Thinking"):
            reply = await runtime.prompter.send(text)
        print(reply)

    async def on_batch(texts: list[str]) -> None:
        async with pending(f"Running {len(texts)} prompts"):
            replies = await runtime.batch_prompter.send_batch(texts)
        print()
        for index, (text, reply) in enumerate(zip(texts, replies)):
            print(f"[{index}] {text}")
            print(f"{reply}\n")

    async def on_analyze(text: str) -> None:
        async with pending("Analyzing"):
            analysis = await runtime.classifier.analyze(text)
        print(f"Sensitivity: {analysis.sensitivity_level}/100 ({analysis.band})")
        if analysis.explanation:
            print(analysis.explanation)

    async def on_usage() -> None:
        session = runtime.session_manager.session
        if session is None:
            print("No session yet.")
            return
        print(f"Token usage: {session.usage}")

    def on_unknown(command: str) -> None:
        print(f"Unknown or incomplete command: {command} (type /help)")

    return CommandRouter(
        on_help=on_help,
        on_send=on_send,
        on_batch=on_batch,
        on_analyze=on_analyze,
        on_usage=on_usage,
        on_unknown=on_unknown,
    )


async def stream_reply(runtime: AppRuntime, text: str) -> None:
    print(_ASSISTANT_PREFIX, end="", flush=True)
    async for fragment in runtime.streaming_prompter.send_streaming(text):
        print(fragment, end="", flush=True)
    print()


async def main() -> None:
    load_dotenv()

    app = parse_app_config(load_json_config())
    env = resolve_runtime_env(app.provider_name)
    if not env.provider_api_key:
        print(f"{env.provider_env_var} environment variable is required.", file=sys.stderr)
        sys.exit(1)

    runtime = bootstrap_runtime(app, env)
    router = build_router(runtime)

    print("lm-session (type 'exit' to quit, '/help' for commands)")
    print(f"Provider: {app.provider_name} ({app.model})")
    if runtime.log_descriptions:
        print(f"Logging: {', '.join(runtime.log_descriptions)}")
    print()

    while True:
        try:
            user_input = input("you> ")
        except (EOFError, KeyboardInterrupt):
            break

        trimmed = user_input.strip()
        if trimmed in ("exit", "quit"):
            break
        if not trimmed:
            continue

        try:
            if not await router.try_handle(trimmed):
                await stream_reply(runtime, trimmed)
            print()
        except LMSessionError as ex:
            print(f"\nError: {ex}")
        except Exception as ex:
            logger.error(f"Unhandled error: {ex}")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()

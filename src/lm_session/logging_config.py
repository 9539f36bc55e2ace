"""
Loguru sinks for the session layer.

``LogConsumers`` in config.json is a list of ``{"type": ..., "level": ...}``
entries. ``console`` writes to stderr, ``file`` to a rotating log file and
``callback`` hands each line to a host callable (the embedding UI's own
observability sink). Token usage lines are emitted at INFO.
"""

import sys
from typing import Any

from loguru import logger

_DEFAULT_LOG_FILE = "lm_session.log"

_DEFAULT_CONSUMERS = [
    {"type": "console"},
    {"type": "file"},
]


def _console(options: dict[str, Any]) -> tuple[Any, dict, str]:
    return (
        sys.stderr,
        {"format": "<level>{level:<8}</level> | <cyan>{name}</cyan> - <level>{message}</level>"},
        "console (stderr)",
    )


def _file(options: dict[str, Any]) -> tuple[Any, dict, str]:
    path = options.get("path", _DEFAULT_LOG_FILE)
    return (
        path,
        {
            "format": "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{line} - {message}",
            "rotation": options.get("rotation", "10 MB"),
            "retention": options.get("retention", 3),
        },
        f"file ({path})",
    )


def _callback(options: dict[str, Any]) -> tuple[Any, dict, str]:
    callback = options["callback"]
    return (
        lambda message: callback(str(message).rstrip("\n")),
        {"format": "{message}"},
        options.get("name", "callback"),
    )


_SINKS = {
    "console": _console,
    "file": _file,
    "callback": _callback,
}


def setup_logging(
    level: str = "INFO",
    consumers: list[dict[str, Any]] | None = None,
) -> list[str]:
    """Replace every loguru sink with the configured ones; return their descriptions."""
    logger.remove()

    descriptions: list[str] = []
    for options in consumers if consumers is not None else _DEFAULT_CONSUMERS:
        build = _SINKS.get(options.get("type", ""))
        if build is None:
            logger.warning(f"Unknown log consumer type: {options.get('type')!r}")
            continue

        sink, sink_kwargs, description = build(options)
        sink_level = options.get("level", level)
        logger.add(sink, level=sink_level, **sink_kwargs)
        descriptions.append(f"{description}, {sink_level}")

    return descriptions

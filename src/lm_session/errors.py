from __future__ import annotations


class LMSessionError(Exception):
    """Base class for failures surfaced by the session orchestration layer."""


class SessionCreationError(LMSessionError):
    """The model capability was unavailable or rejected session creation."""


class PromptError(LMSessionError):
    """A single prompt or stream operation failed."""


class BatchError(LMSessionError):
    """At least one request of a batch failed; the whole batch is discarded.

    ``failures`` holds ``(index, exception)`` pairs in input order.
    """

    def __init__(self, message: str, failures: list[tuple[int, BaseException]] | None = None):
        super().__init__(message)
        self.failures: list[tuple[int, BaseException]] = list(failures or [])

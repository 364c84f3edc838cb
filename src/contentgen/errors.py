"""Exception hierarchy for contentgen."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


class ContentGenError(Exception):
    """Base exception for all content generation errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(ContentGenError):
    """Configuration validation or resolution failed."""


class ProviderError(ContentGenError):
    """A provider call failed.

    Carries the HTTP status and raw body when the provider answered, plus
    retry metadata for callers that implement their own retry policy.
    """

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        status_code: int | None = None,
        body: str | None = None,
        retryable: bool | None = None,
        retry_after_s: float | None = None,
        provider: str | None = None,
        phase: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.status_code = status_code
        self.body = body
        self.retryable = retryable
        self.retry_after_s = retry_after_s
        self.provider = provider
        self.phase = phase


class RateLimitError(ProviderError):
    """Rate limit exceeded (HTTP 429)."""


class UnsupportedOperation(ContentGenError):
    """The adapter does not implement the requested operation."""

    def __init__(
        self,
        provider: str,
        operation: str,
        *,
        hint: str | None = None,
    ) -> None:
        super().__init__(
            f"{operation} is not supported by provider {provider!r}", hint=hint
        )
        self.provider = provider
        self.operation = operation


class StreamParseWarning(ContentGenError, Warning):
    """A single stream frame could not be parsed.

    Non-fatal: adapters log and discard the frame and keep reading.
    """

    def __init__(self, message: str, *, frame: str | None = None) -> None:
        super().__init__(message)
        self.frame = frame


def _walk_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield *exc* and its ``__cause__``/``__context__`` chain, with cycle protection."""
    seen: set[int] = set()
    stack: list[BaseException] = [exc]
    while stack:
        cur = stack.pop()
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur
        if cur.__cause__ is not None:
            stack.append(cur.__cause__)
        if cur.__context__ is not None:
            stack.append(cur.__context__)

"""Map SDK and transport exceptions onto ProviderError."""

from __future__ import annotations

import asyncio
import re
from typing import Any

import httpx

from contentgen._http import RETRYABLE_STATUS_CODES
from contentgen.errors import ProviderError, RateLimitError, _walk_exception_chain

_AUTH_ENV_VARS = {
    "gemini": "GEMINI_API_KEY",
    "vertex": "GOOGLE_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
    "kimi": "KIMI_API_KEY",
    "hunyuan": "HUNYUAN_API_KEY",
}


def _as_status(value: Any) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool) and 100 <= value <= 599:
        return value
    return None


def extract_status_code(exc: BaseException) -> int | None:
    """Walk the exception chain to find an HTTP status code."""
    for e in _walk_exception_chain(exc):
        # google-genai APIError exposes the status as ``code``
        for attr in ("status_code", "status", "code"):
            value = _as_status(getattr(e, attr, None))
            if value is not None:
                return value
        response = getattr(e, "response", None)
        value = _as_status(getattr(response, "status_code", None))
        if value is not None:
            return value
    return None


_PROTO_DURATION_RE = re.compile(r"^(\d+(?:\.\d+)?)s$")


def _extract_retry_info_seconds(exc: BaseException) -> float | None:
    """Extract a retry delay from Google-style ``RetryInfo`` error details.

    The SDK exposes the parsed body as ``.details``::

        {"error": {"details": [{"@type": "...RetryInfo", "retryDelay": "8s"}]}}
    """
    details: Any = getattr(exc, "details", None)
    if not isinstance(details, dict):
        return None
    error: Any = details.get("error")
    if not isinstance(error, dict):
        return None
    detail_list: Any = error.get("details")
    if not isinstance(detail_list, list):
        return None
    for entry in detail_list:
        if not isinstance(entry, dict):
            continue
        at_type = entry.get("@type", "")
        if not isinstance(at_type, str) or "RetryInfo" not in at_type:
            continue
        delay_raw = entry.get("retryDelay")
        if isinstance(delay_raw, str):
            m = _PROTO_DURATION_RE.match(delay_raw)
            if m:
                return float(m.group(1))
    return None


def parse_retry_after(raw: Any) -> float | None:
    """Parse a ``Retry-After`` header value given in seconds."""
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        seconds = float(raw)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def extract_retry_after_s(exc: BaseException) -> float | None:
    """Walk the exception chain to find a retry-after delay in seconds."""
    for e in _walk_exception_chain(exc):
        value = getattr(e, "retry_after", None)
        if isinstance(value, (int, float)) and value >= 0:
            return float(value)

        response = getattr(e, "response", None)
        headers: Any = getattr(response, "headers", None)
        if headers is not None and hasattr(headers, "get"):
            seconds = parse_retry_after(headers.get("Retry-After"))
            if seconds is not None:
                return seconds

        retry_info = _extract_retry_info_seconds(e)
        if retry_info is not None:
            return retry_info
    return None


def auth_hint(provider: str, status_code: int | None, cause_message: str) -> str | None:
    """Name the credential env var for auth failures."""
    cause_lower = cause_message.lower()
    if status_code in {401, 403} or (
        status_code == 400 and ("api key" in cause_lower or "api_key" in cause_lower)
    ):
        env_var = _AUTH_ENV_VARS.get(provider, "the provider API key")
        return f"Check credentials/permissions (try setting {env_var})."
    return None


def error_for_status(
    status_code: int,
    body: str,
    *,
    provider: str,
    phase: str,
    retry_after_s: float | None = None,
) -> ProviderError:
    """Build the error for a non-success HTTP response."""
    err_cls: type[ProviderError] = RateLimitError if status_code == 429 else ProviderError
    snippet = body[:500]
    return err_cls(
        f"{provider} {phase} failed (status={status_code}): {snippet}",
        hint=auth_hint(provider, status_code, body),
        status_code=status_code,
        body=body,
        retryable=status_code in RETRYABLE_STATUS_CODES or retry_after_s is not None,
        retry_after_s=retry_after_s,
        provider=provider,
        phase=phase,
    )


def wrap_provider_error(
    exc: BaseException,
    *,
    provider: str,
    phase: str,
    allow_network_errors: bool,
    message: str | None = None,
    hint: str | None = None,
) -> ProviderError:
    """Map provider SDK exceptions into ProviderError with stable retry metadata."""
    if isinstance(exc, asyncio.CancelledError):
        raise exc

    # Already wrapped: fill in missing context only.
    if isinstance(exc, ProviderError):
        if exc.provider is None:
            exc.provider = provider
        if exc.phase is None:
            exc.phase = phase
        if hint is not None and exc.hint is None:
            exc.hint = hint
        return exc

    status_code = extract_status_code(exc)
    retry_after_s = extract_retry_after_s(exc)

    retryable = retry_after_s is not None
    if status_code is not None and status_code in RETRYABLE_STATUS_CODES:
        retryable = True
    elif allow_network_errors:
        for e in _walk_exception_chain(exc):
            if isinstance(e, (httpx.TimeoutException, httpx.RequestError)):
                retryable = True
                break

    derived_hint = hint if hint is not None else auth_hint(provider, status_code, str(exc))
    msg = message or f"{provider} {phase} failed"
    err_cls: type[ProviderError] = RateLimitError if status_code == 429 else ProviderError

    status_note = f" (status={status_code})" if status_code is not None else ""
    cause = str(exc)
    return err_cls(
        f"{msg}{status_note}: {cause}" if cause else f"{msg}{status_note}",
        hint=derived_hint,
        status_code=status_code,
        retryable=retryable,
        retry_after_s=retry_after_s,
        provider=provider,
        phase=phase,
    )

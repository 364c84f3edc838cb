"""HTTP constants shared by the provider adapters."""

from __future__ import annotations

# Status codes a caller may reasonably retry.
RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({408, 409, 429, 500, 502, 503, 504})

DEFAULT_TIMEOUT_S: float = 120.0

SSE_DATA_PREFIX = "data:"
SSE_DONE_SENTINEL = "[DONE]"

"""Character-based token estimation.

The estimate is a deliberate approximation (roughly four characters per
token). It is used where a provider offers no counting endpoint and to fill
in usage a provider did not report.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from contentgen.providers.models import Text

if TYPE_CHECKING:
    from collections.abc import Iterable

    from contentgen.providers.models import GenerateRequest, Part

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str | None) -> int:
    """Return ``ceil(len(text) / 4)``; 0 for empty or non-string input."""
    if not isinstance(text, str) or not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def estimate_parts_tokens(parts: Iterable[Part]) -> int:
    """Estimate tokens for the text parts of a sequence; other parts count 0."""
    return estimate_tokens("".join(p.text for p in parts if isinstance(p, Text)))


def estimate_request_tokens(request: GenerateRequest) -> int:
    """Estimate prompt tokens for a request: system instruction plus every turn."""
    chunks: list[str] = []
    if request.system_instruction:
        chunks.append(request.system_instruction)
    for turn in request.turns:
        chunks.extend(p.text for p in turn.parts if isinstance(p, Text))
    return estimate_tokens("".join(chunks))

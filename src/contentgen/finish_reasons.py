"""Map provider finish/stop reasons onto the unified FinishReason."""

from __future__ import annotations

from typing import Any

from contentgen.providers.models import FinishReason

_FINISH_REASONS: dict[str, FinishReason] = {
    # OpenAI-compatible
    "stop": FinishReason.STOP,
    "tool_calls": FinishReason.STOP,
    "function_call": FinishReason.STOP,
    "length": FinishReason.MAX_TOKENS,
    "content_filter": FinishReason.SAFETY,
    "sensitive": FinishReason.SAFETY,
    # Gemini
    "finish_reason_unspecified": FinishReason.OTHER,
    "max_tokens": FinishReason.MAX_TOKENS,
    "max_output_tokens": FinishReason.MAX_TOKENS,
    "safety": FinishReason.SAFETY,
    "recitation": FinishReason.SAFETY,
    "blocklist": FinishReason.SAFETY,
    "prohibited_content": FinishReason.SAFETY,
    "spii": FinishReason.SAFETY,
    "image_safety": FinishReason.SAFETY,
    # Misc. vendors
    "end_turn": FinishReason.STOP,
    "eos": FinishReason.STOP,
}


def map_finish_reason(reason: Any) -> FinishReason:
    """Map a provider reason string (or SDK enum) to a FinishReason.

    Matching is case-insensitive. Anything unrecognized maps to OTHER;
    this function never raises.
    """
    if isinstance(reason, FinishReason):
        return reason
    if reason is None:
        return FinishReason.OTHER
    if not isinstance(reason, str):
        # SDK enums expose either .name or a string .value
        name = getattr(reason, "name", None)
        value = getattr(reason, "value", None)
        reason = name if isinstance(name, str) else value
        if not isinstance(reason, str):
            return FinishReason.OTHER
    return _FINISH_REASONS.get(reason.strip().lower(), FinishReason.OTHER)

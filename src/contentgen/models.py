"""Model names, context windows and the fallback routing policy."""

from __future__ import annotations

DEFAULT_GEMINI_MODEL = "gemini-2.5-pro"
DEFAULT_GEMINI_FLASH_MODEL = "gemini-2.5-flash"
DEFAULT_GEMINI_FLASH_LITE_MODEL = "gemini-2.5-flash-lite"
DEFAULT_GEMINI_MODEL_AUTO = "auto"
DEFAULT_GEMINI_EMBEDDING_MODEL = "gemini-embedding-001"

DEFAULT_HUNYUAN_MODEL = "hunyuan-pro"
DEFAULT_HUNYUAN_STANDARD_MODEL = "hunyuan-standard"
DEFAULT_HUNYUAN_LITE_MODEL = "hunyuan-lite"

QWEN3_NEXT_80B_INSTRUCT_MODEL = "qwen3-next-80b-a3b-instruct-maas"
QWEN3_NEXT_80B_THINKING_MODEL = "qwen3-next-80b-a3b-thinking-maas"

# Dynamic thinking budget for models that do not think by default.
DEFAULT_THINKING_MODE = -1

DEFAULT_FALLBACK_MODEL = DEFAULT_GEMINI_FLASH_MODEL

# Models whose name contains this marker are exempt from fallback downgrades.
LITE_MARKER = "lite"

# (family marker, fallback model) pairs, checked in order.
FAMILY_FALLBACKS: tuple[tuple[str, str], ...] = (
    ("hunyuan", DEFAULT_HUNYUAN_STANDARD_MODEL),
)


def resolve_model(requested_model: str, in_fallback_mode: bool) -> str:
    """Return the model that should actually serve a request.

    Outside fallback mode the requested model is used as-is. In fallback
    mode, lite-tier models are kept, models of a family with its own
    fallback are routed to that family's fallback, and everything else is
    routed to ``DEFAULT_FALLBACK_MODEL``.
    """
    if not in_fallback_mode:
        return requested_model
    if LITE_MARKER in requested_model:
        return requested_model
    for marker, fallback in FAMILY_FALLBACKS:
        if marker in requested_model:
            return fallback
    return DEFAULT_FALLBACK_MODEL


_THINKING_PREFIXES = ("gemini-2.5", "gemini-3")


def is_thinking_supported(model: str) -> bool:
    return model.startswith(_THINKING_PREFIXES)


def is_thinking_default(model: str) -> bool:
    """Whether the model thinks unless told otherwise."""
    return model.startswith(_THINKING_PREFIXES)


DEFAULT_TOKEN_LIMIT = 1_048_576

# Pure data: exact model name -> context window (tokens)
MODEL_TOKEN_LIMITS: dict[str, int] = {
    "gemini-1.5-pro": 2_097_152,
    "gemini-1.5-flash": 1_048_576,
    "gemini-2.5-pro-preview-05-06": 1_048_576,
    "gemini-2.5-pro-preview-06-05": 1_048_576,
    "gemini-2.5-pro": 1_048_576,
    "gemini-2.5-flash-preview-05-20": 1_048_576,
    "gemini-2.5-flash": 1_048_576,
    "gemini-2.5-flash-lite": 1_048_576,
    "gemini-2.0-flash": 1_048_576,
    "gemini-2.0-flash-preview-image-generation": 32_000,
    QWEN3_NEXT_80B_INSTRUCT_MODEL: 262_144,
    QWEN3_NEXT_80B_THINKING_MODEL: 262_144,
    "qwen3-coder": 1_000_000,
    "qwen3-235b": 262_144,
    "deepseek-chat": 65_536,
    "deepseek-reasoner": 65_536,
    "moonshot-v1-8k": 8_192,
    "moonshot-v1-32k": 32_768,
    "moonshot-v1-128k": 131_072,
}


def token_limit(model: str) -> int:
    """Context window for *model*; ``DEFAULT_TOKEN_LIMIT`` when unknown."""
    return MODEL_TOKEN_LIMITS.get(model, DEFAULT_TOKEN_LIMIT)

"""Provider adapters."""

from .base import ContentGenerator, ProviderCapabilities
from .gemini import GeminiGenerator
from .logging_generator import LoggingContentGenerator
from .mock import MockContentGenerator
from .openai_compat import OpenAICompatibleGenerator
from .profiles import DEEPSEEK, HUNYUAN, KIMI, ProviderProfile, get_profile

__all__ = [
    "DEEPSEEK",
    "HUNYUAN",
    "KIMI",
    "ContentGenerator",
    "GeminiGenerator",
    "LoggingContentGenerator",
    "MockContentGenerator",
    "OpenAICompatibleGenerator",
    "ProviderCapabilities",
    "ProviderProfile",
    "get_profile",
]

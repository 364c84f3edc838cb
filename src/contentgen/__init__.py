"""contentgen: one content generation contract over many model providers.

Public API:
    - create_content_generator(): Build the adapter for a configuration
    - create_content_generator_config(): Resolve a configuration from the environment
    - resolve_model(): Apply the fallback routing policy to a model name
    - types: Unified request/response types
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from contentgen.config import (
    AuthType,
    ContentGeneratorConfig,
    create_content_generator_config,
)
from contentgen.errors import (
    ConfigurationError,
    ContentGenError,
    ProviderError,
    RateLimitError,
    StreamParseWarning,
    UnsupportedOperation,
)
from contentgen.models import resolve_model
from contentgen.providers.logging_generator import LoggingContentGenerator

if TYPE_CHECKING:
    from contentgen.providers.base import ContentGenerator

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("contentgen")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("contentgen").addHandler(logging.NullHandler())

logger = logging.getLogger(__name__)

_OPENAI_COMPATIBLE = {
    AuthType.USE_DEEPSEEK: "deepseek",
    AuthType.USE_KIMI: "kimi",
    AuthType.USE_HUNYUAN: "hunyuan",
}


def create_content_generator(config: ContentGeneratorConfig) -> ContentGenerator:
    """Build the generator matching ``config.auth_type``.

    The result is wrapped in a :class:`LoggingContentGenerator`.

    Raises:
        ConfigurationError: No auth type is set or its credentials are missing.
    """
    return LoggingContentGenerator(_get_generator(config))


def _get_generator(config: ContentGeneratorConfig) -> ContentGenerator:
    if config.use_mock:
        from contentgen.providers.mock import MockContentGenerator

        return MockContentGenerator()

    auth_type = config.auth_type
    if auth_type is None:
        raise ConfigurationError(
            "No authentication method configured",
            hint="Pick an AuthType or set DEEPSEEK_API_KEY.",
        )

    if auth_type in (AuthType.USE_GEMINI, AuthType.USE_VERTEX_AI):
        from contentgen.providers.gemini import GeminiGenerator

        return GeminiGenerator(
            config.api_key,
            vertexai=auth_type is AuthType.USE_VERTEX_AI,
            project=config.project,
            location=config.location,
            base_url=config.base_url,
            proxy=config.proxy,
        )

    if auth_type in _OPENAI_COMPATIBLE:
        from contentgen.providers.openai_compat import OpenAICompatibleGenerator
        from contentgen.providers.profiles import get_profile

        logger.debug("Creating %s generator", _OPENAI_COMPATIBLE[auth_type])
        return OpenAICompatibleGenerator(
            get_profile(_OPENAI_COMPATIBLE[auth_type]),
            config.api_key,
            base_url=config.base_url,
            proxy=config.proxy,
            timeout_s=config.timeout_s,
        )

    raise ConfigurationError(
        f"Unsupported auth type: {auth_type!r}",
        hint=f"Choose one of: {', '.join(a.value for a in AuthType)}.",
    )


__all__ = [
    "AuthType",
    "ConfigurationError",
    "ContentGenError",
    "ContentGeneratorConfig",
    "LoggingContentGenerator",
    "ProviderError",
    "RateLimitError",
    "StreamParseWarning",
    "UnsupportedOperation",
    "create_content_generator",
    "create_content_generator_config",
    "resolve_model",
]

"""Configuration: resolve a frozen ContentGeneratorConfig from the environment.

This is the only place that reads environment variables. Adapters receive
every setting (keys, base URLs, proxy) explicitly through their constructors.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import os
from typing import TYPE_CHECKING

import dotenv

from contentgen._http import DEFAULT_TIMEOUT_S
from contentgen.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping


class AuthType(str, Enum):
    """How the caller authenticates, which also selects the provider."""

    USE_GEMINI = "gemini-api-key"
    USE_VERTEX_AI = "vertex-ai"
    USE_HUNYUAN = "hunyuan-api-key"
    USE_DEEPSEEK = "deepseek-api-key"
    USE_KIMI = "kimi-api-key"


# Provider-specific base URL override, consulted after GEMINI_API_BASE_URL
_BASE_URL_ENV_VARS: dict[AuthType, str] = {
    AuthType.USE_DEEPSEEK: "DEEPSEEK_BASE_URL",
    AuthType.USE_KIMI: "KIMI_API_BASE_URL",
    AuthType.USE_HUNYUAN: "HUNYUAN_BASE_URL",
}

_API_KEY_ENV_VARS: dict[AuthType, str] = {
    AuthType.USE_GEMINI: "GEMINI_API_KEY",
    AuthType.USE_VERTEX_AI: "GOOGLE_API_KEY",
    AuthType.USE_HUNYUAN: "HUNYUAN_API_KEY",
    AuthType.USE_DEEPSEEK: "DEEPSEEK_API_KEY",
    AuthType.USE_KIMI: "KIMI_API_KEY",
}


@dataclass(frozen=True)
class ContentGeneratorConfig:
    """Immutable settings for building one content generator.

    Example:
        config = create_content_generator_config(AuthType.USE_DEEPSEEK)
        generator = create_content_generator(config)
    """

    auth_type: AuthType | None = None
    api_key: str | None = None
    base_url: str | None = None
    vertexai: bool | None = None
    project: str | None = None
    location: str | None = None
    #: Proxy URL scoped to the generator's own HTTP client.
    proxy: str | None = None
    fallback_mode: bool = False
    timeout_s: float = DEFAULT_TIMEOUT_S
    use_mock: bool = False

    def __post_init__(self) -> None:
        if self.timeout_s <= 0:
            raise ConfigurationError(
                f"timeout_s must be > 0, got {self.timeout_s}",
                hint="This is the per-request HTTP timeout in seconds.",
            )

    @property
    def api_key_env(self) -> str | None:
        """Env var the API key is normally read from, for hints."""
        if self.auth_type is None:
            return None
        return _API_KEY_ENV_VARS[self.auth_type]

    def __str__(self) -> str:
        """Return a redacted, developer-friendly representation."""
        auth = self.auth_type.value if self.auth_type else None
        return (
            f"ContentGeneratorConfig(auth_type={auth!r}, "
            f"api_key={'[REDACTED]' if self.api_key else None}, "
            f"base_url={self.base_url!r}, vertexai={self.vertexai}, "
            f"proxy={'[SET]' if self.proxy else None}, "
            f"fallback_mode={self.fallback_mode}, use_mock={self.use_mock})"
        )

    __repr__ = __str__


def _get(env: Mapping[str, str], name: str) -> str | None:
    """Read an env value; empty strings count as unset."""
    return env.get(name) or None


def create_content_generator_config(
    auth_type: AuthType | str | None,
    *,
    proxy: str | None = None,
    fallback_mode: bool = False,
    env: Mapping[str, str] | None = None,
) -> ContentGeneratorConfig:
    """Resolve credentials and endpoints for *auth_type*.

    Args:
        auth_type: Selected authentication method. With None, a
            ``DEEPSEEK_API_KEY`` in the environment selects DeepSeek.
        proxy: Optional proxy URL for the generator's HTTP client.
        fallback_mode: Whether the model resolver should downgrade models.
        env: Variables to resolve from. Defaults to the process environment
            after loading any ``.env`` file.

    Returns:
        A config whose ``api_key`` is None when the matching variable is unset;
        the generator factory reports the missing key.
    """
    if env is None:
        dotenv.load_dotenv()
        env = os.environ
    if isinstance(auth_type, str) and not isinstance(auth_type, AuthType):
        try:
            auth_type = AuthType(auth_type)
        except ValueError:
            raise ConfigurationError(
                f"Unknown auth type: {auth_type!r}",
                hint=f"Choose one of: {', '.join(a.value for a in AuthType)}.",
            ) from None

    gemini_base_url = _get(env, "GEMINI_API_BASE_URL")
    common = {"proxy": proxy, "fallback_mode": fallback_mode}

    if auth_type is None:
        deepseek_key = _get(env, "DEEPSEEK_API_KEY")
        deepseek_base = gemini_base_url or _get(env, "DEEPSEEK_BASE_URL")
        if deepseek_key or deepseek_base:
            return ContentGeneratorConfig(
                auth_type=AuthType.USE_DEEPSEEK,
                api_key=deepseek_key,
                base_url=deepseek_base,
                vertexai=False,
                **common,
            )
        return ContentGeneratorConfig(**common)

    if auth_type is AuthType.USE_GEMINI:
        api_key = _get(env, "GEMINI_API_KEY")
        return ContentGeneratorConfig(
            auth_type=auth_type,
            api_key=api_key,
            base_url=gemini_base_url,
            vertexai=False if api_key else None,
            **common,
        )

    if auth_type is AuthType.USE_VERTEX_AI:
        google_key = _get(env, "GOOGLE_API_KEY")
        project = _get(env, "GOOGLE_CLOUD_PROJECT")
        location = _get(env, "GOOGLE_CLOUD_LOCATION")
        usable = bool(google_key or (project and location))
        return ContentGeneratorConfig(
            auth_type=auth_type,
            api_key=google_key,
            project=project,
            location=location,
            base_url=gemini_base_url,
            vertexai=True if usable else None,
            **common,
        )

    api_key = _get(env, _API_KEY_ENV_VARS[auth_type])
    base_url = gemini_base_url or _get(env, _BASE_URL_ENV_VARS[auth_type])
    return ContentGeneratorConfig(
        auth_type=auth_type,
        api_key=api_key,
        base_url=base_url,
        vertexai=False,
        **common,
    )

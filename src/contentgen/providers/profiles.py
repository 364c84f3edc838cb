"""Static descriptions of the supported OpenAI-compatible providers."""

from __future__ import annotations

from dataclasses import dataclass, field

from contentgen.errors import ConfigurationError
from contentgen.providers.base import ProviderCapabilities


@dataclass(frozen=True)
class ProviderProfile:
    """Everything that differs between OpenAI-compatible providers."""

    name: str
    base_url: str
    path: str
    capabilities: ProviderCapabilities
    api_key_env: str
    default_model: str
    model_aliases: dict[str, str] = field(default_factory=dict)
    require_alternation: bool = False
    # Accepts stream_options.include_usage and reports usage in a trailing chunk.
    stream_usage: bool = False

    def resolve_model_alias(self, model: str) -> str:
        """Map a friendly alias to the provider model id.

        Unknown names pass through; an empty name selects ``default_model``.
        """
        if not model:
            return self.default_model
        return self.model_aliases.get(model.lower(), model)


DEEPSEEK = ProviderProfile(
    name="deepseek",
    base_url="https://api.deepseek.com",
    path="/v1/chat/completions",
    capabilities=ProviderCapabilities(tool_calling=True),
    api_key_env="DEEPSEEK_API_KEY",
    default_model="deepseek-chat",
    stream_usage=True,
    model_aliases={
        "deepseek-v3": "deepseek-chat",
        "deepseek-r1": "deepseek-reasoner",
    },
)

KIMI = ProviderProfile(
    name="kimi",
    base_url="https://api.moonshot.cn/v1",
    path="/chat/completions",
    capabilities=ProviderCapabilities(tool_calling=False),
    api_key_env="KIMI_API_KEY",
    default_model="moonshot-v1-8k",
    model_aliases={
        "kimi-1": "moonshot-v1-8k",
        "kimi-pro": "moonshot-v1-8k",
        "kimi-2": "moonshot-v1-32k",
        "kimi-plus": "moonshot-v1-32k",
        "kimi-3": "moonshot-v1-128k",
        "kimi-max": "moonshot-v1-128k",
    },
)

HUNYUAN = ProviderProfile(
    name="hunyuan",
    base_url="https://api.hunyuan.cloud.tencent.com/v1",
    path="/chat/completions",
    capabilities=ProviderCapabilities(tool_calling=False),
    api_key_env="HUNYUAN_API_KEY",
    default_model="hunyuan-pro",
    require_alternation=True,
)

PROFILES: dict[str, ProviderProfile] = {p.name: p for p in (DEEPSEEK, KIMI, HUNYUAN)}


def get_profile(name: str) -> ProviderProfile:
    try:
        return PROFILES[name.lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown provider: {name!r}",
            hint=f"Choose one of: {', '.join(sorted(PROFILES))}.",
        ) from None

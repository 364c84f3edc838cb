"""Configuration resolution from environment mappings."""

from __future__ import annotations

import pytest

from contentgen.config import (
    AuthType,
    ContentGeneratorConfig,
    create_content_generator_config,
)
from contentgen.errors import ConfigurationError

pytestmark = pytest.mark.unit


class TestGemini:
    def test_api_key_from_env(self):
        config = create_content_generator_config(
            AuthType.USE_GEMINI, env={"GEMINI_API_KEY": "g-key"}
        )
        assert config.api_key == "g-key"
        assert config.vertexai is False
        assert config.auth_type is AuthType.USE_GEMINI

    def test_empty_key_counts_as_unset(self):
        config = create_content_generator_config(
            AuthType.USE_GEMINI, env={"GEMINI_API_KEY": ""}
        )
        assert config.api_key is None
        assert config.vertexai is None


class TestVertex:
    def test_google_api_key(self):
        config = create_content_generator_config(
            AuthType.USE_VERTEX_AI, env={"GOOGLE_API_KEY": "v-key"}
        )
        assert config.api_key == "v-key"
        assert config.vertexai is True

    def test_project_and_location(self):
        config = create_content_generator_config(
            AuthType.USE_VERTEX_AI,
            env={"GOOGLE_CLOUD_PROJECT": "proj", "GOOGLE_CLOUD_LOCATION": "us-central1"},
        )
        assert config.vertexai is True
        assert config.project == "proj"
        assert config.location == "us-central1"
        assert config.api_key is None

    def test_project_alone_is_not_enough(self):
        config = create_content_generator_config(
            AuthType.USE_VERTEX_AI, env={"GOOGLE_CLOUD_PROJECT": "proj"}
        )
        assert config.vertexai is None


class TestOpenAICompatible:
    @pytest.mark.parametrize(
        ("auth_type", "key_var", "url_var"),
        [
            (AuthType.USE_DEEPSEEK, "DEEPSEEK_API_KEY", "DEEPSEEK_BASE_URL"),
            (AuthType.USE_KIMI, "KIMI_API_KEY", "KIMI_API_BASE_URL"),
            (AuthType.USE_HUNYUAN, "HUNYUAN_API_KEY", "HUNYUAN_BASE_URL"),
        ],
    )
    def test_key_and_base_url(self, auth_type, key_var, url_var):
        config = create_content_generator_config(
            auth_type, env={key_var: "k", url_var: "https://alt.example"}
        )
        assert config.api_key == "k"
        assert config.base_url == "https://alt.example"
        assert config.vertexai is False

    def test_gemini_base_url_takes_precedence(self):
        config = create_content_generator_config(
            AuthType.USE_DEEPSEEK,
            env={
                "DEEPSEEK_API_KEY": "k",
                "DEEPSEEK_BASE_URL": "https://deepseek.example",
                "GEMINI_API_BASE_URL": "https://gateway.example",
            },
        )
        assert config.base_url == "https://gateway.example"


class TestNoAuthType:
    def test_deepseek_key_selects_deepseek(self):
        config = create_content_generator_config(
            None,
            env={"DEEPSEEK_API_KEY": "d-key", "DEEPSEEK_BASE_URL": "https://d.example"},
        )
        assert config.auth_type is AuthType.USE_DEEPSEEK
        assert config.api_key == "d-key"
        assert config.base_url == "https://d.example"
        assert config.vertexai is False

    def test_nothing_configured(self):
        config = create_content_generator_config(None, env={})
        assert config.auth_type is None
        assert config.api_key is None


def test_auth_type_accepts_string_values():
    config = create_content_generator_config("kimi-api-key", env={"KIMI_API_KEY": "k"})
    assert config.auth_type is AuthType.USE_KIMI


def test_unknown_auth_type_string():
    with pytest.raises(ConfigurationError) as exc:
        create_content_generator_config("carrier-pigeon", env={})
    assert "gemini-api-key" in (exc.value.hint or "")


def test_proxy_and_fallback_are_carried():
    config = create_content_generator_config(
        AuthType.USE_KIMI,
        proxy="http://proxy.local:8080",
        fallback_mode=True,
        env={"KIMI_API_KEY": "k"},
    )
    assert config.proxy == "http://proxy.local:8080"
    assert config.fallback_mode is True


def test_process_environment_is_default(monkeypatch):
    monkeypatch.setenv("HUNYUAN_API_KEY", "from-env")
    config = create_content_generator_config(AuthType.USE_HUNYUAN)
    assert config.api_key == "from-env"


def test_repr_redacts_secrets():
    config = ContentGeneratorConfig(
        auth_type=AuthType.USE_DEEPSEEK, api_key="sk-secret", proxy="http://u:p@proxy"
    )
    text = repr(config)
    assert "sk-secret" not in text
    assert "u:p" not in text
    assert "[REDACTED]" in text


def test_timeout_must_be_positive():
    with pytest.raises(ConfigurationError):
        ContentGeneratorConfig(timeout_s=0)

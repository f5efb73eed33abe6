"""Tests for domain-specific configuration."""

import pytest
from pydantic import SecretStr, ValidationError

from localchat.core.config import Settings
from localchat.core.settings import AppConfig, LLMConfig, RedisConfig, ServerConfig


class TestLLMConfig:
    """LLMConfig frozen immutability and derived value tests."""

    def _config(self, base_url: str = "http://localhost:1234/v1") -> LLMConfig:
        return LLMConfig(
            base_url=base_url,
            api_key=SecretStr("lm-studio"),
            temperature=0.7,
            connect_timeout_seconds=10,
            idle_timeout_seconds=120,
            title_max_length=60,
        )

    def test_frozen_immutability(self) -> None:
        config = self._config()
        with pytest.raises(ValidationError):
            config.temperature = 1.0  # type: ignore[misc]

    def test_completions_url_without_trailing_slash(self) -> None:
        assert self._config().completions_url == (
            "http://localhost:1234/v1/chat/completions"
        )

    def test_completions_url_with_trailing_slash(self) -> None:
        config = self._config("http://gpu-box:8080/v1/")
        assert config.completions_url == "http://gpu-box:8080/v1/chat/completions"

    def test_timeout(self) -> None:
        timeout = self._config().timeout
        assert timeout.connect == 10
        assert timeout.read == 120


class TestAppConfig:
    """AppConfig frozen immutability and property tests."""

    def test_frozen_immutability(self) -> None:
        config = AppConfig(name="test", env="development", debug=True)
        with pytest.raises(ValidationError):
            config.name = "changed"  # type: ignore[misc]

    def test_development_allows_any_origin(self) -> None:
        config = AppConfig(name="app", env="development", debug=True)
        assert config.is_development is True
        assert config.cors_origins == ["*"]

    def test_production_allows_no_origin(self) -> None:
        config = AppConfig(name="app", env="production", debug=False)
        assert config.is_development is False
        assert config.cors_origins == []


class TestServerConfig:
    """ServerConfig frozen immutability tests."""

    def test_frozen_immutability(self) -> None:
        config = ServerConfig(host="127.0.0.1", port=8004)
        with pytest.raises(ValidationError):
            config.port = 9000  # type: ignore[misc]


class TestRedisConfig:
    """RedisConfig validation tests."""

    def test_rejects_non_redis_scheme(self) -> None:
        with pytest.raises(ValidationError):
            RedisConfig(url="http://localhost:6379/0")

    def test_accepts_tls_scheme(self) -> None:
        config = RedisConfig(url="rediss://cache:6380/1")
        assert config.url == "rediss://cache:6380/1"


class TestSettingsDomainProperties:
    """Settings domain property access tests."""

    def test_llm_property(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LLM_BASE_URL", "http://gpu-box:8080/v1")
        monkeypatch.setenv("LLM_API_KEY", "secret")
        monkeypatch.setenv("STREAM_IDLE_TIMEOUT_SECONDS", "30")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.llm.base_url == "http://gpu-box:8080/v1"
        assert s.llm.api_key.get_secret_value() == "secret"
        assert s.llm.timeout.read == 30

    def test_app_property(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APP_NAME", "my-chat")
        monkeypatch.setenv("APP_ENV", "production")
        monkeypatch.setenv("DEBUG", "false")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.app.name == "my-chat"
        assert s.app.debug is False
        assert s.is_development is False

    def test_server_property(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOST", "0.0.0.0")
        monkeypatch.setenv("PORT", "9000")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.server.host == "0.0.0.0"
        assert s.server.port == 9000

    def test_redis_property(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REDIS_URL", "redis://cache:6379/2")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.redis.url == "redis://cache:6379/2"

    def test_rejects_out_of_range_values(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LLM_TEMPERATURE", "3.5")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)  # type: ignore[call-arg]

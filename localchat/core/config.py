"""Application settings for the chat server, loaded from the environment."""

from functools import cached_property
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from localchat.core.settings import (
    AppConfig,
    LLMConfig,
    RedisConfig,
    ServerConfig,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Flat fields are loaded directly from environment variables.
    Domain properties provide grouped access (e.g. settings.llm.base_url).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Local model server
    llm_base_url: str = Field(
        default="http://localhost:1234/v1",
        description="Base URL of the OpenAI-compatible model server",
    )
    llm_api_key: SecretStr = Field(
        default=SecretStr("lm-studio"),
        description="API key sent to the model server (ignored by most local servers)",
    )
    llm_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for chat completions",
    )
    llm_connect_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for establishing a connection to the model server",
    )
    stream_idle_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Maximum silence between two stream chunks before failing",
    )
    title_max_length: int = Field(
        default=60,
        ge=10,
        le=200,
        description="Maximum length of a generated session title",
    )

    # App
    app_name: str = Field(
        default="localchat",
        description="Application name",
    )
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    debug: bool = Field(
        default=True,
        description="Debug mode",
    )

    # Server
    host: str = Field(
        default="127.0.0.1",
        description="Server host",
    )
    port: int = Field(
        default=8004,
        ge=1,
        le=65535,
        description="Server port",
    )

    # Redis
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )

    # --- Domain properties ---

    @cached_property
    def llm(self) -> LLMConfig:
        """Model server configuration."""
        return LLMConfig(
            base_url=self.llm_base_url,
            api_key=self.llm_api_key,
            temperature=self.llm_temperature,
            connect_timeout_seconds=self.llm_connect_timeout_seconds,
            idle_timeout_seconds=self.stream_idle_timeout_seconds,
            title_max_length=self.title_max_length,
        )

    @cached_property
    def app(self) -> AppConfig:
        """Application environment configuration."""
        return AppConfig(
            name=self.app_name,
            env=self.app_env,
            debug=self.debug,
        )

    @cached_property
    def server(self) -> ServerConfig:
        """Server configuration."""
        return ServerConfig(
            host=self.host,
            port=self.port,
        )

    @cached_property
    def redis(self) -> RedisConfig:
        """Redis connection configuration."""
        return RedisConfig(url=self.redis_url)

    # --- Convenience properties (delegate to domain configs) ---

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app.is_development


# Global settings instance
settings = Settings()

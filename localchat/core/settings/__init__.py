"""Domain-specific configuration models."""

from localchat.core.settings.app_config import AppConfig
from localchat.core.settings.llm_config import LLMConfig
from localchat.core.settings.redis_config import RedisConfig
from localchat.core.settings.server_config import ServerConfig

__all__ = [
    "AppConfig",
    "LLMConfig",
    "RedisConfig",
    "ServerConfig",
]

"""Local model server configuration."""

import httpx
from pydantic import BaseModel, SecretStr


class LLMConfig(BaseModel, frozen=True):
    """OpenAI-compatible model server settings."""

    base_url: str
    api_key: SecretStr
    temperature: float
    connect_timeout_seconds: float
    idle_timeout_seconds: float
    title_max_length: int

    @property
    def completions_url(self) -> str:
        """Absolute URL of the streaming chat-completion endpoint."""
        return f"{self.base_url.rstrip('/')}/chat/completions"

    @property
    def timeout(self) -> httpx.Timeout:
        """Transport timeouts; the read timeout doubles as the stream idle timeout."""
        return httpx.Timeout(
            connect=self.connect_timeout_seconds,
            read=self.idle_timeout_seconds,
            write=self.connect_timeout_seconds,
            pool=self.connect_timeout_seconds,
        )

"""HTTP server configuration."""

from pydantic import BaseModel


class ServerConfig(BaseModel, frozen=True):
    """Bind address for the UI-facing HTTP server."""

    host: str
    port: int


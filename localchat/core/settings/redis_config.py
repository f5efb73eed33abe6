"""Session store connection configuration."""

from pydantic import BaseModel, field_validator

_SCHEMES = ("redis://", "rediss://", "unix://")


class RedisConfig(BaseModel, frozen=True):
    """Where session transcripts, the session index and preferences live."""

    url: str

    @field_validator("url")
    @classmethod
    def _check_scheme(cls, value: str) -> str:
        if not value.startswith(_SCHEMES):
            raise ValueError(f"Redis URL must start with one of {', '.join(_SCHEMES)}")
        return value

"""Session list and preference API schemas."""

from pydantic import BaseModel, ConfigDict, Field

from localchat.schemas.chat_schema import ChatMetadata, Message


class SessionListResponse(BaseModel):
    """All sessions, most recently active first."""

    model_config = ConfigDict(frozen=True)

    sessions: list[ChatMetadata]


class SessionMessagesResponse(BaseModel):
    """Stored transcript of one session."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    messages: list[Message]
    is_generating: bool = False


class UpdateTitleRequest(BaseModel):
    """Request to rename a session."""

    title: str = Field(..., min_length=1, max_length=60)


class DefaultModelRequest(BaseModel):
    """Request to set or clear the default model."""

    model: str = Field(default="", max_length=200)


class DefaultModelResponse(BaseModel):
    model: str

"""Chat message, session and streaming schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

NEW_CHAT_TITLE = "New Chat"


class Message(BaseModel):
    """Individual chat message as persisted in a session transcript."""

    id: str
    role: Literal["user", "assistant"]
    content: str


class ChatMetadata(BaseModel):
    """Sidebar entry for a chat session."""

    id: str
    title: str = NEW_CHAT_TITLE
    date: int = Field(..., description="Epoch milliseconds of the last activity")


class StreamDelta(BaseModel):
    """One decoded fragment of streamed model output."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["reasoning", "content"]
    text: str


class ParsedReasoning(BaseModel):
    """Raw assistant text split into its thinking and answer parts."""

    model_config = ConfigDict(frozen=True)

    reasoning_content: str
    main_content: str


class ReasoningBlock(BaseModel):
    """Structured form of an assistant message while or after it streams."""

    model_config = ConfigDict(frozen=True)

    reasoning: str | None = None
    answer: str = ""
    reasoning_open: bool = False


class CompletionMessage(BaseModel):
    """Message shape sent to the chat-completion endpoint."""

    role: Literal["user", "assistant", "system"]
    content: str


class CompletionRequest(BaseModel):
    """Body of a streaming chat-completion request."""

    model: str
    messages: list[CompletionMessage]
    stream: bool = True
    temperature: float = 0.7


class ChatRequest(BaseModel):
    """Submission of a user message to a session."""

    message: str = Field(..., max_length=32000)
    model: str = ""


class ViewSnapshot(BaseModel):
    """State of the foreground session as rendered by the UI."""

    model_config = ConfigDict(frozen=True)

    session_id: str | None
    messages: list[Message]
    is_loading: bool
    is_thinking: bool
    draft: str = ""


class SwitchViewRequest(BaseModel):
    """Request to show another session in the foreground."""

    session_id: str = Field(..., min_length=1)


class SubmissionResponse(BaseModel):
    """Ids allocated for an accepted submission."""

    session_id: str
    user_message_id: str
    assistant_message_id: str


class StopResponse(BaseModel):
    session_id: str | None
    stopped: bool


class NewSessionResponse(BaseModel):
    session_id: str
    default_model: str


class DraftRequest(BaseModel):
    text: str = Field(default="", max_length=32000)

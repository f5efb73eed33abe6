"""Service for generating chat session titles via the local model."""

import re
from collections.abc import Sequence

import structlog

from localchat.schemas.chat_schema import NEW_CHAT_TITLE, CompletionMessage, Message
from localchat.services.completion_client import CompletionClient

logger = structlog.get_logger()

TITLE_PROMPT_TEMPLATE = (
    "Generate a concise 5-word title for a chat. "
    'The user\'s first message was: "{message}".\n\n'
    "Rules:\n"
    "- Exactly 5 words or fewer\n"
    "- Capture the main topic/intent\n"
    "- Be descriptive but brief\n"
    "- Only respond with the title, nothing else\n\n"
    "Title:"
)

_TITLE_ECHO = re.compile(r"^title:\s*", re.IGNORECASE)


def clean_title(raw: str, max_length: int = 60) -> str:
    """Strip a "Title:" echo and cap the length; blank input gives the sentinel."""
    title = _TITLE_ECHO.sub("", raw.strip()).strip()
    return title[:max_length] or NEW_CHAT_TITLE


class TitleService:
    """Generates short session titles from the first user message."""

    def __init__(self, client: CompletionClient, max_length: int = 60) -> None:
        self._client = client
        self._max_length = max_length

    async def generate_title(self, messages: Sequence[Message], model_id: str) -> str:
        """Summarise the conversation opener into a title.

        Never raises: any failure falls back to the sentinel title.
        """
        first_user = next((m for m in messages if m.role == "user"), None)
        if first_user is None:
            return NEW_CHAT_TITLE

        prompt = CompletionMessage(
            role="user",
            content=TITLE_PROMPT_TEMPLATE.format(message=first_user.content),
        )
        try:
            parts: list[str] = []
            async for delta in self._client.stream_completion([prompt], model_id):
                if delta.kind == "content":
                    parts.append(delta.text)
        except Exception:
            logger.exception("Failed to generate session title", model=model_id)
            return NEW_CHAT_TITLE
        return clean_title("".join(parts), self._max_length)

"""Foreground view state shared with the UI."""

import asyncio
from collections.abc import AsyncIterator, Sequence

from localchat.schemas.chat_schema import Message, ViewSnapshot
from localchat.services.reasoning_parser import is_thinking, parse_reasoning

SUBSCRIBER_QUEUE_SIZE = 64


class ChatView:
    """The session the user is looking at, and its live message list.

    The UI layer owns foreground identity and changes it with ``show``.
    Every mutator takes the session id it is meant for and is ignored
    unless that session is the one being shown, so background work can
    never leak into the visible state.
    """

    def __init__(self) -> None:
        self._session_id: str | None = None
        self._messages: list[Message] = []
        self._is_loading = False
        self._draft = ""
        self._subscribers: set[asyncio.Queue[ViewSnapshot]] = set()

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def draft(self) -> str:
        return self._draft

    def is_showing(self, session_id: str) -> bool:
        return self._session_id == session_id

    def show(
        self, session_id: str, messages: Sequence[Message], *, loading: bool = False
    ) -> None:
        """Bring a session to the foreground with the given messages."""
        self._session_id = session_id
        self._messages = list(messages)
        self._is_loading = loading
        self._draft = ""
        self._publish()

    def append_message(self, session_id: str, message: Message) -> bool:
        if not self.is_showing(session_id):
            return False
        self._messages.append(message)
        self._publish()
        return True

    def upsert_message(self, session_id: str, message: Message) -> bool:
        """Replace the message with the same id, or append it."""
        if not self.is_showing(session_id):
            return False
        for i, existing in enumerate(self._messages):
            if existing.id == message.id:
                self._messages[i] = message
                break
        else:
            self._messages.append(message)
        self._publish()
        return True

    def set_loading(self, session_id: str, loading: bool) -> bool:
        if not self.is_showing(session_id):
            return False
        if self._is_loading != loading:
            self._is_loading = loading
            self._publish()
        return True

    def set_draft(self, text: str) -> None:
        self._draft = text

    def clear_draft(self) -> None:
        self._draft = ""

    def snapshot(self) -> ViewSnapshot:
        thinking = False
        if self._messages and self._messages[-1].role == "assistant":
            parsed = parse_reasoning(self._messages[-1].content)
            thinking = is_thinking(parsed, finalized=not self._is_loading)
        return ViewSnapshot(
            session_id=self._session_id,
            messages=list(self._messages),
            is_loading=self._is_loading,
            is_thinking=thinking,
            draft=self._draft,
        )

    # --- Subscriptions ---

    def subscribe(self) -> asyncio.Queue[ViewSnapshot]:
        queue: asyncio.Queue[ViewSnapshot] = asyncio.Queue(
            maxsize=SUBSCRIBER_QUEUE_SIZE
        )
        queue.put_nowait(self.snapshot())
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[ViewSnapshot]) -> None:
        self._subscribers.discard(queue)

    async def events(self) -> AsyncIterator[ViewSnapshot]:
        """Current snapshot followed by one per change, until cancelled."""
        queue = self.subscribe()
        try:
            while True:
                yield await queue.get()
        finally:
            self.unsubscribe(queue)

    def _publish(self) -> None:
        snapshot = self.snapshot()
        for queue in self._subscribers:
            # Slow consumers only need the latest state.
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(snapshot)

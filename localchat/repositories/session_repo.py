"""Session repository for transcript and metadata persistence in Redis."""

import asyncio
import time
from collections.abc import Awaitable, Callable, Sequence

import redis.asyncio as redis
import structlog
from pydantic import TypeAdapter, ValidationError

from localchat.schemas.chat_schema import NEW_CHAT_TITLE, ChatMetadata, Message

logger = structlog.get_logger()

SESSION_PREFIX = "session:"
SESSION_INDEX_KEY = "sessions:index"
DEFAULT_MODEL_KEY = "preferences:default_model"

_messages_adapter = TypeAdapter(list[Message])
_index_adapter = TypeAdapter(list[ChatMetadata])

TitleGenerator = Callable[[Sequence[Message], str], Awaitable[str]]


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def session_key(session_id: str) -> str:
    return f"{SESSION_PREFIX}{session_id}"


class SessionRepository:
    """Encapsulates the session key space: one transcript key per session
    plus a shared, date-sorted metadata index.

    Reads fail soft: corrupt or missing values come back as empty data.
    Index updates are read-modify-write on the whole value and are
    serialized with a lock so concurrent generations never drop each
    other's entries.
    """

    def __init__(
        self,
        redis_client: redis.Redis,  # type: ignore[type-arg]
        title_generator: TitleGenerator | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._redis = redis_client
        self._title_generator = title_generator
        self._clock = clock
        self._index_lock = asyncio.Lock()
        self._titles_in_flight: set[str] = set()

    # --- Transcripts ---

    async def load_transcript(self, session_id: str) -> list[Message]:
        """Load a session's messages; corrupt data yields an empty list."""
        raw = await self._redis.get(session_key(session_id))
        if raw is None:
            return []
        try:
            return _messages_adapter.validate_json(raw)
        except ValidationError:
            logger.warning("Discarding corrupt transcript", session_id=session_id)
            return []

    async def save_transcript(
        self, session_id: str, messages: Sequence[Message]
    ) -> None:
        """Overwrite a session's transcript."""
        await self._redis.set(
            session_key(session_id),
            _messages_adapter.dump_json(list(messages)),
        )

    async def has_transcript(self, session_id: str) -> bool:
        return bool(await self._redis.exists(session_key(session_id)))

    # --- Metadata index ---

    async def list_sessions(self) -> list[ChatMetadata]:
        """All session metadata, most recently active first."""
        sessions = await self._read_index()
        return sorted(sessions, key=lambda meta: meta.date, reverse=True)

    async def get_metadata(self, session_id: str) -> ChatMetadata | None:
        for meta in await self._read_index():
            if meta.id == session_id:
                return meta
        return None

    async def upsert_metadata(
        self,
        session_id: str,
        messages: Sequence[Message],
        *,
        should_update_date: bool,
        model_id: str = "",
        title: str | None = None,
    ) -> list[ChatMetadata]:
        """Create or update the index entry for a session.

        ``should_update_date`` is set when a generation has just finished;
        only then may the sentinel title be replaced by a generated one, and
        only if the transcript holds at least one full exchange. While one
        title request for a session is pending, overlapping updates of the
        same session skip generation and keep the current title.
        """
        if not messages:
            return await self.list_sessions()

        existing = await self.get_metadata(session_id)
        current_title = existing.title if existing else NEW_CHAT_TITLE
        generated: str | None = None
        if (
            title is None
            and current_title == NEW_CHAT_TITLE
            and len(messages) >= 2
            and should_update_date
            and self._title_generator is not None
            and session_id not in self._titles_in_flight
        ):
            self._titles_in_flight.add(session_id)
            try:
                generated = await self._title_generator(messages, model_id)
            finally:
                self._titles_in_flight.discard(session_id)
            logger.info(
                "Session title generated", session_id=session_id, title=generated
            )

        async with self._index_lock:
            sessions = await self._read_index()
            position = next(
                (i for i, meta in enumerate(sessions) if meta.id == session_id), None
            )
            if position is None:
                entry = ChatMetadata(
                    id=session_id,
                    title=title or generated or NEW_CHAT_TITLE,
                    date=self._clock(),
                )
                sessions.insert(0, entry)
            else:
                previous = sessions[position]
                new_title = previous.title
                if title is not None:
                    new_title = title
                # A rename may have landed while the title was being generated.
                elif generated and previous.title == NEW_CHAT_TITLE:
                    new_title = generated
                sessions[position] = ChatMetadata(
                    id=session_id,
                    title=new_title,
                    date=self._clock() if should_update_date else previous.date,
                )
            sessions.sort(key=lambda meta: meta.date, reverse=True)
            await self._write_index(sessions)
        return sessions

    async def save_history(
        self,
        session_id: str,
        messages: Sequence[Message],
        *,
        should_update_date: bool,
        model_id: str = "",
    ) -> list[ChatMetadata]:
        """Persist a transcript, then refresh its index entry."""
        if not messages:
            return await self.list_sessions()
        await self.save_transcript(session_id, messages)
        return await self.upsert_metadata(
            session_id,
            messages,
            should_update_date=should_update_date,
            model_id=model_id,
        )

    async def rename_session(self, session_id: str, title: str) -> ChatMetadata | None:
        """Set a user-chosen title. Returns None for unknown sessions."""
        async with self._index_lock:
            sessions = await self._read_index()
            for i, meta in enumerate(sessions):
                if meta.id == session_id:
                    sessions[i] = meta.model_copy(update={"title": title})
                    await self._write_index(sessions)
                    return sessions[i]
        return None

    async def delete_session(self, session_id: str) -> None:
        """Remove a session's transcript and index entry."""
        async with self._index_lock:
            sessions = [m for m in await self._read_index() if m.id != session_id]
            await self._redis.delete(session_key(session_id))
            await self._write_index(sessions)

    async def delete_all_sessions(self) -> int:
        """Remove every indexed session; returns how many were deleted."""
        async with self._index_lock:
            sessions = await self._read_index()
            keys = {session_key(meta.id) for meta in sessions}
            # Transcripts saved in the background may not be indexed yet.
            async for key in self._redis.scan_iter(match=f"{SESSION_PREFIX}*"):
                keys.add(key)
            if keys:
                await self._redis.delete(*keys)
            await self._write_index([])
        return len(sessions)

    # --- Preferences ---

    async def get_default_model(self) -> str:
        return await self._redis.get(DEFAULT_MODEL_KEY) or ""

    async def set_default_model(self, model_id: str) -> None:
        """Remember the default model; an empty id clears it."""
        if model_id:
            await self._redis.set(DEFAULT_MODEL_KEY, model_id)
        else:
            await self._redis.delete(DEFAULT_MODEL_KEY)

    # --- Internals ---

    async def _read_index(self) -> list[ChatMetadata]:
        raw = await self._redis.get(SESSION_INDEX_KEY)
        if raw is None:
            return []
        try:
            return _index_adapter.validate_json(raw)
        except ValidationError:
            logger.warning("Discarding corrupt session index")
            return []

    async def _write_index(self, sessions: list[ChatMetadata]) -> None:
        await self._redis.set(SESSION_INDEX_KEY, _index_adapter.dump_json(sessions))


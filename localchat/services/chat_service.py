"""Entry point for user actions on chat sessions."""

import structlog

from localchat.core.exceptions import (
    EmptyMessageError,
    GenerationInProgressError,
    ModelNotSelectedError,
    SessionNotFoundError,
)
from localchat.repositories.session_repo import SessionRepository, now_ms
from localchat.schemas.chat_schema import ChatMetadata, Message
from localchat.services.chat_view import ChatView
from localchat.services.generation_manager import GenerationManager, GenerationTask

logger = structlog.get_logger()


class ChatService:
    """Orchestrates submissions and session navigation.

    Wires the view, the generation manager and the session repository
    together; it holds no session state of its own.
    """

    def __init__(
        self,
        manager: GenerationManager,
        repository: SessionRepository,
        view: ChatView,
    ) -> None:
        self._manager = manager
        self._repository = repository
        self._view = view

    async def submit(
        self, session_id: str, user_text: str, model_id: str
    ) -> GenerationTask:
        """Send a user message to a session and start the reply.

        ``session_id`` is bound here, before any await, so a concurrent
        switch of the foreground session cannot redirect the submission.

        Raises:
            ModelNotSelectedError: no model id was given.
            EmptyMessageError: the message is blank.
            GenerationInProgressError: the session is still generating.
        """
        if not model_id:
            raise ModelNotSelectedError()
        text = user_text.strip()
        if not text:
            raise EmptyMessageError()
        if self._manager.is_generating(session_id):
            raise GenerationInProgressError(session_id)

        if self._view.is_showing(session_id):
            self._view.clear_draft()
            history = self._view.messages
        else:
            history = await self._repository.load_transcript(session_id)
        return self._manager.submit(session_id, history, text, model_id)

    async def resolve_model(self, model_id: str) -> str:
        """The requested model, or the saved default when none was picked."""
        return model_id or await self._repository.get_default_model()

    def stop(self, session_id: str | None = None) -> bool:
        """Stop a session's generation; defaults to the foreground session."""
        target = session_id if session_id is not None else self._view.session_id
        if target is None:
            return False
        return self._manager.stop(target)

    async def open_session(self, session_id: str) -> list[Message]:
        """Show a session, preferring the live state of a running generation."""
        live = self._manager.snapshot(session_id)
        if live is not None:
            self._view.show(session_id, live, loading=True)
            return live
        messages = await self._repository.load_transcript(session_id)
        self._view.show(session_id, messages)
        return messages

    async def new_session(self) -> tuple[str, str]:
        """Show a fresh, empty session; returns its id and the default model."""
        session_id = str(now_ms())
        self._view.show(session_id, [])
        return session_id, await self._repository.get_default_model()

    def is_generating(self, session_id: str) -> bool:
        return self._manager.is_generating(session_id)

    async def list_sessions(self) -> list[ChatMetadata]:
        return await self._repository.list_sessions()

    async def get_messages(self, session_id: str) -> list[Message]:
        """Transcript of a session, live if it is still generating."""
        live = self._manager.snapshot(session_id)
        if live is not None:
            return live
        if not await self._repository.has_transcript(session_id):
            raise SessionNotFoundError()
        return await self._repository.load_transcript(session_id)

    async def rename_session(self, session_id: str, title: str) -> ChatMetadata:
        meta = await self._repository.rename_session(session_id, title)
        if meta is None:
            raise SessionNotFoundError()
        return meta

    async def delete_session(self, session_id: str) -> None:
        """Delete a session, stopping its generation first."""
        # A finished task may still be writing metadata; let it land first.
        self._manager.stop(session_id)
        await self._manager.wait(session_id)
        await self._repository.delete_session(session_id)
        logger.info("Session deleted", session_id=session_id)
        if self._view.is_showing(session_id):
            await self.new_session()

    async def delete_all_sessions(self) -> int:
        for session_id in self._manager.registered_sessions:
            self._manager.stop(session_id)
            await self._manager.wait(session_id)
        deleted = await self._repository.delete_all_sessions()
        logger.info("All sessions deleted", count=deleted)
        await self.new_session()
        return deleted

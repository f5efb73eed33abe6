"""Registry and runner for per-session streaming generations."""

import asyncio
from collections.abc import AsyncIterator, Callable, Sequence
from dataclasses import dataclass, field
from typing import Protocol

import structlog

from localchat.core.exceptions import GenerationInProgressError
from localchat.repositories.session_repo import SessionRepository, now_ms
from localchat.schemas.chat_schema import Message, StreamDelta
from localchat.services.chat_view import ChatView
from localchat.services.generation_state import (
    GenerationState,
    GenerationStatus,
    abort,
    apply_delta,
    complete,
    fail,
    render_display,
)

logger = structlog.get_logger()


class CompletionStreamer(Protocol):
    def stream_completion(
        self, messages: Sequence[Message], model: str
    ) -> AsyncIterator[StreamDelta]: ...


class MessageIdFactory:
    """Epoch-millisecond ids, bumped so that no two ids repeat."""

    def __init__(self, clock: Callable[[], int] = now_ms) -> None:
        self._clock = clock
        self._last = 0

    def __call__(self) -> str:
        self._last = max(self._clock(), self._last + 1)
        return str(self._last)


@dataclass
class GenerationTask:
    """One in-flight generation, owned by the manager."""

    session_id: str
    model_id: str
    history: list[Message]
    user_message: Message
    assistant_message_id: str
    state: GenerationState = field(default_factory=GenerationState)
    stop_requested: bool = False
    started: bool = False
    runner: asyncio.Task[None] | None = None

    @property
    def assistant_message(self) -> Message:
        return Message(
            id=self.assistant_message_id,
            role="assistant",
            content=render_display(self.state),
        )

    @property
    def request_messages(self) -> list[Message]:
        return [*self.history, self.user_message]

    @property
    def transcript(self) -> list[Message]:
        return [*self.history, self.user_message, self.assistant_message]


class GenerationManager:
    """Runs at most one generation per session id.

    Output is routed per delta: to the view while the session is in the
    foreground, straight to storage while it is not. Every exit path
    (completion, stop, failure) ends in the same finalize step, which
    persists the transcript and refreshes the session metadata.
    """

    def __init__(
        self,
        client: CompletionStreamer,
        repository: SessionRepository,
        view: ChatView,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._client = client
        self._repository = repository
        self._view = view
        self._next_id = id_factory or MessageIdFactory()
        self._tasks: dict[str, GenerationTask] = {}

    # --- Queries ---

    def get(self, session_id: str) -> GenerationTask | None:
        return self._tasks.get(session_id)

    def is_generating(self, session_id: str) -> bool:
        task = self._tasks.get(session_id)
        return task is not None and not task.state.is_final

    def snapshot(self, session_id: str) -> list[Message] | None:
        """Live transcript of a session that is still generating."""
        if not self.is_generating(session_id):
            return None
        return self._tasks[session_id].transcript

    @property
    def active_sessions(self) -> list[str]:
        return [sid for sid in self._tasks if self.is_generating(sid)]

    @property
    def registered_sessions(self) -> list[str]:
        """Sessions with a task that has not been finalized yet.

        Includes tasks whose stream already ended but whose transcript and
        metadata are still being written.
        """
        return list(self._tasks)

    # --- Commands ---

    def submit(
        self,
        session_id: str,
        history: Sequence[Message],
        user_text: str,
        model_id: str,
    ) -> GenerationTask:
        """Start generating a reply to ``user_text`` in ``session_id``.

        Must be called from a running event loop. The user message is shown
        immediately when the session is in the foreground.

        Raises:
            GenerationInProgressError: the session already has a running task.
        """
        if self.is_generating(session_id):
            raise GenerationInProgressError(session_id)

        user_message = Message(id=self._next_id(), role="user", content=user_text)
        task = GenerationTask(
            session_id=session_id,
            model_id=model_id,
            history=list(history),
            user_message=user_message,
            assistant_message_id=self._next_id(),
        )
        self._tasks[session_id] = task

        if self._view.append_message(session_id, user_message):
            self._view.set_loading(session_id, True)

        task.runner = asyncio.create_task(
            self._run(task), name=f"generation:{session_id}"
        )
        logger.info(
            "Generation started",
            session_id=session_id,
            model=model_id,
            history_length=len(task.history),
        )
        return task

    def stop(self, session_id: str) -> bool:
        """Abort the running generation of a session, if any."""
        task = self._tasks.get(session_id)
        if task is None or task.state.is_final or task.runner is None:
            return False
        task.stop_requested = True
        # A runner that has not started yet notices the flag on its first step.
        if task.started:
            task.runner.cancel()
        logger.info("Generation stop requested", session_id=session_id)
        return True

    async def wait(self, session_id: str) -> None:
        """Wait until the session's task has been finalized."""
        task = self._tasks.get(session_id)
        if task is not None and task.runner is not None:
            await task.runner

    async def shutdown(self) -> None:
        """Stop every running generation and wait for them to be persisted."""
        runners = [t.runner for t in self._tasks.values() if t.runner is not None]
        for session_id in list(self._tasks):
            self.stop(session_id)
        if runners:
            await asyncio.gather(*runners, return_exceptions=True)

    # --- Runner ---

    async def _run(self, task: GenerationTask) -> None:
        task.started = True
        try:
            if task.stop_requested:
                raise asyncio.CancelledError
            if not self._view.is_showing(task.session_id):
                await self._repository.save_transcript(
                    task.session_id, task.request_messages
                )
            async for delta in self._client.stream_completion(
                task.request_messages, task.model_id
            ):
                task.state = apply_delta(task.state, delta)
                await self._publish(task)
            task.state = complete(task.state)
        except asyncio.CancelledError:
            if not task.stop_requested:
                task.state = abort(task.state)
                await self._finalize(task)
                raise
            current = asyncio.current_task()
            if current is not None:
                current.uncancel()
            task.state = abort(task.state)
        except Exception as exc:
            logger.warning(
                "Generation failed",
                session_id=task.session_id,
                error=str(exc) or type(exc).__name__,
            )
            task.state = fail(task.state, str(exc) or type(exc).__name__)
        await self._finalize(task)

    async def _publish(self, task: GenerationTask) -> None:
        # Foreground identity is re-checked on every delta.
        if not self._view.upsert_message(task.session_id, task.assistant_message):
            await self._repository.save_transcript(task.session_id, task.transcript)

    async def _finalize(self, task: GenerationTask) -> None:
        status = task.state.status
        transcript = task.transcript
        try:
            self._view.upsert_message(task.session_id, task.assistant_message)
            await self._repository.save_transcript(task.session_id, transcript)
            logger.info(
                "Generation finished",
                session_id=task.session_id,
                status=str(status),
                reasoning_chars=len(task.state.reasoning),
                content_chars=len(task.state.content),
            )
            await self._repository.upsert_metadata(
                task.session_id,
                transcript,
                should_update_date=status is not GenerationStatus.ABORTED,
                model_id=task.model_id,
            )
        except Exception:
            logger.exception(
                "Failed to persist finished generation", session_id=task.session_id
            )
        finally:
            self._view.set_loading(task.session_id, False)
            if self._tasks.get(task.session_id) is task:
                del self._tasks[task.session_id]

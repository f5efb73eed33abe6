"""Pytest configuration and fixtures."""

import asyncio
from collections.abc import AsyncGenerator, AsyncIterator, Callable, Sequence
from unittest.mock import AsyncMock

import fakeredis.aioredis
import pytest
from httpx import ASGITransport, AsyncClient

from localchat.dependencies import ChatRuntime
from localchat.repositories.session_repo import SessionRepository
from localchat.schemas.chat_schema import Message, StreamDelta
from localchat.services.chat_service import ChatService
from localchat.services.chat_view import ChatView
from localchat.services.generation_manager import GenerationManager

# --- Scripted completion streams ---

Step = StreamDelta | BaseException | asyncio.Event | float


def reasoning(text: str) -> StreamDelta:
    return StreamDelta(kind="reasoning", text=text)


def content(text: str) -> StreamDelta:
    return StreamDelta(kind="content", text=text)


class FakeCompletionClient:
    """Replays a scripted stream chosen by the last user message.

    A script step is a delta to yield, an exception to raise, an event to
    wait on, or a number of seconds to sleep.
    """

    def __init__(self, scripts: dict[str, list[Step]] | None = None) -> None:
        self.scripts: dict[str, list[Step]] = scripts or {}
        self.calls: list[tuple[list[Message], str]] = []

    async def stream_completion(
        self, messages: Sequence[Message], model: str
    ) -> AsyncIterator[StreamDelta]:
        self.calls.append((list(messages), model))
        for step in self.scripts.get(messages[-1].content, []):
            if isinstance(step, BaseException):
                raise step
            if isinstance(step, asyncio.Event):
                await step.wait()
            elif isinstance(step, (int, float)):
                await asyncio.sleep(step)
            else:
                yield step


class FakeClock:
    """Settable epoch-millisecond clock."""

    def __init__(self, now: int = 1_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


async def wait_until(predicate: Callable[[], bool], attempts: int = 200) -> None:
    """Yield to the event loop until ``predicate`` holds."""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


# --- Test Redis (fakeredis) ---


@pytest.fixture
def fake_redis() -> fakeredis.aioredis.FakeRedis:
    """Create a fresh fake Redis client."""
    return fakeredis.aioredis.FakeRedis(decode_responses=True)


# --- Core components ---


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def title_generator() -> AsyncMock:
    """Title generator that always proposes the same title."""
    return AsyncMock(return_value="Simple Math Question")


@pytest.fixture
def repository(
    fake_redis: fakeredis.aioredis.FakeRedis,
    title_generator: AsyncMock,
    clock: FakeClock,
) -> SessionRepository:
    return SessionRepository(fake_redis, title_generator=title_generator, clock=clock)


@pytest.fixture
def view() -> ChatView:
    return ChatView()


@pytest.fixture
def completion_client() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def manager(
    completion_client: FakeCompletionClient,
    repository: SessionRepository,
    view: ChatView,
) -> GenerationManager:
    return GenerationManager(completion_client, repository, view)


@pytest.fixture
def chat_service(
    manager: GenerationManager,
    repository: SessionRepository,
    view: ChatView,
) -> ChatService:
    return ChatService(manager, repository, view)


# --- HTTP client ---


@pytest.fixture
def runtime(
    view: ChatView,
    repository: SessionRepository,
    manager: GenerationManager,
    chat_service: ChatService,
) -> ChatRuntime:
    return ChatRuntime(
        view=view,
        repository=repository,
        manager=manager,
        chat_service=chat_service,
    )


@pytest.fixture
async def async_client(runtime: ChatRuntime) -> AsyncGenerator[AsyncClient, None]:
    """Async test client bound to an in-memory runtime.

    ASGITransport does not run the lifespan, so the runtime is installed on
    the application state directly.
    """
    from localchat.main import app

    app.state.runtime = runtime
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await runtime.manager.shutdown()
    del app.state.runtime

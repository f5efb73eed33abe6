"""Global dependencies for the application."""

from dataclasses import dataclass

import redis.asyncio as redis
from fastapi import Depends, Request

from localchat.repositories.session_repo import SessionRepository
from localchat.services.chat_service import ChatService
from localchat.services.chat_view import ChatView
from localchat.services.completion_client import CompletionClient
from localchat.services.generation_manager import GenerationManager
from localchat.services.title_service import TitleService


@dataclass
class ChatRuntime:
    """Process-wide objects shared by every request."""

    view: ChatView
    repository: SessionRepository
    manager: GenerationManager
    chat_service: ChatService


def build_runtime(
    redis_client: redis.Redis,  # type: ignore[type-arg]
    completion_client: CompletionClient,
    title_max_length: int = 60,
) -> ChatRuntime:
    """Wire the view, repository, manager and service together."""
    title_service = TitleService(completion_client, max_length=title_max_length)
    repository = SessionRepository(
        redis_client, title_generator=title_service.generate_title
    )
    view = ChatView()
    manager = GenerationManager(completion_client, repository, view)
    return ChatRuntime(
        view=view,
        repository=repository,
        manager=manager,
        chat_service=ChatService(manager, repository, view),
    )


def get_runtime(request: Request) -> ChatRuntime:
    """Get the runtime created during application startup."""
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        raise RuntimeError("Chat runtime not initialized")
    return runtime


def get_chat_service(runtime: ChatRuntime = Depends(get_runtime)) -> ChatService:
    return runtime.chat_service


def get_chat_view(runtime: ChatRuntime = Depends(get_runtime)) -> ChatView:
    return runtime.view


def get_session_repository(
    runtime: ChatRuntime = Depends(get_runtime),
) -> SessionRepository:
    return runtime.repository

"""Chat API router: submissions, stop, and the foreground view."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import StreamingResponse

from localchat.dependencies import get_chat_service, get_chat_view
from localchat.schemas.chat_schema import (
    ChatRequest,
    DraftRequest,
    NewSessionResponse,
    StopResponse,
    SubmissionResponse,
    SwitchViewRequest,
    ViewSnapshot,
)
from localchat.schemas.response_schema import (
    ERROR_RESPONSES,
    ApiResponse,
    accepted_response,
    success_response,
)
from localchat.services.chat_service import ChatService
from localchat.services.chat_view import ChatView

router = APIRouter(prefix="/api/v1/chat", tags=["chat"])

ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]
ChatViewDep = Annotated[ChatView, Depends(get_chat_view)]


@router.post(
    "/sessions/{session_id}/messages",
    response_model=ApiResponse[SubmissionResponse],
    status_code=status.HTTP_202_ACCEPTED,
    responses=ERROR_RESPONSES,
)
async def submit_message(
    session_id: str,
    request: ChatRequest,
    service: ChatServiceDep,
) -> dict:
    """Send a message; the reply streams through the view events."""
    model = await service.resolve_model(request.model)
    task = await service.submit(session_id, request.message, model)
    return accepted_response(
        SubmissionResponse(
            session_id=task.session_id,
            user_message_id=task.user_message.id,
            assistant_message_id=task.assistant_message_id,
        )
    )


@router.post("/sessions/{session_id}/stop", response_model=ApiResponse[StopResponse])
async def stop_session(session_id: str, service: ChatServiceDep) -> dict:
    """Stop the generation running in a session."""
    stopped = service.stop(session_id)
    return success_response(StopResponse(session_id=session_id, stopped=stopped))


@router.post("/stop", response_model=ApiResponse[StopResponse])
async def stop_foreground(service: ChatServiceDep, view: ChatViewDep) -> dict:
    """Stop the generation of whichever session is being viewed."""
    stopped = service.stop()
    return success_response(StopResponse(session_id=view.session_id, stopped=stopped))


@router.get("/view", response_model=ApiResponse[ViewSnapshot])
async def get_view(view: ChatViewDep) -> dict:
    return success_response(view.snapshot())


@router.put("/view", response_model=ApiResponse[ViewSnapshot])
async def switch_view(
    request: SwitchViewRequest,
    service: ChatServiceDep,
    view: ChatViewDep,
) -> dict:
    """Bring another session to the foreground."""
    await service.open_session(request.session_id)
    return success_response(view.snapshot())


@router.post("/view/new", response_model=ApiResponse[NewSessionResponse])
async def new_session(service: ChatServiceDep) -> dict:
    session_id, default_model = await service.new_session()
    return success_response(
        NewSessionResponse(session_id=session_id, default_model=default_model)
    )


@router.put("/view/draft", response_model=ApiResponse[None])
async def save_draft(request: DraftRequest, view: ChatViewDep) -> dict:
    view.set_draft(request.text)
    return success_response(None, message="Draft saved")


async def event_generator(view: ChatView) -> AsyncGenerator[str, None]:
    """Generate Server-Sent Events from view snapshots."""
    async for snapshot in view.events():
        yield f"data: {snapshot.model_dump_json()}\n\n"


@router.get("/view/events")
async def view_events(view: ChatViewDep) -> StreamingResponse:
    """Stream foreground snapshots as Server-Sent Events."""
    return StreamingResponse(
        event_generator(view),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )

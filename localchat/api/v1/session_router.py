"""Session list API router."""

from typing import Annotated

from fastapi import APIRouter, Depends

from localchat.dependencies import get_chat_service
from localchat.schemas.chat_schema import ChatMetadata
from localchat.schemas.response_schema import (
    ERROR_RESPONSES,
    ApiResponse,
    success_response,
)
from localchat.schemas.session_schema import (
    SessionListResponse,
    SessionMessagesResponse,
    UpdateTitleRequest,
)
from localchat.services.chat_service import ChatService

router = APIRouter(prefix="/api/v1/sessions", tags=["sessions"])

ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]


@router.get("", response_model=ApiResponse[SessionListResponse])
async def list_sessions(service: ChatServiceDep) -> dict:
    """List sessions, most recently active first."""
    sessions = await service.list_sessions()
    return success_response(SessionListResponse(sessions=sessions))


@router.get(
    "/{session_id}/messages",
    response_model=ApiResponse[SessionMessagesResponse],
    responses=ERROR_RESPONSES,
)
async def get_session_messages(session_id: str, service: ChatServiceDep) -> dict:
    messages = await service.get_messages(session_id)
    return success_response(
        SessionMessagesResponse(
            session_id=session_id,
            messages=messages,
            is_generating=service.is_generating(session_id),
        )
    )


@router.patch(
    "/{session_id}/title",
    response_model=ApiResponse[ChatMetadata],
    responses=ERROR_RESPONSES,
)
async def update_session_title(
    session_id: str,
    request: UpdateTitleRequest,
    service: ChatServiceDep,
) -> dict:
    """Rename a session."""
    meta = await service.rename_session(session_id, request.title)
    return success_response(meta, message="Title updated")


@router.delete("/{session_id}", response_model=ApiResponse[None])
async def delete_session(session_id: str, service: ChatServiceDep) -> dict:
    """Delete a session, stopping any generation it is running."""
    await service.delete_session(session_id)
    return success_response(None, message="Session deleted")


@router.delete("", response_model=ApiResponse[dict])
async def delete_all_sessions(service: ChatServiceDep) -> dict:
    deleted = await service.delete_all_sessions()
    return success_response({"deleted": deleted}, message="Sessions deleted")

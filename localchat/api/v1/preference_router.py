"""User preference API router."""

from typing import Annotated

from fastapi import APIRouter, Depends

from localchat.dependencies import get_session_repository
from localchat.repositories.session_repo import SessionRepository
from localchat.schemas.response_schema import ApiResponse, success_response
from localchat.schemas.session_schema import DefaultModelRequest, DefaultModelResponse

router = APIRouter(prefix="/api/v1/preferences", tags=["preferences"])

RepositoryDep = Annotated[SessionRepository, Depends(get_session_repository)]


@router.get("/default-model", response_model=ApiResponse[DefaultModelResponse])
async def get_default_model(repository: RepositoryDep) -> dict:
    model = await repository.get_default_model()
    return success_response(DefaultModelResponse(model=model))


@router.put("/default-model", response_model=ApiResponse[DefaultModelResponse])
async def set_default_model(
    request: DefaultModelRequest, repository: RepositoryDep
) -> dict:
    """Set the model preselected for new sessions; empty clears it."""
    await repository.set_default_model(request.model)
    return success_response(DefaultModelResponse(model=request.model))

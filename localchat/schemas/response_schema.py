"""Unified API response envelopes."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ErrorResponse(BaseModel):
    """Error body rendered by the exception handlers."""

    status: int
    message: str
    code: str


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope: status, message and payload."""

    status: int = 200
    message: str = "Success"
    data: T | None = None


ERROR_RESPONSES: dict[int | str, dict] = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


def success_response(data: T, status: int = 200, message: str = "Success") -> dict:
    """Build a success envelope for returning from endpoints."""
    return {"status": status, "message": message, "data": data}


def accepted_response(data: T, message: str = "Accepted") -> dict:
    """Envelope for work that continues after the response is sent."""
    return success_response(data, status=202, message=message)

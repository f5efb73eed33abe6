"""Application exception classes and handlers."""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, code: str, status_code: int = 400) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)


# --- Bad Request (400) ---


class ModelNotSelectedError(AppException):
    """No model was selected for the submission."""

    def __init__(self) -> None:
        super().__init__(
            message="A model must be selected before sending a message",
            code="MODEL_NOT_SELECTED",
            status_code=400,
        )


class EmptyMessageError(AppException):
    """The submitted message is blank."""

    def __init__(self) -> None:
        super().__init__(
            message="Message must not be empty",
            code="EMPTY_MESSAGE",
            status_code=400,
        )


# --- Not Found (404) ---


class SessionNotFoundError(AppException):
    """Chat session not found."""

    def __init__(self) -> None:
        super().__init__(
            message="Chat session not found",
            code="SESSION_NOT_FOUND",
            status_code=404,
        )


# --- Conflict (409) ---


class GenerationInProgressError(AppException):
    """A generation is already running for this session."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(
            message=f"A response is still being generated for session {session_id}",
            code="GENERATION_IN_PROGRESS",
            status_code=409,
        )


# --- Upstream (502) ---


class UpstreamError(AppException):
    """The model server answered with a non-2xx status."""

    def __init__(self, upstream_status: int, reason: str = "") -> None:
        self.upstream_status = upstream_status
        detail = f": {reason}" if reason else ""
        super().__init__(
            message=f"Model server error {upstream_status}{detail}",
            code="UPSTREAM_ERROR",
            status_code=502,
        )


# --- Exception Handlers ---


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Central exception handler for AppException."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "status": exc.status_code,
            "message": exc.message,
            "code": exc.code,
        },
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request validation failures in the unified error shape."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    detail = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=422,
        content={
            "status": 422,
            "message": f"{location}: {detail}" if location else detail,
            "code": "VALIDATION_ERROR",
        },
    )

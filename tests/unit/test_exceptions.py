"""Tests for custom exception classes and handlers."""

import json

import pytest

from localchat.core.exceptions import (
    AppException,
    EmptyMessageError,
    GenerationInProgressError,
    ModelNotSelectedError,
    SessionNotFoundError,
    UpstreamError,
    app_exception_handler,
)


class TestExceptions:
    """Verify exception status codes and messages."""

    def test_app_exception_defaults(self) -> None:
        exc = AppException(message="err", code="ERR")
        assert exc.status_code == 400
        assert exc.code == "ERR"
        assert str(exc) == "err"

    def test_model_not_selected(self) -> None:
        exc = ModelNotSelectedError()
        assert exc.status_code == 400
        assert exc.code == "MODEL_NOT_SELECTED"

    def test_empty_message(self) -> None:
        exc = EmptyMessageError()
        assert exc.status_code == 400
        assert exc.code == "EMPTY_MESSAGE"

    def test_session_not_found(self) -> None:
        exc = SessionNotFoundError()
        assert exc.status_code == 404

    def test_generation_in_progress(self) -> None:
        exc = GenerationInProgressError("A")
        assert exc.status_code == 409
        assert exc.session_id == "A"
        assert "A" in exc.message

    def test_upstream_error(self) -> None:
        exc = UpstreamError(503, "Service Unavailable")
        assert exc.status_code == 502
        assert exc.upstream_status == 503
        assert exc.message == "Model server error 503: Service Unavailable"

    def test_upstream_error_without_reason(self) -> None:
        assert UpstreamError(500).message == "Model server error 500"


class TestAppExceptionHandler:
    """Verify the unified error body."""

    @pytest.mark.asyncio
    async def test_renders_error_body(self) -> None:
        response = await app_exception_handler(
            None,  # type: ignore[arg-type]
            SessionNotFoundError(),
        )

        assert response.status_code == 404
        assert json.loads(response.body) == {
            "status": 404,
            "message": "Chat session not found",
            "code": "SESSION_NOT_FOUND",
        }

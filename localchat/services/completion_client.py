"""Streaming client for the local chat-completion endpoint."""

from collections.abc import AsyncIterator, Sequence

import httpx
import structlog

from localchat.core.exceptions import UpstreamError
from localchat.core.settings import LLMConfig
from localchat.schemas.chat_schema import (
    CompletionMessage,
    CompletionRequest,
    Message,
    StreamDelta,
)
from localchat.services.stream_decoder import decode_stream

logger = structlog.get_logger()


class CompletionClient:
    """Issues streaming chat completions against an OpenAI-compatible server."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        config: LLMConfig,
    ) -> None:
        self._http = http_client
        self._config = config

    @classmethod
    def from_config(cls, config: LLMConfig) -> "CompletionClient":
        """Build a client with its own connection pool and timeouts."""
        http_client = httpx.AsyncClient(
            timeout=config.timeout,
            headers={
                "Authorization": f"Bearer {config.api_key.get_secret_value()}",
            },
        )
        return cls(http_client, config)

    async def aclose(self) -> None:
        await self._http.aclose()

    def build_request(
        self, messages: Sequence[Message | CompletionMessage], model: str
    ) -> CompletionRequest:
        return CompletionRequest(
            model=model,
            messages=[
                CompletionMessage(role=m.role, content=m.content) for m in messages
            ],
            temperature=self._config.temperature,
        )

    async def stream_completion(
        self, messages: Sequence[Message | CompletionMessage], model: str
    ) -> AsyncIterator[StreamDelta]:
        """Yield decoded deltas for one completion.

        Raises:
            UpstreamError: the server answered with a non-2xx status.
            httpx.HTTPError: the connection failed or went idle for longer
                than the configured read timeout.
        """
        body = self.build_request(messages, model)
        async with self._http.stream(
            "POST",
            self._config.completions_url,
            json=body.model_dump(),
        ) as response:
            if response.is_error:
                await response.aread()
                logger.warning(
                    "Model server rejected completion",
                    model=model,
                    status_code=response.status_code,
                )
                raise UpstreamError(response.status_code, response.reason_phrase)
            async for delta in decode_stream(response.aiter_bytes()):
                yield delta

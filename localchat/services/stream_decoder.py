"""Decoder for OpenAI-style server-sent chat-completion streams."""

import codecs
import json
from collections.abc import AsyncIterable, AsyncIterator, Iterator
from typing import Any

from localchat.schemas.chat_schema import StreamDelta

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


def parse_frame(line: str) -> Iterator[StreamDelta]:
    """Yield the deltas carried by one stream line.

    Anything that is not a ``data: <json>`` frame with a ``choices[0].delta``
    object yields nothing.
    """
    line = line.strip()
    if not line.startswith(DATA_PREFIX):
        return
    payload = line[len(DATA_PREFIX):].strip()
    if not payload or payload == DONE_SENTINEL:
        return
    try:
        frame: Any = json.loads(payload)
    except json.JSONDecodeError:
        return
    if not isinstance(frame, dict):
        return

    choices = frame.get("choices")
    if not isinstance(choices, list) or not choices:
        return
    first = choices[0]
    delta = first.get("delta") if isinstance(first, dict) else None
    if not isinstance(delta, dict):
        return

    reasoning = delta.get("reasoning_content")
    if isinstance(reasoning, str) and reasoning:
        yield StreamDelta(kind="reasoning", text=reasoning)
    content = delta.get("content")
    if isinstance(content, str) and content:
        yield StreamDelta(kind="content", text=content)


async def decode_stream(chunks: AsyncIterable[bytes]) -> AsyncIterator[StreamDelta]:
    """Turn raw response bytes into a lazy sequence of deltas.

    Lines are buffered across reads, so a frame (or a multi-byte character)
    split over two chunks is reassembled before parsing. Errors raised by
    the underlying iterator propagate unchanged.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    buffer = ""
    async for chunk in chunks:
        buffer += decoder.decode(chunk)
        *lines, buffer = buffer.split("\n")
        for line in lines:
            for delta in parse_frame(line):
                yield delta

    buffer += decoder.decode(b"", final=True)
    for delta in parse_frame(buffer):
        yield delta


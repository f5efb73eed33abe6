"""Split assistant text into its reasoning block and final answer."""

import re

from localchat.schemas.chat_schema import ParsedReasoning

THINK_OPEN = "<think>"
THINK_CLOSE = "</think>"

_THINK_BLOCK = re.compile(
    re.escape(THINK_OPEN) + r"(.*?)" + re.escape(THINK_CLOSE), re.DOTALL
)


def parse_reasoning(content: str) -> ParsedReasoning:
    """Separate ``<think>...</think>`` content from the user-facing answer.

    A closed block yields both parts stripped. An opener without a closer
    means the model is still thinking, so everything after it is reasoning
    and the answer is empty. Without an opener the text is all answer.
    """
    if not content:
        return ParsedReasoning(reasoning_content="", main_content="")

    match = _THINK_BLOCK.search(content)
    if match:
        return ParsedReasoning(
            reasoning_content=match.group(1).strip(),
            main_content=_THINK_BLOCK.sub("", content, count=1).strip(),
        )

    open_index = content.find(THINK_OPEN)
    if open_index != -1:
        return ParsedReasoning(
            reasoning_content=content[open_index + len(THINK_OPEN):].strip(),
            main_content="",
        )

    return ParsedReasoning(reasoning_content="", main_content=content)


def is_thinking(parsed: ParsedReasoning, finalized: bool) -> bool:
    """True while reasoning has started but no answer text has arrived yet."""
    return bool(parsed.reasoning_content) and not parsed.main_content and not finalized

"""Per-session generation state and its transitions.

A generation starts in ``GENERATING`` and ends in exactly one of
``COMPLETED``, ``ABORTED`` or ``FAILED``. Every transition is a pure
function returning a new frozen state, so the lifecycle can be exercised
without a network or an event loop.
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from localchat.schemas.chat_schema import ReasoningBlock, StreamDelta
from localchat.services.reasoning_parser import THINK_CLOSE, THINK_OPEN

STOPPED_MARKER = "\n\n*[Generation stopped]*"
STOPPED_EMPTY = "Generation was stopped."
INTERRUPTED_MARKER = "\n\n*[Connection interrupted]*"
FAILED_EMPTY = "Error: Could not generate response."


class GenerationStatus(StrEnum):
    GENERATING = "generating"
    COMPLETED = "completed"
    ABORTED = "aborted"
    FAILED = "failed"


class GenerationState(BaseModel):
    """Accumulated output of one generation."""

    model_config = ConfigDict(frozen=True)

    status: GenerationStatus = GenerationStatus.GENERATING
    reasoning: str = ""
    content: str = ""
    failure_reason: str | None = None

    @property
    def is_final(self) -> bool:
        return self.status is not GenerationStatus.GENERATING

    @property
    def has_output(self) -> bool:
        return bool(self.reasoning or self.content)


class InvalidTransitionError(RuntimeError):
    """A transition was applied to a generation that already ended."""


def _require_generating(state: GenerationState, action: str) -> None:
    if state.is_final:
        raise InvalidTransitionError(f"Cannot {action} a {state.status} generation")


def apply_delta(state: GenerationState, delta: StreamDelta) -> GenerationState:
    """Append one streamed fragment to the matching buffer."""
    _require_generating(state, "extend")
    if delta.kind == "reasoning":
        return state.model_copy(update={"reasoning": state.reasoning + delta.text})
    return state.model_copy(update={"content": state.content + delta.text})


def complete(state: GenerationState) -> GenerationState:
    _require_generating(state, "complete")
    return state.model_copy(update={"status": GenerationStatus.COMPLETED})


def abort(state: GenerationState) -> GenerationState:
    _require_generating(state, "abort")
    return state.model_copy(update={"status": GenerationStatus.ABORTED})


def fail(state: GenerationState, reason: str) -> GenerationState:
    _require_generating(state, "fail")
    return state.model_copy(
        update={"status": GenerationStatus.FAILED, "failure_reason": reason}
    )


def to_reasoning_block(state: GenerationState) -> ReasoningBlock:
    """Structured view of the buffers, independent of any delimiter syntax."""
    return ReasoningBlock(
        reasoning=state.reasoning or None,
        answer=state.content,
        reasoning_open=(
            bool(state.reasoning) and not state.content and not state.is_final
        ),
    )


def render_block(block: ReasoningBlock) -> str:
    """Plain-text form of a block, with the reasoning wrapped in think tags."""
    if not block.reasoning:
        return block.answer
    closer = "" if block.reasoning_open else THINK_CLOSE
    return f"{THINK_OPEN}{block.reasoning}{closer}{block.answer}"


def render_display(state: GenerationState) -> str:
    """Display string for the assistant message in its current state.

    Terminal abort and failure states append their marker after the
    reasoning block is closed, or replace the text entirely when nothing
    was received.
    """
    text = render_block(to_reasoning_block(state))
    if state.status is GenerationStatus.ABORTED:
        return text + STOPPED_MARKER if state.has_output else STOPPED_EMPTY
    if state.status is GenerationStatus.FAILED:
        return text + INTERRUPTED_MARKER if state.has_output else FAILED_EMPTY
    return text

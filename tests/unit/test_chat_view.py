"""Unit tests for ChatView."""

import pytest

from localchat.schemas.chat_schema import Message
from localchat.services.chat_view import SUBSCRIBER_QUEUE_SIZE, ChatView


def user(content: str, id: str = "1") -> Message:
    return Message(id=id, role="user", content=content)


def assistant(content: str, id: str = "2") -> Message:
    return Message(id=id, role="assistant", content=content)


class TestForegroundRouting:
    """Mutators only apply to the session being shown."""

    def test_show_replaces_state(self, view: ChatView) -> None:
        view.set_draft("half typed")
        view.show("A", [user("hi")], loading=True)

        assert view.session_id == "A"
        assert view.messages == [user("hi")]
        assert view.is_loading
        assert view.draft == ""

    def test_messages_returns_copy(self, view: ChatView) -> None:
        view.show("A", [user("hi")])
        view.messages.append(assistant("leak"))

        assert len(view.messages) == 1

    def test_append_ignored_for_background_session(self, view: ChatView) -> None:
        view.show("A", [])

        assert not view.append_message("B", user("other"))
        assert view.messages == []

    def test_upsert_replaces_by_id(self, view: ChatView) -> None:
        view.show("A", [user("hi")])

        assert view.upsert_message("A", assistant("Hel"))
        assert view.upsert_message("A", assistant("Hello"))

        assert view.messages == [user("hi"), assistant("Hello")]

    def test_upsert_ignored_for_background_session(self, view: ChatView) -> None:
        view.show("A", [user("hi")])

        assert not view.upsert_message("B", assistant("x"))
        assert view.messages == [user("hi")]

    def test_set_loading_only_for_foreground(self, view: ChatView) -> None:
        view.show("A", [])

        assert not view.set_loading("B", True)
        assert not view.is_loading
        assert view.set_loading("A", True)
        assert view.is_loading


class TestSnapshot:
    """Tests for ChatView.snapshot."""

    def test_thinking_while_reasoning_streams(self, view: ChatView) -> None:
        view.show("A", [user("q"), assistant("<think>Let")], loading=True)

        assert view.snapshot().is_thinking

    def test_not_thinking_after_answer(self, view: ChatView) -> None:
        view.show("A", [user("q"), assistant("<think>Let</think>4")], loading=True)

        assert not view.snapshot().is_thinking

    def test_not_thinking_when_idle(self, view: ChatView) -> None:
        view.show("A", [user("q"), assistant("<think>Let")])

        assert not view.snapshot().is_thinking

    def test_empty_view(self, view: ChatView) -> None:
        snapshot = view.snapshot()

        assert snapshot.session_id is None
        assert snapshot.messages == []
        assert not snapshot.is_loading


class TestSubscriptions:
    """Tests for change notifications."""

    def test_subscribe_receives_current_state(self, view: ChatView) -> None:
        view.show("A", [user("hi")])

        queue = view.subscribe()

        assert queue.get_nowait().session_id == "A"

    def test_changes_are_published(self, view: ChatView) -> None:
        queue = view.subscribe()
        queue.get_nowait()

        view.show("A", [])
        view.append_message("A", user("hi"))

        assert queue.get_nowait().messages == []
        assert queue.get_nowait().messages == [user("hi")]

    def test_background_mutation_publishes_nothing(self, view: ChatView) -> None:
        view.show("A", [])
        queue = view.subscribe()
        queue.get_nowait()

        view.append_message("B", user("hi"))

        assert queue.empty()

    def test_full_queue_keeps_latest(self, view: ChatView) -> None:
        view.show("A", [])
        queue = view.subscribe()
        for i in range(SUBSCRIBER_QUEUE_SIZE + 5):
            view.upsert_message("A", assistant(str(i)))

        assert queue.qsize() == SUBSCRIBER_QUEUE_SIZE
        latest = None
        while not queue.empty():
            latest = queue.get_nowait()
        assert latest is not None
        assert latest.messages[-1].content == str(SUBSCRIBER_QUEUE_SIZE + 4)

    def test_unsubscribe_stops_delivery(self, view: ChatView) -> None:
        queue = view.subscribe()
        view.unsubscribe(queue)
        queue.get_nowait()

        view.show("A", [])

        assert queue.empty()

    @pytest.mark.asyncio
    async def test_events_yields_snapshots(self, view: ChatView) -> None:
        view.show("A", [])
        events = view.events()

        first = await anext(events)
        view.append_message("A", user("hi"))
        second = await anext(events)
        await events.aclose()

        assert first.messages == []
        assert second.messages == [user("hi")]

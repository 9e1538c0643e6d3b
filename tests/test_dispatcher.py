import asyncio

import pytest

from app.broadcast.dispatcher import DeliveryDispatcher, chunked
from tests.fakes import RecordingPush


def test_dispatch_empty_token_set_does_not_call_push() -> None:
    push = RecordingPush()
    dispatcher = DeliveryDispatcher(push, "Announcement")

    outcome = asyncio.run(dispatcher.dispatch(set(), "hello"))

    assert (outcome.success_count, outcome.failure_count) == (0, 0)
    assert not outcome.failed
    assert push.calls == []


def test_dispatch_sends_one_batch_with_broadcast_payload() -> None:
    push = RecordingPush(failing_tokens={"t2"})
    dispatcher = DeliveryDispatcher(push, "📢 System Announcement")

    outcome = asyncio.run(dispatcher.dispatch(["t1", "t2", "t3"], "Clinic closed tomorrow"))

    assert len(push.calls) == 1
    call = push.calls[0]
    assert call["tokens"] == ["t1", "t2", "t3"]
    assert call["title"] == "📢 System Announcement"
    assert call["body"] == "Clinic closed tomorrow"
    assert call["data"]["type"] == "broadcast"
    assert call["data"]["message"] == "Clinic closed tomorrow"
    assert call["data"]["sentAt"].isdigit()
    assert (outcome.success_count, outcome.failure_count) == (2, 1)
    assert [o.token for o in outcome.outcomes if not o.success] == ["t2"]


def test_dispatch_splits_tokens_over_batch_limit_and_sums_outcomes() -> None:
    push = RecordingPush(failing_tokens={"t0", "t6"})
    dispatcher = DeliveryDispatcher(push, "Announcement", batch_size=3)
    tokens = [f"t{i}" for i in range(7)]

    outcome = asyncio.run(dispatcher.dispatch(tokens, "hi"))

    assert [len(c["tokens"]) for c in push.calls] == [3, 3, 1]
    assert push.sent_tokens == tokens
    assert (outcome.success_count, outcome.failure_count) == (5, 2)


def test_dispatch_ignores_duplicate_tokens() -> None:
    push = RecordingPush()
    dispatcher = DeliveryDispatcher(push, "Announcement")

    outcome = asyncio.run(dispatcher.dispatch(["a", "b", "a"], "hi"))

    assert push.sent_tokens == ["a", "b"]
    assert outcome.success_count == 2


def test_dispatch_batch_failure_is_reported_not_raised() -> None:
    push = RecordingPush(error=RuntimeError("fcm unavailable"))
    dispatcher = DeliveryDispatcher(push, "Announcement", batch_size=2)

    outcome = asyncio.run(dispatcher.dispatch(["a", "b", "c"], "hi"))

    assert outcome.failed
    assert outcome.error == "fcm unavailable"
    assert (outcome.success_count, outcome.failure_count) == (0, 3)
    assert len(push.calls) == 2
    assert all(o.error == "fcm unavailable" for o in outcome.outcomes)


class FlakyPush(RecordingPush):
    """Fails only the n-th multicast call."""

    def __init__(self, failing_call: int) -> None:
        super().__init__()
        self.failing_call = failing_call

    async def send_multicast(self, tokens, title, body, data):
        if len(self.calls) + 1 == self.failing_call:
            self.calls.append({"tokens": list(tokens), "title": title, "body": body, "data": dict(data)})
            raise RuntimeError("transport reset")
        return await super().send_multicast(tokens, title, body, data)


def test_dispatch_mid_run_batch_failure_still_reconciles_tallies() -> None:
    push = FlakyPush(failing_call=2)
    dispatcher = DeliveryDispatcher(push, "Announcement", batch_size=2)
    tokens = [f"t{i}" for i in range(6)]

    outcome = asyncio.run(dispatcher.dispatch(tokens, "hi"))

    assert len(push.calls) == 3
    assert outcome.failed
    assert outcome.error == "transport reset"
    assert (outcome.success_count, outcome.failure_count) == (4, 2)
    assert outcome.success_count + outcome.failure_count == len(tokens)
    assert [o.token for o in outcome.outcomes if not o.success] == ["t2", "t3"]


def test_dispatcher_rejects_non_positive_batch_size() -> None:
    with pytest.raises(ValueError):
        DeliveryDispatcher(RecordingPush(), "Announcement", batch_size=0)


def test_chunked_preserves_order() -> None:
    assert list(chunked(["a", "b", "c", "d", "e"], 2)) == [["a", "b"], ["c", "d"], ["e"]]

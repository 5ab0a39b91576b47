"""Tests for the notification bus."""

import json

from modo.agent.notification_bus import (
    NotificationBus,
    ResultType,
)
from modo.core.schema import ResultPayload


def test_publish_reaches_only_matching_type() -> None:
    """Subscribers receive payloads of their own result type only."""

    bus = NotificationBus()
    created, deleted = [], []
    bus.subscribe(ResultType.CREATE, created.append)
    bus.subscribe(ResultType.DELETE, deleted.append)

    delivered = bus.post_response(ResultType.CREATE, "req-1", success=True, data=[1])

    assert delivered == 1
    assert [payload.request_id for payload in created] == ["req-1"]
    assert deleted == []


def test_publish_without_subscriber_is_dropped() -> None:
    """A payload with nobody listening is lost, not queued."""

    bus = NotificationBus()
    assert bus.post_response(ResultType.QUERY, "req-1", success=True) == 0

    received = []
    bus.subscribe(ResultType.QUERY, received.append)
    assert received == []


def test_unsubscribe_is_idempotent() -> None:
    bus = NotificationBus()
    received = []
    subscription = bus.subscribe(ResultType.UPDATE, received.append)
    assert bus.subscriber_count(ResultType.UPDATE) == 1

    bus.unsubscribe(subscription)
    bus.unsubscribe(subscription)

    assert bus.subscriber_count(ResultType.UPDATE) == 0
    bus.post_response(ResultType.UPDATE, "req-1", success=True)
    assert received == []


def test_failing_subscriber_does_not_block_others() -> None:
    """A callback that raises is logged; later subscribers still get the payload."""

    bus = NotificationBus()
    received = []

    def explode(payload: ResultPayload) -> None:
        raise RuntimeError("subscriber bug")

    bus.subscribe(ResultType.CREATE, explode)
    bus.subscribe(ResultType.CREATE, received.append)

    assert bus.post_response(ResultType.CREATE, "req-1", success=True) == 2
    assert len(received) == 1


def test_result_payload_tool_content() -> None:
    """Tool-result text: JSON data, a bare success flag, or the error."""

    assert json.loads(ResultPayload(request_id="r", success=True, data={"a": 1}).to_tool_content()) == {"a": 1}
    assert json.loads(ResultPayload(request_id="r", success=True).to_tool_content()) == {"success": True}
    assert json.loads(ResultPayload(request_id="r", success=False, error="nope").to_tool_content()) == {
        "success": False,
        "error": "nope",
    }
    assert json.loads(ResultPayload(request_id="r", success=False).to_tool_content())["error"] == "Unknown error"

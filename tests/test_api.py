"""Tests for the REST API, with the AI backend replaced by a scripted one."""

from __future__ import annotations

import asyncio
from datetime import date

import pytest
from fastapi.testclient import TestClient

from fakes import (
    ScriptedBackend,
    call_reply,
    text_reply,
)
from modo.agent.backends import AIBackend
from modo.agent.notification_bus import ResultType
from modo.agent.services import build_services
from modo.api.app import (
    DEFAULT_USER_ID,
    app,
    get_services,
    sessions,
)
from modo.config import settings
from modo.core.errors import AuthenticationFailed
from modo.core.schema import (
    BackendReply,
    BackendRequest,
    Role,
)


class SlowBackend(AIBackend):
    async def complete(self, request: BackendRequest) -> BackendReply:
        await asyncio.sleep(5)
        return text_reply("too late")


@pytest.fixture
def serve():
    """Return a factory building a test client around the given backend."""

    def make(backend: AIBackend):
        services = build_services(backend=backend)
        app.dependency_overrides[get_services] = lambda: services
        return TestClient(app), services

    yield make
    app.dependency_overrides.clear()
    sessions.clear()


def test_health_and_sessions(serve) -> None:
    client, _ = serve(ScriptedBackend())

    assert client.get("/health").json() == {"status": "ok"}
    session_id = client.post("/sessions").json()["session_id"]
    assert session_id in client.get("/sessions").json()


def test_chat_text_reply_keeps_history(serve) -> None:
    backend = ScriptedBackend(text_reply("Hi there!"), text_reply("Again?"))
    client, _ = serve(backend)

    first = client.post("/chat", json={"message": "Hello"}).json()
    assert first["reply"] == "Hi there!"
    assert first["message_type"] == "text"
    assert first["plan"] is None

    session_id = first["session_id"]
    client.post("/chat", json={"message": "Hello again", "session_id": session_id})

    roles = [turn.role for turn in backend.requests[1].turns]
    assert roles == [Role.SYSTEM, Role.USER, Role.ASSISTANT, Role.USER]
    assert date.today().isoformat() in backend.requests[1].turns[0].text
    assert len(sessions[session_id]) == 4


def test_chat_history_is_capped(serve, monkeypatch) -> None:
    monkeypatch.setattr(settings, "MAX_HISTORY_MESSAGES", 2)
    backend = ScriptedBackend(text_reply("one"), text_reply("two"), text_reply("three"))
    client, _ = serve(backend)

    session_id = client.post("/chat", json={"message": "a"}).json()["session_id"]
    client.post("/chat", json={"message": "b", "session_id": session_id})
    client.post("/chat", json={"message": "c", "session_id": session_id})

    assert [turn.text for turn in sessions[session_id]] == ["c", "three"]
    assert [turn.text for turn in backend.requests[2].turns[1:]] == ["b", "two", "c"]


def test_chat_creates_task_for_user(serve) -> None:
    """create_tasks round-trips through the bus and the final text is the reply."""

    arguments = {
        "tasks": [
            {"type": "custom", "title": "Stretch", "date": "2026-10-19", "time": "09:00 PM", "category": "others"}
        ]
    }
    backend = ScriptedBackend(call_reply("create_tasks", arguments), text_reply("Done"))
    client, services = serve(backend)

    response = client.post("/chat", json={"message": "Remind me to stretch", "user_id": "user-7"}).json()

    assert response["reply"] == "Done"
    (task,) = services.store.get_tasks("user-7", date(2026, 10, 19))
    assert task.title == "Stretch"
    assert services.store.get_tasks(DEFAULT_USER_ID, date(2026, 10, 19)) == []
    assert backend.requests[1].turns[-1].role is Role.TOOL_RESULT


def test_chat_plan_reply(serve) -> None:
    arguments = {
        "date": "2026-10-18",
        "goal": "endurance",
        "exercises": [
            {"name": "Row", "sets": 5, "reps": "500m", "rest_sec": 60, "target_RPE": 7, "alternatives": []}
        ],
        "daily_kcal_target": 2400,
        "notes": None,
    }
    client, _ = serve(ScriptedBackend(call_reply("generate_workout_plan", arguments)))

    response = client.post("/chat", json={"message": "Plan my workout"}).json()

    assert response["message_type"] == "workout_plan"
    assert response["reply"].startswith("Here's your personalized workout plan")
    assert response["plan"]["exercises"][0]["name"] == "Row"


def test_chat_failed_plan(serve) -> None:
    arguments = {"date": "2026-10-18", "goal": "x", "exercises": [], "daily_kcal_target": 0, "notes": None}
    client, _ = serve(ScriptedBackend(call_reply("generate_workout_plan", arguments)))

    response = client.post("/chat", json={"message": "Plan my workout"}).json()

    assert response["message_type"] == "error"
    assert response["reply"] == "Had trouble generating that plan. Please try again."
    assert response["recoverable"] is True


def test_chat_backend_error(serve) -> None:
    client, _ = serve(ScriptedBackend(AuthenticationFailed("bad key", 401)))

    response = client.post("/chat", json={"message": "Hello"}).json()

    assert response["message_type"] == "error"
    assert response["reply"] == "Authentication failed, please login again."
    assert response["error"] == "Please login again."
    assert response["recoverable"] is False


def test_chat_timeout(serve, monkeypatch) -> None:
    monkeypatch.setattr(settings, "EXCHANGE_TIMEOUT", 0.05)
    client, services = serve(SlowBackend())

    response = client.post("/chat", json={"message": "Hello"})

    assert response.status_code == 504
    # the abandoned coordinator no longer listens on the bus
    assert all(services.bus.subscriber_count(result_type) == 0 for result_type in ResultType)


def test_chat_rejects_empty_message(serve) -> None:
    client, _ = serve(ScriptedBackend())
    assert client.post("/chat", json={"message": ""}).status_code == 422


def test_chat_without_history_keeps_no_turns(serve, monkeypatch) -> None:
    monkeypatch.setattr(settings, "MAX_HISTORY_MESSAGES", 0)
    backend = ScriptedBackend(text_reply("one"), text_reply("two"))
    client, _ = serve(backend)

    session_id = client.post("/chat", json={"message": "a"}).json()["session_id"]
    client.post("/chat", json={"message": "b", "session_id": session_id})

    assert sessions[session_id] == []
    assert [turn.text for turn in backend.requests[1].turns[1:]] == ["b"]

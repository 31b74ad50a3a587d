"""
Proactive Routes Tests

Exercises /api/proactive through FastAPI's TestClient with the engine and
auth dependencies overridden (in-memory lifecycle, fake snapshot builder).

Run: cd api && python -m pytest tests/test_proactive_routes.py -v
"""

import base64
import json
import os
import sys
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from main import app
from routes.proactive import get_engine
from services.proactive import InMemoryKVStore, NotificationLifecycle, ProactiveEngine
from services.proactive.models import ContextSnapshot, ScheduleEntry, UserPlan
from services.supabase import AuthenticatedUser, get_current_user, get_service_client

AT = "2026-10-19T13:50:00"


class FakeBuilder:
    async def build(self, user_id, now):
        return ContextSnapshot(
            user_id=user_id,
            now=now,
            today_schedules=(ScheduleEntry(id="s1", text="Gym", start_time="14:00"),),
            plan=UserPlan("free", 5, frozenset()),
        )


def client_for(engine):
    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_current_user] = lambda: AuthenticatedUser(user_id="user-1", token="test-token")
    return TestClient(app)


def teardown_function():
    app.dependency_overrides.clear()


def test_get_notifications_and_dismiss():
    engine = ProactiveEngine(lifecycle=NotificationLifecycle(InMemoryKVStore()), builder=FakeBuilder())
    client = client_for(engine)

    response = client.get("/api/proactive/notifications", params={"at": AT})
    assert response.status_code == 200
    body = response.json()
    assert [n["id"] for n in body["notifications"]] == ["schedule-10min-s1-2026-10-19"]
    assert body["notifications"][0]["priority"] == "high"
    assert body["context"]["todaySchedulesCount"] == 1

    response = client.post("/api/proactive/notifications/feedback", json={
        "action": "dismiss",
        "notification_id": "schedule-10min-s1-2026-10-19",
        "notification_type": "schedule_reminder",
        "at": AT,
    })
    assert response.status_code == 200
    assert response.json() == {"success": True}

    response = client.get("/api/proactive/notifications", params={"at": AT})
    assert response.json()["notifications"] == []
    print("✅ get_notifications_and_dismiss: PASSED")


def test_feedback_validation():
    engine = ProactiveEngine(lifecycle=NotificationLifecycle(InMemoryKVStore()), builder=FakeBuilder())
    client = client_for(engine)

    response = client.post("/api/proactive/notifications/feedback", json={"action": "snooze"})
    assert response.status_code == 400

    response = client.post("/api/proactive/notifications/feedback", json={"action": "dismiss"})
    assert response.status_code == 400

    response = client.post("/api/proactive/notifications/feedback", json={
        "action": "mark_shown",
        "notification_id": "x",
    })
    assert response.status_code == 400
    print("✅ feedback_validation: PASSED")


def test_engine_failure_returns_500():
    engine = MagicMock()
    engine.evaluate_detailed = AsyncMock(side_effect=RuntimeError("boom"))
    engine.dismiss_today = AsyncMock(return_value=False)
    client = client_for(engine)

    assert client.get("/api/proactive/notifications").status_code == 500

    response = client.post("/api/proactive/notifications/feedback", json={
        "action": "dismiss_today",
        "notification_type": "goal_nudge",
    })
    assert response.status_code == 500
    print("✅ engine_failure_returns_500: PASSED")


def test_health():
    client = TestClient(app)
    assert client.get("/health").json()["status"] == "ok"
    print("✅ health: PASSED")


def auth_client(get_user):
    """A Supabase client whose auth.get_user behaves like get_user."""
    client = MagicMock()
    client.auth.get_user.side_effect = get_user
    return client


def reject_token(token):
    raise RuntimeError("invalid JWT: unable to parse or verify signature")


def test_requires_bearer_token():
    engine = ProactiveEngine(lifecycle=NotificationLifecycle(InMemoryKVStore()), builder=FakeBuilder())
    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_service_client] = lambda: auth_client(reject_token)
    client = TestClient(app)

    assert client.get("/api/proactive/notifications").status_code == 401
    response = client.get("/api/proactive/notifications", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    print("✅ requires_bearer_token: PASSED")


def test_forged_token_rejected():
    engine = MagicMock()
    engine.evaluate_detailed = AsyncMock()
    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_service_client] = lambda: auth_client(reject_token)
    client = TestClient(app)

    payload = base64.urlsafe_b64encode(json.dumps({"sub": "victim-user"}).encode()).decode().rstrip("=")
    response = client.get("/api/proactive/notifications", headers={"Authorization": f"Bearer x.{payload}.forged"})

    assert response.status_code == 401
    engine.evaluate_detailed.assert_not_called()
    print("✅ forged_token_rejected: PASSED")


def test_current_user_from_verified_token():
    supabase = auth_client(lambda token: MagicMock(user=MagicMock(id="user-9")))
    user = get_current_user("Bearer header.payload.signature", client=supabase)

    assert user.user_id == "user-9"
    assert user.token == "header.payload.signature"
    supabase.auth.get_user.assert_called_once_with("header.payload.signature")

    anonymous = auth_client(lambda token: MagicMock(user=None))
    with pytest.raises(HTTPException) as exc:
        get_current_user("Bearer header.payload.signature", client=anonymous)
    assert exc.value.status_code == 401
    print("✅ current_user_from_verified_token: PASSED")

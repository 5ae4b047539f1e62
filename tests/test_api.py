"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from pocketshell import api
from pocketshell.api import app
from pocketshell.config import ShellConfig

client = TestClient(app)


@pytest.fixture(autouse=True)
def reset_api_state():
    """Give each test fresh sessions and stores."""
    api.sessions.clear()
    api._db_conn = None
    api._context_store = None
    api._config = None
    yield
    api.sessions.clear()


def _command(text: str, session_id: str | None = None, **extra) -> dict:
    response = client.post("/v1/command", json={"text": text, "session_id": session_id, **extra})
    assert response.status_code == 200
    return response.json()


def test_health() -> None:
    """Test GET /health."""
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_status_reports_degraded_without_redis() -> None:
    """Test GET /v1/status with Redis disabled."""
    _command("pwd", "s-1")

    response = client.get("/v1/status")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["active_sessions"] == 1
    deps = {dep["name"]: dep["status"] for dep in data["dependencies"]}
    assert deps == {"duckdb": "ok", "redis": "degraded"}


def test_command_creates_session() -> None:
    """Test a request without a session id gets a new session."""
    data = _command("pwd")

    assert data["status"] == "SUCCESS"
    assert data["message"] == "/"
    assert data["session_id"] in api.sessions
    assert data["elapsed_ms"] >= 0


def test_session_state_is_kept_between_requests() -> None:
    """Test env set in one request is visible in the next."""
    _command("export CITY=Nairobi", "s-1")

    data = _command("env", "s-1")

    assert "CITY=Nairobi" in data["message"].splitlines()
    assert data["payload"]["CITY"] == "Nairobi"


def test_invalid_command() -> None:
    """Test an unknown verb."""
    data = _command("frobnicate now", "s-1")

    assert data["status"] == "NOT_FOUND"
    assert data["message"] == "Unknown command: frobnicate"


def test_dry_run() -> None:
    """Test dry_run reports the action without running it."""
    data = _command("open camera", "s-1", dry_run=True)

    assert data["message"] == "Dry run: Would execute open_app"
    assert data["payload"]["kind"] == "open_app"


def test_conversation_prompt_is_reported() -> None:
    """Test an open conversation is named in the response."""
    data = _command("send a message saying hi", "s-1")

    assert data["status"] == "SUCCESS"
    assert data["prompt"] == "awaiting_recipient_choice"


def test_confirm_flow() -> None:
    """Test a held delete runs after POST /v1/confirm."""
    _command("write /sdcard/a.txt hello", "s-1")
    held = _command("rm /sdcard/a.txt", "s-1")
    assert held["status"] == "REQUIRES_CONFIRMATION"
    token = held["payload"]["token"]

    response = client.post("/v1/confirm", json={"token": token, "session_id": "s-1"})

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "SUCCESS"
    assert data["message"] == "Deleted /sdcard/a.txt"


def test_confirm_unknown_session() -> None:
    """Test confirming against a session that does not exist."""
    response = client.post("/v1/confirm", json={"token": "abc", "session_id": "missing"})

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_reset_session() -> None:
    """Test POST /v1/sessions/{id}/reset clears the context."""
    _command("export CITY=Nairobi", "s-1")

    response = client.post("/v1/sessions/s-1/reset")

    assert response.status_code == 200
    assert response.json()["message"] == "Session reset"
    assert "CITY=Nairobi" not in _command("env", "s-1")["message"]


def test_reset_unknown_session() -> None:
    """Test resetting a session that does not exist."""
    response = client.post("/v1/sessions/missing/reset")

    assert response.status_code == 404


def test_text_too_long_is_rejected() -> None:
    """Test request validation."""
    response = client.post("/v1/command", json={"text": "x" * 2001})

    assert response.status_code == 422


def test_least_recently_used_session_is_evicted() -> None:
    """Test the session table stays within max_sessions and restores evicted snapshots."""
    api._config = ShellConfig(max_sessions=2)
    _command("export CITY=Nairobi", "s-1")
    _command("pwd", "s-2")
    _command("pwd", "s-1")

    _command("pwd", "s-3")

    assert list(api.sessions) == ["s-1", "s-3"]

    _command("pwd", "s-2")

    assert list(api.sessions) == ["s-3", "s-2"]
    assert "CITY=Nairobi" in _command("env", "s-1")["message"]

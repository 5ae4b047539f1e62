"""FastAPI application exposing the shell over HTTP.

Holds one ShellSession per session id. Contact aliases are shared between
sessions through the DuckDB alias store.
"""

import dataclasses
import logging
import os
from collections import OrderedDict
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from pocketshell.commands.results import ExecutionOptions, Result
from pocketshell.commands.session_context import RedisSessionStore
from pocketshell.config import load_shell_config
from pocketshell.db import init_db
from pocketshell.models import (
    CommandRequest,
    CommandResponse,
    ConfirmRequest,
    DependencyStatus,
    StatusResponse,
)
from pocketshell.redis_client import get_redis_client, is_redis_healthy
from pocketshell.shell import ShellSession

logger = logging.getLogger(__name__)

app = FastAPI(
    title="PocketShell API",
    version="1.0.0",
    description="Command and conversation core of a phone-control shell",
)

# Database connection (initialized lazily)
_db_conn = None
_context_store: RedisSessionStore | None = None
_config = None

# Least recently used first
sessions: OrderedDict[str, ShellSession] = OrderedDict()


def get_db():
    """Get or initialize database connection.

    Uses DUCKDB_PATH environment variable or defaults to data/pocketshell.db.
    Tests set DUCKDB_PATH=:memory: in conftest.py for isolation.
    """
    global _db_conn
    if _db_conn is None:
        _db_conn = init_db()
    return _db_conn


def get_config():
    global _config
    if _config is None:
        _config = load_shell_config()
    return _config


def get_context_store() -> RedisSessionStore:
    """Get the session snapshot store (Redis, or in-memory when Redis is unavailable)."""
    global _context_store
    if _context_store is None:
        ttl = int(os.getenv("POCKETSHELL_SESSION_TTL", "86400"))
        _context_store = RedisSessionStore(get_redis_client(), default_ttl_seconds=ttl)
    return _context_store


def get_session(session_id: str | None) -> ShellSession:
    """Return the session for an id, creating it on first use."""
    if session_id and session_id in sessions:
        sessions.move_to_end(session_id)
        return sessions[session_id]

    session = ShellSession.from_config(
        get_config(),
        db_conn=get_db(),
        session_id=session_id,
        context_store=get_context_store(),
    )
    sessions[session.session_id] = session
    logger.info("Created shell session %s", session.session_id[:8])
    _evict_sessions(get_config().max_sessions)
    return session


def _evict_sessions(limit: int) -> None:
    """Drop the least recently used sessions beyond the limit.

    Evicted sessions keep their snapshot, so env and shell aliases come back
    if the id is used again.
    """
    while len(sessions) > limit:
        session_id, _ = sessions.popitem(last=False)
        logger.info("Evicted shell session %s", session_id[:8])


def to_jsonable(value: Any) -> Any:
    """Convert result payloads (dataclasses, enums, datetimes) to JSON-safe values."""
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if hasattr(value, "to_dict"):
        return to_jsonable(value.to_dict())
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    return str(value)


def _response(session: ShellSession, result: Result) -> CommandResponse:
    return CommandResponse(
        session_id=session.session_id,
        status=result.status.value,
        message=result.message,
        payload=to_jsonable(result.payload),
        elapsed_ms=round(result.elapsed_ms, 3),
        error=result.error.value if result.error else None,
        prompt=result.awaiting,
    )


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/v1/status", response_model=StatusResponse)
def get_status():
    """Get service status, including dependency readiness."""
    dependencies = []

    try:
        db = get_db()
        db.execute("SELECT 1").fetchone()
        dependencies.append(
            DependencyStatus(name="duckdb", status="ok", message="Database connection healthy")
        )
    except Exception as e:
        logger.warning("DuckDB health check failed: %s", e)
        dependencies.append(
            DependencyStatus(name="duckdb", status="unavailable", message="Database connection failed")
        )

    store = get_context_store()
    if store.redis is None:
        dependencies.append(
            DependencyStatus(name="redis", status="degraded", message="Using in-memory session snapshots")
        )
    elif is_redis_healthy(store.redis):
        dependencies.append(DependencyStatus(name="redis", status="ok"))
    else:
        dependencies.append(
            DependencyStatus(name="redis", status="unavailable", message="Redis did not answer PING")
        )

    overall_status = "ok"
    if any(dep.status == "unavailable" for dep in dependencies):
        overall_status = "unavailable"
    elif any(dep.status == "degraded" for dep in dependencies):
        overall_status = "degraded"

    return StatusResponse(
        status=overall_status,
        version=app.version,
        timestamp=datetime.now(UTC),
        active_sessions=len(sessions),
        dependencies=dependencies,
    )


@app.post("/v1/command", response_model=CommandResponse)
async def submit_command(request: CommandRequest) -> CommandResponse:
    """Submit one line of shell input to a session."""
    session = get_session(request.session_id)
    options = ExecutionOptions(
        require_confirmation=request.confirm,
        dry_run=request.dry_run,
        timeout_ms=request.timeout_ms or session.config.command_timeout_ms,
    )
    result = await session.submit(request.text, options)
    return _response(session, result)


@app.post("/v1/confirm", response_model=CommandResponse)
async def confirm_command(request: ConfirmRequest) -> CommandResponse:
    """Execute an action held for confirmation."""
    session = sessions.get(request.session_id)
    if session is None:
        raise HTTPException(
            status_code=404,
            detail={"error": "not_found", "message": f"Unknown session {request.session_id}"},
        )
    result = await session.confirm(request.token)
    return _response(session, result)


@app.post("/v1/sessions/{session_id}/reset", response_model=CommandResponse)
def reset_session(session_id: str) -> CommandResponse:
    """Replace a session's context and reset its conversations."""
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(
            status_code=404,
            detail={"error": "not_found", "message": f"Unknown session {session_id}"},
        )
    session.reset()
    return _response(session, Result.success("Session reset"))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTPExceptions and return Error schema."""
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content=exc.detail)

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "http_error", "message": str(exc.detail)},
    )

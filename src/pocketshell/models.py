"""Pydantic models for the HTTP API."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class CommandRequest(BaseModel):
    """One line of shell input."""

    text: str = Field(..., max_length=2000)
    session_id: str | None = None
    dry_run: bool = False
    confirm: bool = Field(default=False, description="Hold the action for confirmation")
    timeout_ms: int | None = Field(default=None, gt=0)


class CommandResponse(BaseModel):
    """Result of a shell command."""

    session_id: str
    status: str = Field(..., examples=["SUCCESS"])
    message: str
    payload: Any = None
    elapsed_ms: float = Field(..., ge=0)
    error: str | None = None
    prompt: str | None = Field(
        default=None, description="Conversation state waiting for the next input, if any"
    )


class ConfirmRequest(BaseModel):
    """Confirmation of a held action."""

    token: str
    session_id: str


class DependencyStatus(BaseModel):
    """Status of a service dependency."""

    name: str
    status: str = Field(..., description="Status: ok, degraded, or unavailable")
    message: str | None = None


class StatusResponse(BaseModel):
    """Service status response."""

    status: str = Field(..., description="Overall service status: ok, degraded, or unavailable")
    version: str | None = Field(default=None, description="Service version if available")
    timestamp: datetime = Field(..., description="Current server time")
    active_sessions: int = 0
    dependencies: list[DependencyStatus] = Field(default_factory=list)

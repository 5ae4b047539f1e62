"""Actions, results and execution options shared by the executor and handlers."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


class ResultStatus(str, Enum):
    """Outcome of a handled command."""

    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    INVALID_COMMAND = "INVALID_COMMAND"
    NOT_FOUND = "NOT_FOUND"
    REQUIRES_CONFIRMATION = "REQUIRES_CONFIRMATION"


class ErrorKind(str, Enum):
    """Why a command did not succeed."""

    INVALID_COMMAND = "invalid_command"
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    TIMEOUT = "timeout"
    CARRIER_FAILURE = "carrier_failure"
    AMBIGUOUS_TARGET = "ambiguous_target"
    INVALID_NUMBER = "invalid_number"
    EMPTY_MESSAGE = "empty_message"
    EXECUTION_FAILED = "execution_failed"


class ActionKind(str, Enum):
    """Typed action a command maps to."""

    OPEN_APP = "open_app"
    OPEN_SETTINGS = "open_settings"
    MAKE_CALL = "make_call"
    SEND_SMS = "send_sms"
    MEDIA_PLAY = "media_play"
    MEDIA_PAUSE = "media_pause"
    MEDIA_STOP = "media_stop"
    MEDIA_NEXT = "media_next"
    MEDIA_PREVIOUS = "media_previous"
    NAVIGATE = "navigate"
    QUERY = "query"
    LIST_FILES = "list_files"
    READ_FILE = "read_file"
    WRITE_FILE = "write_file"
    DELETE_FILE = "delete_file"
    SYSTEM = "system"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Action:
    """A command resolved to a typed action, ready for dispatch."""

    kind: ActionKind
    verb: str
    target: str | None = None
    entity: str | None = None
    params: dict[str, str] = field(default_factory=dict)
    requires_confirmation: bool = False
    raw: str = ""

    def describe(self) -> str:
        """Short human-readable form, e.g. 'delete_file notes.txt'."""
        parts = [self.kind.value]
        if self.target:
            parts.append(self.target)
        if self.entity:
            parts.append(self.entity)
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "verb": self.verb,
            "target": self.target,
            "entity": self.entity,
            "params": dict(self.params),
            "requires_confirmation": self.requires_confirmation,
        }


@dataclass
class Result:
    """Uniform result returned by every handler and engine.

    Handlers return a Result for every outcome, including failures; they do
    not raise across the router boundary.
    """

    status: ResultStatus
    message: str = ""
    payload: Any = None
    elapsed_ms: float = 0.0
    error: ErrorKind | None = None

    @property
    def ok(self) -> bool:
        return self.status == ResultStatus.SUCCESS

    @classmethod
    def success(cls, message: str = "", payload: Any = None) -> "Result":
        return cls(ResultStatus.SUCCESS, message, payload)

    @classmethod
    def failure(
        cls,
        message: str,
        error: ErrorKind = ErrorKind.EXECUTION_FAILED,
        payload: Any = None,
    ) -> "Result":
        return cls(ResultStatus.FAILURE, message, payload, error=error)

    @classmethod
    def invalid(cls, message: str) -> "Result":
        return cls(ResultStatus.INVALID_COMMAND, message, error=ErrorKind.INVALID_COMMAND)

    @classmethod
    def not_found(cls, message: str, payload: Any = None) -> "Result":
        return cls(ResultStatus.NOT_FOUND, message, payload, error=ErrorKind.NOT_FOUND)

    @classmethod
    def prompt(
        cls, message: str, awaiting: str, error: ErrorKind | None = None
    ) -> "Result":
        """A follow-up question; the conversation waits for the next input.

        Args:
            message: Prompt text shown to the user
            awaiting: Name of the state now waiting for input
            error: Set when the prompt resolves a problem (e.g. ambiguous target)
        """
        return cls(ResultStatus.SUCCESS, message, {"awaiting": awaiting}, error=error)

    @property
    def awaiting(self) -> str | None:
        """State waiting for input if this result is a prompt."""
        if isinstance(self.payload, dict):
            return self.payload.get("awaiting")
        return None

    @classmethod
    def needs_confirmation(cls, message: str, payload: Any = None) -> "Result":
        return cls(ResultStatus.REQUIRES_CONFIRMATION, message, payload)

    def with_elapsed(self, elapsed_ms: float) -> "Result":
        """Return a copy stamped with the elapsed time."""
        return replace(self, elapsed_ms=elapsed_ms)

    def to_dict(self) -> dict[str, Any]:
        payload = self.payload
        if hasattr(payload, "to_dict"):
            payload = payload.to_dict()
        return {
            "status": self.status.value,
            "message": self.message,
            "payload": payload,
            "elapsed_ms": round(self.elapsed_ms, 3),
            "error": self.error.value if self.error else None,
        }


@dataclass
class ExecutionOptions:
    """Caller-supplied policy for a single execution."""

    require_confirmation: bool = False
    dry_run: bool = False
    timeout_ms: int = 30000
    verbose: bool = False

"""Service code (USSD) session manager.

Runs one service code request at a time against the carrier adapter and
races the carrier's answer against a session timeout. Interactive menu
responses keep the session open so the next input is sent as a reply.
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable

from pocketshell.commands.results import ErrorKind, Result
from pocketshell.logging_utils import log_info, log_warning
from pocketshell.telephony.carrier import (
    USSD_ERROR_SERVICE_UNAVAIL,
    USSD_RETURN_FAILURE,
    CarrierAdapter,
    ServiceCodeCallback,
)
from pocketshell.ussd.rules import MenuRule, is_interactive, is_valid_code, normalize_code

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class UssdError(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    INVALID_CODE = "invalid_code"
    SERVICE_UNAVAILABLE = "service_unavailable"
    NOT_SUPPORTED = "not_supported"
    USSD_FAILED = "ussd_failed"
    EXECUTION_FAILED = "execution_failed"
    TIMEOUT = "timeout"
    SESSION_ENDED = "session_ended"


class UssdStateKind(str, Enum):
    IDLE = "idle"
    EXECUTING = "executing"
    INTERACTIVE = "interactive"
    SUCCESS = "success"
    ERROR = "error"
    LEGACY_DIALING = "legacy_dialing"


@dataclass(frozen=True)
class UssdResponse:
    """A carrier response to a service code request."""

    code: str
    text: str
    timestamp: datetime
    is_interactive: bool
    session_active: bool


@dataclass(frozen=True)
class UssdState:
    """Current state of the session manager.

    Which fields are set depends on kind: EXECUTING and LEGACY_DIALING carry
    code, INTERACTIVE and SUCCESS carry response, ERROR carries message and
    error.
    """

    kind: UssdStateKind
    code: str | None = None
    response: UssdResponse | None = None
    message: str | None = None
    error: UssdError | None = None

    @classmethod
    def idle(cls) -> "UssdState":
        return cls(UssdStateKind.IDLE)

    @classmethod
    def executing(cls, code: str) -> "UssdState":
        return cls(UssdStateKind.EXECUTING, code=code)

    @classmethod
    def interactive(cls, response: UssdResponse) -> "UssdState":
        return cls(UssdStateKind.INTERACTIVE, code=response.code, response=response)

    @classmethod
    def success(cls, response: UssdResponse) -> "UssdState":
        return cls(UssdStateKind.SUCCESS, code=response.code, response=response)

    @classmethod
    def failed(cls, message: str, error: UssdError) -> "UssdState":
        return cls(UssdStateKind.ERROR, message=message, error=error)

    @classmethod
    def legacy_dialing(cls, code: str) -> "UssdState":
        return cls(UssdStateKind.LEGACY_DIALING, code=code)


def failure_message(code: int) -> str:
    """Map a carrier failure code to a readable message."""
    if code == USSD_ERROR_SERVICE_UNAVAIL:
        return "USSD service unavailable"
    if code == USSD_RETURN_FAILURE:
        return "USSD request failed - network or carrier issue"
    return f"Unknown USSD error (code: {code})"


_ERROR_KINDS = {
    UssdError.PERMISSION_DENIED: ErrorKind.PERMISSION_DENIED,
    UssdError.INVALID_CODE: ErrorKind.INVALID_COMMAND,
    UssdError.TIMEOUT: ErrorKind.TIMEOUT,
    UssdError.SERVICE_UNAVAILABLE: ErrorKind.CARRIER_FAILURE,
    UssdError.USSD_FAILED: ErrorKind.CARRIER_FAILURE,
    UssdError.NOT_SUPPORTED: ErrorKind.CARRIER_FAILURE,
    UssdError.SESSION_ENDED: ErrorKind.NOT_FOUND,
}


def state_to_result(state: UssdState) -> Result:
    """Convert a settled session state to a shell Result."""
    if state.kind == UssdStateKind.INTERACTIVE:
        return Result.success(
            f"{state.response.text}\n(Reply with an option, or 'cancel ussd' to end)",
            payload=state.response,
        )
    if state.kind == UssdStateKind.SUCCESS:
        return Result.success(state.response.text, payload=state.response)
    if state.kind == UssdStateKind.LEGACY_DIALING:
        return Result.success(f"Dialing {state.code} via system dialer")
    if state.kind == UssdStateKind.ERROR:
        kind = _ERROR_KINDS.get(state.error, ErrorKind.EXECUTION_FAILED)
        if kind == ErrorKind.INVALID_COMMAND:
            return Result.invalid(state.message or "Invalid USSD code")
        return Result.failure(state.message or "USSD error", error=kind)
    if state.kind == UssdStateKind.IDLE:
        return Result.success("USSD session closed")
    return Result.success(f"Running {state.code}...")


class UssdSessionManager:
    """Executes service codes and tracks the interactive session.

    One request is in flight at a time. Each request waits for the first of
    the carrier's answer or the timeout; whichever loses is ignored.
    """

    def __init__(
        self,
        adapter: CarrierAdapter,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        history_limit: int = 50,
        default_sim_slot: int = 0,
        rules: list[MenuRule] | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            adapter: Carrier adapter used to run sessions
            timeout_seconds: How long to wait for each carrier response
            history_limit: Number of past responses to keep
            default_sim_slot: Slot used when execute() is not given one
            rules: Interactive menu rules (defaults to the built-in table)
        """
        self.adapter = adapter
        self.timeout_seconds = timeout_seconds
        self.default_sim_slot = default_sim_slot
        self.rules = rules
        self.state = UssdState.idle()
        self.last_response: UssdResponse | None = None
        self.history: deque[UssdResponse] = deque(maxlen=history_limit)
        self._listeners: list[Callable[[UssdState], None]] = []
        self._handle: Any = None
        self._session_code: str | None = None
        self._session_slot: int | None = None
        self._pending: asyncio.Future | None = None

    @property
    def has_active_session(self) -> bool:
        """True while an interactive menu is waiting for a reply."""
        return self._handle is not None and self.state.kind == UssdStateKind.INTERACTIVE

    def add_listener(self, listener: Callable[[UssdState], None]) -> None:
        """Register a callback invoked on every state change."""
        self._listeners.append(listener)

    def _set_state(self, state: UssdState) -> None:
        self.state = state
        logger.debug("USSD state -> %s", state.kind.value)
        for listener in self._listeners:
            listener(state)

    async def execute(
        self, code: str, sim_slot: int | None = None, is_reply: bool = False
    ) -> UssdState:
        """Send a service code, or a reply to the open interactive session.

        Args:
            code: Service code, or reply text when is_reply is True
            sim_slot: Zero-based SIM slot (defaults to the session's or config's)
            is_reply: Send code unvalidated within the open session

        Returns:
            The settled state: INTERACTIVE, SUCCESS, ERROR or LEGACY_DIALING
        """
        if is_reply:
            if not self.has_active_session:
                state = UssdState.failed("No active USSD session", UssdError.SESSION_ENDED)
                self._set_state(state)
                return state
            request = code.strip()
            slot = self._session_slot if sim_slot is None else sim_slot
        else:
            # A fresh code replaces any open session
            self.end_session()
            request = normalize_code(code)
            if not is_valid_code(request):
                state = UssdState.failed("Invalid USSD code format", UssdError.INVALID_CODE)
                self._set_state(state)
                return state
            self._session_code = request
            slot = self.default_sim_slot if sim_slot is None else sim_slot

        self._session_slot = slot
        return await self._run_request(request, slot)

    async def reply(self, text: str) -> UssdState:
        """Send free-form input (usually a menu digit) to the open session."""
        return await self.execute(text, is_reply=True)

    async def _run_request(self, request: str, slot: int) -> UssdState:
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()
        self._pending = future

        def settle(outcome: tuple[str, Any]) -> None:
            if not future.done():
                future.set_result(outcome)

        callback = ServiceCodeCallback(
            on_response=lambda text: loop.call_soon_threadsafe(settle, ("response", text)),
            on_failure=lambda code: loop.call_soon_threadsafe(settle, ("failure", code)),
        )

        self._set_state(UssdState.executing(request))
        log_info(logger, "USSD request", code=request, sim_slot=slot)

        try:
            self._handle = self.adapter.start_service_code_session(
                request, slot, callback, handle=self._handle
            )
        except NotImplementedError:
            # Also catches ServiceCodeNotSupported
            self._close_session()
            code = self._session_code or request
            state = UssdState.legacy_dialing(code)
            self._set_state(state)
            return state
        except PermissionError as e:
            self._close_session()
            state = UssdState.failed(str(e) or "Phone permission required", UssdError.PERMISSION_DENIED)
            self._set_state(state)
            return state
        except Exception as e:
            logger.error("USSD request failed to start: %s", e, exc_info=True)
            self._close_session()
            state = UssdState.failed(f"Execution failed: {e}", UssdError.EXECUTION_FAILED)
            self._set_state(state)
            return state

        try:
            kind, value = await asyncio.wait_for(future, timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            log_warning(logger, "USSD request timed out", code=request, seconds=self.timeout_seconds)
            self._close_session()
            state = UssdState.failed("Request timed out", UssdError.TIMEOUT)
            self._set_state(state)
            return state
        finally:
            if self._pending is future:
                self._pending = None

        if kind == "cancelled":
            return self.state

        if kind == "failure":
            self._close_session()
            state = UssdState.failed(failure_message(value), UssdError.USSD_FAILED)
            self._set_state(state)
            return state

        return self._handle_response(request, value)

    def _handle_response(self, request: str, text: str) -> UssdState:
        interactive = is_interactive(text, self.rules)
        response = UssdResponse(
            code=self._session_code or request,
            text=text,
            timestamp=datetime.now(),
            is_interactive=interactive,
            session_active=interactive,
        )
        self.last_response = response
        self.history.appendleft(response)

        if interactive:
            state = UssdState.interactive(response)
        else:
            self._close_session()
            state = UssdState.success(response)
        self._set_state(state)
        return state

    def _close_session(self) -> None:
        self._handle = None
        self._session_code = None
        self._session_slot = None

    def end_session(self) -> None:
        """Drop the session handle and any in-flight wait. Leaves state as is."""
        if self._pending is not None and not self._pending.done():
            self._pending.set_result(("cancelled", None))
        self._pending = None
        self._close_session()

    def cancel_session(self) -> None:
        """End an open or in-flight session at the user's request and return to IDLE.

        Safe to call in any state, any number of times. With nothing open
        (e.g. after a timeout already settled the request) it changes nothing.
        """
        open_kinds = (UssdStateKind.EXECUTING, UssdStateKind.INTERACTIVE)
        had_session = (
            self._handle is not None
            or self._pending is not None
            or self.state.kind in open_kinds
        )
        self.end_session()
        if not had_session:
            return
        self.last_response = None
        self._set_state(UssdState.idle())
        logger.info("USSD session cancelled by user")

    def acknowledge_legacy_dial(self) -> None:
        """Return to IDLE once the system dialer has taken over."""
        if self.state.kind == UssdStateKind.LEGACY_DIALING:
            self._set_state(UssdState.idle())

    def get_history(self, n: int | None = None) -> list[UssdResponse]:
        """Past responses, most recent first."""
        items = list(self.history)
        return items if n is None else items[:n]

    def reset(self) -> None:
        self.cancel_session()
        self.last_response = None
        self.history.clear()
        if self.state.kind != UssdStateKind.IDLE:
            self._set_state(UssdState.idle())

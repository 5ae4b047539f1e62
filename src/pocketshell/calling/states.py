"""Call conversation states and the active call session."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pocketshell.telephony.contacts import Contact


class CallStateKind(str, Enum):
    IDLE = "idle"
    IN_CALL = "in_call"
    AWAITING_CALL_METHOD = "awaiting_call_method"
    AWAITING_NUMBER_INPUT = "awaiting_number_input"
    AWAITING_ALIAS_INPUT = "awaiting_alias_input"
    AWAITING_CONTACT_SELECTION = "awaiting_contact_selection"
    AWAITING_SIM_SELECTION = "awaiting_sim_selection"
    SHOW_CONTACT_MODAL = "show_contact_modal"


class CallActionKind(str, Enum):
    CALL = "call"
    SERVICE_CODE = "service_code"


@dataclass(frozen=True)
class CallAction:
    """What to do once a SIM is chosen: place a call or run a service code."""

    kind: CallActionKind
    number: str | None = None
    name: str | None = None
    code: str | None = None

    @classmethod
    def call(cls, number: str, name: str | None = None) -> "CallAction":
        return cls(CallActionKind.CALL, number=number, name=name)

    @classmethod
    def service_code(cls, code: str) -> "CallAction":
        return cls(CallActionKind.SERVICE_CODE, code=code)

    def describe(self) -> str:
        if self.kind == CallActionKind.SERVICE_CODE:
            return f"USSD: {self.code}"
        if self.name:
            return f"Calling {self.name} ({self.number})"
        return f"Calling {self.number}"


@dataclass(frozen=True)
class CallState:
    """Calling conversation state.

    candidates is set for AWAITING_CONTACT_SELECTION, action for
    AWAITING_SIM_SELECTION.
    """

    kind: CallStateKind
    candidates: tuple[Contact, ...] = ()
    action: CallAction | None = None
    query: str | None = None

    @classmethod
    def idle(cls) -> "CallState":
        return cls(CallStateKind.IDLE)

    @classmethod
    def of(cls, kind: CallStateKind) -> "CallState":
        return cls(kind)

    @classmethod
    def awaiting_contact_selection(cls, candidates: list[Contact], query: str) -> "CallState":
        return cls(CallStateKind.AWAITING_CONTACT_SELECTION, candidates=tuple(candidates), query=query)

    @classmethod
    def awaiting_sim_selection(cls, action: CallAction) -> "CallState":
        return cls(CallStateKind.AWAITING_SIM_SELECTION, action=action)


@dataclass
class ActiveCallSession:
    """A placed call, kept until it ends."""

    phone_number: str
    contact_name: str | None
    sim_slot: int
    start_time: datetime

    @property
    def label(self) -> str:
        return self.contact_name or self.phone_number

    def duration_seconds(self, now: datetime) -> int:
        return max(0, int((now - self.start_time).total_seconds()))


def format_duration(seconds: int) -> str:
    """Format seconds as mm:ss, or hh:mm:ss from one hour up."""
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"

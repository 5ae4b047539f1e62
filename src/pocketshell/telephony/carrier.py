"""Carrier session adapter interface.

The adapter is the boundary to the host telephony subsystem. Calls are
fire-and-forget, text messages complete with a SendTextResult, and service
code (USSD) sessions report back through a ServiceCodeCallback.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

# Carrier failure codes reported to ServiceCodeCallback.on_failure
USSD_RETURN_FAILURE = -1
USSD_ERROR_SERVICE_UNAVAIL = -2


class SendTextStatus(str, Enum):
    SUCCESS = "success"
    INVALID_NUMBER = "invalid_number"
    EMPTY_MESSAGE = "empty_message"
    FAILED = "failed"


@dataclass
class SendTextResult:
    """Outcome of a send_text request."""

    status: SendTextStatus
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == SendTextStatus.SUCCESS

    @classmethod
    def success(cls) -> "SendTextResult":
        return cls(SendTextStatus.SUCCESS)

    @classmethod
    def failed(cls, reason: str) -> "SendTextResult":
        return cls(SendTextStatus.FAILED, reason)


@dataclass
class ServiceCodeCallback:
    """Callbacks the adapter invokes when a service code request completes.

    Exactly one of them is expected per request. Late or duplicate calls
    are ignored by the session manager.
    """

    on_response: Callable[[str], None]
    on_failure: Callable[[int], None]


class ServiceCodeNotSupported(NotImplementedError):
    """Raised by an adapter whose platform cannot run service code sessions."""


class CarrierAdapter(ABC):
    """Interface to the host telephony subsystem."""

    @abstractmethod
    def place_call(self, number: str, sim_slot: int) -> None:
        """Start an outgoing call. Does not wait for the call to connect."""
        pass

    @abstractmethod
    def end_call(self) -> None:
        pass

    @abstractmethod
    def send_dtmf(self, digit: str) -> bool:
        """Send a single DTMF tone on the active call.

        Returns:
            True if the tone was sent
        """
        pass

    @abstractmethod
    def toggle_speaker(self, enabled: bool) -> None:
        pass

    @abstractmethod
    def toggle_mute(self, enabled: bool) -> None:
        pass

    def toggle_hold(self, on_hold: bool) -> None:
        """Put the active call on or off hold. Optional for adapters."""
        return None

    @abstractmethod
    async def send_text(self, number: str, body: str, sim_slot: int) -> SendTextResult:
        """Send a text message.

        Args:
            number: Destination phone number
            body: Message text
            sim_slot: Zero-based SIM slot

        Returns:
            SendTextResult describing the outcome
        """
        pass

    @abstractmethod
    def start_service_code_session(
        self,
        code: str,
        sim_slot: int,
        callback: ServiceCodeCallback,
        handle: Any = None,
    ) -> Any:
        """Send a service code, or a reply within an open session.

        Args:
            code: Service code (e.g. "*144#") or reply text for an open session
            sim_slot: Zero-based SIM slot
            callback: Receives the carrier's response or failure code
            handle: Session handle from a previous request when replying

        Returns:
            A session handle to pass back with the next reply

        Raises:
            ServiceCodeNotSupported: If the platform cannot run sessions
        """
        pass

    def available_sim_slots(self) -> list[int]:
        """Zero-based SIM slots that can originate calls and messages."""
        return [0, 1]

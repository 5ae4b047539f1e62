"""Stub carrier adapter for fixture-first development and testing."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from pocketshell.telephony.carrier import (
    CarrierAdapter,
    SendTextResult,
    ServiceCodeCallback,
    ServiceCodeNotSupported,
)

logger = logging.getLogger(__name__)


@dataclass
class SentText:
    number: str
    body: str
    sim_slot: int


@dataclass
class ServiceCodeRequest:
    code: str
    sim_slot: int
    handle: Any


@dataclass
class StubCarrierAdapter(CarrierAdapter):
    """Records every request and answers from canned responses.

    Service code responses are delivered on the next event loop iteration,
    so callers see them asynchronously. A code with no canned response is
    never answered, which lets tests exercise timeouts.

    Attributes:
        ussd_responses: code -> response text, or an int failure code
        send_text_result: Result returned by send_text
        sim_slots: Slots reported by available_sim_slots()
        supports_service_codes: False makes sessions raise ServiceCodeNotSupported
    """

    ussd_responses: dict[str, str | int] = field(default_factory=dict)
    send_text_result: SendTextResult = field(default_factory=SendTextResult.success)
    sim_slots: list[int] = field(default_factory=lambda: [0, 1])
    supports_service_codes: bool = True

    placed_calls: list[tuple[str, int]] = field(default_factory=list)
    ended_calls: int = 0
    dtmf_sent: list[str] = field(default_factory=list)
    speaker_states: list[bool] = field(default_factory=list)
    mute_states: list[bool] = field(default_factory=list)
    hold_states: list[bool] = field(default_factory=list)
    sent_texts: list[SentText] = field(default_factory=list)
    service_code_requests: list[ServiceCodeRequest] = field(default_factory=list)

    def place_call(self, number: str, sim_slot: int) -> None:
        logger.debug("Stub place_call on slot %s", sim_slot)
        self.placed_calls.append((number, sim_slot))

    def end_call(self) -> None:
        self.ended_calls += 1

    def send_dtmf(self, digit: str) -> bool:
        self.dtmf_sent.append(digit)
        return True

    def toggle_speaker(self, enabled: bool) -> None:
        self.speaker_states.append(enabled)

    def toggle_mute(self, enabled: bool) -> None:
        self.mute_states.append(enabled)

    def toggle_hold(self, on_hold: bool) -> None:
        self.hold_states.append(on_hold)

    async def send_text(self, number: str, body: str, sim_slot: int) -> SendTextResult:
        self.sent_texts.append(SentText(number=number, body=body, sim_slot=sim_slot))
        return self.send_text_result

    def start_service_code_session(
        self,
        code: str,
        sim_slot: int,
        callback: ServiceCodeCallback,
        handle: Any = None,
    ) -> Any:
        if not self.supports_service_codes:
            raise ServiceCodeNotSupported("Service code sessions are not supported")

        handle = handle or f"ussd-session-{len(self.service_code_requests) + 1}"
        self.service_code_requests.append(ServiceCodeRequest(code, sim_slot, handle))

        response = self.ussd_responses.get(code)
        if response is not None:
            loop = asyncio.get_running_loop()
            if isinstance(response, int):
                loop.call_soon(callback.on_failure, response)
            else:
                loop.call_soon(callback.on_response, response)
        return handle

    def available_sim_slots(self) -> list[int]:
        return list(self.sim_slots)

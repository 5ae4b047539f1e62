"""Calling conversation engine.

Resolves a call target (number, alias, contact search), asks for a SIM
when needed, places the call and then interprets in-call control input
(end, speaker, mute, hold, DTMF) until the call ends.
"""

import logging
import re
from datetime import datetime
from typing import Awaitable, Callable

from pocketshell.aliases.store import AliasStore
from pocketshell.aliases.suggestions import is_relationship_word
from pocketshell.calling.states import (
    ActiveCallSession,
    CallAction,
    CallActionKind,
    CallState,
    CallStateKind,
    format_duration,
)
from pocketshell.commands.results import ErrorKind, Result, ResultStatus
from pocketshell.config import DEFAULT_USSD_SHORTCUTS
from pocketshell.logging_utils import log_info
from pocketshell.telephony.carrier import CarrierAdapter
from pocketshell.telephony.contacts import Contact, ContactProvider
from pocketshell.telephony.numbers import is_ussd_code, is_valid_phone_number, normalize_number
from pocketshell.ussd.manager import UssdSessionManager, state_to_result

logger = logging.getLogger(__name__)

CALL_PREFIXES = ("call ", "dial ", "phone ")
GENERIC_CALL_PHRASES = {"call", "dial", "make a call", "make call", "place a call", "place call"}
END_CALL_INPUTS = {"x", "end", "hangup", "cut"}
CANCEL_INPUTS = {"cancel", "exit", "quit", "q"}
IN_CALL_HELP = "X=End S=Speaker M=Mute H=Hold 0-9*#=DTMF"

_SIM_SUFFIX = re.compile(r"\s+sim\s*([12])\b", re.IGNORECASE)
_DTMF = re.compile(r"^[0-9*#]+$")


def extract_sim_slot(text: str) -> tuple[str, int | None]:
    """Split an inline "sim 1" / "sim2" suffix off a command.

    Returns:
        The text without the suffix, and the zero-based slot or None
    """
    match = _SIM_SUFFIX.search(text)
    if not match:
        return text, None
    cleaned = (text[: match.start()] + text[match.end():]).strip()
    return cleaned, int(match.group(1)) - 1


def strip_alias_prefix(target: str) -> str:
    """Drop a leading "my " or "to " from a spoken target."""
    target = target.strip()
    lowered = target.lower()
    for prefix in ("my ", "to "):
        if lowered.startswith(prefix):
            return target[len(prefix):].strip()
    return target


class CallingEngine:
    """State machine for the calling conversation.

    Holds one CallState at a time. Input is routed by state through a
    handler table; text that matches the calling-command grammar always
    restarts resolution, even during a call.
    """

    def __init__(
        self,
        adapter: CarrierAdapter,
        contacts: ContactProvider,
        aliases: AliasStore,
        ussd: UssdSessionManager,
        shortcuts: dict[str, str] | None = None,
        contact_search_limit: int = 10,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.adapter = adapter
        self.contacts = contacts
        self.aliases = aliases
        self.ussd = ussd
        self.shortcuts = dict(DEFAULT_USSD_SHORTCUTS if shortcuts is None else shortcuts)
        self.contact_search_limit = contact_search_limit
        self.clock = clock

        self.state = CallState.idle()
        self.active_call: ActiveCallSession | None = None
        self.speaker_on = False
        self.muted = False
        self.on_hold = False

        self._handlers: dict[CallStateKind, Callable[[str], Awaitable[Result]]] = {
            CallStateKind.IDLE: self.handle_command,
            CallStateKind.IN_CALL: self._handle_in_call,
            CallStateKind.AWAITING_CALL_METHOD: self._handle_call_method,
            CallStateKind.AWAITING_NUMBER_INPUT: self._handle_number_input,
            CallStateKind.AWAITING_ALIAS_INPUT: self._handle_alias_input,
            CallStateKind.AWAITING_CONTACT_SELECTION: self._handle_contact_selection,
            CallStateKind.AWAITING_SIM_SELECTION: self._handle_sim_selection,
            CallStateKind.SHOW_CONTACT_MODAL: self._handle_alias_input,
        }

    @property
    def is_active(self) -> bool:
        """True when the engine is waiting for input or a call is up."""
        return self.state.kind != CallStateKind.IDLE

    def _match_shortcut(self, lowered: str) -> str | None:
        for phrase in sorted(self.shortcuts, key=len, reverse=True):
            if lowered == phrase or lowered.startswith(phrase + " "):
                return self.shortcuts[phrase]
        return None

    def is_calling_command(self, text: str) -> bool:
        """Check whether text is a calling command rather than conversational input."""
        lowered, _ = extract_sim_slot(text.strip().lower())
        if lowered in GENERIC_CALL_PHRASES:
            return True
        if lowered.startswith(CALL_PREFIXES):
            return True
        return self._match_shortcut(lowered) is not None

    async def handle_input(self, text: str) -> Result:
        """Feed one line of user input to the engine.

        Args:
            text: Raw input line

        Returns:
            Result describing what happened and what is expected next
        """
        text = text.strip()

        if self.state.kind != CallStateKind.IDLE and self.is_calling_command(text):
            if self.state.kind == CallStateKind.IN_CALL:
                self._finish_call(remote=False)
            self.state = CallState.idle()
            return await self.handle_command(text)

        if self.state.kind not in (CallStateKind.IDLE, CallStateKind.IN_CALL):
            if text.lower() in CANCEL_INPUTS:
                return self.cancel()

        return await self._handlers[self.state.kind](text)

    async def handle_command(self, text: str) -> Result:
        """Start a new calling conversation from a command line."""
        text, sim_slot = extract_sim_slot(text.strip())
        lowered = text.lower()

        if lowered in GENERIC_CALL_PHRASES:
            self.state = CallState.of(CallStateKind.AWAITING_CALL_METHOD)
            return Result.prompt(
                "How would you like to make a call?\n"
                "1. Enter phone number\n"
                "2. Use alias\n"
                "3. Choose from contacts\n"
                "Enter your choice (1-3):",
                awaiting=self.state.kind.value,
            )

        for prefix in CALL_PREFIXES:
            if lowered.startswith(prefix):
                return await self._resolve_target(text[len(prefix):].strip(), sim_slot)

        code = self._match_shortcut(lowered)
        if code is not None:
            return await self._select_sim(CallAction.service_code(code), sim_slot)

        return Result.invalid(
            "Unknown calling command. Try 'call <name/number>' or 'check balance'"
        )

    async def _resolve_target(self, target: str, sim_slot: int | None) -> Result:
        if not target:
            return await self.handle_command("call")

        if is_ussd_code(target):
            return await self._select_sim(CallAction.service_code(target), sim_slot)

        if is_valid_phone_number(target):
            return await self._select_sim(CallAction.call(normalize_number(target)), sim_slot)

        name = strip_alias_prefix(target)
        alias = self.aliases.get(name)
        if alias is not None:
            action = CallAction.call(alias.phone_number, alias.contact_name)
            return await self._select_sim(action, sim_slot)

        matches = self.contacts.search(name, limit=self.contact_search_limit)
        if not matches:
            self.state = CallState.idle()
            return self._no_match(name)
        if len(matches) == 1:
            contact = matches[0]
            return await self._select_sim(CallAction.call(contact.phone_number, contact.name), sim_slot)

        self.state = CallState.awaiting_contact_selection(matches, name)
        return self._contact_selection_prompt(matches, name)

    def _no_match(self, name: str) -> Result:
        alias = name.lower()
        if is_relationship_word(alias):
            return Result.not_found(
                f"Alias '{alias}' is not set up yet\n"
                f"Set it up with: alias {alias} = <contact name>\n"
                "Or use 'call <phone number>' to dial directly"
            )
        return Result.not_found(
            f"No contact found for '{name}'\n"
            "Tip: Use 'call <phone number>' to dial directly\n"
            f"Or set up an alias: alias {alias} = <contact name>"
        )

    def _contact_selection_prompt(self, matches: list[Contact], name: str) -> Result:
        lines = [f"Multiple contacts found for '{name}':"]
        lines.extend(f"{i}. {c.name} - {c.phone_number}" for i, c in enumerate(matches, 1))
        lines.append("Enter number to select contact:")
        return Result.prompt(
            "\n".join(lines),
            awaiting=CallStateKind.AWAITING_CONTACT_SELECTION.value,
            error=ErrorKind.AMBIGUOUS_TARGET,
        )

    async def _select_sim(self, action: CallAction, sim_slot: int | None) -> Result:
        slots = self.adapter.available_sim_slots()
        if sim_slot is not None:
            if sim_slot not in slots:
                return Result.invalid(f"Invalid SIM selection. SIM {sim_slot + 1} is not available")
            return await self._execute(action, sim_slot)

        if not slots:
            self.state = CallState.idle()
            return Result.failure("No SIM card available", error=ErrorKind.CARRIER_FAILURE)
        if len(slots) == 1:
            return await self._execute(action, slots[0])

        self.state = CallState.awaiting_sim_selection(action)
        lines = [action.describe(), "Select SIM:"]
        lines.extend(f"{slot + 1}. SIM {slot + 1}" for slot in slots)
        return Result.prompt("\n".join(lines), awaiting=self.state.kind.value)

    async def _execute(self, action: CallAction, sim_slot: int) -> Result:
        if action.kind == CallActionKind.SERVICE_CODE:
            self.state = CallState.idle()
            ussd_state = await self.ussd.execute(action.code, sim_slot=sim_slot)
            return state_to_result(ussd_state)

        self.adapter.place_call(action.number, sim_slot)
        self.active_call = ActiveCallSession(
            phone_number=action.number,
            contact_name=action.name,
            sim_slot=sim_slot,
            start_time=self.clock(),
        )
        self.speaker_on = self.muted = self.on_hold = False
        self.state = CallState.of(CallStateKind.IN_CALL)
        log_info(logger, "Call placed", number=action.number, sim_slot=sim_slot)
        return Result.success(
            f"Calling {self.active_call.label} (SIM {sim_slot + 1})... | X=End S=Spkr M=Mute",
            payload=self.active_call,
        )

    async def _handle_call_method(self, text: str) -> Result:
        choice = text.strip()
        if choice == "1":
            self.state = CallState.of(CallStateKind.AWAITING_NUMBER_INPUT)
            return Result.prompt("Enter phone number:", awaiting=self.state.kind.value)
        if choice == "2":
            self.state = CallState.of(CallStateKind.AWAITING_ALIAS_INPUT)
            return Result.prompt("Enter alias name:", awaiting=self.state.kind.value)
        if choice == "3":
            self.state = CallState.of(CallStateKind.SHOW_CONTACT_MODAL)
            return Result.prompt(
                "Opening contact picker... (or type a name to search)",
                awaiting=self.state.kind.value,
            )
        return Result.invalid("Invalid choice. Please enter 1, 2, or 3")

    async def _handle_number_input(self, text: str) -> Result:
        if is_ussd_code(text):
            return await self._select_sim(CallAction.service_code(text), None)
        if not is_valid_phone_number(text):
            return Result(
                status=ResultStatus.INVALID_COMMAND,
                message="Invalid phone number. Please enter a valid number:",
                payload={"awaiting": self.state.kind.value},
                error=ErrorKind.INVALID_NUMBER,
            )
        return await self._select_sim(CallAction.call(normalize_number(text)), None)

    async def _handle_alias_input(self, text: str) -> Result:
        name = strip_alias_prefix(text)
        if not name:
            return Result.prompt("Enter alias name:", awaiting=self.state.kind.value)

        alias = self.aliases.get(name)
        if alias is not None:
            return await self._select_sim(
                CallAction.call(alias.phone_number, alias.contact_name), None
            )

        matches = self.contacts.search(name, limit=self.contact_search_limit)
        if len(matches) == 1:
            contact = matches[0]
            return await self._select_sim(CallAction.call(contact.phone_number, contact.name), None)
        if matches:
            self.state = CallState.awaiting_contact_selection(matches, name)
            return self._contact_selection_prompt(matches, name)

        self.state = CallState.idle()
        return Result.not_found(
            f"No alias or contact found for '{name}'\n"
            f"Set up an alias with: alias {name.lower()} = <contact name>"
        )

    async def _handle_contact_selection(self, text: str) -> Result:
        candidates = self.state.candidates
        try:
            index = int(text.strip())
        except ValueError:
            index = 0
        if not 1 <= index <= len(candidates):
            return Result.invalid(
                f"Invalid selection. Please enter a number between 1 and {len(candidates)}"
            )
        contact = candidates[index - 1]
        return await self._select_sim(CallAction.call(contact.phone_number, contact.name), None)

    async def _handle_sim_selection(self, text: str) -> Result:
        choice = text.strip()
        slot = {"1": 0, "2": 1}.get(choice)
        if slot is None or slot not in self.adapter.available_sim_slots():
            return Result.invalid("Invalid SIM selection. Please enter 1 or 2")
        return await self._execute(self.state.action, slot)

    async def pick_contact(self, contact: Contact) -> Result:
        """Resume the flow with a contact chosen in the picker."""
        return await self._select_sim(CallAction.call(contact.phone_number, contact.name), None)

    # In-call control

    def _call_status(self, message: str) -> Result:
        session = self.active_call
        duration = format_duration(session.duration_seconds(self.clock()))
        icons = ""
        if self.speaker_on:
            icons += "[SPK] "
        if self.muted:
            icons += "[MUTE] "
        if self.on_hold:
            icons += "[HOLD] "
        return Result.success(f"{session.label} [{duration}] {icons}-> {message}", payload=session)

    async def _handle_in_call(self, text: str) -> Result:
        if self.active_call is None:
            self.state = CallState.idle()
            return Result.failure("No active call session", error=ErrorKind.NOT_FOUND)

        command = text.strip().lower()
        if command in END_CALL_INPUTS:
            return self.end_call()
        if command in ("s", "speaker"):
            self.speaker_on = not self.speaker_on
            self.adapter.toggle_speaker(self.speaker_on)
            return self._call_status(f"Speaker {'ON' if self.speaker_on else 'OFF'}")
        if command in ("m", "mute"):
            self.muted = not self.muted
            self.adapter.toggle_mute(self.muted)
            return self._call_status(f"Mic {'MUTED' if self.muted else 'ON'}")
        if command in ("h", "hold"):
            self.on_hold = not self.on_hold
            self.adapter.toggle_hold(self.on_hold)
            return self._call_status(f"Hold {'ON' if self.on_hold else 'OFF'}")
        if command in ("?", "help"):
            return self._call_status(IN_CALL_HELP)
        if command and _DTMF.match(command):
            sent = "".join(digit for digit in command if self.adapter.send_dtmf(digit))
            return self._call_status(f"Sent: {sent}")

        return Result.invalid("Unknown. Press ? for help")

    def _finish_call(self, remote: bool) -> Result:
        session = self.active_call
        if not remote:
            self.adapter.end_call()
        self.active_call = None
        self.speaker_on = self.muted = self.on_hold = False
        self.state = CallState.idle()

        if session is None:
            return Result.failure("No active call session", error=ErrorKind.NOT_FOUND)

        duration = format_duration(session.duration_seconds(self.clock()))
        log_info(logger, "Call ended", remote=remote, duration=duration)
        prefix = "Call ended by other party" if remote else "Call ended"
        return Result.success(f"{prefix}: {session.label} [{duration}]", payload=session)

    def end_call(self) -> Result:
        """Hang up the active call and return to IDLE."""
        return self._finish_call(remote=False)

    def on_remote_ended(self) -> Result:
        """Carrier notification that the other party hung up."""
        return self._finish_call(remote=True)

    def cancel(self) -> Result:
        """Abandon any pending selection. An active call is left untouched."""
        if self.state.kind == CallStateKind.IN_CALL:
            return Result.invalid("A call is in progress. Press X to end it")
        self.state = CallState.idle()
        return Result.success("Call cancelled")

    def reset(self) -> None:
        if self.active_call is not None:
            self.adapter.end_call()
        self.active_call = None
        self.speaker_on = self.muted = self.on_hold = False
        self.state = CallState.idle()

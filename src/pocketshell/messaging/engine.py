"""Messaging conversation engine.

Drives sending a text across as many turns as it takes to learn the
recipient and the body, plus the inbox, read and quick-reply commands and
contact alias setup.
"""

import logging
import re
from typing import Awaitable, Callable

from pocketshell.aliases.store import AliasStore, ContactAlias
from pocketshell.aliases.suggestions import SUGGESTED_ALIASES
from pocketshell.commands.results import ErrorKind, Result, ResultStatus
from pocketshell.logging_utils import log_error, log_info
from pocketshell.messaging.inbox import build_inbox, format_inbox, format_thread, search_threads
from pocketshell.messaging.intents import IntentKind, MessageIntentParser, MessagingIntent
from pocketshell.messaging.states import (
    ConversationState,
    ConversationStateKind,
    Recipient,
    ReplyContext,
    SelectionPurpose,
)
from pocketshell.telephony.carrier import CarrierAdapter, SendTextResult, SendTextStatus
from pocketshell.telephony.contacts import Contact, ContactProvider
from pocketshell.telephony.message_store import MessageStore
from pocketshell.telephony.numbers import is_valid_phone_number, normalize_number

logger = logging.getLogger(__name__)

_ALIAS_SETUP = re.compile(
    r"^(?:set\s+alias|alias|set)\s+([\w-]+)\s*(?:=|\bas\b)\s*(.+)$", re.IGNORECASE
)
_ALIAS_SETUP_SHORT = re.compile(r"^alias\s+([\w-]+)\s+(.+)$", re.IGNORECASE)
# `alias name=value` with no spaces is the shell alias built-in
_SHELL_ALIAS_FORM = re.compile(r"^alias\s+[^\s=]+=\S")
_ALIAS_REMOVE = re.compile(r"^(?:unalias|alias\s+remove|remove\s+alias)\s+([\w-]+)$", re.IGNORECASE)
_TYPED_NUMBER = re.compile(r"^\+?[0-9\s-]{7,}$")

CANCEL_INPUTS = {"cancel", "exit", "quit", "q"}
CONFIRM_INPUTS = {"yes", "y", "send", "ok", "confirm"}
REJECT_INPUTS = {"no", "n", "cancel"}
INBOX_COMMANDS = {"inbox", "messages"}
CLOSE_CHAT_COMMANDS = {"close chat", "exit chat", "done chat"}
# Only while a conversation is open
SHORT_CLOSE_COMMANDS = {"close", "done"}
LIST_ALIAS_COMMANDS = {"aliases", "alias list", "list aliases", "alias suggestions"}

RECIPIENT_MENU = (
    "Who should receive the message?\n"
    "1. Enter phone number\n"
    "2. Choose from contacts\n"
    "3. Use alias\n"
    "4. Cancel\n"
    "Or type a number, alias or contact name:"
)


class MessagingEngine:
    """State machine for the messaging conversation.

    Exactly one ConversationState is active. The pending recipient and
    pending message form a single pair that is cleared whenever the
    conversation returns to NONE. The reply context opened by `read` is
    kept separately and survives unrelated commands.
    """

    def __init__(
        self,
        adapter: CarrierAdapter,
        contacts: ContactProvider,
        aliases: AliasStore,
        message_store: MessageStore,
        sim_slot: int = 0,
        contact_search_limit: int = 10,
        inbox_limit: int = 20,
        require_confirmation: bool = False,
    ) -> None:
        """Initialize the engine.

        Args:
            adapter: Carrier adapter used to send texts
            contacts: Address book for recipient search
            aliases: Shared contact alias store
            message_store: Stored messages for inbox and read
            sim_slot: Slot used to send texts
            contact_search_limit: Maximum candidates offered in a selection
            inbox_limit: Maximum threads listed by `inbox`
            require_confirmation: Ask before sending once recipient and body are known
        """
        self.adapter = adapter
        self.contacts = contacts
        self.aliases = aliases
        self.message_store = message_store
        self.sim_slot = sim_slot
        self.contact_search_limit = contact_search_limit
        self.inbox_limit = inbox_limit
        self.require_confirmation = require_confirmation
        self.parser = MessageIntentParser(aliases)

        self.state = ConversationState.none()
        self.pending_recipient: Recipient | None = None
        self.pending_message: str | None = None
        self.pending_alias: str | None = None
        self.alias_setup_name: str | None = None
        self.reply_context: ReplyContext | None = None

        self._handlers: dict[ConversationStateKind, Callable[[str], Awaitable[Result]]] = {
            ConversationStateKind.NONE: self.handle_command,
            ConversationStateKind.AWAITING_RECIPIENT_CHOICE: self._handle_recipient_choice,
            ConversationStateKind.AWAITING_PHONE_NUMBER: self._handle_phone_number,
            ConversationStateKind.AWAITING_ALIAS_NAME: self._handle_alias_name,
            ConversationStateKind.AWAITING_MESSAGE_BODY: self._handle_message_body,
            ConversationStateKind.AWAITING_CONFIRMATION: self._handle_confirmation,
            ConversationStateKind.AWAITING_ALIAS_SELECTION: self._handle_alias_selection,
            ConversationStateKind.AWAITING_ALIAS_PHONE_NUMBER: self._handle_alias_phone_number,
            ConversationStateKind.AWAITING_CONTACT_PICK: self._handle_contact_pick,
            ConversationStateKind.AWAITING_CONTACT_LIST_SELECTION: self._handle_contact_list_selection,
            ConversationStateKind.AWAITING_CONTACT_LIST_SELECTION_FOR_READ: self._handle_read_selection,
            ConversationStateKind.AWAITING_THREAD_SELECTION: self._handle_read_selection,
            ConversationStateKind.SENDING: self._handle_while_sending,
        }

    @property
    def is_active(self) -> bool:
        """True while a conversation is waiting for input."""
        return self.state.kind != ConversationStateKind.NONE

    def _prompt(self, kind: ConversationStateKind, message: str) -> Result:
        self.state = ConversationState.of(kind)
        return Result.prompt(message, awaiting=kind.value)

    def _stay(self, message: str, error: ErrorKind = ErrorKind.INVALID_COMMAND) -> Result:
        """Reject input without leaving the current state."""
        return Result(
            ResultStatus.INVALID_COMMAND,
            message,
            {"awaiting": self.state.kind.value},
            error=error,
        )

    def _clear_pending(self) -> None:
        self.state = ConversationState.none()
        self.pending_recipient = None
        self.pending_message = None
        self.pending_alias = None
        self.alias_setup_name = None

    # Command recognition

    def is_alias_setup(self, text: str) -> bool:
        text = text.strip()
        if _SHELL_ALIAS_FORM.match(text) or _ALIAS_REMOVE.match(text):
            return False
        if _ALIAS_SETUP.match(text):
            return True
        return bool(_ALIAS_SETUP_SHORT.match(text))

    def is_messaging_command(self, text: str) -> bool:
        """Check whether a line belongs to the messaging engine."""
        stripped = text.strip()
        lowered = stripped.lower()
        if not lowered:
            return False
        first = lowered.split()[0]
        if lowered in INBOX_COMMANDS or lowered == "unread":
            return True
        if first in ("read", "chat") and len(lowered.split()) > 1:
            # `read notes.txt` stays a file command
            target = lowered.split(None, 1)[1]
            return "/" not in target and not re.search(r"\.\w{1,4}$", target)
        if first == "reply":
            return True
        if lowered in CLOSE_CHAT_COMMANDS or lowered in LIST_ALIAS_COMMANDS:
            return True
        if lowered in SHORT_CLOSE_COMMANDS and self.reply_context is not None:
            return True
        if _ALIAS_REMOVE.match(stripped) or self.is_alias_setup(stripped):
            return True
        return self.parser.is_message_command(stripped)

    # Entry points

    async def handle_input(self, text: str) -> Result:
        """Feed one line of user input to the engine."""
        text = text.strip()
        if self.is_active and self.state.kind != ConversationStateKind.SENDING:
            if text.lower() in CANCEL_INPUTS:
                return self.cancel()
        return await self._handlers[self.state.kind](text)

    async def handle_command(self, text: str) -> Result:
        """Start a messaging command from the idle state."""
        text = text.strip()
        lowered = text.lower()
        words = lowered.split()
        first = words[0] if words else ""

        if lowered in INBOX_COMMANDS:
            return self.show_inbox()
        if lowered == "unread":
            return self.show_inbox(unread_only=True)
        if first in ("read", "chat"):
            return self.open_thread(text.split(None, 1)[1] if len(words) > 1 else "")
        if first == "reply":
            return await self.quick_reply(text[len("reply"):].strip())
        if lowered in CLOSE_CHAT_COMMANDS or lowered in SHORT_CLOSE_COMMANDS:
            return self.close_thread()
        if lowered in LIST_ALIAS_COMMANDS:
            return self.list_aliases()

        remove = _ALIAS_REMOVE.match(text)
        if remove:
            return self.remove_alias(remove.group(1))
        if self.is_alias_setup(text):
            return self._handle_alias_command(text)

        intent = self.parser.parse(text)
        return await self.handle_intent(intent)

    async def handle_intent(self, intent: MessagingIntent) -> Result:
        """Act on a parsed intent, starting a conversation if details are missing."""
        self._clear_pending()

        if intent.kind == IntentKind.SEND_TO_ALIAS:
            contact = intent.contact
            self.pending_message = intent.message
            recipient = Recipient(contact.phone_number, contact.contact_name, contact.alias)
            return await self._proceed_with_recipient(recipient)

        if intent.kind == IntentKind.SEND_TO_NUMBER:
            number = normalize_number(intent.number)
            known = self.contacts.find_by_number(number)
            self.pending_message = intent.message
            return await self._proceed_with_recipient(
                Recipient(number, known.name if known else None)
            )

        if intent.kind == IntentKind.ALIAS_NOT_FOUND:
            self.pending_alias = intent.alias
            self.pending_message = intent.message
            return self._prompt(
                ConversationStateKind.AWAITING_ALIAS_SELECTION,
                f"Alias '{intent.alias}' is not set up yet.\n"
                "1. Pick a contact for it\n"
                "2. Enter a phone number for it\n"
                "3. Cancel",
            )

        if intent.kind == IntentKind.INVALID_NUMBER:
            return Result.failure(
                f"Invalid phone number: {intent.number}", error=ErrorKind.INVALID_NUMBER
            )

        if intent.kind == IntentKind.NEED_RECIPIENT:
            self.pending_message = intent.message
            return self._prompt(ConversationStateKind.AWAITING_RECIPIENT_CHOICE, RECIPIENT_MENU)

        return Result.invalid("Not a messaging command")

    async def on_contact_selected(self, contact: Contact) -> Result:
        """Picker callback: the user chose a contact while one was expected."""
        if self.state.kind not in (
            ConversationStateKind.AWAITING_CONTACT_PICK,
            ConversationStateKind.AWAITING_RECIPIENT_CHOICE,
        ):
            return Result.invalid("No contact selection is pending")
        return await self._proceed_with_recipient(Recipient.from_contact(contact))

    def cancel(self) -> Result:
        """Abandon the current conversation. The reply context is kept."""
        was_active = self.is_active
        self._clear_pending()
        return Result.success("Message cancelled" if was_active else "Nothing to cancel")

    def reset(self) -> None:
        self._clear_pending()
        self.reply_context = None

    # Recipient resolution

    async def _proceed_with_recipient(self, recipient: Recipient) -> Result:
        if self.pending_alias:
            self._save_alias(self.pending_alias, recipient.number, recipient.name)
            recipient = Recipient(recipient.number, recipient.name, self.pending_alias)
            self.pending_alias = None

        self.pending_recipient = recipient
        if not self.pending_message:
            return self._prompt(
                ConversationStateKind.AWAITING_MESSAGE_BODY,
                f"Message to {recipient.label}:",
            )
        if self.require_confirmation:
            return self._confirmation_prompt()
        return await self._send()

    def _confirmation_prompt(self) -> Result:
        return self._prompt(
            ConversationStateKind.AWAITING_CONFIRMATION,
            f"Send to {self.pending_recipient.label}: \"{self.pending_message}\"?\n"
            "Reply yes to send, no to cancel, or edit to change the message",
        )

    def _search_contacts(self, query: str) -> list[Contact]:
        return self.contacts.search(query, limit=self.contact_search_limit)

    def _contact_list_prompt(
        self, matches: list[Contact], query: str, purpose: SelectionPurpose
    ) -> Result:
        self.state = ConversationState.contact_list(matches, purpose)
        lines = [f"Multiple contacts found for '{query}':"]
        lines.extend(f"{i}. {c.name} - {c.phone_number}" for i, c in enumerate(matches, 1))
        lines.append("Enter a number to select, or 'cancel':")
        return Result.prompt(
            "\n".join(lines),
            awaiting=self.state.kind.value,
            error=ErrorKind.AMBIGUOUS_TARGET,
        )

    async def _resolve_free_text(self, text: str) -> Result | None:
        """Try text as a number, alias or contact search. None if nothing matched."""
        if _TYPED_NUMBER.match(text) and is_valid_phone_number(text):
            number = normalize_number(text)
            known = self.contacts.find_by_number(number)
            return await self._proceed_with_recipient(Recipient(number, known.name if known else None))

        alias = self.aliases.get(text)
        if alias is not None:
            return await self._proceed_with_recipient(
                Recipient(alias.phone_number, alias.contact_name, alias.alias)
            )

        matches = self._search_contacts(text)
        if len(matches) == 1:
            return await self._proceed_with_recipient(Recipient.from_contact(matches[0]))
        if matches:
            return self._contact_list_prompt(matches, text, SelectionPurpose.RECIPIENT)
        return None

    async def _handle_recipient_choice(self, text: str) -> Result:
        if text == "1":
            return self._prompt(ConversationStateKind.AWAITING_PHONE_NUMBER, "Enter phone number:")
        if text == "2":
            return self._prompt(
                ConversationStateKind.AWAITING_CONTACT_PICK,
                "Opening contacts... or type a name to search:",
            )
        if text == "3":
            return self._prompt(ConversationStateKind.AWAITING_ALIAS_NAME, "Enter alias:")
        if text == "4":
            return self.cancel()

        result = await self._resolve_free_text(text) if text else None
        if result is not None:
            return result
        return self._stay(f"No number, alias or contact matches '{text}'. Enter 1, 2, 3 or 4:")

    async def _handle_phone_number(self, text: str) -> Result:
        if not is_valid_phone_number(text):
            return self._stay(
                "Invalid phone number. Enter a valid number or 'cancel':",
                error=ErrorKind.INVALID_NUMBER,
            )
        number = normalize_number(text)
        known = self.contacts.find_by_number(number)
        return await self._proceed_with_recipient(Recipient(number, known.name if known else None))

    async def _handle_alias_name(self, text: str) -> Result:
        alias = self.aliases.get(text.lower().removeprefix("my ").strip())
        if alias is None:
            return self._stay(
                f"No alias '{text}'. Enter another alias or 'cancel':", error=ErrorKind.NOT_FOUND
            )
        return await self._proceed_with_recipient(
            Recipient(alias.phone_number, alias.contact_name, alias.alias)
        )

    async def _handle_contact_pick(self, text: str) -> Result:
        if not text:
            return self._stay("Type a contact name to search, or 'cancel':")
        matches = self._search_contacts(text)
        if len(matches) == 1:
            return await self._proceed_with_recipient(Recipient.from_contact(matches[0]))
        if matches:
            return self._contact_list_prompt(matches, text, SelectionPurpose.RECIPIENT)
        return self._stay(f"No contact found for '{text}'. Try another name or 'cancel':", ErrorKind.NOT_FOUND)

    def _selected_candidate(self, text: str) -> Contact | None:
        try:
            index = int(text)
        except ValueError:
            return None
        if 1 <= index <= len(self.state.candidates):
            return self.state.candidates[index - 1]
        return None

    async def _handle_contact_list_selection(self, text: str) -> Result:
        contact = self._selected_candidate(text)
        if contact is None:
            return self._stay(
                f"Invalid selection. Enter 1-{len(self.state.candidates)} or 'cancel':"
            )

        if self.state.purpose == SelectionPurpose.ALIAS_SETUP:
            alias = self._save_alias(self.alias_setup_name, contact.phone_number, contact.name, contact.id)
            self._clear_pending()
            return Result.success(
                f"Alias '{alias.alias}' set to {contact.name} ({contact.phone_number})",
                payload=alias,
            )
        return await self._proceed_with_recipient(Recipient.from_contact(contact))

    # Body and confirmation

    async def _handle_message_body(self, text: str) -> Result:
        if not text.strip():
            return self._stay("Empty message. Type your message or 'cancel':", ErrorKind.EMPTY_MESSAGE)
        self.pending_message = text
        if self.require_confirmation:
            return self._confirmation_prompt()
        return await self._send()

    async def _handle_confirmation(self, text: str) -> Result:
        answer = text.lower()
        if answer in CONFIRM_INPUTS:
            return await self._send()
        if answer in REJECT_INPUTS:
            return self.cancel()
        if answer == "edit":
            return self._prompt(
                ConversationStateKind.AWAITING_MESSAGE_BODY,
                f"New message to {self.pending_recipient.label}:",
            )
        return self._stay("Reply yes to send, no to cancel, or edit to change the message")

    async def _handle_while_sending(self, text: str) -> Result:
        return self._stay("Still sending the previous message")

    # Unknown alias during a send

    async def _handle_alias_selection(self, text: str) -> Result:
        if text == "1":
            return self._prompt(
                ConversationStateKind.AWAITING_CONTACT_PICK,
                f"Type a contact name for '{self.pending_alias}':",
            )
        if text == "2":
            return self._prompt(
                ConversationStateKind.AWAITING_ALIAS_PHONE_NUMBER,
                f"Enter phone number for '{self.pending_alias}':",
            )
        if text == "3":
            return self.cancel()
        return self._stay("Please enter 1, 2, or 3:")

    async def _handle_alias_phone_number(self, text: str) -> Result:
        if not is_valid_phone_number(text):
            return self._stay(
                "Invalid phone number. Enter a valid number or 'cancel':",
                error=ErrorKind.INVALID_NUMBER,
            )
        number = normalize_number(text)
        known = self.contacts.find_by_number(number)
        return await self._proceed_with_recipient(Recipient(number, known.name if known else None))

    # Sending

    async def _send(self) -> Result:
        recipient = self.pending_recipient
        body = self.pending_message or ""
        self.state = ConversationState.of(ConversationStateKind.SENDING)

        try:
            if not is_valid_phone_number(recipient.number):
                outcome = SendTextResult(SendTextStatus.INVALID_NUMBER)
            elif not body.strip():
                outcome = SendTextResult(SendTextStatus.EMPTY_MESSAGE)
            else:
                outcome = await self.adapter.send_text(recipient.number, body, self.sim_slot)
        except Exception as e:
            log_error(logger, "send_text failed", number=recipient.number, error=str(e))
            outcome = SendTextResult.failed(str(e))
        finally:
            self._clear_pending()

        return self._send_result(recipient, body, outcome)

    def _send_result(self, recipient: Recipient, body: str, outcome: SendTextResult) -> Result:
        if outcome.status == SendTextStatus.SUCCESS:
            self.message_store.record_outgoing(recipient.number, body)
            log_info(logger, "Message sent", number=recipient.number, body=body)
            return Result.success(f"Sent to {recipient.label}", payload=recipient)
        if outcome.status == SendTextStatus.INVALID_NUMBER:
            return Result.failure("Invalid phone number", error=ErrorKind.INVALID_NUMBER)
        if outcome.status == SendTextStatus.EMPTY_MESSAGE:
            return Result.failure("Empty message", error=ErrorKind.EMPTY_MESSAGE)
        return Result.failure(
            f"Failed to send: {outcome.reason or 'unknown error'}",
            error=ErrorKind.CARRIER_FAILURE,
        )

    # Alias management

    def _save_alias(
        self, name: str, number: str, contact_name: str | None, contact_id: str | None = None
    ) -> ContactAlias:
        if contact_id is None:
            known = self.contacts.find_by_number(number)
            contact_id = known.id if known else f"number:{normalize_number(number)}"
            contact_name = contact_name or (known.name if known else None)
        return self.aliases.set(
            ContactAlias(
                alias=name,
                contact_id=contact_id,
                contact_name=contact_name or number,
                phone_number=normalize_number(number),
            )
        )

    def _handle_alias_command(self, text: str) -> Result:
        match = _ALIAS_SETUP.match(text) or _ALIAS_SETUP_SHORT.match(text)
        name = match.group(1).lower()
        value = match.group(2).strip().strip("\"'")

        if is_valid_phone_number(value):
            alias = self._save_alias(name, value, None)
            return Result.success(f"Alias \"{alias.alias}\" set to {alias.phone_number}", payload=alias)

        matches = self._search_contacts(value)
        if len(matches) == 1:
            contact = matches[0]
            alias = self._save_alias(name, contact.phone_number, contact.name, contact.id)
            return Result.success(
                f"Alias '{alias.alias}' set to {contact.name} ({contact.phone_number})",
                payload=alias,
            )
        if matches:
            self._clear_pending()
            self.alias_setup_name = name
            return self._contact_list_prompt(matches, value, SelectionPurpose.ALIAS_SETUP)

        return Result.not_found(f"No contact found for '{value}'")

    def remove_alias(self, name: str) -> Result:
        if self.aliases.remove(name):
            return Result.success(f"Alias '{name.lower()}' removed")
        return Result.not_found(f"Alias '{name.lower()}' is not set")

    def list_aliases(self) -> Result:
        saved = self.aliases.all()
        lines = []
        if saved:
            lines.append("Saved aliases:")
            lines.extend(
                f"  {key} -> {a.contact_name} ({a.phone_number})" for key, a in sorted(saved.items())
            )
        else:
            lines.append("No aliases saved yet")
        unused = [s for s in SUGGESTED_ALIASES if s.alias not in saved]
        if unused:
            lines.append("Suggestions: " + ", ".join(f"{s.emoji} {s.alias}" for s in unused[:12]))
            lines.append("Set one with: alias <name> = <contact name or number>")
        return Result.success("\n".join(lines), payload=[a.to_dict() for a in saved.values()])

    # Inbox, read and quick reply

    def show_inbox(self, unread_only: bool = False) -> Result:
        """List recent threads. Does not touch the conversation state."""
        conversations = build_inbox(
            self.message_store, self.contacts, limit=self.inbox_limit, unread_only=unread_only
        )
        title = "Unread" if unread_only else "Inbox"
        return Result.success(format_inbox(conversations, title), payload=conversations)

    def _open(self, address: str, name: str | None) -> Result:
        messages = self.message_store.messages_for(address)
        self.message_store.mark_read(address)
        self.reply_context = ReplyContext(address=normalize_number(address), name=name)
        label = self.reply_context.label
        if not messages:
            return Result.success(
                f"No messages with {label} yet. Type 'reply <message>' to start",
                payload=self.reply_context,
            )
        return Result.success(format_thread(label, messages), payload=self.reply_context)

    def open_thread(self, target: str) -> Result:
        """Open a conversation by alias, number, or contact/thread name."""
        target = target.strip()
        if not target:
            return Result.invalid("Usage: read <alias, name or number>")

        alias = self.aliases.get(target.lower().removeprefix("my ").strip())
        if alias is not None:
            return self._open(alias.phone_number, alias.contact_name)

        if is_valid_phone_number(target):
            known = self.contacts.find_by_number(target)
            return self._open(target, known.name if known else None)

        threads = search_threads(
            build_inbox(self.message_store, self.contacts, limit=50), target
        )
        if len(threads) == 1:
            return self._open(threads[0].address, threads[0].contact_name)
        if threads:
            candidates = [
                Contact(id=f"thread:{t.address}", name=t.label, phone_number=t.address)
                for t in threads[: self.contact_search_limit]
            ]
            self._clear_pending()
            self.state = ConversationState.thread_selection(candidates)
            lines = [f"{len(threads)} conversations match '{target}':"]
            lines.extend(
                f"{i}. {t.label}" + (f" ({t.unread_count} unread)" if t.unread_count else "")
                for i, t in enumerate(threads[: self.contact_search_limit], 1)
            )
            lines.append("Enter a number to open, or 'cancel':")
            return Result.prompt(
                "\n".join(lines), awaiting=self.state.kind.value, error=ErrorKind.AMBIGUOUS_TARGET
            )

        matches = self._search_contacts(target)
        if len(matches) == 1:
            return self._open(matches[0].phone_number, matches[0].name)
        if matches:
            self._clear_pending()
            self.state = ConversationState.contact_list_for_read(matches)
            lines = [f"Multiple contacts found for '{target}':"]
            lines.extend(f"{i}. {c.name} - {c.phone_number}" for i, c in enumerate(matches, 1))
            lines.append("Enter a number to open, or 'cancel':")
            return Result.prompt(
                "\n".join(lines), awaiting=self.state.kind.value, error=ErrorKind.AMBIGUOUS_TARGET
            )

        return Result.not_found(f"No conversation found for '{target}'")

    async def _handle_read_selection(self, text: str) -> Result:
        contact = self._selected_candidate(text)
        if contact is None:
            return self._stay(f"Invalid selection. Enter 1-{self.state.count} or 'cancel':")
        self._clear_pending()
        name = None if contact.name == contact.phone_number else contact.name
        return self._open(contact.phone_number, name)

    async def quick_reply(self, text: str) -> Result:
        """Send to the open thread without resolving a recipient again."""
        if self.reply_context is None:
            return Result.invalid("No open conversation. Use 'read <contact>' first")
        if not text.strip():
            return Result.failure("Empty message", error=ErrorKind.EMPTY_MESSAGE)

        context = self.reply_context
        try:
            outcome = await self.adapter.send_text(context.address, text, self.sim_slot)
        except Exception as e:
            log_error(logger, "Quick reply failed", number=context.address, error=str(e))
            outcome = SendTextResult.failed(str(e))
        return self._send_result(Recipient(context.address, context.name), text, outcome)

    def close_thread(self) -> Result:
        if self.reply_context is None:
            return Result.success("No open conversation")
        label = self.reply_context.label
        self.reply_context = None
        return Result.success(f"Closed conversation with {label}")

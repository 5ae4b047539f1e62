"""Messaging conversation states."""

from dataclasses import dataclass
from enum import Enum

from pocketshell.telephony.contacts import Contact


class ConversationStateKind(str, Enum):
    NONE = "none"
    AWAITING_RECIPIENT_CHOICE = "awaiting_recipient_choice"
    AWAITING_PHONE_NUMBER = "awaiting_phone_number"
    AWAITING_ALIAS_NAME = "awaiting_alias_name"
    AWAITING_MESSAGE_BODY = "awaiting_message_body"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    AWAITING_ALIAS_SELECTION = "awaiting_alias_selection"
    AWAITING_ALIAS_PHONE_NUMBER = "awaiting_alias_phone_number"
    AWAITING_CONTACT_PICK = "awaiting_contact_pick"
    AWAITING_CONTACT_LIST_SELECTION = "awaiting_contact_list_selection"
    AWAITING_CONTACT_LIST_SELECTION_FOR_READ = "awaiting_contact_list_selection_for_read"
    AWAITING_THREAD_SELECTION = "awaiting_thread_selection"
    SENDING = "sending"


class SelectionPurpose(str, Enum):
    """What a numbered contact list selection is for."""

    RECIPIENT = "recipient"
    ALIAS_SETUP = "alias_setup"


@dataclass(frozen=True)
class Recipient:
    """A resolved send target."""

    number: str
    name: str | None = None
    alias: str | None = None

    @property
    def label(self) -> str:
        if self.name and self.name != self.number:
            return f"{self.name} ({self.number})"
        return self.number

    @classmethod
    def from_contact(cls, contact: Contact) -> "Recipient":
        return cls(number=contact.phone_number, name=contact.name)


@dataclass(frozen=True)
class ConversationState:
    """Messaging conversation state.

    candidates holds contacts (or thread recipients) for the selection
    states; count is the number of threads offered in thread selection.
    """

    kind: ConversationStateKind
    candidates: tuple[Contact, ...] = ()
    count: int = 0
    purpose: SelectionPurpose = SelectionPurpose.RECIPIENT

    @classmethod
    def none(cls) -> "ConversationState":
        return cls(ConversationStateKind.NONE)

    @classmethod
    def of(cls, kind: ConversationStateKind) -> "ConversationState":
        return cls(kind)

    @classmethod
    def contact_list(
        cls, candidates: list[Contact], purpose: SelectionPurpose = SelectionPurpose.RECIPIENT
    ) -> "ConversationState":
        return cls(
            ConversationStateKind.AWAITING_CONTACT_LIST_SELECTION,
            candidates=tuple(candidates),
            count=len(candidates),
            purpose=purpose,
        )

    @classmethod
    def contact_list_for_read(cls, candidates: list[Contact]) -> "ConversationState":
        return cls(
            ConversationStateKind.AWAITING_CONTACT_LIST_SELECTION_FOR_READ,
            candidates=tuple(candidates),
            count=len(candidates),
        )

    @classmethod
    def thread_selection(cls, candidates: list[Contact]) -> "ConversationState":
        return cls(
            ConversationStateKind.AWAITING_THREAD_SELECTION,
            candidates=tuple(candidates),
            count=len(candidates),
        )


@dataclass(frozen=True)
class ReplyContext:
    """The thread opened by `read`, used by `reply` until closed."""

    address: str
    name: str | None = None

    @property
    def label(self) -> str:
        return self.name or self.address

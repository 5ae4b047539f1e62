"""Inbox projection over the message store."""

from dataclasses import dataclass
from datetime import datetime

from pocketshell.telephony.contacts import ContactProvider
from pocketshell.telephony.message_store import MessageStore, StoredMessage
from pocketshell.telephony.numbers import digits_only, normalize_number

PREVIEW_LENGTH = 40


@dataclass(frozen=True)
class InboxConversation:
    """Latest state of one message thread."""

    address: str
    contact_name: str | None
    last_message: str
    last_message_time: datetime
    unread_count: int
    is_outgoing: bool

    @property
    def label(self) -> str:
        return self.contact_name or self.address


def _thread_key(address: str) -> str:
    digits = digits_only(address)
    return digits[-9:] if len(digits) >= 9 else normalize_number(address)


def build_inbox(
    store: MessageStore,
    contacts: ContactProvider | None = None,
    limit: int = 20,
    unread_only: bool = False,
) -> list[InboxConversation]:
    """Group messages into threads, most recent first.

    Args:
        store: Message store to read from
        contacts: Used to put names on addresses
        limit: Maximum number of threads
        unread_only: Only include threads with unread messages

    Returns:
        One InboxConversation per address
    """
    latest: dict[str, StoredMessage] = {}
    unread: dict[str, int] = {}
    order: list[str] = []

    for message in store.list_messages():
        key = _thread_key(message.address)
        if key not in latest:
            latest[key] = message
            order.append(key)
        if not message.is_outgoing and not message.is_read:
            unread[key] = unread.get(key, 0) + 1

    conversations = []
    for key in order:
        message = latest[key]
        count = unread.get(key, 0)
        if unread_only and count == 0:
            continue
        contact = contacts.find_by_number(message.address) if contacts else None
        conversations.append(
            InboxConversation(
                address=normalize_number(message.address),
                contact_name=contact.name if contact else None,
                last_message=message.body,
                last_message_time=message.timestamp,
                unread_count=count,
                is_outgoing=message.is_outgoing,
            )
        )
        if len(conversations) >= limit:
            break
    return conversations


def search_threads(conversations: list[InboxConversation], keyword: str) -> list[InboxConversation]:
    """Threads whose contact name or address contains the keyword."""
    keyword = keyword.lower()
    return [
        c
        for c in conversations
        if keyword in c.address.lower() or (c.contact_name and keyword in c.contact_name.lower())
    ]


def _preview(text: str) -> str:
    text = " ".join(text.split())
    if len(text) <= PREVIEW_LENGTH:
        return text
    return text[: PREVIEW_LENGTH - 3] + "..."


def format_inbox(conversations: list[InboxConversation], title: str = "Inbox") -> str:
    """Render threads as numbered lines for the shell."""
    if not conversations:
        return f"{title}: no messages"

    lines = [f"{title} ({len(conversations)}):"]
    for i, conv in enumerate(conversations, 1):
        unread = f" ({conv.unread_count} unread)" if conv.unread_count else ""
        direction = "You: " if conv.is_outgoing else ""
        when = conv.last_message_time.strftime("%b %d %H:%M")
        lines.append(f"{i}. {conv.label}{unread} - {direction}{_preview(conv.last_message)} [{when}]")
    lines.append("Type 'read <name or number>' to open a conversation")
    return "\n".join(lines)


def format_thread(label: str, messages: list[StoredMessage]) -> str:
    """Render a thread in chronological order.

    Args:
        label: Heading for the conversation
        messages: Messages, most recent first (as the store returns them)
    """
    lines = [f"Conversation with {label}:"]
    for message in reversed(messages):
        marker = ">" if message.is_outgoing else "<"
        when = message.timestamp.strftime("%b %d %H:%M")
        lines.append(f"{marker} [{when}] {message.body}")
    lines.append("Type 'reply <message>' to respond, 'close chat' when done")
    return "\n".join(lines)

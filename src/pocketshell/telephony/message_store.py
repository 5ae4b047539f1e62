"""Message store interface: read access to the device SMS database."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from pocketshell.telephony.numbers import normalize_number, numbers_match


@dataclass
class StoredMessage:
    """A single SMS as stored on the device."""

    id: str
    address: str
    body: str
    timestamp: datetime
    is_outgoing: bool = False
    is_read: bool = True


class MessageStore(ABC):
    """Access to stored text messages."""

    @abstractmethod
    def list_messages(self) -> list[StoredMessage]:
        """Return all messages, most recent first."""
        pass

    @abstractmethod
    def messages_for(self, address: str, limit: int = 20) -> list[StoredMessage]:
        """Return up to `limit` most recent messages exchanged with an address."""
        pass

    @abstractmethod
    def mark_read(self, address: str) -> int:
        """Mark all incoming messages from an address as read.

        Returns:
            Number of messages changed
        """
        pass

    def record_outgoing(self, address: str, body: str) -> None:
        """Record a sent message. Stores that track outgoing mail themselves may ignore it."""
        return None


class InMemoryMessageStore(MessageStore):
    """Message store backed by a list, for tests and development."""

    def __init__(self, messages: list[StoredMessage] | None = None) -> None:
        self._messages: list[StoredMessage] = list(messages or [])

    def add(self, message: StoredMessage) -> None:
        self._messages.append(message)

    def list_messages(self) -> list[StoredMessage]:
        return sorted(self._messages, key=lambda m: m.timestamp, reverse=True)

    def messages_for(self, address: str, limit: int = 20) -> list[StoredMessage]:
        thread = [m for m in self.list_messages() if numbers_match(m.address, address)]
        return thread[:limit]

    def mark_read(self, address: str) -> int:
        changed = 0
        for message in self._messages:
            if not message.is_outgoing and not message.is_read and numbers_match(
                message.address, address
            ):
                message.is_read = True
                changed += 1
        return changed

    def record_outgoing(self, address: str, body: str) -> None:
        self._messages.append(
            StoredMessage(
                id=f"out-{len(self._messages) + 1}",
                address=normalize_number(address),
                body=body,
                timestamp=datetime.now(),
                is_outgoing=True,
            )
        )

"""Contact lookup interface and an in-memory implementation."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from pocketshell.telephony.numbers import numbers_match


@dataclass(frozen=True)
class Contact:
    """A contact from the device address book."""

    id: str
    name: str
    phone_number: str
    photo_ref: str | None = None


class ContactProvider(ABC):
    """Read-only access to the device address book."""

    @abstractmethod
    def search(self, query: str, limit: int = 10) -> list[Contact]:
        """Find contacts whose name contains the query (case-insensitive).

        Args:
            query: Free-text name fragment
            limit: Maximum number of results

        Returns:
            Matching contacts, best match first
        """
        pass

    @abstractmethod
    def get(self, contact_id: str) -> Contact | None:
        pass

    @abstractmethod
    def find_by_number(self, number: str) -> Contact | None:
        pass


class InMemoryContactProvider(ContactProvider):
    """Contact provider backed by a list, for tests and development."""

    def __init__(self, contacts: list[Contact] | None = None) -> None:
        self._contacts: list[Contact] = list(contacts or [])

    def add(self, contact: Contact) -> None:
        self._contacts.append(contact)

    def search(self, query: str, limit: int = 10) -> list[Contact]:
        query = query.strip().lower()
        if not query:
            return []

        # Exact names first, then prefix matches, then substring matches
        def rank(contact: Contact) -> int:
            name = contact.name.lower()
            if name == query:
                return 0
            if name.startswith(query):
                return 1
            return 2

        matches = [c for c in self._contacts if query in c.name.lower()]
        matches.sort(key=lambda c: (rank(c), c.name.lower()))
        return matches[:limit]

    def get(self, contact_id: str) -> Contact | None:
        for contact in self._contacts:
            if contact.id == contact_id:
                return contact
        return None

    def find_by_number(self, number: str) -> Contact | None:
        for contact in self._contacts:
            if numbers_match(contact.phone_number, number):
                return contact
        return None

"""Contact alias store: short names mapped to a contact and phone number."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Any

from pocketshell.logging_utils import log_info

logger = logging.getLogger(__name__)


def normalize_alias(alias: str) -> str:
    """Alias keys are stored trimmed and lowercase."""
    return alias.strip().lower()


@dataclass(frozen=True)
class ContactAlias:
    """A user-defined alias pointing at one contact's number."""

    alias: str
    contact_id: str
    contact_name: str
    phone_number: str
    photo_ref: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "alias": self.alias,
            "contact_id": self.contact_id,
            "contact_name": self.contact_name,
            "phone_number": self.phone_number,
            "photo_ref": self.photo_ref,
        }


class AliasStore(ABC):
    """Durable alias mapping shared by the calling and messaging engines.

    Keys are lowercase. Setting an existing alias replaces it. Readers do
    not lock; a pending call or send keeps the number it already resolved.
    """

    @abstractmethod
    def get(self, alias: str) -> ContactAlias | None:
        pass

    @abstractmethod
    def set(self, alias: ContactAlias) -> ContactAlias:
        """Create or replace an alias.

        Returns:
            The stored alias, with its key normalized
        """
        pass

    @abstractmethod
    def remove(self, alias: str) -> bool:
        pass

    @abstractmethod
    def all(self) -> dict[str, ContactAlias]:
        pass

    def has(self, alias: str) -> bool:
        return self.get(alias) is not None

    def resolve_number(self, alias: str) -> str | None:
        """Return the phone number an alias points at, if any."""
        found = self.get(alias)
        return found.phone_number if found else None

    def for_contact(self, contact_id: str) -> list[str]:
        """List every alias that points at a contact."""
        return sorted(a.alias for a in self.all().values() if a.contact_id == contact_id)

    def search(self, query: str) -> list[ContactAlias]:
        """Find aliases whose key or contact name contains the query."""
        query = query.lower()
        return [
            a
            for key, a in sorted(self.all().items())
            if query in key or query in a.contact_name.lower()
        ]


class InMemoryAliasStore(AliasStore):
    """Alias store kept in a dict, for tests and embedded use."""

    def __init__(self, aliases: list[ContactAlias] | None = None) -> None:
        self._aliases: dict[str, ContactAlias] = {}
        for alias in aliases or []:
            self.set(alias)

    def get(self, alias: str) -> ContactAlias | None:
        return self._aliases.get(normalize_alias(alias))

    def set(self, alias: ContactAlias) -> ContactAlias:
        stored = replace(alias, alias=normalize_alias(alias.alias))
        self._aliases[stored.alias] = stored
        log_info(logger, "Alias set", alias=stored.alias, number=stored.phone_number)
        return stored

    def remove(self, alias: str) -> bool:
        return self._aliases.pop(normalize_alias(alias), None) is not None

    def all(self) -> dict[str, ContactAlias]:
        return dict(self._aliases)

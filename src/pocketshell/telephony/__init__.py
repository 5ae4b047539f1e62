"""Telephony collaborators: carrier adapter, contacts and message store."""

from pocketshell.telephony.carrier import (
    CarrierAdapter,
    SendTextResult,
    SendTextStatus,
    ServiceCodeCallback,
    ServiceCodeNotSupported,
)
from pocketshell.telephony.contacts import Contact, ContactProvider, InMemoryContactProvider
from pocketshell.telephony.message_store import InMemoryMessageStore, MessageStore, StoredMessage
from pocketshell.telephony.stub_carrier import StubCarrierAdapter

__all__ = [
    "CarrierAdapter",
    "Contact",
    "ContactProvider",
    "InMemoryContactProvider",
    "InMemoryMessageStore",
    "MessageStore",
    "SendTextResult",
    "SendTextStatus",
    "ServiceCodeCallback",
    "ServiceCodeNotSupported",
    "StoredMessage",
    "StubCarrierAdapter",
]

"""pytest configuration for PocketShell tests."""

import os
import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add src directory to path so tests can import pocketshell
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Set DUCKDB_PATH to :memory: for all tests to ensure test isolation
os.environ["DUCKDB_PATH"] = ":memory:"
# Never try to reach a Redis server from the test suite
os.environ["REDIS_ENABLED"] = "false"

from pocketshell.aliases.store import ContactAlias, InMemoryAliasStore  # noqa: E402
from pocketshell.telephony.contacts import Contact, InMemoryContactProvider  # noqa: E402
from pocketshell.telephony.message_store import InMemoryMessageStore, StoredMessage  # noqa: E402
from pocketshell.telephony.stub_carrier import StubCarrierAdapter  # noqa: E402


@pytest.fixture
def adapter() -> StubCarrierAdapter:
    """Stub carrier with a balance menu and a terminal balance response."""
    return StubCarrierAdapter(
        ussd_responses={
            "*144#": "Your balance is KES 100.50",
            "*544#": "1. Buy data\n2. Check data balance\n0. Exit",
            "1": "Choose bundle:\n1) 1GB @ 99\n2) 5GB @ 250",
            "*100#": -2,
        }
    )


@pytest.fixture
def contacts() -> InMemoryContactProvider:
    return InMemoryContactProvider(
        [
            Contact(id="c1", name="Jane Doe", phone_number="+15550001111"),
            Contact(id="c2", name="John Smith", phone_number="+254712345678"),
            Contact(id="c3", name="John Otieno", phone_number="+254798765432"),
            Contact(id="c4", name="Grace Wanjiku", phone_number="0722000111"),
        ]
    )


@pytest.fixture
def aliases() -> InMemoryAliasStore:
    return InMemoryAliasStore(
        [
            ContactAlias(
                alias="mom",
                contact_id="c1",
                contact_name="Jane",
                phone_number="+15550001111",
            )
        ]
    )


@pytest.fixture
def message_store() -> InMemoryMessageStore:
    return InMemoryMessageStore(
        [
            StoredMessage(
                id="m1",
                address="+254712345678",
                body="Are we still on for lunch?",
                timestamp=datetime(2024, 5, 1, 12, 30),
                is_read=False,
            ),
            StoredMessage(
                id="m2",
                address="+254712345678",
                body="Yes, 1pm",
                timestamp=datetime(2024, 5, 1, 12, 35),
                is_outgoing=True,
            ),
            StoredMessage(
                id="m3",
                address="0722000111",
                body="Call me when you land",
                timestamp=datetime(2024, 5, 2, 8, 0),
                is_read=False,
            ),
            StoredMessage(
                id="m4",
                address="+254798765432",
                body="Thanks!",
                timestamp=datetime(2024, 4, 30, 18, 0),
            ),
        ]
    )

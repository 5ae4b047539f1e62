"""Tests for the pending action manager."""

from datetime import UTC, datetime, timedelta

from pocketshell.commands.pending_actions import PendingActionManager
from pocketshell.commands.results import Action, ActionKind


def _delete_action(path: str = "notes.txt") -> Action:
    return Action(kind=ActionKind.DELETE_FILE, verb="rm", target=path, requires_confirmation=True)


class TestPendingActionManager:
    """Test token creation, confirmation and expiry."""

    def test_create_and_confirm(self) -> None:
        """Test a token confirms exactly once."""
        manager = PendingActionManager()
        pending = manager.create(_delete_action())

        assert pending.summary == "delete_file notes.txt"
        assert manager.confirm(pending.token) is pending
        assert manager.confirm(pending.token) is None

    def test_tokens_are_unique(self) -> None:
        """Test two held actions get different tokens."""
        manager = PendingActionManager()
        first = manager.create(_delete_action("a"))
        second = manager.create(_delete_action("b"))

        assert first.token != second.token

    def test_expired_action_is_dropped(self) -> None:
        """Test an expired token cannot be confirmed."""
        manager = PendingActionManager()
        pending = manager.create(_delete_action())
        pending.expires_at = datetime.now(UTC) - timedelta(seconds=1)

        assert manager.get(pending.token) is None
        assert manager.confirm(pending.token) is None

    def test_latest(self) -> None:
        """Test latest returns the most recent unexpired action."""
        manager = PendingActionManager()
        assert manager.latest() is None

        manager.create(_delete_action("a"))
        second = manager.create(_delete_action("b"))

        assert manager.latest() is second

    def test_cancel(self) -> None:
        """Test cancelling removes the action."""
        manager = PendingActionManager()
        pending = manager.create(_delete_action())

        assert manager.cancel(pending.token) is True
        assert manager.cancel(pending.token) is False
        assert manager.get(pending.token) is None

    def test_cleanup_expired(self) -> None:
        """Test cleanup only removes expired actions."""
        manager = PendingActionManager()
        old = manager.create(_delete_action("a"))
        fresh = manager.create(_delete_action("b"))
        old.expires_at = datetime.now(UTC) - timedelta(seconds=1)

        assert manager.cleanup_expired() == 1
        assert manager.get(fresh.token) is fresh

    def test_to_dict(self) -> None:
        """Test API serialization of a pending action."""
        pending = PendingActionManager().create(_delete_action())
        data = pending.to_dict()

        assert data["token"] == pending.token
        assert data["action"]["kind"] == "delete_file"
        assert "expires_at" in data

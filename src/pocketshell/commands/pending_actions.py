"""Pending action management for the confirmation flow."""

import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from pocketshell.commands.results import Action

logger = logging.getLogger(__name__)


@dataclass
class PendingAction:
    """An action held back until the user confirms it."""

    token: str
    action: Action
    summary: str
    expires_at: datetime

    def is_expired(self) -> bool:
        """Check if this action has expired."""
        return datetime.now(UTC) >= self.expires_at

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "token": self.token,
            "expires_at": self.expires_at.isoformat(),
            "summary": self.summary,
            "action": self.action.to_dict(),
        }


class PendingActionManager:
    """Manage actions awaiting confirmation for one shell session.

    Tokens are short so they can be typed back at the prompt
    (`confirm <token>`). Each token is single-use.
    """

    def __init__(self, default_expiry_seconds: int = 120) -> None:
        """Initialize the manager.

        Args:
            default_expiry_seconds: Time until actions expire (default: 120s)
        """
        self.default_expiry_seconds = default_expiry_seconds
        self._pending: dict[str, PendingAction] = {}

    def create(self, action: Action, expiry_seconds: int | None = None) -> PendingAction:
        """Hold an action for confirmation.

        Args:
            action: The action to execute on confirmation
            expiry_seconds: Custom expiry time, or use default

        Returns:
            PendingAction with a unique token
        """
        token = secrets.token_urlsafe(6)
        expiry = expiry_seconds or self.default_expiry_seconds
        pending = PendingAction(
            token=token,
            action=action,
            summary=action.describe(),
            expires_at=datetime.now(UTC) + timedelta(seconds=expiry),
        )
        self._pending[token] = pending
        logger.debug("Created pending action %s: %s", token, pending.summary)
        return pending

    def get(self, token: str) -> PendingAction | None:
        """Retrieve a pending action by token, dropping it if expired."""
        pending = self._pending.get(token)
        if pending is None:
            return None

        if pending.is_expired():
            del self._pending[token]
            return None

        return pending

    def latest(self) -> PendingAction | None:
        """Return the most recently created unexpired action."""
        self.cleanup_expired()
        if not self._pending:
            return None
        return next(reversed(self._pending.values()))

    def confirm(self, token: str) -> PendingAction | None:
        """Confirm and consume a pending action.

        Returns:
            The PendingAction if valid, None if missing or expired
        """
        pending = self.get(token)
        if pending is None:
            return None

        del self._pending[token]
        return pending

    def cancel(self, token: str) -> bool:
        """Discard a pending action.

        Returns:
            True if the action existed and was removed
        """
        return self._pending.pop(token, None) is not None

    def cleanup_expired(self) -> int:
        """Remove all expired actions.

        Returns:
            Number of actions removed
        """
        expired = [token for token, pending in self._pending.items() if pending.is_expired()]
        for token in expired:
            del self._pending[token]
        return len(expired)

    def clear(self) -> None:
        self._pending.clear()

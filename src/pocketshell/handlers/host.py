"""Host orchestration interface.

The host orchestrator is the boundary to device-level operations the
shell does not implement itself: system settings, power management, app
launching, media control and file access. Methods return a short detail
string on success and raise on failure.
"""

from abc import ABC, abstractmethod
from typing import Any


class HostError(Exception):
    """A host operation failed."""


class AppNotFound(HostError):
    """No installed app matches the requested name."""


class HostOrchestrator(ABC):
    """Abstract base class for host orchestrators."""

    @abstractmethod
    def run_system(self, operation: str, **params: Any) -> str:
        """Run a system operation.

        Args:
            operation: Operation name (e.g. "wifi", "brightness", "reboot")
            **params: Operation parameters (e.g. enabled=True, level=128)

        Returns:
            Detail text from the host (may be empty)

        Raises:
            HostError: If the operation failed
            PermissionError: If the capability has not been granted
        """
        pass

    @abstractmethod
    def open_app(self, name: str) -> str:
        """Launch an app by name or package.

        Raises:
            AppNotFound: If no installed app matches
        """
        pass

    @abstractmethod
    def open_settings(self, section: str | None = None) -> str:
        pass

    @abstractmethod
    def media_control(self, control: str, query: str | None = None) -> str:
        """Send a media control (play, pause, stop, next, previous)."""
        pass

    @abstractmethod
    def navigate(self, destination: str) -> str:
        pass

    @abstractmethod
    def list_files(self, path: str) -> list[str]:
        pass

    @abstractmethod
    def read_file(self, path: str) -> str:
        pass

    @abstractmethod
    def write_file(self, path: str, content: str) -> None:
        pass

    @abstractmethod
    def delete_file(self, path: str) -> None:
        pass

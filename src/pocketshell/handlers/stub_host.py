"""Stub host orchestrator for development and testing.

Records every operation and keeps files in memory. Operations listed in
`failing` raise HostError so failure paths can be exercised.
"""

import posixpath
from typing import Any

from pocketshell.handlers.host import AppNotFound, HostError, HostOrchestrator


class StubHostOrchestrator(HostOrchestrator):
    """In-memory host orchestrator."""

    def __init__(
        self,
        installed_apps: dict[str, str] | None = None,
        files: dict[str, str] | None = None,
        failing: set[str] | None = None,
    ) -> None:
        """Initialize the stub.

        Args:
            installed_apps: Lowercase app name -> package name
            files: Absolute path -> file content
            failing: Operation names that raise HostError
        """
        self.installed_apps = dict(
            installed_apps
            if installed_apps is not None
            else {
                "camera": "com.android.camera",
                "chrome": "com.android.chrome",
                "maps": "com.google.android.apps.maps",
                "music": "com.android.music",
            }
        )
        self.files = dict(files or {})
        self.failing = set(failing or ())
        self.operations: list[tuple[str, dict[str, Any]]] = []

    def _record(self, operation: str, **params: Any) -> None:
        self.operations.append((operation, params))
        if operation in self.failing:
            raise HostError(f"{operation} unavailable")

    def run_system(self, operation: str, **params: Any) -> str:
        self._record(operation, **params)
        if operation == "sysinfo":
            return "Device: stub\nAndroid: 14\nMemory: 8 GB"
        return ""

    def open_app(self, name: str) -> str:
        self._record("open_app", name=name)
        package = self.installed_apps.get(name.lower())
        if package is None:
            raise AppNotFound(f"App not found: {name}")
        return package

    def open_settings(self, section: str | None = None) -> str:
        self._record("open_settings", section=section)
        return section or "main"

    def media_control(self, control: str, query: str | None = None) -> str:
        self._record("media", control=control, query=query)
        return query or ""

    def navigate(self, destination: str) -> str:
        self._record("navigate", destination=destination)
        return destination

    def list_files(self, path: str) -> list[str]:
        self._record("list_files", path=path)
        prefix = path.rstrip("/") + "/"
        names = {
            file_path[len(prefix):].split("/", 1)[0]
            for file_path in self.files
            if file_path.startswith(prefix)
        }
        if not names and path != "/" and path not in self.files:
            raise FileNotFoundError(path)
        return sorted(names)

    def read_file(self, path: str) -> str:
        self._record("read_file", path=path)
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.files[path]

    def write_file(self, path: str, content: str) -> None:
        self._record("write_file", path=path)
        self.files[posixpath.normpath(path)] = content

    def delete_file(self, path: str) -> None:
        self._record("delete_file", path=path)
        if self.files.pop(path, None) is None:
            raise FileNotFoundError(path)

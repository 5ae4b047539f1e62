"""Session context for one shell: environment, shell aliases, cwd and history."""

import logging
import posixpath
import re
import uuid
from collections import deque
from typing import Optional

import redis

from pocketshell.commands.parser import Command
from pocketshell.commands.results import Result

logger = logging.getLogger(__name__)

DEFAULT_ENV = {
    "HOME": "/",
    "USER": "default",
    "SHELL": "pocketshell",
    "LANG": "en_US",
    "PATH": "/bin:/usr/bin",
    "PWD": "/",
}

DEFAULT_ALIASES = {
    "ll": "ls -la",
    "la": "ls -a",
    "..": "cd ..",
    "~": "cd /",
    "h": "history",
    "c": "clear",
}

_EXPORT_LINE = re.compile(r"^(export|alias)\s+([^=\s]+)\s*=\s*(.*)$")


def _strip_quotes(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


class SessionContext:
    """State of a single shell session.

    Holds environment variables, shell-level string aliases (not contact
    aliases), the logical working directory and a bounded command history.
    Built-ins mutate it in place; a shell reset replaces it with a new one.
    """

    def __init__(self, session_id: str | None = None, history_limit: int = 1000) -> None:
        """Initialize a fresh session context.

        Args:
            session_id: Session identifier (generated if omitted)
            history_limit: Maximum number of commands kept in history
        """
        self.session_id = session_id or str(uuid.uuid4())
        self.working_directory = "/"
        self.env: dict[str, str] = dict(DEFAULT_ENV)
        self.aliases: dict[str, str] = dict(DEFAULT_ALIASES)
        self.history: deque[Command] = deque(maxlen=history_limit)
        self.last_command: Command | None = None
        self.last_result: Result | None = None

    # History

    def add_to_history(self, command: Command) -> None:
        """Append a command to history, dropping the oldest past the limit."""
        self.history.append(command)
        self.last_command = command

    def get_history(self, n: int | None = None) -> list[Command]:
        """Return the n most recent commands, most recent first."""
        recent = list(reversed(self.history))
        if n is None:
            return recent
        return recent[: max(n, 0)]

    def clear_history(self) -> None:
        self.history.clear()

    def reset(self) -> None:
        """Restore defaults in place, keeping the session id and history limit."""
        self.working_directory = "/"
        self.env = dict(DEFAULT_ENV)
        self.aliases = dict(DEFAULT_ALIASES)
        self.history.clear()
        self.last_command = None
        self.last_result = None

    # Environment

    def set_env(self, key: str, value: str) -> None:
        self.env[key] = value

    def get_env(self, key: str) -> str | None:
        return self.env.get(key)

    def get_all_env(self) -> dict[str, str]:
        return dict(self.env)

    # Shell aliases

    def set_alias(self, name: str, value: str) -> None:
        self.aliases[name] = value

    def resolve_alias(self, name: str) -> str:
        """Return the expansion of a shell alias, or the name itself."""
        return self.aliases.get(name, name)

    def remove_alias(self, name: str) -> bool:
        return self.aliases.pop(name, None) is not None

    def get_all_aliases(self) -> dict[str, str]:
        return dict(self.aliases)

    # Working directory

    def resolve_path(self, path: str) -> str:
        """Resolve a path against the working directory.

        Purely logical: handles "/", "~", ".", ".." and relative segments
        without touching any file system.
        """
        path = path.strip()
        if not path or path == "~":
            return "/"
        if path.startswith("~/"):
            path = "/" + path[2:]
        if not path.startswith("/"):
            path = posixpath.join(self.working_directory, path)
        resolved = posixpath.normpath(path)
        # normpath keeps a leading "//"
        if resolved.startswith("//"):
            resolved = "/" + resolved.lstrip("/")
        return resolved

    def change_directory(self, path: str | None) -> str:
        """Change the working directory and keep PWD in sync.

        Returns:
            The new working directory
        """
        self.working_directory = self.resolve_path(path or "~")
        self.env["PWD"] = self.working_directory
        return self.working_directory

    # Serialization

    def export_context(self) -> str:
        """Serialize env and aliases as `export K="V"` / `alias K="V"` lines."""
        lines = [f'export {key}="{value}"' for key, value in self.env.items()]
        lines.extend(f'alias {name}="{value}"' for name, value in self.aliases.items())
        return "\n".join(lines) + "\n"

    def import_context(self, data: str) -> None:
        """Load env and alias statements produced by export_context().

        Unrecognized lines are ignored.
        """
        for line in data.splitlines():
            match = _EXPORT_LINE.match(line.strip())
            if not match:
                continue
            kind, key, value = match.groups()
            if kind == "export":
                self.set_env(key, _strip_quotes(value))
            else:
                self.set_alias(key, _strip_quotes(value))

        pwd = self.env.get("PWD")
        if pwd:
            self.working_directory = self.resolve_path(pwd)


class RedisSessionStore:
    """Redis-backed snapshot store for session contexts.

    Persists the export_context() text of a session so env and shell
    aliases survive process restarts.

    This implementation provides:
    - Automatic expiration via Redis TTL
    - Fallback to in-memory if Redis unavailable
    """

    def __init__(
        self,
        redis_client: Optional[redis.Redis] = None,
        default_ttl_seconds: int = 86400,
        key_prefix: str = "shell_context:",
    ) -> None:
        """Initialize the snapshot store.

        Args:
            redis_client: Redis client instance (None to use in-memory fallback)
            default_ttl_seconds: TTL for stored snapshots (default: 1 day)
            key_prefix: Prefix for Redis keys
        """
        self.redis = redis_client
        self.default_ttl_seconds = default_ttl_seconds
        self.key_prefix = key_prefix

        if self.redis is None:
            logger.warning("Redis not available, using in-memory fallback for session snapshots")
            self._fallback: dict[str, str] | None = {}
        else:
            logger.info("Using Redis-backed session snapshot storage")
            self._fallback = None

    def _make_redis_key(self, session_id: str) -> str:
        return f"{self.key_prefix}{session_id}"

    def save(self, context: SessionContext) -> None:
        """Persist a snapshot of the context's env and aliases."""
        snapshot = context.export_context()

        if self._fallback is not None:
            self._fallback[context.session_id] = snapshot
            return

        try:
            self.redis.setex(
                self._make_redis_key(context.session_id), self.default_ttl_seconds, snapshot
            )
            logger.debug("Saved session snapshot for %s", context.session_id[:8])
        except redis.RedisError as e:
            logger.error("Redis error saving session snapshot: %s", e)

    def load(self, session_id: str, history_limit: int = 1000) -> SessionContext | None:
        """Restore a context from its snapshot.

        Returns:
            A new SessionContext, or None if no snapshot exists
        """
        if self._fallback is not None:
            snapshot = self._fallback.get(session_id)
        else:
            try:
                raw = self.redis.get(self._make_redis_key(session_id))
            except redis.RedisError as e:
                logger.error("Redis error loading session snapshot: %s", e)
                return None
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8")
            snapshot = raw

        if snapshot is None:
            return None

        context = SessionContext(session_id=session_id, history_limit=history_limit)
        context.import_context(snapshot)
        return context

    def delete(self, session_id: str) -> None:
        if self._fallback is not None:
            self._fallback.pop(session_id, None)
            return

        try:
            self.redis.delete(self._make_redis_key(session_id))
        except redis.RedisError as e:
            logger.error("Redis error deleting session snapshot: %s", e)

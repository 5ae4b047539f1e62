"""App, settings, media, navigation and file actions."""

from pocketshell.commands.results import Action, ActionKind, Result
from pocketshell.commands.session_context import SessionContext
from pocketshell.handlers.host import HostOrchestrator
from pocketshell.handlers.system import host_result

MEDIA_CONTROLS = {
    ActionKind.MEDIA_PLAY: ("play", "Playing"),
    ActionKind.MEDIA_PAUSE: ("pause", "Paused"),
    ActionKind.MEDIA_STOP: ("stop", "Stopped"),
    ActionKind.MEDIA_NEXT: ("next", "Next track"),
    ActionKind.MEDIA_PREVIOUS: ("previous", "Previous track"),
}


def _full_text(action: Action) -> str | None:
    parts = [p for p in (action.target, action.entity) if p]
    return " ".join(parts) or None


def handle_app(action: Action, host: HostOrchestrator) -> Result:
    """Open an app or a settings page."""
    if action.kind == ActionKind.OPEN_SETTINGS:
        section = _full_text(action)
        return host_result(
            f"Opened {section} settings" if section else "Settings opened",
            "Failed to open settings",
            lambda: host.open_settings(section),
        )

    name = _full_text(action)
    if not name:
        return Result.invalid(f"Usage: {action.verb} <app>")
    return host_result(f"Opened {name}", f"Failed to open {name}", lambda: host.open_app(name))


def handle_media(action: Action, host: HostOrchestrator) -> Result:
    control, label = MEDIA_CONTROLS[action.kind]
    query = _full_text(action)
    message = f"{label}: {query}" if query else label
    return host_result(message, f"Failed to {control}", lambda: host.media_control(control, query))


def handle_navigate(action: Action, host: HostOrchestrator) -> Result:
    destination = _full_text(action)
    if not destination:
        return Result.invalid("Usage: navigate <destination>")
    return host_result(
        f"Navigating to {destination}",
        "Failed to start navigation",
        lambda: host.navigate(destination),
    )


def handle_file(action: Action, host: HostOrchestrator, context: SessionContext) -> Result:
    """Run a file action. Paths are resolved against the working directory.

    Args:
        action: LIST_FILES, READ_FILE, WRITE_FILE or DELETE_FILE action
        host: Host orchestrator that owns the file system
        context: Session supplying the working directory

    Returns:
        Result of the operation
    """
    if action.kind == ActionKind.LIST_FILES:
        # `ls -la` style options are accepted and ignored
        target = action.target if action.target and not action.target.startswith("-") else "."
        path = context.resolve_path(target)
        result = host_result(path, f"Failed to list {path}", lambda: host.list_files(path))
        if result.ok:
            result.message = "\n".join(result.payload) if result.payload else "(empty)"
        return result

    if not action.target:
        return Result.invalid(f"Usage: {action.verb} <path>")
    path = context.resolve_path(action.target)

    if action.kind == ActionKind.READ_FILE:
        result = host_result(path, f"Failed to read {path}", lambda: host.read_file(path))
        if result.ok:
            result.message = result.payload
        return result

    if action.kind == ActionKind.WRITE_FILE:
        content = action.entity or action.params.get("content", "")
        return host_result(
            f"Wrote {len(content)} bytes to {path}",
            f"Failed to write {path}",
            lambda: host.write_file(path, content),
        )

    return host_result(f"Deleted {path}", f"Failed to delete {path}", lambda: host.delete_file(path))

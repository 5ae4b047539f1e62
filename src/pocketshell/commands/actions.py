"""Verb to action mapping."""

from pocketshell.commands.parser import Command
from pocketshell.commands.results import Action, ActionKind
from pocketshell.commands.session_context import SessionContext

SYSTEM_VERBS = frozenset(
    [
        "shutdown",
        "poweroff",
        "reboot",
        "restart",
        "sleep",
        "lock",
        "wifi",
        "data",
        "mobiledata",
        "airplane",
        "bluetooth",
        "bt",
        "brightness",
        "timeout",
        "autobrightness",
        "volume",
        "vol",
        "mute",
        "unmute",
        "settime",
        "settimezone",
        "autotime",
        "freeze",
        "unfreeze",
        "hide",
        "unhide",
        "performance",
        "batterysaver",
        "clearram",
        "clearcache",
        "dnd",
        "notify",
        "developermode",
        "adb",
        "stayawake",
        "animations",
        "location",
        "sysinfo",
        "sys",
        "system",
    ]
)

VERB_ACTIONS: dict[str, ActionKind] = {
    "open": ActionKind.OPEN_APP,
    "launch": ActionKind.OPEN_APP,
    "start": ActionKind.OPEN_APP,
    "settings": ActionKind.OPEN_SETTINGS,
    "call": ActionKind.MAKE_CALL,
    "dial": ActionKind.MAKE_CALL,
    "message": ActionKind.SEND_SMS,
    "sms": ActionKind.SEND_SMS,
    "text": ActionKind.SEND_SMS,
    "play": ActionKind.MEDIA_PLAY,
    "pause": ActionKind.MEDIA_PAUSE,
    "stop": ActionKind.MEDIA_STOP,
    "next": ActionKind.MEDIA_NEXT,
    "previous": ActionKind.MEDIA_PREVIOUS,
    "prev": ActionKind.MEDIA_PREVIOUS,
    "navigate": ActionKind.NAVIGATE,
    "goto": ActionKind.NAVIGATE,
    "go": ActionKind.NAVIGATE,
    "show": ActionKind.QUERY,
    "display": ActionKind.QUERY,
    "get": ActionKind.QUERY,
    "ls": ActionKind.LIST_FILES,
    "list": ActionKind.LIST_FILES,
    "cat": ActionKind.READ_FILE,
    "read": ActionKind.READ_FILE,
    "write": ActionKind.WRITE_FILE,
    "echo": ActionKind.WRITE_FILE,
    "rm": ActionKind.DELETE_FILE,
    "delete": ActionKind.DELETE_FILE,
    "del": ActionKind.DELETE_FILE,
}

DEFAULT_CONFIRM_KINDS = frozenset([ActionKind.DELETE_FILE])


def action_kind_for(verb: str) -> ActionKind:
    """Look up the action kind for a verb (UNKNOWN if there is none)."""
    verb = verb.lower()
    if verb in VERB_ACTIONS:
        return VERB_ACTIONS[verb]
    if verb in SYSTEM_VERBS:
        return ActionKind.SYSTEM
    return ActionKind.UNKNOWN


def command_to_action(
    command: Command,
    context: SessionContext | None = None,
    confirm_kinds: frozenset[ActionKind] = DEFAULT_CONFIRM_KINDS,
) -> Action:
    """Derive the typed action for a parsed command.

    Args:
        command: Parsed command
        context: Session whose shell aliases are expanded on the target
        confirm_kinds: Action kinds that always require confirmation

    Returns:
        Action carrying the command's parts and flags as params
    """
    kind = action_kind_for(command.verb)
    target = command.target
    if target and context is not None:
        target = context.resolve_alias(target)

    return Action(
        kind=kind,
        verb=command.verb,
        target=target,
        entity=command.entity,
        params=dict(command.flags),
        requires_confirmation=kind in confirm_kinds,
        raw=command.raw,
    )

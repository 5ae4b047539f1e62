"""Service code (USSD) sessions."""

from pocketshell.ussd.manager import (
    UssdError,
    UssdResponse,
    UssdSessionManager,
    UssdState,
    UssdStateKind,
    failure_message,
    state_to_result,
)
from pocketshell.ussd.rules import (
    INTERACTIVE_MENU_RULES,
    MenuRule,
    is_interactive,
    is_valid_code,
    normalize_code,
)

__all__ = [
    "INTERACTIVE_MENU_RULES",
    "MenuRule",
    "UssdError",
    "UssdResponse",
    "UssdSessionManager",
    "UssdState",
    "UssdStateKind",
    "failure_message",
    "is_interactive",
    "is_valid_code",
    "normalize_code",
    "state_to_result",
]

"""Command parsing, session context and execution."""

from pocketshell.commands.actions import action_kind_for, command_to_action
from pocketshell.commands.executor import CommandExecutor
from pocketshell.commands.parser import Command, CommandParser, tokenize
from pocketshell.commands.pending_actions import PendingAction, PendingActionManager
from pocketshell.commands.results import (
    Action,
    ActionKind,
    ErrorKind,
    ExecutionOptions,
    Result,
    ResultStatus,
)
from pocketshell.commands.router import ActionRouter
from pocketshell.commands.session_context import RedisSessionStore, SessionContext

__all__ = [
    "Action",
    "ActionKind",
    "ActionRouter",
    "Command",
    "CommandExecutor",
    "CommandParser",
    "ErrorKind",
    "ExecutionOptions",
    "PendingAction",
    "PendingActionManager",
    "RedisSessionStore",
    "Result",
    "ResultStatus",
    "SessionContext",
    "action_kind_for",
    "command_to_action",
    "tokenize",
]

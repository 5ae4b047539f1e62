"""Calling conversation engine."""

from pocketshell.calling.engine import CallingEngine, extract_sim_slot, strip_alias_prefix
from pocketshell.calling.states import (
    ActiveCallSession,
    CallAction,
    CallActionKind,
    CallState,
    CallStateKind,
    format_duration,
)

__all__ = [
    "ActiveCallSession",
    "CallAction",
    "CallActionKind",
    "CallState",
    "CallStateKind",
    "CallingEngine",
    "extract_sim_slot",
    "format_duration",
    "strip_alias_prefix",
]

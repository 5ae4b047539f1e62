"""Shell built-in commands.

Built-ins act on the session context only and never reach the router.
"""

from typing import Callable

from pocketshell.commands.parser import Command
from pocketshell.commands.results import Result
from pocketshell.commands.session_context import SessionContext
from pocketshell.handlers.system import SYSHELP

DEFAULT_HISTORY_COUNT = 10

HELP_TEXT = """Built-in commands:
  cd [path]          Change directory
  pwd                Print working directory
  history [n]        Show recent commands (h)
  clear              Clear screen (c)
  export VAR=value   Set environment variable
  env                Show environment variables
  alias [name=cmd]   List or create shell aliases
  !!                 Repeat last command
  help               Show this help (?)
  syshelp            System command reference

Phone:
  call <name|number|alias> [sim 1|2]   Place a call (or just 'call')
  check balance | my number | ...      Carrier service codes
  text <who> <message>                 Send a message
  inbox | unread | read <who> | reply <message> | close chat
  alias <name> = <contact or number>   Save a contact alias
  aliases | unalias <name>

Other:
  open <app> | settings [section] | play|pause|stop|next|prev
  show battery|storage|time|date|steps|network|device
  ls [path] | cat <file> | write <file> <text> | rm <file>
  confirm <token> | cancel <token>"""

BuiltinHandler = Callable[[Command, SessionContext], Result]


def _cd(command: Command, context: SessionContext) -> Result:
    path = context.change_directory(command.target)
    return Result.success(f"Changed directory to {path}", payload=path)


def _pwd(command: Command, context: SessionContext) -> Result:
    return Result.success(context.working_directory, payload=context.working_directory)


def _history(command: Command, context: SessionContext) -> Result:
    count = DEFAULT_HISTORY_COUNT
    if command.target:
        try:
            count = int(command.target)
        except ValueError:
            return Result.invalid("Usage: history [n]")
        if count <= 0:
            return Result.invalid("Usage: history [n]")

    entries = context.get_history(count)
    lines = [f"{i}. {entry.raw}" for i, entry in enumerate(entries, 1)]
    return Result.success("\n".join(lines), payload=[entry.raw for entry in entries])


def _clear(command: Command, context: SessionContext) -> Result:
    return Result.success("clear_screen", payload="clear")


def _export(command: Command, context: SessionContext) -> Result:
    if not command.target or "=" not in command.target:
        return Result.invalid("Usage: export VAR=value")
    key, value = command.target.split("=", 1)
    if not key:
        return Result.invalid("Usage: export VAR=value")
    # `export GREETING=hello world` keeps the trailing words
    if command.entity:
        value = f"{value} {command.entity}".strip()
    context.set_env(key, value)
    return Result.success(f"Set {key}={value}")


def _env(command: Command, context: SessionContext) -> Result:
    env = context.get_all_env()
    return Result.success("\n".join(f"{key}={value}" for key, value in env.items()), payload=env)


def _alias(command: Command, context: SessionContext) -> Result:
    if not command.target:
        aliases = context.get_all_aliases()
        lines = [f"alias {name}='{value}'" for name, value in aliases.items()]
        return Result.success("\n".join(lines), payload=aliases)

    if "=" not in command.target:
        return Result.invalid("Usage: alias name=value")
    name, value = command.target.split("=", 1)
    if command.entity:
        value = f"{value} {command.entity}".strip()
    if not name:
        return Result.invalid("Usage: alias name=value")
    context.set_alias(name, value)
    return Result.success(f"Set alias {name}='{value}'")


def _repeat(command: Command, context: SessionContext) -> Result:
    # history[0] is this `!!`
    for entry in context.get_history()[1:]:
        if entry.raw.strip() != "!!":
            return Result.success("repeat_last", payload=entry.raw)
    return Result.failure("No previous command")


def _help(command: Command, context: SessionContext) -> Result:
    return Result.success(HELP_TEXT)


def _syshelp(command: Command, context: SessionContext) -> Result:
    return Result.success(SYSHELP)


BUILTINS: dict[str, BuiltinHandler] = {
    "cd": _cd,
    "pwd": _pwd,
    "history": _history,
    "h": _history,
    "clear": _clear,
    "c": _clear,
    "export": _export,
    "env": _env,
    "alias": _alias,
    "!!": _repeat,
    "help": _help,
    "?": _help,
    "syshelp": _syshelp,
}


def get_builtin(verb: str) -> BuiltinHandler | None:
    return BUILTINS.get(verb)

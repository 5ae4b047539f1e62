"""Command executor: the top-level entry point for one line of shell input."""

import asyncio
import logging
import time

from pocketshell.commands.actions import DEFAULT_CONFIRM_KINDS, command_to_action
from pocketshell.commands.builtins import get_builtin
from pocketshell.commands.parser import Command, CommandParser
from pocketshell.commands.pending_actions import PendingActionManager
from pocketshell.commands.results import (
    Action,
    ActionKind,
    ErrorKind,
    ExecutionOptions,
    Result,
)
from pocketshell.commands.router import ActionRouter
from pocketshell.commands.session_context import SessionContext
from pocketshell.logging_utils import log_debug, log_error, log_info, log_warning

logger = logging.getLogger(__name__)


class CommandExecutor:
    """Parse, record, validate and run commands against a session.

    Every path returns a Result stamped with the elapsed time. Handler
    faults and timeouts become Failure results; nothing is raised to the
    caller.
    """

    def __init__(
        self,
        context: SessionContext,
        router: ActionRouter,
        parser: CommandParser | None = None,
        pending_actions: PendingActionManager | None = None,
        confirm_kinds: frozenset[ActionKind] = DEFAULT_CONFIRM_KINDS,
        default_timeout_ms: int = 30000,
    ) -> None:
        """Initialize the executor.

        Args:
            context: Session context the commands run in
            router: Router that dispatches non-built-in actions
            parser: Command parser (a default one is created if omitted)
            pending_actions: Store for actions awaiting confirmation
            confirm_kinds: Action kinds that always need confirmation
            default_timeout_ms: Dispatch timeout when no options are given
        """
        self.context = context
        self.router = router
        self.parser = parser or CommandParser()
        self.pending_actions = pending_actions or PendingActionManager()
        self.confirm_kinds = confirm_kinds
        self.default_timeout_ms = default_timeout_ms

    async def execute(self, text: str, options: ExecutionOptions | None = None) -> Result:
        """Execute one line of input.

        Args:
            text: Raw input line
            options: Confirmation, dry-run and timeout policy

        Returns:
            Result with elapsed_ms set
        """
        options = options or ExecutionOptions(timeout_ms=self.default_timeout_ms)
        start = time.perf_counter()
        try:
            result = await self._execute(text, options)
        except Exception as e:
            log_error(logger, "Command execution failed", command=text, error=str(e), exc_info=True)
            result = Result.failure(f"Execution failed: {e}")

        result = result.with_elapsed((time.perf_counter() - start) * 1000)
        self.context.last_result = result
        log_debug(
            logger,
            "Command handled",
            command=text,
            status=result.status.value,
            elapsed_ms=round(result.elapsed_ms, 1),
        )
        return result

    async def execute_multiple(
        self, text: str, options: ExecutionOptions | None = None
    ) -> list[Result]:
        """Execute `;` / `&&` separated commands in order.

        Stops at the first command that does not succeed.
        """
        results = []
        for command in self.parser.parse_multiple(text):
            result = await self.execute(command.raw.strip(), options)
            results.append(result)
            if not result.ok:
                break
        return results

    async def confirm(self, token: str, timeout_ms: int | None = None) -> Result:
        """Run an action previously held for confirmation.

        Args:
            token: Token from the RequiresConfirmation result
            timeout_ms: Dispatch timeout (defaults to the executor default)

        Returns:
            The action's Result, or NotFound if the token is unknown or expired
        """
        start = time.perf_counter()
        result = await self._confirm(token, timeout_ms or self.default_timeout_ms)
        return result.with_elapsed((time.perf_counter() - start) * 1000)

    def cancel(self, token: str) -> Result:
        if self.pending_actions.cancel(token):
            return Result.success(f"Cancelled pending action {token}")
        return Result.not_found(f"No pending action for token {token}")

    async def _execute(self, text: str, options: ExecutionOptions) -> Result:
        command = self.parser.parse(text)
        if command.is_empty:
            return Result.invalid("Invalid command syntax")

        self.context.add_to_history(command)
        command = self._expand_alias(command)

        if not self.parser.validate(command):
            return Result.invalid("Invalid command syntax")

        builtin = get_builtin(command.verb)
        if builtin is not None:
            return builtin(command, self.context)

        if command.verb == "confirm":
            return await self._confirm_command(command, options)
        if command.verb == "cancel":
            if command.target:
                return self.cancel(command.target)
            return Result.success("Nothing to cancel")

        action = command_to_action(command, self.context, self.confirm_kinds)

        if action.requires_confirmation or options.require_confirmation:
            pending = self.pending_actions.create(action)
            log_info(logger, "Action held for confirmation", kind=action.kind.value, token=pending.token)
            return Result.needs_confirmation(
                f"Command requires confirmation: {command.raw.strip()}. "
                f"Type 'confirm {pending.token}' to proceed",
                payload=pending,
            )

        if options.dry_run:
            return Result.success(f"Dry run: Would execute {action.kind.value}", payload=action)

        return await self._dispatch(action, options.timeout_ms)

    def _expand_alias(self, command: Command) -> Command:
        """Expand a shell alias used as the verb (one level only)."""
        if get_builtin(command.verb) is not None:
            return command
        expansion = self.context.aliases.get(command.verb)
        if expansion is None:
            return command

        rest = command.raw.strip().split(None, 1)
        line = expansion if len(rest) == 1 else f"{expansion} {rest[1]}"
        expanded = self.parser.parse(line)
        return Command(
            raw=command.raw,
            verb=expanded.verb,
            target=expanded.target,
            entity=expanded.entity,
            flags=expanded.flags,
        )

    async def _confirm_command(self, command: Command, options: ExecutionOptions) -> Result:
        token = command.target
        if token is None:
            latest = self.pending_actions.latest()
            if latest is None:
                return Result.not_found("Nothing to confirm")
            token = latest.token
        return await self._confirm(token, options.timeout_ms)

    async def _confirm(self, token: str, timeout_ms: int) -> Result:
        pending = self.pending_actions.confirm(token)
        if pending is None:
            return Result.not_found(f"No pending action for token {token} (it may have expired)")
        log_info(logger, "Confirmed pending action", kind=pending.action.kind.value, token=token)
        return await self._dispatch(pending.action, timeout_ms)

    async def _dispatch(self, action: Action, timeout_ms: int) -> Result:
        try:
            return await asyncio.wait_for(
                self.router.route(action, self.context), timeout=timeout_ms / 1000
            )
        except TimeoutError:
            log_warning(logger, "Command timed out", kind=action.kind.value, timeout_ms=timeout_ms)
            return Result.failure(
                f"Command timed out after {timeout_ms}ms", error=ErrorKind.TIMEOUT
            )
        except Exception as e:
            log_error(logger, "Handler failed", kind=action.kind.value, error=str(e), exc_info=True)
            return Result.failure(f"Execution failed: {e}")

"""Tests for the command executor and shell built-ins."""

import asyncio

import pytest

from pocketshell.commands.executor import CommandExecutor
from pocketshell.commands.pending_actions import PendingAction
from pocketshell.commands.results import (
    Action,
    ActionKind,
    ErrorKind,
    ExecutionOptions,
    ResultStatus,
)
from pocketshell.commands.router import ActionRouter
from pocketshell.commands.session_context import SessionContext
from pocketshell.handlers.query import StubDeviceInfoProvider
from pocketshell.handlers.stub_host import StubHostOrchestrator


class SlowRouter(ActionRouter):
    """Router whose dispatch never finishes in time."""

    async def route(self, action, context):
        await asyncio.sleep(1)
        return await super().route(action, context)


class BrokenRouter(ActionRouter):
    """Router that raises from dispatch."""

    async def route(self, action, context):
        raise RuntimeError("handler exploded")


@pytest.fixture
def host() -> StubHostOrchestrator:
    return StubHostOrchestrator(files={"/sdcard/notes.txt": "buy milk"})


@pytest.fixture
def executor(host: StubHostOrchestrator) -> CommandExecutor:
    return CommandExecutor(SessionContext(), ActionRouter(host, StubDeviceInfoProvider()))


class TestBuiltins:
    """Test built-in commands that act on the session context."""

    @pytest.mark.asyncio
    async def test_cd_and_pwd(self, executor: CommandExecutor) -> None:
        """Test cd changes the directory and pwd prints it."""
        result = await executor.execute("cd /sdcard")
        assert result.ok
        assert result.message == "Changed directory to /sdcard"

        result = await executor.execute("pwd")
        assert result.message == "/sdcard"

    @pytest.mark.asyncio
    async def test_history(self, executor: CommandExecutor) -> None:
        """Test history lists recent commands newest first, including itself."""
        await executor.execute("pwd")
        await executor.execute("cd /sdcard")

        result = await executor.execute("history 2")

        assert result.message == "1. history 2\n2. cd /sdcard"

    @pytest.mark.asyncio
    async def test_history_bad_count(self, executor: CommandExecutor) -> None:
        """Test a non-numeric history count."""
        result = await executor.execute("history lots")

        assert result.status == ResultStatus.INVALID_COMMAND
        assert result.message == "Usage: history [n]"

    @pytest.mark.asyncio
    async def test_clear(self, executor: CommandExecutor) -> None:
        """Test clear returns the clear-screen marker."""
        result = await executor.execute("clear")

        assert result.message == "clear_screen"
        assert result.payload == "clear"

    @pytest.mark.asyncio
    async def test_export_and_env(self, executor: CommandExecutor) -> None:
        """Test export sets a variable and env lists it."""
        result = await executor.execute("export GREETING=hello")
        assert result.message == "Set GREETING=hello"

        result = await executor.execute("env")
        assert "GREETING=hello" in result.message.splitlines()

    @pytest.mark.asyncio
    async def test_export_usage(self, executor: CommandExecutor) -> None:
        """Test export without an assignment."""
        result = await executor.execute("export GREETING")

        assert result.status == ResultStatus.INVALID_COMMAND
        assert result.message == "Usage: export VAR=value"

    @pytest.mark.asyncio
    async def test_alias_set_and_expand(self, executor: CommandExecutor, host) -> None:
        """Test a shell alias is stored and expanded as a verb."""
        result = await executor.execute("alias cam='open camera'")
        assert result.message == "Set alias cam='open camera'"

        result = await executor.execute("cam")

        assert result.ok
        assert result.message == "Opened camera"
        assert host.operations[-1] == ("open_app", {"name": "camera"})

    @pytest.mark.asyncio
    async def test_alias_list(self, executor: CommandExecutor) -> None:
        """Test listing shell aliases."""
        result = await executor.execute("alias")

        assert "alias ll='ls -la'" in result.message.splitlines()

    @pytest.mark.asyncio
    async def test_help_and_syshelp(self, executor: CommandExecutor) -> None:
        """Test the help texts."""
        assert (await executor.execute("help")).message.startswith("Built-in commands:")
        assert (await executor.execute("syshelp")).message.startswith("System commands:")

    @pytest.mark.asyncio
    async def test_repeat_marker(self, executor: CommandExecutor) -> None:
        """Test !! returns the previous command line for re-submission."""
        await executor.execute("pwd")

        result = await executor.execute("!!")

        assert result.message == "repeat_last"
        assert result.payload == "pwd"

    @pytest.mark.asyncio
    async def test_repeat_without_history(self, executor: CommandExecutor) -> None:
        """Test !! as the first command."""
        result = await executor.execute("!!")

        assert result.status == ResultStatus.FAILURE
        assert result.message == "No previous command"


class TestExecute:
    """Test parsing, validation and dispatch."""

    @pytest.mark.asyncio
    async def test_empty_input(self, executor: CommandExecutor) -> None:
        """Test empty input is invalid and not recorded."""
        result = await executor.execute("   ")

        assert result.status == ResultStatus.INVALID_COMMAND
        assert result.message == "Invalid command syntax"
        assert executor.context.get_history() == []

    @pytest.mark.asyncio
    async def test_invalid_shape_is_recorded(self, executor: CommandExecutor) -> None:
        """Test a verb missing its target fails validation but enters history."""
        result = await executor.execute("open")

        assert result.status == ResultStatus.INVALID_COMMAND
        assert result.message == "Invalid command syntax"
        assert executor.context.get_history()[0].raw == "open"

    @pytest.mark.asyncio
    async def test_elapsed_and_last_result(self, executor: CommandExecutor) -> None:
        """Test every result is timed and kept on the context."""
        result = await executor.execute("show battery")

        assert result.elapsed_ms >= 0
        assert executor.context.last_result is result

    @pytest.mark.asyncio
    async def test_unknown_verb(self, executor: CommandExecutor) -> None:
        """Test an unmapped verb."""
        result = await executor.execute("frobnicate now")

        assert result.status == ResultStatus.NOT_FOUND
        assert result.message == "Unknown command: frobnicate"

    @pytest.mark.asyncio
    async def test_dry_run(self, executor: CommandExecutor, host) -> None:
        """Test dry run reports the action without touching the host."""
        result = await executor.execute("open camera", ExecutionOptions(dry_run=True))

        assert result.ok
        assert result.message == "Dry run: Would execute open_app"
        assert isinstance(result.payload, Action)
        assert host.operations == []

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        """Test a dispatch slower than the timeout becomes a Failure."""
        executor = CommandExecutor(
            SessionContext(), SlowRouter(StubHostOrchestrator(), StubDeviceInfoProvider())
        )

        result = await executor.execute("show battery", ExecutionOptions(timeout_ms=20))

        assert result.status == ResultStatus.FAILURE
        assert result.error == ErrorKind.TIMEOUT
        assert result.message == "Command timed out after 20ms"

    @pytest.mark.asyncio
    async def test_handler_exception(self) -> None:
        """Test an exception from a handler becomes a Failure."""
        executor = CommandExecutor(
            SessionContext(), BrokenRouter(StubHostOrchestrator(), StubDeviceInfoProvider())
        )

        result = await executor.execute("show battery")

        assert result.status == ResultStatus.FAILURE
        assert result.message == "Execution failed: handler exploded"

    @pytest.mark.asyncio
    async def test_execute_multiple_stops_at_failure(self, executor: CommandExecutor) -> None:
        """Test compound lines stop at the first unsuccessful command."""
        results = await executor.execute_multiple("cd /sdcard; open nothing-here; pwd")

        assert len(results) == 2
        assert results[0].ok
        assert results[1].status == ResultStatus.NOT_FOUND


class TestConfirmation:
    """Test the confirmation flow for destructive actions."""

    @pytest.mark.asyncio
    async def test_delete_requires_confirmation(self, executor: CommandExecutor, host) -> None:
        """Test rm is held and runs only after confirm <token>."""
        result = await executor.execute("rm /sdcard/notes.txt")

        assert result.status == ResultStatus.REQUIRES_CONFIRMATION
        pending = result.payload
        assert isinstance(pending, PendingAction)
        assert result.message == (
            f"Command requires confirmation: rm /sdcard/notes.txt. "
            f"Type 'confirm {pending.token}' to proceed"
        )
        assert "/sdcard/notes.txt" in host.files

        result = await executor.execute(f"confirm {pending.token}")

        assert result.ok
        assert result.message == "Deleted /sdcard/notes.txt"
        assert "/sdcard/notes.txt" not in host.files

    @pytest.mark.asyncio
    async def test_token_is_single_use(self, executor: CommandExecutor) -> None:
        """Test a consumed token is rejected."""
        held = await executor.execute("rm /sdcard/notes.txt")
        token = held.payload.token
        await executor.confirm(token)

        result = await executor.confirm(token)

        assert result.status == ResultStatus.NOT_FOUND
        assert result.message == f"No pending action for token {token} (it may have expired)"

    @pytest.mark.asyncio
    async def test_bare_confirm_uses_latest(self, executor: CommandExecutor, host) -> None:
        """Test confirm without a token confirms the most recent held action."""
        await executor.execute("rm /sdcard/notes.txt")

        result = await executor.execute("confirm")

        assert result.ok
        assert host.files == {}

    @pytest.mark.asyncio
    async def test_nothing_to_confirm(self, executor: CommandExecutor) -> None:
        """Test bare confirm with nothing held."""
        result = await executor.execute("confirm")

        assert result.status == ResultStatus.NOT_FOUND
        assert result.message == "Nothing to confirm"

    @pytest.mark.asyncio
    async def test_cancel_token(self, executor: CommandExecutor, host) -> None:
        """Test cancelling a held action."""
        held = await executor.execute("rm /sdcard/notes.txt")
        token = held.payload.token

        result = await executor.execute(f"cancel {token}")

        assert result.ok
        assert (await executor.confirm(token)).status == ResultStatus.NOT_FOUND
        assert "/sdcard/notes.txt" in host.files

    @pytest.mark.asyncio
    async def test_caller_can_require_confirmation(self, executor: CommandExecutor) -> None:
        """Test the require_confirmation option holds any action."""
        result = await executor.execute(
            "open camera", ExecutionOptions(require_confirmation=True)
        )

        assert result.status == ResultStatus.REQUIRES_CONFIRMATION
        assert result.payload.action.kind == ActionKind.OPEN_APP

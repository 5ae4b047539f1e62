"""Tests for action mapping, the action router and its leaf handlers."""

from datetime import datetime

import pytest

from pocketshell.commands.actions import action_kind_for, command_to_action
from pocketshell.commands.parser import CommandParser
from pocketshell.commands.results import ActionKind, ErrorKind, ResultStatus
from pocketshell.commands.router import ActionRouter
from pocketshell.commands.session_context import SessionContext
from pocketshell.handlers.query import BatteryInfo, NetworkInfo, StubDeviceInfoProvider, format_bytes
from pocketshell.handlers.stub_host import StubHostOrchestrator

FIXED_NOW = datetime(2024, 5, 3, 14, 5, 9)


def _action(line: str, context: SessionContext | None = None):
    return command_to_action(CommandParser().parse(line), context)


@pytest.fixture
def host() -> StubHostOrchestrator:
    return StubHostOrchestrator(
        files={
            "/sdcard/notes.txt": "buy milk",
            "/sdcard/DCIM/a.jpg": "jpeg",
        }
    )


@pytest.fixture
def router(host: StubHostOrchestrator) -> ActionRouter:
    return ActionRouter(host, StubDeviceInfoProvider(), clock=lambda: FIXED_NOW)


@pytest.fixture
def context() -> SessionContext:
    return SessionContext()


class TestActionMapping:
    """Test verb to action kind mapping."""

    @pytest.mark.parametrize(
        "verb,kind",
        [
            ("open", ActionKind.OPEN_APP),
            ("LAUNCH", ActionKind.OPEN_APP),
            ("settings", ActionKind.OPEN_SETTINGS),
            ("dial", ActionKind.MAKE_CALL),
            ("text", ActionKind.SEND_SMS),
            ("prev", ActionKind.MEDIA_PREVIOUS),
            ("get", ActionKind.QUERY),
            ("cat", ActionKind.READ_FILE),
            ("del", ActionKind.DELETE_FILE),
            ("wifi", ActionKind.SYSTEM),
            ("sys", ActionKind.SYSTEM),
            ("teleport", ActionKind.UNKNOWN),
        ],
    )
    def test_action_kind_for(self, verb: str, kind: ActionKind) -> None:
        """Test verb lookup."""
        assert action_kind_for(verb) == kind

    def test_flags_become_params(self) -> None:
        """Test flags are carried as params and the raw line is kept."""
        action = _action("volume --type=ring 4")

        assert action.params == {"type": "ring"}
        assert action.raw == "volume --type=ring 4"

    def test_only_delete_requires_confirmation(self) -> None:
        """Test the default confirmation policy."""
        assert _action("rm notes.txt").requires_confirmation is True
        assert _action("write notes.txt hi").requires_confirmation is False

    def test_target_alias_is_expanded(self) -> None:
        """Test a shell alias used as the target is expanded."""
        context = SessionContext()
        context.set_alias("docs", "/sdcard/Documents")

        assert _action("ls docs", context).target == "/sdcard/Documents"


class TestAppAndMedia:
    """Test app, settings, media and navigation actions."""

    @pytest.mark.asyncio
    async def test_open_app(self, router, context, host) -> None:
        """Test opening an installed app."""
        result = await router.route(_action("open Camera"), context)

        assert result.ok
        assert result.message == "Opened Camera"
        assert result.payload == "com.android.camera"

    @pytest.mark.asyncio
    async def test_open_missing_app(self, router, context) -> None:
        """Test opening an app that is not installed."""
        result = await router.route(_action("open spotify"), context)

        assert result.status == ResultStatus.NOT_FOUND
        assert result.message == "App not found: spotify"

    @pytest.mark.asyncio
    async def test_settings_section(self, router, context, host) -> None:
        """Test opening a settings section."""
        result = await router.route(_action("settings wifi"), context)

        assert result.message == "Opened wifi settings"
        assert host.operations == [("open_settings", {"section": "wifi"})]

    @pytest.mark.asyncio
    async def test_play_with_query(self, router, context, host) -> None:
        """Test play passes the whole query to the media controller."""
        result = await router.route(_action("play miles davis"), context)

        assert result.message == "Playing: miles davis"
        assert host.operations == [("media", {"control": "play", "query": "miles davis"})]

    @pytest.mark.asyncio
    async def test_pause(self, router, context) -> None:
        """Test a bare media control."""
        assert (await router.route(_action("pause"), context)).message == "Paused"

    @pytest.mark.asyncio
    async def test_navigate(self, router, context) -> None:
        """Test navigation to a destination."""
        result = await router.route(_action("navigate jkia airport"), context)

        assert result.message == "Navigating to jkia airport"

    @pytest.mark.asyncio
    async def test_unknown(self, router, context) -> None:
        """Test an unknown action."""
        result = await router.route(_action("teleport home"), context)

        assert result.status == ResultStatus.NOT_FOUND
        assert result.message == "Unknown command: teleport"

    @pytest.mark.asyncio
    async def test_call_without_engine(self, router, context) -> None:
        """Test make_call when no calling engine is wired."""
        result = await router.route(_action("call mom"), context)

        assert result.status == ResultStatus.FAILURE
        assert result.error == ErrorKind.PERMISSION_DENIED


class TestFiles:
    """Test file actions against the stub host."""

    @pytest.mark.asyncio
    async def test_list_working_directory(self, router, context) -> None:
        """Test ls lists the working directory and ignores -la."""
        context.change_directory("/sdcard")

        result = await router.route(_action("ls -la"), context)

        assert result.ok
        assert result.message == "DCIM\nnotes.txt"

    @pytest.mark.asyncio
    async def test_list_missing_directory(self, router, context) -> None:
        """Test listing a path that does not exist."""
        result = await router.route(_action("ls /nowhere"), context)

        assert result.status == ResultStatus.NOT_FOUND

    @pytest.mark.asyncio
    async def test_read_relative_path(self, router, context) -> None:
        """Test cat resolves against the working directory."""
        context.change_directory("/sdcard")

        result = await router.route(_action("cat notes.txt"), context)

        assert result.message == "buy milk"

    @pytest.mark.asyncio
    async def test_read_missing_file(self, router, context) -> None:
        """Test reading a missing file."""
        result = await router.route(_action("cat /sdcard/none.txt"), context)

        assert result.status == ResultStatus.NOT_FOUND
        assert result.message == "No such file: /sdcard/none.txt"

    @pytest.mark.asyncio
    async def test_write(self, router, context, host) -> None:
        """Test write stores the entity text."""
        result = await router.route(_action("write /sdcard/todo.txt call the bank"), context)

        assert result.message == "Wrote 13 bytes to /sdcard/todo.txt"
        assert host.files["/sdcard/todo.txt"] == "call the bank"

    @pytest.mark.asyncio
    async def test_delete(self, router, context, host) -> None:
        """Test delete once the router is reached."""
        result = await router.route(_action("rm /sdcard/notes.txt"), context)

        assert result.message == "Deleted /sdcard/notes.txt"
        assert "/sdcard/notes.txt" not in host.files

    @pytest.mark.asyncio
    async def test_path_required(self, router, context) -> None:
        """Test file actions other than ls need a path."""
        result = await router.route(_action("cat"), context)

        assert result.status == ResultStatus.INVALID_COMMAND


class TestQueries:
    """Test device information queries."""

    @pytest.mark.asyncio
    async def test_battery(self, router, context) -> None:
        """Test the battery report."""
        result = await router.route(_action("show battery"), context)

        assert result.message == "Battery: 82%, 31.5°C"
        assert isinstance(result.payload, BatteryInfo)

    @pytest.mark.asyncio
    async def test_time_and_date(self, router, context) -> None:
        """Test time and date use the injected clock."""
        assert (await router.route(_action("get time"), context)).message == "Current time: 14:05:09"
        assert (await router.route(_action("show date"), context)).message == (
            "Today is Friday, May 03, 2024"
        )

    @pytest.mark.asyncio
    async def test_steps(self, router, context) -> None:
        """Test the step count."""
        assert (await router.route(_action("show steps"), context)).message == "Steps today: 4321"

    @pytest.mark.asyncio
    async def test_network_disconnected(self, context) -> None:
        """Test the disconnected network report."""
        provider = StubDeviceInfoProvider(network=NetworkInfo(type="none", connected=False))
        router = ActionRouter(StubHostOrchestrator(), provider)

        result = await router.route(_action("show network"), context)

        assert result.message == "Network: disconnected"

    @pytest.mark.asyncio
    async def test_usage_and_unknown(self, router, context) -> None:
        """Test show with no subject and with an unknown subject."""
        assert (await router.route(_action("show"), context)).status == ResultStatus.INVALID_COMMAND
        assert (await router.route(_action("show weather"), context)).status == ResultStatus.NOT_FOUND

    def test_format_bytes(self) -> None:
        """Test human-readable sizes."""
        assert format_bytes(512) == "512.0 B"
        assert format_bytes(48 * 1024**3) == "48.0 GB"

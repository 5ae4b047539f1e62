"""Shell session: owns the context, the engines and the executor.

A ShellSession is the unit of state for one user. Each submitted line is
routed to whichever conversation is waiting for input, then to the calling
and messaging command grammars, and finally to the command executor.
"""

import logging
import time
from datetime import datetime
from typing import Callable

import duckdb

from pocketshell.aliases.duckdb_store import DuckDBAliasStore
from pocketshell.aliases.store import AliasStore, InMemoryAliasStore
from pocketshell.calling.engine import CallingEngine
from pocketshell.commands.executor import CommandExecutor
from pocketshell.commands.parser import CommandParser
from pocketshell.commands.pending_actions import PendingActionManager
from pocketshell.commands.results import ActionKind, ExecutionOptions, Result
from pocketshell.commands.router import ActionRouter
from pocketshell.commands.session_context import RedisSessionStore, SessionContext
from pocketshell.config import ShellConfig
from pocketshell.handlers.host import HostOrchestrator
from pocketshell.handlers.query import DeviceInfoProvider, StubDeviceInfoProvider
from pocketshell.handlers.stub_host import StubHostOrchestrator
from pocketshell.logging_utils import clear_session_id, log_debug, log_error, set_session_id
from pocketshell.messaging.engine import MessagingEngine
from pocketshell.telephony.carrier import CarrierAdapter
from pocketshell.telephony.contacts import ContactProvider, InMemoryContactProvider
from pocketshell.telephony.message_store import InMemoryMessageStore, MessageStore
from pocketshell.telephony.stub_carrier import StubCarrierAdapter
from pocketshell.ussd.manager import UssdSessionManager, state_to_result

logger = logging.getLogger(__name__)

END_USSD_INPUTS = {"cancel ussd", "end ussd", "exit ussd"}
REPEAT_MARKER = "repeat_last"


def _confirm_kinds(config: ShellConfig) -> frozenset[ActionKind]:
    return frozenset(kind for kind in ActionKind if kind.value in config.confirm_action_kinds)


class ShellSession:
    """One shell session and everything it owns.

    The alias store is shared with other sessions when the same store is
    passed in; everything else (context, engines, pending actions) belongs
    to this session alone.
    """

    def __init__(
        self,
        adapter: CarrierAdapter | None = None,
        contacts: ContactProvider | None = None,
        aliases: AliasStore | None = None,
        message_store: MessageStore | None = None,
        host: HostOrchestrator | None = None,
        device_info: DeviceInfoProvider | None = None,
        config: ShellConfig | None = None,
        session_id: str | None = None,
        context_store: RedisSessionStore | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize the session.

        Args:
            adapter: Carrier adapter (stub with config.sim_count slots if omitted)
            contacts: Address book (empty in-memory if omitted)
            aliases: Contact alias store (in-memory if omitted)
            message_store: Stored messages (empty in-memory if omitted)
            host: Host orchestrator (stub if omitted)
            device_info: Device state reader (stub if omitted)
            config: Shell configuration (defaults if omitted)
            session_id: Session identifier (generated if omitted)
            context_store: Snapshot store used to restore and save env/aliases
            clock: Time source for call durations and time queries
        """
        self.config = config or ShellConfig()
        self.adapter = adapter or StubCarrierAdapter(sim_slots=list(range(self.config.sim_count)))
        self.contacts = contacts or InMemoryContactProvider()
        self.aliases = aliases or InMemoryAliasStore()
        self.message_store = message_store or InMemoryMessageStore()
        self.host = host or StubHostOrchestrator()
        self.device_info = device_info or StubDeviceInfoProvider()
        self.context_store = context_store
        self.parser = CommandParser()

        self.context = self._new_context(session_id)

        self.ussd = UssdSessionManager(
            self.adapter,
            timeout_seconds=self.config.ussd_timeout_seconds,
            history_limit=self.config.ussd_history_limit,
            default_sim_slot=self.config.default_sim_slot,
        )
        self.calling = CallingEngine(
            self.adapter,
            self.contacts,
            self.aliases,
            self.ussd,
            shortcuts=self.config.ussd_shortcuts,
            contact_search_limit=self.config.contact_search_limit,
            clock=clock,
        )
        self.messaging = MessagingEngine(
            self.adapter,
            self.contacts,
            self.aliases,
            self.message_store,
            sim_slot=self.config.default_sim_slot,
            contact_search_limit=self.config.contact_search_limit,
        )
        self.router = ActionRouter(
            self.host,
            self.device_info,
            calling=self.calling,
            messaging=self.messaging,
            clock=clock,
        )
        self.pending_actions = PendingActionManager()
        self.executor = CommandExecutor(
            self.context,
            self.router,
            parser=self.parser,
            pending_actions=self.pending_actions,
            confirm_kinds=_confirm_kinds(self.config),
            default_timeout_ms=self.config.command_timeout_ms,
        )

    @classmethod
    def from_config(
        cls,
        config: ShellConfig,
        db_conn: duckdb.DuckDBPyConnection | None = None,
        **kwargs,
    ) -> "ShellSession":
        """Build a session, persisting contact aliases in DuckDB when a connection is given."""
        if db_conn is not None and "aliases" not in kwargs:
            kwargs["aliases"] = DuckDBAliasStore(db_conn)
        return cls(config=config, **kwargs)

    @property
    def session_id(self) -> str:
        return self.context.session_id

    def _new_context(self, session_id: str | None) -> SessionContext:
        if self.context_store is not None and session_id:
            restored = self.context_store.load(session_id, history_limit=self.config.history_limit)
            if restored is not None:
                return restored
        return SessionContext(session_id=session_id, history_limit=self.config.history_limit)

    def _record(self, text: str) -> None:
        """Add a line handled outside the executor to history."""
        command = self.parser.parse(text)
        if not command.is_empty:
            self.context.add_to_history(command)

    async def submit(self, line: str, options: ExecutionOptions | None = None) -> Result:
        """Handle one line of user input.

        Args:
            line: Raw input line
            options: Execution policy for lines that reach the executor

        Returns:
            Result with elapsed_ms set
        """
        set_session_id(self.context.session_id)
        start = time.perf_counter()
        text = line.strip()
        try:
            result = await self._route(text, options)
        except Exception as e:
            log_error(logger, "Input handling failed", error=str(e), exc_info=True)
            result = Result.failure(f"Execution failed: {e}")
        finally:
            clear_session_id()

        if result.message == REPEAT_MARKER and isinstance(result.payload, str):
            return await self.submit(result.payload, options)

        result = result.with_elapsed((time.perf_counter() - start) * 1000)
        self.context.last_result = result
        if self.context_store is not None:
            self.context_store.save(self.context)
        return result

    async def _route(self, text: str, options: ExecutionOptions | None) -> Result:
        lowered = text.lower()

        if self.ussd.has_active_session:
            if lowered in END_USSD_INPUTS:
                self._record(text)
                self.ussd.cancel_session()
                return Result.success("USSD session ended")
            # A new calling command replaces the open menu session
            if not self.calling.is_calling_command(text):
                self._record(text)
                log_debug(logger, "Routing to USSD reply")
                return state_to_result(await self.ussd.reply(text))

        if lowered in END_USSD_INPUTS:
            self._record(text)
            self.ussd.cancel_session()
            return Result.success("No active USSD session")

        if self.calling.is_active:
            self._record(text)
            log_debug(logger, "Routing to calling engine", state=self.calling.state.kind.value)
            return await self.calling.handle_input(text)

        if self.messaging.is_active:
            self._record(text)
            log_debug(logger, "Routing to messaging engine", state=self.messaging.state.kind.value)
            return await self.messaging.handle_input(text)

        if self.calling.is_calling_command(text):
            self._record(text)
            return await self.calling.handle_input(text)

        if self.messaging.is_messaging_command(text):
            self._record(text)
            return await self.messaging.handle_input(text)

        return await self.executor.execute(text, options)

    async def confirm(self, token: str) -> Result:
        return await self.executor.confirm(token)

    def reset(self) -> None:
        """Replace the context with a fresh one and reset every engine."""
        self.context = SessionContext(
            session_id=self.context.session_id, history_limit=self.config.history_limit
        )
        self.executor.context = self.context
        self.pending_actions.clear()
        self.calling.reset()
        self.messaging.reset()
        self.ussd.reset()
        if self.context_store is not None:
            self.context_store.delete(self.context.session_id)

"""Action router: dispatches typed actions to handler groups."""

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Callable

from pocketshell.commands.results import Action, ActionKind, ErrorKind, Result
from pocketshell.commands.session_context import SessionContext
from pocketshell.handlers.host import HostOrchestrator
from pocketshell.handlers.leaf import MEDIA_CONTROLS, handle_app, handle_file, handle_media, handle_navigate
from pocketshell.handlers.query import DeviceInfoProvider, QueryHandler
from pocketshell.handlers.system import SystemHandler
from pocketshell.logging_utils import log_debug

if TYPE_CHECKING:
    from pocketshell.calling.engine import CallingEngine
    from pocketshell.messaging.engine import MessagingEngine

logger = logging.getLogger(__name__)

FILE_KINDS = {
    ActionKind.LIST_FILES,
    ActionKind.READ_FILE,
    ActionKind.WRITE_FILE,
    ActionKind.DELETE_FILE,
}


class ActionRouter:
    """Route actions to the system, query, app, media, file, call and message handlers."""

    def __init__(
        self,
        host: HostOrchestrator,
        device_info: DeviceInfoProvider,
        calling: "CallingEngine | None" = None,
        messaging: "MessagingEngine | None" = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize the router.

        Args:
            host: Host orchestrator for system, app, media and file actions
            device_info: Reader for query actions
            calling: Calling engine that receives make_call actions
            messaging: Messaging engine that receives send_sms actions
            clock: Time source for time/date queries
        """
        self.host = host
        self.system = SystemHandler(host)
        self.query = QueryHandler(device_info, clock=clock)
        self.calling = calling
        self.messaging = messaging

    async def route(self, action: Action, context: SessionContext) -> Result:
        """Dispatch an action.

        Args:
            action: Action to run
            context: Session the action runs in (for path resolution)

        Returns:
            The handler's Result; NotFound for unknown actions
        """
        kind = action.kind
        log_debug(logger, "Routing action", kind=kind.value, verb=action.verb)

        if kind == ActionKind.SYSTEM:
            return self.system.handle(action)
        if kind == ActionKind.QUERY:
            return self.query.handle(action)
        if kind in (ActionKind.OPEN_APP, ActionKind.OPEN_SETTINGS):
            return handle_app(action, self.host)
        if kind in MEDIA_CONTROLS:
            return handle_media(action, self.host)
        if kind == ActionKind.NAVIGATE:
            return handle_navigate(action, self.host)
        if kind in FILE_KINDS:
            return handle_file(action, self.host, context)

        if kind == ActionKind.MAKE_CALL:
            if self.calling is None:
                return Result.failure("Calling is not available", error=ErrorKind.PERMISSION_DENIED)
            return await self.calling.handle_command(action.raw)
        if kind == ActionKind.SEND_SMS:
            if self.messaging is None:
                return Result.failure("Messaging is not available", error=ErrorKind.PERMISSION_DENIED)
            return await self.messaging.handle_command(action.raw)

        return Result.not_found(f"Unknown command: {action.verb}")

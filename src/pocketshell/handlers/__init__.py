"""Leaf action handlers and the host collaborators they delegate to."""

from pocketshell.handlers.host import AppNotFound, HostError, HostOrchestrator
from pocketshell.handlers.query import DeviceInfoProvider, QueryHandler, StubDeviceInfoProvider
from pocketshell.handlers.stub_host import StubHostOrchestrator
from pocketshell.handlers.system import SYSHELP, SystemHandler, parse_bool

__all__ = [
    "AppNotFound",
    "DeviceInfoProvider",
    "HostError",
    "HostOrchestrator",
    "QueryHandler",
    "StubDeviceInfoProvider",
    "StubHostOrchestrator",
    "SYSHELP",
    "SystemHandler",
    "parse_bool",
]

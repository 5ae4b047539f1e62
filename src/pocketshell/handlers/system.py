"""System, power, network, display and volume commands.

All of these delegate to the host orchestrator. Boolean settings take
their state from a --state flag or the first argument, e.g.
`wifi --state=on` or `bluetooth off`.
"""

import logging
from typing import Any, Callable

from pocketshell.commands.results import Action, ErrorKind, Result
from pocketshell.handlers.host import AppNotFound, HostError, HostOrchestrator
from pocketshell.logging_utils import log_warning

logger = logging.getLogger(__name__)

TRUE_VALUES = {"on", "true", "1", "yes", "enable"}
FALSE_VALUES = {"off", "false", "0", "no", "disable"}

# command -> (host setting, label used in messages)
TOGGLES: dict[str, tuple[str, str]] = {
    "wifi": ("wifi", "WiFi"),
    "data": ("mobile_data", "Mobile data"),
    "mobiledata": ("mobile_data", "Mobile data"),
    "airplane": ("airplane", "Airplane mode"),
    "bluetooth": ("bluetooth", "Bluetooth"),
    "bt": ("bluetooth", "Bluetooth"),
    "autobrightness": ("auto_brightness", "Auto-brightness"),
    "autotime": ("auto_time", "Auto time"),
    "batterysaver": ("battery_saver", "Battery saver"),
    "dnd": ("dnd", "Do Not Disturb"),
    "developermode": ("developer_mode", "Developer mode"),
    "adb": ("usb_debugging", "USB debugging"),
    "stayawake": ("stay_awake", "Stay awake"),
    "location": ("location", "Location services"),
}

VOLUME_STREAMS = {
    "music": "music",
    "media": "music",
    "ring": "ring",
    "ringer": "ring",
    "notification": "notification",
    "notif": "notification",
    "alarm": "alarm",
    "call": "call",
    "voice": "call",
}

REBOOT_MODES = {
    "recovery": "recovery",
    "bootloader": "bootloader",
    "fastboot": "bootloader",
    "safe": "safe",
    "safemode": "safe",
}

PERFORMANCE_MODES = {
    "high": "high",
    "performance": "high",
    "balanced": "balanced",
    "normal": "balanced",
    "powersave": "powersave",
    "low": "powersave",
    "save": "powersave",
}

SYSHELP = """System commands:
  Power:    shutdown | reboot [recovery|bootloader|safe] | sleep | lock
  Network:  wifi on|off | data on|off | airplane on|off | bluetooth on|off
  Display:  brightness <0-255> | timeout <seconds> | autobrightness on|off
  Volume:   volume [--type=music|ring|notification|alarm|call] <level> | mute | unmute
  Time:     settime <unix_ms> | settimezone <zone> | autotime on|off
  Apps:     freeze|unfreeze|hide|unhide <package>
  Perf:     performance <high|balanced|powersave> | batterysaver on|off | clearram | clearcache
  Misc:     dnd on|off | notify <message> [--title=T] | location on|off | sysinfo
  Dev:      developermode on|off | adb on|off | stayawake on|off | animations <0.0-2.0>
Boolean states accept on/off, true/false, 1/0, yes/no, enable/disable."""


def parse_bool(value: str | None) -> bool | None:
    """Parse a boolean-like word, or None if it is not one."""
    if value is None:
        return None
    value = value.strip().lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    return None


def host_result(success: str, error: str, call: Callable[[], Any]) -> Result:
    """Run a host call and wrap its outcome.

    Args:
        success: Message when the call returns
        error: Prefix for the failure message
        call: The host operation

    Returns:
        Success with the host detail as payload, or Failure "error: reason"
    """
    try:
        detail = call()
    except AppNotFound as e:
        return Result.not_found(str(e))
    except FileNotFoundError as e:
        return Result.not_found(f"No such file: {e}")
    except PermissionError as e:
        return Result.failure(f"{error}: {e}", error=ErrorKind.PERMISSION_DENIED)
    except HostError as e:
        log_warning(logger, "Host operation failed", error=str(e))
        return Result.failure(f"{error}: {e}")
    return Result.success(success, payload=detail)


def _invalid_state(command: str) -> Result:
    return Result.invalid(
        f"Invalid state for {command}. Use: on/off, true/false, enable/disable"
    )


def _split(action: Action) -> tuple[str, list[str]]:
    """Work out the system command name and its positional arguments."""
    words = []
    if action.target:
        words.append(action.target)
    if action.entity:
        words.extend(action.entity.split())

    verb = action.verb.lower()
    if verb in ("sys", "system"):
        if not words:
            return "", []
        return words[0].lower(), words[1:]
    return verb, words


class SystemHandler:
    """Handles SYSTEM actions through the host orchestrator."""

    def __init__(self, host: HostOrchestrator) -> None:
        self.host = host
        self._commands: dict[str, Callable[[list[str], dict[str, str]], Result]] = {
            "shutdown": self._shutdown,
            "poweroff": self._shutdown,
            "reboot": self._reboot,
            "restart": self._reboot,
            "sleep": self._simple("sleep", "Device entering sleep mode...", "Failed to sleep"),
            "lock": self._simple("lock", "Screen locked", "Failed to lock screen"),
            "brightness": self._brightness,
            "timeout": self._timeout,
            "volume": self._volume,
            "vol": self._volume,
            "mute": self._mute,
            "unmute": self._unmute,
            "settime": self._settime,
            "settimezone": self._settimezone,
            "freeze": self._package_op("freeze", "App frozen", "Failed to freeze app"),
            "unfreeze": self._package_op("unfreeze", "App unfrozen", "Failed to unfreeze app"),
            "hide": self._package_op("hide", "App hidden", "Failed to hide app"),
            "unhide": self._package_op("unhide", "App unhidden", "Failed to unhide app"),
            "performance": self._performance,
            "clearram": self._simple(
                "clearram", "RAM cleared - background processes killed", "Failed to clear RAM"
            ),
            "clearcache": self._simple("clearcache", "All app caches cleared", "Failed to clear caches"),
            "notify": self._notify,
            "animations": self._animations,
            "sysinfo": self._sysinfo,
        }

    def handle(self, action: Action) -> Result:
        """Run a system action.

        Args:
            action: Action with kind SYSTEM

        Returns:
            Result of the host operation, or InvalidCommand for bad arguments
        """
        command, args = _split(action)
        if not command:
            return Result.invalid("Invalid system command")

        if command in TOGGLES:
            return self._toggle(command, args, action.params)

        handler = self._commands.get(command)
        if handler is None:
            return Result.not_found(
                f"Unknown system command: {command}. Type 'syshelp' for system commands."
            )
        return handler(args, action.params)

    def _toggle(self, command: str, args: list[str], params: dict[str, str]) -> Result:
        setting, label = TOGGLES[command]
        enabled = parse_bool(params.get("state") or (args[0] if args else None))
        if enabled is None:
            return _invalid_state(command)
        state = "enabled" if enabled else "disabled"
        return host_result(
            f"{label} {state}",
            f"Failed to change {label}",
            lambda: self.host.run_system(setting, enabled=enabled),
        )

    def _simple(self, operation: str, success: str, error: str):
        def run(args: list[str], params: dict[str, str]) -> Result:
            return host_result(success, error, lambda: self.host.run_system(operation))

        return run

    def _package_op(self, operation: str, success: str, error: str):
        def run(args: list[str], params: dict[str, str]) -> Result:
            if not args:
                return Result.invalid(f"Usage: {operation} <package_name>")
            package = args[0]
            return host_result(
                f"{success}: {package}",
                error,
                lambda: self.host.run_system(operation, package=package),
            )

        return run

    def _shutdown(self, args: list[str], params: dict[str, str]) -> Result:
        return host_result(
            "System shutdown initiated...",
            "Failed to shutdown system",
            lambda: self.host.run_system("shutdown"),
        )

    def _reboot(self, args: list[str], params: dict[str, str]) -> Result:
        requested = params.get("mode") or (args[0] if args else None)
        mode = "normal"
        if requested:
            mode = REBOOT_MODES.get(requested.lower())
            if mode is None:
                return Result.invalid("Usage: reboot [recovery|bootloader|fastboot|safe]")
        return host_result(
            f"System reboot initiated (mode: {mode})...",
            "Failed to reboot system",
            lambda: self.host.run_system("reboot", mode=mode),
        )

    def _brightness(self, args: list[str], params: dict[str, str]) -> Result:
        try:
            level = int(args[0])
        except (IndexError, ValueError):
            return Result.invalid("Usage: brightness <0-255>")
        if not 0 <= level <= 255:
            return Result.invalid("Usage: brightness <0-255>")
        return host_result(
            f"Brightness set to {level}",
            "Failed to set brightness",
            lambda: self.host.run_system("brightness", level=level),
        )

    def _timeout(self, args: list[str], params: dict[str, str]) -> Result:
        try:
            seconds = int(args[0])
        except (IndexError, ValueError):
            return Result.invalid("Usage: timeout <seconds>")
        if seconds <= 0:
            return Result.invalid("Usage: timeout <seconds>")
        return host_result(
            f"Screen timeout set to {seconds} seconds",
            "Failed to set screen timeout",
            lambda: self.host.run_system("screen_timeout", milliseconds=seconds * 1000),
        )

    def _volume(self, args: list[str], params: dict[str, str]) -> Result:
        usage = "Usage: volume [--type=music|ring|notification|alarm|call] <level>"
        stream_name = params.get("type")
        if stream_name is None and len(args) > 1:
            stream_name, args = args[0], args[1:]
        stream = VOLUME_STREAMS.get((stream_name or "music").lower())
        if stream is None:
            return Result.invalid(usage)
        try:
            level = int(args[0])
        except (IndexError, ValueError):
            return Result.invalid(usage)
        if level < 0:
            return Result.invalid(usage)
        return host_result(
            f"Volume ({stream}) set to {level}",
            "Failed to set volume",
            lambda: self.host.run_system("volume", stream=stream, level=level),
        )

    def _mute(self, args: list[str], params: dict[str, str]) -> Result:
        return self._set_mute(args, params, default=True)

    def _unmute(self, args: list[str], params: dict[str, str]) -> Result:
        return self._set_mute(args, params, default=False)

    def _set_mute(self, args: list[str], params: dict[str, str], default: bool) -> Result:
        state = params.get("state") or (args[0] if args else None)
        if state is None:
            muted = default
        else:
            muted = parse_bool(state)
            if muted is None:
                return _invalid_state("mute")
        return host_result(
            "All audio muted" if muted else "Audio unmuted",
            "Failed to change mute state",
            lambda: self.host.run_system("mute", enabled=muted),
        )

    def _settime(self, args: list[str], params: dict[str, str]) -> Result:
        try:
            timestamp_ms = int(args[0])
        except (IndexError, ValueError):
            return Result.invalid("Usage: settime <unix_timestamp_milliseconds>")
        return host_result(
            "System time updated",
            "Failed to set system time",
            lambda: self.host.run_system("settime", timestamp_ms=timestamp_ms),
        )

    def _settimezone(self, args: list[str], params: dict[str, str]) -> Result:
        if not args:
            return Result.invalid("Usage: settimezone <timezone> (e.g., America/New_York)")
        zone = args[0]
        return host_result(
            f"Timezone set to {zone}",
            "Failed to set timezone",
            lambda: self.host.run_system("settimezone", timezone=zone),
        )

    def _performance(self, args: list[str], params: dict[str, str]) -> Result:
        requested = params.get("mode") or (args[0] if args else "")
        mode = PERFORMANCE_MODES.get(requested.lower())
        if mode is None:
            return Result.invalid("Usage: performance <high|balanced|powersave>")
        return host_result(
            f"Performance mode set to {mode}",
            "Failed to set performance mode",
            lambda: self.host.run_system("performance", mode=mode),
        )

    def _notify(self, args: list[str], params: dict[str, str]) -> Result:
        if not args:
            return Result.invalid('Usage: notify "message" --title="title"')
        message = " ".join(args)
        title = params.get("title") or "Notification"
        return host_result(
            "Notification sent",
            "Failed to send notification",
            lambda: self.host.run_system("notify", title=title, message=message),
        )

    def _animations(self, args: list[str], params: dict[str, str]) -> Result:
        usage = "Usage: animations <0.0-2.0> (0=off, 0.5=fast, 1.0=normal)"
        try:
            scale = float(args[0])
        except (IndexError, ValueError):
            return Result.invalid(usage)
        if not 0.0 <= scale <= 2.0:
            return Result.invalid(usage)
        return host_result(
            f"Animation scale set to {scale}",
            "Failed to set animation scale",
            lambda: self.host.run_system("animations", scale=scale),
        )

    def _sysinfo(self, args: list[str], params: dict[str, str]) -> Result:
        result = host_result(
            "System Information:",
            "Failed to get system info",
            lambda: self.host.run_system("sysinfo"),
        )
        if result.ok and result.payload:
            result.message = f"System Information:\n{result.payload}"
        return result

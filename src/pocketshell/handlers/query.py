"""Read-only device information queries (`show battery`, `get time`, ...)."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from pocketshell.commands.results import Action, Result

logger = logging.getLogger(__name__)


@dataclass
class BatteryInfo:
    level: int
    charging: bool
    temperature_c: float | None = None


@dataclass
class StorageInfo:
    total_bytes: int
    free_bytes: int


@dataclass
class NetworkInfo:
    type: str
    connected: bool
    operator: str | None = None


class DeviceInfoProvider(ABC):
    """Abstract base class for device state readers."""

    @abstractmethod
    def battery(self) -> BatteryInfo:
        pass

    @abstractmethod
    def storage(self) -> StorageInfo:
        pass

    @abstractmethod
    def steps_today(self) -> int:
        pass

    @abstractmethod
    def network(self) -> NetworkInfo:
        pass

    @abstractmethod
    def device(self) -> dict[str, str]:
        """Model, manufacturer and OS version."""
        pass


class StubDeviceInfoProvider(DeviceInfoProvider):
    """Deterministic device info for development and testing."""

    def __init__(
        self,
        battery: BatteryInfo | None = None,
        storage: StorageInfo | None = None,
        steps: int = 4321,
        network: NetworkInfo | None = None,
    ) -> None:
        self._battery = battery or BatteryInfo(level=82, charging=False, temperature_c=31.5)
        self._storage = storage or StorageInfo(total_bytes=128 * 1024**3, free_bytes=48 * 1024**3)
        self._steps = steps
        self._network = network or NetworkInfo(type="wifi", connected=True, operator="Safaricom")

    def battery(self) -> BatteryInfo:
        return self._battery

    def storage(self) -> StorageInfo:
        return self._storage

    def steps_today(self) -> int:
        return self._steps

    def network(self) -> NetworkInfo:
        return self._network

    def device(self) -> dict[str, str]:
        return {"manufacturer": "Stub", "model": "Pocket 1", "os": "Android 14"}


def format_bytes(count: int) -> str:
    size = float(count)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


class QueryHandler:
    """Formats device state reads into results. Never changes device state."""

    def __init__(
        self,
        provider: DeviceInfoProvider,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.provider = provider
        self.clock = clock
        self._queries: dict[str, Callable[[], Result]] = {
            "battery": self._battery,
            "storage": self._storage,
            "time": self._time,
            "date": self._date,
            "steps": self._steps,
            "network": self._network,
            "device": self._device,
        }

    def handle(self, action: Action) -> Result:
        subject = (action.target or "").lower()
        query = self._queries.get(subject)
        if query is None:
            available = ", ".join(self._queries)
            if not subject:
                return Result.invalid(f"Usage: show <{available}>")
            return Result.not_found(f"Unknown query: {subject}. Available: {available}")
        return query()

    def _battery(self) -> Result:
        info = self.provider.battery()
        message = f"Battery: {info.level}%"
        if info.charging:
            message += " (charging)"
        if info.temperature_c is not None:
            message += f", {info.temperature_c:.1f}°C"
        return Result.success(message, payload=info)

    def _storage(self) -> Result:
        info = self.provider.storage()
        used = info.total_bytes - info.free_bytes
        message = (
            f"Storage: {format_bytes(used)} used of {format_bytes(info.total_bytes)} "
            f"({format_bytes(info.free_bytes)} free)"
        )
        return Result.success(message, payload=info)

    def _time(self) -> Result:
        return Result.success(f"Current time: {self.clock().strftime('%H:%M:%S')}")

    def _date(self) -> Result:
        return Result.success(f"Today is {self.clock().strftime('%A, %B %d, %Y')}")

    def _steps(self) -> Result:
        steps = self.provider.steps_today()
        return Result.success(f"Steps today: {steps}", payload=steps)

    def _network(self) -> Result:
        info = self.provider.network()
        if not info.connected:
            return Result.success("Network: disconnected", payload=info)
        message = f"Network: {info.type}"
        if info.operator:
            message += f" ({info.operator})"
        return Result.success(message, payload=info)

    def _device(self) -> Result:
        info = self.provider.device()
        lines = ["Device:"] + [f"  {key}: {value}" for key, value in info.items()]
        return Result.success("\n".join(lines), payload=info)

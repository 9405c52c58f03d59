import asyncio
from collections import defaultdict
from typing import Awaitable, Callable

from device_artifacts.core.events import DeviceEvent
from device_artifacts.drivers.adb_controller import AdbController
from device_artifacts.utils.logger import get_logger

logger = get_logger(__name__)

EventHandler = Callable[[DeviceEvent], Awaitable[None]]

DEVICE_EVENTS = ("before_reset_device", "reset_device", "launch_app")


class Device:
    """Async event source wrapping an adb-controlled device."""

    def __init__(self, adb: AdbController):
        self.adb = adb
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._device_id: str | None = None

    @property
    def device_id(self) -> str:
        if self._device_id is None:
            self._device_id = self.adb.get_serial()
        return self._device_id

    def on(self, event_name: str, handler: EventHandler) -> None:
        if event_name not in DEVICE_EVENTS:
            raise ValueError(f"Unknown device event: {event_name}")
        self._handlers[event_name].append(handler)

    async def emit(self, event_name: str, event: DeviceEvent) -> None:
        handlers = self._handlers.get(event_name, [])
        await asyncio.gather(*(handler(event) for handler in handlers))

    async def launch_app(self, bundle_id: str) -> DeviceEvent:
        await asyncio.to_thread(self.adb.launch_app, bundle_id)
        pid = await asyncio.to_thread(self.adb.pidof, bundle_id)
        event = DeviceEvent(device_id=self.device_id, bundle_id=bundle_id, pid=pid)
        await self.emit("launch_app", event)
        return event

    async def relaunch_app(self, bundle_id: str) -> DeviceEvent:
        await asyncio.to_thread(self.adb.force_stop, bundle_id)
        return await self.launch_app(bundle_id)

    async def reset_device(self, bundle_id: str) -> None:
        event = DeviceEvent(device_id=self.device_id)
        await self.emit("before_reset_device", event)
        if not await asyncio.to_thread(self.adb.clear_app_data, bundle_id):
            logger.warning(f"Failed to clear app data for {bundle_id}")
        await self.emit("reset_device", event)

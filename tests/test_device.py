import pytest
from unittest.mock import AsyncMock, MagicMock

from device_artifacts.core.events import DeviceEvent
from device_artifacts.drivers.device import Device


@pytest.fixture
def mock_adb():
    adb = MagicMock()
    adb.get_serial.return_value = "emulator-5554"
    adb.pidof.return_value = 4242
    adb.clear_app_data.return_value = True
    return adb


@pytest.fixture
def device(mock_adb):
    return Device(mock_adb)


def test_unknown_event_is_rejected(device):
    with pytest.raises(ValueError):
        device.on("crash", AsyncMock())


def test_device_id_is_cached(device, mock_adb):
    assert device.device_id == "emulator-5554"
    assert device.device_id == "emulator-5554"
    mock_adb.get_serial.assert_called_once()


@pytest.mark.asyncio
async def test_launch_app_emits_pid(device, mock_adb):
    handler = AsyncMock()
    device.on("launch_app", handler)
    event = await device.launch_app("com.example.app")
    assert event == DeviceEvent(device_id="emulator-5554", bundle_id="com.example.app", pid=4242)
    mock_adb.launch_app.assert_called_once_with("com.example.app")
    handler.assert_awaited_once_with(event)


@pytest.mark.asyncio
async def test_relaunch_stops_app_first(device, mock_adb):
    await device.relaunch_app("com.example.app")
    mock_adb.force_stop.assert_called_once_with("com.example.app")
    mock_adb.launch_app.assert_called_once_with("com.example.app")


@pytest.mark.asyncio
async def test_reset_device_emits_before_and_after(device, mock_adb):
    order = []

    async def before(event):
        order.append(("before", event))

    async def after(event):
        order.append(("after", event))

    device.on("before_reset_device", before)
    device.on("reset_device", after)
    mock_adb.clear_app_data.side_effect = lambda bundle_id: order.append(("clear", bundle_id)) or True
    await device.reset_device("com.example.app")

    event = DeviceEvent(device_id="emulator-5554")
    assert order == [("before", event), ("clear", "com.example.app"), ("after", event)]


@pytest.mark.asyncio
async def test_emit_without_handlers(device):
    await device.emit("reset_device", DeviceEvent(device_id="emulator-5554"))


@pytest.mark.asyncio
async def test_manager_subscription_end_to_end(device, manager):
    manager.subscribe_to_device_events(device)
    await device.launch_app("com.example.app")
    assert manager.artifacts_api.get_pid() == 4242

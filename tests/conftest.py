import asyncio

import pytest
from pathlib import Path

from device_artifacts.core.artifacts_manager import ArtifactsManager
from device_artifacts.core.events import DeviceEvent
from device_artifacts.plugins.base import Artifact, ArtifactPlugin


class RecordingPlugin(ArtifactPlugin):
    """Plugin that records every hook call and can be told to fail."""

    def __init__(self, api, label: str, calls: list, fail_on: tuple[str, ...] = ()):
        super().__init__(api)
        self.label = label
        self.calls = calls
        self.fail_on = fail_on

    @property
    def name(self) -> str:
        return self.label

    async def _record(self, hook: str, *args) -> None:
        self.calls.append((self.label, hook, args))
        await asyncio.sleep(0)
        if hook in self.fail_on:
            raise RuntimeError(f"{self.label} failed in {hook}")

    async def on_before_all(self):
        await self._record("on_before_all")

    async def on_before_test(self, test_summary):
        await self._record("on_before_test", test_summary)

    async def on_before_reset_device(self, event):
        await self._record("on_before_reset_device", event)

    async def on_reset_device(self, event):
        await self._record("on_reset_device", event)

    async def on_relaunch_app(self, event):
        await self._record("on_relaunch_app", event)

    async def on_after_test(self, test_summary):
        await self._record("on_after_test", test_summary)

    async def on_after_all(self):
        await self._record("on_after_all")

    async def on_terminate(self):
        await self._record("on_terminate")


class FakeArtifact(Artifact):
    def __init__(self, fail: bool = False):
        self.discard_count = 0
        self.fail = fail

    async def discard(self) -> None:
        self.discard_count += 1
        if self.fail:
            raise OSError("discard failed")


@pytest.fixture
def project_root():
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root):
    return project_root / "config"


@pytest.fixture
def calls():
    return []


@pytest.fixture
def manager(tmp_path):
    return ArtifactsManager(artifacts_root_dir=tmp_path / "artifacts")


@pytest.fixture
def make_plugins(manager, calls):
    """Register RecordingPlugins by label, optionally failing on given hooks."""
    def _make(**fail_on_by_label):
        manager.register_artifact_plugins({
            label: (lambda api, label=label, fail_on=fail_on: RecordingPlugin(api, label, calls, tuple(fail_on)))
            for label, fail_on in fail_on_by_label.items()
        })
        return manager.plugins
    return _make


@pytest.fixture
def launch_event():
    return DeviceEvent(device_id="emulator-5554", bundle_id="com.example.app", pid=4242)


@pytest.fixture
def make_artifact():
    return FakeArtifact

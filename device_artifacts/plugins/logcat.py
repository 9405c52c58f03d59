import asyncio
from functools import partial
from pathlib import Path

from device_artifacts.core.artifacts_api import ArtifactsApi
from device_artifacts.core.errors import PreconditionError
from device_artifacts.core.events import DeviceEvent, TestSummary
from device_artifacts.drivers.adb_controller import AdbController
from device_artifacts.plugins.base import Artifact, ArtifactPlugin
from device_artifacts.utils.logger import get_logger

logger = get_logger(__name__)


class LogArtifact(Artifact):
    def __init__(self, text: str):
        self.text = text

    async def save(self, path: Path) -> None:
        await asyncio.to_thread(path.write_text, self.text, encoding="utf-8")
        self.text = ""

    async def discard(self) -> None:
        self.text = ""


class LogcatPlugin(ArtifactPlugin):
    """Records the app's logcat output for every test.

    The buffer is cleared before each test. Pids of every app process seen
    during the test (launch plus relaunches) are dumped after it.
    """

    def __init__(self, api: ArtifactsApi, keep_only_failed: bool = False, adb_path: str = "adb"):
        super().__init__(api)
        self.keep_only_failed = keep_only_failed
        self.adb_path = adb_path
        self._pids: list[int] = []

    def _adb(self) -> AdbController:
        return AdbController(serial=self.api.get_device_id(), adb_path=self.adb_path)

    async def on_before_test(self, test_summary: TestSummary) -> None:
        await asyncio.to_thread(self._adb().logcat_clear)
        try:
            self._pids = [self.api.get_pid()]
        except PreconditionError:
            logger.warning("App pid unknown, logcat will not be filtered by process")
            self._pids = []

    async def on_relaunch_app(self, event: DeviceEvent) -> None:
        if event.pid and event.pid not in self._pids:
            self._pids.append(event.pid)

    async def on_after_test(self, test_summary: TestSummary) -> None:
        adb = self._adb()
        if self._pids:
            chunks = [await asyncio.to_thread(adb.logcat_dump, pid) for pid in self._pids]
        else:
            chunks = [await asyncio.to_thread(adb.logcat_dump)]
        self._pids = []

        artifact = LogArtifact("".join(chunks))
        self.api.track_artifact(artifact)
        if self.keep_only_failed and not test_summary.failed:
            callback = partial(self._discard, artifact)
        else:
            callback = partial(self._save, artifact, test_summary)
        self.api.request_idle_callback(callback, self)

    async def _save(self, artifact: LogArtifact, test_summary: TestSummary) -> None:
        path = await self.api.prepare_path_for_artifact("logcat.log", test_summary)
        await artifact.save(path)
        self.api.untrack_artifact(artifact)
        logger.info(f"Saved logcat: {path}")

    async def _discard(self, artifact: LogArtifact) -> None:
        await artifact.discard()
        self.api.untrack_artifact(artifact)

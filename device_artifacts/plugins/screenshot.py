import asyncio
from functools import partial
from pathlib import Path

import cv2
import numpy as np

from device_artifacts.core.artifacts_api import ArtifactsApi
from device_artifacts.core.events import TestSummary
from device_artifacts.drivers.adb_controller import AdbController
from device_artifacts.plugins.base import Artifact, ArtifactPlugin
from device_artifacts.utils.logger import get_logger

logger = get_logger(__name__)

TAKE_WHEN_CHOICES = ("before_test", "after_test")


class ScreenshotArtifact(Artifact):
    def __init__(self, image: np.ndarray):
        self.image = image

    async def save(self, path: Path) -> None:
        if self.image is None:
            raise RuntimeError(f"Screenshot was already released, cannot save to {path}")
        if not await asyncio.to_thread(cv2.imwrite, str(path), self.image):
            raise RuntimeError(f"Failed to write screenshot: {path}")
        self.image = None

    async def discard(self) -> None:
        self.image = None


class ScreenshotPlugin(ArtifactPlugin):
    def __init__(
        self,
        api: ArtifactsApi,
        take_when: tuple[str, ...] | list[str] = TAKE_WHEN_CHOICES,
        keep_only_failed: bool = False,
        adb_path: str = "adb",
    ):
        super().__init__(api)
        unknown = set(take_when) - set(TAKE_WHEN_CHOICES)
        if unknown:
            raise ValueError(f"Unknown screenshot moments: {sorted(unknown)}")
        self.take_when = tuple(take_when)
        self.keep_only_failed = keep_only_failed
        self.adb_path = adb_path
        self._pending: list[tuple[str, ScreenshotArtifact]] = []

    async def on_before_test(self, test_summary: TestSummary) -> None:
        if "before_test" in self.take_when:
            await self._take("beforeTest.png")

    async def on_after_test(self, test_summary: TestSummary) -> None:
        if "after_test" in self.take_when:
            await self._take("afterTest.png")
        pending, self._pending = self._pending, []
        for artifact_name, artifact in pending:
            if self.keep_only_failed and not test_summary.failed:
                callback = partial(self._discard, artifact)
            else:
                callback = partial(self._save, artifact_name, artifact, test_summary)
            self.api.request_idle_callback(callback, self)

    async def _take(self, artifact_name: str) -> None:
        adb = AdbController(serial=self.api.get_device_id(), adb_path=self.adb_path)
        png = await asyncio.to_thread(adb.screencap)
        if png is None:
            return
        image = cv2.imdecode(np.frombuffer(png, dtype=np.uint8), cv2.IMREAD_COLOR)
        if image is None:
            logger.warning(f"Could not decode screenshot for {artifact_name}")
            return
        artifact = ScreenshotArtifact(image)
        self.api.track_artifact(artifact)
        self._pending.append((artifact_name, artifact))

    async def _save(self, artifact_name: str, artifact: ScreenshotArtifact, test_summary: TestSummary) -> None:
        path = await self.api.prepare_path_for_artifact(artifact_name, test_summary)
        await artifact.save(path)
        self.api.untrack_artifact(artifact)
        logger.info(f"Saved screenshot: {path}")

    async def _discard(self, artifact: ScreenshotArtifact) -> None:
        await artifact.discard()
        self.api.untrack_artifact(artifact)

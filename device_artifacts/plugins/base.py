from abc import ABC, abstractmethod

from device_artifacts.core.artifacts_api import ArtifactsApi
from device_artifacts.core.events import DeviceEvent, TestSummary


class Artifact(ABC):
    @abstractmethod
    async def discard(self) -> None:
        """Drop whatever was captured without persisting it."""


class ArtifactPlugin:
    """Base class for artifact plugins. Every hook is a no-op by default."""

    def __init__(self, api: ArtifactsApi):
        self.api = api

    @property
    def name(self) -> str:
        return type(self).__name__

    async def on_before_all(self) -> None:
        pass

    async def on_before_test(self, test_summary: TestSummary) -> None:
        pass

    async def on_before_reset_device(self, event: DeviceEvent) -> None:
        pass

    async def on_reset_device(self, event: DeviceEvent) -> None:
        pass

    async def on_relaunch_app(self, event: DeviceEvent) -> None:
        pass

    async def on_after_test(self, test_summary: TestSummary) -> None:
        pass

    async def on_after_all(self) -> None:
        pass

    async def on_terminate(self) -> None:
        pass

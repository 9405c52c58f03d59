import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from device_artifacts.core.errors import PreconditionError
from device_artifacts.core.events import TestSummary
from device_artifacts.core.idle_queue import IdleCallback
from device_artifacts.core.path_builder import ArtifactPathBuilder

if TYPE_CHECKING:
    from device_artifacts.core.artifacts_manager import ArtifactsManager


@dataclass(frozen=True)
class RunContext:
    """Identity of the app under test, replaced on every launch."""

    device_id: str = ""
    bundle_id: str = ""
    pid: int | None = None

    @property
    def is_bound(self) -> bool:
        return bool(self.device_id)


class ArtifactsApi:
    """Capabilities handed to every artifact plugin.

    Backed by the owning manager's state: the current run context, the set
    of live artifacts and the idle task queue.
    """

    def __init__(self, manager: "ArtifactsManager", path_builder: ArtifactPathBuilder):
        self._manager = manager
        self._path_builder = path_builder

    def get_device_id(self) -> str:
        device_id = self._manager.context.device_id
        if not device_id:
            raise PreconditionError("Artifacts API had no device_id at the time of calling")
        return device_id

    def get_bundle_id(self) -> str:
        bundle_id = self._manager.context.bundle_id
        if not bundle_id:
            raise PreconditionError("Artifacts API had no bundle_id at the time of calling")
        return bundle_id

    def get_pid(self) -> int:
        pid = self._manager.context.pid
        if not pid:
            raise PreconditionError("Artifacts API had no app pid at the time of calling")
        return pid

    async def prepare_path_for_artifact(self, artifact_name: str, test_summary: TestSummary | None = None) -> Path:
        artifact_path = self._path_builder.build_path_for_test_artifact(artifact_name, test_summary)
        await asyncio.to_thread(artifact_path.parent.mkdir, parents=True, exist_ok=True)
        return artifact_path

    def track_artifact(self, artifact: Any) -> None:
        self._manager.add_active_artifact(artifact)

    def untrack_artifact(self, artifact: Any) -> None:
        self._manager.remove_active_artifact(artifact)

    def request_idle_callback(self, callback: IdleCallback, caller: Any) -> None:
        self._manager.idle_queue.request(callback, plugin_name(caller))


def plugin_name(plugin: Any) -> str:
    name = getattr(plugin, "name", None)
    if isinstance(name, str) and name:
        return name
    return type(plugin).__name__ if plugin is not None else "unknown"

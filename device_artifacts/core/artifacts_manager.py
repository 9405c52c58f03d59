import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping

from device_artifacts.core.artifacts_api import ArtifactsApi, RunContext, plugin_name
from device_artifacts.core.events import DeviceEvent, TestSummary
from device_artifacts.core.idle_queue import IdleTaskQueue
from device_artifacts.core.path_builder import ArtifactPathBuilder
from device_artifacts.utils.logger import get_logger, log_error

if TYPE_CHECKING:
    from device_artifacts.plugins.base import ArtifactPlugin

logger = get_logger(__name__)

PluginFactory = Callable[[ArtifactsApi], "ArtifactPlugin"]
Hook = Callable[["ArtifactPlugin"], Awaitable[None]]


class ArtifactsManager:
    def __init__(self, artifacts_root_dir: Path | str = "artifacts", path_builder: ArtifactPathBuilder | None = None):
        self.context = RunContext()
        self.idle_queue = IdleTaskQueue(error_handler=self._handle_error)
        self._active_artifacts: list[Any] = []
        self._plugins: dict[str, "ArtifactPlugin"] = {}
        self._termination: asyncio.Task | None = None
        self.artifacts_api = ArtifactsApi(self, path_builder or ArtifactPathBuilder(artifacts_root_dir))

    @property
    def plugins(self) -> dict[str, "ArtifactPlugin"]:
        return dict(self._plugins)

    @property
    def active_artifacts(self) -> list[Any]:
        return list(self._active_artifacts)

    def add_active_artifact(self, artifact: Any) -> None:
        if not any(a is artifact for a in self._active_artifacts):
            self._active_artifacts.append(artifact)

    def remove_active_artifact(self, artifact: Any) -> None:
        self._active_artifacts = [a for a in self._active_artifacts if a is not artifact]

    def register_artifact_plugins(self, factories: Mapping[str, PluginFactory] | None = None) -> None:
        self._plugins = {kind: factory(self.artifacts_api) for kind, factory in (factories or {}).items()}
        if self._plugins:
            logger.debug(f"Registered artifact plugins: {', '.join(self._plugins)}")

    def subscribe_to_device_events(self, device) -> None:
        device.on("before_reset_device", self.on_before_reset_device)
        device.on("reset_device", self.on_reset_device)
        device.on("launch_app", self.on_launch_app)

    async def on_launch_app(self, event: DeviceEvent) -> None:
        is_first_time = not self.context.is_bound
        self.context = RunContext(device_id=event.device_id, bundle_id=event.bundle_id or "", pid=event.pid)

        if not is_first_time:
            await self._emit("on_relaunch_app", lambda p: p.on_relaunch_app(event))

    async def on_before_all(self) -> None:
        await self._emit("on_before_all", lambda p: p.on_before_all())

    async def on_before_test(self, test_summary: TestSummary) -> None:
        await self._emit("on_before_test", lambda p: p.on_before_test(test_summary))

    async def on_before_reset_device(self, event: DeviceEvent) -> None:
        await self._emit("on_before_reset_device", lambda p: p.on_before_reset_device(DeviceEvent(event.device_id)))

    async def on_reset_device(self, event: DeviceEvent) -> None:
        await self._emit("on_reset_device", lambda p: p.on_reset_device(DeviceEvent(event.device_id)))

    async def on_after_test(self, test_summary: TestSummary) -> None:
        await self._emit("on_after_test", lambda p: p.on_after_test(test_summary))

    async def on_after_all(self) -> None:
        await self._emit("on_after_all", lambda p: p.on_after_all())
        await self.idle_queue.drained()
        logger.debug("Finalized artifacts successfully")

    async def on_terminate(self) -> None:
        """Stop plugins and discard leftover artifacts. Runs its body once."""
        if self._termination is None:
            self._termination = asyncio.get_running_loop().create_task(self._terminate())
        await asyncio.shield(self._termination)

    async def _terminate(self) -> None:
        self.idle_queue.mark_terminated()
        await self._emit("on_terminate", lambda p: p.on_terminate())
        leftovers, self._active_artifacts = self._active_artifacts, []
        await asyncio.gather(*(self._discard(artifact) for artifact in leftovers))
        logger.info("Terminated all artifacts")

    async def _discard(self, artifact: Any) -> None:
        try:
            await artifact.discard()
        except Exception as e:
            self._handle_error(e, type(artifact).__name__, "discard")

    async def _emit(self, phase: str, hook: Hook) -> None:
        await asyncio.gather(*(self._invoke(plugin, phase, hook) for plugin in self._plugins.values()))

    async def _invoke(self, plugin: "ArtifactPlugin", phase: str, hook: Hook) -> None:
        try:
            await hook(plugin)
        except Exception as e:
            self._handle_error(e, plugin_name(plugin), phase)

    def _handle_error(self, error: BaseException, source: str, phase: str) -> None:
        logger.error(f"Caught exception inside plugin ({source or 'unknown'}) at phase {phase}")
        log_error(logger, error, "ArtifactsManager")

from functools import partial

from device_artifacts.plugins.base import Artifact, ArtifactPlugin
from device_artifacts.plugins.logcat import LogArtifact, LogcatPlugin
from device_artifacts.plugins.screenshot import ScreenshotArtifact, ScreenshotPlugin

PLUGIN_CLASSES = {
    "screenshot": ScreenshotPlugin,
    "logcat": LogcatPlugin,
}


def build_plugin_factories(plugin_settings: dict, adb_path: str = "adb") -> dict:
    """Factory map for every plugin enabled in the `artifacts.plugins` settings."""
    factories = {}
    for kind, options in plugin_settings.items():
        options = dict(options or {})
        if not options.pop("enabled", True):
            continue
        if kind not in PLUGIN_CLASSES:
            raise ValueError(f"Unknown artifact plugin: {kind}")
        factories[kind] = partial(PLUGIN_CLASSES[kind], adb_path=adb_path, **options)
    return factories


__all__ = [
    "Artifact",
    "ArtifactPlugin",
    "LogArtifact",
    "LogcatPlugin",
    "ScreenshotArtifact",
    "ScreenshotPlugin",
    "PLUGIN_CLASSES",
    "build_plugin_factories",
]

import asyncio
import click
from pathlib import Path
from rich.console import Console
from device_artifacts.utils.config import load_settings, load_scenario, get_artifacts_location, get_plugin_settings

console = Console()


@click.group()
def main():
    """device-artifacts: artifact capture around Android test runs"""
    pass


@main.command()
@click.option("--scenario", required=True, help="Scenario name (e.g. smoke_launch)")
@click.option("--serial", default=None, help="Device serial number")
@click.option("--config-dir", default="config", help="Config directory path")
@click.option("--artifacts-location", default=None, help="Root directory for saved artifacts")
def run(scenario, serial, config_dir, artifacts_location):
    """Run a scenario and capture artifacts around every test."""
    from device_artifacts.core.artifacts_manager import ArtifactsManager
    from device_artifacts.core.scenario_runner import ScenarioRunner
    from device_artifacts.drivers.adb_controller import AdbController
    from device_artifacts.drivers.device import Device
    from device_artifacts.plugins import build_plugin_factories
    from device_artifacts.reporting.cli_reporter import CliReporter

    config_path = Path(config_dir)
    settings = load_settings(config_path / "settings.yaml")
    scenario_config = load_scenario(config_path / "scenarios" / f"{scenario}.yaml")
    serial = serial or settings.get("device", {}).get("serial")
    location = get_artifacts_location(settings, artifacts_location)

    adb = AdbController(serial=serial)
    if not adb.wait_for_device(timeout=60):
        console.print("[red]Device not found via ADB[/]")
        raise SystemExit(1)

    manager = ArtifactsManager(artifacts_root_dir=location)
    manager.register_artifact_plugins(build_plugin_factories(get_plugin_settings(settings)))
    device = Device(adb)
    runner = ScenarioRunner(adb=adb, device=device, manager=manager)
    results = asyncio.run(runner.run_scenario(scenario_config))

    CliReporter().print_results(results, scenario_config["scenario"]["name"], device.device_id, str(location))
    passed = sum(1 for r in results if r.passed)
    total = len(results)
    raise SystemExit(0 if passed == total and total > 0 else 1)


@main.group()
def plugins():
    """Inspect artifact plugins."""
    pass


@plugins.command("list")
@click.option("--config-dir", default="config", help="Config directory path")
def plugins_list(config_dir):
    """List available plugins and whether settings enable them."""
    from device_artifacts.plugins import PLUGIN_CLASSES

    settings_path = Path(config_dir) / "settings.yaml"
    plugin_settings = get_plugin_settings(load_settings(settings_path)) if settings_path.exists() else {}
    for kind, plugin_cls in PLUGIN_CLASSES.items():
        options = plugin_settings.get(kind) or {}
        enabled = kind in plugin_settings and options.get("enabled", True)
        state = "[green]enabled[/]" if enabled else "[dim]disabled[/]"
        console.print(f"  {kind}: {plugin_cls.__name__} ({state})")


@main.group()
def scenarios():
    """Manage scenarios."""
    pass


@scenarios.command("list")
@click.option("--config-dir", default="config", help="Config directory path")
def scenarios_list(config_dir):
    """List available scenarios."""
    config_path = Path(config_dir) / "scenarios"
    if not config_path.exists():
        console.print("[yellow]No scenarios found[/]")
        return
    for f in sorted(config_path.glob("*.yaml")):
        config = load_scenario(f)
        name = config.get("scenario", {}).get("name", f.stem)
        count = len(config.get("scenario", {}).get("tests", []))
        console.print(f"  {f.stem}: {name} ({count} tests)")


if __name__ == "__main__":
    main()

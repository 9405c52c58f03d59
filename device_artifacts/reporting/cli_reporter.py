from rich.console import Console
from rich.table import Table

from device_artifacts.core.scenario_runner import TestResult, TestStatus

console = Console()


class CliReporter:
    def print_results(
        self,
        results: list[TestResult],
        scenario_name: str,
        device_id: str,
        artifacts_location: str | None = None,
    ) -> None:
        table = Table(title=f"Scenario Results: {scenario_name} @ {device_id}")
        table.add_column("ID", style="dim")
        table.add_column("Test Name")
        table.add_column("Status")
        table.add_column("Duration", justify="right")
        table.add_column("Message")

        for r in results:
            status_style = {
                TestStatus.PASS: "[bold green]PASS[/]",
                TestStatus.FAIL: "[bold red]FAIL[/]",
                TestStatus.ERROR: "[bold red]ERROR[/]",
            }.get(r.status, r.status.value)
            table.add_row(
                r.id, r.name, status_style, f"{r.duration:.2f}s", r.message
            )

        console.print(table)

        passed = sum(1 for r in results if r.status == TestStatus.PASS)
        failed = sum(1 for r in results if r.status == TestStatus.FAIL)
        error = sum(1 for r in results if r.status == TestStatus.ERROR)
        total = len(results)
        all_ok = failed == 0 and error == 0
        console.print(
            f"\n[bold]Summary:[/] {passed} passed, {failed} failed, {error} error / {total} total "
            f"({'[green]ALL PASS[/]' if all_ok else '[red]HAS FAILURES[/]'})"
        )
        if artifacts_location:
            console.print(f"[bold]Artifacts:[/] {artifacts_location}")

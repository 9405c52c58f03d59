import asyncio
import re
import time
from dataclasses import dataclass
from enum import Enum

from device_artifacts.core.artifacts_manager import ArtifactsManager
from device_artifacts.core.events import TestOutcome, TestSummary
from device_artifacts.drivers.adb_controller import AdbController
from device_artifacts.drivers.device import Device
from device_artifacts.utils.logger import get_logger

logger = get_logger(__name__)

class TestStatus(Enum):
    PASS = "PASS"
    FAIL = "FAIL"
    ERROR = "ERROR"

@dataclass
class TestResult:
    id: str
    name: str
    status: TestStatus
    message: str = ""
    duration: float = 0.0

    @property
    def passed(self) -> bool:
        return self.status == TestStatus.PASS

class ScenarioRunner:
    """Runs a scenario of adb shell checks with artifact lifecycle hooks around them."""

    def __init__(self, adb: AdbController, device: Device, manager: ArtifactsManager):
        self.adb = adb
        self.device = device
        self.manager = manager
        manager.subscribe_to_device_events(device)

    async def run_scenario(self, scenario_config: dict) -> list[TestResult]:
        scenario = scenario_config["scenario"]
        bundle_id = scenario["bundle_id"]
        logger.info(f"Running scenario: {scenario['name']}")
        results = []
        try:
            await self.device.launch_app(bundle_id)
            await self.manager.on_before_all()
            for test_case in scenario.get("tests", []):
                result = await self.run_test(test_case, scenario["name"], bundle_id)
                results.append(result)
                status_icon = "PASS" if result.passed else result.status.value
                logger.info(f"  [{status_icon}] {result.name}: {result.message}")
            await self.manager.on_after_all()
        finally:
            await self.manager.on_terminate()
        return results

    async def run_test(self, test_case: dict, scenario_name: str, bundle_id: str) -> TestResult:
        test_id = test_case["id"]
        test_name = test_case["name"]
        full_name = f"{scenario_name} {test_name}"

        await self.manager.on_before_test(TestSummary(title=test_name, full_name=full_name))
        start_time = time.time()
        try:
            if test_case.get("reset"):
                await self.device.reset_device(bundle_id)
            if test_case.get("relaunch"):
                await self.device.relaunch_app(bundle_id)
            result = await asyncio.to_thread(self._run_shell_check, test_case)
        except Exception as e:
            result = TestResult(id=test_id, name=test_name, status=TestStatus.ERROR, message=str(e))
        result.duration = time.time() - start_time

        outcome = TestOutcome.PASSED if result.passed else TestOutcome.FAILED
        await self.manager.on_after_test(TestSummary(title=test_name, full_name=full_name, status=outcome))
        return result

    def _run_shell_check(self, tc: dict) -> TestResult:
        if "command" not in tc:
            return TestResult(id=tc["id"], name=tc["name"], status=TestStatus.PASS, message="No command")
        proc = self.adb.shell(tc["command"], timeout=tc.get("timeout", 30))
        output = proc.stdout.strip()
        actual_snippet = output[:200]
        if "expected_contains" in tc:
            if tc["expected_contains"] in output:
                return TestResult(id=tc["id"], name=tc["name"], status=TestStatus.PASS)
            return TestResult(id=tc["id"], name=tc["name"], status=TestStatus.FAIL, message=f"Output does not contain '{tc['expected_contains']}' | actual: {actual_snippet}")
        if "expected_pattern" in tc:
            if re.search(tc["expected_pattern"], output):
                return TestResult(id=tc["id"], name=tc["name"], status=TestStatus.PASS)
            return TestResult(id=tc["id"], name=tc["name"], status=TestStatus.FAIL, message=f"Output does not match pattern '{tc['expected_pattern']}' | actual: {actual_snippet}")
        if proc.returncode == 0:
            return TestResult(id=tc["id"], name=tc["name"], status=TestStatus.PASS)
        return TestResult(id=tc["id"], name=tc["name"], status=TestStatus.FAIL, message=f"Command failed with exit code {proc.returncode} | actual: {actual_snippet}")

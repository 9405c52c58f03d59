from dataclasses import dataclass
from enum import Enum


class TestOutcome(Enum):
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"


@dataclass(frozen=True)
class DeviceEvent:
    device_id: str
    bundle_id: str | None = None
    pid: int | None = None


@dataclass(frozen=True)
class TestSummary:
    title: str
    full_name: str
    status: TestOutcome = TestOutcome.RUNNING

    @property
    def failed(self) -> bool:
        return self.status == TestOutcome.FAILED

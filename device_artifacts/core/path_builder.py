import re
from pathlib import Path

from device_artifacts.core.events import TestOutcome, TestSummary

_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')

_STATUS_MARKS = {
    TestOutcome.PASSED: "✓ ",
    TestOutcome.FAILED: "✗ ",
}


class ArtifactPathBuilder:
    def __init__(self, artifacts_root_dir: Path | str = "artifacts"):
        self.root_dir = Path(artifacts_root_dir)

    def build_path_for_test_artifact(self, artifact_name: str, test_summary: TestSummary | None = None) -> Path:
        if test_summary is None:
            return self.root_dir / self._sanitize(artifact_name)
        test_dir = _STATUS_MARKS.get(test_summary.status, "") + self._sanitize(test_summary.full_name)
        return self.root_dir / test_dir / self._sanitize(artifact_name)

    @staticmethod
    def _sanitize(name: str) -> str:
        cleaned = _UNSAFE_CHARS.sub("_", name).strip().rstrip(".")
        # path components are capped at 255 bytes on common filesystems
        return cleaned[:200] or "_"

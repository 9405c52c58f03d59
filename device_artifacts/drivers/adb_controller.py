import subprocess
import time
from device_artifacts.utils.logger import get_logger

logger = get_logger(__name__)


class AdbController:
    def __init__(self, serial: str | None = None, adb_path: str = "adb"):
        self.serial = serial
        self.adb_path = adb_path

    def _build_cmd(self, *args: str) -> list[str]:
        cmd = [self.adb_path]
        if self.serial:
            cmd.extend(["-s", self.serial])
        cmd.extend(args)
        return cmd

    def _run(self, *args: str, timeout: int = 30, **kwargs) -> subprocess.CompletedProcess:
        cmd = self._build_cmd(*args)
        logger.debug(f"ADB: {' '.join(cmd)}")
        return subprocess.run(cmd, capture_output=True, timeout=timeout, **kwargs)

    def shell(self, command: str, timeout: int = 30) -> subprocess.CompletedProcess:
        return self._run("shell", command, timeout=timeout, text=True)

    def get_serial(self) -> str:
        """Serial of the attached device, asking adb when none was given."""
        if self.serial:
            return self.serial
        result = self._run("get-serialno", text=True)
        return result.stdout.strip()

    def is_connected(self) -> bool:
        result = self._run("devices", text=True)
        if self.serial:
            return f"{self.serial}\tdevice" in result.stdout
        lines = result.stdout.strip().split("\n")
        return any("\tdevice" in line for line in lines[1:])

    def wait_for_device(self, timeout: int = 60) -> bool:
        deadline = time.time() + timeout
        while time.time() < deadline:
            if self.is_connected():
                logger.info(f"Device {self.serial or 'any'} connected")
                return True
            time.sleep(2)
        logger.warning(f"Timeout waiting for device {self.serial or 'any'}")
        return False

    def launch_app(self, bundle_id: str) -> subprocess.CompletedProcess:
        logger.info(f"Launching {bundle_id}")
        return self.shell(f"monkey -p {bundle_id} -c android.intent.category.LAUNCHER 1")

    def force_stop(self, bundle_id: str) -> subprocess.CompletedProcess:
        return self.shell(f"am force-stop {bundle_id}")

    def clear_app_data(self, bundle_id: str) -> bool:
        result = self.shell(f"pm clear {bundle_id}")
        return "Success" in result.stdout

    def pidof(self, bundle_id: str, timeout: int = 10) -> int | None:
        """Poll until the app process shows up. Returns None on timeout."""
        deadline = time.time() + timeout
        while True:
            output = self.shell(f"pidof {bundle_id}").stdout.strip()
            if output:
                return int(output.split()[0])
            if time.time() >= deadline:
                logger.warning(f"No process found for {bundle_id}")
                return None
            time.sleep(0.5)

    def screencap(self) -> bytes | None:
        """Raw PNG bytes of the current screen, or None if screencap failed."""
        try:
            result = self._run("exec-out", "screencap", "-p", timeout=10)
        except subprocess.TimeoutExpired:
            logger.warning("screencap timed out")
            return None
        if result.returncode != 0:
            logger.warning(f"screencap failed: {result.stderr}")
            return None
        return result.stdout

    def logcat_clear(self) -> None:
        self._run("logcat", "-c")

    def logcat_dump(self, pid: int | None = None) -> str:
        args = ["logcat", "-d", "-v", "threadtime"]
        if pid:
            args.append(f"--pid={pid}")
        result = self._run(*args, timeout=60, text=True, errors="replace")
        return result.stdout

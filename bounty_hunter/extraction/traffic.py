import logging
import shutil
import subprocess
import time
from pathlib import Path
from typing import IO, Optional

from bounty_hunter.config.defaults import TRAFFIC_STARTUP_DELAY, TRAFFIC_STOP_TIMEOUT
from bounty_hunter.utils.logger import get_logger


class TrafficCapture:
    """
    Supervised mitmdump process writing captured flows to `output_file`.

    The capture lives between start() and stop(); using it as a context
    manager guarantees the process is reaped.
    """

    def __init__(
        self,
        output_file: Path,
        logger: Optional[logging.Logger] = None,
        startup_delay: float = TRAFFIC_STARTUP_DELAY,
        stop_timeout: float = TRAFFIC_STOP_TIMEOUT
    ):
        self.output_file = output_file
        self.logger = logger or get_logger()
        self.startup_delay = startup_delay
        self.stop_timeout = stop_timeout
        self.process: Optional[subprocess.Popen] = None
        self.stderr_path = output_file.with_suffix(".log")
        self._stderr: Optional[IO[bytes]] = None

    @property
    def running(self) -> bool:
        return self.process is not None and self.process.poll() is None

    def start(self) -> bool:
        if self.running:
            return True

        mitmdump = shutil.which("mitmdump")
        if not mitmdump:
            self.logger.warning("[Traffic] `mitmdump` not found in PATH, traffic capture disabled.")
            return False

        self.logger.info("Starting traffic capture with mitmproxy...")
        try:
            self._stderr = self.stderr_path.open("wb")
            self.process = subprocess.Popen(
                [mitmdump, "-q", "-w", str(self.output_file)],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=self._stderr,
            )
        except OSError as ex:
            self.logger.warning(f"mitmproxy failed: {ex}")
            self._close_stderr()
            return False

        time.sleep(self.startup_delay)
        if not self.running:
            self._close_stderr()
            stderr = self.stderr_path.read_text(encoding="utf-8", errors="replace")
            self.logger.warning(f"mitmproxy exited early with code {self.process.returncode}: {stderr.strip()}")
            self.process = None
            return False
        return True

    def stop(self) -> None:
        if self.process is None:
            return

        if self.process.poll() is None:
            self.process.terminate()
            try:
                self.process.wait(timeout=self.stop_timeout)
            except subprocess.TimeoutExpired:
                self.logger.warning("[Traffic] mitmdump did not stop in time, killing it.")
                self.process.kill()
                self.process.wait()

        self._close_stderr()
        self.logger.info(f"Traffic capture stopped: {self.output_file}")
        self.process = None

    def _close_stderr(self) -> None:
        if self._stderr is not None:
            self._stderr.close()
            self._stderr = None

    def __enter__(self) -> "TrafficCapture":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

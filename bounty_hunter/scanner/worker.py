import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from bounty_hunter.scanner.channel import Channel
from bounty_hunter.scanner.enumerator import FileTask
from bounty_hunter.scanner.matcher import Category, Finding, PatternMatcher
from bounty_hunter.utils.fs_utils import read_file_bytes
from bounty_hunter.utils.logger import get_logger


@dataclass
class WorkerStats:
    scanned: int = 0
    skipped: int = 0
    findings: int = 0


class ScanWorker:
    """
    Pulls file tasks until the dispatch queue is closed and drained.

    Stats are owned by the worker thread and read by the coordinator only
    after the thread has been joined.
    """

    def __init__(
        self,
        worker_id: int,
        tasks: Channel[FileTask],
        channels: Mapping[Category, Channel[Finding]],
        matcher: PatternMatcher,
        logger: Optional[logging.Logger] = None
    ):
        self.worker_id = worker_id
        self.tasks = tasks
        self.channels = channels
        self.matcher = matcher
        self.logger = logger or get_logger()
        self.stats = WorkerStats()

    @property
    def name(self) -> str:
        return f"scan-worker-{self.worker_id}"

    def run(self) -> None:
        for task in self.tasks:
            try:
                self._process(task)
            except OSError as ex:
                self.stats.skipped += 1
                self.logger.warning(f"[Worker {self.worker_id}] Failed to read {task.path}: {ex}")
            except Exception:
                self.stats.skipped += 1
                self.logger.exception(f"[Worker {self.worker_id}] Unexpected error scanning {task.path}")
        self.logger.debug(
            f"[Worker {self.worker_id}] Done: {self.stats.scanned} scanned, {self.stats.skipped} skipped"
        )

    def _process(self, task: FileTask) -> None:
        content = read_file_bytes(task.path)
        findings = self.matcher.match(content)
        self.stats.scanned += 1

        for finding in findings:
            channel = self.channels.get(finding.category)
            if channel is None:
                self.logger.debug(f"[Worker {self.worker_id}] No channel for {finding.category.value}, dropped")
                continue
            channel.put(finding)
            self.stats.findings += 1

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from bounty_hunter.config.settings import PipelineConfig
from bounty_hunter.scanner.aggregator import ResultAggregator, ResultSet
from bounty_hunter.scanner.channel import Channel
from bounty_hunter.scanner.enumerator import FileEnumerator, FileTask
from bounty_hunter.scanner.errors import OutputSetupError
from bounty_hunter.scanner.matcher import DEFAULT_RULES, Category, Finding, PatternMatcher
from bounty_hunter.scanner.worker import ScanWorker
from bounty_hunter.utils.fs_utils import ensure_dirs_exist
from bounty_hunter.utils.logger import get_logger


class PipelineState(str, Enum):
    IDLE = "idle"
    ENUMERATING = "enumerating"     # enumerator and workers running
    DRAINING = "draining"           # queue closed, workers finishing
    CLOSING = "closing"             # workers joined, result channels closed
    DONE = "done"


@dataclass
class ScanReport:
    files_discovered: int = 0
    files_scanned: int = 0
    files_skipped: int = 0
    traversal_errors: int = 0
    results: Dict[Category, ResultSet] = field(default_factory=dict)
    output_paths: Dict[Category, Path] = field(default_factory=dict)
    elapsed_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files_discovered": self.files_discovered,
            "files_scanned": self.files_scanned,
            "files_skipped": self.files_skipped,
            "traversal_errors": self.traversal_errors,
            "unique_findings": {c.value: len(r) for c, r in self.results.items()},
            "output_paths": {c.value: str(p) for c, p in self.output_paths.items()},
            "elapsed_seconds": round(self.elapsed_seconds, 3),
        }


class ScanPipeline:
    """
    Wires enumerator, dispatch queue, workers and per-category aggregators.

    run() blocks until the whole tree has been scanned and every output file
    is flushed. Only output setup failures are fatal; they are raised as
    OutputSetupError before any thread starts.
    """

    def __init__(self, config: PipelineConfig, logger: Optional[logging.Logger] = None):
        self.config = config
        self.logger = logger or get_logger()
        self.state = PipelineState.IDLE

        wanted = {spec.category for spec in config.categories}
        self.matcher = PatternMatcher(rule for rule in DEFAULT_RULES if rule.category in wanted)

        self.dispatch: Channel[FileTask] = Channel(config.dispatch_capacity, name="dispatch")
        self.channels: Dict[Category, Channel[Finding]] = {
            spec.category: Channel(config.result_capacity, name=spec.category.value)
            for spec in config.categories
        }
        self.enumerator = FileEnumerator(
            config.root,
            exclude=[config.output_path(spec) for spec in config.categories] + list(config.exclude),
            logger=self.logger,
        )
        self.workers = [
            ScanWorker(i + 1, self.dispatch, self.channels, self.matcher, logger=self.logger)
            for i in range(config.worker_count)
        ]
        self.aggregators = [
            ResultAggregator(
                spec.category,
                config.output_path(spec),
                self.channels[spec.category],
                logger=self.logger,
            )
            for spec in config.categories
        ]

    def _transition(self, state: PipelineState) -> None:
        self.logger.debug(f"[Pipeline] {self.state.value} -> {state.value}")
        self.state = state

    def _prepare_outputs(self) -> None:
        try:
            ensure_dirs_exist([self.config.output_dir])
        except RuntimeError as ex:
            raise OutputSetupError(str(ex)) from ex

        opened: List[ResultAggregator] = []
        try:
            for aggregator in self.aggregators:
                aggregator.open()
                opened.append(aggregator)
        except OutputSetupError:
            for aggregator in opened:
                aggregator.close()
            raise

    def _feed(self) -> None:
        try:
            for task in self.enumerator.tasks():
                self.dispatch.put(task)
        except Exception:
            self.logger.exception(f"[Pipeline] Enumeration of {self.config.root} aborted")
        finally:
            self.dispatch.close()

    @staticmethod
    def _start(target, name: str) -> threading.Thread:
        thread = threading.Thread(target=target, name=name, daemon=True)
        thread.start()
        return thread

    def run(self) -> ScanReport:
        if self.state is not PipelineState.IDLE:
            raise RuntimeError("A ScanPipeline instance can only run once")

        start_time = time.perf_counter()
        self._prepare_outputs()

        self.logger.info(
            f"[Pipeline] Scanning {self.config.root} with {len(self.workers)} worker(s)..."
        )
        self._transition(PipelineState.ENUMERATING)

        aggregator_threads = [
            self._start(a.run, f"aggregator-{a.category.value}") for a in self.aggregators
        ]
        worker_threads = [self._start(w.run, w.name) for w in self.workers]
        feeder = self._start(self._feed, "enumerator")

        feeder.join()
        self._transition(PipelineState.DRAINING)

        for thread in worker_threads:
            thread.join()
        self._transition(PipelineState.CLOSING)

        for channel in self.channels.values():
            channel.close()
        for thread in aggregator_threads:
            thread.join()
        self._transition(PipelineState.DONE)

        report = self._build_report(time.perf_counter() - start_time)
        self.logger.info(
            f"[Pipeline] Scan finished: {report.files_scanned} scanned, "
            f"{report.files_skipped} skipped, {report.traversal_errors} traversal error(s)"
        )
        return report

    def _build_report(self, elapsed: float) -> ScanReport:
        return ScanReport(
            files_discovered=self.enumerator.discovered,
            files_scanned=sum(w.stats.scanned for w in self.workers),
            files_skipped=sum(w.stats.skipped for w in self.workers),
            traversal_errors=self.enumerator.errors,
            results={a.category: a.results for a in self.aggregators},
            output_paths={a.category: a.output_path for a in self.aggregators},
            elapsed_seconds=elapsed,
        )


def run_scan(config: PipelineConfig, logger: Optional[logging.Logger] = None) -> ScanReport:
    return ScanPipeline(config, logger=logger).run()

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import IO, List, Optional, Set, Tuple

from bounty_hunter.scanner.channel import Channel
from bounty_hunter.scanner.errors import OutputSetupError
from bounty_hunter.scanner.matcher import Category, Finding
from bounty_hunter.utils.logger import get_logger


@dataclass(frozen=True)
class ResultSet:
    category: Category
    values: Tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.values)

    def __contains__(self, value: object) -> bool:
        return value in self.values


class ResultAggregator:
    """
    Single consumer for one category's findings.

    The seen-set and arrival order are touched only by the thread running
    run(). Each new value is written as soon as it arrives; repeats are dropped.
    """

    def __init__(
        self,
        category: Category,
        output_path: Path,
        channel: Channel[Finding],
        logger: Optional[logging.Logger] = None
    ):
        self.category = category
        self.output_path = output_path
        self.channel = channel
        self.logger = logger or get_logger()
        self._seen: Set[str] = set()
        self._order: List[str] = []
        self._stream: Optional[IO[str]] = None
        self._write_failed = False

    def open(self) -> None:
        try:
            self._stream = open(self.output_path, "w", encoding="utf-8", newline="\n")
        except OSError as ex:
            raise OutputSetupError(f"Failed to create {self.output_path}: {ex}") from ex

    def close(self) -> None:
        if self._stream is None:
            return
        stream, self._stream = self._stream, None
        try:
            # close() flushes whatever is still buffered
            stream.close()
        except OSError as ex:
            self._write_error(ex)

    def add(self, value: str) -> bool:
        """Records a value; returns False when it was already seen."""
        if value in self._seen:
            return False
        self._seen.add(value)
        self._order.append(value)
        self._write(value)
        return True

    def _write(self, value: str) -> None:
        if self._stream is None or self._write_failed:
            return
        try:
            self._stream.write(value + "\n")
        except OSError as ex:
            # keep consuming so producers never block on a dead writer
            self._write_error(ex)

    def _write_error(self, ex: OSError) -> None:
        if not self._write_failed:
            self.logger.error(f"[Aggregator] Failed to write {self.output_path}: {ex}")
        self._write_failed = True

    def run(self) -> None:
        if self._stream is None:
            self.open()
        try:
            for finding in self.channel:
                self.add(finding.value)
        finally:
            self.close()
        self.logger.info(f"Wrote results to {self.output_path} ({len(self._order)} unique)")

    @property
    def results(self) -> ResultSet:
        return ResultSet(self.category, tuple(self._order))

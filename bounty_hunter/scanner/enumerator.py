import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, Iterable, Iterator, Optional

from bounty_hunter.utils.logger import get_logger


@dataclass(frozen=True)
class FileTask:
    path: Path


def _normalize(path: Path) -> str:
    return os.path.normcase(os.path.abspath(path))


class FileEnumerator:
    """
    Walks a directory tree and yields every regular file below it.

    Directory and file names are visited in sorted order so a walk over an
    unchanged tree is repeatable. Errors on any node are logged, counted in
    `errors`, and the node (with its subtree) is skipped. Symlinked
    directories are not followed.
    """

    def __init__(
        self,
        root: Path,
        exclude: Iterable[Path] = (),
        logger: Optional[logging.Logger] = None
    ):
        self.root = Path(root)
        self.exclude: FrozenSet[str] = frozenset(_normalize(p) for p in exclude)
        self.logger = logger or get_logger()
        self.errors = 0
        self.discovered = 0

    def _on_walk_error(self, err: OSError) -> None:
        self.errors += 1
        self.logger.warning(f"[Enumerator] Skipping {err.filename or self.root}: {err}")

    def _is_regular_file(self, path: Path) -> bool:
        try:
            mode = os.stat(path).st_mode
        except OSError as ex:
            # broken symlink, vanished file, denied lookup
            self._on_walk_error(ex)
            return False
        if not stat.S_ISREG(mode):
            self.logger.debug(f"[Enumerator] Skipping non-regular file: {path}")
            return False
        return True

    def _accept(self, path: Path) -> bool:
        if _normalize(path) in self.exclude:
            self.logger.debug(f"[Enumerator] Skipping excluded file: {path}")
            return False
        return self._is_regular_file(path)

    def walk(self) -> Iterator[Path]:
        self.errors = 0
        self.discovered = 0

        if self.root.is_file():
            if self._accept(self.root):
                self.discovered += 1
                yield self.root
            return

        for dirpath, dirnames, filenames in os.walk(self.root, onerror=self._on_walk_error):
            dirnames.sort()
            for name in sorted(filenames):
                path = Path(dirpath) / name
                if self._accept(path):
                    self.discovered += 1
                    yield path

        self.logger.debug(
            f"[Enumerator] Walk of {self.root} finished: {self.discovered} file(s), {self.errors} error(s)"
        )

    def tasks(self) -> Iterator[FileTask]:
        for path in self.walk():
            yield FileTask(path)


def enumerate_files(root: Path, logger: Optional[logging.Logger] = None) -> Iterator[Path]:
    return FileEnumerator(root, logger=logger).walk()

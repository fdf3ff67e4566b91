from pathlib import Path
from typing import Iterable


def ensure_dirs_exist(dirs: Iterable[Path]) -> None:
    """
    Ensure each path in `dirs` exists. If a directory does not exist, it will be created.

    Args:
        dirs (Iterable[Path]): A list or iterable of Path objects.
    """
    for directory in dirs:
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RuntimeError(f"Failed to create directory '{directory}': {e}") from e


def read_file_bytes(path: Path) -> bytes:
    """Reads a whole file as raw bytes. OSError propagates to the caller."""
    with open(path, "rb") as f:
        return f.read()

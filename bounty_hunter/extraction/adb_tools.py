import logging
import shlex
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

from bounty_hunter.config.defaults import DEVICE_DATA_DIRS, DEVICE_STAGING_DIR
from bounty_hunter.utils.logger import get_logger

# ───────────────────────────────────────────────────────────────
# Device Data Extraction
# ───────────────────────────────────────────────────────────────


def build_pull_commands(
    device_dir: str,
    output_dir: Path,
    subdirs: Sequence[str] = DEVICE_DATA_DIRS,
    staging_dir: str = DEVICE_STAGING_DIR
) -> List[List[str]]:
    """
    App-private data is only readable as root, so it is copied to world-readable
    storage with `su`, pulled, and the staged copy removed afterwards.
    """
    sources = " ".join(shlex.quote(f"{device_dir}/{name}") for name in subdirs)
    copy_cmd = f"cp -r {sources} {shlex.quote(staging_dir)}/"
    # adb shell joins argv with spaces, so the su payload travels as one quoted word
    commands = [["adb", "shell", f"su -c {shlex.quote(copy_cmd)}"]]

    for name in subdirs:
        commands.append(["adb", "pull", f"{staging_dir}/{name}", str(output_dir / name)])

    staged = [f"{staging_dir}/{name}" for name in subdirs]
    commands.append(["adb", "shell", "rm", "-r", *staged])
    return commands


def run_adb_command(cmd: List[str], logger: logging.Logger) -> bool:
    cmd_str = " ".join(cmd)
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, errors="replace")
    except OSError as ex:
        logger.warning(f"ADB command failed ({cmd_str}): {ex}")
        return False

    if result.returncode != 0:
        output = (result.stdout + result.stderr).strip()
        logger.warning(f"ADB command failed ({cmd_str}): exit code {result.returncode} - {output}")
        return False

    logger.info(f"ADB command succeeded: {cmd_str}")
    return True


def pull_device_data(device_dir: str, output_dir: Path, logger: Optional[logging.Logger] = None) -> int:
    """
    Pulls databases, shared_prefs and files of an app from the connected device.

    Every command runs even if an earlier one failed.

    Returns:
        int: number of commands that succeeded.
    """
    logger = logger or get_logger()
    logger.info("Extracting device data with ADB...")
    return sum(run_adb_command(cmd, logger) for cmd in build_pull_commands(device_dir, output_dir))

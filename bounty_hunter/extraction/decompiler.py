import logging
import shutil
import subprocess
from pathlib import Path
from typing import Optional

from bounty_hunter.utils.logger import get_logger


def decompile_apk(apk_path: Path, output_dir: Path, logger: Optional[logging.Logger] = None) -> bool:
    """
    Decompile an APK into Java sources with JADX.

    Returns:
        bool: True when jadx exited cleanly. Failures are logged, never raised.
    """
    logger = logger or get_logger()
    jadx_path = shutil.which("jadx")
    if not jadx_path:
        logger.warning("[JADX] `jadx` not found in PATH, skipping decompilation.")
        return False

    cmd = [jadx_path, "-d", str(output_dir), str(apk_path)]
    logger.info(f"Decompiling APK with JADX: {' '.join(cmd)}")

    try:
        result = subprocess.run(cmd, check=True, capture_output=True, text=True, errors="replace")
        logger.debug(result.stdout)
        logger.info(f"Decompilation completed: {output_dir}")
        return True
    except subprocess.CalledProcessError as e:
        # jadx exits non-zero on partial decompilation; sources may still exist
        logger.warning(f"JADX decompilation failed with exit code {e.returncode}")
        logger.debug(e.stderr)
    except OSError as e:
        logger.warning(f"JADX decompilation failed: {e}")
    return False

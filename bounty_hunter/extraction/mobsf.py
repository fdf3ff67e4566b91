import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

from bounty_hunter.config.defaults import MOBSF_APK_MOUNT, MOBSF_IMAGE
from bounty_hunter.utils.logger import get_logger


def build_mobsf_command(docker_path: str, apk_path: Path) -> List[str]:
    return [
        docker_path, "run", "-i", "--rm",
        "-v", f"{apk_path.resolve()}:{MOBSF_APK_MOUNT}",
        MOBSF_IMAGE,
        "mobsfscan", MOBSF_APK_MOUNT,
    ]


def run_mobsf_scan(apk_path: Path, report_path: Path, logger: Optional[logging.Logger] = None) -> bool:
    """Runs mobsfscan in the MobSF container, streaming stdout and stderr into `report_path`."""
    logger = logger or get_logger()
    docker_path = shutil.which("docker")
    if not docker_path:
        logger.warning("[MobSF] `docker` not found in PATH, skipping MobSF analysis.")
        return False

    logger.info("Running MobSF analysis...")
    try:
        report = report_path.open("w", encoding="utf-8")
    except OSError as ex:
        logger.warning(f"Failed to create MobSF report file: {ex}")
        return False

    with report:
        try:
            subprocess.run(
                build_mobsf_command(docker_path, apk_path),
                stdout=report,
                stderr=subprocess.STDOUT,
                check=True,
            )
        except subprocess.CalledProcessError as ex:
            logger.warning(f"MobSF failed with exit code {ex.returncode}")
            return False
        except OSError as ex:
            logger.warning(f"MobSF failed: {ex}")
            return False

    logger.info(f"MobSF analysis completed: {report_path}")
    return True

import logging
import re
import subprocess
from pathlib import Path
from typing import Optional

from androguard.core.apk import APK

from bounty_hunter.utils.logger import get_logger


def extract_package_name_from_filename(apk_path: Path) -> Optional[str]:
    match = re.match(r"([a-zA-Z0-9_.]+?)(?:_\d+)?\.apk$", apk_path.name)
    return match.group(1) if match else None


def extract_package_name_aapt(apk_path: Path, logger: logging.Logger) -> Optional[str]:
    try:
        result = subprocess.run(
            ["aapt", "dump", "badging", str(apk_path)],
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=True
        )
    except (OSError, subprocess.CalledProcessError) as ex:
        logger.debug(f"[aapt] Failed for {apk_path.name}: {ex}")
        return None

    match = re.search(r"package: name='([^']+)'", result.stdout)
    return match.group(1) if match else None


def extract_package_name_androguard(apk_path: Path, logger: logging.Logger) -> Optional[str]:
    try:
        return APK(str(apk_path)).get_package() or None
    except Exception as ex:
        logger.debug(f"[Androguard] Failed for {apk_path.name}: {ex}")
        return None


def resolve_package_name(apk_path: Path, logger: Optional[logging.Logger] = None) -> Optional[str]:
    """Tries aapt, then androguard, then the APK file name."""
    logger = logger or get_logger()
    for extractor, label in [
        (lambda p: extract_package_name_aapt(p, logger), "aapt"),
        (lambda p: extract_package_name_androguard(p, logger), "Androguard"),
        (extract_package_name_from_filename, "filename fallback"),
    ]:
        name = extractor(apk_path)
        if name:
            logger.debug(f"[✓] Package name from {label}: {name}")
            return name
    logger.warning(f"[✗] Could not extract package name for {apk_path.name}")
    return None

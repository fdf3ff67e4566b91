import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from bounty_hunter.config.defaults import DECOMPILED_DIR, MOBSF_REPORT_FILE, TRAFFIC_FILE
from bounty_hunter.config.settings import HunterConfig
from bounty_hunter.extraction.adb_tools import pull_device_data
from bounty_hunter.extraction.decompiler import decompile_apk
from bounty_hunter.extraction.mobsf import run_mobsf_scan
from bounty_hunter.extraction.traffic import TrafficCapture
from bounty_hunter.utils.logger import get_logger


@dataclass
class ExtractionResult:
    decompiled: bool = False
    mobsf: Optional[bool] = None            # None when disabled
    device_commands_ok: int = 0

    def to_dict(self) -> Dict[str, object]:
        return {
            "decompiled": self.decompiled,
            "mobsf": self.mobsf,
            "device_commands_ok": self.device_commands_ok,
        }


class ExtractionStage:
    """
    Populates the output directory with artifacts from the APK and the device.

    Each step is independent: a failing tool is logged and the next one runs.
    """

    def __init__(self, config: HunterConfig, logger: Optional[logging.Logger] = None):
        self.config = config
        self.logger = logger or get_logger()

    @property
    def output_dir(self) -> Path:
        return self.config.output_dir

    def traffic_capture(self) -> TrafficCapture:
        return TrafficCapture(self.output_dir / TRAFFIC_FILE, logger=self.logger)

    def run(self) -> ExtractionResult:
        result = ExtractionResult()
        result.decompiled = decompile_apk(
            self.config.apk_path, self.output_dir / DECOMPILED_DIR, logger=self.logger
        )

        if self.config.mobsf:
            result.mobsf = run_mobsf_scan(
                self.config.apk_path, self.output_dir / MOBSF_REPORT_FILE, logger=self.logger
            )

        result.device_commands_ok = pull_device_data(
            self.config.device_dir, self.output_dir, logger=self.logger
        )
        self.logger.debug(f"[Extraction] Summary: {result.to_dict()}")
        return result

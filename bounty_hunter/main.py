import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from bounty_hunter.cli.cli import parse_args
from bounty_hunter.config.defaults import LOG_FILE, TRAFFIC_FILE
from bounty_hunter.config.settings import HunterConfig, PipelineConfig
from bounty_hunter.extraction.apk_metadata import resolve_package_name
from bounty_hunter.extraction.extractor import ExtractionStage
from bounty_hunter.scanner.errors import OutputSetupError
from bounty_hunter.scanner.pipeline import run_scan
from bounty_hunter.utils.fs_utils import ensure_dirs_exist
from bounty_hunter.utils.logger import close_logging, init_logging


def build_config(args) -> HunterConfig:
    package = args.package or resolve_package_name(args.apk)
    if not package:
        raise ValueError(f"Could not determine the package name of {args.apk}; pass -p/--package")

    return HunterConfig(
        apk_path=args.apk,
        package=package,
        output_dir=args.output,
        device_dir=args.device_dir,
        mobsf=args.mobsf,
        traffic=args.traffic,
        verbose=args.verbose,
        threads=args.threads,
    )


def build_pipeline_config(config: HunterConfig) -> PipelineConfig:
    # The scan covers everything extraction produced, minus the run's own log
    return PipelineConfig(
        root=config.output_dir,
        output_dir=config.output_dir,
        worker_count=config.threads,
        exclude=(config.output_dir / LOG_FILE,),
    )


def execute(config: HunterConfig, logger: logging.Logger) -> int:
    logger.info("Starting analysis...")
    stage = ExtractionStage(config, logger=logger)
    capture = stage.traffic_capture() if config.traffic else None

    if capture:
        capture.start()
    try:
        stage.run()
        report = run_scan(build_pipeline_config(config), logger=logger)
    except OutputSetupError as ex:
        logger.error(f"[✗] {ex}")
        return 1
    finally:
        if capture:
            capture.stop()

    logger.debug(f"Scan report: {report.to_dict()}")
    if config.traffic:
        logger.info(f"Traffic capture written to {config.output_dir / TRAFFIC_FILE}")
    logger.info(f"Analysis completed. Results in {config.output_dir}")
    return 0


def run_hunter(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    if not args.apk.is_file():
        print(f"[ERROR] APK not found: {args.apk}", file=sys.stderr)
        return 1

    try:
        config = build_config(args)
    except (ValueError, ValidationError) as ex:
        print(f"[ERROR] Invalid configuration: {ex}", file=sys.stderr)
        return 1

    try:
        ensure_dirs_exist([config.output_dir])
        logger = init_logging(verbose=config.verbose, log_path=config.output_dir / LOG_FILE)
    except (RuntimeError, OSError) as ex:
        print(f"[ERROR] Failed to set up output: {ex}", file=sys.stderr)
        return 1

    try:
        return execute(config, logger)
    finally:
        close_logging(logger)


def main():
    """
    Entry point for the android-bounty-hunter console script.
    Returns 0 on success, 1 on a fatal error.
    """
    try:
        sys.exit(run_hunter())
    except Exception as ex:
        print(f"[ERROR] {type(ex).__name__}: {ex}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

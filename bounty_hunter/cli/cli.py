import argparse
from pathlib import Path
from typing import List, Optional

from bounty_hunter.config.defaults import DEFAULT_THREADS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="android-bounty-hunter",
        description="Extract APK and device artifacts, then scan them for secrets and endpoints",
    )

    parser.add_argument("-a", "--apk", type=Path, required=True,
                        help="Path to APK file (required)")
    parser.add_argument("-p", "--package", default=None,
                        help="App package name (default: read from the APK)")
    parser.add_argument("-o", "--output", type=Path, default=None,
                        help="Output directory (default: <package>_output)")
    parser.add_argument("-d", "--device-dir", default=None,
                        help="Device data directory (default: /data/data/<package>)")
    parser.add_argument("-m", "--mobsf", action=argparse.BooleanOptionalAction, default=True,
                        help="Run MobSF analysis")
    parser.add_argument("-t", "--traffic", action="store_true",
                        help="Capture traffic with mitmproxy")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Verbose output")
    parser.add_argument("-n", "--threads", type=int, default=DEFAULT_THREADS,
                        help=f"Number of parsing threads (default: {DEFAULT_THREADS})")

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)

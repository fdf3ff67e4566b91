from pathlib import Path

# ─── Scan Pipeline ─────────────────────────────────────────
DEFAULT_THREADS = 5
DISPATCH_SLOTS_PER_WORKER = 2                             # dispatch capacity = threads * 2
DEFAULT_RESULT_CAPACITY = 100                             # per-category channel buffer

# ─── Output Artifacts ──────────────────────────────────────
SECRETS_FILE = "secrets.txt"
ENDPOINTS_FILE = "endpoints.txt"
LOG_FILE = "hunter.log"

# ─── Extraction Stage ──────────────────────────────────────
DECOMPILED_DIR = "decompiled"
MOBSF_REPORT_FILE = "mobsf_report.txt"
MOBSF_IMAGE = "opensecurity/mobile-security-framework-mobsf"
MOBSF_APK_MOUNT = "/home/mobsf/apk.apk"
TRAFFIC_FILE = "traffic.mitm"
TRAFFIC_STARTUP_DELAY = 2.0                               # seconds given to mitmdump to bind
TRAFFIC_STOP_TIMEOUT = 10.0
DEVICE_DATA_DIRS = ("databases", "shared_prefs", "files")
DEVICE_STAGING_DIR = "/sdcard"


def default_output_dir(package_name: str) -> Path:
    return Path(f"{package_name}_output")


def default_device_dir(package_name: str) -> str:
    return f"/data/data/{package_name}"

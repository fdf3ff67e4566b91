import shlex
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from bounty_hunter.config.settings import HunterConfig
from bounty_hunter.extraction import apk_metadata
from bounty_hunter.extraction.adb_tools import build_pull_commands, pull_device_data
from bounty_hunter.extraction.decompiler import decompile_apk
from bounty_hunter.extraction.extractor import ExtractionStage
from bounty_hunter.extraction.mobsf import build_mobsf_command, run_mobsf_scan
from bounty_hunter.extraction.traffic import TrafficCapture


# ─── JADX ──────────────────────────────────────────────────

@patch("bounty_hunter.extraction.decompiler.shutil.which", return_value=None)
def test_decompile_skipped_without_jadx(mock_which, tmp_path, logger, caplog):
    assert decompile_apk(tmp_path / "a.apk", tmp_path / "out", logger=logger) is False
    assert "jadx" in caplog.text


@patch("bounty_hunter.extraction.decompiler.subprocess.run")
@patch("bounty_hunter.extraction.decompiler.shutil.which", return_value="/usr/bin/jadx")
def test_decompile_invokes_jadx(mock_which, mock_run, tmp_path, logger):
    mock_run.return_value = MagicMock(returncode=0, stdout="done")
    assert decompile_apk(tmp_path / "a.apk", tmp_path / "decompiled", logger=logger) is True

    cmd = mock_run.call_args.args[0]
    assert cmd == ["/usr/bin/jadx", "-d", str(tmp_path / "decompiled"), str(tmp_path / "a.apk")]


@patch("bounty_hunter.extraction.decompiler.subprocess.run",
       side_effect=subprocess.CalledProcessError(1, "jadx", stderr="boom"))
@patch("bounty_hunter.extraction.decompiler.shutil.which", return_value="/usr/bin/jadx")
def test_decompile_failure_is_not_raised(mock_which, mock_run, tmp_path, logger, caplog):
    assert decompile_apk(tmp_path / "a.apk", tmp_path / "d", logger=logger) is False
    assert "exit code 1" in caplog.text


# ─── MobSF ─────────────────────────────────────────────────

def test_mobsf_command_mounts_absolute_apk(tmp_path):
    cmd = build_mobsf_command("docker", tmp_path / "app.apk")
    assert cmd[:4] == ["docker", "run", "-i", "--rm"]
    assert f"{(tmp_path / 'app.apk').resolve()}:/home/mobsf/apk.apk" in cmd
    assert cmd[-2:] == ["mobsfscan", "/home/mobsf/apk.apk"]


@patch("bounty_hunter.extraction.mobsf.subprocess.run")
@patch("bounty_hunter.extraction.mobsf.shutil.which", return_value="/usr/bin/docker")
def test_mobsf_output_goes_to_report(mock_which, mock_run, tmp_path, logger):
    def fake_run(cmd, stdout, stderr, check):
        stdout.write("mobsfscan results\n")
        return MagicMock(returncode=0)

    mock_run.side_effect = fake_run
    report = tmp_path / "mobsf_report.txt"

    assert run_mobsf_scan(tmp_path / "app.apk", report, logger=logger) is True
    assert report.read_text(encoding="utf-8") == "mobsfscan results\n"
    assert mock_run.call_args.kwargs["stderr"] is subprocess.STDOUT


@patch("bounty_hunter.extraction.mobsf.subprocess.run",
       side_effect=subprocess.CalledProcessError(125, "docker"))
@patch("bounty_hunter.extraction.mobsf.shutil.which", return_value="/usr/bin/docker")
def test_mobsf_failure_is_logged(mock_which, mock_run, tmp_path, logger, caplog):
    assert run_mobsf_scan(tmp_path / "app.apk", tmp_path / "r.txt", logger=logger) is False
    assert "MobSF failed" in caplog.text


@patch("bounty_hunter.extraction.mobsf.shutil.which", return_value="/usr/bin/docker")
def test_mobsf_report_not_creatable(mock_which, tmp_path, logger, caplog):
    assert run_mobsf_scan(tmp_path / "a.apk", tmp_path / "no" / "r.txt", logger=logger) is False
    assert "Failed to create MobSF report file" in caplog.text


# ─── ADB ───────────────────────────────────────────────────

def test_pull_commands_sequence(tmp_path):
    cmds = build_pull_commands("/data/data/com.example", tmp_path)

    assert cmds[0] == [
        "adb", "shell",
        "su -c 'cp -r /data/data/com.example/databases /data/data/com.example/shared_prefs "
        "/data/data/com.example/files /sdcard/'",
    ]
    assert cmds[1:4] == [
        ["adb", "pull", "/sdcard/databases", str(tmp_path / "databases")],
        ["adb", "pull", "/sdcard/shared_prefs", str(tmp_path / "shared_prefs")],
        ["adb", "pull", "/sdcard/files", str(tmp_path / "files")],
    ]
    assert cmds[4] == ["adb", "shell", "rm", "-r", "/sdcard/databases", "/sdcard/shared_prefs", "/sdcard/files"]


def test_su_payload_is_a_single_shell_word(tmp_path):
    cmds = build_pull_commands("/data/data/com.odd name", tmp_path)

    shell_line = cmds[0][2]
    assert shlex.split(shell_line) == [
        "su", "-c",
        "cp -r '/data/data/com.odd name/databases' '/data/data/com.odd name/shared_prefs' "
        "'/data/data/com.odd name/files' /sdcard/",
    ]


@patch("bounty_hunter.extraction.adb_tools.subprocess.run")
def test_every_adb_command_runs_even_after_failure(mock_run, tmp_path, logger, caplog):
    mock_run.side_effect = [
        MagicMock(returncode=1, stdout="", stderr="su: not found"),
        MagicMock(returncode=0, stdout="1 file pulled", stderr=""),
        FileNotFoundError(2, "No such file", "adb"),
        MagicMock(returncode=0, stdout="", stderr=""),
        MagicMock(returncode=0, stdout="", stderr=""),
    ]
    assert pull_device_data("/data/data/x", tmp_path, logger=logger) == 3
    assert mock_run.call_count == 5
    assert "su: not found" in caplog.text


# ─── Traffic capture ───────────────────────────────────────

@patch("bounty_hunter.extraction.traffic.subprocess.Popen")
@patch("bounty_hunter.extraction.traffic.shutil.which", return_value="/usr/bin/mitmdump")
def test_traffic_capture_lifecycle(mock_which, mock_popen, tmp_path, logger):
    process = MagicMock()
    process.poll.return_value = None
    mock_popen.return_value = process

    with TrafficCapture(tmp_path / "traffic.mitm", logger=logger, startup_delay=0) as capture:
        assert capture.running
        assert mock_popen.call_args.args[0] == ["/usr/bin/mitmdump", "-q", "-w", str(tmp_path / "traffic.mitm")]

    process.terminate.assert_called_once()
    process.wait.assert_called_once()
    assert capture.process is None


@patch("bounty_hunter.extraction.traffic.subprocess.Popen")
@patch("bounty_hunter.extraction.traffic.shutil.which", return_value="/usr/bin/mitmdump")
def test_traffic_capture_killed_when_stop_times_out(mock_which, mock_popen, tmp_path, logger):
    process = MagicMock()
    process.poll.return_value = None
    process.wait.side_effect = [subprocess.TimeoutExpired("mitmdump", 1), 0]
    mock_popen.return_value = process

    capture = TrafficCapture(tmp_path / "t.mitm", logger=logger, startup_delay=0, stop_timeout=1)
    assert capture.start() is True
    capture.stop()
    process.kill.assert_called_once()


@patch("bounty_hunter.extraction.traffic.subprocess.Popen")
@patch("bounty_hunter.extraction.traffic.shutil.which", return_value="/usr/bin/mitmdump")
def test_traffic_capture_early_exit(mock_which, mock_popen, tmp_path, logger, caplog):
    process = MagicMock()
    process.poll.return_value = 1
    process.returncode = 1
    def fake_popen(cmd, stdin, stdout, stderr):
        stderr.write(b"address already in use\n")
        return process

    mock_popen.side_effect = fake_popen

    capture = TrafficCapture(tmp_path / "t.mitm", logger=logger, startup_delay=0)
    assert capture.start() is False
    assert "address already in use" in caplog.text
    capture.stop()  # no-op


@patch("bounty_hunter.extraction.traffic.shutil.which", return_value=None)
def test_traffic_capture_without_mitmdump(mock_which, tmp_path, logger):
    capture = TrafficCapture(tmp_path / "t.mitm", logger=logger, startup_delay=0)
    assert capture.start() is False
    assert not capture.running


@patch("bounty_hunter.extraction.traffic.subprocess.Popen")
@patch("bounty_hunter.extraction.traffic.shutil.which", return_value="/usr/bin/mitmdump")
def test_traffic_capture_stderr_goes_to_a_file(mock_which, mock_popen, tmp_path, logger):
    process = MagicMock()
    process.poll.return_value = None
    mock_popen.return_value = process

    capture = TrafficCapture(tmp_path / "traffic.mitm", logger=logger, startup_delay=0)
    assert capture.start() is True

    stderr = mock_popen.call_args.kwargs["stderr"]
    assert stderr is not subprocess.PIPE
    assert Path(stderr.name) == tmp_path / "traffic.log"
    assert not stderr.closed

    capture.stop()
    assert stderr.closed
    assert (tmp_path / "traffic.log").exists()


# ─── Package name ──────────────────────────────────────────

@pytest.mark.parametrize("name,expected", [
    ("com.example.app_1.apk", "com.example.app"),
    ("com.example.app.apk", "com.example.app"),
    ("my_app.apk", "my_app"),
    ("not an apk.zip", None),
])
def test_package_name_from_filename(name, expected):
    assert apk_metadata.extract_package_name_from_filename(Path(name)) == expected


@patch("bounty_hunter.extraction.apk_metadata.subprocess.run")
def test_package_name_from_aapt(mock_run, logger):
    mock_run.return_value = MagicMock(
        stdout="package: name='com.real.pkg' versionCode='3' versionName='1.2'\nsdkVersion:'21'\n"
    )
    assert apk_metadata.resolve_package_name(Path("whatever.apk"), logger=logger) == "com.real.pkg"


@patch("bounty_hunter.extraction.apk_metadata.APK")
@patch("bounty_hunter.extraction.apk_metadata.subprocess.run", side_effect=FileNotFoundError("aapt"))
def test_package_name_falls_back_to_androguard(mock_run, mock_apk, logger):
    mock_apk.return_value.get_package.return_value = "com.from.androguard"
    assert apk_metadata.resolve_package_name(Path("x.apk"), logger=logger) == "com.from.androguard"


@patch("bounty_hunter.extraction.apk_metadata.APK", side_effect=ValueError("not a zip"))
@patch("bounty_hunter.extraction.apk_metadata.subprocess.run", side_effect=FileNotFoundError("aapt"))
def test_package_name_falls_back_to_filename(mock_run, mock_apk, logger):
    assert apk_metadata.resolve_package_name(Path("com.fallback.test_123.apk"), logger=logger) == "com.fallback.test"


# ─── Extraction stage ──────────────────────────────────────

@patch("bounty_hunter.extraction.extractor.pull_device_data", return_value=5)
@patch("bounty_hunter.extraction.extractor.run_mobsf_scan", return_value=True)
@patch("bounty_hunter.extraction.extractor.decompile_apk", return_value=False)
def test_stage_runs_every_step(mock_jadx, mock_mobsf, mock_adb, tmp_path, logger):
    config = HunterConfig(apk_path=tmp_path / "a.apk", package="com.x", output_dir=tmp_path)
    result = ExtractionStage(config, logger=logger).run()

    assert result.to_dict() == {"decompiled": False, "mobsf": True, "device_commands_ok": 5}
    mock_jadx.assert_called_once_with(tmp_path / "a.apk", tmp_path / "decompiled", logger=logger)
    mock_mobsf.assert_called_once_with(tmp_path / "a.apk", tmp_path / "mobsf_report.txt", logger=logger)
    mock_adb.assert_called_once_with("/data/data/com.x", tmp_path, logger=logger)


@patch("bounty_hunter.extraction.extractor.pull_device_data", return_value=0)
@patch("bounty_hunter.extraction.extractor.run_mobsf_scan")
@patch("bounty_hunter.extraction.extractor.decompile_apk", return_value=True)
def test_stage_skips_mobsf_when_disabled(mock_jadx, mock_mobsf, mock_adb, tmp_path, logger):
    config = HunterConfig(apk_path=tmp_path / "a.apk", package="com.x", output_dir=tmp_path, mobsf=False)
    result = ExtractionStage(config, logger=logger).run()

    mock_mobsf.assert_not_called()
    assert result.mobsf is None
    assert ExtractionStage(config).traffic_capture().output_file == tmp_path / "traffic.mitm"

"""Unit tests for the engine lifecycle and workspace"""

import stat
import subprocess
import sys
from collections import namedtuple

import pytest

from clipcut.engine import EngineHandle, EngineStatus, ProcessResult
from clipcut.engine.handle import ENGINE_GLOBAL_ARGS
from clipcut.exceptions import (
    EngineError, EngineExecError, EngineLoadError, EngineNotReadyError,
    ProcessingError
)
from clipcut.models import MediaBlob
from clipcut.orchestrator import CutOrchestrator

DiskUsage = namedtuple("DiskUsage", "total used free percent")


@pytest.fixture
def ffmpeg_found(mocker):
    mocker.patch("clipcut.engine.handle.shutil.which", return_value="/usr/bin/ffmpeg")
    return mocker.patch(
        "clipcut.engine.handle.run_cmd",
        return_value=subprocess.CompletedProcess(
            args=["ffmpeg", "-version"], returncode=0,
            stdout="ffmpeg version 6.1.1 Copyright (c) 2000-2023\nbuilt with gcc\n", stderr=""
        )
    )


@pytest.fixture
def engine(tmp_path, ffmpeg_found):
    handle = EngineHandle(binary="ffmpeg", working_root=tmp_path / "work")
    handle.initialize()
    yield handle
    handle.shutdown()


def test_initialize_success(tmp_path, ffmpeg_found):
    handle = EngineHandle(binary="ffmpeg", working_root=tmp_path / "work")
    statuses = []
    handle.on_status(statuses.append)
    assert handle.status is EngineStatus.UNLOADED

    handle.initialize()

    assert statuses == [EngineStatus.LOADING, EngineStatus.READY]
    assert handle.status is EngineStatus.READY
    assert handle.version == "ffmpeg version 6.1.1 Copyright (c) 2000-2023"
    assert handle.workspace.is_dir()
    assert handle.workspace.parent == tmp_path / "work"
    ffmpeg_found.assert_called_once_with(["/usr/bin/ffmpeg", "-version"])


def test_initialize_without_ffmpeg_fails_for_good(tmp_path, mocker):
    mocker.patch("clipcut.engine.handle.shutil.which", return_value=None)
    handle = EngineHandle(binary="ffmpeg", working_root=tmp_path)

    with pytest.raises(EngineLoadError) as excinfo:
        handle.initialize()
    assert "not found" in excinfo.value.reason
    assert handle.status is EngineStatus.FAILED

    with pytest.raises(EngineError):
        handle.initialize()
    assert handle.status is EngineStatus.FAILED


def test_initialize_broken_ffmpeg(tmp_path, mocker):
    mocker.patch("clipcut.engine.handle.shutil.which", return_value="/usr/bin/ffmpeg")
    mocker.patch(
        "clipcut.engine.handle.run_cmd",
        side_effect=subprocess.CalledProcessError(1, ["ffmpeg", "-version"], stderr="boom")
    )
    handle = EngineHandle(working_root=tmp_path)
    with pytest.raises(EngineLoadError):
        handle.initialize()
    assert handle.status is EngineStatus.FAILED


def test_initialize_twice_is_a_usage_error(engine):
    with pytest.raises(EngineError):
        engine.initialize()
    assert engine.status is EngineStatus.READY


def test_operations_require_ready(tmp_path):
    handle = EngineHandle(working_root=tmp_path)
    with pytest.raises(EngineNotReadyError):
        handle.write_file("input.mp4", b"data")
    with pytest.raises(EngineNotReadyError):
        handle.exec(["-i", "input.mp4"])
    with pytest.raises(EngineNotReadyError):
        handle.read_file("clipe_001.mp4")
    with pytest.raises(EngineNotReadyError):
        handle.delete_file("input.mp4")


def test_workspace_file_operations(engine):
    engine.write_file("input.mp4", b"video bytes")
    assert (engine.workspace / "input.mp4").read_bytes() == b"video bytes"
    assert engine.read_file("input.mp4") == b"video bytes"

    engine.delete_file("input.mp4")
    assert not (engine.workspace / "input.mp4").exists()

    with pytest.raises(EngineError):
        engine.read_file("input.mp4")
    with pytest.raises(EngineError):
        engine.delete_file("input.mp4")


@pytest.mark.parametrize("name", ["", "..", "../escape.mp4", "sub/input.mp4"])
def test_names_must_stay_in_workspace(engine, name):
    with pytest.raises(EngineError):
        engine.write_file(name, b"data")


def test_write_refuses_without_free_space(engine, mocker):
    mocker.patch("clipcut.engine.handle.psutil.disk_usage", return_value=DiskUsage(100, 95, 5, 95.0))
    with pytest.raises(EngineError, match="Not enough space"):
        engine.write_file("input.mp4", b"0123456789")
    assert not (engine.workspace / "input.mp4").exists()


def test_exec_streams_progress_and_logs(engine, mocker):
    def fake_run(cmd, cwd, on_line, timeout=None, cancel=None):
        on_line("stderr", "  Duration: 00:02:30.00, start: 0.000000, bitrate: 812 kb/s")
        on_line("stdout", "frame=10")
        on_line("stdout", "out_time=00:01:15.000000")
        on_line("stdout", "progress=continue")
        on_line("stdout", "progress=end")
        return ProcessResult(returncode=0, tail=[])

    run = mocker.patch("clipcut.engine.handle.run_streaming", side_effect=fake_run)
    progress, logs = [], []
    engine.on_progress(progress.append)
    unsubscribe = engine.on_log(logs.append)

    engine.exec(["-i", "input.mp4", "clipe_%03d.mp4"], timeout=5.0)

    cmd, cwd = run.call_args[0][:2]
    assert cmd == ["/usr/bin/ffmpeg"] + ENGINE_GLOBAL_ARGS + ["-i", "input.mp4", "clipe_%03d.mp4"]
    assert cwd == engine.workspace
    assert run.call_args[1]["timeout"] == 5.0
    assert progress == [0.5, 1.0]
    assert engine.last_progress == 1.0
    assert logs == ["  Duration: 00:02:30.00, start: 0.000000, bitrate: 812 kb/s"]

    unsubscribe()
    engine.exec(["-i", "input.mp4", "clipe_%03d.mp4"])
    assert len(logs) == 1


def test_exec_failure_reports_reason(engine, mocker):
    mocker.patch(
        "clipcut.engine.handle.run_streaming",
        return_value=ProcessResult(returncode=1, tail=["input.mp4: Invalid data found when processing input"])
    )
    with pytest.raises(EngineExecError) as excinfo:
        engine.exec(["-i", "input.mp4"])
    assert excinfo.value.exit_code == 1
    assert "Invalid data found" in excinfo.value.message
    assert "Invalid data found" in excinfo.value.output


def test_exec_start_failure(engine, mocker):
    mocker.patch("clipcut.engine.handle.run_streaming", side_effect=FileNotFoundError("ffmpeg"))
    with pytest.raises(EngineExecError, match="Could not start"):
        engine.exec(["-i", "input.mp4"])


def test_shutdown_removes_workspace(tmp_path, ffmpeg_found):
    with EngineHandle(working_root=tmp_path) as handle:
        handle.initialize()
        workspace = handle.workspace
        assert workspace.is_dir()
    assert not workspace.exists()
    assert handle.status is EngineStatus.UNLOADED
    with pytest.raises(EngineError):
        handle.initialize()


def test_list_and_clear_files(engine):
    for name in ["clipe_001.mp4", "clipe_002.mp4", "input.mp4"]:
        (engine.workspace / name).write_bytes(b"x")

    assert engine.list_files() == ["clipe_001.mp4", "clipe_002.mp4", "input.mp4"]
    assert engine.clear_files(lambda name: name.startswith("clipe_")) == ["clipe_001.mp4", "clipe_002.mp4"]
    assert engine.list_files() == ["input.mp4"]
    assert engine.clear_files(lambda name: False) == []


def test_list_files_requires_ready(tmp_path):
    handle = EngineHandle(binary="ffmpeg", working_root=tmp_path)
    with pytest.raises(EngineNotReadyError):
        handle.list_files()
    with pytest.raises(EngineNotReadyError):
        handle.clear_files(lambda name: True)


# Stand-in for ffmpeg: writes $(cat clip_count) files named after the last
# argument's printf pattern, each tagged with $(cat job).
FAKE_FFMPEG = """#!/bin/sh
dir=$(dirname "$0")
if [ "$1" = "-version" ]; then
    echo "ffmpeg version fake"
    exit 0
fi
for last; do :; done
count=$(cat "$dir/clip_count")
job=$(cat "$dir/job")
i=1
while [ "$i" -le "$count" ]; do
    name=$(printf "$last" "$i")
    printf 'job-%s-clip-%s' "$job" "$i" > "$name"
    i=$((i + 1))
done
echo "progress=end"
"""


@pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")
def test_second_cut_with_fewer_clips_on_same_engine(tmp_path):
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    ffmpeg = bin_dir / "ffmpeg"
    ffmpeg.write_text(FAKE_FFMPEG)
    ffmpeg.chmod(ffmpeg.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    blob = MediaBlob(name="holiday.mp4", data=b"\x00" * 32)

    with EngineHandle(binary=str(ffmpeg), working_root=tmp_path / "work") as handle:
        handle.initialize()
        orchestrator = CutOrchestrator(handle, prober=lambda b: 150.0, timeout=30.0)

        (bin_dir / "clip_count").write_text("3")
        (bin_dir / "job").write_text("a")
        first = orchestrator.cut(blob, 60)
        assert [a.data for a in first] == [b"job-a-clip-1", b"job-a-clip-2", b"job-a-clip-3"]

        (bin_dir / "clip_count").write_text("2")
        (bin_dir / "job").write_text("b")
        with pytest.raises(ProcessingError) as excinfo:
            orchestrator.cut(blob, 60)

        assert "Clip 3 of 3" in excinfo.value.reason
        assert handle.list_files() == ["clipe_001.mp4", "clipe_002.mp4"]
        assert handle.read_file("clipe_001.mp4") == b"job-b-clip-1"

"""Tests for streaming subprocess execution, using a Python child process"""

import sys
import threading
import time

import pytest

from clipcut.engine.process import run_streaming
from clipcut.exceptions import EngineExecError, JobCancelledError


def python_cmd(code):
    return [sys.executable, "-c", code]


def test_streams_lines_and_returns_exit_code(tmp_path):
    lines = []
    code = (
        "import sys\n"
        "print('out_time=00:00:01.000000', flush=True)\n"
        "print('first error', file=sys.stderr, flush=True)\n"
        "print('progress=end', flush=True)\n"
        "print('second error', file=sys.stderr, flush=True)\n"
        "sys.exit(3)\n"
    )
    result = run_streaming(python_cmd(code), tmp_path, lambda stream, line: lines.append((stream, line)))

    assert result.returncode == 3
    assert result.tail == ["first error", "second error"]
    assert [line for stream, line in lines if stream == "stdout"] == [
        "out_time=00:00:01.000000", "progress=end"
    ]


def test_runs_in_working_directory(tmp_path):
    code = "import pathlib; pathlib.Path('made_here.txt').write_text('x')"
    result = run_streaming(python_cmd(code), tmp_path, lambda stream, line: None)
    assert result.returncode == 0
    assert (tmp_path / "made_here.txt").exists()


def test_timeout_stops_the_child(tmp_path):
    start = time.monotonic()
    with pytest.raises(EngineExecError, match="timed out"):
        run_streaming(python_cmd("import time; time.sleep(30)"), tmp_path,
                      lambda stream, line: None, timeout=0.5)
    assert time.monotonic() - start < 15


def test_cancel_stops_the_child(tmp_path):
    cancel = threading.Event()
    timer = threading.Timer(0.3, cancel.set)
    timer.start()
    try:
        with pytest.raises(JobCancelledError):
            run_streaming(python_cmd("import time; time.sleep(30)"), tmp_path,
                          lambda stream, line: None, cancel=cancel)
    finally:
        timer.cancel()


def test_missing_binary_raises_oserror(tmp_path):
    with pytest.raises(OSError):
        run_streaming(["/nonexistent/ffmpeg-binary"], tmp_path, lambda stream, line: None)

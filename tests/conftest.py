"""Shared fixtures for clipcut tests."""
import os
import sys

import pytest

# Ensure the project root is on sys.path so the package imports without an install.
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from clipcut.engine import EngineStatus  # noqa: E402
from clipcut.exceptions import EngineError, EngineExecError  # noqa: E402
from clipcut.models import MediaBlob  # noqa: E402


class FakeEngine:
    """In-memory stand-in for EngineHandle.

    exec() "produces" one clip per planned segment, derived from the
    -segment_times list it receives, the way ffmpeg's segment muxer would.
    Files from earlier calls stay in place until something removes them.
    """

    def __init__(self, status=EngineStatus.READY):
        self.status = status
        self.files = {}
        self.calls = []
        self.fail_reads = set()
        self.write_error = None
        self.exec_error = None
        self.delete_error = None
        # caps how many clips exec writes, like a run that stops early
        self.clip_limit = None

    def write_file(self, name, data):
        self.calls.append(("write_file", name))
        if self.write_error:
            raise self.write_error
        self.files[name] = data

    def list_files(self):
        return sorted(self.files)

    def clear_files(self, match):
        self.calls.append(("clear_files", None))
        removed = [name for name in self.list_files() if match(name)]
        for name in removed:
            del self.files[name]
        return removed

    def exec(self, args, timeout=None, cancel=None):
        self.calls.append(("exec", list(args)))
        if self.exec_error:
            raise self.exec_error
        if "-segment_times" in args:
            count = len(args[args.index("-segment_times") + 1].split(",")) + 1
        else:
            count = 1
        if self.clip_limit is not None:
            count = min(count, self.clip_limit)
        pattern = args[-1]
        for index in range(1, count + 1):
            self.files[pattern % index] = f"clip-{index}".encode()

    def read_file(self, name):
        self.calls.append(("read_file", name))
        if name in self.fail_reads or name not in self.files:
            raise EngineError(f"Could not read {name}", module="engine")
        return self.files[name]

    def delete_file(self, name):
        self.calls.append(("delete_file", name))
        if self.delete_error:
            raise self.delete_error
        if name not in self.files:
            raise EngineError(f"Could not delete {name}", module="engine")
        del self.files[name]

    def calls_to(self, method):
        return [args for name, args in self.calls if name == method]


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def video_blob():
    return MediaBlob(name="holiday.mp4", data=b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 64)


@pytest.fixture
def exec_failure():
    return EngineExecError("Engine command failed: Invalid data found when processing input",
                           exit_code=1, output="Invalid data found when processing input")


@pytest.fixture
def engine_factory():
    return FakeEngine

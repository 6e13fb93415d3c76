"""Engine lifecycle and workspace management

Responsibilities:
- Own the single ffmpeg engine instance and its status
- Provide the capability boundary: write, exec, read and delete files
- List and clear workspace files left behind by earlier commands
- Publish progress fractions and log lines to subscribers

Status moves UNLOADED -> LOADING -> READY, or LOADING -> FAILED when the
engine cannot be loaded. FAILED is final for the instance; build a new
EngineHandle to try again.
shutdown() moves a READY engine back to UNLOADED; the instance cannot be
initialized again.
"""

import logging
import shutil
import subprocess
import tempfile
import threading
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

import psutil

from ..config import FFMPEG_BIN, STAGING_SPACE_FACTOR, WORKING_ROOT
from ..events import EventEmitter, EventType
from ..exceptions import (
    EngineError, EngineExecError, EngineLoadError, EngineNotReadyError
)
from ..utils import format_size, run_cmd
from .process import run_streaming
from .progress import ProgressParser

logger = logging.getLogger(__name__)

# Global options placed in front of every engine command
ENGINE_GLOBAL_ARGS = ["-hide_banner", "-nostdin", "-y", "-progress", "pipe:1"]


class EngineStatus(Enum):
    """Lifecycle states of an engine instance."""
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class EngineHandle:
    """One ffmpeg engine with a private workspace.

    The workspace directory plays the part of the engine's virtual
    filesystem: inputs are staged into it, commands run inside it and
    outputs are read back from it by bare file name.
    """

    def __init__(self, binary: str = FFMPEG_BIN, working_root: Path = WORKING_ROOT):
        self._binary_name = binary
        self._working_root = Path(working_root)
        self._status = EngineStatus.UNLOADED
        self._events = EventEmitter()
        self._closed = False
        self.binary: Optional[str] = None
        self.version: Optional[str] = None
        self.workspace: Optional[Path] = None

    @property
    def status(self) -> EngineStatus:
        return self._status

    @property
    def last_progress(self) -> Optional[float]:
        """Most recent progress fraction reported by the engine."""
        return self._events.last(EventType.PROGRESS)

    def on_progress(self, callback: Callable[[float], None]) -> Callable[[], None]:
        """Subscribe to progress fractions in [0, 1]; returns an unsubscribe callable."""
        return self._events.on(EventType.PROGRESS, callback)

    def on_log(self, callback: Callable[[str], None]) -> Callable[[], None]:
        """Subscribe to engine log lines; returns an unsubscribe callable."""
        return self._events.on(EventType.LOG, callback)

    def on_status(self, callback: Callable[[EngineStatus], None]) -> Callable[[], None]:
        """Subscribe to lifecycle transitions; returns an unsubscribe callable."""
        return self._events.on(EventType.STATUS, callback)

    def _set_status(self, status: EngineStatus) -> None:
        logger.debug("Engine status: %s -> %s", self._status.value, status.value)
        self._status = status
        self._events.emit(EventType.STATUS, status)

    def initialize(self) -> None:
        """
        Load the engine: locate ffmpeg, check that it runs and create the workspace.

        Raises:
            EngineError: If called more than once on the same instance
            EngineLoadError: If the engine cannot be loaded; status becomes FAILED
        """
        if self._status is not EngineStatus.UNLOADED or self._closed:
            raise EngineError(
                f"initialize() may only be called once per engine (status: {self._status.value})",
                module="engine"
            )
        self._set_status(EngineStatus.LOADING)
        logger.info("Loading engine (%s)", self._binary_name)

        try:
            binary = shutil.which(self._binary_name)
            if binary is None:
                raise EngineLoadError(f"ffmpeg binary not found: {self._binary_name}")
            result = run_cmd([binary, "-version"])
            version = (result.stdout or "").splitlines()[0] if result.stdout else "unknown version"
            self._working_root.mkdir(parents=True, exist_ok=True)
            workspace = Path(tempfile.mkdtemp(prefix="engine_", dir=str(self._working_root)))
        except EngineLoadError as e:
            logger.error("Engine load failed: %s", e.reason)
            self._set_status(EngineStatus.FAILED)
            raise
        except (OSError, subprocess.CalledProcessError) as e:
            logger.error("Engine load failed: %s", e)
            self._set_status(EngineStatus.FAILED)
            raise EngineLoadError(str(e)) from e

        self.binary = binary
        self.version = version
        self.workspace = workspace
        self._set_status(EngineStatus.READY)
        logger.info("Engine ready: %s", version)
        logger.debug("Engine workspace: %s", workspace)

    def _require_ready(self) -> None:
        if self._status is not EngineStatus.READY:
            raise EngineNotReadyError(
                f"Engine is {self._status.value}, not ready",
                module="engine"
            )

    def _path(self, name: str) -> Path:
        if not name or name in (".", "..") or Path(name).name != name:
            raise EngineError(f"Invalid engine file name: {name!r}", module="engine")
        return self.workspace / name

    def write_file(self, name: str, data: bytes) -> None:
        """Stage bytes into the workspace under a bare file name."""
        self._require_ready()
        target = self._path(name)
        needed = int(len(data) * STAGING_SPACE_FACTOR)
        free = psutil.disk_usage(str(self.workspace)).free
        if free < needed:
            raise EngineError(
                f"Not enough space to stage {name}: need {format_size(needed)}, "
                f"{format_size(free)} free",
                module="engine"
            )
        try:
            target.write_bytes(data)
        except OSError as e:
            raise EngineError(f"Could not write {name}: {e}", module="engine") from e
        logger.debug("Staged %s (%s)", name, format_size(len(data)))

    def read_file(self, name: str) -> bytes:
        """Read a file back from the workspace."""
        self._require_ready()
        try:
            return self._path(name).read_bytes()
        except OSError as e:
            raise EngineError(f"Could not read {name}: {e}", module="engine") from e

    def delete_file(self, name: str) -> None:
        """Remove a file from the workspace."""
        self._require_ready()
        try:
            self._path(name).unlink()
        except OSError as e:
            raise EngineError(f"Could not delete {name}: {e}", module="engine") from e
        logger.debug("Deleted %s", name)

    def list_files(self) -> List[str]:
        """Names of the files currently in the workspace, sorted."""
        self._require_ready()
        return sorted(p.name for p in self.workspace.iterdir() if p.is_file())

    def clear_files(self, match: Callable[[str], bool]) -> List[str]:
        """
        Delete every workspace file whose name satisfies match.

        Returns:
            The names that were removed, sorted
        """
        removed = []
        for name in self.list_files():
            if not match(name):
                continue
            try:
                (self.workspace / name).unlink()
            except OSError as e:
                raise EngineError(f"Could not clear {name}: {e}", module="engine") from e
            removed.append(name)
        if removed:
            logger.debug("Cleared %s", ", ".join(removed))
        return removed

    def exec(
        self,
        args: List[str],
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        """
        Run ffmpeg with the given arguments inside the workspace.

        Progress fractions and log lines are published while the command runs.

        Raises:
            EngineNotReadyError: If the engine is not READY
            EngineExecError: If ffmpeg cannot start, exits non-zero or times out
            JobCancelledError: If the cancel event is set while ffmpeg runs
        """
        self._require_ready()
        cmd = [self.binary] + ENGINE_GLOBAL_ARGS + list(args)
        logger.info("Engine command: %s", " ".join(args))
        parser = ProgressParser()

        def on_line(stream_name: str, line: str) -> None:
            if stream_name == "stdout":
                value = parser.feed_progress(line)
                if value is not None:
                    self._events.emit(EventType.PROGRESS, value)
            else:
                parser.feed_log(line)
                logger.debug("[ffmpeg] %s", line)
                self._events.emit(EventType.LOG, line)

        try:
            result = run_streaming(cmd, self.workspace, on_line, timeout=timeout, cancel=cancel)
        except OSError as e:
            raise EngineExecError(f"Could not start engine command: {e}", module="engine") from e

        if result.returncode != 0:
            reason = result.tail[-1] if result.tail else f"exit code {result.returncode}"
            raise EngineExecError(
                f"Engine command failed: {reason}",
                exit_code=result.returncode,
                output="\n".join(result.tail),
                module="engine"
            )

    def shutdown(self) -> None:
        """Remove the workspace. The instance cannot be used afterwards."""
        self._closed = True
        if self.workspace is not None:
            try:
                shutil.rmtree(self.workspace)
                logger.debug("Removed engine workspace %s", self.workspace)
            except OSError as e:
                logger.warning("Failed to remove engine workspace %s: %s", self.workspace, e)
            self.workspace = None
        if self._status is EngineStatus.READY:
            self._set_status(EngineStatus.UNLOADED)

    def __enter__(self) -> "EngineHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

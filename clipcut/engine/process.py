"""Subprocess execution with line streaming

Responsibilities:
- Start an engine command and read stdout/stderr on background threads
- Hand every line to a callback on the calling thread, in arrival order
- Enforce an optional timeout and honour a cancellation event
- Terminate the child on any abnormal exit
"""

import logging
import queue
import subprocess
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from ..exceptions import EngineExecError, JobCancelledError

logger = logging.getLogger(__name__)

# Number of stderr lines kept for error reporting
TAIL_LINES = 20


@dataclass
class ProcessResult:
    """Exit code and the last lines ffmpeg wrote to stderr."""
    returncode: int
    tail: List[str] = field(default_factory=list)


def _stream_reader(stream, queue_obj: queue.Queue, stream_name: str) -> None:
    """Read from a stream and put lines into a queue.

    Args:
        stream: The stream to read from
        queue_obj: Queue to put lines into
        stream_name: Name of the stream for identification
    """
    try:
        for line in iter(stream.readline, ''):
            queue_obj.put((stream_name, line.rstrip()))
    except (OSError, ValueError) as e:
        queue_obj.put(('error', f"Error reading from {stream_name}: {e}"))
    finally:
        stream.close()
        queue_obj.put((stream_name, None))  # Signal EOF


def _terminate(process: subprocess.Popen) -> None:
    """Stop a running child, escalating to kill if it ignores terminate."""
    if process.poll() is not None:
        return
    process.terminate()
    try:
        process.wait(timeout=5)
    except subprocess.TimeoutExpired:
        process.kill()
        process.wait()


def run_streaming(
    cmd: List[str],
    cwd: Path,
    on_line: Callable[[str, str], None],
    timeout: Optional[float] = None,
    cancel: Optional[threading.Event] = None,
    poll_interval: float = 0.1,
) -> ProcessResult:
    """
    Run a command and stream its output to a callback.

    Args:
        cmd: Command list
        cwd: Working directory for the command
        on_line: Called as on_line(stream_name, line) for "stdout" and "stderr" lines
        timeout: Seconds to wait before the command is stopped; None waits forever
        cancel: Event that stops the command when set

    Returns:
        ProcessResult with the exit code and the stderr tail

    Raises:
        EngineExecError: If the command does not finish within the timeout
        JobCancelledError: If the cancel event is set while the command runs
        OSError: If the command cannot be started
    """
    process = subprocess.Popen(
        cmd,
        cwd=str(cwd),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        bufsize=1,
        text=True,
        errors="replace",
    )
    deadline = time.monotonic() + timeout if timeout is not None else None

    output_queue: queue.Queue = queue.Queue()
    threads = [
        threading.Thread(target=_stream_reader, args=(process.stdout, output_queue, 'stdout'), daemon=True),
        threading.Thread(target=_stream_reader, args=(process.stderr, output_queue, 'stderr'), daemon=True),
    ]
    for thread in threads:
        thread.start()

    tail = deque(maxlen=TAIL_LINES)
    try:
        eof_count = 0
        while eof_count < len(threads):
            _check_interrupts(cmd, deadline, timeout, cancel)
            try:
                stream_name, line = output_queue.get(timeout=poll_interval)
            except queue.Empty:
                continue
            if line is None:
                eof_count += 1
            elif stream_name == 'error':
                logger.warning(line)
                tail.append(line)
            else:
                if stream_name == 'stderr':
                    tail.append(line)
                on_line(stream_name, line)

        while True:
            _check_interrupts(cmd, deadline, timeout, cancel)
            try:
                returncode = process.wait(timeout=poll_interval)
                break
            except subprocess.TimeoutExpired:
                continue
    except BaseException:
        _terminate(process)
        raise
    finally:
        for thread in threads:
            thread.join(timeout=1)

    return ProcessResult(returncode=returncode, tail=list(tail))


def _check_interrupts(cmd, deadline, timeout, cancel) -> None:
    if cancel is not None and cancel.is_set():
        raise JobCancelledError("Engine command cancelled", module="engine")
    if deadline is not None and time.monotonic() > deadline:
        raise EngineExecError(
            f"Engine command timed out after {timeout:g}s: {cmd[0]}",
            module="engine"
        )

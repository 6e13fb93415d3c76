"""Duration probing

Responsibilities:
- Measure the playback duration of a selected video with ffprobe
- Fall back from the container duration to stream durations
- Release any temporary copy of an in-memory blob whatever the outcome
"""

import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, Optional

import ffmpeg

from .config import FFPROBE_BIN
from .exceptions import DurationUnavailableError
from .models import MediaBlob

logger = logging.getLogger(__name__)


@contextmanager
def blob_location(blob: MediaBlob) -> Generator[Path, None, None]:
    """Yield a filesystem path for a blob.

    Blobs on disk are used in place. In-memory blobs are written to a
    temporary file that is removed when the context exits.
    """
    if blob.path is not None:
        yield Path(blob.path)
        return

    fd, name = tempfile.mkstemp(prefix="clipcut_probe_", suffix=blob.suffix)
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(blob.data)
        yield path
    finally:
        try:
            path.unlink()
        except OSError as e:
            logger.warning("Failed to remove probe file %s: %s", path, e)


def _positive(value: Any) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def extract_duration(info: Dict[str, Any]) -> Optional[float]:
    """Pick a duration out of ffprobe output: format first, then video, then any stream."""
    duration = _positive(info.get("format", {}).get("duration"))
    if duration:
        return duration
    streams = info.get("streams", [])
    for stream in streams:
        if stream.get("codec_type") == "video":
            duration = _positive(stream.get("duration"))
            if duration:
                return duration
    for stream in streams:
        duration = _positive(stream.get("duration"))
        if duration:
            return duration
    return None


def probe_duration(blob: MediaBlob, cmd: str = FFPROBE_BIN) -> float:
    """
    Measure the duration of a video in seconds.

    Args:
        blob: The selected video
        cmd: ffprobe binary to use

    Returns:
        Duration in seconds

    Raises:
        DurationUnavailableError: If the file cannot be probed or reports no duration
    """
    with blob_location(blob) as path:
        try:
            info = ffmpeg.probe(str(path), cmd=cmd)
        except ffmpeg.Error as e:
            detail = e.stderr.decode(errors="replace").strip() if e.stderr else str(e)
            raise DurationUnavailableError(
                f"Could not read the duration of {blob.name}: {detail}",
                module="probe"
            ) from e
        except OSError as e:
            raise DurationUnavailableError(
                f"Could not run {cmd} on {blob.name}: {e}",
                module="probe"
            ) from e

    duration = extract_duration(info)
    if duration is None:
        raise DurationUnavailableError(f"No duration reported for {blob.name}", module="probe")
    logger.info("Duration of %s: %.2fs", blob.name, duration)
    return duration

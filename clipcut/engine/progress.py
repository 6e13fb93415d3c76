"""Progress parsing for ffmpeg runs

ffmpeg reports the input duration on stderr ("Duration: 00:02:30.00, ...")
and, with -progress pipe:1, writes key=value blocks to stdout. The parser
turns those into a completion fraction in [0, 1].
"""

import logging
import re
from typing import Optional

logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(r"Duration:\s*(\d+:\d{2}:\d{2}(?:\.\d+)?)")


def parse_clock(value: str) -> Optional[float]:
    """Convert HH:MM:SS.xxx to seconds; None for N/A or malformed values."""
    parts = value.strip().split(":")
    if len(parts) != 3:
        return None
    try:
        hours, minutes, seconds = int(parts[0]), int(parts[1]), float(parts[2])
    except ValueError:
        return None
    if hours < 0 or value.strip().startswith("-"):
        return 0.0
    return hours * 3600 + minutes * 60 + seconds


class ProgressParser:
    """Tracks the progress of a single ffmpeg invocation."""

    def __init__(self, total_duration: Optional[float] = None):
        self.total_duration = total_duration

    def feed_log(self, line: str) -> None:
        """Pick the input duration out of a log line. The first one wins."""
        if self.total_duration:
            return
        match = _DURATION_RE.search(line)
        if match:
            duration = parse_clock(match.group(1))
            if duration:
                self.total_duration = duration
                logger.debug("Engine input duration: %.2fs", duration)

    def feed_progress(self, line: str) -> Optional[float]:
        """Parse one -progress line and return the fraction done, if it changed."""
        key, sep, value = line.strip().partition("=")
        if not sep:
            return None
        if key == "progress" and value == "end":
            return 1.0
        if key == "out_time" and self.total_duration:
            current = parse_clock(value)
            if current is None:
                logger.debug("Unexpected out_time format: %s", value)
                return None
            return min(1.0, max(0.0, current / self.total_duration))
        return None

"""Segment planning

Responsibilities:
  - Turn a measured duration and a fixed segment length into cut points
  - Name the clips the segmentation is expected to produce

Cut points are rounded half away from zero to whole seconds so the
segment list sent to the engine is stable (e.g. "60,120").
"""

import math
import re
from dataclasses import dataclass
from numbers import Integral
from typing import Tuple

from .config import CLIP_INDEX_WIDTH, CLIP_PREFIX
from .exceptions import InvalidDurationError

_CLIP_NAME_RE = re.compile(rf"^{re.escape(CLIP_PREFIX)}_\d{{{CLIP_INDEX_WIDTH},}}\.[^./]+$")


@dataclass(frozen=True)
class SegmentPlan:
    """Cut points for one video.

    Attributes:
        total_duration_seconds: Measured duration of the source
        segment_length_seconds: Requested clip length
        cut_timestamps: Strictly increasing cut points, excluding 0 and the end
        expected_clip_count: Number of clips the cut produces
    """
    total_duration_seconds: float
    segment_length_seconds: int
    cut_timestamps: Tuple[int, ...]
    expected_clip_count: int

    def segment_times_arg(self) -> str:
        return ",".join(str(t) for t in self.cut_timestamps)


def round_half_away_from_zero(value: float) -> int:
    """Round to the nearest integer, moving .5 away from zero."""
    if value >= 0:
        return int(math.floor(value + 0.5))
    return -int(math.floor(-value + 0.5))


def plan_segments(duration: float, segment_length: int) -> SegmentPlan:
    """
    Compute the cut points for a video of the given duration.

    Args:
        duration: Duration of the source in seconds
        segment_length: Length of each clip in seconds

    Returns:
        SegmentPlan with ceil(duration / segment_length) clips (at least one)

    Raises:
        InvalidDurationError: If duration is NaN, negative or infinite
        ValueError: If segment_length is not a positive integer
    """
    if isinstance(segment_length, bool) or not isinstance(segment_length, Integral) or segment_length <= 0:
        raise ValueError(f"Segment length must be a positive integer, got {segment_length!r}")
    try:
        duration = float(duration)
    except (TypeError, ValueError) as e:
        raise InvalidDurationError(f"Duration is not a number: {duration!r}", module="planner") from e
    if math.isnan(duration) or math.isinf(duration) or duration < 0:
        raise InvalidDurationError(f"Cannot plan segments for duration {duration}", module="planner")

    clip_count = max(1, math.ceil(duration / segment_length))
    cut_timestamps = tuple(
        round_half_away_from_zero(i * segment_length) for i in range(1, clip_count)
    )
    return SegmentPlan(
        total_duration_seconds=duration,
        segment_length_seconds=int(segment_length),
        cut_timestamps=cut_timestamps,
        expected_clip_count=clip_count,
    )


def clip_name(index: int, extension: str) -> str:
    """Name of the clip the engine writes for a 1-based index, e.g. clipe_001.mp4"""
    return f"{CLIP_PREFIX}_{index:0{CLIP_INDEX_WIDTH}d}{extension}"


def clip_pattern(extension: str) -> str:
    """Output pattern handed to the engine, e.g. clipe_%03d.mp4"""
    return f"{CLIP_PREFIX}_%0{CLIP_INDEX_WIDTH}d{extension}"


def is_clip_name(name: str) -> bool:
    """Whether a workspace file name looks like a produced clip, whatever its extension."""
    return _CLIP_NAME_RE.match(name) is not None

"""Helper functions for building engine commands"""

import logging
from typing import List

from .planner import SegmentPlan, clip_pattern

log = logging.getLogger(__name__)


def build_segment_args(plan: SegmentPlan, input_name: str, extension: str) -> List[str]:
    """Build the ffmpeg argument list that stream-copies the input into clips.

    A plan without cut points has no segment list; ffmpeg rejects an empty
    -segment_times, so a segment_time of the full segment length is used
    instead, which yields the whole input as one clip.
    """
    args = [
        "-i", input_name,
        "-c", "copy",
        "-map", "0",
        "-f", "segment",
    ]
    if plan.cut_timestamps:
        args.extend(["-segment_times", plan.segment_times_arg()])
    else:
        args.extend(["-segment_time", str(plan.segment_length_seconds)])
    args.extend([
        "-reset_timestamps", "1",
        clip_pattern(extension),
    ])
    log.debug("Segment command: %s", " ".join(args))
    return args

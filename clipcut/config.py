"""Configuration settings for clipcut

This module centralizes all configuration settings including:
- Working directory and log locations
- Engine binaries and timeouts
- Segment length and clip naming conventions

It provides both user-configurable settings via environment variables
and internal constants used throughout the pipeline.
"""

import os
from pathlib import Path

# Working root directory in /tmp; each engine instance gets its own workspace below it
WORKING_ROOT = Path(os.environ.get("CLIPCUT_WORKDIR", "/tmp/clipcut"))

# LOG_DIR: user definable with default of "$HOME/clipcut_logs"
LOG_DIR = Path(os.environ.get("CLIPCUT_LOG_DIR", str(Path.home() / "clipcut_logs")))

# Engine binaries
FFMPEG_BIN = os.environ.get("CLIPCUT_FFMPEG", "ffmpeg")
FFPROBE_BIN = os.environ.get("CLIPCUT_FFPROBE", "ffprobe")

# Seconds to wait for a single engine command; unset means wait forever
_timeout = os.environ.get("CLIPCUT_ENGINE_TIMEOUT", "")
ENGINE_TIMEOUT = float(_timeout) if _timeout else None

# Segmentation settings
SEGMENT_LENGTH = int(os.environ.get("CLIPCUT_SEGMENT_LENGTH", "60"))

# Names inside the engine workspace
INPUT_STEM = "input"
CLIP_PREFIX = "clipe"
CLIP_INDEX_WIDTH = 3
MAX_CLIPS = 10 ** CLIP_INDEX_WIDTH - 1
DEFAULT_EXTENSION = ".mp4"
DEFAULT_MIME_TYPE = "video/mp4"

# Download names look like cortado_60s_clipe_001.mp4
ARTIFACT_PREFIX = "cortado"

# Free space required in the workspace, as a multiple of the staged input size.
# Stream copy writes roughly the input size again as clips.
STAGING_SPACE_FACTOR = 2.0

# Logging configuration
LOG_LEVEL = "INFO"  # Default logging level; valid values: DEBUG, INFO, WARNING, ERROR, CRITICAL

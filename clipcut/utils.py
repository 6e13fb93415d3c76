"""Utility functions for clipcut"""

import logging
import shutil
import subprocess
from datetime import datetime
from typing import List

from .config import FFMPEG_BIN, FFPROBE_BIN

logger = logging.getLogger(__name__)


def run_cmd(cmd: List[str], capture_output: bool = True,
            check: bool = True) -> subprocess.CompletedProcess:
    """Run a command and handle errors"""
    logger.debug("Running command: %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            capture_output=capture_output,
            check=check,
            text=True
        )
        if result.stdout:
            logger.debug("Command stdout: %s", result.stdout)
        if result.stderr:
            logger.debug("Command stderr: %s", result.stderr)
        return result
    except subprocess.CalledProcessError as e:
        logger.error("Command failed: %s", " ".join(cmd))
        logger.error("Error output: %s", e.stderr)
        raise


def get_timestamp() -> str:
    """Get current timestamp in YYYYMMDD_HHMMSS format"""
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def format_size(size: int) -> str:
    """Format file size for display"""
    for unit in ['B', 'KiB', 'MiB', 'GiB', 'TiB']:
        if size < 1024:
            return f"{size:.1f}{unit}"
        size /= 1024
    return f"{size:.1f}TiB"


def format_megabytes(size: int) -> str:
    """Format a byte count as megabytes with two decimals"""
    return f"{size / (1024 * 1024):.2f} MB"


def check_dependencies() -> bool:
    """Check for required dependencies"""
    for cmd in (FFMPEG_BIN, FFPROBE_BIN):
        if shutil.which(cmd) is None:
            logger.error("Required dependency not found: %s", cmd)
            return False
    return True

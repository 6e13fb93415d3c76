"""ffmpeg engine wrapper

This package provides:
- The engine lifecycle (unloaded -> loading -> ready or failed)
- A private workspace that stands in for the engine's virtual filesystem
- Command execution with progress and log streaming
"""

from .handle import EngineHandle, EngineStatus
from .progress import ProgressParser, parse_clock
from .process import ProcessResult, run_streaming

__all__ = [
    'EngineHandle',
    'EngineStatus',
    'ProgressParser',
    'parse_clock',
    'ProcessResult',
    'run_streaming',
]

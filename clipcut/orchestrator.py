"""Cut orchestration

Responsibilities:
  - Check the engine, measure the video and plan the cut points
  - Stage the input, run the segmentation and read every clip back
  - Publish job status transitions with a human-readable message
  - Always request deletion of the staged input, without letting a cleanup
    failure mask the job result

Stages run strictly in order: stage -> process -> read all -> cleanup.
Clips left in the workspace by an earlier cut are cleared before processing.
A missing clip fails the whole job; partial results are never returned.
"""

import logging
import threading
from enum import Enum
from typing import Callable, List, Optional, Tuple

from .command_builders import build_segment_args
from .config import ARTIFACT_PREFIX, ENGINE_TIMEOUT, INPUT_STEM, MAX_CLIPS, SEGMENT_LENGTH
from .engine import EngineHandle, EngineStatus
from .events import EventEmitter, EventType
from .exceptions import (
    ClipLimitError, EngineBusyError, EngineError, EngineNotReadyError,
    ProcessingError, StagingError
)
from .models import ClipArtifact, MediaBlob
from .planner import SegmentPlan, clip_name, is_clip_name, plan_segments
from .probe import probe_duration
from .utils import format_megabytes

logger = logging.getLogger(__name__)


class JobStatus(Enum):
    """Stages of a single cut."""
    IDLE = "idle"
    MEASURING_DURATION = "measuring_duration"
    STAGING = "staging"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERRORED = "errored"


class CutOrchestrator:
    """Runs cuts of one video at a time on a single engine."""

    def __init__(
        self,
        engine: EngineHandle,
        prober: Callable[[MediaBlob], float] = probe_duration,
        timeout: Optional[float] = ENGINE_TIMEOUT,
    ):
        self.engine = engine
        self.prober = prober
        self.timeout = timeout
        self.job_status = JobStatus.IDLE
        self._events = EventEmitter()
        self._lock = threading.Lock()

    def on_status(self, callback: Callable[[Tuple[JobStatus, str]], None]) -> Callable[[], None]:
        """Subscribe to (JobStatus, message) transitions; returns an unsubscribe callable."""
        return self._events.on(EventType.STATUS, callback)

    def _set_status(self, status: JobStatus, message: str = "") -> None:
        self.job_status = status
        if message:
            logger.info(message)
        self._events.emit(EventType.STATUS, (status, message))

    def reset(self) -> None:
        """Return to IDLE, e.g. when a new file is selected."""
        if self._lock.locked():
            raise EngineBusyError("Cannot reset while a cut is running", module="orchestrator")
        self._set_status(JobStatus.IDLE)

    def cut(
        self,
        blob: MediaBlob,
        segment_length: int = SEGMENT_LENGTH,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> List[ClipArtifact]:
        """
        Split a video into clips of segment_length seconds without re-encoding.

        Args:
            blob: The selected video
            segment_length: Clip length in seconds
            timeout: Seconds allowed for the segmentation command (defaults to the orchestrator's)
            cancel: Event that stops the segmentation when set

        Returns:
            One ClipArtifact per clip, in index order

        Raises:
            EngineBusyError: If another cut is running on this orchestrator
            EngineNotReadyError: If the engine is not READY
            DurationUnavailableError, InvalidDurationError, ClipLimitError,
            StagingError, ProcessingError, JobCancelledError: On stage failures
        """
        if not self._lock.acquire(blocking=False):
            raise EngineBusyError("A cut is already running on this engine", module="orchestrator")
        try:
            return self._run(blob, segment_length, timeout if timeout is not None else self.timeout, cancel)
        finally:
            self._lock.release()

    def _run(self, blob, segment_length, timeout, cancel) -> List[ClipArtifact]:
        input_name = f"{INPUT_STEM}{blob.suffix}"
        try:
            if self.engine.status is not EngineStatus.READY:
                raise EngineNotReadyError(
                    f"Engine is {self.engine.status.value}, not ready",
                    module="orchestrator"
                )

            self._set_status(JobStatus.MEASURING_DURATION, "Reading the video duration...")
            duration = self.prober(blob)
            plan = plan_segments(duration, segment_length)
            if plan.expected_clip_count > MAX_CLIPS:
                raise ClipLimitError(
                    f"{plan.expected_clip_count} clips of {segment_length}s exceed the "
                    f"limit of {MAX_CLIPS}; use a longer segment length",
                    module="orchestrator"
                )

            self._stage(blob, input_name)
            self._process(plan, input_name, blob.suffix, timeout, cancel)
            artifacts = self._collect(plan, blob)
        except Exception as e:
            self._set_status(JobStatus.ERRORED, "")
            logger.error("Cut of %s failed: %s", blob.name, e)
            raise
        finally:
            self._cleanup(input_name)

        self._set_status(
            JobStatus.COMPLETED,
            f"Cut {blob.name} into {len(artifacts)} clip(s) of {segment_length}s"
        )
        return artifacts

    def _stage(self, blob: MediaBlob, input_name: str) -> None:
        self._set_status(
            JobStatus.STAGING,
            f"Loading {format_megabytes(blob.size)} video into the engine workspace..."
        )
        try:
            data = blob.read_bytes()
            self.engine.write_file(input_name, data)
        except (OSError, MemoryError, EngineError) as e:
            raise StagingError(f"Could not stage {blob.name}: {e}", module="orchestrator") from e

    def _process(self, plan: SegmentPlan, input_name: str, extension: str, timeout, cancel) -> None:
        self._set_status(
            JobStatus.PROCESSING,
            f"Starting cut of {plan.expected_clip_count} clip(s)..."
        )
        args = build_segment_args(plan, input_name, extension)
        try:
            # Clips from an earlier job must not be read back as this job's output
            stale = self.engine.clear_files(is_clip_name)
            if stale:
                logger.debug("Removed %d clip(s) left by a previous cut", len(stale))
            self.engine.exec(args, timeout=timeout, cancel=cancel)
        except EngineError as e:
            raise ProcessingError(e.message) from e

    def _collect(self, plan: SegmentPlan, blob: MediaBlob) -> List[ClipArtifact]:
        artifacts = []
        for index in range(1, plan.expected_clip_count + 1):
            name = clip_name(index, blob.suffix)
            try:
                data = self.engine.read_file(name)
            except EngineError as e:
                raise ProcessingError(
                    f"Clip {index} of {plan.expected_clip_count} is missing: {e.message}"
                ) from e
            artifacts.append(ClipArtifact(
                index=index,
                filename=f"{ARTIFACT_PREFIX}_{plan.segment_length_seconds}s_{name}",
                size_bytes=len(data),
                mime_type=blob.mime_type,
                clip_name=name,
                data=data,
            ))
            logger.debug("Read %s (%d bytes)", name, len(data))
        return artifacts

    def _cleanup(self, input_name: str) -> None:
        try:
            self.engine.delete_file(input_name)
        except Exception as e:
            logger.warning("Could not remove staged input %s: %s", input_name, e)

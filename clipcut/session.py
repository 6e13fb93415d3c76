"""Session wiring between the engine, the orchestrator and the interface.

The trigger flag stands for the "cut" button: it is enabled only once the
engine is READY and a file is selected, it is disabled while a cut runs,
and a failed engine load disables it for the rest of the session.
"""

import logging
import threading
from typing import Callable, List, Optional

from .config import SEGMENT_LENGTH
from .engine import EngineHandle, EngineStatus
from .exceptions import ClipcutError, EngineBusyError, EngineLoadError
from .formatting import render_view
from .models import ClipArtifact, MediaBlob
from .orchestrator import CutOrchestrator, JobStatus
from .projector import UiStatus, ViewState, project

logger = logging.getLogger(__name__)


class CutSession:
    """Drives one engine and one orchestrator on behalf of the user."""

    def __init__(
        self,
        engine: EngineHandle,
        orchestrator: Optional[CutOrchestrator] = None,
        segment_length: int = SEGMENT_LENGTH,
        render: Callable[[ViewState], None] = render_view,
    ):
        self.engine = engine
        self.orchestrator = orchestrator or CutOrchestrator(engine)
        self.segment_length = segment_length
        self.render = render
        self.trigger_enabled = False
        self.selected: Optional[MediaBlob] = None
        self.view: Optional[ViewState] = None
        self.artifacts: List[ClipArtifact] = []

        self.orchestrator.on_status(self._on_job_status)

    def _show(self, status: UiStatus, message: str = "", progress: float = 0) -> None:
        self.view = project(status, message, progress)
        self.render(self.view)

    def _on_progress(self, fraction: float) -> None:
        percent = int(fraction * 100)
        self._show(UiStatus.LOADING, f"Processing {self.segment_length}s cut: {percent}%", percent)

    def _on_job_status(self, update) -> None:
        status, message = update
        if status in (JobStatus.MEASURING_DURATION, JobStatus.STAGING, JobStatus.PROCESSING):
            self._show(UiStatus.LOADING, message)

    def load_engine(self) -> bool:
        """Initialize the engine; returns whether the trigger may be used."""
        self._show(UiStatus.LOADING, "Loading the cutting engine...")
        self.engine.on_progress(self._on_progress)
        try:
            self.engine.initialize()
        except EngineLoadError as e:
            self.trigger_enabled = False
            self._show(
                UiStatus.ERROR,
                f"Failed to load the cutting engine. Reason: {e.reason}. "
                "Check that ffmpeg is installed and on PATH."
            )
            return False
        self.trigger_enabled = self.selected is not None
        self._show(UiStatus.READY, 'Ready! Select a video and start the cut.', 100)
        return True

    def select_file(self, blob: Optional[MediaBlob]) -> None:
        """Select the video to cut and reset the previous job.

        While a cut is running the selection is refused and stays as it was.
        """
        try:
            self.orchestrator.reset()
        except EngineBusyError:
            logger.warning(
                "A cut is running; keeping %s selected",
                self.selected.name if self.selected else "nothing"
            )
            return
        self.selected = blob
        self.artifacts = []
        self.trigger_enabled = self.engine.status is EngineStatus.READY and blob is not None
        if blob is not None and self.engine.status is EngineStatus.READY:
            self._show(UiStatus.READY, f"Selected {blob.name}", 100)

    def cut(self, cancel: Optional[threading.Event] = None) -> Optional[List[ClipArtifact]]:
        """Cut the selected video; returns the clips, or None if nothing ran or the cut failed."""
        if not self.trigger_enabled or self.selected is None:
            logger.debug("Cut ignored: trigger disabled or no file selected")
            return None

        self.trigger_enabled = False
        try:
            artifacts = self.orchestrator.cut(self.selected, self.segment_length, cancel=cancel)
        except ClipcutError as e:
            self._show(UiStatus.ERROR, f"Error processing the video. Detail: {e}")
            return None
        finally:
            self.trigger_enabled = (
                self.engine.status is EngineStatus.READY and self.selected is not None
            )

        self.artifacts = artifacts
        self._show(UiStatus.DONE, f"{len(artifacts)} clip(s) ready for download")
        return artifacts

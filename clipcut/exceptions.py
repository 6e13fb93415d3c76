"""Custom exceptions for the clipcut pipeline"""


class ClipcutError(Exception):
    """Base exception for all clipcut errors"""
    def __init__(self, message: str, module: str = None):
        self.message = message
        self.module = module or "unknown"
        super().__init__(f"[{self.module}] {self.message}")


class DependencyError(ClipcutError):
    """Missing required dependencies"""


class EngineError(ClipcutError):
    """Base class for engine errors (filesystem, command execution, misuse)"""


class EngineLoadError(EngineError):
    """Engine failed to initialize; terminal for that engine instance"""
    def __init__(self, reason: str, module: str = "engine"):
        self.reason = reason
        super().__init__(f"Engine load failed: {reason}", module)


class EngineNotReadyError(EngineError):
    """An engine operation was requested before the engine reached READY"""


class EngineExecError(EngineError):
    """An engine command exited with an error or did not finish in time"""
    def __init__(self, message: str, exit_code: int = None, output: str = "", module: str = "engine"):
        self.exit_code = exit_code
        self.output = output
        super().__init__(message, module)


class JobError(ClipcutError):
    """Base class for errors raised while cutting a video"""


class EngineBusyError(JobError):
    """A cut was requested while another cut is still running"""


class DurationUnavailableError(JobError):
    """The duration of the selected video could not be read"""


class InvalidDurationError(JobError):
    """A duration that cannot be planned (NaN, negative or infinite)"""


class ClipLimitError(JobError):
    """The plan needs more clips than the fixed-width clip index allows"""


class StagingError(JobError):
    """The input could not be copied into the engine workspace"""


class ProcessingError(JobError):
    """Segmentation failed or produced an incomplete set of clips"""
    def __init__(self, reason: str, module: str = "orchestrator"):
        self.reason = reason
        super().__init__(f"Processing failed: {reason}", module)


class JobCancelledError(JobError):
    """The caller cancelled a running cut"""

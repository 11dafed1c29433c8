"""
Pipeline Errors

Error taxonomy for swing analysis.

A frame with no detected pose is NOT an error - detectors return None
for that case and the frame becomes a gap in the trajectory.
"""

from typing import Optional


class SwingAnalysisError(Exception):
    """
    Base class for all swing analysis failures.

    Attributes:
        message: Human-readable explanation (shown to the user)
        code: Stable machine-readable identifier
    """
    code = "analysis_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class InitializationError(SwingAnalysisError):
    """The pose engine could not be constructed (missing model, broken install)."""
    code = "initialization_failed"


class SubmissionError(SwingAnalysisError):
    """A frame could not be handed to the pose engine."""
    code = "submission_failed"


class InsufficientDataError(SwingAnalysisError):
    """Not enough frames or detected poses to analyze."""
    code = "insufficient_data"


class PipelineError(SwingAnalysisError):
    """
    Unexpected failure inside a pipeline stage.

    Attributes:
        stage: Name of the stage that failed (e.g. "phases")
    """
    code = "pipeline_failed"

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.stage:
            data["stage"] = self.stage
        return data


class AnalysisCancelledError(SwingAnalysisError):
    """The caller cancelled the analysis before it finished."""
    code = "cancelled"

    def __init__(self, message: str = "Analysis cancelled"):
        super().__init__(message)

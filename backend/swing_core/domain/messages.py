"""
Analysis Messages

Messages exchanged across the analysis task boundary.

    caller -> task:  ANALYZE_SWING, CANCEL
    task -> caller:  PROGRESS (zero or more, non-decreasing),
                     then exactly one of SWING_ANALYZED or ERROR
"""

from dataclasses import dataclass, field
from enum import Enum


class MessageType(str, Enum):
    # Caller -> task
    ANALYZE_SWING = "ANALYZE_SWING"
    CANCEL = "CANCEL"

    # Task -> caller
    PROGRESS = "PROGRESS"
    SWING_ANALYZED = "SWING_ANALYZED"
    ERROR = "ERROR"


TERMINAL_TYPES = (MessageType.SWING_ANALYZED, MessageType.ERROR)


@dataclass(frozen=True)
class AnalysisMessage:
    type: MessageType
    data: dict = field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return self.type in TERMINAL_TYPES

    def to_dict(self) -> dict:
        return {"type": self.type.value, "data": self.data}

    @classmethod
    def progress(cls, step: str, fraction: float) -> "AnalysisMessage":
        return cls(MessageType.PROGRESS, {"step": step, "progress": fraction})

    @classmethod
    def analyzed(cls, grade_data: dict) -> "AnalysisMessage":
        return cls(MessageType.SWING_ANALYZED, grade_data)

    @classmethod
    def error(cls, error: str, code: str = "analysis_error", **extra) -> "AnalysisMessage":
        return cls(MessageType.ERROR, {"error": error, "code": code, **extra})

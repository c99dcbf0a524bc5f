"""
Decision core for exam proctoring: landmark geometry, attention scoring,
hysteresis gating and violation bookkeeping.
"""

from .attention import AttentionScorer
from .config import ProctorSettings
from .geometry import FaceObservation, FrameStatus, GazeReading, HeadPoseReading, compute_gaze, compute_head_pose
from .hysteresis import Debouncer, HysteresisGate
from .session import FocusEvent, FrameResult, ProctorSession
from .violations import (
    VIOLATION_CONFIGS,
    OutcomeKind,
    Severity,
    Violation,
    ViolationConfig,
    ViolationManager,
    ViolationOutcome,
    ViolationType,
)

__all__ = [
    "AttentionScorer",
    "Debouncer",
    "FaceObservation",
    "FocusEvent",
    "FrameResult",
    "FrameStatus",
    "GazeReading",
    "HeadPoseReading",
    "HysteresisGate",
    "OutcomeKind",
    "ProctorSession",
    "ProctorSettings",
    "Severity",
    "VIOLATION_CONFIGS",
    "Violation",
    "ViolationConfig",
    "ViolationManager",
    "ViolationOutcome",
    "ViolationType",
    "compute_gaze",
    "compute_head_pose",
]

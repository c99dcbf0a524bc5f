from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from .attention import AttentionScorer
from .config import ProctorSettings
from .geometry import (
    NEUTRAL_GAZE,
    NEUTRAL_POSE,
    FaceObservation,
    FrameStatus,
    GazeReading,
    HeadPoseReading,
    compute_gaze,
    compute_head_pose,
    describe_status,
    gaze_direction,
)
from .hysteresis import Debouncer, HysteresisGate
from .violations import (
    NO_CHANGE,
    TerminateCallback,
    Violation,
    ViolationManager,
    ViolationOutcome,
    ViolationType,
    WarningCallback,
)

logger = logging.getLogger(__name__)


class FocusEvent(str, Enum):
    VISIBILITY_HIDDEN = "VISIBILITY_HIDDEN"
    WINDOW_BLUR = "WINDOW_BLUR"


FOCUS_VIOLATIONS = {
    FocusEvent.VISIBILITY_HIDDEN: ViolationType.TAB_SWITCH,
    FocusEvent.WINDOW_BLUR: ViolationType.WINDOW_BLUR,
}


@dataclass
class FrameResult:
    timestamp: float
    score: int
    face_count: int
    status: FrameStatus
    pose: HeadPoseReading = NEUTRAL_POSE
    gaze: GazeReading = NEUTRAL_GAZE
    outcomes: List[ViolationOutcome] = field(default_factory=list)
    terminated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "score": self.score,
            "face_count": self.face_count,
            "status": self.status.value,
            "yaw": self.pose.yaw,
            "pitch": self.pose.pitch,
            "is_facing_straight": self.pose.is_facing_straight,
            "gaze_x": self.gaze.horizontal,
            "gaze_y": self.gaze.vertical,
            "gaze_direction": gaze_direction(self.gaze.horizontal, self.gaze.vertical),
            "is_looking_at_screen": self.gaze.is_looking_at_screen,
            "multiple_faces": self.gaze.multiple_faces,
            "outcomes": [o.to_dict() for o in self.outcomes],
            "terminated": self.terminated,
        }


Observation = Union[FaceObservation, Sequence[Any], None]


class ProctorSession:
    """
    One exam attempt. Frames and focus events are fed in arrival order; every
    call returns the violation outcomes it produced, and the optional
    callbacks are invoked for warnings and termination as they happen.
    """

    def __init__(
        self,
        settings: Optional[ProctorSettings] = None,
        on_warning: Optional[WarningCallback] = None,
        on_terminate: Optional[TerminateCallback] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings or ProctorSettings()
        self.clock = clock
        self.scorer = AttentionScorer(config=self.settings.scoring, clock=clock)
        self.manager = ViolationManager(on_warning=on_warning, on_terminate=on_terminate, clock=clock)

        timings = self.settings.timings
        self.gates: Dict[ViolationType, HysteresisGate] = {
            ViolationType.MULTIPLE_FACES: HysteresisGate(0.0, timings.cooldown_seconds),
            ViolationType.FACE_ABSENT: HysteresisGate(timings.face_absent_seconds, timings.cooldown_seconds),
            ViolationType.LOOKING_AWAY: HysteresisGate(timings.looking_away_seconds, timings.cooldown_seconds),
            ViolationType.LOW_ATTENTION: HysteresisGate(
                timings.low_attention_seconds, timings.low_attention_cooldown_seconds
            ),
        }
        self.debouncers: Dict[FocusEvent, Debouncer] = {
            FocusEvent.VISIBILITY_HIDDEN: Debouncer(timings.visibility_debounce_seconds),
            FocusEvent.WINDOW_BLUR: Debouncer(timings.blur_debounce_seconds),
        }

        self.last_pose: HeadPoseReading = NEUTRAL_POSE
        self.last_gaze: GazeReading = NEUTRAL_GAZE
        self.last_status = FrameStatus.NO_FACE

    @property
    def score(self) -> int:
        return self.scorer.current()

    @property
    def terminated(self) -> bool:
        return self.manager.terminated

    @property
    def termination_reason(self) -> Optional[ViolationType]:
        return self.manager.termination_reason

    def violations(self) -> List[Violation]:
        return self.manager.get_all_violations()

    def _read(self, observation: FaceObservation) -> tuple[HeadPoseReading, GazeReading]:
        face = observation.primary
        if face is None:
            return NEUTRAL_POSE, NEUTRAL_GAZE
        pose = compute_head_pose(face, self.settings.pose)
        gaze = compute_gaze(face, self.settings.gaze)
        if observation.face_count > 1:
            gaze = replace(gaze, multiple_faces=True)
        return pose, gaze

    def process_frame(self, observation: Observation, timestamp: Optional[float] = None) -> FrameResult:
        if not isinstance(observation, FaceObservation):
            observation = FaceObservation.from_faces(observation)
        now = self.clock() if timestamp is None else timestamp

        pose, gaze = self._read(observation)
        status = describe_status(pose, gaze, self.settings.pose)
        self.last_pose, self.last_gaze, self.last_status = pose, gaze, status

        if self.terminated:
            return FrameResult(now, self.score, observation.face_count, status, pose, gaze, terminated=True)

        face_present = gaze.face_present
        attentive = face_present and pose.is_facing_straight and gaze.is_looking_at_screen
        score = self.scorer.update(face_present, attentive, timestamp=now)

        conditions = [
            (ViolationType.MULTIPLE_FACES, observation.face_count > 1),
            (ViolationType.FACE_ABSENT, not face_present),
            (ViolationType.LOOKING_AWAY, face_present and not attentive),
            (ViolationType.LOW_ATTENTION, self.scorer.score < self.settings.timings.low_attention_threshold),
        ]
        outcomes: List[ViolationOutcome] = []
        for violation_type, active in conditions:
            if not self.gates[violation_type].update(active, now):
                continue
            outcome = self.manager.add_violation(violation_type, timestamp=now)
            outcomes.append(outcome)
            if outcome.terminated:
                break

        if outcomes:
            logger.debug("Frame at %.3f produced %d violation(s), status %s", now, len(outcomes), status.value)
        return FrameResult(now, score, observation.face_count, status, pose, gaze, outcomes, self.terminated)

    def handle_focus_event(self, event: FocusEvent, timestamp: Optional[float] = None) -> ViolationOutcome:
        event = FocusEvent(event)
        now = self.clock() if timestamp is None else timestamp
        if self.terminated:
            return NO_CHANGE
        if not self.debouncers[event].accept(now):
            logger.debug("Debounced %s at %.3f", event.value, now)
            return NO_CHANGE
        return self.manager.add_violation(FOCUS_VIOLATIONS[event], timestamp=now)

    def snapshot(self) -> Dict[str, Any]:
        reason = self.termination_reason
        return {
            "score": self.score,
            "terminated": self.terminated,
            "termination_reason": reason.value if reason else None,
            "counts": {vt.value: n for vt, n in self.manager.get_counts().items()},
            "status": self.last_status.value,
            "yaw": self.last_pose.yaw,
            "pitch": self.last_pose.pitch,
            "gaze_x": self.last_gaze.horizontal,
            "gaze_y": self.last_gaze.vertical,
        }

    def reset(self) -> None:
        self.scorer.reset()
        self.manager.reset()
        for gate in self.gates.values():
            gate.reset()
        for debouncer in self.debouncers.values():
            debouncer.reset()
        self.last_pose, self.last_gaze, self.last_status = NEUTRAL_POSE, NEUTRAL_GAZE, FrameStatus.NO_FACE
        logger.info("Session reset")

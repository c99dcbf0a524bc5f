from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Sequence, Tuple

import numpy as np

from .config import GazeThresholds, PoseThresholds

logger = logging.getLogger(__name__)

MIN_LANDMARKS = 478

NOSE_TIP = 1
CHIN = 152
FOREHEAD = 10
LEFT_EAR = 234
RIGHT_EAR = 454

LEFT_EYE_INNER = 133
LEFT_EYE_OUTER = 33
RIGHT_EYE_INNER = 362
RIGHT_EYE_OUTER = 263
LEFT_IRIS = 468
RIGHT_IRIS = 473

Landmark = Tuple[float, float, float]


@dataclass(frozen=True)
class HeadPoseReading:
    yaw: float = 0.0
    pitch: float = 0.0
    is_facing_straight: bool = False


@dataclass(frozen=True)
class GazeReading:
    horizontal: float = 0.0
    vertical: float = 0.0
    is_looking_at_screen: bool = False
    face_present: bool = False
    multiple_faces: bool = False


NEUTRAL_POSE = HeadPoseReading()
NEUTRAL_GAZE = GazeReading()


class FrameStatus(str, Enum):
    GOOD = "GOOD"
    NO_FACE = "NO_FACE"
    HEAD_LEFT = "HEAD_LEFT"
    HEAD_RIGHT = "HEAD_RIGHT"
    LOOKING_DOWN = "LOOKING_DOWN"
    LOOKING_UP = "LOOKING_UP"
    HEAD_AWAY = "HEAD_AWAY"
    EYES_OFF_SCREEN = "EYES_OFF_SCREEN"


def _iter_landmarks(face_landmarks: Any):
    return getattr(face_landmarks, "landmark", face_landmarks)


def _as_point(point: Any) -> Landmark:
    if hasattr(point, "x"):
        return float(point.x), float(point.y), float(getattr(point, "z", 0.0))
    x, y, *rest = point
    return float(x), float(y), float(rest[0]) if rest else 0.0


def to_landmark_array(face_landmarks: Any) -> Optional[np.ndarray]:
    """
    Normalizes one face's landmarks into an (N, 3) float array.

    Accepts sequences of (x, y, z) tuples as well as detector results whose
    points expose ``.x/.y/.z`` (optionally wrapped in ``.landmark``).
    Returns None when the input cannot be read as points.
    """
    if face_landmarks is None:
        return None
    if isinstance(face_landmarks, np.ndarray) and face_landmarks.ndim == 2 and face_landmarks.shape[1] >= 2:
        points = face_landmarks.astype(np.float64)
        if points.shape[1] == 2:
            points = np.hstack([points, np.zeros((points.shape[0], 1))])
        return points[:, :3]
    try:
        points = [_as_point(p) for p in _iter_landmarks(face_landmarks)]
    except (TypeError, ValueError, AttributeError):
        logger.debug("Unreadable landmark set of type %s", type(face_landmarks).__name__)
        return None
    return np.array(points, dtype=np.float64).reshape(-1, 3)


@dataclass(frozen=True)
class FaceObservation:
    """All faces reported by the detector for a single capture frame."""

    faces: Tuple[Any, ...] = field(default_factory=tuple)

    @classmethod
    def from_faces(cls, faces: Optional[Sequence[Any]]) -> "FaceObservation":
        return cls(faces=tuple(faces or ()))

    @property
    def face_count(self) -> int:
        return len(self.faces)

    @property
    def primary(self) -> Optional[Any]:
        return self.faces[0] if self.faces else None


def _points(landmarks: Any) -> Optional[np.ndarray]:
    points = to_landmark_array(landmarks)
    if points is None or points.shape[0] < MIN_LANDMARKS:
        return None
    if not np.isfinite(points[:, :2]).all():
        logger.debug("Non-finite landmark coordinates")
        return None
    return points


def compute_head_pose(landmarks: Any, thresholds: Optional[PoseThresholds] = None) -> HeadPoseReading:
    """
    Approximates yaw from the nose tip's position between the ears and pitch
    from its position between forehead and chin. Both are unitless in
    roughly [-1, 1].
    """
    points = _points(landmarks)
    if points is None:
        return NEUTRAL_POSE
    thresholds = thresholds or PoseThresholds()

    nose, chin, forehead = points[NOSE_TIP], points[CHIN], points[FOREHEAD]
    left_ear, right_ear = points[LEFT_EAR], points[RIGHT_EAR]

    ear_width = float(right_ear[0] - left_ear[0])
    face_height = float(chin[1] - forehead[1])
    if abs(ear_width) < 1e-9 or abs(face_height) < 1e-9:
        logger.debug("Degenerate face geometry (ear width %.4f, face height %.4f)", ear_width, face_height)
        return NEUTRAL_POSE

    yaw = ((nose[0] - left_ear[0]) / ear_width - 0.5) * 2.0
    ratio = (nose[1] - forehead[1]) / face_height
    pitch = (ratio - thresholds.expected_nose_ratio) * thresholds.pitch_scale

    facing = abs(yaw) < thresholds.yaw_threshold and abs(pitch) < thresholds.pitch_threshold
    return HeadPoseReading(yaw=float(yaw), pitch=float(pitch), is_facing_straight=bool(facing))


def _eye_offset(points: np.ndarray, inner: int, outer: int, iris: int) -> tuple[float, float, float]:
    center = (points[inner, :2] + points[outer, :2]) / 2.0
    width = abs(float(points[outer, 0] - points[inner, 0]))
    dx, dy = points[iris, :2] - center
    return float(dx), float(dy), width


def compute_gaze(landmarks: Any, thresholds: Optional[GazeThresholds] = None) -> GazeReading:
    points = _points(landmarks)
    if points is None:
        return NEUTRAL_GAZE
    thresholds = thresholds or GazeThresholds()

    left_dx, left_dy, left_width = _eye_offset(points, LEFT_EYE_INNER, LEFT_EYE_OUTER, LEFT_IRIS)
    right_dx, right_dy, right_width = _eye_offset(points, RIGHT_EYE_INNER, RIGHT_EYE_OUTER, RIGHT_IRIS)
    if left_width < 1e-9 or right_width < 1e-9:
        logger.debug("Degenerate eye width (left %.4f, right %.4f)", left_width, right_width)
        return NEUTRAL_GAZE

    horizontal = (left_dx / (left_width / 2.0) + right_dx / (right_width / 2.0)) / 2.0
    # normalized by eye width, eye height is unreliable under head tilt
    vertical = (left_dy + right_dy) / 2.0 / left_width

    looking = abs(horizontal) < thresholds.horizontal_threshold and abs(vertical) < thresholds.vertical_threshold
    return GazeReading(
        horizontal=horizontal,
        vertical=vertical,
        is_looking_at_screen=looking,
        face_present=True,
        multiple_faces=False,
    )


def gaze_direction(horizontal: float, vertical: float) -> str:
    if abs(horizontal) < 0.2 and abs(vertical) < 0.2:
        return "center"
    if horizontal < -0.3:
        return "left"
    if horizontal > 0.3:
        return "right"
    if vertical > 0.3:
        return "down"
    if vertical < -0.3:
        return "up"
    return "center"


def describe_status(
    pose: HeadPoseReading, gaze: GazeReading, thresholds: Optional[PoseThresholds] = None
) -> FrameStatus:
    thresholds = thresholds or PoseThresholds()
    if not gaze.face_present:
        return FrameStatus.NO_FACE
    if not pose.is_facing_straight:
        if pose.yaw < -thresholds.yaw_threshold:
            return FrameStatus.HEAD_LEFT
        if pose.yaw > thresholds.yaw_threshold:
            return FrameStatus.HEAD_RIGHT
        if pose.pitch > thresholds.pitch_threshold:
            return FrameStatus.LOOKING_DOWN
        if pose.pitch < -thresholds.pitch_threshold:
            return FrameStatus.LOOKING_UP
        # unreadable head geometry never reports GOOD
        return FrameStatus.HEAD_AWAY
    if not gaze.is_looking_at_screen:
        return FrameStatus.EYES_OFF_SCREEN
    return FrameStatus.GOOD

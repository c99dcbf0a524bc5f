from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel

from proctor.session import FocusEvent


class PoseSchema(BaseModel):
    yaw_threshold: float = 0.25
    pitch_threshold: float = 0.3
    expected_nose_ratio: float = 0.45
    pitch_scale: float = 4.0


class GazeSchema(BaseModel):
    horizontal_threshold: float = 0.35
    vertical_threshold: float = 0.4


class ScoringSchema(BaseModel):
    initial_score: float = 100.0
    absent_penalty: float = 5.0
    away_penalty: float = 2.0
    recovery: float = 0.5
    history_size: int = 100


class TimingsSchema(BaseModel):
    looking_away_seconds: float = 2.5
    face_absent_seconds: float = 3.0
    cooldown_seconds: float = 6.0
    visibility_debounce_seconds: float = 2.0
    blur_debounce_seconds: float = 3.0
    low_attention_threshold: float = 50.0
    low_attention_seconds: float = 5.0
    low_attention_cooldown_seconds: float = 10.0


class SettingsSchema(BaseModel):
    pose: PoseSchema = PoseSchema()
    gaze: GazeSchema = GazeSchema()
    scoring: ScoringSchema = ScoringSchema()
    timings: TimingsSchema = TimingsSchema()


class FrameRequest(BaseModel):
    timestamp: Optional[float] = None
    faces: List[List[List[float]]] = []


class FocusRequest(BaseModel):
    event: FocusEvent
    timestamp: Optional[float] = None


class ViolationSchema(BaseModel):
    type: str
    timestamp: float
    message: str
    severity: str


class OutcomeSchema(BaseModel):
    kind: str
    violation: Optional[ViolationSchema] = None
    count: int
    max: int
    violations: List[ViolationSchema]


class FrameResponse(BaseModel):
    timestamp: float
    score: int
    face_count: int
    status: str
    yaw: float
    pitch: float
    is_facing_straight: bool
    gaze_x: float
    gaze_y: float
    gaze_direction: str
    is_looking_at_screen: bool
    multiple_faces: bool
    outcomes: List[OutcomeSchema]
    terminated: bool


class SessionState(BaseModel):
    session_id: str
    score: int
    terminated: bool
    termination_reason: Optional[str] = None
    counts: Dict[str, int]
    status: str
    yaw: float
    pitch: float
    gaze_x: float
    gaze_y: float


class ViolationLog(BaseModel):
    violations: List[ViolationSchema]

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class PoseThresholds:
    yaw_threshold: float = 0.25
    pitch_threshold: float = 0.3
    expected_nose_ratio: float = 0.45
    pitch_scale: float = 4.0


@dataclass
class GazeThresholds:
    horizontal_threshold: float = 0.35
    vertical_threshold: float = 0.4


@dataclass
class ScoringConfig:
    initial_score: float = 100.0
    absent_penalty: float = 5.0
    away_penalty: float = 2.0
    recovery: float = 0.5
    history_size: int = 100


@dataclass
class GateTimings:
    looking_away_seconds: float = 2.5
    face_absent_seconds: float = 3.0
    cooldown_seconds: float = 6.0
    visibility_debounce_seconds: float = 2.0
    blur_debounce_seconds: float = 3.0
    low_attention_threshold: float = 50.0
    low_attention_seconds: float = 5.0
    low_attention_cooldown_seconds: float = 10.0


@dataclass
class ProctorSettings:
    pose: PoseThresholds = field(default_factory=PoseThresholds)
    gaze: GazeThresholds = field(default_factory=GazeThresholds)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    timings: GateTimings = field(default_factory=GateTimings)

    @classmethod
    def from_dict(cls, payload: dict) -> "ProctorSettings":
        pose_data = payload.get("pose", {}) or {}
        gaze_data = payload.get("gaze", {}) or {}
        scoring_data = payload.get("scoring", {}) or {}
        timing_data = payload.get("timings", {}) or {}

        pose = PoseThresholds(
            yaw_threshold=float(pose_data.get("yaw_threshold", 0.25)),
            pitch_threshold=float(pose_data.get("pitch_threshold", 0.3)),
            expected_nose_ratio=float(pose_data.get("expected_nose_ratio", 0.45)),
            pitch_scale=float(pose_data.get("pitch_scale", 4.0)),
        )
        gaze = GazeThresholds(
            horizontal_threshold=float(gaze_data.get("horizontal_threshold", 0.35)),
            vertical_threshold=float(gaze_data.get("vertical_threshold", 0.4)),
        )
        scoring = ScoringConfig(
            initial_score=float(scoring_data.get("initial_score", 100.0)),
            absent_penalty=float(scoring_data.get("absent_penalty", 5.0)),
            away_penalty=float(scoring_data.get("away_penalty", 2.0)),
            recovery=float(scoring_data.get("recovery", 0.5)),
            history_size=int(scoring_data.get("history_size", 100)),
        )
        timings = GateTimings(
            looking_away_seconds=float(timing_data.get("looking_away_seconds", 2.5)),
            face_absent_seconds=float(timing_data.get("face_absent_seconds", 3.0)),
            cooldown_seconds=float(timing_data.get("cooldown_seconds", 6.0)),
            visibility_debounce_seconds=float(timing_data.get("visibility_debounce_seconds", 2.0)),
            blur_debounce_seconds=float(timing_data.get("blur_debounce_seconds", 3.0)),
            low_attention_threshold=float(timing_data.get("low_attention_threshold", 50.0)),
            low_attention_seconds=float(timing_data.get("low_attention_seconds", 5.0)),
            low_attention_cooldown_seconds=float(timing_data.get("low_attention_cooldown_seconds", 10.0)),
        )
        return cls(pose=pose, gaze=gaze, scoring=scoring, timings=timings)

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import uvicorn
from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from proctor import FaceObservation, ProctorSettings

from .config_loader import load_raw, load_settings, persist_settings
from .logging_config import setup_logging
from .schemas import (
    FocusRequest,
    FrameRequest,
    FrameResponse,
    OutcomeSchema,
    SessionState,
    SettingsSchema,
    ViolationLog,
)
from .sessions import SessionHandle, SessionRegistry

ROOT = Path(__file__).resolve().parent.parent
CONFIG_PATH = ROOT / "configs" / "default.yaml"

raw_cfg: Dict[str, Any] = load_raw(str(CONFIG_PATH))
setup_logging(raw_cfg.get("logging", {}).get("level", "INFO"))

proctor_settings: ProctorSettings = load_settings(str(CONFIG_PATH))
session_cfg: Dict[str, Any] = raw_cfg.get("sessions", {}) or {}
registry = SessionRegistry(
    proctor_settings,
    idle_seconds=float(session_cfg.get("idle_seconds", 1800.0)),
    terminated_seconds=float(session_cfg.get("terminated_seconds", 300.0)),
)

app = FastAPI(title="exam-proctor", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _schema_from_settings(settings: ProctorSettings) -> SettingsSchema:
    return SettingsSchema(
        pose={
            "yaw_threshold": settings.pose.yaw_threshold,
            "pitch_threshold": settings.pose.pitch_threshold,
            "expected_nose_ratio": settings.pose.expected_nose_ratio,
            "pitch_scale": settings.pose.pitch_scale,
        },
        gaze={
            "horizontal_threshold": settings.gaze.horizontal_threshold,
            "vertical_threshold": settings.gaze.vertical_threshold,
        },
        scoring={
            "initial_score": settings.scoring.initial_score,
            "absent_penalty": settings.scoring.absent_penalty,
            "away_penalty": settings.scoring.away_penalty,
            "recovery": settings.scoring.recovery,
            "history_size": settings.scoring.history_size,
        },
        timings={
            "looking_away_seconds": settings.timings.looking_away_seconds,
            "face_absent_seconds": settings.timings.face_absent_seconds,
            "cooldown_seconds": settings.timings.cooldown_seconds,
            "visibility_debounce_seconds": settings.timings.visibility_debounce_seconds,
            "blur_debounce_seconds": settings.timings.blur_debounce_seconds,
            "low_attention_threshold": settings.timings.low_attention_threshold,
            "low_attention_seconds": settings.timings.low_attention_seconds,
            "low_attention_cooldown_seconds": settings.timings.low_attention_cooldown_seconds,
        },
    )


def _handle(session_id: str) -> SessionHandle:
    handle = registry.get(session_id)
    if handle is None:
        raise HTTPException(status_code=404, detail=f"Unknown session {session_id}")
    return handle


def _state(handle: SessionHandle) -> SessionState:
    return SessionState(session_id=handle.session_id, **handle.session.snapshot())


@app.get("/api/health")
async def health() -> Dict[str, Any]:
    return {"status": "ok", "sessions": len(registry)}


@app.get("/api/settings", response_model=SettingsSchema)
async def get_settings() -> SettingsSchema:
    return _schema_from_settings(proctor_settings)


@app.post("/api/settings", response_model=SettingsSchema)
async def update_settings(payload: SettingsSchema) -> SettingsSchema:
    global proctor_settings
    proctor_settings = ProctorSettings.from_dict(payload.model_dump())
    registry.update_settings(proctor_settings)
    persist_settings(str(CONFIG_PATH), payload.model_dump())
    return payload


@app.post("/api/sessions", response_model=SessionState)
async def create_session() -> SessionState:
    return _state(registry.create())


@app.get("/api/sessions/{session_id}", response_model=SessionState)
async def session_state(session_id: str) -> SessionState:
    return _state(_handle(session_id))


@app.delete("/api/sessions/{session_id}")
async def delete_session(session_id: str) -> Dict[str, str]:
    if not registry.remove(session_id):
        raise HTTPException(status_code=404, detail=f"Unknown session {session_id}")
    return {"status": "DELETED"}


@app.post("/api/sessions/{session_id}/frames", response_model=FrameResponse)
async def submit_frame(session_id: str, payload: FrameRequest) -> FrameResponse:
    session = _handle(session_id).session
    result = session.process_frame(FaceObservation.from_faces(payload.faces), timestamp=payload.timestamp)
    return FrameResponse(**result.to_dict())


@app.post("/api/sessions/{session_id}/focus", response_model=OutcomeSchema)
async def submit_focus_event(session_id: str, payload: FocusRequest) -> OutcomeSchema:
    session = _handle(session_id).session
    outcome = session.handle_focus_event(payload.event, timestamp=payload.timestamp)
    return OutcomeSchema(**outcome.to_dict())


@app.get("/api/sessions/{session_id}/violations", response_model=ViolationLog)
async def session_violations(session_id: str) -> ViolationLog:
    session = _handle(session_id).session
    return ViolationLog(violations=[v.to_dict() for v in session.violations()])


@app.post("/api/sessions/{session_id}/reset", response_model=SessionState)
async def reset_session(session_id: str) -> SessionState:
    handle = _handle(session_id)
    handle.session.reset()
    return _state(handle)


@app.websocket("/api/sessions/{session_id}/stream")
async def session_stream(ws: WebSocket, session_id: str) -> None:
    handle = registry.get(session_id)
    if handle is None:
        await ws.close(code=1008)
        return
    await ws.accept()
    queue = handle.subscribe()
    try:
        while True:
            payload = await queue.get()
            await ws.send_text(payload)
    except WebSocketDisconnect:
        pass
    finally:
        handle.unsubscribe(queue)


if __name__ == "__main__":
    uvicorn.run("backend.main:app", host="0.0.0.0", port=8000, reload=True)

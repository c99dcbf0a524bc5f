from __future__ import annotations

import asyncio
import json
import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from proctor import ProctorSession, ProctorSettings
from proctor.violations import Violation, ViolationType

logger = logging.getLogger(__name__)


@dataclass
class SessionHandle:
    session_id: str
    session: ProctorSession
    listeners: List[asyncio.Queue] = field(default_factory=list)
    last_seen: float = 0.0

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self.listeners.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        if queue in self.listeners:
            self.listeners.remove(queue)


def _broadcast(listeners: List[asyncio.Queue], payload: dict) -> None:
    message = json.dumps(payload)
    for queue in listeners:
        _push_queue(queue, message)


def _push_queue(queue: asyncio.Queue, payload: str) -> None:
    try:
        if queue.qsize() > 16:
            queue.get_nowait()
        queue.put_nowait(payload)
    except (asyncio.QueueFull, asyncio.QueueEmpty):
        return


class SessionRegistry:
    """Owns one ProctorSession per exam attempt, keyed by a generated id."""

    def __init__(
        self,
        settings: ProctorSettings,
        idle_seconds: float = 1800.0,
        terminated_seconds: float = 300.0,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings
        self.idle_seconds = idle_seconds
        self.terminated_seconds = terminated_seconds
        self.clock = clock
        self.sessions: Dict[str, SessionHandle] = {}
        self.lock = threading.Lock()

    def update_settings(self, settings: ProctorSettings) -> None:
        self.settings = settings

    def create(self) -> SessionHandle:
        session_id = uuid.uuid4().hex
        listeners: List[asyncio.Queue] = []

        def on_warning(violation: Violation, count: int, max_count: int) -> None:
            _broadcast(
                listeners,
                {"event": "warning", "violation": violation.to_dict(), "count": count, "max": max_count},
            )

        def on_terminate(violation_type: ViolationType, violations: List[Violation]) -> None:
            logger.warning("Session %s terminated by %s", session_id, violation_type.value)
            _broadcast(
                listeners,
                {
                    "event": "terminated",
                    "type": violation_type.value,
                    "violations": [v.to_dict() for v in violations],
                },
            )

        session = ProctorSession(self.settings, on_warning=on_warning, on_terminate=on_terminate)
        handle = SessionHandle(session_id=session_id, session=session, listeners=listeners, last_seen=self.clock())
        self.prune()
        with self.lock:
            self.sessions[session_id] = handle
        logger.info("Session %s created", session_id)
        return handle

    def get(self, session_id: str) -> Optional[SessionHandle]:
        self.prune()
        with self.lock:
            handle = self.sessions.get(session_id)
            if handle:
                handle.last_seen = self.clock()
            return handle

    def prune(self) -> List[str]:
        """Drops sessions nobody has touched recently; terminated ones go sooner."""
        now = self.clock()
        with self.lock:
            expired = [
                session_id
                for session_id, handle in self.sessions.items()
                if not handle.listeners
                and now - handle.last_seen
                >= (self.terminated_seconds if handle.session.terminated else self.idle_seconds)
            ]
            for session_id in expired:
                del self.sessions[session_id]
        for session_id in expired:
            logger.info("Session %s expired", session_id)
        return expired

    def remove(self, session_id: str) -> bool:
        with self.lock:
            handle = self.sessions.pop(session_id, None)
        if handle:
            logger.info("Session %s discarded", session_id)
        return handle is not None

    def __len__(self) -> int:
        with self.lock:
            return len(self.sessions)

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


def _elapsed(now: float, since: float) -> float:
    # a clock that steps backwards must never produce a negative duration
    return max(now - since, 0.0)


@dataclass
class HysteresisGate:
    """
    Turns a per-frame boolean into discrete events.

    The condition has to hold continuously for ``min_duration`` seconds and
    ``cooldown`` seconds must have passed since the previous emission. After
    emitting, the window restarts so a sustained condition re-fires once per
    cooldown interval at most.
    """

    min_duration: float
    cooldown: float
    window_start: Optional[float] = None
    last_emitted: Optional[float] = None

    def update(self, active: bool, now: float) -> bool:
        if not active:
            self.window_start = None
            return False

        if self.window_start is None:
            self.window_start = now
            if self.min_duration > 0:
                return False

        if _elapsed(now, self.window_start) < self.min_duration:
            return False
        if self.last_emitted is not None and _elapsed(now, self.last_emitted) < self.cooldown:
            return False

        self.last_emitted = now
        self.window_start = now
        return True

    @property
    def is_open(self) -> bool:
        return self.window_start is not None

    def reset(self) -> None:
        self.window_start = None
        self.last_emitted = None


@dataclass
class Debouncer:
    """Cooldown-only gate for discrete events such as focus loss."""

    interval: float
    last_accepted: Optional[float] = None

    def accept(self, now: float) -> bool:
        if self.last_accepted is not None and _elapsed(now, self.last_accepted) < self.interval:
            return False
        self.last_accepted = now
        return True

    def reset(self) -> None:
        self.last_accepted = None

from __future__ import annotations

import math
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, List, Optional

from .config import ScoringConfig


@dataclass(frozen=True)
class AttentionSample:
    timestamp: float
    score: float


@dataclass
class AttentionScorer:
    """
    Bounded attention score. Penalties for an absent face or a look-away are
    larger than the per-frame recovery, so briefly glancing back does not
    restore the score.
    """

    config: ScoringConfig = field(default_factory=ScoringConfig)
    clock: Callable[[], float] = time.time
    score: float = field(init=False)
    history: Deque[AttentionSample] = field(init=False)

    def __post_init__(self) -> None:
        self.score = self._clamp(self.config.initial_score)
        self.history = deque(maxlen=max(self.config.history_size, 1))

    @staticmethod
    def _clamp(value: float) -> float:
        return max(min(value, 100.0), 0.0)

    def update(self, face_present: bool, is_looking_at_screen: bool, timestamp: Optional[float] = None) -> int:
        if not face_present:
            delta = -self.config.absent_penalty
        elif not is_looking_at_screen:
            delta = -self.config.away_penalty
        else:
            delta = self.config.recovery
        self.score = self._clamp(self.score + delta)

        ts = self.clock() if timestamp is None else timestamp
        self.history.append(AttentionSample(timestamp=ts, score=self.score))
        return self.current()

    def current(self) -> int:
        return int(math.floor(self.score + 0.5))

    def samples(self) -> List[AttentionSample]:
        return list(self.history)

    def reset(self) -> None:
        self.score = self._clamp(self.config.initial_score)
        self.history.clear()

from __future__ import annotations

import itertools
import logging
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


class ViolationType(str, Enum):
    FACE_ABSENT = "FACE_ABSENT"
    MULTIPLE_FACES = "MULTIPLE_FACES"
    LOOKING_AWAY = "LOOKING_AWAY"
    LOW_ATTENTION = "LOW_ATTENTION"
    TAB_SWITCH = "TAB_SWITCH"
    WINDOW_BLUR = "WINDOW_BLUR"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class ViolationConfig:
    severity: Severity
    max_count: int
    message: str


VIOLATION_CONFIGS: Mapping[ViolationType, ViolationConfig] = MappingProxyType(
    {
        ViolationType.FACE_ABSENT: ViolationConfig(Severity.HIGH, 3, "Face not detected"),
        ViolationType.MULTIPLE_FACES: ViolationConfig(Severity.CRITICAL, 1, "Multiple faces detected"),
        ViolationType.LOOKING_AWAY: ViolationConfig(Severity.MEDIUM, 10, "Looking away from screen"),
        ViolationType.LOW_ATTENTION: ViolationConfig(Severity.MEDIUM, 5, "Low attention score"),
        ViolationType.TAB_SWITCH: ViolationConfig(
            Severity.HIGH, 3, "Tab switch detected - you left the exam window"
        ),
        ViolationType.WINDOW_BLUR: ViolationConfig(
            Severity.MEDIUM, 3, "Window focus lost - please stay on the exam window"
        ),
    }
)


@dataclass(frozen=True)
class Violation:
    type: ViolationType
    timestamp: float
    message: str
    severity: Severity
    sequence: int = field(default=0, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload.pop("sequence")
        payload["type"] = self.type.value
        payload["severity"] = self.severity.value
        return payload


class OutcomeKind(str, Enum):
    NO_CHANGE = "NO_CHANGE"
    WARNING = "WARNING"
    TERMINATED = "TERMINATED"


@dataclass(frozen=True)
class ViolationOutcome:
    kind: OutcomeKind
    violation: Optional[Violation] = None
    count: int = 0
    max_count: int = 0
    violations: Tuple[Violation, ...] = ()

    @property
    def terminated(self) -> bool:
        return self.kind == OutcomeKind.TERMINATED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "violation": self.violation.to_dict() if self.violation else None,
            "count": self.count,
            "max": self.max_count,
            "violations": [v.to_dict() for v in self.violations],
        }


NO_CHANGE = ViolationOutcome(kind=OutcomeKind.NO_CHANGE)

WarningCallback = Callable[[Violation, int, int], None]
TerminateCallback = Callable[[ViolationType, List[Violation]], None]


class ViolationManager:
    def __init__(
        self,
        on_warning: Optional[WarningCallback] = None,
        on_terminate: Optional[TerminateCallback] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.on_warning = on_warning
        self.on_terminate = on_terminate
        self.clock = clock
        self.violations: Dict[ViolationType, List[Violation]] = {}
        self.terminated = False
        self.termination_reason: Optional[ViolationType] = None
        self._sequence = itertools.count()

    def add_violation(self, violation_type: ViolationType, timestamp: Optional[float] = None) -> ViolationOutcome:
        violation_type = ViolationType(violation_type)
        if self.terminated:
            logger.debug("Session terminated, ignoring %s", violation_type.value)
            return NO_CHANGE

        config = VIOLATION_CONFIGS[violation_type]
        violation = Violation(
            type=violation_type,
            timestamp=self.clock() if timestamp is None else timestamp,
            message=config.message,
            severity=config.severity,
            sequence=next(self._sequence),
        )
        log = self.violations.setdefault(violation_type, [])
        log.append(violation)

        count = len(log)
        max_count = config.max_count
        # the terminal state is recorded before any consumer callback runs
        if count >= max_count:
            self.terminated = True
            self.termination_reason = violation_type

        logger.info("%s (%s) %d/%d", violation_type.value, config.severity.value, count, max_count)
        if self.on_warning:
            self.on_warning(violation, count, max_count)

        if not self.terminated:
            return ViolationOutcome(OutcomeKind.WARNING, violation, count, max_count)

        history = sorted(log, key=lambda v: (v.timestamp, v.sequence))
        logger.warning("Session terminated: %s reached %d/%d", violation_type.value, count, max_count)
        if self.on_terminate:
            self.on_terminate(violation_type, history)
        return ViolationOutcome(OutcomeKind.TERMINATED, violation, count, max_count, tuple(history))

    def get_violation_count(self, violation_type: ViolationType) -> int:
        return len(self.violations.get(violation_type, ()))

    def get_counts(self) -> Dict[ViolationType, int]:
        return {vt: self.get_violation_count(vt) for vt in ViolationType}

    def get_all_violations(self) -> List[Violation]:
        merged = [v for log in self.violations.values() for v in log]
        return sorted(merged, key=lambda v: (v.timestamp, v.sequence))

    def reset(self) -> None:
        self.violations.clear()
        self.terminated = False
        self.termination_reason = None
        self._sequence = itertools.count()

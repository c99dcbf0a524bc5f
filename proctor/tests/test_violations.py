import itertools

import pytest

from proctor.violations import (
    VIOLATION_CONFIGS,
    OutcomeKind,
    Severity,
    ViolationManager,
    ViolationType,
)


class Recorder:
    def __init__(self):
        self.warnings = []
        self.terminations = []

    def on_warning(self, violation, count, max_count):
        self.warnings.append((violation, count, max_count))

    def on_terminate(self, violation_type, violations):
        self.terminations.append((violation_type, violations))


def _manager(recorder=None):
    ticks = itertools.count()
    recorder = recorder or Recorder()
    manager = ViolationManager(recorder.on_warning, recorder.on_terminate, clock=lambda: float(next(ticks)))
    return manager, recorder


def test_multiple_faces_terminates_on_first_call():
    manager, rec = _manager()
    outcome = manager.add_violation(ViolationType.MULTIPLE_FACES)

    assert outcome.kind == OutcomeKind.TERMINATED
    assert manager.terminated
    assert manager.termination_reason == ViolationType.MULTIPLE_FACES
    assert len(rec.warnings) == 1
    assert rec.terminations[0][0] == ViolationType.MULTIPLE_FACES


def test_looking_away_terminates_on_exactly_the_tenth_call():
    manager, rec = _manager()
    for i in range(1, 10):
        outcome = manager.add_violation(ViolationType.LOOKING_AWAY)
        assert outcome.kind == OutcomeKind.WARNING
        assert (outcome.count, outcome.max_count) == (i, 10)
        assert not manager.terminated

    outcome = manager.add_violation(ViolationType.LOOKING_AWAY)
    assert outcome.terminated
    assert outcome.count == 10
    assert len(rec.terminations) == 1


def test_face_absent_termination_carries_sorted_log():
    manager, rec = _manager()
    for _ in range(3):
        manager.add_violation(ViolationType.FACE_ABSENT)

    violation_type, violations = rec.terminations[0]
    assert violation_type == ViolationType.FACE_ABSENT
    assert len(violations) == 3
    assert [v.timestamp for v in violations] == sorted(v.timestamp for v in violations)


def test_terminated_session_ignores_further_violations():
    manager, rec = _manager()
    manager.add_violation(ViolationType.MULTIPLE_FACES)
    counts = manager.get_counts()

    for violation_type in ViolationType:
        assert manager.add_violation(violation_type).kind == OutcomeKind.NO_CHANGE

    assert manager.get_counts() == counts
    assert len(rec.warnings) == 1
    assert len(rec.terminations) == 1


def test_violation_fields_come_from_static_config():
    manager, rec = _manager()
    manager.add_violation(ViolationType.TAB_SWITCH)
    violation, count, max_count = rec.warnings[0]

    config = VIOLATION_CONFIGS[ViolationType.TAB_SWITCH]
    assert violation.message == config.message
    assert violation.severity == config.severity == Severity.HIGH
    assert (count, max_count) == (1, 3)
    assert violation.to_dict()["severity"] == "high"


def test_config_table_is_read_only():
    with pytest.raises(TypeError):
        VIOLATION_CONFIGS[ViolationType.LOOKING_AWAY] = VIOLATION_CONFIGS[ViolationType.FACE_ABSENT]


def test_all_violations_sorted_across_types():
    manager = ViolationManager()
    manager.add_violation(ViolationType.LOOKING_AWAY, timestamp=5.0)
    manager.add_violation(ViolationType.TAB_SWITCH, timestamp=1.0)
    manager.add_violation(ViolationType.LOW_ATTENTION, timestamp=5.0)
    manager.add_violation(ViolationType.WINDOW_BLUR, timestamp=3.0)

    ordered = manager.get_all_violations()
    assert [v.type for v in ordered] == [
        ViolationType.TAB_SWITCH,
        ViolationType.WINDOW_BLUR,
        ViolationType.LOOKING_AWAY,
        ViolationType.LOW_ATTENTION,
    ]


def test_counts_only_grow_until_reset():
    manager, _ = _manager()
    previous = 0
    for _ in range(4):
        manager.add_violation(ViolationType.LOW_ATTENTION)
        current = manager.get_violation_count(ViolationType.LOW_ATTENTION)
        assert current >= previous
        previous = current
    assert previous == 4

    manager.add_violation(ViolationType.LOW_ATTENTION)
    assert manager.terminated

    manager.reset()
    assert manager.get_violation_count(ViolationType.LOW_ATTENTION) == 0
    assert manager.get_all_violations() == []
    assert not manager.terminated
    assert manager.termination_reason is None
    assert manager.add_violation(ViolationType.LOW_ATTENTION).kind == OutcomeKind.WARNING


def test_plain_string_types_are_accepted():
    manager, rec = _manager()
    outcome = manager.add_violation("LOOKING_AWAY", timestamp=1.0)
    assert outcome.kind == OutcomeKind.WARNING
    assert outcome.violation.type is ViolationType.LOOKING_AWAY
    assert manager.get_violation_count(ViolationType.LOOKING_AWAY) == 1
    assert len(rec.warnings) == 1

    assert manager.add_violation("MULTIPLE_FACES").terminated
    assert manager.add_violation("FACE_ABSENT").kind == OutcomeKind.NO_CHANGE
    assert manager.get_violation_count(ViolationType.FACE_ABSENT) == 0
    assert len(rec.warnings) == 2


def test_failing_warning_callback_still_terminates_at_max_count():
    def explode(violation, count, max_count):
        raise RuntimeError("ui gone")

    manager = ViolationManager(on_warning=explode)
    with pytest.raises(RuntimeError):
        manager.add_violation(ViolationType.MULTIPLE_FACES, timestamp=1.0)

    assert manager.terminated
    assert manager.termination_reason == ViolationType.MULTIPLE_FACES
    assert manager.add_violation(ViolationType.MULTIPLE_FACES).kind == OutcomeKind.NO_CHANGE
    assert manager.get_violation_count(ViolationType.MULTIPLE_FACES) == 1

import json

from backend.sessions import SessionRegistry
from proctor import FocusEvent, ProctorSettings


def test_sessions_are_independent():
    registry = SessionRegistry(ProctorSettings())
    first = registry.create()
    second = registry.create()

    first.session.process_frame([[], []], timestamp=0.0)
    assert first.session.terminated
    assert not second.session.terminated
    assert len(registry) == 2

    assert registry.remove(first.session_id)
    assert registry.get(first.session_id) is None
    assert not registry.remove(first.session_id)


def test_listeners_receive_warning_and_termination_events():
    registry = SessionRegistry(ProctorSettings())
    handle = registry.create()
    queue = handle.subscribe()

    handle.session.process_frame([[], []], timestamp=0.0)
    warning = json.loads(queue.get_nowait())
    terminated = json.loads(queue.get_nowait())

    assert warning["event"] == "warning"
    assert warning["violation"]["type"] == "MULTIPLE_FACES"
    assert (warning["count"], warning["max"]) == (1, 1)
    assert terminated["event"] == "terminated"
    assert terminated["type"] == "MULTIPLE_FACES"
    assert len(terminated["violations"]) == 1

    handle.unsubscribe(queue)
    handle.session.reset()
    handle.session.handle_focus_event(FocusEvent.WINDOW_BLUR, timestamp=1.0)
    assert queue.empty()


def test_idle_and_terminated_sessions_expire():
    now = [0.0]
    registry = SessionRegistry(ProctorSettings(), idle_seconds=100.0, terminated_seconds=10.0, clock=lambda: now[0])
    idle = registry.create()
    ended = registry.create()
    watched = registry.create()
    watched.subscribe()
    ended.session.process_frame([[], []], timestamp=0.0)

    now[0] = 20.0
    assert registry.prune() == [ended.session_id]
    assert registry.get(idle.session_id) is idle

    now[0] = 119.0
    assert registry.get(idle.session_id) is idle
    now[0] = 219.0
    assert registry.get(idle.session_id) is None
    assert registry.get(watched.session_id) is watched
    assert len(registry) == 1

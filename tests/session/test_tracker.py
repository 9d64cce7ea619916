"""Tests for SessionTracker."""

import threading
import time

import pytest

from shoptrace.exceptions import InvalidAttributeError
from shoptrace.session import (
    SESSION_ENDED,
    SESSION_STARTED,
    USER_ACTION_SPAN,
    SessionTracker,
)


@pytest.fixture
def tracker(tracer, clock):
    tracker = SessionTracker(tracer, clock=clock)
    yield tracker
    tracker.shutdown()


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.mark.short
def test_start_session_records_session_started(tracker, clock):
    session = tracker.start_session("u1", "Test User")

    assert tracker.current_session is session
    assert session.is_active
    assert session.start_time == clock.now
    assert session.action_names() == [SESSION_STARTED]
    assert session.actions[0].user_id == "u1"
    assert session.actions[0].user_name == "Test User"
    assert tracker.timer_armed


@pytest.mark.short
def test_actions_are_kept_in_call_order(tracker):
    tracker.start_session("u1", "Test User")
    tracker.track_action("product_viewed", {"product_id": "1"})
    tracker.track_action("add_to_cart", {"product_id": "1", "product_price": 999.99})
    tracker.track_action("cart_viewed")

    session = tracker.current_session
    assert session.action_names() == [
        SESSION_STARTED,
        "product_viewed",
        "add_to_cart",
        "cart_viewed",
    ]
    assert session.actions[2].metadata == {"product_id": "1", "product_price": 999.99}
    assert session.formatted_flow == (
        "session_started → product_viewed → add_to_cart → cart_viewed"
    )


@pytest.mark.short
def test_actions_without_a_session_are_dropped(tracker, exporter, capture_logs):
    assert tracker.track_action("product_viewed") is None

    assert tracker.sessions == ()
    assert exporter.spans == []
    assert "No active session; dropped action product_viewed" in capture_logs.getvalue()


@pytest.mark.short
def test_end_current_session(tracker, clock):
    session = tracker.start_session("u1", "Test User")
    clock.advance(75)

    ended = tracker.end_current_session()

    assert ended is session
    assert not session.is_active
    assert session.end_time == clock.now
    assert session.action_names()[-1] == SESSION_ENDED
    assert session.duration == "1m 15s"
    assert tracker.current_session is None
    assert not tracker.timer_armed
    assert tracker.end_current_session() is None


@pytest.mark.short
def test_only_one_session_is_active(tracker):
    first = tracker.start_session("u1", "Test User")
    second = tracker.start_session("u2", "John Doe")

    assert not first.is_active
    assert first.action_names() == [SESSION_STARTED, SESSION_ENDED]
    assert tracker.current_session is second
    assert [s.is_active for s in tracker.sessions] == [False, True]


@pytest.mark.short
def test_ended_sessions_are_not_modified(tracker):
    first = tracker.start_session("u1", "Test User")
    tracker.end_current_session()
    tracker.track_action("product_viewed")
    tracker.start_session("u2", "John Doe")
    tracker.track_action("product_viewed")

    assert first.action_names() == [SESSION_STARTED, SESSION_ENDED]


@pytest.mark.short
def test_invalid_metadata_leaves_session_untouched(tracker):
    tracker.start_session("u1", "Test User")

    with pytest.raises(InvalidAttributeError):
        tracker.track_action("add_to_cart", {"product_id": "1", "in_stock": True})
    with pytest.raises(InvalidAttributeError):
        tracker.track_action("add_to_cart", {"tags": ["a"]})

    assert tracker.current_session.action_names() == [SESSION_STARTED]


@pytest.mark.short
def test_each_action_emits_a_user_action_span(tracker, tracer, exporter):
    session = tracker.start_session("u1", "Test User")
    with tracer.span("add_to_cart") as parent:
        tracker.track_action("add_to_cart", {"product_id": "1", "quantity": 2})

    action_spans = exporter.find(USER_ACTION_SPAN)
    assert [s.get_attribute("action.type") for s in action_spans] == [
        SESSION_STARTED,
        "add_to_cart",
    ]
    span = action_spans[1]
    assert span.attributes_dict() == {
        "parent.operation": "add_to_cart",
        "action.type": "add_to_cart",
        "session.id": session.session_id,
        "user.id": "u1",
        "user.name": "Test User",
        "action.product_id": "1",
        "action.quantity": 2,
    }
    assert span.parent_span_id == parent.span_id
    assert span.trace_id == parent.trace_id


@pytest.mark.short
def test_session_ids_are_unique(tracker):
    ids = {tracker.start_session(f"u{i}", "Test User").session_id for i in range(20)}
    assert len(ids) == 20


@pytest.mark.short
def test_session_analytics(tracker, clock):
    tracker.start_session("u1", "Test User")
    tracker.track_action("view")
    tracker.track_action("view")
    tracker.track_action("add")
    clock.advance(100)
    tracker.end_current_session()

    tracker.start_session("u2", "John Doe")
    tracker.track_action("add")
    tracker.track_action("view")
    clock.advance(300)
    tracker.end_current_session()

    tracker.start_session("u3", "Sarah Smith")

    analytics = tracker.session_analytics()
    assert analytics.total_sessions == 3
    assert analytics.active_sessions == 1
    assert analytics.completed_sessions == 2
    assert analytics.avg_session_duration_seconds == 200.0
    assert analytics.most_common_actions[:3] == [
        ("session_started", 3),
        ("view", 3),
        ("add", 2),
    ]
    assert analytics.to_dict()["most_common_actions"][0] == "session_started: 3"


@pytest.mark.short
@pytest.mark.timeout(10)
def test_inactivity_timeout_ends_the_session(tracer, capture_logs):
    tracker = SessionTracker(tracer, timeout_seconds=0.1)
    session = tracker.start_session("u1", "Test User")

    assert _wait_for(lambda: tracker.current_session is None)

    assert not session.is_active
    assert session.end_time is not None
    assert 0.05 < (session.end_time - session.start_time).total_seconds() < 1.0
    assert session.action_names() == [SESSION_STARTED, SESSION_ENDED]
    assert "Session timeout due to inactivity" in capture_logs.getvalue()
    assert not tracker.timer_armed


@pytest.mark.slow
@pytest.mark.timeout(10)
def test_inactivity_timeout_is_a_sliding_window(tracer):
    tracker = SessionTracker(tracer, timeout_seconds=0.3)
    session = tracker.start_session("u1", "Test User")

    # Keep acting well past one timeout period
    for _ in range(6):
        time.sleep(0.1)
        tracker.track_action("product_viewed")
    assert session.is_active

    assert _wait_for(lambda: not session.is_active)
    assert session.action_names()[-1] == SESSION_ENDED
    tracker.shutdown()


@pytest.mark.short
@pytest.mark.timeout(10)
def test_manual_end_cancels_the_timeout(tracer):
    tracker = SessionTracker(tracer, timeout_seconds=0.5)
    first = tracker.start_session("u1", "Test User")
    tracker.end_current_session()
    second = tracker.start_session("u2", "John Doe")
    tracker.track_action("product_viewed")

    time.sleep(0.25)
    tracker.track_action("add_to_cart")
    # A stale run of the first session's timer must not end the second one
    time.sleep(0.35)

    assert first.action_names().count(SESSION_ENDED) == 1
    assert second.is_active
    tracker.shutdown()


@pytest.mark.short
def test_shutdown_cancels_timer_but_keeps_session(tracker):
    session = tracker.start_session("u1", "Test User")
    tracker.shutdown()

    assert not tracker.timer_armed
    assert session.is_active


@pytest.mark.short
@pytest.mark.timeout(30)
def test_concurrent_tracking_never_splits_a_session(tracer):
    tracker = SessionTracker(tracer)
    tracker.start_session("u0", "Test User")
    errors = []

    def worker(n):
        try:
            for i in range(200):
                if i % 50 == 0:
                    tracker.start_session(f"u{n}-{i}", "Test User")
                tracker.track_action("product_viewed", {"worker": n})
        except Exception as e:  # pragma: no cover - reported below
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    tracker.shutdown()

    assert errors == []
    sessions = tracker.sessions
    assert sum(1 for s in sessions if s.is_active) == 1
    for session in sessions:
        names = session.action_names()
        assert names[0] == SESSION_STARTED
        if not session.is_active:
            assert names[-1] == SESSION_ENDED
            assert names.count(SESSION_ENDED) == 1
    total = sum(s.action_names().count("product_viewed") for s in sessions)
    assert total == 4 * 200

"""Tests for the re-armable InactivityTimer."""

import threading
import time

import pytest

from shoptrace.session import InactivityTimer


@pytest.mark.short
def test_timeout_must_be_positive():
    with pytest.raises(ValueError):
        InactivityTimer(0, lambda: None)


@pytest.mark.short
@pytest.mark.timeout(10)
def test_fires_once_after_timeout():
    fired = threading.Event()
    calls = []

    def callback():
        calls.append(time.monotonic())
        fired.set()

    timer = InactivityTimer(0.05, callback)
    timer.arm()

    assert fired.wait(5)
    time.sleep(0.1)
    assert len(calls) == 1
    assert not timer.armed


@pytest.mark.short
@pytest.mark.timeout(10)
def test_cancel_prevents_callback():
    calls = []
    timer = InactivityTimer(0.05, lambda: calls.append(1))
    timer.arm()
    timer.cancel()

    time.sleep(0.15)
    assert calls == []
    assert not timer.armed


@pytest.mark.short
def test_each_arm_gets_a_new_generation():
    timer = InactivityTimer(60, lambda: None)
    first = timer.arm()
    second = timer.arm()
    timer.cancel()

    assert second > first
    assert timer.generation > second


@pytest.mark.short
@pytest.mark.timeout(10)
def test_stale_run_waiting_on_lock_is_ignored():
    lock = threading.RLock()
    calls = []
    timer = InactivityTimer(0.05, lambda: calls.append(1), lock=lock)

    with lock:
        timer.arm()
        # Let the timer thread expire and block on the lock, then re-arm
        time.sleep(0.15)
        timer.cancel()

    time.sleep(0.1)
    assert calls == []

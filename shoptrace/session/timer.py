"""Cancellable, re-armable one-shot timer."""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class InactivityTimer:
    """
    Fires ``callback`` once, ``timeout`` seconds after the last ``arm``.

    Arming cancels the pending timer first. Each arm gets a new generation
    number; the callback only runs if its generation is still the latest
    when it acquires ``lock``, so a timer that was already firing when it
    got cancelled or re-armed does nothing. Pass the owner's lock so that
    the callback is serialised with every other mutation of the owner's
    state. The lock must be reentrant if the callback arms or cancels.
    """

    def __init__(
        self,
        timeout: float,
        callback: Callable[[], None],
        lock: Optional["threading.RLock"] = None,
        name: str = "shoptrace-timer",
    ):
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.timeout = timeout
        self.name = name
        self._callback = callback
        self._lock = lock if lock is not None else threading.RLock()
        self._timer: Optional[threading.Timer] = None
        self._generation = 0

    @property
    def armed(self) -> bool:
        with self._lock:
            return self._timer is not None

    @property
    def generation(self) -> int:
        return self._generation

    def arm(self) -> int:
        """Cancel any pending run and schedule a new one."""
        with self._lock:
            self._cancel_locked()
            self._generation += 1
            generation = self._generation
            timer = threading.Timer(self.timeout, self._fire, args=(generation,))
            timer.name = f"{self.name}-{generation}"
            timer.daemon = True
            self._timer = timer
            timer.start()
            return generation

    def cancel(self) -> None:
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        # Bumping the generation also disarms a run that is already waiting on the lock
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                logger.debug(f"{self.name}: ignoring stale timer run {generation}")
                return
            self._timer = None
            self._callback()

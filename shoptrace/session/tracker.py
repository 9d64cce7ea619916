"""Single-active-session tracking with a sliding inactivity timeout."""

import logging
import threading
import uuid
from datetime import datetime
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from shoptrace.telemetry.events import AttributeValue, validate_attribute_value
from shoptrace.telemetry.spans import Tracer

from .analytics import SessionAnalytics, compute_session_analytics
from .models import Action, Session, utcnow
from .timer import InactivityTimer

logger = logging.getLogger(__name__)

SESSION_STARTED = "session_started"
SESSION_ENDED = "session_ended"
USER_ACTION_SPAN = "user_action"

DEFAULT_TIMEOUT_SECONDS = 300.0


def _new_session_id() -> str:
    return str(uuid.uuid4())


def validate_metadata(
    metadata: Optional[Mapping[str, AttributeValue]],
) -> Optional[Dict[str, AttributeValue]]:
    """Copy ``metadata`` after checking every value is a str, int or float."""
    if metadata is None:
        return None
    return {key: validate_attribute_value(key, value) for key, value in metadata.items()}


class SessionTracker:
    """
    Owns at most one active session and the history of all sessions.

    States are Idle (no current session) and Active. Every public method and
    the inactivity timer callback run under one reentrant lock, so a timeout
    can never interleave with ``start_session`` or ``track_action``.

    Each tracked action re-arms the inactivity timer and emits a
    ``user_action`` span through ``tracer``.

    Usage:
        tracker = SessionTracker(tracer, timeout_seconds=300)
        tracker.start_session(user.id, user.name)
        tracker.track_action("product_viewed", {"product_id": "1"})
        tracker.end_current_session()
    """

    def __init__(
        self,
        tracer: Optional[Tracer] = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = _new_session_id,
    ):
        self.tracer = tracer or Tracer()
        self._clock = clock
        self._id_factory = id_factory
        self._lock = threading.RLock()
        self._sessions: List[Session] = []
        self._current: Optional[Session] = None
        self._timer = InactivityTimer(
            timeout_seconds,
            self._on_inactivity,
            lock=self._lock,
            name="shoptrace-session-timeout",
        )

    @property
    def timeout_seconds(self) -> float:
        return self._timer.timeout

    @property
    def sessions(self) -> Tuple[Session, ...]:
        with self._lock:
            return tuple(self._sessions)

    @property
    def current_session(self) -> Optional[Session]:
        with self._lock:
            return self._current

    @property
    def timer_armed(self) -> bool:
        return self._timer.armed

    def now(self) -> datetime:
        """Current time on the clock that stamps sessions and actions."""
        return self._clock()

    def start_session(self, user_id: str, user_name: str) -> Session:
        """Finalise the active session, if any, then start a new one."""
        with self._lock:
            if self._current is not None:
                self._end_locked()

            session = Session(
                session_id=self._id_factory(),
                user_id=user_id,
                user_name=user_name,
                start_time=self._clock(),
            )
            self._sessions.append(session)
            self._current = session
            self._track_locked(SESSION_STARTED, None)

        logger.info(f"Session started: {session.session_id} for {user_name}")
        return session

    def end_current_session(self) -> Optional[Session]:
        """Finalise the active session; does nothing when Idle."""
        with self._lock:
            if self._current is None:
                return None
            return self._end_locked()

    def track_action(
        self, name: str, metadata: Optional[Mapping[str, AttributeValue]] = None
    ) -> Optional[Action]:
        """Append an action to the active session.

        Without an active session the action is dropped and None returned.
        Invalid metadata raises InvalidAttributeError before anything changes.
        """
        checked = validate_metadata(metadata)
        with self._lock:
            if self._current is None:
                logger.debug(f"No active session; dropped action {name}")
                return None
            return self._track_locked(name, checked)

    def session_analytics(self) -> SessionAnalytics:
        with self._lock:
            return compute_session_analytics(self._sessions)

    def shutdown(self) -> None:
        """Stop the inactivity timer; the active session stays open."""
        self._timer.cancel()

    def _track_locked(
        self,
        name: str,
        metadata: Optional[Dict[str, AttributeValue]],
        rearm: bool = True,
    ) -> Action:
        session = self._current
        action = Action(
            name=name,
            timestamp=self._clock(),
            metadata=metadata,
            user_id=session.user_id,
            user_name=session.user_name,
        )
        session.actions.append(action)
        if rearm:
            self._timer.arm()
        self._emit_action_span(session, action)
        logger.debug(f"Action tracked: {name} {metadata or ''}")
        return action

    def _emit_action_span(self, session: Session, action: Action) -> None:
        attributes = [
            ("action.type", action.name),
            ("session.id", session.session_id),
            ("user.id", session.user_id),
            ("user.name", session.user_name),
        ]
        if action.metadata:
            attributes.extend((f"action.{k}", v) for k, v in action.metadata.items())
        span = self.tracer.start_span(USER_ACTION_SPAN, attributes=attributes)
        span.end()

    def _end_locked(self) -> Session:
        session = self._current
        session.end_time = self._clock()
        session.is_active = False
        self._track_locked(SESSION_ENDED, None, rearm=False)
        self._current = None
        self._timer.cancel()

        logger.info(
            f"Session ended: {session.session_id} - Duration: {session.duration}"
        )
        logger.info(f"User flow: {session.formatted_flow}")
        return session

    def _on_inactivity(self) -> None:
        # Runs under self._lock via InactivityTimer
        if self._current is not None:
            logger.info("Session timeout due to inactivity")
            self._end_locked()

"""User session tracking and session analytics."""

from .analytics import SessionAnalytics, compute_session_analytics, rank_actions
from .models import Action, Session, format_duration, format_flow
from .timer import InactivityTimer
from .tracker import SESSION_ENDED, SESSION_STARTED, USER_ACTION_SPAN, SessionTracker

__all__ = [
    "Action",
    "InactivityTimer",
    "SESSION_ENDED",
    "SESSION_STARTED",
    "Session",
    "SessionAnalytics",
    "SessionTracker",
    "USER_ACTION_SPAN",
    "compute_session_analytics",
    "format_duration",
    "format_flow",
    "rank_actions",
]

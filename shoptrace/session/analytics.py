"""Aggregate statistics over the retained session history."""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Tuple

from .models import Session

TOP_ACTIONS = 5


@dataclass(frozen=True)
class SessionAnalytics:
    total_sessions: int = 0
    active_sessions: int = 0
    completed_sessions: int = 0
    avg_session_duration_seconds: float = 0.0
    most_common_actions: List[Tuple[str, int]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "total_sessions": self.total_sessions,
            "active_sessions": self.active_sessions,
            "completed_sessions": self.completed_sessions,
            "avg_session_duration_seconds": self.avg_session_duration_seconds,
            "most_common_actions": [
                f"{name}: {count}" for name, count in self.most_common_actions
            ],
        }


def rank_actions(names: Iterable[str], limit: int = TOP_ACTIONS) -> List[Tuple[str, int]]:
    """Most frequent names first; equal counts keep first-seen order."""
    counts = Counter(names)
    # sorted() is stable and Counter keeps insertion order
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return ranked[:limit]


def compute_session_analytics(
    sessions: Sequence[Session], limit: int = TOP_ACTIONS
) -> SessionAnalytics:
    total = len(sessions)
    active = sum(1 for s in sessions if s.is_active)

    durations = [
        s.duration_seconds()
        for s in sessions
        if not s.is_active and s.end_time is not None
    ]
    avg_duration = sum(durations) / len(durations) if durations else 0.0

    names = (action.name for s in sessions for action in s.actions)

    return SessionAnalytics(
        total_sessions=total,
        active_sessions=active,
        completed_sessions=total - active,
        avg_session_duration_seconds=avg_duration,
        most_common_actions=rank_actions(names, limit),
    )

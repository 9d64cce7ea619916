"""Session and action records kept by the session tracker."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from shoptrace.telemetry.events import AttributeValue

FLOW_SEPARATOR = " → "


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Action:
    """One entry of a session timeline."""

    name: str
    timestamp: datetime
    metadata: Optional[Dict[str, AttributeValue]] = None
    # Copied from the owning session for convenience
    user_id: Optional[str] = None
    user_name: Optional[str] = None


@dataclass
class Session:
    """
    A user session and its append-only action timeline.

    Once ``end_time`` is set the session is history: the tracker never
    touches it again.
    """

    session_id: str
    user_id: str
    user_name: str
    start_time: datetime
    end_time: Optional[datetime] = None
    actions: List[Action] = field(default_factory=list)
    is_active: bool = True

    def duration_seconds(self, now: Optional[datetime] = None) -> float:
        end = self.end_time or now or utcnow()
        return (end - self.start_time).total_seconds()

    @property
    def duration(self) -> str:
        return format_duration(self.start_time, self.end_time)

    @property
    def formatted_flow(self) -> str:
        return format_flow(self.actions)

    def action_names(self) -> List[str]:
        return [action.name for action in self.actions]

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "is_active": self.is_active,
            "actions": self.action_names(),
        }


def format_duration(
    start: datetime, end: Optional[datetime] = None, now: Optional[datetime] = None
) -> str:
    """Render elapsed time with its two coarsest units, e.g. ``1h 5m``.

    Open-ended sessions are measured up to ``now`` (default: current time).
    """
    stop = end or now or utcnow()
    total = max(int((stop - start).total_seconds()), 0)
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


def format_flow(actions: Iterable[Action]) -> str:
    """Join action names into a readable flow, e.g. ``login → add_to_cart``."""
    return FLOW_SEPARATOR.join(action.name for action in actions)

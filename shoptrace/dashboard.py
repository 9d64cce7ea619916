"""Read-only session and metrics dashboard rendered with rich."""

from datetime import datetime
from typing import Any, Dict, Optional

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from shoptrace.metrics import MetricsCollector
from shoptrace.session import Session, SessionTracker, format_duration

RECENT_SESSIONS = 5


def _format_time(moment) -> str:
    return moment.strftime("%H:%M:%S")


def _session_row(index: int, session: Session, now: datetime) -> Dict[str, Any]:
    return {
        "index": index,
        "user": session.user_name,
        "active": session.is_active,
        "duration": format_duration(session.start_time, session.end_time, now=now),
        "start": _format_time(session.start_time),
        "end": _format_time(session.end_time) if session.end_time else None,
        "flow": session.formatted_flow or "No actions recorded",
    }


def build_dashboard(tracker: SessionTracker, metrics: MetricsCollector) -> Dict[str, Any]:
    """
    Collect everything the dashboard shows into a plain dict.

    Sessions are numbered from 1 in start order and listed newest first.
    """
    current = tracker.current_session
    sessions = tracker.sessions
    snapshot = metrics.snapshot()
    now = tracker.now()

    recent = [
        _session_row(index, session, now)
        for index, session in reversed(list(enumerate(sessions, start=1)))
    ][:RECENT_SESSIONS]

    return {
        "current_session": (
            {
                "user": current.user_name,
                "session_id": f"{current.session_id[:8]}...",
                "duration": format_duration(current.start_time, now=now),
                "flow": current.formatted_flow,
            }
            if current is not None
            else None
        ),
        "analytics": tracker.session_analytics().to_dict(),
        "recent_sessions": recent,
        "business_metrics": {
            "conversion_rate": f"{snapshot.conversion_rate:.1f}%",
            "cart_abandonment_rate": f"{snapshot.cart_abandonment_rate:.1f}%",
            "avg_response_time": f"{snapshot.avg_response_time_ms:.0f}ms",
        },
        "metrics": snapshot.to_dict(),
    }


def _key_value_table(data: Dict[str, Any]) -> Table:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="dim")
    table.add_column()
    for key, value in data.items():
        if isinstance(value, float):
            value = f"{value:.2f}"
        table.add_row(f"{key}:", str(value))
    return table


def render_dashboard(data: Dict[str, Any], console: Optional[Console] = None) -> None:
    console = console or Console()

    current = data["current_session"]
    if current is None:
        console.print(Panel("No active session", title="Current Session"))
    else:
        console.print(
            Panel(
                Group(
                    _key_value_table(
                        {
                            "User": current["user"],
                            "Session ID": current["session_id"],
                            "Duration": current["duration"],
                        }
                    ),
                    Text(current["flow"] or "No actions recorded"),
                ),
                title="[green]Current Session[/green]",
            )
        )

    analytics = data["analytics"]
    summary = _key_value_table(
        {
            "Total Sessions": analytics["total_sessions"],
            "Active Sessions": analytics["active_sessions"],
            "Completed Sessions": analytics["completed_sessions"],
            "Avg Duration": f"{analytics['avg_session_duration_seconds']:.0f}s",
        }
    )
    common = "\n".join(f"• {entry}" for entry in analytics["most_common_actions"])
    console.print(
        Panel(
            Group(
                summary,
                Text("Most Common Actions:", style="bold"),
                Text(common or "No actions recorded yet"),
            ),
            title="Session Analytics",
        )
    )

    sessions = Table(title="Recent Sessions", show_lines=True)
    sessions.add_column("#", justify="right")
    sessions.add_column("User")
    sessions.add_column("Duration")
    sessions.add_column("Start")
    sessions.add_column("End")
    sessions.add_column("User Flow", overflow="fold")
    for row in data["recent_sessions"]:
        marker = "[green]●[/green] " if row["active"] else ""
        sessions.add_row(
            f"{marker}{row['index']}",
            row["user"],
            row["duration"],
            row["start"],
            row["end"] or "",
            row["flow"],
        )
    if data["recent_sessions"]:
        console.print(sessions)
    else:
        console.print(Panel("No sessions recorded yet", title="Recent Sessions"))

    business = data["business_metrics"]
    console.print(
        Panel(
            _key_value_table(
                {
                    "Conversion Rate": business["conversion_rate"],
                    "Cart Abandonment": business["cart_abandonment_rate"],
                    "Avg Response Time": business["avg_response_time"],
                }
            ),
            title="Business Metrics",
        )
    )

    metrics = data["metrics"]
    raw = dict(metrics.get("counters", {}))
    raw.update(metrics.get("gauges", {}))
    console.print(Panel(_key_value_table(raw), title="Raw Metrics"))

"""
Alert classification for the dashboard.

Each alert gets a pending flag (its due date is still ahead) and the
alerts due today that the user keeps visible form the "today" bucket
behind the notification badge. Unsent alerts are listed before the ones
already marked as sent.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Iterable, Union

from finboard.database.models import Alert, parse_date


@dataclass(frozen=True)
class AlertStatus:
    """Alert with its derived pending flag."""

    alert: Alert
    is_pending: bool  # due date strictly after today


@dataclass(frozen=True)
class TodayAlerts:
    """Alerts due today and visible on the dashboard."""

    has_alerts: bool = False
    count: int = 0
    alerts: list[Alert] = field(default_factory=list)


@dataclass(frozen=True)
class ClassifiedAlerts:
    """Result of classifying a user's alerts."""

    alerts: list[AlertStatus]
    today: TodayAlerts


def _today(now: Union[date, datetime]) -> date:
    return now.date() if isinstance(now, datetime) else now


def is_pending(alert: Alert, today: date) -> bool:
    """True when the alert is due on a later calendar day than today."""
    due = parse_date(alert.due_date)
    return due is not None and due > today


def today_alerts(alerts: Iterable[Alert], today: date) -> TodayAlerts:
    """
    Collect active alerts due today, unsent first.

    The sort is stable, so alerts keep their incoming order within the
    unsent and sent groups.
    """
    due_today = [
        alert
        for alert in alerts
        if alert.active and parse_date(alert.due_date) == today
    ]
    ordered = sorted(due_today, key=lambda alert: bool(alert.enviado))
    return TodayAlerts(has_alerts=bool(ordered), count=len(ordered), alerts=ordered)


def classify(alerts: Iterable[Alert], now: Union[date, datetime]) -> ClassifiedAlerts:
    """
    Classify alerts relative to the current date.

    Args:
        alerts: User's alerts
        now: Current date or datetime; only the calendar date is used

    Returns:
        ClassifiedAlerts with per-alert pending flags and today's bucket
    """
    alerts = list(alerts)
    today = _today(now)
    return ClassifiedAlerts(
        alerts=[AlertStatus(alert, is_pending(alert, today)) for alert in alerts],
        today=today_alerts(alerts, today),
    )


def mark_sent(alerts: Iterable[Alert], alert_id: Any) -> list[Alert]:
    """Return a copy of the alerts with one of them marked as sent."""
    return [
        replace(alert, enviado=True) if alert.id == alert_id else alert
        for alert in alerts
    ]

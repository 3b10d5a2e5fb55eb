"""
Goal progress calculation.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Union

from finboard.database.models import Goal, parse_date, to_decimal

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class GoalProgress:
    """Goal with its derived, never persisted, progress fields."""

    goal: Goal
    progress: float  # 0-100
    completed: bool
    expired: bool


def goal_progress(goal: Goal, today: date) -> GoalProgress:
    """
    Derive progress, completion and expiration for one goal.

    Goals with a zero or negative target count as completed, at 100%,
    once the saved amount is not negative; otherwise they sit at 0%.
    """
    saved = to_decimal(goal.saved_amount)
    target = to_decimal(goal.target_amount)

    if target <= 0:
        completed = saved >= 0
        progress = HUNDRED if completed else Decimal("0")
    else:
        completed = saved >= target
        progress = min(HUNDRED, max(Decimal("0"), saved / target * HUNDRED))

    deadline = parse_date(goal.deadline)
    expired = not completed and deadline is not None and deadline < today

    return GoalProgress(
        goal=goal,
        progress=float(progress),
        completed=completed,
        expired=expired,
    )


def with_progress(
    goals: Iterable[Goal], now: Union[date, datetime]
) -> list[GoalProgress]:
    """
    Compute progress for every goal.

    Args:
        goals: Goals as stored
        now: Current date or datetime; only the calendar date is used

    Returns:
        One GoalProgress per goal, in input order
    """
    today = now.date() if isinstance(now, datetime) else now
    return [goal_progress(goal, today) for goal in goals]

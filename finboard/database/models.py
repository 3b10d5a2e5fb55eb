"""
Data models for finboard.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

ZERO = Decimal("0")


class TransactionType(Enum):
    """Kind of money movement."""

    INGRESO = "ingreso"  # income
    GASTO = "gasto"  # expense
    AHORRO = "ahorro"  # contribution to savings / a goal
    RETIRO = "retiro"  # withdrawal from savings / a goal

    @classmethod
    def parse(cls, value: Any) -> Optional["TransactionType"]:
        """Return the matching member, or None for unknown values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


class AlertType(Enum):
    """Kind of user alert."""

    EXPENSE = "expense"
    SAVING = "saving"
    REMINDER = "reminder"

    @classmethod
    def parse(cls, value: Any) -> "AlertType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.REMINDER


def to_decimal(value: Any) -> Decimal:
    """
    Coerce a raw amount to a finite Decimal.

    Missing, non-numeric and non-finite values become 0.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return ZERO
    return result if result.is_finite() else ZERO


def parse_date(value: Any) -> Optional[date]:
    """
    Parse a date-like value into a calendar date.

    Aware datetimes are converted to UTC first. Returns None when the
    value is missing or cannot be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None and value.utcoffset() is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    # fromisoformat only accepts "Z" from Python 3.11 on
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return parse_date(datetime.fromisoformat(text))
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def _optional_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return to_decimal(value)


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class TransactionFilters:
    """Optional filters applied when listing transactions."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None

    def is_empty(self) -> bool:
        return not (
            (self.start_date and self.end_date) or self.category or self.subcategory
        )


@dataclass
class Transaction:
    """Income, expense or savings movement."""

    user_id: str
    description: str
    amount: Decimal
    tipo: Optional[TransactionType]
    category: Optional[str] = None
    date: Optional[date] = None
    subcategory: Optional[str] = None
    goal_id: Optional[Any] = None
    id: Optional[Any] = None

    @property
    def is_goal_movement(self) -> bool:
        """True for savings contributions/withdrawals linked to a goal."""
        return (
            self.tipo in (TransactionType.AHORRO, TransactionType.RETIRO)
            and bool(self.goal_id)
        )

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Transaction":
        """Build a transaction from a raw store row."""
        return cls(
            id=row.get("id"),
            user_id=row.get("user_id"),
            description=row.get("description") or "",
            amount=to_decimal(row.get("amount")),
            tipo=TransactionType.parse(row.get("tipo")),
            category=row.get("category"),
            subcategory=row.get("subcategory"),
            date=parse_date(row.get("date")),
            goal_id=row.get("goal_id") or None,
        )

    def to_row(self) -> dict[str, Any]:
        """Serialize for the store; id is left to the backend."""
        return {
            "user_id": self.user_id,
            "description": self.description,
            "amount": str(self.amount),
            "tipo": self.tipo.value if self.tipo else None,
            "category": self.category,
            "subcategory": self.subcategory,
            "date": _iso(self.date),
            "goal_id": self.goal_id or None,
        }


@dataclass
class Goal:
    """Savings goal."""

    user_id: str
    goal_name: str
    target_amount: Decimal
    saved_amount: Decimal = ZERO
    deadline: Optional[date] = None
    description: Optional[str] = None
    id: Optional[Any] = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Goal":
        """Build a goal from a raw store row."""
        return cls(
            id=row.get("id"),
            user_id=row.get("user_id"),
            goal_name=row.get("goal_name") or "",
            target_amount=to_decimal(row.get("target_amount")),
            saved_amount=to_decimal(row.get("saved_amount")),
            deadline=parse_date(row.get("deadline")),
            description=row.get("description"),
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "goal_name": self.goal_name,
            "target_amount": str(self.target_amount),
            "saved_amount": str(self.saved_amount),
            "deadline": _iso(self.deadline),
            "description": self.description,
        }


@dataclass
class Alert:
    """User-defined due-date alert."""

    user_id: str
    title: str
    message: str
    alert_type: AlertType = AlertType.REMINDER
    due_date: Optional[date] = None
    threshold: Optional[Decimal] = None
    active: bool = True  # shown on the dashboard
    enviado: bool = False  # acknowledged by the user
    id: Optional[Any] = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Alert":
        """Build an alert from a raw store row."""
        return cls(
            id=row.get("id"),
            user_id=row.get("user_id"),
            title=row.get("title") or "",
            message=row.get("message") or "",
            alert_type=AlertType.parse(row.get("alert_type")),
            due_date=parse_date(row.get("due_date")),
            threshold=_optional_decimal(row.get("threshold")),
            active=bool(row.get("active", True)),
            enviado=bool(row.get("enviado", False)),
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "title": self.title,
            "message": self.message,
            "alert_type": self.alert_type.value,
            "due_date": _iso(self.due_date),
            "threshold": str(self.threshold) if self.threshold is not None else None,
            "active": self.active,
            "enviado": self.enviado,
        }


def serialize_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Convert partial update values to store-friendly primitives."""
    result = {}
    for key, value in fields.items():
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, Decimal):
            value = str(value)
        elif isinstance(value, (date, datetime)):
            value = value.isoformat()
        result[key] = value
    return result


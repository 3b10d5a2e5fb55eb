"""
Store backed by the local SQLite database.
"""

import sqlite3
from typing import Any, Optional

from finboard.database.connection import Database
from finboard.database.models import Alert, Goal, Transaction, TransactionFilters
from finboard.database.repository import (
    AlertRepository,
    GoalRepository,
    TransactionRepository,
)
from .base import Store, StoreError, require_id


class LocalStore(Store):
    """Store implementation over SQLite repositories."""

    def __init__(self, db: Database):
        self.db = db
        self.transactions = TransactionRepository(db)
        self.goals = GoalRepository(db)
        self.alerts = AlertRepository(db)

    def _call(self, operation, *args):
        try:
            return operation(*args)
        except sqlite3.Error as e:
            raise StoreError(f"Database error: {e}") from e

    def fetch_transactions(
        self, user_id: str, filters: Optional[TransactionFilters] = None
    ) -> list[Transaction]:
        return self._call(self.transactions.list_for_user, user_id, filters)

    def create_transaction(self, transaction: Transaction) -> Transaction:
        return self._call(self.transactions.create, transaction)

    def update_transaction(self, transaction_id: Any, fields: dict[str, Any]) -> None:
        require_id(transaction_id, "transaction")
        self._call(self.transactions.update, transaction_id, fields)

    def delete_transaction(self, transaction_id: Any) -> None:
        require_id(transaction_id, "transaction")
        self._call(self.transactions.delete, transaction_id)

    def fetch_goals(self, user_id: str) -> list[Goal]:
        return self._call(self.goals.list_for_user, user_id)

    def create_goal(self, goal: Goal) -> Goal:
        return self._call(self.goals.create, goal)

    def update_goal(self, goal_id: Any, fields: dict[str, Any]) -> None:
        require_id(goal_id, "goal")
        self._call(self.goals.update, goal_id, fields)

    def delete_goal(self, goal_id: Any) -> None:
        require_id(goal_id, "goal")
        self._call(self.goals.delete, goal_id)

    def fetch_alerts(self, user_id: str) -> list[Alert]:
        return self._call(self.alerts.list_for_user, user_id)

    def create_alert(self, alert: Alert) -> Alert:
        return self._call(self.alerts.create, alert)

    def update_alert(self, alert_id: Any, fields: dict[str, Any]) -> None:
        require_id(alert_id, "alert")
        self._call(self.alerts.update, alert_id, fields)

    def delete_alert(self, alert_id: Any) -> None:
        require_id(alert_id, "alert")
        self._call(self.alerts.delete, alert_id)

    def close(self) -> None:
        self.db.close()

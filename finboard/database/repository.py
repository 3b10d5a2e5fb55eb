"""
Repository classes for CRUD operations.
"""

from typing import Any, Optional

from .connection import Database
from .models import Alert, Goal, Transaction, TransactionFilters, serialize_fields


def _update_clause(
    fields: dict[str, Any], allowed: frozenset[str]
) -> tuple[str, list[Any]]:
    """Build the SET clause for a partial update, ignoring unknown columns."""
    values = serialize_fields({k: v for k, v in fields.items() if k in allowed})
    assignments = ", ".join(f"{column} = ?" for column in values)
    return assignments, list(values.values())


class TransactionRepository:
    """CRUD operations for transactions."""

    COLUMNS = frozenset(
        {"description", "amount", "tipo", "category", "subcategory", "date", "goal_id"}
    )

    def __init__(self, db: Database):
        self.db = db

    def create(self, transaction: Transaction) -> Transaction:
        """Create a new transaction."""
        row = transaction.to_row()
        with self.db.lock:
            cursor = self.db.connection.cursor()
            cursor.execute(
                """
                INSERT INTO transactions
                (user_id, description, amount, tipo, category, subcategory, date, goal_id)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    row["user_id"],
                    row["description"],
                    row["amount"],
                    row["tipo"],
                    row["category"],
                    row["subcategory"],
                    row["date"],
                    row["goal_id"],
                ),
            )
            self.db.connection.commit()
            transaction.id = cursor.lastrowid
        return transaction

    def get_by_id(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        with self.db.lock:
            cursor = self.db.connection.cursor()
            cursor.execute("SELECT * FROM transactions WHERE id = ?", (transaction_id,))
            row = cursor.fetchone()
        if row is None:
            return None
        return Transaction.from_row(dict(row))

    def list_for_user(
        self, user_id: str, filters: Optional[TransactionFilters] = None
    ) -> list[Transaction]:
        """List a user's transactions, newest first."""
        query = "SELECT * FROM transactions WHERE user_id = ?"
        params: list[Any] = [user_id]

        if filters:
            if filters.start_date and filters.end_date:
                query += " AND date >= ? AND date <= ?"
                params += [filters.start_date.isoformat(), filters.end_date.isoformat()]
            if filters.category:
                query += " AND category = ?"
                params.append(filters.category)
            if filters.subcategory:
                query += " AND subcategory = ?"
                params.append(filters.subcategory)

        query += " ORDER BY date DESC, id DESC"

        with self.db.lock:
            cursor = self.db.connection.cursor()
            cursor.execute(query, params)
            rows = cursor.fetchall()
        return [Transaction.from_row(dict(row)) for row in rows]

    def update(self, transaction_id: int, fields: dict[str, Any]) -> None:
        """Update the given transaction columns."""
        if "goal_id" in fields:
            fields = {**fields, "goal_id": fields["goal_id"] or None}
        assignments, values = _update_clause(fields, self.COLUMNS)
        if not assignments:
            return
        with self.db.lock:
            self.db.connection.execute(
                f"UPDATE transactions SET {assignments} WHERE id = ?",
                (*values, transaction_id),
            )
            self.db.connection.commit()

    def delete(self, transaction_id: int) -> None:
        """Delete a transaction."""
        with self.db.lock:
            self.db.connection.execute(
                "DELETE FROM transactions WHERE id = ?", (transaction_id,)
            )
            self.db.connection.commit()


class GoalRepository:
    """CRUD operations for savings goals."""

    COLUMNS = frozenset(
        {"goal_name", "target_amount", "saved_amount", "deadline", "description"}
    )

    def __init__(self, db: Database):
        self.db = db

    def create(self, goal: Goal) -> Goal:
        """Create a new goal."""
        row = goal.to_row()
        with self.db.lock:
            cursor = self.db.connection.cursor()
            cursor.execute(
                """
                INSERT INTO financial_goals
                (user_id, goal_name, target_amount, saved_amount, deadline, description)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    row["user_id"],
                    row["goal_name"],
                    row["target_amount"],
                    row["saved_amount"],
                    row["deadline"],
                    row["description"],
                ),
            )
            self.db.connection.commit()
            goal.id = cursor.lastrowid
        return goal

    def get_by_id(self, goal_id: int) -> Optional[Goal]:
        """Get goal by ID."""
        with self.db.lock:
            cursor = self.db.connection.cursor()
            cursor.execute("SELECT * FROM financial_goals WHERE id = ?", (goal_id,))
            row = cursor.fetchone()
        if row is None:
            return None
        return Goal.from_row(dict(row))

    def list_for_user(self, user_id: str) -> list[Goal]:
        """List a user's goals."""
        with self.db.lock:
            cursor = self.db.connection.cursor()
            cursor.execute(
                "SELECT * FROM financial_goals WHERE user_id = ? ORDER BY id",
                (user_id,),
            )
            rows = cursor.fetchall()
        return [Goal.from_row(dict(row)) for row in rows]

    def update(self, goal_id: int, fields: dict[str, Any]) -> None:
        """Update the given goal columns."""
        assignments, values = _update_clause(fields, self.COLUMNS)
        if not assignments:
            return
        with self.db.lock:
            self.db.connection.execute(
                f"UPDATE financial_goals SET {assignments} WHERE id = ?",
                (*values, goal_id),
            )
            self.db.connection.commit()

    def delete(self, goal_id: int) -> None:
        """Delete a goal."""
        with self.db.lock:
            self.db.connection.execute(
                "DELETE FROM financial_goals WHERE id = ?", (goal_id,)
            )
            self.db.connection.commit()


class AlertRepository:
    """CRUD operations for alerts."""

    COLUMNS = frozenset(
        {
            "title",
            "message",
            "alert_type",
            "due_date",
            "threshold",
            "active",
            "enviado",
        }
    )

    def __init__(self, db: Database):
        self.db = db

    def create(self, alert: Alert) -> Alert:
        """Create a new alert."""
        row = alert.to_row()
        with self.db.lock:
            cursor = self.db.connection.cursor()
            cursor.execute(
                """
                INSERT INTO alerts
                (user_id, title, message, alert_type, due_date, threshold, active, enviado)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    row["user_id"],
                    row["title"],
                    row["message"],
                    row["alert_type"],
                    row["due_date"],
                    row["threshold"],
                    1 if row["active"] else 0,
                    1 if row["enviado"] else 0,
                ),
            )
            self.db.connection.commit()
            alert.id = cursor.lastrowid
        return alert

    def get_by_id(self, alert_id: int) -> Optional[Alert]:
        """Get alert by ID."""
        with self.db.lock:
            cursor = self.db.connection.cursor()
            cursor.execute("SELECT * FROM alerts WHERE id = ?", (alert_id,))
            row = cursor.fetchone()
        if row is None:
            return None
        return Alert.from_row(dict(row))

    def list_for_user(self, user_id: str) -> list[Alert]:
        """List a user's alerts by due date, undated last."""
        with self.db.lock:
            cursor = self.db.connection.cursor()
            cursor.execute(
                """
                SELECT * FROM alerts
                WHERE user_id = ?
                ORDER BY due_date IS NULL, due_date ASC, id ASC
                """,
                (user_id,),
            )
            rows = cursor.fetchall()
        return [Alert.from_row(dict(row)) for row in rows]

    def update(self, alert_id: int, fields: dict[str, Any]) -> None:
        """Update the given alert columns."""
        assignments, values = _update_clause(fields, self.COLUMNS)
        if not assignments:
            return
        with self.db.lock:
            self.db.connection.execute(
                f"UPDATE alerts SET {assignments} WHERE id = ?",
                (*values, alert_id),
            )
            self.db.connection.commit()

    def delete(self, alert_id: int) -> None:
        """Delete an alert."""
        with self.db.lock:
            self.db.connection.execute("DELETE FROM alerts WHERE id = ?", (alert_id,))
            self.db.connection.commit()

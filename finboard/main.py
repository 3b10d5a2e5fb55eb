"""
Main application entry point.
"""

import logging
from datetime import datetime
from typing import Any, Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()

from finboard.database.models import (
    Alert,
    Goal,
    Transaction,
    TransactionFilters,
)
from finboard.engine.alerts import mark_sent
from finboard.engine.dashboard import DashboardState, build_dashboard
from finboard.engine.reconcile import Reconciler, ReconcileResult
from finboard.store.base import Store, StoreFactory

logger = logging.getLogger(__name__)


class DashboardApp:
    """Personal finance dashboard service."""

    def __init__(
        self,
        store: Store,
        locale: str = "es",
        timezone: str = "UTC",
        max_workers: int = 4,
        track_applied: bool = False,
    ):
        """
        Initialize dashboard app.

        Args:
            store: Data store for transactions, goals and alerts
            locale: Locale for chart labels
            timezone: Timezone that defines "today"
            max_workers: Concurrent goal updates during reconciliation
            track_applied: Ignore savings transactions already applied to a goal
        """
        self.store = store
        self.locale = locale
        self.timezone = ZoneInfo(timezone)
        self.reconciler = Reconciler(
            store, max_workers=max_workers, track_applied=track_applied
        )

    def now(self) -> datetime:
        """Current time in the configured timezone."""
        return datetime.now(self.timezone)

    def dashboard(
        self,
        user_id: str,
        filters: Optional[TransactionFilters] = None,
        now: Optional[datetime] = None,
    ) -> DashboardState:
        """
        Fetch the user's records and derive the dashboard state.

        Filters narrow the totals only; charts, goals and alerts always use
        the full history.
        """
        transactions = self.store.fetch_transactions(user_id)
        goals = self.store.fetch_goals(user_id)
        alerts = self.store.fetch_alerts(user_id)

        return build_dashboard(
            transactions,
            goals,
            alerts,
            now or self.now(),
            locale=self.locale,
            filters=filters,
        )

    # Transactions

    def add_transaction(self, transaction: Transaction) -> Transaction:
        """Create a transaction and apply it to its goal when linked to one."""
        created = self.store.create_transaction(transaction)
        if created.is_goal_movement:
            self.reconcile_transactions(created.user_id, [created])
        return created

    def edit_transaction(
        self, transaction_id: Any, updates: dict[str, Any], user_id: str
    ) -> None:
        """
        Update a transaction.

        When the updates describe a savings movement linked to a goal, the
        updated values are applied to that goal as a new movement.
        """
        self.store.update_transaction(transaction_id, updates)

        edited = Transaction.from_row(
            {**updates, "id": transaction_id, "user_id": user_id}
        )
        if edited.is_goal_movement:
            self.reconcile_transactions(user_id, [edited])

    def remove_transaction(self, transaction_id: Any) -> None:
        self.store.delete_transaction(transaction_id)

    def reconcile_transactions(
        self, user_id: str, transactions: list[Transaction]
    ) -> ReconcileResult:
        """Apply savings transactions to the user's current goals."""
        goals = self.store.fetch_goals(user_id)
        result = self.reconciler.reconcile(goals, transactions, user_id=user_id)
        for update in result.failed:
            logger.warning(
                f"Goal {update.goal_id} was not updated: {update.error}"
            )
        return result

    # Goals

    def add_goal(self, goal: Goal) -> Goal:
        return self.store.create_goal(goal)

    def edit_goal(self, goal_id: Any, updates: dict[str, Any]) -> None:
        self.store.update_goal(goal_id, updates)

    def remove_goal(self, goal_id: Any) -> None:
        self.store.delete_goal(goal_id)

    # Alerts

    def add_alert(self, alert: Alert) -> Alert:
        return self.store.create_alert(alert)

    def edit_alert(self, alert_id: Any, updates: dict[str, Any]) -> None:
        self.store.update_alert(alert_id, updates)

    def remove_alert(self, alert_id: Any) -> None:
        self.store.delete_alert(alert_id)

    def mark_alert_sent(
        self, alert_id: Any, alerts: Optional[list[Alert]] = None
    ) -> list[Alert]:
        """
        Record that the user acknowledged an alert.

        Args:
            alert_id: Alert to mark
            alerts: Alerts already loaded, updated without a refetch

        Returns:
            The given alerts with the marked one flagged as sent
        """
        self.store.update_alert(alert_id, {"enviado": True})
        return mark_sent(alerts or [], alert_id)

    def toggle_alert(self, alert_id: Any, active: bool) -> None:
        """Show or hide an alert on the dashboard."""
        self.store.update_alert(alert_id, {"active": active})


def format_dashboard(state: DashboardState) -> str:
    """Render a dashboard state as plain text."""
    totals = state.totals
    lines = [
        f"Ingresos: {totals.ingresos:.2f}",
        f"Gastos:   {totals.gastos:.2f}",
        f"Ahorro:   {totals.ahorro:.2f}",
        f"Saldo:    {totals.saldo:.2f}",
        "",
        f"Income trend:   {state.income_trend.direction} {state.income_trend.percent}",
        f"Expenses trend: {state.expenses_trend.direction} {state.expenses_trend.percent}",
        "",
        "Goals:",
    ]

    for item in state.goals:
        if item.completed:
            status = "completed"
        elif item.expired:
            status = "expired"
        else:
            status = "in progress"
        lines.append(f"  {item.goal.goal_name}: {item.progress:.1f}% ({status})")

    today = state.alerts.today
    lines += ["", f"Alerts today: {today.count}"]
    for alert in today.alerts:
        mark = "sent" if alert.enviado else "pending"
        lines.append(f"  [{mark}] {alert.title}: {alert.message}")

    return "\n".join(lines)


def main():
    """CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Finboard personal finance dashboard")
    parser.add_argument(
        "--config", default="config.yaml", help="Path to config file"
    )
    parser.add_argument("--user", required=True, help="User ID")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")

    args = parser.parse_args()

    # Load config
    from finboard.config import load_config

    config = load_config(args.config)

    # Setup logging
    log_level = logging.DEBUG if args.debug else config.advanced.log_level
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    store = StoreFactory.create(config.store)
    app = DashboardApp(
        store=store,
        locale=config.dashboard.locale,
        timezone=config.dashboard.timezone,
        max_workers=config.reconcile.max_workers,
        track_applied=config.reconcile.track_applied,
    )

    try:
        print(format_dashboard(app.dashboard(args.user)))
    finally:
        store.close()


if __name__ == "__main__":
    main()

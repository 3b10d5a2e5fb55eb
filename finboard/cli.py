"""
CLI commands for finboard.
"""

import argparse
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Optional, Union

from dotenv import load_dotenv

load_dotenv()

from finboard.config import load_config
from finboard.database.models import (
    Alert,
    AlertType,
    Goal,
    Transaction,
    TransactionFilters,
    TransactionType,
)
from finboard.main import DashboardApp
from finboard.store.base import StoreError, StoreFactory
from finboard.store.local import LocalStore

logger = logging.getLogger(__name__)


def record_id(value: str) -> Union[int, str]:
    """Parse a record id: integers for the local store, anything else as given."""
    value = value.strip()
    if not value:
        raise argparse.ArgumentTypeError("id must not be empty")
    return int(value) if value.isdigit() else value


def add_transaction(
    app: DashboardApp,
    user_id: str,
    tipo: str,
    amount: str,
    description: str,
    category: Optional[str] = None,
    subcategory: Optional[str] = None,
    when: Optional[str] = None,
    goal_id: Optional[Any] = None,
) -> Transaction:
    """Record a transaction, updating its goal for savings movements."""
    transaction = Transaction(
        user_id=user_id,
        description=description,
        amount=Decimal(amount),
        tipo=TransactionType(tipo),
        category=category,
        subcategory=subcategory,
        date=date.fromisoformat(when) if when else app.now().date(),
        goal_id=goal_id,
    )
    return app.add_transaction(transaction)


def add_goal(
    app: DashboardApp,
    user_id: str,
    name: str,
    target: str,
    deadline: Optional[str] = None,
    description: Optional[str] = None,
) -> Goal:
    """Create a savings goal."""
    goal = Goal(
        user_id=user_id,
        goal_name=name,
        target_amount=Decimal(target),
        deadline=date.fromisoformat(deadline) if deadline else None,
        description=description,
    )
    return app.add_goal(goal)


def add_alert(
    app: DashboardApp,
    user_id: str,
    title: str,
    message: str,
    alert_type: str,
    due_date: str,
    threshold: Optional[str] = None,
) -> Alert:
    """Create an alert."""
    alert = Alert(
        user_id=user_id,
        title=title,
        message=message,
        alert_type=AlertType(alert_type),
        due_date=date.fromisoformat(due_date),
        threshold=Decimal(threshold) if threshold else None,
    )
    return app.add_alert(alert)


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Finboard CLI")
    parser.add_argument("--config", default="config.yaml", help="Path to config file")

    subparsers = parser.add_subparsers(dest="command", help="Command")

    # Transaction commands
    tx_parser = subparsers.add_parser("transaction", help="Transaction management")
    tx_subparsers = tx_parser.add_subparsers(dest="action")

    add_tx_parser = tx_subparsers.add_parser("add", help="Add transaction")
    add_tx_parser.add_argument("--user", required=True, help="User ID")
    add_tx_parser.add_argument(
        "--tipo", required=True, choices=[t.value for t in TransactionType]
    )
    add_tx_parser.add_argument("--amount", required=True, help="Amount")
    add_tx_parser.add_argument("--description", default="", help="Description")
    add_tx_parser.add_argument("--category", help="Category")
    add_tx_parser.add_argument("--subcategory", help="Subcategory")
    add_tx_parser.add_argument("--date", help="Date (YYYY-MM-DD), defaults to today")
    add_tx_parser.add_argument("--goal", type=record_id, help="Linked goal ID")

    list_tx_parser = tx_subparsers.add_parser("list", help="List transactions")
    list_tx_parser.add_argument("--user", required=True, help="User ID")
    list_tx_parser.add_argument("--start", help="Start date (YYYY-MM-DD)")
    list_tx_parser.add_argument("--end", help="End date (YYYY-MM-DD)")
    list_tx_parser.add_argument("--category", help="Category filter")

    del_tx_parser = tx_subparsers.add_parser("delete", help="Delete transaction")
    del_tx_parser.add_argument("--id", type=record_id, required=True, help="Transaction ID")

    # Goal commands
    goal_parser = subparsers.add_parser("goal", help="Goal management")
    goal_subparsers = goal_parser.add_subparsers(dest="action")

    add_goal_parser = goal_subparsers.add_parser("add", help="Add goal")
    add_goal_parser.add_argument("--user", required=True, help="User ID")
    add_goal_parser.add_argument("--name", required=True, help="Goal name")
    add_goal_parser.add_argument("--target", required=True, help="Target amount")
    add_goal_parser.add_argument("--deadline", help="Deadline (YYYY-MM-DD)")
    add_goal_parser.add_argument("--description", help="Description")

    list_goal_parser = goal_subparsers.add_parser("list", help="List goals")
    list_goal_parser.add_argument("--user", required=True, help="User ID")

    del_goal_parser = goal_subparsers.add_parser("delete", help="Delete goal")
    del_goal_parser.add_argument("--id", type=record_id, required=True, help="Goal ID")

    # Alert commands
    alert_parser = subparsers.add_parser("alert", help="Alert management")
    alert_subparsers = alert_parser.add_subparsers(dest="action")

    add_alert_parser = alert_subparsers.add_parser("add", help="Add alert")
    add_alert_parser.add_argument("--user", required=True, help="User ID")
    add_alert_parser.add_argument("--title", required=True, help="Title")
    add_alert_parser.add_argument("--message", default="", help="Message")
    add_alert_parser.add_argument(
        "--type", default="reminder", choices=[t.value for t in AlertType]
    )
    add_alert_parser.add_argument("--due", required=True, help="Due date (YYYY-MM-DD)")
    add_alert_parser.add_argument("--threshold", help="Amount threshold")

    list_alert_parser = alert_subparsers.add_parser("list", help="List alerts")
    list_alert_parser.add_argument("--user", required=True, help="User ID")

    sent_alert_parser = alert_subparsers.add_parser("sent", help="Mark alert as sent")
    sent_alert_parser.add_argument("--id", type=record_id, required=True, help="Alert ID")
    sent_alert_parser.add_argument("--user", help="Show the user's unsent alerts after")

    toggle_alert_parser = alert_subparsers.add_parser(
        "toggle", help="Show or hide alert on the dashboard"
    )
    toggle_alert_parser.add_argument("--id", type=record_id, required=True, help="Alert ID")
    toggle_alert_parser.add_argument(
        "--off", action="store_true", help="Hide instead of show"
    )

    del_alert_parser = alert_subparsers.add_parser("delete", help="Delete alert")
    del_alert_parser.add_argument("--id", type=record_id, required=True, help="Alert ID")

    # DB commands
    db_parser = subparsers.add_parser("db", help="Database management")
    db_subparsers = db_parser.add_subparsers(dest="action")
    db_subparsers.add_parser("init", help="Create the local database schema")

    args = parser.parse_args()

    config = load_config(args.config)
    logging.basicConfig(
        level=config.advanced.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Initialize store
    store = StoreFactory.create(config.store)
    app = DashboardApp(
        store=store,
        locale=config.dashboard.locale,
        timezone=config.dashboard.timezone,
        max_workers=config.reconcile.max_workers,
        track_applied=config.reconcile.track_applied,
    )

    try:
        _run(app, args)
    except StoreError as e:
        logger.error(f"Store error: {e}")
        raise SystemExit(1)
    finally:
        store.close()


def _run(app: DashboardApp, args: argparse.Namespace) -> None:
    """Dispatch a parsed command."""
    if args.command == "transaction":
        if args.action == "add":
            tx = add_transaction(
                app,
                user_id=args.user,
                tipo=args.tipo,
                amount=args.amount,
                description=args.description,
                category=args.category,
                subcategory=args.subcategory,
                when=args.date,
                goal_id=args.goal,
            )
            print(f"Created transaction with ID: {tx.id}")
        elif args.action == "list":
            filters = TransactionFilters(
                start_date=date.fromisoformat(args.start) if args.start else None,
                end_date=date.fromisoformat(args.end) if args.end else None,
                category=args.category,
            )
            for t in app.store.fetch_transactions(args.user, filters):
                tipo = t.tipo.value if t.tipo else "?"
                print(
                    f"{t.id}: {t.date} {tipo} {t.amount} "
                    f"{t.category or '-'} {t.description}"
                )
        elif args.action == "delete":
            app.remove_transaction(args.id)
            print(f"Deleted transaction {args.id}")

    elif args.command == "goal":
        if args.action == "add":
            goal = add_goal(
                app,
                user_id=args.user,
                name=args.name,
                target=args.target,
                deadline=args.deadline,
                description=args.description,
            )
            print(f"Created goal with ID: {goal.id}")
        elif args.action == "list":
            for item in app.dashboard(args.user).goals:
                g = item.goal
                print(
                    f"{g.id}: {g.goal_name} {g.saved_amount}/{g.target_amount} "
                    f"({item.progress:.1f}%)"
                )
        elif args.action == "delete":
            app.remove_goal(args.id)
            print(f"Deleted goal {args.id}")

    elif args.command == "alert":
        if args.action == "add":
            alert = add_alert(
                app,
                user_id=args.user,
                title=args.title,
                message=args.message,
                alert_type=args.type,
                due_date=args.due,
                threshold=args.threshold,
            )
            print(f"Created alert with ID: {alert.id}")
        elif args.action == "list":
            for status in app.dashboard(args.user).alerts.alerts:
                a = status.alert
                state = "pending" if status.is_pending else "due"
                sent = "sent" if a.enviado else "unsent"
                print(f"{a.id}: {a.due_date} {a.title} ({state}, {sent})")
        elif args.action == "sent":
            alerts = app.store.fetch_alerts(args.user) if args.user else []
            alerts = app.mark_alert_sent(args.id, alerts)
            print(f"Alert {args.id} marked as sent")
            if args.user:
                unsent = [a for a in alerts if not a.enviado]
                print(f"Unsent alerts: {len(unsent)}")
        elif args.action == "toggle":
            app.toggle_alert(args.id, active=not args.off)
            print(f"Alert {args.id} {'hidden' if args.off else 'shown'}")
        elif args.action == "delete":
            app.remove_alert(args.id)
            print(f"Deleted alert {args.id}")

    elif args.command == "db":
        if args.action == "init":
            # The local store creates its schema when opened
            if isinstance(app.store, LocalStore):
                print("Database initialized")
            else:
                print("Store backend has no local schema, nothing to initialize")


if __name__ == "__main__":
    main()

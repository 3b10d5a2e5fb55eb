"""
Goal saved-amount reconciliation from savings transactions.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, Optional

from finboard.database.models import (
    Goal,
    Transaction,
    TransactionType,
    to_decimal,
)
from finboard.store.base import Store, StoreError

logger = logging.getLogger(__name__)


@dataclass
class GoalUpdate:
    """Outcome of persisting one goal's new saved amount."""

    goal_id: Any
    new_saved_amount: Decimal
    success: bool = False
    error: Optional[str] = None
    transaction_ids: list[Any] = field(default_factory=list)


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation batch."""

    updates: list[GoalUpdate] = field(default_factory=list)
    reloaded_goals: Optional[list[Goal]] = None

    @property
    def failed(self) -> list[GoalUpdate]:
        return [update for update in self.updates if not update.success]


def goal_deltas(transactions: Iterable[Transaction]) -> dict[Any, list[Transaction]]:
    """Group goal-linked ahorro/retiro transactions by goal id."""
    grouped: dict[Any, list[Transaction]] = {}
    for transaction in transactions:
        if TransactionType.parse(transaction.tipo) not in (
            TransactionType.AHORRO,
            TransactionType.RETIRO,
        ):
            continue
        if not transaction.goal_id:
            continue
        grouped.setdefault(transaction.goal_id, []).append(transaction)
    return grouped


def apply_transactions(saved_amount: Any, transactions: Iterable[Transaction]) -> Decimal:
    """Add ahorro amounts to and subtract retiro amounts from a saved amount."""
    total = to_decimal(saved_amount)
    for transaction in transactions:
        amount = to_decimal(transaction.amount)
        if TransactionType.parse(transaction.tipo) is TransactionType.AHORRO:
            total += amount
        else:
            total -= amount
    return total


class Reconciler:
    """Applies newly observed savings transactions to their goals."""

    def __init__(
        self,
        store: Store,
        max_workers: int = 4,
        track_applied: bool = False,
    ):
        """
        Initialize reconciler.

        Args:
            store: Store used to persist saved amounts and reload goals
            max_workers: Concurrent goal updates per batch
            track_applied: Skip transactions already applied to a goal by
                this reconciler instead of counting them again
        """
        self.store = store
        self.max_workers = max_workers
        self.track_applied = track_applied
        self._applied: set[tuple[Any, Any]] = set()

    def plan(
        self, goals: Iterable[Goal], transactions: Iterable[Transaction]
    ) -> list[GoalUpdate]:
        """
        Compute new saved amounts without persisting anything.

        Args:
            goals: Current goals as last fetched
            transactions: Newly observed transactions

        Returns:
            One pending GoalUpdate per affected goal
        """
        goals_by_id = {goal.id: goal for goal in goals}
        updates = []

        for goal_id, linked in goal_deltas(transactions).items():
            goal = goals_by_id.get(goal_id)
            if goal is None:
                logger.warning(f"Skipping transactions for unknown goal {goal_id}")
                continue

            if self.track_applied:
                linked = [
                    t
                    for t in linked
                    if t.id is None or (goal_id, t.id) not in self._applied
                ]
                if not linked:
                    logger.debug(f"Transactions for goal {goal_id} already applied")
                    continue

            updates.append(
                GoalUpdate(
                    goal_id=goal_id,
                    new_saved_amount=apply_transactions(goal.saved_amount, linked),
                    transaction_ids=[t.id for t in linked if t.id is not None],
                )
            )

        return updates

    def reconcile(
        self,
        goals: Iterable[Goal],
        transactions: Iterable[Transaction],
        user_id: Optional[str] = None,
    ) -> ReconcileResult:
        """
        Persist new saved amounts and reload the user's goals.

        Updates run concurrently. The reload waits until every update has
        finished and is skipped when none succeeded. A failed update is
        logged and reported without affecting the others.

        Args:
            goals: Current goals as last fetched
            transactions: Newly observed transactions
            user_id: Owner whose goals are reloaded afterwards

        Returns:
            ReconcileResult with per-goal outcomes and reloaded goals
        """
        updates = self.plan(goals, transactions)
        result = ReconcileResult(updates=updates)
        if not updates:
            return result

        workers = max(1, min(self.max_workers, len(updates)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            # Leaving the block waits for every persist to settle
            list(executor.map(self._persist, updates))

        if not any(update.success for update in updates) or user_id is None:
            return result

        try:
            result.reloaded_goals = self.store.fetch_goals(user_id)
        except StoreError as e:
            logger.error(f"Error reloading goals for user {user_id}: {e}")

        return result

    def _persist(self, update: GoalUpdate) -> GoalUpdate:
        try:
            self.store.update_goal(
                update.goal_id, {"saved_amount": update.new_saved_amount}
            )
        except Exception as e:
            logger.error(f"Error updating goal {update.goal_id}: {e}")
            update.error = str(e)
            return update

        update.success = True
        if self.track_applied:
            self._applied.update(
                (update.goal_id, transaction_id)
                for transaction_id in update.transaction_ids
            )
        logger.info(
            f"Goal {update.goal_id} saved amount set to {update.new_saved_amount}"
        )
        return update

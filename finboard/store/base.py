"""
Data-access interface shared by the store backends.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from finboard.database.models import Alert, Goal, Transaction, TransactionFilters


class StoreError(Exception):
    """Raised when a store operation fails."""

    pass


class Store(ABC):
    """Abstract base class for transaction, goal and alert persistence."""

    # Transactions

    @abstractmethod
    def fetch_transactions(
        self, user_id: str, filters: Optional[TransactionFilters] = None
    ) -> list[Transaction]:
        """
        Fetch a user's transactions, newest first.

        Args:
            user_id: Owner of the transactions
            filters: Optional date range / category / subcategory filters

        Returns:
            List of transactions

        Raises:
            StoreError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def create_transaction(self, transaction: Transaction) -> Transaction:
        """Create a transaction and return it with its assigned id."""
        pass

    @abstractmethod
    def update_transaction(self, transaction_id: Any, fields: dict[str, Any]) -> None:
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: Any) -> None:
        pass

    # Goals

    @abstractmethod
    def fetch_goals(self, user_id: str) -> list[Goal]:
        pass

    @abstractmethod
    def create_goal(self, goal: Goal) -> Goal:
        """Create a goal and return it with its assigned id."""
        pass

    @abstractmethod
    def update_goal(self, goal_id: Any, fields: dict[str, Any]) -> None:
        pass

    @abstractmethod
    def delete_goal(self, goal_id: Any) -> None:
        pass

    # Alerts

    @abstractmethod
    def fetch_alerts(self, user_id: str) -> list[Alert]:
        """Fetch a user's alerts ordered by due date."""
        pass

    @abstractmethod
    def create_alert(self, alert: Alert) -> Alert:
        pass

    @abstractmethod
    def update_alert(self, alert_id: Any, fields: dict[str, Any]) -> None:
        pass

    @abstractmethod
    def delete_alert(self, alert_id: Any) -> None:
        pass

    def close(self) -> None:
        """Release backend resources."""
        pass


def require_id(record_id: Any, kind: str) -> Any:
    """Reject empty ids before they reach the backend."""
    if record_id is None or record_id == "":
        raise StoreError(f"A valid {kind} id is required")
    return record_id


class StoreFactory:
    """Factory for creating store instances."""

    @staticmethod
    def create(config: Any) -> Store:
        """
        Create a store from configuration.

        Args:
            config: StoreConfig instance

        Returns:
            Appropriate Store instance

        Raises:
            ValueError: If store backend is unknown
        """
        backend = config.backend

        if backend == "local":
            from finboard.database.connection import Database
            from .local import LocalStore

            db = Database(config.path)
            db.initialize()
            return LocalStore(db)

        elif backend == "rest":
            from .rest import RestStore

            return RestStore(
                base_url=config.url,
                api_key=config.api_key,
                access_token=config.access_token,
                timeout=config.timeout,
            )

        else:
            raise ValueError(f"Unknown store backend: {backend}")

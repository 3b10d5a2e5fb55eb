"""
Store backed by a hosted PostgREST-compatible backend.
"""

import logging
import time
from typing import Any, Optional

import requests

from finboard.database.models import (
    Alert,
    Goal,
    Transaction,
    TransactionFilters,
    serialize_fields,
)
from .base import Store, StoreError, require_id

logger = logging.getLogger(__name__)


def _retry_delay(value: Optional[str]) -> float:
    """Seconds to wait from a Retry-After header; HTTP dates fall back to 1."""
    try:
        return max(0.0, float(value))
    except (TypeError, ValueError):
        return 1.0


class RestStore(Store):
    """Reads and writes records through the backend's REST API."""

    TRANSACTIONS = "transactions"
    GOALS = "financial_goals"
    ALERTS = "alerts"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: Optional[str] = None,
        timeout: float = 10,
    ):
        """
        Initialize REST store.

        Args:
            base_url: Project URL, e.g. https://xyz.supabase.co
            api_key: Public API key sent with every request
            access_token: Signed-in user's token; row-level security applies to it
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.access_token = access_token
        self.timeout = timeout

    # Transactions

    def fetch_transactions(
        self, user_id: str, filters: Optional[TransactionFilters] = None
    ) -> list[Transaction]:
        params = [("select", "*"), ("user_id", f"eq.{user_id}")]

        if filters:
            if filters.start_date and filters.end_date:
                params.append(("date", f"gte.{filters.start_date.isoformat()}"))
                params.append(("date", f"lte.{filters.end_date.isoformat()}"))
            if filters.category:
                params.append(("category", f"eq.{filters.category}"))
            if filters.subcategory:
                params.append(("subcategory", f"eq.{filters.subcategory}"))

        params.append(("order", "date.desc"))
        rows = self._request("GET", self.TRANSACTIONS, params=params)
        return [Transaction.from_row(row) for row in rows or []]

    def create_transaction(self, transaction: Transaction) -> Transaction:
        row = self._insert(self.TRANSACTIONS, transaction.to_row())
        return Transaction.from_row(row)

    def update_transaction(self, transaction_id: Any, fields: dict[str, Any]) -> None:
        require_id(transaction_id, "transaction")
        if "goal_id" in fields:
            fields = {**fields, "goal_id": fields["goal_id"] or None}
        self._patch(self.TRANSACTIONS, transaction_id, fields)

    def delete_transaction(self, transaction_id: Any) -> None:
        require_id(transaction_id, "transaction")
        self._delete(self.TRANSACTIONS, transaction_id)

    # Goals

    def fetch_goals(self, user_id: str) -> list[Goal]:
        params = [("select", "*"), ("user_id", f"eq.{user_id}"), ("order", "id.asc")]
        rows = self._request("GET", self.GOALS, params=params)
        return [Goal.from_row(row) for row in rows or []]

    def create_goal(self, goal: Goal) -> Goal:
        return Goal.from_row(self._insert(self.GOALS, goal.to_row()))

    def update_goal(self, goal_id: Any, fields: dict[str, Any]) -> None:
        require_id(goal_id, "goal")
        self._patch(self.GOALS, goal_id, fields)

    def delete_goal(self, goal_id: Any) -> None:
        require_id(goal_id, "goal")
        self._delete(self.GOALS, goal_id)

    # Alerts

    def fetch_alerts(self, user_id: str) -> list[Alert]:
        params = [
            ("select", "*"),
            ("user_id", f"eq.{user_id}"),
            ("order", "due_date.asc"),
        ]
        rows = self._request("GET", self.ALERTS, params=params)
        return [Alert.from_row(row) for row in rows or []]

    def create_alert(self, alert: Alert) -> Alert:
        return Alert.from_row(self._insert(self.ALERTS, alert.to_row()))

    def update_alert(self, alert_id: Any, fields: dict[str, Any]) -> None:
        require_id(alert_id, "alert")
        self._patch(self.ALERTS, alert_id, fields)

    def delete_alert(self, alert_id: Any) -> None:
        require_id(alert_id, "alert")
        self._delete(self.ALERTS, alert_id)

    # HTTP helpers

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token or self.api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    def _insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        rows = self._request("POST", table, json=[row])
        if not rows:
            raise StoreError(f"Backend returned no row for insert into {table}")
        return rows[0]

    def _patch(self, table: str, record_id: Any, fields: dict[str, Any]) -> None:
        self._request(
            "PATCH",
            table,
            params=[("id", f"eq.{record_id}")],
            json=serialize_fields(fields),
        )

    def _delete(self, table: str, record_id: Any) -> None:
        self._request("DELETE", table, params=[("id", f"eq.{record_id}")])

    def _request(
        self,
        method: str,
        table: str,
        params: Optional[list[tuple[str, str]]] = None,
        json: Any = None,
    ) -> Any:
        """Send a request, retrying once when rate limited."""
        url = f"{self.base_url}/rest/v1/{table}"
        try:
            response = self._send(method, url, params, json)

            # Handle rate limiting
            if response.status_code == 429:
                retry_after = _retry_delay(response.headers.get("Retry-After"))
                logger.warning(
                    f"Rate limited on {method} {table}, retrying in {retry_after}s"
                )
                time.sleep(retry_after)
                response = self._send(method, url, params, json)

        except requests.exceptions.RequestException as e:
            raise StoreError(f"Connection error: {e}") from e

        if not response.ok:
            raise StoreError(f"HTTP {response.status_code}: {response.text}")

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise StoreError(f"Invalid JSON from {table}: {e}") from e

    def _send(
        self,
        method: str,
        url: str,
        params: Optional[list[tuple[str, str]]],
        json: Any,
    ) -> requests.Response:
        return requests.request(
            method,
            url,
            params=params,
            json=json,
            headers=self._headers(),
            timeout=self.timeout,
        )

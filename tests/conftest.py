"""
Pytest configuration and shared fixtures.
"""

import pytest
from datetime import date
from decimal import Decimal

from finboard.database.connection import Database
from finboard.database.models import (
    Alert,
    Goal,
    Transaction,
    TransactionType,
)
from finboard.store.local import LocalStore


@pytest.fixture
def db():
    """Create in-memory database with schema."""
    db = Database(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def store(db):
    """Local store over the in-memory database."""
    return LocalStore(db)


@pytest.fixture
def today():
    """Fixed reference date (a Saturday)."""
    return date(2024, 6, 15)


@pytest.fixture
def make_transaction():
    """Factory for transactions with sensible defaults."""

    def _make(tipo, amount, when=None, **kwargs):
        return Transaction(
            user_id=kwargs.pop("user_id", "user-1"),
            description=kwargs.pop("description", f"{tipo} movement"),
            amount=Decimal(str(amount)),
            tipo=TransactionType(tipo),
            date=when,
            **kwargs,
        )

    return _make


@pytest.fixture
def sample_goal():
    """Goal halfway to its target."""
    return Goal(
        id=1,
        user_id="user-1",
        goal_name="Vacaciones",
        target_amount=Decimal("1000"),
        saved_amount=Decimal("500"),
        deadline=date(2024, 12, 31),
    )


@pytest.fixture
def make_alert():
    """Factory for alerts with sensible defaults."""

    def _make(due_date, active=True, enviado=False, **kwargs):
        return Alert(
            user_id=kwargs.pop("user_id", "user-1"),
            title=kwargs.pop("title", "Pago tarjeta"),
            message=kwargs.pop("message", "Pagar la tarjeta de crédito"),
            due_date=due_date,
            active=active,
            enviado=enviado,
            **kwargs,
        )

    return _make

"""
Integration tests.
End-to-end tests for the dashboard flow over the local store.
"""

import argparse
import pytest
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import MagicMock, patch
from zoneinfo import ZoneInfo

from finboard.cli import add_alert, add_goal, add_transaction
from finboard.database.models import Goal, TransactionFilters
from finboard.main import DashboardApp, format_dashboard
from finboard.store.base import Store, StoreError


NOW = datetime(2024, 6, 15, 10, 0, tzinfo=ZoneInfo("America/Bogota"))


@pytest.fixture
def app(store):
    return DashboardApp(store, locale="es", timezone="America/Bogota")


@pytest.fixture
def goal(app):
    return add_goal(app, "user-1", "Vacaciones", "1000", deadline="2024-12-31")


class TestDashboardFlow:
    """Test the complete dashboard derivation."""

    @pytest.fixture
    def populated(self, app, goal):
        add_transaction(app, "user-1", "ingreso", "200", "Salario", when="2024-05-10")
        add_transaction(app, "user-1", "ingreso", "300", "Salario", when="2024-06-10")
        add_transaction(
            app, "user-1", "gasto", "80", "Mercado", category="Comida", when="2024-06-12"
        )
        add_transaction(app, "user-1", "gasto", "20", "Bus", when="2024-06-14")
        add_transaction(
            app, "user-1", "ahorro", "150", "Ahorro", when="2024-06-01", goal_id=goal.id
        )
        add_alert(app, "user-1", "Tarjeta", "Pagar tarjeta", "expense", "2024-06-15")
        add_alert(app, "user-1", "Arriendo", "Pagar arriendo", "reminder", "2024-06-20")
        return app

    def test_totals(self, populated):
        """Should total every transaction type."""
        state = populated.dashboard("user-1", now=NOW)
        assert state.totals.ingresos == Decimal("500")
        assert state.totals.gastos == Decimal("100")
        assert state.totals.ahorro == Decimal("150")
        assert state.totals.saldo == Decimal("400")

    def test_filters_narrow_totals_only(self, populated):
        """Should filter totals but keep full-history charts."""
        filters = TransactionFilters(
            start_date=date(2024, 6, 1), end_date=date(2024, 6, 30)
        )
        state = populated.dashboard("user-1", filters=filters, now=NOW)
        assert state.totals.ingresos == Decimal("300")
        assert state.series["month"]["may 24"].income == Decimal("200")

    def test_series_and_trend(self, populated):
        """Should bucket by month and compare the last two months."""
        state = populated.dashboard("user-1", now=NOW)
        assert state.series["month"]["jun 24"].income == Decimal("300")
        assert state.series["month"]["jun 24"].expenses == Decimal("100")
        assert state.income_trend.direction == "up"
        assert state.income_trend.percent == "50.0%"
        assert state.expenses_trend.percent == "100%"

    def test_category_expenses(self, populated):
        """Should break down recent expenses by category."""
        state = populated.dashboard("user-1", now=NOW)
        assert state.category_expenses["week"] == {
            "Comida": Decimal("80"),
            "Sin categoría": Decimal("20"),
        }

    def test_goal_reconciled_on_create(self, populated):
        """Should add savings to the linked goal when created."""
        state = populated.dashboard("user-1", now=NOW)
        assert state.goals[0].goal.saved_amount == Decimal("150")
        assert state.goals[0].progress == 15.0

    def test_alerts(self, populated):
        """Should classify alerts against the local date."""
        state = populated.dashboard("user-1", now=NOW)
        assert state.alerts.today.count == 1
        assert state.alerts.today.alerts[0].title == "Tarjeta"
        assert [s.is_pending for s in state.alerts.alerts] == [False, True]

    def test_format_dashboard(self, populated):
        """Should render a readable summary."""
        text = format_dashboard(populated.dashboard("user-1", now=NOW))
        assert "Ingresos: 500.00" in text
        assert "Saldo:    400.00" in text
        assert "Vacaciones: 15.0% (in progress)" in text
        assert "Alerts today: 1" in text
        assert "[pending] Tarjeta: Pagar tarjeta" in text


class TestGoalReconciliation:
    """Test goal updates driven by savings transactions."""

    def test_contribution_and_withdrawal(self, app, goal, store):
        """Should reach 650 from 500 after +200 and -50."""
        store.update_goal(goal.id, {"saved_amount": Decimal("500")})
        add_transaction(app, "user-1", "ahorro", "200", "Aporte", goal_id=goal.id)
        add_transaction(app, "user-1", "retiro", "50", "Retiro", goal_id=goal.id)

        assert store.fetch_goals("user-1")[0].saved_amount == Decimal("650")

    def test_unlinked_savings_leave_goals(self, app, goal, store):
        """Should not touch goals for savings without a goal."""
        add_transaction(app, "user-1", "ahorro", "200", "Colchón")
        assert store.fetch_goals("user-1")[0].saved_amount == Decimal("0")

    def test_edit_applies_new_values(self, app, goal, store):
        """Should apply an edited savings movement to its goal."""
        tx = add_transaction(app, "user-1", "gasto", "40", "Cena", when="2024-06-01")
        app.edit_transaction(
            tx.id,
            {"tipo": "ahorro", "amount": Decimal("40"), "goal_id": goal.id},
            user_id="user-1",
        )

        stored = store.transactions.get_by_id(tx.id)
        assert stored.goal_id == goal.id
        assert store.fetch_goals("user-1")[0].saved_amount == Decimal("40")

    def test_failed_update_is_reported(self, app, goal, store):
        """Should keep the transaction and report the failed goal."""
        with patch.object(store, "update_goal", side_effect=StoreError("locked")):
            add_transaction(app, "user-1", "ahorro", "10", "Aporte", goal_id=goal.id)

        assert len(store.fetch_transactions("user-1")) == 1
        assert store.fetch_goals("user-1")[0].saved_amount == Decimal("0")

    def test_zero_target_goal(self, app, store):
        """Should show a zero-target goal as completed."""
        app.add_goal(Goal(user_id="user-1", goal_name="Libre", target_amount=Decimal("0")))
        state = app.dashboard("user-1", now=NOW)
        assert state.goals[0].completed
        assert state.goals[0].progress == 100.0


class TestAlertActions:
    """Test alert actions."""

    def test_mark_sent_moves_alert_last(self, app):
        """Should list sent alerts after unsent ones."""
        first = add_alert(app, "user-1", "Uno", "m", "reminder", "2024-06-15")
        add_alert(app, "user-1", "Dos", "m", "reminder", "2024-06-15")

        app.mark_alert_sent(first.id)
        today = app.dashboard("user-1", now=NOW).alerts.today
        assert [a.title for a in today.alerts] == ["Dos", "Uno"]
        assert today.alerts[1].enviado

    def test_mark_sent_updates_loaded_alerts(self, app, store):
        """Should return the loaded alerts with the marked one flagged."""
        first = add_alert(app, "user-1", "Uno", "m", "reminder", "2024-06-15")
        add_alert(app, "user-1", "Dos", "m", "reminder", "2024-06-15")
        loaded = store.fetch_alerts("user-1")

        updated = app.mark_alert_sent(first.id, loaded)
        assert {a.title: bool(a.enviado) for a in updated} == {"Uno": True, "Dos": False}
        assert not any(a.enviado for a in loaded)

        stored = {a.title: bool(a.enviado) for a in store.fetch_alerts("user-1")}
        assert stored == {"Uno": True, "Dos": False}

    def test_toggle_hides_alert(self, app):
        """Should drop hidden alerts from today's bucket."""
        alert = add_alert(app, "user-1", "Uno", "m", "saving", "2024-06-15", "100")
        app.toggle_alert(alert.id, active=False)
        assert app.dashboard("user-1", now=NOW).alerts.today.count == 0

        app.toggle_alert(alert.id, active=True)
        assert app.dashboard("user-1", now=NOW).alerts.today.count == 1

    def test_remove_alert(self, app, store):
        """Should delete an alert."""
        alert = add_alert(app, "user-1", "Uno", "m", "reminder", "2024-06-15")
        app.remove_alert(alert.id)
        assert store.fetch_alerts("user-1") == []


class TestTimezone:
    """Test the configured timezone."""

    def test_now_uses_configured_zone(self, app):
        """Should report the current time in the configured timezone."""
        assert app.now().tzinfo == ZoneInfo("America/Bogota")

    def test_default_transaction_date(self, app):
        """Should date new transactions with the local day."""
        with patch.object(app, "now", return_value=NOW):
            tx = add_transaction(app, "user-1", "gasto", "5", "Café")
        assert tx.date == date(2024, 6, 15)


class TestCommandLine:
    """Test the command line entry points."""

    @pytest.fixture
    def config_path(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(f"store:\n  backend: local\n  path: {tmp_path / 'f.db'}\n")
        return str(path)

    def _run(self, entry_point, *args):
        with patch("sys.argv", ["finboard", *args]):
            entry_point()

    def test_goal_commands(self, config_path, capsys):
        """Should create and list goals through the CLI."""
        from finboard import cli

        self._run(
            cli.main, "--config", config_path,
            "goal", "add", "--user", "u", "--name", "Casa", "--target", "100",
        )
        self._run(cli.main, "--config", config_path, "goal", "list", "--user", "u")

        out = capsys.readouterr().out
        assert "Created goal with ID: 1" in out
        assert "1: Casa 0/100 (0.0%)" in out

    def test_transaction_commands(self, config_path, capsys):
        """Should record and list transactions through the CLI."""
        from finboard import cli

        self._run(
            cli.main, "--config", config_path,
            "transaction", "add", "--user", "u", "--tipo", "gasto",
            "--amount", "12.50", "--description", "Almuerzo",
            "--category", "Comida", "--date", "2024-06-10",
        )
        self._run(
            cli.main, "--config", config_path, "transaction", "list", "--user", "u"
        )

        out = capsys.readouterr().out
        assert "1: 2024-06-10 gasto 12.50 Comida Almuerzo" in out

    def test_dashboard_command(self, config_path, capsys):
        """Should print the dashboard summary."""
        from finboard import main

        self._run(main.main, "--config", config_path, "--user", "u")
        out = capsys.readouterr().out
        assert "Ingresos: 0.00" in out
        assert "Alerts today: 0" in out

    def test_delete_by_numeric_id(self, config_path, capsys):
        """Should pass numeric ids to the local store as integers."""
        from finboard import cli

        self._run(
            cli.main, "--config", config_path,
            "goal", "add", "--user", "u", "--name", "Casa", "--target", "100",
        )
        self._run(cli.main, "--config", config_path, "goal", "delete", "--id", "1")
        self._run(cli.main, "--config", config_path, "goal", "list", "--user", "u")

        out = capsys.readouterr().out
        assert "Deleted goal 1" in out
        assert "1: Casa" not in out

    def test_record_id_keeps_uuids(self):
        """Should keep non-numeric ids such as UUIDs as strings."""
        from finboard.cli import record_id

        uuid = "3f2b8c1e-7a4d-4e0b-9c55-1d2e3f4a5b6c"
        assert record_id("42") == 42
        assert record_id(uuid) == uuid
        with pytest.raises(argparse.ArgumentTypeError):
            record_id("  ")

    def test_alert_sent_with_user(self, config_path, capsys):
        """Should report the unsent alerts left after marking one."""
        from finboard import cli

        for title in ("Uno", "Dos"):
            self._run(
                cli.main, "--config", config_path,
                "alert", "add", "--user", "u", "--title", title, "--due", "2024-06-15",
            )
        self._run(
            cli.main, "--config", config_path,
            "alert", "sent", "--id", "1", "--user", "u",
        )

        out = capsys.readouterr().out
        assert "Alert 1 marked as sent" in out
        assert "Unsent alerts: 1" in out

    def test_db_init_local(self, app, capsys):
        """Should confirm the local schema."""
        from finboard import cli

        cli._run(app, argparse.Namespace(command="db", action="init"))
        assert "Database initialized" in capsys.readouterr().out

    def test_db_init_remote_backend(self, capsys):
        """Should not claim to initialize a backend without a local schema."""
        from finboard import cli

        app = DashboardApp(MagicMock(spec=Store))
        cli._run(app, argparse.Namespace(command="db", action="init"))

        out = capsys.readouterr().out
        assert "Database initialized" not in out
        assert "no local schema" in out

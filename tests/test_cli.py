"""
Tests for the Typer CLI, run against the bundled sample data.
"""

import pytest
from typer.testing import CliRunner

from barberslots import __version__
from barberslots.cli.app import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def no_config_file(tmp_path, monkeypatch):
    """Keep a developer's config.yaml out of the tests."""
    monkeypatch.setattr("barberslots.config.get_default_config_path", lambda: tmp_path / "config.yaml")


def test_slots_lists_free_times():
    result = runner.invoke(app, ["slots", "1", "1", "--date", "2024-11-25", "--sample"])

    assert result.exit_code == 0
    assert "André Barbosa" in result.output
    assert "15 horário(s)" in result.output


def test_slots_on_day_off():
    result = runner.invoke(app, ["slots", "3", "1", "--date", "2024-11-30", "--sample"])

    assert result.exit_code == 0
    assert "folga" in result.output
    assert "Nenhum horário disponível" in result.output


def test_slots_unknown_employee():
    result = runner.invoke(app, ["slots", "99", "1", "--date", "2024-11-25", "--sample"])

    assert result.exit_code == 1
    assert "Erro" in result.output


def test_slots_bad_date():
    result = runner.invoke(app, ["slots", "1", "1", "--date", "25/11/2024", "--sample"])
    assert result.exit_code == 1


def test_check_free_and_taken():
    free = runner.invoke(app, ["check", "1", "1", "2024-11-25 09:30", "--sample"])
    taken = runner.invoke(app, ["check", "1", "1", "2024-11-25 09:00", "--sample"])

    assert free.exit_code == 0
    assert "está disponível" in free.output
    assert taken.exit_code == 2
    assert "não está disponível" in taken.output


def test_book_success():
    result = runner.invoke(app, ["book", "3", "1", "1", "2024-11-25 12:00", "--sample"])

    assert result.exit_code == 0
    assert "Agendamento criado" in result.output
    assert "25/11/2024 às 12:00" in result.output


def test_book_conflict():
    result = runner.invoke(app, ["book", "3", "1", "1", "2024-11-25 09:00", "--sample"])

    assert result.exit_code == 1
    assert "Erro" in result.output


def test_agenda():
    result = runner.invoke(app, ["agenda", "--date", "2024-11-25", "--search", "rafael", "--sample"])

    assert result.exit_code == 0
    assert "Lucas Mendes" in result.output
    assert "João Silva" not in result.output


def test_report():
    result = runner.invoke(
        app, ["report", "--start", "2024-11-25", "--end", "2024-11-30", "--sample"]
    )

    assert result.exit_code == 0
    assert "Agendamentos: 7" in result.output
    assert "R$ 100.00" in result.output


def test_dashboard():
    result = runner.invoke(app, ["dashboard", "--date", "2024-11-25", "--sample"])

    assert result.exit_code == 0
    assert "R$ 100.00" in result.output


def test_employees():
    result = runner.invoke(app, ["employees", "--sample"])

    assert result.exit_code == 0
    assert "Rafael Gomes" in result.output


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_missing_config_file(tmp_path):
    result = runner.invoke(app, ["employees", "--config", str(tmp_path / "missing.yaml")])
    assert result.exit_code == 1


def test_clients_search():
    result = runner.invoke(app, ["clients", "--search", "silva", "--sample"])

    assert result.exit_code == 0
    assert "João Silva" in result.output
    assert "Pedro Santos" not in result.output


def test_client_add():
    result = runner.invoke(app, ["client-add", "Bruno Lima", "--phone", "(11) 90000-0000", "--sample"])

    assert result.exit_code == 0
    assert "Bruno Lima cadastrado" in result.output


def test_client_update_without_changes():
    result = runner.invoke(app, ["client-update", "1", "--sample"])

    assert result.exit_code == 0
    assert "Nenhuma alteração" in result.output


def test_client_with_appointments_is_not_deleted():
    result = runner.invoke(app, ["client-delete", "1", "--yes", "--sample"])

    assert result.exit_code == 1
    assert "Erro" in result.output


def test_employee_add_with_hours():
    result = runner.invoke(
        app,
        ["employee-add", "Bruno Lima", "--hours", "monday=09:00-18:00", "--hours", "sunday=off", "--sample"],
    )

    assert result.exit_code == 0
    assert "Bruno Lima cadastrado" in result.output


def test_employee_add_with_bad_hours():
    result = runner.invoke(app, ["employee-add", "Bruno Lima", "--hours", "funday=09:00-18:00", "--sample"])
    assert result.exit_code == 1


def test_employee_delete_asks_for_confirmation():
    declined = runner.invoke(app, ["employee-delete", "3", "--sample"], input="n\n")
    confirmed = runner.invoke(app, ["employee-delete", "3", "--sample"], input="y\n")

    assert declined.exit_code == 1
    assert "excluído" not in declined.output
    assert confirmed.exit_code == 0
    assert "Marcelo Costa excluído" in confirmed.output


def test_services_search():
    result = runner.invoke(app, ["services", "--search", "barba", "--sample"])

    assert result.exit_code == 0
    assert "Corte + Barba" in result.output
    assert "Sobrancelha" not in result.output


def test_service_update():
    result = runner.invoke(app, ["service-update", "2", "--price", "40", "--sample"])

    assert result.exit_code == 0
    assert "Barba Completa atualizado" in result.output

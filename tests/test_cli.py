"""Tests für die Kommandozeile (click): Einrichtung bis Export in einem Durchlauf."""

from datetime import date
from pathlib import Path

from click.testing import CliRunner

from config.manager import ConfigManager
from data.json_store import JsonFileStore
from engine.planner import SubstitutionPlanner
from main import cli


DAY = "2024-03-04"
MONDAY = date(2024, 3, 4)


def _invoke(runner: CliRunner, *args: str):
    return runner.invoke(cli, list(args), obj={})


def _prepare(runner: CliRunner) -> SubstitutionPlanner:
    """Config anlegen, Demo-Daten für MONDAY erzeugen, Planer auf die Datei."""
    result = _invoke(runner, "setup")
    assert result.exit_code == 0, result.output
    result = _invoke(runner, "generate", "--date", DAY, "--seed", "42", "--force")
    assert result.exit_code == 0, result.output
    config = ConfigManager().load()
    return SubstitutionPlanner(JsonFileStore(config.store.json_path), config.engine)


class TestCliWithoutConfig:
    def test_config_show_without_file(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = _invoke(runner, "config", "show")
            assert result.exit_code == 1
            assert "Keine Konfiguration gefunden" in result.output

    def test_setup_writes_default(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = _invoke(runner, "setup")
            assert result.exit_code == 0, result.output
            assert Path("config/substitution_config.yaml").exists()

            result = _invoke(runner, "config", "show")
            assert result.exit_code == 0, result.output
            assert "Muster-Gymnasium" in result.output

    def test_custom_config_path(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = _invoke(runner, "--config", "schule.yaml", "setup")
            assert result.exit_code == 0, result.output
            assert Path("schule.yaml").exists()


class TestCliWorkflow:
    def test_generate_writes_json(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            _prepare(runner)
            assert Path("output/vertretungen.json").exists()

    def test_vacant_and_free(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            planner = _prepare(runner)
            assert planner.vacant_slots(MONDAY)

            result = _invoke(runner, "vacant", DAY)
            assert result.exit_code == 0, result.output
            assert "Offene Stunden" in result.output

            result = _invoke(runner, "free", "04.03.2024", "1")
            assert result.exit_code == 0, result.output

    def test_assign_list_check_export(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            planner = _prepare(runner)
            vacancy, free = next(iter(planner.candidates_for_vacancies(MONDAY).items()))
            substitute = free[0]

            result = _invoke(
                runner, "assign", DAY, str(vacancy.period), vacancy.class_name,
                substitute.email, "--note", "Raum 12",
            )
            assert result.exit_code == 0, result.output
            assert "✓" in result.output

            planner.invalidate()
            records = planner.substitutions_for_date(MONDAY)
            assert len(records) == 1
            assert records[0].substitute_teacher.email == substitute.email
            assert records[0].note == "Raum 12"

            result = _invoke(runner, "list", DAY)
            assert result.exit_code == 0, result.output
            assert "Vertretungen" in result.output

            result = _invoke(runner, "check", DAY)
            assert result.exit_code == 0, result.output

            result = _invoke(runner, "export", DAY, "--format", "both", "-o", "out/plan")
            assert result.exit_code == 0, result.output
            assert Path("out/plan.xlsx").exists()
            assert Path("out/plan.pdf").exists()

    def test_assign_absent_substitute_fails(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            planner = _prepare(runner)
            vacancy = planner.vacant_slots(MONDAY)[0]
            absent = planner.absences(MONDAY)[0].teacher

            result = _invoke(
                runner, "assign", DAY, str(vacancy.period), vacancy.class_name, absent.email,
            )
            assert result.exit_code == 1
            assert "absentee_conflict" in result.output
            assert planner.substitutions_for_date(MONDAY) == []

    def test_assign_second_substitute_needs_update(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            planner = _prepare(runner)
            vacancy, free = next(iter(planner.candidates_for_vacancies(MONDAY).items()))
            first, second = free[0], free[1]
            args = ["assign", DAY, str(vacancy.period), vacancy.class_name]

            assert _invoke(runner, *args, first.email).exit_code == 0
            result = _invoke(runner, *args, second.email)
            assert result.exit_code == 1
            assert "conflict" in result.output

            result = _invoke(runner, *args, second.email, "--update")
            assert result.exit_code == 0, result.output
            records = planner.substitutions_for_date(MONDAY)
            assert [r.substitute_teacher.email for r in records] == [second.email]

    def test_list_empty_day(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            _prepare(runner)
            result = _invoke(runner, "list", "2024-03-05")
            assert result.exit_code == 0, result.output
            assert "Keine Vertretungen" in result.output

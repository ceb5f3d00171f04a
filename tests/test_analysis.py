"""Tests für die Konsistenzprüfung gespeicherter Vertretungen."""

from datetime import date
from pathlib import Path

from analysis.substitution_validator import (
    SubstitutionValidator,
    ValidationReport,
    ValidationViolation,
)
from data.json_store import JsonFileStore, SchoolRecords
from models.substitution import SubstitutionRecord
from models.teacher import TeacherRef
from models.timetable import AbsenceEntry, TimetableSlot


MONDAY = date(2024, 3, 4)

ALICE = TeacherRef(email="alice@school", name="Alice Smith")
BOB = TeacherRef(email="bob@school", name="Bob Jones")
CAROL = TeacherRef(email="carol@school", name="Carol White")
DAVE = TeacherRef(email="dave@school", name="Dave Brown")


# ─── Testdaten-Hilfsfunktionen ────────────────────────────────────────────────

def _make_store(tmp_path: Path, substitutions: list[SubstitutionRecord], absent=(ALICE,)) -> JsonFileStore:
    """Schreibt Vertretungen direkt in die Datei, ohne Zuweisungsprüfung."""
    records = SchoolRecords(
        teachers=[ALICE, BOB, CAROL, DAVE],
        classes=["6A", "7B"],
        timetable=[
            TimetableSlot(day=0, period=3, class_name="6A", subject="Math", teacher=ALICE),
            TimetableSlot(day=0, period=3, class_name="7B", subject="English",
                          teacher=TeacherRef(name="Bob Jones")),
            TimetableSlot(day=0, period=1, class_name="6A", subject="Art", teacher=CAROL),
        ],
        absences=[AbsenceEntry(date=MONDAY, teacher=TeacherRef(email=t.email)) for t in absent],
        substitutions=substitutions,
    )
    path = tmp_path / "vertretungen.json"
    records.save_json(path)
    return JsonFileStore(path)


def _record(period=3, class_name="6A", substitute=CAROL) -> SubstitutionRecord:
    return SubstitutionRecord(
        date=MONDAY, period=period, class_name=class_name, substitute_teacher=substitute,
    )


def _constraints(report: ValidationReport) -> list[str]:
    return sorted(v.constraint for v in report.violations)


# ─── VALIDIERUNG ──────────────────────────────────────────────────────────────

class TestSubstitutionValidator:
    def test_clean_day_is_valid(self, tmp_path):
        """Eine korrekte Vertretung → keine Verletzungen."""
        store = _make_store(tmp_path, [_record()])
        report = SubstitutionValidator(store).validate(MONDAY)
        assert report.is_valid
        assert report.violations == []

    def test_uncovered_vacancy_is_warning(self, tmp_path):
        store = _make_store(tmp_path, [])
        report = SubstitutionValidator(store).validate(MONDAY)
        assert report.is_valid
        assert _constraints(report) == ["uncovered_vacancy"]
        assert report.warnings[0].entity == "Std. 3 6A"

    def test_duplicate_records_for_slot(self, tmp_path):
        store = _make_store(tmp_path, [_record(), _record(class_name="6 a", substitute=DAVE)])
        report = SubstitutionValidator(store).validate(MONDAY)
        assert not report.is_valid
        assert "slot_uniqueness" in _constraints(report)

    def test_substitute_teaching_regularly(self, tmp_path):
        """Bob ist nur mit Namen im Plan und wird per E-Mail als Vertretung eingetragen."""
        store = _make_store(tmp_path, [_record(substitute=TeacherRef(email="bob@school"))])
        report = SubstitutionValidator(store).validate(MONDAY)
        assert not report.is_valid
        errors = [v for v in report.errors if v.constraint == "double_booking"]
        assert len(errors) == 1
        assert errors[0].entity == "Bob Jones"
        assert "6A" in errors[0].description and "7B" in errors[0].description

    def test_substitute_in_two_classes(self, tmp_path):
        store = _make_store(
            tmp_path,
            [_record(substitute=DAVE), _record(class_name="7B", substitute=DAVE)],
            absent=(ALICE, BOB),
        )
        report = SubstitutionValidator(store).validate(MONDAY)
        assert [v.constraint for v in report.errors] == ["double_booking"]

    def test_absent_substitute(self, tmp_path):
        store = _make_store(tmp_path, [_record(period=1, substitute=TeacherRef(name="Alice Smith"))])
        report = SubstitutionValidator(store).validate(MONDAY)
        assert "absentee_substitute" in [v.constraint for v in report.errors]

    def test_substitution_without_regular_slot(self, tmp_path):
        store = _make_store(tmp_path, [_record(), _record(period=6, class_name="9C", substitute=DAVE)])
        report = SubstitutionValidator(store).validate(MONDAY)
        assert report.is_valid
        assert _constraints(report) == ["no_regular_slot"]

    def test_other_dates_ignored(self, tmp_path):
        other = SubstitutionRecord(date=date(2024, 3, 11), period=3, class_name="6A",
                                   substitute_teacher=BOB)
        store = _make_store(tmp_path, [_record(), other])
        assert SubstitutionValidator(store).validate(MONDAY).violations == []


class TestValidationReport:
    def test_errors_and_warnings_split(self):
        report = ValidationReport(
            date=MONDAY,
            violations=[
                ValidationViolation(severity="error", constraint="double_booking",
                                    description="x", entity="Bob"),
                ValidationViolation(severity="warning", constraint="uncovered_vacancy",
                                    description="y", entity="Std. 3 6A"),
            ],
            is_valid=False,
        )
        assert len(report.errors) == 1
        assert len(report.warnings) == 1

    def test_print_rich_runs(self, capsys):
        report = ValidationReport(date=MONDAY, violations=[], is_valid=True)
        report.print_rich()
        assert "KONSISTENT" in capsys.readouterr().out

"""Tests für den Export des Vertretungsplans (Excel + PDF)."""

from datetime import date
from pathlib import Path

import pytest

from config.defaults import default_school_config
from export.excel_export import SubstitutionExcelExporter
from export.helpers import (
    COLORS,
    SUBSTITUTION_COLUMNS,
    SubstitutionSheet,
    build_sheet,
    format_day,
    hex_to_rgb,
    open_rows,
    row_color,
    substitution_row,
    teacher_cell,
)
from export.pdf_export import SubstitutionPdfExporter, _pdf_safe
from models.substitution import SubstitutionRecord, VacantSlot
from models.teacher import TeacherRef


MONDAY = date(2024, 3, 4)

ALICE = TeacherRef(email="alice@school", name="Alice Smith")
BOB = TeacherRef(email="bob@school", name="Bob Jones")
CAROL = TeacherRef(email="carol@school", name="Carol White")


# ─── Testdaten-Hilfsfunktionen ────────────────────────────────────────────────

def _make_records() -> list[SubstitutionRecord]:
    return [
        SubstitutionRecord(date=MONDAY, period=3, class_name="6A", regular_subject="Math",
                           absent_teacher=ALICE, substitute_teacher=CAROL),
        SubstitutionRecord(date=MONDAY, period=4, class_name="7B", regular_subject="Englisch",
                           absent_teacher=ALICE, substitute_teacher=BOB,
                           substitute_subject="Deutsch", note="Raum 12 – Aufgaben liegen bereit"),
    ]


def _make_sheet(records=None, open_slots=None, source="primary") -> SubstitutionSheet:
    return SubstitutionSheet(
        day=MONDAY,
        school_name="Export-Test-Gymnasium",
        day_label=format_day(MONDAY),
        records=_make_records() if records is None else records,
        open_slots=open_slots or [
            VacantSlot(date=MONDAY, period=5, class_name="9A", subject="Physik",
                       absent_teacher=ALICE),
        ],
        source=source,
    )


# ─── HILFSFUNKTIONEN ──────────────────────────────────────────────────────────

class TestHelpers:
    def test_format_day(self):
        assert format_day(MONDAY) == "Mo, 04.03.2024"
        config = default_school_config().model_copy(
            update={"day_names": ["Montag", "Dienstag", "Mittwoch", "Donnerstag", "Freitag"]})
        assert format_day(MONDAY, config) == "Montag, 04.03.2024"

    def test_hex_to_rgb(self):
        assert hex_to_rgb("4472C4") == (68, 114, 196)
        assert hex_to_rgb("#FFFFFF") == (255, 255, 255)

    def test_teacher_cell(self):
        assert teacher_cell(None) == "—"
        assert teacher_cell(TeacherRef(email="x@school")) == "x@school"

    def test_substitution_row(self):
        row = substitution_row(_make_records()[0])
        assert len(row) == len(SUBSTITUTION_COLUMNS)
        assert row[:6] == ["3", "6A", "Math", "Alice Smith", "Carol White", "Math"]

    def test_row_color_marks_subject_swap(self):
        same, swap = _make_records()
        assert row_color(same) == COLORS["substitution"]
        assert row_color(swap) == COLORS["subject_swap"]

    def test_open_rows(self):
        assert open_rows(_make_sheet().open_slots) == [["5", "9A", "Physik", "Alice Smith"]]

    def test_sheet_title(self):
        assert _make_sheet().title == "Vertretungsplan Mo, 04.03.2024"

    def test_pdf_safe(self):
        assert _pdf_safe("a – b → c") == "a - b -> c"
        assert _pdf_safe("Müller") == "Müller"


class FakePlanner:
    def __init__(self, result, vacancies, index):
        self._result = result
        self._vacancies = vacancies
        self._index = index

    def fetch_substitutions(self, day):
        return self._result

    def vacant_slots(self, day):
        return self._vacancies

    def index_for(self, day):
        return self._index


class TestBuildSheet:
    def test_open_slots_exclude_covered(self):
        from engine.reconciliation import ReconciledSubstitutions
        from engine.timetable_index import TimetableIndex

        records = _make_records()[:1]
        index = TimetableIndex.build(MONDAY, [], records)
        vacancies = [
            VacantSlot(date=MONDAY, period=3, class_name="6A", subject="Math", absent_teacher=ALICE),
            VacantSlot(date=MONDAY, period=5, class_name="9A", subject="Physik", absent_teacher=ALICE),
        ]
        planner = FakePlanner(ReconciledSubstitutions(records, "primary"), vacancies, index)

        sheet = build_sheet(planner, MONDAY, default_school_config())
        assert sheet.school_name == "Muster-Gymnasium"
        assert sheet.records == records
        assert [v.class_name for v in sheet.open_slots] == ["9A"]


# ─── EXCEL ────────────────────────────────────────────────────────────────────

class TestExcelExport:
    def test_workbook_sheets_and_rows(self, tmp_path: Path):
        from openpyxl import load_workbook

        path = SubstitutionExcelExporter(_make_sheet()).export(tmp_path / "plan.xlsx")
        assert path.exists()

        wb = load_workbook(path)
        assert wb.sheetnames == ["Vertretungen", "Offene Stunden"]
        ws = wb["Vertretungen"]
        assert ws.cell(row=1, column=1).value == "Vertretungsplan Mo, 04.03.2024"
        assert [ws.cell(row=4, column=c).value for c in range(1, 8)] == SUBSTITUTION_COLUMNS
        assert ws.cell(row=5, column=1).value == 3
        assert ws.cell(row=5, column=5).value == "Carol White"
        assert ws.cell(row=6, column=6).value == "Deutsch"
        assert ws.freeze_panes == "A5"

        offen = wb["Offene Stunden"]
        assert offen.cell(row=5, column=2).value == "9A"

    def test_empty_day(self, tmp_path: Path):
        from openpyxl import load_workbook

        sheet = _make_sheet(records=[], source="empty")
        sheet = sheet.model_copy(update={"open_slots": []})
        path = SubstitutionExcelExporter(sheet).export(tmp_path / "leer" / "plan.xlsx")
        wb = load_workbook(path)
        assert wb["Vertretungen"].cell(row=5, column=1).value == "Keine Vertretungen."
        assert wb["Offene Stunden"].cell(row=5, column=1).value == "Alle Stunden vertreten."


# ─── PDF ──────────────────────────────────────────────────────────────────────

class TestPdfExport:
    @pytest.mark.parametrize("source", ["primary", "fallback"])
    def test_pdf_written(self, tmp_path: Path, source):
        path = SubstitutionPdfExporter(_make_sheet(source=source)).export(tmp_path / "plan.pdf")
        assert path.exists()
        assert path.read_bytes().startswith(b"%PDF")

    def test_many_rows_paginate(self, tmp_path: Path):
        records = [
            SubstitutionRecord(date=MONDAY, period=1 + i % 8, class_name=f"{5 + i // 8}X{i}",
                               regular_subject="Math", substitute_teacher=CAROL)
            for i in range(60)
        ]
        path = SubstitutionPdfExporter(_make_sheet(records=records)).export(tmp_path / "lang.pdf")
        assert path.stat().st_size > 0

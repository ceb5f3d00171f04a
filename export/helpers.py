"""Gemeinsame Hilfsfunktionen für Excel-, PDF- und Terminal-Ausgabe."""

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel

from config.schema import SchoolConfig
from models.substitution import SubstitutionRecord, VacantSlot
from models.teacher import TeacherRef
from models.timetable import DAY_NAMES

# ─── Farbpalette (RRGGBB, ohne #) ─────────────────────────────────────────────

COLORS: dict[str, str] = {
    "header":       "4472C4",
    "substitution": "B3FFB3",
    "subject_swap": "FFF2B3",
    "open":         "FF9999",
    "fallback":     "FFD4B3",
    "free":         "F5F5F5",
}

# ─── Spalten ──────────────────────────────────────────────────────────────────

SUBSTITUTION_COLUMNS = [
    "Std.", "Klasse", "Fach", "Abwesend", "Vertretung", "Vertr.-Fach", "Bemerkung",
]
OPEN_COLUMNS = ["Std.", "Klasse", "Fach", "Abwesend"]


def hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    """Wandelt RRGGBB-String in (r, g, b)-Tupel um."""
    h = hex_color.lstrip("#")
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)


def today_str() -> str:
    """Gibt das heutige Datum als DD.MM.YYYY zurück."""
    return date.today().strftime("%d.%m.%Y")


def format_day(day: date, config: Optional[SchoolConfig] = None) -> str:
    """'Mo, 04.03.2024'."""
    name = config.day_name(day.weekday()) if config else DAY_NAMES[day.weekday()]
    return f"{name}, {day.strftime('%d.%m.%Y')}"


def teacher_cell(ref: Optional[TeacherRef]) -> str:
    if ref is None:
        return "—"
    return ref.label


# ─── Blatt-Daten ──────────────────────────────────────────────────────────────

class SubstitutionSheet(BaseModel):
    """Alles, was ein Vertretungsblatt für einen Tag braucht."""

    day: date
    school_name: str
    day_label: str
    records: list[SubstitutionRecord]
    open_slots: list[VacantSlot] = []
    source: Literal["primary", "fallback", "empty"] = "primary"

    @property
    def title(self) -> str:
        return f"Vertretungsplan {self.day_label}"


def build_sheet(planner, day: date, config: SchoolConfig) -> SubstitutionSheet:
    """Liest Vertretungen und offene Stunden eines Tages über den Planer."""
    from engine.vacancy import uncovered_slots

    reconciled = planner.fetch_substitutions(day)
    open_slots = uncovered_slots(planner.vacant_slots(day), planner.index_for(day))
    return SubstitutionSheet(
        day=day,
        school_name=config.school_name,
        day_label=format_day(day, config),
        records=reconciled.records,
        open_slots=open_slots,
        source=reconciled.source,
    )


# ─── Zeilen ───────────────────────────────────────────────────────────────────

def substitution_row(record: SubstitutionRecord) -> list[str]:
    """Eine Tabellenzeile in der Reihenfolge von SUBSTITUTION_COLUMNS."""
    subject = record.substitute_subject or record.regular_subject
    return [
        str(record.period),
        record.class_name,
        record.regular_subject or "—",
        teacher_cell(record.absent_teacher),
        teacher_cell(record.substitute_teacher),
        subject or "—",
        record.note,
    ]


def substitution_rows(records: list[SubstitutionRecord]) -> list[list[str]]:
    return [substitution_row(r) for r in records]


def open_rows(vacancies: list[VacantSlot]) -> list[list[str]]:
    return [
        [str(v.period), v.class_name, v.subject or "—", teacher_cell(v.absent_teacher)]
        for v in vacancies
    ]


def row_color(record: SubstitutionRecord) -> str:
    """Grün für Vertretung, gelb wenn ein anderes Fach unterrichtet wird."""
    if (
        record.regular_subject
        and record.substitute_subject
        and record.substitute_subject != record.regular_subject
    ):
        return COLORS["subject_swap"]
    return COLORS["substitution"]

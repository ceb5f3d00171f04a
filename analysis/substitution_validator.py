"""Prüfung der gespeicherten Vertretungen eines Tages.

Sicherheitsnetz unabhängig von der Zuweisungsprüfung: liest den Stand aus dem
Datenspeicher und meldet Dubletten, Doppelbelegungen und abwesende
Vertretungen. Offene Stunden ohne Vertretung sind Warnungen.
"""

from collections import defaultdict
from datetime import date as Date
from typing import Literal

from pydantic import BaseModel

from data.record_store import RecordStore
from engine.normalizer import class_key, same_teacher, teacher_key
from engine.timetable_index import TimetableIndex
from engine.vacancy import uncovered_slots, vacant_slots
from models.substitution import SubstitutionRecord
from models.teacher import TeacherRoster
from models.timetable import AbsenceEntry


class ValidationViolation(BaseModel):
    """Eine einzelne Regelverletzung."""

    severity: Literal["error", "warning"]
    constraint: str      # z.B. "double_booking"
    description: str
    entity: str          # Lehrkraft oder Stunde


class ValidationReport(BaseModel):
    """Ergebnis der Prüfung eines Datums."""

    date: Date
    violations: list[ValidationViolation]
    is_valid: bool       # True wenn keine Errors (Warnings ok)

    @property
    def errors(self) -> list[ValidationViolation]:
        return [v for v in self.violations if v.severity == "error"]

    @property
    def warnings(self) -> list[ValidationViolation]:
        return [v for v in self.violations if v.severity == "warning"]

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel
        from rich.table import Table
        from rich import box

        console = Console()
        status = (
            "[bold green]✓ KONSISTENT[/bold green]"
            if self.is_valid
            else "[bold red]✗ VERLETZUNGEN GEFUNDEN[/bold red]"
        )
        lines = [status, f"Fehler: {len(self.errors)} | Warnungen: {len(self.warnings)}"]
        console.print(Panel(
            "\n".join(lines),
            title=f"Vertretungen {self.date.strftime('%d.%m.%Y')}",
            border_style="cyan",
        ))

        if not self.violations:
            console.print("[dim]Keine Verletzungen gefunden.[/dim]")
            return

        table = Table(box=box.ROUNDED, show_lines=True)
        table.add_column("Typ", width=8)
        table.add_column("Regel", width=20)
        table.add_column("Betrifft", width=24)
        table.add_column("Beschreibung")

        for v in self.violations:
            color = "red" if v.severity == "error" else "yellow"
            table.add_row(
                f"[{color}]{v.severity.upper()}[/{color}]",
                v.constraint,
                v.entity,
                v.description,
            )
        console.print(table)


class SubstitutionValidator:
    """Prüft die Vertretungen eines Datums gegen den aktuellen Datenstand."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def validate(self, day: Date) -> ValidationReport:
        """Führt alle Prüfungen durch und gibt einen ValidationReport zurück."""
        slots = self.store.timetable_for_date(day)
        records = [r for r in self.store.substitutions_for_date(day) if r.date == day]
        roster = TeacherRoster(teachers=self.store.roster_teachers())
        absences = [
            AbsenceEntry(date=day, teacher=roster.resolve(a.teacher))
            for a in self.store.absent_teachers(day)
        ]
        index = TimetableIndex.build(day, slots, records)

        violations: list[ValidationViolation] = []
        violations.extend(self._check_slot_uniqueness(records))
        violations.extend(self._check_double_booking(index, roster))
        violations.extend(self._check_absent_substitutes(records, absences, roster))
        violations.extend(self._check_regular_slot_exists(records, index))
        violations.extend(self._check_uncovered(day, absences, index))

        has_errors = any(v.severity == "error" for v in violations)
        return ValidationReport(date=day, violations=violations, is_valid=not has_errors)

    # ── Einzelne Prüfungen ────────────────────────────────────────────────────

    def _check_slot_uniqueness(
        self, records: list[SubstitutionRecord]
    ) -> list[ValidationViolation]:
        """Höchstens eine Vertretung pro (Datum, Stunde, Klasse)."""
        seen: dict[tuple, list[SubstitutionRecord]] = defaultdict(list)
        for r in records:
            seen[r.slot_key].append(r)

        violations: list[ValidationViolation] = []
        for (_, period, _), dupes in seen.items():
            if len(dupes) > 1:
                names = ", ".join(r.substitute_teacher.label for r in dupes)
                violations.append(ValidationViolation(
                    severity="error",
                    constraint="slot_uniqueness",
                    entity=f"Std. {period} {dupes[0].class_name}",
                    description=f"{len(dupes)} Vertretungen für dieselbe Stunde: {names}",
                ))
        return violations

    def _check_double_booking(
        self, index: TimetableIndex, roster: TeacherRoster
    ) -> list[ValidationViolation]:
        """Keine Lehrkraft in einer Stunde in zwei Klassen (regulär oder als Vertretung)."""
        violations: list[ValidationViolation] = []
        for period in index.periods:
            busy: dict[str, list[str]] = defaultdict(list)
            labels: dict[str, str] = {}
            for slot in index.slots_at(period):
                teacher = roster.resolve(slot.teacher)
                key = teacher_key(teacher)
                busy[key].append(slot.class_name)
                labels[key] = teacher.label
            for key, classes in busy.items():
                if len(classes) > 1:
                    violations.append(ValidationViolation(
                        severity="error",
                        constraint="double_booking",
                        entity=labels[key],
                        description=(
                            f"Stunde {period}: gleichzeitig in "
                            f"{', '.join(sorted(classes, key=class_key))}"
                        ),
                    ))
        return violations

    def _check_absent_substitutes(
        self,
        records: list[SubstitutionRecord],
        absences: list[AbsenceEntry],
        roster: TeacherRoster,
    ) -> list[ValidationViolation]:
        """Keine Vertretung durch eine selbst abwesende Lehrkraft."""
        violations: list[ValidationViolation] = []
        for r in records:
            substitute = roster.resolve(r.substitute_teacher)
            if any(same_teacher(substitute, a.teacher) for a in absences):
                violations.append(ValidationViolation(
                    severity="error",
                    constraint="absentee_substitute",
                    entity=substitute.label,
                    description=(
                        f"Std. {r.period} {r.class_name}: Vertretung ist selbst abwesend"
                    ),
                ))
        return violations

    def _check_regular_slot_exists(
        self, records: list[SubstitutionRecord], index: TimetableIndex
    ) -> list[ValidationViolation]:
        violations: list[ValidationViolation] = []
        for r in records:
            if index.regular_slot(r.period, r.class_name) is None:
                violations.append(ValidationViolation(
                    severity="warning",
                    constraint="no_regular_slot",
                    entity=f"Std. {r.period} {r.class_name}",
                    description="Vertretung ohne reguläre Stunde im Stundenplan",
                ))
        return violations

    def _check_uncovered(
        self, day: Date, absences: list[AbsenceEntry], index: TimetableIndex
    ) -> list[ValidationViolation]:
        open_slots = uncovered_slots(vacant_slots(day, absences, index), index)
        return [
            ValidationViolation(
                severity="warning",
                constraint="uncovered_vacancy",
                entity=f"Std. {v.period} {v.class_name}",
                description=f"{v.subject} ({v.absent_teacher.label}) ohne Vertretung",
            )
            for v in open_slots
        ]

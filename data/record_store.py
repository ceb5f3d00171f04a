"""Schnittstelle zum externen Datenspeicher (Stundenplan, Abwesenheiten, Vertretungen).

Die Engine liest und schreibt ausschließlich über diese Methoden. Transport
und Format gehören der jeweiligen Implementierung (JSON-Datei, Web-App).
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import date as Date
from typing import Optional

from engine.normalizer import class_key, same_teacher
from models.substitution import SubstitutionRecord
from models.teacher import TeacherRef
from models.timetable import AbsenceEntry, TimetableSlot


class RecordStore(ABC):
    """Lese-/Schreibzugriffe auf den externen Datenspeicher.

    Fehler beim Zugriff werden als engine.errors.UpstreamUnavailable
    gemeldet, nie als leeres Ergebnis.
    """

    @abstractmethod
    def weekly_timetable(
        self,
        teacher: Optional[TeacherRef] = None,
        week_of: Optional[Date] = None,
    ) -> dict[int, list[TimetableSlot]]:
        """Wochenplan gruppiert nach Wochentag (0=Mo). teacher=None → alle."""

    @abstractmethod
    def absent_teachers(self, day: Date) -> list[AbsenceEntry]:
        """Als abwesend gemeldete Lehrkräfte eines Datums."""

    @abstractmethod
    def roster_teachers(self) -> list[TeacherRef]:
        """Alle Lehrkräfte in Listenreihenfolge."""

    @abstractmethod
    def roster_classes(self) -> list[str]:
        """Alle Klassen."""

    @abstractmethod
    def daily_timetable_merged(self, day: Date) -> list[dict]:
        """Tagesplan mit eingearbeiteten Vertretungen (rohe Einträge, isSubstitution-Flag)."""

    @abstractmethod
    def persist_substitution(
        self,
        record: SubstitutionRecord,
        expected_substitute: Optional[TeacherRef] = None,
    ) -> SubstitutionRecord:
        """Upsert auf (date, period, class).

        Bedingter Schreibvorgang: weicht die aktuell gespeicherte Vertretung
        der Stunde von expected_substitute ab (None = keine Vertretung
        erwartet), wird ConflictError ausgelöst.
        """

    @abstractmethod
    def substitutions_for_date(self, day: Date) -> list[SubstitutionRecord]:
        """Gespeicherte Vertretungen eines Datums."""

    # ─── Komfort ──────────────────────────────────────────────────────────────

    def timetable_for_date(self, day: Date) -> list[TimetableSlot]:
        """Alle regulären Stunden, die an `day` stattfinden."""
        weekly = self.weekly_timetable(week_of=day)
        slots: list[TimetableSlot] = []
        for day_slots in weekly.values():
            slots.extend(s for s in day_slots if s.applies_to(day))
        return slots


# ─── Hilfsfunktionen für Implementierungen ────────────────────────────────────

def group_by_day(slots: list[TimetableSlot]) -> dict[int, list[TimetableSlot]]:
    """Gruppiert Stunden nach Wochentag (Datums-Stunden nach date.weekday())."""
    grouped: dict[int, list[TimetableSlot]] = defaultdict(list)
    for slot in slots:
        day = slot.day if slot.day is not None else slot.date.weekday()
        grouped[day].append(slot)
    for day_slots in grouped.values():
        day_slots.sort(key=lambda s: (s.period, class_key(s.class_name)))
    return dict(grouped)


def merge_daily_timetable(
    day: Date,
    slots: list[TimetableSlot],
    substitutions: list[SubstitutionRecord],
) -> list[dict]:
    """Erzeugt die Tagesansicht "Stundenplan mit Vertretungen" im Wire-Format.

    Vertretene Stunden tragen isSubstitution=True, die Vertretung in
    teacherName/teacherEmail und die reguläre Lehrkraft in originalTeacher.
    """
    subs = {(r.period, class_key(r.class_name)): r for r in substitutions if r.date == day}
    rows: list[dict] = []
    for slot in sorted(slots, key=lambda s: (s.period, class_key(s.class_name))):
        if not slot.applies_to(day):
            continue
        record = subs.pop((slot.period, class_key(slot.class_name)), None)
        if record is None:
            rows.append({
                "period": slot.period,
                "class": slot.class_name,
                "subject": slot.subject,
                "teacherName": slot.teacher.name or "",
                "teacherEmail": slot.teacher.email or "",
                "isSubstitution": False,
            })
            continue
        rows.append({
            "period": slot.period,
            "class": slot.class_name,
            "subject": record.substitute_subject or slot.subject,
            "originalSubject": slot.subject,
            "teacherName": record.substitute_teacher.name or "",
            "teacherEmail": record.substitute_teacher.email or "",
            "originalTeacher": slot.teacher.email or slot.teacher.name or "",
            "isSubstitution": True,
            "note": record.note,
        })
    # Vertretungen ohne reguläre Stunde (z.B. Zusatzstunde)
    for record in subs.values():
        rows.append({
            "period": record.period,
            "class": record.class_name,
            "subject": record.substitute_subject,
            "teacherName": record.substitute_teacher.name or "",
            "teacherEmail": record.substitute_teacher.email or "",
            "originalTeacher": (
                record.absent_teacher.email or record.absent_teacher.name or ""
            ) if record.absent_teacher else "",
            "isSubstitution": True,
            "note": record.note,
        })
    rows.sort(key=lambda r: (r["period"], class_key(r["class"])))
    return rows


def substitute_matches(
    current: Optional[SubstitutionRecord], expected: Optional[TeacherRef]
) -> bool:
    """Prüft die Vorbedingung eines bedingten Schreibvorgangs."""
    if current is None:
        return expected is None
    if expected is None:
        return False
    return same_teacher(current.substitute_teacher, expected)

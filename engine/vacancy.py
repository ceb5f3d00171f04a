"""Offene Stunden: regulärer Unterricht abwesender Lehrkräfte an einem Datum."""

import logging
from datetime import date as Date
from typing import Iterable

from engine.normalizer import class_key, normalize, same_teacher
from engine.timetable_index import TimetableIndex
from models.substitution import VacantSlot
from models.timetable import AbsenceEntry

logger = logging.getLogger(__name__)


def vacant_slots(
    day: Date,
    absences: Iterable[AbsenceEntry],
    index: TimetableIndex,
) -> list[VacantSlot]:
    """Jede reguläre Stunde jeder abwesenden Lehrkraft wird genau eine offene Stunde.

    Lehrkräfte ohne Unterricht an diesem Tag tragen nichts bei. Mehrfach
    gemeldete Abwesenheiten derselben Lehrkraft werden nur einmal gezählt,
    auch wenn eine Meldung nur die E-Mail und die andere nur den Namen trägt.
    Jede (Stunde, Klasse) erscheint höchstens einmal.
    Sortierung: Stunde aufsteigend, dann Klasse.
    """
    result: list[VacantSlot] = []
    absentees = []
    emitted: set[tuple[int, str]] = set()

    for absence in absences:
        if absence.date != day:
            continue
        if any(same_teacher(absence.teacher, a) for a in absentees):
            continue
        absentees.append(absence.teacher)

        taught = index.slots_of(absence.teacher)
        if not taught:
            logger.debug(f"{absence.teacher.label}: kein Unterricht am {day.isoformat()}")
        for t in taught:
            slot = (t.period, class_key(t.class_name))
            if slot in emitted:
                continue
            emitted.add(slot)
            result.append(VacantSlot(
                date=day,
                period=t.period,
                class_name=t.class_name,
                subject=t.subject,
                absent_teacher=absence.teacher,
            ))

    result.sort(key=lambda v: (v.period, normalize(v.class_name), v.class_name))
    return result


def covered_slots(
    vacancies: Iterable[VacantSlot], index: TimetableIndex
) -> list[VacantSlot]:
    """Offene Stunden, für die bereits eine Vertretung gespeichert ist."""
    return [v for v in vacancies if index.substitution_at(v.period, v.class_name)]


def uncovered_slots(
    vacancies: Iterable[VacantSlot], index: TimetableIndex
) -> list[VacantSlot]:
    """Offene Stunden ohne Vertretung."""
    return [v for v in vacancies if not index.substitution_at(v.period, v.class_name)]

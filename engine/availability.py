"""Freie Lehrkräfte für eine Stunde: Lehrerliste − Ausgeschlossene − Belegte."""

from datetime import date as Date
from typing import Iterable

from engine.normalizer import same_teacher
from engine.timetable_index import TimetableIndex
from models.teacher import TeacherRef


def free_teachers(
    day: Date,
    period: int,
    excluding: Iterable[TeacherRef],
    roster_teachers: Iterable[TeacherRef],
    index: TimetableIndex,
) -> list[TeacherRef]:
    """Kandidaten für eine Vertretung in `period` am Datum `day`.

    Wer bereits in dieser Stunde vertritt, steht nach einem Neuaufbau des
    Index in occupancy(period) und fällt damit automatisch heraus. Ebenso
    fällt heraus, wer in dieser Stunde regulär unterrichtet, auch wenn die
    eigene Stunde bereits vertreten wird; eine Zuweisung würde abgelehnt.
    Reihenfolge der Lehrerliste bleibt erhalten, ohne Ranking.
    """
    if index.date != day:
        raise ValueError(
            f"Index gilt für {index.date.isoformat()}, nicht für {day.isoformat()}"
        )

    excluded = list(excluding)
    result: list[TeacherRef] = []
    for teacher in roster_teachers:
        if any(same_teacher(teacher, ex) for ex in excluded):
            continue
        if index.is_occupied(teacher, period) or index.teaches_regularly(teacher, period):
            continue
        if any(same_teacher(teacher, r) for r in result):
            continue
        result.append(teacher)
    return result

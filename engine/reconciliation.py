"""Abgleich "aktuelle Vertretungen eines Tages" aus zwei Quellen.

Primärquelle sind die gespeicherten Vertretungen. Nur wenn sie leer ist, wird
der zusammengeführte Tagesplan (isSubstitution-Zeilen) ausgewertet. Die beiden
Quellen werden nie zeilenweise gemischt.
"""

import logging
from datetime import date as Date
from typing import Any, Literal, NamedTuple, Optional

from pydantic import ValidationError as PydanticValidationError

from data.record_store import RecordStore
from engine.normalizer import class_key
from models.substitution import SubstitutionRecord

logger = logging.getLogger(__name__)

Source = Literal["primary", "fallback", "empty"]

# Feldnamen der Tagesplan-Zeilen, in Prioritätsreihenfolge
_ABSENT_FIELDS = ("absentTeacher", "originalTeacher")
_REGULAR_SUBJECT_FIELDS = ("regularSubject", "originalSubject", "subject")
_SUBSTITUTE_SUBJECT_FIELDS = ("substituteSubject", "subject")
_CLASS_FIELDS = ("class", "className")


class ReconciledSubstitutions(NamedTuple):
    records: list[SubstitutionRecord]
    source: Source


def _first(row: dict, fields: tuple[str, ...]) -> Any:
    for field in fields:
        value = row.get(field)
        if value not in (None, ""):
            return value
    return None


def _substitute_of(row: dict) -> Optional[dict]:
    """teacherName und teacherEmail gehören zusammen, wenn beide gesetzt sind."""
    explicit = _first(row, ("substituteTeacher", "teacher"))
    if explicit is not None:
        return explicit
    email, name = row.get("teacherEmail"), row.get("teacherName")
    if email or name:
        return {"email": email or None, "name": name or None}
    return None


def _is_truthy(flag: Any) -> bool:
    if isinstance(flag, str):
        return flag.strip().lower() in ("true", "1", "yes", "ja", "x")
    return bool(flag)


def record_from_merged_row(day: Date, row: dict) -> Optional[SubstitutionRecord]:
    """Wandelt eine isSubstitution-Zeile des Tagesplans in eine Vertretung.

    Liefert None bei unvollständigen Zeilen.
    """
    data = {
        "date": row.get("date") or day,
        "period": row.get("period"),
        "class_name": _first(row, _CLASS_FIELDS),
        "regular_subject": _first(row, _REGULAR_SUBJECT_FIELDS) or "",
        "absent_teacher": _first(row, _ABSENT_FIELDS),
        "substitute_teacher": _substitute_of(row),
        "substitute_subject": _first(row, _SUBSTITUTE_SUBJECT_FIELDS) or "",
        "note": row.get("note") or "",
    }
    try:
        return SubstitutionRecord.model_validate(data)
    except PydanticValidationError as e:
        logger.debug(f"Tagesplan-Zeile übersprungen ({e.error_count()} Fehler): {row}")
        return None


class ReconciliationMerger:
    """Liest die Vertretungen eines Datums mit fester Fallback-Reihenfolge."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def fetch(self, day: Date) -> ReconciledSubstitutions:
        """Vertretungen plus Angabe, aus welcher Quelle sie stammen.

        Fehler der Primärquelle werden weitergereicht und nie durch den
        Fallback verdeckt.
        """
        primary = self.store.substitutions_for_date(day)
        primary = [r for r in primary if r.date == day]
        if primary:
            return ReconciledSubstitutions(_sorted(primary), "primary")

        merged = self.store.daily_timetable_merged(day)
        fallback = []
        for row in merged:
            if not isinstance(row, dict) or not _is_truthy(row.get("isSubstitution")):
                continue
            record = record_from_merged_row(day, row)
            if record is not None and record.date == day:
                fallback.append(record)

        if fallback:
            logger.warning(
                f"Keine gespeicherten Vertretungen für {day.isoformat()}, "
                f"{len(fallback)} aus dem Tagesplan abgeleitet (Fallback)"
            )
            return ReconciledSubstitutions(_sorted(fallback), "fallback")

        logger.info(f"Keine Vertretungen für {day.isoformat()}")
        return ReconciledSubstitutions([], "empty")

    def substitutions_for_date(self, day: Date) -> list[SubstitutionRecord]:
        return self.fetch(day).records


def _sorted(records: list[SubstitutionRecord]) -> list[SubstitutionRecord]:
    return sorted(records, key=lambda r: (r.period, class_key(r.class_name)))

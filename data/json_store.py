"""Lokaler Datenspeicher als JSON-Datei.

Hält Lehrerliste, Klassen, Wochenplan, Abwesenheiten und Vertretungen in einer
Datei. Schreibzugriffe laufen unter einem Lock als Lesen → Prüfen → Schreiben
und ersetzen die Datei atomar.
"""

import logging
import os
import tempfile
import threading
from datetime import date as Date, datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ValidationError as PydanticValidationError

from data.record_store import (
    RecordStore,
    group_by_day,
    merge_daily_timetable,
    substitute_matches,
)
from engine.errors import ConflictError, UpstreamUnavailable
from engine.normalizer import class_key, same_teacher
from models.substitution import SubstitutionRecord
from models.teacher import TeacherRef
from models.timetable import AbsenceEntry, TimetableSlot

logger = logging.getLogger(__name__)


class SchoolRecords(BaseModel):
    """Vollständiger Datensatz des JSON-Speichers."""

    teachers: list[TeacherRef] = []
    classes: list[str] = []
    timetable: list[TimetableSlot] = []
    absences: list[AbsenceEntry] = []
    substitutions: list[SubstitutionRecord] = []
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    data_version: str = "1.0"

    def summary(self) -> str:
        """Kurze Übersicht über den Datensatz."""
        days = sorted({a.date for a in self.absences})
        lines = [
            f"Lehrkräfte: {len(self.teachers)}",
            f"Klassen: {len(self.classes)}",
            f"Stunden im Wochenplan: {len(self.timetable)}",
            f"Abwesenheiten: {len(self.absences)}"
            + (f" ({days[0].isoformat()} – {days[-1].isoformat()})" if days else ""),
            f"Vertretungen: {len(self.substitutions)}",
        ]
        return "\n".join(lines)

    def save_json(self, path: Path) -> None:
        """Speichert den Datensatz atomar als JSON-Datei."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        now = datetime.now(timezone.utc)
        updated = self.model_copy(update={
            "modified_at": now,
            "created_at": self.created_at or now,
        })
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(updated.model_dump_json(indent=2))
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    @classmethod
    def load_json(cls, path: Path) -> "SchoolRecords":
        """Lädt einen Datensatz aus einer JSON-Datei."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"JSON-Datei nicht gefunden: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate_json(f.read())


class JsonFileStore(RecordStore):
    """RecordStore auf Basis einer lokalen JSON-Datei.

    Eine fehlende Datei gilt als leerer Datensatz. Die bedingte Zuweisung
    ist nur innerhalb eines Prozesses gesperrt; parallele CLI-Aufrufe auf
    dieselbe Datei können sich weiterhin überschreiben.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    # ─── Laden / Speichern ────────────────────────────────────────────────────

    def load(self) -> SchoolRecords:
        if not self.path.exists():
            return SchoolRecords()
        try:
            return SchoolRecords.load_json(self.path)
        except (OSError, PydanticValidationError) as e:
            raise UpstreamUnavailable(
                f"Datenspeicher nicht lesbar: {self.path} ({e})"
            ) from e

    def save(self, records: SchoolRecords) -> None:
        try:
            with self._lock:
                records.save_json(self.path)
        except OSError as e:
            raise UpstreamUnavailable(
                f"Datenspeicher nicht schreibbar: {self.path} ({e})"
            ) from e

    # ─── Lesen ────────────────────────────────────────────────────────────────

    def weekly_timetable(
        self,
        teacher: Optional[TeacherRef] = None,
        week_of: Optional[Date] = None,
    ) -> dict[int, list[TimetableSlot]]:
        slots = self.load().timetable
        if teacher is not None:
            slots = [s for s in slots if same_teacher(teacher, s.teacher)]
        if week_of is not None:
            week = week_of.isocalendar()[:2]
            slots = [
                s for s in slots
                if s.date is None or s.date.isocalendar()[:2] == week
            ]
        return group_by_day(slots)

    def absent_teachers(self, day: Date) -> list[AbsenceEntry]:
        return [a for a in self.load().absences if a.date == day]

    def roster_teachers(self) -> list[TeacherRef]:
        return list(self.load().teachers)

    def roster_classes(self) -> list[str]:
        return list(self.load().classes)

    def daily_timetable_merged(self, day: Date) -> list[dict]:
        records = self.load()
        return merge_daily_timetable(day, records.timetable, records.substitutions)

    def substitutions_for_date(self, day: Date) -> list[SubstitutionRecord]:
        subs = [r for r in self.load().substitutions if r.date == day]
        subs.sort(key=lambda r: (r.period, class_key(r.class_name)))
        return subs

    # ─── Schreiben ────────────────────────────────────────────────────────────

    def persist_substitution(
        self,
        record: SubstitutionRecord,
        expected_substitute: Optional[TeacherRef] = None,
    ) -> SubstitutionRecord:
        with self._lock:
            records = self.load()
            current_idx = next(
                (i for i, r in enumerate(records.substitutions)
                 if r.slot_key == record.slot_key),
                None,
            )
            current = records.substitutions[current_idx] if current_idx is not None else None

            if not substitute_matches(current, expected_substitute):
                raise ConflictError(
                    f"Stunde {record.period} ({record.class_name}) wurde zwischenzeitlich "
                    f"geändert: aktuell "
                    f"{current.substitute_teacher.label if current else 'keine Vertretung'}.",
                    date=record.date,
                    period=record.period,
                    class_name=record.class_name,
                    current_substitute=current.substitute_teacher if current else None,
                )

            subs = list(records.substitutions)
            if current_idx is None:
                subs.append(record)
                logger.info(
                    f"Vertretung angelegt: {record.date.isoformat()} Std. {record.period} "
                    f"{record.class_name} → {record.substitute_teacher.label}"
                )
            else:
                subs[current_idx] = record
                logger.info(
                    f"Vertretung aktualisiert: {record.date.isoformat()} Std. {record.period} "
                    f"{record.class_name} → {record.substitute_teacher.label}"
                )
            try:
                records.model_copy(update={"substitutions": subs}).save_json(self.path)
            except OSError as e:
                raise UpstreamUnavailable(
                    f"Datenspeicher nicht schreibbar: {self.path} ({e})",
                    date=record.date, period=record.period, class_name=record.class_name,
                ) from e
        return record

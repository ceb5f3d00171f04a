"""Fassade über die Engine-Komponenten für einen Datenspeicher.

Bildet den Arbeitsablauf der Vertretungsplanung ab: Abwesenheiten sammeln,
offene Stunden bestimmen, freie Lehrkräfte je Stunde vorschlagen, Vertretung
speichern, Ergebnis zurücklesen. Standardmäßig wird der Tages-Index bei jeder
Abfrage neu gebaut. Mit engine.index_ttl_seconds > 0 wird er zwischengespeichert
und nach jeder eigenen Zuweisung verworfen; Zuweisungen anderer Prozesse sieht
der Cache erst nach Ablauf der TTL.
"""

import logging
import time
from datetime import date as Date
from typing import Callable, Iterable, Optional, Union

from config.schema import EngineConfig, SchoolConfig, StoreBackend, StoreConfig
from data.http_store import HttpRecordStore
from data.json_store import JsonFileStore
from data.record_store import RecordStore
from engine.availability import free_teachers
from engine.coordinator import AssignmentCoordinator
from engine.normalizer import same_teacher
from engine.reconciliation import ReconciledSubstitutions, ReconciliationMerger
from engine.timetable_index import TimetableIndex
from engine.vacancy import vacant_slots
from models.substitution import SubstitutionRecord, SubstitutionRecordInput, VacantSlot
from models.teacher import TeacherRef, TeacherRoster
from models.timetable import AbsenceEntry

logger = logging.getLogger(__name__)

RawTeacher = Union[str, TeacherRef]


def make_store(store_config: StoreConfig) -> RecordStore:
    """Erzeugt den konfigurierten Datenspeicher."""
    if store_config.backend == StoreBackend.HTTP:
        return HttpRecordStore(store_config.base_url, timeout=store_config.timeout_seconds)
    return JsonFileStore(store_config.json_path)


class SubstitutionPlanner:
    """Vertretungsplanung für beliebige Daten eines Datenspeichers.

    Verwendung:
        planner = SubstitutionPlanner.from_config(config)
        for vacancy, candidates in planner.candidates_for_vacancies(day).items():
            ...
        planner.assign({"date": day, "period": 3, "class": "6A",
                        "substituteTeacher": "carol@school"})
    """

    def __init__(
        self,
        store: RecordStore,
        engine_config: Optional[EngineConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.engine_config = engine_config or EngineConfig()
        self.coordinator = AssignmentCoordinator(store)
        self.coordinator.on_assigned(self._on_assigned)
        self.merger = ReconciliationMerger(store)
        self._clock = clock
        self._indexes: dict[Date, tuple[float, TimetableIndex]] = {}

    @classmethod
    def from_config(cls, config: SchoolConfig) -> "SubstitutionPlanner":
        return cls(make_store(config.store), config.engine)

    # ─── Index-Cache ──────────────────────────────────────────────────────────

    def index_for(self, day: Date) -> TimetableIndex:
        """Tages-Index aus Stundenplan und gespeicherten Vertretungen."""
        ttl = self.engine_config.index_ttl_seconds
        now = self._clock()
        cached = self._indexes.get(day)
        if ttl > 0 and cached is not None and now - cached[0] < ttl:
            return cached[1]

        index = TimetableIndex.build(
            day,
            self.store.timetable_for_date(day),
            self.store.substitutions_for_date(day),
        )
        logger.debug(f"Index gebaut: {index!r}")
        if ttl > 0:
            self._indexes[day] = (now, index)
        return index

    def invalidate(self, day: Optional[Date] = None) -> None:
        """Verwirft den Index eines Datums (None = alle)."""
        if day is None:
            self._indexes.clear()
        else:
            self._indexes.pop(day, None)

    def _on_assigned(self, record: SubstitutionRecord) -> None:
        self.invalidate(record.date)
        logger.debug(f"Index für {record.date.isoformat()} verworfen")

    # ─── Abfragen ─────────────────────────────────────────────────────────────

    def roster(self) -> TeacherRoster:
        return TeacherRoster(teachers=self.store.roster_teachers())

    def absences(
        self, day: Date, extra_absent: Iterable[RawTeacher] = ()
    ) -> list[AbsenceEntry]:
        """Gemeldete plus ad hoc angegebene Abwesenheiten, über die Lehrerliste
        aufgelöst und ohne Dubletten."""
        roster = self.roster()
        refs = [a.teacher for a in self.store.absent_teachers(day) if a.date == day]
        refs.extend(TeacherRef.parse(raw) for raw in extra_absent)

        result: list[AbsenceEntry] = []
        for ref in refs:
            resolved = roster.resolve(ref)
            if any(same_teacher(resolved, a.teacher) for a in result):
                continue
            result.append(AbsenceEntry(date=day, teacher=resolved))
        return result

    def vacant_slots(
        self, day: Date, extra_absent: Iterable[RawTeacher] = ()
    ) -> list[VacantSlot]:
        return vacant_slots(day, self.absences(day, extra_absent), self.index_for(day))

    def free_teachers(
        self, day: Date, period: int, extra_absent: Iterable[RawTeacher] = ()
    ) -> list[TeacherRef]:
        absent = [a.teacher for a in self.absences(day, extra_absent)]
        return free_teachers(day, period, absent, self.roster().teachers, self.index_for(day))

    def candidates_for_vacancies(
        self, day: Date, extra_absent: Iterable[RawTeacher] = ()
    ) -> dict[VacantSlot, list[TeacherRef]]:
        """Offene Stunde → freie Lehrkräfte (Reihenfolge der Lehrerliste)."""
        absent = [a.teacher for a in self.absences(day, extra_absent)]
        index = self.index_for(day)
        roster = self.roster().teachers
        vacancies = vacant_slots(day, [AbsenceEntry(date=day, teacher=t) for t in absent], index)

        per_period: dict[int, list[TeacherRef]] = {}
        result: dict[VacantSlot, list[TeacherRef]] = {}
        for vacancy in vacancies:
            if vacancy.period not in per_period:
                per_period[vacancy.period] = free_teachers(
                    day, vacancy.period, absent, roster, index)
            result[vacancy] = per_period[vacancy.period]
        return result

    def fetch_substitutions(self, day: Date) -> ReconciledSubstitutions:
        return self.merger.fetch(day)

    def substitutions_for_date(self, day: Date) -> list[SubstitutionRecord]:
        return self.merger.substitutions_for_date(day)

    # ─── Schreiben ────────────────────────────────────────────────────────────

    def assign(
        self,
        record: Union[SubstitutionRecordInput, dict],
        allow_update: bool = False,
        extra_absent: Iterable[RawTeacher] = (),
    ) -> SubstitutionRecord:
        return self.coordinator.assign(
            record,
            allow_update=allow_update,
            extra_absent=[TeacherRef.parse(raw) for raw in extra_absent],
        )

"""Zuweisung von Vertretungen: prüfen und schreiben als eine logische Transaktion.

Ablauf von assign():
  1. Eingabe prüfen (ValidationError, ohne Store-Zugriff)
  2. aktuellen Stand lesen und Index frisch bauen
  3. bestehende Vertretung mit anderer Lehrkraft → ConflictError (außer allow_update)
  4. Vertretung selbst abwesend → AbsenteeConflictError
  5. Vertretung in der Stunde schon belegt → DoubleBookingError
  6. bedingt schreiben (Store prüft, dass die Stunde unverändert ist)
  7. Listener benachrichtigen (Index-Cache des Datums verwerfen)
"""

import logging
from typing import Callable, Iterable, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from data.record_store import RecordStore
from engine.errors import (
    AbsenteeConflictError,
    ConflictError,
    DoubleBookingError,
    ValidationError,
)
from engine.normalizer import normalize, same_teacher
from engine.timetable_index import TimetableIndex
from models.substitution import SubstitutionRecord, SubstitutionRecordInput
from models.teacher import TeacherRef, TeacherRoster

logger = logging.getLogger(__name__)

AssignListener = Callable[[SubstitutionRecord], None]


class AssignmentCoordinator:
    """Prüft und speichert Vertretungen (Upsert auf date/period/class)."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store
        self._listeners: list[AssignListener] = []

    def on_assigned(self, listener: AssignListener) -> None:
        """Registriert einen Callback, der nach jedem erfolgreichen Schreiben läuft."""
        self._listeners.append(listener)

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def assign(
        self,
        record: Union[SubstitutionRecordInput, dict],
        allow_update: bool = False,
        extra_absent: Iterable[TeacherRef] = (),
    ) -> SubstitutionRecord:
        """Speichert eine Vertretung.

        Dieselbe Stunde mit derselben Vertretung erneut zu senden ist
        idempotent. Eine andere Vertretung für eine bereits besetzte Stunde
        erfordert allow_update=True, sonst ConflictError. extra_absent ergänzt
        die gespeicherte Abwesenheitsliste um ad hoc gemeldete Lehrkräfte.
        """
        request = self._validate_input(record)
        day, period, class_name = request.date, request.period, request.class_name
        substitute = request.substitute_teacher
        where = {"date": day, "period": period, "class_name": class_name}

        # Frischer Stand, kein gecachter Index
        slots = self.store.timetable_for_date(day)
        existing = self.store.substitutions_for_date(day)
        absent_refs = [a.teacher for a in self.store.absent_teachers(day)]
        absent_refs.extend(extra_absent)
        roster = TeacherRoster(teachers=self.store.roster_teachers())
        substitute = roster.resolve(substitute)
        index = TimetableIndex.build(day, slots, existing)

        current = index.substitution_at(period, class_name)
        if current is not None and not same_teacher(current.substitute_teacher, substitute):
            if not allow_update:
                raise ConflictError(
                    f"Stunde {period} ({class_name}) am {day.isoformat()} ist bereits mit "
                    f"{current.substitute_teacher.label} besetzt.",
                    current_substitute=current.substitute_teacher,
                    **where,
                )
            logger.info(
                f"Überschreibe Vertretung {day.isoformat()} Std. {period} {class_name}: "
                f"{current.substitute_teacher.label} → {substitute.label}"
            )

        if any(same_teacher(substitute, roster.resolve(a)) for a in absent_refs):
            raise AbsenteeConflictError(
                f"{substitute.label} ist am {day.isoformat()} selbst abwesend.",
                **where,
            )

        # Die eigene Stunde zählt bei einer Aktualisierung nicht als Belegung
        others = index.without_slot(period, class_name)
        if others.is_occupied(substitute, period) or others.teaches_regularly(substitute, period):
            raise DoubleBookingError(
                f"{substitute.label} ist am {day.isoformat()} in Stunde {period} "
                f"bereits belegt.",
                **where,
            )

        regular = index.regular_slot(period, class_name)
        regular_subject = request.regular_subject or (regular.subject if regular else "")
        absent_teacher = request.absent_teacher or (regular.teacher if regular else None)
        new_record = SubstitutionRecord(
            date=day,
            period=period,
            class_name=regular.class_name if regular else class_name.strip(),
            regular_subject=regular_subject,
            absent_teacher=absent_teacher,
            substitute_teacher=substitute,
            substitute_subject=request.substitute_subject or regular_subject,
            note=request.note,
        )

        saved = self.store.persist_substitution(
            new_record,
            expected_substitute=current.substitute_teacher if current else None,
        )
        logger.info(
            f"Vertretung gespeichert: {day.isoformat()} Std. {period} {class_name} "
            f"→ {substitute.label}"
        )
        for listener in self._listeners:
            listener(saved)
        return saved

    # ─── Eingabeprüfung ───────────────────────────────────────────────────────

    def _validate_input(
        self, record: Union[SubstitutionRecordInput, dict]
    ) -> SubstitutionRecordInput:
        if isinstance(record, dict):
            try:
                record = SubstitutionRecordInput.model_validate(record)
            except PydanticValidationError as e:
                raise ValidationError(f"Ungültiger Vertretungsauftrag: {e}") from e

        where = {"date": record.date, "period": record.period, "class_name": record.class_name}
        missing = []
        if record.date is None:
            missing.append("Datum")
        if record.period is None:
            missing.append("Stunde")
        if not normalize(record.class_name):
            missing.append("Klasse")
        if record.substitute_teacher is None:
            missing.append("Vertretung")
        if missing:
            raise ValidationError(f"Angaben fehlen: {', '.join(missing)}", **where)
        if record.period < 1:
            raise ValidationError(f"Ungültige Stunde: {record.period}", **where)
        return record


def assign(
    store: RecordStore,
    record: Union[SubstitutionRecordInput, dict],
    allow_update: bool = False,
    listener: Optional[AssignListener] = None,
) -> SubstitutionRecord:
    """Einmal-Aufruf ohne eigenen Coordinator."""
    coordinator = AssignmentCoordinator(store)
    if listener is not None:
        coordinator.on_assigned(listener)
    return coordinator.assign(record, allow_update=allow_update)

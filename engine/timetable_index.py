"""Tages-Index aus regulärem Stundenplan und bereits gespeicherten Vertretungen.

Beantwortet zwei Fragen für ein Datum:
  - occupancy(period): wer ist in Stunde P belegt?
  - slots_of(teacher): was unterrichtet Lehrkraft T regulär an diesem Tag?

Der Index ist ein unveränderlicher Schnappschuss. Nach jeder neuen Vertretung
muss er neu gebaut werden.
"""

from collections import defaultdict
from datetime import date as Date
from typing import Iterable, NamedTuple, Optional, Union

from engine.normalizer import class_key, normalize, same_teacher, teacher_key
from models.substitution import SubstitutionRecord
from models.teacher import TeacherRef
from models.timetable import TimetableSlot


class TaughtSlot(NamedTuple):
    period: int
    class_name: str
    subject: str


class BusySlot(NamedTuple):
    teacher: TeacherRef
    class_name: str
    is_substitution: bool


class TimetableIndex:
    """Belegung eines einzelnen Tages.

    Verwendung:
        index = TimetableIndex.build(day, slots, substitutions)
        index.occupancy(3)        -> frozenset({"bob@school", ...})
        index.slots_of("alice@school")
    """

    def __init__(
        self,
        day: Date,
        slots: list[TimetableSlot],
        substitutions: dict[tuple[int, str], SubstitutionRecord],
    ) -> None:
        self.date = day
        self._slots = list(slots)
        self._substitutions = dict(substitutions)

        # period -> [BusySlot] (regulär, sofern nicht überschrieben, sonst Vertretung)
        self._busy: dict[int, list[BusySlot]] = defaultdict(list)
        # teacher_key -> [TaughtSlot]
        self._taught: dict[str, list[TaughtSlot]] = defaultdict(list)

        for slot in self._slots:
            self._taught[teacher_key(slot.teacher)].append(
                TaughtSlot(slot.period, slot.class_name, slot.subject)
            )
            if (slot.period, class_key(slot.class_name)) not in self._substitutions:
                self._busy[slot.period].append(BusySlot(slot.teacher, slot.class_name, False))

        for (period, _), record in self._substitutions.items():
            self._busy[period].append(
                BusySlot(record.substitute_teacher, record.class_name, True))

        for taught in self._taught.values():
            taught.sort(key=lambda t: (t.period, normalize(t.class_name)))

    # ─── Aufbau ───────────────────────────────────────────────────────────────

    @classmethod
    def build(
        cls,
        day: Date,
        timetable_slots: Iterable[TimetableSlot],
        existing_substitutions: Iterable[SubstitutionRecord] = (),
    ) -> "TimetableIndex":
        """Baut den Index für ein Datum.

        timetable_slots darf den ganzen Wochenplan enthalten; es werden nur
        Stunden berücksichtigt, die an `day` stattfinden. Vertretungen anderer
        Tage werden ignoriert. Bei mehreren Vertretungen für dieselbe Stunde
        gewinnt die zuletzt gelieferte.
        """
        slots = [s for s in timetable_slots if s.applies_to(day)]
        subs: dict[tuple[int, str], SubstitutionRecord] = {}
        for record in existing_substitutions:
            if record.date != day:
                continue
            subs[(record.period, class_key(record.class_name))] = record
        return cls(day, slots, subs)

    def without_slot(self, period: int, class_name: str) -> "TimetableIndex":
        """Neuer Index ohne die Vertretung auf (period, class_name)."""
        subs = dict(self._substitutions)
        subs.pop((period, class_key(class_name)), None)
        return TimetableIndex(self.date, self._slots, subs)

    # ─── Abfragen ─────────────────────────────────────────────────────────────

    def occupancy(self, period: int) -> frozenset[str]:
        """Normalisierte Schlüssel aller in `period` belegten Lehrkräfte."""
        return frozenset(teacher_key(b.teacher) for b in self._busy.get(period, []))

    def is_occupied(self, teacher: TeacherRef, period: int) -> bool:
        """Wie occupancy(), vergleicht aber über same_teacher (E-Mail oder Name)."""
        return any(same_teacher(teacher, b.teacher) for b in self._busy.get(period, []))

    def slots_at(self, period: int) -> list[BusySlot]:
        """Wer in `period` welche Klasse unterrichtet (nach Vertretungen)."""
        return list(self._busy.get(period, []))

    def slots_of(self, teacher: Union[str, TeacherRef]) -> list[TaughtSlot]:
        """Reguläre Stunden einer Lehrkraft an diesem Tag (nach Stunde, Klasse)."""
        if isinstance(teacher, TeacherRef):
            result = [
                TaughtSlot(s.period, s.class_name, s.subject)
                for s in self._slots
                if same_teacher(teacher, s.teacher)
            ]
            result.sort(key=lambda t: (t.period, normalize(t.class_name)))
            return result
        return list(self._taught.get(normalize(teacher), []))

    def teaches_regularly(self, teacher: TeacherRef, period: int) -> bool:
        return any(s.period == period for s in self.slots_of(teacher))

    def regular_slot(self, period: int, class_name: str) -> Optional[TimetableSlot]:
        """Reguläre Stunde einer Klasse in `period` (erste passende)."""
        key = class_key(class_name)
        for slot in self._slots:
            if slot.period == period and class_key(slot.class_name) == key:
                return slot
        return None

    def substitution_at(self, period: int, class_name: str) -> Optional[SubstitutionRecord]:
        return self._substitutions.get((period, class_key(class_name)))

    @property
    def substitutions(self) -> list[SubstitutionRecord]:
        return sorted(
            self._substitutions.values(),
            key=lambda r: (r.period, class_key(r.class_name)),
        )

    @property
    def periods(self) -> list[int]:
        return sorted({s.period for s in self._slots} | {p for p, _ in self._substitutions})

    def __repr__(self) -> str:
        return (
            f"TimetableIndex({self.date.isoformat()}, "
            f"{len(self._slots)} Stunden, {len(self._substitutions)} Vertretungen)"
        )

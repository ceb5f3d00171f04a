"""Demo-Daten-Generator für den Vertretungsplaner.

Erzeugt Lehrerliste, Klassen, einen konfliktfreien Wochenplan und
Abwesenheiten für ein Datum.

Eigenschaften des erzeugten Plans:
  1. Jede Klasse hat in jeder Stunde genau eine Lehrkraft
  2. Keine Lehrkraft ist in einer Stunde doppelt belegt
  3. Es gibt mehr Lehrkräfte als Klassen, damit pro Stunde freie
     Lehrkräfte als Vertretung übrig bleiben
  4. Lehrkräfte werden mal mit Namen, mal mit E-Mail im Plan geführt
     (wie in gewachsenen Schul-Tabellen)
"""

from datetime import date as Date
from typing import Optional
import random

from config.defaults import (
    DEMO_EMAIL_DOMAIN,
    DEMO_GRADES,
    DEMO_PERIODS_PER_DAY,
    DEMO_SUBJECTS,
)
from config.schema import SchoolConfig
from data.json_store import SchoolRecords
from models.teacher import TeacherRef
from models.timetable import AbsenceEntry, TimetableSlot

# ─── Namens-Listen ────────────────────────────────────────────────────────────

_FIRST_NAMES = [
    "Andreas", "Anna", "Bernd", "Birgit", "Christian", "Christine", "Dieter",
    "Eva", "Franz", "Gabi", "Hans", "Iris", "Jürgen", "Kathrin", "Klaus",
    "Lena", "Markus", "Maria", "Norbert", "Olga", "Peter", "Renate", "Stefan",
    "Sandra", "Thomas", "Tanja", "Ulrich", "Ulrike", "Werner", "Vera", "Yusuf",
]

_LAST_NAMES = [
    "Müller", "Schmidt", "Schneider", "Fischer", "Weber", "Meyer",
    "Wagner", "Becker", "Schulz", "Hoffmann", "Schäfer", "Koch",
    "Bauer", "Richter", "Klein", "Wolf", "Schröder", "Neumann",
    "Schwarz", "Zimmermann", "Braun", "Krüger", "Hofmann", "Hartmann",
    "Lange", "Schmitt", "Werner", "Krause", "Meier", "Lehmann",
]

# ─── Fächerkombinationen (gewichtet) ─────────────────────────────────────────

_SUBJECT_COMBOS: list[tuple[list[str], int]] = [
    (["De", "Ge"], 10),
    (["Ma", "Ph"], 10),
    (["En", "De"], 9),
    (["Ma", "Bi"], 8),
    (["En", "Ek"], 7),
    (["Bi", "Ch"], 6),
    (["De", "Re"], 5),
    (["Sp", "Bi"], 5),
    (["Ku", "De"], 4),
    (["Mu", "En"], 4),
    (["Ge", "Ek"], 4),
    (["Ma", "Sp"], 3),
]

_COMBO_WEIGHTS = [w for _, w in _SUBJECT_COMBOS]
_COMBO_SUBJECTS = [s for s, _ in _SUBJECT_COMBOS]


def _ascii_fold(text: str) -> str:
    """Umlaute ausschreiben, Kleinbuchstaben (für E-Mail-Adressen)."""
    return (
        text.lower()
        .replace("ä", "ae").replace("ö", "oe").replace("ü", "ue")
        .replace("ß", "ss")
    )


def _make_email(first: str, last: str, used: set[str]) -> str:
    """Eindeutige Adresse vorname.nachname[N]@domain."""
    local = f"{_ascii_fold(first)}.{_ascii_fold(last)}"
    candidate = local
    n = 2
    while candidate in used:
        candidate = f"{local}{n}"
        n += 1
    used.add(candidate)
    return f"{candidate}@{DEMO_EMAIL_DOMAIN}"


class FakeDataGenerator:
    """Generiert einen vollständigen Demo-Datensatz auf Basis der SchoolConfig."""

    def __init__(
        self,
        config: SchoolConfig,
        seed: Optional[int] = None,
        teacher_surplus: float = 1.5,
        periods_per_day: int = DEMO_PERIODS_PER_DAY,
    ) -> None:
        self.config = config
        self.rng = random.Random(seed)
        self.teacher_surplus = teacher_surplus
        self.periods_per_day = min(periods_per_day, config.engine.max_period)

    # ─── Bausteine ────────────────────────────────────────────────────────────

    def _generate_classes(self) -> list[str]:
        return [
            f"{grade}{label}"
            for grade, labels in DEMO_GRADES.items()
            for label in labels
        ]

    def _generate_teachers(self, count: int) -> tuple[list[TeacherRef], dict[str, list[str]]]:
        """Lehrkräfte mit Namen, E-Mail und zwei Fächern."""
        teachers: list[TeacherRef] = []
        subjects: dict[str, list[str]] = {}
        used_names: set[str] = set()
        used_mails: set[str] = set()
        while len(teachers) < count:
            first = self.rng.choice(_FIRST_NAMES)
            last = self.rng.choice(_LAST_NAMES)
            name = f"{first} {last}"
            if name in used_names:
                continue
            used_names.add(name)
            teacher = TeacherRef(email=_make_email(first, last, used_mails), name=name)
            teachers.append(teacher)
            subjects[teacher.email] = self.rng.choices(_COMBO_SUBJECTS, weights=_COMBO_WEIGHTS)[0]
        return teachers, subjects

    def _as_listed(self, teacher: TeacherRef) -> TeacherRef:
        """Wie die Lehrkraft im Stundenplan steht: Name, E-Mail oder beides."""
        roll = self.rng.random()
        if roll < 0.3:
            return TeacherRef(name=teacher.name)
        if roll < 0.5:
            return TeacherRef(email=teacher.email)
        return teacher

    def _generate_timetable(
        self,
        classes: list[str],
        teachers: list[TeacherRef],
        subjects: dict[str, list[str]],
    ) -> list[TimetableSlot]:
        """Pro Tag und Stunde bekommt jede Klasse eine andere Lehrkraft."""
        slots: list[TimetableSlot] = []
        for day in range(len(self.config.day_names)):
            for period in range(1, self.periods_per_day + 1):
                pool = list(teachers)
                self.rng.shuffle(pool)
                for class_name, teacher in zip(classes, pool):
                    slots.append(TimetableSlot(
                        day=day,
                        period=period,
                        class_name=class_name,
                        subject=DEMO_SUBJECTS[self.rng.choice(subjects[teacher.email])],
                        teacher=self._as_listed(teacher),
                    ))
        return slots

    def _generate_absences(
        self, teachers: list[TeacherRef], day: Date, count: int
    ) -> list[AbsenceEntry]:
        chosen = self.rng.sample(teachers, min(count, len(teachers)))
        # Abwesenheitslisten führen meist nur die E-Mail
        return [AbsenceEntry(date=day, teacher=TeacherRef(email=t.email)) for t in chosen]

    # ─── Vollständiger Datensatz ──────────────────────────────────────────────

    def generate(self, absence_date: Optional[Date] = None, num_absent: int = 2) -> SchoolRecords:
        """Erzeugt den vollständigen Datensatz als SchoolRecords-Objekt."""
        classes = self._generate_classes()
        count = max(len(classes) + 1, round(len(classes) * self.teacher_surplus))
        teachers, subjects = self._generate_teachers(count)
        timetable = self._generate_timetable(classes, teachers, subjects)
        absences = (
            self._generate_absences(teachers, absence_date, num_absent)
            if absence_date is not None else []
        )
        return SchoolRecords(
            teachers=teachers,
            classes=classes,
            timetable=timetable,
            absences=absences,
        )

    # ─── Ausgabe ──────────────────────────────────────────────────────────────

    def print_summary(self, data: SchoolRecords) -> None:
        """Gibt eine Rich-Tabelle mit Übersicht der erzeugten Daten aus."""
        from rich.console import Console
        from rich.table import Table
        from rich import box

        console = Console()
        table = Table(title="Erzeugte Demo-Daten", box=box.ROUNDED)
        table.add_column("Kategorie", style="bold cyan")
        table.add_column("Anzahl", justify="right")
        table.add_column("Details")

        days = {s.day for s in data.timetable}
        table.add_row("Klassen", str(len(data.classes)),
                      f"{len(DEMO_GRADES)} Jahrgänge")
        table.add_row("Lehrkräfte", str(len(data.teachers)), "")
        table.add_row("Stunden im Wochenplan", str(len(data.timetable)),
                      f"{len(days)} Tage × {self.periods_per_day} Stunden")
        absent = ", ".join(a.teacher.label for a in data.absences)
        table.add_row("Abwesenheiten", str(len(data.absences)), absent)

        console.print(table)

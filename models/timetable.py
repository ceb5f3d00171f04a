"""Datenmodelle für den regulären Stundenplan und Abwesenheiten (Pydantic v2)."""

from datetime import date as Date
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from models.teacher import TeacherRef

# ─── Tages-Mapping ────────────────────────────────────────────────────────────

DAY_NAMES = ["Mo", "Di", "Mi", "Do", "Fr", "Sa", "So"]

_DAY_MAP = {
    "mo": 0, "di": 1, "mi": 2, "do": 3, "fr": 4, "sa": 5, "so": 6,
    "montag": 0, "dienstag": 1, "mittwoch": 2, "donnerstag": 3,
    "freitag": 4, "samstag": 5, "sonntag": 6,
    "mon": 0, "tue": 1, "wed": 2, "thu": 3, "fri": 4, "sat": 5, "sun": 6,
    "monday": 0, "tuesday": 1, "wednesday": 2, "thursday": 3,
    "friday": 4, "saturday": 5, "sunday": 6,
}


def parse_day(raw: Any) -> Optional[int]:
    """'Monday' / 'Mo' / 0 → 0. Unbekannt → None."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, int):
        return raw
    text = str(raw).strip().lower()
    if text.isdigit():
        return int(text)
    return _DAY_MAP.get(text)


def _fold_teacher_fields(data: Any) -> Any:
    """Flache Felder teacherName/teacherEmail → verschachteltes teacher-Objekt."""
    if not isinstance(data, dict):
        return data
    if "teacher" in data and isinstance(data["teacher"], (dict, TeacherRef)):
        return data
    data = dict(data)
    raw_teacher = data.pop("teacher", None)
    email = data.pop("teacherEmail", None) or data.pop("email", None)
    name = data.pop("teacherName", None) or data.pop("name", None)
    if email or name:
        data["teacher"] = {"email": email, "name": name}
    elif raw_teacher:
        data["teacher"] = TeacherRef.parse(raw_teacher)
    return data


class TimetableSlot(BaseModel):
    """Eine regulär geplante Unterrichtsstunde.

    Entweder an einen Wochentag (day, 0=Mo) oder an ein konkretes Datum gebunden.
    Wird vom externen Stundenplan geliefert und hier nie verändert.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    day: Optional[int] = Field(None, ge=0, le=6)
    date: Optional[Date] = None
    period: int = Field(ge=1)
    class_name: str = Field(validation_alias=AliasChoices("class_name", "class", "className"))
    subject: str = ""
    teacher: TeacherRef

    @model_validator(mode="before")
    @classmethod
    def _from_wire(cls, data: Any) -> Any:
        data = _fold_teacher_fields(data)
        if isinstance(data, dict) and "day" in data:
            data = dict(data)
            data["day"] = parse_day(data["day"])
        return data

    @model_validator(mode="after")
    def _check_anchor(self):
        if self.day is None and self.date is None:
            raise ValueError(
                f"Stunde {self.period} ({self.class_name}): weder Wochentag noch Datum angegeben."
            )
        return self

    def applies_to(self, day: Date) -> bool:
        """True wenn die Stunde am gegebenen Datum stattfindet."""
        if self.date is not None:
            return self.date == day
        return self.day == day.weekday()

    @property
    def day_name(self) -> str:
        weekday = self.day if self.day is not None else self.date.weekday()
        return DAY_NAMES[weekday]


class AbsenceEntry(BaseModel):
    """Eine Lehrkraft ist an einem Datum abwesend."""

    model_config = ConfigDict(frozen=True)

    date: Date
    teacher: TeacherRef

    @model_validator(mode="before")
    @classmethod
    def _from_wire(cls, data: Any) -> Any:
        return _fold_teacher_fields(data)

"""Datenmodelle für offene Stunden und Vertretungen (Pydantic v2)."""

from datetime import date as Date
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from engine.normalizer import class_key
from models.teacher import TeacherRef


def _teacher_or_none(v: Any) -> Any:
    """'' / None → None, roher Bezeichner → TeacherRef."""
    if v is None or isinstance(v, TeacherRef):
        return v
    if isinstance(v, str):
        return TeacherRef.parse(v) if v.strip() else None
    return v


class VacantSlot(BaseModel):
    """Offene Stunde: regulärer Unterricht einer abwesenden Lehrkraft.

    Wird nie gespeichert, sondern bei Bedarf neu berechnet.
    """

    model_config = ConfigDict(frozen=True)

    date: Date
    period: int
    class_name: str
    subject: str
    absent_teacher: TeacherRef

    @property
    def slot_key(self) -> tuple[Date, int, str]:
        return (self.date, self.period, class_key(self.class_name))


class SubstitutionRecordInput(BaseModel):
    """Auftrag für eine Vertretung, wie er von CLI/UI kommt.

    Feldnamen der Gegenstelle (absentTeacher, substituteTeacher, ...) werden
    als Aliase akzeptiert.
    """

    model_config = ConfigDict(populate_by_name=True)

    date: Optional[Date] = None
    period: Optional[int] = None
    class_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("class_name", "class", "className"))
    regular_subject: Optional[str] = Field(
        None, validation_alias=AliasChoices("regular_subject", "regularSubject"))
    absent_teacher: Optional[TeacherRef] = Field(
        None, validation_alias=AliasChoices("absent_teacher", "absentTeacher"))
    substitute_teacher: Optional[TeacherRef] = Field(
        None, validation_alias=AliasChoices("substitute_teacher", "substituteTeacher"))
    substitute_subject: Optional[str] = Field(
        None, validation_alias=AliasChoices("substitute_subject", "substituteSubject"))
    note: str = ""

    parse_teachers = field_validator(
        "absent_teacher", "substitute_teacher", mode="before")(_teacher_or_none)


class SubstitutionRecord(BaseModel):
    """Gespeicherte Vertretung. Eindeutig über (date, period, class_name)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date: Date
    period: int = Field(ge=1)
    class_name: str = Field(validation_alias=AliasChoices("class_name", "class", "className"))
    regular_subject: str = Field(
        "", validation_alias=AliasChoices("regular_subject", "regularSubject"))
    absent_teacher: Optional[TeacherRef] = Field(
        None, validation_alias=AliasChoices("absent_teacher", "absentTeacher"))
    substitute_teacher: TeacherRef = Field(
        validation_alias=AliasChoices("substitute_teacher", "substituteTeacher"))
    substitute_subject: str = Field(
        "", validation_alias=AliasChoices("substitute_subject", "substituteSubject"))
    note: str = ""

    parse_teachers = field_validator(
        "absent_teacher", "substitute_teacher", mode="before")(_teacher_or_none)

    @model_validator(mode="after")
    def _default_subject(self):
        if not self.substitute_subject and self.regular_subject:
            object.__setattr__(self, "substitute_subject", self.regular_subject)
        return self

    @property
    def slot_key(self) -> tuple[Date, int, str]:
        return (self.date, self.period, class_key(self.class_name))

    def to_wire(self) -> dict:
        """Feldnamen und Lehrkraft-Bezeichner der externen Gegenstelle."""
        def ident(ref: Optional[TeacherRef]) -> str:
            if ref is None:
                return ""
            return ref.email or ref.name or ""

        return {
            "date": self.date.isoformat(),
            "period": self.period,
            "class": self.class_name,
            "regularSubject": self.regular_subject,
            "absentTeacher": ident(self.absent_teacher),
            "substituteTeacher": ident(self.substitute_teacher),
            "substituteSubject": self.substitute_subject,
            "note": self.note,
        }

"""Datenmodell für eine Lehrkraft-Referenz (Pydantic v2)."""

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from engine.normalizer import normalize, same_teacher


class TeacherRef(BaseModel):
    """Identifiziert eine Lehrkraft über E-Mail (bevorzugt) und/oder Namen.

    Die Daten stammen aus unterschiedlich formatierten Quellen (Stundenplan,
    Abwesenheitsliste, Lehrerliste). Verglichen wird daher nie roh, sondern
    immer über engine.normalizer.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    email: Optional[str] = Field(
        None, validation_alias=AliasChoices("email", "teacherEmail"))
    name: Optional[str] = Field(
        None, validation_alias=AliasChoices("name", "teacherName"))

    @model_validator(mode="after")
    def _check_identity(self):
        if not normalize(self.email) and not normalize(self.name):
            raise ValueError("Lehrkraft ohne E-Mail und ohne Namen.")
        return self

    @classmethod
    def parse(cls, raw: "str | dict | TeacherRef") -> "TeacherRef":
        """Erzeugt eine Referenz aus einem rohen Bezeichner.

        'alice@school' → E-Mail, 'Alice Smith' → Name. Dicts werden
        mit Feld-Aliasen validiert.
        """
        if isinstance(raw, TeacherRef):
            return raw
        if isinstance(raw, dict):
            return cls.model_validate(raw)
        text = str(raw).strip()
        if "@" in text:
            return cls(email=text)
        return cls(name=text)

    @property
    def label(self) -> str:
        """Anzeigename (Name, sonst E-Mail)."""
        return self.name or self.email or ""

    def __str__(self) -> str:
        return self.label


class TeacherRoster(BaseModel):
    """Lehrerliste in Originalreihenfolge."""

    teachers: list[TeacherRef] = []

    def resolve(self, ref: TeacherRef) -> TeacherRef:
        """Gibt den passenden Roster-Eintrag zurück (sonst ref unverändert).

        Damit passt eine Abwesenheit mit nur E-Mail auch zu Stundenplanzeilen,
        die nur den Namen tragen.
        """
        for teacher in self.teachers:
            if same_teacher(teacher, ref):
                return teacher
        return ref

"""Fehler-Taxonomie der Vertretungsplanung.

Jeder Fehler trägt seine Art (kind) und die betroffene Stunde
(date, period, class_name), damit CLI/UI gezielt einen neuen Versuch
anbieten können. Die Engine selbst wiederholt nichts automatisch.
"""

from datetime import date as Date
from typing import Optional


class SubstitutionError(Exception):
    """Basisklasse aller Fehler der Vertretungsplanung."""

    kind = "substitution_error"

    def __init__(
        self,
        message: str,
        date: Optional[Date] = None,
        period: Optional[int] = None,
        class_name: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.date = date
        self.period = period
        self.class_name = class_name

    @property
    def slot(self) -> tuple:
        return (self.date, self.period, self.class_name)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "message": self.message,
            "date": self.date.isoformat() if self.date else None,
            "period": self.period,
            "class": self.class_name,
        }


class ValidationError(SubstitutionError):
    """Ungültige Eingabe (Datum/Stunde/Klasse fehlt). Store wird nicht berührt."""

    kind = "validation"


class DoubleBookingError(SubstitutionError):
    """Vertretung ist in dieser Stunde bereits belegt (regulär oder als Vertretung)."""

    kind = "double_booking"


class AbsenteeConflictError(SubstitutionError):
    """Vertretung steht an diesem Tag selbst auf der Abwesenheitsliste."""

    kind = "absentee_conflict"


class ConflictError(SubstitutionError):
    """Die Stunde wurde zwischenzeitlich anders besetzt. Neu laden und erneut versuchen."""

    kind = "conflict"

    def __init__(self, message: str, *args, current_substitute=None, **kwargs) -> None:
        super().__init__(message, *args, **kwargs)
        self.current_substitute = current_substitute


class UpstreamUnavailable(SubstitutionError):
    """Lesen/Schreiben im externen Datenspeicher fehlgeschlagen."""

    kind = "upstream_unavailable"

"""Vertretungs-Engine: Normalisierung, Stundenindex, offene Stunden,
freie Lehrkräfte, Zuweisung und Abgleich.

Die Komponenten liegen in eigenen Modulen (engine.vacancy, engine.availability,
engine.coordinator, ...). Hier werden nur die Blatt-Module re-exportiert.
"""

from .normalizer import normalize, teacher_key, same_teacher, class_key
from .errors import (
    SubstitutionError,
    ValidationError,
    DoubleBookingError,
    AbsenteeConflictError,
    ConflictError,
    UpstreamUnavailable,
)

__all__ = [
    "normalize",
    "teacher_key",
    "same_teacher",
    "class_key",
    "SubstitutionError",
    "ValidationError",
    "DoubleBookingError",
    "AbsenteeConflictError",
    "ConflictError",
    "UpstreamUnavailable",
]

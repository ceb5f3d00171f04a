from models.teacher import TeacherRef, TeacherRoster
from models.timetable import TimetableSlot, AbsenceEntry, DAY_NAMES
from models.substitution import VacantSlot, SubstitutionRecord, SubstitutionRecordInput

__all__ = [
    "TeacherRef",
    "TeacherRoster",
    "TimetableSlot",
    "AbsenceEntry",
    "DAY_NAMES",
    "VacantSlot",
    "SubstitutionRecord",
    "SubstitutionRecordInput",
]

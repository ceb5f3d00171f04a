"""RecordStore für die Schul-Web-App (HTTP, ?action=...-Endpunkte).

GET-Endpunkte liefern JSON in wechselnden Formen (nackte Liste oder
{"data": [...]}, {"substitutions": [...]}, ...). Schreibzugriffe gehen als
POST mit JSON im text/plain-Body, damit die Web-App keinen CORS-Preflight
braucht. Es gibt keine automatischen Wiederholungen.
"""

import json
import logging
from datetime import date as Date
from typing import Any, Iterable, Optional

import requests
from pydantic import ValidationError as PydanticValidationError

from data.record_store import RecordStore, group_by_day
from engine.errors import ConflictError, UpstreamUnavailable
from models.substitution import SubstitutionRecord
from models.teacher import TeacherRef
from models.timetable import AbsenceEntry, TimetableSlot

logger = logging.getLogger(__name__)

_LIST_KEYS = ("data", "substitutions", "assignedSubstitutions", "timetable", "teachers", "classes")


def _unwrap_list(result: Any, action: str, keys: Iterable[str] = _LIST_KEYS,
                 tolerant: bool = False) -> list:
    """Holt die Liste aus einer Antwort beliebiger bekannter Form.

    Fehlerantworten (`error`, `success: false`) und unbekannte Formen
    lösen UpstreamUnavailable aus. Mit tolerant=True wird eine unbekannte
    Form stattdessen als leere Liste gelesen; Fehlerantworten bleiben Fehler.
    """
    if isinstance(result, list):
        return result
    if isinstance(result, dict):
        if result.get("error") or result.get("success") is False:
            detail = result.get("error") or result.get("message") or "success=false"
            raise UpstreamUnavailable(f"{action}: Fehlerantwort ({detail})")
        for key in keys:
            value = result.get(key)
            if isinstance(value, list):
                return value
    shape = type(result).__name__
    if tolerant:
        logger.warning(f"{action}: unbekanntes Antwortformat ({shape}), als leer gelesen")
        return []
    raise UpstreamUnavailable(f"{action}: unerwartetes Antwortformat ({shape})")


def _ident(ref: Optional[TeacherRef]) -> str:
    if ref is None:
        return ""
    return ref.email or ref.name or ""


class HttpRecordStore(RecordStore):
    """Zugriff auf die Web-App über requests.

    Verwendung:
        store = HttpRecordStore("https://script.google.com/.../exec", timeout=20)
        store.substitutions_for_date(date(2024, 3, 4))
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 20.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not base_url:
            raise ValueError("base_url fehlt (store.base_url in der Konfiguration).")
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()

    # ─── Transport ────────────────────────────────────────────────────────────

    def _get(self, action: str, **params) -> Any:
        query = {"action": action}
        query.update({k: v for k, v in params.items() if v is not None})
        logger.debug(f"GET {action} {params}")
        try:
            response = self.session.get(self.base_url, params=query, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.Timeout as e:
            raise UpstreamUnavailable(f"{action}: Zeitüberschreitung ({e})") from e
        except requests.exceptions.RequestException as e:
            raise UpstreamUnavailable(f"{action}: Anfrage fehlgeschlagen ({e})") from e
        except ValueError as e:
            raise UpstreamUnavailable(f"{action}: Antwort ist kein JSON ({e})") from e

    def _post(self, action: str, payload: dict) -> requests.Response:
        logger.debug(f"POST {action} {payload}")
        try:
            return self.session.post(
                self.base_url,
                params={"action": action},
                data=json.dumps(payload),
                headers={"Content-Type": "text/plain;charset=utf-8"},
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise UpstreamUnavailable(f"{action}: Zeitüberschreitung ({e})") from e
        except requests.exceptions.RequestException as e:
            raise UpstreamUnavailable(f"{action}: Anfrage fehlgeschlagen ({e})") from e

    def _parse_rows(self, model, rows: list, action: str, **extra) -> list:
        parsed = []
        for row in rows:
            if isinstance(row, dict) and extra:
                row = {**extra, **row}
            try:
                parsed.append(model.model_validate(row))
            except PydanticValidationError as e:
                logger.warning(f"{action}: Eintrag übersprungen ({e.error_count()} Fehler): {row}")
        return parsed

    # ─── Lesen ────────────────────────────────────────────────────────────────

    def weekly_timetable(
        self,
        teacher: Optional[TeacherRef] = None,
        week_of: Optional[Date] = None,
    ) -> dict[int, list[TimetableSlot]]:
        week = week_of.isoformat() if week_of else None
        if teacher is None:
            action = "getFullTimetable"
            result = self._get(action, weekOf=week)
        else:
            action = "getTeacherWeeklyTimetable"
            result = self._get(action, email=_ident(teacher), weekOf=week)
        return group_by_day(self._parse_rows(TimetableSlot, _unwrap_list(result, action), action))

    def absent_teachers(self, day: Date) -> list[AbsenceEntry]:
        action = "getAbsentTeachers"
        rows = _unwrap_list(self._get(action, date=day.isoformat()), action,
                            keys=("data", "absentTeachers", "teachers"))
        entries = []
        for row in rows:
            if isinstance(row, str):
                row = {"teacher": row}
            entries.extend(self._parse_rows(AbsenceEntry, [row], action, date=day.isoformat()))
        return entries

    def roster_teachers(self) -> list[TeacherRef]:
        action = "getPotentialAbsentTeachers"
        rows = _unwrap_list(self._get(action), action)
        teachers = []
        for row in rows:
            if isinstance(row, str):
                if row.strip():
                    teachers.append(TeacherRef.parse(row))
                continue
            teachers.extend(self._parse_rows(TeacherRef, [row], action))
        return teachers

    def roster_classes(self) -> list[str]:
        action = "getAllClasses"
        return [str(c) for c in _unwrap_list(self._get(action), action) if str(c).strip()]

    def daily_timetable_merged(self, day: Date) -> list[dict]:
        action = "getDailyTimetableWithSubstitutions"
        rows = _unwrap_list(self._get(action, date=day.isoformat()), action,
                            keys=("timetable", "data"))
        return [r for r in rows if isinstance(r, dict)]

    def substitutions_for_date(self, day: Date) -> list[SubstitutionRecord]:
        action = "getAssignedSubstitutions"
        rows = _unwrap_list(self._get(action, date=day.isoformat()), action,
                            keys=("assignedSubstitutions", "substitutions", "data"),
                            tolerant=True)
        return self._parse_rows(SubstitutionRecord, rows, action, date=day.isoformat())

    # ─── Schreiben ────────────────────────────────────────────────────────────

    def persist_substitution(
        self,
        record: SubstitutionRecord,
        expected_substitute: Optional[TeacherRef] = None,
    ) -> SubstitutionRecord:
        action = "assignSubstitution"
        payload = record.to_wire()
        payload["expectedSubstitute"] = _ident(expected_substitute)
        response = self._post(action, payload)

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code == 409 or (isinstance(body, dict) and body.get("conflict")):
            current = body.get("currentSubstitute") if isinstance(body, dict) else None
            raise ConflictError(
                f"Stunde {record.period} ({record.class_name}) wurde zwischenzeitlich "
                f"geändert (aktuell: {current or 'unbekannt'}).",
                date=record.date,
                period=record.period,
                class_name=record.class_name,
                current_substitute=TeacherRef.parse(current) if current else None,
            )
        if not response.ok:
            raise UpstreamUnavailable(
                f"{action}: HTTP {response.status_code} {response.text[:200]}",
                date=record.date, period=record.period, class_name=record.class_name,
            )
        if isinstance(body, dict) and body.get("success") is False:
            raise UpstreamUnavailable(
                f"{action}: {body.get('error') or body.get('message') or 'abgelehnt'}",
                date=record.date, period=record.period, class_name=record.class_name,
            )

        saved = body.get("substitution") if isinstance(body, dict) else None
        if isinstance(saved, dict):
            try:
                return SubstitutionRecord.model_validate(saved)
            except PydanticValidationError:
                logger.warning(f"{action}: Antwort nicht lesbar, verwende gesendeten Datensatz")
        return record

"""Tests für die Datenspeicher: JSON-Datei und Web-App (HTTP)."""

import json
from datetime import date

import pytest
import requests

from data.http_store import HttpRecordStore
from data.json_store import JsonFileStore, SchoolRecords
from data.record_store import merge_daily_timetable, substitute_matches
from engine.errors import ConflictError, UpstreamUnavailable
from models.substitution import SubstitutionRecord
from models.teacher import TeacherRef
from models.timetable import AbsenceEntry, TimetableSlot


MONDAY = date(2024, 3, 4)

ALICE = TeacherRef(email="alice@school", name="Alice Smith")
CAROL = TeacherRef(email="carol@school", name="Carol White")
DAVE = TeacherRef(email="dave@school", name="Dave Brown")


# ─── Testdaten-Hilfsfunktionen ────────────────────────────────────────────────

def _make_records() -> SchoolRecords:
    return SchoolRecords(
        teachers=[ALICE, CAROL, DAVE],
        classes=["6A"],
        timetable=[
            TimetableSlot(day=0, period=3, class_name="6A", subject="Math", teacher=ALICE),
            TimetableSlot(day=1, period=3, class_name="6A", subject="Physics", teacher=ALICE),
            TimetableSlot(date=date(2024, 3, 11), period=5, class_name="6A",
                          subject="Exkursion", teacher=CAROL),
        ],
        absences=[AbsenceEntry(date=MONDAY, teacher=TeacherRef(email="alice@school"))],
    )


def _make_json_store(tmp_path) -> JsonFileStore:
    path = tmp_path / "vertretungen.json"
    _make_records().save_json(path)
    return JsonFileStore(path)


def _record(substitute=CAROL, **extra) -> SubstitutionRecord:
    return SubstitutionRecord(
        date=MONDAY, period=3, class_name="6A", regular_subject="Math",
        absent_teacher=ALICE, substitute_teacher=substitute, **extra,
    )


class FakeResponse:
    def __init__(self, body=None, status_code=200, text=None):
        self._body = body
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(body)

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._body is None:
            raise ValueError("kein JSON")
        return self._body

    def raise_for_status(self):
        if not self.ok:
            raise requests.exceptions.HTTPError(f"HTTP {self.status_code}")


class FakeSession:
    """Ersetzt requests.Session: Antworten je action, Aufrufe werden protokolliert."""

    def __init__(self, get=None, post=None):
        self.get_responses = get or {}
        self.post_response = post
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append(("GET", url, params, timeout))
        response = self.get_responses[params["action"]]
        if isinstance(response, Exception):
            raise response
        return response

    def post(self, url, params=None, data=None, headers=None, timeout=None):
        self.calls.append(("POST", url, params, data, headers, timeout))
        if isinstance(self.post_response, Exception):
            raise self.post_response
        return self.post_response


def _make_http_store(**kwargs) -> tuple[HttpRecordStore, FakeSession]:
    session = FakeSession(**kwargs)
    return HttpRecordStore("https://schule.example/exec", timeout=5, session=session), session


# ─── JSON-DATEI ───────────────────────────────────────────────────────────────

class TestJsonFileStore:
    def test_missing_file_is_empty(self, tmp_path):
        store = JsonFileStore(tmp_path / "fehlt.json")
        assert store.roster_teachers() == []
        assert store.substitutions_for_date(MONDAY) == []

    def test_corrupt_file_raises_upstream(self, tmp_path):
        path = tmp_path / "kaputt.json"
        path.write_text("{ kein json", encoding="utf-8")
        with pytest.raises(UpstreamUnavailable):
            JsonFileStore(path).roster_teachers()

    def test_roundtrip_records(self, tmp_path):
        path = tmp_path / "daten.json"
        _make_records().save_json(path)
        loaded = SchoolRecords.load_json(path)
        assert loaded.teachers == [ALICE, CAROL, DAVE]
        assert loaded.created_at is not None
        assert loaded.modified_at is not None
        assert "Lehrkräfte: 3" in loaded.summary()

    def test_load_json_missing_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SchoolRecords.load_json(tmp_path / "nichts.json")

    def test_timetable_for_date(self, tmp_path):
        store = _make_json_store(tmp_path)
        monday = store.timetable_for_date(MONDAY)
        assert [(s.period, s.subject) for s in monday] == [(3, "Math")]
        next_monday = store.timetable_for_date(date(2024, 3, 11))
        assert sorted(s.subject for s in next_monday) == ["Exkursion", "Math"]

    def test_weekly_timetable_by_teacher(self, tmp_path):
        store = _make_json_store(tmp_path)
        weekly = store.weekly_timetable(teacher=TeacherRef(name="Alice Smith"))
        assert sorted(weekly) == [0, 1]

    def test_absent_teachers_by_date(self, tmp_path):
        store = _make_json_store(tmp_path)
        assert len(store.absent_teachers(MONDAY)) == 1
        assert store.absent_teachers(date(2024, 3, 5)) == []

    def test_persist_insert_then_update(self, tmp_path):
        store = _make_json_store(tmp_path)
        store.persist_substitution(_record())
        assert [r.substitute_teacher for r in store.substitutions_for_date(MONDAY)] == [CAROL]

        store.persist_substitution(_record(substitute=DAVE), expected_substitute=CAROL)
        saved = store.substitutions_for_date(MONDAY)
        assert len(saved) == 1
        assert saved[0].substitute_teacher == DAVE

    def test_persist_conflict_when_slot_changed(self, tmp_path):
        store = _make_json_store(tmp_path)
        store.persist_substitution(_record())
        with pytest.raises(ConflictError) as exc:
            store.persist_substitution(_record(substitute=DAVE))
        assert exc.value.current_substitute == CAROL
        assert store.substitutions_for_date(MONDAY)[0].substitute_teacher == CAROL

    def test_persist_conflict_when_slot_vanished(self, tmp_path):
        store = _make_json_store(tmp_path)
        with pytest.raises(ConflictError):
            store.persist_substitution(_record(substitute=DAVE), expected_substitute=CAROL)

    def test_merged_timetable_flags_substitutions(self, tmp_path):
        store = _make_json_store(tmp_path)
        store.persist_substitution(_record())
        rows = store.daily_timetable_merged(MONDAY)
        assert len(rows) == 1
        row = rows[0]
        assert row["isSubstitution"] is True
        assert row["teacherEmail"] == "carol@school"
        assert row["originalTeacher"] == "alice@school"


class TestStoreHelpers:
    def test_substitute_matches(self):
        assert substitute_matches(None, None)
        assert not substitute_matches(None, CAROL)
        assert not substitute_matches(_record(), None)
        assert substitute_matches(_record(), TeacherRef(email="CAROL@school"))

    def test_merge_keeps_extra_substitutions(self):
        extra = SubstitutionRecord(date=MONDAY, period=7, class_name="9B",
                                   substitute_teacher=DAVE, substitute_subject="AG")
        rows = merge_daily_timetable(MONDAY, _make_records().timetable, [extra])
        assert [(r["period"], r["isSubstitution"]) for r in rows] == [(3, False), (7, True)]


# ─── WEB-APP (HTTP) ───────────────────────────────────────────────────────────

class TestHttpRecordStore:
    def test_requires_base_url(self):
        with pytest.raises(ValueError):
            HttpRecordStore("")

    @pytest.mark.parametrize("body", [
        [{"date": "2024-03-04", "period": 3, "class": "6A", "substituteTeacher": "carol@school"}],
        {"data": [{"period": 3, "class": "6A", "substituteTeacher": "carol@school"}]},
        {"substitutions": [{"period": 3, "className": "6A", "substituteTeacher": "carol@school"}]},
    ])
    def test_substitutions_response_shapes(self, body):
        store, session = _make_http_store(get={"getAssignedSubstitutions": FakeResponse(body)})
        records = store.substitutions_for_date(MONDAY)
        assert len(records) == 1
        assert records[0].date == MONDAY
        assert records[0].substitute_teacher.email == "carol@school"
        _, url, params, timeout = session.calls[0]
        assert params == {"action": "getAssignedSubstitutions", "date": "2024-03-04"}
        assert timeout == 5

    def test_unknown_substitutions_shape_is_empty(self, caplog):
        """Nur die Vertretungsliste liest ein unbekanntes Format als leer."""
        store, _ = _make_http_store(get={"getAssignedSubstitutions": FakeResponse({"foo": 1})})
        with caplog.at_level("WARNING", logger="data.http_store"):
            assert store.substitutions_for_date(MONDAY) == []
        assert "als leer gelesen" in caplog.text

    def test_substitutions_error_body_raises_upstream(self):
        store, _ = _make_http_store(
            get={"getAssignedSubstitutions": FakeResponse({"success": False, "error": "Lock"})})
        with pytest.raises(UpstreamUnavailable, match="Lock"):
            store.substitutions_for_date(MONDAY)

    def test_absent_teachers_error_body_raises_upstream(self):
        """Eine Fehlerantwort mit HTTP 200 ist kein Tag ohne Abwesenheiten."""
        store, _ = _make_http_store(
            get={"getAbsentTeachers": FakeResponse({"error": "Sheet not found"})})
        with pytest.raises(UpstreamUnavailable, match="Sheet not found"):
            store.absent_teachers(MONDAY)

    @pytest.mark.parametrize("body", [{"foo": 1}, {"success": False}, "ok"])
    def test_roster_unknown_shape_raises_upstream(self, body):
        store, _ = _make_http_store(get={
            "getPotentialAbsentTeachers": FakeResponse(body),
            "getAllClasses": FakeResponse(body),
        })
        with pytest.raises(UpstreamUnavailable):
            store.roster_teachers()
        with pytest.raises(UpstreamUnavailable):
            store.roster_classes()

    def test_merged_timetable_unknown_shape_raises_upstream(self):
        store, _ = _make_http_store(
            get={"getDailyTimetableWithSubstitutions": FakeResponse({"foo": 1})})
        with pytest.raises(UpstreamUnavailable):
            store.daily_timetable_merged(MONDAY)

    def test_invalid_rows_skipped(self):
        body = [{"period": 3}, {"period": 4, "class": "7B", "substituteTeacher": "Dave Brown"}]
        store, _ = _make_http_store(get={"getAssignedSubstitutions": FakeResponse(body)})
        records = store.substitutions_for_date(MONDAY)
        assert [r.class_name for r in records] == ["7B"]

    def test_timeout_raises_upstream(self):
        store, _ = _make_http_store(
            get={"getAssignedSubstitutions": requests.exceptions.Timeout("zu langsam")})
        with pytest.raises(UpstreamUnavailable):
            store.substitutions_for_date(MONDAY)

    def test_http_error_raises_upstream(self):
        store, _ = _make_http_store(get={"getAllClasses": FakeResponse({"error": "x"}, 500)})
        with pytest.raises(UpstreamUnavailable):
            store.roster_classes()

    def test_non_json_raises_upstream(self):
        store, _ = _make_http_store(get={"getAllClasses": FakeResponse(None, text="<html>")})
        with pytest.raises(UpstreamUnavailable):
            store.roster_classes()

    def test_absent_teachers_plain_strings(self):
        body = {"absentTeachers": ["alice@school", {"teacherName": "Bob Jones"}]}
        store, _ = _make_http_store(get={"getAbsentTeachers": FakeResponse(body)})
        absences = store.absent_teachers(MONDAY)
        assert [a.teacher.label for a in absences] == ["alice@school", "Bob Jones"]
        assert all(a.date == MONDAY for a in absences)

    def test_roster_teachers(self):
        body = ["Alice Smith", {"email": "carol@school", "name": "Carol White"}, " "]
        store, _ = _make_http_store(get={"getPotentialAbsentTeachers": FakeResponse(body)})
        assert store.roster_teachers() == [TeacherRef(name="Alice Smith"), CAROL]

    def test_full_timetable_grouped(self):
        body = {"timetable": [
            {"day": "Monday", "period": 3, "class": "6A", "subject": "Math",
             "teacherEmail": "alice@school", "teacherName": "Alice Smith"},
            {"day": "Di", "period": 1, "class": "6A", "subject": "Physics",
             "teacherEmail": "alice@school"},
        ]}
        store, session = _make_http_store(get={"getFullTimetable": FakeResponse(body)})
        weekly = store.weekly_timetable()
        assert sorted(weekly) == [0, 1]
        assert weekly[0][0].teacher == ALICE
        assert session.calls[0][2] == {"action": "getFullTimetable"}

    def test_teacher_timetable_uses_email(self):
        store, session = _make_http_store(get={"getTeacherWeeklyTimetable": FakeResponse([])})
        store.weekly_timetable(teacher=ALICE)
        assert session.calls[0][2] == {"action": "getTeacherWeeklyTimetable", "email": "alice@school"}

    def test_post_body_is_text_plain_json(self):
        store, session = _make_http_store(post=FakeResponse({"success": True}))
        saved = store.persist_substitution(_record(), expected_substitute=None)
        assert saved == _record()

        method, _, params, data, headers, _ = session.calls[0]
        assert method == "POST"
        assert params == {"action": "assignSubstitution"}
        assert headers["Content-Type"].startswith("text/plain")
        payload = json.loads(data)
        assert payload["class"] == "6A"
        assert payload["substituteTeacher"] == "carol@school"
        assert payload["absentTeacher"] == "alice@school"
        assert payload["expectedSubstitute"] == ""

    def test_post_returns_server_record(self):
        server = {"date": "2024-03-04", "period": 3, "class": "6A",
                  "substituteTeacher": "carol@school", "note": "Raum 12"}
        store, _ = _make_http_store(post=FakeResponse({"success": True, "substitution": server}))
        assert store.persist_substitution(_record()).note == "Raum 12"

    @pytest.mark.parametrize("response", [
        FakeResponse({"success": False, "currentSubstitute": "dave@school"}, 409),
        FakeResponse({"success": False, "conflict": True, "currentSubstitute": "dave@school"}),
    ])
    def test_post_conflict(self, response):
        store, _ = _make_http_store(post=response)
        with pytest.raises(ConflictError) as exc:
            store.persist_substitution(_record())
        assert exc.value.current_substitute.email == "dave@school"

    def test_post_rejected_raises_upstream(self):
        store, _ = _make_http_store(post=FakeResponse({"success": False, "error": "gesperrt"}))
        with pytest.raises(UpstreamUnavailable, match="gesperrt"):
            store.persist_substitution(_record())

    def test_post_timeout_raises_upstream(self):
        store, _ = _make_http_store(post=requests.exceptions.ConnectionError("weg"))
        with pytest.raises(UpstreamUnavailable):
            store.persist_substitution(_record())

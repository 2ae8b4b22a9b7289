from __future__ import annotations

import pytest

from coaching_desk.roster.model import ClassRecord, Coach, Student

STUDENT_ID = "5" * 24


@pytest.fixture
def roster(store):
    store.coaches.add(Coach(coach_id="coach_1", name="Coach", email="coach@one.edu", management_id="mgmt_one"))
    store.classes.add(ClassRecord(class_id="C1", name="Batch A", management_id="mgmt_one", coach_id="coach_1"))
    store.classes.add(ClassRecord(class_id="C2", name="Empty", management_id="mgmt_one"))
    store.students.add(Student(student_id=STUDENT_ID, name="Kid", management_id="mgmt_one", class_id="C1"))
    return store


def test_put_class_updates_name(client, roster, sign_in, admin_session):
    sign_in(admin_session)
    resp = client.put("/classes", json={"classId": "C2", "name": "Batch B"})
    assert resp.status_code == 200
    assert roster.classes.get("mgmt_one", "C2").name == "Batch B"


def test_delete_class_with_students_is_bad_request(client, roster, sign_in, admin_session):
    sign_in(admin_session)
    resp = client.delete("/classes?classId=C1")
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Cannot delete class. It has 1 student(s). Please remove students first."

    assert client.delete("/classes?classId=C2").status_code == 200
    assert roster.classes.get("mgmt_one", "C2") is None


def test_delete_assigned_coach_is_bad_request(client, roster, sign_in, admin_session):
    sign_in(admin_session)
    resp = client.delete("/coaches?coachId=coach_1")
    assert resp.status_code == 400
    assert "assigned to 1 class(es)" in resp.get_json()["message"]


def test_put_and_delete_student(client, roster, sign_in, admin_session):
    sign_in(admin_session)
    assert client.put("/students", json={"studentId": STUDENT_ID, "classId": "C2"}).status_code == 200
    assert roster.students.get("mgmt_one", STUDENT_ID).class_id == "C2"

    assert client.delete(f"/students?studentId={STUDENT_ID}").status_code == 200
    assert client.delete(f"/students?studentId={STUDENT_ID}").status_code == 404


def test_coach_cannot_modify_roster(client, roster, sign_in, coach_session):
    sign_in(coach_session)
    assert client.put("/coaches", json={"coachId": "coach_1", "name": "Renamed"}).status_code == 403
    assert client.delete("/classes?classId=C2").status_code == 403

import os
from datetime import date, datetime

import pytest

from eltdash.extensions import db
from eltdash.models import Course, Document, Event, Candidate


@pytest.fixture
def course(instructor):
    row = Course(name="Book 3", student_count=12, start_date=date(2025, 1, 5),
                 instructor_id=instructor.id, school_id=instructor.school_id, status="In Progress")
    db.session.add(row)
    db.session.commit()
    return row


def test_evaluation_lifecycle(client, instructor, admin_headers):
    resp = client.post("/api/evaluations", json={
        "instructorId": instructor.id, "quarter": "Q2", "year": 2025, "score": 88, "feedback": "Strong lessons",
    }, headers=admin_headers)
    assert resp.status_code == 201
    evaluation = resp.get_json()
    assert evaluation["evaluatorId"] is not None

    resp = client.get(f"/api/evaluations/{evaluation['id']}", headers=admin_headers)
    assert resp.get_json()["score"] == 88

    resp = client.patch(f"/api/evaluations/{evaluation['id']}", json={"score": 91}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.get_json()["score"] == 91
    assert resp.get_json()["quarter"] == "Q2"

    listed = client.get("/api/evaluations?year=2025", headers=admin_headers).get_json()
    assert [e["id"] for e in listed] == [evaluation["id"]]
    assert client.get("/api/evaluations?year=2024", headers=admin_headers).get_json() == []

    assert client.delete(f"/api/evaluations/{evaluation['id']}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/evaluations/{evaluation['id']}", headers=admin_headers).status_code == 404


def test_evaluation_rejects_bad_quarter(client, instructor, admin_headers):
    resp = client.post("/api/evaluations", json={
        "instructorId": instructor.id, "quarter": "Q5", "year": 2025, "score": 70,
    }, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.get_json()["errors"][0]["path"] == ["quarter"]


def test_upcoming_events_respect_limit(client, schools, admin_headers):
    kfna, _ = schools
    for title, start, end in [
        ("Graduation", "2099-06-10T09:00:00", "2099-06-10T12:00:00"),
        ("Open day", "2099-03-01T09:00:00", "2099-03-01T15:00:00"),
        ("Old workshop", "2000-01-01T09:00:00", "2000-01-01T10:00:00"),
    ]:
        resp = client.post("/api/events", json={"title": title, "start": start, "end": end, "schoolId": kfna.id},
                           headers=admin_headers)
        assert resp.status_code == 201

    upcoming = client.get("/api/events/upcoming?limit=1", headers=admin_headers).get_json()
    assert [e["title"] for e in upcoming] == ["Open day"]
    assert len(client.get("/api/events", headers=admin_headers).get_json()) == 3


def test_event_patch_and_delete(client, admin_headers):
    resp = client.post("/api/events", json={
        "title": "Staff meeting", "start": "2099-02-01T08:00:00", "end": "2099-02-01T09:00:00",
    }, headers=admin_headers)
    event_id = resp.get_json()["id"]

    resp = client.patch(f"/api/events/{event_id}", json={"title": "All-staff meeting"}, headers=admin_headers)
    assert resp.get_json()["title"] == "All-staff meeting"

    resp = client.patch(f"/api/events/{event_id}", json={"end": "2099-01-01T08:00:00"}, headers=admin_headers)
    assert resp.status_code == 400

    assert client.delete(f"/api/events/{event_id}", headers=admin_headers).status_code == 204
    assert client.delete(f"/api/events/{event_id}", headers=admin_headers).status_code == 404


def test_student_and_test_results(client, course, admin_headers):
    resp = client.post("/api/students", json={
        "name": "Faisal Al-Qahtani", "rank": "Cadet", "schoolId": course.school_id, "enrollmentDate": "2025-01-05",
    }, headers=admin_headers)
    assert resp.status_code == 201
    student = resp.get_json()

    resp = client.patch(f"/api/students/{student['id']}", json={"rank": "Ensign"}, headers=admin_headers)
    assert resp.get_json()["rank"] == "Ensign"

    resp = client.post("/api/test-results", json={
        "studentId": student["id"], "courseId": course.id, "testDate": "2025-02-10", "score": 72, "type": "ALCPT",
    }, headers=admin_headers)
    assert resp.status_code == 201
    result_id = resp.get_json()["id"]

    assert client.get(f"/api/test-results/{result_id}", headers=admin_headers).get_json()["score"] == 72
    by_student = client.get(f"/api/students/{student['id']}/test-results", headers=admin_headers).get_json()
    by_course = client.get(f"/api/courses/{course.id}/test-results", headers=admin_headers).get_json()
    assert [r["id"] for r in by_student] == [result_id]
    assert [r["id"] for r in by_course] == [result_id]

    assert client.delete(f"/api/students/{student['id']}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/test-results/{result_id}", headers=admin_headers).status_code == 404


def test_test_result_for_unknown_student(client, course, admin_headers):
    resp = client.post("/api/test-results", json={
        "studentId": 999, "courseId": course.id, "testDate": "2025-02-10", "score": 50, "type": "ECL",
    }, headers=admin_headers)
    assert resp.status_code == 400


@pytest.mark.parametrize("url", [
    "/api/students/999", "/api/courses/999", "/api/evaluations/999", "/api/events/999",
    "/api/documents/999", "/api/candidates/999", "/api/action-logs/999", "/api/staff-leave/999",
    "/api/staff-attendance/999", "/api/staff-counseling/999", "/api/test-scores/999",
    "/api/schools/999", "/api/interview-questions/999",
])
def test_deleting_unknown_record_is_404(client, admin_headers, url):
    assert client.delete(url, headers=admin_headers).status_code == 404


def test_document_metadata_with_link(client, schools, admin_headers):
    kfna, _ = schools
    resp = client.post("/api/documents", json={
        "title": "Academic calendar", "type": "calendar", "schoolId": kfna.id,
        "fileUrl": "https://intranet.example.com/calendar.pdf",
    }, headers=admin_headers)
    assert resp.status_code == 201
    assert resp.get_json()["fileUrl"] == "https://intranet.example.com/calendar.pdf"

    listed = client.get("/api/documents", headers=admin_headers).get_json()
    assert [d["title"] for d in listed] == ["Academic calendar"]


def test_document_metadata_outside_upload_folder(client, app, tmp_path, admin_headers):
    secret = tmp_path / "outside" / "secret.env"
    secret.parent.mkdir()
    secret.write_text("JWT_SECRET_KEY=topsecret")

    resp = client.post("/api/documents", json={
        "title": "Settings", "type": "general", "fileUrl": str(secret),
    }, headers=admin_headers)
    assert resp.status_code == 400

    traversal = os.path.join(app.config["UPLOAD_FOLDER"], "..", "outside", "secret.env")
    resp = client.post("/api/documents", json={
        "title": "Settings", "type": "general", "fileUrl": traversal,
    }, headers=admin_headers)
    assert resp.status_code == 400


def test_download_only_serves_upload_folder(client, tmp_path, admin_headers):
    secret = tmp_path / "secret.env"
    secret.write_text("JWT_SECRET_KEY=topsecret")
    document = Document(title="Legacy row", type="general", file_url=str(secret))
    db.session.add(document)
    db.session.commit()

    resp = client.get(f"/api/documents/{document.id}/download", headers=admin_headers)
    assert resp.status_code == 404
    assert b"topsecret" not in resp.data
    assert secret.exists()

    assert client.delete(f"/api/documents/{document.id}", headers=admin_headers).status_code == 204
    assert secret.exists()


def test_pto_balance_without_leave(client, instructor, admin_headers):
    balances = client.get("/api/pto-balance?year=2025", headers=admin_headers).get_json()
    assert len(balances) == 1
    assert balances[0]["instructorId"] == instructor.id
    assert balances[0]["totalDays"] == 21
    assert balances[0]["usedDays"] == 0
    assert balances[0]["remainingDays"] == 21


def test_school_with_events_or_candidates_cannot_be_deleted(client, schools, admin_headers):
    _, east = schools
    db.session.add_all([
        Event(title="Open day", start=datetime(2025, 3, 1, 9), end=datetime(2025, 3, 1, 15), school_id=east.id),
        Candidate(name="Jane Smith", email="jane@example.com", school_id=east.id),
    ])
    db.session.commit()

    resp = client.delete(f"/api/schools/{east.id}", headers=admin_headers)
    assert resp.status_code == 409
    assert resp.get_json()["linked"] == ["events", "candidates"]
    assert Event.query.filter_by(school_id=east.id).count() == 1


def test_empty_school_can_be_deleted(client, schools, admin_headers):
    east_id = schools[1].id
    assert client.delete(f"/api/schools/{east_id}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/schools/{east_id}", headers=admin_headers).status_code == 404


def test_overlong_fields_are_rejected(client, instructor, admin_headers):
    resp = client.patch(f"/api/instructors/{instructor.id}", json={"name": "x" * 121}, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.get_json()["errors"][0]["path"] == ["name"]


def test_long_title_activity_is_truncated(client, admin_headers):
    title = "Policy " + "x" * 240
    resp = client.post("/api/documents", json={
        "title": title, "type": "policy", "fileUrl": "https://intranet.example.com/policy.pdf",
    }, headers=admin_headers)
    assert resp.status_code == 201

    latest = client.get("/api/activities/recent?limit=1", headers=admin_headers).get_json()[0]
    assert latest["type"] == "document_added"
    assert len(latest["description"]) == 255
    assert latest["description"].endswith("...")

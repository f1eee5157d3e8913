from eltdash.extensions import db
from eltdash.models import School
from eltdash.seed import seed_data


def test_duplicate_school_code_conflicts(client, schools, admin_headers):
    resp = client.post("/api/schools", json={"name": "Another", "code": "KFNA"}, headers=admin_headers)
    assert resp.status_code == 409


def test_school_by_code(client, schools, admin_headers):
    resp = client.get("/api/schools/code/NFS_EAST", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.get_json()["name"] == "NFS East"


def test_school_with_instructors_cannot_be_deleted(client, instructor, admin_headers):
    resp = client.delete(f"/api/schools/{instructor.school_id}", headers=admin_headers)
    assert resp.status_code == 409


def test_course_lifecycle(client, instructor, admin_headers):
    resp = client.post("/api/courses", json={
        "name": "ALCPT Prep", "studentCount": 14, "startDate": "2025-01-05", "endDate": "2025-03-30",
        "instructorId": instructor.id, "schoolId": instructor.school_id, "status": "In Progress",
    }, headers=admin_headers)
    assert resp.status_code == 201
    course_id = resp.get_json()["id"]

    resp = client.patch(f"/api/courses/{course_id}", json={"progress": 40}, headers=admin_headers)
    assert resp.get_json()["progress"] == 40

    resp = client.get(f"/api/schools/{instructor.school_id}/courses", headers=admin_headers)
    assert [c["id"] for c in resp.get_json()] == [course_id]

    assert client.delete(f"/api/courses/{course_id}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/courses/{course_id}", headers=admin_headers).status_code == 404


def test_course_end_before_start(client, instructor, admin_headers):
    resp = client.post("/api/courses", json={
        "name": "Book 2", "startDate": "2025-03-01", "endDate": "2025-01-01",
        "instructorId": instructor.id, "schoolId": instructor.school_id, "status": "Upcoming",
    }, headers=admin_headers)
    assert resp.status_code == 400


def test_seed_is_idempotent(app):
    first = seed_data()
    assert first["schools"] == 3
    assert first["users"] == 1
    second = seed_data()
    assert second == {"roles": 0, "schools": 0, "users": 0, "interviewQuestions": 0}
    assert db.session.query(School).count() == 3

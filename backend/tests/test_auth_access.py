from conftest import make_user
from eltdash.extensions import db
from eltdash.models import User, ActionLog, Activity


def login(client, username, password):
    return client.post("/api/auth/login", json={"username": username, "password": password})


def test_login_and_me(client, roles):
    make_user("hr_user", roles["hr"], password="s3cret-pass")
    resp = login(client, "hr_user", "s3cret-pass")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["user"]["role"] == "hr"
    assert "passwordHash" not in body["user"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['accessToken']}"})
    assert me.status_code == 200
    assert me.get_json()["username"] == "hr_user"


def test_wrong_password(client, roles):
    make_user("hr_user", roles["hr"], password="s3cret-pass")
    assert login(client, "hr_user", "nope").status_code == 401


def test_logout_revokes_token(client, roles):
    make_user("hr_user", roles["hr"], password="s3cret-pass")
    token = login(client, "hr_user", "s3cret-pass").get_json()["accessToken"]
    headers = {"Authorization": f"Bearer {token}"}

    assert client.post("/api/auth/logout", headers=headers).status_code == 200
    assert client.get("/api/auth/me", headers=headers).status_code == 401


def test_approved_request_can_log_in(client, schools, admin_headers):
    kfna, _ = schools
    resp = client.post("/api/access-requests", json={
        "fullName": "Nora Hassan", "email": "nora@example.com", "reason": "New HR coordinator",
    })
    assert resp.status_code == 201
    request_id = resp.get_json()["id"]

    resp = client.post(f"/api/access-requests/{request_id}/approve", json={
        "username": "nora", "password": "welcome-2025", "role": "school_admin", "schoolId": kfna.id,
    }, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.get_json()["request"]["status"] == "approved"

    again = client.post(f"/api/access-requests/{request_id}/reject", headers=admin_headers)
    assert again.status_code == 409

    resp = login(client, "nora", "welcome-2025")
    assert resp.status_code == 200
    assert resp.get_json()["user"]["schoolId"] == kfna.id


def test_access_request_needs_valid_email(client, roles):
    resp = client.post("/api/access-requests", json={
        "fullName": "Nora Hassan", "email": "not-an-email", "reason": "x",
    })
    assert resp.status_code == 400


def test_change_password(client, roles):
    make_user("tutor", roles["instructor"], password="old-password")
    token = login(client, "tutor", "old-password").get_json()["accessToken"]
    resp = client.post("/api/change-password", json={
        "currentPassword": "old-password", "newPassword": "new-password-1",
    }, headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert login(client, "tutor", "new-password-1").status_code == 200


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "healthy"


def approve(client, request_id, headers, username="nora"):
    return client.post(f"/api/access-requests/{request_id}/approve", json={
        "username": username, "password": "welcome-2025", "role": "hr",
    }, headers=headers)


def test_registration_for_existing_email_conflicts(client, roles, admin_headers):
    existing = make_user("nora", roles["hr"], password="original-pass")
    existing.email = "nora@example.com"
    db.session.commit()

    request_id = client.post("/api/access-requests", json={
        "fullName": "Nora Hassan", "email": "nora@example.com", "reason": "Second account",
    }).get_json()["id"]

    assert approve(client, request_id, admin_headers, username="nora2").status_code == 409
    assert User.query.filter_by(username="nora2").first() is None
    assert existing.check_password("original-pass")


def test_password_reset_reuses_existing_account(client, roles, admin_headers):
    existing = make_user("nora", roles["hr"], password="original-pass")
    existing.email = "nora@example.com"
    db.session.commit()

    request_id = client.post("/api/access-requests", json={
        "fullName": "Nora Hassan", "email": "nora@example.com", "reason": "Forgot password",
        "requestType": "password_reset",
    }).get_json()["id"]

    resp = approve(client, request_id, admin_headers, username="ignored")
    assert resp.status_code == 200
    assert resp.get_json()["user"]["username"] == "nora"
    assert login(client, "nora", "welcome-2025").status_code == 200


def test_deleting_user_clears_their_references(client, schools, roles, admin, admin_headers):
    kfna, _ = schools
    hr = make_user("hr_user", roles["hr"])
    log = ActionLog(title="Order books", description="Book 3 stock", created_by=hr.id, school_id=kfna.id)
    activity = Activity(type="course_added", description="Course added", user_id=hr.id)
    db.session.add_all([log, activity])
    db.session.commit()
    hr_id, log_id, activity_id = hr.id, log.id, activity.id

    assert client.delete(f"/api/users/{hr_id}", headers=admin_headers).status_code == 204
    assert db.session.get(User, hr_id) is None
    assert db.session.get(ActionLog, log_id).created_by is None
    assert db.session.get(Activity, activity_id).user_id is None


def test_deleting_unknown_user_is_404(client, admin_headers):
    assert client.delete("/api/users/999", headers=admin_headers).status_code == 404

from conftest import make_user, auth_headers


def instructor_payload(school_id, **overrides):
    payload = {
        "name": "John Smith",
        "nationality": "American",
        "credentials": "MA TESOL",
        "startDate": "2024-01-15",
        "compound": "Al Fanar",
        "schoolId": school_id,
        "phone": "0551234567",
        "accompaniedStatus": "Accompanied",
        "email": "john.smith@example.com",
    }
    payload.update(overrides)
    return payload


def test_create_instructor_then_get(client, schools, admin_headers):
    kfna, _ = schools
    resp = client.post("/api/instructors", json=instructor_payload(kfna.id), headers=admin_headers)
    assert resp.status_code == 201
    created = resp.get_json()
    assert created["name"] == "John Smith"
    assert created["startDate"] == "2024-01-15"

    resp = client.get(f"/api/instructors/{created['id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.get_json()["nationality"] == "American"


def test_create_instructor_missing_field_is_rejected(client, schools, admin_headers):
    kfna, _ = schools
    payload = instructor_payload(kfna.id)
    del payload["nationality"]
    resp = client.post("/api/instructors", json=payload, headers=admin_headers)
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["message"] == "Invalid instructor data"
    assert any(err["path"] == ["nationality"] for err in body["errors"])


def test_create_instructor_unknown_school(client, schools, admin_headers):
    resp = client.post("/api/instructors", json=instructor_payload(999), headers=admin_headers)
    assert resp.status_code == 400


def test_delete_missing_instructor_returns_404(client, schools, admin_headers):
    resp = client.delete("/api/instructors/4242", headers=admin_headers)
    assert resp.status_code == 404
    assert resp.get_json()["message"] == "Instructor not found"


def test_patch_only_changes_sent_fields(client, instructor, admin_headers):
    resp = client.patch(f"/api/instructors/{instructor.id}", json={"compound": "Dana"}, headers=admin_headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["compound"] == "Dana"
    assert body["name"] == "Sarah Jones"


def test_requires_authentication(client, schools):
    resp = client.get("/api/instructors")
    assert resp.status_code == 401


def test_school_bound_user_only_sees_own_school(client, schools, roles, admin_headers):
    kfna, east = schools
    client.post("/api/instructors", json=instructor_payload(kfna.id), headers=admin_headers)
    client.post("/api/instructors", json=instructor_payload(east.id, name="Amy Lee"), headers=admin_headers)

    school_admin = make_user("east_admin", roles["school_admin"], east)
    headers = auth_headers(school_admin)

    resp = client.get("/api/instructors", headers=headers)
    assert [i["name"] for i in resp.get_json()] == ["Amy Lee"]

    resp = client.get(f"/api/instructors?schoolId={kfna.id}", headers=headers)
    assert resp.status_code == 403


def test_viewer_cannot_create(client, schools, roles):
    kfna, _ = schools
    viewer = make_user("viewer", roles["viewer"])
    resp = client.post("/api/instructors", json=instructor_payload(kfna.id), headers=auth_headers(viewer))
    assert resp.status_code == 403


def test_paginated_search(client, schools, admin_headers):
    kfna, _ = schools
    for name in ("Alice Brown", "Bob Green", "Alicia Keys"):
        client.post("/api/instructors", json=instructor_payload(kfna.id, name=name), headers=admin_headers)

    resp = client.get("/api/instructors?page=1&perPage=10&search=ali", headers=admin_headers)
    body = resp.get_json()
    assert body["total"] == 2
    assert sorted(i["name"] for i in body["items"]) == ["Alice Brown", "Alicia Keys"]


def test_form_schema_lists_school_options(client, schools, admin_headers):
    resp = client.get("/api/instructors/form-schema", headers=admin_headers)
    assert resp.status_code == 200
    fields = {f["name"]: f for f in resp.get_json()["fields"]}
    assert fields["schoolId"]["type"] == "select"
    assert {o["label"] for o in fields["schoolId"]["options"]} == {"KFNA", "NFS East"}
    assert fields["startDate"]["type"] == "date"
    assert fields["phone"]["type"] == "tel"

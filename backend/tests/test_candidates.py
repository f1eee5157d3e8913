from conftest import make_user, auth_headers


def candidate_payload(**overrides):
    payload = {
        "name": "Emily Clark",
        "email": "emily.clark@example.com",
        "nativeEnglishSpeaker": True,
        "degree": "Master",
        "degreeField": "Applied Linguistics",
        "yearsExperience": 6,
        "hasCertifications": True,
        "certifications": "CELTA",
        "classroomManagement": 8,
        "grammarProficiency": 9,
    }
    payload.update(overrides)
    return payload


def test_create_candidate_computes_overall_score(client, schools, admin_headers):
    resp = client.post("/api/candidates", json=candidate_payload(), headers=admin_headers)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["overallScore"] == 85
    assert body["status"] == "new"


def test_assessment_scores_are_bounded(client, schools, admin_headers):
    resp = client.post("/api/candidates", json=candidate_payload(grammarProficiency=11), headers=admin_headers)
    assert resp.status_code == 400


def test_rank_candidates_without_ai_key(client, schools, admin_headers):
    client.post("/api/candidates", json=candidate_payload(), headers=admin_headers)
    client.post("/api/candidates", json=candidate_payload(
        name="Mark Hill", email="mark@example.com", yearsExperience=1, hasCertifications=False,
        nativeEnglishSpeaker=False, degree="Bachelor", degreeField="History",
    ), headers=admin_headers)
    client.post("/api/candidates", json=candidate_payload(
        name="Rejected Person", email="r@example.com", status="rejected", yearsExperience=20,
    ), headers=admin_headers)

    resp = client.get("/api/candidates/rank-candidates", headers=admin_headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["method"] == "score"
    assert [c["name"] for c in body["rankedCandidates"]] == ["Emily Clark", "Mark Hill"]
    assert body["rationale"]


def test_status_change_through_patch(client, schools, admin_headers):
    candidate_id = client.post("/api/candidates", json=candidate_payload(),
                               headers=admin_headers).get_json()["id"]
    resp = client.patch(f"/api/candidates/{candidate_id}", json={"status": "shortlisted"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "shortlisted"
    assert resp.get_json()["name"] == "Emily Clark"


def test_instructors_cannot_see_candidates(client, schools, roles):
    kfna, _ = schools
    tutor = make_user("tutor", roles["instructor"], kfna)
    resp = client.get("/api/candidates", headers=auth_headers(tutor))
    assert resp.status_code == 403


def test_interview_questions(client, schools, admin_headers):
    resp = client.post("/api/interview-questions", json={
        "question": "How do you teach phrasal verbs?", "category": "technical",
    }, headers=admin_headers)
    assert resp.status_code == 201
    question_id = resp.get_json()["id"]

    listed = client.get("/api/interview-questions?category=technical", headers=admin_headers).get_json()
    assert [q["id"] for q in listed] == [question_id]

    assert client.delete(f"/api/interview-questions/{question_id}", headers=admin_headers).status_code == 204
    assert client.delete(f"/api/interview-questions/{question_id}", headers=admin_headers).status_code == 404

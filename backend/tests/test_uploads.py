import io
import json
import os

import pytest

from eltdash.routes import uploads


@pytest.fixture
def sniff_as(monkeypatch):
    def set_mime(mime):
        monkeypatch.setattr(uploads, "detect_mime", lambda head: mime)
    return set_mime


def test_document_upload_download_and_delete(client, schools, admin_headers, sniff_as):
    kfna, _ = schools
    sniff_as("application/pdf")
    resp = client.post("/api/documents/upload", headers=admin_headers, content_type="multipart/form-data", data={
        "file": (io.BytesIO(b"%PDF-1.4 policy"), "Leave Policy.pdf"),
        "type": "policy",
        "schoolId": str(kfna.id),
    })
    assert resp.status_code == 201
    document = resp.get_json()
    assert document["title"] == "Leave Policy"
    assert document["originalName"] == "Leave Policy.pdf"
    assert os.path.exists(document["fileUrl"])

    download = client.get(f"/api/documents/{document['id']}/download", headers=admin_headers)
    assert download.status_code == 200
    assert download.data == b"%PDF-1.4 policy"

    assert client.delete(f"/api/documents/{document['id']}", headers=admin_headers).status_code == 204
    assert not os.path.exists(document["fileUrl"])


def test_document_upload_rejects_disguised_file(client, schools, admin_headers, sniff_as):
    sniff_as("application/x-dosexec")
    resp = client.post("/api/documents/upload", headers=admin_headers, content_type="multipart/form-data", data={
        "file": (io.BytesIO(b"MZ..."), "report.pdf"),
    })
    assert resp.status_code == 400


def test_parse_resume_returns_fields_and_url(client, schools, admin_headers, sniff_as):
    sniff_as("text/plain")
    text = b"Name: Laura Green\nEmail: laura@example.com\nCELTA\n8 years of teaching experience\n"
    resp = client.post("/api/candidates/parse-resume", headers=admin_headers, content_type="multipart/form-data",
                       data={"resume": (io.BytesIO(text), "laura.txt")})
    assert resp.status_code == 200
    extracted = resp.get_json()["extractedData"]
    assert extracted["name"] == "Laura Green"
    assert extracted["email"] == "laura@example.com"
    assert extracted["yearsExperience"] == 8
    assert extracted["certifications"] == "CELTA"
    assert extracted["resumeUrl"].endswith("_laura.txt")


def test_resume_upload_requires_file(client, schools, admin_headers):
    resp = client.post("/api/upload/resume", headers=admin_headers, content_type="multipart/form-data", data={})
    assert resp.status_code == 400


def test_counseling_multipart_with_attachment(client, instructor, admin_headers, sniff_as):
    sniff_as("image/png")
    data = {
        "data": json.dumps({
            "schoolId": instructor.school_id,
            "instructorId": instructor.id,
            "counselingType": "Written Warning",
            "counselingDate": "2025-02-14",
            "comments": "Late to class three times",
        }),
        "attachment": (io.BytesIO(b"\x89PNG fake"), "note.png"),
    }
    resp = client.post("/api/staff-counseling", headers=admin_headers, data=data,
                       content_type="multipart/form-data")
    assert resp.status_code == 201
    record = resp.get_json()
    assert record["counselingType"] == "Written Warning"
    assert record["attachmentUrl"].endswith("_note.png")

    by_instructor = client.get(f"/api/instructors/{instructor.id}/staff-counseling", headers=admin_headers)
    assert [r["id"] for r in by_instructor.get_json()] == [record["id"]]


def test_counseling_instructor_must_match_school(client, instructor, schools, admin_headers):
    _, east = schools
    resp = client.post("/api/staff-counseling", headers=admin_headers, json={
        "schoolId": east.id,
        "instructorId": instructor.id,
        "counselingType": "Verbal Warning",
        "counselingDate": "2025-02-14",
    })
    assert resp.status_code == 400


@pytest.mark.parametrize("filename, mime", [("jane.md", "text/plain"), ("jane.rtf", "text/rtf")])
def test_parse_resume_accepts_markdown_and_rtf(client, schools, admin_headers, sniff_as, filename, mime):
    sniff_as(mime)
    text = b"Name: Jane Smith\nEmail: jane@example.com\nTESOL certified\n"
    resp = client.post("/api/candidates/parse-resume", headers=admin_headers, content_type="multipart/form-data",
                       data={"resume": (io.BytesIO(text), filename)})
    assert resp.status_code == 200
    extracted = resp.get_json()["extractedData"]
    assert extracted["name"] == "Jane Smith"
    assert extracted["certifications"] == "TESOL"
    assert extracted["resumeUrl"].endswith("_" + filename)

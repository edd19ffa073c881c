import pytest

from app.core.config import get_settings
from app.core.exceptions import StorageError
from app.models.user import UserRole

from conftest import auth_headers, session_row

PDF = "application/pdf"
PPTX = "application/vnd.openxmlformats-officedocument.presentationml.presentation"


def _upload_cv(client, user, *, faculty_id=None, filename="cv.pdf", content=b"%PDF-1.4 cv", content_type=PDF, session_id=None):
    data = {"facultyId": faculty_id or user.id}
    if session_id:
        data["sessionId"] = session_id
    return client.post(
        "/api/faculty/cv",
        data=data,
        files={"file": (filename, content, content_type)},
        headers=auth_headers(user),
    )


@pytest.fixture()
def accepted_session(client, organizer, faculty_user, room, event):
    created = client.post(
        "/api/sessions",
        json={
            "facultyId": faculty_user.id,
            "email": faculty_user.email,
            "eventId": event.id,
            **session_row(room.id, title="Keynote", start="2026-03-10T10:00:00Z", end="2026-03-10T11:00:00Z"),
        },
        headers=auth_headers(organizer),
    )
    assert created.status_code == 201, created.text
    session_id = created.json()["session"]["id"]
    accepted = client.post(
        "/api/sessions/respond",
        json={"id": session_id, "inviteStatus": "Accepted"},
        headers=auth_headers(faculty_user),
    )
    assert accepted.status_code == 200
    return accepted.json()


def test_cv_upload_list_and_delete(client, faculty_user, storage):
    uploaded = _upload_cv(client, faculty_user)
    assert uploaded.status_code == 200, uploaded.text
    cv = uploaded.json()["cv"]
    assert cv["originalFilename"] == "cv.pdf"
    assert cv["isApproved"] is False
    assert cv["filePath"].startswith("/uploads/cv/")
    assert storage.exists(cv["filePath"])
    assert uploaded.json()["warnings"] == []

    listing = client.get("/api/faculty/cv", params={"facultyId": faculty_user.id}, headers=auth_headers(faculty_user))
    assert [item["id"] for item in listing.json()["cvs"]] == [cv["id"]]

    deleted = client.request(
        "DELETE",
        "/api/faculty/cv",
        json={"id": cv["id"], "facultyId": faculty_user.id},
        headers=auth_headers(faculty_user),
    )
    assert deleted.status_code == 200
    assert deleted.json()["success"] is True
    assert not storage.exists(cv["filePath"])


def test_cv_upload_rejects_type_and_size(client, faculty_user, monkeypatch):
    wrong_type = _upload_cv(client, faculty_user, filename="cv.png", content_type="image/png")
    assert wrong_type.status_code == 400
    assert wrong_type.json()["message"] == "Only PDF, DOC, DOCX files are allowed"

    monkeypatch.setattr(get_settings(), "cv_max_bytes", 4)
    too_large = _upload_cv(client, faculty_user)
    assert too_large.status_code == 400
    assert "File size must be" in too_large.json()["message"]

    missing = client.post("/api/faculty/cv", data={"facultyId": faculty_user.id}, headers=auth_headers(faculty_user))
    assert missing.status_code == 400


def test_cv_replace_swaps_the_file(client, faculty_user, storage):
    original = _upload_cv(client, faculty_user).json()["cv"]

    replaced = client.post(
        "/api/faculty/cv/replace",
        data={"id": original["id"], "facultyId": faculty_user.id},
        files={"file": ("cv-2026.docx", b"docx bytes", "application/vnd.openxmlformats-officedocument.wordprocessingml.document")},
        headers=auth_headers(faculty_user),
    )
    assert replaced.status_code == 200, replaced.text
    cv = replaced.json()["cv"]
    assert cv["id"] == original["id"]
    assert cv["originalFilename"] == "cv-2026.docx"
    assert cv["filePath"] != original["filePath"]
    assert storage.exists(cv["filePath"])
    assert not storage.exists(original["filePath"])
    assert replaced.json()["warnings"] == []


def test_cv_replace_reports_missing_old_file_as_warning(client, faculty_user, storage):
    original = _upload_cv(client, faculty_user).json()["cv"]
    storage.resolve(original["filePath"]).unlink()

    replaced = client.post(
        "/api/faculty/cv/replace",
        data={"id": original["id"], "facultyId": faculty_user.id},
        files={"file": ("cv.pdf", b"%PDF new", PDF)},
        headers=auth_headers(faculty_user),
    )
    assert replaced.status_code == 200
    assert len(replaced.json()["warnings"]) == 1


def test_faculty_cannot_touch_another_faculty_cv(client, faculty_user, make_user):
    cv = _upload_cv(client, faculty_user).json()["cv"]
    stranger = make_user(UserRole.faculty, "stranger@example.com")

    listing = client.get("/api/faculty/cv", params={"facultyId": faculty_user.id}, headers=auth_headers(stranger))
    assert listing.status_code == 403

    replace = client.post(
        "/api/faculty/cv/replace",
        data={"id": cv["id"], "facultyId": stranger.id},
        files={"file": ("cv.pdf", b"%PDF", PDF)},
        headers=auth_headers(stranger),
    )
    assert replace.status_code == 403
    assert replace.json()["message"] == "Not authorized to replace this CV"


def test_organizer_can_upload_cv_for_faculty(client, organizer, faculty_user):
    response = _upload_cv(client, organizer, faculty_id=faculty_user.id)
    assert response.status_code == 200
    assert response.json()["cv"]["facultyId"] == faculty_user.id


def test_cv_session_link_requires_an_accepted_session(client, faculty_user, accepted_session):
    linked = _upload_cv(client, faculty_user, session_id=accepted_session["id"])
    assert linked.json()["cv"]["sessionMetadataId"] == accepted_session["id"]

    unlinked = _upload_cv(client, faculty_user, session_id="not-a-session")
    assert unlinked.status_code == 200
    assert unlinked.json()["cv"]["sessionMetadataId"] is None
    assert len(unlinked.json()["warnings"]) == 1


def test_presentation_upload_list_and_delete(client, faculty_user, accepted_session, storage):
    uploaded = client.post(
        "/api/faculty/presentations/upload",
        data={"facultyId": faculty_user.id, "sessionId": accepted_session["id"]},
        files=[
            ("files", ("keynote-slides.pptx", b"pptx bytes", PPTX)),
            ("files", ("handout.pdf", b"%PDF handout", PDF)),
        ],
        headers=auth_headers(faculty_user),
    )
    assert uploaded.status_code == 200, uploaded.text
    presentations = uploaded.json()["presentations"]
    assert [item["title"] for item in presentations] == ["keynote-slides", "handout"]
    assert all(item["sessionId"] == accepted_session["id"] for item in presentations)
    assert all(storage.exists(item["filePath"]) for item in presentations)

    listing = client.get(
        "/api/faculty/presentations/upload",
        params={"facultyId": faculty_user.id, "sessionId": accepted_session["id"]},
        headers=auth_headers(faculty_user),
    )
    assert len(listing.json()["presentations"]) == 2

    removed = client.request(
        "DELETE",
        "/api/faculty/presentations/upload",
        json={"fileId": presentations[0]["id"], "facultyId": faculty_user.id},
        headers=auth_headers(faculty_user),
    )
    assert removed.status_code == 200
    assert not storage.exists(presentations[0]["filePath"])


def test_presentation_upload_validates_every_file_first(client, faculty_user, storage):
    response = client.post(
        "/api/faculty/presentations/upload",
        data={"facultyId": faculty_user.id},
        files=[
            ("files", ("slides.pptx", b"pptx bytes", PPTX)),
            ("files", ("video.mp4", b"mp4 bytes", "video/mp4")),
        ],
        headers=auth_headers(faculty_user),
    )
    assert response.status_code == 400
    assert response.json()["message"] == 'File "video.mp4": Only PDF, PPT, PPTX, DOC, DOCX files are allowed'
    assert list((storage.root / "presentations").iterdir()) == []

    empty = client.post(
        "/api/faculty/presentations/upload",
        data={"facultyId": faculty_user.id},
        headers=auth_headers(faculty_user),
    )
    assert empty.status_code == 400
    assert empty.json()["message"] == "No files provided"


def test_presentation_write_failure_reports_files_already_saved(client, faculty_user, storage, monkeypatch):
    original_write = storage.write
    calls = []

    def flaky_write(category, filename, data):
        calls.append(filename)
        if len(calls) == 2:
            raise StorageError("Failed to store uploaded file", reason="No space left on device")
        return original_write(category, filename, data)

    monkeypatch.setattr(storage, "write", flaky_write)
    response = client.post(
        "/api/faculty/presentations/upload",
        data={"facultyId": faculty_user.id},
        files=[
            ("files", ("slides.pptx", b"pptx bytes", PPTX)),
            ("files", ("handout.pdf", b"%PDF handout", PDF)),
        ],
        headers=auth_headers(faculty_user),
    )
    assert response.status_code == 500
    body = response.json()
    assert body["message"] == 'Failed to save presentation "handout.pdf"'
    assert body["details"]["reason"] == "No space left on device"
    assert len(body["details"]["uploadedIds"]) == 1

    listing = client.get(
        "/api/faculty/presentations/upload",
        params={"facultyId": faculty_user.id},
        headers=auth_headers(faculty_user),
    )
    assert [item["id"] for item in listing.json()["presentations"]] == body["details"]["uploadedIds"]


def test_documents_overview_is_role_scoped(client, organizer, faculty_user, make_user, accepted_session, event):
    _upload_cv(client, faculty_user)
    client.post(
        "/api/faculty/presentations/upload",
        data={"facultyId": faculty_user.id, "sessionId": accepted_session["id"]},
        files=[("files", ("slides.pdf", b"%PDF slides", PDF))],
        headers=auth_headers(faculty_user),
    )

    overview = client.get("/api/faculty/documents", params={"eventId": event.id}, headers=auth_headers(organizer))
    assert overview.status_code == 200
    body = overview.json()
    assert body["meta"]["viewType"] == "all-faculty"
    assert body["meta"]["totalFaculty"] == 1
    assert body["meta"]["withPresentations"] == 1
    assert body["meta"]["withCVs"] == 1
    entry = body["data"][0]
    assert entry["name"] == "Dr. Faculty"
    assert entry["institution"] == "City Hospital"
    assert entry["sessionTitle"] == "Keynote"
    assert entry["presentation"]["fileName"] == "slides"
    assert entry["cv"]["fileName"] == "cv.pdf"

    own = client.get("/api/faculty/documents", params={"eventId": event.id}, headers=auth_headers(faculty_user)).json()
    assert own["meta"]["viewType"] == "self-only"
    assert [item["id"] for item in own["data"]] == [faculty_user.id]

    stranger = make_user(UserRole.faculty, "stranger@example.com")
    none = client.get("/api/faculty/documents", params={"eventId": event.id}, headers=auth_headers(stranger)).json()
    assert none["data"] == []
    assert none["meta"]["message"] == "You are not associated with this session"

from app.models.user import UserRole

from conftest import auth_headers, session_row


def _create(client, headers, faculty, room_id, *, title, start, end):
    response = client.post(
        "/api/sessions",
        json={
            "facultyId": faculty.id,
            "email": faculty.email,
            **session_row(room_id, title=title, start=start, end=end),
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["session"]


def test_rescheduling_notifies_faculty(client, organizer, faculty_user, room, outbox):
    headers = auth_headers(organizer)
    session = _create(client, headers, faculty_user, room.id, title="Keynote", start="2026-03-10T10:00:00Z", end="2026-03-10T11:00:00Z")

    response = client.put(
        f"/api/sessions/{session['id']}",
        json={"startTime": "2026-03-10T13:00:00Z", "endTime": "2026-03-10T14:00:00Z"},
        headers=headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["session"]["startTime"].startswith("2026-03-10T13:00:00")
    assert body["notification"]["status"] == "ok"
    assert outbox.messages[-1]["subject"] == "Session Updated: Keynote"
    assert "10 Mar 2026, 13:00 UTC" in outbox.messages[-1]["text"]


def test_title_only_edit_sends_no_notification(client, organizer, faculty_user, room, outbox):
    headers = auth_headers(organizer)
    session = _create(client, headers, faculty_user, room.id, title="Keynote", start="2026-03-10T10:00:00Z", end="2026-03-10T11:00:00Z")

    response = client.put(f"/api/sessions/{session['id']}", json={"title": "Opening Keynote"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["session"]["title"] == "Opening Keynote"
    assert response.json()["notification"] is None
    assert outbox.messages == []


def test_rescheduling_into_a_conflict_is_rejected(client, organizer, faculty_user, room, second_room):
    headers = auth_headers(organizer)
    _create(client, headers, faculty_user, room.id, title="Morning", start="2026-03-10T09:00:00Z", end="2026-03-10T10:00:00Z")
    later = _create(client, headers, faculty_user, second_room.id, title="Later", start="2026-03-10T12:00:00Z", end="2026-03-10T13:00:00Z")

    moved = client.put(
        f"/api/sessions/{later['id']}",
        json={"startTime": "2026-03-10T09:30:00Z", "endTime": "2026-03-10T10:30:00Z"},
        headers=headers,
    )
    assert moved.status_code == 409
    assert moved.json()["conflicts"][0]["title"] == "Morning"

    # A session never conflicts with itself.
    shifted = client.put(
        f"/api/sessions/{later['id']}",
        json={"startTime": "2026-03-10T12:30:00Z", "endTime": "2026-03-10T13:30:00Z"},
        headers=headers,
    )
    assert shifted.status_code == 200


def test_update_validates_duration_and_room(client, organizer, faculty_user, room):
    headers = auth_headers(organizer)
    session = _create(client, headers, faculty_user, room.id, title="Keynote", start="2026-03-10T10:00:00Z", end="2026-03-10T11:00:00Z")

    short = client.put(f"/api/sessions/{session['id']}", json={"endTime": "2026-03-10T10:05:00Z"}, headers=headers)
    assert short.status_code == 400
    assert short.json()["details"]["fields"]["endTime"] == "Session must be at least 15 minutes long"

    bad_room = client.put(f"/api/sessions/{session['id']}", json={"roomId": "nowhere"}, headers=headers)
    assert bad_room.status_code == 400

    travel = client.put(f"/api/sessions/{session['id']}", json={"travelStatus": "Arranged"}, headers=headers)
    assert travel.status_code == 200
    assert travel.json()["session"]["travelStatus"] == "Arranged"


def test_update_rejects_null_status_fields(client, organizer, faculty_user, room):
    headers = auth_headers(organizer)
    session = _create(client, headers, faculty_user, room.id, title="Keynote", start="2026-03-10T10:00:00Z", end="2026-03-10T11:00:00Z")

    cleared_status = client.put(f"/api/sessions/{session['id']}", json={"status": None}, headers=headers)
    assert cleared_status.status_code == 400
    assert cleared_status.json()["details"]["fields"] == {"status": "Status is required"}

    cleared_travel = client.put(f"/api/sessions/{session['id']}", json={"travelStatus": None}, headers=headers)
    assert cleared_travel.status_code == 400
    assert cleared_travel.json()["details"]["fields"] == {"travelStatus": "Travel status is required"}

    unchanged = client.get(f"/api/sessions/{session['id']}", headers=headers).json()
    assert unchanged["status"] == session["status"]
    assert unchanged["travelStatus"] == session["travelStatus"]


def test_session_detail_is_limited_to_owner_and_organizers(client, organizer, faculty_user, make_user, room):
    session = _create(
        client,
        auth_headers(organizer),
        faculty_user,
        room.id,
        title="Keynote",
        start="2026-03-10T10:00:00Z",
        end="2026-03-10T11:00:00Z",
    )
    assert client.get(f"/api/sessions/{session['id']}", headers=auth_headers(faculty_user)).status_code == 200

    stranger = make_user(UserRole.faculty, "stranger@example.com")
    assert client.get(f"/api/sessions/{session['id']}", headers=auth_headers(stranger)).status_code == 403
    assert client.get("/api/sessions/unknown", headers=auth_headers(organizer)).status_code == 404

    own = client.get("/api/sessions", headers=auth_headers(stranger))
    assert own.status_code == 200
    assert own.json() == []

from app.models.user import UserRole

from conftest import auth_headers


def _accommodation(**overrides):
    payload = {
        "type": "accessibility",
        "priority": "normal",
        "title": "Wheelchair access",
        "description": "Ramp access to Hall A is required",
        "contactMethod": "email",
        "contactInfo": "delegate@example.com",
    }
    payload.update(overrides)
    return payload


def test_accommodation_request_is_recorded(client, make_user):
    delegate = make_user(UserRole.delegate, "delegate@example.com")
    response = client.post("/api/accommodation", json=_accommodation(), headers=auth_headers(delegate))
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["status"] == "open"
    assert body["userId"] == delegate.id
    assert body["contactMethod"] == "email"


def test_accommodation_validation_messages(client, make_user):
    delegate = make_user(UserRole.delegate, "delegate@example.com")
    headers = auth_headers(delegate)

    missing = client.post(
        "/api/accommodation",
        json=_accommodation(title=" ", description="", contactInfo=""),
        headers=headers,
    )
    assert missing.status_code == 400
    assert missing.json()["details"]["fields"] == {
        "title": "Title is required",
        "description": "Description is required",
        "contactInfo": "Contact information is required",
    }

    bad_email = client.post("/api/accommodation", json=_accommodation(contactInfo="not-an-email"), headers=headers)
    assert bad_email.json()["details"]["fields"]["contactInfo"] == "Please enter a valid email address"

    bad_phone = client.post(
        "/api/accommodation",
        json=_accommodation(contactMethod="phone", contactInfo="12345"),
        headers=headers,
    )
    assert bad_phone.json()["details"]["fields"]["contactInfo"] == "Please enter a valid phone number"

    good_phone = client.post(
        "/api/accommodation",
        json=_accommodation(contactMethod="phone", contactInfo="+91 98765 43210"),
        headers=headers,
    )
    assert good_phone.status_code == 201

    urgent = client.post("/api/accommodation", json=_accommodation(priority="urgent"), headers=headers)
    assert urgent.json()["details"]["fields"]["urgentDetails"] == "Please provide details for urgent requests"


def test_accommodation_listing_is_scoped(client, organizer, make_user):
    first = make_user(UserRole.delegate, "first@example.com")
    second = make_user(UserRole.delegate, "second@example.com")
    client.post("/api/accommodation", json=_accommodation(contactInfo="first@example.com"), headers=auth_headers(first))
    client.post("/api/accommodation", json=_accommodation(contactInfo="second@example.com"), headers=auth_headers(second))

    own = client.get("/api/accommodation", headers=auth_headers(first)).json()
    assert [item["userId"] for item in own] == [first.id]

    everything = client.get("/api/accommodation", headers=auth_headers(organizer)).json()
    assert len(everything) == 2


def test_feedback_submission_and_scope(client, organizer, faculty_user, make_user):
    delegate = make_user(UserRole.delegate, "delegate@example.com")
    response = client.post(
        "/api/feedback",
        json={
            "type": "bug",
            "rating": 4,
            "subject": "  Upload page  ",
            "message": "The presentation upload spinner never stops",
            "replyEmail": "delegate@example.com",
        },
        headers=auth_headers(delegate),
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["type"] == "bug"
    assert body["subject"] == "Upload page"
    assert body["reporterId"] == delegate.id

    client.post(
        "/api/feedback",
        json={"subject": "Great event", "message": "Thanks", "type": "compliment"},
        headers=auth_headers(faculty_user),
    )

    assert len(client.get("/api/feedback", headers=auth_headers(delegate)).json()) == 1
    assert len(client.get("/api/feedback", headers=auth_headers(organizer)).json()) == 2


def test_feedback_schema_validation(client, make_user):
    delegate = make_user(UserRole.delegate, "delegate@example.com")
    response = client.post(
        "/api/feedback",
        json={"subject": "Rating", "message": "Too high", "rating": 9},
        headers=auth_headers(delegate),
    )
    assert response.status_code == 422

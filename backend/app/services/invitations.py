from __future__ import annotations

from datetime import datetime
from html import escape
import logging
from urllib.parse import quote

from app.core.config import get_settings
from app.models.conference_session import ConferenceSession
from app.schemas.common import as_utc
from app.services.email import deliver_email
from app.services.outcomes import DeliveryOutcome

logger = logging.getLogger(__name__)

INVITATION_SUBJECT = "Faculty Invitation"
SIGNATURE_LINES = ["Warm regards,", "Scientific Committee"]


def faculty_login_url(email: str) -> str:
    base_url = get_settings().public_base_url.rstrip("/")
    return f"{base_url}/faculty-login?email={quote(email, safe='')}"


def format_timestamp(value: datetime | None) -> str:
    if value is None:
        return "-"
    return as_utc(value).strftime("%d %b %Y, %H:%M UTC")


def _text(value: str | None) -> str:
    return value or "-"


def _location(session: ConferenceSession, room_names: dict[str, str]) -> str:
    room_label = room_names.get(session.room_id) or session.room_id
    return f"{_text(session.place)} - {_text(room_label)}"


def _button(url: str, label: str, color: str) -> str:
    return (
        "<p style='text-align:center;margin:30px 0;'>"
        f"<a href='{escape(url)}' target='_blank' style='background:{color};color:#fff;padding:15px 25px;"
        "border-radius:25px;text-decoration:none;font-weight:bold;'>"
        f"{escape(label)}</a></p>"
    )


def build_invitation_content(
    sessions: list[ConferenceSession],
    *,
    faculty_name: str,
    email: str,
    room_names: dict[str, str],
) -> tuple[str, str]:
    role_phrase = "roles are" if len(sessions) > 1 else "role is"
    login_url = faculty_login_url(email)

    lines: list[str] = [
        f"Dear {faculty_name},",
        "",
        "Greetings from the Scientific Committee!",
        "",
        "It gives us immense pleasure to invite you as a distinguished faculty member.",
        "",
        f"Your proposed faculty {role_phrase} outlined below:",
        "",
    ]
    row_html: list[str] = []
    for session in sessions:
        location = _location(session, room_names)
        lines.extend(
            [
                f"Session: {_text(session.title)}",
                f"Start: {format_timestamp(session.start_time)}",
                f"End: {format_timestamp(session.end_time)}",
                f"Location: {location}",
                f"Description: {_text(session.description)}",
                "",
            ]
        )
        row_html.append(
            "<tr>"
            f"<td>{escape(_text(session.title))}</td>"
            f"<td>{escape(format_timestamp(session.start_time))}</td>"
            f"<td>{escape(format_timestamp(session.end_time))}</td>"
            f"<td>{escape(location)}</td>"
            f"<td>{escape(_text(session.description))}</td>"
            "</tr>"
        )
    lines.extend(
        [
            "Please confirm your acceptance by clicking Accept or Decline.",
            f"Login here: {login_url}",
            "",
            *SIGNATURE_LINES,
        ]
    )

    html_content = (
        "<html><body style='font-family:Arial,sans-serif;color:#333;max-width:600px;margin:0 auto;'>"
        "<h1 style='color:#764ba2;text-align:center;'>Faculty Invitation</h1>"
        f"<p>Dear <strong>{escape(faculty_name)}</strong>,</p>"
        "<p>Greetings from the Scientific Committee!</p>"
        "<p>It gives us immense pleasure to invite you as a distinguished faculty member.</p>"
        f"<p>Your proposed faculty {role_phrase} outlined below:</p>"
        "<table border='1' cellpadding='12' cellspacing='0' style='width:100%;border-collapse:collapse;'>"
        "<thead><tr><th>Title</th><th>Start</th><th>End</th><th>Location</th><th>Description</th></tr></thead>"
        "<tbody>" + "".join(row_html) + "</tbody></table>"
        "<p><strong>Please confirm your acceptance by clicking Accept or Decline on the faculty dashboard.</strong></p>"
        + _button(login_url, "Access Faculty Portal", "#764ba2")
        + "<p>Warm regards,<br/>Scientific Committee</p>"
        "</body></html>"
    )
    return "\n".join(lines), html_content


def build_update_content(session: ConferenceSession, *, faculty_name: str, room_name: str | None) -> tuple[str, str]:
    login_url = faculty_login_url(session.faculty_email)
    location = f"{_text(session.place)} - {_text(room_name)}"
    details = [
        ("Title", _text(session.title)),
        ("Start Time", format_timestamp(session.start_time)),
        ("End Time", format_timestamp(session.end_time)),
        ("Location", location),
        ("Description", _text(session.description)),
    ]

    lines = [
        f"Hello {faculty_name},",
        "",
        f"Your session \"{_text(session.title)}\" has been updated:",
        "",
        *[f"{label}: {value}" for label, value in details[1:]],
        "",
        "Please confirm your availability again as the schedule has changed.",
        "",
        f"Login here: {login_url}",
        "",
        *SIGNATURE_LINES,
    ]
    rows = "".join(f"<tr><td><strong>{escape(label)}:</strong></td><td>{escape(value)}</td></tr>" for label, value in details)
    html_content = (
        "<html><body style='font-family:Arial,sans-serif;color:#333;max-width:600px;margin:0 auto;'>"
        "<h1 style='color:#ff6b35;text-align:center;'>Session Updated</h1>"
        f"<p>Dear <strong>{escape(faculty_name)}</strong>,</p>"
        "<p>Your session has been updated with new details:</p>"
        f"<table cellpadding='12' cellspacing='0' style='width:100%;border-collapse:collapse;'>{rows}</table>"
        "<p><strong>Please confirm your availability again as the schedule has changed.</strong></p>"
        + _button(login_url, "Confirm Availability", "#ff6b35")
        + "<p>Warm regards,<br/>Scientific Committee</p>"
        "</body></html>"
    )
    return "\n".join(lines), html_content


def send_bulk_invitation(
    sessions: list[ConferenceSession],
    *,
    faculty_name: str | None,
    email: str | None,
    room_names: dict[str, str] | None = None,
) -> DeliveryOutcome:
    """Send one email listing every session; delivery problems come back as a warning."""
    if not sessions or not faculty_name or not email:
        return DeliveryOutcome.warning("Invalid arguments")

    text_content, html_content = build_invitation_content(
        sessions,
        faculty_name=faculty_name,
        email=email,
        room_names=room_names or {},
    )
    outcome = deliver_email(
        to_email=email,
        subject=INVITATION_SUBJECT,
        text_content=text_content,
        html_content=html_content,
    )
    if outcome.ok:
        logger.info("Invitation covering %d session(s) sent to %s", len(sessions), email)
    return outcome


def send_session_update(session: ConferenceSession, *, faculty_name: str | None, room_name: str | None) -> DeliveryOutcome:
    if session is None or not faculty_name or not session.faculty_email:
        return DeliveryOutcome.warning("Invalid arguments for update email")

    text_content, html_content = build_update_content(session, faculty_name=faculty_name, room_name=room_name)
    return deliver_email(
        to_email=session.faculty_email,
        subject=f"Session Updated: {session.title}",
        text_content=text_content,
        html_content=html_content,
    )

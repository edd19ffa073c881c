from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.permissions import Capability, Principal
from app.models.conference_session import ConferenceSession
from app.models.event import Event
from app.models.user import User, UserRole


def scoped_events_statement(principal: Principal):
    """Organizers see every event; event managers see those they created; others none."""
    statement = select(Event).order_by(Event.start_date.desc(), Event.name)
    if not principal.can(Capability.manage_events):
        return statement.where(Event.id.is_(None))
    if principal.user.role == UserRole.event_manager:
        statement = statement.where(Event.created_by_id == principal.user.id)
    return statement


def list_scoped_events(db: Session, principal: Principal) -> list[Event]:
    return list(db.execute(scoped_events_statement(principal)).scalars())


def scope_has_events(db: Session, principal: Principal) -> bool:
    statement = scoped_events_statement(principal).with_only_columns(Event.id).limit(1)
    return db.execute(statement).first() is not None


def event_counts(db: Session, event_ids: list[str]) -> dict[str, tuple[int, int]]:
    """Return ``{event_id: (session_count, faculty_count)}``."""
    if not event_ids:
        return {}
    session_rows = db.execute(
        select(ConferenceSession.event_id, func.count(ConferenceSession.id))
        .where(ConferenceSession.event_id.in_(event_ids))
        .group_by(ConferenceSession.event_id)
    ).all()
    faculty_rows = db.execute(
        select(User.event_id, func.count(User.id))
        .where(User.event_id.in_(event_ids), User.role == UserRole.faculty)
        .group_by(User.event_id)
    ).all()
    sessions = {event_id: count for event_id, count in session_rows}
    faculty = {event_id: count for event_id, count in faculty_rows}
    return {event_id: (sessions.get(event_id, 0), faculty.get(event_id, 0)) for event_id in event_ids}

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import InvalidTransitionError, ResourceNotFoundError, StorageError, ValidationFailedError
from app.core.permissions import Principal
from app.models.conference_session import ConferenceSession, InviteStatus, RejectionReason
from app.schemas.common import as_utc
from app.schemas.session import SessionResponseRequest
from app.services.audit import log_activity

logger = logging.getLogger(__name__)

# Pending is the only state with outgoing transitions.
ALLOWED_TRANSITIONS: dict[InviteStatus, frozenset[InviteStatus]] = {
    InviteStatus.pending: frozenset({InviteStatus.accepted, InviteStatus.declined}),
    InviteStatus.accepted: frozenset(),
    InviteStatus.declined: frozenset(),
}


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


def apply_response(session: ConferenceSession, payload: SessionResponseRequest) -> None:
    """Validate and apply an invitation response to ``session`` in memory."""
    target = payload.invite_status
    current = session.invite_status
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(
            f"Cannot change invitation status from {current.value} to {target.value}",
            details={"from": current.value, "to": target.value},
        )

    if target == InviteStatus.accepted:
        session.invite_status = InviteStatus.accepted
        return

    if payload.rejection_reason is None:
        raise ValidationFailedError({"rejectionReason": "A reason is required when declining"})

    session.invite_status = InviteStatus.declined
    session.rejection_reason = payload.rejection_reason
    session.suggested_topic = None
    session.suggested_time_start = None
    session.suggested_time_end = None
    if payload.rejection_reason == RejectionReason.suggested_topic:
        session.suggested_topic = _clean(payload.suggested_topic)
    elif payload.rejection_reason == RejectionReason.time_conflict:
        session.suggested_time_start = as_utc(payload.suggested_time_start)
        session.suggested_time_end = as_utc(payload.suggested_time_end)
    session.optional_query = _clean(payload.optional_query)


def respond_to_invitation(db: Session, principal: Principal, payload: SessionResponseRequest) -> ConferenceSession:
    session = db.get(ConferenceSession, payload.id)
    if session is None:
        raise ResourceNotFoundError("Session", payload.id)
    principal.decide_for_faculty(session.faculty_id, faculty_email=session.faculty_email).raise_if_denied()

    apply_response(session, payload)
    log_activity(
        db,
        user=principal.user,
        action=f"session.{session.invite_status.value.lower()}",
        entity_type="session",
        entity_id=session.id,
        details={"rejectionReason": session.rejection_reason.value if session.rejection_reason else None},
    )
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to record response for session %s", session.id)
        raise StorageError("Failed to update invitation status", reason=str(exc)) from exc
    db.refresh(session)
    logger.info("Session %s marked %s", session.id, session.invite_status.value)
    return session

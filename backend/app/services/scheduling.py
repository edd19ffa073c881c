"""Session creation, editing and the bulk scheduling workflow.

Bulk creation validates the whole batch before touching the database, then
creates sessions one at a time. Each session is its own unit of work: a
conflict or a database failure stops the batch but sessions committed before
it stay in place, and the error reports their ids.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.exceptions import (
    ResourceNotFoundError,
    SessionConflictError,
    StorageError,
    ValidationFailedError,
)
from app.core.permissions import Principal
from app.models.conference_session import ConferenceSession, InviteStatus, TravelStatus
from app.models.event import Event
from app.models.room import Room
from app.models.user import User, UserRole
from app.schemas.common import as_utc
from app.schemas.conflict import ConflictOut
from app.schemas.session import BulkSessionCreate, SessionCreate, SessionSpec, SessionUpdate
from app.services.audit import log_activity
from app.services.conflict_service import ConflictService, SessionCandidate, conflicts_payload
from app.services.events import scope_has_events, scoped_events_statement
from app.services.invitations import send_bulk_invitation, send_session_update
from app.services.outcomes import DeliveryOutcome
from app.services.storage import POSTER_CATEGORY, FileStorage, generate_unique_filename
from app.services.uploads import IncomingFile, UploadRule, megabytes

logger = logging.getLogger(__name__)

MIN_SESSION_MINUTES = 15
POSTER_TYPES = frozenset({"image/png", "image/jpeg", "image/jpg", "image/webp", "application/pdf"})
NOTIFY_ON_CHANGE = ("start_time", "end_time", "place", "room_id")


def poster_rule() -> UploadRule:
    max_bytes = get_settings().poster_max_bytes
    return UploadRule(
        allowed_types=POSTER_TYPES,
        max_bytes=max_bytes,
        type_error="Poster must be a PNG, JPEG, WEBP or PDF file",
        size_error=f"Poster must be {megabytes(max_bytes)}MB or less",
    )


def validate_session_spec(spec: SessionSpec, key: str) -> dict[str, str]:
    """Field errors for one session row, keyed ``<key>-<field>``."""
    errors: dict[str, str] = {}
    if not spec.title.strip():
        errors[f"{key}-title"] = "Title is required"
    if not spec.place.strip():
        errors[f"{key}-place"] = "Place is required"
    if not spec.room_id.strip():
        errors[f"{key}-roomId"] = "Room is required"
    if not spec.description.strip():
        errors[f"{key}-description"] = "Description is required"
    if spec.start_time is None:
        errors[f"{key}-startTime"] = "Start time is required"
    if spec.end_time is None:
        errors[f"{key}-endTime"] = "End time is required"

    if spec.start_time is not None and spec.end_time is not None:
        duration = as_utc(spec.end_time) - as_utc(spec.start_time)
        if duration <= timedelta(0):
            errors[f"{key}-endTime"] = "End time must be after start time"
        elif duration < timedelta(minutes=MIN_SESSION_MINUTES):
            errors[f"{key}-endTime"] = f"Session must be at least {MIN_SESSION_MINUTES} minutes long"
    return errors


def validate_invitee(faculty_id: str, email: str, event_id: str | None, *, event_required: bool) -> dict[str, str]:
    errors: dict[str, str] = {}
    if event_required and not event_id:
        errors["selectedEventId"] = "Please select an event"
    if not faculty_id.strip():
        errors["facultyId"] = "Please select a faculty"
    if not email.strip():
        errors["email"] = "Faculty email is required"
    elif "@" not in email:
        errors["email"] = "Please enter a valid email"
    return errors


@dataclass
class BulkCreationResult:
    sessions: list[ConferenceSession] = field(default_factory=list)
    invitation: DeliveryOutcome = field(default_factory=lambda: DeliveryOutcome.warning("No invitation sent"))


class SessionScheduler:
    def __init__(self, db: Session, principal: Principal, storage: FileStorage | None = None):
        self.db = db
        self.principal = principal
        self.storage = storage
        self.conflicts = ConflictService(db)

    def _key(self, spec: SessionSpec, index: int) -> str:
        return spec.key or f"session-{index + 1}"

    def _check_references(self, *, faculty_id: str, event_id: str | None, room_ids: dict[str, str]) -> dict[str, str]:
        errors: dict[str, str] = {}
        if faculty_id:
            faculty = self.db.get(User, faculty_id)
            if faculty is None or faculty.role != UserRole.faculty:
                errors["facultyId"] = "Faculty not found"
        if event_id:
            visible = self.db.execute(
                scoped_events_statement(self.principal).where(Event.id == event_id)
            ).scalar_one_or_none()
            if visible is None:
                errors["selectedEventId"] = "Event not found"
        if room_ids:
            known = set(self.db.execute(select(Room.id).where(Room.id.in_(set(room_ids.values())))).scalars())
            for error_key, room_id in room_ids.items():
                if room_id not in known:
                    errors[error_key] = "Room not found"
        return errors

    def _validate(self, *, faculty_id: str, email: str, event_id: str | None, specs: list[tuple[str, SessionSpec]], poster: IncomingFile | None) -> None:
        errors = validate_invitee(faculty_id, email, event_id, event_required=scope_has_events(self.db, self.principal))
        if not specs:
            errors["sessions"] = "At least one session is required"
        room_ids: dict[str, str] = {}
        for key, spec in specs:
            errors.update(validate_session_spec(spec, key))
            if spec.room_id.strip() and f"{key}-roomId" not in errors:
                room_ids[f"{key}-roomId"] = spec.room_id.strip()
        if poster is not None:
            poster_error = poster.check(poster_rule())
            if poster_error:
                errors["poster"] = poster_error
        for error_key, message in self._check_references(faculty_id=faculty_id.strip(), event_id=event_id, room_ids=room_ids).items():
            errors.setdefault(error_key, message)
        if errors:
            raise ValidationFailedError(errors)

    def _store_poster(self, poster: IncomingFile | None, faculty_id: str) -> str | None:
        if poster is None or self.storage is None:
            return None
        filename = generate_unique_filename(poster.filename, faculty_id, "POSTER")
        return self.storage.write(POSTER_CATEGORY, filename, poster.data)

    def _candidate(self, spec: SessionSpec, *, faculty_id: str, event_id: str | None) -> SessionCandidate:
        return SessionCandidate(
            faculty_id=faculty_id,
            room_id=spec.room_id.strip(),
            start_time=as_utc(spec.start_time),
            end_time=as_utc(spec.end_time),
            event_id=event_id,
            title=spec.title.strip(),
        )

    def _insert(self, spec: SessionSpec, *, faculty_id: str, email: str, event_id: str | None, poster_path: str | None) -> ConferenceSession:
        session = ConferenceSession(
            title=spec.title.strip(),
            place=spec.place.strip(),
            room_id=spec.room_id.strip(),
            description=spec.description.strip(),
            start_time=as_utc(spec.start_time),
            end_time=as_utc(spec.end_time),
            status=spec.status,
            invite_status=InviteStatus.pending,
            travel_status=TravelStatus.pending,
            event_id=event_id,
            faculty_id=faculty_id,
            faculty_email=email.strip().lower(),
            poster_path=poster_path,
        )
        self.db.add(session)
        self.db.flush()
        log_activity(
            self.db,
            user=self.principal.user,
            action="session.create",
            entity_type="session",
            entity_id=session.id,
            details={"title": session.title, "facultyId": faculty_id, "eventId": event_id},
        )
        self.db.commit()
        self.db.refresh(session)
        return session

    def room_names(self, room_ids: set[str]) -> dict[str, str]:
        if not room_ids:
            return {}
        rows = self.db.execute(select(Room.id, Room.name).where(Room.id.in_(room_ids))).all()
        return {room_id: name for room_id, name in rows}

    def check_conflicts(self, payload: SessionCreate) -> list[ConflictOut]:
        """Dry-run probe; only the fields needed for overlap detection are required."""
        errors = validate_session_spec(payload, "session")
        if not payload.faculty_id.strip():
            errors["facultyId"] = "Please select a faculty"
        if errors:
            raise ValidationFailedError(errors)
        candidate = self._candidate(payload, faculty_id=payload.faculty_id.strip(), event_id=payload.event_id)
        return self.conflicts.find_conflicts(candidate)

    def create_session(self, payload: SessionCreate, *, poster: IncomingFile | None = None) -> ConferenceSession:
        key = self._key(payload, 0)
        faculty_id = payload.faculty_id.strip()
        self._validate(
            faculty_id=payload.faculty_id,
            email=payload.email,
            event_id=payload.event_id,
            specs=[(key, payload)],
            poster=poster,
        )
        candidate = self._candidate(payload, faculty_id=faculty_id, event_id=payload.event_id)
        found = self.conflicts.find_conflicts(candidate)
        if found and not payload.overwrite_conflicts:
            raise SessionConflictError(
                f"Scheduling conflict detected for session \"{candidate.title}\"",
                conflicts_payload(found),
                details={"sessionKey": key, "sessionTitle": candidate.title},
            )
        poster_path = self._store_poster(poster, faculty_id)
        try:
            return self._insert(payload, faculty_id=faculty_id, email=payload.email, event_id=payload.event_id, poster_path=poster_path)
        except SQLAlchemyError as exc:
            self.db.rollback()
            if poster_path and self.storage is not None:
                self.storage.delete(poster_path)
            logger.exception("Failed to create session %r", candidate.title)
            raise StorageError(f"Failed to create session \"{candidate.title}\"", reason=str(exc)) from exc

    def create_sessions(self, payload: BulkSessionCreate, *, poster: IncomingFile | None = None) -> BulkCreationResult:
        faculty_id = payload.faculty_id.strip()
        specs = [(self._key(spec, index), spec) for index, spec in enumerate(payload.sessions)]
        self._validate(
            faculty_id=payload.faculty_id,
            email=payload.email,
            event_id=payload.event_id,
            specs=specs,
            poster=poster,
        )

        result = BulkCreationResult()
        poster_path: str | None = None
        poster_stored = False
        for key, spec in specs:
            candidate = self._candidate(spec, faculty_id=faculty_id, event_id=payload.event_id)
            found = self.conflicts.find_conflicts(candidate)
            if found and not payload.overwrite_conflicts:
                logger.info(
                    "Bulk scheduling halted at %r after %d created session(s)",
                    candidate.title,
                    len(result.sessions),
                )
                raise SessionConflictError(
                    f"Scheduling conflict detected for session \"{candidate.title}\"",
                    conflicts_payload(found),
                    details={
                        "sessionKey": key,
                        "sessionTitle": candidate.title,
                        "createdSessionIds": [session.id for session in result.sessions],
                    },
                )
            if not poster_stored:
                poster_path = self._store_poster(poster, faculty_id)
                poster_stored = True
            try:
                created = self._insert(
                    spec,
                    faculty_id=faculty_id,
                    email=payload.email,
                    event_id=payload.event_id,
                    poster_path=poster_path,
                )
            except SQLAlchemyError as exc:
                self.db.rollback()
                if not result.sessions and poster_path and self.storage is not None:
                    self.storage.delete(poster_path)
                logger.exception("Bulk scheduling failed while creating %r", candidate.title)
                raise StorageError(
                    f"Failed to create session \"{candidate.title}\"",
                    reason=str(exc),
                    details={
                        "sessionTitle": candidate.title,
                        "createdSessionIds": [session.id for session in result.sessions],
                    },
                ) from exc
            result.sessions.append(created)

        faculty = self.db.get(User, faculty_id)
        result.invitation = send_bulk_invitation(
            result.sessions,
            faculty_name=faculty.name if faculty is not None else None,
            email=payload.email.strip(),
            room_names=self.room_names({session.room_id for session in result.sessions}),
        )
        logger.info("Created %d session(s) for faculty %s", len(result.sessions), faculty_id)
        return result

    def update_session(self, session_id: str, payload: SessionUpdate) -> tuple[ConferenceSession, DeliveryOutcome | None]:
        session = self.db.get(ConferenceSession, session_id)
        if session is None:
            raise ResourceNotFoundError("Session", session_id)

        changes = payload.model_dump(exclude_unset=True, exclude={"overwrite_conflicts"})
        for text_field in ("title", "place", "room_id", "description"):
            if text_field in changes:
                value = (changes[text_field] or "").strip()
                if not value:
                    raise ValidationFailedError({_camel(text_field): f"{_label(text_field)} is required"})
                changes[text_field] = value
        for time_field in ("start_time", "end_time"):
            if time_field in changes:
                if changes[time_field] is None:
                    raise ValidationFailedError({_camel(time_field): f"{_label(time_field)} is required"})
                changes[time_field] = as_utc(changes[time_field])
        for enum_field in ("status", "travel_status"):
            if enum_field in changes and changes[enum_field] is None:
                raise ValidationFailedError({_camel(enum_field): f"{_label(enum_field)} is required"})

        start = changes.get("start_time", as_utc(session.start_time))
        end = changes.get("end_time", as_utc(session.end_time))
        if end <= start:
            raise ValidationFailedError({"endTime": "End time must be after start time"})
        if end - start < timedelta(minutes=MIN_SESSION_MINUTES):
            raise ValidationFailedError({"endTime": f"Session must be at least {MIN_SESSION_MINUTES} minutes long"})
        if "room_id" in changes and self.db.get(Room, changes["room_id"]) is None:
            raise ValidationFailedError({"roomId": "Room not found"})

        changed = {
            name: value
            for name, value in changes.items()
            if value != (as_utc(getattr(session, name)) if name in ("start_time", "end_time") else getattr(session, name))
        }
        if {"start_time", "end_time", "room_id"} & changed.keys():
            candidate = SessionCandidate(
                faculty_id=session.faculty_id,
                room_id=changed.get("room_id", session.room_id),
                start_time=start,
                end_time=end,
                event_id=session.event_id,
                title=changed.get("title", session.title),
            )
            found = self.conflicts.find_conflicts(candidate, exclude_session_id=session.id)
            if found and not payload.overwrite_conflicts:
                raise SessionConflictError(
                    f"Scheduling conflict detected for session \"{candidate.title}\"",
                    conflicts_payload(found),
                    details={"sessionId": session.id},
                )

        for name, value in changed.items():
            setattr(session, name, value)
        if changed:
            log_activity(
                self.db,
                user=self.principal.user,
                action="session.update",
                entity_type="session",
                entity_id=session.id,
                details={"fields": sorted(_camel(name) for name in changed)},
            )
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Failed to update session %s", session_id)
            raise StorageError("Failed to update session", reason=str(exc)) from exc
        self.db.refresh(session)

        notification = None
        if any(name in changed for name in NOTIFY_ON_CHANGE):
            faculty = self.db.get(User, session.faculty_id)
            room = self.db.get(Room, session.room_id)
            notification = send_session_update(
                session,
                faculty_name=faculty.name if faculty is not None else session.faculty_email.split("@")[0],
                room_name=room.name if room is not None else session.room_id,
            )
        return session, notification


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _label(name: str) -> str:
    return name.replace("_", " ").capitalize()

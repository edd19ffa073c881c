from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.api.deps import get_current_principal, get_db, get_file_storage, require_capability
from app.api.forms import bulk_session_body, session_create_body
from app.core.exceptions import ResourceNotFoundError, ValidationFailedError
from app.core.permissions import Capability, Principal
from app.models.conference_session import ConferenceSession
from app.models.user import User
from app.schemas.common import MessageOut
from app.schemas.conflict import ConflictReport
from app.schemas.session import (
    BulkInviteRequest,
    BulkSessionCreate,
    BulkSessionResult,
    SessionCreate,
    SessionCreateResult,
    SessionOut,
    SessionResponseRequest,
    SessionUpdate,
    SessionUpdateResult,
)
from app.services.invitations import send_bulk_invitation
from app.services.responses import respond_to_invitation
from app.services.scheduling import SessionScheduler
from app.services.storage import FileStorage
from app.services.uploads import IncomingFile

router = APIRouter()


def _check_single_invitee(sessions: list[ConferenceSession], payload: BulkInviteRequest) -> None:
    """One invitation covers one faculty member; the recipient must be that member."""
    faculty_ids = {item.faculty_id for item in sessions}
    emails = {item.faculty_email.lower() for item in sessions}
    errors: dict[str, str] = {}
    if len(faculty_ids) > 1 or len(emails) > 1:
        errors["sessionIds"] = "Sessions must belong to one faculty member"
    else:
        if payload.faculty_id and payload.faculty_id not in faculty_ids:
            errors["facultyId"] = "Faculty does not match the selected sessions"
        if payload.email and payload.email.strip().lower() not in emails:
            errors["email"] = "Email does not match the selected sessions"
    if errors:
        raise ValidationFailedError(errors)


@router.get("", response_model=list[SessionOut])
def list_sessions(
    event_id: str | None = Query(default=None, alias="eventId"),
    faculty_id: str | None = Query(default=None, alias="facultyId"),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> list[SessionOut]:
    statement = select(ConferenceSession).order_by(ConferenceSession.start_time)
    if event_id:
        statement = statement.where(ConferenceSession.event_id == event_id)
    if principal.can(Capability.schedule_sessions):
        if faculty_id:
            statement = statement.where(ConferenceSession.faculty_id == faculty_id)
    else:
        statement = statement.where(
            or_(
                ConferenceSession.faculty_id == principal.base_identity,
                ConferenceSession.faculty_email == principal.user.email,
            )
        )
    return list(db.execute(statement).scalars())


@router.post("", status_code=status.HTTP_201_CREATED, response_model=SessionCreateResult)
def create_session(
    body: tuple[SessionCreate, IncomingFile | None] = Depends(session_create_body),
    principal: Principal = Depends(require_capability(Capability.schedule_sessions)),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    payload, poster = body
    scheduler = SessionScheduler(db, principal, storage)
    if payload.conflict_only:
        conflicts = scheduler.check_conflicts(payload)
        report = ConflictReport(conflicts=conflicts, has_conflicts=bool(conflicts))
        return JSONResponse(status_code=status.HTTP_200_OK, content=report.model_dump(mode="json", by_alias=True))

    session = scheduler.create_session(payload, poster=poster)
    return SessionCreateResult(session=session)


@router.post("/bulk", status_code=status.HTTP_201_CREATED, response_model=BulkSessionResult)
def create_sessions_bulk(
    body: tuple[BulkSessionCreate, IncomingFile | None] = Depends(bulk_session_body),
    principal: Principal = Depends(require_capability(Capability.schedule_sessions)),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
) -> BulkSessionResult:
    payload, poster = body
    result = SessionScheduler(db, principal, storage).create_sessions(payload, poster=poster)
    return BulkSessionResult(
        sessions=[SessionOut.model_validate(item) for item in result.sessions],
        invitation=result.invitation.to_schema(),
    )


@router.post("/bulk-invite", response_model=MessageOut)
def bulk_invite(
    payload: BulkInviteRequest,
    principal: Principal = Depends(require_capability(Capability.schedule_sessions)),
    db: Session = Depends(get_db),
):
    sessions: list[ConferenceSession] = []
    if payload.session_ids:
        found = {
            item.id: item
            for item in db.execute(
                select(ConferenceSession).where(ConferenceSession.id.in_(payload.session_ids))
            ).scalars()
        }
        missing = [session_id for session_id in payload.session_ids if session_id not in found]
        if missing:
            raise ResourceNotFoundError("Session", ", ".join(missing))
        sessions = [found[session_id] for session_id in payload.session_ids]
        _check_single_invitee(sessions, payload)

    faculty_name = payload.faculty_name
    faculty_id = payload.faculty_id or (sessions[0].faculty_id if sessions else None)
    if not faculty_name and faculty_id:
        faculty = db.get(User, faculty_id)
        faculty_name = faculty.name if faculty is not None else None
    email = payload.email or (sessions[0].faculty_email if sessions else None)

    if not sessions or not faculty_name or not email:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=MessageOut(success=False, message="Invalid arguments").model_dump(by_alias=True),
        )

    scheduler = SessionScheduler(db, principal)
    outcome = send_bulk_invitation(
        sessions,
        faculty_name=faculty_name,
        email=email,
        room_names=scheduler.room_names({item.room_id for item in sessions}),
    )
    return MessageOut(success=outcome.ok, message=outcome.message or "")


@router.post("/respond", response_model=SessionOut)
def respond(
    payload: SessionResponseRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> SessionOut:
    return respond_to_invitation(db, principal, payload)


@router.get("/{session_id}", response_model=SessionOut)
def get_session(
    session_id: str,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> SessionOut:
    session = db.get(ConferenceSession, session_id)
    if session is None:
        raise ResourceNotFoundError("Session", session_id)
    principal.decide_for_faculty(session.faculty_id, faculty_email=session.faculty_email).raise_if_denied()
    return session


@router.put("/{session_id}", response_model=SessionUpdateResult)
def update_session(
    session_id: str,
    payload: SessionUpdate,
    principal: Principal = Depends(require_capability(Capability.schedule_sessions)),
    db: Session = Depends(get_db),
) -> SessionUpdateResult:
    session, notification = SessionScheduler(db, principal).update_session(session_id, payload)
    return SessionUpdateResult(
        session=session,
        notification=notification.to_schema() if notification is not None else None,
    )

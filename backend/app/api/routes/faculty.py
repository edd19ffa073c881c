import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.api.deps import get_current_principal, get_db, require_capability
from app.core.permissions import Capability, Principal
from app.models.conference_session import ConferenceSession, InviteStatus
from app.models.user import User, UserRole
from app.schemas.faculty import FacultyBulkCreate, FacultyBulkResult, FacultyCreate
from app.schemas.session import FacultySessionsOut, InviteStatusCounts, SessionOut
from app.schemas.user import UserOut
from app.services.accounts import build_faculty, find_user_by_email
from app.services.audit import log_activity

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=list[UserOut])
def list_faculty(
    event_id: str | None = Query(default=None, alias="eventId"),
    principal: Principal = Depends(require_capability(Capability.schedule_sessions)),
    db: Session = Depends(get_db),
) -> list[UserOut]:
    statement = select(User).where(User.role == UserRole.faculty).order_by(User.name)
    if event_id:
        statement = statement.where(User.event_id == event_id)
    return list(db.execute(statement).scalars())


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_faculty(
    payload: FacultyCreate,
    principal: Principal = Depends(require_capability(Capability.schedule_sessions)),
    db: Session = Depends(get_db),
) -> UserOut:
    if find_user_by_email(db, payload.email) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A user with this email already exists")
    faculty = build_faculty(payload)
    db.add(faculty)
    log_activity(db, user=principal.user, action="faculty.create", entity_type="user", entity_id=faculty.id)
    db.commit()
    db.refresh(faculty)
    return faculty


@router.post("/bulk", response_model=FacultyBulkResult, status_code=status.HTTP_201_CREATED)
def bulk_create_faculty(
    payload: FacultyBulkCreate,
    principal: Principal = Depends(require_capability(Capability.schedule_sessions)),
    db: Session = Depends(get_db),
) -> FacultyBulkResult:
    created: list[User] = []
    skipped: list[str] = []
    seen: set[str] = set()
    for row in payload.faculty:
        if row.email in seen or find_user_by_email(db, row.email) is not None:
            skipped.append(row.email)
            continue
        seen.add(row.email)
        faculty = build_faculty(row, event_id=payload.event_id)
        db.add(faculty)
        created.append(faculty)
    log_activity(
        db,
        user=principal.user,
        action="faculty.bulk_create",
        entity_type="event",
        entity_id=payload.event_id,
        details={"created": len(created), "skipped": len(skipped)},
    )
    db.commit()
    for faculty in created:
        db.refresh(faculty)
    logger.info("Bulk faculty upload created %d and skipped %d row(s)", len(created), len(skipped))
    return FacultyBulkResult(created=created, skipped_emails=skipped)


@router.get("/sessions", response_model=FacultySessionsOut)
def list_my_sessions(
    faculty_id: str | None = Query(default=None, alias="facultyId"),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> FacultySessionsOut:
    statement = select(ConferenceSession).order_by(ConferenceSession.start_time)
    if faculty_id and principal.can(Capability.schedule_sessions):
        statement = statement.where(ConferenceSession.faculty_id == faculty_id)
    else:
        statement = statement.where(
            or_(
                ConferenceSession.faculty_id == principal.base_identity,
                ConferenceSession.faculty_email == principal.user.email,
            )
        )
    sessions = list(db.execute(statement).scalars())
    counts = InviteStatusCounts(
        total=len(sessions),
        pending=sum(1 for item in sessions if item.invite_status == InviteStatus.pending),
        accepted=sum(1 for item in sessions if item.invite_status == InviteStatus.accepted),
        declined=sum(1 for item in sessions if item.invite_status == InviteStatus.declined),
    )
    return FacultySessionsOut(sessions=[SessionOut.model_validate(item) for item in sessions], counts=counts)

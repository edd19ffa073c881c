from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_capability
from app.core.permissions import Capability, Principal
from app.models.event import Event
from app.schemas.event import EventCreate, EventOut
from app.services.audit import log_activity
from app.services.events import event_counts, list_scoped_events, scoped_events_statement

router = APIRouter()


def _with_counts(db: Session, events: list[Event]) -> list[EventOut]:
    counts = event_counts(db, [event.id for event in events])
    results: list[EventOut] = []
    for event in events:
        session_count, faculty_count = counts.get(event.id, (0, 0))
        item = EventOut.model_validate(event)
        item.session_count = session_count
        item.faculty_count = faculty_count
        results.append(item)
    return results


@router.get("", response_model=list[EventOut])
def list_events(
    principal: Principal = Depends(require_capability(Capability.manage_events)),
    db: Session = Depends(get_db),
) -> list[EventOut]:
    return _with_counts(db, list_scoped_events(db, principal))


@router.post("", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(
    payload: EventCreate,
    principal: Principal = Depends(require_capability(Capability.manage_events)),
    db: Session = Depends(get_db),
) -> EventOut:
    event = Event(**payload.model_dump(), created_by_id=principal.user.id)
    db.add(event)
    db.flush()
    log_activity(db, user=principal.user, action="event.create", entity_type="event", entity_id=event.id)
    db.commit()
    db.refresh(event)
    return _with_counts(db, [event])[0]


@router.get("/{event_id}", response_model=EventOut)
def get_event(
    event_id: str,
    principal: Principal = Depends(require_capability(Capability.manage_events)),
    db: Session = Depends(get_db),
) -> EventOut:
    event = db.execute(scoped_events_statement(principal).where(Event.id == event_id)).scalar_one_or_none()
    if event is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return _with_counts(db, [event])[0]

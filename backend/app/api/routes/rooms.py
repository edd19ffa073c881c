from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_current_principal, get_db, require_capability
from app.core.permissions import Capability, Principal
from app.models.room import Room
from app.schemas.room import RoomCreate, RoomOut
from app.services.audit import log_activity

router = APIRouter()


@router.get("", response_model=list[RoomOut])
def list_rooms(principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)) -> list[RoomOut]:
    return list(db.execute(select(Room).order_by(Room.name)).scalars())


@router.post("", response_model=RoomOut, status_code=status.HTTP_201_CREATED)
def create_room(
    payload: RoomCreate,
    principal: Principal = Depends(require_capability(Capability.schedule_sessions)),
    db: Session = Depends(get_db),
) -> RoomOut:
    existing = db.execute(select(Room).where(Room.name == payload.name)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Room name already exists")
    room = Room(**payload.model_dump())
    db.add(room)
    db.flush()
    log_activity(db, user=principal.user, action="room.create", entity_type="room", entity_id=room.id)
    db.commit()
    db.refresh(room)
    return room

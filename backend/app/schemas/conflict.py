from datetime import datetime
from typing import Literal

from app.schemas.common import CamelModel


class ConflictOut(CamelModel):
    id: str
    title: str
    faculty_id: str
    room_id: str
    start_time: datetime
    end_time: datetime
    type: Literal["faculty", "room"]
    session_title: str | None = None
    message: str


class ConflictReport(CamelModel):
    conflicts: list[ConflictOut]
    has_conflicts: bool

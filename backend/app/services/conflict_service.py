from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.models.conference_session import ConferenceSession
from app.models.room import Room
from app.schemas.common import as_utc
from app.schemas.conflict import ConflictOut


@dataclass(frozen=True)
class SessionCandidate:
    faculty_id: str
    room_id: str
    start_time: datetime
    end_time: datetime
    event_id: str | None = None
    title: str | None = None


def ranges_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open overlap test: ranges that only touch at an endpoint do not overlap."""
    return as_utc(a_start) < as_utc(b_end) and as_utc(a_end) > as_utc(b_start)


class ConflictService:
    """Finds committed sessions that double-book a candidate's faculty or room."""

    def __init__(self, db: Session):
        self.db = db
        self._room_names: dict[str, str] | None = None

    def _room_name(self, room_id: str) -> str:
        if self._room_names is None:
            self._room_names = {room.id: room.name for room in self.db.execute(select(Room)).scalars()}
        return self._room_names.get(room_id, room_id)

    def find_conflicts(self, candidate: SessionCandidate, *, exclude_session_id: str | None = None) -> list[ConflictOut]:
        start = as_utc(candidate.start_time)
        end = as_utc(candidate.end_time)
        statement = (
            select(ConferenceSession)
            .where(
                or_(
                    ConferenceSession.faculty_id == candidate.faculty_id,
                    ConferenceSession.room_id == candidate.room_id,
                ),
                ConferenceSession.start_time < end,
                ConferenceSession.end_time > start,
            )
            .order_by(ConferenceSession.start_time)
        )
        if exclude_session_id:
            statement = statement.where(ConferenceSession.id != exclude_session_id)

        conflicts: list[ConflictOut] = []
        for existing in self.db.execute(statement).scalars():
            # The SQL filter narrows the rows; the precise check runs on normalized values.
            if not ranges_overlap(existing.start_time, existing.end_time, start, end):
                continue
            if existing.faculty_id == candidate.faculty_id:
                conflicts.append(
                    self._describe(
                        existing,
                        "faculty",
                        f"Faculty is already booked for \"{existing.title}\" during this time",
                        candidate,
                    )
                )
            if existing.room_id == candidate.room_id:
                conflicts.append(
                    self._describe(
                        existing,
                        "room",
                        f"Room {self._room_name(existing.room_id)} is already booked for \"{existing.title}\" during this time",
                        candidate,
                    )
                )
        return conflicts

    @staticmethod
    def _describe(existing: ConferenceSession, conflict_type: str, message: str, candidate: SessionCandidate) -> ConflictOut:
        return ConflictOut(
            id=existing.id,
            title=existing.title,
            faculty_id=existing.faculty_id,
            room_id=existing.room_id,
            start_time=as_utc(existing.start_time),
            end_time=as_utc(existing.end_time),
            type=conflict_type,
            session_title=candidate.title,
            message=message,
        )


def conflicts_payload(conflicts: list[ConflictOut]) -> list[dict]:
    return [conflict.model_dump(mode="json", by_alias=True) for conflict in conflicts]

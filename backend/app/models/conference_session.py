import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class SessionStatus(str, Enum):
    draft = "Draft"
    confirmed = "Confirmed"


class InviteStatus(str, Enum):
    pending = "Pending"
    accepted = "Accepted"
    declined = "Declined"


class RejectionReason(str, Enum):
    not_interested = "NotInterested"
    suggested_topic = "SuggestedTopic"
    time_conflict = "TimeConflict"


class TravelStatus(str, Enum):
    pending = "Pending"
    arranged = "Arranged"
    not_required = "NotRequired"


class ConferenceSession(Base):
    __tablename__ = "conference_sessions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    place: Mapped[str] = mapped_column(String(255), nullable=False)
    room_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[SessionStatus] = mapped_column(
        SAEnum(SessionStatus, name="session_status"),
        nullable=False,
        default=SessionStatus.draft,
    )
    invite_status: Mapped[InviteStatus] = mapped_column(
        SAEnum(InviteStatus, name="invite_status"),
        nullable=False,
        default=InviteStatus.pending,
    )
    travel_status: Mapped[TravelStatus] = mapped_column(
        SAEnum(TravelStatus, name="travel_status"),
        nullable=False,
        default=TravelStatus.pending,
    )
    rejection_reason: Mapped[RejectionReason | None] = mapped_column(
        SAEnum(RejectionReason, name="rejection_reason"),
        nullable=True,
    )
    suggested_topic: Mapped[str | None] = mapped_column(Text, nullable=True)
    suggested_time_start: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    suggested_time_end: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    optional_query: Mapped[str | None] = mapped_column(Text, nullable=True)
    event_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    faculty_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    faculty_email: Mapped[str] = mapped_column(String(255), nullable=False)
    poster_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

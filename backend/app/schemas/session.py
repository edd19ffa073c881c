from datetime import datetime

from pydantic import Field, field_validator

from app.models.conference_session import InviteStatus, RejectionReason, SessionStatus, TravelStatus
from app.schemas.common import CamelModel, OutcomeOut, as_utc


class SessionSpec(CamelModel):
    """One row of a scheduling form.

    Text fields default to empty strings so that missing values surface as
    per-field validation messages rather than a schema rejection.
    """

    key: str | None = Field(default=None, max_length=100)
    title: str = Field(default="", max_length=255)
    place: str = Field(default="", max_length=255)
    room_id: str = Field(default="", max_length=64)
    description: str = Field(default="", max_length=10000)
    start_time: datetime | None = None
    end_time: datetime | None = None
    status: SessionStatus = SessionStatus.draft


class SessionCreate(SessionSpec):
    faculty_id: str = Field(default="", max_length=64)
    email: str = Field(default="", max_length=255)
    event_id: str | None = Field(default=None, max_length=64)
    conflict_only: bool = False
    overwrite_conflicts: bool = False


class BulkSessionCreate(CamelModel):
    faculty_id: str = Field(default="", max_length=64)
    email: str = Field(default="", max_length=255)
    event_id: str | None = Field(default=None, max_length=64)
    sessions: list[SessionSpec] = Field(default_factory=list, max_length=200)
    overwrite_conflicts: bool = False


class SessionUpdate(CamelModel):
    title: str | None = Field(default=None, max_length=255)
    place: str | None = Field(default=None, max_length=255)
    room_id: str | None = Field(default=None, max_length=64)
    description: str | None = Field(default=None, max_length=10000)
    start_time: datetime | None = None
    end_time: datetime | None = None
    status: SessionStatus | None = None
    travel_status: TravelStatus | None = None
    overwrite_conflicts: bool = False


class SessionOut(CamelModel):
    id: str
    title: str
    place: str
    room_id: str
    description: str
    start_time: datetime
    end_time: datetime
    status: SessionStatus
    invite_status: InviteStatus
    travel_status: TravelStatus
    rejection_reason: RejectionReason | None = None
    suggested_topic: str | None = None
    suggested_time_start: datetime | None = None
    suggested_time_end: datetime | None = None
    optional_query: str | None = None
    event_id: str | None = None
    faculty_id: str
    faculty_email: str
    poster_path: str | None = None
    created_at: datetime | None = None

    @field_validator("start_time", "end_time", "suggested_time_start", "suggested_time_end", "created_at")
    @classmethod
    def normalize_timezone(cls, value: datetime | None) -> datetime | None:
        # SQLite hands back naive values; everything is stored as UTC.
        return as_utc(value)


class SessionCreateResult(CamelModel):
    session: SessionOut
    warnings: list[str] = Field(default_factory=list)


class BulkSessionResult(CamelModel):
    sessions: list[SessionOut]
    invitation: OutcomeOut


class SessionUpdateResult(CamelModel):
    session: SessionOut
    notification: OutcomeOut | None = None


class BulkInviteRequest(CamelModel):
    session_ids: list[str] = Field(default_factory=list, max_length=200)
    faculty_id: str | None = Field(default=None, max_length=64)
    faculty_name: str | None = Field(default=None, max_length=200)
    email: str | None = Field(default=None, max_length=255)


class SessionResponseRequest(CamelModel):
    id: str = Field(min_length=1, max_length=64)
    invite_status: InviteStatus
    rejection_reason: RejectionReason | None = None
    suggested_topic: str | None = Field(default=None, max_length=5000)
    suggested_time_start: datetime | None = None
    suggested_time_end: datetime | None = None
    optional_query: str | None = Field(default=None, max_length=5000)


class InviteStatusCounts(CamelModel):
    total: int = 0
    pending: int = 0
    accepted: int = 0
    declined: int = 0


class FacultySessionsOut(CamelModel):
    sessions: list[SessionOut]
    counts: InviteStatusCounts

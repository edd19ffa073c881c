from datetime import date, datetime

from pydantic import Field, field_validator, model_validator

from app.models.event import EventStatus
from app.schemas.common import CamelModel


class EventCreate(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    start_date: date
    end_date: date
    location: str | None = Field(default=None, max_length=255)
    status: EventStatus = EventStatus.draft

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Event name cannot be empty")
        return trimmed

    @model_validator(mode="after")
    def validate_dates(self) -> "EventCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self


class EventOut(CamelModel):
    id: str
    name: str
    description: str | None = None
    start_date: date
    end_date: date
    location: str | None = None
    status: EventStatus
    created_by_id: str
    created_at: datetime | None = None
    session_count: int = 0
    faculty_count: int = 0

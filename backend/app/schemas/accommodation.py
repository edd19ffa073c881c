from datetime import datetime

from pydantic import Field

from app.models.accommodation import (
    AccommodationPriority,
    AccommodationStatus,
    AccommodationType,
    ContactMethod,
)
from app.schemas.common import CamelModel


class AccommodationCreate(CamelModel):
    type: AccommodationType = AccommodationType.accessibility
    priority: AccommodationPriority = AccommodationPriority.normal
    title: str = Field(default="", max_length=200)
    description: str = Field(default="", max_length=5000)
    contact_method: ContactMethod = ContactMethod.email
    contact_info: str = Field(default="", max_length=255)
    special_requests: str | None = Field(default=None, max_length=5000)
    urgent_details: str | None = Field(default=None, max_length=5000)
    event_id: str | None = Field(default=None, max_length=64)


class AccommodationOut(CamelModel):
    id: str
    user_id: str
    event_id: str | None = None
    type: AccommodationType
    priority: AccommodationPriority
    title: str
    description: str
    contact_method: ContactMethod
    contact_info: str
    special_requests: str | None = None
    urgent_details: str | None = None
    status: AccommodationStatus
    created_at: datetime | None = None

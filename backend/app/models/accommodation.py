import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class AccommodationType(str, Enum):
    accessibility = "accessibility"
    medical = "medical"
    religious = "religious"
    language = "language"
    technical = "technical"
    other = "other"


class AccommodationPriority(str, Enum):
    low = "low"
    normal = "normal"
    high = "high"
    urgent = "urgent"


class ContactMethod(str, Enum):
    email = "email"
    phone = "phone"
    text = "text"
    mail = "mail"


class AccommodationStatus(str, Enum):
    open = "open"
    in_progress = "in_progress"
    resolved = "resolved"


class AccommodationRequest(Base):
    __tablename__ = "accommodation_requests"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    event_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    type: Mapped[AccommodationType] = mapped_column(
        SAEnum(AccommodationType, name="accommodation_type"),
        nullable=False,
        default=AccommodationType.accessibility,
    )
    priority: Mapped[AccommodationPriority] = mapped_column(
        SAEnum(AccommodationPriority, name="accommodation_priority"),
        nullable=False,
        default=AccommodationPriority.normal,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    contact_method: Mapped[ContactMethod] = mapped_column(
        SAEnum(ContactMethod, name="contact_method"),
        nullable=False,
        default=ContactMethod.email,
    )
    contact_info: Mapped[str] = mapped_column(String(255), nullable=False)
    special_requests: Mapped[str | None] = mapped_column(Text, nullable=True)
    urgent_details: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[AccommodationStatus] = mapped_column(
        SAEnum(AccommodationStatus, name="accommodation_status"),
        nullable=False,
        default=AccommodationStatus.open,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

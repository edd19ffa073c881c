from datetime import datetime

from pydantic import EmailStr, Field, field_validator

from app.models.feedback import FeedbackType
from app.schemas.common import CamelModel


class FeedbackCreate(CamelModel):
    feedback_type: FeedbackType = Field(default=FeedbackType.general, alias="type")
    rating: int = Field(default=0, ge=0, le=5)
    subject: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1, max_length=5000)
    reply_email: EmailStr | None = None
    event_id: str | None = Field(default=None, max_length=64)

    @field_validator("subject", "message")
    @classmethod
    def normalize_text(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Field cannot be empty")
        return cleaned


class FeedbackOut(CamelModel):
    id: str
    reporter_id: str
    event_id: str | None = None
    feedback_type: FeedbackType = Field(alias="type")
    rating: int
    subject: str
    message: str
    reply_email: str | None = None
    created_at: datetime | None = None

from pydantic import EmailStr, Field, field_validator

from app.schemas.common import CamelModel
from app.schemas.user import UserOut


class FacultyCreate(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    institution: str | None = Field(default=None, max_length=200)
    department: str | None = Field(default=None, max_length=200)
    designation: str | None = Field(default=None, max_length=200)
    phone: str | None = Field(default=None, max_length=50)
    event_id: str | None = Field(default=None, max_length=64)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Name cannot be empty")
        return trimmed

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class FacultyBulkCreate(CamelModel):
    event_id: str | None = Field(default=None, max_length=64)
    faculty: list[FacultyCreate] = Field(min_length=1, max_length=1000)


class FacultyBulkResult(CamelModel):
    created: list[UserOut]
    skipped_emails: list[str]

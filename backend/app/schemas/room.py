from pydantic import Field, field_validator

from app.schemas.common import CamelModel


class RoomCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    capacity: int | None = Field(default=None, ge=1, le=100000)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Room name cannot be empty")
        return trimmed


class RoomOut(RoomCreate):
    id: str

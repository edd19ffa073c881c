from datetime import datetime
from typing import Literal

from pydantic import Field

from app.models.conference_session import InviteStatus
from app.schemas.common import CamelModel


class CvUploadOut(CamelModel):
    id: str
    faculty_id: str
    file_path: str
    file_type: str
    file_size: int
    original_filename: str
    is_approved: bool
    session_metadata_id: str | None = None
    uploaded_at: datetime | None = None


class PresentationOut(CamelModel):
    id: str
    session_id: str | None = None
    user_id: str
    file_path: str
    title: str
    file_size: int
    uploaded_at: datetime | None = None


class CvUploadResult(CamelModel):
    cv: CvUploadOut
    warnings: list[str] = Field(default_factory=list)


class CvListOut(CamelModel):
    cvs: list[CvUploadOut]


class PresentationUploadResult(CamelModel):
    presentations: list[PresentationOut]
    warnings: list[str] = Field(default_factory=list)


class PresentationListOut(CamelModel):
    presentations: list[PresentationOut]


class CvDeleteRequest(CamelModel):
    id: str = Field(min_length=1, max_length=64)
    faculty_id: str | None = Field(default=None, max_length=64)


class PresentationDeleteRequest(CamelModel):
    file_id: str = Field(min_length=1, max_length=64)
    faculty_id: str | None = Field(default=None, max_length=64)


class DeleteResult(CamelModel):
    success: bool = True
    message: str
    warnings: list[str] = Field(default_factory=list)


class DocumentFileOut(CamelModel):
    id: str
    file_name: str
    file_size: int
    file_url: str
    uploaded_at: datetime | None = None
    is_approved: bool | None = None


class FacultyDocumentsEntry(CamelModel):
    id: str
    name: str
    email: str
    institution: str
    designation: str
    session_id: str | None = None
    session_title: str | None = None
    invite_status: InviteStatus | None = None
    presentation: DocumentFileOut | None = None
    cv: DocumentFileOut | None = None


class DocumentsMeta(CamelModel):
    event_id: str
    session_id: str | None = None
    total_faculty: int
    with_presentations: int = 0
    with_cvs: int = Field(default=0, alias="withCVs")
    view_type: Literal["self-only", "all-faculty"]
    message: str | None = None


class FacultyDocumentsOut(CamelModel):
    data: list[FacultyDocumentsEntry]
    meta: DocumentsMeta

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from app.api.deps import get_current_principal, get_db, get_file_storage
from app.core.exceptions import ValidationFailedError
from app.core.permissions import Principal
from app.schemas.documents import (
    CvDeleteRequest,
    CvListOut,
    CvUploadResult,
    DeleteResult,
    FacultyDocumentsOut,
    PresentationDeleteRequest,
    PresentationListOut,
    PresentationUploadResult,
)
from app.services.documents import DocumentService, documents_overview
from app.services.storage import FileStorage
from app.services.uploads import IncomingFile, read_upload

router = APIRouter()


def _service(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
) -> DocumentService:
    return DocumentService(db, principal, storage)


async def _single_file(upload: UploadFile | None) -> IncomingFile:
    if upload is None or not upload.filename:
        raise ValidationFailedError({"file": "No file provided"}, message="No file provided")
    return await read_upload(upload)


@router.get("/cv", response_model=CvListOut)
def list_cvs(
    faculty_id: str | None = Query(default=None, alias="facultyId"),
    service: DocumentService = Depends(_service),
) -> CvListOut:
    return CvListOut(cvs=service.list_cvs(faculty_id))


@router.post("/cv", response_model=CvUploadResult)
async def upload_cv(
    file: UploadFile | None = File(default=None),
    faculty_id: str | None = Form(default=None, alias="facultyId"),
    session_id: str | None = Form(default=None, alias="sessionId"),
    service: DocumentService = Depends(_service),
) -> CvUploadResult:
    upload = await _single_file(file)
    record, warnings = service.upload_cv(faculty_id, upload, session_id or None)
    return CvUploadResult(cv=record, warnings=warnings)


@router.post("/cv/replace", response_model=CvUploadResult)
async def replace_cv(
    cv_id: str = Form(alias="id"),
    file: UploadFile | None = File(default=None),
    faculty_id: str | None = Form(default=None, alias="facultyId"),
    service: DocumentService = Depends(_service),
) -> CvUploadResult:
    upload = await _single_file(file)
    record, warnings = service.replace_cv(cv_id, faculty_id, upload)
    return CvUploadResult(cv=record, warnings=warnings)


@router.delete("/cv", response_model=DeleteResult)
def delete_cv(payload: CvDeleteRequest, service: DocumentService = Depends(_service)) -> DeleteResult:
    warnings = service.delete_cv(payload.id, payload.faculty_id)
    return DeleteResult(message="CV deleted successfully", warnings=warnings)


@router.get("/presentations/upload", response_model=PresentationListOut)
def list_presentations(
    faculty_id: str | None = Query(default=None, alias="facultyId"),
    session_id: str | None = Query(default=None, alias="sessionId"),
    service: DocumentService = Depends(_service),
) -> PresentationListOut:
    return PresentationListOut(presentations=service.list_presentations(faculty_id, session_id))


@router.post("/presentations/upload", response_model=PresentationUploadResult)
async def upload_presentations(
    files: list[UploadFile] | None = File(default=None),
    faculty_id: str | None = Form(default=None, alias="facultyId"),
    session_id: str | None = Form(default=None, alias="sessionId"),
    service: DocumentService = Depends(_service),
) -> PresentationUploadResult:
    uploads = [await read_upload(item) for item in files or [] if item.filename]
    records, warnings = service.upload_presentations(faculty_id, uploads, session_id or None)
    return PresentationUploadResult(presentations=records, warnings=warnings)


@router.delete("/presentations/upload", response_model=DeleteResult)
def delete_presentation(
    payload: PresentationDeleteRequest,
    service: DocumentService = Depends(_service),
) -> DeleteResult:
    warnings = service.delete_presentation(payload.file_id, payload.faculty_id)
    return DeleteResult(message="Presentation deleted successfully", warnings=warnings)


@router.get("/documents", response_model=FacultyDocumentsOut)
def list_documents(
    event_id: str = Query(alias="eventId", min_length=1),
    session_id: str | None = Query(default=None, alias="sessionId"),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> FacultyDocumentsOut:
    return documents_overview(db, principal, event_id=event_id, session_id=session_id)

"""CV and presentation lifecycle for faculty members.

Files are written before their metadata rows. Removing a superseded or
deleted file is best effort: the database row is the source of truth, so a
leftover file only produces a warning.
"""
from __future__ import annotations

from datetime import datetime, timezone
import logging

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.exceptions import (
    PermissionDeniedError,
    ResourceNotFoundError,
    StorageError,
    ValidationFailedError,
)
from app.core.permissions import Capability, Principal
from app.models.conference_session import ConferenceSession, InviteStatus
from app.models.cv_upload import CvUpload
from app.models.presentation import Presentation
from app.models.user import User, UserRole
from app.schemas.documents import DocumentFileOut, DocumentsMeta, FacultyDocumentsEntry, FacultyDocumentsOut
from app.services.audit import log_activity
from app.services.outcomes import collect_warnings
from app.services.storage import CV_CATEGORY, PRESENTATION_CATEGORY, FileStorage, generate_unique_filename
from app.services.uploads import IncomingFile, UploadRule, megabytes

logger = logging.getLogger(__name__)

PDF = "application/pdf"
DOC = "application/msword"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
PPT = "application/vnd.ms-powerpoint"
PPTX = "application/vnd.openxmlformats-officedocument.presentationml.presentation"

CV_TYPES = frozenset({PDF, DOC, DOCX})
PRESENTATION_TYPES = frozenset({PDF, PPT, PPTX, DOC, DOCX})


def cv_rule() -> UploadRule:
    max_bytes = get_settings().cv_max_bytes
    return UploadRule(
        allowed_types=CV_TYPES,
        max_bytes=max_bytes,
        type_error="Only PDF, DOC, DOCX files are allowed",
        size_error=f"File size must be {megabytes(max_bytes)}MB or less",
    )


def presentation_rule() -> UploadRule:
    max_bytes = get_settings().presentation_max_bytes
    return UploadRule(
        allowed_types=PRESENTATION_TYPES,
        max_bytes=max_bytes,
        type_error="Only PDF, PPT, PPTX, DOC, DOCX files are allowed",
        size_error=f"File size must be {megabytes(max_bytes)}MB or less",
    )


def _now() -> datetime:
    return datetime.now(timezone.utc)


class DocumentService:
    def __init__(self, db: Session, principal: Principal, storage: FileStorage):
        self.db = db
        self.principal = principal
        self.storage = storage

    # -- faculty resolution -------------------------------------------------

    def resolve_faculty(self, faculty_id: str | None) -> User:
        """Authorize the caller for ``faculty_id`` and load the faculty account.

        The id is tried first and the caller's email second; only FACULTY
        accounts qualify.
        """
        requested = (faculty_id or "").strip() or self.principal.base_identity
        self.principal.decide_for_faculty(requested).raise_if_denied()

        faculty = self.db.get(User, requested)
        if faculty is None or faculty.role != UserRole.faculty:
            faculty = self.db.execute(
                select(User).where(User.email == self.principal.user.email, User.role == UserRole.faculty)
            ).scalar_one_or_none()
        if faculty is None:
            raise ResourceNotFoundError("Faculty", requested)
        return faculty

    def _owns(self, owner_id: str, faculty: User) -> bool:
        return owner_id == faculty.id or self.principal.can(Capability.manage_faculty_documents)

    def _accepted_session(self, session_id: str | None, faculty: User) -> tuple[str | None, list[str]]:
        if not session_id:
            return None, []
        session = self.db.get(ConferenceSession, session_id)
        if session is None or session.faculty_id != faculty.id or session.invite_status != InviteStatus.accepted:
            logger.warning("Ignoring session reference %s for faculty %s", session_id, faculty.id)
            return None, [f"Session {session_id} is not an accepted session for this faculty; uploaded without a session link"]
        return session.id, []

    # -- CVs ------------------------------------------------------------------

    def list_cvs(self, faculty_id: str | None) -> list[CvUpload]:
        faculty = self.resolve_faculty(faculty_id)
        statement = select(CvUpload).where(CvUpload.faculty_id == faculty.id).order_by(CvUpload.uploaded_at.desc())
        return list(self.db.execute(statement).scalars())

    def upload_cv(self, faculty_id: str | None, upload: IncomingFile, session_id: str | None = None) -> tuple[CvUpload, list[str]]:
        error = upload.check(cv_rule())
        if error:
            raise ValidationFailedError({"file": error}, message=error)
        faculty = self.resolve_faculty(faculty_id)
        linked_session_id, warnings = self._accepted_session(session_id, faculty)

        public_path = self.storage.write(
            CV_CATEGORY,
            generate_unique_filename(upload.filename, faculty.id, "CV"),
            upload.data,
        )
        record = CvUpload(
            faculty_id=faculty.id,
            file_path=public_path,
            file_type=upload.content_type,
            file_size=upload.size,
            original_filename=upload.filename,
            is_approved=False,
            session_metadata_id=linked_session_id,
            uploaded_at=_now(),
        )
        self.db.add(record)
        try:
            self.db.flush()
            log_activity(self.db, user=self.principal.user, action="cv.upload", entity_type="cv", entity_id=record.id)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            warnings.extend(collect_warnings(self.storage.delete(public_path)))
            logger.exception("Failed to record CV upload for %s", faculty.id)
            raise StorageError("Failed to save CV", reason=str(exc)) from exc
        self.db.refresh(record)
        return record, warnings

    def replace_cv(self, cv_id: str, faculty_id: str | None, upload: IncomingFile) -> tuple[CvUpload, list[str]]:
        error = upload.check(cv_rule())
        if error:
            raise ValidationFailedError({"file": error}, message=error)
        faculty = self.resolve_faculty(faculty_id)
        record = self.db.get(CvUpload, cv_id)
        if record is None:
            raise ResourceNotFoundError("CV", cv_id)
        if not self._owns(record.faculty_id, faculty):
            raise PermissionDeniedError("Not authorized to replace this CV")

        old_path = record.file_path
        new_path = self.storage.write(
            CV_CATEGORY,
            generate_unique_filename(upload.filename, record.faculty_id, "CV"),
            upload.data,
        )
        record.file_path = new_path
        record.file_type = upload.content_type
        record.file_size = upload.size
        record.original_filename = upload.filename
        record.uploaded_at = _now()
        log_activity(
            self.db,
            user=self.principal.user,
            action="cv.replace",
            entity_type="cv",
            entity_id=record.id,
            details={"previousPath": old_path},
        )
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            self.storage.delete(new_path)
            logger.exception("Failed to update CV %s", cv_id)
            raise StorageError("Failed to replace CV", reason=str(exc)) from exc
        self.db.refresh(record)

        warnings = collect_warnings(self.storage.delete(old_path)) if old_path != new_path else []
        return record, warnings

    def delete_cv(self, cv_id: str, faculty_id: str | None) -> list[str]:
        faculty = self.resolve_faculty(faculty_id)
        record = self.db.get(CvUpload, cv_id)
        if record is None:
            raise ResourceNotFoundError("CV", cv_id)
        if not self._owns(record.faculty_id, faculty):
            raise PermissionDeniedError("Not authorized to delete this CV")

        file_path = record.file_path
        self.db.delete(record)
        log_activity(self.db, user=self.principal.user, action="cv.delete", entity_type="cv", entity_id=cv_id)
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Failed to delete CV %s", cv_id)
            raise StorageError("Failed to delete CV", reason=str(exc)) from exc
        return collect_warnings(self.storage.delete(file_path))

    # -- presentations --------------------------------------------------------

    def list_presentations(self, faculty_id: str | None, session_id: str | None = None) -> list[Presentation]:
        faculty = self.resolve_faculty(faculty_id)
        statement = select(Presentation).where(Presentation.user_id == faculty.id)
        if session_id:
            statement = statement.where(Presentation.session_id == session_id)
        statement = statement.order_by(Presentation.uploaded_at.desc())
        return list(self.db.execute(statement).scalars())

    def upload_presentations(
        self,
        faculty_id: str | None,
        uploads: list[IncomingFile],
        session_id: str | None = None,
    ) -> tuple[list[Presentation], list[str]]:
        if not uploads:
            raise ValidationFailedError({"files": "No files provided"}, message="No files provided")
        rule = presentation_rule()
        for upload in uploads:
            error = upload.check(rule)
            if error:
                message = f"File \"{upload.filename}\": {error}"
                raise ValidationFailedError({"files": message}, message=message)

        faculty = self.resolve_faculty(faculty_id)
        linked_session_id, warnings = self._accepted_session(session_id, faculty)

        created: list[Presentation] = []
        for index, upload in enumerate(uploads, start=1):
            try:
                public_path = self.storage.write(
                    PRESENTATION_CATEGORY,
                    generate_unique_filename(upload.filename, faculty.id, "PRES", index),
                    upload.data,
                )
            except StorageError as exc:
                logger.error("Failed to store presentation %r for %s: %s", upload.filename, faculty.id, exc.reason)
                raise StorageError(
                    f"Failed to save presentation \"{upload.filename}\"",
                    reason=exc.reason,
                    details={"uploadedIds": [item.id for item in created]},
                ) from exc
            record = Presentation(
                session_id=linked_session_id,
                user_id=faculty.id,
                file_path=public_path,
                title=upload.stem,
                file_size=upload.size,
                uploaded_at=_now(),
            )
            self.db.add(record)
            try:
                self.db.flush()
                log_activity(
                    self.db,
                    user=self.principal.user,
                    action="presentation.upload",
                    entity_type="presentation",
                    entity_id=record.id,
                )
                self.db.commit()
            except SQLAlchemyError as exc:
                self.db.rollback()
                self.storage.delete(public_path)
                logger.exception("Failed to record presentation %r for %s", upload.filename, faculty.id)
                raise StorageError(
                    f"Failed to save presentation \"{upload.filename}\"",
                    reason=str(exc),
                    details={"uploadedIds": [item.id for item in created]},
                ) from exc
            self.db.refresh(record)
            created.append(record)
        logger.info("Stored %d presentation(s) for %s", len(created), faculty.id)
        return created, warnings

    def delete_presentation(self, file_id: str, faculty_id: str | None) -> list[str]:
        faculty = self.resolve_faculty(faculty_id)
        record = self.db.get(Presentation, file_id)
        if record is None:
            raise ResourceNotFoundError("Presentation", file_id)
        if not self._owns(record.user_id, faculty):
            raise PermissionDeniedError("Not authorized to delete this presentation")

        file_path = record.file_path
        self.db.delete(record)
        log_activity(
            self.db,
            user=self.principal.user,
            action="presentation.delete",
            entity_type="presentation",
            entity_id=file_id,
        )
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Failed to delete presentation %s", file_id)
            raise StorageError("Failed to delete presentation", reason=str(exc)) from exc
        return collect_warnings(self.storage.delete(file_path))


# -- role-scoped overview ------------------------------------------------------


def _presentation_file(record: Presentation | None) -> DocumentFileOut | None:
    if record is None:
        return None
    return DocumentFileOut(
        id=record.id,
        file_name=record.title or record.file_path.rsplit("/", 1)[-1],
        file_size=record.file_size,
        file_url=record.file_path,
        uploaded_at=record.uploaded_at,
    )


def _cv_file(record: CvUpload | None) -> DocumentFileOut | None:
    if record is None:
        return None
    return DocumentFileOut(
        id=record.id,
        file_name=record.original_filename or record.file_path.rsplit("/", 1)[-1],
        file_size=record.file_size,
        file_url=record.file_path,
        uploaded_at=record.uploaded_at,
        is_approved=record.is_approved,
    )


def _display_name(user: User | None, email: str) -> str:
    if user is not None and user.name:
        return user.name
    local_part = email.split("@")[0].replace(".", " ").replace("_", " ")
    return local_part.title() or "Unknown Faculty"


def _latest_cv(db: Session, faculty_id: str) -> CvUpload | None:
    statement = (
        select(CvUpload)
        .where(CvUpload.faculty_id == faculty_id)
        .order_by(CvUpload.uploaded_at.desc())
        .limit(1)
    )
    return db.execute(statement).scalar_one_or_none()


def _latest_presentation(db: Session, faculty_id: str, session_ids: list[str] | None = None) -> Presentation | None:
    statement = select(Presentation).where(Presentation.user_id == faculty_id)
    if session_ids is not None:
        statement = statement.where(Presentation.session_id.in_(session_ids))
    statement = statement.order_by(Presentation.uploaded_at.desc()).limit(1)
    return db.execute(statement).scalar_one_or_none()


def documents_overview(db: Session, principal: Principal, *, event_id: str, session_id: str | None = None) -> FacultyDocumentsOut:
    statement = select(ConferenceSession).where(ConferenceSession.event_id == event_id)
    if session_id:
        statement = statement.where(ConferenceSession.id == session_id)

    if not principal.can(Capability.view_all_documents):
        user = principal.user
        own = db.execute(
            statement.where(
                or_(
                    ConferenceSession.faculty_id == principal.base_identity,
                    ConferenceSession.faculty_email == user.email,
                )
            ).order_by(ConferenceSession.start_time)
        ).scalars().first()
        if own is None:
            meta = DocumentsMeta(
                event_id=event_id,
                session_id=session_id,
                total_faculty=0,
                view_type="self-only",
                message="You are not associated with this session",
            )
            return FacultyDocumentsOut(data=[], meta=meta)

        presentation = _presentation_file(_latest_presentation(db, own.faculty_id))
        cv = _cv_file(_latest_cv(db, own.faculty_id))
        entry = FacultyDocumentsEntry(
            id=own.faculty_id,
            name=_display_name(user, user.email),
            email=user.email,
            institution=user.institution or "Not specified",
            designation=user.designation or "Faculty Member",
            session_id=own.id,
            session_title=own.title,
            invite_status=own.invite_status,
            presentation=presentation,
            cv=cv,
        )
        meta = DocumentsMeta(
            event_id=event_id,
            session_id=session_id,
            total_faculty=1,
            with_presentations=int(presentation is not None),
            with_cvs=int(cv is not None),
            view_type="self-only",
        )
        return FacultyDocumentsOut(data=[entry], meta=meta)

    accepted = list(
        db.execute(
            statement.where(ConferenceSession.invite_status == InviteStatus.accepted).order_by(ConferenceSession.start_time)
        ).scalars()
    )
    event_session_ids = list(
        db.execute(select(ConferenceSession.id).where(ConferenceSession.event_id == event_id)).scalars()
    )
    entries: list[FacultyDocumentsEntry] = []
    for session in accepted:
        faculty = db.get(User, session.faculty_id)
        record = _latest_presentation(db, session.faculty_id, [session.id])
        if record is None:
            record = _latest_presentation(db, session.faculty_id, event_session_ids)
        entries.append(
            FacultyDocumentsEntry(
                id=session.faculty_id,
                name=_display_name(faculty, session.faculty_email),
                email=session.faculty_email,
                institution=(faculty.institution if faculty is not None else None) or "Not specified",
                designation=(faculty.designation if faculty is not None else None) or "Faculty Member",
                session_id=session.id,
                session_title=session.title,
                invite_status=session.invite_status,
                presentation=_presentation_file(record),
                cv=_cv_file(_latest_cv(db, session.faculty_id)),
            )
        )
    meta = DocumentsMeta(
        event_id=event_id,
        session_id=session_id,
        total_faculty=len(entries),
        with_presentations=sum(1 for entry in entries if entry.presentation is not None),
        with_cvs=sum(1 for entry in entries if entry.cv is not None),
        view_type="all-faculty",
    )
    return FacultyDocumentsOut(data=entries, meta=meta)

from __future__ import annotations

import re

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import ValidationFailedError
from app.core.permissions import Capability, Principal
from app.models.accommodation import AccommodationPriority, AccommodationRequest, ContactMethod
from app.models.feedback import FeedbackItem
from app.schemas.accommodation import AccommodationCreate
from app.schemas.feedback import FeedbackCreate
from app.services.audit import log_activity

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]{10,}$")


def validate_accommodation(payload: AccommodationCreate) -> dict[str, str]:
    errors: dict[str, str] = {}
    if not payload.title.strip():
        errors["title"] = "Title is required"
    if not payload.description.strip():
        errors["description"] = "Description is required"

    contact_info = payload.contact_info.strip()
    if not contact_info:
        errors["contactInfo"] = "Contact information is required"
    elif payload.contact_method == ContactMethod.email and not EMAIL_PATTERN.match(contact_info):
        errors["contactInfo"] = "Please enter a valid email address"
    elif payload.contact_method in (ContactMethod.phone, ContactMethod.text) and not PHONE_PATTERN.match(
        re.sub(r"\s", "", contact_info)
    ):
        errors["contactInfo"] = "Please enter a valid phone number"

    if payload.priority == AccommodationPriority.urgent and not (payload.urgent_details or "").strip():
        errors["urgentDetails"] = "Please provide details for urgent requests"
    return errors


def create_accommodation_request(db: Session, principal: Principal, payload: AccommodationCreate) -> AccommodationRequest:
    errors = validate_accommodation(payload)
    if errors:
        raise ValidationFailedError(errors)

    record = AccommodationRequest(
        user_id=principal.user.id,
        event_id=payload.event_id,
        type=payload.type,
        priority=payload.priority,
        title=payload.title.strip(),
        description=payload.description.strip(),
        contact_method=payload.contact_method,
        contact_info=payload.contact_info.strip(),
        special_requests=(payload.special_requests or "").strip() or None,
        urgent_details=(payload.urgent_details or "").strip() or None,
    )
    db.add(record)
    db.flush()
    log_activity(
        db,
        user=principal.user,
        action="accommodation.create",
        entity_type="accommodation",
        entity_id=record.id,
        details={"priority": payload.priority.value},
    )
    db.commit()
    db.refresh(record)
    return record


def list_accommodation_requests(db: Session, principal: Principal) -> list[AccommodationRequest]:
    statement = select(AccommodationRequest).order_by(AccommodationRequest.created_at.desc())
    if not principal.can(Capability.review_requests):
        statement = statement.where(AccommodationRequest.user_id == principal.user.id)
    return list(db.execute(statement).scalars())


def create_feedback(db: Session, principal: Principal, payload: FeedbackCreate) -> FeedbackItem:
    record = FeedbackItem(
        reporter_id=principal.user.id,
        event_id=payload.event_id,
        feedback_type=payload.feedback_type,
        rating=payload.rating,
        subject=payload.subject,
        message=payload.message,
        reply_email=payload.reply_email,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def list_feedback(db: Session, principal: Principal) -> list[FeedbackItem]:
    statement = select(FeedbackItem).order_by(FeedbackItem.created_at.desc())
    if not principal.can(Capability.review_requests):
        statement = statement.where(FeedbackItem.reporter_id == principal.user.id)
    return list(db.execute(statement).scalars())

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_principal, get_db
from app.core.permissions import Principal
from app.schemas.feedback import FeedbackCreate, FeedbackOut
from app.services.support_requests import create_feedback, list_feedback

router = APIRouter()


@router.post("", response_model=FeedbackOut, status_code=status.HTTP_201_CREATED)
def submit_feedback(
    payload: FeedbackCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> FeedbackOut:
    return create_feedback(db, principal, payload)


@router.get("", response_model=list[FeedbackOut])
def list_feedback_items(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> list[FeedbackOut]:
    return list_feedback(db, principal)

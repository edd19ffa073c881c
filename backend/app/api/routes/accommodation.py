from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_principal, get_db
from app.core.permissions import Principal
from app.schemas.accommodation import AccommodationCreate, AccommodationOut
from app.services.support_requests import create_accommodation_request, list_accommodation_requests

router = APIRouter()


@router.post("", response_model=AccommodationOut, status_code=status.HTTP_201_CREATED)
def submit_accommodation_request(
    payload: AccommodationCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> AccommodationOut:
    return create_accommodation_request(db, principal, payload)


@router.get("", response_model=list[AccommodationOut])
def list_accommodation(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> list[AccommodationOut]:
    return list_accommodation_requests(db, principal)

from collections.abc import Callable, Generator

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.permissions import Capability, Principal, normalize_identity
from app.core.security import decode_token
from app.db.session import SessionLocal
from app.models.user import User
from app.services.storage import FileStorage

security = HTTPBearer()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_file_storage() -> FileStorage:
    return FileStorage(get_settings().upload_root)


def get_current_principal(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> Principal:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(credentials.credentials)
        identity = payload.get("sub")
        if identity is None:
            raise credentials_exception
    except JWTError as exc:
        raise credentials_exception from exc

    user = db.get(User, normalize_identity(identity))
    if user is None:
        raise credentials_exception
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")
    return Principal.for_user(user, identity)


def get_current_user(principal: Principal = Depends(get_current_principal)) -> User:
    return principal.user


def require_capability(capability: Capability) -> Callable[[Principal], Principal]:
    def capability_checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not principal.can(capability):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return principal

    return capability_checker

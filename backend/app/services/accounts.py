from __future__ import annotations

import secrets
import string
import time
import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.security import get_password_hash, unusable_password_hash
from app.models.user import User, UserRole
from app.schemas.faculty import FacultyCreate

_BASE36 = string.digits + string.ascii_lowercase


def new_user_id(role: UserRole) -> str:
    """Faculty ids take the ``faculty-evt_<token>`` form that portal identities extend."""
    if role == UserRole.faculty:
        return f"faculty-evt_{uuid.uuid4().hex[:12]}"
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"user_{int(time.time() * 1000)}_{suffix}"


def portal_identity(user: User) -> str:
    """Token subject for a login; faculty logins get a per-login composite identity."""
    if user.role == UserRole.faculty and user.id.startswith("faculty-evt_"):
        return f"{user.id}-{int(time.time() * 1000) % 1_000_000}"
    return user.id


def find_user_by_email(db: Session, email: str) -> User | None:
    return db.execute(select(User).where(User.email == email.strip().lower())).scalar_one_or_none()


def build_user(*, name: str, email: str, role: UserRole, password: str | None = None, **profile) -> User:
    return User(
        id=new_user_id(role),
        name=name,
        email=email.strip().lower(),
        hashed_password=get_password_hash(password) if password else unusable_password_hash(),
        role=role,
        **profile,
    )


def build_faculty(payload: FacultyCreate, *, event_id: str | None = None) -> User:
    return build_user(
        name=payload.name,
        email=payload.email,
        role=UserRole.faculty,
        institution=payload.institution,
        department=payload.department,
        designation=payload.designation,
        phone=payload.phone,
        event_id=payload.event_id or event_id,
    )

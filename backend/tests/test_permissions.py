import pytest

from app.core.exceptions import PermissionDeniedError
from app.core.permissions import Capability, Principal, normalize_identity
from app.models.user import User, UserRole


def _user(role: UserRole, user_id: str, email: str) -> User:
    return User(id=user_id, name="Someone", email=email, hashed_password="x", role=role, is_active=True)


@pytest.mark.parametrize(
    ("identity", "expected"),
    [
        ("faculty-evt_abc123-456789", "faculty-evt_abc123"),
        ("faculty-evt_abc123", "faculty-evt_abc123"),
        ("user_1700000000000_abcdefghi", "user_1700000000000_abcdefghi"),
        ("faculty-other-1", "faculty-other-1"),
    ],
)
def test_normalize_identity(identity, expected):
    assert normalize_identity(identity) == expected


def test_organizer_tier_roles_hold_every_capability():
    for role in (UserRole.organizer, UserRole.event_manager):
        principal = Principal.for_user(_user(role, f"user_{role.value}", f"{role.value}@example.com"))
        assert all(principal.can(capability) for capability in Capability)
        assert principal.is_organizer_tier


def test_faculty_and_delegate_hold_no_capabilities():
    for role in (UserRole.faculty, UserRole.delegate):
        principal = Principal.for_user(_user(role, f"user_{role.value}", f"{role.value}@example.com"))
        assert not any(principal.can(capability) for capability in Capability)
        assert principal.require(Capability.schedule_sessions).allowed is False


def test_faculty_decision_accepts_composite_identity_and_email():
    faculty = _user(UserRole.faculty, "faculty-evt_abc123", "owner@example.com")
    principal = Principal.for_user(faculty, "faculty-evt_abc123-654321")

    assert principal.decide_for_faculty("faculty-evt_abc123").allowed
    assert principal.decide_for_faculty("faculty-evt_other", faculty_email="OWNER@example.com").allowed

    denied = principal.decide_for_faculty("faculty-evt_other", faculty_email="other@example.com")
    assert denied.allowed is False
    with pytest.raises(PermissionDeniedError):
        denied.raise_if_denied()


def test_organizer_may_act_for_any_faculty():
    organizer = Principal.for_user(_user(UserRole.organizer, "user_org", "org@example.com"))
    assert organizer.decide_for_faculty("faculty-evt_anyone").allowed

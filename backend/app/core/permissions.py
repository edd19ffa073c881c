"""Role capabilities and per-resource access decisions.

Roles are translated into capabilities once, when the request principal is
built. Handlers ask the principal for a decision instead of comparing role
names themselves.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from app.core.exceptions import PermissionDeniedError
from app.models.user import User, UserRole


class Capability(str, Enum):
    manage_events = "manage_events"
    schedule_sessions = "schedule_sessions"
    manage_faculty_documents = "manage_faculty_documents"
    view_all_documents = "view_all_documents"
    review_requests = "review_requests"


_ORGANIZER_TIER = frozenset(Capability)

ROLE_CAPABILITIES: dict[UserRole, frozenset[Capability]] = {
    UserRole.organizer: _ORGANIZER_TIER,
    UserRole.event_manager: _ORGANIZER_TIER,
    UserRole.faculty: frozenset(),
    UserRole.delegate: frozenset(),
}


def normalize_identity(identity: str) -> str:
    """Strip the per-login suffix from composite faculty identities.

    ``faculty-evt_123-987654`` becomes ``faculty-evt_123``; any other identity is
    returned unchanged.
    """
    parts = identity.split("-")
    if len(parts) >= 2 and parts[0] == "faculty" and parts[1].startswith("evt_"):
        return "-".join(parts[:2])
    return identity


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: str

    def raise_if_denied(self) -> None:
        if not self.allowed:
            raise PermissionDeniedError(self.reason)


@dataclass(frozen=True)
class Principal:
    user: User
    identity: str
    capabilities: frozenset[Capability] = field(default_factory=frozenset)

    @classmethod
    def for_user(cls, user: User, identity: str | None = None) -> "Principal":
        return cls(
            user=user,
            identity=identity or user.id,
            capabilities=ROLE_CAPABILITIES.get(user.role, frozenset()),
        )

    @property
    def base_identity(self) -> str:
        return normalize_identity(self.identity)

    @property
    def is_organizer_tier(self) -> bool:
        return Capability.schedule_sessions in self.capabilities

    def can(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def require(self, capability: Capability) -> AccessDecision:
        if self.can(capability):
            return AccessDecision(True, f"role grants {capability.value}")
        return AccessDecision(False, "Insufficient permissions")

    def decide_for_faculty(self, faculty_id: str, *, faculty_email: str | None = None) -> AccessDecision:
        """Allow acting on a faculty's resources for the owner or an organizer-tier role."""
        if self.identity == faculty_id or self.base_identity == faculty_id:
            return AccessDecision(True, "caller owns the resource")
        if faculty_email and self.user.email and self.user.email.lower() == faculty_email.lower():
            return AccessDecision(True, "caller email matches the resource owner")
        if self.can(Capability.manage_faculty_documents):
            return AccessDecision(True, "organizer-tier role")
        return AccessDecision(False, "Insufficient permissions")

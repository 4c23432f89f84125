from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    STUDENT = "student"
    VOLUNTEER = "volunteer"
    MENTOR = "mentor"
    ADMIN = "admin"


class Capability(str, Enum):
    """Workflow actions guarded by role."""

    CREATE_ASSIGNMENT = "create_assignment"
    MANAGE_SOLUTION = "manage_solution"
    SUBMIT_RESPONSE = "submit_response"
    VIEW_PENDING = "view_pending"
    ASK_DOUBT = "ask_doubt"
    REPLY_DOUBT = "reply_doubt"
    FOLLOWUP_DOUBT = "followup_doubt"
    RESOLVE_DOUBT = "resolve_doubt"
    VIEW_DOUBTS = "view_doubts"


_LEARNERS = frozenset({Role.STUDENT, Role.VOLUNTEER})
_STAFF = frozenset({Role.MENTOR, Role.ADMIN})

CAPABILITIES: dict[Capability, frozenset[Role]] = {
    Capability.CREATE_ASSIGNMENT: _STAFF,
    Capability.MANAGE_SOLUTION: _STAFF,
    Capability.SUBMIT_RESPONSE: _LEARNERS,
    Capability.VIEW_PENDING: _LEARNERS,
    Capability.ASK_DOUBT: _LEARNERS,
    Capability.REPLY_DOUBT: _STAFF,
    Capability.FOLLOWUP_DOUBT: _LEARNERS,
    Capability.RESOLVE_DOUBT: _LEARNERS,
    Capability.VIEW_DOUBTS: _LEARNERS | _STAFF,
}


def is_allowed(role: Role, capability: Capability) -> bool:
    return role in CAPABILITIES[capability]


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated identity extracted from a validated JWT.

    Carried through the request via FastAPI's dependency system.

        user_id: subject from JWT
        role: single platform role (student|volunteer|mentor|admin)
        email: address used for personal-assignment matching and mail
    """

    user_id: str
    role: Role
    email: str | None = None

    def can(self, capability: Capability) -> bool:
        return is_allowed(self.role, capability)

    @property
    def is_learner(self) -> bool:
        return self.role in _LEARNERS

    @property
    def is_staff(self) -> bool:
        return self.role in _STAFF

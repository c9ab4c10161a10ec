"""
Capability classifier (``staffing_kernel.domain.capability``).

Responsibility
--------------
Maps a worker's stored role string onto one of three capabilities (owner,
manager, staff) and answers permission checks for authorization-sensitive
operations.  The classification happens once, at the edge; services
receive an explicit ``Actor`` rather than reading a role from ambient
context.

Invariants enforced
-------------------
* Kernel services stay actor-agnostic: the time ledger never checks
  permissions.  Callers (``staffing_services``, ``staffing_batch``) gate
  with ``require_permission`` before invoking it.
* Unknown roles classify as STAFF (least privilege).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from staffing_kernel.exceptions import UnauthorizedError


class Capability(str, Enum):
    OWNER = "owner"
    MANAGER = "manager"
    STAFF = "staff"


class Permission(str, Enum):
    VIEW_ALL_STAFF = "view_all_staff"
    VIEW_ALL_SCHEDULES = "view_all_schedules"
    EDIT_SCHEDULES = "edit_schedules"
    VIEW_ALL_TIMESHEETS = "view_all_timesheets"
    EDIT_TIMESHEETS = "edit_timesheets"
    APPROVE_REQUESTS = "approve_requests"
    VIEW_PAYROLL = "view_payroll"
    MANAGE_SETTINGS = "manage_settings"


_MANAGER_PERMISSIONS: frozenset[Permission] = frozenset(Permission)

CAPABILITY_PERMISSIONS: dict[Capability, frozenset[Permission]] = {
    Capability.OWNER: _MANAGER_PERMISSIONS,
    Capability.MANAGER: _MANAGER_PERMISSIONS,
    # Staff act only on their own records
    Capability.STAFF: frozenset(),
}

_ROLE_TO_CAPABILITY: dict[str, Capability] = {
    "owner": Capability.OWNER,
    "admin": Capability.OWNER,
    "manager": Capability.MANAGER,
    "staff": Capability.STAFF,
}


def classify(role: str | None) -> Capability:
    """Classify a stored role string.  Missing or unknown roles are STAFF."""
    if not role:
        return Capability.STAFF
    return _ROLE_TO_CAPABILITY.get(role.strip().lower(), Capability.STAFF)


@dataclass(frozen=True)
class Actor:
    """Who is invoking an operation, and with what capability."""

    actor_id: UUID
    capability: Capability

    @classmethod
    def from_role(cls, actor_id: UUID, role: str | None) -> "Actor":
        return cls(actor_id=actor_id, capability=classify(role))

    @property
    def is_manager(self) -> bool:
        return self.capability in (Capability.OWNER, Capability.MANAGER)

    def can(self, permission: Permission) -> bool:
        return permission in CAPABILITY_PERMISSIONS[self.capability]


def require_permission(actor: Actor, permission: Permission) -> None:
    """Raise UnauthorizedError unless the actor's capability grants ``permission``."""
    if not actor.can(permission):
        raise UnauthorizedError(str(actor.actor_id), permission.value)

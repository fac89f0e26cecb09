"""
Authorization Guard

Pure decision function mapping (principal, action, resource owner) to
allow/deny. No I/O and no exceptions: callers decide how to surface a denial,
normally through enforce(), which raises AuthzError with the stable reason.

Rules (first match wins):
1. Admin principal -> allow every action not reserved to the resource owner.
2. Student principal acting on a resource they own -> allow owner actions.
3. Otherwise -> deny.
"""

import enum
from dataclasses import dataclass
from uuid import UUID

from admissions.core.exceptions import AuthzError


class Role(str, enum.Enum):
    """Principal roles."""

    STUDENT = "student"
    ADMIN = "admin"


class Action(str, enum.Enum):
    """Every operation gated by the guard."""

    # Owner-scoped
    CREATE_APPLICATION = "create_application"
    LIST_OWN_APPLICATIONS = "list_own_applications"
    READ_APPLICATION = "read_application"
    UPDATE_APPLICATION = "update_application"
    ATTACH_DOCUMENT = "attach_document"
    READ_DOCUMENT = "read_document"
    DELETE_DOCUMENT = "delete_document"
    READ_PROFILE = "read_profile"
    UPDATE_PROFILE = "update_profile"
    DELETE_PROFILE = "delete_profile"

    # Admin only
    LIST_ALL_APPLICATIONS = "list_all_applications"
    READ_STATISTICS = "read_statistics"
    SET_STATUS = "set_status"
    SET_EVALUATION = "set_evaluation"
    DELETE_APPLICATION = "delete_application"
    READ_AUDIT_LOG = "read_audit_log"


OWNER_ACTIONS: frozenset[Action] = frozenset(
    {
        Action.CREATE_APPLICATION,
        Action.LIST_OWN_APPLICATIONS,
        Action.READ_APPLICATION,
        Action.UPDATE_APPLICATION,
        Action.ATTACH_DOCUMENT,
        Action.READ_DOCUMENT,
        Action.DELETE_DOCUMENT,
        Action.READ_PROFILE,
        Action.UPDATE_PROFILE,
        Action.DELETE_PROFILE,
    }
)

# Only a student can own an application, so these are never granted to an admin
OWNER_RESERVED_ACTIONS: frozenset[Action] = frozenset(
    {
        Action.CREATE_APPLICATION,
        Action.LIST_OWN_APPLICATIONS,
    }
)

REASON_NOT_OWNER = "forbidden: not resource owner"
REASON_ADMIN_REQUIRED = "forbidden: admin required"


@dataclass(frozen=True)
class AuthContext:
    """
    Authenticated principal produced once per request by the identity provider.

    Attributes:
        id: User id
        role: Principal role
        email: Email claim (informational only)
    """

    id: UUID
    role: Role
    email: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass(frozen=True)
class Decision:
    """Outcome of an authorization check."""

    allowed: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(allowed=True)


def check(
    principal: AuthContext,
    action: Action,
    resource_owner_id: UUID | None = None,
) -> Decision:
    """
    Decide whether the principal may perform the action.

    Args:
        principal: The authenticated caller
        action: The action being attempted
        resource_owner_id: Owner of the target resource. For owner-scoped
            actions without an existing resource (create, list own) pass the
            principal's own id.

    Returns:
        Decision with allowed flag and, when denied, a stable reason string
    """
    if principal.is_admin and action not in OWNER_RESERVED_ACTIONS:
        return ALLOW

    if action not in OWNER_ACTIONS:
        return Decision(allowed=False, reason=REASON_ADMIN_REQUIRED)

    if (
        principal.role == Role.STUDENT
        and resource_owner_id is not None
        and principal.id == resource_owner_id
    ):
        return ALLOW

    return Decision(allowed=False, reason=REASON_NOT_OWNER)


def enforce(
    principal: AuthContext,
    action: Action,
    resource_owner_id: UUID | None = None,
) -> None:
    """Run check() and raise AuthzError on denial."""
    decision = check(principal, action, resource_owner_id)
    if not decision.allowed:
        raise AuthzError(decision.reason or REASON_NOT_OWNER)


__all__ = [
    "Role",
    "Action",
    "AuthContext",
    "Decision",
    "OWNER_ACTIONS",
    "OWNER_RESERVED_ACTIONS",
    "REASON_NOT_OWNER",
    "REASON_ADMIN_REQUIRED",
    "check",
    "enforce",
]

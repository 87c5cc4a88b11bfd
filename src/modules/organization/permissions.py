"""Role-based permission evaluation for organization actions."""

from enum import Enum

from src.api.core.exceptions.base import ForbiddenError
from src.core.context import CallerIdentity
from src.database.models import OrganizationRole
from src.modules.organization.models import OrganizationSnapshot


class Action(str, Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    MANAGE = "manage"


# Role-based action mappings using pure Python logic
ROLE_ACTIONS = {
    OrganizationRole.ADMIN: {
        # Admins may do everything
        Action.READ,
        Action.CREATE,
        Action.UPDATE,
        Action.DELETE,
        Action.MANAGE,
    },
    OrganizationRole.MEMBER: {
        Action.READ,
    },
}

# Allowed without an existing organization context
PUBLIC_ACTIONS = frozenset({Action.CREATE})


def get_actions_for_role(role: OrganizationRole | None) -> set[Action]:
    """Get all actions for a given role."""
    if role is None:
        return set()
    return ROLE_ACTIONS.get(role, set())


def resolve_role(
    organization: OrganizationSnapshot | None, caller: CallerIdentity
) -> OrganizationRole | None:
    """Return the caller's strongest role in the organization, if any."""
    if organization is None:
        return None
    if organization.is_admin(caller.id):
        return OrganizationRole.ADMIN
    if organization.is_member(caller.id):
        return OrganizationRole.MEMBER
    return None


def check_permission(
    action: Action,
    organization: OrganizationSnapshot | None,
    caller: CallerIdentity,
) -> bool:
    """Decide whether the caller may perform ``action`` on ``organization``.

    Admins may perform every action, members may only read, and anyone may
    create a new organization. Everything else is denied.
    """
    if action in get_actions_for_role(resolve_role(organization, caller)):
        return True
    return action in PUBLIC_ACTIONS


def ensure_permission(
    action: Action,
    organization: OrganizationSnapshot | None,
    caller: CallerIdentity,
) -> None:
    if not check_permission(action, organization, caller):
        raise ForbiddenError(
            details={
                "description": f"Caller is not allowed to {action.value} this organization",
                "action": action.value,
            }
        )

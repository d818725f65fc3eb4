"""
Role-based capabilities for CMS Pro.

Every account tier maps to the full set of things it may do. Gates check a
capability, never a role name, so adding a tier means filling in one entry
here. The table is checked for completeness when this module is imported.
"""
from enum import Enum
from typing import Dict, FrozenSet

from cmspro.core.exceptions import ForbiddenError
from cmspro.models.user import User, UserRole


class Capability(str, Enum):
    FILE_COMPLAINT = "file_complaint"
    VIEW_ALL_COMPLAINTS = "view_all_complaints"
    TRANSITION_COMPLAINT = "transition_complaint"
    DELETE_ANY_COMPLAINT = "delete_any_complaint"
    VIEW_STATS = "view_stats"
    LIST_ACCOUNTS = "list_accounts"
    TOGGLE_SYSTEM_MODE = "toggle_system_mode"
    BYPASS_OFFLINE_MODE = "bypass_offline_mode"


ROLE_CAPABILITIES: Dict[UserRole, FrozenSet[Capability]] = {
    UserRole.SUBMITTER: frozenset({
        Capability.FILE_COMPLAINT,
    }),
    UserRole.ADMINISTRATOR: frozenset({
        Capability.FILE_COMPLAINT,
        Capability.VIEW_ALL_COMPLAINTS,
        Capability.TRANSITION_COMPLAINT,
        Capability.DELETE_ANY_COMPLAINT,
        Capability.VIEW_STATS,
        Capability.LIST_ACCOUNTS,
        Capability.TOGGLE_SYSTEM_MODE,
        Capability.BYPASS_OFFLINE_MODE,
    }),
}

_missing = [role.value for role in UserRole if role not in ROLE_CAPABILITIES]
if _missing:
    raise RuntimeError(f"ROLE_CAPABILITIES has no entry for role(s): {', '.join(_missing)}")


def has_capability(user: User, capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES[UserRole(user.role)]


def ensure_capability(user: User, capability: Capability) -> None:
    """Raise ForbiddenError unless the user's role grants the capability"""
    if not has_capability(user, capability):
        raise ForbiddenError(f"User role {UserRole(user.role).value} is not authorized to access this route")

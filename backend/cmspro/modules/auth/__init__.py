# Authentication module

from cmspro.modules.auth.dependencies import (
    get_current_user,
    get_current_admin,
    require_roles,
)

from cmspro.modules.auth.permissions import (
    Capability,
    ROLE_CAPABILITIES,
    has_capability,
    ensure_capability,
)

__all__ = [
    # User authentication
    "get_current_user",
    "get_current_admin",
    "require_roles",
    # Capabilities
    "Capability",
    "ROLE_CAPABILITIES",
    "has_capability",
    "ensure_capability",
]

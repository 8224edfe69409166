"""Access policy package."""

from ledgerbook.access.policy import (
    allowed_actions,
    can_manage_roles,
    can_mutate,
    can_view,
    require_permission,
)

__all__ = [
    "allowed_actions",
    "can_manage_roles",
    "can_mutate",
    "can_view",
    "require_permission",
]

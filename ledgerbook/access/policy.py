"""
Access Policy

The single source of truth for who may mutate records:

    Role      create  update  delete
    admin       yes     yes     yes
    manager     yes     no      no
    none        no      no      no

Reading is always allowed. Every record category consults this module;
pages must not re-derive their own rules.
"""

from typing import Optional, Union

from ledgerbook.errors import AuthorizationDenied
from ledgerbook.models.identity import Action, Role, Session


RoleLike = Union[Role, str, None]


def can_mutate(role: RoleLike, action: Union[Action, str]) -> bool:
    """Whether `role` may perform `action` on any record category."""
    role = Role.parse(role)
    action = Action(action)

    if role == Role.ADMIN:
        return True
    elif role == Role.MANAGER:
        return action == Action.CREATE
    elif role == Role.NONE:
        return False
    raise ValueError(f"Unhandled role: {role!r}")


def allowed_actions(role: RoleLike) -> frozenset[Action]:
    """The actions a role may perform; used to decide which controls to draw."""
    return frozenset(action for action in Action if can_mutate(role, action))


def can_view(role: RoleLike) -> bool:
    """Reading is always permitted, with or without a role."""
    Role.parse(role)
    return True


def can_manage_roles(role: RoleLike) -> bool:
    """Only admins may assign or remove roles."""
    return Role.parse(role) == Role.ADMIN


def require_permission(
    session: Session,
    action: Union[Action, str],
    category: Optional[str] = None,
) -> None:
    """
    Enforce the policy for a mutation.

    Raises:
        AuthorizationDenied: If the session's role does not allow the action
    """
    action = Action(action)
    if not can_mutate(session.role, action):
        raise AuthorizationDenied(session.role, action, category)

"""
User Directory

Admin-only role assignment and self-service profile editing.
"""

from typing import Optional, Union
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from ledgerbook.access import can_manage_roles
from ledgerbook.activity import ActivityLogger
from ledgerbook.errors import AuthorizationDenied, ValidationError
from ledgerbook.models.identity import Action, Role, Session, UserProfile
from ledgerbook.services.storage import IdentityInterface
from ledgerbook.validation import issues_from_pydantic


class UserDirectory:
    """Lists users with their roles and changes roles and profiles."""

    def __init__(
        self,
        identity: IdentityInterface,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._identity = identity
        self._activity = activity_logger or ActivityLogger()

    def _require_admin(self, session: Session, action: Action) -> None:
        if not can_manage_roles(session.role):
            self._activity.log_authorization_denied(
                category="user_roles",
                action=action.value,
                role=session.role.value,
                user_id=session.user_id,
            )
            raise AuthorizationDenied(session.role, action, "user_roles")

    async def list_users(self, session: Session) -> list[UserProfile]:
        """
        All profiles joined with their role.

        Raises:
            AuthorizationDenied: If the session is not an admin
            PersistenceError: If the backend call fails
        """
        self._require_admin(session, Action.UPDATE)

        profiles = await self._identity.list_profiles()
        roles = {
            assignment.user_id: assignment.role
            for assignment in await self._identity.list_role_assignments()
        }
        return [
            profile.model_copy(update={"role": roles.get(profile.id, Role.NONE)})
            for profile in profiles
        ]

    async def assign_role(
        self,
        session: Session,
        user_id: UUID,
        role: Union[Role, str, None],
    ) -> Role:
        """
        Give a user a role, replacing any previous one.

        Role.NONE (or None) removes the user's role.
        """
        role = Role.parse(role)
        action = Action.DELETE if role == Role.NONE else Action.UPDATE
        self._require_admin(session, action)

        await self._identity.set_role(user_id, role)
        self._activity.log_role_assigned(user_id, role.value, session.user_id)
        return role

    async def update_profile(
        self,
        session: Session,
        name: Optional[str],
        username: Optional[str],
    ) -> UserProfile:
        """
        Edit the signed-in user's own name and username.

        Raises:
            AuthorizationDenied: If nobody is signed in
            ValidationError: If a field is too long
        """
        if not session.is_authenticated:
            raise AuthorizationDenied(session.role, Action.UPDATE, "profiles")

        try:
            checked = UserProfile(
                id=session.user.id,
                email=session.user.email,
                name=name or None,
                username=username or None,
            )
        except PydanticValidationError as e:
            raise ValidationError("profiles", issues_from_pydantic(e))

        profile = await self._identity.update_profile(
            session.user.id, checked.name, checked.username
        )
        self._activity.log_profile_updated(session.user.id)
        return profile

"""
Identity Models for Ledgerbook

Roles, actions, users and the immutable Session value that is passed
explicitly to every operation that needs to know who is acting.
"""

from enum import Enum
from typing import Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    """
    Authorization level of a user.

    NONE means no role has been assigned: read-only access.
    """
    NONE = "none"
    MANAGER = "manager"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: Union["Role", str, None]) -> "Role":
        """
        Normalize a stored role value.

        None and empty strings mean no role. Unknown strings are rejected
        rather than silently downgraded.
        """
        if isinstance(value, Role):
            return value
        if value is None or value == "":
            return cls.NONE
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown role: {value!r}")


class Action(str, Enum):
    """Mutations gated by the access policy. Reading is always allowed."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class UserIdentity(BaseModel):
    """The signed-in user as reported by the identity collaborator."""
    model_config = ConfigDict(frozen=True)

    id: UUID
    email: str = Field(..., min_length=3, max_length=320)


class UserProfile(BaseModel):
    """Profile row joined with the user's role (user management page)."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID
    email: str
    name: Optional[str] = Field(default=None, max_length=100)
    username: Optional[str] = Field(default=None, max_length=50)
    role: Role = Role.NONE


class SignUpForm(BaseModel):
    """Registration input. New accounts start without a role."""
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(
        ...,
        max_length=320,
        pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
        description="Login email"
    )
    password: str = Field(..., min_length=6, max_length=128)
    name: Optional[str] = Field(default=None, max_length=100)
    username: Optional[str] = Field(default=None, max_length=50)


class UserRoleAssignment(BaseModel):
    """At most one of these exists per user."""

    user_id: UUID
    role: Role


class Session(BaseModel):
    """
    Who is acting, and with what role.

    CRITICAL: Sessions are immutable. A refreshed session is a new value;
    components receive it as an argument and never read ambient state.
    """
    model_config = ConfigDict(frozen=True)

    user: Optional[UserIdentity] = None
    role: Role = Role.NONE

    @classmethod
    def anonymous(cls) -> "Session":
        return cls()

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def user_id(self) -> Optional[UUID]:
        return self.user.id if self.user else None

"""
Abstract Storage Interface

Persistence is an external collaborator: a generic row store addressed
by table name, plus an identity store for users, roles and profiles.
Concrete backends (in-memory, Google Sheets) implement these methods;
business logic only ever sees the interface.

Rows cross this boundary as plain dicts. Workflows validate them into
record models on the way in and dump models to dicts on the way out.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Optional
from uuid import UUID

from ledgerbook.models.identity import (
    Role,
    UserIdentity,
    UserProfile,
    UserRoleAssignment,
)


Row = dict[str, Any]


class RecordStorageInterface(ABC):
    """
    Abstract interface for record tables.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    async def list_records(
        self,
        table: str,
        date_field: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        status: Optional[str] = None,
    ) -> list[Row]:
        """
        List rows with optional filters.

        Args:
            table: Backend table name (e.g. 'in', 'stock')
            date_field: Column the date bounds apply to
            date_from: Keep rows with date_field >= this (gte)
            date_to: Keep rows with date_field <= this (lte)
            status: Keep rows whose 'status' equals this

        Returns:
            Matching rows, newest first by date_field when given

        Raises:
            PersistenceError: If the backend call fails
        """
        pass

    @abstractmethod
    async def get_record(self, table: str, record_id: UUID) -> Optional[Row]:
        """
        Retrieve a row by its ID.

        Returns:
            The row if found, None otherwise
        """
        pass

    @abstractmethod
    async def insert_record(self, table: str, row: Row) -> Row:
        """
        Insert a row. The row must carry its own 'id'.

        Returns:
            The stored row

        Raises:
            PersistenceError: If the insert fails
        """
        pass

    @abstractmethod
    async def update_record(self, table: str, record_id: UUID, patch: Row) -> Row:
        """
        Apply a partial update to a row.

        Returns:
            The updated row

        Raises:
            NotFoundError: If the row doesn't exist
            PersistenceError: If the update fails
        """
        pass

    @abstractmethod
    async def delete_record(self, table: str, record_id: UUID) -> bool:
        """
        Delete a row by ID.

        Returns:
            True if a row was deleted, False if none matched
        """
        pass


class IdentityInterface(ABC):
    """
    Abstract interface for the identity collaborator.

    Role assignments are kept at most one per user.
    """

    @abstractmethod
    async def sign_up(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        username: Optional[str] = None,
    ) -> UserIdentity:
        """
        Register an account with a profile and no role, and sign it in.

        Raises:
            AuthenticationError: If the email is already registered
        """
        pass

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> UserIdentity:
        """
        Check credentials and make the account the signed-in user.

        Raises:
            AuthenticationError: If the email or password is wrong
        """
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        """Forget the signed-in user. Signing out twice is not an error."""
        pass

    @abstractmethod
    async def current_user(self) -> Optional[UserIdentity]:
        """The signed-in user, or None."""
        pass

    @abstractmethod
    async def role_of(self, user_id: UUID) -> Role:
        """The user's role, Role.NONE when none is assigned."""
        pass

    @abstractmethod
    async def list_profiles(self) -> list[UserProfile]:
        """All user profiles ordered by email (role fields unset)."""
        pass

    @abstractmethod
    async def list_role_assignments(self) -> list[UserRoleAssignment]:
        """All role assignments."""
        pass

    @abstractmethod
    async def set_role(self, user_id: UUID, role: Role) -> None:
        """
        Assign a role, replacing any existing one.

        Role.NONE removes the assignment.
        """
        pass

    @abstractmethod
    async def update_profile(
        self,
        user_id: UUID,
        name: Optional[str],
        username: Optional[str],
    ) -> UserProfile:
        """
        Update a user's own profile fields.

        Raises:
            NotFoundError: If the profile doesn't exist
        """
        pass


class PersistenceError(Exception):
    """Base exception for backend calls."""
    pass


class NotFoundError(PersistenceError):
    """Entity not found in storage."""
    pass


class StorageConnectionError(PersistenceError):
    """Could not connect to storage backend."""
    pass

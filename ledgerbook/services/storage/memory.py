"""
In-Memory Storage Implementation

Used by the test suite and for running the app without a backend.
Supports failure injection so error paths can be exercised without
mocking a network client.
"""

import copy
from typing import Iterable, Optional
from uuid import UUID, uuid4

from ledgerbook.errors import AuthenticationError
from ledgerbook.models.identity import (
    Role,
    UserIdentity,
    UserProfile,
    UserRoleAssignment,
)
from ledgerbook.services.passwords import DEFAULT_ROUNDS, hash_password, verify_password
from ledgerbook.services.storage.filters import filter_rows
from ledgerbook.services.storage.interface import (
    IdentityInterface,
    NotFoundError,
    PersistenceError,
    RecordStorageInterface,
    Row,
)


class InMemoryRecordStorage(RecordStorageInterface):
    """
    Dict-of-tables record store.

    fail_on holds (operation, table) pairs, e.g. {("insert", "out")};
    matching calls raise PersistenceError. Operations are
    'list', 'get', 'insert', 'update', 'delete'.
    """

    def __init__(self, fail_on: Optional[Iterable[tuple[str, str]]] = None):
        self._tables: dict[str, dict[str, Row]] = {}
        self.fail_on: set[tuple[str, str]] = set(fail_on or ())

    def _check(self, operation: str, table: str) -> None:
        if (operation, table) in self.fail_on:
            raise PersistenceError(f"{operation} on '{table}' failed")

    def _table(self, table: str) -> dict[str, Row]:
        return self._tables.setdefault(table, {})

    def rows(self, table: str) -> list[Row]:
        """Raw rows of a table in insertion order (test helper)."""
        return [copy.deepcopy(row) for row in self._table(table).values()]

    async def list_records(
        self,
        table: str,
        date_field=None,
        date_from=None,
        date_to=None,
        status=None,
    ) -> list[Row]:
        self._check("list", table)
        rows = filter_rows(
            self._table(table).values(),
            date_field=date_field,
            date_from=date_from,
            date_to=date_to,
            status=status,
        )
        return [copy.deepcopy(row) for row in rows]

    async def get_record(self, table: str, record_id: UUID) -> Optional[Row]:
        self._check("get", table)
        row = self._table(table).get(str(record_id))
        return copy.deepcopy(row) if row is not None else None

    async def insert_record(self, table: str, row: Row) -> Row:
        self._check("insert", table)
        if "id" not in row:
            raise PersistenceError(f"Row for '{table}' has no id")
        key = str(row["id"])
        if key in self._table(table):
            raise PersistenceError(f"Duplicate id {key} in '{table}'")
        self._table(table)[key] = copy.deepcopy(row)
        return copy.deepcopy(row)

    async def update_record(self, table: str, record_id: UUID, patch: Row) -> Row:
        self._check("update", table)
        key = str(record_id)
        if key not in self._table(table):
            raise NotFoundError(f"Record not found in '{table}': {record_id}")
        current = self._table(table)[key]
        updated = {**current, **copy.deepcopy(patch), "id": current["id"]}
        self._table(table)[key] = updated
        return copy.deepcopy(updated)

    async def delete_record(self, table: str, record_id: UUID) -> bool:
        self._check("delete", table)
        return self._table(table).pop(str(record_id), None) is not None


class InMemoryIdentityStore(IdentityInterface):
    """Users, profiles and role assignments held in dicts."""

    def __init__(
        self,
        signed_in: Optional[UserIdentity] = None,
        fail_on: Optional[Iterable[str]] = None,
        password_rounds: int = DEFAULT_ROUNDS,
    ):
        self.signed_in = signed_in
        self.fail_on: set[str] = set(fail_on or ())
        self._password_rounds = password_rounds
        self._profiles: dict[UUID, UserProfile] = {}
        self._roles: dict[UUID, Role] = {}
        # email (lower-cased) -> (user, password hash)
        self._accounts: dict[str, tuple[UserIdentity, str]] = {}

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise PersistenceError(f"identity {operation} failed")

    def add_user(
        self,
        user: UserIdentity,
        role: Role = Role.NONE,
        name: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> None:
        """Register a user directly (test helper). Without a password the user cannot sign in."""
        self._profiles[user.id] = UserProfile(
            id=user.id, email=user.email, name=name, username=username
        )
        if password is not None:
            self._accounts[user.email.lower()] = (
                user, hash_password(password, self._password_rounds)
            )
        if role != Role.NONE:
            self._roles[user.id] = role

    async def sign_up(self, email, password, name=None, username=None) -> UserIdentity:
        self._check("sign_up")
        key = email.strip().lower()
        if key in self._accounts:
            raise AuthenticationError("An account with this email already exists")

        user = UserIdentity(id=uuid4(), email=email.strip())
        self._accounts[key] = (user, hash_password(password, self._password_rounds))
        self._profiles[user.id] = UserProfile(
            id=user.id, email=user.email, name=name, username=username
        )
        self.signed_in = user
        return user

    async def sign_in(self, email: str, password: str) -> UserIdentity:
        self._check("sign_in")
        account = self._accounts.get(email.strip().lower())
        if account is None or not verify_password(password, account[1]):
            raise AuthenticationError("Invalid email or password")
        self.signed_in = account[0]
        return account[0]

    async def sign_out(self) -> None:
        self._check("sign_out")
        self.signed_in = None

    async def current_user(self) -> Optional[UserIdentity]:
        self._check("current_user")
        return self.signed_in

    async def role_of(self, user_id: UUID) -> Role:
        self._check("role_of")
        return self._roles.get(user_id, Role.NONE)

    async def list_profiles(self) -> list[UserProfile]:
        self._check("list_profiles")
        return sorted(
            (profile.model_copy() for profile in self._profiles.values()),
            key=lambda p: p.email,
        )

    async def list_role_assignments(self) -> list[UserRoleAssignment]:
        self._check("list_role_assignments")
        return [
            UserRoleAssignment(user_id=user_id, role=role)
            for user_id, role in self._roles.items()
        ]

    async def set_role(self, user_id: UUID, role: Role) -> None:
        self._check("set_role")
        if role == Role.NONE:
            self._roles.pop(user_id, None)
        else:
            self._roles[user_id] = role

    async def update_profile(self, user_id, name, username) -> UserProfile:
        self._check("update_profile")
        if user_id not in self._profiles:
            raise NotFoundError(f"Profile not found: {user_id}")
        updated = self._profiles[user_id].model_copy(
            update={"name": name, "username": username}
        )
        self._profiles[user_id] = updated
        return updated.model_copy()

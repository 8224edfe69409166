"""
Google Sheets Storage Implementation

Each backend table ('in', 'out', 'to_give', 'debt', 'stock',
'user_roles', 'profiles', 'accounts') is one worksheet with a header row.

TRADEOFFS:
- Not suitable for high-volume data (fine for a single shop or household)
- No transactions (the stock purchase dual-write is best effort anyway)
- Limited query capabilities (we filter in Python)

Only connection setup is retried. Reads and writes are attempted once;
a failure surfaces to the caller as PersistenceError.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from ledgerbook.config import get_settings
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
    StorageConnectionError,
)


# Column layout per worksheet
TABLE_COLUMNS = {
    "in": ["id", "amount", "reason", "date", "created_by", "created_at"],
    "out": ["id", "amount", "reason", "date", "created_by", "created_at"],
    "to_give": ["id", "person_name", "amount", "date", "status", "created_by", "created_at"],
    "debt": ["id", "person_name", "amount", "date", "status", "created_by", "created_at"],
    "stock": [
        "id",
        "item_name",
        "description",
        "quantity",
        "purchase_price",
        "purchase_date",
        "status",
        "created_by",
        "created_at",
    ],
    "user_roles": ["user_id", "role"],
    "profiles": ["id", "email", "name", "username"],
    "accounts": ["user_id", "email", "password_hash"],
}


def to_cell(value: Any) -> str:
    """Serialize a Python value to a sheet cell."""
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    return str(value)


def row_to_cells(table: str, row: Row) -> list[str]:
    return [to_cell(row.get(column)) for column in TABLE_COLUMNS[table]]


def cells_to_row(table: str, cells: list[str]) -> Row:
    """
    Convert sheet cells back to a dict.

    Values stay strings; empty cells become None. Record models coerce
    the strings when rows are validated.
    """
    row = {}
    for index, column in enumerate(TABLE_COLUMNS[table]):
        try:
            value = cells[index]
        except IndexError:
            value = ""
        row[column] = value if value != "" else None
    return row


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and worksheet creation.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise StorageConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StorageConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise StorageConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_table_sheet(self, table: str) -> gspread.Worksheet:
        """Get or create the worksheet backing a table."""
        title = self._settings.sheet_name_for(table)
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            columns = TABLE_COLUMNS[table]
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet


class GoogleSheetsRecordStorage(RecordStorageInterface):
    """
    Google Sheets implementation of the record tables.

    One record per row; the first column is always the record ID.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _all_rows(self, table: str) -> list[list[str]]:
        sheet = self._client.get_table_sheet(table)
        return sheet.get_all_values()

    def _find_index(self, all_rows: list[list[str]], record_id: UUID) -> Optional[int]:
        """1-based sheet row index of a record (row 1 is the header)."""
        for idx, cells in enumerate(all_rows[1:], start=2):
            if cells and cells[0] == str(record_id):
                return idx
        return None

    async def list_records(
        self,
        table: str,
        date_field=None,
        date_from=None,
        date_to=None,
        status=None,
    ) -> list[Row]:
        try:
            rows = [
                cells_to_row(table, cells)
                for cells in self._all_rows(table)[1:]
                if cells and cells[0]
            ]
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to list '{table}': {e}")

        return filter_rows(
            rows,
            date_field=date_field,
            date_from=date_from,
            date_to=date_to,
            status=status,
        )

    async def get_record(self, table: str, record_id: UUID) -> Optional[Row]:
        try:
            all_rows = self._all_rows(table)
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to get record from '{table}': {e}")

        idx = self._find_index(all_rows, record_id)
        if idx is None:
            return None
        return cells_to_row(table, all_rows[idx - 1])

    async def insert_record(self, table: str, row: Row) -> Row:
        try:
            sheet = self._client.get_table_sheet(table)
            sheet.append_row(row_to_cells(table, row), value_input_option="RAW")
            return row
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to insert into '{table}': {e}")

    async def update_record(self, table: str, record_id: UUID, patch: Row) -> Row:
        try:
            sheet = self._client.get_table_sheet(table)
            all_rows = sheet.get_all_values()

            idx = self._find_index(all_rows, record_id)
            if idx is None:
                raise NotFoundError(f"Record not found in '{table}': {record_id}")

            current = cells_to_row(table, all_rows[idx - 1])
            updated = {**current, **patch, "id": current["id"]}
            sheet.update(
                range_name=f"A{idx}",
                values=[row_to_cells(table, updated)],
                value_input_option="RAW",
            )
            return updated
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to update '{table}': {e}")

    async def delete_record(self, table: str, record_id: UUID) -> bool:
        try:
            sheet = self._client.get_table_sheet(table)
            idx = self._find_index(sheet.get_all_values(), record_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to delete from '{table}': {e}")


class GoogleSheetsIdentityStore(IdentityInterface):
    """
    Accounts, roles and profiles kept in the 'accounts', 'user_roles' and
    'profiles' worksheets.

    The signed-in user is whoever last signed in through this store;
    before that, a single-operator deployment may name one in
    IdentitySettings.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        password_rounds: int = DEFAULT_ROUNDS,
    ):
        self._client = client or GoogleSheetsClient()
        self._identity = get_settings().identity
        self._password_rounds = password_rounds
        self.signed_in: Optional[UserIdentity] = None
        self._signed_out = False

    def _find_account(self, email: str) -> Optional[Row]:
        key = email.strip().lower()
        for row in self._rows("accounts"):
            if (row["email"] or "").lower() == key:
                return row
        return None

    async def sign_up(self, email, password, name=None, username=None) -> UserIdentity:
        if self._find_account(email) is not None:
            raise AuthenticationError("An account with this email already exists")

        user = UserIdentity(id=uuid4(), email=email.strip())
        try:
            self._client.get_table_sheet("accounts").append_row(
                [str(user.id), user.email, hash_password(password, self._password_rounds)],
                value_input_option="RAW",
            )
            self._client.get_table_sheet("profiles").append_row(
                row_to_cells("profiles", {
                    "id": user.id,
                    "email": user.email,
                    "name": name,
                    "username": username,
                }),
                value_input_option="RAW",
            )
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to register account: {e}")

        self.signed_in = user
        self._signed_out = False
        return user

    async def sign_in(self, email: str, password: str) -> UserIdentity:
        account = self._find_account(email)
        if account is None or not verify_password(password, account["password_hash"] or ""):
            raise AuthenticationError("Invalid email or password")

        user = UserIdentity(id=UUID(account["user_id"]), email=account["email"])
        self.signed_in = user
        self._signed_out = False
        return user

    async def sign_out(self) -> None:
        self.signed_in = None
        self._signed_out = True

    def _rows(self, table: str) -> list[Row]:
        try:
            sheet = self._client.get_table_sheet(table)
            return [
                cells_to_row(table, cells)
                for cells in sheet.get_all_values()[1:]
                if cells and cells[0]
            ]
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to read '{table}': {e}")

    async def current_user(self) -> Optional[UserIdentity]:
        if self.signed_in is not None:
            return self.signed_in
        if self._signed_out or not self._identity.id or not self._identity.email:
            return None
        return UserIdentity(id=UUID(self._identity.id), email=self._identity.email)

    async def role_of(self, user_id: UUID) -> Role:
        for row in self._rows("user_roles"):
            if row["user_id"] == str(user_id):
                return Role.parse(row["role"])
        return Role.NONE

    async def list_profiles(self) -> list[UserProfile]:
        profiles = [UserProfile.model_validate(row) for row in self._rows("profiles")]
        profiles.sort(key=lambda p: p.email)
        return profiles

    async def list_role_assignments(self) -> list[UserRoleAssignment]:
        return [
            UserRoleAssignment(user_id=row["user_id"], role=Role.parse(row["role"]))
            for row in self._rows("user_roles")
        ]

    async def set_role(self, user_id: UUID, role: Role) -> None:
        try:
            sheet = self._client.get_table_sheet("user_roles")
            all_rows = sheet.get_all_values()
            existing = None
            for idx, cells in enumerate(all_rows[1:], start=2):
                if cells and cells[0] == str(user_id):
                    existing = idx
                    break

            if role == Role.NONE:
                if existing is not None:
                    sheet.delete_rows(existing)
            elif existing is not None:
                sheet.update(
                    range_name=f"A{existing}",
                    values=[[str(user_id), role.value]],
                    value_input_option="RAW",
                )
            else:
                sheet.append_row([str(user_id), role.value], value_input_option="RAW")
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to set role: {e}")

    async def update_profile(self, user_id, name, username) -> UserProfile:
        try:
            sheet = self._client.get_table_sheet("profiles")
            all_rows = sheet.get_all_values()
            for idx, cells in enumerate(all_rows[1:], start=2):
                if cells and cells[0] == str(user_id):
                    current = cells_to_row("profiles", cells)
                    updated = {**current, "name": name, "username": username}
                    sheet.update(
                        range_name=f"A{idx}",
                        values=[row_to_cells("profiles", updated)],
                        value_input_option="RAW",
                    )
                    return UserProfile.model_validate(updated)
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to update profile: {e}")

        raise NotFoundError(f"Profile not found: {user_id}")

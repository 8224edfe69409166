"""
Tests for the Google Sheets backend.

The gspread worksheet is replaced with an in-process fake, so these
tests never touch the network.
"""

import asyncio
import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from ledgerbook.errors import AuthenticationError
from ledgerbook.models import DebtStatus, ExpenseRecord, Role, StockItem
from ledgerbook.services.storage import NotFoundError, PersistenceError
from ledgerbook.services.storage.google_sheets import (
    TABLE_COLUMNS,
    GoogleSheetsIdentityStore,
    GoogleSheetsRecordStorage,
    cells_to_row,
    row_to_cells,
    to_cell,
)
from ledgerbook.workflows import to_row


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the storage classes."""

    def __init__(self, header):
        self.values = [list(header)]

    def get_all_values(self):
        return [list(row) for row in self.values]

    def append_row(self, values, value_input_option=None):
        self.values.append([str(v) for v in values])

    def update(self, range_name, values, value_input_option=None):
        index = int(range_name[1:]) - 1
        self.values[index] = [str(v) for v in values[0]]

    def delete_rows(self, index):
        del self.values[index - 1]


class FakeClient:
    def __init__(self, broken=False):
        self.broken = broken
        self.sheets = {table: FakeWorksheet(columns) for table, columns in TABLE_COLUMNS.items()}

    def get_table_sheet(self, table):
        if self.broken:
            raise RuntimeError("quota exceeded")
        return self.sheets[table]


class TestCellCodec:
    """Tests for converting values to and from sheet cells."""

    def test_to_cell(self):
        """Test cell serialization."""
        assert to_cell(None) == ""
        assert to_cell(Decimal("12.50")) == "12.50"
        assert to_cell(date(2024, 1, 10)) == "2024-01-10"
        assert to_cell(DebtStatus.NOT_RETURNED) == "Not Returned"

    def test_row_follows_column_order(self):
        """Test that cells are laid out by the table's columns."""
        cells = row_to_cells("in", {"reason": "Sale", "amount": "10", "id": "abc"})
        assert cells[:3] == ["abc", "10", "Sale"]
        assert len(cells) == len(TABLE_COLUMNS["in"])

    def test_empty_cells_become_none(self):
        """Test blank and missing trailing cells."""
        row = cells_to_row("stock", ["id1", "Rice", "", "3"])
        assert row["description"] is None
        assert row["quantity"] == "3"
        assert row["status"] is None

    def test_stock_row_validates_back(self):
        """Test a stored stock row parses into a StockItem."""
        item = StockItem(
            item_name="Rice",
            quantity=3,
            purchase_price=Decimal("1000"),
            purchase_date=date(2024, 1, 5),
        )
        row = cells_to_row("stock", row_to_cells("stock", to_row(item)))
        assert StockItem.model_validate(row) == item


class TestGoogleSheetsRecordStorage:
    """Tests for record CRUD against a fake worksheet."""

    def expense(self, day, amount="300"):
        return ExpenseRecord(amount=amount, reason="Rent", date=day)

    def test_insert_and_list_with_bounds(self):
        """Test date filtering is applied to sheet rows."""
        storage = GoogleSheetsRecordStorage(FakeClient())

        async def scenario():
            await storage.insert_record("out", to_row(self.expense(date(2024, 1, 15))))
            await storage.insert_record("out", to_row(self.expense(date(2024, 2, 1))))
            return await storage.list_records(
                "out",
                date_field="date",
                date_from=date(2024, 1, 1),
                date_to=date(2024, 1, 31),
            )

        rows = asyncio.run(scenario())
        assert [row["date"] for row in rows] == ["2024-01-15"]
        assert rows[0]["amount"] == "300"

    def test_get_update_delete(self):
        """Test a record's lifecycle."""
        storage = GoogleSheetsRecordStorage(FakeClient())
        record = self.expense(date(2024, 1, 15))

        async def scenario():
            await storage.insert_record("out", to_row(record))
            updated = await storage.update_record("out", record.id, {"amount": "450"})
            fetched = await storage.get_record("out", record.id)
            deleted = await storage.delete_record("out", record.id)
            missing = await storage.get_record("out", record.id)
            return updated, fetched, deleted, missing

        updated, fetched, deleted, missing = asyncio.run(scenario())
        assert updated["amount"] == "450"
        assert fetched["reason"] == "Rent"
        assert fetched["id"] == str(record.id)
        assert deleted is True
        assert missing is None

    def test_update_missing_record(self):
        """Test NotFoundError for unknown ids."""
        storage = GoogleSheetsRecordStorage(FakeClient())
        with pytest.raises(NotFoundError):
            asyncio.run(storage.update_record("out", uuid4(), {"amount": "1"}))

    def test_client_errors_become_persistence_errors(self):
        """Test that gspread failures surface as PersistenceError."""
        storage = GoogleSheetsRecordStorage(FakeClient(broken=True))
        with pytest.raises(PersistenceError):
            asyncio.run(storage.list_records("in"))
        with pytest.raises(PersistenceError):
            asyncio.run(storage.insert_record("in", {"id": "x"}))


class TestGoogleSheetsIdentityStore:
    """Tests for roles and profiles in worksheets."""

    def test_set_replace_and_remove_role(self):
        """Test at most one role row per user."""
        client = FakeClient()
        store = GoogleSheetsIdentityStore(client)
        user_id = uuid4()

        async def scenario():
            await store.set_role(user_id, Role.MANAGER)
            await store.set_role(user_id, Role.ADMIN)
            role = await store.role_of(user_id)
            await store.set_role(user_id, Role.NONE)
            return role, await store.role_of(user_id)

        granted, removed = asyncio.run(scenario())
        assert granted == Role.ADMIN
        assert removed == Role.NONE
        assert client.sheets["user_roles"].values == [["user_id", "role"]]

    def test_update_profile(self):
        """Test profile edits are written back."""
        client = FakeClient()
        user_id = uuid4()
        client.sheets["profiles"].append_row([str(user_id), "a@example.com", "", ""])
        store = GoogleSheetsIdentityStore(client)

        profile = asyncio.run(store.update_profile(user_id, "Ayesha", "ayesha"))
        assert profile.name == "Ayesha"
        assert client.sheets["profiles"].values[1] == [str(user_id), "a@example.com", "Ayesha", "ayesha"]

    def test_update_unknown_profile(self):
        """Test NotFoundError for a missing profile row."""
        store = GoogleSheetsIdentityStore(FakeClient())
        with pytest.raises(NotFoundError):
            asyncio.run(store.update_profile(uuid4(), "Name", None))

    def test_sign_up_sign_in_sign_out(self):
        """Test accounts are stored hashed and survive a sign out."""
        client = FakeClient()
        store = GoogleSheetsIdentityStore(client, password_rounds=4)

        async def scenario():
            created = await store.sign_up("a@example.com", "secret123", "Ayesha", None)
            role = await store.role_of(created.id)
            await store.sign_out()
            after_sign_out = await store.current_user()
            signed_in = await store.sign_in("A@example.com", "secret123")
            return created, role, after_sign_out, signed_in, await store.current_user()

        created, role, after_sign_out, signed_in, current = asyncio.run(scenario())

        assert role == Role.NONE
        assert after_sign_out is None
        assert signed_in == created
        assert current == created

        account = client.sheets["accounts"].values[1]
        assert account[:2] == [str(created.id), "a@example.com"]
        assert account[2] and account[2] != "secret123"
        assert client.sheets["profiles"].values[1] == [str(created.id), "a@example.com", "Ayesha", ""]

    def test_bad_credentials_and_duplicates(self):
        """Test wrong passwords and re-registration are refused."""
        store = GoogleSheetsIdentityStore(FakeClient(), password_rounds=4)
        asyncio.run(store.sign_up("a@example.com", "secret123"))

        with pytest.raises(AuthenticationError):
            asyncio.run(store.sign_in("a@example.com", "wrong-password"))
        with pytest.raises(AuthenticationError):
            asyncio.run(store.sign_up("a@example.com", "secret456"))

    def test_sign_up_backend_failure(self):
        """Test sheet errors during registration become persistence errors."""
        store = GoogleSheetsIdentityStore(FakeClient(broken=True), password_rounds=4)
        with pytest.raises(PersistenceError):
            asyncio.run(store.sign_up("a@example.com", "secret123"))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

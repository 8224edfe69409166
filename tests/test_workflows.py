"""
Tests for the record workflows and the stock purchase dual write.

All tests run against in-memory storage; backend failures are injected
with fail_on.
"""

import asyncio
import pytest
from decimal import Decimal
from uuid import uuid4

from ledgerbook.config import AppSettings
from ledgerbook.errors import (
    AuthorizationDenied,
    PartialWriteWarning,
    UnsupportedOperation,
    ValidationError,
)
from ledgerbook.models import Period, RecordCategory, Role, Session, UserIdentity
from ledgerbook.orchestrator import LedgerComponents, create_app_components
from ledgerbook.services.storage import (
    InMemoryIdentityStore,
    InMemoryRecordStorage,
    NotFoundError,
    PersistenceError,
)
from ledgerbook.workflows import PurchaseState, StockPurchaseWorkflow


def build(fail_on=None):
    storage = InMemoryRecordStorage(fail_on=fail_on)
    components = LedgerComponents(storage, InMemoryIdentityStore(), settings=AppSettings())
    return storage, components


def session_for(role: Role) -> Session:
    return Session(user=UserIdentity(id=uuid4(), email="user@example.com"), role=role)


INCOME = {"amount": "1000", "reason": "Sale", "date": "2024-01-10"}
RICE = {
    "item_name": "Rice",
    "quantity": 3,
    "purchase_price": "1000",
    "purchase_date": "2024-01-05",
}


class TestRecordWorkflow:
    """Tests for create, update, delete and list."""

    def test_manager_creates_record(self):
        """Test a permitted create stores the row with its creator."""
        storage, components = build()
        session = session_for(Role.MANAGER)
        workflow = components.workflow(RecordCategory.INCOME)

        record = asyncio.run(workflow.create(session, INCOME))

        rows = storage.rows("in")
        assert len(rows) == 1
        assert rows[0]["id"] == str(record.id)
        assert rows[0]["created_by"] == str(session.user_id)
        assert record.amount == Decimal("1000")

    def test_no_role_cannot_create(self):
        """Test that a read-only user writes nothing."""
        storage, components = build()
        workflow = components.workflow(RecordCategory.INCOME)

        with pytest.raises(AuthorizationDenied):
            asyncio.run(workflow.create(session_for(Role.NONE), INCOME))
        assert storage.rows("in") == []

    def test_authorization_checked_before_validation(self):
        """Test that invalid data from a read-only user is denied, not validated."""
        _, components = build()
        workflow = components.workflow(RecordCategory.INCOME)

        with pytest.raises(AuthorizationDenied):
            asyncio.run(workflow.create(session_for(Role.NONE), {"amount": "-1"}))

    def test_invalid_data_is_rejected(self):
        """Test field-level errors and no write."""
        storage, components = build()
        workflow = components.workflow(RecordCategory.INCOME)

        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(workflow.create(
                session_for(Role.ADMIN),
                {"amount": "-5", "reason": "", "date": "2024-01-10"},
            ))
        errors = exc_info.value.field_errors()
        assert "amount" in errors
        assert "reason" in errors
        assert storage.rows("in") == []

    def test_insert_failure_surfaces(self):
        """Test that a backend failure is raised, not swallowed."""
        _, components = build(fail_on={("insert", "in")})
        workflow = components.workflow(RecordCategory.INCOME)

        with pytest.raises(PersistenceError):
            asyncio.run(workflow.create(session_for(Role.ADMIN), INCOME))

    def test_admin_updates_record(self):
        """Test a partial edit merges onto the stored record."""
        storage, components = build()
        session = session_for(Role.ADMIN)
        workflow = components.workflow(RecordCategory.INCOME)

        async def scenario():
            record = await workflow.create(session, INCOME)
            updated = await workflow.update(session, record.id, {"amount": "1500", "id": str(uuid4())})
            return record, updated

        record, updated = asyncio.run(scenario())
        assert updated.id == record.id
        assert updated.amount == Decimal("1500")
        assert updated.reason == "Sale"
        assert updated.created_by == session.user_id
        assert storage.rows("in")[0]["amount"] == "1500"

    def test_manager_cannot_update_or_delete(self):
        """Test managers are limited to create."""
        storage, components = build()
        workflow = components.workflow(RecordCategory.INCOME)
        manager = session_for(Role.MANAGER)
        record = asyncio.run(workflow.create(manager, INCOME))

        with pytest.raises(AuthorizationDenied):
            asyncio.run(workflow.update(manager, record.id, {"amount": "1"}))
        with pytest.raises(AuthorizationDenied):
            asyncio.run(workflow.delete(manager, record.id))
        assert storage.rows("in")[0]["amount"] == "1000"

    def test_update_missing_record(self):
        """Test updating an unknown id."""
        _, components = build()
        workflow = components.workflow(RecordCategory.DEBT)

        with pytest.raises(NotFoundError):
            asyncio.run(workflow.update(session_for(Role.ADMIN), uuid4(), {"amount": "5"}))

    def test_update_rejects_invalid_merge(self):
        """Test the merged record is validated."""
        storage, components = build()
        session = session_for(Role.ADMIN)
        workflow = components.workflow(RecordCategory.DEBT)

        async def scenario():
            record = await workflow.create(
                session, {"person_name": "Sara", "amount": "500", "date": "2024-01-01"}
            )
            await workflow.update(session, record.id, {"status": "Lost"})

        with pytest.raises(ValidationError):
            asyncio.run(scenario())
        assert storage.rows("debt")[0]["status"] == "Not Returned"

    def test_delete(self):
        """Test deleting returns whether a row was removed."""
        storage, components = build()
        session = session_for(Role.ADMIN)
        workflow = components.workflow(RecordCategory.TO_GIVE)

        async def scenario():
            record = await workflow.create(
                session, {"person_name": "Ali", "amount": "200", "date": "2024-01-01"}
            )
            return await workflow.delete(session, record.id), await workflow.delete(session, record.id)

        first, second = asyncio.run(scenario())
        assert first is True
        assert second is False
        assert storage.rows("to_give") == []

    def test_list_bounds_income_by_period(self):
        """Test that income listing is restricted to the period, newest first."""
        _, components = build()
        session = session_for(Role.ADMIN)
        workflow = components.workflow(RecordCategory.INCOME)

        async def scenario():
            await workflow.create(session, {**INCOME, "date": "2024-01-05"})
            await workflow.create(session, {**INCOME, "date": "2024-01-20"})
            await workflow.create(session, {**INCOME, "date": "2024-02-01"})
            return (
                await workflow.list_records(Period(month=1, year=2024)),
                await workflow.list_records(),
            )

        january, everything = asyncio.run(scenario())
        assert [str(r.date) for r in january] == ["2024-01-20", "2024-01-05"]
        assert len(everything) == 3

    def test_list_ignores_period_for_debt(self):
        """Test that open balances are listed regardless of period."""
        _, components = build()
        session = session_for(Role.ADMIN)
        workflow = components.workflow(RecordCategory.DEBT)

        async def scenario():
            await workflow.create(session, {"person_name": "Sara", "amount": "5", "date": "2019-01-01"})
            return await workflow.list_records(Period(month=1, year=2024))

        assert len(asyncio.run(scenario())) == 1

    def test_list_failure_surfaces(self):
        """Test that a failed fetch is raised."""
        _, components = build(fail_on={("list", "stock")})
        with pytest.raises(PersistenceError):
            asyncio.run(components.workflow(RecordCategory.STOCK).list_records())


class TestStockPurchaseWorkflow:
    """Tests for the stock + expense dual write."""

    def test_purchase_mirrors_expense(self):
        """Test price 1000 x quantity 3 records an expense of 3000."""
        storage, components = build()
        session = session_for(Role.MANAGER)

        result = asyncio.run(components.stock_purchases.record_purchase(session, RICE))

        assert result.state == PurchaseState.COMMITTED
        assert result.is_partial is False
        assert result.expense.amount == Decimal("3000")
        assert result.expense.reason == "Stock Purchase: Rice (Qty: 3)"
        assert result.expense.date == result.stock_item.purchase_date

        assert len(storage.rows("stock")) == 1
        expenses = storage.rows("out")
        assert len(expenses) == 1
        assert Decimal(expenses[0]["amount"]) == Decimal("3000")

    def test_failed_expense_keeps_stock_item(self):
        """Test the partial outcome when the expense insert fails."""
        storage, components = build(fail_on={("insert", "out")})
        session = session_for(Role.ADMIN)

        result = asyncio.run(components.stock_purchases.record_purchase(session, RICE))

        assert result.state == PurchaseState.PARTIALLY_COMMITTED
        assert result.is_partial is True
        assert result.expense is None
        assert isinstance(result.warning, PartialWriteWarning)
        assert result.warning.expense_amount == Decimal("3000")
        assert isinstance(result.warning.cause, PersistenceError)
        assert "Rice" in str(result.warning)

        assert len(storage.rows("stock")) == 1
        assert storage.rows("out") == []

    def test_failed_stock_insert_writes_nothing(self):
        """Test that no expense is attempted without a stock item."""
        storage, components = build(fail_on={("insert", "stock")})

        with pytest.raises(PersistenceError):
            asyncio.run(components.stock_purchases.record_purchase(session_for(Role.ADMIN), RICE))
        assert storage.rows("stock") == []
        assert storage.rows("out") == []

    def test_invalid_stock_writes_nothing(self):
        """Test validation errors on the stock item itself."""
        storage, components = build()

        with pytest.raises(ValidationError):
            asyncio.run(components.stock_purchases.record_purchase(
                session_for(Role.ADMIN), {**RICE, "quantity": 0}
            ))
        assert storage.rows("stock") == []
        assert storage.rows("out") == []

    def test_zero_price_records_no_expense(self):
        """Test a free item is committed without an expense."""
        storage, components = build()

        result = asyncio.run(components.stock_purchases.record_purchase(
            session_for(Role.ADMIN), {**RICE, "purchase_price": "0"}
        ))
        assert result.state == PurchaseState.COMMITTED
        assert result.is_partial is False
        assert result.warning is None
        assert result.expense is None
        assert len(storage.rows("stock")) == 1
        assert storage.rows("out") == []

    def test_generic_stock_create_is_refused(self):
        """Test stock rows cannot be created without their mirrored expense."""
        storage, components = build()

        with pytest.raises(UnsupportedOperation):
            asyncio.run(components.workflow(RecordCategory.STOCK).create(
                session_for(Role.ADMIN), RICE
            ))
        assert storage.rows("stock") == []
        assert storage.rows("out") == []

    def test_generic_stock_update_and_delete_still_allowed(self):
        """Test only creation is routed through the purchase workflow."""
        storage, components = build()
        admin = session_for(Role.ADMIN)
        result = asyncio.run(components.stock_purchases.record_purchase(admin, RICE))
        stock = components.workflow(RecordCategory.STOCK)

        updated = asyncio.run(stock.update(admin, result.stock_item.id, {"status": "Sold"}))
        assert updated.status.value == "Sold"

        asyncio.run(stock.delete(admin, result.stock_item.id))
        assert storage.rows("stock") == []

    def test_read_only_user_cannot_purchase(self):
        """Test the purchase is authorized like any create."""
        storage, components = build()

        with pytest.raises(AuthorizationDenied):
            asyncio.run(components.stock_purchases.record_purchase(Session.anonymous(), RICE))
        assert storage.rows("stock") == []

    def test_requires_matching_workflows(self):
        """Test the workflow refuses swapped tables."""
        _, components = build()
        with pytest.raises(ValueError):
            StockPurchaseWorkflow(
                stock=components.workflow(RecordCategory.EXPENSE),
                expenses=components.workflow(RecordCategory.STOCK),
            )


class TestAppComponents:
    """Tests for application wiring."""

    def test_memory_backend(self):
        """Test the default in-memory wiring."""
        components = create_app_components("memory")
        assert isinstance(components.storage, InMemoryRecordStorage)
        assert set(components.records) == set(RecordCategory)

    def test_unconfigured_sheets_falls_back_to_memory(self, monkeypatch):
        """Test the app still starts without Google Sheets credentials."""
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
        components = create_app_components("google_sheets")
        assert isinstance(components.storage, InMemoryRecordStorage)

    def test_unknown_backend(self):
        """Test that an unknown backend name is rejected."""
        with pytest.raises(ValueError):
            create_app_components("postgres")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

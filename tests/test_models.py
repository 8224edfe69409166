"""
Tests for Ledgerbook

Test strategy:
1. Unit tests for individual components (models, policy, summary engine)
2. Workflow tests against in-memory storage with failure injection
3. No real backend calls in tests
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from ledgerbook.models import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
    CATEGORIES,
    DebtDraft,
    DebtStatus,
    IncomeDraft,
    IncomeRecord,
    Period,
    RecordCategory,
    RecordSet,
    Role,
    Session,
    StockItemDraft,
    StockStatus,
    Summary,
    ToGiveDraft,
    ToGiveStatus,
    UserIdentity,
    ValidationIssue,
    ValidationResult,
    descriptor_for,
    format_currency,
    round_for_display,
)


class TestRecordModels:
    """Tests for record draft and stored models."""

    def test_income_draft_creation(self):
        """Test IncomeDraft model creation."""
        draft = IncomeDraft(amount="1000", reason="Salary", date="2024-01-10")
        assert draft.amount == Decimal("1000")
        assert draft.date == date(2024, 1, 10)

    def test_reason_strips_whitespace(self):
        """Test that whitespace is stripped from the reason."""
        draft = IncomeDraft(amount=10, reason="  Rent  ", date=date(2024, 1, 1))
        assert draft.reason == "Rent"

    def test_rejects_non_positive_amount(self):
        """Test that zero and negative amounts are rejected."""
        with pytest.raises(ValueError):
            IncomeDraft(amount=0, reason="x", date=date(2024, 1, 1))
        with pytest.raises(ValueError):
            IncomeDraft(amount=Decimal("-5"), reason="x", date=date(2024, 1, 1))

    def test_rejects_more_than_two_decimal_places(self):
        """Test that sub-cent amounts are rejected."""
        with pytest.raises(ValueError):
            IncomeDraft(amount=Decimal("10.005"), reason="x", date=date(2024, 1, 1))

    def test_rejects_blank_and_long_reason(self):
        """Test reason length bounds."""
        with pytest.raises(ValueError):
            IncomeDraft(amount=10, reason="   ", date=date(2024, 1, 1))
        with pytest.raises(ValueError):
            IncomeDraft(amount=10, reason="x" * 201, date=date(2024, 1, 1))

    def test_to_give_defaults_to_unpaid(self):
        """Test the default To Give status."""
        draft = ToGiveDraft(person_name="Ali", amount=200, date=date(2024, 1, 1))
        assert draft.status == ToGiveStatus.UNPAID

    def test_debt_status_values(self):
        """Test debt status parsing from stored strings."""
        draft = DebtDraft(person_name="Sara", amount=500, date=date(2024, 1, 1), status="Returned")
        assert draft.status == DebtStatus.RETURNED
        with pytest.raises(ValueError):
            DebtDraft(person_name="Sara", amount=500, date=date(2024, 1, 1), status="Lost")

    def test_stock_item_total_cost(self):
        """Test purchase_price x quantity."""
        item = StockItemDraft(
            item_name="Rice bag",
            quantity=3,
            purchase_price=Decimal("1000"),
            purchase_date=date(2024, 1, 5),
        )
        assert item.total_cost == Decimal("3000")
        assert item.status == StockStatus.IN_STOCK

    def test_stock_item_blank_description_is_none(self):
        """Test that an empty description is stored as None."""
        item = StockItemDraft(
            item_name="Oil",
            description="   ",
            quantity=1,
            purchase_price=0,
            purchase_date=date(2024, 1, 5),
        )
        assert item.description is None

    def test_stock_item_rejects_zero_quantity(self):
        """Test that quantity must be at least 1."""
        with pytest.raises(ValueError):
            StockItemDraft(
                item_name="Oil",
                quantity=0,
                purchase_price=10,
                purchase_date=date(2024, 1, 5),
            )

    def test_record_gets_identity_fields(self):
        """Test that stored records get an id and creation time."""
        record = IncomeRecord(amount=10, reason="Tip", date=date(2024, 1, 1))
        assert record.id is not None
        assert record.created_at is not None
        assert record.created_by is None

    def test_record_parses_json_row(self):
        """Test that a row dumped as JSON validates back into a record."""
        record = IncomeRecord(amount=Decimal("12.50"), reason="Tip", date=date(2024, 1, 1))
        again = IncomeRecord.model_validate(record.model_dump(mode="json"))
        assert again == record


class TestPeriod:
    """Tests for the period filter."""

    def test_month_range(self):
        """Test inclusive first/last day of a month."""
        period = Period(month=2, year=2024)
        assert period.date_range() == (date(2024, 2, 1), date(2024, 2, 29))

    def test_all_time_has_no_range(self):
        """Test that 'all' disables date bounds."""
        period = Period(month="all", year=2024)
        assert period.is_all_time is True
        assert period.date_range() is None
        assert period.contains(date(1999, 1, 1)) is True

    def test_contains_accepts_strings(self):
        """Test containment of ISO date strings."""
        period = Period(month=1, year=2024)
        assert period.contains("2024-01-31") is True
        assert period.contains("2024-02-01") is False
        assert period.contains("2024-01-10T09:30:00") is True

    def test_rejects_invalid_month(self):
        """Test month bounds."""
        with pytest.raises(ValueError):
            Period(month=13, year=2024)
        with pytest.raises(ValueError):
            Period(month=0, year=2024)

    def test_current(self):
        """Test the default period for a given day."""
        assert Period.current(date(2024, 5, 17)) == Period(month=5, year=2024)

    def test_labels(self):
        """Test period labels."""
        assert Period(month=1, year=2024).label == "January 2024"
        assert Period.all_time(2024).label == "All time"


class TestIdentityModels:
    """Tests for roles and sessions."""

    def test_role_parse(self):
        """Test role normalization."""
        assert Role.parse("admin") == Role.ADMIN
        assert Role.parse(" Manager ") == Role.MANAGER
        assert Role.parse(None) == Role.NONE
        assert Role.parse("") == Role.NONE

    def test_role_parse_rejects_unknown(self):
        """Test that unknown roles are not silently downgraded."""
        with pytest.raises(ValueError):
            Role.parse("superuser")

    def test_anonymous_session(self):
        """Test the signed-out session."""
        session = Session.anonymous()
        assert session.is_authenticated is False
        assert session.user_id is None
        assert session.role == Role.NONE

    def test_session_is_immutable(self):
        """Test that sessions cannot be modified in place."""
        user = UserIdentity(id=uuid4(), email="owner@example.com")
        session = Session(user=user, role=Role.MANAGER)
        assert session.user_id == user.id
        with pytest.raises(ValueError):
            session.role = Role.ADMIN


class TestCategories:
    """Tests for category descriptors."""

    def test_every_category_has_descriptor(self):
        """Test that the registry covers all categories."""
        assert set(CATEGORIES) == set(RecordCategory)

    def test_table_names(self):
        """Test backend table names."""
        assert descriptor_for("in").table == "in"
        assert descriptor_for(RecordCategory.EXPENSE).table == "out"
        assert descriptor_for(RecordCategory.TO_GIVE).label == "To Give"

    def test_only_cash_categories_are_period_bounded(self):
        """Test which categories the period restricts."""
        bounded = {c for c, d in CATEGORIES.items() if d.period_bounded}
        assert bounded == {RecordCategory.INCOME, RecordCategory.EXPENSE}

    def test_stock_dates_by_purchase_date(self):
        """Test the stock date column."""
        assert CATEGORIES[RecordCategory.STOCK].date_field == "purchase_date"
        assert CATEGORIES[RecordCategory.STOCK].open_status == "In Stock"


class TestSummaryModel:
    """Tests for the summary value and display rounding."""

    def test_round_for_display(self):
        """Test half-up rounding to whole units."""
        assert round_for_display(Decimal("699.5")) == Decimal("700")
        assert round_for_display(Decimal("699.49")) == Decimal("699")
        assert round_for_display(Decimal("-0.5")) == Decimal("-1")

    def test_format_currency(self):
        """Test currency formatting."""
        assert format_currency(Decimal("4000")) == "PKR 4,000"
        assert format_currency(Decimal("1234567.6"), "USD") == "USD 1,234,568"

    def test_display_does_not_change_stored_value(self):
        """Test that rounding applies only to the displayed value."""
        summary = Summary(period=Period(month=1, year=2024), cash=Decimal("10.40"))
        assert summary.display("cash") == Decimal("10")
        assert summary.cash == Decimal("10.40")

    def test_display_rejects_unknown_field(self):
        """Test that only amount fields can be displayed."""
        summary = Summary(period=Period(month=1, year=2024))
        with pytest.raises(KeyError):
            summary.display("stock_count")

    def test_to_display_dict(self):
        """Test all display fields are present."""
        summary = Summary(period=Period(month=1, year=2024))
        assert set(summary.to_display_dict()) == {
            "total_income",
            "total_expense",
            "cash",
            "to_give_total",
            "debt_total",
            "stock_value",
            "net_position",
        }


class TestRecordSet:
    """Tests for the summary input snapshot."""

    def test_from_categories(self):
        """Test building a snapshot from per-category rows."""
        records = RecordSet.from_categories({RecordCategory.DEBT: [{"amount": 5}]})
        assert records.rows_for(RecordCategory.DEBT) == [{"amount": 5}]
        assert records.rows_for(RecordCategory.INCOME) == []


class TestActivityModels:
    """Tests for activity event models."""

    def test_activity_event_creation(self):
        """Test ActivityEvent model creation."""
        event = ActivityEvent(
            event_type=ActivityEventType.RECORD_CREATED,
            description="Record added",
        )
        assert event.event_id is not None
        assert event.severity == ActivitySeverity.INFO

    def test_activity_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        record_id = uuid4()
        event = ActivityEventBuilder.record_created("in", record_id, None)
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "record_created"
        assert log_dict["record_id"] == str(record_id)
        assert log_dict["user_id"] is None

    def test_builder_partial_write(self):
        """Test the partial write event."""
        event = ActivityEventBuilder.partial_write(uuid4(), "3000", "insert failed", None)
        assert event.severity == ActivitySeverity.WARNING
        assert event.category == "stock"
        assert event.details["expense_amount"] == "3000"


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            category="in",
            schema_valid=False,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="missing",
                    message="Amount required",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1
        assert result.is_valid is False

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            category="in",
            schema_valid=True,
            issues=[
                ValidationIssue(
                    field="date",
                    issue_type="future_date",
                    message="Date in future",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.is_valid is True
        assert result.warnings == ["Date in future"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

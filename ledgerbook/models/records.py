"""
Record Models for Ledgerbook

These models define the strict schemas for every record category:
income ("In"), expenses ("Out"), money owed to others ("To Give"),
money owed by others ("Debt") and inventory ("Stock").

Each category has two shapes:
- a *draft* model: what a form submits (validated before submission)
- a *record* model: a draft plus the identity fields storage assigns

We use Pydantic v2. Amounts are Decimals so sums are exact until display.
"""

import calendar
import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, Literal, Optional, Union
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class RecordCategory(str, Enum):
    """
    The five record categories.

    Values are the backend table names.
    """
    INCOME = "in"
    EXPENSE = "out"
    TO_GIVE = "to_give"
    DEBT = "debt"
    STOCK = "stock"

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]


_CATEGORY_LABELS = {
    RecordCategory.INCOME: "In",
    RecordCategory.EXPENSE: "Out",
    RecordCategory.TO_GIVE: "To Give",
    RecordCategory.DEBT: "Debt",
    RecordCategory.STOCK: "Stock",
}


class ToGiveStatus(str, Enum):
    """Status of money the user owes to someone else."""
    UNPAID = "Unpaid"
    PAID = "Paid"


class DebtStatus(str, Enum):
    """Status of money someone else owes the user."""
    NOT_RETURNED = "Not Returned"
    RETURNED = "Returned"


class StockStatus(str, Enum):
    """Inventory status. Only IN_STOCK items count towards stock value."""
    IN_STOCK = "In Stock"
    SOLD = "Sold"
    RESERVED = "Reserved"


# =============================================================================
# DRAFTS - form input, validated before submission
# =============================================================================

class CashEntryDraft(BaseModel):
    """Shared shape of income and expense entries."""
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Amount, must be positive"
    )
    reason: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="What the money was for"
    )
    date: dt.date = Field(
        ...,
        description="Date of the entry"
    )


class IncomeDraft(CashEntryDraft):
    """Money coming in."""


class ExpenseDraft(CashEntryDraft):
    """Money going out."""


class ToGiveDraft(BaseModel):
    """Money the user owes to another person."""
    model_config = ConfigDict(str_strip_whitespace=True)

    person_name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Who the money is owed to"
    )
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    date: dt.date
    status: ToGiveStatus = Field(default=ToGiveStatus.UNPAID)


class DebtDraft(BaseModel):
    """Money another person owes the user."""
    model_config = ConfigDict(str_strip_whitespace=True)

    person_name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Who owes the money"
    )
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    date: dt.date
    status: DebtStatus = Field(default=DebtStatus.NOT_RETURNED)


class StockItemDraft(BaseModel):
    """
    An inventory purchase.

    CRITICAL: Creating a stock item also records an expense of
    purchase_price x quantity. See workflows.stock.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    item_name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Name of the item"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=500,
    )
    quantity: int = Field(
        ...,
        ge=1,
        description="Number of units purchased"
    )
    purchase_price: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Price per unit"
    )
    purchase_date: dt.date
    status: StockStatus = Field(default=StockStatus.IN_STOCK)

    @field_validator('description')
    @classmethod
    def blank_description_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @property
    def total_cost(self) -> Decimal:
        return self.purchase_price * self.quantity


# =============================================================================
# PERSISTED RECORDS
# =============================================================================

class StoredFields(BaseModel):
    """Identity fields assigned when a record is persisted."""

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique record ID"
    )
    created_by: Optional[UUID] = Field(
        default=None,
        description="User who created the record"
    )
    created_at: dt.datetime = Field(
        default_factory=dt.datetime.utcnow,
        description="When the record was created"
    )


class IncomeRecord(StoredFields, IncomeDraft):
    pass


class ExpenseRecord(StoredFields, ExpenseDraft):
    pass


class ToGiveRecord(StoredFields, ToGiveDraft):
    pass


class DebtRecord(StoredFields, DebtDraft):
    pass


class StockItem(StoredFields, StockItemDraft):
    pass


# =============================================================================
# PERIOD FILTER
# =============================================================================

class Period(BaseModel):
    """
    A month of a year, or all time.

    Only income and expense are date-bounded by the period.
    """
    model_config = ConfigDict(frozen=True)

    month: Union[int, Literal["all"]] = Field(
        ...,
        description="1-12, or 'all' for no date restriction"
    )
    year: int = Field(..., ge=1900, le=9999)

    @field_validator('month')
    @classmethod
    def validate_month(cls, v: Union[int, str]) -> Union[int, str]:
        if v != "all" and not 1 <= v <= 12:
            raise ValueError(f"Month must be 1-12 or 'all', got {v}")
        return v

    @classmethod
    def current(cls, today: Optional[dt.date] = None) -> "Period":
        """The month containing today (the dashboard default)."""
        today = today or dt.date.today()
        return cls(month=today.month, year=today.year)

    @classmethod
    def all_time(cls, year: Optional[int] = None) -> "Period":
        return cls(month="all", year=year or dt.date.today().year)

    @property
    def is_all_time(self) -> bool:
        return self.month == "all"

    def date_range(self) -> Optional[tuple[dt.date, dt.date]]:
        """
        Inclusive (first_day, last_day) of the month.

        Returns None for all time.
        """
        if self.is_all_time:
            return None
        last_day = calendar.monthrange(self.year, self.month)[1]
        return (
            dt.date(self.year, self.month, 1),
            dt.date(self.year, self.month, last_day),
        )

    def contains(self, day: Union[dt.date, str]) -> bool:
        bounds = self.date_range()
        if bounds is None:
            return True
        if isinstance(day, str):
            day = dt.date.fromisoformat(day[:10])
        elif isinstance(day, dt.datetime):
            day = day.date()
        return bounds[0] <= day <= bounds[1]

    @property
    def label(self) -> str:
        if self.is_all_time:
            return "All time"
        return f"{calendar.month_name[self.month]} {self.year}"


# =============================================================================
# RECORD SNAPSHOT
# =============================================================================

class RecordSet(BaseModel):
    """
    Rows fetched for one summary computation.

    Rows may be record models or plain mappings straight from a backend.
    They are treated as an immutable snapshot.

    Unknown category keys are rejected so a misspelt category can't sum
    to zero unnoticed. `toGive` is accepted for `to_give`.
    """
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    income: list[Any] = Field(default_factory=list)
    expense: list[Any] = Field(default_factory=list)
    to_give: list[Any] = Field(default_factory=list, alias="toGive")
    debt: list[Any] = Field(default_factory=list)
    stock: list[Any] = Field(default_factory=list)

    def rows_for(self, category: RecordCategory) -> list[Any]:
        return {
            RecordCategory.INCOME: self.income,
            RecordCategory.EXPENSE: self.expense,
            RecordCategory.TO_GIVE: self.to_give,
            RecordCategory.DEBT: self.debt,
            RecordCategory.STOCK: self.stock,
        }[category]

    @classmethod
    def from_categories(cls, rows: dict[RecordCategory, list[Any]]) -> "RecordSet":
        return cls(
            income=rows.get(RecordCategory.INCOME, []),
            expense=rows.get(RecordCategory.EXPENSE, []),
            to_give=rows.get(RecordCategory.TO_GIVE, []),
            debt=rows.get(RecordCategory.DEBT, []),
            stock=rows.get(RecordCategory.STOCK, []),
        )

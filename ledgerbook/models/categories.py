"""
Record category descriptors.

One descriptor per category tells the generic workflows which table to
use, which schemas validate it, which column the period applies to, and
which status counts as "open" for the summary.
"""

from typing import Optional, Type

from pydantic import BaseModel, ConfigDict

from ledgerbook.models.records import (
    DebtDraft,
    DebtRecord,
    DebtStatus,
    ExpenseDraft,
    ExpenseRecord,
    IncomeDraft,
    IncomeRecord,
    RecordCategory,
    StockItem,
    StockItemDraft,
    StockStatus,
    ToGiveDraft,
    ToGiveRecord,
    ToGiveStatus,
)


class CategoryDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    category: RecordCategory
    draft_model: Type[BaseModel]
    record_model: Type[BaseModel]
    date_field: str
    # Restrict listing to the current period (income and expense only)
    period_bounded: bool = False
    # Status counted by the summary; None means no status column
    open_status: Optional[str] = None
    # False when rows may only be created by a dedicated workflow
    creatable: bool = True

    @property
    def table(self) -> str:
        return self.category.value

    @property
    def label(self) -> str:
        return self.category.label


CATEGORIES: dict[RecordCategory, CategoryDescriptor] = {
    RecordCategory.INCOME: CategoryDescriptor(
        category=RecordCategory.INCOME,
        draft_model=IncomeDraft,
        record_model=IncomeRecord,
        date_field="date",
        period_bounded=True,
    ),
    RecordCategory.EXPENSE: CategoryDescriptor(
        category=RecordCategory.EXPENSE,
        draft_model=ExpenseDraft,
        record_model=ExpenseRecord,
        date_field="date",
        period_bounded=True,
    ),
    RecordCategory.TO_GIVE: CategoryDescriptor(
        category=RecordCategory.TO_GIVE,
        draft_model=ToGiveDraft,
        record_model=ToGiveRecord,
        date_field="date",
        open_status=ToGiveStatus.UNPAID.value,
    ),
    RecordCategory.DEBT: CategoryDescriptor(
        category=RecordCategory.DEBT,
        draft_model=DebtDraft,
        record_model=DebtRecord,
        date_field="date",
        open_status=DebtStatus.NOT_RETURNED.value,
    ),
    RecordCategory.STOCK: CategoryDescriptor(
        category=RecordCategory.STOCK,
        draft_model=StockItemDraft,
        record_model=StockItem,
        date_field="purchase_date",
        open_status=StockStatus.IN_STOCK.value,
        creatable=False,
    ),
}


def descriptor_for(category) -> CategoryDescriptor:
    return CATEGORIES[RecordCategory(category)]

"""
Summary Models

The aggregate figures shown on the dashboard and the reports screen.
Values are exact Decimals; rounding happens only for display.
"""

from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ledgerbook.models.records import Period


class CashMode(str, Enum):
    """How the cash figure is derived."""
    NET = "net"                  # income - expense
    INCOME_ONLY = "income_only"  # income alone


DISPLAY_FIELDS = (
    "total_income",
    "total_expense",
    "cash",
    "to_give_total",
    "debt_total",
    "stock_value",
    "net_position",
)


def round_for_display(value: Decimal) -> Decimal:
    """Round to the nearest whole currency unit (half away from zero)."""
    return Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def format_currency(value: Decimal, currency: str = "PKR") -> str:
    """Render an amount for presentation, e.g. 'PKR 4,000'."""
    return f"{currency} {round_for_display(value):,}"


class Summary(BaseModel):
    """Derived financial summary for one period."""
    model_config = ConfigDict(frozen=True)

    period: Period
    cash_mode: CashMode = CashMode.NET

    total_income: Decimal = Field(default=Decimal("0"))
    total_expense: Decimal = Field(default=Decimal("0"))
    cash: Decimal = Field(default=Decimal("0"))
    to_give_total: Decimal = Field(default=Decimal("0"))
    debt_total: Decimal = Field(default=Decimal("0"))
    stock_value: Decimal = Field(default=Decimal("0"))
    stock_count: int = Field(default=0, ge=0, description="Units currently in stock")
    net_position: Decimal = Field(default=Decimal("0"))

    def display(self, field: str) -> Decimal:
        if field not in DISPLAY_FIELDS:
            raise KeyError(f"Not a summary amount: {field}")
        return round_for_display(getattr(self, field))

    def to_display_dict(self) -> dict[str, Decimal]:
        return {name: self.display(name) for name in DISPLAY_FIELDS}

"""
Summary Engine

Turns raw ledger rows into the figures shown on the dashboard and the
reports screen:

    total_income  = sum(income.amount)               within the period
    total_expense = sum(expense.amount)              within the period
    cash          = total_income - total_expense     (or total_income alone)
    to_give_total = sum(to_give.amount)              Unpaid only
    debt_total    = sum(debt.amount)                 Not Returned only
    stock_value   = sum(purchase_price * quantity)   In Stock only
    net_position  = cash + debt_total + stock_value - to_give_total

The filtering rules are applied here even if the backend already
applied them, so a pre-filtered snapshot gives the same result.
Sums are exact Decimals; nothing is rounded.
"""

from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Iterable, Union

from ledgerbook.models.records import (
    DebtStatus,
    Period,
    RecordSet,
    StockStatus,
    ToGiveStatus,
)
from ledgerbook.models.summary import CashMode, Summary


ZERO = Decimal("0")


def _field(row: Any, name: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(name)
    return getattr(row, name, None)


def _decimal(value: Any, name: str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if value is None or isinstance(value, bool):
        raise ValueError(f"'{name}' must be numeric, got {value!r}")
    try:
        return Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"'{name}' must be numeric, got {value!r}")


def _status(row: Any) -> Any:
    status = _field(row, "status")
    return status.value if isinstance(status, Enum) else status


def _in_period(row: Any, period: Period, date_field: str) -> bool:
    if period.is_all_time:
        return True
    day = _field(row, date_field)
    if day is None or day == "":
        return False
    return period.contains(day)


def sum_amounts(rows: Iterable[Any]) -> Decimal:
    return sum((_decimal(_field(row, "amount"), "amount") for row in rows), ZERO)


def within_period(rows: Iterable[Any], period: Period) -> list[Any]:
    return [row for row in rows if _in_period(row, period, "date")]


def open_to_give(rows: Iterable[Any]) -> list[Any]:
    return [row for row in rows if _status(row) == ToGiveStatus.UNPAID.value]


def open_debt(rows: Iterable[Any]) -> list[Any]:
    return [row for row in rows if _status(row) == DebtStatus.NOT_RETURNED.value]


def in_stock(rows: Iterable[Any]) -> list[Any]:
    return [row for row in rows if _status(row) == StockStatus.IN_STOCK.value]


def stock_value(rows: Iterable[Any]) -> Decimal:
    """Sum of purchase_price x quantity."""
    return sum(
        (
            _decimal(_field(row, "purchase_price"), "purchase_price")
            * _decimal(_field(row, "quantity"), "quantity")
            for row in rows
        ),
        ZERO,
    )


def stock_units(rows: Iterable[Any]) -> int:
    return int(sum((_decimal(_field(row, "quantity"), "quantity") for row in rows), ZERO))


def compute_summary(
    records: Union[RecordSet, Mapping],
    period: Period,
    cash_mode: Union[CashMode, str] = CashMode.NET,
) -> Summary:
    """
    Aggregate a snapshot of rows for a period.

    Empty inputs give an all-zero summary.

    Raises:
        ValueError: If an amount, price or quantity is not numeric, or a
            mapping names an unknown category
    """
    if not isinstance(records, RecordSet):
        records = RecordSet(**records)
    cash_mode = CashMode(cash_mode)

    total_income = sum_amounts(within_period(records.income, period))
    total_expense = sum_amounts(within_period(records.expense, period))
    to_give_total = sum_amounts(open_to_give(records.to_give))
    debt_total = sum_amounts(open_debt(records.debt))

    stocked = in_stock(records.stock)
    value = stock_value(stocked)

    if cash_mode == CashMode.NET:
        cash = total_income - total_expense
    else:
        cash = total_income

    return Summary(
        period=period,
        cash_mode=cash_mode,
        total_income=total_income,
        total_expense=total_expense,
        cash=cash,
        to_give_total=to_give_total,
        debt_total=debt_total,
        stock_value=value,
        stock_count=stock_units(stocked),
        net_position=cash + debt_total + value - to_give_total,
    )

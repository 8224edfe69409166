"""Row filtering shared by backends that filter in Python."""

from datetime import date, datetime
from typing import Any, Iterable, Optional

from ledgerbook.services.storage.interface import Row


def as_date(value: Any) -> Optional[date]:
    """Coerce a stored date cell ('2024-01-10', date, datetime) to a date."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def filter_rows(
    rows: Iterable[Row],
    date_field: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    status: Optional[str] = None,
) -> list[Row]:
    """
    Apply gte/lte date bounds and status equality, newest first.

    Rows without a usable date are dropped only when a bound is given.
    """
    matched = []
    for row in rows:
        if status is not None and row.get("status") != status:
            continue
        if date_field and (date_from or date_to):
            day = as_date(row.get(date_field))
            if day is None:
                continue
            if date_from and day < date_from:
                continue
            if date_to and day > date_to:
                continue
        matched.append(row)

    if date_field:
        matched.sort(key=lambda r: as_date(r.get(date_field)) or date.min, reverse=True)
    return matched

"""Workflows package: the operations the UI invokes."""

from ledgerbook.workflows.crud import RecordWorkflow, to_row
from ledgerbook.workflows.stock import (
    PurchaseState,
    StockPurchaseResult,
    StockPurchaseWorkflow,
)
from ledgerbook.workflows.users import UserDirectory

__all__ = [
    "PurchaseState",
    "RecordWorkflow",
    "StockPurchaseResult",
    "StockPurchaseWorkflow",
    "UserDirectory",
    "to_row",
]

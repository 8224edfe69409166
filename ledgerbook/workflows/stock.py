"""
Stock Purchase Workflow

Buying stock is recorded twice: once as a stock item and once as an
expense of purchase_price x quantity, so cash reflects the money spent.

    PENDING --stock insert ok, expense insert ok------> COMMITTED
    PENDING --stock insert ok, total cost is zero-----> COMMITTED (no expense)
    PENDING --stock insert ok, expense insert failed--> PARTIALLY_COMMITTED
    PENDING --stock insert failed--> error raised, nothing written

CRITICAL: This is a best-effort dual write, not a transaction.
The expense is only attempted after the stock item is stored. If the
expense fails the stock item is kept and a PartialWriteWarning is
returned for the UI to show.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from ledgerbook.activity import ActivityLogger
from ledgerbook.errors import PartialWriteWarning, ValidationError
from ledgerbook.models.identity import Session
from ledgerbook.models.records import ExpenseRecord, RecordCategory, StockItem
from ledgerbook.services.storage import PersistenceError
from ledgerbook.workflows.crud import RecordWorkflow


class PurchaseState(str, Enum):
    PENDING = "pending"
    COMMITTED = "committed"
    PARTIALLY_COMMITTED = "partially_committed"


class StockPurchaseResult(BaseModel):
    """Outcome of a stock purchase."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    state: PurchaseState
    stock_item: StockItem
    expense: Optional[ExpenseRecord] = None
    warning: Optional[PartialWriteWarning] = None

    @property
    def is_partial(self) -> bool:
        return self.state == PurchaseState.PARTIALLY_COMMITTED


def expense_reason(item: StockItem) -> str:
    return f"Stock Purchase: {item.item_name} (Qty: {item.quantity})"


class StockPurchaseWorkflow:
    """
    Creates stock items together with their mirrored expense.

    This is the only way to create stock: the generic stock
    RecordWorkflow refuses create() so the expense cannot be skipped.
    """

    def __init__(
        self,
        stock: RecordWorkflow,
        expenses: RecordWorkflow,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        if stock.descriptor.category != RecordCategory.STOCK:
            raise ValueError("stock workflow must manage the stock table")
        if expenses.descriptor.category != RecordCategory.EXPENSE:
            raise ValueError("expenses workflow must manage the expense table")
        self._stock = stock
        self._expenses = expenses
        self._activity = activity_logger or ActivityLogger()

    async def record_purchase(
        self,
        session: Session,
        data: dict[str, Any],
    ) -> StockPurchaseResult:
        """
        Store a stock item, then its expense.

        A zero-cost purchase stores no expense (expense amounts must be
        greater than zero) and is still COMMITTED with expense=None.

        Raises:
            AuthorizationDenied, ValidationError, PersistenceError:
                From the stock insert; nothing has been written
        """
        item = await self._stock._create(session, data)

        total_cost = item.total_cost
        if total_cost == 0:
            return StockPurchaseResult(state=PurchaseState.COMMITTED, stock_item=item)

        try:
            expense = await self._expenses.create(session, {
                "amount": total_cost,
                "reason": expense_reason(item),
                "date": item.purchase_date,
            })
        except (PersistenceError, ValidationError) as e:
            warning = PartialWriteWarning(item, total_cost, e)
            self._activity.log_partial_write(
                stock_item_id=item.id,
                expense_amount=str(total_cost),
                error_message=str(e),
                user_id=session.user_id,
            )
            return StockPurchaseResult(
                state=PurchaseState.PARTIALLY_COMMITTED,
                stock_item=item,
                warning=warning,
            )

        return StockPurchaseResult(
            state=PurchaseState.COMMITTED,
            stock_item=item,
            expense=expense,
        )

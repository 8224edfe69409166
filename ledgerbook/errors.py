"""
Error taxonomy for ledger operations.

Backend failures live with the storage interface
(ledgerbook.services.storage.PersistenceError); the rest are here.
"""

from typing import Any, Optional

from ledgerbook.models.identity import Action, Role
from ledgerbook.models.validation import ValidationIssue


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class ValidationError(LedgerError):
    """
    A submission violated its schema.

    Recoverable by editing the form; issues are field-level.
    """

    def __init__(self, category: str, issues: list[ValidationIssue]):
        self.category = category
        self.issues = issues
        first = issues[0].message if issues else "invalid input"
        super().__init__(f"Invalid {category} record: {first}")

    def field_errors(self) -> dict[str, list[str]]:
        errors: dict[str, list[str]] = {}
        for issue in self.issues:
            if issue.severity == "error":
                errors.setdefault(issue.field, []).append(issue.message)
        return errors


class AuthorizationDenied(LedgerError):
    """An action was attempted without the required role."""

    def __init__(self, role: Role, action: Action, category: Optional[str] = None):
        self.role = role
        self.action = action
        self.category = category
        target = f" {category} records" if category else ""
        super().__init__(
            f"Role '{role.value}' is not allowed to {action.value}{target}"
        )


class UnsupportedOperation(LedgerError):
    """The generic workflow may not perform this operation on a category."""

    def __init__(self, category: str, operation: str, use_instead: str):
        self.category = category
        self.operation = operation
        super().__init__(
            f"Cannot {operation} {category} records directly; use {use_instead}"
        )


class AuthenticationError(LedgerError):
    """Sign-in or sign-up failed (bad credentials, email already registered)."""
    pass


class PartialWriteWarning(UserWarning):
    """
    The stock item was saved but its mirrored expense was not.

    Returned on the purchase result, never raised. The stock item is kept.
    """

    def __init__(self, stock_item: Any, expense_amount: Any, cause: Exception):
        self.stock_item = stock_item
        self.expense_amount = expense_amount
        self.cause = cause
        super().__init__(
            f"Stock item '{stock_item.item_name}' was added but the expense of "
            f"{expense_amount} could not be recorded: {cause}"
        )

"""
Data Models Package

All data flowing through Ledgerbook conforms to these schemas.
"""

from ledgerbook.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)
from ledgerbook.models.categories import (
    CATEGORIES,
    CategoryDescriptor,
    descriptor_for,
)
from ledgerbook.models.identity import (
    Action,
    Role,
    Session,
    SignUpForm,
    UserIdentity,
    UserProfile,
    UserRoleAssignment,
)
from ledgerbook.models.records import (
    DebtDraft,
    DebtRecord,
    DebtStatus,
    ExpenseDraft,
    ExpenseRecord,
    IncomeDraft,
    IncomeRecord,
    Period,
    RecordCategory,
    RecordSet,
    StockItem,
    StockItemDraft,
    StockStatus,
    ToGiveDraft,
    ToGiveRecord,
    ToGiveStatus,
)
from ledgerbook.models.summary import (
    CashMode,
    Summary,
    format_currency,
    round_for_display,
)
from ledgerbook.models.validation import ValidationIssue, ValidationResult

__all__ = [
    # Activity models
    "ActivityEvent",
    "ActivityEventBuilder",
    "ActivityEventType",
    "ActivitySeverity",
    # Categories
    "CATEGORIES",
    "CategoryDescriptor",
    "descriptor_for",
    # Identity
    "Action",
    "Role",
    "Session",
    "SignUpForm",
    "UserIdentity",
    "UserProfile",
    "UserRoleAssignment",
    # Records
    "DebtDraft",
    "DebtRecord",
    "DebtStatus",
    "ExpenseDraft",
    "ExpenseRecord",
    "IncomeDraft",
    "IncomeRecord",
    "Period",
    "RecordCategory",
    "RecordSet",
    "StockItem",
    "StockItemDraft",
    "StockStatus",
    "ToGiveDraft",
    "ToGiveRecord",
    "ToGiveStatus",
    # Summary
    "CashMode",
    "Summary",
    "format_currency",
    "round_for_display",
    # Validation
    "ValidationIssue",
    "ValidationResult",
]

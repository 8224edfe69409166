"""
Activity Models for Ledgerbook

Significant actions are emitted as structured log events so failures
can be traced after the fact. Events go to the local log only; they are
not stored as a history of record versions.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class ActivityEventType(str, Enum):
    """Types of events we log."""
    # Record mutations
    RECORD_CREATED = "record_created"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"

    # Failures surfaced to the user
    VALIDATION_FAILED = "validation_failed"
    AUTHORIZATION_DENIED = "authorization_denied"
    PERSISTENCE_FAILED = "persistence_failed"
    PARTIAL_WRITE = "partial_write"

    # Session and users
    SIGNED_UP = "signed_up"
    SIGNED_IN = "signed_in"
    SIGN_IN_FAILED = "sign_in_failed"
    SIGNED_OUT = "signed_out"
    SESSION_DEGRADED = "session_degraded"
    ROLE_ASSIGNED = "role_assigned"
    PROFILE_UPDATED = "profile_updated"

    # Reporting
    SUMMARY_COMPUTED = "summary_computed"
    STALE_SUMMARY_DISCARDED = "stale_summary_discarded"


class ActivitySeverity(str, Enum):
    """Severity level for activity events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ActivityEvent(BaseModel):
    """A single structured log event."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: ActivityEventType
    severity: ActivitySeverity = ActivitySeverity.INFO

    # What the event is about, e.g. category "stock" and the row ID
    category: Optional[str] = None
    record_id: Optional[UUID] = None
    user_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "category": self.category,
            "record_id": str(self.record_id) if self.record_id else None,
            "user_id": str(self.user_id) if self.user_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class ActivityEventBuilder:
    """
    Helper class to build activity events with common patterns.

    Usage:
        event = ActivityEventBuilder.record_created("in", record_id, user_id)
    """

    @staticmethod
    def record_created(
        category: str,
        record_id: UUID,
        user_id: Optional[UUID],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.RECORD_CREATED,
            category=category,
            record_id=record_id,
            user_id=user_id,
            description=f"Record added to {category}",
        )

    @staticmethod
    def record_updated(
        category: str,
        record_id: UUID,
        user_id: Optional[UUID],
        fields: list[str],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.RECORD_UPDATED,
            category=category,
            record_id=record_id,
            user_id=user_id,
            description=f"Record updated in {category}",
            details={"fields": fields},
        )

    @staticmethod
    def record_deleted(
        category: str,
        record_id: UUID,
        user_id: Optional[UUID],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.RECORD_DELETED,
            category=category,
            record_id=record_id,
            user_id=user_id,
            description=f"Record deleted from {category}",
        )

    @staticmethod
    def validation_failed(
        category: str,
        issues: list[dict],
        user_id: Optional[UUID],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.VALIDATION_FAILED,
            severity=ActivitySeverity.WARNING,
            category=category,
            user_id=user_id,
            description=f"Validation failed with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def authorization_denied(
        category: str,
        action: str,
        role: str,
        user_id: Optional[UUID],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.AUTHORIZATION_DENIED,
            severity=ActivitySeverity.WARNING,
            category=category,
            user_id=user_id,
            description=f"Role '{role}' may not {action} {category} records",
            details={"action": action, "role": role},
        )

    @staticmethod
    def persistence_failed(
        category: str,
        operation: str,
        error_message: str,
        record_id: Optional[UUID] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.PERSISTENCE_FAILED,
            severity=ActivitySeverity.ERROR,
            category=category,
            record_id=record_id,
            description=f"Backend {operation} on {category} failed",
            details={"operation": operation},
            error_message=error_message,
        )

    @staticmethod
    def partial_write(
        stock_item_id: UUID,
        expense_amount: str,
        error_message: str,
        user_id: Optional[UUID],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.PARTIAL_WRITE,
            severity=ActivitySeverity.WARNING,
            category="stock",
            record_id=stock_item_id,
            user_id=user_id,
            description="Stock added but expense tracking failed",
            details={"expense_amount": expense_amount},
            error_message=error_message,
        )

    @staticmethod
    def signed_up(user_id: UUID, role: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SIGNED_UP,
            user_id=user_id,
            description="New account registered",
            details={"role": role},
        )

    @staticmethod
    def signed_in(user_id: UUID) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SIGNED_IN,
            user_id=user_id,
            description="User signed in",
        )

    @staticmethod
    def sign_in_failed(error_message: str) -> ActivityEvent:
        # The attempted email is not logged
        return ActivityEvent(
            event_type=ActivityEventType.SIGN_IN_FAILED,
            severity=ActivitySeverity.WARNING,
            description="Sign-in rejected",
            error_message=error_message,
        )

    @staticmethod
    def signed_out(user_id: Optional[UUID]) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SIGNED_OUT,
            user_id=user_id,
            description="User signed out",
        )

    @staticmethod
    def session_degraded(error_message: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SESSION_DEGRADED,
            severity=ActivitySeverity.WARNING,
            description="Could not load session, continuing without one",
            error_message=error_message,
        )

    @staticmethod
    def role_assigned(
        target_user_id: UUID,
        role: str,
        assigned_by: Optional[UUID],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ROLE_ASSIGNED,
            user_id=assigned_by,
            description=f"Role set to '{role}'",
            details={"target_user_id": str(target_user_id), "role": role},
        )

    @staticmethod
    def profile_updated(user_id: UUID) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.PROFILE_UPDATED,
            user_id=user_id,
            description="Profile updated",
        )

    @staticmethod
    def summary_computed(period_label: str, net_position: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SUMMARY_COMPUTED,
            severity=ActivitySeverity.DEBUG,
            description=f"Summary computed for {period_label}",
            details={"net_position": net_position},
        )

    @staticmethod
    def stale_summary_discarded(period_label: str, generation: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.STALE_SUMMARY_DISCARDED,
            severity=ActivitySeverity.DEBUG,
            description=f"Discarded superseded summary for {period_label}",
            details={"generation": generation},
        )

"""
Activity Logger

Every mutation, denial and backend failure is logged as a structured
event. The logger never raises: a logging problem must not break the
operation being logged.
"""

import logging
import sys
from typing import Optional
from uuid import UUID

import structlog

from ledgerbook.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivitySeverity,
)


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through stdlib logging at the given level."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )


class ActivityLogger:
    """Central structured logging for ledger activity."""

    def __init__(self, name: str = "ledgerbook"):
        self._logger = structlog.get_logger(name)

    def log(self, event: ActivityEvent) -> None:
        """Emit an event at a level matching its severity."""
        log_dict = event.to_log_dict()

        try:
            if event.severity == ActivitySeverity.ERROR:
                self._logger.error("activity_event", **log_dict)
            elif event.severity == ActivitySeverity.WARNING:
                self._logger.warning("activity_event", **log_dict)
            elif event.severity == ActivitySeverity.DEBUG:
                self._logger.debug("activity_event", **log_dict)
            else:
                self._logger.info("activity_event", **log_dict)
        except Exception as e:
            # Last resort: the logging pipeline itself is broken
            print(f"WARNING: Failed to write activity event: {e}", file=sys.stderr)

    def log_record_created(
        self,
        category: str,
        record_id: UUID,
        user_id: Optional[UUID],
    ) -> None:
        self.log(ActivityEventBuilder.record_created(category, record_id, user_id))

    def log_record_updated(
        self,
        category: str,
        record_id: UUID,
        user_id: Optional[UUID],
        fields: list[str],
    ) -> None:
        self.log(ActivityEventBuilder.record_updated(category, record_id, user_id, fields))

    def log_record_deleted(
        self,
        category: str,
        record_id: UUID,
        user_id: Optional[UUID],
    ) -> None:
        self.log(ActivityEventBuilder.record_deleted(category, record_id, user_id))

    def log_validation_failed(
        self,
        category: str,
        issues: list[dict],
        user_id: Optional[UUID],
    ) -> None:
        self.log(ActivityEventBuilder.validation_failed(category, issues, user_id))

    def log_authorization_denied(
        self,
        category: str,
        action: str,
        role: str,
        user_id: Optional[UUID],
    ) -> None:
        self.log(ActivityEventBuilder.authorization_denied(category, action, role, user_id))

    def log_persistence_failed(
        self,
        category: str,
        operation: str,
        error_message: str,
        record_id: Optional[UUID] = None,
    ) -> None:
        self.log(ActivityEventBuilder.persistence_failed(
            category, operation, error_message, record_id
        ))

    def log_partial_write(
        self,
        stock_item_id: UUID,
        expense_amount: str,
        error_message: str,
        user_id: Optional[UUID],
    ) -> None:
        self.log(ActivityEventBuilder.partial_write(
            stock_item_id, expense_amount, error_message, user_id
        ))

    def log_signed_up(self, user_id: UUID, role: str) -> None:
        self.log(ActivityEventBuilder.signed_up(user_id, role))

    def log_signed_in(self, user_id: UUID) -> None:
        self.log(ActivityEventBuilder.signed_in(user_id))

    def log_sign_in_failed(self, error_message: str) -> None:
        self.log(ActivityEventBuilder.sign_in_failed(error_message))

    def log_signed_out(self, user_id: Optional[UUID]) -> None:
        self.log(ActivityEventBuilder.signed_out(user_id))

    def log_session_degraded(self, error_message: str) -> None:
        self.log(ActivityEventBuilder.session_degraded(error_message))

    def log_role_assigned(
        self,
        target_user_id: UUID,
        role: str,
        assigned_by: Optional[UUID],
    ) -> None:
        self.log(ActivityEventBuilder.role_assigned(target_user_id, role, assigned_by))

    def log_profile_updated(self, user_id: UUID) -> None:
        self.log(ActivityEventBuilder.profile_updated(user_id))

    def log_summary_computed(self, period_label: str, net_position: str) -> None:
        self.log(ActivityEventBuilder.summary_computed(period_label, net_position))

    def log_stale_summary_discarded(self, period_label: str, generation: int) -> None:
        self.log(ActivityEventBuilder.stale_summary_discarded(period_label, generation))

"""
Generic Record Workflow

One parametrized list/create/update/delete flow shared by every record
category. A CategoryDescriptor supplies the table, schemas and filter
rules; nothing here is specific to a category.

Every mutation runs in the same order:
1. Authorize  -> AuthorizationDenied
2. Validate   -> ValidationError
3. Persist    -> PersistenceError (logged, never retried)
"""

from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel

from ledgerbook.access import require_permission
from ledgerbook.activity import ActivityLogger
from ledgerbook.errors import AuthorizationDenied, UnsupportedOperation, ValidationError
from ledgerbook.models.categories import CategoryDescriptor
from ledgerbook.models.identity import Action, Session
from ledgerbook.models.records import Period
from ledgerbook.services.storage import (
    NotFoundError,
    PersistenceError,
    RecordStorageInterface,
    Row,
)
from ledgerbook.validation import RecordValidator


STORED_FIELDS = ("id", "created_by", "created_at")


def to_row(record: BaseModel) -> Row:
    """Dump a model to a backend-neutral row (strings for dates and amounts)."""
    return record.model_dump(mode="json")


class RecordWorkflow:
    """CRUD for one record category."""

    def __init__(
        self,
        descriptor: CategoryDescriptor,
        storage: RecordStorageInterface,
        validator: Optional[RecordValidator] = None,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self.descriptor = descriptor
        self._storage = storage
        self._validator = validator or RecordValidator()
        self._activity = activity_logger or ActivityLogger()

    @property
    def table(self) -> str:
        return self.descriptor.table

    def _to_record(self, row: Row) -> BaseModel:
        return self.descriptor.record_model.model_validate(row)

    def _authorize(self, session: Session, action: Action) -> None:
        try:
            require_permission(session, action, self.table)
        except AuthorizationDenied:
            self._activity.log_authorization_denied(
                category=self.table,
                action=action.value,
                role=session.role.value,
                user_id=session.user_id,
            )
            raise

    def _validate(self, session: Session, data: dict[str, Any]) -> BaseModel:
        try:
            return self._validator.check(self.descriptor, data)
        except ValidationError as e:
            self._activity.log_validation_failed(
                category=self.table,
                issues=[issue.model_dump() for issue in e.issues],
                user_id=session.user_id,
            )
            raise

    async def _call(self, operation: str, coro, record_id: Optional[UUID] = None):
        try:
            return await coro
        except PersistenceError as e:
            self._activity.log_persistence_failed(
                category=self.table,
                operation=operation,
                error_message=str(e),
                record_id=record_id,
            )
            raise

    async def list_records(self, period: Optional[Period] = None) -> list[BaseModel]:
        """
        List records, newest first.

        The period only restricts date-bounded categories (income, expense).

        Raises:
            PersistenceError: If the backend call fails
        """
        bounds = None
        if period is not None and self.descriptor.period_bounded:
            bounds = period.date_range()

        rows = await self._call(
            "list",
            self._storage.list_records(
                self.table,
                date_field=self.descriptor.date_field,
                date_from=bounds[0] if bounds else None,
                date_to=bounds[1] if bounds else None,
            ),
        )
        return [self._to_record(row) for row in rows]

    async def get(self, record_id: UUID) -> Optional[BaseModel]:
        row = await self._call("get", self._storage.get_record(self.table, record_id), record_id)
        return self._to_record(row) if row is not None else None

    async def create(self, session: Session, data: dict[str, Any]) -> BaseModel:
        """
        Validate and insert a new record.

        Raises:
            UnsupportedOperation: If the category has its own creation
                workflow (stock, see StockPurchaseWorkflow)
            AuthorizationDenied: If the role may not create
            ValidationError: If the data violates the schema
            PersistenceError: If the insert fails
        """
        if not self.descriptor.creatable:
            raise UnsupportedOperation(self.table, "create", "StockPurchaseWorkflow")
        return await self._create(session, data)

    async def _create(self, session: Session, data: dict[str, Any]) -> BaseModel:
        self._authorize(session, Action.CREATE)
        draft = self._validate(session, data)

        record = self.descriptor.record_model(
            **draft.model_dump(),
            created_by=session.user_id,
        )
        await self._call("insert", self._storage.insert_record(self.table, to_row(record)), record.id)

        self._activity.log_record_created(self.table, record.id, session.user_id)
        return record

    async def update(
        self,
        session: Session,
        record_id: UUID,
        patch: dict[str, Any],
    ) -> BaseModel:
        """
        Apply a partial edit.

        The patch is merged onto the stored record and the result is
        validated as a whole. Identity fields cannot be patched.

        Raises:
            AuthorizationDenied: If the role may not update
            NotFoundError: If the record doesn't exist
            ValidationError: If the merged record violates the schema
            PersistenceError: If the update fails
        """
        self._authorize(session, Action.UPDATE)

        current = await self.get(record_id)
        if current is None:
            raise NotFoundError(f"Record not found in '{self.table}': {record_id}")

        editable = {k: v for k, v in patch.items() if k not in STORED_FIELDS}
        merged = {**current.model_dump(exclude=set(STORED_FIELDS)), **editable}
        draft = self._validate(session, merged)

        row = await self._call(
            "update",
            self._storage.update_record(self.table, record_id, to_row(draft)),
            record_id,
        )

        self._activity.log_record_updated(
            self.table, record_id, session.user_id, sorted(editable)
        )
        return self._to_record(row)

    async def delete(self, session: Session, record_id: UUID) -> bool:
        """
        Delete a record.

        Returns:
            True if a record was deleted

        Raises:
            AuthorizationDenied: If the role may not delete
            PersistenceError: If the delete fails
        """
        self._authorize(session, Action.DELETE)

        deleted = await self._call(
            "delete",
            self._storage.delete_record(self.table, record_id),
            record_id,
        )
        if deleted:
            self._activity.log_record_deleted(self.table, record_id, session.user_id)
        return deleted

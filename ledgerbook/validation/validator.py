"""
Two-Stage Record Validation

STAGE 1 - SCHEMA VALIDATION:
- Required field presence
- Type coercion (amounts, dates, statuses)
- Length and range constraints from the record schemas
Errors here block submission.

STAGE 2 - SEMANTIC VALIDATION:
- Dates far in the future
- Amounts above the configured sanity threshold
- Zero-priced stock
Only warnings: they are shown to the user but never block.

Stage 2 only runs when stage 1 passes.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ledgerbook.config import AppSettings, get_settings
from ledgerbook.errors import ValidationError
from ledgerbook.models.categories import CategoryDescriptor
from ledgerbook.models.validation import ValidationIssue, ValidationResult


_ISSUE_TYPES = {
    "missing": "missing",
    "string_too_short": "missing",
    "string_too_long": "too_long",
    "greater_than": "invalid_value",
    "greater_than_equal": "invalid_value",
    "enum": "invalid_choice",
    "literal_error": "invalid_choice",
}


def issues_from_pydantic(error: PydanticValidationError) -> list[ValidationIssue]:
    """Convert pydantic errors to field-level issues."""
    issues = []
    for err in error.errors():
        field = ".".join(str(part) for part in err["loc"]) or "record"
        issues.append(ValidationIssue(
            field=field,
            issue_type=_ISSUE_TYPES.get(err["type"], "invalid_format"),
            message=f"{field.replace('_', ' ').capitalize()}: {err['msg']}",
            severity="error",
        ))
    return issues


class RecordValidator:
    """Validates form data for any record category."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _validate_schema(
        self,
        descriptor: CategoryDescriptor,
        data: dict[str, Any],
    ) -> tuple[Optional[BaseModel], list[ValidationIssue]]:
        try:
            return descriptor.draft_model.model_validate(data), []
        except PydanticValidationError as e:
            return None, issues_from_pydantic(e)

    def _validate_semantic(
        self,
        descriptor: CategoryDescriptor,
        draft: BaseModel,
    ) -> list[ValidationIssue]:
        issues = []
        today = date.today()

        record_date = getattr(draft, descriptor.date_field)
        max_future_date = today + timedelta(days=self._settings.future_date_tolerance_days)
        if record_date > max_future_date:
            issues.append(ValidationIssue(
                field=descriptor.date_field,
                issue_type="future_date",
                message=f"Date ({record_date}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        max_amount = Decimal(str(self._settings.max_record_amount))
        amount = getattr(draft, "amount", None)
        if amount is None:
            amount = getattr(draft, "total_cost", None)
        if amount is not None and amount > max_amount:
            issues.append(ValidationIssue(
                field="amount" if hasattr(draft, "amount") else "purchase_price",
                issue_type="suspicious_value",
                message=f"Amount ({amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        if getattr(draft, "purchase_price", None) == 0:
            issues.append(ValidationIssue(
                field="purchase_price",
                issue_type="suspicious_value",
                message="Purchase price is zero; no expense will be counted",
                severity="warning",
            ))

        return issues

    def validate(
        self,
        descriptor: CategoryDescriptor,
        data: dict[str, Any],
    ) -> tuple[ValidationResult, Optional[BaseModel]]:
        """
        Run the full pipeline.

        Returns:
            (result, draft) where draft is None when schema validation failed
        """
        draft, issues = self._validate_schema(descriptor, data)
        schema_valid = draft is not None

        if schema_valid:
            issues.extend(self._validate_semantic(descriptor, draft))

        result = ValidationResult(
            category=descriptor.table,
            schema_valid=schema_valid,
            issues=issues,
        )
        return result, draft

    def check(self, descriptor: CategoryDescriptor, data: dict[str, Any]) -> BaseModel:
        """
        Validate and return the draft.

        Raises:
            ValidationError: If any error-level issue was found
        """
        result, draft = self.validate(descriptor, data)
        if result.has_errors or draft is None:
            raise ValidationError(descriptor.table, result.issues)
        return draft

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Short text shown next to the form."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []

        if result.has_errors:
            lines.append("Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)

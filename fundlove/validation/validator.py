"""
Input Validation

Every user action is validated before anything is sent to the backend.
A result with errors blocks the action; the dashboard keeps the triggering
control disabled and shows the messages.

IMPORTANT: Validation NEVER silently fixes input.
"12.5" is not rounded, a negative amount is not made positive.
"""

from typing import Any, Optional

from fundlove.config import AppSettings, get_settings
from fundlove.models.ledger import (
    TransactionKind,
    ValidationIssue,
    ValidationResult,
)


class ValidationFailedError(Exception):
    """User input failed validation; the action was not dispatched."""

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__("; ".join(result.error_messages) or "Invalid input")


def _is_integer(value: Any) -> bool:
    # bool is an int subclass but never a valid amount
    return isinstance(value, int) and not isinstance(value, bool)


class InputValidator:
    """Validates transaction, target and login input."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _check_amount(
        self,
        field: str,
        label: str,
        value: Any,
        issues: list[ValidationIssue],
    ) -> bool:
        """Shared positive-integer check. Returns True if the value passed."""
        if value is None or value == "":
            issues.append(ValidationIssue(
                field=field,
                issue_type="missing",
                message=f"{label} is required",
                severity="error",
            ))
            return False
        if not _is_integer(value):
            issues.append(ValidationIssue(
                field=field,
                issue_type="not_numeric",
                message=f"{label} must be a whole number",
                severity="error",
            ))
            return False
        if value <= 0:
            issues.append(ValidationIssue(
                field=field,
                issue_type="not_positive",
                message=f"{label} must be greater than zero",
                severity="error",
            ))
            return False
        return True

    def validate_transaction(
        self,
        kind: Any,
        amount: Any,
        balance: Optional[int] = None,
    ) -> ValidationResult:
        """
        Validate a deposit or withdrawal.

        Args:
            kind: TransactionKind or its string value
            amount: Amount in minor units
            balance: Current balance. When given, a withdrawal larger than
                     the balance is rejected. Pass None for edits.
        """
        issues = []

        try:
            kind = TransactionKind(kind)
        except ValueError:
            issues.append(ValidationIssue(
                field="kind",
                issue_type="invalid_value",
                message="Choose either deposit or withdraw",
                severity="error",
            ))
            kind = None

        if self._check_amount("amount", "Amount", amount, issues):
            if amount > self._settings.max_transaction_amount:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="exceeds_maximum",
                    message="Amount is larger than any single transaction allowed",
                    severity="error",
                ))
            elif (
                kind == TransactionKind.WITHDRAW
                and balance is not None
                and amount > balance
            ):
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="exceeds_balance",
                    message="Withdrawal amount exceeds the current balance",
                    severity="error",
                ))

        return ValidationResult(issues=issues)

    def validate_target(self, target_amount: Any, target_months: Any) -> ValidationResult:
        """Validate a savings target and its duration."""
        issues = []
        self._check_amount("target_amount", "Target amount", target_amount, issues)
        self._check_amount("target_months", "Duration in months", target_months, issues)
        return ValidationResult(issues=issues)

    def validate_profile_selection(self, profile_id: Any) -> ValidationResult:
        """A login needs a selected profile."""
        issues = []
        if not isinstance(profile_id, str) or not profile_id.strip():
            issues.append(ValidationIssue(
                field="profile_id",
                issue_type="missing",
                message="Select a profile first",
                severity="error",
            ))
        return ValidationResult(issues=issues)

    @staticmethod
    def raise_for_errors(result: ValidationResult) -> None:
        if result.has_errors:
            raise ValidationFailedError(result)

    @staticmethod
    def get_user_friendly_summary(result: ValidationResult) -> str:
        """One line per error, suitable for showing under a form."""
        if result.is_valid:
            return ""
        return "\n".join(result.error_messages)

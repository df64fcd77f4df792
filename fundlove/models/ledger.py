"""
Core Data Models for FundLove

These models define the strict schemas for all data flowing between the
data backend, the ledger/target derivations and the dashboard.
They are designed to:
1. Reject malformed amounts before anything is sent or summed
2. Provide clear validation error messages
3. Be serializable for the session cache and structured logs

DESIGN DECISION: Amounts are integers in the minor currency unit and are
validated in strict mode. "500" or 5.5 is an input error, not a value to
coerce.
"""

from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Annotated, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


PositiveAmount = Annotated[
    int,
    Field(gt=0, strict=True, description="Amount in the minor currency unit"),
]


# =============================================================================
# ENUMS
# =============================================================================

class TransactionKind(str, Enum):
    """Direction of a ledger entry."""
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


# =============================================================================
# PROFILES
# =============================================================================

class Profile(BaseModel):
    """
    A user identity within the shared ledger.

    Profiles are created out-of-band in the backend and are read-only
    from the client's point of view.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque unique key assigned by the backend"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    color: str = Field(
        default="",
        max_length=100,
        description="Color token used for the avatar badge"
    )
    avatar: Optional[str] = Field(
        default=None,
        description="Avatar image URL if the profile has one"
    )

    @property
    def initial(self) -> str:
        return self.name[:1].upper()


class OwnerDisplay(BaseModel):
    """Owner fields joined onto a transaction for display."""
    model_config = ConfigDict(frozen=True)

    name: str
    color: str = ""


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(BaseModel):
    """
    A single deposit or withdrawal.

    Mutable (kind/amount/note) and deletable only by its owner.
    INVARIANT: amount > 0.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(..., min_length=1)
    owner_id: str = Field(
        ...,
        min_length=1,
        description="Profile id of the owner"
    )
    kind: TransactionKind
    amount: PositiveAmount
    note: Optional[str] = Field(
        default=None,
        max_length=500,
    )
    created_at: datetime
    owner: Optional[OwnerDisplay] = Field(
        default=None,
        description="Owner display fields, None if the owner row is gone"
    )

    @field_validator('note')
    @classmethod
    def empty_note_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @property
    def signed_amount(self) -> int:
        """Amount with the sign it contributes to the balance."""
        return self.amount if self.kind == TransactionKind.DEPOSIT else -self.amount

    @property
    def owner_name(self) -> str:
        return self.owner.name if self.owner else "Unknown"


class TransactionPatch(BaseModel):
    """
    Fields an owner may change on an existing transaction.

    Only explicitly set fields are applied; the id and owner are never
    part of a patch.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    kind: Optional[TransactionKind] = None
    amount: Optional[PositiveAmount] = None
    note: Optional[str] = Field(default=None, max_length=500)

    @field_validator('note')
    @classmethod
    def empty_note_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    def changes(self) -> dict:
        """The fields that were explicitly set, ready to apply."""
        return self.model_dump(exclude_unset=True)


# =============================================================================
# TARGETS
# =============================================================================

class Target(BaseModel):
    """
    A savings goal: an amount to reach within a number of months.

    The start date is reset every time the goal is edited.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    owner_id: str = Field(..., min_length=1)
    target_amount: PositiveAmount
    target_months: Annotated[int, Field(gt=0, strict=True)]
    start_date: date
    updated_at: datetime


class TargetPatch(BaseModel):
    """Full replacement of the editable target fields."""
    model_config = ConfigDict(extra="forbid")

    target_amount: PositiveAmount
    target_months: Annotated[int, Field(gt=0, strict=True)]
    start_date: date
    updated_at: datetime


# =============================================================================
# SESSION
# =============================================================================

class SessionRecord(BaseModel):
    """
    A locally cached login.

    Valid for a fixed window after establishment, and only while the
    referenced profile still exists in the backend.
    """

    profile: Profile
    established_at: datetime

    @field_validator('established_at')
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def is_expired(self, now: datetime, ttl: timedelta) -> bool:
        return now - self.established_at >= ttl


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'not_positive', 'exceeds_balance')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Result of validating user input before it is dispatched."""

    validated_at: datetime = Field(default_factory=utc_now)
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def error_messages(self) -> list[str]:
        return [i.message for i in self.issues if i.severity == "error"]

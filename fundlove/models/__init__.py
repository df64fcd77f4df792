"""
Data Models Package

This package contains all Pydantic models used in FundLove.
All data flowing through the system must conform to these schemas.
"""

from fundlove.models.ledger import (
    OwnerDisplay,
    Profile,
    SessionRecord,
    Target,
    TargetPatch,
    Transaction,
    TransactionKind,
    TransactionPatch,
    ValidationIssue,
    ValidationResult,
    utc_now,
)
from fundlove.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)

__all__ = [
    # Ledger models
    "OwnerDisplay",
    "Profile",
    "SessionRecord",
    "Target",
    "TargetPatch",
    "Transaction",
    "TransactionKind",
    "TransactionPatch",
    "ValidationIssue",
    "ValidationResult",
    "utc_now",
    # Activity models
    "ActivityEvent",
    "ActivityEventBuilder",
    "ActivityEventType",
    "ActivitySeverity",
]

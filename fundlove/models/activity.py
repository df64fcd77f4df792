"""
Activity Models for FundLove

Every significant action (login, ledger write, target change, backend
failure) is described by an ActivityEvent and written to the structured
local log.

DESIGN DECISION: Activity events are log records only. They are never
written back to the data backend; the ledger rows themselves are the
only history the app keeps.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from fundlove.models.ledger import utc_now


class ActivityEventType(str, Enum):
    """Types of events we log."""
    # Session lifecycle
    SESSION_RESTORED = "session_restored"
    SESSION_EXPIRED = "session_expired"
    SESSION_DISCARDED = "session_discarded"
    USER_LOGGED_IN = "user_logged_in"
    LOGIN_FAILED = "login_failed"
    USER_LOGGED_OUT = "user_logged_out"

    # Ledger writes
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"

    # Target
    TARGET_SAVED = "target_saved"
    TARGET_DEFAULTED = "target_defaulted"

    # Rejections and failures
    ACTION_BLOCKED = "action_blocked"
    GATEWAY_READ_FAILED = "gateway_read_failed"
    GATEWAY_WRITE_FAILED = "gateway_write_failed"


class ActivitySeverity(str, Enum):
    """Severity level for activity events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ActivityEvent(BaseModel):
    """A single logged event."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=utc_now)

    event_type: ActivityEventType
    severity: ActivitySeverity = ActivitySeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'target', 'profile')"
    )
    entity_id: Optional[str] = None

    # Who did it?
    actor_id: Optional[str] = Field(
        default=None,
        description="Profile id of the acting user, if any"
    )

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
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "actor_id": self.actor_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class ActivityEventBuilder:
    """
    Helper class to build activity events with common patterns.

    Usage:
        event = ActivityEventBuilder.transaction_deleted(transaction_id, actor_id)
        event = ActivityEventBuilder.session_expired(profile_id)
    """

    @staticmethod
    def session_restored(profile_id: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SESSION_RESTORED,
            entity_type="profile",
            entity_id=profile_id,
            actor_id=profile_id,
            description="Cached session restored",
        )

    @staticmethod
    def session_expired(profile_id: Optional[str]) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SESSION_EXPIRED,
            entity_type="profile",
            entity_id=profile_id,
            description="Cached session expired",
        )

    @staticmethod
    def session_discarded(profile_id: Optional[str], reason: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SESSION_DISCARDED,
            severity=ActivitySeverity.WARNING,
            entity_type="profile",
            entity_id=profile_id,
            description=f"Cached session discarded: {reason}",
            details={"reason": reason},
        )

    @staticmethod
    def user_logged_in(profile_id: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.USER_LOGGED_IN,
            entity_type="profile",
            entity_id=profile_id,
            actor_id=profile_id,
            description="User logged in",
        )

    @staticmethod
    def login_failed(profile_id: str, reason: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.LOGIN_FAILED,
            severity=ActivitySeverity.WARNING,
            entity_type="profile",
            entity_id=profile_id,
            description="Login failed",
            error_message=reason,
        )

    @staticmethod
    def user_logged_out(profile_id: Optional[str]) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.USER_LOGGED_OUT,
            entity_type="profile",
            entity_id=profile_id,
            actor_id=profile_id,
            description="User logged out",
        )

    @staticmethod
    def transaction_added(
        transaction_id: str,
        kind: str,
        amount: int,
        actor_id: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            actor_id=actor_id,
            description=f"{kind.capitalize()} of {amount} recorded",
            details={"kind": kind, "amount": amount},
        )

    @staticmethod
    def transaction_updated(
        transaction_id: str,
        changes: dict,
        actor_id: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=transaction_id,
            actor_id=actor_id,
            description="Transaction updated",
            details={"changes": changes},
        )

    @staticmethod
    def transaction_deleted(transaction_id: str, actor_id: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            actor_id=actor_id,
            description="Transaction deleted",
        )

    @staticmethod
    def target_saved(
        target_id: Optional[str],
        target_amount: int,
        target_months: int,
        actor_id: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TARGET_SAVED,
            entity_type="target",
            entity_id=target_id,
            actor_id=actor_id,
            description=f"Target set to {target_amount} over {target_months} months",
            details={
                "target_amount": target_amount,
                "target_months": target_months,
            },
        )

    @staticmethod
    def target_defaulted(reason: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TARGET_DEFAULTED,
            entity_type="target",
            description="Using default target",
            details={"reason": reason},
        )

    @staticmethod
    def action_blocked(
        action: str,
        messages: list[str],
        actor_id: Optional[str],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ACTION_BLOCKED,
            severity=ActivitySeverity.WARNING,
            actor_id=actor_id,
            description=f"{action} blocked before dispatch",
            details={"action": action, "messages": messages},
        )

    @staticmethod
    def gateway_read_failed(resource: str, error_message: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.GATEWAY_READ_FAILED,
            severity=ActivitySeverity.ERROR,
            entity_type=resource,
            description=f"Failed to read {resource}",
            error_message=error_message,
        )

    @staticmethod
    def gateway_write_failed(
        action: str,
        error_message: str,
        actor_id: Optional[str],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.GATEWAY_WRITE_FAILED,
            severity=ActivitySeverity.ERROR,
            actor_id=actor_id,
            description=f"{action} failed at the data backend",
            details={"action": action},
            error_message=error_message,
        )

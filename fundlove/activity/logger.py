"""
Activity Logger

DESIGN DECISION: Every significant action is written to a structured local
log. This gives:
1. Debugging capability when the backend misbehaves
2. A visible record of blocked and failed actions
3. One place where read failures are reported instead of swallowed

Events stay in the local log; nothing is written back to the backend.
"""

from collections import deque
from typing import Optional

import structlog

from fundlove.models.activity import (
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


class ActivityLogger:
    """Central activity logging service."""

    def __init__(self, history_size: int = 200):
        self._logger = structlog.get_logger("fundlove.activity")
        self._history: deque[ActivityEvent] = deque(maxlen=history_size)

    @property
    def history(self) -> list[ActivityEvent]:
        """Most recent events logged by this instance, oldest first."""
        return list(self._history)

    def log(self, event: ActivityEvent) -> None:
        """Log an activity event at the level matching its severity."""
        self._history.append(event)
        log_dict = event.to_log_dict()

        if event.severity == ActivitySeverity.ERROR:
            self._logger.error("activity_event", **log_dict)
        elif event.severity == ActivitySeverity.WARNING:
            self._logger.warning("activity_event", **log_dict)
        elif event.severity == ActivitySeverity.DEBUG:
            self._logger.debug("activity_event", **log_dict)
        else:
            self._logger.info("activity_event", **log_dict)

    def log_session_restored(self, profile_id: str) -> None:
        self.log(ActivityEventBuilder.session_restored(profile_id))

    def log_session_expired(self, profile_id: Optional[str]) -> None:
        self.log(ActivityEventBuilder.session_expired(profile_id))

    def log_session_discarded(self, profile_id: Optional[str], reason: str) -> None:
        self.log(ActivityEventBuilder.session_discarded(profile_id, reason))

    def log_user_logged_in(self, profile_id: str) -> None:
        self.log(ActivityEventBuilder.user_logged_in(profile_id))

    def log_login_failed(self, profile_id: str, reason: str) -> None:
        self.log(ActivityEventBuilder.login_failed(profile_id, reason))

    def log_user_logged_out(self, profile_id: Optional[str]) -> None:
        self.log(ActivityEventBuilder.user_logged_out(profile_id))

    def log_transaction_added(
        self,
        transaction_id: str,
        kind: str,
        amount: int,
        actor_id: str,
    ) -> None:
        self.log(ActivityEventBuilder.transaction_added(
            transaction_id=transaction_id,
            kind=kind,
            amount=amount,
            actor_id=actor_id,
        ))

    def log_transaction_updated(
        self,
        transaction_id: str,
        changes: dict,
        actor_id: str,
    ) -> None:
        self.log(ActivityEventBuilder.transaction_updated(
            transaction_id=transaction_id,
            changes=changes,
            actor_id=actor_id,
        ))

    def log_transaction_deleted(self, transaction_id: str, actor_id: str) -> None:
        self.log(ActivityEventBuilder.transaction_deleted(transaction_id, actor_id))

    def log_target_saved(
        self,
        target_id: Optional[str],
        target_amount: int,
        target_months: int,
        actor_id: str,
    ) -> None:
        self.log(ActivityEventBuilder.target_saved(
            target_id=target_id,
            target_amount=target_amount,
            target_months=target_months,
            actor_id=actor_id,
        ))

    def log_target_defaulted(self, reason: str) -> None:
        self.log(ActivityEventBuilder.target_defaulted(reason))

    def log_action_blocked(
        self,
        action: str,
        messages: list[str],
        actor_id: Optional[str] = None,
    ) -> None:
        self.log(ActivityEventBuilder.action_blocked(action, messages, actor_id))

    def log_gateway_read_failed(self, resource: str, error_message: str) -> None:
        self.log(ActivityEventBuilder.gateway_read_failed(resource, error_message))

    def log_gateway_write_failed(
        self,
        action: str,
        error_message: str,
        actor_id: Optional[str] = None,
    ) -> None:
        self.log(ActivityEventBuilder.gateway_write_failed(
            action=action,
            error_message=error_message,
            actor_id=actor_id,
        ))

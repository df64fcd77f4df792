"""
Savings Controller

This module ties together the gateway, the ledger engine and the target
tracker for one logged-in profile, and defines the dashboard flows:
1. Refresh (fetch transactions + target -> derive -> publish)
2. Add / edit / delete a transaction
3. Save target settings

DESIGN DECISION: The controller owns the only mutable application state.
The view reads frozen snapshots and never changes state directly.

Every mutation follows the same cycle:
- Validate input; invalid input never reaches the backend
- Check ownership for edits and deletes
- Dispatch the write and wait for it
- Re-fetch and re-derive; the balance is never updated ahead of the backend

A failed write leaves the previous state untouched and is reported as a
failed ActionOutcome with a message the user can read. Nothing is retried.
"""

from datetime import date, timedelta
from typing import Callable, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field

from fundlove.activity import ActivityLogger
from fundlove.config import AppSettings, get_settings
from fundlove.ledger import (
    LedgerView,
    TargetProgress,
    build_view,
    compute_progress,
    ensure_owner,
    find,
    is_owner,
    restart_window,
)
from fundlove.models.ledger import (
    Profile,
    Target,
    Transaction,
    TransactionKind,
    TransactionPatch,
    ValidationIssue,
    ValidationResult,
    utc_now,
)
from fundlove.services.gateway import (
    AuthorizationMismatchError,
    DataGatewayInterface,
    GatewayError,
    GoogleSheetsClient,
    GoogleSheetsDataGateway,
    InMemoryDataGateway,
    NotFoundError,
)
from fundlove.session import FileSessionCache, SessionCacheInterface, SessionManager
from fundlove.validation import InputValidator


logger = structlog.get_logger(__name__)


class ActionOutcome(BaseModel):
    """Result of a user-triggered mutation."""
    model_config = ConfigDict(frozen=True)

    success: bool
    message: str = ""
    issues: tuple[ValidationIssue, ...] = ()

    @classmethod
    def ok(cls, message: str = "") -> "ActionOutcome":
        return cls(success=True, message=message)

    @classmethod
    def blocked(cls, result: ValidationResult) -> "ActionOutcome":
        return cls(
            success=False,
            message="\n".join(result.error_messages),
            issues=tuple(result.issues),
        )

    @classmethod
    def failed(cls, message: str) -> "ActionOutcome":
        return cls(success=False, message=message)


class DashboardSnapshot(BaseModel):
    """Read-only view of the application state."""
    model_config = ConfigDict(frozen=True)

    profile: Profile
    ledger: LedgerView
    target: Optional[Target] = Field(
        default=None,
        description="The stored target row, None while the default is in use"
    )
    progress: TargetProgress
    is_loading: bool = False
    busy: bool = False
    last_error: Optional[str] = None

    @property
    def balance(self) -> int:
        return self.ledger.balance

    @property
    def target_is_default(self) -> bool:
        return self.target is None

    def can_modify(self, transaction: Transaction) -> bool:
        return is_owner(transaction, self.profile.id)


class SavingsController:
    """Dashboard state and operations for one profile."""

    def __init__(
        self,
        gateway: DataGatewayInterface,
        profile: Profile,
        settings: Optional[AppSettings] = None,
        activity_logger: Optional[ActivityLogger] = None,
        validator: Optional[InputValidator] = None,
        clock: Callable = utc_now,
    ):
        self._gateway = gateway
        self._profile = profile
        self._settings = settings or get_settings().app
        self._activity = activity_logger or ActivityLogger()
        self._validator = validator or InputValidator(self._settings)
        self._clock = clock
        self._subscribers: list[Callable[[DashboardSnapshot], None]] = []

        # Application state; changed only by the operations below
        self._transactions: list[Transaction] = []
        self._target: Optional[Target] = None
        self._default_start: date = self._today()
        self._is_loading = False
        self._busy = False
        self._last_error: Optional[str] = None

    def _today(self) -> date:
        return self._clock().date()

    @property
    def profile(self) -> Profile:
        return self._profile

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    def snapshot(self) -> DashboardSnapshot:
        ledger = build_view(
            self._transactions,
            self._settings.recent_transactions_limit,
        )
        if self._target is not None:
            amount = self._target.target_amount
            months = self._target.target_months
            start = self._target.start_date
        else:
            amount = self._settings.default_target_amount
            months = self._settings.default_target_months
            start = self._default_start

        progress = compute_progress(
            target_amount=amount,
            target_months=months,
            start_date=start,
            balance=ledger.balance,
            today=self._today(),
        )
        return DashboardSnapshot(
            profile=self._profile,
            ledger=ledger,
            target=self._target,
            progress=progress,
            is_loading=self._is_loading,
            busy=self._busy,
            last_error=self._last_error,
        )

    def subscribe(
        self,
        callback: Callable[[DashboardSnapshot], None],
    ) -> Callable[[], None]:
        """
        Call `callback` with a fresh snapshot after every state change.

        Returns a function that removes the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self) -> None:
        if not self._subscribers:
            return
        snapshot = self.snapshot()
        for callback in list(self._subscribers):
            callback(snapshot)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def refresh(self) -> DashboardSnapshot:
        """
        Re-fetch transactions and the active target, then re-derive.

        A failed transaction read keeps the previous list. A missing or
        unreadable target falls back to the configured default.
        """
        self._is_loading = True
        self._publish()
        errors = []

        try:
            self._transactions = await self._gateway.list_transactions()
        except GatewayError as e:
            self._activity.log_gateway_read_failed("transactions", str(e))
            errors.append("Could not load transactions.")

        try:
            self._target = await self._gateway.get_active_target()
        except NotFoundError:
            self._use_default_target("no target row")
        except GatewayError as e:
            self._activity.log_gateway_read_failed("targets", str(e))
            self._use_default_target("target read failed")
            errors.append("Could not load the savings target.")

        self._last_error = " ".join(errors) or None
        self._is_loading = False
        self._publish()
        return self.snapshot()

    def _use_default_target(self, reason: str) -> None:
        self._target = None
        self._default_start = self._today()
        self._activity.log_target_defaulted(reason)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def _block(self, action: str, result: ValidationResult) -> ActionOutcome:
        self._activity.log_action_blocked(action, result.error_messages, self._profile.id)
        return ActionOutcome.blocked(result)

    async def _dispatch(self, action: str, write) -> Optional[ActionOutcome]:
        """
        Run one write and the refresh that follows it.

        Returns a failed outcome if the write failed, None on success.
        """
        self._busy = True
        self._publish()
        try:
            try:
                await write()
            except AuthorizationMismatchError as e:
                self._activity.log_gateway_write_failed(action, str(e), self._profile.id)
                return ActionOutcome.failed(
                    "You can only change transactions you created."
                )
            except NotFoundError as e:
                self._activity.log_gateway_write_failed(action, str(e), self._profile.id)
                return ActionOutcome.failed(
                    f"Failed to {action}: the record no longer exists."
                )
            except GatewayError as e:
                self._activity.log_gateway_write_failed(action, str(e), self._profile.id)
                return ActionOutcome.failed(f"Failed to {action}: {e}")

            await self.refresh()
            return None
        finally:
            self._busy = False
            self._publish()

    async def add_transaction(
        self,
        kind: TransactionKind | str,
        amount: int,
        note: Optional[str] = None,
    ) -> ActionOutcome:
        """Record a deposit or a withdrawal for the current profile."""
        balance = build_view(self._transactions).balance
        result = self._validator.validate_transaction(kind, amount, balance=balance)
        if result.has_errors:
            return self._block("add transaction", result)

        kind = TransactionKind(kind)
        created = {}

        async def write():
            created["transaction"] = await self._gateway.insert_transaction(
                owner_id=self._profile.id,
                kind=kind,
                amount=amount,
                note=note or None,
            )

        failure = await self._dispatch("add transaction", write)
        if failure:
            return failure

        self._activity.log_transaction_added(
            transaction_id=created["transaction"].id,
            kind=kind.value,
            amount=amount,
            actor_id=self._profile.id,
        )
        return ActionOutcome.ok("Transaction saved.")

    async def edit_transaction(
        self,
        transaction_id: str,
        kind: TransactionKind | str,
        amount: int,
        note: Optional[str] = None,
    ) -> ActionOutcome:
        """Change kind, amount and note of one of the profile's transactions."""
        result = self._validator.validate_transaction(kind, amount)
        if result.has_errors:
            return self._block("edit transaction", result)

        try:
            existing = find(self._transactions, transaction_id)
            ensure_owner(existing, self._profile.id)
        except NotFoundError:
            return ActionOutcome.failed("That transaction no longer exists.")
        except AuthorizationMismatchError as e:
            self._activity.log_action_blocked("edit transaction", [str(e)], self._profile.id)
            return ActionOutcome.failed("You can only change transactions you created.")

        patch = TransactionPatch(kind=TransactionKind(kind), amount=amount, note=note or "")

        async def write():
            await self._gateway.update_transaction(
                transaction_id=existing.id,
                owner_id=self._profile.id,
                patch=patch,
            )

        failure = await self._dispatch("edit transaction", write)
        if failure:
            return failure

        self._activity.log_transaction_updated(
            transaction_id=existing.id,
            changes=patch.model_dump(mode="json", exclude_unset=True),
            actor_id=self._profile.id,
        )
        return ActionOutcome.ok("Transaction updated.")

    async def delete_transaction(self, transaction_id: str) -> ActionOutcome:
        """Delete one of the profile's transactions."""
        try:
            existing = find(self._transactions, transaction_id)
            ensure_owner(existing, self._profile.id)
        except NotFoundError:
            return ActionOutcome.failed("That transaction no longer exists.")
        except AuthorizationMismatchError as e:
            self._activity.log_action_blocked("delete transaction", [str(e)], self._profile.id)
            return ActionOutcome.failed("You can only delete transactions you created.")

        async def write():
            await self._gateway.delete_transaction(
                transaction_id=existing.id,
                owner_id=self._profile.id,
            )

        failure = await self._dispatch("delete transaction", write)
        if failure:
            return failure

        self._activity.log_transaction_deleted(existing.id, self._profile.id)
        return ActionOutcome.ok("Transaction deleted.")

    async def save_target(self, target_amount: int, target_months: int) -> ActionOutcome:
        """
        Save the savings target.

        Updates the active target in place, or creates it on first save.
        Either way the countdown restarts today.
        """
        result = self._validator.validate_target(target_amount, target_months)
        if result.has_errors:
            return self._block("save target", result)

        patch = restart_window(target_amount, target_months, now=self._clock())
        current = self._target
        saved = {"id": current.id if current else None}

        async def write():
            if current is not None:
                await self._gateway.update_target(current.id, patch)
            else:
                created = await self._gateway.insert_target(
                    owner_id=self._profile.id,
                    target_amount=patch.target_amount,
                    target_months=patch.target_months,
                    start_date=patch.start_date,
                )
                saved["id"] = created.id

        failure = await self._dispatch("save target", write)
        if failure:
            return failure

        self._activity.log_target_saved(
            target_id=saved["id"],
            target_amount=target_amount,
            target_months=target_months,
            actor_id=self._profile.id,
        )
        return ActionOutcome.ok("Target saved.")


# =============================================================================
# FACTORY
# =============================================================================

DEMO_PROFILES = [
    Profile(id="demo-1", name="Opang", color="from-blue-500 to-blue-600"),
    Profile(id="demo-2", name="Lia", color="from-pink-500 to-pink-600"),
]


def create_app_components(
    use_storage: bool = True,
) -> tuple[DataGatewayInterface, ActivityLogger]:
    """
    Factory function to create the components shared by every client.

    Args:
        use_storage: Whether to connect to Google Sheets. When False, or
                    when Sheets is not configured, an in-memory gateway
                    seeded with demo profiles is used instead.

    Returns:
        (gateway, activity_logger)
    """
    settings = get_settings()
    activity_logger = ActivityLogger()
    gateway: Optional[DataGatewayInterface] = None

    if use_storage:
        try:
            gateway = GoogleSheetsDataGateway(GoogleSheetsClient(settings.google_sheets))
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))

    if gateway is None:
        gateway = InMemoryDataGateway(DEMO_PROFILES)

    return gateway, activity_logger


def create_session_manager(
    gateway: DataGatewayInterface,
    cache: Optional[SessionCacheInterface] = None,
    activity_logger: Optional[ActivityLogger] = None,
) -> SessionManager:
    """
    Build the session manager for one client.

    A session manager holds the logged-in profile, so it must never be
    shared between clients. Pass a cache that belongs to the client; the
    file cache from settings is only the default for single-user runs.
    """
    session_settings = get_settings().session
    return SessionManager(
        gateway=gateway,
        cache=cache or FileSessionCache(session_settings.cache_path),
        ttl=timedelta(hours=session_settings.ttl_hours),
        activity_logger=activity_logger,
    )

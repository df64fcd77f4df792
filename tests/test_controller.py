"""
Tests for the savings controller.

Flows run against the in-memory gateway. Backend failures are simulated by
subclassing it, so every write path can be checked for leaving the state
untouched when the write fails.
"""

import asyncio
from datetime import date

import pytest

from fundlove.activity import ActivityLogger
from fundlove.controller import SavingsController
from fundlove.models.activity import ActivityEventType
from fundlove.models.ledger import TransactionKind
from fundlove.services.gateway import GatewayUnavailableError, InMemoryDataGateway


class FlakyGateway(InMemoryDataGateway):
    """In-memory gateway with switchable failures."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fail_writes = False
        self.fail_transaction_reads = False
        self.fail_target_reads = False

    async def insert_transaction(self, *args, **kwargs):
        if self.fail_writes:
            raise GatewayUnavailableError("connection reset")
        return await super().insert_transaction(*args, **kwargs)

    async def update_transaction(self, *args, **kwargs):
        if self.fail_writes:
            raise GatewayUnavailableError("connection reset")
        return await super().update_transaction(*args, **kwargs)

    async def delete_transaction(self, *args, **kwargs):
        if self.fail_writes:
            raise GatewayUnavailableError("connection reset")
        return await super().delete_transaction(*args, **kwargs)

    async def list_transactions(self):
        if self.fail_transaction_reads:
            raise GatewayUnavailableError("timeout")
        return await super().list_transactions()

    async def get_active_target(self):
        if self.fail_target_reads:
            raise GatewayUnavailableError("timeout")
        return await super().get_active_target()


@pytest.fixture
def flaky(alice, bob, clock):
    return FlakyGateway([alice, bob], clock=clock)


@pytest.fixture
def activity():
    return ActivityLogger()


@pytest.fixture
def controller(flaky, alice, app_settings, activity, clock):
    ctrl = SavingsController(
        gateway=flaky,
        profile=alice,
        settings=app_settings,
        activity_logger=activity,
        clock=clock,
    )
    asyncio.run(ctrl.refresh())
    return ctrl


def logged_types(activity):
    return [e.event_type for e in activity.history]


class TestRefresh:
    """Tests for loading the dashboard."""

    def test_default_target_without_row(self, controller, app_settings, clock):
        """Test that the configured default is used when no target exists."""
        snapshot = controller.snapshot()

        assert snapshot.target_is_default
        assert snapshot.progress.target_amount == app_settings.default_target_amount
        assert snapshot.progress.target_months == app_settings.default_target_months
        assert snapshot.progress.start_date == clock().date()
        assert snapshot.last_error is None

    def test_refresh_shows_other_profiles_new_deposits(self, controller, flaky, bob):
        """Test that a write made elsewhere appears only after a refresh."""
        asyncio.run(flaky.insert_transaction(bob.id, TransactionKind.DEPOSIT, 75000))
        assert controller.snapshot().balance == 0

        snapshot = asyncio.run(controller.refresh())

        assert snapshot.balance == 75000
        assert snapshot.ledger.recent[0].owner_name == "Bob"

    def test_other_profiles_transactions_count(self, controller, flaky, bob):
        """Test that the balance is shared across profiles."""
        asyncio.run(flaky.insert_transaction(bob.id, TransactionKind.DEPOSIT, 500000))
        asyncio.run(controller.refresh())
        asyncio.run(controller.add_transaction(TransactionKind.WITHDRAW, 100000))

        snapshot = controller.snapshot()
        assert snapshot.balance == 400000
        assert snapshot.ledger.total_count == 2
        assert snapshot.ledger.recent[1].owner_name == "Bob"

    def test_transaction_read_failure_keeps_previous_list(self, controller, flaky):
        """Test that a failed read shows an error and keeps the old data."""
        asyncio.run(controller.add_transaction(TransactionKind.DEPOSIT, 250000))
        flaky.fail_transaction_reads = True

        snapshot = asyncio.run(controller.refresh())

        assert snapshot.balance == 250000
        assert snapshot.last_error == "Could not load transactions."

    def test_target_read_failure_uses_default(self, controller, flaky, activity):
        """Test that an unreadable target falls back to the default."""
        asyncio.run(controller.save_target(2_000_000, 3))
        flaky.fail_target_reads = True

        snapshot = asyncio.run(controller.refresh())

        assert snapshot.target_is_default
        assert snapshot.last_error == "Could not load the savings target."
        assert ActivityEventType.GATEWAY_READ_FAILED in logged_types(activity)


class TestAddTransaction:
    """Tests for deposits and withdrawals."""

    def test_deposit_updates_balance(self, controller, activity):
        """Test that a deposit is stored and re-derived."""
        outcome = asyncio.run(controller.add_transaction("deposit", 500000, "Gaji"))

        snapshot = controller.snapshot()
        assert outcome.success
        assert outcome.message == "Transaction saved."
        assert snapshot.balance == 500000
        assert snapshot.ledger.recent[0].note == "Gaji"
        assert ActivityEventType.TRANSACTION_ADDED in logged_types(activity)

    def test_invalid_amount_is_not_sent(self, controller, flaky):
        """Test that a zero amount never reaches the backend."""
        outcome = asyncio.run(controller.add_transaction(TransactionKind.DEPOSIT, 0))

        assert not outcome.success
        assert outcome.issues[0].issue_type == "not_positive"
        assert asyncio.run(flaky.list_transactions()) == []

    def test_withdrawal_over_balance_is_blocked(self, controller, flaky):
        """Test that a withdrawal cannot exceed the balance."""
        asyncio.run(controller.add_transaction(TransactionKind.DEPOSIT, 100000))
        outcome = asyncio.run(controller.add_transaction(TransactionKind.WITHDRAW, 150000))

        assert not outcome.success
        assert "exceeds the current balance" in outcome.message
        assert controller.snapshot().balance == 100000
        assert len(asyncio.run(flaky.list_transactions())) == 1

    def test_write_failure_leaves_state_unchanged(self, controller, flaky, activity):
        """Test that a failed insert is reported and nothing changes."""
        asyncio.run(controller.add_transaction(TransactionKind.DEPOSIT, 100000))
        before = controller.snapshot()
        flaky.fail_writes = True

        outcome = asyncio.run(controller.add_transaction(TransactionKind.DEPOSIT, 50000))

        after = controller.snapshot()
        assert not outcome.success
        assert outcome.message.startswith("Failed to add transaction")
        assert after.balance == before.balance
        assert after.ledger == before.ledger
        assert after.busy is False
        assert ActivityEventType.GATEWAY_WRITE_FAILED in logged_types(activity)


class TestEditAndDelete:
    """Tests for editing and deleting transactions."""

    def test_edit_own_transaction(self, controller):
        """Test that the owner can change amount and note."""
        asyncio.run(controller.add_transaction(TransactionKind.DEPOSIT, 100000, "Awal"))
        txn = controller.snapshot().ledger.recent[0]

        outcome = asyncio.run(
            controller.edit_transaction(txn.id, TransactionKind.DEPOSIT, 300000, "")
        )

        updated = controller.snapshot().ledger.recent[0]
        assert outcome.success
        assert updated.id == txn.id
        assert updated.amount == 300000
        assert updated.note is None
        assert controller.snapshot().balance == 300000

    def test_edit_may_exceed_balance(self, controller):
        """Test that edits are not checked against the balance."""
        asyncio.run(controller.add_transaction(TransactionKind.DEPOSIT, 100000))
        txn = controller.snapshot().ledger.recent[0]

        outcome = asyncio.run(
            controller.edit_transaction(txn.id, TransactionKind.WITHDRAW, 100000)
        )

        assert outcome.success
        assert controller.snapshot().balance == -100000

    def test_edit_someone_elses_transaction(self, controller, flaky, bob):
        """Test that editing another profile's transaction is refused."""
        bobs = asyncio.run(flaky.insert_transaction(bob.id, TransactionKind.DEPOSIT, 500000))
        asyncio.run(controller.refresh())

        outcome = asyncio.run(
            controller.edit_transaction(bobs.id, TransactionKind.DEPOSIT, 1)
        )

        assert not outcome.success
        assert outcome.message == "You can only change transactions you created."
        assert controller.snapshot().balance == 500000
        assert asyncio.run(flaky.list_transactions())[0].amount == 500000

    def test_delete_someone_elses_transaction(self, controller, flaky, bob):
        """Test that deleting another profile's transaction is refused."""
        bobs = asyncio.run(flaky.insert_transaction(bob.id, TransactionKind.DEPOSIT, 500000))
        asyncio.run(controller.refresh())

        outcome = asyncio.run(controller.delete_transaction(bobs.id))

        assert not outcome.success
        assert outcome.message == "You can only delete transactions you created."
        assert controller.snapshot().balance == 500000

    def test_delete_own_transaction(self, controller):
        """Test that the owner can delete."""
        asyncio.run(controller.add_transaction(TransactionKind.DEPOSIT, 100000))
        txn = controller.snapshot().ledger.recent[0]

        outcome = asyncio.run(controller.delete_transaction(txn.id))

        assert outcome.success
        assert controller.snapshot().ledger.total_count == 0
        assert controller.snapshot().balance == 0

    def test_delete_unknown_transaction(self, controller):
        """Test deleting an id that is not in the ledger."""
        outcome = asyncio.run(controller.delete_transaction("missing"))
        assert not outcome.success
        assert outcome.message == "That transaction no longer exists."

    def test_failed_delete_keeps_transaction(self, controller, flaky):
        """Test that a failed delete leaves the row visible."""
        asyncio.run(controller.add_transaction(TransactionKind.DEPOSIT, 100000))
        txn = controller.snapshot().ledger.recent[0]
        flaky.fail_writes = True

        outcome = asyncio.run(controller.delete_transaction(txn.id))

        assert not outcome.success
        assert controller.snapshot().ledger.recent[0].id == txn.id


class TestSaveTarget:
    """Tests for saving the savings target."""

    def test_first_save_creates_target(self, controller, clock):
        """Test that the first save inserts a target row."""
        outcome = asyncio.run(controller.save_target(5_000_000, 12))

        snapshot = controller.snapshot()
        assert outcome.success
        assert not snapshot.target_is_default
        assert snapshot.progress.target_amount == 5_000_000
        assert snapshot.progress.start_date == clock().date()

    def test_second_save_updates_in_place(self, controller, flaky, clock):
        """Test that later saves update the same row and restart the window."""
        asyncio.run(controller.save_target(5_000_000, 12))
        first_id = controller.snapshot().target.id
        clock.advance(days=10)

        asyncio.run(controller.save_target(8_000_000, 6))

        target = controller.snapshot().target
        assert target.id == first_id
        assert target.target_amount == 8_000_000
        assert target.start_date == date(2024, 3, 11)
        assert len(flaky._targets) == 1

    def test_invalid_target_is_blocked(self, controller, flaky):
        """Test that a zero duration is rejected before sending."""
        outcome = asyncio.run(controller.save_target(5_000_000, 0))

        assert not outcome.success
        assert "Duration in months must be greater than zero" in outcome.message
        assert not flaky._targets


class TestSubscriptions:
    """Tests for snapshot subscriptions."""

    def test_subscribers_see_busy_then_idle(self, controller):
        """Test that a write publishes busy before the final snapshot."""
        seen = []
        controller.subscribe(lambda snap: seen.append(snap.busy))

        asyncio.run(controller.add_transaction(TransactionKind.DEPOSIT, 1000))

        assert True in seen
        assert seen[-1] is False

    def test_unsubscribe(self, controller):
        """Test that an unsubscribed callback is not called again."""
        seen = []
        unsubscribe = controller.subscribe(seen.append)
        unsubscribe()

        asyncio.run(controller.refresh())
        assert seen == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

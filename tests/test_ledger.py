"""
Tests for the ledger engine: balance, recent page and ownership checks.
"""

import pytest
from datetime import datetime, timedelta, timezone
from pydantic import ValidationError

from fundlove.ledger import (
    apply_patch,
    build_view,
    compute_balance,
    ensure_owner,
    find,
    is_owner,
    recent,
)
from fundlove.models.ledger import Transaction, TransactionKind, TransactionPatch
from fundlove.services.gateway import AuthorizationMismatchError, NotFoundError


BASE = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)


def txn(id, kind, amount, owner="user-alice", minutes=0, note=None):
    return Transaction(
        id=id,
        owner_id=owner,
        kind=kind,
        amount=amount,
        note=note,
        created_at=BASE + timedelta(minutes=minutes),
    )


@pytest.fixture
def sample():
    return [
        txn("t1", TransactionKind.DEPOSIT, 500000, minutes=1),
        txn("t2", TransactionKind.WITHDRAW, 100000, owner="user-bob", minutes=2),
    ]


class TestBalance:
    """Tests for balance derivation."""

    def test_deposits_minus_withdrawals(self, sample):
        """Test that a deposit and a withdrawal net out."""
        assert compute_balance(sample) == 400000

    def test_mixed_ledger(self):
        """Test two deposits and a withdrawal from different profiles."""
        ledger = [
            txn("t1", TransactionKind.DEPOSIT, 500000, minutes=1),
            txn("t2", TransactionKind.WITHDRAW, 200000, owner="user-bob", minutes=2),
            txn("t3", TransactionKind.DEPOSIT, 100000, minutes=3),
        ]
        assert compute_balance(ledger) == 400000

    def test_empty_ledger(self):
        """Test that no transactions means a zero balance."""
        assert compute_balance([]) == 0

    def test_balance_is_order_independent(self, sample):
        """Test that list order does not change the balance."""
        assert compute_balance(reversed(sample)) == compute_balance(sample)

    def test_balance_can_go_negative(self):
        """Test that the balance is not clamped at zero."""
        ledger = [txn("t1", TransactionKind.WITHDRAW, 100)]
        assert compute_balance(ledger) == -100


class TestRecentPage:
    """Tests for the displayed page of transactions."""

    def test_recent_is_newest_first(self, sample):
        """Test that the newest transaction is listed first."""
        assert [t.id for t in recent(sample)] == ["t2", "t1"]

    def test_view_balance_ignores_truncation(self):
        """Test that the balance covers transactions beyond the page."""
        ledger = [
            txn(f"t{i}", TransactionKind.DEPOSIT, 1000, minutes=i)
            for i in range(15)
        ]
        view = build_view(ledger, limit=10)

        assert view.balance == 15000
        assert len(view.recent) == 10
        assert view.total_count == 15
        assert view.hidden_count == 5
        assert view.recent[0].id == "t14"

    def test_view_of_empty_ledger(self):
        """Test the view when nothing has been recorded yet."""
        view = build_view([])
        assert view.balance == 0
        assert view.recent == ()
        assert view.hidden_count == 0


class TestOwnership:
    """Tests for lookup and ownership checks."""

    def test_find_existing(self, sample):
        """Test lookup by id."""
        assert find(sample, "t2").owner_id == "user-bob"

    def test_find_missing_raises(self, sample):
        """Test that a missing id raises NotFoundError."""
        with pytest.raises(NotFoundError):
            find(sample, "nope")

    def test_is_owner(self, sample):
        """Test owner comparison."""
        assert is_owner(sample[0], "user-alice")
        assert not is_owner(sample[1], "user-alice")

    def test_ensure_owner_rejects_other_profile(self, sample):
        """Test that changing someone else's transaction is refused."""
        ensure_owner(sample[0], "user-alice")
        with pytest.raises(AuthorizationMismatchError):
            ensure_owner(sample[1], "user-alice")


class TestApplyPatch:
    """Tests for applying an edit to a transaction."""

    def test_patch_keeps_identity(self, sample):
        """Test that id, owner and created_at survive an edit."""
        original = sample[0]
        updated = apply_patch(original, TransactionPatch(amount=750000))

        assert updated.amount == 750000
        assert updated.id == original.id
        assert updated.owner_id == original.owner_id
        assert updated.created_at == original.created_at
        assert updated.kind == original.kind

    def test_patch_can_switch_kind_and_note(self, sample):
        """Test that kind and note are editable."""
        updated = apply_patch(
            sample[0],
            TransactionPatch(kind=TransactionKind.WITHDRAW, note="Koreksi"),
        )
        assert updated.kind == TransactionKind.WITHDRAW
        assert updated.note == "Koreksi"
        assert updated.signed_amount == -500000

    def test_patch_with_invalid_amount_is_rejected(self):
        """Test that a non-positive amount never reaches a transaction."""
        with pytest.raises(ValidationError):
            TransactionPatch(amount=-1)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

"""
Ledger Engine

Derives the balance and the dashboard's transaction page from the full set
of transactions returned by the backend.

GUARANTEES:
- The balance is always summed over every transaction, never over the
  displayed page, and does not depend on list order.
- Edits keep the transaction's id and owner.
- Only the owner may edit or delete a transaction. This check runs before
  any request is sent; the backend enforces it again.
"""

from typing import Iterable

from pydantic import BaseModel, ConfigDict

from fundlove.models.ledger import Transaction, TransactionPatch
from fundlove.services.gateway import AuthorizationMismatchError, NotFoundError


DEFAULT_PAGE_SIZE = 10


class LedgerView(BaseModel):
    """What the dashboard shows for the ledger."""
    model_config = ConfigDict(frozen=True)

    balance: int
    recent: tuple[Transaction, ...]
    total_count: int

    @property
    def hidden_count(self) -> int:
        return self.total_count - len(self.recent)


def compute_balance(transactions: Iterable[Transaction]) -> int:
    """Sum of deposits minus sum of withdrawals."""
    return sum(t.signed_amount for t in transactions)


def recent(
    transactions: Iterable[Transaction],
    limit: int = DEFAULT_PAGE_SIZE,
) -> list[Transaction]:
    """The `limit` newest transactions, newest first."""
    ordered = sorted(transactions, key=lambda t: t.created_at, reverse=True)
    return ordered[:limit]


def build_view(
    transactions: Iterable[Transaction],
    limit: int = DEFAULT_PAGE_SIZE,
) -> LedgerView:
    transactions = list(transactions)
    return LedgerView(
        balance=compute_balance(transactions),
        recent=tuple(recent(transactions, limit)),
        total_count=len(transactions),
    )


def find(transactions: Iterable[Transaction], transaction_id: str) -> Transaction:
    for transaction in transactions:
        if transaction.id == transaction_id:
            return transaction
    raise NotFoundError(f"Transaction not found: {transaction_id}")


def is_owner(transaction: Transaction, profile_id: str) -> bool:
    return transaction.owner_id == profile_id


def ensure_owner(transaction: Transaction, profile_id: str) -> None:
    """
    Raise AuthorizationMismatchError unless profile_id owns the transaction.

    This is a courtesy check that saves a round trip, not a security boundary.
    """
    if not is_owner(transaction, profile_id):
        raise AuthorizationMismatchError(
            f"Transaction {transaction.id} belongs to another profile"
        )


def apply_patch(transaction: Transaction, patch: TransactionPatch) -> Transaction:
    """
    Return a copy of `transaction` with the patch applied.

    Only kind, amount and note can change. The result is re-validated, so a
    patch can never produce a non-positive amount.
    """
    return Transaction.model_validate({
        **transaction.model_dump(),
        **patch.changes(),
        "id": transaction.id,
        "owner_id": transaction.owner_id,
    })

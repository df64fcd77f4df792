"""
Abstract Data Gateway Interface

DESIGN DECISION: The hosted backend is hidden behind an abstract interface.
This allows us to:
1. Swap Google Sheets for another hosted table store later
2. Use in-memory storage for testing
3. Keep ledger and target logic decoupled from storage

The interface is intentionally small - plain table-like reads and writes
for profiles, transactions and targets. Every write that touches a
transaction is scoped to its owner; implementations must reject a write
whose owner does not match, even though the client checks first.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from fundlove.models.ledger import (
    Profile,
    Target,
    TargetPatch,
    Transaction,
    TransactionKind,
    TransactionPatch,
)


class DataGatewayInterface(ABC):
    """
    Abstract interface for the hosted data backend.

    Any backend implementation (Google Sheets, in-memory, etc.)
    must implement these methods.
    """

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    @abstractmethod
    async def list_profiles(self) -> list[Profile]:
        """
        List all profiles, ordered by name.

        Raises:
            GatewayUnavailableError: If the backend cannot be reached
        """
        pass

    @abstractmethod
    async def get_profile(self, profile_id: str) -> Profile:
        """
        Retrieve a profile by id.

        Raises:
            NotFoundError: If no such profile exists
            GatewayUnavailableError: If the backend cannot be reached
        """
        pass

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @abstractmethod
    async def list_transactions(self) -> list[Transaction]:
        """
        List every transaction with owner display fields joined in.

        Returns:
            Transactions ordered by created_at, newest first
        """
        pass

    @abstractmethod
    async def insert_transaction(
        self,
        owner_id: str,
        kind: TransactionKind,
        amount: int,
        note: Optional[str] = None,
    ) -> Transaction:
        """
        Record a new transaction.

        Returns:
            The stored transaction, with backend-assigned id and created_at
        """
        pass

    @abstractmethod
    async def update_transaction(
        self,
        transaction_id: str,
        owner_id: str,
        patch: TransactionPatch,
    ) -> None:
        """
        Apply a patch to the row matching both id and owner.

        Raises:
            NotFoundError: If the transaction does not exist
            AuthorizationMismatchError: If the row belongs to someone else
        """
        pass

    @abstractmethod
    async def delete_transaction(
        self,
        transaction_id: str,
        owner_id: str,
    ) -> None:
        """
        Delete the row matching both id and owner.

        Raises:
            NotFoundError: If the transaction does not exist
            AuthorizationMismatchError: If the row belongs to someone else
        """
        pass

    # -------------------------------------------------------------------------
    # Targets
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_active_target(self) -> Target:
        """
        Get the canonical target row.

        The least-recently-updated row wins; ties go to the smallest id.

        Raises:
            NotFoundError: If no target row exists
        """
        pass

    @abstractmethod
    async def insert_target(
        self,
        owner_id: str,
        target_amount: int,
        target_months: int,
        start_date: date,
    ) -> Target:
        """Create the first target row."""
        pass

    @abstractmethod
    async def update_target(self, target_id: str, patch: TargetPatch) -> None:
        """
        Replace the editable fields of a target in place.

        Raises:
            NotFoundError: If the target does not exist
        """
        pass


def select_active_target(targets: list[Target]) -> Optional[Target]:
    """
    Pick the canonical target from all target rows.

    Least-recently-updated first, then smallest id so ties are deterministic.
    """
    if not targets:
        return None
    return min(targets, key=lambda t: (t.updated_at, t.id))


class GatewayError(Exception):
    """Base exception for data backend operations."""
    pass


class GatewayUnavailableError(GatewayError):
    """Network or backend failure."""
    pass


class NotFoundError(GatewayError):
    """Referenced profile, transaction or target is absent."""
    pass


class AuthorizationMismatchError(GatewayError):
    """Mutation attempted against a row the acting profile does not own."""
    pass

"""
In-Memory Data Gateway

Keeps profiles, transactions and targets in plain dicts. Used by the test
suite and for running the dashboard without a configured backend.

Ownership scoping behaves like the hosted backend's row-level checks:
a write against someone else's transaction is rejected.
"""

from datetime import date, timedelta
from typing import Callable, Iterable, Optional
from uuid import uuid4

from fundlove.models.ledger import (
    OwnerDisplay,
    Profile,
    Target,
    TargetPatch,
    Transaction,
    TransactionKind,
    TransactionPatch,
    utc_now,
)
from fundlove.services.gateway.interface import (
    AuthorizationMismatchError,
    DataGatewayInterface,
    NotFoundError,
    select_active_target,
)


class InMemoryDataGateway(DataGatewayInterface):
    """Dict-backed implementation of the data gateway."""

    def __init__(
        self,
        profiles: Optional[Iterable[Profile]] = None,
        clock: Callable = utc_now,
    ):
        self._clock = clock
        self._profiles: dict[str, Profile] = {p.id: p for p in profiles or []}
        self._transactions: dict[str, Transaction] = {}
        self._targets: dict[str, Target] = {}
        self._last_stamp = None

    def _now(self):
        # Rows inserted within the same clock tick still order by insertion
        now = self._clock()
        if self._last_stamp is not None and now <= self._last_stamp:
            now = self._last_stamp + timedelta(microseconds=1)
        self._last_stamp = now
        return now

    def _owner_display(self, owner_id: str) -> Optional[OwnerDisplay]:
        profile = self._profiles.get(owner_id)
        if profile is None:
            return None
        return OwnerDisplay(name=profile.name, color=profile.color)

    def _owned_transaction(self, transaction_id: str, owner_id: str) -> Transaction:
        existing = self._transactions.get(transaction_id)
        if existing is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        if existing.owner_id != owner_id:
            raise AuthorizationMismatchError(
                f"Transaction {transaction_id} is not owned by {owner_id}"
            )
        return existing

    # Seeding and removal happen out-of-band in the real backend

    def add_profile(self, profile: Profile) -> None:
        self._profiles[profile.id] = profile

    def remove_profile(self, profile_id: str) -> None:
        self._profiles.pop(profile_id, None)

    def add_target_row(self, target: Target) -> None:
        self._targets[target.id] = target

    async def list_profiles(self) -> list[Profile]:
        return sorted(self._profiles.values(), key=lambda p: p.name)

    async def get_profile(self, profile_id: str) -> Profile:
        try:
            return self._profiles[profile_id]
        except KeyError:
            raise NotFoundError(f"Profile not found: {profile_id}")

    async def list_transactions(self) -> list[Transaction]:
        rows = [
            t.model_copy(update={"owner": self._owner_display(t.owner_id)})
            for t in self._transactions.values()
        ]
        rows.sort(key=lambda t: t.created_at, reverse=True)
        return rows

    async def insert_transaction(
        self,
        owner_id: str,
        kind: TransactionKind,
        amount: int,
        note: Optional[str] = None,
    ) -> Transaction:
        transaction = Transaction(
            id=str(uuid4()),
            owner_id=owner_id,
            kind=kind,
            amount=amount,
            note=note,
            created_at=self._now(),
            owner=self._owner_display(owner_id),
        )
        self._transactions[transaction.id] = transaction
        return transaction

    async def update_transaction(
        self,
        transaction_id: str,
        owner_id: str,
        patch: TransactionPatch,
    ) -> None:
        existing = self._owned_transaction(transaction_id, owner_id)
        self._transactions[transaction_id] = Transaction.model_validate(
            {**existing.model_dump(), **patch.changes()}
        )

    async def delete_transaction(self, transaction_id: str, owner_id: str) -> None:
        self._owned_transaction(transaction_id, owner_id)
        del self._transactions[transaction_id]

    async def get_active_target(self) -> Target:
        target = select_active_target(list(self._targets.values()))
        if target is None:
            raise NotFoundError("No target configured")
        return target

    async def insert_target(
        self,
        owner_id: str,
        target_amount: int,
        target_months: int,
        start_date: date,
    ) -> Target:
        target = Target(
            id=str(uuid4()),
            owner_id=owner_id,
            target_amount=target_amount,
            target_months=target_months,
            start_date=start_date,
            updated_at=self._now(),
        )
        self._targets[target.id] = target
        return target

    async def update_target(self, target_id: str, patch: TargetPatch) -> None:
        existing = self._targets.get(target_id)
        if existing is None:
            raise NotFoundError(f"Target not found: {target_id}")
        self._targets[target_id] = existing.model_copy(update=patch.model_dump())

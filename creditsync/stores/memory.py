"""Process-local stores for tests and single-instance development runs."""

import asyncio
from datetime import datetime

from bson import ObjectId

from creditsync.core.exceptions import DuplicateUserError, UserNotFoundError
from creditsync.models.plan import Plan
from creditsync.models.transaction import GatewayName, TransactionRecord
from creditsync.models.user import IdentityProfile, UserRecord
from creditsync.stores.base import TransactionLedger, UserDirectory


class InMemoryUserDirectory(UserDirectory):
    def __init__(self) -> None:
        self._users: dict[str, UserRecord] = {}
        self._lock = asyncio.Lock()

    async def create(self, profile: IdentityProfile) -> UserRecord:
        async with self._lock:
            if profile.external_id in self._users:
                raise DuplicateUserError(profile.external_id)
            user = UserRecord(**profile.model_dump())
            self._users[user.external_id] = user
            return user.model_copy()

    async def get(self, external_id: str) -> UserRecord | None:
        user = self._users.get(external_id)
        return user.model_copy() if user else None

    async def update_profile(self, profile: IdentityProfile) -> UserRecord:
        async with self._lock:
            user = self._users.get(profile.external_id)
            if user is None:
                raise UserNotFoundError(profile.external_id)
            user.email = profile.email
            user.first_name = profile.first_name
            user.last_name = profile.last_name
            user.photo_url = profile.photo_url
            user.updated_at = datetime.utcnow()
            return user.model_copy()

    async def delete(self, external_id: str) -> bool:
        async with self._lock:
            return self._users.pop(external_id, None) is not None

    async def increment_credits(self, external_id: str, amount: int) -> int:
        async with self._lock:
            user = self._users.get(external_id)
            if user is None:
                raise UserNotFoundError(external_id)
            user.credit_balance += amount
            user.updated_at = datetime.utcnow()
            return user.credit_balance


class InMemoryLedger(TransactionLedger):
    def __init__(self) -> None:
        self._transactions: dict[str, TransactionRecord] = {}
        self._lock = asyncio.Lock()

    async def create(self, external_user_id: str, plan: Plan, gateway: GatewayName) -> TransactionRecord:
        txn = TransactionRecord(
            id=str(ObjectId()),
            external_user_id=external_user_id,
            plan_id=plan.id,
            amount=plan.amount,
            credits=plan.credits,
            gateway=gateway,
            created_at=datetime.utcnow(),
        )
        async with self._lock:
            self._transactions[txn.id] = txn
        return txn.model_copy()

    async def get(self, transaction_id: str) -> TransactionRecord | None:
        txn = self._transactions.get(transaction_id)
        return txn.model_copy() if txn else None

    async def set_gateway_ref(self, transaction_id: str, gateway_ref: str) -> None:
        async with self._lock:
            txn = self._transactions.get(transaction_id)
            if txn is not None:
                txn.gateway_ref = gateway_ref

    async def claim_payment(self, transaction_id: str) -> TransactionRecord | None:
        async with self._lock:
            txn = self._transactions.get(transaction_id)
            if txn is None or txn.paid:
                return None
            txn.paid = True
            txn.paid_at = datetime.utcnow()
            return txn.model_copy()

    async def release_payment(self, transaction_id: str) -> None:
        async with self._lock:
            txn = self._transactions.get(transaction_id)
            if txn is not None:
                txn.paid = False
                txn.paid_at = None

    async def list_for_user(self, external_user_id: str, limit: int, offset: int) -> list[TransactionRecord]:
        rows = [t for t in self._transactions.values() if t.external_user_id == external_user_id]
        rows.sort(key=lambda t: (t.created_at, t.id), reverse=True)
        return [t.model_copy() for t in rows[offset:offset + limit]]

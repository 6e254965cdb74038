"""MongoDB-backed stores (Beanie). Requires init_db() to have run."""

from datetime import datetime
from functools import wraps

from beanie import PydanticObjectId, UpdateResponse
from beanie.operators import Inc, Set
from bson.errors import InvalidId
from pymongo.errors import DuplicateKeyError, PyMongoError

from creditsync.core.exceptions import DuplicateUserError, PersistenceError, UserNotFoundError
from creditsync.models.plan import Plan
from creditsync.models.transaction import GatewayName, Transaction, TransactionRecord
from creditsync.models.user import IdentityProfile, User, UserRecord
from creditsync.stores.base import TransactionLedger, UserDirectory


def _store_call(fn):
    """Translate driver failures into PersistenceError."""

    @wraps(fn)
    async def wrapper(*args, **kwargs):
        try:
            return await fn(*args, **kwargs)
        except PyMongoError as e:
            raise PersistenceError(str(e)) from e

    return wrapper


def _object_id(transaction_id: str) -> PydanticObjectId | None:
    try:
        return PydanticObjectId(transaction_id)
    except (InvalidId, TypeError):
        return None


class MongoUserDirectory(UserDirectory):
    @_store_call
    async def create(self, profile: IdentityProfile) -> UserRecord:
        if await User.find_one(User.external_id == profile.external_id):
            raise DuplicateUserError(profile.external_id)
        user = User(**profile.model_dump())
        try:
            await user.insert()
        except DuplicateKeyError as e:
            # Lost a race with a concurrent "created" delivery
            raise DuplicateUserError(profile.external_id) from e
        return user.to_record()

    @_store_call
    async def get(self, external_id: str) -> UserRecord | None:
        user = await User.find_one(User.external_id == external_id)
        return user.to_record() if user else None

    @_store_call
    async def update_profile(self, profile: IdentityProfile) -> UserRecord:
        user = await User.find_one(User.external_id == profile.external_id).update(
            Set(
                {
                    User.email: profile.email,
                    User.first_name: profile.first_name,
                    User.last_name: profile.last_name,
                    User.photo_url: profile.photo_url,
                    User.updated_at: datetime.utcnow(),
                }
            ),
            response_type=UpdateResponse.NEW_DOCUMENT,
        )
        if user is None:
            raise UserNotFoundError(profile.external_id)
        return user.to_record()

    @_store_call
    async def delete(self, external_id: str) -> bool:
        result = await User.find(User.external_id == external_id).delete()
        return bool(result and result.deleted_count)

    @_store_call
    async def increment_credits(self, external_id: str, amount: int) -> int:
        user = await User.find_one(User.external_id == external_id).update(
            Inc({User.credit_balance: amount}),
            Set({User.updated_at: datetime.utcnow()}),
            response_type=UpdateResponse.NEW_DOCUMENT,
        )
        if user is None:
            raise UserNotFoundError(external_id)
        return user.credit_balance


class MongoLedger(TransactionLedger):
    @_store_call
    async def create(self, external_user_id: str, plan: Plan, gateway: GatewayName) -> TransactionRecord:
        txn = Transaction(
            external_user_id=external_user_id,
            plan_id=plan.id,
            amount=plan.amount,
            credits=plan.credits,
            gateway=gateway,
        )
        await txn.insert()
        return txn.to_record()

    @_store_call
    async def get(self, transaction_id: str) -> TransactionRecord | None:
        oid = _object_id(transaction_id)
        if oid is None:
            return None
        txn = await Transaction.get(oid)
        return txn.to_record() if txn else None

    @_store_call
    async def set_gateway_ref(self, transaction_id: str, gateway_ref: str) -> None:
        oid = _object_id(transaction_id)
        if oid is None:
            return
        await Transaction.find_one(Transaction.id == oid).update(Set({Transaction.gateway_ref: gateway_ref}))

    @_store_call
    async def claim_payment(self, transaction_id: str) -> TransactionRecord | None:
        oid = _object_id(transaction_id)
        if oid is None:
            return None
        txn = await Transaction.find_one(Transaction.id == oid, Transaction.paid == False).update(  # noqa: E712
            Set({Transaction.paid: True, Transaction.paid_at: datetime.utcnow()}),
            response_type=UpdateResponse.NEW_DOCUMENT,
        )
        return txn.to_record() if txn else None

    @_store_call
    async def release_payment(self, transaction_id: str) -> None:
        oid = _object_id(transaction_id)
        if oid is None:
            return
        await Transaction.find_one(Transaction.id == oid, Transaction.paid == True).update(  # noqa: E712
            Set({Transaction.paid: False, Transaction.paid_at: None}),
        )

    @_store_call
    async def list_for_user(self, external_user_id: str, limit: int, offset: int) -> list[TransactionRecord]:
        rows = (
            await Transaction.find(Transaction.external_user_id == external_user_id)
            .sort(-Transaction.created_at)
            .skip(offset)
            .limit(limit)
            .to_list()
        )
        return [t.to_record() for t in rows]

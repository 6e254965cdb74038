from abc import ABC, abstractmethod

from creditsync.core.config import Settings, get_settings
from creditsync.models.plan import Plan
from creditsync.models.transaction import GatewayName, TransactionRecord
from creditsync.models.user import IdentityProfile, UserRecord


class UserDirectory(ABC):
    """External identity id -> user record with a credit balance."""

    @abstractmethod
    async def create(self, profile: IdentityProfile) -> UserRecord:
        """Insert a new user with zero balance. Raises DuplicateUserError."""
        ...

    @abstractmethod
    async def get(self, external_id: str) -> UserRecord | None:
        ...

    @abstractmethod
    async def update_profile(self, profile: IdentityProfile) -> UserRecord:
        """Overwrite email/name/photo only. Raises UserNotFoundError."""
        ...

    @abstractmethod
    async def delete(self, external_id: str) -> bool:
        """Remove the user; return False if there was nothing to remove."""
        ...

    @abstractmethod
    async def increment_credits(self, external_id: str, amount: int) -> int:
        """Atomically add `amount` to the balance; return the new balance. Raises UserNotFoundError."""
        ...


class TransactionLedger(ABC):
    """Append-mostly store of purchase attempts."""

    @abstractmethod
    async def create(self, external_user_id: str, plan: Plan, gateway: GatewayName) -> TransactionRecord:
        """Insert an unpaid transaction for `plan`."""
        ...

    @abstractmethod
    async def get(self, transaction_id: str) -> TransactionRecord | None:
        """Return the transaction, or None for unknown or malformed ids."""
        ...

    @abstractmethod
    async def set_gateway_ref(self, transaction_id: str, gateway_ref: str) -> None:
        ...

    @abstractmethod
    async def claim_payment(self, transaction_id: str) -> TransactionRecord | None:
        """
        Compare-and-swap paid false -> true.
        Returns the updated record for exactly one caller; None if already paid or unknown.
        """
        ...

    @abstractmethod
    async def release_payment(self, transaction_id: str) -> None:
        """Undo a claim whose credit could not be applied (paid true -> false)."""
        ...

    @abstractmethod
    async def list_for_user(self, external_user_id: str, limit: int, offset: int) -> list[TransactionRecord]:
        """Newest first."""
        ...


def get_stores(settings: Settings | None = None) -> tuple[UserDirectory, TransactionLedger]:
    settings = settings or get_settings()
    if settings.store_backend == "memory":
        from creditsync.stores.memory import InMemoryLedger, InMemoryUserDirectory
        return InMemoryUserDirectory(), InMemoryLedger()
    from creditsync.stores.mongo import MongoLedger, MongoUserDirectory
    return MongoUserDirectory(), MongoLedger()

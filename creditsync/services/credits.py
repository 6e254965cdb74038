"""Read side of the credit ledger: balances and purchase history."""

from creditsync.core.pagination import paginate
from creditsync.models.transaction import TransactionRecord
from creditsync.stores.base import TransactionLedger, UserDirectory


async def get_balance(directory: UserDirectory, external_user_id: str) -> int | None:
    """Return current balance, or None if the user is unknown."""
    user = await directory.get(external_user_id)
    return user.credit_balance if user else None


async def list_transactions(
    ledger: TransactionLedger,
    external_user_id: str,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[TransactionRecord], int, int]:
    limit, offset = paginate(limit, offset)
    return await ledger.list_for_user(external_user_id, limit, offset), limit, offset
